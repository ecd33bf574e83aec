"""
Prompt library API client.

Submits finished import batches to the bulk-import endpoint and fetches
public Google Docs/Sheets content through the library's fetch endpoint.
One request per call, no retries.
"""

from typing import Optional

import requests
import structlog
from pydantic import ValidationError as PydanticValidationError

from config import settings
from exceptions import BulkImportSubmitError, EmptyImportError, GoogleFetchError
from models.prompt_import import GoogleDocType, ImportBatch, ImportResult

logger = structlog.get_logger(__name__)

GOOGLE_CONTENT_TYPES = ("csv", "text")


def _headers() -> dict:
    headers = {"Content-Type": "application/json"}
    if settings.prompt_library_token:
        headers["Authorization"] = f"Bearer {settings.prompt_library_token}"
    return headers


def _url(path: str) -> str:
    return f"{settings.prompt_library_url.rstrip('/')}{path}"


def _error_message(response: requests.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message") or body.get("error")
    return None


def submit_batch(batch: ImportBatch) -> ImportResult:
    """
    POST a batch to the bulk-import endpoint.

    Args:
        batch: Merged records

    Returns:
        ImportResult with per-row errors as reported by the endpoint

    Raises:
        EmptyImportError: If the batch has no records
        BulkImportSubmitError: On transport failure, non-2xx status or an unreadable body
    """
    if not batch.records:
        raise EmptyImportError()

    payload = batch.to_payload()

    try:
        logger.info("submitting_bulk_import", record_count=len(batch.records))
        response = requests.post(
            _url(settings.bulk_import_path),
            json=payload,
            headers=_headers(),
            timeout=settings.request_timeout_seconds,
        )
    except requests.exceptions.RequestException as e:
        logger.error("bulk_import_request_failed", error=str(e))
        raise BulkImportSubmitError(f"Failed to reach the prompt library: {str(e)}")

    if not response.ok:
        message = _error_message(response) or "Failed to process bulk import"
        logger.error("bulk_import_rejected", status=response.status_code, message=message)
        raise BulkImportSubmitError(message, status_code=response.status_code)

    try:
        result = ImportResult.model_validate(response.json())
    except (ValueError, PydanticValidationError) as e:
        logger.error("bulk_import_response_invalid", error=str(e))
        raise BulkImportSubmitError("Prompt library returned an unreadable import result", status_code=response.status_code)

    logger.info(
        "bulk_import_submitted",
        total=result.total,
        success=result.success,
        failed=result.failed,
    )
    return result


def fetch_google_content(url: str, doc_type: GoogleDocType = GoogleDocType.AUTO) -> tuple[str, str]:
    """
    Fetch a public Google Doc or Sheet.

    Args:
        url: Document URL
        doc_type: auto, docs or sheets

    Returns:
        (content type, content): "csv" for sheets, "text" for docs

    Raises:
        GoogleFetchError: If the document cannot be fetched
    """
    try:
        logger.info("fetching_google_content", url=url, type=doc_type.value)
        response = requests.post(
            _url(settings.google_import_path),
            json={"url": url, "type": doc_type.value},
            headers=_headers(),
            timeout=settings.request_timeout_seconds,
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        logger.error("google_fetch_failed", url=url, error=str(e))
        raise GoogleFetchError(url, reason=str(e))
    except ValueError as e:
        logger.error("google_fetch_response_invalid", url=url, error=str(e))
        raise GoogleFetchError(url, reason="Response was not JSON")

    content_type = data.get("type") if isinstance(data, dict) else None
    content = data.get("content") if isinstance(data, dict) else None

    if content_type not in GOOGLE_CONTENT_TYPES or not isinstance(content, str):
        raise GoogleFetchError(url, reason="Unexpected response shape")

    logger.info("google_content_fetched", type=content_type, length=len(content))
    return content_type, content
