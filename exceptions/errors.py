"""
Custom exception classes for the application.

Every error carries a code, a human-readable message, an HTTP status and
details, and renders to the standard `{"error": {...}}` response body.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "UNSUPPORTED_FORMAT")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# FILE PARSING ERRORS
# ===================

SUPPORTED_EXTENSIONS = [".csv", ".tsv", ".json", ".jsonl", ".txt"]


class UnsupportedFormatError(ValidationError):
    """File extension has no parse strategy."""

    def __init__(self, filename: str):
        super().__init__(
            code="UNSUPPORTED_FORMAT",
            message="Unsupported file format. Upload a CSV, TSV, JSON, JSONL or TXT file.",
            details={"filename": filename, "supported": SUPPORTED_EXTENSIONS}
        )


class FileParseError(ValidationError):
    """Uploaded content could not be parsed into prompts."""

    def __init__(
        self,
        message: str = "Failed to parse the uploaded file. Please check the format.",
        details: Optional[dict] = None
    ):
        super().__init__(
            code="FILE_PARSE_ERROR",
            message=message,
            details=details
        )


class EmptyImportError(ValidationError):
    """Nothing left to import after filtering."""

    def __init__(self):
        super().__init__(
            code="EMPTY_IMPORT",
            message="No prompts with content to import"
        )


class UploadTooLargeError(ValidationError):
    """Upload exceeds the configured size limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            code="UPLOAD_TOO_LARGE",
            message=f"File is larger than {limit // 1024} KB",
            details={"size": size, "limit": limit}
        )


# ===================
# IMPORT SESSION ERRORS
# ===================

class PreviewNotFoundError(NotFoundError):
    """Import preview expired or never existed."""

    def __init__(self, preview_id: str):
        super().__init__(
            resource="Import preview",
            identifier=preview_id,
            code="PREVIEW_NOT_FOUND"
        )


class MappingNotApplicableError(ValidationError):
    """Field mappings sent for a preview that has no tabular rows."""

    def __init__(self, preview_id: str):
        super().__init__(
            code="MAPPING_NOT_APPLICABLE",
            message="Field mappings can only be changed for CSV, TSV or Google Sheets imports",
            details={"preview_id": preview_id}
        )


# ===================
# EXTERNAL SERVICE ERRORS
# ===================

class GoogleFetchError(ExternalServiceError):
    """Google Docs/Sheets content could not be fetched."""

    def __init__(self, url: str, reason: Optional[str] = None):
        super().__init__(
            service="google_import",
            code="GOOGLE_FETCH_FAILED",
            message="Failed to import from Google. Make sure the document is publicly accessible.",
            details={"url": url, "reason": reason}
        )


class BulkImportSubmitError(ExternalServiceError):
    """The bulk-import request was rejected as a whole."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            service="bulk_import",
            code="BULK_IMPORT_FAILED",
            message=message,
            details={"upstream_status": status_code}
        )


class FieldAnalysisError(ExternalServiceError):
    """LLM header analysis failed or returned unusable output."""

    def __init__(self, message: str):
        super().__init__(
            service="field_analysis",
            message=message
        )
