"""
Bulk prompt import API routes.

Walks an import through upload → preview (→ mapping) → confirm.
See exceptions/errors.py for the error response format.
"""

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.prompt_import import (
    AnalyzeFieldsRequest,
    DefaultsOverlay,
    GoogleImportRequest,
    ImportPreview,
    ImportResult,
    MappingAnalysis,
    SegmentDefaults,
    TxtParseMode,
    UpdateMappingsRequest,
)
from services.import_service import get_import_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# UPLOAD & PREVIEW
# ===================

@router.post("/preview", response_model=ImportPreview)
async def preview_upload(
    file: UploadFile = File(..., description="CSV, TSV, JSON, JSONL or TXT file"),
    txt_mode: TxtParseMode = Form(TxtParseMode.AUTO, description="How TXT files are split"),
    delimiter: Optional[str] = Form(None, description="Delimiter for txt_mode=delimiter"),
    category: Optional[str] = Form(None, description="Category for free-text and JSON prompts"),
    is_public: bool = Form(False, description="Visibility for free-text and JSON prompts"),
):
    """Parse an uploaded file and return a preview. Nothing is imported yet."""
    try:
        content = await file.read()
        service = get_import_service()
        return service.preview_upload(
            filename=file.filename or "",
            content=content,
            txt_mode=txt_mode,
            delimiter=delimiter,
            defaults=SegmentDefaults(category=category, is_public=is_public),
        )
    except Exception as e:
        return handle_error(e)


@router.post("/google/preview", response_model=ImportPreview)
async def preview_google(data: GoogleImportRequest):
    """Fetch a public Google Doc or Sheet and return a preview."""
    try:
        service = get_import_service()
        return service.preview_google(data)
    except Exception as e:
        return handle_error(e)


@router.get("/preview/{preview_id}", response_model=ImportPreview)
async def get_preview(preview_id: str):
    """Get an open preview."""
    try:
        service = get_import_service()
        return service.get_preview(preview_id)
    except Exception as e:
        return handle_error(e)


# ===================
# FIELD MAPPING
# ===================

@router.post("/analyze", response_model=MappingAnalysis)
async def analyze_fields(data: AnalyzeFieldsRequest):
    """Suggest field mappings for a set of headers."""
    try:
        service = get_import_service()
        return service.analyze_fields(data)
    except Exception as e:
        return handle_error(e)


@router.put("/preview/{preview_id}/mappings", response_model=ImportPreview)
async def update_mappings(preview_id: str, data: UpdateMappingsRequest):
    """Replace the field mappings of a tabular preview and re-parse its rows."""
    try:
        service = get_import_service()
        return service.update_mappings(preview_id, data.mappings)
    except Exception as e:
        return handle_error(e)


# ===================
# CONFIRM & CANCEL
# ===================

@router.post("/preview/{preview_id}/confirm", response_model=ImportResult)
async def confirm_import(preview_id: str, defaults: Optional[DefaultsOverlay] = None):
    """Apply defaults and submit the previewed prompts to the library."""
    try:
        service = get_import_service()
        return service.confirm(preview_id, defaults)
    except Exception as e:
        return handle_error(e)


@router.delete("/preview/{preview_id}", status_code=204)
async def cancel_import(preview_id: str):
    """Discard a preview."""
    try:
        service = get_import_service()
        service.cancel(preview_id)
        return None
    except Exception as e:
        return handle_error(e)
