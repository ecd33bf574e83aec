"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,

    # File parsing
    UnsupportedFormatError,
    FileParseError,
    EmptyImportError,
    UploadTooLargeError,

    # Import session
    PreviewNotFoundError,
    MappingNotApplicableError,

    # External services
    GoogleFetchError,
    BulkImportSubmitError,
    FieldAnalysisError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",

    # File parsing
    "UnsupportedFormatError",
    "FileParseError",
    "EmptyImportError",
    "UploadTooLargeError",

    # Import session
    "PreviewNotFoundError",
    "MappingNotApplicableError",

    # External services
    "GoogleFetchError",
    "BulkImportSubmitError",
    "FieldAnalysisError",
]
