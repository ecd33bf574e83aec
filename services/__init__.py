"""
Business logic services.

Each service handles one domain area.
"""

from services.field_analysis_service import FieldAnalysisService, get_field_analysis_service
from services.import_service import ImportService, get_import_service

__all__ = [
    "FieldAnalysisService",
    "get_field_analysis_service",
    "ImportService",
    "get_import_service",
]
