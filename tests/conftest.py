"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project directory to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from unittest.mock import MagicMock, patch

from models.prompt_import import ImportResult


# ===================
# PREVIEW CACHE
# ===================

@pytest.fixture(autouse=True)
def clear_preview_cache():
    """Start every test with an empty preview cache."""
    from services import preview_cache_service
    preview_cache_service._cache.clear()
    yield
    preview_cache_service._cache.clear()


# ===================
# PROMPT LIBRARY
# ===================

@pytest.fixture
def mock_submit():
    """
    Patch the bulk-import submission used by the import service.

    Usage:
        def test_something(mock_submit):
            mock_submit.return_value = ImportResult(total=1, success=1)
    """
    with patch("services.import_service.submit_batch") as mock:
        mock.side_effect = lambda batch: ImportResult(
            total=len(batch.records),
            success=len(batch.records),
            failed=0,
        )
        yield mock


@pytest.fixture
def mock_google_fetch():
    """Patch the Google fetch used by the import service."""
    with patch("services.import_service.fetch_google_content") as mock:
        yield mock


@pytest.fixture
def mock_http_response():
    """Factory for requests.Response stand-ins."""
    def _make(status_code: int = 200, json_data=None):
        response = MagicMock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 300
        response.json.return_value = json_data
        if not response.ok:
            import requests
            response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
        return response
    return _make


# ===================
# SAMPLE DATA
# ===================

@pytest.fixture
def sample_csv() -> str:
    """CSV with dictionary headers and one blank row."""
    return (
        "title,content,tags,isPublic,extra_notes\n"
        "Sunset,\"A photo of a sunset over the ocean\",\"nature, photo\",true,keep me\n"
        ",,,,\n"
        "Empty,,x,yes,\n"
        "City,\"Night skyline in the rain\",city,0,\n"
    )


@pytest.fixture
def sample_numbered_text() -> str:
    """Numbered list free text."""
    return "1. Write a poem\nAbout the sea.\n\n2. Summarize\nThe following text."


@pytest.fixture
def sample_json() -> str:
    """JSON object holding a prompts array."""
    return (
        '{"prompts": ['
        '{"name": "Alpha", "prompt": "Do alpha things", "tags": ["a", "b"], "status": "published"},'
        '{"title": "Beta", "content": "Do beta things", "isPublic": true, "model": "x1"},'
        '{"name": "Empty", "content": "   "}'
        ']}'
    )


# ===================
# API CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
