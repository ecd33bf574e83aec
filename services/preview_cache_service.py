"""
Temporary storage for import previews.
Holds parsed records between upload and confirm, in memory with TTL expiration.
Process-local; a restart drops every open import.
"""
import uuid
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog

from config import settings

logger = structlog.get_logger(__name__)

_cache: dict[str, tuple[datetime, Any]] = {}


def store_preview(data: Any, ttl_minutes: Optional[int] = None) -> str:
    """Store an import session, return preview_id."""
    preview_id = str(uuid.uuid4())
    ttl = ttl_minutes if ttl_minutes is not None else settings.preview_ttl_minutes
    _cache[preview_id] = (datetime.now() + timedelta(minutes=ttl), data)
    _cleanup_expired()
    return preview_id


def replace_preview(preview_id: str, data: Any) -> bool:
    """Swap the stored session, keeping its expiry. False if expired/not found."""
    if retrieve_preview(preview_id) is None:
        return False
    expires_at, _ = _cache[preview_id]
    _cache[preview_id] = (expires_at, data)
    return True


def retrieve_preview(preview_id: str) -> Optional[Any]:
    """Retrieve an import session by preview_id. Returns None if expired/not found."""
    entry = _cache.get(preview_id)
    if entry is None:
        return None
    expires_at, data = entry
    if datetime.now() > expires_at:
        del _cache[preview_id]
        logger.debug("preview_expired", preview_id=preview_id)
        return None
    return data


def delete_preview(preview_id: str) -> None:
    """Remove preview after confirm or cancel."""
    _cache.pop(preview_id, None)


def _cleanup_expired() -> None:
    now = datetime.now()
    expired = [k for k, (exp, _) in _cache.items() if now > exp]
    for k in expired:
        del _cache[k]
