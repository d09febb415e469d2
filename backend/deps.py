"""Shared FastAPI dependencies and error mapping."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException

from backend.sql_store import SqlAlchemyDirectoryStore
from config_env import get_settings
from directory.errors import DirectoryError, StoreErrorKind
from directory.store import DirectoryStore
from directory.vision import VisionClient

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    StoreErrorKind.NOT_PROVISIONED: 404,
    StoreErrorKind.PERMISSION_DENIED: 403,
    StoreErrorKind.TRANSIENT: 503,
    StoreErrorKind.MALFORMED: 502,
}


def http_error(error: DirectoryError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS.get(error.kind, 500),
        detail={"kind": error.kind.value, "message": error.message, "table": error.table},
    )


def page_limit(limit: Optional[int]) -> int:
    settings = get_settings()
    if limit is None:
        return settings.default_page_size
    return min(limit, settings.max_page_size)


def get_store() -> DirectoryStore:
    return SqlAlchemyDirectoryStore()


async def get_vision_client():
    settings = get_settings()
    if not settings.vision_enabled:
        raise HTTPException(status_code=503, detail="Visual search is not configured (missing LLM API key)")
    client = VisionClient.from_settings(settings)
    try:
        yield client
    finally:
        await client.close()
