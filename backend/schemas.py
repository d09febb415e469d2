"""Pydantic schemas for FastAPI request / response models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

class ListingResponse(BaseModel):
    kind: str
    items: list[dict[str, Any]] = []
    message: Optional[str] = None
    error_kind: Optional[str] = None
    count: int = 0
    offset: int = 0
    limit: int = 0
    page: int = 1
    total_pages: int = 0
    has_next: bool = False


# ---------------------------------------------------------------------------
# Visual search
# ---------------------------------------------------------------------------

class VisualSearchRequest(BaseModel):
    image_base64: str
    mime_type: str = "image/jpeg"
    limit: int = Field(default=10, ge=1, le=50)


class VisualSearchHit(BaseModel):
    product: dict[str, Any]
    similarity: float


class VisualSearchResponse(BaseModel):
    description: str
    results: list[VisualSearchHit]
    total_candidates: int = 0
