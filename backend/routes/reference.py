"""Reference data endpoints -- markets and categories for filter dropdowns."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from backend.deps import get_store, http_error
from directory.errors import DirectoryError
from directory.query_builder import build_reference_request
from directory.records import Category, Market, validate_rows
from directory.store import DirectoryStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reference"])


async def _read(store: DirectoryStore, model, table: str, active_only: bool = False, q: Optional[str] = None):
    request = build_reference_request(table, active_only=active_only, search_text=q)
    try:
        rows = await store.read_reference(request)
        return validate_rows(model, rows, table)
    except DirectoryError as e:
        raise http_error(e)


@router.get("/markets", response_model=list[Market])
async def list_markets(q: Optional[str] = None, store: DirectoryStore = Depends(get_store)):
    """Active markets ordered by name; ``q`` matches name, description or location."""
    return await _read(store, Market, "markets", active_only=True, q=q)


@router.get("/categories", response_model=list[Category])
async def list_business_categories(store: DirectoryStore = Depends(get_store)):
    return await _read(store, Category, "business_categories")


@router.get("/product-categories", response_model=list[Category])
async def list_product_categories(store: DirectoryStore = Depends(get_store)):
    return await _read(store, Category, "categories")
