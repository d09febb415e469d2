"""Listing endpoints -- filtered, paginated, enriched businesses and products."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.deps import get_store, http_error, page_limit
from backend.schemas import ListingResponse
from directory.filters import FilterState, ListingFilter
from directory.loader import BUSINESS_LISTING, PRODUCT_LISTING, ListingDefinition, ListingLoader
from directory.presenter import ViewKind, present
from directory.store import DirectoryStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["listings"])


async def _load_listing(
    store: DirectoryStore,
    definition: ListingDefinition,
    listing_filter: ListingFilter,
    tenant_id: Optional[str] = None,
    empty_message: str = "No results found",
) -> ListingResponse:
    """One fetch cycle through the loader, rendered by the presenter."""
    loader = ListingLoader(store, definition, FilterState(listing_filter), tenant_id=tenant_id, auto_fetch=False)
    try:
        state = await loader.refresh()
    finally:
        await loader.close()

    view = present(state, empty_message=empty_message)
    if view.kind == ViewKind.ERROR:
        raise http_error(state.error)
    return ListingResponse(**view.to_dict())


def _build_filter(category_id, market_id, q, status, sort, limit, offset) -> ListingFilter:
    try:
        return ListingFilter.create(
            category_id=category_id,
            market_id=market_id,
            search_text=q,
            status=status,
            sort=sort,
            offset=offset,
            limit=page_limit(limit),
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/businesses", response_model=ListingResponse)
async def list_businesses(
    category_id: Optional[str] = None,
    market_id: Optional[str] = None,
    q: Optional[str] = None,
    sort: str = "newest",
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    store: DirectoryStore = Depends(get_store),
):
    """Active businesses with category and market names attached."""
    listing_filter = _build_filter(category_id, market_id, q, None, sort, limit, offset)
    return await _load_listing(store, BUSINESS_LISTING, listing_filter, empty_message="No businesses found")


@router.get("/products", response_model=ListingResponse)
async def list_products(
    category_id: Optional[str] = None,
    market_id: Optional[str] = None,
    q: Optional[str] = None,
    sort: str = "newest",
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    store: DirectoryStore = Depends(get_store),
):
    listing_filter = _build_filter(category_id, market_id, q, None, sort, limit, offset)
    return await _load_listing(store, PRODUCT_LISTING, listing_filter, empty_message="No products found")


@router.get("/users/{owner_id}/products", response_model=ListingResponse)
async def list_owner_products(
    owner_id: str,
    category_id: Optional[str] = None,
    market_id: Optional[str] = None,
    status: Optional[str] = None,
    q: Optional[str] = None,
    sort: str = "newest",
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    store: DirectoryStore = Depends(get_store),
):
    """An owner's own products, any status unless filtered."""
    listing_filter = _build_filter(category_id, market_id, q, status, sort, limit, offset)
    return await _load_listing(
        store,
        PRODUCT_LISTING,
        listing_filter,
        tenant_id=owner_id,
        empty_message="You have not listed any products yet",
    )
