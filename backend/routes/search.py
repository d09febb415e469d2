"""Visual search endpoint -- image description -> embedding -> cosine ranking."""

from __future__ import annotations

import base64
import binascii
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import get_session
from backend.deps import get_vision_client, http_error
from backend.embeddings import load_product_candidates
from backend.schemas import VisualSearchHit, VisualSearchRequest, VisualSearchResponse
from directory.errors import DirectoryError
from directory.similarity import rank_by_similarity
from directory.vision import VisionClient, VisionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.post("/visual", response_model=VisualSearchResponse)
async def visual_search(
    req: VisualSearchRequest,
    session: AsyncSession = Depends(get_session),
    client: VisionClient = Depends(get_vision_client),
):
    """
    Rank products by similarity to an uploaded image.

    Products without a stored embedding are not ranked at all; run
    ``python -m backend.embeddings`` to embed them.
    """
    try:
        image = base64.b64decode(req.image_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="image_base64 is not valid base64")
    if not image:
        raise HTTPException(status_code=400, detail="No image file provided")

    description = await client.describe_image(image, req.mime_type)

    try:
        query_vector = await client.embed(description)
    except VisionError as e:
        logger.error("Visual search embedding failed: %s", e)
        raise HTTPException(status_code=502, detail="Embedding provider unavailable")

    try:
        candidates = await load_product_candidates(session)
    except DirectoryError as e:
        raise http_error(e)

    ranked = rank_by_similarity(query_vector, candidates, limit=req.limit)
    return VisualSearchResponse(
        description=description,
        results=[
            VisualSearchHit(product=product.model_dump(mode="json"), similarity=round(score, 4))
            for product, score in ranked
        ],
        total_candidates=len(candidates),
    )
