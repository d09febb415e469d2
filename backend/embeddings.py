"""
Product embeddings for visual search.

Generates dense vector embeddings for product text (name, description,
condition) through the configured embedding API and stores them as JSON in
the product_embeddings table. Visual search embeds a description of the
uploaded image and ranks products by cosine similarity against these.

Usage:
    python -m backend.embeddings                   # embed all products
    python -m backend.embeddings --batch-size 50   # custom batch size
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.database import async_session, init_db
from backend.models import Product, ProductEmbedding
from config_env import get_settings
from directory import records
from directory.errors import classify_store_error
from directory.vision import VisionClient

logger = logging.getLogger(__name__)


def _build_document(product) -> str:
    """Concatenate relevant text fields into a single embedding document."""
    parts = [
        product.name or "",
        product.description or "",
        product.condition or "",
    ]
    return " ".join(p.strip() for p in parts if p.strip())


def _parse_vector(raw) -> Optional[list[float]]:
    try:
        vector = json.loads(raw) if isinstance(raw, str) else raw
        return [float(x) for x in vector] if vector else None
    except (TypeError, ValueError):
        return None


async def load_product_candidates(session: AsyncSession) -> list[tuple[records.Product, list[float]]]:
    """Active products that have a stored embedding, with their vectors."""
    stmt = (
        select(Product, ProductEmbedding.embedding)
        .join(ProductEmbedding, ProductEmbedding.product_id == Product.id)
        .where(Product.status == "active")
    )
    try:
        rows = (await session.execute(stmt)).all()
    except Exception as e:
        raise classify_store_error(e, "product_embeddings") from e

    candidates = []
    for product, raw in rows:
        vector = _parse_vector(raw)
        if vector is None:
            logger.warning("Ignoring unreadable embedding for product %s", product.id)
            continue
        candidates.append((records.Product.model_validate(product), vector))
    return candidates


class EmbeddingService:
    """Generates and stores product embeddings."""

    def __init__(self, client: VisionClient,
                 session_factory: async_sessionmaker[AsyncSession] = async_session):
        self._client = client
        self._session_factory = session_factory

    async def embed_all_products(self, batch_size: int = 100) -> int:
        """Embed every product that does not have an embedding yet."""
        async with self._session_factory() as session:
            existing_ids = select(ProductEmbedding.product_id)
            stmt = select(Product).where(Product.id.notin_(existing_ids))
            products = (await session.execute(stmt)).scalars().all()

            if not products:
                logger.info("All products already have embeddings")
                return 0

            logger.info("Generating embeddings for %d products ...", len(products))

            total_embedded = 0
            for i in range(0, len(products), batch_size):
                batch = products[i:i + batch_size]
                valid = [(p, doc) for p in batch if (doc := _build_document(p))]
                if not valid:
                    continue

                valid_products, valid_docs = zip(*valid)
                vectors = await self._client.embed_batch(list(valid_docs))

                for product, vector in zip(valid_products, vectors):
                    session.add(ProductEmbedding(
                        product_id=product.id,
                        embedding=json.dumps(vector),
                        model_version=self._client.embedding_model,
                    ))

                await session.flush()
                total_embedded += len(valid_products)
                logger.info("  Embedded %d/%d products", total_embedded, len(products))

            await session.commit()
            logger.info("Embedding complete: %d products", total_embedded)
            return total_embedded


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

async def _main(batch_size: int = 100):
    await init_db()
    client = VisionClient.from_settings(get_settings())
    try:
        count = await EmbeddingService(client).embed_all_products(batch_size=batch_size)
    finally:
        await client.close()
    print(f"Done. Embedded {count} products.")


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Generate product embeddings for visual search")
    parser.add_argument("--batch-size", type=int, default=100)
    args = parser.parse_args()
    logging.basicConfig(level=get_settings().log_level)
    asyncio.run(_main(args.batch_size))


if __name__ == "__main__":
    main()
