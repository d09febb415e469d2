import json

import pytest
from sqlalchemy import func, select

from backend.embeddings import EmbeddingService, _build_document, _parse_vector, load_product_candidates
from backend.models import ProductEmbedding


class FakeEmbeddingClient:
    embedding_model = "embed-test"

    def __init__(self):
        self.batches = []

    async def embed_batch(self, texts):
        self.batches.append(list(texts))
        return [[float(len(t)), 1.0] for t in texts]


class _P:
    def __init__(self, name, description=None, condition=None):
        self.name = name
        self.description = description
        self.condition = condition


class TestHelpers:
    def test_build_document(self):
        assert _build_document(_P("Lamp", "  brass ", "used")) == "Lamp brass used"
        assert _build_document(_P("", None, None)) == ""

    def test_parse_vector(self):
        assert _parse_vector("[1, 2]") == [1.0, 2.0]
        assert _parse_vector("not json") is None
        assert _parse_vector("[]") is None
        assert _parse_vector(None) is None


class TestEmbeddingService:
    @pytest.mark.asyncio
    async def test_embeds_missing_products_in_batches(self, session_factory):
        client = FakeEmbeddingClient()
        count = await EmbeddingService(client, session_factory).embed_all_products(batch_size=10)
        assert count == 31
        assert [len(b) for b in client.batches] == [10, 10, 10, 1]

        async with session_factory() as session:
            stored = (await session.execute(select(func.count()).select_from(ProductEmbedding))).scalar()
        assert stored == 31

        # second run has nothing left to do
        assert await EmbeddingService(client, session_factory).embed_all_products() == 0

    @pytest.mark.asyncio
    async def test_candidates_are_active_products_only(self, session_factory):
        async with session_factory() as session:
            session.add(ProductEmbedding(product_id="m3-00", embedding=json.dumps([1.0, 0.0])))
            session.add(ProductEmbedding(product_id="draft-1", embedding=json.dumps([1.0, 0.0])))
            session.add(ProductEmbedding(product_id="m1-0", embedding="garbage"))
            await session.commit()

        async with session_factory() as session:
            candidates = await load_product_candidates(session)

        assert [(p.id, v) for p, v in candidates] == [("m3-00", [1.0, 0.0])]
        assert candidates[0][0].market_id == "3"
