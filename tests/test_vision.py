import json

import httpx
import pytest

from directory.vision import DESCRIBE_PROMPT, VisionClient, VisionError


def _client(handler):
    return VisionClient(
        api_key="sk-test",
        base_url="https://llm.example.com/v1/",
        vision_model="vision-test",
        embedding_model="embed-test",
        transport=httpx.MockTransport(handler),
    )


class TestDescribeImage:
    @pytest.mark.asyncio
    async def test_sends_data_url(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "  A brass lamp  "}}]})

        client = _client(handler)
        assert await client.describe_image(b"abc", "image/png") == "A brass lamp"
        await client.close()

        assert seen["url"] == "https://llm.example.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        content = seen["body"]["messages"][0]["content"]
        assert content[0]["text"] == DESCRIBE_PROMPT
        assert content[1]["image_url"]["url"] == "data:image/png;base64,YWJj"
        assert seen["body"]["model"] == "vision-test"

    @pytest.mark.asyncio
    async def test_http_error_falls_back(self):
        client = _client(lambda request: httpx.Response(500, text="upstream"))
        assert await client.describe_image(b"abc") == VisionClient.FALLBACK_DESCRIPTION
        await client.close()

    @pytest.mark.asyncio
    async def test_unexpected_shape_falls_back(self):
        client = _client(lambda request: httpx.Response(200, json={"choices": []}))
        assert await client.describe_image(b"abc") == VisionClient.FALLBACK_DESCRIPTION
        await client.close()


class TestEmbeddings:
    @pytest.mark.asyncio
    async def test_batch_sorted_by_index(self):
        def handler(request):
            body = json.loads(request.content)
            assert body["model"] == "embed-test"
            assert body["input"] == ["a", "b"]
            return httpx.Response(200, json={"data": [
                {"index": 1, "embedding": [0, 1]},
                {"index": 0, "embedding": [1, 0]},
            ]})

        client = _client(handler)
        assert await client.embed_batch(["a", "b"]) == [[1.0, 0.0], [0.0, 1.0]]
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_batch_skips_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert await _client(handler).embed_batch([]) == []

    @pytest.mark.asyncio
    async def test_error_raises(self):
        client = _client(lambda request: httpx.Response(429, json={"error": "rate limited"}))
        with pytest.raises(VisionError):
            await client.embed("a")
        await client.close()

    @pytest.mark.asyncio
    async def test_count_mismatch_raises(self):
        client = _client(lambda request: httpx.Response(200, json={"data": []}))
        with pytest.raises(VisionError):
            await client.embed("a")
        await client.close()
