"""
Vision / embedding client for visual product search.

Talks to an OpenAI-compatible API over httpx: an image is first described in
text by a vision model, and the description is embedded for similarity
ranking against stored product embeddings.
"""

from __future__ import annotations

import base64
import logging
from typing import Optional

import httpx

from config_env import DirectorySettings

logger = logging.getLogger(__name__)

DESCRIBE_PROMPT = "Describe this product image in detail to use for similarity search"


class VisionError(Exception):
    """The vision or embedding provider could not produce a result."""


class VisionClient:
    FALLBACK_DESCRIPTION = "Product image"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        vision_model: str,
        embedding_model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.vision_model = vision_model
        self.embedding_model = embedding_model
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: DirectorySettings, **kwargs) -> "VisionClient":
        return cls(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            vision_model=settings.vision_model,
            embedding_model=settings.embedding_model,
            timeout=settings.http_timeout,
            **kwargs,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={"Authorization": f"Bearer {self._api_key}"},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Vision
    # ------------------------------------------------------------------

    async def describe_image(self, image: bytes, mime_type: str = "image/jpeg") -> str:
        """Text description of ``image``; a generic fallback on any failure."""
        client = await self._get_client()
        payload = {
            "model": self.vision_model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": DESCRIBE_PROMPT},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}",
                            },
                        },
                    ],
                }
            ],
            "max_tokens": 300,
        }
        try:
            resp = await client.post("/chat/completions", json=payload)
            resp.raise_for_status()
            content = resp.json()["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as e:
            logger.warning("Vision API error %d: %s", e.response.status_code, e.response.text)
            return self.FALLBACK_DESCRIPTION
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("Image description failed: %s", e)
            return self.FALLBACK_DESCRIPTION

        content = (content or "").strip()
        return content or self.FALLBACK_DESCRIPTION

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        client = await self._get_client()
        payload = {"model": self.embedding_model, "input": texts, "encoding_format": "float"}
        try:
            resp = await client.post("/embeddings", json=payload)
            resp.raise_for_status()
            data = sorted(resp.json()["data"], key=lambda d: d.get("index", 0))
            vectors = [[float(x) for x in item["embedding"]] for item in data]
        except httpx.HTTPStatusError as e:
            raise VisionError(f"Embedding API error {e.response.status_code}") from e
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            raise VisionError(f"Embedding request failed: {e}") from e

        if len(vectors) != len(texts):
            raise VisionError(f"Expected {len(texts)} embeddings, got {len(vectors)}")
        return vectors

    async def embed(self, text: str) -> list[float]:
        return (await self.embed_batch([text]))[0]
