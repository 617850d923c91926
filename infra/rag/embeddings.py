import logging
from typing import List, Optional

import httpx

from domain.errors import UpstreamError
from infra.llm.client import _post_with_retries, choose_provider

logger = logging.getLogger(__name__)

EMBEDDING_URLS = {
    "openai": "https://api.openai.com/v1/embeddings",
    "openrouter": "https://openrouter.ai/api/v1/embeddings",
}


class EmbeddingClient:
    """Batched text -> vector gateway over the OpenAI-compatible embeddings API."""

    def __init__(
        self,
        *,
        provider: str,
        api_key: str,
        model: str,
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if provider not in EMBEDDING_URLS:
            raise ValueError(f"Unknown embedding provider: {provider}")
        self.provider = provider
        self.model = model
        self.timeout = timeout
        self._url = EMBEDDING_URLS[provider]
        self._headers = {"Authorization": f"Bearer {api_key}"}
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> "EmbeddingClient":
        provider = choose_provider(
            settings.PREFERRED_AI_SERVICE, settings.OPENAI_API_KEY, settings.OPENROUTER_API_KEY
        )
        if provider == "openai":
            return cls(provider=provider, api_key=settings.OPENAI_API_KEY,
                       model=settings.OPENAI_EMBEDDING_MODEL)
        return cls(provider=provider, api_key=settings.OPENROUTER_API_KEY,
                   model=settings.OPENROUTER_EMBEDDING_MODEL)

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        payload = {"model": self.model, "input": texts}
        data = await _post_with_retries(
            self._url, self._headers, payload, timeout=self.timeout, transport=self._transport
        )
        try:
            items = sorted(data["data"], key=lambda item: item.get("index", 0))
            vectors = [item["embedding"] for item in items]
        except (KeyError, TypeError) as exc:
            raise UpstreamError(f"Malformed {self.provider} embedding response") from exc
        if len(vectors) != len(texts):
            raise UpstreamError(f"Expected {len(texts)} embeddings, got {len(vectors)}")
        return vectors
