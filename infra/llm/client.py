import asyncio
import logging
import time
from typing import Dict, List, Optional

import httpx

from domain.errors import UpstreamError

logger = logging.getLogger(__name__)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"

SYSTEM_PROMPT = "You are a strict evaluator returning only valid JSON."


async def _post_with_retries(
    url: str,
    headers: Dict[str, str],
    payload: Dict,
    *,
    timeout: int = 15,
    max_attempts: int = 3,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict:
    backoff = 1.0
    for attempt in range(1, max_attempts + 1):
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                response = await client.post(url, headers=headers, json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            retriable = status >= 500 or status in {408, 429}
            if not retriable or attempt == max_attempts:
                raise UpstreamError(f"{url} returned HTTP {status}") from exc
            logger.warning("POST %s -> %s (attempt %d/%d)", url, status, attempt, max_attempts)
        except httpx.RequestError as exc:
            if attempt == max_attempts:
                raise UpstreamError(f"{url} unreachable: {exc}") from exc
            logger.warning("POST %s failed: %s (attempt %d/%d)", url, exc, attempt, max_attempts)
        await asyncio.sleep(backoff)
        backoff *= 2
    raise UpstreamError("Unexpected retry exhaustion")


def choose_provider(preferred: Optional[str], openai_key: Optional[str], openrouter_key: Optional[str]) -> str:
    """Pick "openai" or "openrouter": the preferred one if it has a key, else the first configured."""
    available = []
    if openai_key:
        available.append("openai")
    if openrouter_key:
        available.append("openrouter")
    if not available:
        raise UpstreamError("No LLM provider configured")
    if preferred and preferred.lower() in available:
        return preferred.lower()
    return available[0]


class LLMClient:
    """Chat-completions gateway: `complete(prompt) -> str`."""

    def __init__(
        self,
        *,
        provider: str,
        api_key: str,
        model: str,
        app_name: str = "cv-vacancy-evaluator",
        temperature: float = 0.2,
        timeout: int = 15,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._transport = transport
        if provider == "openai":
            self._url = OPENAI_CHAT_URL
            self._headers = {"Authorization": f"Bearer {api_key}"}
        elif provider == "openrouter":
            self._url = OPENROUTER_CHAT_URL
            self._headers = {
                "Authorization": f"Bearer {api_key}",
                "HTTP-Referer": "http://localhost",
                "X-Title": app_name,
            }
        else:
            raise ValueError(f"Unknown LLM provider: {provider}")

    @classmethod
    def from_settings(cls, settings) -> "LLMClient":
        provider = choose_provider(
            settings.PREFERRED_AI_SERVICE, settings.OPENAI_API_KEY, settings.OPENROUTER_API_KEY
        )
        if provider == "openai":
            return cls(provider=provider, api_key=settings.OPENAI_API_KEY,
                       model=settings.OPENAI_MODEL, app_name=settings.APP_NAME)
        return cls(provider=provider, api_key=settings.OPENROUTER_API_KEY,
                   model=settings.OPENROUTER_MODEL, app_name=settings.APP_NAME)

    async def complete(self, prompt: str, *, system: str = SYSTEM_PROMPT) -> str:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]
        payload = {"model": self.model, "messages": messages, "temperature": self.temperature}
        started = time.perf_counter()
        data = await _post_with_retries(
            self._url, self._headers, payload, timeout=self.timeout, transport=self._transport
        )
        logger.info("%s chat completion in %.2fs", self.provider, time.perf_counter() - started)
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamError(f"Malformed {self.provider} chat response") from exc
