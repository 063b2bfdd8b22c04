"""OpenAI chat-completions adapter for script generation."""

import logging
from typing import Optional

import httpx

from tiktap.errors import ProviderError
from tiktap.services.script.base import (
    ScriptGenerator,
    build_system_prompt,
    build_user_prompt,
    target_word_count,
)

logger = logging.getLogger(__name__)


class OpenAIScriptGenerator(ScriptGenerator):
    """Writes scripts through the OpenAI chat-completions REST API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 500,
        client: Optional[httpx.AsyncClient] = None,
        timeout: httpx.Timeout = httpx.Timeout(120.0, connect=30.0),
    ) -> None:
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def generate(self, topic: str, duration: Optional[str] = None) -> str:
        word_count = target_word_count(duration)
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": build_system_prompt(word_count)},
                {"role": "user", "content": build_user_prompt(topic)},
            ],
            "max_tokens": self.max_tokens,
        }

        logger.info(
            "POST %s/chat/completions model=%s target_words=%d",
            self.base_url, self.model, word_count,
        )
        response = await self.client.post(
            f"{self.base_url}/chat/completions",
            json=payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        if response.status_code >= 400:
            raise ProviderError("OpenAI", response.text, response.status_code)

        data = response.json()
        try:
            return data["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderError("OpenAI", f"Unexpected response shape: {str(data)[:500]}") from e

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
