"""Ollama adapter for script generation.

Connects via ollama.AsyncClient with optional auth headers. Handy for
running the pipeline against a local model without an OpenAI key.
"""

import logging
from typing import Optional

from ollama import AsyncClient, ResponseError

from tiktap.errors import ProviderError
from tiktap.services.script.base import (
    ScriptGenerator,
    build_system_prompt,
    build_user_prompt,
    target_word_count,
)

logger = logging.getLogger(__name__)


class OllamaScriptGenerator(ScriptGenerator):
    """Script generator backed by a local or cloud Ollama instance.

    Strips the "ollama/" prefix from model IDs before passing to the ollama
    library. Always passes stream=False to avoid async generator responses.
    """

    def __init__(
        self,
        model_id: str,
        base_url: str = "http://localhost:11434",
        api_key: Optional[str] = None,
        client: Optional[AsyncClient] = None,
    ) -> None:
        # The ollama library expects bare model names
        self._ollama_model = model_id.removeprefix("ollama/")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client or AsyncClient(host=base_url, headers=headers)

    async def generate(self, topic: str, duration: Optional[str] = None) -> str:
        word_count = target_word_count(duration)
        logger.info(f"Ollama chat model={self._ollama_model} target_words={word_count}")
        try:
            response = await self._client.chat(
                model=self._ollama_model,
                messages=[
                    {"role": "system", "content": build_system_prompt(word_count)},
                    {"role": "user", "content": build_user_prompt(topic)},
                ],
                stream=False,
            )
        except ResponseError as e:
            raise ProviderError("Ollama", e.error, e.status_code) from e

        return response.message.content.strip()
