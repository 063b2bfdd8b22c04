"""Provider registry for script generators.

Routes model IDs to the correct adapter implementation based on the model
ID prefix. Supports Ollama (ollama/ prefix) and OpenAI (everything else).
"""

import logging
from typing import Optional

from tiktap.services.script.base import ScriptGenerator

logger = logging.getLogger(__name__)


def _is_ollama_model(model_id: str) -> bool:
    """Return True if the model ID uses the ollama/ prefix."""
    return model_id.startswith("ollama/")


def get_script_generator(
    model_id: str,
    *,
    openai_api_key: str = "",
    openai_base_url: str = "https://api.openai.com/v1",
    ollama_base_url: str = "http://localhost:11434",
    max_tokens: int = 500,
    api_key: Optional[str] = None,
) -> ScriptGenerator:
    """Return the appropriate script generator for the given model ID.

    Routing logic:
    - "ollama/*"    → OllamaScriptGenerator
    - anything else → OpenAIScriptGenerator

    Args:
        model_id: Model identifier (e.g., "gpt-4o-mini", "ollama/llama3.1").
        openai_api_key: Bearer key for the OpenAI API.
        openai_base_url: OpenAI-compatible API root.
        ollama_base_url: Ollama server URL.
        max_tokens: Completion token cap for OpenAI.
        api_key: Optional Ollama cloud key.
    """
    if _is_ollama_model(model_id):
        from tiktap.services.script.ollama_adapter import OllamaScriptGenerator

        logger.debug(
            "Routing %s to OllamaScriptGenerator (base_url=%s, has_key=%s)",
            model_id,
            ollama_base_url,
            bool(api_key),
        )
        return OllamaScriptGenerator(model_id=model_id, base_url=ollama_base_url, api_key=api_key)

    from tiktap.services.script.openai_adapter import OpenAIScriptGenerator

    logger.debug("Routing %s to OpenAIScriptGenerator", model_id)
    return OpenAIScriptGenerator(
        api_key=openai_api_key,
        model=model_id,
        base_url=openai_base_url,
        max_tokens=max_tokens,
    )
