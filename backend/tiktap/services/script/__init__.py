"""Script generation provider layer.

Provides a unified async interface for writing short-form video scripts
across language model providers (OpenAI, Ollama).

Usage:
    from tiktap.services.script import get_script_generator

    generator = get_script_generator("gpt-4o-mini", openai_api_key=key)
    script = await generator.generate("coffee brewing", duration="30")
"""

from tiktap.services.script.base import ScriptGenerator, target_word_count
from tiktap.services.script.registry import get_script_generator

__all__ = ["ScriptGenerator", "get_script_generator", "target_word_count"]
