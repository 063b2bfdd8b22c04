"""Abstract base class for script-writing language model adapters.

Defines the async interface every script provider implements, plus the
duration-bucket table and prompt text shared across providers.
"""

from abc import ABC, abstractmethod
from typing import Optional

# Duration bucket -> approximate spoken word count
WORD_COUNTS: dict[str, int] = {
    "short": 75,
    "30": 75,
    "30s": 75,
    "medium": 150,
    "60": 150,
    "60s": 150,
    "long": 225,
    "90": 225,
    "90s": 225,
}
DEFAULT_WORD_COUNT = 225


def target_word_count(duration: Optional[str]) -> int:
    """Map a coarse duration bucket to an approximate script length."""
    if duration is None:
        return DEFAULT_WORD_COUNT
    return WORD_COUNTS.get(str(duration).strip().lower(), DEFAULT_WORD_COUNT)


def build_system_prompt(word_count: int) -> str:
    return (
        "You are a viral short-form video script writer. Write engaging, "
        "hook-driven scripts for TikTok/Reels/Shorts that capture attention in "
        f"the first 2 seconds. Keep it around {word_count} words. No hashtags, "
        "no emojis, just the spoken script."
    )


def build_user_prompt(topic: str) -> str:
    return f"Write a short-form video script about: {topic}"


class ScriptGenerator(ABC):
    """Abstract base class for script generation providers."""

    @abstractmethod
    async def generate(self, topic: str, duration: Optional[str] = None) -> str:
        """Write a spoken-style script about topic.

        Args:
            topic: What the video is about.
            duration: Duration bucket used to pick the target word count.

        Returns:
            The script text.

        Raises:
            ProviderError: If the provider returns a non-success response.
        """
        ...

    async def aclose(self) -> None:
        """Release any network resources held by the adapter."""
