"""Speech synthesis adapters.

Resolves logical voice keys to ElevenLabs voice ids and returns the
synthesized MP3 as raw bytes.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from tiktap.errors import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "female_1"

# Logical voice key -> ElevenLabs voice id
VOICE_IDS: dict[str, str] = {
    "female_1": "EXAVITQu4vr4xnSDxMaL",  # Sarah
    "female_2": "XB0fDUnXU5powFXDhCwa",  # Charlotte
    "male_1": "TX3LPaxmHKxFdv7VOQHJ",    # Liam
}


def resolve_voice_id(voice: Optional[str]) -> str:
    """Map a logical voice key to a provider voice id, defaulting to female_1."""
    return VOICE_IDS.get(voice or DEFAULT_VOICE, VOICE_IDS[DEFAULT_VOICE])


class VoiceSynthesizer(ABC):
    """Abstract base class for text-to-speech providers."""

    @abstractmethod
    async def synthesize(self, text: str, voice: Optional[str] = None) -> bytes:
        """Voice text with the given logical voice and return encoded audio.

        Raises:
            ProviderError: If the provider returns a non-success response.
        """
        ...

    async def aclose(self) -> None:
        """Release any network resources held by the adapter."""


class ElevenLabsVoiceSynthesizer(VoiceSynthesizer):
    """Text-to-speech through the ElevenLabs REST API."""

    def __init__(
        self,
        api_key: str,
        model_id: str = "eleven_multilingual_v2",
        base_url: str = "https://api.elevenlabs.io/v1",
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        client: Optional[httpx.AsyncClient] = None,
        timeout: httpx.Timeout = httpx.Timeout(120.0, connect=30.0),
    ) -> None:
        self.model_id = model_id
        self.base_url = base_url.rstrip("/")
        self.stability = stability
        self.similarity_boost = similarity_boost
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def synthesize(self, text: str, voice: Optional[str] = None) -> bytes:
        voice_id = resolve_voice_id(voice)
        logger.info(
            "POST %s/text-to-speech/%s chars=%d", self.base_url, voice_id, len(text),
        )
        response = await self.client.post(
            f"{self.base_url}/text-to-speech/{voice_id}",
            headers={"xi-api-key": self._api_key, "Accept": "audio/mpeg"},
            json={
                "text": text,
                "model_id": self.model_id,
                "voice_settings": {
                    "stability": self.stability,
                    "similarity_boost": self.similarity_boost,
                },
            },
        )
        if response.status_code >= 400:
            raise ProviderError("ElevenLabs", response.text, response.status_code)

        audio = response.content
        logger.info(f"  received {len(audio)} bytes of audio")
        return audio

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
