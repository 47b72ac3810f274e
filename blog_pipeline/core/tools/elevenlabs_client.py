"""ElevenLabs API client for text-to-speech with character timestamps.

This module provides a client for the ElevenLabs text-to-speech API,
specifically the ``with-timestamps`` endpoint that returns base64 audio
together with a per-character alignment.
"""

import asyncio
from typing import Any, List, Optional

import requests
from loguru import logger
from pydantic import BaseModel, Field, model_validator

from blog_pipeline.common.errors import ConfigurationError, ExternalServiceError
from blog_pipeline.core.configs.config import Settings, settings


class ElevenLabsConfig(BaseModel):
    """Credentials and model selection for ElevenLabs."""

    api_key: str = ""
    voice_id: str = ""
    model_id: str = "eleven_multilingual_v2"
    output_format: str = "mp3_44100_128"
    base_url: str = "https://api.elevenlabs.io"

    def validate_credentials(self) -> None:
        """Raise ConfigurationError if the API key or voice ID is missing."""
        if not self.api_key:
            raise ConfigurationError("ELEVENLABS_API_KEY is required for voice synthesis")
        if not self.voice_id:
            raise ConfigurationError("ELEVENLABS_VOICE_ID is required for voice synthesis")

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "ElevenLabsConfig":
        """Build a validated config from settings.

        Raises:
            ConfigurationError: If ELEVENLABS_API_KEY or ELEVENLABS_VOICE_ID is not set
        """
        result = cls(
            api_key=config.elevenlabs_api_key or "",
            voice_id=config.elevenlabs_voice_id or "",
            model_id=config.elevenlabs_model_id,
            output_format=config.elevenlabs_output_format,
            base_url=config.elevenlabs_base_url,
        )
        result.validate_credentials()
        return result


class SpeechRequest(BaseModel):
    """Request body for text-to-speech."""

    text: str
    model_id: str = "eleven_multilingual_v2"


class Alignment(BaseModel):
    """Per-character alignment. All three arrays are index-aligned."""

    characters: List[str] = Field(default_factory=list)
    character_start_times_seconds: List[float] = Field(default_factory=list)
    character_end_times_seconds: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_lengths(self) -> "Alignment":
        lengths = {
            len(self.characters),
            len(self.character_start_times_seconds),
            len(self.character_end_times_seconds),
        }
        if len(lengths) != 1:
            raise ValueError(
                f"Alignment arrays differ in length: characters={len(self.characters)}, "
                f"starts={len(self.character_start_times_seconds)}, "
                f"ends={len(self.character_end_times_seconds)}"
            )
        return self


class TimestampedSpeechResponse(BaseModel):
    """Response from the with-timestamps endpoint."""

    audio_base64: str = ""
    alignment: Optional[Alignment] = None
    normalized_alignment: Optional[Alignment] = None


class ElevenLabsClient:
    """Client for the ElevenLabs text-to-speech API."""

    def __init__(self, config: ElevenLabsConfig, timeout: int = 120) -> None:
        """Initialize the ElevenLabs client.

        Args:
            config: Credentials and model selection
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If the API key or voice ID is missing
        """
        config.validate_credentials()
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._timeout = timeout

    @property
    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "xi-api-key": self._config.api_key,
        }

    def _check_response(self, response: requests.Response) -> Any:
        if not response.ok:
            raise ExternalServiceError(
                "elevenlabs",
                response.reason or "request failed",
                status_code=response.status_code,
                body=response.text[:500],
            )
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError("elevenlabs", f"Response is not JSON: {e}", body=response.text[:500]) from e

    def convert_with_timestamps(self, text: str) -> TimestampedSpeechResponse:
        """Synthesize speech and return audio with character alignment.

        Args:
            text: Text to speak

        Returns:
            TimestampedSpeechResponse with base64 audio and alignment

        Raises:
            ExternalServiceError: If the API request fails or the response is malformed
        """
        endpoint = f"{self._base_url}/v1/text-to-speech/{self._config.voice_id}/with-timestamps"
        request_data = SpeechRequest(text=text, model_id=self._config.model_id)

        logger.info(
            f"Synthesizing speech with ElevenLabs (voice: {self._config.voice_id}, "
            f"model: {self._config.model_id}, {len(text)} characters)"
        )
        logger.debug(f"Text: {text[:100]}...")

        response = requests.post(
            endpoint,
            headers=self._headers,
            params={"output_format": self._config.output_format},
            json=request_data.model_dump(),
            timeout=self._timeout,
        )
        payload = self._check_response(response)

        try:
            return TimestampedSpeechResponse.model_validate(payload)
        except ValueError as e:
            raise ExternalServiceError("elevenlabs", f"Malformed timestamp response: {e}") from e

    async def async_convert_with_timestamps(self, text: str) -> TimestampedSpeechResponse:
        """Asynchronous version of convert_with_timestamps; the HTTP call runs in a worker thread."""
        return await asyncio.to_thread(self.convert_with_timestamps, text)

    def list_voices(self) -> List[dict]:
        """List the voices available to this account."""
        response = requests.get(f"{self._base_url}/v1/voices", headers=self._headers, timeout=self._timeout)
        return self._check_response(response).get("voices", [])

    def get_voice(self, voice_id: str | None = None) -> dict:
        """Get details of a voice. Defaults to the configured voice."""
        voice_id = voice_id or self._config.voice_id
        response = requests.get(f"{self._base_url}/v1/voices/{voice_id}", headers=self._headers, timeout=self._timeout)
        return self._check_response(response)
