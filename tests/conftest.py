from typing import Callable, List, Tuple, Union

import pytest

from blog_pipeline.core.tools.elevenlabs_client import Alignment, ElevenLabsConfig, TimestampedSpeechResponse

CHAR_SECONDS = 0.1


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class StubLLMClient:
    """Minimal OpenAIClient replacement: canned responses, recorded calls."""

    def __init__(self, responses: Union[List[str], Callable[[str | None, str], str]]) -> None:
        self._responses = responses
        self.calls: List[Tuple[str | None, str]] = []

    async def async_generate(self, instruction: str | None, user_input: str, **kwargs) -> str:
        self.calls.append((instruction, user_input))
        if callable(self._responses):
            return self._responses(instruction, user_input)
        return self._responses.pop(0)


def uniform_alignment(text: str, seconds_per_char: float = CHAR_SECONDS) -> Alignment:
    return Alignment(
        characters=list(text),
        character_start_times_seconds=[round(i * seconds_per_char, 6) for i in range(len(text))],
        character_end_times_seconds=[round((i + 1) * seconds_per_char, 6) for i in range(len(text))],
    )


class StubSpeechClient:
    """ElevenLabsClient replacement that aligns one character every 0.1s."""

    def __init__(self) -> None:
        self.texts: List[str] = []

    async def async_convert_with_timestamps(self, text: str) -> TimestampedSpeechResponse:
        self.texts.append(text)
        return TimestampedSpeechResponse(audio_base64="SUQz", alignment=uniform_alignment(text))


@pytest.fixture
def voice_config() -> ElevenLabsConfig:
    return ElevenLabsConfig(api_key="test-key", voice_id="voice-123")


@pytest.fixture
def speech_client() -> StubSpeechClient:
    return StubSpeechClient()
