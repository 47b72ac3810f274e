import pytest

from blog_pipeline.common.errors import ConfigurationError, ExternalServiceError
from blog_pipeline.core.configs.config import Settings
from blog_pipeline.core.tools import elevenlabs_client
from blog_pipeline.core.tools.elevenlabs_client import ElevenLabsClient, ElevenLabsConfig


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = "", reason: str = "OK") -> None:
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.reason = reason
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


@pytest.fixture
def recorded_post(monkeypatch):
    calls = []
    responses = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        return responses.pop(0)

    monkeypatch.setattr(elevenlabs_client.requests, "post", fake_post)
    return calls, responses


def alignment_payload(text: str) -> dict:
    return {
        "audio_base64": "SUQz",
        "alignment": {
            "characters": list(text),
            "character_start_times_seconds": [i * 0.1 for i in range(len(text))],
            "character_end_times_seconds": [(i + 1) * 0.1 for i in range(len(text))],
        },
    }


def test_convert_with_timestamps_request(recorded_post, voice_config) -> None:
    calls, responses = recorded_post
    responses.append(FakeResponse(payload=alignment_payload("Hi")))

    result = ElevenLabsClient(voice_config).convert_with_timestamps("Hi")

    url, kwargs = calls[0]
    assert url == "https://api.elevenlabs.io/v1/text-to-speech/voice-123/with-timestamps"
    assert kwargs["headers"]["xi-api-key"] == "test-key"
    assert kwargs["params"] == {"output_format": "mp3_44100_128"}
    assert kwargs["json"] == {"text": "Hi", "model_id": "eleven_multilingual_v2"}
    assert result.audio_base64 == "SUQz"
    assert result.alignment.characters == ["H", "i"]


@pytest.mark.anyio
async def test_async_convert_runs_request(recorded_post, voice_config) -> None:
    _, responses = recorded_post
    responses.append(FakeResponse(payload=alignment_payload("ok")))

    result = await ElevenLabsClient(voice_config).async_convert_with_timestamps("ok")

    assert len(result.alignment.characters) == 2


def test_non_2xx_raises_with_status(recorded_post, voice_config) -> None:
    _, responses = recorded_post
    responses.append(FakeResponse(status_code=401, text='{"detail": "invalid api key"}', reason="Unauthorized"))

    with pytest.raises(ExternalServiceError) as exc_info:
        ElevenLabsClient(voice_config).convert_with_timestamps("Hi")

    assert exc_info.value.service == "elevenlabs"
    assert exc_info.value.status_code == 401
    assert "invalid api key" in exc_info.value.body


def test_non_json_body_raises(recorded_post, voice_config) -> None:
    _, responses = recorded_post
    responses.append(FakeResponse(text="<html>"))

    with pytest.raises(ExternalServiceError):
        ElevenLabsClient(voice_config).convert_with_timestamps("Hi")


def test_mismatched_alignment_raises(recorded_post, voice_config) -> None:
    _, responses = recorded_post
    payload = alignment_payload("Hi")
    payload["alignment"]["character_end_times_seconds"].pop()
    responses.append(FakeResponse(payload=payload))

    with pytest.raises(ExternalServiceError, match="Malformed"):
        ElevenLabsClient(voice_config).convert_with_timestamps("Hi")


def test_client_requires_credentials() -> None:
    with pytest.raises(ConfigurationError, match="ELEVENLABS_API_KEY"):
        ElevenLabsClient(ElevenLabsConfig(voice_id="voice"))


def test_config_from_settings() -> None:
    config = ElevenLabsConfig.from_settings(
        Settings(elevenlabs_api_key="key", elevenlabs_voice_id="voice", elevenlabs_base_url="http://localhost:9000/")
    )

    assert config.api_key == "key"
    assert config.base_url == "http://localhost:9000/"


def test_config_from_settings_without_voice() -> None:
    with pytest.raises(ConfigurationError, match="ELEVENLABS_VOICE_ID"):
        ElevenLabsConfig.from_settings(Settings(elevenlabs_api_key="key", elevenlabs_voice_id=None))
