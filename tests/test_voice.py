import base64

import pytest

from blog_pipeline.common.errors import ConfigurationError
from blog_pipeline.core.tools.elevenlabs_client import ElevenLabsConfig
from blog_pipeline.shorts.models import CharacterTimestamp
from blog_pipeline.shorts.pronunciation import PronunciationTable
from blog_pipeline.shorts.voice import VoiceSynthesizer, characters_to_words, save_audio_to_file
from conftest import StubSpeechClient


def make_characters(text: str) -> list[CharacterTimestamp]:
    return [
        CharacterTimestamp(character=c, start_time=i * 0.1, end_time=(i + 1) * 0.1)
        for i, c in enumerate(text)
    ]


def test_words_split_on_whitespace_with_timings() -> None:
    words = characters_to_words(make_characters("Hi you"))

    assert [w.word for w in words] == ["Hi", "you"]
    assert words[0].start_time == pytest.approx(0.0)
    assert words[0].end_time == pytest.approx(0.2)
    assert words[1].start_time == pytest.approx(0.3)
    assert words[1].end_time == pytest.approx(0.6)


@pytest.mark.parametrize(
    "text",
    [
        "Context Engineering — это новый подход",
        "  leading and trailing  ",
        "tabs\tand\nnewlines   mixed",
        "single",
        "",
    ],
)
def test_words_reconstruct_text_and_char_index(text: str) -> None:
    words = characters_to_words(make_characters(text))

    assert " ".join(w.word for w in words) == " ".join(text.split())
    for word in words:
        assert text[word.char_index : word.char_index + len(word.word)] == word.word
    for current, following in zip(words, words[1:]):
        assert current.start_time <= following.start_time


def test_empty_alignment_yields_no_words() -> None:
    assert characters_to_words([]) == []


def test_trailing_word_is_emitted() -> None:
    words = characters_to_words(make_characters("end"))

    assert len(words) == 1
    assert words[0].word == "end"
    assert words[0].char_index == 0


@pytest.mark.anyio
async def test_synthesize_duration_and_words(voice_config: ElevenLabsConfig, speech_client: StubSpeechClient) -> None:
    synthesizer = VoiceSynthesizer(voice_config, client=speech_client)

    result = await synthesizer.synthesize("Hello big world")

    assert result.format == "mp3"
    assert result.text == "Hello big world"
    assert len(result.character_timestamps) == len("Hello big world")
    assert [w.word for w in result.word_timestamps] == ["Hello", "big", "world"]
    assert result.duration_seconds == pytest.approx(1.5)


@pytest.mark.anyio
async def test_synthesize_applies_and_restores_pronunciations(
    voice_config: ElevenLabsConfig, speech_client: StubSpeechClient
) -> None:
    table = PronunciationTable([("AI", "Эй-Ай"), ("API", "Эй-Пи-Ай")])
    synthesizer = VoiceSynthesizer(voice_config, pronunciations=table, client=speech_client)

    result = await synthesizer.synthesize("AI через API.")

    assert speech_client.texts == ["Эй-Ай через Эй-Пи-Ай."]
    assert [w.word for w in result.word_timestamps] == ["AI", "через", "API."]
    # Timings and indices refer to the substituted text
    spoken = result.text
    third = result.word_timestamps[2]
    assert spoken[third.char_index : third.char_index + len("Эй-Пи-Ай.")] == "Эй-Пи-Ай."
    assert third.end_time == pytest.approx(len(spoken) * 0.1)


@pytest.mark.anyio
async def test_synthesize_without_alignment_has_zero_duration(voice_config: ElevenLabsConfig) -> None:
    class NoAlignmentClient(StubSpeechClient):
        async def async_convert_with_timestamps(self, text):
            response = await super().async_convert_with_timestamps(text)
            return response.model_copy(update={"alignment": None})

    result = await VoiceSynthesizer(voice_config, client=NoAlignmentClient()).synthesize("text")

    assert result.duration_seconds == 0.0
    assert result.word_timestamps == []


@pytest.mark.parametrize(
    "config",
    [
        ElevenLabsConfig(api_key="", voice_id="voice"),
        ElevenLabsConfig(api_key="key", voice_id=""),
    ],
)
def test_missing_credentials_fail_before_any_call(config: ElevenLabsConfig) -> None:
    client = StubSpeechClient()

    with pytest.raises(ConfigurationError):
        VoiceSynthesizer(config, client=client)

    assert client.texts == []


def test_save_audio_to_file(tmp_path) -> None:
    path = save_audio_to_file(base64.b64encode(b"ID3-audio").decode(), str(tmp_path / "nested" / "a.mp3"))

    with open(path, "rb") as f:
        assert f.read() == b"ID3-audio"


@pytest.mark.anyio
async def test_phonetic_spelling_already_in_input_is_kept(
    voice_config: ElevenLabsConfig, speech_client: StubSpeechClient
) -> None:
    synthesizer = VoiceSynthesizer(voice_config, pronunciations=PronunciationTable.for_language("ru"), client=speech_client)

    result = await synthesizer.synthesize("Клод Моне писал картины, а Claude пишет код.")

    assert speech_client.texts == ["Клод Моне писал картины, а Клод пишет код."]
    assert [w.word for w in result.word_timestamps] == [
        "Клод", "Моне", "писал", "картины,", "а", "Claude", "пишет", "код.",
    ]


def test_apply_with_spans_points_into_substituted_text() -> None:
    table = PronunciationTable([("AI", "Эй-Ай"), ("API", "Эй-Пи-Ай")])

    spoken, substitutions = table.apply_with_spans("Эй-Ай, AI и API.")

    assert spoken == "Эй-Ай, Эй-Ай и Эй-Пи-Ай."
    assert [(s.pattern, spoken[s.start : s.end]) for s in substitutions] == [("AI", "Эй-Ай"), ("API", "Эй-Пи-Ай")]
    assert table.restore_word("Эй-Ай,", 0, substitutions) == "Эй-Ай,"
    assert table.restore_word("Эй-Ай", 7, substitutions) == "AI"
    assert table.restore_word("Эй-Пи-Ай.", 15, substitutions) == "API."
