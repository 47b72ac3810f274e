import json

import pytest

from blog_pipeline.common.errors import Failure, Ok, ParseError
from blog_pipeline.shorts.script_generator import (
    SCRIPT_PROMPT,
    ScriptGenerator,
    generate_simple_script,
    parse_script_response,
)
from conftest import StubLLMClient


def test_simple_script_marks_first_and_last_sentences() -> None:
    script = generate_simple_script("Ping. Middle stuff here. Pong!", "en")

    assert len(script.segments) == 3
    first, middle, last = script.segments
    assert (first.text, first.is_key_phrase, first.emphasis_level) == ("Ping.", True, 3)
    assert (middle.text, middle.is_key_phrase, middle.emphasis_level) == ("Middle stuff here.", False, 1)
    assert (last.text, last.is_key_phrase, last.emphasis_level) == ("Pong!", True, 2)
    assert script.full_text == "Ping. Middle stuff here. Pong!"
    assert script.original_text == script.full_text
    assert script.key_phrases == ["Ping.", "Pong!"]


def test_simple_script_single_sentence_is_main_key_phrase() -> None:
    script = generate_simple_script("Just one sentence", "ru")

    assert [(s.text, s.emphasis_level) for s in script.segments] == [("Just one sentence", 3)]


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_simple_script_empty_input(text: str) -> None:
    script = generate_simple_script(text, "en")

    assert script.segments == []
    assert script.full_text == text


def test_simple_script_drops_blank_pieces() -> None:
    script = generate_simple_script("  First!   Second?  ", "en")

    assert [s.text for s in script.segments] == ["First!", "Second?"]


def test_parse_response_coerces_fields() -> None:
    raw = json.dumps(
        {
            "segments": [
                {"text": "Main idea", "isKeyPhrase": 1, "emphasisLevel": 3},
                {"text": "filler", "isKeyPhrase": 0, "emphasisLevel": 7},
                {"text": "support", "isKeyPhrase": "yes", "emphasisLevel": "2"},
                {"text": "flag", "isKeyPhrase": False, "emphasisLevel": True},
            ]
        }
    )

    result = parse_script_response(raw)

    assert isinstance(result, Ok)
    levels = [(s.text, s.is_key_phrase, s.emphasis_level) for s in result.value]
    assert levels == [
        ("Main idea", True, 3),
        ("filler", False, 1),
        ("support", True, 1),
        ("flag", False, 1),
    ]


def test_parse_response_accepts_code_fence() -> None:
    raw = 'Here you go:\n```json\n{"segments": [{"text": "A", "isKeyPhrase": true, "emphasisLevel": 2}]}\n```'

    segments = parse_script_response(raw).unwrap()

    assert segments[0].emphasis_level == 2


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        '{"segments": "nope"}',
        '{"other": []}',
        '{"segments": [{"isKeyPhrase": true}]}',
        "[1, 2, 3]",
    ],
)
def test_parse_response_failure_keeps_raw_text(raw: str) -> None:
    result = parse_script_response(raw)

    assert isinstance(result, Failure)
    assert result.stage == "segmentation"
    assert isinstance(result.error, ParseError)
    assert result.error.raw_text == raw
    with pytest.raises(ParseError):
        result.unwrap()


@pytest.mark.anyio
async def test_generate_script_joins_segments_for_full_text() -> None:
    llm = StubLLMClient(
        [
            json.dumps(
                {
                    "segments": [
                        {"text": "Context engineering", "isKeyPhrase": True, "emphasisLevel": 3},
                        {"text": "is the new prompt engineering.", "isKeyPhrase": False, "emphasisLevel": 1},
                    ]
                }
            )
        ]
    )

    script = await ScriptGenerator(llm).generate_script("Context engineering  is the new\nprompt engineering.", "en")

    assert script.full_text == "Context engineering is the new prompt engineering."
    assert script.original_text == "Context engineering  is the new\nprompt engineering."
    instruction, user_input = llm.calls[0]
    assert instruction == SCRIPT_PROMPT
    assert user_input.startswith("The text is in English.")


@pytest.mark.anyio
async def test_generate_script_russian_hint() -> None:
    llm = StubLLMClient(['{"segments": []}'])

    await ScriptGenerator(llm).generate_script("Текст", "ru")

    assert "Russian" in llm.calls[0][1]


@pytest.mark.anyio
async def test_generate_script_propagates_parse_error() -> None:
    llm = StubLLMClient(["I cannot do that"])

    with pytest.raises(ParseError) as exc_info:
        await ScriptGenerator(llm).generate_script("text", "en")

    assert exc_info.value.raw_text == "I cannot do that"


@pytest.mark.anyio
async def test_translate_same_language_skips_model() -> None:
    llm = StubLLMClient([])

    assert await ScriptGenerator(llm).translate_text("Привет", "ru", "ru") == "Привет"
    assert llm.calls == []


@pytest.mark.anyio
async def test_translate_strips_response() -> None:
    llm = StubLLMClient(["  Hello  \n"])

    assert await ScriptGenerator(llm).translate_text("Привет", "ru", "en") == "Hello"
    assert "from Russian to English" in llm.calls[0][1]
