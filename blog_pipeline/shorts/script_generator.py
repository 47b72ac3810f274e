"""Script generation for kinetic-typography shorts.

Splits source text into ordered segments tagged with key-phrase emphasis,
either with a rule-based splitter or with a text-generation model.
"""

import json
import re
from typing import TYPE_CHECKING, Any, List

from loguru import logger

from blog_pipeline.common.errors import Failure, Ok, ParseError, StageResult
from blog_pipeline.common.tools import strip_code_fence
from blog_pipeline.shorts.models import ScriptSegment, VideoLanguage, VideoScript

if TYPE_CHECKING:
    from blog_pipeline.core.tools.openai_client import OpenAIClient


SCRIPT_PROMPT = """You are a video script analyzer. Your task is to analyze text and identify key phrases that should be emphasized in a kinetic typography video.

For each input text, you will:
1. Identify the most important phrases (3-7 per short video)
2. Assign emphasis levels (1-3, where 3 is highest)
3. Split the text into segments where each segment is either a key phrase or regular text

Rules:
- Key phrases should be impactful, memorable statements
- Emphasis level 3: Main message, thesis, or call-to-action
- Emphasis level 2: Supporting arguments, important examples
- Emphasis level 1: Regular text that still needs some visual attention

Respond ONLY with valid JSON in this exact format:
{
  "segments": [
    {"text": "segment text", "isKeyPhrase": true/false, "emphasisLevel": 1|2|3}
  ]
}"""

LANGUAGE_HINTS = {
    "ru": "The text is in Russian. Identify phrases in Russian.",
    "en": "The text is in English.",
}

LANGUAGE_NAMES = {"ru": "Russian", "en": "English"}

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def generate_simple_script(text: str, language: VideoLanguage) -> VideoScript:
    """Rule-based script: one segment per sentence, no model call.

    The first sentence is the main key phrase (level 3), the last one a
    secondary key phrase (level 2), everything in between is regular text.

    Example:
        >>> script = generate_simple_script("Ping. Middle stuff here. Pong!", "en")
        >>> [(s.text, s.emphasis_level) for s in script.segments]
        [('Ping.', 3), ('Middle stuff here.', 1), ('Pong!', 2)]
    """
    sentences = [sentence.strip() for sentence in SENTENCE_BOUNDARY.split(text)]
    sentences = [sentence for sentence in sentences if sentence]

    segments = []
    for index, sentence in enumerate(sentences):
        is_first = index == 0
        is_last = index == len(sentences) - 1
        segments.append(
            ScriptSegment(
                text=sentence,
                is_key_phrase=is_first or is_last,
                emphasis_level=3 if is_first else 2 if is_last else 1,
            )
        )

    return VideoScript(original_text=text, segments=segments, full_text=text, language=language)


def _coerce_segment(raw: Any) -> ScriptSegment:
    if not isinstance(raw, dict) or not isinstance(raw.get("text"), str):
        raise ValueError(f"Segment must be an object with a string 'text': {raw!r}")

    emphasis_level = raw.get("emphasisLevel")
    # bool is an int subclass; True must not pass as level 1
    if isinstance(emphasis_level, bool) or emphasis_level not in (1, 2, 3):
        emphasis_level = 1

    return ScriptSegment(
        text=raw["text"],
        is_key_phrase=bool(raw.get("isKeyPhrase")),
        emphasis_level=int(emphasis_level),
    )


def parse_script_response(raw_text: str) -> StageResult[List[ScriptSegment]]:
    """Validate a segmentation response from the model.

    Args:
        raw_text: Model output, optionally wrapped in a code fence

    Returns:
        Ok(segments) or Failure("segmentation", ParseError) carrying the raw text
    """
    try:
        parsed = json.loads(strip_code_fence(raw_text))
        if not isinstance(parsed, dict) or not isinstance(parsed.get("segments"), list):
            raise ValueError("Expected an object with a 'segments' array")
        segments = [_coerce_segment(raw) for raw in parsed["segments"]]
    except ValueError as e:
        # json.JSONDecodeError is a ValueError too
        return Failure("segmentation", ParseError(f"Failed to parse script response: {e}", raw_text=raw_text))

    return Ok(segments)


class ScriptGenerator:
    """Model-assisted script segmentation."""

    def __init__(self, llm_client: "OpenAIClient"):
        """Initialize the generator.

        Args:
            llm_client: OpenAI-compatible client for LLM calls
        """
        self.llm_client = llm_client

    async def generate_script(self, text: str, language: VideoLanguage) -> VideoScript:
        """Segment text with the model.

        The returned ``full_text`` is rebuilt from the model's segments joined
        by single spaces, so the model's segmentation drives what gets spoken.

        Raises:
            ParseError: If the model response is not valid segmentation JSON.
                There is no fallback here; callers switch to
                generate_simple_script explicitly if they want one.
        """
        user_input = (
            f"{LANGUAGE_HINTS[language]}\n\n"
            f"Analyze this text and identify key phrases for a kinetic typography video:\n\n{text}"
        )

        logger.info(f"Generating {language} video script ({len(text)} characters)")
        response = await self.llm_client.async_generate(instruction=SCRIPT_PROMPT, user_input=user_input)

        segments = parse_script_response(response).unwrap()
        logger.info(f"Script has {len(segments)} segments, {sum(s.is_key_phrase for s in segments)} key phrases")

        return VideoScript(
            original_text=text,
            segments=segments,
            full_text=" ".join(segment.text for segment in segments),
            language=language,
        )

    async def translate_text(self, text: str, from_lang: VideoLanguage, to_lang: VideoLanguage) -> str:
        """Translate text between video languages, keeping tone and style."""
        if from_lang == to_lang:
            return text

        user_input = (
            f"Translate the following text from {LANGUAGE_NAMES[from_lang]} to {LANGUAGE_NAMES[to_lang]}. "
            f"Keep the same tone and style. Only return the translated text, nothing else.\n\nText:\n{text}"
        )
        logger.info(f"Translating {len(text)} characters {from_lang} -> {to_lang}")
        response = await self.llm_client.async_generate(instruction=None, user_input=user_input)
        return response.strip()
