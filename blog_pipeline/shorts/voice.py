"""Voice synthesis with word-level timestamps."""

import base64
import os
from typing import List, Sequence

from loguru import logger

from blog_pipeline.core.tools.elevenlabs_client import Alignment, ElevenLabsClient, ElevenLabsConfig
from blog_pipeline.shorts.models import CharacterTimestamp, VoiceSynthesisResult, WordTimestamp
from blog_pipeline.shorts.pronunciation import PronunciationTable


def alignment_to_characters(alignment: Alignment | None) -> List[CharacterTimestamp]:
    if alignment is None:
        return []
    return [
        CharacterTimestamp(character=character, start_time=start, end_time=end)
        for character, start, end in zip(
            alignment.characters,
            alignment.character_start_times_seconds,
            alignment.character_end_times_seconds,
        )
    ]


def characters_to_words(character_timestamps: Sequence[CharacterTimestamp]) -> List[WordTimestamp]:
    """Group character timestamps into words split on whitespace.

    A word starts at its first character's start time, ends at its last
    character's end time, and records the index of its first character in the
    full text (whitespace counted). Single linear pass.

    Args:
        character_timestamps: Alignment in full-text order, one entry per character

    Returns:
        List of WordTimestamp in spoken order

    Example:
        >>> chars = [CharacterTimestamp(character=c, start_time=i * 0.1, end_time=(i + 1) * 0.1)
        ...          for i, c in enumerate("Hi you")]
        >>> [(w.word, w.char_index) for w in characters_to_words(chars)]
        [('Hi', 0), ('you', 3)]
    """
    words: List[WordTimestamp] = []
    current_word = ""
    word_start = 0.0
    word_end = 0.0
    word_char_index = 0

    for char_index, timestamp in enumerate(character_timestamps):
        if timestamp.character.isspace():
            if current_word:
                words.append(
                    WordTimestamp(
                        word=current_word,
                        start_time=word_start,
                        end_time=word_end,
                        char_index=word_char_index,
                    )
                )
                current_word = ""
            continue

        if not current_word:
            word_start = timestamp.start_time
            word_char_index = char_index
        current_word += timestamp.character
        word_end = timestamp.end_time

    if current_word:
        words.append(
            WordTimestamp(
                word=current_word,
                start_time=word_start,
                end_time=word_end,
                char_index=word_char_index,
            )
        )

    return words


class VoiceSynthesizer:
    """Synthesize narration and reduce the provider alignment to word timings.

    Example:
        >>> synthesizer = VoiceSynthesizer(
        ...     ElevenLabsConfig.from_settings(),
        ...     pronunciations=PronunciationTable.for_language("ru"),
        ... )
        >>> result = await synthesizer.synthesize("Claude пишет код.")
        >>> result.word_timestamps[0].word
        'Claude'
    """

    def __init__(
        self,
        config: ElevenLabsConfig,
        pronunciations: PronunciationTable | None = None,
        client: ElevenLabsClient | None = None,
    ) -> None:
        """Initialize the synthesizer.

        Args:
            config: ElevenLabs credentials. Checked here, before any network call.
            pronunciations: Optional substitution table applied before synthesis
            client: Pre-built client, mostly for tests

        Raises:
            ConfigurationError: If the API key or voice ID is missing
        """
        config.validate_credentials()
        self.config = config
        self.pronunciations = pronunciations or PronunciationTable()
        self.client = client or ElevenLabsClient(config)

    async def synthesize(self, full_text: str) -> VoiceSynthesisResult:
        """Synthesize speech for the text and derive word timestamps.

        Args:
            full_text: Script text to speak

        Returns:
            VoiceSynthesisResult. Timings and char indices refer to the substituted
            text in ``result.text``. Only the ``word`` values are restored, and only
            where a substitution was actually made.

        Raises:
            ExternalServiceError: If the TTS request fails or returns malformed data
        """
        spoken_text, substitutions = self.pronunciations.apply_with_spans(full_text)
        if substitutions:
            logger.debug(f"Applied {len(substitutions)} pronunciation substitutions: {spoken_text[:100]}...")

        response = await self.client.async_convert_with_timestamps(spoken_text)

        character_timestamps = alignment_to_characters(response.alignment)
        word_timestamps = [
            word.model_copy(update={"word": PronunciationTable.restore_word(word.word, word.char_index, substitutions)})
            for word in characters_to_words(character_timestamps)
        ]
        duration_seconds = character_timestamps[-1].end_time if character_timestamps else 0.0

        logger.info(
            f"Synthesized {duration_seconds:.1f}s of audio: "
            f"{len(character_timestamps)} characters, {len(word_timestamps)} words"
        )

        return VoiceSynthesisResult(
            audio_base64=response.audio_base64,
            text=spoken_text,
            character_timestamps=character_timestamps,
            word_timestamps=word_timestamps,
            duration_seconds=duration_seconds,
        )


def save_audio_to_file(audio_base64: str, output_path: str) -> str:
    """Decode base64 audio and write it to output_path."""
    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(base64.b64decode(audio_base64))
    logger.info(f"Saved audio to {output_path}")
    return output_path
