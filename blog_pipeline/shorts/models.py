"""Data models for kinetic-typography video shorts."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

VideoLanguage = Literal["ru", "en"]
VideoFormat = Literal["shorts", "square", "landscape"]
EmphasisLevel = Literal[1, 2, 3]


class CamelModel(BaseModel):
    """Base model that serializes to the camelCase keys the renderer expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Dimensions(CamelModel):
    width: int
    height: int


VIDEO_FORMATS: Dict[str, Dimensions] = {
    "shorts": Dimensions(width=1080, height=1920),  # 9:16 vertical
    "square": Dimensions(width=1080, height=1080),  # 1:1
    "landscape": Dimensions(width=1920, height=1080),  # 16:9
}


class ScriptSegment(CamelModel):
    """A piece of the video script with its visual emphasis.

    Attributes:
        text: Text content of the segment
        is_key_phrase: Whether the segment should be visually emphasized
        emphasis_level: Visual prominence, 1 (regular) to 3 (main message)
    """

    text: str
    is_key_phrase: bool
    emphasis_level: EmphasisLevel


class VideoScript(CamelModel):
    """Segmented script for one video.

    Attributes:
        original_text: Input text exactly as given
        segments: Ordered script segments
        full_text: Text sent to voice synthesis
        language: Language of the content
    """

    original_text: str
    segments: List[ScriptSegment]
    full_text: str
    language: VideoLanguage

    @property
    def key_phrases(self) -> List[str]:
        return [segment.text for segment in self.segments if segment.is_key_phrase]


class CharacterTimestamp(CamelModel):
    """Timing of a single character from the TTS alignment."""

    character: str
    start_time: float
    end_time: float


class WordTimestamp(CamelModel):
    """Timing of a word, derived from a run of non-whitespace characters.

    Attributes:
        word: The word as displayed (pronunciation substitutions reverted)
        start_time: Start of the first character in seconds
        end_time: End of the last character in seconds
        char_index: Index of the first character in the synthesized text
    """

    word: str
    start_time: float
    end_time: float
    char_index: int


class VoiceSynthesisResult(CamelModel):
    """Synthesized audio with character- and word-level timing.

    Attributes:
        audio_base64: Audio bytes, base64 encoded
        format: Audio container format
        text: Exact text sent to synthesis, after pronunciation substitution.
              Character indices refer to this string.
        character_timestamps: Per-character alignment from the provider
        word_timestamps: Words reduced from the character alignment
        duration_seconds: End time of the last character, 0 when there is none
    """

    audio_base64: str
    format: Literal["mp3"] = "mp3"
    text: str
    character_timestamps: List[CharacterTimestamp] = Field(default_factory=list)
    word_timestamps: List[WordTimestamp] = Field(default_factory=list)
    duration_seconds: float = 0.0


class VideoInput(CamelModel):
    text: str
    language: VideoLanguage = "ru"
    format: VideoFormat = "shorts"
    title: Optional[str] = None


class VideoComposition(CamelModel):
    """Everything the render step needs, built once per generation request.

    Attributes:
        script: The segmented script
        voice: Synthesized voice with timestamps
        format: Video format preset
        dimensions: Pixel dimensions for the format
        fps: Frame rate
        duration_in_frames: ceil(voice.duration_seconds * fps)
    """

    script: VideoScript
    voice: VoiceSynthesisResult
    format: VideoFormat
    dimensions: Dimensions
    fps: int
    duration_in_frames: int


class VideoTheme(CamelModel):
    background_color: str
    text_color: str
    accent_color: str
    font_family: str
    font_weight: int
    emphasis_font_weight: int


DEFAULT_THEME = VideoTheme(
    background_color="#0a0a0a",
    text_color="#ffffff",
    accent_color="#3b82f6",
    font_family="Inter, system-ui, sans-serif",
    font_weight=400,
    emphasis_font_weight=700,
)


class RenderProps(CamelModel):
    """Input props for the kinetic typography renderer.

    Serialized with keys ``words``, ``keyPhrases``, ``theme`` and ``audioSrc``.
    """

    words: List[WordTimestamp]
    key_phrases: List[str]
    theme: VideoTheme = DEFAULT_THEME
    audio_src: Optional[str] = None
