"""Frame-driven word selection and emphasis for kinetic typography.

The renderer shows one word at a time. For each frame it needs the word that
is being spoken, how far into that word the frame is, and how strongly the
word should be emphasized.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from blog_pipeline.shorts.models import WordTimestamp

DEFAULT_WORD_DURATION_FRAMES = 30
EMPTY_VIDEO_DURATION_FRAMES = 150
TAIL_PADDING_SECONDS = 1.0


@dataclass(frozen=True)
class FrameState:
    """What the renderer should draw at one frame.

    Attributes:
        time: Playback time in seconds
        word_index: Index of the active word, None before the first word
        word: The active word, None before the first word
        is_key_phrase: Whether the active word matches a key phrase
        emphasis_level: 1 to 3
        word_frame: Frames elapsed since the active word started
        word_duration_frames: Length of the active word in frames
        progress: Fraction of the video played, 0 to 1
    """

    time: float
    word_index: Optional[int]
    word: Optional[WordTimestamp]
    is_key_phrase: bool
    emphasis_level: int
    word_frame: int
    word_duration_frames: int
    progress: float


def find_active_word_index(words: Sequence[WordTimestamp], current_time: float) -> Optional[int]:
    """Return the index of the last word that has started by current_time, or None."""
    for index in range(len(words) - 1, -1, -1):
        if current_time >= words[index].start_time:
            return index
    return None


def get_emphasis_level(word: str, key_phrases: Sequence[str]) -> Tuple[bool, int]:
    """Match a word against key phrases, case-insensitively.

    A phrase matches when it contains the word, or when the word contains the
    phrase's first token. The first matching phrase wins: the first phrase in
    the list gives level 3, any later one level 2. No match gives level 1.

    This is substring matching without word boundaries, so a short phrase
    such as "AI" also matches inside "said".

    Returns:
        (is_key_phrase, emphasis_level)
    """
    word_lower = word.lower()
    for index, phrase in enumerate(key_phrases):
        phrase_lower = phrase.lower()
        first_token = phrase_lower.split(" ")[0]
        if word_lower in phrase_lower or first_token in word_lower:
            return True, 3 if index == 0 else 2
    return False, 1


def compute_frame_state(
    frame: int,
    fps: int,
    duration_in_frames: int,
    words: Sequence[WordTimestamp],
    key_phrases: Sequence[str],
) -> FrameState:
    """Compute the active word and its timing for a frame."""
    current_time = frame / fps
    progress = frame / duration_in_frames if duration_in_frames > 0 else 0.0

    word_index = find_active_word_index(words, current_time)
    if word_index is None:
        return FrameState(
            time=current_time,
            word_index=None,
            word=None,
            is_key_phrase=False,
            emphasis_level=1,
            word_frame=0,
            word_duration_frames=DEFAULT_WORD_DURATION_FRAMES,
            progress=progress,
        )

    word = words[word_index]
    is_key_phrase, emphasis_level = get_emphasis_level(word.word, key_phrases)
    return FrameState(
        time=current_time,
        word_index=word_index,
        word=word,
        is_key_phrase=is_key_phrase,
        emphasis_level=emphasis_level,
        word_frame=max(0, frame - math.floor(word.start_time * fps)),
        word_duration_frames=math.floor((word.end_time - word.start_time) * fps),
        progress=progress,
    )


def calculate_render_duration(words: Sequence[WordTimestamp], fps: int) -> int:
    """Frames needed to render all words plus a one-second tail."""
    if not words:
        return EMPTY_VIDEO_DURATION_FRAMES
    return math.ceil((words[-1].end_time + TAIL_PADDING_SECONDS) * fps)
