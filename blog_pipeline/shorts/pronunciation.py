"""Pronunciation substitution for voice synthesis.

Technical terms are replaced with phonetic spellings before text is sent to
the TTS provider, and the word tokens coming back are mapped to the original
terms for display. Timings and character indices always refer to the
substituted text.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

# Phonetic spellings for Russian narration of English technical terms
DEFAULT_PRONUNCIATIONS: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "ru": (
        ("Anthropic", "Энтропик"),
        ("OpenAI", "Опен-Эй-Ай"),
        ("Claude", "Клод"),
        ("LLM", "Эл-Эл-Эм"),
        ("API", "Эй-Пи-Ай"),
        ("MCP", "Эм-Си-Пи"),
        ("RAG", "Рэг"),
        ("AI", "Эй-Ай"),
    ),
    "en": (),
}


@dataclass(frozen=True)
class Substitution:
    """A replacement made by PronunciationTable.apply_with_spans.

    Attributes:
        start: Index of the replacement in the substituted text
        end: End index (exclusive) of the replacement in the substituted text
        pattern: The original term that was replaced
    """

    start: int
    end: int
    pattern: str


class PronunciationTable:
    """Immutable, ordered mapping from terms to phonetic spellings.

    Entries are sorted longest pattern first when the table is built, so
    "API" wins over "AI" at the same position.

    Example:
        >>> table = PronunciationTable([("AI", "Эй-Ай"), ("API", "Эй-Пи-Ай")])
        >>> table.apply("API для AI")
        'Эй-Пи-Ай для Эй-Ай'
        >>> table.restore("Эй-Пи-Ай,")
        'API,'
    """

    def __init__(self, entries: Iterable[Tuple[str, str]] = ()) -> None:
        entries = tuple((pattern, replacement) for pattern, replacement in entries)

        patterns = [pattern for pattern, _ in entries]
        replacements = [replacement for _, replacement in entries]
        # Both sides must stay single tokens so restore() sees a whole replacement
        # and a restored word never contains whitespace
        for value in patterns + replacements:
            if not value or re.search(r"\s", value):
                raise ValueError(f"Invalid pronunciation entry {value!r}: must be non-empty without whitespace")
        if len(set(patterns)) != len(patterns) or len(set(replacements)) != len(replacements):
            raise ValueError("Pronunciation patterns and replacements must be unique")

        self._entries = tuple(sorted(entries, key=lambda entry: len(entry[0]), reverse=True))
        self._forward = dict(self._entries)
        self._reverse = {replacement: pattern for pattern, replacement in self._entries}
        self._forward_re = self._compile(self._forward)
        self._reverse_re = self._compile(self._reverse)

    @staticmethod
    def _compile(mapping: Dict[str, str]) -> re.Pattern | None:
        if not mapping:
            return None
        keys = sorted(mapping, key=len, reverse=True)
        return re.compile("|".join(re.escape(key) for key in keys))

    @classmethod
    def for_language(cls, language: str) -> "PronunciationTable":
        return cls(DEFAULT_PRONUNCIATIONS.get(language, ()))

    @property
    def entries(self) -> Tuple[Tuple[str, str], ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def apply(self, text: str) -> str:
        """Replace every term with its phonetic spelling, longest match first."""
        return self.apply_with_spans(text)[0]

    def apply_with_spans(self, text: str) -> Tuple[str, List[Substitution]]:
        """Substitute terms and record where each replacement landed.

        Returns:
            (substituted text, substitutions in text order). Span indices refer
            to the substituted text.

        Example:
            >>> table = PronunciationTable([("AI", "Эй-Ай")])
            >>> table.apply_with_spans("Клод и AI")
            ('Клод и Эй-Ай', [Substitution(start=7, end=12, pattern='AI')])
        """
        if self._forward_re is None:
            return text, []

        pieces: List[str] = []
        substitutions: List[Substitution] = []
        last_end = 0
        length = 0
        for match in self._forward_re.finditer(text):
            pieces.append(text[last_end : match.start()])
            length += match.start() - last_end

            replacement = self._forward[match.group(0)]
            substitutions.append(Substitution(start=length, end=length + len(replacement), pattern=match.group(0)))
            pieces.append(replacement)
            length += len(replacement)
            last_end = match.end()
        pieces.append(text[last_end:])

        return "".join(pieces), substitutions

    @staticmethod
    def restore_word(word: str, char_index: int, substitutions: Sequence[Substitution]) -> str:
        """Undo the substitutions that fall inside one word of the substituted text.

        Text that was already spelled phonetically in the input is left alone;
        only spans recorded by apply_with_spans are reverted.

        Args:
            word: Word token from the substituted text
            char_index: Index of the word's first character in the substituted text
            substitutions: Spans returned by apply_with_spans
        """
        word_end = char_index + len(word)
        # Right to left so earlier offsets stay valid
        for substitution in reversed(substitutions):
            if substitution.start >= char_index and substitution.end <= word_end:
                start = substitution.start - char_index
                end = substitution.end - char_index
                word = word[:start] + substitution.pattern + word[end:]
        return word

    def restore(self, token: str) -> str:
        """Map phonetic spellings in a word token back to the original terms."""
        if self._reverse_re is None:
            return token
        return self._reverse_re.sub(lambda m: self._reverse[m.group(0)], token)
