import json
import os
import re
import unicodedata
from typing import Any, Dict

from loguru import logger
from pydantic import BaseModel

from blog_pipeline.common.errors import ParseError

_FENCED_BLOCK_RE = re.compile(r"```(?:[a-zA-Z]+)?\s*([\s\S]*?)```")

# Cyrillic is transliterated so RU titles still produce readable URL slugs
_CYRILLIC_TO_LATIN = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ё": "yo",
    "ж": "zh", "з": "z", "и": "i", "й": "j", "к": "k", "л": "l", "м": "m",
    "н": "n", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u",
    "ф": "f", "х": "h", "ц": "c", "ч": "ch", "ш": "sh", "щ": "sh", "ъ": "",
    "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
}


def strip_code_fence(input_str: str) -> str:
    """Return the body of the first fenced code block, or the stripped input if there is none."""
    match = _FENCED_BLOCK_RE.search(input_str)
    if match:
        return match.group(1).strip()
    return input_str.strip()


def extract_json_object(input_str: str) -> Dict[str, Any]:
    """Extract a JSON object from a model response.

    Tries, in order:
    - the body of a ```json (or bare ```) code block
    - the span between the first "{" and the last "}"
    - the whole string

    Args:
        input_str (str): Raw text returned by the model.

    Returns:
        Dict[str, Any]: The parsed JSON object.

    Raises:
        ParseError: If no strategy yields a JSON object.
    """
    if not input_str or not isinstance(input_str, str):
        raise ParseError("Model response is empty", raw_text=input_str or "")

    candidates = []
    match = _FENCED_BLOCK_RE.search(input_str)
    if match:
        candidates.append(match.group(1).strip())
    if "{" in input_str and "}" in input_str:
        candidates.append(input_str[input_str.find("{") : input_str.rfind("}") + 1])
    candidates.append(input_str.strip())

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise ParseError("Failed to extract JSON object from model response", raw_text=input_str)


def slugify(text: str) -> str:
    """Lower-case, ASCII-only, hyphen-separated slug for URLs and file names.

    Example:
        >>> slugify("Context Engineering: первые шаги")
        'context-engineering-pervye-shagi'
    """
    text = "".join(_CYRILLIC_TO_LATIN.get(c, c) for c in text.lower())
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def write_json_model(model: BaseModel, output_path: str) -> str:
    """Serialize a pydantic model to a JSON file using its field aliases."""
    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(model.model_dump_json(by_alias=True, indent=2))
    logger.info(f"Saved {type(model).__name__} to {output_path}")
    return output_path
