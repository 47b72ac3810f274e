"""LLM proofreading of posts and articles before publishing."""

import os
from typing import TYPE_CHECKING, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from blog_pipeline.common.errors import ParseError
from blog_pipeline.common.tools import extract_json_object
from blog_pipeline.publishing.prompts import ReviewKind, build_proofread_prompt

if TYPE_CHECKING:
    from blog_pipeline.core.tools.openai_client import OpenAIClient

STYLE_GUIDE_FILES = {
    "telegram": "TELEGRAM.md",
    "blog_ru": "BLOG_RU.md",
    "blog_en": "BLOG_EN.md",
}

ISSUE_TYPE_LABELS = {
    "grammar": "Грамматика",
    "style": "Стиль",
    "format": "Формат",
    "factual": "Факт",
}

SEVERITY_ICONS = {"error": "❌", "warning": "⚠️", "suggestion": "💡"}
DEFAULT_SEVERITY_ICON = "•"


class ProofreadIssue(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Labels outside ISSUE_TYPE_LABELS / SEVERITY_ICONS are kept as given
    type: str
    severity: str
    description: str = ""
    original: Optional[str] = None
    suggested: Optional[str] = None


class ProofreadResult(BaseModel):
    """Review verdict.

    Attributes:
        is_approved: True when the text can be published as is
        issues: Problems found, empty when approved
        corrected_text: Corrected text, or the original text when approved
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_approved: bool
    issues: List[ProofreadIssue] = Field(default_factory=list)
    corrected_text: str


class Proofreader:
    """Reviews text for grammar, style, format and factual issues."""

    def __init__(self, llm_client: "OpenAIClient", style_guide_dir: str | None = None):
        """Initialize the proofreader.

        Args:
            llm_client: OpenAI-compatible client for LLM calls
            style_guide_dir: Directory with TELEGRAM.md, BLOG_RU.md and BLOG_EN.md.
                             Missing files mean no style guide.
        """
        self.llm_client = llm_client
        self.style_guide_dir = style_guide_dir

    def load_style_guide(self, kind: ReviewKind) -> str:
        if not self.style_guide_dir:
            return ""
        path = os.path.join(self.style_guide_dir, STYLE_GUIDE_FILES[kind])
        if not os.path.exists(path):
            logger.debug(f"No style guide at {path}")
            return ""
        with open(path, encoding="utf-8") as f:
            return f.read()

    async def proofread(self, text: str, kind: ReviewKind = "telegram") -> ProofreadResult:
        """Review text and return issues plus a corrected version.

        A review that cannot be parsed is logged and treated as an approval of
        the original text, so proofreading never blocks publishing on its own.
        """
        prompt = build_proofread_prompt(text, kind, self.load_style_guide(kind))
        logger.info(f"Proofreading {kind} ({len(text)} characters)")
        response = await self.llm_client.async_generate(instruction=None, user_input=prompt)

        try:
            payload = extract_json_object(response)
            payload.setdefault("correctedText", text)
            result = ProofreadResult.model_validate(payload)
        except (ParseError, ValidationError) as e:
            logger.warning(f"Could not parse proofreading response, approving original text: {e}")
            return ProofreadResult(is_approved=True, issues=[], corrected_text=text)

        logger.info(f"Proofreading done: approved={result.is_approved}, {len(result.issues)} issues")
        return result


def format_proofread_result(result: ProofreadResult) -> str:
    lines = ["✓ Текст одобрен" if result.is_approved else "⚠ Найдены замечания:"]

    if result.issues:
        lines.append("")
        for issue in result.issues:
            icon = SEVERITY_ICONS.get(issue.severity, DEFAULT_SEVERITY_ICON)
            label = ISSUE_TYPE_LABELS.get(issue.type, issue.type)
            lines.append(f"{icon} [{label}] {issue.description}")
            if issue.original and issue.suggested:
                lines.append(f'   "{issue.original}" → "{issue.suggested}"')

    return "\n".join(lines)
