"""Prompt templates for post generation and proofreading."""

from typing import Literal

from blog_pipeline.content_models import PostInput

ReviewKind = Literal["telegram", "blog_ru", "blog_en"]


def _format_sources(post: PostInput, heading: str) -> str:
    if not post.sources:
        return ""
    return f"\n\n{heading}:\n" + "\n".join(f"- {source}" for source in post.sources)


def _format_tags(post: PostInput) -> str:
    return ", ".join(f'"{tag}"' for tag in post.tags)


def build_telegram_prompt(post: PostInput) -> str:
    sources = _format_sources(post, "Источники")
    tags = ", ".join(post.tags)
    return f"""Ты — автор Telegram канала о context engineering и LLM.

Создай короткий пост для Telegram на русском языке на основе моих заметок.

## Требования:
- 1-3 абзаца (максимум 4000 символов)
- Нативный стиль для Telegram
- Можно использовать эмодзи, но не перебарщивай
- Хештеги в конце (#contextengineering #llm и т.д.)
- Пост должен быть ценным и информативным
- Не используй заголовки типа "**Заголовок:**"

## Мои заметки:
Заголовок: {post.title}
Теги: {tags}

{post.content}
{sources}

## Формат ответа:
Верни только текст поста, без дополнительных комментариев."""


def build_blog_prompt_ru(post: PostInput, date: str) -> str:
    sources = _format_sources(post, "Источники для упоминания")
    tags = ", ".join(post.tags)
    return f"""Ты — автор технического блога о context engineering и LLM.

Напиши статью для блога на русском языке на основе моих заметок.

## Требования:
- Структурированная статья с заголовками (## и ###)
- Информативный и технический стиль
- Примеры кода где уместно
- Ссылки на источники в конце
- Длина: 500-1500 слов

## Мои заметки:
Заголовок: {post.title}
Теги: {tags}

{post.content}
{sources}

## Формат ответа:
Верни статью в формате Markdown с frontmatter:

```markdown
---
title: "{post.title}"
description: "[краткое описание для SEO, 1-2 предложения]"
date: {date}
tags: [{_format_tags(post)}]
lang: ru
---

[содержание статьи]
```

Верни только markdown файл, без дополнительных комментариев."""


def build_blog_prompt_en(ru_content: str) -> str:
    return f"""You are a translator for a technical blog about context engineering and LLMs.

Translate this Russian blog post to English. Keep the same structure, code examples, and markdown formatting.

## Russian article:
{ru_content}

## Requirements:
- Natural English, not literal translation
- Keep technical terms accurate
- Preserve markdown structure and frontmatter
- Update lang: ru to lang: en in frontmatter
- Keep the same tags (transliterate if needed)

Return only the translated markdown file, no additional comments."""


def build_proofread_prompt(text: str, kind: ReviewKind, style_guide: str = "") -> str:
    subject = "Telegram post" if kind == "telegram" else "blog article"
    guide = style_guide or "No specific style guide provided. Use general best practices."
    return f"""You are a professional proofreader for a technical blog about context engineering and AI.

## Your Task

Review the following {subject} and check for:

1. **Grammar**: spelling, punctuation, sentence structure
2. **Style**: readability, tone of voice, clarity
3. **Format**: compliance with the style guide below
4. **Factual**: technical terms accuracy, consistency

## Style Guide

{guide}

## Text to Review

{text}

## Response Format

Respond in JSON format:

```json
{{
  "isApproved": boolean,
  "issues": [
    {{
      "type": "grammar" | "style" | "format" | "factual",
      "severity": "error" | "warning" | "suggestion",
      "description": "Description of the issue",
      "original": "Original text (if applicable)",
      "suggested": "Suggested fix (if applicable)"
    }}
  ],
  "correctedText": "Full corrected text if there are changes, or original text if approved"
}}
```

Be thorough but practical. Focus on issues that affect readability and quality.
If the text is good, set isApproved to true and provide empty issues array."""
