"""Telegram post and bilingual blog article generation."""

import asyncio
import os
import re
from datetime import date as date_cls
from typing import TYPE_CHECKING, Dict

from loguru import logger

from blog_pipeline.common.errors import ParseError
from blog_pipeline.common.tools import slugify
from blog_pipeline.content_models import ArticleLanguage, BlogArticle, GeneratedPost, PostInput
from blog_pipeline.publishing.prompts import build_blog_prompt_en, build_blog_prompt_ru, build_telegram_prompt

if TYPE_CHECKING:
    from blog_pipeline.core.tools.openai_client import OpenAIClient

_MARKDOWN_BLOCK_RE = re.compile(r"```markdown\n?([\s\S]*?)\n?```")
_FRONTMATTER_RE = re.compile(r"^---\n([\s\S]*?)\n---\n([\s\S]*)$")
_TITLE_RE = re.compile(r'title:\s*"(.+)"')
_DESCRIPTION_RE = re.compile(r'description:\s*"(.+)"')
_DATE_RE = re.compile(r"date:\s*(\d{4}-\d{2}-\d{2})")
_TAGS_RE = re.compile(r"tags:\s*\[(.+)\]")


def today() -> str:
    return date_cls.today().isoformat()


def extract_markdown_content(response: str) -> str:
    """Unwrap a ```markdown code block if the model added one."""
    match = _MARKDOWN_BLOCK_RE.search(response)
    if match:
        return match.group(1).strip()
    return response.strip()


def parse_article(content: str, lang: ArticleLanguage) -> BlogArticle:
    """Parse a markdown article with YAML-style frontmatter.

    Missing fields fall back to defaults: "Untitled", empty description,
    today's date, no tags.

    Raises:
        ParseError: If the content has no frontmatter block
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        raise ParseError("Invalid markdown format: missing frontmatter", raw_text=content)

    frontmatter, body = match.group(1), match.group(2).strip()

    title_match = _TITLE_RE.search(frontmatter)
    description_match = _DESCRIPTION_RE.search(frontmatter)
    date_match = _DATE_RE.search(frontmatter)
    tags_match = _TAGS_RE.search(frontmatter)

    title = title_match.group(1) if title_match else "Untitled"
    tags = []
    if tags_match:
        tags = [tag.strip().replace('"', "") for tag in tags_match.group(1).split(",")]
        tags = [tag for tag in tags if tag]

    return BlogArticle(
        title=title,
        description=description_match.group(1) if description_match else "",
        content=body,
        lang=lang,
        tags=tags,
        date=date_match.group(1) if date_match else today(),
        slug=slugify(title),
    )


def render_article(article: BlogArticle) -> str:
    """Render an article back to markdown with frontmatter."""
    tags = ", ".join(f'"{tag}"' for tag in article.tags)
    return (
        "---\n"
        f'title: "{article.title}"\n'
        f'description: "{article.description}"\n'
        f"date: {article.date}\n"
        f"tags: [{tags}]\n"
        f"lang: {article.lang}\n"
        "---\n\n"
        f"{article.content}\n"
    )


async def generate_telegram_post(llm_client: "OpenAIClient", post: PostInput) -> str:
    logger.info(f"Generating Telegram post: {post.title}")
    response = await llm_client.async_generate(instruction=None, user_input=build_telegram_prompt(post))
    return response.strip()


async def generate_blog_articles(llm_client: "OpenAIClient", post: PostInput) -> Dict[str, BlogArticle]:
    """Generate the Russian article, then translate it to English.

    Returns:
        {"ru": BlogArticle, "en": BlogArticle}

    Raises:
        ParseError: If either article lacks frontmatter
    """
    article_date = today()

    logger.info(f"Generating RU blog article: {post.title}")
    ru_response = await llm_client.async_generate(instruction=None, user_input=build_blog_prompt_ru(post, article_date))
    ru_content = extract_markdown_content(ru_response)
    ru_article = parse_article(ru_content, "ru")

    logger.info("Translating blog article to EN")
    en_response = await llm_client.async_generate(instruction=None, user_input=build_blog_prompt_en(ru_content))
    en_article = parse_article(extract_markdown_content(en_response), "en")

    return {"ru": ru_article, "en": en_article}


async def generate_post(llm_client: "OpenAIClient", post: PostInput) -> GeneratedPost:
    """Generate the Telegram post and both blog articles.

    The Telegram post and the article chain run concurrently; they share no state.
    """
    logger.info("=" * 80)
    logger.info(f"Generating content for: {post.title}")
    logger.info("=" * 80)

    telegram, articles = await asyncio.gather(
        generate_telegram_post(llm_client, post),
        generate_blog_articles(llm_client, post),
    )

    logger.info(f"✓ Telegram post: {len(telegram)} characters")
    logger.info(f"✓ RU article: {articles['ru'].title}")
    logger.info(f"✓ EN article: {articles['en'].title}")

    return GeneratedPost(telegram=telegram, blog_ru=articles["ru"], blog_en=articles["en"])


def save_articles(generated: GeneratedPost, blog_dir: str) -> Dict[str, str]:
    """Write both articles to <blog_dir>/<lang>/<slug>.md.

    Returns:
        Mapping of language to written file path
    """
    paths = {}
    for article in (generated.blog_ru, generated.blog_en):
        lang_dir = os.path.join(blog_dir, article.lang)
        os.makedirs(lang_dir, exist_ok=True)
        path = os.path.join(lang_dir, f"{article.slug}.md")
        with open(path, "w", encoding="utf-8") as f:
            f.write(render_article(article))
        logger.info(f"Saved {article.lang} article: {path}")
        paths[article.lang] = path
    return paths
