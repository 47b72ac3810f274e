"""End-to-end publishing run: generate, proofread, save, publish."""

import os
from typing import Dict, Optional

from loguru import logger
from pydantic import BaseModel, Field

from blog_pipeline.content_models import GeneratedPost, PostInput
from blog_pipeline.core.configs.config import settings
from blog_pipeline.core.tools.openai_client import OpenAIClient, llm_client_from_settings
from blog_pipeline.core.tools.telegram_client import PublishOptions, PublishResult, TelegramClient, TelegramConfig
from blog_pipeline.publishing.generators import generate_post, save_articles
from blog_pipeline.publishing.proofreader import ProofreadResult, Proofreader, format_proofread_result


class PublishingReport(BaseModel):
    """Outcome of one publishing run.

    Attributes:
        post: Generated content (Telegram text may be the proofread version)
        proofread: Review of the Telegram post, None when review was skipped
        article_paths: Written article files by language
        publish_result: Telegram result, None when publishing was not requested
    """

    post: GeneratedPost
    proofread: Optional[ProofreadResult] = None
    article_paths: Dict[str, str] = Field(default_factory=dict)
    publish_result: Optional[PublishResult] = None


class PublishingPipeline:
    """Turn raw notes into a Telegram post and bilingual blog articles.

    Example:
        >>> pipeline = PublishingPipeline.from_settings()
        >>> report = await pipeline.run(
        ...     PostInput(title="Context Engineering", content="...", tags=["llm"]),
        ...     blog_dir="blog/src/content/posts",
        ...     publish=True,
        ... )
        >>> report.publish_result.success
        True
    """

    def __init__(
        self,
        llm_client: OpenAIClient,
        proofreader: Proofreader | None = None,
        telegram: TelegramClient | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.proofreader = proofreader
        self.telegram = telegram

    @classmethod
    def from_settings(cls) -> "PublishingPipeline":
        """Build the pipeline from settings. Telegram is optional; the LLM key is not."""
        llm_client = llm_client_from_settings()
        proofreader = Proofreader(
            llm_client_from_settings(model_name=settings.proofread_model_name),
            style_guide_dir=settings.style_guide_dir,
        )
        telegram = TelegramClient(
            TelegramConfig(
                bot_token=settings.telegram_bot_token or "",
                channel_id=settings.telegram_channel_id or "",
            )
        )
        return cls(llm_client, proofreader=proofreader, telegram=telegram)

    async def run(
        self,
        post: PostInput,
        blog_dir: str | None = None,
        review: bool = True,
        publish: bool = False,
        publish_options: PublishOptions | None = None,
    ) -> PublishingReport:
        """Generate content and optionally review, save and publish it.

        Args:
            post: Raw notes to generate from
            blog_dir: Where to write articles. Defaults to <output_dir>/posts.
            review: Proofread the Telegram post and use the corrected text if it was not approved
            publish: Send the Telegram post to the channel
            publish_options: Parse mode, link preview and retries for publishing

        Returns:
            PublishingReport
        """
        generated = await generate_post(self.llm_client, post)
        report = PublishingReport(post=generated)

        if review and self.proofreader is not None:
            result = await self.proofreader.proofread(generated.telegram, "telegram")
            logger.info(format_proofread_result(result))
            report.proofread = result
            if not result.is_approved and result.issues:
                report.post = generated.model_copy(update={"telegram": result.corrected_text})

        report.article_paths = save_articles(report.post, blog_dir or os.path.join(settings.output_dir, "posts"))

        if publish:
            if self.telegram is None:
                report.publish_result = PublishResult(success=False, error="Telegram is not configured")
            else:
                report.publish_result = await self.telegram.publish(report.post.telegram, publish_options)
            if report.publish_result.success:
                logger.info(f"✓ Published message {report.publish_result.message_id}")
            else:
                logger.error(f"✗ Publishing failed: {report.publish_result.error}")

        return report
