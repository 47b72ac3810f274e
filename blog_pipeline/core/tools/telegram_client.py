"""Telegram Bot API client for publishing to a channel."""

import asyncio
import html
from typing import Any, Literal, Optional

import requests
from loguru import logger
from pydantic import BaseModel

from blog_pipeline.common.errors import ConfigurationError, ExternalServiceError
from blog_pipeline.core.configs.config import Settings, settings

MAX_MESSAGE_LENGTH = 4096
MAX_RETRIES = 3
RETRY_DELAY = 1.0  # seconds, multiplied by the attempt number

# Retrying cannot fix these
NON_RETRYABLE_ERRORS = ("chat not found", "bot was blocked", "not enough rights")

ParseMode = Literal["HTML", "Markdown", "MarkdownV2"]


class TelegramConfig(BaseModel):
    bot_token: str = ""
    channel_id: str = ""
    base_url: str = "https://api.telegram.org"

    def validate_credentials(self) -> None:
        if not self.bot_token or not self.channel_id:
            raise ConfigurationError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHANNEL_ID are required")

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "TelegramConfig":
        result = cls(bot_token=config.telegram_bot_token or "", channel_id=config.telegram_channel_id or "")
        result.validate_credentials()
        return result


class PublishOptions(BaseModel):
    parse_mode: Optional[ParseMode] = None
    disable_preview: bool = False
    retries: int = MAX_RETRIES


class PublishResult(BaseModel):
    success: bool
    message_id: Optional[int] = None
    error: Optional[str] = None


class TextValidation(BaseModel):
    valid: bool
    error: Optional[str] = None


def escape_html(text: str) -> str:
    """Escape &, < and > for Telegram HTML parse mode."""
    return html.escape(text, quote=False)


def validate_text(text: str) -> TextValidation:
    if not text or not text.strip():
        return TextValidation(valid=False, error="Text is empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        return TextValidation(valid=False, error=f"Text too long: {len(text)} chars (max {MAX_MESSAGE_LENGTH})")
    return TextValidation(valid=True)


class TelegramClient:
    """Publishes and edits channel messages through the Bot API."""

    def __init__(self, config: TelegramConfig, timeout: int = 30) -> None:
        self._config = config
        self._timeout = timeout

    def _call(self, method: str, payload: dict) -> Any:
        """Call a Bot API method and return its ``result``.

        Raises:
            ExternalServiceError: If the API answers with ok=false or a non-JSON body
        """
        url = f"{self._config.base_url}/bot{self._config.bot_token}/{method}"
        response = requests.post(url, json=payload, timeout=self._timeout)
        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError("telegram", "Response is not JSON", response.status_code, response.text[:500]) from e

        if not data.get("ok"):
            raise ExternalServiceError(
                "telegram",
                data.get("description", "Unknown error"),
                status_code=data.get("error_code", response.status_code),
            )
        return data.get("result")

    def _prepare(self, text: str, options: PublishOptions) -> dict:
        payload = {
            "chat_id": self._config.channel_id,
            "text": escape_html(text) if options.parse_mode == "HTML" else text,
            "disable_web_page_preview": options.disable_preview,
        }
        if options.parse_mode:
            payload["parse_mode"] = options.parse_mode
        return payload

    async def publish(self, text: str, options: PublishOptions | None = None) -> PublishResult:
        """Send text to the channel, retrying transient failures.

        Args:
            text: Message text
            options: Parse mode, link preview and retry count

        Returns:
            PublishResult; failures are reported in ``error`` rather than raised
        """
        options = options or PublishOptions()
        try:
            self._config.validate_credentials()
        except ConfigurationError as e:
            return PublishResult(success=False, error=str(e))

        validation = validate_text(text)
        if not validation.valid:
            return PublishResult(success=False, error=validation.error)

        payload = self._prepare(text, options)
        last_error: Exception | None = None

        for attempt in range(1, options.retries + 1):
            try:
                result = await asyncio.to_thread(self._call, "sendMessage", payload)
                message_id = (result or {}).get("message_id")
                logger.info(f"Published to {self._config.channel_id} (message {message_id})")
                return PublishResult(success=True, message_id=message_id)
            except (ExternalServiceError, requests.RequestException) as e:
                last_error = e
                logger.error(f"Telegram publish failed (attempt {attempt}/{options.retries}): {e}")

                if any(marker in str(e).lower() for marker in NON_RETRYABLE_ERRORS):
                    break
                if attempt < options.retries:
                    await asyncio.sleep(RETRY_DELAY * attempt)

        return PublishResult(success=False, error=str(last_error) if last_error else "Unknown error")

    async def edit_message(self, message_id: int, text: str, options: PublishOptions | None = None) -> PublishResult:
        """Replace the text of an existing channel message. No retries."""
        options = options or PublishOptions()
        try:
            self._config.validate_credentials()
        except ConfigurationError as e:
            return PublishResult(success=False, error=str(e))

        validation = validate_text(text)
        if not validation.valid:
            return PublishResult(success=False, error=validation.error)

        payload = {**self._prepare(text, options), "message_id": message_id}
        try:
            await asyncio.to_thread(self._call, "editMessageText", payload)
        except (ExternalServiceError, requests.RequestException) as e:
            logger.error(f"Telegram edit of message {message_id} failed: {e}")
            return PublishResult(success=False, error=str(e))

        logger.info(f"Edited message {message_id} in {self._config.channel_id}")
        return PublishResult(success=True, message_id=message_id)
