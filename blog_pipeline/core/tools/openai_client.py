import asyncio
from typing import Optional

from loguru import logger
from openai import AsyncOpenAI

from blog_pipeline.common.errors import ConfigurationError, ExternalServiceError
from blog_pipeline.core.configs.config import Settings, settings


class OpenAIClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        model_name: str = "anthropic/claude-sonnet-4",
        max_tokens: int = 4096,
        **kwargs,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required for text generation")
        self._model_name = model_name
        self._max_tokens = max_tokens
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, **kwargs)

    @property
    def model_name(self) -> str:
        return self._model_name

    async def async_generate(self, instruction: str | None, user_input: str, **kwargs) -> str:
        """Generate a single-turn response from the model.

        Args:
            instruction (str | None): The system instruction to the model. Omitted when None.
            user_input (str): The user input to the model.
            **kwargs: Additional arguments to pass to the OpenAI API.

        Returns:
            str: The generated response text.

        Raises:
            ExternalServiceError: If the model returns no choices or empty content.
        """
        messages = []
        if instruction:
            messages.append({"role": "system", "content": instruction})
        messages.append({"role": "user", "content": user_input})

        kwargs.setdefault("max_tokens", self._max_tokens)
        logger.debug(f"Calling {self._model_name} ({len(user_input)} input characters)")

        completion = await self._client.chat.completions.create(
            model=self._model_name,
            messages=messages,
            **kwargs,
        )

        if len(completion.choices) == 0:
            raise ExternalServiceError("llm", f"No choices returned by {self._model_name}")

        content = completion.choices[0].message.content
        if not content:
            raise ExternalServiceError("llm", f"Empty response from {self._model_name}")

        return content

    def generate(self, instruction: str | None, user_input: str, **kwargs) -> str:
        """The synchronous version of async_generate."""
        return asyncio.run(self.async_generate(instruction, user_input, **kwargs))


def llm_client_from_settings(
    model_name: Optional[str] = None,
    config: Settings = settings,
) -> OpenAIClient:
    """Build an OpenAIClient from settings.

    Raises:
        ConfigurationError: If OPENAI_API_KEY is not set
    """
    return OpenAIClient(
        api_key=config.openai_api_key,
        base_url=config.openai_base_url,
        model_name=model_name or config.llm_model_name,
    )
