from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is where the .env file lives
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        populate_by_name=True,
        alias_generator=lambda field_name: field_name.upper(),
        extra="ignore",
    )

    # Text generation (any OpenAI-compatible endpoint)
    openai_api_key: str = ""
    openai_base_url: str = "https://openrouter.ai/api/v1"
    llm_model_name: str = "anthropic/claude-sonnet-4"
    script_model_name: str = "anthropic/claude-sonnet-4"
    proofread_model_name: str = "anthropic/claude-sonnet-4"

    # ElevenLabs voice synthesis
    elevenlabs_api_key: Optional[str] = None
    elevenlabs_voice_id: Optional[str] = None
    elevenlabs_model_id: str = "eleven_multilingual_v2"
    elevenlabs_output_format: str = "mp3_44100_128"
    elevenlabs_base_url: str = "https://api.elevenlabs.io"

    # Telegram channel
    telegram_bot_token: Optional[str] = None
    telegram_channel_id: Optional[str] = None

    blog_url: str = "https://context-engineering.blog"
    output_dir: str = str(PROJECT_ROOT / "output")
    style_guide_dir: Optional[str] = None
    video_fps: int = 30


settings = Settings()
