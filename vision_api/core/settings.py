"""
Purpose:
- Centralized configuration using pydantic-settings.
- Reads from environment variables and optional .env file.
- Keeps model ids, cache paths and host/port tunable without code changes.
"""

from typing import List, Optional
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CAPTION_PROMPT = (
    "You create descriptions of images. Provided with an image describe the image. "
    "You can describe unambiguously the image"
)

class Settings(BaseSettings):
    # Pydantic v2 config (env file + ignore unexpected env vars)
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API host/port
    host: str = Field(default="0.0.0.0", description="Bind address for FastAPI/Uvicorn")
    port: int = Field(default=8000, description="Port for FastAPI/Uvicorn")

    # CORS
    cors_allow_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed origins for browser apps"
    )

    log_level: str = Field(default="INFO")

    # ---- Hosted captioning (OpenAI chat completions) ----
    # OPENAI_API_KEY comes from env (.env or shell); absence is reported per request.
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    caption_model: str = Field(default="gpt-5-nano", description="Chat-completion model used for captions")
    caption_prompt: str = Field(default=DEFAULT_CAPTION_PROMPT)

    # ---- CLIP embedding config ----
    # processor, vision model, tokenizer and text model are all pinned to this id
    clip_model_id: str = Field(default="openai/clip-vit-base-patch16")
    transformers_cache: Path = Field(
        default=Path("/tmp/transformers"),
        description="Cache dir for downloaded weights (keeps cold starts short)"
    )
    clip_load_workers: int = Field(default=4)

    # image_url downloads
    image_fetch_timeout: float = Field(default=15.0)

settings = Settings()
