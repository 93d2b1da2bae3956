from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class AWSSettings(BaseSettings):
    """Configuration for the Amazon Bedrock backend."""

    region_name: str | None = None
    profile_name: str | None = None
    model_id: str = "anthropic.claude-3-5-sonnet-20240620-v1:0"

    model_config = SettingsConfigDict(env_prefix="SIREN_AWS_", env_file=None)


class OpenAISettings(BaseSettings):
    """Configuration for the direct API-key backend."""

    api_key: str | None = None
    model: str = "gpt-4o-mini"
    base_url: str | None = None

    model_config = SettingsConfigDict(env_prefix="SIREN_OPENAI_", env_file=None)


class GenerationSettings(BaseSettings):
    """Controls for text generation calls."""

    backend: Literal["bedrock", "openai"] = "bedrock"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2048, gt=0)
    timeout_seconds: float = Field(default=120.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="SIREN_GENERATION_", env_file=None)


class ReportSettings(BaseSettings):
    """Configuration for compiled design reports."""

    image_service_base: str = "https://mermaid.ink/img"

    model_config = SettingsConfigDict(env_prefix="SIREN_REPORT_", env_file=None)


class Settings(BaseSettings):
    """Application configuration."""

    auth_secret: str
    store_root: Path = Path.cwd() / ".siren"
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    report: ReportSettings = Field(default_factory=ReportSettings)

    model_config = SettingsConfigDict(env_prefix="SIREN_", env_file=None)

    @property
    def documents_dir(self) -> Path:
        return self.store_root / "documents"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    try:
        settings = Settings()  # type: ignore[call-arg]  # BaseSettings reads values from env/config at runtime
    except PydanticValidationError as exc:
        messages = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigurationError(
            f"Environment validation failed: {messages}",
            {"errors": [err["msg"] for err in exc.errors()]},
        ) from exc
    if not settings.auth_secret:
        raise ConfigurationError("SIREN_AUTH_SECRET is required for token verification")
    return settings
