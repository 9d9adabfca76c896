"""Configuration loaded from environment variables."""

from collections.abc import Mapping
from typing import ClassVar

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from racik.captions.exceptions import ConfigurationError
from racik.captions.mock import MockConfig
from racik.captions.models import CaptionConfig

_DEFAULTS = CaptionConfig.model_fields


class CaptionSettings(BaseSettings):
    """Raw environment settings, validated by pydantic-settings.

    Empty variables count as unset.
    """

    api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    base_url: str | None = Field(default=None, validation_alias="OPENAI_BASE_URL")
    provider: str = Field(
        default=_DEFAULTS["provider"].default, validation_alias="RACIK_PROVIDER"
    )
    model: str = Field(
        default=_DEFAULTS["model"].default, validation_alias="RACIK_MODEL"
    )
    timeout: float = Field(
        default=_DEFAULTS["timeout"].default,
        gt=0,
        allow_inf_nan=False,
        validation_alias="RACIK_TIMEOUT",
    )
    normalize_caption: bool = Field(
        default=_DEFAULTS["normalize_caption"].default,
        validation_alias="RACIK_NORMALIZE_CAPTION",
    )
    mock: bool = Field(default=False, validation_alias="RACIK_MOCK")

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )


def _read_settings(env: Mapping[str, str] | None) -> CaptionSettings:
    if env is None:
        return CaptionSettings()
    # An explicit mapping replaces the process environment entirely
    return CaptionSettings.model_validate(
        {name: value for name, value in env.items() if value.strip()}
    )


def load_config(env: Mapping[str, str] | None = None) -> CaptionConfig:
    """Build the process-wide ``CaptionConfig`` from the environment.

    A missing ``OPENAI_API_KEY`` is not an error here; requests fail with a
    configuration error instead. Any invalid value raises a single
    ``ConfigurationError`` naming the offending variable.

    Variables:
        OPENAI_API_KEY: provider credential
        OPENAI_BASE_URL: provider base URL override
        RACIK_PROVIDER: provider name (default ``openai``)
        RACIK_MODEL: completion model
        RACIK_TIMEOUT: provider timeout in seconds, finite and positive
        RACIK_NORMALIZE_CAPTION: capitalize captions before prompting
        RACIK_MOCK: answer from the mock provider
    """
    try:
        settings = _read_settings(env)
        return CaptionConfig(
            provider=settings.provider,
            model=settings.model,
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
            normalize_caption=settings.normalize_caption,
            mock=MockConfig(enabled=True) if settings.mock else None,
        )
    except PydanticValidationError as ex:
        first = ex.errors()[0]
        name = ".".join(str(part) for part in first["loc"]) or "environment"
        raise ConfigurationError(
            f"Invalid configuration {name}: {first['msg']}"
        ) from ex


class ServerSettings(BaseSettings):
    """Listener settings for ``racik-captions``, read from ``RACIK_*``."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(
        default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$"
    )

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="RACIK_", env_ignore_empty=True, extra="ignore"
    )
