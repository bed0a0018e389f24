"""Application configuration — loaded from environment variables.

Every input accepts both the variable GitHub Actions derives from the action
input (``INPUT_<NAME>``, hyphens preserved) and a plain environment name for
local runs.  Empty values, which is how Actions passes unset inputs, count as
unset.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from package_stats.domain.entities import OutputMode
from package_stats.domain.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    org: str = Field("octokit", validation_alias=AliasChoices("INPUT_ORG", "GITHUB_ORG"))
    mode: OutputMode = Field(
        OutputMode.ORG_LEVEL,
        validation_alias=AliasChoices("INPUT_MODE", "PACKAGE_STATS_MODE"),
    )

    token: SecretStr | None = Field(
        None, validation_alias=AliasChoices("INPUT_TOKEN", "GITHUB_TOKEN")
    )
    app_id: str | None = Field(
        None, validation_alias=AliasChoices("INPUT_APP-ID", "INPUT_APP_ID", "GITHUB_APP_ID")
    )
    private_key: SecretStr | None = Field(
        None,
        validation_alias=AliasChoices(
            "INPUT_PRIVATE-KEY", "INPUT_PRIVATE_KEY", "GITHUB_APP_PRIVATE_KEY"
        ),
    )
    installation_id: str | None = Field(
        None,
        validation_alias=AliasChoices(
            "INPUT_INSTALLATION-ID", "INPUT_INSTALLATION_ID", "GITHUB_APP_INSTALLATION_ID"
        ),
    )

    api_url: str = Field("https://api.github.com", validation_alias="GITHUB_API_URL")
    output_dir: Path = Field(Path("output"), validation_alias="PACKAGE_STATS_OUTPUT_DIR")
    github_output: Path | None = Field(None, validation_alias="GITHUB_OUTPUT")

    max_retries: int = Field(3, ge=0, validation_alias="PACKAGE_STATS_MAX_RETRIES")
    retry_after_seconds: float = Field(180.0, ge=0, validation_alias="PACKAGE_STATS_RETRY_AFTER")
    per_page: int = Field(100, ge=1, le=100, validation_alias="PACKAGE_STATS_PER_PAGE")
    request_timeout: float = Field(30.0, gt=0, validation_alias="PACKAGE_STATS_REQUEST_TIMEOUT")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", validation_alias="LOG_LEVEL"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: object) -> object:
        return v.strip().upper() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    try:
        return Settings()
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid value')}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc
