"""Configuration settings for gitback."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gitback.schemas import AuthMode, BackupTarget


class RateLimitConfig(BaseModel):
    """Configuration for the rate limit gate and listing pagination.

    Controls when pagination pauses to wait for the quota reset.
    """

    low_water_mark: int = Field(
        default=10,
        ge=0,
        description="Remaining requests at or below which pagination waits for reset",
    )
    safety_margin_seconds: float = Field(
        default=10.0,
        ge=0.0,
        description="Extra seconds slept past the reset instant to absorb clock skew",
    )
    per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Items requested per listing page (GitHub maximum is 100)",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Every field can also be passed as a keyword argument, which takes
    precedence over the environment (this is how CLI flags are applied).
    """

    model_config = SettingsConfigDict(
        env_prefix="GITBACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Authentication
    # --------------------------------------------------------------------------
    no_auth: bool = Field(
        default=False,
        validation_alias=AliasChoices("GITBACK_NOAUTH", "GITBACK_NO_AUTH"),
        description="Disable authentication (public data only, 60 requests/hour)",
    )
    token: str = Field(
        default="",
        repr=False,
        validation_alias=AliasChoices("GITBACK_TOKEN", "GITHUB_TOKEN"),
        description="GitHub personal access token",
    )
    user: str = Field(
        default="",
        description="GitHub username (required with no_auth)",
    )

    # --------------------------------------------------------------------------
    # Backup behavior
    # --------------------------------------------------------------------------
    threads: int = Field(
        default=5,
        ge=1,
        description="Maximum number of concurrent clone/export operations",
    )
    output_dir: Path = Field(
        default_factory=lambda: Path.home() / "gitbackup",
        description="Directory where backups are stored",
    )
    timeout: int = Field(
        default=30,
        ge=1,
        description="Timeout in seconds for API requests",
    )
    include_gists: bool = Field(
        default=True,
        description="Back up gists after repositories",
    )
    include_wikis: bool = Field(
        default=False,
        description="Also mirror <repo>.wiki.git for repositories with a wiki",
    )
    clone_protocol: Literal["https", "ssh"] = Field(
        default="https",
        description="Clone URL flavor used when a token is configured",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Nested configuration
    # --------------------------------------------------------------------------
    rate_limit: RateLimitConfig = Field(
        default_factory=RateLimitConfig,
        description="Rate limit gate and pagination configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )

    @field_validator("output_dir", mode="after")
    @classmethod
    def _expand_output_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def auth_mode(self) -> AuthMode:
        """Authentication mode implied by the settings."""
        return AuthMode.NONE if self.no_auth else AuthMode.TOKEN

    def to_target(self) -> BackupTarget:
        """Build the immutable backup target.

        Raises:
            pydantic.ValidationError: If the credentials do not fit the auth
                mode (no username without a token, or no token otherwise).
        """
        return BackupTarget(
            auth_mode=self.auth_mode,
            username=self.user or None,
            token=None if self.no_auth else (self.token or None),
        )

    def with_overrides(self, **overrides: Any) -> Settings:
        """Copy with the given fields replaced and re-validated.

        None values are ignored, so unset CLI flags keep the environment
        value. Keys are field names, never environment aliases.
        """
        provided = {key: value for key, value in overrides.items() if value is not None}
        if not provided:
            return self
        return type(self).model_validate({**self.model_dump(), **provided})

    def sanitized(self) -> dict[str, Any]:
        """Settings as a dict that is safe to log (token redacted)."""
        data = self.model_dump(mode="json")
        data["token"] = "[REDACTED]" if self.token else ""
        return data


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
