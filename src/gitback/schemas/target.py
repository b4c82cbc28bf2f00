"""Backup target schema - who is backed up and how we authenticate."""

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AuthMode(StrEnum):
    """How requests to GitHub are authenticated.

    NONE only reaches public data of an explicit user (60 requests/hour).
    TOKEN uses a personal access token and reaches private data too.
    """

    NONE = "none"
    TOKEN = "token"


class BackupTarget(BaseModel):
    """The account being backed up, immutable for the duration of a run.

    The auth mode decides which listing endpoints are legal: anonymous runs
    must use the username-scoped endpoints, token runs use the
    authenticated-identity endpoints.
    """

    model_config = ConfigDict(frozen=True)

    auth_mode: AuthMode = Field(description="Authentication mode")
    username: str | None = Field(
        default=None,
        description="Account login (required without a token, resolved otherwise)",
    )
    token: str | None = Field(default=None, repr=False, description="Personal access token")

    @model_validator(mode="after")
    def _check_credentials(self) -> Self:
        if self.auth_mode is AuthMode.NONE and not self.username:
            raise ValueError("username is required when running in no-auth mode")
        if self.auth_mode is AuthMode.TOKEN and not self.token:
            raise ValueError(
                "GitHub token required. Set GITHUB_TOKEN or pass --token (or use --noauth)."
            )
        return self

    @property
    def is_authenticated(self) -> bool:
        """Whether requests carry a token."""
        return self.auth_mode is AuthMode.TOKEN
