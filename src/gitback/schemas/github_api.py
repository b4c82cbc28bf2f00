"""Pydantic schemas for parsing GitHub API listing responses.

These schemas map directly to the GitHub REST API response structure.
See: https://docs.github.com/en/rest/repos/repos and
https://docs.github.com/en/rest/gists/gists

Every field the backup does not strictly need is optional: a malformed
descriptor must surface as a per-item failure, not a validation crash
while listing.
"""

import json
from collections.abc import Hashable
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class GitHubOwner(BaseModel):
    """Owner object embedded in repository and gist payloads."""

    login: str = Field(description="GitHub username")
    id: int | None = Field(default=None, description="GitHub user ID")
    type: str = Field(default="User", description="Account type")


class RepositoryDescriptor(BaseModel):
    """A repository as returned by the repository listing endpoints.

    Maps to items of:
        GET /users/{username}/repos
        GET /user/repos
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | None = Field(default=None, description="Repository ID")
    name: str | None = Field(default=None, description="Repository name")
    full_name: str | None = Field(default=None, description="owner/name")
    clone_url: str | None = Field(default=None, description="Anonymous HTTPS clone URL")
    ssh_url: str | None = Field(default=None, description="SSH clone URL")
    has_wiki: bool = Field(default=False, description="Whether the wiki is enabled")
    private: bool = Field(default=False, description="Private repository")
    fork: bool = Field(default=False, description="Repository is a fork")
    owner: GitHubOwner | None = Field(default=None, description="Repository owner")

    @property
    def display_name(self) -> str:
        """Best available human-readable name."""
        return self.full_name or self.name or f"<repository id={self.id}>"

    @property
    def dedup_key(self) -> Hashable | None:
        """Identity used to drop duplicates that overlap between pages."""
        if self.id is not None:
            return ("id", self.id)
        return self.full_name


class GistFileRef(BaseModel):
    """One entry of a gist's ``files`` mapping.

    Listing endpoints omit ``content``; it is only present (and possibly
    truncated) on the single-gist endpoint. ``raw_url`` is always usable.
    """

    filename: str | None = Field(default=None, description="File name, may contain '/'")
    content: str | None = Field(default=None, description="Inline file content")
    raw_url: str | None = Field(default=None, description="URL of the raw file content")
    size: int | None = Field(default=None, description="Size in bytes")
    truncated: bool = Field(default=False, description="Inline content was cut off")
    type: str | None = Field(default=None, description="MIME type")
    language: str | None = Field(default=None, description="Detected language")


class GistDescriptor(BaseModel):
    """A gist as returned by the gist listing endpoints.

    Maps to items of:
        GET /users/{username}/gists
        GET /gists

    The untouched API payload is kept alongside the parsed fields so the
    backup can persist the full metadata for provenance.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = Field(default=None, description="Gist ID")
    owner: GitHubOwner | None = Field(default=None, description="Gist owner")
    files: dict[str, GistFileRef] = Field(default_factory=dict, description="Files by name")
    git_pull_url: str | None = Field(default=None, description="Git pull URL")
    description: str | None = Field(default=None, description="Gist description")
    public: bool = Field(default=True, description="Public or secret gist")

    _payload: dict[str, Any] = PrivateAttr(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Self:
        """Parse a raw API payload, retaining it for metadata export.

        Args:
            data: One decoded gist object from the API

        Returns:
            GistDescriptor with the payload attached
        """
        gist = cls.model_validate(data)
        gist._payload = dict(data)
        return gist

    @property
    def owner_login(self) -> str | None:
        """Login of the owning account, if present."""
        return self.owner.login if self.owner else None

    @property
    def display_name(self) -> str:
        """Human-readable name for logs and reports."""
        return self.id or "<gist without id>"

    @property
    def dedup_key(self) -> Hashable | None:
        """Identity used to drop duplicates that overlap between pages."""
        return self.id

    def to_metadata_json(self) -> str:
        """Serialize the full gist metadata as indented JSON.

        Falls back to the parsed fields when the descriptor was built
        without a raw payload.
        """
        data = self._payload or self.model_dump(mode="json")
        return json.dumps(data, indent=2, ensure_ascii=False)
