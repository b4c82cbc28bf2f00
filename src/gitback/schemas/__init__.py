"""Pydantic schemas for gitback.

This module provides the descriptors parsed from the GitHub API and the
immutable backup target.
"""

from .github_api import GistDescriptor, GistFileRef, GitHubOwner, RepositoryDescriptor
from .target import AuthMode, BackupTarget

__all__ = [
    # GitHub API
    "GistDescriptor",
    "GistFileRef",
    "GitHubOwner",
    "RepositoryDescriptor",
    # Target
    "AuthMode",
    "BackupTarget",
]
