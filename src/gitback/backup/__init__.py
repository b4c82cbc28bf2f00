"""Backup of repositories and gists.

This module provides:
- BackupOrchestrator / run_backup: One complete backup pass
- WorkerPool: Concurrency-limited export executor
- RepositoryExporter / GistExporter: Per-item exporters
- Results: BackupReport, PhaseResult, BackupOutcome
"""

from .exceptions import (
    BackupError,
    CloneError,
    ContentFetchError,
    ExportError,
    ListingError,
    OutputDirectoryError,
    UpdateError,
    UsernameResolutionError,
    WriteError,
)
from .gists import GistExporter
from .git import GitCommandError, GitRunner, mask_secret
from .orchestrator import BackupOrchestrator, run_backup
from .pool import WorkerPool
from .progress import ProgressState, ProgressTracker, ProgressUpdate
from .repositories import LocalState, RepositoryExporter, state_of
from .results import BackupOutcome, BackupReport, ExportAction, ItemKind, OutcomeStatus, PhaseResult

__all__ = [
    # Orchestration
    "BackupOrchestrator",
    "run_backup",
    "WorkerPool",
    # Exporters
    "GistExporter",
    "GitCommandError",
    "GitRunner",
    "LocalState",
    "RepositoryExporter",
    "mask_secret",
    "state_of",
    # Progress
    "ProgressState",
    "ProgressTracker",
    "ProgressUpdate",
    # Results
    "BackupOutcome",
    "BackupReport",
    "ExportAction",
    "ItemKind",
    "OutcomeStatus",
    "PhaseResult",
    # Exceptions
    "BackupError",
    "CloneError",
    "ContentFetchError",
    "ExportError",
    "ListingError",
    "OutputDirectoryError",
    "UpdateError",
    "UsernameResolutionError",
    "WriteError",
]
