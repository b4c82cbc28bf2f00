"""Progress tracking for backup phases.

The worker pool reports one increment per outcome; callbacks registered
with the tracker (the CLI's progress bars, tests) observe every change.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from gitback.logging import get_logger

logger = get_logger(__name__)


class ProgressState(StrEnum):
    """State of a tracked phase."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class ProgressUpdate:
    """A progress update event."""

    name: str
    total: int
    completed: int
    failed: int
    state: ProgressState
    current_item: str | None = None
    elapsed_seconds: float = 0.0

    @property
    def remaining(self) -> int:
        """Number of items remaining."""
        return max(0, self.total - self.completed - self.failed)

    @property
    def progress_percent(self) -> float:
        """Completion percentage (0-100)."""
        if self.total == 0:
            return 100.0
        return ((self.completed + self.failed) / self.total) * 100


ProgressCallback = Callable[[ProgressUpdate], None]


class ProgressTracker:
    """Observable progress tracker for a backup phase.

    Usage:
        tracker = ProgressTracker(total=len(repos), name="repositories")
        tracker.on_progress(lambda update: print(f"{update.progress_percent:.0f}%"))

        tracker.start()
        ...
        tracker.increment()          # one item succeeded
        tracker.increment_failed()   # one item failed
        tracker.complete()
    """

    def __init__(self, total: int = 0, name: str = "backup") -> None:
        self._total = total
        self._name = name
        self._completed = 0
        self._failed = 0
        self._state = ProgressState.PENDING
        self._current_item: str | None = None
        self._start_time: float | None = None
        self._callbacks: list[ProgressCallback] = []

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------
    @property
    def name(self) -> str:
        """Name of the tracked phase."""
        return self._name

    @property
    def total(self) -> int:
        """Total number of items to process."""
        return self._total

    @total.setter
    def total(self, value: int) -> None:
        self._total = value
        self._notify()

    @property
    def completed(self) -> int:
        """Number of successfully completed items."""
        return self._completed

    @property
    def failed(self) -> int:
        """Number of failed items."""
        return self._failed

    @property
    def state(self) -> ProgressState:
        """Current state of the phase."""
        return self._state

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time since start in seconds."""
        if self._start_time is None:
            return 0.0
        return time.monotonic() - self._start_time

    # -------------------------------------------------------------------------
    # Callbacks
    # -------------------------------------------------------------------------
    def on_progress(self, callback: ProgressCallback) -> None:
        """Register a callback receiving a ProgressUpdate on every change."""
        self._callbacks.append(callback)

    def _notify(self) -> None:
        update = self.get_update()
        for callback in self._callbacks:
            try:
                callback(update)
            except Exception as e:
                logger.warning("Progress callback error: {}", e)

    # -------------------------------------------------------------------------
    # State Management
    # -------------------------------------------------------------------------
    def start(self) -> None:
        """Mark phase as started."""
        self._state = ProgressState.IN_PROGRESS
        self._start_time = time.monotonic()
        logger.debug("Started {} (total={})", self._name, self._total)
        self._notify()

    def complete(self) -> None:
        """Mark phase as completed."""
        self._state = ProgressState.COMPLETED
        self._current_item = None
        self._notify()

    def cancel(self) -> None:
        """Mark phase as cancelled."""
        self._state = ProgressState.CANCELLED
        self._current_item = None
        logger.info(
            "Cancelled {} at {}/{}", self._name, self._completed + self._failed, self._total
        )
        self._notify()

    # -------------------------------------------------------------------------
    # Progress Updates
    # -------------------------------------------------------------------------
    def set_current(self, item: str) -> None:
        """Set the item most recently dispatched."""
        self._current_item = item
        self._notify()

    def increment(self, count: int = 1) -> None:
        """Increment completed count."""
        self._completed += count
        self._notify()

    def increment_failed(self, count: int = 1) -> None:
        """Increment failed count."""
        self._failed += count
        self._notify()

    def get_update(self) -> ProgressUpdate:
        """Get current progress as an update object."""
        return ProgressUpdate(
            name=self._name,
            total=self._total,
            completed=self._completed,
            failed=self._failed,
            state=self._state,
            current_item=self._current_item,
            elapsed_seconds=self.elapsed_seconds,
        )
