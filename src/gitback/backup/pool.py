"""Bounded worker pool for item exports.

Runs one export coroutine per item with at most ``concurrency_limit`` in
flight, and produces exactly one outcome per item, in input order.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Generic, TypeVar

from gitback.logging import bind_item, get_logger

from .exceptions import ExportError
from .progress import ProgressTracker
from .results import BackupOutcome, ExportAction, ItemKind

logger = get_logger(__name__)

T = TypeVar("T")

ExportFunc = Callable[[T], Awaitable[ExportAction]]


class WorkerPool(Generic[T]):
    """Concurrency-limited executor that turns exports into outcomes.

    The semaphore belongs to the pool instance, so separate pools never
    share slots.

    Usage:
        pool = WorkerPool(concurrency_limit=5, cancel_event=stop)
        outcomes = await pool.run(
            repos,
            lambda repo: exporter.export(repo, root),
            kind=ItemKind.REPOSITORY,
            item_name=lambda repo: repo.display_name,
        )

    Cancellation is cooperative: the event is checked before each dispatch.
    Items not yet dispatched when it is set get a Failed("cancelled")
    outcome; items already running are left to finish.
    """

    def __init__(
        self,
        concurrency_limit: int,
        *,
        cancel_event: asyncio.Event | None = None,
        progress: ProgressTracker | None = None,
    ) -> None:
        """Initialize the pool.

        Args:
            concurrency_limit: Maximum number of exports in flight (>= 1)
            cancel_event: Optional event that stops further dispatches
            progress: Optional tracker receiving one increment per outcome

        Raises:
            ValueError: If concurrency_limit is below 1
        """
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {concurrency_limit}")
        self._limit = concurrency_limit
        self._semaphore = asyncio.Semaphore(concurrency_limit)
        self._cancel_event = cancel_event
        self._progress = progress
        self._in_flight = 0
        self._peak_in_flight = 0

    @property
    def concurrency_limit(self) -> int:
        """Maximum number of exports in flight."""
        return self._limit

    @property
    def in_flight(self) -> int:
        """Exports currently running."""
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of exports observed running at once."""
        return self._peak_in_flight

    def _is_cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    async def run(
        self,
        items: Sequence[T],
        export: ExportFunc[T],
        *,
        kind: ItemKind,
        item_name: Callable[[T], str] = str,
    ) -> list[BackupOutcome]:
        """Export every item and collect the outcomes.

        Args:
            items: Items to export
            export: Coroutine exporting one item and returning the action taken
            kind: Kind recorded on every outcome
            item_name: Display name for an item

        Returns:
            List of outcomes, one per item, at the item's input position
        """
        outcomes: list[BackupOutcome | None] = [None] * len(items)
        tasks: set[asyncio.Task[None]] = set()

        if self._progress:
            self._progress.total = len(items)
            self._progress.start()

        try:
            for index, item in enumerate(items):
                if self._is_cancelled():
                    self._mark_cancelled(items, index, outcomes, kind, item_name)
                    break

                await self._semaphore.acquire()
                # The event may have been set while waiting for a slot
                if self._is_cancelled():
                    self._semaphore.release()
                    self._mark_cancelled(items, index, outcomes, kind, item_name)
                    break

                name = item_name(item)
                if self._progress:
                    self._progress.set_current(name)
                task = asyncio.create_task(
                    self._run_one(index, item, name, export, kind, outcomes)
                )
                tasks.add(task)

            if tasks:
                await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Collect the cancelled exports before unwinding
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if self._progress:
            if self._is_cancelled():
                self._progress.cancel()
            else:
                self._progress.complete()

        # Every slot is filled: dispatched items by their task, the rest by cancellation
        return [outcome for outcome in outcomes if outcome is not None]

    async def _run_one(
        self,
        index: int,
        item: T,
        name: str,
        export: ExportFunc[T],
        kind: ItemKind,
        outcomes: list[BackupOutcome | None],
    ) -> None:
        """Run one export while holding a slot, recording its outcome."""
        log = bind_item(kind.value, name)
        self._in_flight += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        try:
            action = await export(item)
        except ExportError as e:
            outcome = BackupOutcome.failed(name, kind, e.reason)
        except Exception as e:
            log.opt(exception=e).debug("Unexpected export error")
            outcome = BackupOutcome.failed(name, kind, f"{type(e).__name__}: {e}")
        else:
            outcome = BackupOutcome.succeeded(name, kind, action)
        finally:
            self._in_flight -= 1
            self._semaphore.release()

        outcomes[index] = outcome
        if outcome.success:
            if self._progress:
                self._progress.increment()
        else:
            log.warning("Failed to back up {} {}: {}", kind.value, name, outcome.reason)
            if self._progress:
                self._progress.increment_failed()

    def _mark_cancelled(
        self,
        items: Sequence[T],
        start: int,
        outcomes: list[BackupOutcome | None],
        kind: ItemKind,
        item_name: Callable[[T], str],
    ) -> None:
        remaining = len(items) - start
        logger.warning("Cancellation requested, {} {}(s) not dispatched", remaining, kind.value)
        for index in range(start, len(items)):
            outcomes[index] = BackupOutcome.cancelled(item_name(items[index]), kind)
        if self._progress:
            self._progress.increment_failed(remaining)
