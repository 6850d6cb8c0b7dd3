"""
Slotkit Kernel — Debounced Write-Back

Coalesces rapid editor edits before they reach the persistence
collaborator. Each edit enqueues a pending write keyed by slot id; a newer
edit for the same slot replaces the pending one. A single flush runs a fixed
delay after the most recent edit and persists only the latest collection,
once. Flushes run one at a time in enqueue order.

Three resizes of one slot inside the delay window → one persisted write
holding the final size.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from slotkit.config import settings
from slotkit.errors import SlotkitError

logger = logging.getLogger(__name__)

PersistFn = Callable[[dict[str, Any]], Awaitable[None] | None]


class PersistError(SlotkitError):
    """The persistence collaborator failed to store a flushed collection."""

    pass


@dataclass
class PendingWrite:
    slot_id: str
    slots: dict[str, Any]
    sequence: int


class WriteBackQueue:
    """
    Debounced, last-write-wins queue in front of `persist`.

    `enqueue` never blocks. It needs a running event loop to schedule the
    flush; without one the write stays pending until `flush()` is awaited.
    """

    def __init__(self, persist: PersistFn, delay: float | None = None) -> None:
        self._persist = persist
        self.delay = settings.WRITEBACK_DELAY_SECONDS if delay is None else delay
        self._pending: dict[str, PendingWrite] = {}
        self._sequence = 0
        self._timer: asyncio.TimerHandle | None = None
        self._flush_tasks: set[asyncio.Task] = set()
        self._lock = asyncio.Lock()
        self.flush_count = 0
        self.last_error: Exception | None = None

    @property
    def pending_ids(self) -> list[str]:
        return sorted(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def enqueue(self, slot_id: str, slots: Mapping[str, Any]) -> None:
        """Record the latest collection produced by an edit to `slot_id`."""
        self._sequence += 1
        superseded = self._pending.get(slot_id)
        if superseded is not None:
            logger.debug("write-back: coalescing edit for slot %s", slot_id)
        self._pending[slot_id] = PendingWrite(slot_id, dict(slots), self._sequence)
        self._restart_timer()

    def cancel(self) -> None:
        """Drop every pending write without persisting."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending.clear()

    async def flush(self) -> bool:
        """
        Persist the latest pending collection now.
        Returns True when something was written.

        Flushes run one at a time, so a collection never lands after one
        enqueued later.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        async with self._lock:
            if not self._pending:
                return False

            latest = max(self._pending.values(), key=lambda w: w.sequence)
            coalesced = len(self._pending)
            self._pending.clear()

            try:
                result = self._persist(latest.slots)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.last_error = PersistError(str(e))
                logger.exception("write-back: persist failed for %d coalesced edits", coalesced)
                return False

            self.flush_count += 1
            logger.info("write-back: flushed %d coalesced edits", coalesced)
            return True

    async def wait_idle(self) -> None:
        """Wait for scheduled and in-flight flushes to finish."""
        while self._timer is not None or self._flush_tasks:
            if self._flush_tasks:
                await asyncio.gather(*self._flush_tasks)
            else:
                await asyncio.sleep(self.delay / 4 or 0)

    def _restart_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("write-back: no running loop, flush deferred")
            return
        self._timer = loop.call_later(self.delay, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self.flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_tasks.discard)
