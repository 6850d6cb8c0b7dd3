"""
Slotkit Kernel — CMS Block Resolution

CMS slots name a placement key; the content behind it comes from an async
collaborator `(placement, store_id) -> content | None`. The render walk never
waits: it asks the resolver for the current state, which starts a lookup in
the background and reports LOADING until the content arrives. On completion
the resolver caches the result and calls `on_resolved` so the owner can run
a fresh render pass.

A result whose requesting slots have all unmounted in the meantime is stale:
it is discarded and no re-render is triggered.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

CmsLookup = Callable[[str, str | None], Awaitable[str | None]]

CmsKey = tuple[str, str | None]


class CmsStatus(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"


@dataclass(frozen=True)
class CmsState:
    status: CmsStatus
    content: str = ""


LOADING = CmsState(CmsStatus.LOADING)
EMPTY = CmsState(CmsStatus.EMPTY)


class CmsResolver:
    """Per-session cache of CMS block content with out-of-band resolution."""

    def __init__(self, lookup: CmsLookup | None, on_resolved: Callable[[], None] | None = None) -> None:
        self._lookup = lookup
        self.on_resolved = on_resolved
        self._cache: dict[CmsKey, CmsState] = {}
        self._tasks: dict[CmsKey, asyncio.Task] = {}
        self._owners: dict[CmsKey, set[str]] = {}

    def state(self, placement: str | None, store_id: str | None, slot_id: str) -> CmsState:
        """
        Current state for a placement. Starts a lookup on first request.
        Never blocks and never raises.
        """
        if not placement or self._lookup is None:
            return EMPTY
        key = (placement, store_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        self._owners.setdefault(key, set()).add(slot_id)
        if key not in self._tasks:
            self._schedule(key)
        return LOADING

    def retain(self, mounted_slot_ids: Iterable[str]) -> None:
        """Forget owners that are no longer mounted. Their results go stale."""
        mounted = set(mounted_slot_ids)
        for key in list(self._owners):
            self._owners[key] &= mounted
            if not self._owners[key]:
                del self._owners[key]

    def invalidate(self, placement: str | None = None) -> None:
        """Drop cached content (all of it, or one placement)."""
        if placement is None:
            self._cache.clear()
            return
        for key in [k for k in self._cache if k[0] == placement]:
            del self._cache[key]

    @property
    def pending(self) -> list[CmsKey]:
        return sorted(self._owners, key=lambda k: (k[0], k[1] or ""))

    async def resolve_pending(self) -> None:
        """Start lookups that could not be scheduled yet and wait for all of them."""
        for key in list(self._owners):
            if key not in self._tasks and key not in self._cache:
                self._schedule(key)
        await self.wait_idle()

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    def _schedule(self, key: CmsKey) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running loop, CMS lookup for %s deferred", key[0])
            return
        self._tasks[key] = loop.create_task(self._resolve(key))

    async def _resolve(self, key: CmsKey) -> None:
        placement, store_id = key
        content: str | None = None
        try:
            content = await self._lookup(placement, store_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("CMS lookup failed for placement %s", placement)
        finally:
            self._tasks.pop(key, None)

        if not self._owners.pop(key, None):
            logger.debug("discarding stale CMS result for placement %s", placement)
            return

        if isinstance(content, str) and content:
            self._cache[key] = CmsState(CmsStatus.READY, content)
        else:
            self._cache[key] = EMPTY

        if self.on_resolved is not None:
            try:
                self.on_resolved()
            except Exception:
                logger.exception("re-render after CMS resolution failed")
