"""
Slotkit Kernel — Slot Tree Index

Builds a parent → children adjacency index from a flat slot collection once
per render pass. Lookups are O(1); the collection is never re-scanned per
node.

Malformed entries (non-mapping values) are skipped. Slots whose parent is
missing are indexed under that parent id and are therefore never reached
from a root. Cycles are reported by `has_cycle` and guarded against by the
walkers here and in the renderer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from slotkit.kernel.types import SlotDescriptor

logger = logging.getLogger(__name__)


class SlotTreeIndex:
    """Immutable, per-pass index over a slot collection."""

    def __init__(self, slots: Mapping[str, Any] | None) -> None:
        self._by_id: dict[str, SlotDescriptor] = {}
        self._children: dict[str | None, list[SlotDescriptor]] = {}

        if not isinstance(slots, Mapping):
            return

        for order, (slot_id, raw) in enumerate(slots.items()):
            if not isinstance(raw, Mapping):
                logger.warning("SlotTreeIndex: skipping malformed slot %r", slot_id)
                continue
            slot = SlotDescriptor.from_dict(str(slot_id), raw, order=order)
            self._by_id[slot.id] = slot
            self._children.setdefault(slot.parent_id, []).append(slot)

    def __contains__(self, slot_id: object) -> bool:
        return slot_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[SlotDescriptor]:
        return iter(self._by_id.values())

    def get(self, slot_id: str | None) -> SlotDescriptor | None:
        if slot_id is None:
            return None
        return self._by_id.get(slot_id)

    def children_of(self, parent_id: str | None) -> list[SlotDescriptor]:
        """Children of `parent_id` in declaration order. None → roots."""
        return list(self._children.get(parent_id, ()))

    def roots(self) -> list[SlotDescriptor]:
        return self.children_of(None)

    def ancestors(self, slot_id: str) -> list[str]:
        """Parent chain of `slot_id`, nearest first. Stops on a cycle."""
        chain: list[str] = []
        seen = {slot_id}
        slot = self._by_id.get(slot_id)
        while slot is not None and slot.parent_id is not None:
            if slot.parent_id in seen:
                break
            chain.append(slot.parent_id)
            seen.add(slot.parent_id)
            slot = self._by_id.get(slot.parent_id)
        return chain

    def descendants(self, slot_id: str) -> list[str]:
        """All ids below `slot_id`, breadth first."""
        found: list[str] = []
        seen = {slot_id}
        queue = [slot_id]
        while queue:
            current = queue.pop(0)
            for child in self._children.get(current, ()):
                if child.id in seen:
                    continue
                seen.add(child.id)
                found.append(child.id)
                queue.append(child.id)
        return found

    def has_cycle(self, slot_id: str) -> bool:
        slot = self._by_id.get(slot_id)
        seen = {slot_id}
        while slot is not None and slot.parent_id is not None:
            if slot.parent_id in seen:
                return True
            seen.add(slot.parent_id)
            slot = self._by_id.get(slot.parent_id)
        return False

    def find_by_type(self, slot_type: str) -> list[SlotDescriptor]:
        return [slot for slot in self._by_id.values() if slot.type == slot_type]
