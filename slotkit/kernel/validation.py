"""
Slotkit Kernel — Slot Collection Validation

Validates a slot collection before it is accepted from (or handed to) the
persistence layer. Structural checks run per slot through a pydantic model;
tree checks (parents exist, no cycles, root layout) run over the whole
collection.

Returns a list of error strings. Empty list = valid. The renderer does not
require a valid collection: it tolerates anything. Validation is for the
editor's save path.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from slotkit.kernel.tree import SlotTreeIndex
from slotkit.kernel.types import ROOT_LAYOUT_ID, SlotType


class GridPositionPayload(BaseModel):
    row: int
    col: int


class SlotPayload(BaseModel):
    """One authored slot as stored. Unknown keys are kept."""

    model_config = {"extra": "allow"}

    id: str
    type: str
    content: str | None = None
    className: str | None = None
    parentClassName: str | None = None
    styles: dict[str, Any] | None = None
    containerStyles: dict[str, Any] | None = None
    parentId: str | None = None
    colSpan: int | str | dict[str, Any] | None = None
    rowSpan: int | None = None
    position: GridPositionPayload | None = None
    viewMode: list[str] | None = None
    metadata: dict[str, Any] | None = None
    script: str | None = None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_slot_configuration(slots: Any) -> list[str]:
    """
    Validate a whole slot collection.

    Checks:
    - collection is a mapping of id → mapping
    - each slot's id matches its key and its fields have the right shape
    - type is a known slot type
    - parentId references an existing slot and parents form no cycle
    - main_layout, when present, is a root
    """
    if not isinstance(slots, Mapping):
        return ["slots must be a mapping of slot id to slot"]

    errors: list[str] = []
    for slot_id, raw in slots.items():
        errors.extend(validate_slot(slot_id, raw))

    index = SlotTreeIndex(slots)
    for slot in index:
        if slot.parent_id is not None and slot.parent_id not in index:
            errors.append(f"Slot {slot.id} references non-existent parent {slot.parent_id}")
        elif index.has_cycle(slot.id):
            errors.append(f"Slot {slot.id} is part of a parent cycle")

    root = slots.get(ROOT_LAYOUT_ID)
    if isinstance(root, Mapping) and root.get("parentId") is not None:
        errors.append(f"{ROOT_LAYOUT_ID} must have parentId: null")

    return errors


def validate_slot(slot_id: str, raw: Any) -> list[str]:
    """Structural checks for one slot."""
    if not isinstance(raw, Mapping):
        return [f"Slot {slot_id} must be a mapping"]

    errors: list[str] = []
    try:
        payload = SlotPayload.model_validate(dict(raw))
    except ValidationError as e:
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"])
            errors.append(f"Slot {slot_id}: {location}: {err['msg']}")
        return errors

    if payload.id != slot_id:
        errors.append(f"Slot {slot_id} has mismatched id {payload.id!r}")
    if SlotType.parse(payload.type) is None:
        errors.append(f"Slot {slot_id} has unknown type {payload.type!r}")
    if isinstance(payload.colSpan, int) and not 1 <= payload.colSpan <= 12:
        errors.append(f"Slot {slot_id} colSpan {payload.colSpan} is outside 1-12")
    return errors
