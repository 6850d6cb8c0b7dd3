"""
Slotkit Kernel — Editor Reducer

Pure function: (slots, edit) → EditResult
No side effects. No IO. The input collection is never modified; every
applied edit returns a deep-copied replacement collection.

Edits:
  slot.resize         {slot_id, width, width_unit?, height?, height_unit?, font_size?}
  slot.height_resize  {slot_id, height}
  slot.grid_resize    {slot_id, col_span, viewport?}
  slot.drop           {dragged_id, target_id, position: before|after|inside}
  slot.delete         {slot_id}
  slot.create         {slot_type, parent_id?, content?, slot_id?, props?}
  slot.update         {slot_id, changes}
"""

from __future__ import annotations

import copy
import math
import re
import uuid
from collections.abc import Mapping
from typing import Any

from slotkit.kernel.tree import SlotTreeIndex
from slotkit.kernel.types import (
    COMPOSITE_TYPES,
    GRID_COLUMNS,
    PROTECTED_SLOT_IDS,
    EditResult,
    SlotEdit,
    SlotType,
)

DROP_POSITIONS: set[str] = {"before", "after", "inside"}

_INSTANCE_ID = re.compile(r"^(.+)_(\d+)$")

# Fields `slot.update` may change. Structure (id, parentId) changes go through drop.
UPDATABLE_FIELDS: set[str] = {
    "content",
    "className",
    "parentClassName",
    "styles",
    "containerStyles",
    "metadata",
    "viewMode",
    "colSpan",
    "rowSpan",
    "script",
    "component",
    "conditionalDisplay",
    "cmsBlockPosition",
    "widgetId",
    "widgetConfig",
}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def apply_edit(slots: Mapping[str, Any], edit: SlotEdit) -> EditResult:
    """
    Apply one editor interaction to a slot collection.
    Returns the replacement collection + applied flag + error.
    """
    handler = _HANDLERS.get(edit.type)
    if handler is None:
        return EditResult(slots=dict(slots), applied=False, error=f"UNKNOWN_EDIT: {edit.type}")

    # Deep copy so we never mutate the input
    new_slots = copy.deepcopy(dict(slots))
    return handler(new_slots, edit.payload)


def resize_slot(slots: Mapping[str, Any], slot_id: str, width: float, **size: Any) -> EditResult:
    return apply_edit(slots, SlotEdit("slot.resize", {"slot_id": slot_id, "width": width, **size}))


def resize_slot_height(slots: Mapping[str, Any], slot_id: str, height: float) -> EditResult:
    return apply_edit(slots, SlotEdit("slot.height_resize", {"slot_id": slot_id, "height": height}))


def resize_grid(slots: Mapping[str, Any], slot_id: str, col_span: int, viewport: str | None = None) -> EditResult:
    return apply_edit(
        slots, SlotEdit("slot.grid_resize", {"slot_id": slot_id, "col_span": col_span, "viewport": viewport})
    )


def drop_slot(slots: Mapping[str, Any], dragged_id: str, target_id: str, position: str) -> EditResult:
    return apply_edit(
        slots, SlotEdit("slot.drop", {"dragged_id": dragged_id, "target_id": target_id, "position": position})
    )


def delete_slot(slots: Mapping[str, Any], slot_id: str) -> EditResult:
    return apply_edit(slots, SlotEdit("slot.delete", {"slot_id": slot_id}))


def create_slot(
    slots: Mapping[str, Any],
    slot_type: str,
    parent_id: str | None = None,
    content: str = "",
    slot_id: str | None = None,
    **props: Any,
) -> EditResult:
    payload = {"slot_type": slot_type, "parent_id": parent_id, "content": content, "slot_id": slot_id, "props": props}
    return apply_edit(slots, SlotEdit("slot.create", payload))


def update_slot(slots: Mapping[str, Any], slot_id: str, changes: Mapping[str, Any]) -> EditResult:
    return apply_edit(slots, SlotEdit("slot.update", {"slot_id": slot_id, "changes": dict(changes)}))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(slots: dict, code: str, msg: str) -> EditResult:
    return EditResult(slots=slots, applied=False, error=f"{code}: {msg}")


def _ok(slots: dict, slot_id: str | None = None) -> EditResult:
    return EditResult(slots=slots, applied=True, slot_id=slot_id)


def _get_slot(slots: dict, slot_id: Any) -> dict | None:
    slot = slots.get(slot_id) if isinstance(slot_id, str) else None
    return slot if isinstance(slot, dict) else None


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _css_length(value: float, unit: str | None) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value}{unit or 'px'}"


def _position_of(slot: Mapping[str, Any]) -> tuple[int, int]:
    position = slot.get("position")
    if isinstance(position, Mapping):
        row, col = _number(position.get("row")), _number(position.get("col"))
        return int(row or 1), int(col or 1)
    return 1, 1


def _siblings(slots: dict, parent_id: str | None, exclude: str) -> list[dict]:
    return [s for sid, s in slots.items() if isinstance(s, dict) and s.get("parentId") == parent_id and sid != exclude]


def _find_available_position(slots: dict, parent_id: str | None, exclude: str) -> dict[str, int]:
    """First free (row, col) cell in a parent, scanning rows from the top."""
    taken = {_position_of(s) for s in _siblings(slots, parent_id, exclude) if isinstance(s.get("position"), Mapping)}
    for row in range(1, len(taken) + 2):
        for col in range(1, GRID_COLUMNS + 1):
            if (row, col) not in taken:
                return {"row": row, "col": col}
    return {"row": len(taken) + 2, "col": 1}


def _shift_row(slots: dict, parent_id: str | None, exclude: str, row: int, from_col: int) -> None:
    """Make room at (row, from_col) by moving later siblings in that row right."""
    for sibling in _siblings(slots, parent_id, exclude):
        if not isinstance(sibling.get("position"), Mapping):
            continue
        s_row, s_col = _position_of(sibling)
        if s_row == row and s_col >= from_col:
            sibling["position"] = {"row": s_row, "col": s_col + 1}


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_resize(slots: dict, payload: dict) -> EditResult:
    slot_id = payload.get("slot_id")
    slot = _get_slot(slots, slot_id)
    if slot is None:
        return _reject(slots, "SLOT_NOT_FOUND", f"{slot_id!r}")

    width = _number(payload.get("width"))
    if width is None:
        return _reject(slots, "INVALID_SIZE", f"width must be a number, got {payload.get('width')!r}")

    styles = dict(slot.get("styles") or {})
    styles["width"] = _css_length(width, payload.get("width_unit"))

    height = payload.get("height")
    if height not in (None, "auto"):
        if _number(height) is None:
            return _reject(slots, "INVALID_SIZE", f"height must be a number or 'auto', got {height!r}")
        styles["height"] = _css_length(height, payload.get("height_unit"))

    font_size = payload.get("font_size")
    if font_size is not None and _number(font_size) is not None:
        styles["fontSize"] = _css_length(font_size, "px")

    slot["styles"] = styles
    return _ok(slots, slot_id)


def _handle_height_resize(slots: dict, payload: dict) -> EditResult:
    slot_id = payload.get("slot_id")
    slot = _get_slot(slots, slot_id)
    if slot is None:
        return _reject(slots, "SLOT_NOT_FOUND", f"{slot_id!r}")

    height = _number(payload.get("height"))
    if height is None or height < 0:
        return _reject(slots, "INVALID_SIZE", f"height must be a non-negative number, got {payload.get('height')!r}")

    styles = dict(slot.get("styles") or {})
    styles["minHeight"] = _css_length(height, "px")
    slot["styles"] = styles
    # Roughly 40px per grid row
    slot["rowSpan"] = max(1, round(height / 40))
    return _ok(slots, slot_id)


def _handle_grid_resize(slots: dict, payload: dict) -> EditResult:
    slot_id = payload.get("slot_id")
    slot = _get_slot(slots, slot_id)
    if slot is None:
        return _reject(slots, "SLOT_NOT_FOUND", f"{slot_id!r}")

    col_span = _number(payload.get("col_span"))
    if col_span is None:
        return _reject(slots, "INVALID_SPAN", f"col_span must be a number, got {payload.get('col_span')!r}")
    col_span = max(1, min(GRID_COLUMNS, int(col_span)))

    targets = [slot]
    # Instance slots (product_card_name_0) also update their template slot
    instance = _INSTANCE_ID.match(slot_id)
    if instance and _get_slot(slots, instance.group(1)) is not None:
        targets.append(slots[instance.group(1)])

    for target in targets:
        current = target.get("colSpan")
        if isinstance(current, Mapping) and current:
            # Keep the per-viewport mapping, update only the active key
            viewport = payload.get("viewport")
            key = viewport if viewport in current else "default"
            target["colSpan"] = {**current, key: col_span}
        else:
            target["colSpan"] = col_span
    return _ok(slots, slot_id)


def _handle_drop(slots: dict, payload: dict) -> EditResult:
    dragged_id = payload.get("dragged_id")
    target_id = payload.get("target_id")
    position = payload.get("position")

    if position not in DROP_POSITIONS:
        return _reject(slots, "INVALID_DROP_POSITION", f"{position!r}")
    if dragged_id == target_id:
        return _reject(slots, "DROP_ON_SELF", f"{dragged_id!r}")

    dragged = _get_slot(slots, dragged_id)
    target = _get_slot(slots, target_id)
    if dragged is None:
        return _reject(slots, "SLOT_NOT_FOUND", f"{dragged_id!r}")
    if target is None:
        return _reject(slots, "SLOT_NOT_FOUND", f"{target_id!r}")
    if dragged_id in PROTECTED_SLOT_IDS:
        return _reject(slots, "PROTECTED_SLOT", f"{dragged_id!r} cannot be moved")

    index = SlotTreeIndex(slots)
    if target_id in index.descendants(dragged_id):
        return _reject(slots, "DROP_INTO_DESCENDANT", f"{target_id!r} is inside {dragged_id!r}")

    target_is_container = SlotType.parse(target.get("type")) in COMPOSITE_TYPES

    if position == "inside" and target_is_container:
        new_parent = target_id
        new_position = _find_available_position(slots, new_parent, dragged_id)
    else:
        new_parent = target.get("parentId")
        row, col = _position_of(target)
        if position == "before":
            new_position = {"row": row, "col": col}
        else:
            new_position = {"row": row, "col": col + 1} if col < GRID_COLUMNS else {"row": row + 1, "col": 1}
        _shift_row(slots, new_parent, dragged_id, new_position["row"], new_position["col"])

    dragged["parentId"] = new_parent
    dragged["position"] = new_position
    return _ok(slots, dragged_id)


def _handle_delete(slots: dict, payload: dict) -> EditResult:
    slot_id = payload.get("slot_id")
    if _get_slot(slots, slot_id) is None:
        return _reject(slots, "SLOT_NOT_FOUND", f"{slot_id!r}")
    if slot_id in PROTECTED_SLOT_IDS:
        return _reject(slots, "PROTECTED_SLOT", f"{slot_id!r} cannot be deleted")

    index = SlotTreeIndex(slots)
    for removed in [slot_id, *index.descendants(slot_id)]:
        slots.pop(removed, None)
    return _ok(slots, slot_id)


def _handle_create(slots: dict, payload: dict) -> EditResult:
    slot_type = payload.get("slot_type")
    if SlotType.parse(slot_type) is None:
        return _reject(slots, "UNKNOWN_SLOT_TYPE", f"{slot_type!r}")

    parent_id = payload.get("parent_id")
    if parent_id is not None and _get_slot(slots, parent_id) is None:
        return _reject(slots, "PARENT_NOT_FOUND", f"{parent_id!r}")

    slot_id = payload.get("slot_id") or f"new_{slot_type}_{uuid.uuid4().hex[:8]}"
    if slot_id in slots:
        return _reject(slots, "DUPLICATE_SLOT_ID", f"{slot_id!r}")

    is_container = SlotType.parse(slot_type) in COMPOSITE_TYPES
    props = dict(payload.get("props") or {})
    metadata = {"hierarchical": True, **(props.pop("metadata", None) or {})}

    slot: dict[str, Any] = {
        "id": slot_id,
        "type": slot_type,
        "content": payload.get("content") or "",
        "className": _DEFAULT_CLASSES.get(slot_type, ""),
        "parentClassName": "",
        "styles": {"minHeight": "80px"} if slot_type == "container" else {},
        "parentId": parent_id,
        "position": _find_available_position(slots, parent_id, slot_id),
        "colSpan": GRID_COLUMNS if is_container else 6,
        "rowSpan": 1,
        "viewMode": [],
        "isCustom": True,
        "metadata": metadata,
    }
    slot.update({k: v for k, v in props.items() if k in UPDATABLE_FIELDS})
    slots[slot_id] = slot
    return _ok(slots, slot_id)


_DEFAULT_CLASSES: dict[str, str] = {
    "container": "p-4 border border-gray-200 rounded",
    "text": "text-base text-gray-900",
    "image": "w-full h-auto",
}


def _handle_update(slots: dict, payload: dict) -> EditResult:
    slot_id = payload.get("slot_id")
    slot = _get_slot(slots, slot_id)
    if slot is None:
        return _reject(slots, "SLOT_NOT_FOUND", f"{slot_id!r}")

    changes = payload.get("changes")
    if not isinstance(changes, Mapping):
        return _reject(slots, "INVALID_CHANGES", "changes must be a mapping")

    unknown = sorted(set(changes) - UPDATABLE_FIELDS)
    if unknown:
        return _reject(slots, "UNKNOWN_FIELD", ", ".join(unknown))

    for key, value in changes.items():
        if key in ("styles", "metadata") and isinstance(value, Mapping):
            # Merge; a None value removes the key
            merged = {**(slot.get(key) or {}), **value}
            slot[key] = {k: v for k, v in merged.items() if v is not None}
        else:
            slot[key] = copy.deepcopy(value)
    return _ok(slots, slot_id)


_HANDLERS = {
    "slot.resize": _handle_resize,
    "slot.height_resize": _handle_height_resize,
    "slot.grid_resize": _handle_grid_resize,
    "slot.drop": _handle_drop,
    "slot.delete": _handle_delete,
    "slot.create": _handle_create,
    "slot.update": _handle_update,
}
