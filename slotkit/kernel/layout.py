"""
Slotkit Kernel — Visibility & Layout Resolver

Pure functions over one sibling group, applied in this order:
1. view-mode filter
2. render-condition filter
3. grid-order sort (row, then col; stable)
4. column-span resolution for the active viewport

A resolved span is always an int in [1, 12]. Anything unparseable falls back
to full width.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from slotkit.kernel.types import GRID_COLUMNS, RenderMode, SlotDescriptor, Viewport

# ---------------------------------------------------------------------------
# Render conditions
# ---------------------------------------------------------------------------

# identifier → (flag name, value of the flag that makes the slot eligible)
RENDER_CONDITIONS: dict[str, tuple[str, bool]] = {
    "hideOnMobileMenu": ("mobileMenuOpen", False),
    "showOnMobileMenu": ("mobileMenuOpen", True),
    "hideOnMobileSearch": ("mobileSearchOpen", False),
    "showOnMobileSearch": ("mobileSearchOpen", True),
}

_BREAKPOINT_CLASS = re.compile(r"^(sm|md|lg|xl|2xl):(.+)$")
_COL_SPAN_CLASS = re.compile(r"(?<![\w:-])col-span-(\d+)\b")

# Breakpoint preference per viewport, most specific first
_VIEWPORT_BREAKPOINTS: dict[Viewport, tuple[str, ...]] = {
    Viewport.DESKTOP: ("2xl", "xl", "lg", "md", "sm"),
    Viewport.TABLET: ("md", "sm"),
    Viewport.MOBILE: (),
}


# ---------------------------------------------------------------------------
# Filters and sort
# ---------------------------------------------------------------------------


def is_visible_in_view_mode(slot: SlotDescriptor, view_mode: str) -> bool:
    if not slot.view_mode:
        return True
    return "default" in slot.view_mode or view_mode in slot.view_mode


def filter_by_view_mode(slots: Iterable[SlotDescriptor], view_mode: str) -> list[SlotDescriptor]:
    return [slot for slot in slots if is_visible_in_view_mode(slot, view_mode)]


def passes_render_condition(slot: SlotDescriptor, flags: Mapping[str, bool] | None) -> bool:
    """Unknown identifiers are eligible."""
    condition = slot.metadata.get("renderCondition")
    if not condition or not isinstance(condition, str):
        return True
    flags = flags or {}
    if condition in RENDER_CONDITIONS:
        flag, wanted = RENDER_CONDITIONS[condition]
        return bool(flags.get(flag, False)) is wanted
    if condition in flags:
        return bool(flags[condition])
    return True


def filter_by_render_condition(
    slots: Iterable[SlotDescriptor], flags: Mapping[str, bool] | None
) -> list[SlotDescriptor]:
    return [slot for slot in slots if passes_render_condition(slot, flags)]


def sort_by_grid_position(slots: Iterable[SlotDescriptor]) -> list[SlotDescriptor]:
    """Row then column. Slots without a position follow the positioned ones."""

    def key(slot: SlotDescriptor) -> tuple[int, float, float]:
        if slot.position is None:
            return (1, 0, 0)
        return (0, slot.position.row, slot.position.col)

    return sorted(slots, key=key)


def admissible_children(
    slots: Iterable[SlotDescriptor],
    view_mode: str,
    flags: Mapping[str, bool] | None = None,
) -> list[SlotDescriptor]:
    """Steps 1-3 of the pipeline: filter then order one sibling group."""
    eligible = filter_by_view_mode(slots, view_mode)
    eligible = filter_by_render_condition(eligible, flags)
    return sort_by_grid_position(eligible)


# ---------------------------------------------------------------------------
# Column spans
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ColSpan:
    """A resolved span: grid units, the class expressing it, and wrapper bypass."""

    span: int
    css_class: str
    bypass: bool = False

    @property
    def grid_column(self) -> str:
        return f"span {self.span} / span {self.span}"


FULL_WIDTH = ColSpan(GRID_COLUMNS, f"col-span-{GRID_COLUMNS}")


def resolve_col_span(
    col_span: Any,
    viewport: Viewport = Viewport.DESKTOP,
    mode: RenderMode = RenderMode.PRODUCTION,
    view_mode: str | None = None,
) -> ColSpan:
    """
    Resolve a colSpan declaration to a concrete span.

    - number → used directly (clamped to 1-12)
    - mapping → viewport key, view-mode key, "default", first value
    - string → responsive class; collapsed to one viewport in the editor
    - missing / invalid → 12
    An explicitly empty mapping marks the slot as bypassing its wrapper.
    """
    if col_span is None:
        return FULL_WIDTH

    if isinstance(col_span, Mapping):
        if not col_span:
            return ColSpan(GRID_COLUMNS, "", bypass=True)
        value = _pick_from_mapping(col_span, viewport, view_mode)
        if isinstance(value, Mapping):
            return FULL_WIDTH
        return resolve_col_span(value, viewport, mode)

    number = _span_number(col_span)
    if number is not None:
        return ColSpan(number, f"col-span-{number}")

    if isinstance(col_span, str) and col_span.strip():
        collapsed = transform_responsive_class(col_span, viewport)
        match = _COL_SPAN_CLASS.search(collapsed)
        span = _clamp(int(match.group(1))) if match else GRID_COLUMNS
        css_class = collapsed if mode is RenderMode.EDITOR else col_span.strip()
        return ColSpan(span, css_class)

    return FULL_WIDTH


def _pick_from_mapping(col_span: Mapping[str, Any], viewport: Viewport, view_mode: str | None) -> Any:
    for key in (viewport.value, view_mode, "default"):
        if key is not None and col_span.get(key) is not None:
            return col_span[key]
    return next(iter(col_span.values()))


def _span_number(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value):
            return None
        return _clamp(int(value))
    if isinstance(value, str) and value.strip().isdigit():
        return _clamp(int(value.strip()))
    return None


def _clamp(span: int) -> int:
    return max(1, min(GRID_COLUMNS, span))


def transform_responsive_class(class_string: str, viewport: Viewport) -> str:
    """
    Collapse a responsive class string to the classes active at `viewport`.

    "col-span-12 md:col-span-6 lg:col-span-4":
      desktop → "col-span-4", tablet → "col-span-6", mobile → "col-span-12"
    """
    if not class_string:
        return class_string

    base: list[str] = []
    by_breakpoint: dict[str, list[str]] = {}
    for cls in class_string.split():
        match = _BREAKPOINT_CLASS.match(cls)
        if match:
            by_breakpoint.setdefault(match.group(1), []).append(match.group(2))
        else:
            base.append(cls)

    for breakpoint in _VIEWPORT_BREAKPOINTS[viewport]:
        if by_breakpoint.get(breakpoint):
            return " ".join(by_breakpoint[breakpoint])
    return " ".join(base)


# ---------------------------------------------------------------------------
# Editor class adjustment
# ---------------------------------------------------------------------------


def apply_viewport_classes(class_name: str, viewport: Viewport) -> tuple[str, bool]:
    """
    Editor previews have no real breakpoints, so visibility classes are
    applied explicitly. Returns (class_name, hidden).
    """
    if not class_name:
        return class_name, False

    hidden = False
    result = class_name
    mobile = viewport is Viewport.MOBILE

    for prefix in ("md", "sm"):
        if re.search(rf"(?<![\w:-]){prefix}:hidden\b", result):
            if mobile:
                result = re.sub(rf"(?<![\w:-]){prefix}:hidden\b", "", result)
            else:
                hidden = True

        if re.search(r"(?<![\w:-])hidden\b", result) and re.search(rf"(?<![\w:-]){prefix}:flex\b", result):
            if mobile:
                hidden = True
            else:
                result = re.sub(r"(?<![\w:-])hidden\b", "", result)
                result = re.sub(rf"(?<![\w:-]){prefix}:flex\b", "flex", result)

    if not mobile:
        result = re.sub(r"(?<![\w:-])(?:md|lg):(grid-cols|col-span)-(\d+)\b", r"\1-\2", result)

    return " ".join(result.split()), hidden
