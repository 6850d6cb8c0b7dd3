"""
Slotkit Kernel — Shared Types

Data classes used across the template processor, layout resolver, registry,
renderer, and editor reducer. These are the contracts that bind the kernel
together.

Key shapes:
- A slot collection is a flat mapping of slot id → descriptor dict (camelCase
  keys, as authored). The kernel parses it into SlotDescriptor on read and
  never mutates it; editor edits produce a replacement mapping.
- A data context is a plain mapping of named scopes (product, products,
  category, cart, settings, filters, pagination, activeFilters, ...).
- Render output is a tree of RenderNode values; `to_html()` serializes it.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from html import escape as _html_escape
from typing import Any

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

GRID_COLUMNS = 12

# Slots the editor refuses to move or delete
PROTECTED_SLOT_IDS: set[str] = {"main_layout", "header_container", "content_area", "sidebar_area"}

ROOT_LAYOUT_ID = "main_layout"

VOID_TAGS: set[str] = {"img", "br", "hr", "input", "meta", "link"}


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class SlotType(str, Enum):
    """Closed set of slot kinds the renderer dispatches on."""

    TEXT = "text"
    HTML = "html"
    BUTTON = "button"
    IMAGE = "image"
    CONTAINER = "container"
    GRID = "grid"
    FLEX = "flex"
    COMPONENT = "component"
    CMS = "cms"
    STYLE_CONFIG = "style_config"
    PLUGIN_WIDGET = "plugin_widget"

    @classmethod
    def parse(cls, value: Any) -> SlotType | None:
        """Return the matching member, or None for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return None


COMPOSITE_TYPES: set[SlotType] = {SlotType.CONTAINER, SlotType.GRID, SlotType.FLEX}


class RenderMode(str, Enum):
    """Editor (interactive authoring) or production (read-only) rendering."""

    EDITOR = "editor"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: Any) -> RenderMode:
        if isinstance(value, RenderMode):
            return value
        if value in ("editor", "edit"):
            return cls.EDITOR
        # "storefront" is the historical name for production
        return cls.PRODUCTION


class Viewport(str, Enum):
    """Device class controlling how responsive spans resolve."""

    DESKTOP = "desktop"
    TABLET = "tablet"
    MOBILE = "mobile"

    @classmethod
    def parse(cls, value: Any) -> Viewport:
        try:
            return cls(value)
        except ValueError:
            return cls.DESKTOP


# ---------------------------------------------------------------------------
# Slot descriptor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GridPosition:
    row: int
    col: int

    @classmethod
    def from_value(cls, value: Any) -> GridPosition | None:
        if not isinstance(value, Mapping):
            return None
        row, col = value.get("row"), value.get("col")
        if not _is_finite(row) or not _is_finite(col):
            return None
        return cls(row=int(row), col=int(col))


@dataclass
class SlotDescriptor:
    """
    One node of the composition tree.

    Parsed leniently from the authored dict: wrong-typed optional fields fall
    back to their empty value rather than failing the whole render.
    """

    id: str
    type: str
    content: str = ""
    class_name: str = ""
    parent_class_name: str = ""
    styles: dict[str, Any] = field(default_factory=dict)
    container_styles: dict[str, Any] = field(default_factory=dict)
    parent_id: str | None = None
    col_span: Any = None
    row_span: Any = None
    position: GridPosition | None = None
    view_mode: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    script: str | None = None
    component: str | None = None
    conditional_display: Any = None
    cms_block_position: str | None = None
    widget_id: str | None = None
    widget_config: dict[str, Any] = field(default_factory=dict)
    order: int = 0

    @property
    def slot_type(self) -> SlotType | None:
        return SlotType.parse(self.type)

    @property
    def is_composite(self) -> bool:
        return self.slot_type in COMPOSITE_TYPES

    @property
    def component_name(self) -> str | None:
        return self.metadata.get("component") or self.component or None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "content": self.content,
            "className": self.class_name,
            "parentClassName": self.parent_class_name,
            "styles": self.styles,
            "parentId": self.parent_id,
            "viewMode": self.view_mode,
            "metadata": self.metadata,
        }
        if self.container_styles:
            d["containerStyles"] = self.container_styles
        if self.col_span is not None:
            d["colSpan"] = self.col_span
        if self.row_span is not None:
            d["rowSpan"] = self.row_span
        if self.position is not None:
            d["position"] = {"row": self.position.row, "col": self.position.col}
        if self.script is not None:
            d["script"] = self.script
        if self.component is not None:
            d["component"] = self.component
        if self.conditional_display is not None:
            d["conditionalDisplay"] = self.conditional_display
        if self.cms_block_position is not None:
            d["cmsBlockPosition"] = self.cms_block_position
        if self.widget_id is not None:
            d["widgetId"] = self.widget_id
            d["widgetConfig"] = self.widget_config
        return d

    @classmethod
    def from_dict(cls, slot_id: str, d: Mapping[str, Any], order: int = 0) -> SlotDescriptor:
        view_mode = d.get("viewMode")
        return cls(
            id=str(d.get("id") or slot_id),
            type=str(d.get("type") or ""),
            content=_as_str(d.get("content")),
            class_name=_as_str(d.get("className")),
            parent_class_name=_as_str(d.get("parentClassName")),
            styles=dict(d["styles"]) if isinstance(d.get("styles"), Mapping) else {},
            container_styles=dict(d["containerStyles"]) if isinstance(d.get("containerStyles"), Mapping) else {},
            parent_id=d.get("parentId") if isinstance(d.get("parentId"), str) else None,
            col_span=d.get("colSpan"),
            row_span=d.get("rowSpan"),
            position=GridPosition.from_value(d.get("position")),
            view_mode=[str(v) for v in view_mode] if isinstance(view_mode, (list, tuple)) else [],
            metadata=dict(d["metadata"]) if isinstance(d.get("metadata"), Mapping) else {},
            script=d.get("script") if isinstance(d.get("script"), str) else None,
            component=d.get("component") if isinstance(d.get("component"), str) else None,
            conditional_display=d.get("conditionalDisplay"),
            cms_block_position=d.get("cmsBlockPosition") if isinstance(d.get("cmsBlockPosition"), str) else None,
            widget_id=d.get("widgetId") if isinstance(d.get("widgetId"), str) else None,
            widget_config=dict(d["widgetConfig"]) if isinstance(d.get("widgetConfig"), Mapping) else {},
            order=order,
        )


# ---------------------------------------------------------------------------
# Render options and collaborators
# ---------------------------------------------------------------------------

# (key, language) -> translated string, or the key unchanged when unknown
TranslationLookup = Callable[[str, str], str]


@dataclass
class EditorCallbacks:
    """
    Editor-side callbacks. All optional: a missing callback disables the
    matching interaction, it never errors.
    """

    on_element_click: Callable[[str, Any], None] | None = None
    on_grid_resize: Callable[[str, int], None] | None = None
    on_slot_height_resize: Callable[[str, int], None] | None = None
    on_slot_drop: Callable[[str, str, str], None] | None = None
    on_slot_delete: Callable[[str], None] | None = None
    on_resize_start: Callable[[str], None] | None = None
    on_resize_end: Callable[[str], None] | None = None
    set_tree: Callable[[dict[str, Any]], None] | None = None
    persist: Callable[[str, dict[str, Any]], None] | None = None


@dataclass
class ActionHandlers:
    """Production-mode domain actions bound to buttons."""

    add_to_cart: Callable[[dict[str, Any]], None] | None = None
    toggle_wishlist: Callable[[dict[str, Any]], None] | None = None
    logout: Callable[[], None] | None = None
    navigate: Callable[[str], None] | None = None


@dataclass
class RenderOptions:
    """Options controlling one render pass."""

    mode: RenderMode = RenderMode.PRODUCTION
    view_mode: str = "default"
    viewport: Viewport = Viewport.DESKTOP
    flags: dict[str, bool] = field(default_factory=dict)
    parent_id: str | None = None
    selected_slot_id: str | None = None
    language: str = "en"
    translate: TranslationLookup | None = None
    callbacks: EditorCallbacks = field(default_factory=EditorCallbacks)
    actions: ActionHandlers = field(default_factory=ActionHandlers)

    def __post_init__(self) -> None:
        self.mode = RenderMode.parse(self.mode)
        self.viewport = Viewport.parse(self.viewport)

    @property
    def is_editor(self) -> bool:
        return self.mode is RenderMode.EDITOR


# ---------------------------------------------------------------------------
# Render output
# ---------------------------------------------------------------------------


@dataclass
class HookSpec:
    """A behavior hook bound to a rendered slot, attached after mount."""

    slot_id: str
    script: str
    slot: dict[str, Any]
    product: dict[str, Any] | None
    context: Mapping[str, Any] = field(compare=False, repr=False)


@dataclass
class DeferredMount:
    """An externally supplied widget mounted after render (plugin_widget)."""

    widget_id: str
    config: dict[str, Any]


@dataclass
class RenderNode:
    """
    One node of structured render output.

    `tag == ""` is a fragment: only its children are emitted. `text` is
    escaped on serialization; `html` is trusted markup emitted as-is.
    Handlers are interaction bindings and do not take part in equality.
    """

    tag: str
    attrs: dict[str, Any] = field(default_factory=dict)
    children: list[RenderNode] = field(default_factory=list)
    text: str | None = None
    html: str | None = None
    key: str | None = None
    slot_id: str | None = None
    handlers: dict[str, Callable[..., Any]] = field(default_factory=dict, compare=False, repr=False)
    hook: HookSpec | None = None
    deferred: DeferredMount | None = None

    def walk(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, slot_id: str) -> RenderNode | None:
        for node in self.walk():
            if node.slot_id == slot_id:
                return node
        return None

    def to_html(self) -> str:
        inner = ""
        if self.text is not None:
            inner += escape(self.text)
        if self.html is not None:
            inner += self.html
        inner += "".join(child.to_html() for child in self.children)
        if not self.tag:
            return inner
        attrs = _render_attrs(self.attrs)
        if self.tag in VOID_TAGS:
            return f"<{self.tag}{attrs}>"
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"


def nodes_to_html(nodes: list[RenderNode]) -> str:
    return "".join(node.to_html() for node in nodes)


# ---------------------------------------------------------------------------
# Editor results
# ---------------------------------------------------------------------------


EDIT_TYPES: set[str] = {
    "slot.resize",
    "slot.height_resize",
    "slot.grid_resize",
    "slot.drop",
    "slot.delete",
    "slot.create",
    "slot.update",
}


@dataclass
class SlotEdit:
    """One editor interaction. The reducer reads only `type` and `payload`."""

    type: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SlotEdit:
        return cls(type=d["type"], payload=d.get("payload", {}))


@dataclass
class EditResult:
    """
    Result of applying one editor mutation to a slot collection.
    Mutations never throw — they always return one of these.
    """

    slots: dict[str, Any]
    applied: bool
    error: str | None = None
    slot_id: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")
_ATTR_NAME = re.compile(r"^[A-Za-z_:][-A-Za-z0-9_:.]*$")


def is_safe_attr_name(name: Any) -> bool:
    """A well-formed attribute name that is not an event handler."""
    return isinstance(name, str) and bool(_ATTR_NAME.fullmatch(name)) and not name.lower().startswith("on")


def escape(text: Any) -> str:
    """HTML-escape user content."""
    return _html_escape(str(text), quote=True)


def style_to_css(styles: Mapping[str, Any]) -> str:
    """{"backgroundColor": "red"} → "background-color: red"."""
    parts = []
    for key, value in styles.items():
        if value is None or value == "":
            continue
        prop = key if key.startswith("--") else _CAMEL_BOUNDARY.sub("-", key).lower()
        if isinstance(value, (int, float)) and not isinstance(value, bool) and prop not in _UNITLESS:
            value = f"{value}px"
        parts.append(f"{prop}: {value}")
    return "; ".join(parts)


_UNITLESS: set[str] = {"opacity", "z-index", "font-weight", "line-height", "flex-grow", "flex-shrink", "order"}


def _render_attrs(attrs: Mapping[str, Any]) -> str:
    out = []
    for name, value in attrs.items():
        if value is None or value is False or not is_safe_attr_name(name):
            continue
        if name == "style" and isinstance(value, Mapping):
            value = style_to_css(value)
            if not value:
                continue
        if value is True:
            out.append(f" {name}")
        else:
            out.append(f' {name}="{escape(value)}"')
    return "".join(out)


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite(value: Any) -> bool:
    return _is_number(value) and (isinstance(value, int) or math.isfinite(value))
