"""
Slotkit Kernel — Render Orchestrator

Pure function: (slots, data context, options) → list[RenderNode]
No IO. Deterministic: same input → same output, always. The slot collection
and the data context are never modified.

Walk:
- the tree index is built once per pass
- each sibling group goes through the layout pipeline (view mode, render
  condition, grid order)
- each admissible slot is dispatched on its type, then wrapped for the grid
  (interactive in the editor, minimal in production)
- composite slots recurse with themselves as parent

No error escapes a pass. A slot that fails to render is logged and left out
(or replaced by a labeled placeholder in the editor); its siblings and
ancestors render as usual.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from slotkit.config import settings
from slotkit.kernel import reducer
from slotkit.kernel.cms import EMPTY, CmsResolver, CmsStatus
from slotkit.kernel.context import product_image_url
from slotkit.kernel.formatting import is_out_of_stock
from slotkit.kernel.layout import admissible_children, apply_viewport_classes, resolve_col_span
from slotkit.kernel.registry import ComponentInvocation, ComponentRegistry, default_registry
from slotkit.kernel.tree import SlotTreeIndex
from slotkit.kernel.types import (
    PROTECTED_SLOT_IDS,
    DeferredMount,
    HookSpec,
    RenderNode,
    RenderOptions,
    SlotDescriptor,
    SlotType,
    is_safe_attr_name,
)
from slotkit.kernel.variables import process, process_styles, resolve_translation_key

logger = logging.getLogger(__name__)

BUTTON_ACTIONS: set[str] = {"add_to_cart", "wishlist", "logout", "navigate"}

# Buttons recognised by id when metadata names no action
_DEFAULT_BUTTON_ACTIONS: dict[str, str] = {
    "add_to_cart_button": "add_to_cart",
    "wishlist_button": "wishlist",
    "logout_button": "logout",
    "empty_cart_button": "navigate",
}

_CONTAINER_CLASSES: dict[SlotType, str] = {
    SlotType.GRID: "grid grid-cols-12 gap-2",
    SlotType.FLEX: "flex flex-wrap gap-2",
    SlotType.CONTAINER: "",
}

_PRODUCT_LINK_IMAGES: set[str] = {"product_card_image", "product_image"}
_PRODUCT_LINK_NAMES: set[str] = {"product_card_name", "product_name"}

_TAG_NAME = re.compile(r"^[a-z][a-z0-9]*$")
_PLACEHOLDER_BOX = "p-4 border-2 border-dashed rounded"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_slots(
    slots: Mapping[str, Any] | None,
    context: Mapping[str, Any] | None = None,
    options: RenderOptions | None = None,
    *,
    registry: ComponentRegistry | None = None,
    cms: CmsResolver | None = None,
) -> list[RenderNode]:
    """
    Render the roots of a slot collection, or the children of
    `options.parent_id` when set. Returns the rendered sibling group in
    order. Never raises.
    """
    return render_tree(slots, context, options, registry=registry, cms=cms).nodes


@dataclass
class RenderOutput:
    """One pass: the rendered nodes and the ids of every slot that mounted."""

    nodes: list[RenderNode]
    mounted: list[str]


def render_tree(
    slots: Mapping[str, Any] | None,
    context: Mapping[str, Any] | None = None,
    options: RenderOptions | None = None,
    *,
    registry: ComponentRegistry | None = None,
    cms: CmsResolver | None = None,
) -> RenderOutput:
    """
    render_slots plus the mounted slot ids. A production CMS slot still
    waiting for its content renders nothing but counts as mounted.
    """
    state = _new_pass(slots, context, options, registry, cms)
    nodes = _render_children(state, state.options.parent_id, 0)
    return RenderOutput(nodes=nodes, mounted=list(dict.fromkeys(state.mounted)))


def render_slot(
    slot_id: str,
    slots: Mapping[str, Any] | None,
    context: Mapping[str, Any] | None = None,
    options: RenderOptions | None = None,
    *,
    registry: ComponentRegistry | None = None,
    cms: CmsResolver | None = None,
) -> RenderNode | None:
    """Render one slot (and its subtree) by id, wrapper included."""
    state = _new_pass(slots, context, options, registry, cms)
    slot = state.index.get(slot_id)
    if slot is None:
        return None
    return _render_wrapped(state, slot, 0)


def render_html(
    slots: Mapping[str, Any] | None,
    context: Mapping[str, Any] | None = None,
    options: RenderOptions | None = None,
    **kwargs: Any,
) -> str:
    """render_slots serialized to markup."""
    return "".join(node.to_html() for node in render_slots(slots, context, options, **kwargs))


# ---------------------------------------------------------------------------
# Pass state
# ---------------------------------------------------------------------------


@dataclass
class _Pass:
    slots: Mapping[str, Any]
    index: SlotTreeIndex
    context: Mapping[str, Any]
    options: RenderOptions
    registry: ComponentRegistry
    cms: CmsResolver | None
    warned: set[str] = field(default_factory=set)
    visiting: set[str] = field(default_factory=set)
    mounted: list[str] = field(default_factory=list)

    def warn_once(self, key: str, msg: str, *args: Any) -> None:
        if key in self.warned:
            return
        self.warned.add(key)
        logger.warning(msg, *args)


@dataclass
class _Resolved:
    """Template-resolved presentation strings of one slot."""

    class_name: str
    styles: dict[str, Any]


def _new_pass(
    slots: Mapping[str, Any] | None,
    context: Mapping[str, Any] | None,
    options: RenderOptions | None,
    registry: ComponentRegistry | None,
    cms: CmsResolver | None,
) -> _Pass:
    slots = slots if isinstance(slots, Mapping) else {}
    return _Pass(
        slots=slots,
        index=SlotTreeIndex(slots),
        context=context if isinstance(context, Mapping) else {},
        options=options or RenderOptions(),
        registry=registry or default_registry,
        cms=cms,
    )


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------


def _render_children(state: _Pass, parent_id: str | None, depth: int) -> list[RenderNode]:
    opts = state.options
    children = admissible_children(state.index.children_of(parent_id), opts.view_mode, opts.flags)
    nodes = []
    for slot in children:
        node = _render_wrapped(state, slot, depth)
        if node is not None:
            nodes.append(node)
    return nodes


def _render_wrapped(state: _Pass, slot: SlotDescriptor, depth: int) -> RenderNode | None:
    """Render one slot at its boundary: errors stop here."""
    try:
        content = _render_content(state, slot, depth)
        if content is None:
            return None
        state.mounted.append(slot.id)
        return _wrap(state, slot, content)
    except Exception:
        logger.exception("slot %s (%s) failed to render", slot.id, slot.type)
        if state.options.is_editor:
            return RenderNode(
                tag="div",
                attrs={"class": "slot-error text-red-600 text-sm", "data-slot-id": slot.id},
                text=f"[{slot.type} slot failed to render]",
                key=slot.id,
                slot_id=slot.id,
            )
        return None


def _render_content(state: _Pass, slot: SlotDescriptor, depth: int) -> RenderNode | None:
    opts = state.options
    class_name = process(slot.class_name, state.context)
    if opts.is_editor:
        class_name, hidden = apply_viewport_classes(class_name, opts.viewport)
        if hidden:
            return None
    resolved = _Resolved(class_name=class_name, styles=process_styles(slot.styles, state.context))

    slot_type = slot.slot_type
    if slot_type is None:
        return _render_unknown(state, slot, resolved)
    return _DISPATCH[slot_type](state, slot, resolved, depth)


# ---------------------------------------------------------------------------
# Type handlers
# ---------------------------------------------------------------------------


def _render_text(state: _Pass, slot: SlotDescriptor, resolved: _Resolved, depth: int) -> RenderNode | None:
    if not _passes_conditional_display(state, slot):
        return None

    translated = resolve_translation_key(
        slot.content, state.options.translate, state.options.language, state.options.mode
    )
    if translated is not None:
        node = RenderNode(tag="", text=translated)
    else:
        node = RenderNode(tag="", html=process(slot.content, state.context, escape=True))
    # Empty text stays selectable in the editor so it can still be edited or deleted
    empty = not (node.text or node.html)
    if empty and not state.options.is_editor:
        return None

    default_tag = "div"
    tag = slot.metadata.get("htmlTag")
    node.tag = tag if isinstance(tag, str) and _TAG_NAME.match(tag) else default_tag
    node.slot_id = slot.id
    node.attrs = _text_attrs(slot, resolved)
    if state.options.is_editor:
        if empty:
            node.attrs["data-empty"] = "true"
        _make_selectable(state, slot, node)
    elif slot.script:
        node.hook = HookSpec(
            slot_id=slot.id,
            script=slot.script,
            slot=slot.to_dict(),
            product=_product(state),
            context=state.context,
        )

    if not state.options.is_editor and slot.id in _PRODUCT_LINK_NAMES:
        href = _product_href(state)
        if href:
            return RenderNode(tag="a", attrs={"href": href, "class": "block"}, children=[node])
    return node


def _text_attrs(slot: SlotDescriptor, resolved: _Resolved) -> dict[str, Any]:
    html_attributes = slot.metadata.get("htmlAttributes")
    html_attributes = dict(html_attributes) if isinstance(html_attributes, Mapping) else {}
    extra_class = html_attributes.pop("class", "")
    attrs: dict[str, Any] = {
        "class": " ".join(part for part in (resolved.class_name, extra_class, "whitespace-normal") if part),
        "style": resolved.styles or None,
    }
    for name, value in html_attributes.items():
        # Event attributes would smuggle inline code past the hook registry
        if is_safe_attr_name(name):
            attrs[name] = value
    return attrs


def _passes_conditional_display(state: _Pass, slot: SlotDescriptor) -> bool:
    """
    A path expression must resolve to something non-empty and not "false";
    a template expression must evaluate to "show".
    """
    condition = slot.conditional_display or slot.metadata.get("conditionalDisplay")
    if not condition or not isinstance(condition, str):
        return True
    is_template = "{{" in condition
    evaluated = process(condition if is_template else "{{" + condition + "}}", state.context).strip()
    if not evaluated or evaluated == "false":
        return False
    if is_template and evaluated != "show":
        return False
    return True


def _render_button(state: _Pass, slot: SlotDescriptor, resolved: _Resolved, depth: int) -> RenderNode | None:
    opts = state.options
    translated = resolve_translation_key(slot.content, opts.translate, opts.language, opts.mode)
    content = translated if translated is not None else process(slot.content, state.context, escape=True)
    content = content or "Button"
    class_name = resolved.class_name
    styles = dict(resolved.styles)
    product = _product(state)
    action = _button_action(slot)

    disabled = action == "add_to_cart" and _cannot_add_to_cart(product)
    if disabled:
        out_of_stock_content = slot.metadata.get("outOfStockContent")
        if isinstance(out_of_stock_content, str) and out_of_stock_content:
            content = process(out_of_stock_content, state.context, escape=True)
        out_of_stock_class = slot.metadata.get("outOfStockClassName")
        if isinstance(out_of_stock_class, str) and out_of_stock_class:
            class_name = out_of_stock_class
            styles.pop("backgroundColor", None)

    if action == "wishlist" and _in_wishlist(state, product):
        wishlist_content = slot.metadata.get("wishlistContent")
        content = process(wishlist_content, state.context, escape=True) if wishlist_content else "❤️"
        class_name = f"{class_name} text-red-500".strip()
        styles["color"] = "#ef4444"

    node = RenderNode(
        tag="button",
        attrs={
            "type": "button",
            "class": class_name or None,
            "style": styles or None,
            "disabled": disabled,
            "data-action": action,
        },
        slot_id=slot.id,
    )
    if "<" in content and ">" in content:
        node.children.append(RenderNode(tag="span", attrs={"class": "flex items-center"}, html=content))
    else:
        node.html = content

    if opts.is_editor:
        _make_selectable(state, slot, node)
    elif action is not None and not disabled:
        handler = _action_handler(state, action, product, slot)
        if handler is not None:
            node.handlers["click"] = handler
    return node


def _button_action(slot: SlotDescriptor) -> str | None:
    action = slot.metadata.get("action")
    if isinstance(action, str) and action in BUTTON_ACTIONS:
        return action
    return _DEFAULT_BUTTON_ACTIONS.get(slot.id)


def _cannot_add_to_cart(product: dict[str, Any] | None) -> bool:
    if not product:
        return False
    return is_out_of_stock(product) or product.get("in_stock") is False or product.get("canAddToCart") is False


def _in_wishlist(state: _Pass, product: dict[str, Any] | None) -> bool:
    if state.context.get("isInWishlist") or (product or {}).get("isInWishlist"):
        return True
    wishlist = state.context.get("wishlist")
    if not product or not isinstance(wishlist, list):
        return False
    product_id = product.get("id")
    for entry in wishlist:
        entry_id = entry.get("product_id") if isinstance(entry, Mapping) else entry
        if product_id is not None and entry_id == product_id:
            return True
    return False


def _action_handler(
    state: _Pass, action: str, product: dict[str, Any] | None, slot: SlotDescriptor
) -> Callable[..., None] | None:
    """Bind a production button to its domain action. None when unbound."""
    actions = state.options.actions
    if action == "add_to_cart" and actions.add_to_cart is not None and product:
        target, args = actions.add_to_cart, (product,)
    elif action == "wishlist" and actions.toggle_wishlist is not None and product:
        target, args = actions.toggle_wishlist, (product,)
    elif action == "logout" and actions.logout is not None:
        target, args = actions.logout, ()
    elif action == "navigate" and actions.navigate is not None:
        url = slot.metadata.get("url") or _store_home(state)
        if not url:
            return None
        target, args = actions.navigate, (url,)
    else:
        return None

    def on_click(*_event: Any) -> None:
        try:
            target(*args)
        except Exception:
            logger.exception("button %s: %s action failed", slot.id, action)

    return on_click


def _render_image(state: _Pass, slot: SlotDescriptor, resolved: _Resolved, depth: int) -> RenderNode | None:
    editor = state.options.is_editor
    product = _product(state)
    src = process(slot.content, state.context)

    if slot.id == "product_image" and product:
        src = _active_image(state, product) or src

    if _is_malformed_source(src):
        if editor:
            src = settings.PLACEHOLDER_IMAGE_URL
        else:
            src = (product_image_url(product) if product else "") or settings.NO_IMAGE_URL

    styles = {k: v for k, v in resolved.styles.items() if k != "width"}
    styles["width"] = "100%"
    node = RenderNode(
        tag="img",
        attrs={
            "src": src,
            "alt": (product or {}).get("name") or "Image",
            "class": resolved.class_name or None,
            "style": styles,
        },
        slot_id=slot.id,
    )

    if editor:
        _make_selectable(state, slot, node)
        return node

    if slot.id in _PRODUCT_LINK_IMAGES or slot.metadata.get("linkToProduct"):
        href = _product_href(state)
        if href:
            return RenderNode(tag="a", attrs={"href": href, "class": "block relative"}, children=[node])
    return node


def _is_malformed_source(src: str) -> bool:
    if not src or src == "product-main-image":
        return True
    if "{{" in src or "}}" in src or any(ch.isspace() for ch in src.strip()):
        return True
    return src.strip().lower().startswith(("javascript:", "vbscript:"))


def _active_image(state: _Pass, product: Mapping[str, Any]) -> str:
    images = product.get("images")
    index = state.context.get("activeImageIndex") or 0
    if isinstance(images, list) and isinstance(index, int) and 0 <= index < len(images):
        image = images[index]
        if isinstance(image, Mapping):
            return image.get("url") or ""
        if isinstance(image, str):
            return image
    return product_image_url(product)


def _render_container(state: _Pass, slot: SlotDescriptor, resolved: _Resolved, depth: int) -> RenderNode | None:
    opts = state.options
    if slot.id in state.visiting:
        state.warn_once(f"cycle:{slot.id}", "slot %s is its own ancestor, subtree skipped", slot.id)
        return None
    if depth >= settings.MAX_TREE_DEPTH:
        state.warn_once(f"depth:{slot.id}", "slot %s exceeds max tree depth %d", slot.id, settings.MAX_TREE_DEPTH)
        return None

    # Elide before recursing: no admissible child, no wrapper
    if not admissible_children(state.index.children_of(slot.id), opts.view_mode, opts.flags):
        return None

    state.visiting.add(slot.id)
    try:
        children = _render_children(state, slot.id, depth + 1)
    finally:
        state.visiting.discard(slot.id)
    if not children:
        return None

    slot_type = slot.slot_type
    class_name = resolved.class_name or _CONTAINER_CLASSES[slot_type]
    if opts.is_editor and slot_type is SlotType.CONTAINER and "grid" not in class_name:
        class_name = f"grid grid-cols-12 gap-2 {class_name}".strip()

    node = RenderNode(
        tag="div",
        attrs={"class": class_name or None, "style": resolved.styles or None},
        children=children,
        slot_id=slot.id,
    )
    if opts.is_editor:
        node.attrs["data-slot-id"] = slot.id
    return node


def _render_component(state: _Pass, slot: SlotDescriptor, resolved: _Resolved, depth: int) -> RenderNode | None:
    name = slot.component_name
    component = state.registry.get(name)
    if component is None:
        state.warn_once(f"component:{name}", "slot %s: unknown component %s", slot.id, name)
        if not state.options.is_editor:
            return None
        label = f"[{name} component]" if name else "[Unknown component]"
        return RenderNode(
            tag="div",
            attrs={"class": resolved.class_name or None, "style": resolved.styles or None, "data-slot-id": slot.id},
            text=label,
            slot_id=slot.id,
        )

    invocation = ComponentInvocation(
        slot=slot,
        class_name=resolved.class_name,
        styles=resolved.styles,
        content=process(slot.content, state.context, escape=True),
        data=state.context,
        slots=state.index,
        options=state.options,
        render_children=lambda parent_id: _render_children(state, parent_id, depth + 1),
    )
    result = component.render(invocation)
    node = _as_node(result, resolved)
    if node is not None and node.slot_id is None:
        node.slot_id = slot.id
    if node is not None and state.options.is_editor:
        _make_selectable(state, slot, node)
    return node


def _as_node(result: Any, resolved: _Resolved) -> RenderNode | None:
    """Components may return a node, a list of nodes, markup, or nothing."""
    if result is None:
        return None
    if isinstance(result, RenderNode):
        return result
    if isinstance(result, str):
        if not result:
            return None
        return RenderNode(tag="div", attrs={"class": resolved.class_name or None}, html=result)
    if isinstance(result, (list, tuple)):
        children = [r for r in result if isinstance(r, RenderNode)]
        return RenderNode(tag="", children=children) if children else None
    raise TypeError(f"component returned {type(result).__name__}, expected RenderNode")


def _render_cms(state: _Pass, slot: SlotDescriptor, resolved: _Resolved, depth: int) -> RenderNode | None:
    editor = state.options.is_editor
    placement = slot.cms_block_position or slot.metadata.get("cmsBlockPosition") or None
    store_id = _store(state).get("id")
    if state.cms is None:
        cms_state = EMPTY
    else:
        cms_state = state.cms.state(placement, str(store_id) if store_id is not None else None, slot.id)

    if cms_state.status is CmsStatus.READY:
        return RenderNode(
            tag="div",
            attrs={"class": resolved.class_name or None, "style": resolved.styles or None},
            html=cms_state.content,
            slot_id=slot.id,
        )
    if not editor:
        # Counted as mounted so the pending lookup is not discarded as stale
        state.mounted.append(slot.id)
        return None

    if cms_state.status is CmsStatus.LOADING:
        lines = [RenderNode(tag="p", attrs={"class": "text-gray-500 text-sm"}, text="Loading CMS block...")]
    else:
        lines = [
            RenderNode(tag="p", attrs={"class": "text-gray-500 text-sm"}, text=f"CMS Block: {placement or ''}"),
            RenderNode(tag="p", attrs={"class": "text-gray-400 text-xs mt-1"}, text="No content assigned"),
        ]
    return RenderNode(
        tag="div",
        attrs={
            "class": f"{resolved.class_name} {_PLACEHOLDER_BOX} border-gray-300".strip(),
            "style": resolved.styles or None,
            "data-slot-id": slot.id,
        },
        children=lines,
        slot_id=slot.id,
    )


def _render_plugin_widget(state: _Pass, slot: SlotDescriptor, resolved: _Resolved, depth: int) -> RenderNode | None:
    widget_id = slot.widget_id or slot.metadata.get("widgetId")
    if state.options.is_editor:
        return RenderNode(
            tag="div",
            attrs={
                "class": f"{resolved.class_name} {_PLACEHOLDER_BOX} border-purple-300 bg-purple-50".strip(),
                "style": resolved.styles or None,
                "data-slot-id": slot.id,
            },
            children=[
                RenderNode(tag="p", attrs={"class": "text-purple-700 text-sm font-medium"},
                           text=f"Plugin Widget: {widget_id or ''}"),
                RenderNode(tag="p", attrs={"class": "text-purple-500 text-xs mt-1"},
                           text="Preview not available in editor"),
            ],
            slot_id=slot.id,
        )
    if not widget_id:
        return None
    config = slot.widget_config or slot.metadata.get("widgetConfig") or {}
    return RenderNode(
        tag="div",
        attrs={"class": resolved.class_name or None, "style": resolved.styles or None, "data-widget-id": widget_id},
        slot_id=slot.id,
        deferred=DeferredMount(widget_id=widget_id, config=config),
    )


def _render_style_config(state: _Pass, slot: SlotDescriptor, resolved: _Resolved, depth: int) -> RenderNode | None:
    return None


def _render_unknown(state: _Pass, slot: SlotDescriptor, resolved: _Resolved) -> RenderNode | None:
    state.warn_once(f"type:{slot.type}", "slot %s has unknown type %r", slot.id, slot.type)
    content = process(slot.content, state.context, escape=True)
    if not content and not state.options.is_editor:
        return None
    node = RenderNode(
        tag="div",
        attrs={"class": resolved.class_name or None, "style": resolved.styles or None},
        slot_id=slot.id,
    )
    if content:
        node.html = content
    else:
        node.text = f"[{slot.type or 'unknown'} slot]"
    return node


_DISPATCH: dict[SlotType, Callable[[_Pass, SlotDescriptor, _Resolved, int], RenderNode | None]] = {
    SlotType.TEXT: _render_text,
    SlotType.HTML: _render_text,
    SlotType.BUTTON: _render_button,
    SlotType.IMAGE: _render_image,
    SlotType.CONTAINER: _render_container,
    SlotType.GRID: _render_container,
    SlotType.FLEX: _render_container,
    SlotType.COMPONENT: _render_component,
    SlotType.CMS: _render_cms,
    SlotType.PLUGIN_WIDGET: _render_plugin_widget,
    SlotType.STYLE_CONFIG: _render_style_config,
}


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------


def _wrap(state: _Pass, slot: SlotDescriptor, content: RenderNode) -> RenderNode:
    """
    Place a rendered slot on the grid. Absolutely positioned slots and slots
    whose colSpan is an explicitly empty mapping are emitted as-is.
    """
    opts = state.options
    if _is_absolute(slot) or (isinstance(slot.col_span, Mapping) and not slot.col_span):
        content.key = content.key or slot.id
        return content

    span = resolve_col_span(slot.col_span, opts.viewport, opts.mode, opts.view_mode)
    parent_class = process(slot.parent_class_name, state.context)
    class_name = " ".join(part for part in (span.css_class, parent_class) if part)

    if not opts.is_editor:
        return RenderNode(
            tag="div",
            attrs={"class": class_name or None, "style": dict(slot.container_styles) or None},
            children=[content],
            key=slot.id,
        )

    wrapper = RenderNode(
        tag="div",
        attrs={
            "class": class_name or None,
            "style": {"gridColumn": span.grid_column, **slot.container_styles},
            "data-slot-id": slot.id,
            "data-viewport": opts.viewport.value,
            "data-col-span": span.span,
            "data-selected": "true" if opts.selected_slot_id == slot.id else None,
            "draggable": "false" if slot.id in PROTECTED_SLOT_IDS else "true",
        },
        children=[content],
        key=f"{slot.id}-{opts.viewport.value}",
    )
    wrapper.handlers.update(_editor_handlers(state, slot, wrapper))
    return wrapper


def _is_absolute(slot: SlotDescriptor) -> bool:
    return "absolute" in slot.class_name.split() or slot.styles.get("position") == "absolute"


def _make_selectable(state: _Pass, slot: SlotDescriptor, node: RenderNode) -> None:
    node.attrs["data-slot-id"] = slot.id
    node.attrs["data-editable"] = "true"
    on_click = state.options.callbacks.on_element_click
    if on_click is not None:
        node.handlers["click"] = lambda *_event: on_click(slot.id, node)


def _editor_handlers(state: _Pass, slot: SlotDescriptor, wrapper: RenderNode) -> dict[str, Callable[..., Any]]:
    """
    Interaction bindings of one editor wrapper. A missing callback leaves
    the matching interaction unbound.
    """
    callbacks = state.options.callbacks
    slot_id = slot.id
    handlers: dict[str, Callable[..., Any]] = {}

    if callbacks.on_element_click is not None:
        handlers["click"] = lambda *_event: callbacks.on_element_click(slot_id, wrapper)
    if callbacks.on_grid_resize is not None:
        handlers["grid_resize"] = lambda col_span: callbacks.on_grid_resize(slot_id, col_span)
    if callbacks.on_slot_height_resize is not None:
        handlers["height_resize"] = lambda height: callbacks.on_slot_height_resize(slot_id, height)
    if callbacks.on_slot_drop is not None:
        handlers["drop"] = lambda dragged_id, position: callbacks.on_slot_drop(dragged_id, slot_id, position)
    if callbacks.on_slot_delete is not None and slot_id not in PROTECTED_SLOT_IDS:
        handlers["delete"] = lambda *_event: callbacks.on_slot_delete(slot_id)

    if slot.metadata.get("disableResize"):
        return handlers

    if callbacks.on_resize_start is not None:
        handlers["resize_start"] = lambda *_event: callbacks.on_resize_start(slot_id)
    if callbacks.on_resize_end is not None:
        handlers["resize_end"] = lambda *_event: callbacks.on_resize_end(slot_id)
    if callbacks.set_tree is not None or callbacks.persist is not None:
        snapshot = state.slots

        def on_resize(width: float, **size: Any) -> None:
            result = reducer.resize_slot(snapshot, slot_id, width, **size)
            if not result.applied:
                logger.warning("resize of slot %s rejected: %s", slot_id, result.error)
                return
            if callbacks.set_tree is not None:
                callbacks.set_tree(result.slots)
            if callbacks.persist is not None:
                callbacks.persist(slot_id, result.slots)

        handlers["resize"] = on_resize
    return handlers


# ---------------------------------------------------------------------------
# Context helpers
# ---------------------------------------------------------------------------


def _product(state: _Pass) -> dict[str, Any] | None:
    product = state.context.get("product")
    return dict(product) if isinstance(product, Mapping) else None


def _store(state: _Pass) -> Mapping[str, Any]:
    store = state.context.get("store")
    return store if isinstance(store, Mapping) else {}


def _product_href(state: _Pass) -> str | None:
    """`/{store}/product/{product}` when both slugs resolve."""
    store_slug = _store(state).get("slug")
    product_slug = (_product(state) or {}).get("slug")
    if not store_slug or not product_slug:
        return None
    return f"/{store_slug}/product/{product_slug}"


def _store_home(state: _Pass) -> str | None:
    store_slug = _store(state).get("slug")
    return f"/{store_slug}" if store_slug else None
