"""
Slotkit Kernel — Built-in Components

Self-contained slot renderers registered on the default registry at import.
Each one builds a small Mustache context from the data context and renders
its markup with chevron. A template failure falls back to an empty wrapper
so one broken component never takes the page down.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import chevron

from slotkit.kernel.formatting import format_price, to_number
from slotkit.kernel.registry import ComponentInvocation, ComponentRegistry, default_registry
from slotkit.kernel.types import RenderNode

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

QUANTITY_SELECTOR_TEMPLATE = (
    '<label for="quantity-input" class="font-medium text-sm">{{label}}</label>'
    '<div class="flex items-center border rounded-lg">'
    '<button type="button" class="p-2" data-action="decrease"{{#at_min}} disabled{{/at_min}}>-</button>'
    '<input id="quantity-input" type="number" value="{{quantity}}" min="1"{{#has_max}} max="{{max}}"{{/has_max}}'
    ' class="w-16 text-center border-x">'
    '<button type="button" class="p-2" data-action="increase">+</button>'
    "</div>"
)

BREADCRUMBS_TEMPLATE = (
    '<ol class="flex items-center gap-1 text-sm">'
    "{{#crumbs}}<li>"
    '{{#has_url}}<a href="{{url}}" class="hover:underline">{{name}}</a>{{/has_url}}'
    "{{^has_url}}<span>{{name}}</span>{{/has_url}}"
    '{{^last}}<span class="mx-1">/</span>{{/last}}'
    "</li>{{/crumbs}}"
    "</ol>"
)

TABS_TEMPLATE = (
    '<div class="flex border-b" role="tablist">'
    '{{#tabs}}<button type="button" role="tab" class="px-4 py-2{{#active}} border-b-2 font-medium{{/active}}"'
    ' data-tab="{{id}}">{{title}}</button>{{/tabs}}'
    "</div>"
    '{{#tabs}}{{#active}}<div class="py-4" role="tabpanel">{{{content}}}</div>{{/active}}{{/tabs}}'
)

TOTAL_PRICE_TEMPLATE = (
    '<div class="flex justify-between"><span>{{subtotal_label}}</span><span>{{subtotal}}</span></div>'
    '{{#has_discount}}<div class="flex justify-between text-green-600"><span>{{discount_label}}</span>'
    "<span>-{{discount}}</span></div>{{/has_discount}}"
    '<div class="flex justify-between font-bold"><span>{{total_label}}</span><span>{{total}}</span></div>'
)

ACTIVE_FILTERS_TEMPLATE = (
    '<div class="flex flex-wrap gap-2">'
    '{{#filters}}<span class="px-2 py-1 rounded bg-gray-100 text-sm" data-filter="{{type}}">'
    "{{label}}: {{value}}</span>{{/filters}}"
    "</div>"
)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def render_quantity_selector(invocation: ComponentInvocation) -> RenderNode | None:
    store_settings = _mapping(invocation.data.get("settings"))
    if store_settings.get("hide_quantity_selector"):
        return None
    product = _mapping(invocation.data.get("product"))
    quantity = int(to_number(invocation.data.get("quantity")) or 1)
    max_quantity = None
    if not product.get("infinite_stock") and to_number(product.get("stock_quantity")):
        max_quantity = int(to_number(product.get("stock_quantity")) or 0)
    context = {
        "label": invocation.content or "Quantity",
        "quantity": quantity,
        "at_min": quantity <= 1,
        "max": max_quantity,
        "has_max": max_quantity is not None,
    }
    return _component_node(invocation, QUANTITY_SELECTOR_TEMPLATE, context, "div")


def render_breadcrumbs(invocation: ComponentInvocation) -> RenderNode | None:
    crumbs = invocation.data.get("breadcrumbs")
    if not isinstance(crumbs, list) or not crumbs:
        crumbs = _default_crumbs(invocation.data)
    items = [c for c in crumbs if isinstance(c, Mapping) and c.get("name")]
    if not items:
        return None
    context = {
        "crumbs": [
            {"name": c["name"], "url": c.get("url") or "", "has_url": bool(c.get("url")), "last": i == len(items) - 1}
            for i, c in enumerate(items)
        ]
    }
    return _component_node(invocation, BREADCRUMBS_TEMPLATE, context, "nav", {"aria-label": "Breadcrumb"})


def _default_crumbs(data: Mapping[str, Any]) -> list[dict[str, Any]]:
    crumbs: list[dict[str, Any]] = [{"name": "Home", "url": "/"}]
    category = _mapping(data.get("category"))
    if category.get("name"):
        crumbs.append({"name": category["name"], "url": category.get("url") or ""})
    product = _mapping(data.get("product"))
    if product.get("name"):
        crumbs.append({"name": product["name"]})
    return crumbs if len(crumbs) > 1 else []


def render_product_tabs(invocation: ComponentInvocation) -> RenderNode | None:
    tabs = invocation.data.get("productTabs")
    if not isinstance(tabs, list):
        tabs = _mapping(invocation.data.get("product")).get("tabs")
    if not isinstance(tabs, list) or not tabs:
        return None
    entries = [t for t in tabs if isinstance(t, Mapping)]
    if not entries:
        return None
    active = invocation.data.get("activeTab") or entries[0].get("id")
    context = {
        "tabs": [
            {
                "id": t.get("id") or str(i),
                "title": t.get("title") or t.get("name") or "",
                "content": t.get("content") or "",
                "active": (t.get("id") or str(i)) == active,
            }
            for i, t in enumerate(entries)
        ]
    }
    return _component_node(invocation, TABS_TEMPLATE, context, "div")


def render_total_price(invocation: ComponentInvocation) -> RenderNode | None:
    cart = _mapping(invocation.data.get("cart"))
    store_settings = _mapping(invocation.data.get("settings"))
    subtotal = to_number(cart.get("subtotal")) or 0.0
    discount = to_number(cart.get("discount")) or 0.0
    total = to_number(cart.get("total"))
    if total is None:
        total = max(subtotal - discount, 0.0)
    context = {
        "subtotal_label": "Subtotal",
        "discount_label": "Discount",
        "total_label": "Total",
        "subtotal": format_price(subtotal, store_settings),
        "discount": format_price(discount, store_settings) if discount else "",
        "has_discount": bool(discount),
        "total": format_price(total, store_settings),
    }
    return _component_node(invocation, TOTAL_PRICE_TEMPLATE, context, "div")


def render_active_filters(invocation: ComponentInvocation) -> RenderNode | None:
    filters = invocation.data.get("activeFilters")
    entries = [f for f in filters if isinstance(f, Mapping)] if isinstance(filters, list) else []
    if not entries:
        return None
    context = {
        "filters": [
            {"type": f.get("type") or "", "label": f.get("label") or f.get("type") or "", "value": f.get("value") or ""}
            for f in entries
        ]
    }
    return _component_node(invocation, ACTIVE_FILTERS_TEMPLATE, context, "div")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _component_node(
    invocation: ComponentInvocation,
    template: str,
    context: dict[str, Any],
    tag: str,
    extra_attrs: dict[str, Any] | None = None,
) -> RenderNode:
    try:
        inner = chevron.render(template, context)
    except Exception:
        logger.exception("component %s failed to render its template", invocation.slot.component_name)
        inner = ""
    attrs: dict[str, Any] = {"class": invocation.class_name or None}
    if invocation.styles:
        attrs["style"] = invocation.styles
    if extra_attrs:
        attrs.update(extra_attrs)
    return RenderNode(tag=tag, attrs=attrs, html=inner, slot_id=invocation.slot.id)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


BUILTIN_COMPONENTS = {
    "QuantitySelector": render_quantity_selector,
    "ProductBreadcrumbs": render_breadcrumbs,
    "ProductTabs": render_product_tabs,
    "TotalPriceDisplay": render_total_price,
    "ActiveFilters": render_active_filters,
}


def register_builtin_components(registry: ComponentRegistry) -> None:
    for name, render in BUILTIN_COMPONENTS.items():
        registry.register(name, render)


register_builtin_components(default_registry)
