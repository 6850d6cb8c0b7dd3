"""
Slotkit Kernel — Data Context Builder

Turns raw page data (catalog records, cart totals, filter state) into the
read-only DataContext a render pass consumes. Display strings that templates
interpolate (formatted prices, stock labels, product urls) are computed here
once, so the render walk itself stays a plain lookup.

Pure: same input → same output. Editor mode without a product falls back to
the deterministic preview data in demo.py.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from slotkit.kernel.demo import generate_demo_data
from slotkit.kernel.formatting import format_price, format_price_number, is_out_of_stock, stock_label, to_number
from slotkit.kernel.types import RenderMode

logger = logging.getLogger(__name__)

PAGE_TYPES: set[str] = {"product", "category", "cart", "header", "checkout", "success", "account", "login"}

# Scopes copied through unchanged when present in the raw data
PASSTHROUGH_SCOPES: tuple[str, ...] = (
    "filters",
    "activeFilters",
    "breadcrumbs",
    "productTabs",
    "wishlist",
    "user",
    "categories",
    "selectedFilters",
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_data_context(
    page_type: str,
    raw_data: Mapping[str, Any] | None = None,
    store: Mapping[str, Any] | None = None,
    store_settings: Mapping[str, Any] | None = None,
    *,
    mode: RenderMode | str = RenderMode.PRODUCTION,
    language: str = "en",
    translations: Mapping[str, Any] | None = None,
    product_labels: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """
    Build the DataContext for one page view.

    Unknown page types still get the base context (store, settings,
    language, translations) merged with the raw data.
    """
    raw = dict(raw_data or {})
    mode = RenderMode.parse(mode)
    store = dict(store or {})
    enriched = enrich_settings(store_settings)

    if mode is RenderMode.EDITOR and not raw.get("product") and page_type in ("product", "category", "cart"):
        demo = generate_demo_data(page_type, enriched)
        raw = {**demo, **{k: v for k, v in raw.items() if v}}
        enriched = demo["settings"]

    context: dict[str, Any] = {
        "store": store,
        "settings": enriched,
        "currentLanguage": language,
        "translations": dict(translations or {}),
    }

    if page_type not in PAGE_TYPES:
        logger.warning("build_data_context: unknown page type %s, returning base context", page_type)
        return {**context, **raw}

    format_args = {"store": store, "settings": enriched, "translations": translations, "labels": product_labels}

    product = raw.get("product")
    if isinstance(product, Mapping):
        context["product"] = format_product(product, **format_args)
    related = raw.get("relatedProducts")
    if isinstance(related, list):
        context["relatedProducts"] = format_products(related, **format_args)
    products = raw.get("products")
    if isinstance(products, list):
        context["products"] = format_products(products, **format_args)

    category = raw.get("category")
    if isinstance(category, Mapping):
        context["category"] = dict(category)

    cart = raw.get("cart")
    if isinstance(cart, Mapping):
        context["cart"] = format_cart(cart, enriched)

    context["pagination"] = build_pagination(raw.get("pagination"), len(context.get("products") or []))

    for scope in PASSTHROUGH_SCOPES:
        if scope in raw:
            context[scope] = raw[scope]
    if "productLabels" in raw:
        context["productLabels"] = raw["productLabels"]

    # Anything else the caller handed in stays reachable from templates
    for key, value in raw.items():
        context.setdefault(key, value)
    return context


def enrich_settings(store_settings: Mapping[str, Any] | None) -> dict[str, Any]:
    enriched = dict(store_settings or {})
    enriched.setdefault("collapse_filters", False)
    enriched["max_visible_attributes"] = enriched.get("max_visible_attributes") or 5
    return enriched


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def price_display(product: Mapping[str, Any]) -> dict[str, Any]:
    """
    The price a shopper pays and the original it is compared against.

    A positive compare_price different from price marks a sale: the lower
    of the two is displayed, the higher shown struck through.
    """
    price = to_number(product.get("price")) or 0.0
    compare = to_number(product.get("compare_price"))
    if compare is not None and compare > 0 and compare != price:
        return {
            "display": min(price, compare),
            "original": max(price, compare),
            "has_compare": True,
            "is_sale": True,
        }
    return {"display": price, "original": None, "has_compare": False, "is_sale": False}


def product_url(store: Mapping[str, Any] | None, product: Mapping[str, Any]) -> str:
    store = store or {}
    store_slug = store.get("public_storecode") or store.get("slug") or store.get("code")
    product_slug = product.get("slug") or product.get("id")
    if not store_slug or not product_slug:
        return ""
    return f"/{store_slug}/product/{product_slug}"


def product_image_url(product: Mapping[str, Any]) -> str:
    images = product.get("images")
    if isinstance(images, list) and images:
        first = images[0]
        if isinstance(first, Mapping):
            return first.get("url") or ""
        if isinstance(first, str):
            return first
    return product.get("image_url") or product.get("image") or ""


def format_product(
    product: Mapping[str, Any],
    store: Mapping[str, Any] | None = None,
    settings: Mapping[str, Any] | None = None,
    translations: Mapping[str, Any] | None = None,
    labels: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Product record plus the display fields templates interpolate."""
    prices = price_display(product)
    label = stock_label(product, settings, translations)
    original = prices["original"]

    formatted = dict(product)
    formatted.update(
        {
            "price_formatted": format_price(prices["display"], settings),
            "compare_price_formatted": format_price(original, settings) if prices["has_compare"] else "",
            "price_number": format_price_number(prices["display"]),
            "compare_price_number": format_price_number(original) if prices["has_compare"] else "",
            "image_url": product_image_url(product),
            "url": product.get("url") or product_url(store, product),
            "in_stock": not is_out_of_stock(product),
            "stock_label": label.text if label else "",
            "stock_label_style": (
                {"color": label.text_color, "backgroundColor": label.bg_color} if label else {}
            ),
            "is_sale": prices["is_sale"],
        }
    )
    if labels is not None:
        formatted["labels"] = matching_labels(product, labels)
    return formatted


def format_products(products: list[Any], **kwargs: Any) -> list[dict[str, Any]]:
    return [format_product(p, **kwargs) for p in products if isinstance(p, Mapping)]


def matching_labels(product: Mapping[str, Any], labels: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Product labels (new / sale / featured) that apply to `product`."""
    applies = {
        "new": bool(product.get("is_new")),
        "sale": bool(product.get("compare_price")),
        "featured": bool(product.get("is_featured")),
    }
    matched = []
    for label in labels:
        if not isinstance(label, Mapping) or not applies.get(label.get("type"), False):
            continue
        background = label.get("background_color")
        matched.append(
            {
                "text": label.get("text") or "",
                "className": f"bg-[{background}] text-white" if background else "bg-red-600 text-white",
            }
        )
    return matched


# ---------------------------------------------------------------------------
# Cart and pagination
# ---------------------------------------------------------------------------


def format_cart(cart: Mapping[str, Any], settings: Mapping[str, Any] | None = None) -> dict[str, Any]:
    formatted = dict(cart)
    for field in ("subtotal", "discount", "tax", "shipping", "total"):
        formatted[f"{field}_formatted"] = format_price(to_number(cart.get(field)) or 0, settings)
    items = cart.get("items")
    if isinstance(items, list):
        formatted["items"] = [_format_cart_item(item, settings) for item in items if isinstance(item, Mapping)]
        formatted.setdefault("item_count", sum(int(to_number(i.get("quantity")) or 1) for i in formatted["items"]))
    return formatted


def _format_cart_item(item: Mapping[str, Any], settings: Mapping[str, Any] | None) -> dict[str, Any]:
    price = to_number(item.get("price")) or 0.0
    quantity = to_number(item.get("quantity")) or 1
    total = price * quantity
    return {
        **item,
        "base_price_formatted": format_price(price, settings),
        "item_total": total,
        "item_total_formatted": format_price(total, settings),
    }


def build_pagination(raw: Any, shown: int) -> dict[str, Any]:
    """
    Pagination scope with a human count text:
    "1 product", "8 products", "13-24 of 30 products", "No products found".
    """
    raw = raw if isinstance(raw, Mapping) else {}
    current = int(to_number(raw.get("currentPage")) or 1)
    per_page = int(to_number(raw.get("itemsPerPage")) or max(shown, 1))
    total = int(to_number(raw.get("totalProducts")) or shown)
    start = (current - 1) * per_page + 1 if total > 0 else 0
    end = min(current * per_page, total)
    word = "product" if total == 1 else "products"

    if total == 0:
        count_text = "No products found"
    elif start == 1 and end == total:
        count_text = f"{total} {word}"
    else:
        count_text = f"{start}-{end} of {total} {word}"

    return {
        **raw,
        "currentPage": current,
        "totalPages": int(to_number(raw.get("totalPages")) or max(1, -(-total // per_page))),
        "itemsPerPage": per_page,
        "totalProducts": total,
        "startIndex": start,
        "endIndex": end,
        "countText": count_text,
    }
