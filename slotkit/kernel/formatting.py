"""
Slotkit Kernel — Display Formatting

Pure helpers that turn raw catalog values into display strings: prices,
stock labels, and the generic value → string rule used by template
interpolation.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from slotkit.config import settings as _settings

# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------


def to_number(value: Any) -> float | None:
    """Parse a number the lenient way catalog data needs. None if not a finite number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            parsed = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return parsed if math.isfinite(parsed) else None


def format_price_number(value: Any, decimals: int = 2) -> str:
    number = to_number(value)
    if number is None:
        number = 0.0
    return f"{number:,.{decimals}f}"


def format_price(value: Any, store_settings: Mapping[str, Any] | None = None) -> str:
    """12.5 → "$12.50" using the store's currency symbol."""
    symbol = _currency_symbol(store_settings)
    return f"{symbol}{format_price_number(value)}"


def _currency_symbol(store_settings: Mapping[str, Any] | None) -> str:
    if store_settings:
        symbol = store_settings.get("currency_symbol")
        if isinstance(symbol, str) and symbol:
            return symbol
    return _settings.CURRENCY_SYMBOL


# ---------------------------------------------------------------------------
# Stock labels
# ---------------------------------------------------------------------------

DEFAULT_STOCK_LABELS: dict[str, str] = {
    "in_stock_label": "In Stock",
    "out_of_stock_label": "Out of Stock",
    "low_stock_label": "Low stock, {only {quantity} {item} left}",
}

DEFAULT_STOCK_COLORS: dict[str, str] = {
    "in_stock_text_color": "#166534",
    "in_stock_bg_color": "#dcfce7",
    "out_of_stock_text_color": "#991b1b",
    "out_of_stock_bg_color": "#fee2e2",
    "low_stock_text_color": "#92400e",
    "low_stock_bg_color": "#fef3c7",
}

_PLURALS: dict[str, tuple[str, str]] = {
    "item": ("item", "items"),
    "unit": ("unit", "units"),
    "piece": ("piece", "pieces"),
}

_PLACEHOLDER = re.compile(r"\{(quantity|items?|units?|pieces?)\}", re.IGNORECASE)


@dataclass
class StockLabel:
    text: str
    text_color: str
    bg_color: str
    state: str  # "in_stock" | "low_stock" | "out_of_stock"


def is_out_of_stock(product: Mapping[str, Any] | None) -> bool:
    if not product:
        return False
    if product.get("infinite_stock"):
        return False
    if product.get("stock_status") == "out_of_stock":
        return True
    quantity = to_number(product.get("stock_quantity"))
    return quantity is not None and quantity <= 0


def stock_label(
    product: Mapping[str, Any] | None,
    store_settings: Mapping[str, Any] | None = None,
    translations: Mapping[str, Any] | None = None,
) -> StockLabel | None:
    """
    Pick the in / low / out-of-stock label for a product.
    Returns None when labels are disabled or the product is configurable.
    """
    store_settings = store_settings or {}
    stock_settings = store_settings.get("stock_settings") or {}
    show = store_settings.get("show_stock_label")
    if show is None:
        show = stock_settings.get("show_stock_label") is not False
    if not show or not product or product.get("type") == "configurable":
        return None

    labels = (translations or {}).get("stock") or {}

    def label(name: str) -> str:
        return labels.get(name) or stock_settings.get(name) or DEFAULT_STOCK_LABELS[name]

    def colors(state: str) -> tuple[str, str]:
        text_key, bg_key = f"{state}_text_color", f"{state}_bg_color"
        return (
            stock_settings.get(text_key) or DEFAULT_STOCK_COLORS[text_key],
            stock_settings.get(bg_key) or DEFAULT_STOCK_COLORS[bg_key],
        )

    if product.get("infinite_stock"):
        text = process_label(label("in_stock_label"), None, translations)
        return StockLabel(text, *colors("in_stock"), state="in_stock")

    quantity = to_number(product.get("stock_quantity")) or 0
    if quantity <= 0:
        return StockLabel(label("out_of_stock_label"), *colors("out_of_stock"), state="out_of_stock")

    shown = None if store_settings.get("hide_stock_quantity") is True else int(quantity)
    threshold = to_number(product.get("low_stock_threshold")) or to_number(
        store_settings.get("display_low_stock_threshold")
    )
    if threshold and quantity <= threshold:
        text = process_label(label("low_stock_label"), shown, translations)
        return StockLabel(text, *colors("low_stock"), state="low_stock")

    text = process_label(label("in_stock_label"), shown, translations)
    return StockLabel(text, *colors("in_stock"), state="in_stock")


def process_label(label: str, quantity: int | None, translations: Mapping[str, Any] | None = None) -> str:
    """
    Fill {quantity}/{item}/{unit}/{piece} placeholders.

    With quantity None every brace block that holds a placeholder is removed:
    "In Stock, {only {quantity} {item} left}" → "In Stock".
    """
    if not label:
        return ""

    if quantity is None:
        cleaned = _remove_placeholder_blocks(label)
        cleaned = _PLACEHOLDER.sub("", cleaned)
        cleaned = re.sub(r"\s+", " ", cleaned)
        return re.sub(r",\s*$", "", cleaned).strip()

    common = (translations or {}).get("common") or {}

    def plural(match: re.Match) -> str:
        word = match.group(1).lower()
        if word == "quantity":
            return str(quantity)
        singular = word.rstrip("s")
        one, many = _PLURALS.get(singular, (singular, word))
        one = common.get(singular) or one
        many = common.get(f"{singular}s") or many
        return one if quantity == 1 else many

    filled = _PLACEHOLDER.sub(plural, label)
    return re.sub(r"\s+", " ", filled.replace("{", "").replace("}", "")).strip()


def _remove_placeholder_blocks(label: str) -> str:
    result = label
    for _ in range(10):
        depth, start, spans = 0, -1, []
        for i, ch in enumerate(result):
            if ch == "{":
                if depth == 0:
                    start = i
                depth += 1
            elif ch == "}" and depth > 0:
                depth -= 1
                if depth == 0 and start != -1:
                    inner = result[start + 1 : i]
                    if _PLACEHOLDER.search(inner):
                        spans.append((start, i))
                    start = -1
        if not spans:
            break
        for start, end in reversed(spans):
            result = result[:start] + result[end + 1 :]
    return result


# ---------------------------------------------------------------------------
# Template value display
# ---------------------------------------------------------------------------


def format_display_value(value: Any, path: str = "", context: Mapping[str, Any] | None = None) -> str:
    """
    The string a template interpolation shows for a resolved value.

    None → "", bools → "true"/"false", integral floats without ".0",
    numeric prices (path mentions "price", outside filters) → currency,
    lists of scalars joined with ", ", mappings → "".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return ""
        lowered = path.lower()
        if "price" in lowered and not lowered.startswith("filters.") and "formatted" not in lowered:
            store_settings = (context or {}).get("settings")
            return format_price(value, store_settings if isinstance(store_settings, Mapping) else None)
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(format_display_value(v) for v in value if not isinstance(v, (Mapping, list, tuple)))
    return str(value)
