"""
Slotkit Kernel — Editor Preview Data

Deterministic sample data for editor previews when no live catalog data is
available. Same input → same output, so editor renders stay reproducible.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

_IMAGE = "https://images.unsplash.com/photo-{id}?w={w}&h={h}&fit=crop"


def _image(photo_id: str, size: int) -> str:
    return _IMAGE.format(id=photo_id, w=size, h=size)


_DEMO_PRODUCT: dict[str, Any] = {
    "id": "demo-product",
    "name": "Sample Product Name",
    "slug": "sample-product",
    # price is the original price, compare_price the sale price shown as main
    "price": 1349.00,
    "price_formatted": "$1,349.00",
    "compare_price": 1049.00,
    "compare_price_formatted": "$1,049.00",
    "on_sale": True,
    "stock_quantity": 15,
    "stock_status": "in_stock",
    "stock_label": "In Stock",
    "sku": "PROD-123",
    "short_description": "This is a sample product description showing how the content will appear.",
    "labels": ["Sale", "New Arrival", "Popular"],
    "images": [
        _image("1505740420928-5e560c06d30e", 600),
        _image("1484704849700-f032a568e944", 150),
        _image("1487215078519-e21cc028cb29", 150),
        _image("1545127398-14699f92334b", 150),
    ],
    "tabs": [
        {"id": "description", "name": "Description", "tab_type": "text",
         "content": "This is a detailed product description..."},
        {"id": "specifications", "name": "Specifications", "tab_type": "attributes", "content": ""},
        {"id": "reviews", "name": "Reviews", "tab_type": "text",
         "content": "Customer reviews will appear here..."},
    ],
    "related_products": [
        {"name": "Smart Watch", "price": 199.99, "image": _image("1523275335684-37898b6baf30", 300)},
        {"name": "Camera Lens", "price": 349.99, "image": _image("1606318801954-d46d46d3360a", 300)},
        {"name": "Laptop", "price": 1299.99, "image": _image("1496181133206-80ce9b88a853", 300)},
    ],
    "attributes": {
        "brand": "Sample Brand",
        "material": "Premium Material",
        "color": "Blue",
        "size": "Medium",
    },
}

_DEMO_CATEGORY_PRODUCTS: list[tuple[str, float, str]] = [
    ("Wireless Headphones", 89.99, "1505740420928-5e560c06d30e"),
    ("Smart Watch", 199.99, "1523275335684-37898b6baf30"),
    ("Camera Lens", 349.99, "1606318801954-d46d46d3360a"),
    ("Laptop", 1299.99, "1496181133206-80ce9b88a853"),
    ("Smartphone", 799.99, "1511707171634-5f897ff02aa9"),
    ("Sunglasses", 149.99, "1572635196237-14b3f281503f"),
    ("Sneakers", 119.99, "1542291026-7eec264c27ff"),
    ("Backpack", 79.99, "1553062407-98eeb64c6a62"),
]

_DEMO_CART: dict[str, Any] = {
    "item_count": 3,
    "subtotal": 249.97,
    "tax": 20.00,
    "shipping": 9.99,
    "total": 279.96,
    "items": [
        {"name": "Cart Item 1", "price": 99.99, "quantity": 1},
        {"name": "Cart Item 2", "price": 149.98, "quantity": 2},
    ],
}

_DEMO_LABELS: list[dict[str, Any]] = [
    {"id": 1, "text": "SALE", "position": "top-right", "background_color": "#ef4444",
     "text_color": "#ffffff", "is_active": True, "priority": 1},
    {"id": 2, "text": "NEW", "position": "top-left", "background_color": "#22c55e",
     "text_color": "#ffffff", "is_active": True, "priority": 2},
    {"id": 3, "text": "POPULAR", "position": "bottom-right", "background_color": "#3b82f6",
     "text_color": "#ffffff", "is_active": True, "priority": 3},
]

_DEMO_SETTINGS: dict[str, Any] = {
    "currency_symbol": "$",
    "display_low_stock_threshold": 10,
    "product_gallery_layout": "horizontal",
    "vertical_gallery_position": "left",
    "mobile_gallery_layout": "below",
    "stock_settings": {
        "show_stock_label": True,
        "in_stock_label": "In Stock",
        "out_of_stock_label": "Out of Stock",
        "low_stock_label": "Only {quantity} left!",
    },
    "theme": {
        "add_to_cart_button_color": "#3B82F6",
        "primary_color": "#3B82F6",
        "secondary_color": "#10B981",
    },
}


def generate_demo_data(page_type: str = "product", overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """
    Complete preview context: product, category, cart, product labels and
    settings. `overrides` are merged over the default settings.

    `page_type` only selects which scope is also exposed as the page's main
    list (`products` for category pages, `cartItems` for cart pages).
    """
    products = [
        {"name": name, "price": price, "image_url": _image(photo, 400), "in_stock": True}
        for name, price, photo in _DEMO_CATEGORY_PRODUCTS
    ]
    data: dict[str, Any] = {
        "product": copy.deepcopy(_DEMO_PRODUCT),
        "category": {
            "name": "Electronics",
            "description": "This is a sample category description.",
            "product_count": len(products),
            "products": products,
        },
        "cart": copy.deepcopy(_DEMO_CART),
        "productLabels": copy.deepcopy(_DEMO_LABELS),
        "settings": {**copy.deepcopy(_DEMO_SETTINGS), **dict(overrides or {})},
    }
    if page_type == "category":
        data["products"] = copy.deepcopy(products)
    elif page_type == "cart":
        data["cartItems"] = copy.deepcopy(_DEMO_CART["items"])
    return data
