"""
Slotkit kernel test configuration.

Shared fixtures: a product data context and a small product-page slot tree.
Kernel tests build their own slots where the shape under test matters; these
fixtures cover the common page.
"""

import pytest

from slotkit.kernel.types import RenderMode, RenderOptions


@pytest.fixture
def product_context():
    """Data context of a product page, already formatted."""
    return {
        "store": {"id": "store-1", "slug": "demo-store"},
        "settings": {"currency_symbol": "$"},
        "product": {
            "id": 7,
            "name": "Blue Mug",
            "slug": "blue-mug",
            "price": 12.5,
            "price_formatted": "$12.50",
            "stock_quantity": 3,
            "images": ["https://cdn.test/mug.jpg", "https://cdn.test/mug-side.jpg"],
        },
    }


@pytest.fixture
def page_slots():
    """main_layout > content_area > (title, price, add_to_cart_button)."""
    return {
        "main_layout": {"id": "main_layout", "type": "container", "parentId": None},
        "content_area": {
            "id": "content_area",
            "type": "grid",
            "parentId": "main_layout",
            "className": "grid grid-cols-12 gap-4",
        },
        "title": {
            "id": "title",
            "type": "text",
            "content": "{{product.name}}",
            "parentId": "content_area",
            "position": {"row": 1, "col": 1},
            "colSpan": {"default": 12, "tablet": 6},
        },
        "price": {
            "id": "price",
            "type": "text",
            "content": "{{product.price_formatted}}",
            "parentId": "content_area",
            "position": {"row": 2, "col": 1},
            "colSpan": 6,
        },
        "add_to_cart_button": {
            "id": "add_to_cart_button",
            "type": "button",
            "content": "Add to cart",
            "parentId": "content_area",
            "position": {"row": 2, "col": 2},
            "colSpan": 6,
        },
    }


@pytest.fixture
def editor_options():
    return RenderOptions(mode=RenderMode.EDITOR)
