"""
Built-in Component Tests

Each built-in renders one component slot from the data context through a
chevron template. One test per component plus its empty state.
"""

from slotkit.kernel import components  # noqa: F401  (registers built-ins)
from slotkit.kernel.renderer import render_html
from slotkit.kernel.types import RenderOptions


def component_page(name, content="", class_name=""):
    return {
        "slot": {
            "id": "slot",
            "type": "component",
            "metadata": {"component": name},
            "content": content,
            "className": class_name,
            "parentId": None,
        }
    }


def assert_contains(html, *fragments):
    for fragment in fragments:
        assert fragment in html, f"Expected {fragment!r} in:\n{html}"


class TestQuantitySelector:
    def test_renders_label_and_max(self, product_context):
        html = render_html(component_page("QuantitySelector", content="Qty"), product_context, RenderOptions())
        assert_contains(html, ">Qty</label>", 'max="3"', 'data-action="decrease" disabled')

    def test_infinite_stock_has_no_max(self, product_context):
        product_context["product"]["infinite_stock"] = True
        html = render_html(component_page("QuantitySelector"), product_context, RenderOptions())
        assert "max=" not in html
        assert ">Quantity</label>" in html

    def test_hidden_by_store_setting(self, product_context):
        product_context["settings"]["hide_quantity_selector"] = True
        assert render_html(component_page("QuantitySelector"), product_context, RenderOptions()) == ""


class TestBreadcrumbs:
    def test_explicit_breadcrumbs(self):
        ctx = {"breadcrumbs": [{"name": "Home", "url": "/"}, {"name": "Mugs", "url": "/mugs"}, {"name": "Blue"}]}
        html = render_html(component_page("ProductBreadcrumbs"), ctx, RenderOptions())
        assert_contains(
            html,
            '<nav aria-label="Breadcrumb">',
            '<a href="/" class="hover:underline">Home</a>',
            '<a href="/mugs" class="hover:underline">Mugs</a>',
            "<span>Blue</span>",
        )
        assert html.count('<span class="mx-1">/</span>') == 2

    def test_derived_from_category_and_product(self):
        ctx = {"category": {"name": "Kitchen", "url": "/kitchen"}, "product": {"name": "Blue Mug"}}
        html = render_html(component_page("ProductBreadcrumbs"), ctx, RenderOptions())
        assert_contains(html, ">Home</a>", ">Kitchen</a>", "<span>Blue Mug</span>")

    def test_nothing_to_show(self):
        assert render_html(component_page("ProductBreadcrumbs"), {}, RenderOptions()) == ""

    def test_names_are_escaped(self):
        ctx = {"breadcrumbs": [{"name": "<b>x</b>"}]}
        html = render_html(component_page("ProductBreadcrumbs"), ctx, RenderOptions())
        assert "<b>x</b>" not in html
        assert "&lt;b&gt;x&lt;/b&gt;" in html


class TestProductTabs:
    def test_first_tab_active(self):
        ctx = {
            "productTabs": [
                {"id": "details", "title": "Details", "content": "<p>Stoneware</p>"},
                {"id": "care", "title": "Care", "content": "<p>Dishwasher safe</p>"},
            ]
        }
        html = render_html(component_page("ProductTabs"), ctx, RenderOptions())
        assert_contains(html, 'data-tab="details"', 'data-tab="care"', "<p>Stoneware</p>")
        assert "Dishwasher safe" not in html

    def test_active_tab_from_context(self):
        ctx = {
            "activeTab": "care",
            "productTabs": [
                {"id": "details", "title": "Details", "content": "Stoneware"},
                {"id": "care", "title": "Care", "content": "Dishwasher safe"},
            ],
        }
        html = render_html(component_page("ProductTabs"), ctx, RenderOptions())
        assert "Dishwasher safe" in html
        assert "Stoneware" not in html

    def test_tabs_from_product(self):
        ctx = {"product": {"tabs": [{"id": "d", "name": "Description", "content": "About"}]}}
        html = render_html(component_page("ProductTabs"), ctx, RenderOptions())
        assert_contains(html, ">Description</button>", "About")

    def test_no_tabs(self):
        assert render_html(component_page("ProductTabs"), {"productTabs": []}, RenderOptions()) == ""


class TestTotalPrice:
    def test_totals(self):
        ctx = {"cart": {"subtotal": 40, "discount": 5, "total": 35}, "settings": {"currency_symbol": "$"}}
        html = render_html(component_page("TotalPriceDisplay"), ctx, RenderOptions())
        assert_contains(html, "$40.00", "-$5.00", "$35.00", "Discount")

    def test_total_derived_without_discount(self):
        ctx = {"cart": {"subtotal": 12}}
        html = render_html(component_page("TotalPriceDisplay"), ctx, RenderOptions())
        assert "Discount" not in html
        assert html.count("$12.00") == 2


class TestActiveFilters:
    def test_chips(self):
        ctx = {"activeFilters": [{"type": "color", "label": "Color", "value": "Blue"}]}
        html = render_html(component_page("ActiveFilters", class_name="mb-2"), ctx, RenderOptions())
        assert_contains(html, 'class="mb-2"', 'data-filter="color"', "Color: Blue")

    def test_no_filters(self):
        assert render_html(component_page("ActiveFilters"), {"activeFilters": []}, RenderOptions()) == ""
