"""
Render Orchestrator -- Slot Type Tests

One group per slot type. Feed a collection with a single root slot, verify
the production output. Editor-only behavior lives in
test_renderer_editor_mode.py.

Slot types:
  text, html, button, image, container, grid, flex, component, cms,
  plugin_widget, style_config (and unknown types)
"""

from slotkit.kernel.renderer import render_html, render_slots
from slotkit.kernel.types import ActionHandlers, RenderMode, RenderNode, RenderOptions, Viewport


def single(slot_id, slot_type, **fields):
    return {slot_id: {"id": slot_id, "type": slot_type, "parentId": None, **fields}}


def assert_contains(html, *fragments):
    for fragment in fragments:
        assert fragment in html, f"Expected {fragment!r} in rendered HTML.\nGot:\n{html}"


def assert_not_contains(html, *fragments):
    for fragment in fragments:
        assert fragment not in html, f"Did not expect {fragment!r} in rendered HTML.\nGot:\n{html}"


# ============================================================================
# text / html
# ============================================================================


class TestText:
    def test_text_slot(self, product_context):
        html = render_html(single("title", "text", content="Hello {{product.name}}"), product_context)
        assert html == '<div class="col-span-12"><div class="whitespace-normal">Hello Blue Mug</div></div>'

    def test_values_are_escaped(self, product_context):
        product_context["product"]["name"] = "<script>x</script>"
        html = render_html(single("title", "text", content="{{product.name}}"), product_context)
        assert_contains(html, "&lt;script&gt;x&lt;/script&gt;")
        assert_not_contains(html, "<script>")

    def test_authored_markup_is_kept(self, product_context):
        html = render_html(single("intro", "html", content="<b>{{product.name}}</b>"), product_context)
        assert_contains(html, "<b>Blue Mug</b>")

    def test_empty_content_renders_nothing(self):
        assert render_slots(single("t", "text", content="{{missing}}"), {}) == []

    def test_html_tag_and_attributes(self):
        slots = single(
            "t",
            "text",
            content="Title",
            className="text-xl",
            metadata={
                "htmlTag": "h1",
                "htmlAttributes": {"class": "font-bold", "aria-label": "Page title", "onclick": "steal()"},
            },
        )
        html = render_html(slots, {})
        assert_contains(html, '<h1 class="text-xl font-bold whitespace-normal" aria-label="Page title">Title</h1>')
        assert_not_contains(html, "onclick", "steal")

    def test_malformed_attribute_names_are_dropped(self):
        attributes = {
            "x><img src=x onerror=alert(1)": "1",
            'title" autofocus': "x",
            "data-\nid": "x",
            "ONMOUSEOVER": "steal()",
            "data-test": "kept",
            "xml:lang": "en",
        }
        slots = single("t", "text", content="hi", metadata={"htmlAttributes": attributes})
        html = render_html(slots, {})
        assert html == (
            '<div class="col-span-12"><div class="whitespace-normal" data-test="kept" xml:lang="en">hi</div></div>'
        )

    def test_serializer_skips_unsafe_attribute_names(self):
        node = RenderNode(tag="span", attrs={"x><img src=x": "1", "onclick": "steal()", "id": "a"}, text="hi")
        assert node.to_html() == '<span id="a">hi</span>'

    def test_invalid_html_tag_falls_back_to_div(self):
        slots = single("t", "text", content="x", metadata={"htmlTag": "h1 onload=x"})
        assert render_html(slots, {}).startswith('<div class="col-span-12"><div ')

    def test_templated_class_and_styles(self, product_context):
        product_context["settings"]["theme"] = {"primary_color": "#ff0000"}
        slots = single(
            "t",
            "text",
            content="x",
            className="{{#if product.stock_quantity}}in-stock{{/if}}",
            styles={"color": "{{settings.theme.primary_color}}", "fontSize": 18},
        )
        html = render_html(slots, product_context)
        assert_contains(html, 'class="in-stock whitespace-normal"', 'style="color: #ff0000; font-size: 18px"')

    def test_product_name_links_to_product(self, product_context):
        html = render_html(single("product_name", "text", content="{{product.name}}"), product_context)
        assert_contains(html, '<a href="/demo-store/product/blue-mug" class="block"><div')

    def test_translation_key_content(self):
        options = RenderOptions(translate=lambda key, language: {"common.welcome": "Welcome"}.get(key, key))
        html = render_html(single("t", "text", content="common.welcome"), {}, options)
        assert_contains(html, ">Welcome</div>")

    def test_unresolved_translation_key_hidden_in_production(self):
        assert render_slots(single("t", "text", content="common.welcome"), {}) == []


class TestConditionalDisplay:
    def test_path_condition(self, product_context):
        slots = single("sale", "text", content="On sale!", conditionalDisplay="product.on_sale")
        assert render_slots(slots, product_context) == []
        product_context["product"]["on_sale"] = True
        assert "On sale!" in render_html(slots, product_context)

    def test_false_string_hides(self, product_context):
        product_context["product"]["on_sale"] = False
        slots = single("sale", "text", content="On sale!", metadata={"conditionalDisplay": "product.on_sale"})
        assert render_slots(slots, product_context) == []

    def test_template_condition_must_say_show(self, product_context):
        slots = single(
            "low",
            "text",
            content="Almost gone",
            conditionalDisplay="{{#if (lt product.stock_quantity 5)}}show{{/if}}",
        )
        assert "Almost gone" in render_html(slots, product_context)
        product_context["product"]["stock_quantity"] = 50
        assert render_slots(slots, product_context) == []


# ============================================================================
# button
# ============================================================================


class TestButton:
    def test_default_content(self):
        assert_contains(render_html(single("b", "button"), {}), ">Button</button>")

    def test_out_of_stock_add_to_cart(self, product_context):
        product_context["product"]["stock_quantity"] = 0
        slots = single(
            "add_to_cart_button",
            "button",
            content="Add to cart",
            styles={"backgroundColor": "red"},
            metadata={"outOfStockContent": "Sold out", "outOfStockClassName": "btn-disabled"},
        )
        html = render_html(slots, product_context)
        assert_contains(
            html,
            '<button type="button" class="btn-disabled" disabled data-action="add_to_cart">Sold out</button>',
        )
        assert_not_contains(html, "background-color")

    def test_add_to_cart_calls_action_with_product(self, product_context):
        added = []
        options = RenderOptions(actions=ActionHandlers(add_to_cart=added.append))
        nodes = render_slots(single("add_to_cart_button", "button", content="Add"), product_context, options)
        button = nodes[0].find("add_to_cart_button")
        button.handlers["click"]()
        assert [p["id"] for p in added] == [7]

    def test_failing_action_is_contained(self, product_context):
        def explode(product):
            raise RuntimeError("cart service down")

        options = RenderOptions(actions=ActionHandlers(add_to_cart=explode))
        nodes = render_slots(single("add_to_cart_button", "button", content="Add"), product_context, options)
        nodes[0].find("add_to_cart_button").handlers["click"]()

    def test_disabled_button_has_no_action(self, product_context):
        product_context["product"]["stock_quantity"] = 0
        options = RenderOptions(actions=ActionHandlers(add_to_cart=lambda p: None))
        nodes = render_slots(single("add_to_cart_button", "button", content="Add"), product_context, options)
        assert "click" not in nodes[0].find("add_to_cart_button").handlers

    def test_wishlist_state(self, product_context):
        product_context["wishlist"] = [{"product_id": 7}]
        html = render_html(single("wishlist_button", "button", content="Save", className="p-2"), product_context)
        assert_contains(html, 'class="p-2 text-red-500"', "color: #ef4444", "❤️")

    def test_navigate_defaults_to_store_home(self, product_context):
        visited = []
        options = RenderOptions(actions=ActionHandlers(navigate=visited.append))
        nodes = render_slots(single("empty_cart_button", "button", content="Shop"), product_context, options)
        nodes[0].find("empty_cart_button").handlers["click"]()
        assert visited == ["/demo-store"]

    def test_metadata_action(self, product_context):
        logged_out = []
        options = RenderOptions(actions=ActionHandlers(logout=lambda: logged_out.append(True)))
        nodes = render_slots(single("b", "button", metadata={"action": "logout"}), product_context, options)
        nodes[0].find("b").handlers["click"]()
        assert logged_out == [True]

    def test_markup_content_wrapped_in_span(self):
        html = render_html(single("b", "button", content="<svg></svg> Cart"), {})
        assert_contains(html, '<span class="flex items-center"><svg></svg> Cart</span>')


# ============================================================================
# image
# ============================================================================


class TestImage:
    def test_image_src_and_alt(self, product_context):
        html = render_html(single("img", "image", content="https://cdn.test/banner.jpg"), product_context)
        assert_contains(html, 'src="https://cdn.test/banner.jpg"', 'alt="Blue Mug"', 'style="width: 100%"')

    def test_unresolved_src_falls_back_to_product_image(self, product_context):
        html = render_html(single("img", "image", content="{{product.hero}}"), product_context)
        assert_contains(html, 'src="https://cdn.test/mug.jpg"')

    def test_unsafe_src_is_replaced(self, product_context):
        html = render_html(single("img", "image", content="javascript:alert(1)"), product_context)
        assert_not_contains(html, "javascript:")

    def test_no_product_uses_no_image_placeholder(self):
        from slotkit.config import settings

        html = render_html(single("img", "image", content=""), {})
        assert_contains(html, f'src="{settings.NO_IMAGE_URL}"', 'alt="Image"')

    def test_product_image_uses_active_index(self, product_context):
        product_context["activeImageIndex"] = 1
        html = render_html(single("product_image", "image", content="product-main-image"), product_context)
        assert_contains(html, 'src="https://cdn.test/mug-side.jpg"', '<a href="/demo-store/product/blue-mug"')

    def test_width_style_is_forced(self):
        html = render_html(single("img", "image", content="https://cdn.test/a.png", styles={"width": "50px"}), {})
        assert_contains(html, "width: 100%")
        assert_not_contains(html, "50px")


# ============================================================================
# cms / plugin_widget / style_config / unknown
# ============================================================================


class TestDeferredTypes:
    def test_cms_without_resolver_is_omitted_in_production(self):
        assert render_slots(single("promo", "cms", cmsBlockPosition="homepage_top"), {}) == []

    def test_plugin_widget_production(self):
        slots = single("reviews", "plugin_widget", widgetId="reviews-widget", widgetConfig={"limit": 5})
        nodes = render_slots(slots, {})
        widget = nodes[0].find("reviews")
        assert widget.attrs["data-widget-id"] == "reviews-widget"
        assert widget.deferred.widget_id == "reviews-widget"
        assert widget.deferred.config == {"limit": 5}

    def test_plugin_widget_without_id_is_omitted(self):
        assert render_slots(single("w", "plugin_widget"), {}) == []

    def test_style_config_never_renders(self, editor_options):
        slots = single("styles", "style_config", content="ignored")
        assert render_slots(slots, {}) == []
        assert render_slots(slots, {}, editor_options) == []

    def test_unknown_type_with_content(self):
        assert_contains(render_html(single("x", "carousel", content="Hi"), {}), ">Hi</div>")

    def test_unknown_type_without_content(self, editor_options):
        assert render_slots(single("x", "carousel"), {}) == []
        assert_contains(render_html(single("x", "carousel"), {}, editor_options), "[carousel slot]")


# ============================================================================
# Wrapping
# ============================================================================


class TestWrapper:
    def test_empty_col_span_mapping_bypasses_wrapper(self):
        html = render_html(single("t", "text", content="X", colSpan={}), {})
        assert html == '<div class="whitespace-normal">X</div>'

    def test_absolute_slot_bypasses_wrapper(self):
        html = render_html(single("t", "text", content="X", className="absolute top-0"), {})
        assert html == '<div class="absolute top-0 whitespace-normal">X</div>'

    def test_parent_class_and_container_styles(self):
        slots = single("t", "text", content="X", colSpan=4, parentClassName="mt-2", containerStyles={"padding": 4})
        html = render_html(slots, {})
        assert html.startswith('<div class="col-span-4 mt-2" style="padding: 4px">')

    def test_viewport_mapping(self):
        slots = single("t", "text", content="X", colSpan={"default": 12, "tablet": 6})
        assert 'class="col-span-6"' in render_html(slots, {}, RenderOptions(viewport=Viewport.TABLET))
        assert 'class="col-span-12"' in render_html(slots, {}, RenderOptions(viewport=Viewport.DESKTOP))

    def test_production_wrapper_key_is_slot_id(self):
        nodes = render_slots(single("t", "text", content="X"), {}, RenderOptions(mode=RenderMode.PRODUCTION))
        assert nodes[0].key == "t"
