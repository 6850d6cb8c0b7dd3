"""
Template Variable Processor -- Translation Tests

{{t 'key'}} inside templates, and whole-content translation keys
("common.welcome_back") resolved through the render options' lookup.
"""

from slotkit.kernel.types import RenderMode
from slotkit.kernel.variables import process, resolve_translation_key


class TestInlineTranslation:
    def test_flat_key_from_store_ui_translations(self):
        ctx = {"settings": {"ui_translations": {"en": {"common.add_to_cart": "Add to cart"}}}}
        assert process("{{t 'common.add_to_cart'}}", ctx) == "Add to cart"

    def test_nested_key_from_context_translations(self):
        ctx = {"translations": {"common": {"buy_now": "Buy now"}}}
        assert process('{{t "common.buy_now"}}', ctx) == "Buy now"

    def test_current_language_wins(self):
        ctx = {
            "currentLanguage": "fr",
            "settings": {"ui_translations": {"fr": {"common.hello": "Bonjour"}, "en": {"common.hello": "Hello"}}},
        }
        assert process("{{t 'common.hello'}}", ctx) == "Bonjour"

    def test_english_is_the_fallback_language(self):
        ctx = {"currentLanguage": "de", "settings": {"ui_translations": {"en": {"common.hello": "Hello"}}}}
        assert process("{{t 'common.hello'}}", ctx) == "Hello"

    def test_unknown_key_is_humanized(self):
        assert process("{{t 'common.add_to_cart'}}", {}) == "Add To Cart"


class TestTranslationKeyContent:
    def lookup(self, key, language):
        table = {("common.welcome", "en"): "Welcome", ("common.welcome", "nl"): "Welkom"}
        return table.get((key, language), key)

    def test_key_resolved_through_lookup(self):
        assert resolve_translation_key("common.welcome", self.lookup, "en", RenderMode.PRODUCTION) == "Welcome"
        assert resolve_translation_key("common.welcome", self.lookup, "nl", RenderMode.PRODUCTION) == "Welkom"

    def test_non_key_content_is_left_to_the_template_path(self):
        assert resolve_translation_key("Hello {{name}}", self.lookup, "en", RenderMode.PRODUCTION) is None
        assert resolve_translation_key("Free shipping", self.lookup, "en", RenderMode.PRODUCTION) is None

    def test_unresolved_key_empty_in_production(self):
        assert resolve_translation_key("common.missing", self.lookup, "en", RenderMode.PRODUCTION) == ""

    def test_unresolved_key_shown_raw_in_editor(self):
        assert resolve_translation_key("common.missing", None, "en", RenderMode.EDITOR) == "common.missing"

    def test_failing_lookup_is_contained(self):
        def broken(key, language):
            raise KeyError(key)

        assert resolve_translation_key("common.welcome", broken, "en", RenderMode.EDITOR) == "common.welcome"
