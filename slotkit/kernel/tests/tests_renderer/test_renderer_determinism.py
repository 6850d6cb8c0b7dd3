"""
Render Orchestrator -- Determinism and Error Isolation Tests

Same input → same output, in both modes. The slot collection and the data
context are never modified by a pass. A slot that fails to render is
contained at its own boundary: siblings and ancestors still render.
"""

import copy
import logging
import math

import pytest

from slotkit.kernel.registry import ComponentRegistry
from slotkit.kernel.renderer import render_html, render_slots
from slotkit.kernel.types import RenderMode, RenderNode, RenderOptions


@pytest.fixture
def broken_registry():
    registry = ComponentRegistry()

    @registry.component("Broken")
    def broken(invocation):
        raise RuntimeError("component exploded")

    @registry.component("WrongType")
    def wrong_type(invocation):
        return 42

    @registry.component("Fine")
    def fine(invocation):
        return RenderNode(tag="span", text="fine")

    return registry


def broken_page(component="Broken"):
    return {
        "box": {"id": "box", "type": "container", "parentId": None},
        "before": {"id": "before", "type": "text", "content": "before", "parentId": "box",
                   "position": {"row": 1, "col": 1}},
        "bad": {"id": "bad", "type": "component", "component": component, "parentId": "box",
                "position": {"row": 2, "col": 1}},
        "after": {"id": "after", "type": "text", "content": "after", "parentId": "box",
                  "position": {"row": 3, "col": 1}},
    }


# ============================================================================
# Determinism
# ============================================================================


class TestDeterminism:
    @pytest.mark.parametrize("mode", [RenderMode.PRODUCTION, RenderMode.EDITOR])
    def test_same_input_same_output(self, page_slots, product_context, mode):
        first = render_slots(page_slots, product_context, RenderOptions(mode=mode))
        second = render_slots(page_slots, product_context, RenderOptions(mode=mode))
        assert first == second
        assert [n.to_html() for n in first] == [n.to_html() for n in second]

    @pytest.mark.parametrize("mode", [RenderMode.PRODUCTION, RenderMode.EDITOR])
    def test_inputs_are_not_modified(self, page_slots, product_context, mode):
        slots_before = copy.deepcopy(page_slots)
        context_before = copy.deepcopy(product_context)
        render_slots(page_slots, product_context, RenderOptions(mode=mode))
        assert page_slots == slots_before
        assert product_context == context_before

    def test_declaration_order_breaks_position_ties(self):
        slots = {
            "box": {"id": "box", "type": "container", "parentId": None},
            "b": {"id": "b", "type": "text", "content": "B", "parentId": "box"},
            "a": {"id": "a", "type": "text", "content": "A", "parentId": "box"},
        }
        html = render_html(slots, {})
        assert html.index(">B<") < html.index(">A<")


# ============================================================================
# Error isolation
# ============================================================================


class TestErrorIsolation:
    def test_failing_component_is_omitted_in_production(self, broken_registry):
        html = render_html(broken_page(), {}, RenderOptions(), registry=broken_registry)
        assert "before" in html
        assert "after" in html
        assert "failed" not in html

    def test_failing_component_is_labeled_in_editor(self, broken_registry):
        html = render_html(broken_page(), {}, RenderOptions(mode=RenderMode.EDITOR), registry=broken_registry)
        assert "[component slot failed to render]" in html
        assert "before" in html
        assert "after" in html

    def test_wrong_return_type_is_a_failure(self, broken_registry):
        html = render_html(broken_page("WrongType"), {}, RenderOptions(), registry=broken_registry)
        assert "before" in html
        assert "after" in html

    def test_failure_is_logged(self, broken_registry, caplog):
        caplog.set_level(logging.ERROR, logger="slotkit.kernel.renderer")
        render_slots(broken_page(), {}, RenderOptions(), registry=broken_registry)
        assert any("bad" in record.getMessage() for record in caplog.records)

    def test_working_component_renders(self, broken_registry):
        html = render_html(broken_page("Fine"), {}, RenderOptions(), registry=broken_registry)
        assert "<span>fine</span>" in html

    def test_unknown_types_warn_once_per_pass(self, caplog):
        caplog.set_level(logging.WARNING, logger="slotkit.kernel.renderer")
        slots = {
            f"s{i}": {"id": f"s{i}", "type": "carousel", "content": "x", "parentId": None} for i in range(3)
        }
        render_slots(slots, {})
        warnings = [r for r in caplog.records if "unknown type" in r.getMessage()]
        assert len(warnings) == 1


class TestMalformedPositions:
    @pytest.mark.parametrize("row", [math.nan, math.inf, -math.inf, 1e400])
    def test_non_finite_row_renders_unpositioned(self, row):
        slots = {
            "a": {"id": "a", "type": "text", "content": "A", "parentId": None, "position": {"row": row, "col": 1}},
            "b": {"id": "b", "type": "text", "content": "B", "parentId": None, "position": {"row": 1, "col": 1}},
        }
        nodes = render_slots(slots, {})
        assert [node.key for node in nodes] == ["b", "a"]

    def test_non_finite_col_in_editor(self):
        position = {"row": 1, "col": math.nan}
        slots = {"a": {"id": "a", "type": "text", "content": "A", "parentId": None, "position": position}}
        assert "A" in render_html(slots, {}, RenderOptions(mode=RenderMode.EDITOR))
