"""
Editor Reducer Tests

Every editor interaction is a pure function of (slots, edit). Applied edits
return a replacement collection; rejected edits return an error code and
leave the collection as it was. The input is never modified.
"""

import copy
import math

import pytest

from slotkit.kernel.reducer import (
    apply_edit,
    create_slot,
    delete_slot,
    drop_slot,
    resize_grid,
    resize_slot,
    resize_slot_height,
    update_slot,
)
from slotkit.kernel.types import SlotEdit


@pytest.fixture
def slots():
    return {
        "main_layout": {"id": "main_layout", "type": "container", "parentId": None},
        "content_area": {"id": "content_area", "type": "grid", "parentId": "main_layout"},
        "title": {"id": "title", "type": "text", "content": "T", "parentId": "content_area",
                  "position": {"row": 1, "col": 1}, "colSpan": 6},
        "price": {"id": "price", "type": "text", "content": "P", "parentId": "content_area",
                  "position": {"row": 1, "col": 2}, "colSpan": 6},
        "box": {"id": "box", "type": "container", "parentId": "content_area", "position": {"row": 2, "col": 1}},
        "inner": {"id": "inner", "type": "text", "parentId": "box", "position": {"row": 1, "col": 1}},
    }


def assert_rejected(result, code):
    assert not result.applied
    assert result.error.startswith(code), result.error


class TestPurity:
    @pytest.mark.parametrize(
        "edit",
        [
            SlotEdit("slot.resize", {"slot_id": "title", "width": 200}),
            SlotEdit("slot.grid_resize", {"slot_id": "title", "col_span": 3}),
            SlotEdit("slot.drop", {"dragged_id": "title", "target_id": "box", "position": "inside"}),
            SlotEdit("slot.delete", {"slot_id": "box"}),
            SlotEdit("slot.create", {"slot_type": "text", "parent_id": "box", "slot_id": "fresh"}),
            SlotEdit("slot.update", {"slot_id": "title", "changes": {"styles": {"color": "red"}}}),
        ],
    )
    def test_input_never_modified(self, slots, edit):
        before = copy.deepcopy(slots)
        result = apply_edit(slots, edit)
        assert result.applied
        assert slots == before
        assert result.slots is not slots

    def test_unknown_edit(self, slots):
        assert_rejected(apply_edit(slots, SlotEdit("slot.explode", {})), "UNKNOWN_EDIT")

    def test_edit_round_trips_through_dict(self):
        edit = SlotEdit("slot.delete", {"slot_id": "x"})
        assert SlotEdit.from_dict(edit.to_dict()) == edit


class TestResize:
    def test_width_in_pixels(self, slots):
        result = resize_slot(slots, "title", 320)
        assert result.slots["title"]["styles"] == {"width": "320px"}
        assert result.slot_id == "title"

    def test_width_unit_height_and_font_size(self, slots):
        result = resize_slot(slots, "title", 50, width_unit="%", height=80.0, font_size=18)
        assert result.slots["title"]["styles"] == {"width": "50%", "height": "80px", "fontSize": "18px"}

    def test_auto_height_is_left_alone(self, slots):
        assert "height" not in resize_slot(slots, "title", 100, height="auto").slots["title"]["styles"]

    def test_invalid_width(self, slots):
        assert_rejected(resize_slot(slots, "title", "wide"), "INVALID_SIZE")
        assert_rejected(resize_slot(slots, "title", math.inf), "INVALID_SIZE")
        assert_rejected(resize_slot(slots, "title", math.nan), "INVALID_SIZE")

    def test_missing_slot(self, slots):
        assert_rejected(resize_slot(slots, "ghost", 100), "SLOT_NOT_FOUND")

    def test_height_resize(self, slots):
        result = resize_slot_height(slots, "title", 120)
        assert result.slots["title"]["styles"]["minHeight"] == "120px"
        assert result.slots["title"]["rowSpan"] == 3

    def test_negative_height(self, slots):
        assert_rejected(resize_slot_height(slots, "title", -1), "INVALID_SIZE")


class TestGridResize:
    def test_number_span(self, slots):
        assert resize_grid(slots, "title", 8).slots["title"]["colSpan"] == 8

    def test_span_is_clamped(self, slots):
        assert resize_grid(slots, "title", 20).slots["title"]["colSpan"] == 12
        assert resize_grid(slots, "title", 0).slots["title"]["colSpan"] == 1

    def test_viewport_key_of_mapping(self, slots):
        slots["title"]["colSpan"] = {"default": 12, "tablet": 6}
        result = resize_grid(slots, "title", 4, viewport="tablet")
        assert result.slots["title"]["colSpan"] == {"default": 12, "tablet": 4}

    def test_missing_viewport_key_updates_default(self, slots):
        slots["title"]["colSpan"] = {"default": 12, "tablet": 6}
        result = resize_grid(slots, "title", 4, viewport="desktop")
        assert result.slots["title"]["colSpan"] == {"default": 4, "tablet": 6}

    def test_instance_updates_template(self, slots):
        slots["product_card_name"] = {"id": "product_card_name", "type": "text", "colSpan": 12}
        slots["product_card_name_0"] = {"id": "product_card_name_0", "type": "text", "colSpan": 12}
        result = resize_grid(slots, "product_card_name_0", 6)
        assert result.slots["product_card_name"]["colSpan"] == 6
        assert result.slots["product_card_name_0"]["colSpan"] == 6

    def test_invalid_span(self, slots):
        assert_rejected(resize_grid(slots, "title", "wide"), "INVALID_SPAN")


class TestDrop:
    def test_after_sibling(self, slots):
        result = drop_slot(slots, "title", "price", "after")
        assert result.slots["title"]["position"] == {"row": 1, "col": 3}
        assert result.slots["title"]["parentId"] == "content_area"

    def test_before_sibling_shifts_row(self, slots):
        result = drop_slot(slots, "title", "price", "before")
        assert result.slots["title"]["position"] == {"row": 1, "col": 2}
        assert result.slots["price"]["position"] == {"row": 1, "col": 3}

    def test_inside_container(self, slots):
        result = drop_slot(slots, "title", "box", "inside")
        assert result.slots["title"]["parentId"] == "box"
        assert result.slots["title"]["position"] == {"row": 1, "col": 2}

    def test_inside_non_container_drops_next_to_it(self, slots):
        result = drop_slot(slots, "title", "inner", "inside")
        assert result.slots["title"]["parentId"] == "box"

    def test_into_own_descendant(self, slots):
        assert_rejected(drop_slot(slots, "box", "inner", "after"), "DROP_INTO_DESCENDANT")

    def test_protected_slot(self, slots):
        assert_rejected(drop_slot(slots, "content_area", "title", "after"), "PROTECTED_SLOT")

    def test_on_self(self, slots):
        assert_rejected(drop_slot(slots, "title", "title", "after"), "DROP_ON_SELF")

    def test_invalid_position(self, slots):
        assert_rejected(drop_slot(slots, "title", "price", "sideways"), "INVALID_DROP_POSITION")

    def test_unknown_slots(self, slots):
        assert_rejected(drop_slot(slots, "ghost", "price", "after"), "SLOT_NOT_FOUND")
        assert_rejected(drop_slot(slots, "title", "ghost", "after"), "SLOT_NOT_FOUND")

    def test_non_finite_target_position(self, slots):
        slots["price"]["position"] = {"row": math.nan, "col": math.inf}
        result = drop_slot(slots, "title", "price", "after")
        assert result.applied
        assert result.slots["title"]["position"] == {"row": 1, "col": 2}


class TestDelete:
    def test_removes_subtree(self, slots):
        result = delete_slot(slots, "box")
        assert "box" not in result.slots
        assert "inner" not in result.slots
        assert "title" in result.slots

    def test_protected_slot(self, slots):
        assert_rejected(delete_slot(slots, "content_area"), "PROTECTED_SLOT")

    def test_missing_slot(self, slots):
        assert_rejected(delete_slot(slots, "ghost"), "SLOT_NOT_FOUND")


class TestCreate:
    def test_text_in_container(self, slots):
        result = create_slot(slots, "text", parent_id="box", content="Hi", slot_id="promo")
        slot = result.slots["promo"]
        assert slot["parentId"] == "box"
        assert slot["content"] == "Hi"
        assert slot["colSpan"] == 6
        assert slot["position"] == {"row": 1, "col": 2}
        assert slot["metadata"] == {"hierarchical": True}

    def test_container_defaults(self, slots):
        slot = create_slot(slots, "container", parent_id="content_area", slot_id="c").slots["c"]
        assert slot["colSpan"] == 12
        assert slot["styles"] == {"minHeight": "80px"}

    def test_generated_id(self, slots):
        result = create_slot(slots, "image")
        assert result.slot_id.startswith("new_image_")
        assert result.slots[result.slot_id]["parentId"] is None

    def test_props_are_applied(self, slots):
        result = create_slot(slots, "text", slot_id="x", className="text-sm", metadata={"htmlTag": "p"})
        assert result.slots["x"]["className"] == "text-sm"
        assert result.slots["x"]["metadata"] == {"hierarchical": True, "htmlTag": "p"}

    def test_unknown_type(self, slots):
        assert_rejected(create_slot(slots, "marquee"), "UNKNOWN_SLOT_TYPE")

    def test_missing_parent(self, slots):
        assert_rejected(create_slot(slots, "text", parent_id="ghost"), "PARENT_NOT_FOUND")

    def test_duplicate_id(self, slots):
        assert_rejected(create_slot(slots, "text", slot_id="title"), "DUPLICATE_SLOT_ID")


class TestUpdate:
    def test_replace_field(self, slots):
        assert update_slot(slots, "title", {"content": "New"}).slots["title"]["content"] == "New"

    def test_styles_merge_and_none_removes(self, slots):
        slots["title"]["styles"] = {"color": "red", "fontSize": "12px"}
        result = update_slot(slots, "title", {"styles": {"color": None, "margin": "4px"}})
        assert result.slots["title"]["styles"] == {"fontSize": "12px", "margin": "4px"}

    def test_structure_fields_rejected(self, slots):
        assert_rejected(update_slot(slots, "title", {"parentId": "box"}), "UNKNOWN_FIELD")

    def test_changes_must_be_mapping(self, slots):
        assert_rejected(apply_edit(slots, SlotEdit("slot.update", {"slot_id": "title", "changes": []})),
                        "INVALID_CHANGES")
