"""Tests for the component models and the component factory."""

import pytest
from pydantic import ValidationError

from form_core import (
    Component,
    ComponentKind,
    FormState,
    UnknownComponentKindError,
    create_component,
    create_group,
    supported_kinds,
)
from form_core.factory import KIND_DEFAULTS


class TestComponentKind:
    """Tests for kind classification."""

    def test_kind_when_group_then_not_input(self):
        """Layout groups never carry a submission value."""
        assert ComponentKind.HORIZONTAL_GROUP.is_group
        assert not ComponentKind.HORIZONTAL_GROUP.is_input

    def test_kind_when_presentation_then_not_input(self):
        for kind in (ComponentKind.HEADING, ComponentKind.BUTTON, ComponentKind.SECTION_DIVIDER):
            assert not kind.is_input

    def test_kind_when_choice_then_is_input(self):
        assert ComponentKind.RADIO_GROUP.is_choice
        assert ComponentKind.RADIO_GROUP.is_input


class TestComponentModel:
    """Tests for Component validation and legacy input."""

    def test_component_when_camel_case_keys_then_converted(self):
        """Older exports used camelCase keys and a `type` key."""
        component = Component.model_validate({
            "id": "c1",
            "type": "text_input",
            "fieldId": "name",
            "helpText": "Your full name",
        })

        assert component.kind is ComponentKind.TEXT_INPUT
        assert component.field_id == "name"
        assert component.help_text == "Your full name"

    def test_component_when_legacy_kind_name_then_converted(self):
        component = Component.model_validate({"id": "g1", "kind": "horizontal_layout"})
        assert component.kind is ComponentKind.HORIZONTAL_GROUP

    def test_component_when_string_options_then_become_label_value_pairs(self):
        component = Component.model_validate({"id": "s1", "kind": "select", "options": ["Red", "Blue"]})

        assert [o.label for o in component.options] == ["Red", "Blue"]
        assert [o.value for o in component.options] == ["Red", "Blue"]

    def test_component_when_unknown_kind_then_validation_error(self):
        with pytest.raises(ValidationError):
            Component.model_validate({"id": "x", "kind": "hologram"})

    def test_component_when_assigned_then_frozen(self):
        component = create_component("text_input")
        with pytest.raises(ValidationError):
            component.label = "Changed"

    def test_component_when_dumped_then_snake_case_json(self):
        component = create_component("number_input", component_id="n1")

        data = component.to_json_dict()

        assert data["id"] == "n1"
        assert data["kind"] == "number_input"
        assert data["field_id"] == "field_n1"
        assert data["children"] == []


class TestFormState:
    """Tests for FormState construction."""

    def test_new_when_called_then_single_current_page(self):
        state = FormState.new("Signup")

        assert state.title == "Signup"
        assert len(state.pages) == 1
        assert state.current_page is state.pages[0]
        assert state.current_components == ()
        assert state.selected_component_id is None

    def test_form_state_when_legacy_keys_then_converted(self):
        state = FormState.model_validate({
            "formTitle": "Legacy",
            "pages": [{"id": "p1", "title": "One", "components": []}],
        })

        assert state.title == "Legacy"
        assert state.current_page_id == "p1"


class TestCreateComponent:
    """Tests for the component factory."""

    def test_defaults_when_listed_then_every_kind_covered(self):
        """The defaults table is exhaustive."""
        assert set(KIND_DEFAULTS) == set(ComponentKind)
        assert supported_kinds() == list(KIND_DEFAULTS)

    def test_create_when_called_twice_then_ids_differ(self):
        first = create_component(ComponentKind.TEXT_INPUT)
        second = create_component(ComponentKind.TEXT_INPUT)

        assert first.id != second.id
        assert first.id.startswith("text_input_")

    def test_create_when_input_kind_then_field_id_follows_id(self):
        component = create_component("email_input")
        assert component.field_id == f"field_{component.id}"

    def test_create_when_heading_then_no_field_id(self):
        assert create_component("heading").field_id == ""

    def test_create_when_choice_kind_then_three_options(self):
        component = create_component("radio_group")
        assert [o.label for o in component.options] == ["Option 1", "Option 2", "Option 3"]

    def test_create_when_number_input_then_min_and_step(self):
        component = create_component("number_input")
        assert component.min_value == 0
        assert component.step == 1

    def test_create_when_file_upload_then_types_and_size_limit(self):
        component = create_component("file_upload")
        assert component.accepted_file_types == ".pdf,.doc,.docx,.jpg,.png"
        assert component.max_file_size == 5 * 1024 * 1024

    def test_create_when_group_then_empty_with_gap(self):
        row = create_component("horizontal_group")
        column = create_component("vertical_group")

        assert row.children == ()
        assert row.layout.gap == "16px"
        assert column.layout.gap == "12px"

    def test_create_when_unknown_kind_then_raises(self):
        with pytest.raises(UnknownComponentKindError) as exc_info:
            create_component("hologram")
        assert exc_info.value.kind == "hologram"

    def test_create_group_when_leaf_kind_then_raises(self):
        with pytest.raises(ValueError):
            create_group("text_input", [])

    def test_create_group_when_children_given_then_kept_in_order(self, leaf):
        a, b = leaf("a"), leaf("b")
        group = create_group(ComponentKind.HORIZONTAL_GROUP, [a, b])
        assert group.children == (a, b)
