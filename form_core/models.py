"""
Core data models for forms.

These models define the canonical schema for a form:
- Components (fields and layout groups) forming an ordered tree
- Pages holding the root list of components
- FormState, the complete canvas state at an instant

All models are frozen. Mutations go through `form_core.engine`, which builds
new values and shares every untouched subtree with the previous one.

Field Naming Convention:
- Python and JSON use snake_case (`field_id`, `help_text`)
- For compatibility with older exports, camelCase keys, the `type` key and
  the legacy `*_layout` kind names are accepted on input and converted
"""

from __future__ import annotations

import itertools
import uuid
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ComponentKind(str, Enum):
    """Closed set of component kinds available on the palette."""
    # Inputs
    TEXT_INPUT = "text_input"
    EMAIL_INPUT = "email_input"
    PASSWORD_INPUT = "password_input"
    NUMBER_INPUT = "number_input"
    TEXTAREA = "textarea"
    RICH_TEXT = "rich_text"
    # Choices
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    CHECKBOX = "checkbox"
    RADIO_GROUP = "radio_group"
    # Special
    DATE_PICKER = "date_picker"
    FILE_UPLOAD = "file_upload"
    SIGNATURE = "signature"
    # Presentation
    SECTION_DIVIDER = "section_divider"
    HEADING = "heading"
    BUTTON = "button"
    # Layout groups
    HORIZONTAL_GROUP = "horizontal_group"
    VERTICAL_GROUP = "vertical_group"

    @property
    def is_group(self) -> bool:
        return self in GROUP_KINDS

    @property
    def is_choice(self) -> bool:
        return self in CHOICE_KINDS

    @property
    def is_input(self) -> bool:
        """Whether the kind collects a value on submission."""
        return not self.is_group and self not in PRESENTATION_KINDS


GROUP_KINDS = frozenset({ComponentKind.HORIZONTAL_GROUP, ComponentKind.VERTICAL_GROUP})
CHOICE_KINDS = frozenset({
    ComponentKind.SELECT,
    ComponentKind.MULTI_SELECT,
    ComponentKind.CHECKBOX,
    ComponentKind.RADIO_GROUP,
})
PRESENTATION_KINDS = frozenset({
    ComponentKind.SECTION_DIVIDER,
    ComponentKind.HEADING,
    ComponentKind.BUTTON,
})

# Kind names written by older versions of the builder
LEGACY_KIND_NAMES = {
    "horizontal_layout": ComponentKind.HORIZONTAL_GROUP.value,
    "vertical_layout": ComponentKind.VERTICAL_GROUP.value,
    "email": ComponentKind.EMAIL_INPUT.value,
    "date": ComponentKind.DATE_PICKER.value,
    "divider": ComponentKind.SECTION_DIVIDER.value,
}

# camelCase (and short) keys accepted on input -> canonical field name
LEGACY_COMPONENT_KEYS = {
    "type": "kind",
    "fieldId": "field_id",
    "helpText": "help_text",
    "acceptedFileTypes": "accepted_file_types",
    "maxFileSize": "max_file_size",
    "minLength": "min_length",
    "maxLength": "max_length",
    "validationRules": "validation_rules",
    "min": "min_value",
    "max": "max_value",
}


class DropIntent(str, Enum):
    """Classified outcome of a drop, relative to a target component."""
    LEFT = "left"
    RIGHT = "right"
    BEFORE = "before"
    AFTER = "after"
    INSIDE = "inside"

    @property
    def is_horizontal(self) -> bool:
        return self in (DropIntent.LEFT, DropIntent.RIGHT)

    @property
    def is_vertical(self) -> bool:
        return self in (DropIntent.BEFORE, DropIntent.AFTER)


_id_counter = itertools.count(1)


def generate_component_id(kind: ComponentKind | str = "component") -> str:
    """Generate a unique component ID, e.g. ``text_input_7_3fa9c1``."""
    prefix = kind.value if isinstance(kind, ComponentKind) else str(kind)
    return f"{prefix}_{next(_id_counter)}_{uuid.uuid4().hex[:6]}"


def generate_page_id() -> str:
    """Generate a unique page ID."""
    return f"page_{uuid.uuid4().hex[:8]}"


def normalize_component_data(data: dict) -> dict:
    """
    Convert legacy keys and values in a component dict to the canonical form.

    Returns a new dict; the input is left untouched. Canonical keys win over
    legacy ones when both are present.
    """
    result = dict(data)
    for legacy, canonical in LEGACY_COMPONENT_KEYS.items():
        if legacy in result:
            value = result.pop(legacy)
            result.setdefault(canonical, value)

    kind = result.get("kind")
    if isinstance(kind, str) and kind in LEGACY_KIND_NAMES:
        result["kind"] = LEGACY_KIND_NAMES[kind]

    options = result.get("options")
    if isinstance(options, (list, tuple)):
        result["options"] = [
            {"label": opt, "value": opt} if isinstance(opt, str) else opt
            for opt in options
        ]

    # Older exports stored accepted file types as a list
    accepted = result.get("accepted_file_types")
    if isinstance(accepted, (list, tuple)) and all(isinstance(t, str) for t in accepted):
        result["accepted_file_types"] = ",".join(accepted)

    if result.get("children") is None and "children" in result:
        result["children"] = []
    return result


class Option(BaseModel):
    """A selectable option on a choice component."""
    model_config = ConfigDict(frozen=True)

    label: str
    value: str


class ValidationRule(BaseModel):
    """A submission-time rule attached to a field (data only)."""
    model_config = ConfigDict(frozen=True)

    type: Literal["required", "min_length", "max_length", "pattern", "email", "custom"]
    value: Any = None
    message: str = ""


class ComponentLayout(BaseModel):
    """Presentation hints. Not structural: the tree shape lives in `children`."""
    model_config = ConfigDict(frozen=True)

    width: Optional[str] = None      # CSS width, managed for horizontal group members
    alignment: Optional[str] = None  # "left", "center", "right"
    gap: Optional[str] = None        # Spacing between children of a group


class Component(BaseModel):
    """A node in the form tree: a field or a layout group."""
    model_config = ConfigDict(frozen=True)

    id: str
    kind: ComponentKind
    label: str = ""
    field_id: str = ""
    required: bool = False
    help_text: str = ""
    # Kind-specific attributes
    placeholder: Optional[str] = None
    options: Optional[tuple[Option, ...]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    step: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    rows: Optional[int] = None
    accepted_file_types: Optional[str] = None
    max_file_size: Optional[int] = None  # Bytes
    multiple: Optional[bool] = None
    description: Optional[str] = None
    level: Optional[int] = None  # Heading level
    validation_rules: tuple[ValidationRule, ...] = ()
    layout: ComponentLayout = Field(default_factory=ComponentLayout)
    # Only populated on group kinds
    children: tuple["Component", ...] = ()

    @model_validator(mode="before")
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert camelCase keys and legacy kind names."""
        if isinstance(data, dict):
            return normalize_component_data(data)
        return data

    @property
    def is_group(self) -> bool:
        return self.kind.is_group

    @property
    def is_horizontal_group(self) -> bool:
        return self.kind is ComponentKind.HORIZONTAL_GROUP

    @property
    def is_vertical_group(self) -> bool:
        return self.kind is ComponentKind.VERTICAL_GROUP

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return self.model_dump(mode="json")


class Page(BaseModel):
    """A page of the form: a title and an ordered list of root components."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_page_id)
    title: str = "Page 1"
    components: tuple[Component, ...] = ()


class FormState(BaseModel):
    """
    The complete canvas state at an instant.

    Immutable: every mutation produces a new FormState. This is what the
    history stores and what gets saved to/loaded from JSON files.
    """
    model_config = ConfigDict(frozen=True)

    title: str = "Untitled Form"
    pages: tuple[Page, ...]
    current_page_id: str
    selected_component_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Accept the camelCase keys written by older versions."""
        if isinstance(data, dict):
            data = dict(data)
            for legacy, canonical in (
                ("formTitle", "title"),
                ("currentPageId", "current_page_id"),
                ("selectedComponentId", "selected_component_id"),
            ):
                if legacy in data:
                    value = data.pop(legacy)
                    data.setdefault(canonical, value)
            pages = data.get("pages")
            # Anything malformed is left for field validation to reject
            if "current_page_id" not in data and isinstance(pages, (list, tuple)) and pages:
                first = pages[0]
                if isinstance(first, dict):
                    data["current_page_id"] = first.get("id")
                elif isinstance(first, Page):
                    data["current_page_id"] = first.id
        return data

    @classmethod
    def new(cls, title: str = "Untitled Form") -> "FormState":
        """Create an empty single-page form."""
        page = Page()
        return cls(title=title, pages=(page,), current_page_id=page.id)

    @property
    def current_page(self) -> Optional[Page]:
        return self.get_page(self.current_page_id)

    @property
    def current_components(self) -> tuple[Component, ...]:
        page = self.current_page
        return page.components if page else ()

    def get_page(self, page_id: str) -> Optional[Page]:
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return self.model_dump(mode="json")
