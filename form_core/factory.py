"""
Component factory - creates new components with kind-specific defaults.

Every kind in ComponentKind has an entry in `KIND_DEFAULTS`; the table is
the one place where a new kind gets its palette defaults.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .errors import UnknownComponentKindError
from .models import (
    Component,
    ComponentKind,
    ComponentLayout,
    Option,
    generate_component_id,
)


def _options(count: int = 3) -> tuple[Option, ...]:
    return tuple(Option(label=f"Option {i}", value=f"option_{i}") for i in range(1, count + 1))


# kind -> (label, extra attributes)
KIND_DEFAULTS: dict[ComponentKind, tuple[str, dict]] = {
    ComponentKind.TEXT_INPUT: ("Text Input", {"placeholder": "Enter text..."}),
    ComponentKind.EMAIL_INPUT: ("Email Address", {"placeholder": "Enter email address..."}),
    ComponentKind.PASSWORD_INPUT: ("Password", {"placeholder": "Enter password..."}),
    ComponentKind.NUMBER_INPUT: (
        "Number",
        {"placeholder": "Enter a number...", "min_value": 0, "step": 1},
    ),
    ComponentKind.TEXTAREA: ("Text Area", {"placeholder": "Enter your message...", "rows": 4}),
    ComponentKind.RICH_TEXT: ("Rich Text Editor", {"placeholder": "Enter rich text content..."}),
    ComponentKind.SELECT: ("Select Option", {"placeholder": "Choose an option...", "options": _options()}),
    ComponentKind.MULTI_SELECT: (
        "Multi-Select",
        {"placeholder": "Choose options...", "options": _options(), "multiple": True},
    ),
    ComponentKind.CHECKBOX: ("Checkbox", {"options": _options()}),
    ComponentKind.RADIO_GROUP: ("Radio Group", {"options": _options()}),
    ComponentKind.DATE_PICKER: ("Date Picker", {"placeholder": "Select date..."}),
    ComponentKind.FILE_UPLOAD: (
        "File Upload",
        {
            "accepted_file_types": ".pdf,.doc,.docx,.jpg,.png",
            "max_file_size": 5 * 1024 * 1024,
            "multiple": False,
        },
    ),
    ComponentKind.SIGNATURE: ("Digital Signature", {}),
    ComponentKind.SECTION_DIVIDER: (
        "Section Title",
        {"description": "Section description (optional)"},
    ),
    ComponentKind.HEADING: ("Heading", {"level": 2}),
    ComponentKind.BUTTON: ("Button", {}),
    ComponentKind.HORIZONTAL_GROUP: (
        "Row Layout",
        {"layout": ComponentLayout(gap="16px")},
    ),
    ComponentKind.VERTICAL_GROUP: (
        "Column Layout",
        {"layout": ComponentLayout(gap="12px")},
    ),
}


def coerce_kind(kind: ComponentKind | str) -> ComponentKind:
    """Turn a kind name into a ComponentKind, raising on unknown names."""
    if isinstance(kind, ComponentKind):
        return kind
    try:
        return ComponentKind(kind)
    except ValueError:
        raise UnknownComponentKindError(kind) from None


def create_component(kind: ComponentKind | str, component_id: Optional[str] = None) -> Component:
    """
    Create a new component of the given kind with its palette defaults.

    Args:
        kind: Component kind (enum member or its string value)
        component_id: Explicit id; a fresh one is generated when omitted

    Returns:
        A new Component. Group kinds start with no children.

    Raises:
        UnknownComponentKindError: If the kind is not supported
    """
    kind = coerce_kind(kind)
    if kind not in KIND_DEFAULTS:
        raise UnknownComponentKindError(kind)

    label, extra = KIND_DEFAULTS[kind]
    new_id = component_id or generate_component_id(kind)
    return Component(
        id=new_id,
        kind=kind,
        label=label,
        field_id=f"field_{new_id}" if kind.is_input else "",
        required=False,
        **extra,
    )


def create_group(kind: ComponentKind | str, children: Iterable[Component]) -> Component:
    """Create a group component around existing nodes."""
    kind = coerce_kind(kind)
    if not kind.is_group:
        raise ValueError(f"{kind.value} is not a group kind")
    group = create_component(kind)
    return group.model_copy(update={"children": tuple(children)})


def supported_kinds() -> list[ComponentKind]:
    """Kinds in palette order."""
    return list(KIND_DEFAULTS)
