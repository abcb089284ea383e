"""
Form validation - check components and whole forms for problems.

Used by the builder (and through it the backend and MCP tools) to flag
components a user still needs to fill in before the form is usable.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .config import DEFAULT_CONFIG, BuilderConfig
from .models import Component, ComponentKind
from .tree import iter_components

if TYPE_CHECKING:
    from .models import FormState


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Form cannot be used as is
    WARNING = "warning"  # Likely mistake (e.g. shared field ids)
    INFO = "info"        # Worth knowing (e.g. an empty page)


@dataclass
class ValidationIssue:
    """A single validation issue found in a form."""
    severity: IssueSeverity
    message: str
    component_id: Optional[str] = None
    page_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.component_id:
            result["component_id"] = self.component_id
        if self.page_id:
            result["page_id"] = self.page_id
        return result


@dataclass
class ValidationResult:
    """Outcome of validating one component."""
    valid: bool
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors)}


def validate_component(
    component: Component,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> ValidationResult:
    """
    Validate a single component according to its kind.

    Checks:
    - id and label present (headings and dividers need a label too)
    - field_id present on input kinds
    - choice kinds: at least one option, labelled options, unique values
    - number inputs: min below max, positive step
    - text lengths: min_length not above max_length
    - horizontal groups: member count within capacity
    - leaf kinds carry no children

    Children of a group are not validated here; see `validate_form`.
    """
    errors: list[str] = []
    kind = component.kind

    if not component.id.strip():
        errors.append("Component ID is required")
    if not component.label.strip():
        errors.append("Label is required")
    if kind.is_input and not component.field_id.strip():
        errors.append("Field ID is required")

    if kind.is_choice:
        options = component.options or ()
        if not options:
            errors.append("At least one option is required")
        for index, option in enumerate(options, start=1):
            if not option.label.strip():
                errors.append(f"Option {index} must have a label")
        values = [option.value for option in options]
        if len(values) != len(set(values)):
            errors.append("Option values must be unique")

    if kind is ComponentKind.NUMBER_INPUT:
        if component.min_value is not None and component.max_value is not None:
            if component.min_value >= component.max_value:
                errors.append("Minimum value must be less than maximum value")
        if component.step is not None and component.step <= 0:
            errors.append("Step value must be greater than 0")

    if component.min_length is not None and component.max_length is not None:
        if component.min_length > component.max_length:
            errors.append("Minimum length cannot exceed maximum length")

    if kind is ComponentKind.FILE_UPLOAD and component.max_file_size is not None:
        if component.max_file_size <= 0:
            errors.append("Maximum file size must be greater than 0")

    if component.is_horizontal_group:
        count = len(component.children)
        if not config.min_group_children <= count <= config.max_group_children:
            errors.append(
                f"Row must hold {config.min_group_children}-{config.max_group_children} components"
            )
    elif not component.is_group and component.children:
        errors.append("Only layout groups can contain components")

    return ValidationResult(valid=not errors, errors=errors)


def validate_form(state: "FormState", config: BuilderConfig = DEFAULT_CONFIG) -> list[ValidationIssue]:
    """
    Validate every component on every page and return a list of issues.

    Checks for:
    - Component problems (see validate_component) - ERROR
    - Missing page titles - WARNING
    - Empty pages - INFO
    - Field IDs used by more than one component - WARNING
    """
    issues: list[ValidationIssue] = []
    field_owners: dict[str, list[str]] = {}

    for index, page in enumerate(state.pages, start=1):
        if not page.title.strip():
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Page {index} must have a title",
                page_id=page.id
            ))
        if not page.components:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message=f"Page {index} has no components",
                page_id=page.id
            ))

        for component in iter_components(page.components):
            result = validate_component(component, config)
            for error in result.errors:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f'"{component.label or component.id}": {error}',
                    component_id=component.id,
                    page_id=page.id
                ))
            if component.kind.is_input and component.field_id:
                field_owners.setdefault(component.field_id, []).append(component.id)

    for field_id, owners in field_owners.items():
        if len(owners) > 1:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Field ID {field_id} is used by {len(owners)} components",
                component_id=owners[1]
            ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """Count issues by severity. A form is valid when it has no errors."""
    counts = Counter(issue.severity for issue in issues)
    return {
        "total": len(issues),
        "errors": counts[IssueSeverity.ERROR],
        "warnings": counts[IssueSeverity.WARNING],
        "info": counts[IssueSeverity.INFO],
        "valid": counts[IssueSeverity.ERROR] == 0,
    }
