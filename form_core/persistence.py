"""
Loading and dumping forms as JSON.

Loading never repairs a broken form: a payload that would produce a tree
breaking the id or row rules is rejected as a whole with FormLoadError.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from .config import DEFAULT_CONFIG, BuilderConfig
from .errors import FormLoadError
from .models import FormState
from .tree import check_invariants, locate
from .validation import IssueSeverity, ValidationIssue

logger = logging.getLogger(__name__)


def dump_form(state: FormState) -> dict:
    """Convert a form to a JSON-serializable dict."""
    return state.to_json_dict()


def dumps_form(state: FormState, indent: int = 2) -> str:
    return json.dumps(dump_form(state), indent=indent)


def load_form(data: dict | str | bytes, config: BuilderConfig = DEFAULT_CONFIG) -> FormState:
    """
    Build a FormState from stored JSON.

    Accepts the current format and the older camelCase one
    (`formTitle`, `currentPageId`, `type`, `fieldId`, `horizontal_layout`).

    Args:
        data: Parsed dict, or the raw JSON text
        config: Row capacity used to check horizontal groups

    Returns:
        The loaded state. A selection pointing at a missing component is
        cleared; everything else must already be valid.

    Raises:
        FormLoadError: Malformed JSON, unknown kinds or fields of the wrong
            type, duplicate ids, bad rows, or a missing current page
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise FormLoadError(f"Malformed form JSON: {e}") from e

    if not isinstance(data, dict):
        raise FormLoadError(f"Form must be a JSON object, got {type(data).__name__}")
    if not data.get("pages"):
        raise FormLoadError("Form must have at least one page")

    try:
        state = FormState.model_validate(data)
    except ValidationError as e:
        raise FormLoadError("Form does not match the schema", _schema_issues(e)) from e
    except (TypeError, AttributeError, KeyError) as e:
        raise FormLoadError(f"Form does not match the schema: {e}", [_error(str(e))]) from e

    issues: list[ValidationIssue] = []
    seen_ids: set[str] = set()
    page_ids: set[str] = set()
    for page in state.pages:
        if page.id in page_ids:
            issues.append(_error(f"Duplicate page id: {page.id}", page_id=page.id))
        page_ids.add(page.id)
        for problem in check_invariants(page.components, config, seen_ids):
            issues.append(_error(problem, page_id=page.id))

    if state.get_page(state.current_page_id) is None:
        issues.append(_error(f"Current page {state.current_page_id} does not exist"))

    if issues:
        raise FormLoadError(f"Form violates {len(issues)} structural rule(s)", issues)

    selected = state.selected_component_id
    if selected is not None and locate(state.current_components, selected) is None:
        logger.info("Clearing selection of missing component %s", selected)
        state = state.model_copy(update={"selected_component_id": None})

    return state


def _error(message: str, page_id: str | None = None) -> ValidationIssue:
    return ValidationIssue(severity=IssueSeverity.ERROR, message=message, page_id=page_id)


def _schema_issues(error: ValidationError) -> list[ValidationIssue]:
    issues = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()))
        message = detail.get("msg", "Invalid value")
        issues.append(_error(f"{location}: {message}" if location else message))
    return issues
