"""
Exception types raised by the form canvas core.

Expected drag-and-drop no-ops never raise; these are reserved for import
failures and for callers misusing the API.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validation import ValidationIssue


class FormCanvasError(Exception):
    """Base class for all form canvas errors."""


class UnknownComponentKindError(FormCanvasError, ValueError):
    """Raised when a component kind outside the supported set is requested."""

    def __init__(self, kind: object):
        super().__init__(f"Unsupported component kind: {kind!r}")
        self.kind = kind


class FormLoadError(FormCanvasError, ValueError):
    """
    Raised when a stored form cannot be loaded.

    The form is rejected wholesale; `issues` lists every problem found so the
    caller can report them together.
    """

    def __init__(self, message: str, issues: "list[ValidationIssue] | None" = None):
        super().__init__(message)
        self.issues = list(issues or [])

    def to_dict(self) -> dict:
        return {
            "message": str(self),
            "issues": [issue.to_dict() for issue in self.issues],
        }


class InvalidDragError(FormCanvasError, RuntimeError):
    """Raised when drag session events arrive in an impossible order."""
