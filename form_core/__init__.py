"""
Form Canvas Core - Component tree, placement engine, history and drag sessions.

This package provides the form logic used by both the backend API
and the MCP tools, ensuring a single source of truth for every edit.
It has no web dependencies.
"""

from .models import (
    # Enums
    ComponentKind,
    DropIntent,
    # Core models
    Option,
    ValidationRule,
    ComponentLayout,
    Component,
    Page,
    FormState,
)

from .config import BuilderConfig, PlacementThresholds, DEFAULT_CONFIG
from .errors import FormCanvasError, FormLoadError, UnknownComponentKindError, InvalidDragError
from .factory import create_component, create_group, supported_kinds
from .geometry import Point, Rect, classify, classify_in_rect
from .constraints import DraggedItem, Placement, resolve
from .history import History, HistoryManager
from .drag import DragSession, DragSource, DragState, DropPreview
from .builder import FormBuilder
from .validation import validate_component, validate_form, validation_summary, ValidationIssue, IssueSeverity
from .persistence import load_form, dump_form, dumps_form

__all__ = [
    # Enums
    "ComponentKind",
    "DropIntent",
    # Models
    "Option",
    "ValidationRule",
    "ComponentLayout",
    "Component",
    "Page",
    "FormState",
    # Configuration and errors
    "BuilderConfig",
    "PlacementThresholds",
    "DEFAULT_CONFIG",
    "FormCanvasError",
    "FormLoadError",
    "UnknownComponentKindError",
    "InvalidDragError",
    # Factory
    "create_component",
    "create_group",
    "supported_kinds",
    # Placement
    "Point",
    "Rect",
    "classify",
    "classify_in_rect",
    "DraggedItem",
    "Placement",
    "resolve",
    # History and commands
    "History",
    "HistoryManager",
    "DragSession",
    "DragSource",
    "DragState",
    "DropPreview",
    "FormBuilder",
    # Validation
    "validate_component",
    "validate_form",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Persistence
    "load_form",
    "dump_form",
    "dumps_form",
]
