"""
Request models for the REST API.

The form itself is described by form_core.models; these only shape what
clients send.
"""
from typing import Any, Optional

from pydantic import BaseModel

from form_core import DropIntent, Option, ValidationRule


class FormInfoRequest(BaseModel):
    """Request to update form-level data."""
    title: str


class OpenFormRequest(BaseModel):
    file_path: str


class SaveFormRequest(BaseModel):
    file_path: Optional[str] = None


class ImportFormRequest(BaseModel):
    """A form export (current or legacy format) to load without a file."""
    form: dict[str, Any]


class AddComponentRequest(BaseModel):
    """Request to add a palette component to the current page."""
    kind: str  # Checked by the factory so unknown kinds map to 400
    target_id: Optional[str] = None
    intent: DropIntent = DropIntent.INSIDE


class UpdateComponentRequest(BaseModel):
    """Request to update an existing component (partial update)."""
    label: Optional[str] = None
    field_id: Optional[str] = None
    required: Optional[bool] = None
    help_text: Optional[str] = None
    placeholder: Optional[str] = None
    options: Optional[list[Option]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    step: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    rows: Optional[int] = None
    accepted_file_types: Optional[str] = None
    max_file_size: Optional[int] = None
    multiple: Optional[bool] = None
    description: Optional[str] = None
    level: Optional[int] = None
    validation_rules: Optional[list[ValidationRule]] = None
    layout: Optional[dict[str, Optional[str]]] = None


class MoveComponentRequest(BaseModel):
    target_id: Optional[str] = None
    intent: DropIntent = DropIntent.INSIDE


class SelectionRequest(BaseModel):
    component_id: Optional[str] = None


class AddPageRequest(BaseModel):
    title: Optional[str] = None


class RenamePageRequest(BaseModel):
    title: str


class PointModel(BaseModel):
    x: float
    y: float


class RectModel(BaseModel):
    left: float
    top: float
    width: float
    height: float


class DropPreviewRequest(BaseModel):
    """
    Drop preview for a palette kind or an existing component.

    Exactly one of `kind` and `component_id` must be set. Without a
    pointer or target rect the drop is treated as `inside`.
    """
    kind: Optional[str] = None
    component_id: Optional[str] = None
    target_id: Optional[str] = None
    pointer: Optional[PointModel] = None
    target_rect: Optional[RectModel] = None
