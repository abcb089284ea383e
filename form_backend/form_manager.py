"""
Form Manager - One open form, its file and its save state.

This module implements:
- Single form session (one form open at a time) over a FormBuilder
- JSON file persistence (open, save, save as, import)
- Dirty tracking against the last saved or opened content
- Change and save callbacks for real-time sync
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from form_core import (
    Component,
    DragSource,
    DropIntent,
    DropPreview,
    FormBuilder,
    FormState,
    Page,
    Point,
    Rect,
    ValidationIssue,
    dumps_form,
)
from form_core.config import BuilderConfig
from form_core.tree import find_component, iter_components

logger = logging.getLogger(__name__)


class FormManager:
    """
    Manages a single form's builder, file path and dirty state.

    A form is always open: a fresh manager starts with an empty
    untitled form that has no file path yet.

    Selection and page switches do not make a form dirty; undoing back
    to the saved content makes it clean again.
    """

    def __init__(self, config: Optional[BuilderConfig] = None):
        self._builder = FormBuilder(config=config)
        self._file_path: Optional[Path] = None
        self._saved_content = self._content(self._builder.state)
        self._dirty = False
        self._on_change_callbacks: list[Callable[[], None]] = []
        self._on_save_callbacks: list[Callable[[Path, dict], None]] = []
        self._builder.subscribe(self._handle_change)

    # --- Properties ---

    @property
    def builder(self) -> FormBuilder:
        return self._builder

    @property
    def form(self) -> FormState:
        """Get the current form."""
        return self._builder.state

    @property
    def file_path(self) -> Optional[Path]:
        """Get the current file path."""
        return self._file_path

    @property
    def is_dirty(self) -> bool:
        """Check if there are unsaved changes."""
        return self._dirty

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[], None]):
        """Register a callback for form changes."""
        self._on_change_callbacks.append(callback)

    def _handle_change(self, state: FormState):
        self._dirty = self._content(state) != self._saved_content
        for callback in self._on_change_callbacks:
            callback()

    @staticmethod
    def _content(state: FormState) -> tuple:
        # Navigation fields are not part of what gets saved as "changed"
        return (state.title, state.pages)

    def _mark_clean(self):
        self._saved_content = self._content(self._builder.state)
        self._dirty = False

    # --- Save Callbacks ---

    def on_save(self, callback: Callable[[Path, dict], None]):
        """Register a callback for form saves.

        Callback receives (path: Path, form_info: dict) where form_info contains:
        - title: form title
        - page_count: number of pages
        - component_count: number of components on all pages
        """
        self._on_save_callbacks.append(callback)

    def _notify_save(self, path: Path):
        if not self._on_save_callbacks:
            return

        form = self.form
        form_info = {
            "title": form.title,
            "page_count": len(form.pages),
            "component_count": sum(1 for page in form.pages for _ in iter_components(page.components)),
        }

        for callback in self._on_save_callbacks:
            try:
                callback(path, form_info)
            except Exception:
                logger.exception("Save callback %r failed for %s", callback, path)

    # --- File Operations ---

    def new_form(self, title: str = "Untitled Form") -> FormState:
        """Replace the open form with an empty one."""
        self._builder.reset(FormState.new(title))
        self._file_path = None
        self._mark_clean()
        return self.form

    def open_form(self, file_path: str | Path) -> FormState:
        """
        Open a form from a JSON file.

        Raises:
            FileNotFoundError: The file does not exist
            FormLoadError: The file is not a valid form; the open form is kept
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Form file not found: {path}")

        self._builder.load(path.read_text(encoding="utf-8"))
        self._file_path = path
        self._mark_clean()
        logger.info("Opened form %s", path)
        return self.form

    def import_form(self, data: dict | str) -> FormState:
        """Load form JSON that has no file yet (e.g. an uploaded export)."""
        self._builder.load(data)
        self._file_path = None
        self._dirty = True
        return self.form

    def save_form(self, file_path: Optional[str | Path] = None) -> Path:
        """
        Save the form to a JSON file.

        If file_path is provided, save to that path (Save As).
        Otherwise, save to the current file_path.
        """
        if file_path:
            path = Path(file_path)
        elif self._file_path:
            path = self._file_path
        else:
            raise ValueError("No file path specified and no current file path")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dumps_form(self.form), encoding="utf-8")

        self._file_path = path
        self._mark_clean()
        logger.info("Saved form to %s", path)

        self._notify_save(path)
        return path

    # --- Undo/Redo ---

    def undo(self) -> Optional[FormState]:
        """Undo the last edit. Returns None when there is nothing to undo."""
        if not self._builder.can_undo():
            return None
        return self._builder.undo()

    def redo(self) -> Optional[FormState]:
        """Redo the last undone edit. Returns None when there is nothing to redo."""
        if not self._builder.can_redo():
            return None
        return self._builder.redo()

    # --- Component Operations ---

    def get_component(self, component_id: str) -> Optional[Component]:
        """Find a component on any page."""
        for page in self.form.pages:
            component = find_component(page.components, component_id)
            if component is not None:
                return component
        return None

    def add_component(
        self,
        kind: str,
        target_id: Optional[str] = None,
        intent: DropIntent | str = DropIntent.INSIDE,
    ) -> Optional[Component]:
        """
        Add a component to the current page.

        Requests come from the API, not a pointer, so the double-click
        throttle does not apply: two identical calls add two components.

        Returns:
            The new component, or None when the placement was rejected
        """
        before = self.form
        after = self._builder.add_component(kind, target_id, intent, throttle=False)
        if after is before:
            return None
        return self.get_component(after.selected_component_id)

    def update_component(self, component_id: str, attrs: dict[str, Any]) -> Optional[Component]:
        """Update a component's attributes. Returns None if it does not exist."""
        if self.get_component(component_id) is None:
            return None
        self._builder.update_component(component_id, attrs)
        return self.get_component(component_id)

    def delete_component(self, component_id: str) -> bool:
        if self.get_component(component_id) is None:
            return False
        before = self.form
        return self._builder.delete_component(component_id) is not before

    def move_component(
        self,
        component_id: str,
        target_id: Optional[str],
        intent: DropIntent | str = DropIntent.INSIDE,
    ) -> bool:
        """Move a component on the current page. Returns whether the form changed."""
        before = self.form
        return self._builder.move_component(component_id, target_id, intent) is not before

    def select_component(self, component_id: Optional[str]) -> bool:
        """Returns whether the requested selection is now in effect."""
        return self._builder.select_component(component_id).selected_component_id == component_id

    # --- Page Operations ---

    def add_page(self, title: Optional[str] = None) -> Page:
        return self._builder.add_page(title).current_page

    def delete_page(self, page_id: str) -> bool:
        if self.form.get_page(page_id) is None:
            return False
        self._builder.delete_page(page_id)
        return True

    def rename_page(self, page_id: str, title: str) -> Optional[Page]:
        if self.form.get_page(page_id) is None:
            return None
        return self._builder.rename_page(page_id, title).get_page(page_id)

    def switch_page(self, page_id: str) -> bool:
        if self.form.get_page(page_id) is None:
            return False
        self._builder.switch_page(page_id)
        return True

    def rename_form(self, title: str) -> FormState:
        return self._builder.rename_form(title)

    # --- Drag Preview & Validation ---

    def preview_drop(
        self,
        source: DragSource,
        pointer: Optional[Point],
        target_id: Optional[str],
        target_rect: Optional[Rect] = None,
    ) -> DropPreview:
        return self._builder.preview_drop(source, pointer, target_id, target_rect)

    def validate(self) -> list[ValidationIssue]:
        return self._builder.validate()

    # --- State ---

    def get_state(self) -> dict:
        """Get the full current state for API responses."""
        return {
            "form": self.form.to_json_dict(),
            "file_path": str(self._file_path) if self._file_path else None,
            "is_dirty": self._dirty,
            "can_undo": self._builder.can_undo(),
            "can_redo": self._builder.can_redo(),
        }


def list_form_files(directory: str | Path) -> list[dict]:
    """Summarize the form JSON files in a directory. Unreadable files are skipped."""
    path = Path(directory)
    if not path.exists():
        return []

    forms = []
    for f in sorted(path.glob("*.json")):
        try:
            data = json.loads(f.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.debug("Skipping %s: %s", f, e)
            continue
        if not isinstance(data, dict):
            continue
        pages = data.get("pages") or []
        forms.append({
            "path": str(f),
            "title": data.get("title") or data.get("formTitle") or f.stem,
            "pages": len(pages),
        })
    return forms


# Global instance
form_manager = FormManager()
