#!/usr/bin/env python3
"""
Form Canvas MCP Server

Provides MCP tools for AI agents to build forms with the form canvas.
All changes go through the backend, so they are immediately reflected in
the browser view via WebSocket updates.
"""

import json
import logging
import os
from typing import Any, Optional

import httpx
from mcp.server.fastmcp import FastMCP

logger = logging.getLogger(__name__)

# Backend API URL
API_BASE = os.getenv("FORM_CANVAS_API_BASE", "http://127.0.0.1:8765/api")

# Create MCP server
mcp = FastMCP("form-canvas")


class ApiError(Exception):
    """The backend answered with an error status."""

    def __init__(self, status_code: int, detail: Any):
        message = detail if isinstance(detail, str) else json.dumps(detail)
        super().__init__(f"API error ({status_code}): {message}")
        self.status_code = status_code
        self.detail = detail


# --- HTTP Client Helper ---

def api_request(method: str, endpoint: str, **kwargs) -> dict:
    """Make a request to the form canvas backend."""
    url = f"{API_BASE}{endpoint}"
    with httpx.Client(timeout=30.0) as client:
        if method == "GET":
            response = client.get(url, params=kwargs.get("params"))
        elif method == "POST":
            response = client.post(url, json=kwargs.get("json"), params=kwargs.get("params"))
        elif method == "PATCH":
            response = client.patch(url, json=kwargs.get("json"))
        elif method == "DELETE":
            response = client.delete(url)
        else:
            raise ValueError(f"Unknown method: {method}")

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", "Unknown error")
            except ValueError:
                detail = response.text or "Unknown error"
            logger.debug("%s %s failed: %s", method, endpoint, detail)
            raise ApiError(response.status_code, detail)

        return response.json()


def _dumps(result: dict) -> str:
    return json.dumps(result, indent=2)


# ============================================================================
# FORM TOOLS
# ============================================================================

@mcp.tool()
def form_get_current() -> str:
    """
    Get the full current form state.

    Returns every page with its component tree, the current page, the
    selection, the file path and undo/redo availability. Use this to learn
    component ids before making changes.
    """
    return _dumps(api_request("GET", "/form"))


@mcp.tool()
def form_list_forms(directory: Optional[str] = None) -> str:
    """
    List form files on disk.

    Args:
        directory: Directory to search for form JSON files (backend default
            when omitted)

    Returns each form's path, title and page count.
    """
    params = {"directory": directory} if directory else None
    return _dumps(api_request("GET", "/forms", params=params))


@mcp.tool()
def form_new(title: str = "Untitled Form") -> str:
    """
    Create a new empty form with a single page.

    Args:
        title: Title for the new form
    """
    return _dumps(api_request("POST", "/form/new", params={"title": title}))


@mcp.tool()
def form_open(file_path: str) -> str:
    """
    Load a form from a JSON file as the active form.

    Args:
        file_path: Full path to the form JSON file

    Invalid files are rejected with a list of the problems found.
    """
    return _dumps(api_request("POST", "/form/open", json={"file_path": file_path}))


@mcp.tool()
def form_save(file_path: Optional[str] = None) -> str:
    """
    Save the current form to a file.

    Args:
        file_path: Path to save to (uses current path if not specified)
    """
    return _dumps(api_request("POST", "/form/save", json={"file_path": file_path}))


@mcp.tool()
def form_rename(title: str) -> str:
    """Change the form title."""
    return _dumps(api_request("PATCH", "/form", json={"title": title}))


# ============================================================================
# COMPONENT TOOLS
# ============================================================================

@mcp.tool()
def form_add_component(
    kind: str,
    target_id: Optional[str] = None,
    intent: str = "inside"
) -> str:
    """
    Add a component to the current page.

    Args:
        kind: Component kind (text_input, email_input, password_input,
            number_input, textarea, rich_text, select, multi_select, checkbox,
            radio_group, date_picker, file_upload, signature,
            section_divider, heading, button, horizontal_group,
            vertical_group)
        target_id: Existing component to place relative to; omit to append
            to the end of the page
        intent: left/right put the component side by side with the target
            (a row holds at most 4), before/after insert above/below it,
            inside appends to the target group

    Returns the created component with its generated ID, or success=false
    when the placement is not possible.
    """
    return _dumps(api_request("POST", "/components", json={
        "kind": kind,
        "target_id": target_id,
        "intent": intent
    }))


@mcp.tool()
def form_update_component(
    component_id: str,
    label: Optional[str] = None,
    required: Optional[bool] = None,
    placeholder: Optional[str] = None,
    help_text: Optional[str] = None,
    options: Optional[list[str]] = None,
    field_id: Optional[str] = None,
    description: Optional[str] = None
) -> str:
    """
    Modify an existing component's properties.

    Args:
        component_id: ID of the component to update
        label: New label (optional)
        required: Whether the field must be filled in (optional)
        placeholder: New placeholder text (optional)
        help_text: Hint shown under the field (optional)
        options: Option labels for choice fields (replaces existing, optional)
        field_id: Submission key (optional)
        description: Section description (optional)

    Only provided fields are updated; others remain unchanged.
    """
    updates: dict[str, Any] = {}
    if label is not None:
        updates["label"] = label
    if required is not None:
        updates["required"] = required
    if placeholder is not None:
        updates["placeholder"] = placeholder
    if help_text is not None:
        updates["help_text"] = help_text
    if options is not None:
        updates["options"] = [
            {"label": option, "value": option.strip().lower().replace(" ", "_")}
            for option in options
        ]
    if field_id is not None:
        updates["field_id"] = field_id
    if description is not None:
        updates["description"] = description

    return _dumps(api_request("PATCH", f"/components/{component_id}", json=updates))


@mcp.tool()
def form_delete_component(component_id: str) -> str:
    """
    Remove a component.

    Args:
        component_id: ID of the component to delete

    Deleting a group removes everything inside it. A row left with a single
    component dissolves into that component.
    """
    return _dumps(api_request("DELETE", f"/components/{component_id}"))


@mcp.tool()
def form_move_component(
    component_id: str,
    target_id: Optional[str] = None,
    intent: str = "after"
) -> str:
    """
    Move a component on the current page.

    Args:
        component_id: ID of the component to move
        target_id: Component to place relative to; omit to move to the end
        intent: left, right, before, after or inside (see form_add_component)

    The component keeps its id and contents. success=false means the move
    was not possible (e.g. the target row is full or the target is inside
    the moved component).
    """
    return _dumps(api_request("POST", f"/components/{component_id}/move", json={
        "target_id": target_id,
        "intent": intent
    }))


@mcp.tool()
def form_select_component(component_id: Optional[str] = None) -> str:
    """Select a component on the current page (omit the id to clear)."""
    return _dumps(api_request("POST", "/selection", json={"component_id": component_id}))


@mcp.tool()
def form_preview_drop(
    target_id: Optional[str] = None,
    kind: Optional[str] = None,
    component_id: Optional[str] = None,
    pointer_x: Optional[float] = None,
    pointer_y: Optional[float] = None,
    target_left: float = 0,
    target_top: float = 0,
    target_width: Optional[float] = None,
    target_height: Optional[float] = None
) -> str:
    """
    Ask where a drop would land without changing the form.

    Args:
        target_id: Component under the pointer (omit for empty canvas)
        kind: Palette kind being dragged (give this or component_id)
        component_id: Existing component being dragged
        pointer_x: Pointer X in canvas coordinates
        pointer_y: Pointer Y in canvas coordinates
        target_left: Target box left edge
        target_top: Target box top edge
        target_width: Target box width
        target_height: Target box height

    Returns the raw intent from the pointer position, the resolved intent
    and target after the row rules, and whether the drop would be accepted.
    """
    payload: dict[str, Any] = {"target_id": target_id, "kind": kind, "component_id": component_id}
    if pointer_x is not None and pointer_y is not None:
        payload["pointer"] = {"x": pointer_x, "y": pointer_y}
    if target_width is not None and target_height is not None:
        payload["target_rect"] = {
            "left": target_left,
            "top": target_top,
            "width": target_width,
            "height": target_height
        }
    return _dumps(api_request("POST", "/drag/preview", json=payload))


# ============================================================================
# PAGE TOOLS
# ============================================================================

@mcp.tool()
def form_add_page(title: Optional[str] = None) -> str:
    """Append a page and make it the current page."""
    return _dumps(api_request("POST", "/pages", json={"title": title}))


@mcp.tool()
def form_delete_page(page_id: str) -> str:
    """
    Delete a page and its components.

    A form always keeps at least one page.
    """
    return _dumps(api_request("DELETE", f"/pages/{page_id}"))


@mcp.tool()
def form_switch_page(page_id: str) -> str:
    """Make another page current. New components are added to the current page."""
    return _dumps(api_request("POST", f"/pages/{page_id}/switch"))


# ============================================================================
# VALIDATION / HISTORY
# ============================================================================

@mcp.tool()
def form_validate() -> str:
    """
    Check the form for problems.

    Returns issues such as missing labels, choice fields without options,
    invalid number ranges, duplicate field ids and empty pages, with a
    summary by severity.
    """
    return _dumps(api_request("GET", "/form/validate"))


@mcp.tool()
def form_undo() -> str:
    """Revert the last change."""
    return _dumps(api_request("POST", "/undo"))


@mcp.tool()
def form_redo() -> str:
    """Reapply an undone change."""
    return _dumps(api_request("POST", "/redo"))


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    mcp.run()
