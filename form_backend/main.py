"""
Form Canvas Backend - FastAPI Application

This is the main entry point for the form canvas backend.
It provides:
- REST API for form operations (components, pages, file ops, undo/redo)
- Drop previews for clients that do not run the placement engine
- WebSocket endpoint for real-time updates
- CORS configuration for local frontend development
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from form_core import (
    ComponentKind,
    DragSource,
    DropIntent,
    FormCanvasError,
    FormLoadError,
    Point,
    Rect,
    supported_kinds,
    validation_summary,
)

from . import settings
from .form_manager import form_manager, list_form_files
from .models import (
    AddComponentRequest,
    AddPageRequest,
    DropPreviewRequest,
    FormInfoRequest,
    ImportFormRequest,
    MoveComponentRequest,
    OpenFormRequest,
    RenamePageRequest,
    SaveFormRequest,
    SelectionRequest,
    UpdateComponentRequest,
)
from .websocket_manager import ws_manager

logger = logging.getLogger(__name__)


# --- Async change notification ---
# Bridge between sync FormBuilder subscriptions and async WebSocket broadcasts

_change_event = asyncio.Event()


def on_form_change():
    """Callback for form changes - sets event for async handler."""
    _change_event.set()


async def change_broadcaster():
    """Background task that broadcasts changes to WebSocket clients."""
    while True:
        await _change_event.wait()
        _change_event.clear()
        await ws_manager.notify_form_updated(form_manager.form.current_page_id)


_pending_saves: set[asyncio.Task] = set()


def on_form_saved(path, info: dict):
    """Save callback - runs inside a request handler, so a loop is running."""
    task = asyncio.get_running_loop().create_task(ws_manager.notify_form_saved(path, info["title"]))
    _pending_saves.add(task)
    task.add_done_callback(_pending_saves.discard)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    form_manager.on_change(on_form_change)
    form_manager.on_save(on_form_saved)

    broadcaster_task = asyncio.create_task(change_broadcaster())

    yield

    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass


# --- FastAPI App ---

app = FastAPI(
    title="Form Canvas API",
    description="Backend API for the drag-and-drop form builder",
    version="1.0.0",
    lifespan=lifespan
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _load_error(e: FormLoadError) -> HTTPException:
    return HTTPException(status_code=400, detail=e.to_dict())


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "connections": ws_manager.connection_count}


# --- Form State ---

@app.get("/api/form")
async def get_form():
    """Get the current form state."""
    return form_manager.get_state()


@app.patch("/api/form")
async def update_form(request: FormInfoRequest):
    """Update form-level data (title)."""
    form = form_manager.rename_form(request.title)
    return {"success": True, "form": form.to_json_dict()}


# --- File Operations ---

@app.post("/api/form/new")
async def new_form(title: str = Query(default="Untitled Form")):
    """Create a new empty form."""
    form = form_manager.new_form(title=title)
    return {"success": True, "form": form.to_json_dict()}


@app.post("/api/form/open")
async def open_form(request: OpenFormRequest):
    """Open a form from a JSON file."""
    try:
        form = form_manager.open_form(request.file_path)
        return {
            "success": True,
            "form": form.to_json_dict(),
            "file_path": str(form_manager.file_path)
        }
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except FormLoadError as e:
        raise _load_error(e)
    except OSError as e:
        raise HTTPException(status_code=400, detail=f"Failed to open form: {e}")


@app.post("/api/form/save")
async def save_form(request: SaveFormRequest):
    """Save the form to a JSON file."""
    try:
        path = form_manager.save_form(request.file_path)
        return {"success": True, "file_path": str(path)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Failed to save: {e}")


@app.post("/api/form/import")
async def import_form(request: ImportFormRequest):
    """Load a form export without a backing file."""
    try:
        form = form_manager.import_form(request.form)
        return {"success": True, "form": form.to_json_dict()}
    except FormLoadError as e:
        raise _load_error(e)


# --- Undo/Redo ---

@app.post("/api/undo")
async def undo():
    """Undo the last action."""
    form = form_manager.undo()
    if form:
        return {"success": True, "form": form.to_json_dict()}
    return {"success": False, "message": "Nothing to undo"}


@app.post("/api/redo")
async def redo():
    """Redo the last undone action."""
    form = form_manager.redo()
    if form:
        return {"success": True, "form": form.to_json_dict()}
    return {"success": False, "message": "Nothing to redo"}


# --- Component Operations ---

@app.post("/api/components")
async def create_component(request: AddComponentRequest):
    """
    Add a palette component to the current page.

    A placement the tree rules reject (full row, missing target) is not an
    error: success is False and the form is unchanged.
    """
    try:
        component = form_manager.add_component(request.kind, request.target_id, request.intent)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if component is None:
        return {"success": False, "message": "Placement rejected"}
    return {"success": True, "component": component.to_json_dict()}


@app.get("/api/components/{component_id}")
async def get_component(component_id: str):
    """Get a specific component."""
    component = form_manager.get_component(component_id)
    if component:
        return {"success": True, "component": component.to_json_dict()}
    raise HTTPException(status_code=404, detail="Component not found")


@app.patch("/api/components/{component_id}")
async def update_component(component_id: str, request: UpdateComponentRequest):
    """Update a component's attributes."""
    attrs = request.model_dump(exclude_unset=True)
    component = form_manager.update_component(component_id, attrs)
    if component:
        return {"success": True, "component": component.to_json_dict()}
    raise HTTPException(status_code=404, detail="Component not found")


@app.delete("/api/components/{component_id}")
async def delete_component(component_id: str):
    """Delete a component (and, for groups, everything inside it)."""
    if form_manager.delete_component(component_id):
        return {"success": True}
    raise HTTPException(status_code=404, detail="Component not found")


@app.post("/api/components/{component_id}/move")
async def move_component(component_id: str, request: MoveComponentRequest):
    """Move a component on the current page."""
    if form_manager.get_component(component_id) is None:
        raise HTTPException(status_code=404, detail="Component not found")
    moved = form_manager.move_component(component_id, request.target_id, request.intent)
    return {"success": moved, "form": form_manager.form.to_json_dict()}


@app.post("/api/selection")
async def select_component(request: SelectionRequest):
    """Select a component on the current page, or clear the selection."""
    if not form_manager.select_component(request.component_id):
        raise HTTPException(status_code=404, detail="Component not on the current page")
    return {"success": True, "selected_component_id": request.component_id}


# --- Page Operations ---

@app.post("/api/pages")
async def add_page(request: AddPageRequest):
    """Append a page and make it current."""
    page = form_manager.add_page(request.title)
    return {"success": True, "page": page.model_dump(mode="json")}


@app.patch("/api/pages/{page_id}")
async def rename_page(page_id: str, request: RenamePageRequest):
    page = form_manager.rename_page(page_id, request.title)
    if page:
        return {"success": True, "page": page.model_dump(mode="json")}
    raise HTTPException(status_code=404, detail="Page not found")


@app.delete("/api/pages/{page_id}")
async def delete_page(page_id: str):
    """Delete a page. The last page is replaced by an empty one."""
    if form_manager.delete_page(page_id):
        return {"success": True, "current_page_id": form_manager.form.current_page_id}
    raise HTTPException(status_code=404, detail="Page not found")


@app.post("/api/pages/{page_id}/switch")
async def switch_page(page_id: str):
    if form_manager.switch_page(page_id):
        return {"success": True, "current_page_id": page_id}
    raise HTTPException(status_code=404, detail="Page not found")


# --- Drag Preview ---

@app.post("/api/drag/preview")
async def preview_drop(request: DropPreviewRequest):
    """
    Resolve where a drop would land without changing the form.

    Returns the raw and resolved intent, the resolved target and whether
    dropping now would be accepted.
    """
    if (request.kind is None) == (request.component_id is None):
        raise HTTPException(status_code=400, detail="Provide exactly one of kind or component_id")

    try:
        if request.kind is not None:
            source = DragSource.palette(request.kind)
        else:
            source = DragSource.existing(form_manager.form.current_components, request.component_id)
    except FormCanvasError as e:
        raise HTTPException(status_code=400, detail=str(e))

    pointer = Point(request.pointer.x, request.pointer.y) if request.pointer else None
    rect = None
    if request.target_rect:
        r = request.target_rect
        rect = Rect(r.left, r.top, r.width, r.height)

    preview = form_manager.preview_drop(source, pointer, request.target_id, rect)
    return {"success": True, "preview": preview.to_dict()}


# --- List Forms ---

@app.get("/api/forms")
async def list_forms(directory: Optional[str] = Query(default=None)):
    """List form files in a directory (FORM_CANVAS_FORMS_DIR by default)."""
    return {"success": True, "forms": list_form_files(directory or settings.FORMS_DIR)}


# --- Validation ---

@app.get("/api/form/validate")
async def validate_current_form():
    """
    Validate the current form.

    Returns a list of issues (errors, warnings, info) and a summary.
    """
    issues = form_manager.validate()
    return {
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    }


# --- Enums for Frontend ---

@app.get("/api/enums/kinds")
async def get_kinds():
    """Get available component kinds in palette order."""
    return {
        "kinds": [k.value for k in supported_kinds()],
        "groups": [k.value for k in ComponentKind if k.is_group],
    }


@app.get("/api/enums/intents")
async def get_intents():
    """Get the drop intents."""
    return {"intents": [i.value for i in DropIntent]}


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Clients connect here to receive form_updated events.
    """
    await ws_manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text('{"type": "pong"}')
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)
    except Exception as e:
        logger.warning("WebSocket error: %s", e)
        await ws_manager.disconnect(websocket)


# --- Run with uvicorn ---

def run():
    import uvicorn

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
