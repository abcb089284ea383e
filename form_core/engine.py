"""
Tree mutation engine - the single source of truth for form edits.

Two layers:
- Tree functions (`add`, `insert`, `update`, `remove`, `move`) take the root
  components of a page and return new root components.
- State functions (`add_component`, `delete_component`, ...) apply them to a
  FormState, keep the selection valid and handle pages.

Nothing is ever mutated in place. An operation that is not possible (target
missing, group full, drop onto own subtree, result breaking a tree rule)
returns its input object unchanged; these happen constantly while a pointer
hovers over a form, so they are logged at DEBUG and never raised.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError

from .actions import (
    AddComponentAction,
    AddPageAction,
    DeletePageAction,
    DeleteComponentAction,
    FormAction,
    MoveComponentAction,
    RenameFormAction,
    RenamePageAction,
    SelectComponentAction,
    SwitchPageAction,
    UpdateComponentAction,
)
from .config import DEFAULT_CONFIG, BuilderConfig
from .factory import create_component, create_group
from .models import (
    Component,
    ComponentKind,
    DropIntent,
    FormState,
    Page,
    normalize_component_data,
)
from .tree import (
    Components,
    Location,
    check_invariants,
    collect_ids,
    edit_siblings,
    insert_at,
    is_in_subtree,
    iter_components,
    locate,
    normalize,
    replace_at,
    with_width,
)
from .validation import ValidationResult, validate_component

logger = logging.getLogger(__name__)

# Attributes `update` never touches: identity and tree shape
STRUCTURAL_KEYS = frozenset({"id", "kind", "children"})


# ============================================================================
# TREE OPERATIONS
# ============================================================================

def add(
    components: Components,
    kind: ComponentKind | str,
    target_id: Optional[str] = None,
    intent: DropIntent = DropIntent.INSIDE,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> Components:
    """Create a component of `kind` and insert it relative to `target_id`."""
    return insert(components, create_component(kind), target_id, intent, config)


def insert(
    components: Components,
    node: Component,
    target_id: Optional[str] = None,
    intent: DropIntent = DropIntent.INSIDE,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> Components:
    """
    Insert a new node relative to a target.

    Args:
        components: Root components of the page
        node: Node to insert; none of its ids may exist in the tree yet
        target_id: Target component, or None to append to the page root
        intent: left/right build or extend a row, before/after insert as
            siblings, inside appends to the nearest group
        config: Group capacity settings

    Returns:
        New root components, or `components` itself when nothing changed
    """
    clashes = collect_ids((node,)) & collect_ids(components)
    if clashes:
        logger.error("Refusing to insert %s: ids already in tree: %s", node.id, sorted(clashes))
        return components

    candidate = _place(components, node, target_id, intent, config)
    if candidate is None:
        return components
    return _settle(components, candidate, config)


def update(
    components: Components,
    component_id: str,
    attrs: dict[str, Any],
) -> Components:
    """
    Merge attributes into a component. The tree shape never changes.

    `id`, `kind` and `children` are ignored. A partial `layout` dict is merged
    into the existing layout. Values are validated by the model; anything
    invalid abandons the update.
    """
    location = locate(components, component_id)
    if location is None:
        logger.warning("Update of unknown component %s ignored", component_id)
        return components

    changes = {
        key: value
        for key, value in normalize_component_data(attrs).items()
        if key not in STRUCTURAL_KEYS
    }
    if not changes:
        return components

    current = location.node
    if isinstance(changes.get("layout"), dict):
        changes["layout"] = {**current.layout.model_dump(), **changes["layout"]}

    data = current.model_dump(exclude={"children"})
    data.update(changes)
    try:
        updated = Component.model_validate(data)
    except ValidationError as e:
        logger.warning("Rejected update of %s: %s", component_id, e)
        return components

    updated = updated.model_copy(update={"children": current.children})
    if updated == current:
        return components
    return replace_at(components, location.path, updated)


def remove(
    components: Components,
    component_id: str,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> Components:
    """
    Delete a component and its subtree.

    A row left with a single member dissolves: that member takes the row's
    place. Dissolution cascades up the ancestor chain.
    """
    location = locate(components, component_id)
    if location is None:
        logger.debug("Remove of unknown component %s ignored", component_id)
        return components
    return normalize(replace_at(components, location.path), config)


def move(
    components: Components,
    from_id: str,
    target_id: Optional[str],
    intent: DropIntent,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> Components:
    """
    Move an existing component (id and subtree preserved) to a new position.

    The node is detached, reinserted relative to the target, and only then are
    the rows it left normalized, so a two-member row reordered in place keeps
    its identity.
    """
    source = locate(components, from_id)
    if source is None:
        logger.debug("Move of unknown component %s ignored", from_id)
        return components
    if target_id is not None and is_in_subtree(source.node, target_id):
        logger.debug("Cannot move %s onto itself or a descendant", from_id)
        return components

    node = source.node
    if source.in_horizontal_group:
        node = with_width(node, None)
    detached = replace_at(components, source.path)

    candidate = _place(detached, node, target_id, intent, config)
    if candidate is None:
        return components
    return _settle(components, candidate, config)


def validate(component: Component) -> ValidationResult:
    """Validate a single component (see `form_core.validation`)."""
    return validate_component(component)


# --- Placement internals ---

def _place(
    components: Components,
    node: Component,
    target_id: Optional[str],
    intent: DropIntent,
    config: BuilderConfig,
) -> Optional[Components]:
    """Build the candidate tree for a placement, or None if impossible."""
    if target_id is None:
        return components + (node,)

    target = locate(components, target_id)
    if target is None:
        logger.debug("Drop target %s not found", target_id)
        return None

    # A row's only axis is horizontal
    if target.in_horizontal_group and intent.is_vertical:
        intent = DropIntent.LEFT if intent is DropIntent.BEFORE else DropIntent.RIGHT

    if intent.is_vertical:
        index = target.index if intent is DropIntent.BEFORE else target.index + 1
        return insert_at(components, target.parent_path, index, node)

    if intent.is_horizontal:
        return _place_beside(components, node, target, intent, config)

    return _place_inside(components, node, target, config)


def _place_beside(
    components: Components,
    node: Component,
    target: Location,
    intent: DropIntent,
    config: BuilderConfig,
) -> Optional[Components]:
    at_start = intent is DropIntent.LEFT

    if target.node.is_horizontal_group:
        row = target.node
        index = 0 if at_start else len(row.children)
        return _join_row(components, row, target.path, index, node, config)

    if target.in_horizontal_group:
        index = target.index if at_start else target.index + 1
        return _join_row(components, target.parent, target.parent_path, index, node, config)

    if node.is_horizontal_group:
        logger.debug("Cannot wrap %s into a new row with row %s", target.node.id, node.id)
        return None

    pair = (node, target.node) if at_start else (target.node, node)
    row = create_group(ComponentKind.HORIZONTAL_GROUP, pair)
    return replace_at(components, target.path, row)


def _place_inside(
    components: Components,
    node: Component,
    target: Location,
    config: BuilderConfig,
) -> Optional[Components]:
    if target.node.is_group:
        group, group_path = target.node, target.path
    elif target.parent is not None:
        group, group_path = target.parent, target.parent_path
    else:
        logger.debug("No container for inside drop on %s", target.node.id)
        return None

    if group.is_horizontal_group:
        return _join_row(components, group, group_path, len(group.children), node, config)
    return insert_at(components, group_path, len(group.children), node)


def _join_row(
    components: Components,
    row: Component,
    row_path: tuple[int, ...],
    index: int,
    node: Component,
    config: BuilderConfig,
) -> Optional[Components]:
    """Insert into a row; a dragged row contributes its members instead of nesting."""
    incoming = node.children if node.is_horizontal_group else (node,)
    if len(row.children) + len(incoming) > config.max_group_children:
        logger.debug("Row %s is full (%d members)", row.id, len(row.children))
        return None
    members = tuple(with_width(member, None) for member in incoming)
    return edit_siblings(
        components,
        row_path,
        lambda siblings: siblings[:index] + members + siblings[index:],
    )


def _settle(original: Components, candidate: Components, config: BuilderConfig) -> Components:
    """Normalize a candidate tree and keep it only if it satisfies every rule."""
    result = normalize(candidate, config)
    problems = check_invariants(result, config)
    if problems:
        logger.debug("Discarding edit that would break tree rules: %s", "; ".join(problems))
        return original
    if result == original:
        return original
    return result


# ============================================================================
# FORM STATE OPERATIONS
# ============================================================================

def all_component_ids(state: FormState) -> set[str]:
    return {c.id for page in state.pages for c in iter_components(page.components)}


def find_page_of(state: FormState, component_id: str) -> Optional[Page]:
    """The page whose tree holds the component."""
    for page in state.pages:
        if locate(page.components, component_id) is not None:
            return page
    return None


def _with_page(state: FormState, page: Page, components: Components) -> FormState:
    pages = tuple(
        p.model_copy(update={"components": components}) if p.id == page.id else p
        for p in state.pages
    )
    return state.model_copy(update={"pages": pages})


def _valid_selection(state: FormState) -> FormState:
    selected = state.selected_component_id
    if selected is not None and locate(state.current_components, selected) is None:
        return state.model_copy(update={"selected_component_id": None})
    return state


def add_component(
    state: FormState,
    kind: ComponentKind | str,
    target_id: Optional[str] = None,
    intent: DropIntent = DropIntent.INSIDE,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> FormState:
    """Add a new component to the current page and select it."""
    page = state.current_page
    if page is None:
        logger.warning("Current page %s does not exist", state.current_page_id)
        return state

    node = create_component(kind)
    if node.id in all_component_ids(state):
        logger.error("Generated id %s already exists; add abandoned", node.id)
        return state

    components = insert(page.components, node, target_id, intent, config)
    if components is page.components:
        return state
    updated = _with_page(state, page, components)
    return updated.model_copy(update={"selected_component_id": node.id})


def update_component(state: FormState, component_id: str, attrs: dict[str, Any]) -> FormState:
    """Merge attributes into a component on any page."""
    page = find_page_of(state, component_id)
    if page is None:
        logger.warning("Update of unknown component %s ignored", component_id)
        return state
    components = update(page.components, component_id, attrs)
    if components is page.components:
        return state
    return _with_page(state, page, components)


def delete_component(
    state: FormState,
    component_id: str,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> FormState:
    """Delete a component on any page; clears the selection if it went with it."""
    page = find_page_of(state, component_id)
    if page is None:
        logger.debug("Delete of unknown component %s ignored", component_id)
        return state
    components = remove(page.components, component_id, config)
    if components is page.components:
        return state
    return _valid_selection(_with_page(state, page, components))


def move_component(
    state: FormState,
    from_id: str,
    target_id: Optional[str],
    intent: DropIntent,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> FormState:
    """Move a component within the current page."""
    page = state.current_page
    if page is None or locate(page.components, from_id) is None:
        logger.debug("Move source %s is not on the current page", from_id)
        return state
    components = move(page.components, from_id, target_id, intent, config)
    if components is page.components:
        return state
    return _valid_selection(_with_page(state, page, components))


def select_component(state: FormState, component_id: Optional[str]) -> FormState:
    """Select a component on the current page, or clear the selection."""
    if component_id is not None and locate(state.current_components, component_id) is None:
        logger.debug("Cannot select %s: not on the current page", component_id)
        return state
    if component_id == state.selected_component_id:
        return state
    return state.model_copy(update={"selected_component_id": component_id})


def add_page(state: FormState, title: Optional[str] = None) -> FormState:
    """Append a page and make it current."""
    page = Page(title=title or f"Page {len(state.pages) + 1}")
    return state.model_copy(update={
        "pages": state.pages + (page,),
        "current_page_id": page.id,
        "selected_component_id": None,
    })


def delete_page(state: FormState, page_id: str) -> FormState:
    """Delete a page. A form always keeps at least one page."""
    if state.get_page(page_id) is None:
        logger.debug("Delete of unknown page %s ignored", page_id)
        return state

    remaining = tuple(p for p in state.pages if p.id != page_id)
    if not remaining:
        remaining = (Page(title="Page 1"),)

    current = state.current_page_id
    if current == page_id:
        current = remaining[0].id
    updated = state.model_copy(update={"pages": remaining, "current_page_id": current})
    if current != state.current_page_id:
        updated = updated.model_copy(update={"selected_component_id": None})
    return _valid_selection(updated)


def rename_page(state: FormState, page_id: str, title: str) -> FormState:
    page = state.get_page(page_id)
    if page is None or page.title == title:
        return state
    pages = tuple(p.model_copy(update={"title": title}) if p.id == page_id else p for p in state.pages)
    return state.model_copy(update={"pages": pages})


def switch_page(state: FormState, page_id: str) -> FormState:
    if state.get_page(page_id) is None:
        logger.debug("Switch to unknown page %s ignored", page_id)
        return state
    if page_id == state.current_page_id:
        return state
    return state.model_copy(update={"current_page_id": page_id, "selected_component_id": None})


def rename_form(state: FormState, title: str) -> FormState:
    if title == state.title:
        return state
    return state.model_copy(update={"title": title})


# ============================================================================
# ACTION DISPATCH
# ============================================================================

_HANDLERS: dict[type, Callable[[FormState, Any, BuilderConfig], FormState]] = {
    AddComponentAction: lambda s, a, c: add_component(s, a.kind, a.target_id, a.intent, c),
    UpdateComponentAction: lambda s, a, c: update_component(s, a.component_id, a.attrs),
    DeleteComponentAction: lambda s, a, c: delete_component(s, a.component_id, c),
    MoveComponentAction: lambda s, a, c: move_component(s, a.component_id, a.target_id, a.intent, c),
    SelectComponentAction: lambda s, a, c: select_component(s, a.component_id),
    AddPageAction: lambda s, a, c: add_page(s, a.title),
    DeletePageAction: lambda s, a, c: delete_page(s, a.page_id),
    RenamePageAction: lambda s, a, c: rename_page(s, a.page_id, a.title),
    SwitchPageAction: lambda s, a, c: switch_page(s, a.page_id),
    RenameFormAction: lambda s, a, c: rename_form(s, a.title),
}


def execute_action(
    state: FormState,
    action: FormAction,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> FormState:
    """Apply any FormAction to a state. Unknown action types leave it unchanged."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.warning("Unknown action type: %r", action)
        return state
    return handler(state, action, config)
