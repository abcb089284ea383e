"""
Structural helpers over a tuple of root components.

Lookups walk the tree depth-first. Edits are copy-on-write: only the nodes on
the path to the edit are rebuilt, every other subtree is shared with the
input. Functions that find nothing to change return their input unchanged
(the same object), which callers use to detect no-ops.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from .config import DEFAULT_CONFIG, BuilderConfig
from .models import Component

Components = tuple[Component, ...]
Path = tuple[int, ...]


@dataclass(frozen=True)
class Location:
    """
    Where a component sits in the tree.

    Attributes:
        node: The component itself
        parent: The containing group, or None at the page root
        parent_path: Index path to the parent (empty at the root)
        index: Position in the parent's children (or the root list)
    """
    node: Component
    parent: Optional[Component]
    parent_path: Path
    index: int

    @property
    def path(self) -> Path:
        return self.parent_path + (self.index,)

    @property
    def in_horizontal_group(self) -> bool:
        return self.parent is not None and self.parent.is_horizontal_group


def iter_components(components: Components) -> Iterator[Component]:
    """Yield every component depth-first, parents before children."""
    for component in components:
        yield component
        yield from iter_components(component.children)


def iter_locations(
    components: Components,
    parent: Optional[Component] = None,
    parent_path: Path = (),
) -> Iterator[Location]:
    """Yield a Location for every component depth-first."""
    for index, component in enumerate(components):
        location = Location(component, parent, parent_path, index)
        yield location
        yield from iter_locations(component.children, component, location.path)


def locate(components: Components, component_id: str) -> Optional[Location]:
    """Find a component's location by id."""
    for location in iter_locations(components):
        if location.node.id == component_id:
            return location
    return None


def find_component(components: Components, component_id: str) -> Optional[Component]:
    location = locate(components, component_id)
    return location.node if location else None


def collect_ids(components: Components) -> set[str]:
    return {component.id for component in iter_components(components)}


def is_in_subtree(root: Component, component_id: str) -> bool:
    """Check whether `component_id` is `root` itself or one of its descendants."""
    if root.id == component_id:
        return True
    return any(c.id == component_id for c in iter_components(root.children))


def ancestors(components: Components, component_id: str) -> list[Component]:
    """Return the chain of groups containing a component, outermost first."""
    location = locate(components, component_id)
    if location is None:
        return []
    chain = []
    current: Components = components
    for index in location.parent_path:
        node = current[index]
        chain.append(node)
        current = node.children
    return chain


def contains_horizontal_group(component: Component) -> bool:
    """Check whether a subtree holds a horizontal group (including its root)."""
    return any(c.is_horizontal_group for c in iter_components((component,)))


# --- Copy-on-write edits ---

def edit_siblings(
    components: Components,
    parent_path: Path,
    edit: Callable[[Components], Components],
) -> Components:
    """
    Apply `edit` to the child list at `parent_path` and rebuild the path.

    An empty path edits the root list itself.
    """
    if not parent_path:
        return tuple(edit(components))
    head, rest = parent_path[0], parent_path[1:]
    node = components[head]
    new_children = edit_siblings(node.children, rest, edit)
    if new_children is node.children:
        return components
    updated = node.model_copy(update={"children": new_children})
    return components[:head] + (updated,) + components[head + 1:]


def replace_at(components: Components, path: Path, *replacements: Component) -> Components:
    """Replace the node at `path` with zero or more nodes."""
    index = path[-1]
    return edit_siblings(
        components,
        path[:-1],
        lambda siblings: siblings[:index] + tuple(replacements) + siblings[index + 1:],
    )


def insert_at(components: Components, parent_path: Path, index: int, node: Component) -> Components:
    return edit_siblings(
        components,
        parent_path,
        lambda siblings: siblings[:index] + (node,) + siblings[index:],
    )


def with_width(component: Component, width: Optional[str]) -> Component:
    """Return the component with its layout width set (same object if unchanged)."""
    if component.layout.width == width:
        return component
    layout = component.layout.model_copy(update={"width": width})
    return component.model_copy(update={"layout": layout})


def share_width(count: int) -> str:
    """Equal column width for a horizontal group of `count` members."""
    return f"{100 / count:.2f}%"


# --- Normalization ---

def normalize(components: Components, config: BuilderConfig = DEFAULT_CONFIG) -> Components:
    """
    Restore the horizontal group rules after a structural edit.

    - A horizontal group below the minimum size is dissolved; its remaining
      children take its place (width reset), an empty group disappears.
    - Members of a horizontal group get an equal share of the row width.

    Runs bottom-up so dissolution cascades. Returns the input object when
    nothing needed fixing.
    """
    result: list[Component] = []
    changed = False
    for component in components:
        children = normalize(component.children, config)
        node = component
        if children is not component.children:
            node = component.model_copy(update={"children": children})
            changed = True

        if node.is_horizontal_group and len(node.children) < config.min_group_children:
            result.extend(with_width(child, None) for child in node.children)
            changed = True
            continue

        if node.is_horizontal_group:
            width = share_width(len(node.children))
            members = tuple(with_width(child, width) for child in node.children)
            if any(new is not old for new, old in zip(members, node.children)):
                node = node.model_copy(update={"children": members})
                changed = True

        result.append(node)

    return tuple(result) if changed else components


# --- Invariant checks ---

def check_invariants(
    components: Components,
    config: BuilderConfig = DEFAULT_CONFIG,
    seen_ids: Optional[set[str]] = None,
) -> list[str]:
    """
    List every structural rule the tree breaks.

    Checks id uniqueness (against `seen_ids` too, for multi-page forms),
    horizontal group size, horizontal group nesting and children on leaves.
    An empty list means the tree is sound.
    """
    problems: list[str] = []
    seen = seen_ids if seen_ids is not None else set()

    def visit(nodes: Components, inside_row: bool) -> None:
        for node in nodes:
            if node.id in seen:
                problems.append(f"Duplicate component id: {node.id}")
            seen.add(node.id)

            if node.is_horizontal_group:
                if inside_row:
                    problems.append(f"Horizontal group {node.id} is nested inside another horizontal group")
                count = len(node.children)
                if not config.min_group_children <= count <= config.max_group_children:
                    problems.append(
                        f"Horizontal group {node.id} has {count} children "
                        f"(expected {config.min_group_children}-{config.max_group_children})"
                    )
            elif not node.is_group and node.children:
                problems.append(f"Component {node.id} ({node.kind.value}) cannot have children")

            visit(node.children, inside_row or node.is_horizontal_group)

    visit(components, False)
    return problems

