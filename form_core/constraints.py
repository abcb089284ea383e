"""
Structural constraint resolver.

Rewrites a raw geometric intent into one the tree rules allow:

- A horizontal group never nests inside another horizontal group, so rows
  (and anything carrying a row) only move vertically, and a row dropped onto
  another row joins it instead of nesting.
- Inside a row the only axis is horizontal, so before/after become
  left/right.
- A full row refuses new members; the drop lands after the row instead.

Everything else passes through unchanged. `None` means the drop is not
possible at all (unknown target, or dropping a node onto its own subtree).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .config import DEFAULT_CONFIG, BuilderConfig
from .models import Component, ComponentKind, DropIntent
from .tree import Components, Location, ancestors, contains_horizontal_group, is_in_subtree, locate

logger = logging.getLogger(__name__)

_VERTICAL_FOR = {
    DropIntent.LEFT: DropIntent.BEFORE,
    DropIntent.RIGHT: DropIntent.AFTER,
}
_HORIZONTAL_FOR = {
    DropIntent.BEFORE: DropIntent.LEFT,
    DropIntent.AFTER: DropIntent.RIGHT,
}


@dataclass(frozen=True)
class DraggedItem:
    """
    What is being dragged.

    A palette item has only a kind; an existing node also has its id.
    """
    kind: ComponentKind
    component_id: Optional[str] = None

    @property
    def is_new(self) -> bool:
        return self.component_id is None


@dataclass(frozen=True)
class Placement:
    """A legal drop: the intent relative to a target (None = page root)."""
    intent: DropIntent
    target_id: Optional[str]


def resolve(
    intent: DropIntent,
    dragged: DraggedItem,
    target_id: Optional[str],
    components: Components,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> Optional[Placement]:
    """
    Rewrite a raw intent so that the resulting drop respects the tree rules.

    Args:
        intent: Intent from `geometry.classify`
        dragged: The dragged item
        target_id: Component under the pointer, or None for the empty canvas
        components: Root components of the page being edited
        config: Group capacity settings

    Returns:
        The placement to perform, or None when the drop is impossible
    """
    if target_id is None:
        return Placement(DropIntent.INSIDE, None)

    target = locate(components, target_id)
    if target is None:
        logger.debug("Drop target %s not found", target_id)
        return None

    source: Optional[Component] = None
    if not dragged.is_new:
        source_location = locate(components, dragged.component_id)
        if source_location is None:
            logger.debug("Dragged component %s not found", dragged.component_id)
            return None
        source = source_location.node
        if is_in_subtree(source, target_id):
            logger.debug("Cannot drop %s onto itself or a descendant", dragged.component_id)
            return None

    carries_row = dragged.kind is ComponentKind.HORIZONTAL_GROUP or (
        source is not None and contains_horizontal_group(source)
    )
    if carries_row:
        return _resolve_row_carrier(intent, dragged, source, target, _row_around(components, target), config)

    row = _enclosing_row(target)
    if row is not None:
        intent = _HORIZONTAL_FOR.get(intent, intent)
        if intent.is_horizontal or intent is DropIntent.INSIDE:
            if _member_count(row, source) >= config.max_group_children:
                logger.debug("Row %s is full, placing after it", row.id)
                return Placement(DropIntent.AFTER, row.id)
        return Placement(intent, target_id)

    if intent.is_horizontal and any(a.is_horizontal_group for a in ancestors(components, target_id)):
        # Wrapping a node that already lives under a row would nest rows
        return Placement(_VERTICAL_FOR[intent], target_id)

    return Placement(intent, target_id)


def _enclosing_row(target: Location) -> Optional[Component]:
    """The row a drop on `target` would join: the target itself or its parent."""
    if target.node.is_horizontal_group:
        return target.node
    if target.in_horizontal_group:
        return target.parent
    return None


def _row_around(components: Components, target: Location) -> Optional[Component]:
    """The nearest row holding `target` at any depth, or the target itself."""
    if target.node.is_horizontal_group:
        return target.node
    for group in reversed(ancestors(components, target.node.id)):
        if group.is_horizontal_group:
            return group
    return None


def _member_count(row: Component, source: Optional[Component]) -> int:
    """Row size once the dragged node has left it (for reorders within a row)."""
    count = len(row.children)
    if source is not None and any(child.id == source.id for child in row.children):
        count -= 1
    return count


def _resolve_row_carrier(
    intent: DropIntent,
    dragged: DraggedItem,
    source: Optional[Component],
    target: Location,
    row: Optional[Component],
    config: BuilderConfig,
) -> Placement:
    """Placement for a dragged row, or a dragged group holding a row."""
    if row is None:
        return Placement(_VERTICAL_FOR.get(intent, intent), target.node.id)

    if dragged.kind is ComponentKind.HORIZONTAL_GROUP:
        incoming = len(source.children) if source is not None else 0
        if len(row.children) + incoming <= config.max_group_children:
            return Placement(DropIntent.INSIDE, row.id)
        logger.debug("Row %s cannot absorb %d more members", row.id, incoming)
        return Placement(DropIntent.AFTER, row.id)

    if intent in (DropIntent.LEFT, DropIntent.BEFORE):
        return Placement(DropIntent.BEFORE, row.id)
    return Placement(DropIntent.AFTER, row.id)
