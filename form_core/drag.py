"""
Drag session orchestrator.

Coordinates one drag gesture from pickup to drop:

    idle -> dragging -> hovering* -> committing -> idle

Hover ticks classify the pointer, resolve the intent against the tree rules
and return a preview for the view to draw; they never change the form.
Only the drop commits, through the builder, so exactly one undo step is
recorded per gesture.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .config import DEFAULT_CONFIG, BuilderConfig
from .constraints import DraggedItem, resolve
from .engine import insert, move
from .errors import InvalidDragError
from .factory import coerce_kind, create_component
from .geometry import Point, Rect, classify_in_rect
from .models import ComponentKind, DropIntent, FormState
from .tree import Components, locate

if TYPE_CHECKING:
    from .builder import FormBuilder

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"
    COMMITTING = "committing"


@dataclass(frozen=True)
class DragSource:
    """
    Where the dragged item came from.

    A palette item only has a kind. An existing component also records its
    origin (parent group id, None at the page root, and index) at pickup.
    """
    kind: ComponentKind
    component_id: Optional[str] = None
    origin_parent_id: Optional[str] = None
    origin_index: Optional[int] = None

    @classmethod
    def palette(cls, kind: ComponentKind | str) -> "DragSource":
        return cls(kind=coerce_kind(kind))

    @classmethod
    def existing(cls, components: Components, component_id: str) -> "DragSource":
        location = locate(components, component_id)
        if location is None:
            raise InvalidDragError(f"Cannot drag unknown component {component_id}")
        return cls(
            kind=location.node.kind,
            component_id=component_id,
            origin_parent_id=location.parent.id if location.parent else None,
            origin_index=location.index,
        )

    @property
    def is_new(self) -> bool:
        return self.component_id is None

    def as_dragged(self) -> DraggedItem:
        return DraggedItem(kind=self.kind, component_id=self.component_id)


@dataclass(frozen=True)
class DropPreview:
    """
    Transient drop indicator for the view.

    Attributes:
        raw_intent: What the pointer geometry alone says
        intent: The resolved intent, None when the drop is impossible
        target_id: The resolved target (may differ from the hovered one,
            e.g. a full row redirects to after the row); None = page root
        accepted: Whether dropping now would change the form
    """
    raw_intent: DropIntent
    intent: Optional[DropIntent]
    target_id: Optional[str]
    accepted: bool

    def to_dict(self) -> dict:
        return {
            "raw_intent": self.raw_intent.value,
            "intent": self.intent.value if self.intent else None,
            "target_id": self.target_id,
            "accepted": self.accepted,
        }


def compute_preview(
    components: Components,
    source: DragSource,
    pointer: Optional[Point],
    target_id: Optional[str],
    target_rect: Optional[Rect],
    config: BuilderConfig = DEFAULT_CONFIG,
) -> DropPreview:
    """
    Classify, resolve and dry-run a drop without touching any state.

    Without a pointer or a measured target the raw intent is INSIDE.
    """
    if pointer is None or target_rect is None:
        raw = DropIntent.INSIDE
    else:
        raw = classify_in_rect(
            pointer,
            target_rect,
            thresholds=config.thresholds,
            allow_horizontal=config.allow_horizontal,
            allow_vertical=config.allow_vertical,
        )

    placement = resolve(raw, source.as_dragged(), target_id, components, config)
    if placement is None:
        return DropPreview(raw_intent=raw, intent=None, target_id=target_id, accepted=False)

    if source.is_new:
        candidate = insert(components, create_component(source.kind), placement.target_id, placement.intent, config)
    else:
        candidate = move(components, source.component_id, placement.target_id, placement.intent, config)

    return DropPreview(
        raw_intent=raw,
        intent=placement.intent,
        target_id=placement.target_id,
        accepted=candidate is not components,
    )


class DragSession:
    """
    One drag gesture at a time against a FormBuilder.

    Example:
        >>> session = builder.drag_session()
        >>> session.start(DragSource.palette("email_input"))
        >>> session.hover(Point(190, 40), "text_input_1_ab12cd", Rect(0, 0, 200, 80)).intent
        <DropIntent.RIGHT: 'right'>
        >>> session.drop(Point(190, 40), "text_input_1_ab12cd", Rect(0, 0, 200, 80))
    """

    def __init__(self, builder: "FormBuilder"):
        self._builder = builder
        self._state = DragState.IDLE
        self._source: Optional[DragSource] = None
        self._last_preview: Optional[DropPreview] = None

    # --- Properties ---

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def source(self) -> Optional[DragSource]:
        return self._source

    @property
    def last_preview(self) -> Optional[DropPreview]:
        return self._last_preview

    @property
    def is_active(self) -> bool:
        return self._state in (DragState.DRAGGING, DragState.HOVERING)

    # --- Lifecycle ---

    def start(self, source: DragSource) -> None:
        """Begin a gesture. An existing component must be on the current page."""
        if self._state is not DragState.IDLE:
            raise InvalidDragError(f"Cannot start a drag while {self._state.value}")
        if not source.is_new:
            # Re-read the origin from the live tree
            source = DragSource.existing(self._builder.current_components, source.component_id)
        self._source = source
        self._last_preview = None
        self._state = DragState.DRAGGING
        logger.debug("Drag started: %s", source)

    def start_from_palette(self, kind: ComponentKind | str) -> None:
        self.start(DragSource.palette(kind))

    def start_existing(self, component_id: str) -> None:
        self.start(DragSource.existing(self._builder.current_components, component_id))

    def hover(
        self,
        pointer: Optional[Point],
        target_id: Optional[str],
        target_rect: Optional[Rect] = None,
    ) -> DropPreview:
        """Compute the preview for the current pointer. Never changes the form."""
        self._require_active("hover")
        self._state = DragState.HOVERING
        self._last_preview = compute_preview(
            self._builder.current_components,
            self._source,
            pointer,
            target_id,
            target_rect,
            self._builder.config,
        )
        return self._last_preview

    def drop(
        self,
        pointer: Optional[Point] = None,
        target_id: Optional[str] = None,
        target_rect: Optional[Rect] = None,
        canvas_rect: Optional[Rect] = None,
    ) -> FormState:
        """
        Finish the gesture and commit the result.

        Released beyond `drag_delete_margin` outside `canvas_rect`, an existing
        component is deleted and a palette item is discarded. Otherwise the
        drop is resolved like a hover and applied through the builder; an
        impossible drop changes nothing.

        Returns:
            The builder's state after the drop
        """
        self._require_active("drop")
        source = self._source
        self._state = DragState.COMMITTING
        try:
            margin = self._builder.config.drag_delete_margin
            if canvas_rect is not None and pointer is not None and not canvas_rect.contains(pointer, margin):
                return self._drop_outside(source)

            preview = compute_preview(
                self._builder.current_components,
                source,
                pointer,
                target_id,
                target_rect,
                self._builder.config,
            )
            if not preview.accepted:
                logger.debug("Drop rejected: %s", preview)
                return self._builder.state

            if source.is_new:
                return self._builder.add_component(source.kind, preview.target_id, preview.intent)
            return self._builder.move_component(source.component_id, preview.target_id, preview.intent)
        finally:
            self._reset()

    def cancel(self) -> None:
        """Abort the gesture (e.g. escape key). The form is untouched."""
        if self._state is not DragState.IDLE:
            logger.debug("Drag cancelled: %s", self._source)
        self._reset()

    # --- Internals ---

    def _drop_outside(self, source: DragSource) -> FormState:
        if source.is_new:
            logger.debug("Palette item %s dropped off the canvas; discarded", source.kind.value)
            return self._builder.state
        logger.debug("Component %s dragged off the canvas; deleting", source.component_id)
        return self._builder.delete_component(source.component_id)

    def _require_active(self, event: str) -> None:
        if not self.is_active:
            raise InvalidDragError(f"Cannot {event}: no drag in progress")

    def _reset(self) -> None:
        self._state = DragState.IDLE
        self._source = None
        self._last_preview = None
