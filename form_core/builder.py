"""
FormBuilder - the command surface over the engine and history.

Views, the backend and tests talk to the form only through this class:

- Every command returns the resulting FormState
- Edits go through history (one undo step each); selection and page
  switching replace the present without an undo step
- Subscribers are called once per actual change
- Repeated palette adds within the cooldown window are coalesced
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from . import engine
from .actions import AddComponentAction, FormAction, NAVIGATION_ACTIONS
from .config import DEFAULT_CONFIG, BuilderConfig
from .drag import DragSession, DragSource, DropPreview, compute_preview
from .factory import coerce_kind
from .geometry import Point, Rect
from .history import HistoryManager
from .models import Component, ComponentKind, DropIntent, FormState
from .persistence import load_form
from .validation import ValidationIssue, validate_form

logger = logging.getLogger(__name__)

Subscriber = Callable[[FormState], None]


class FormBuilder:
    """
    Holds one form and its undo history.

    Example:
        >>> builder = FormBuilder()
        >>> state = builder.add_component("text_input")
        >>> state.current_components[0].label
        'Text Input'
        >>> builder.undo().current_components
        ()
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        state: Optional[FormState] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._config = config or DEFAULT_CONFIG
        self._clock = clock
        self._history = HistoryManager(state or FormState.new(), self._config.max_history)
        self._history.on_change(self._notify)
        self._subscribers: list[Subscriber] = []
        # (kind, target_id, intent) and time of the last committed add
        self._last_add: Optional[tuple[tuple, float]] = None

    # --- Properties ---

    @property
    def config(self) -> BuilderConfig:
        return self._config

    @property
    def state(self) -> FormState:
        return self._history.present

    @property
    def current_components(self) -> tuple[Component, ...]:
        return self.state.current_components

    @property
    def history(self) -> HistoryManager:
        return self._history

    def can_undo(self) -> bool:
        return self._history.can_undo

    def can_redo(self) -> bool:
        return self._history.can_redo

    # --- Subscriptions ---

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Call `callback(state)` after every change.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, state: FormState) -> None:
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception:
                logger.exception("Form subscriber %r failed", callback)

    def _commit(self, state: FormState) -> FormState:
        self._history.commit(state)
        return self.state

    def _navigate(self, state: FormState) -> FormState:
        self._history.replace_present(state)
        return self.state

    # --- Component Commands ---

    def add_component(
        self,
        kind: ComponentKind | str,
        target_id: Optional[str] = None,
        intent: DropIntent | str = DropIntent.INSIDE,
        throttle: bool = True,
    ) -> FormState:
        """
        Add a new component and select it.

        An add identical to the previous one (same kind, target and intent)
        arriving within `add_cooldown_seconds` is dropped; this absorbs
        double clicks and duplicate drop events. Programmatic callers pass
        `throttle=False` so every add they request is applied.
        """
        kind = coerce_kind(kind)
        intent = DropIntent(intent)
        key = (kind, target_id, intent)
        now = self._clock()
        if throttle and self._last_add is not None:
            last_key, last_time = self._last_add
            if last_key == key and now - last_time < self._config.add_cooldown_seconds:
                logger.debug("Add of %s coalesced with the previous add", kind.value)
                return self.state

        updated = engine.add_component(self.state, kind, target_id, intent, self._config)
        if updated is self.state:
            return self.state
        self._last_add = (key, now)
        return self._commit(updated)

    def update_component(self, component_id: str, attrs: dict[str, Any]) -> FormState:
        return self._commit(engine.update_component(self.state, component_id, attrs))

    def delete_component(self, component_id: str) -> FormState:
        return self._commit(engine.delete_component(self.state, component_id, self._config))

    def move_component(
        self,
        component_id: str,
        target_id: Optional[str],
        intent: DropIntent | str = DropIntent.INSIDE,
    ) -> FormState:
        return self._commit(
            engine.move_component(self.state, component_id, target_id, DropIntent(intent), self._config)
        )

    def select_component(self, component_id: Optional[str]) -> FormState:
        return self._navigate(engine.select_component(self.state, component_id))

    # --- Page Commands ---

    def add_page(self, title: Optional[str] = None) -> FormState:
        return self._commit(engine.add_page(self.state, title))

    def delete_page(self, page_id: str) -> FormState:
        return self._commit(engine.delete_page(self.state, page_id))

    def rename_page(self, page_id: str, title: str) -> FormState:
        return self._commit(engine.rename_page(self.state, page_id, title))

    def switch_page(self, page_id: str) -> FormState:
        return self._navigate(engine.switch_page(self.state, page_id))

    def rename_form(self, title: str) -> FormState:
        return self._commit(engine.rename_form(self.state, title))

    def dispatch(self, action: FormAction) -> FormState:
        """Apply an action model; navigation actions skip history."""
        if isinstance(action, AddComponentAction):
            return self.add_component(action.kind, action.target_id, action.intent)
        updated = engine.execute_action(self.state, action, self._config)
        if isinstance(action, NAVIGATION_ACTIONS):
            return self._navigate(updated)
        return self._commit(updated)

    # --- History ---

    def undo(self) -> FormState:
        return self._history.undo()

    def redo(self) -> FormState:
        return self._history.redo()

    # --- Whole Form ---

    def load(self, data: dict | str | bytes) -> FormState:
        """
        Replace the form with a stored one and clear history.

        Raises:
            FormLoadError: If the data is not a valid form; the current form
                is kept
        """
        state = load_form(data, self._config)
        self._last_add = None
        self._history.reset(state)
        return self.state

    def reset(self, state: Optional[FormState] = None) -> FormState:
        """Start over with `state` (or an empty form) and no history."""
        self._last_add = None
        self._history.reset(state or FormState.new())
        return self.state

    def to_json_dict(self) -> dict:
        return self.state.to_json_dict()

    def validate(self) -> list[ValidationIssue]:
        return validate_form(self.state, self._config)

    # --- Drag and Drop ---

    def drag_session(self) -> DragSession:
        return DragSession(self)

    def preview_drop(
        self,
        source: DragSource,
        pointer: Optional[Point],
        target_id: Optional[str],
        target_rect: Optional[Rect] = None,
    ) -> DropPreview:
        """Resolve a drop without a session (e.g. from a stateless client)."""
        return compute_preview(self.current_components, source, pointer, target_id, target_rect, self._config)
