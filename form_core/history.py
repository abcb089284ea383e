"""
Undo/redo history over FormState snapshots.

FormState values are immutable and share unchanged subtrees, so a snapshot
is just a reference: nothing is copied or serialized on commit.

The history works via two stacks:
- Each commit pushes the current state onto `past` and clears `future`
- Undo moves the present onto `future` and restores the top of `past`
- Redo is the mirror image
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config import DEFAULT_MAX_HISTORY
from .models import FormState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class History:
    """
    Immutable undo/redo stacks around the present state.

    Attributes:
        present: The current state
        past: Earlier states, oldest first
        future: Undone states, the next redo last
    """
    present: FormState
    past: tuple[FormState, ...] = ()
    future: tuple[FormState, ...] = ()

    @property
    def can_undo(self) -> bool:
        return len(self.past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self.future) > 0


def commit(history: History, state: FormState, max_history: Optional[int] = None) -> History:
    """Record `state` as the new present. Committing the present itself is a no-op."""
    if state is history.present:
        return history
    past = history.past + (history.present,)
    if max_history is not None and len(past) > max_history:
        past = past[len(past) - max_history:]
    return History(present=state, past=past, future=())


def undo(history: History) -> History:
    if not history.can_undo:
        return history
    return History(
        present=history.past[-1],
        past=history.past[:-1],
        future=history.future + (history.present,),
    )


def redo(history: History) -> History:
    if not history.can_redo:
        return history
    return History(
        present=history.future[-1],
        past=history.past + (history.present,),
        future=history.future[:-1],
    )


class HistoryManager:
    """
    Stateful wrapper around History for the builder.

    Features:
    - Bounded past (oldest entries dropped beyond `max_history`)
    - `replace_present` for changes that should not be undoable
      (selection, page navigation)
    - Change callbacks fired whenever the present changes
    """

    def __init__(self, initial: FormState, max_history: int = DEFAULT_MAX_HISTORY):
        self._history = History(present=initial)
        self._max_history = max_history
        self._on_change_callbacks: list[Callable[[FormState], None]] = []

    # --- Properties ---

    @property
    def present(self) -> FormState:
        return self._history.present

    @property
    def history(self) -> History:
        return self._history

    @property
    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self._history.can_redo

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[FormState], None]):
        """Register a callback for changes of the present state."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        for callback in self._on_change_callbacks:
            callback(self.present)

    # --- Operations ---

    def commit(self, state: FormState) -> bool:
        """Make `state` the present, recording an undo step. Returns False on no-op."""
        updated = commit(self._history, state, self._max_history)
        if updated is self._history:
            return False
        self._history = updated
        self._notify_change()
        return True

    def replace_present(self, state: FormState) -> bool:
        """Swap the present without recording an undo step."""
        if state is self.present:
            return False
        self._history = History(present=state, past=self._history.past, future=self._history.future)
        self._notify_change()
        return True

    def undo(self) -> FormState:
        """Undo the last commit; the present is returned either way."""
        updated = undo(self._history)
        if updated is self._history:
            logger.debug("Nothing to undo")
            return self.present
        self._history = updated
        self._notify_change()
        return self.present

    def redo(self) -> FormState:
        """Redo the last undone commit; the present is returned either way."""
        updated = redo(self._history)
        if updated is self._history:
            logger.debug("Nothing to redo")
            return self.present
        self._history = updated
        self._notify_change()
        return self.present

    def clear(self):
        """Forget all undo/redo steps, keeping the present."""
        self._history = History(present=self.present)

    def reset(self, state: FormState):
        """Start over from `state` with empty stacks."""
        self._history = History(present=state)
        self._notify_change()
