"""Tests for undo/redo history."""

from form_core import ComponentKind, FormState, History, HistoryManager
from form_core import engine
from form_core.history import commit, redo, undo


def add(state: FormState) -> FormState:
    return engine.add_component(state, ComponentKind.TEXT_INPUT)


class TestPureHistory:
    """Tests for the immutable History functions."""

    def test_undo_when_no_past_then_same_history(self):
        history = History(present=FormState.new())
        assert undo(history) is history

    def test_redo_when_no_future_then_same_history(self):
        history = History(present=FormState.new())
        assert redo(history) is history

    def test_commit_when_same_state_then_no_entry(self):
        state = FormState.new()
        history = History(present=state)
        assert commit(history, state) is history

    def test_undo_then_redo_when_round_trip_then_present_restored(self):
        first = FormState.new()
        second = add(first)
        history = commit(History(present=first), second)

        restored = redo(undo(history))

        assert restored.present is second
        assert restored.past == (first,)
        assert restored.future == ()

    def test_commit_when_after_undo_then_future_cleared(self):
        first = FormState.new()
        history = commit(History(present=first), add(first))
        history = undo(history)

        history = commit(history, add(first))

        assert not history.can_redo

    def test_commit_when_over_limit_then_oldest_dropped(self):
        states = [FormState.new(title=str(i)) for i in range(5)]
        history = History(present=states[0])
        for state in states[1:]:
            history = commit(history, state, max_history=3)

        assert history.past == tuple(states[1:4])


class TestHistoryManager:

    def test_three_adds_when_two_undos_then_first_add_only(self):
        manager = HistoryManager(FormState.new())
        for _ in range(3):
            manager.commit(add(manager.present))

        manager.undo()
        manager.undo()

        assert len(manager.present.current_components) == 1
        manager.redo()
        assert len(manager.present.current_components) == 2

    def test_commit_when_no_op_then_returns_false_and_no_callback(self):
        state = FormState.new()
        manager = HistoryManager(state)
        calls = []
        manager.on_change(calls.append)

        assert manager.commit(state) is False
        assert calls == []
        assert not manager.can_undo

    def test_replace_present_when_called_then_no_undo_step(self):
        manager = HistoryManager(FormState.new())

        manager.replace_present(engine.rename_form(manager.present, "Renamed"))

        assert manager.present.title == "Renamed"
        assert not manager.can_undo

    def test_undo_when_empty_then_present_returned(self):
        state = FormState.new()
        manager = HistoryManager(state)
        assert manager.undo() is state

    def test_clear_when_called_then_stacks_empty_present_kept(self):
        manager = HistoryManager(FormState.new())
        manager.commit(add(manager.present))
        present = manager.present

        manager.clear()

        assert manager.present is present
        assert not manager.can_undo

    def test_max_history_when_exceeded_then_bounded(self):
        manager = HistoryManager(FormState.new(), max_history=2)
        for _ in range(4):
            manager.commit(add(manager.present))

        manager.undo()
        manager.undo()

        assert not manager.can_undo
        assert len(manager.present.current_components) == 2
