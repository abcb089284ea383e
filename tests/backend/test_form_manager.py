"""Tests for the single-form session manager."""

import asyncio
import json

import pytest

from form_core import FormLoadError
from form_backend.form_manager import FormManager, list_form_files
from form_backend.websocket_manager import WebSocketManager


@pytest.fixture
def manager():
    return FormManager()


class TestFileOperations:

    def test_save_when_no_path_then_raises(self, manager):
        with pytest.raises(ValueError):
            manager.save_form()

    def test_save_then_open_when_round_trip_then_same_form(self, manager, tmp_path):
        manager.add_component("text_input")
        path = manager.save_form(tmp_path / "forms" / "contact.json")

        other = FormManager()
        form = other.open_form(path)

        assert form.pages == manager.form.pages
        assert other.file_path == path
        assert not other.is_dirty

    def test_open_when_missing_file_then_file_not_found(self, manager, tmp_path):
        with pytest.raises(FileNotFoundError):
            manager.open_form(tmp_path / "missing.json")

    def test_open_when_invalid_file_then_load_error_and_form_kept(self, manager, tmp_path):
        manager.add_component("text_input")
        before = manager.form
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"pages": []}))

        with pytest.raises(FormLoadError):
            manager.open_form(path)

        assert manager.form is before

    def test_save_when_callback_registered_then_called_with_info(self, manager, tmp_path):
        calls = []
        manager.on_save(lambda path, info: calls.append((path, info)))
        manager.add_component("text_input")

        path = manager.save_form(tmp_path / "f.json")

        assert calls == [(path, {"title": "Untitled Form", "page_count": 1, "component_count": 1})]

    def test_save_when_callback_raises_then_save_still_succeeds(self, manager, tmp_path):
        def broken(path, info):
            raise RuntimeError("boom")

        manager.on_save(broken)

        assert manager.save_form(tmp_path / "f.json").exists()


class TestDirtyTracking:

    def test_dirty_when_component_added_then_true(self, manager):
        manager.add_component("text_input")
        assert manager.is_dirty

    def test_dirty_when_undone_to_saved_content_then_false(self, manager, tmp_path):
        manager.save_form(tmp_path / "f.json")
        manager.add_component("text_input")

        manager.undo()

        assert not manager.is_dirty

    def test_dirty_when_only_selection_changes_then_false(self, manager, tmp_path):
        component = manager.add_component("text_input")
        manager.save_form(tmp_path / "f.json")

        manager.select_component(None)
        manager.select_component(component.id)

        assert not manager.is_dirty

    def test_change_callback_when_form_changes_then_called(self, manager):
        calls = []
        manager.on_change(lambda: calls.append(True))

        manager.add_component("text_input")

        assert calls == [True]


class TestComponentOperations:

    def test_add_when_placement_rejected_then_none(self, manager):
        first = manager.add_component("text_input")
        assert manager.add_component("heading", first.id, "inside") is None

    def test_add_when_repeated_immediately_then_both_added(self, manager):
        first = manager.add_component("text_input")
        second = manager.add_component("text_input")

        assert second is not None
        assert second.id != first.id
        assert len(manager.form.current_components) == 2

    def test_update_when_unknown_id_then_none(self, manager):
        assert manager.update_component("ghost", {"label": "x"}) is None

    def test_delete_when_known_then_true(self, manager):
        component = manager.add_component("text_input")
        assert manager.delete_component(component.id)
        assert manager.get_component(component.id) is None

    def test_undo_when_nothing_to_undo_then_none(self, manager):
        assert manager.undo() is None


class TestListFormFiles:

    def test_list_when_directory_missing_then_empty(self, tmp_path):
        assert list_form_files(tmp_path / "nope") == []

    def test_list_when_files_present_then_summarized_and_bad_skipped(self, manager, tmp_path):
        manager.rename_form("Survey")
        manager.save_form(tmp_path / "survey.json")
        (tmp_path / "broken.json").write_text("{")

        forms = list_form_files(tmp_path)

        assert forms == [{"path": str(tmp_path / "survey.json"), "title": "Survey", "pages": 1}]


class FakeWebSocket:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def accept(self):
        pass

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("closed")
        self.sent.append(text)


class TestWebSocketManager:

    def test_broadcast_when_client_fails_then_dropped(self):
        ws_manager = WebSocketManager()
        good, bad = FakeWebSocket(), FakeWebSocket(fail=True)

        async def scenario():
            await ws_manager.connect(good)
            await ws_manager.connect(bad)
            await ws_manager.notify_form_updated("p1")

        asyncio.run(scenario())

        assert json.loads(good.sent[0]) == {"type": "form_updated", "current_page_id": "p1"}
        assert ws_manager.connection_count == 1

    def test_notify_saved_when_client_connected_then_path_and_title_sent(self, tmp_path):
        ws_manager = WebSocketManager()
        client = FakeWebSocket()

        async def scenario():
            await ws_manager.connect(client)
            await ws_manager.notify_form_saved(tmp_path / "f.json", "Survey")

        asyncio.run(scenario())

        assert json.loads(client.sent[0]) == {
            "type": "form_saved",
            "file_path": str(tmp_path / "f.json"),
            "title": "Survey",
        }
