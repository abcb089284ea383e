"""Tests for the REST API."""

import json

import pytest
from fastapi.testclient import TestClient

from form_backend.form_manager import form_manager
from form_backend.main import app


@pytest.fixture
def client():
    form_manager.new_form()
    return TestClient(app)


def add(client, kind="text_input", **body):
    response = client.post("/api/components", json={"kind": kind, **body})
    assert response.status_code == 200
    return response.json()


class TestFormEndpoints:

    def test_health_when_called_then_ok(self, client):
        response = client.get("/api/health")
        assert response.json()["status"] == "ok"

    def test_get_form_when_new_then_empty_page(self, client):
        state = client.get("/api/form").json()

        assert state["form"]["pages"][0]["components"] == []
        assert state["is_dirty"] is False
        assert state["can_undo"] is False

    def test_patch_form_when_title_given_then_renamed(self, client):
        response = client.patch("/api/form", json={"title": "Signup"})
        assert response.json()["form"]["title"] == "Signup"

    def test_new_form_when_title_query_then_used(self, client):
        response = client.post("/api/form/new", params={"title": "Survey"})
        assert response.json()["form"]["title"] == "Survey"

    def test_save_and_open_when_round_trip_then_loaded(self, client, tmp_path):
        add(client)
        path = tmp_path / "form.json"

        assert client.post("/api/form/save", json={"file_path": str(path)}).json()["success"]
        client.post("/api/form/new")
        response = client.post("/api/form/open", json={"file_path": str(path)})

        assert len(response.json()["form"]["pages"][0]["components"]) == 1

    def test_save_when_no_path_then_400(self, client):
        assert client.post("/api/form/save", json={}).status_code == 400

    def test_open_when_missing_then_404(self, client, tmp_path):
        response = client.post("/api/form/open", json={"file_path": str(tmp_path / "none.json")})
        assert response.status_code == 404

    def test_open_when_invalid_form_then_400_with_issues(self, client, tmp_path):
        path = tmp_path / "bad.json"
        row = {"id": "r", "kind": "horizontal_group", "children": [{"id": "a", "kind": "text_input"}]}
        path.write_text(json.dumps({"pages": [{"id": "p", "components": [row]}]}))

        response = client.post("/api/form/open", json={"file_path": str(path)})

        assert response.status_code == 400
        assert response.json()["detail"]["issues"]

    def test_import_when_valid_then_form_replaced(self, client):
        form = {"title": "Imported", "pages": [{"id": "p1", "title": "One", "components": []}]}

        response = client.post("/api/form/import", json={"form": form})

        assert response.json()["form"]["title"] == "Imported"
        assert client.get("/api/form").json()["is_dirty"] is True

    def test_import_when_pages_malformed_then_400(self, client):
        response = client.post("/api/form/import", json={"form": {"pages": "abc"}})

        assert response.status_code == 400
        assert response.json()["detail"]["issues"]


class TestComponentEndpoints:

    def test_add_when_empty_form_then_component_returned(self, client):
        result = add(client, "email_input")

        assert result["success"] is True
        assert result["component"]["kind"] == "email_input"

    def test_add_when_unknown_kind_then_400(self, client):
        response = client.post("/api/components", json={"kind": "hologram"})
        assert response.status_code == 400

    def test_add_when_right_of_existing_then_row(self, client):
        first = add(client)["component"]["id"]

        add(client, "email_input", target_id=first, intent="right")

        root = client.get("/api/form").json()["form"]["pages"][0]["components"]
        assert root[0]["kind"] == "horizontal_group"

    def test_add_when_same_request_twice_then_two_components(self, client):
        first = add(client)
        second = add(client)

        assert second["success"] is True
        assert second["component"]["id"] != first["component"]["id"]
        assert len(client.get("/api/form").json()["form"]["pages"][0]["components"]) == 2

    def test_add_when_placement_rejected_then_success_false(self, client):
        first = add(client)["component"]["id"]

        result = add(client, "heading", target_id=first, intent="inside")

        assert result["success"] is False

    def test_get_component_when_unknown_then_404(self, client):
        assert client.get("/api/components/ghost").status_code == 404

    def test_update_when_fields_given_then_only_those_change(self, client):
        component = add(client, "select")["component"]

        response = client.patch(
            f"/api/components/{component['id']}",
            json={"label": "Colour", "options": [{"label": "Red", "value": "red"}]},
        )

        updated = response.json()["component"]
        assert updated["label"] == "Colour"
        assert updated["options"] == [{"label": "Red", "value": "red"}]
        assert updated["placeholder"] == component["placeholder"]

    def test_update_when_unknown_then_404(self, client):
        assert client.patch("/api/components/ghost", json={"label": "x"}).status_code == 404

    def test_delete_when_known_then_removed(self, client):
        component_id = add(client)["component"]["id"]

        assert client.delete(f"/api/components/{component_id}").json()["success"]
        assert client.get(f"/api/components/{component_id}").status_code == 404

    def test_delete_when_unknown_then_404(self, client):
        assert client.delete("/api/components/ghost").status_code == 404

    def test_move_when_before_first_then_reordered(self, client):
        first = add(client)["component"]["id"]
        second = add(client, "heading")["component"]["id"]

        response = client.post(f"/api/components/{second}/move", json={"target_id": first, "intent": "before"})

        ids = [c["id"] for c in response.json()["form"]["pages"][0]["components"]]
        assert ids == [second, first]

    def test_move_when_unknown_then_404(self, client):
        assert client.post("/api/components/ghost/move", json={}).status_code == 404

    def test_selection_when_not_on_page_then_404(self, client):
        assert client.post("/api/selection", json={"component_id": "ghost"}).status_code == 404

    def test_undo_redo_when_component_added_then_toggled(self, client):
        add(client)

        assert client.post("/api/undo").json()["success"] is True
        assert client.post("/api/undo").json()["success"] is False
        assert client.post("/api/redo").json()["success"] is True


class TestPageEndpoints:

    def test_add_page_when_called_then_current(self, client):
        page = client.post("/api/pages", json={"title": "Details"}).json()["page"]

        assert client.get("/api/form").json()["form"]["current_page_id"] == page["id"]

    def test_rename_page_when_unknown_then_404(self, client):
        assert client.patch("/api/pages/ghost", json={"title": "x"}).status_code == 404

    def test_delete_page_when_last_then_replaced(self, client):
        page_id = client.get("/api/form").json()["form"]["current_page_id"]

        response = client.delete(f"/api/pages/{page_id}")

        assert response.json()["current_page_id"] != page_id

    def test_switch_page_when_known_then_current(self, client):
        first = client.get("/api/form").json()["form"]["current_page_id"]
        client.post("/api/pages", json={})

        response = client.post(f"/api/pages/{first}/switch")

        assert response.json()["current_page_id"] == first


class TestDragPreview:

    def test_preview_when_right_edge_then_right_and_form_unchanged(self, client):
        target = add(client)["component"]["id"]

        response = client.post("/api/drag/preview", json={
            "kind": "email_input",
            "target_id": target,
            "pointer": {"x": 195, "y": 40},
            "target_rect": {"left": 0, "top": 0, "width": 200, "height": 80},
        })

        preview = response.json()["preview"]
        assert preview == {"raw_intent": "right", "intent": "right", "target_id": target, "accepted": True}
        assert len(client.get("/api/form").json()["form"]["pages"][0]["components"]) == 1

    def test_preview_when_both_sources_then_400(self, client):
        response = client.post("/api/drag/preview", json={"kind": "text_input", "component_id": "x"})
        assert response.status_code == 400

    def test_preview_when_unknown_existing_then_400(self, client):
        response = client.post("/api/drag/preview", json={"component_id": "ghost"})
        assert response.status_code == 400


class TestMiscEndpoints:

    def test_validate_when_empty_page_then_info_only(self, client):
        result = client.get("/api/form/validate").json()

        assert result["summary"]["valid"] is True
        assert result["summary"]["info"] == 1

    def test_kinds_when_listed_then_include_groups(self, client):
        result = client.get("/api/enums/kinds").json()

        assert "text_input" in result["kinds"]
        assert set(result["groups"]) == {"horizontal_group", "vertical_group"}

    def test_intents_when_listed_then_five(self, client):
        assert client.get("/api/enums/intents").json()["intents"] == ["left", "right", "before", "after", "inside"]

    def test_list_forms_when_directory_given_then_scanned(self, client, tmp_path):
        client.post("/api/form/save", json={"file_path": str(tmp_path / "a.json")})

        forms = client.get("/api/forms", params={"directory": str(tmp_path)}).json()["forms"]

        assert [f["title"] for f in forms] == ["Untitled Form"]

    def test_websocket_when_ping_then_pong(self, client):
        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("ping")
            assert websocket.receive_json() == {"type": "pong"}
