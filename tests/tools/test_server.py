"""Tests for the MCP tools that drive the backend."""

import json

import httpx
import pytest

from form_mcp import server


@pytest.fixture
def calls(monkeypatch):
    recorded = []

    def fake_request(method, endpoint, **kwargs):
        recorded.append((method, endpoint, kwargs))
        return {"success": True}

    monkeypatch.setattr(server, "api_request", fake_request)
    return recorded


class TestTools:

    def test_get_current_when_called_then_json_text(self, calls):
        result = server.form_get_current()

        assert json.loads(result) == {"success": True}
        assert calls == [("GET", "/form", {})]

    def test_list_forms_when_no_directory_then_no_params(self, calls):
        server.form_list_forms()
        assert calls == [("GET", "/forms", {"params": None})]

    def test_new_when_title_given_then_query_param(self, calls):
        server.form_new("Survey")
        assert calls == [("POST", "/form/new", {"params": {"title": "Survey"}})]

    def test_add_component_when_called_then_posts_placement(self, calls):
        server.form_add_component("email_input", "c1", "right")

        assert calls == [(
            "POST",
            "/components",
            {"json": {"kind": "email_input", "target_id": "c1", "intent": "right"}},
        )]

    def test_update_when_options_given_then_converted_to_label_value(self, calls):
        server.form_update_component("c1", label="Colour", options=["Dark Red", "Blue"])

        method, endpoint, kwargs = calls[0]
        assert (method, endpoint) == ("PATCH", "/components/c1")
        assert kwargs["json"] == {
            "label": "Colour",
            "options": [
                {"label": "Dark Red", "value": "dark_red"},
                {"label": "Blue", "value": "blue"},
            ],
        }

    def test_update_when_nothing_given_then_empty_patch(self, calls):
        server.form_update_component("c1")
        assert calls[0][2] == {"json": {}}

    def test_move_when_called_then_posts_to_component(self, calls):
        server.form_move_component("c2", "c1", "before")

        assert calls == [("POST", "/components/c2/move", {"json": {"target_id": "c1", "intent": "before"}})]

    def test_preview_when_pointer_and_box_given_then_included(self, calls):
        server.form_preview_drop(
            target_id="c1", kind="heading", pointer_x=5, pointer_y=10, target_width=100, target_height=40
        )

        payload = calls[0][2]["json"]
        assert payload["pointer"] == {"x": 5, "y": 10}
        assert payload["target_rect"] == {"left": 0, "top": 0, "width": 100, "height": 40}

    def test_preview_when_no_pointer_then_omitted(self, calls):
        server.form_preview_drop(kind="heading")

        assert "pointer" not in calls[0][2]["json"]
        assert "target_rect" not in calls[0][2]["json"]

    def test_page_tools_when_called_then_hit_page_endpoints(self, calls):
        server.form_add_page("Details")
        server.form_switch_page("p1")
        server.form_delete_page("p2")

        assert [(m, e) for m, e, _ in calls] == [
            ("POST", "/pages"),
            ("POST", "/pages/p1/switch"),
            ("DELETE", "/pages/p2"),
        ]

    def test_history_tools_when_called_then_post(self, calls):
        server.form_undo()
        server.form_redo()

        assert [(m, e) for m, e, _ in calls] == [("POST", "/undo"), ("POST", "/redo")]


class TestApiRequest:

    @pytest.fixture
    def respond(self, monkeypatch):
        real_client = httpx.Client

        def install(handler):
            transport = httpx.MockTransport(handler)
            monkeypatch.setattr(server.httpx, "Client", lambda **kwargs: real_client(transport=transport, **kwargs))

        return install

    def test_request_when_ok_then_json_returned(self, respond):
        respond(lambda request: httpx.Response(200, json={"status": "ok"}))
        assert server.api_request("GET", "/health") == {"status": "ok"}

    def test_request_when_error_status_then_api_error_with_detail(self, respond):
        respond(lambda request: httpx.Response(404, json={"detail": "Component not found"}))

        with pytest.raises(server.ApiError) as exc_info:
            server.api_request("DELETE", "/components/ghost")

        assert exc_info.value.status_code == 404
        assert "Component not found" in str(exc_info.value)

    def test_request_when_unknown_method_then_value_error(self, respond):
        respond(lambda request: httpx.Response(200, json={}))

        with pytest.raises(ValueError):
            server.api_request("PUT", "/form")
