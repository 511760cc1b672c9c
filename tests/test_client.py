"""
Tests for bones.integrations.client: auth header, error mapping, body decoding.
requests.Session.request is patched; nothing touches the network.
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from bones.integrations.client import ApiClient, ApiError, error_message


def _response(status=200, body=None, text=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.reason = reason
    if body is not None:
        resp.content = b"x"
        resp.json.return_value = body
    elif text is not None:
        resp.content = text.encode()
        resp.json.side_effect = ValueError("not json")
        resp.text = text
    else:
        resp.content = b""
    return resp


@pytest.fixture
def client(store):
    return ApiClient(base_url="http://backend.test/api/", store=store, timeout=3)


# ═══════════════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════════════

class TestAuth:

    def test_store_token_used(self, client, store):
        store.set_token("abc")
        with patch.object(requests.Session, "request", return_value=_response(body=[])) as m:
            client.get("/quotes")
        assert m.call_args.kwargs["headers"] == {"Authorization": "Bearer abc"}

    def test_explicit_token_wins(self, store):
        store.set_token("stored")
        c = ApiClient(base_url="http://x", store=store, token="explicit")
        assert c.token() == "explicit"

    def test_env_token_fallback(self, store, monkeypatch):
        monkeypatch.setenv("BONES_API_TOKEN", "from-env")
        c = ApiClient(base_url="http://x", store=store)
        assert c.token() == "from-env"

    def test_no_token_sends_unauthenticated(self, client):
        with patch.object(requests.Session, "request", return_value=_response(body=[])) as m:
            client.get("/quotes")
        assert m.call_args.kwargs["headers"] == {}


# ═══════════════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════════════

class TestRequest:

    def test_url_and_params(self, client):
        with patch.object(requests.Session, "request", return_value=_response(body=[])) as m:
            client.get("/quotes", params={"all": "true"})
        args, kwargs = m.call_args
        assert args == ("GET", "http://backend.test/api/quotes")
        assert kwargs["params"] == {"all": "true"}
        assert kwargs["timeout"] == 3

    def test_post_defaults_empty_body(self, client):
        with patch.object(requests.Session, "request", return_value=_response(body={})) as m:
            client.post("/orders/from-quote/q1")
        assert m.call_args.kwargs["json"] == {}

    def test_empty_body_is_none(self, client):
        with patch.object(requests.Session, "request", return_value=_response()):
            assert client.delete("/quotes/q1") is None

    def test_text_body_returned(self, client):
        with patch.object(requests.Session, "request", return_value=_response(text="pong")):
            assert client.get("/ping") == "pong"


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════

class TestErrors:

    def test_server_message_surfaces(self, client):
        resp = _response(status=422, body={"message": "Quote is locked"}, reason="Unprocessable")
        with patch.object(requests.Session, "request", return_value=resp):
            with pytest.raises(ApiError) as exc:
                client.patch("/quotes/q1", json={"title": "x"})
        assert exc.value.message == "Quote is locked"
        assert exc.value.status_code == 422
        assert not exc.value.is_network_error

    def test_401(self, client):
        resp = _response(status=401, body={"error": "Unauthorized"}, reason="Unauthorized")
        with patch.object(requests.Session, "request", return_value=resp):
            with pytest.raises(ApiError) as exc:
                client.get("/quotes")
        assert exc.value.status_code == 401
        assert exc.value.message == "Unauthorized"

    def test_transport_error(self, client):
        with patch.object(requests.Session, "request",
                          side_effect=requests.ConnectionError("refused")):
            with pytest.raises(ApiError) as exc:
                client.get("/quotes")
        assert exc.value.is_network_error
        assert "refused" in exc.value.message

    def test_error_message_nested(self):
        assert error_message({"error": {"message": "bad"}}, 400) == "bad"

    def test_error_message_fallback(self):
        assert error_message(None, 500, "Server Error") == "HTTP 500: Server Error"
