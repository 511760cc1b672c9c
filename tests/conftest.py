"""
Shared pytest fixtures for the Bones Admin test suite.

FakeClient stands in for the backend: it is a real ApiClient whose request()
answers from a routes table instead of the network, and records every call.
"""
import base64
import os

import pytest

from bones.core import paths
from bones.core.local_store import LocalStore
from bones.integrations.client import ApiClient, ApiError


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """Redirect DATA_DIR and everything under it to an isolated tmp directory."""
    data = str(tmp_path / "data")
    os.makedirs(data, exist_ok=True)
    monkeypatch.setenv("BONES_DATA_DIR", data)
    monkeypatch.setattr(paths, "DATA_DIR", data)
    monkeypatch.setattr(paths, "OUTPUT_DIR", os.path.join(data, "output"))
    monkeypatch.setattr(paths, "LOG_DIR", os.path.join(data, "logs"))
    monkeypatch.setattr(paths, "LOCAL_STORE_PATH", os.path.join(data, "local_store.json"))
    monkeypatch.delenv("BONES_API_TOKEN", raising=False)
    return data


@pytest.fixture
def store(temp_data_dir):
    return LocalStore(os.path.join(temp_data_dir, "local_store.json"))


# ── Fake backend ──────────────────────────────────────────────────────────────

class FakeClient(ApiClient):
    """ApiClient answering from routes[(METHOD, path)].

    A route value may be a body, an ApiError (raised), or a callable taking
    (params, json) and returning a body.
    """

    def __init__(self, store=None, routes=None):
        super().__init__(base_url="http://backend.test/api", store=store,
                         token="test-token", timeout=1)
        self.routes = dict(routes or {})
        self.calls = []

    def request(self, method, path, params=None, json=None):
        method = method.upper()
        self.calls.append({"method": method, "path": path, "params": params, "json": json})
        key = (method, path)
        if key not in self.routes:
            raise ApiError(f"No fake route for {method} {path}", status_code=404)
        answer = self.routes[key]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            return answer(params, json)
        return answer

    def calls_to(self, method, path=None):
        return [c for c in self.calls
                if c["method"] == method and (path is None or c["path"] == path)]


@pytest.fixture
def fake_client(store):
    return FakeClient(store=store)


# ── Sample data factories ─────────────────────────────────────────────────────

@pytest.fixture
def approved_quote():
    """Q-100 v2, approved, one line of 2 × Widget at £600."""
    return {
        "id": "q-100-2",
        "quoteReference": "Q-100",
        "versionNumber": 2,
        "isLatestVersion": True,
        "title": "Conveyor refit",
        "status": "APPROVED",
        "customerId": "c-1",
        "customer": {"id": "c-1", "name": "Acme Foods"},
        "contactPerson": "Dana Hill",
        "contactEmail": "dana@acme.test",
        "totalAmount": 1200,
        "notes": "Deliver to loading bay 3",
        "lineItems": [
            {"description": "Widget", "quantity": 2, "unitPrice": 600, "materialId": "m-9"},
        ],
    }


@pytest.fixture
def sample_quotes(approved_quote):
    return [
        approved_quote,
        {"id": "q-100-1", "quoteReference": "Q-100", "versionNumber": 1,
         "isLatestVersion": False, "title": "Conveyor refit", "status": "SENT",
         "customer": {"name": "Acme Foods"}, "totalAmount": 1100, "lineItems": []},
        {"id": "q-101-1", "quoteReference": "Q-101", "versionNumber": 1,
         "isLatestVersion": True, "title": "Belt replacement", "status": "DRAFT",
         "customerName": "Bolt & Co", "totalAmount": 450,
         "lineItems": [{"description": "Belt", "quantity": 3, "unitPrice": 150}]},
        {"id": "q-099-1", "quoteReference": "Q-099", "versionNumber": 1,
         "isLatestVersion": True, "title": "Sensor upgrade", "status": "CONVERTED",
         "orderId": "o-55", "customer": {"name": "Acme Foods"}, "totalAmount": 300,
         "lineItems": []},
        {"id": "q-098-1", "quoteReference": "Q-098", "versionNumber": 1,
         "isLatestVersion": True, "title": "Guard rails", "status": "DECLINED",
         "customerName": "Zenith Ltd", "totalAmount": 90, "lineItems": []},
    ]


@pytest.fixture
def backend(store, sample_quotes):
    """FakeClient already serving the sample quote list."""
    client = FakeClient(store=store)
    client.routes[("GET", "/quotes")] = {"data": sample_quotes}
    return client


# ── Flask test client ─────────────────────────────────────────────────────────

def _basic_auth_header(user="bones", pw="changeme"):
    creds = base64.b64encode(f"{user}:{pw}".encode()).decode()
    return {"Authorization": f"Basic {creds}"}


class AuthenticatedClient:
    """Wraps Flask test client to add Basic Auth headers to every request."""
    def __init__(self, client, headers):
        self._client = client
        self._headers = headers

    def _call(self, verb, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return getattr(self._client, verb)(*args, **kwargs)

    def get(self, *args, **kwargs):
        return self._call("get", *args, **kwargs)

    def post(self, *args, **kwargs):
        return self._call("post", *args, **kwargs)

    def patch(self, *args, **kwargs):
        return self._call("patch", *args, **kwargs)

    def delete(self, *args, **kwargs):
        return self._call("delete", *args, **kwargs)


@pytest.fixture
def app(backend, store, temp_data_dir, monkeypatch):
    """Flask app wired to the fake backend."""
    monkeypatch.setenv("DASH_USER", "bones")
    monkeypatch.setenv("DASH_PASS", "changeme")
    from app import create_app
    flask_app = create_app(client=backend, store=store,
                           config={"OUTPUT_DIR": os.path.join(temp_data_dir, "output")})
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    """Authenticated Flask test client (HTTP Basic Auth on every request)."""
    with app.test_client() as c:
        yield AuthenticatedClient(c, _basic_auth_header())


@pytest.fixture
def anon_client(app):
    """Unauthenticated test client."""
    with app.test_client() as c:
        yield c
