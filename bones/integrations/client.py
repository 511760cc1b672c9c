"""
client.py: Authenticated HTTP client for the Bones backend

Every call goes through ApiClient.request(), which:
  - prefixes the configured base URL (BONES_API_URL)
  - attaches Authorization: Bearer <token> when a token is available
    (local store "token" first, then BONES_API_TOKEN)
  - logs failures (status, url, body) and 401s specifically
  - raises ApiError for transport errors and non-2xx responses

No retries and no token refresh: one failed attempt is surfaced immediately.
"""

import logging
from typing import Optional

import requests

from bones.core.local_store import LocalStore
from bones.core.settings import get_setting, get_timeout

log = logging.getLogger("bones.http")


class ApiError(Exception):
    """A failed backend call.

    status_code is None for transport errors (DNS, refused, timeout),
    otherwise the HTTP status. payload is the decoded error body, if any.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def is_network_error(self) -> bool:
        return self.status_code is None


def error_message(payload, status_code: int, reason: str = "") -> str:
    """Best human-readable message from an error body."""
    if isinstance(payload, dict):
        for key in ("message", "error"):
            val = payload.get(key)
            if isinstance(val, str) and val:
                return val
            if isinstance(val, dict) and val.get("message"):
                return str(val["message"])
    return f"HTTP {status_code}: {reason}".rstrip(": ")


class ApiClient:
    """Thin wrapper over requests.Session for the REST backend."""

    def __init__(self, base_url: Optional[str] = None, store: Optional[LocalStore] = None,
                 token: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or get_setting("api_url")).rstrip("/")
        self.store = store
        self._token = token
        self.timeout = timeout if timeout is not None else get_timeout()
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    # ── Auth ─────────────────────────────────────────────────────────────────

    def token(self) -> str:
        if self._token:
            return self._token
        if self.store is not None:
            stored = self.store.get_token()
            if stored:
                return stored
        return get_setting("api_token")

    def set_token(self, token: Optional[str]):
        """Persist token for later requests; None forgets it."""
        if self.store is None:
            self._token = token
            return
        self._token = None
        if token:
            self.store.set_token(token)
        else:
            self.store.clear_token()

    def _headers(self, method: str, path: str) -> dict:
        token = self.token()
        if not token:
            log.warning("%s %s: no token found, sending unauthenticated",
                        method, path)
            return {}
        return {"Authorization": f"Bearer {token}"}

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    # ── Core request ─────────────────────────────────────────────────────────

    def request(self, method: str, path: str, params: Optional[dict] = None,
                json=None):
        """Send one request and return the decoded JSON body (None if empty)."""
        method = method.upper()
        url = self.url(path)
        try:
            resp = self.session.request(
                method, url, params=params, json=json,
                headers=self._headers(method, path), timeout=self.timeout)
        except requests.RequestException as e:
            log.error("%s %s: no response: %s", method, url, e,
                      extra={"method": method, "url": url})
            raise ApiError(str(e)) from e

        if not resp.ok:
            payload = _decode(resp)
            if resp.status_code == 401:
                log.error("401 Unauthorized for %s %s: token may be invalid or missing",
                          method, url)
            else:
                log.error("%s %s → %d: %s", method, url, resp.status_code, payload,
                          extra={"method": method, "url": url, "status": resp.status_code})
            raise ApiError(error_message(payload, resp.status_code, resp.reason or ""),
                           status_code=resp.status_code, payload=payload)

        return _decode(resp)

    def get(self, path: str, params: Optional[dict] = None):
        return self.request("GET", path, params=params)

    def post(self, path: str, json=None, params: Optional[dict] = None):
        return self.request("POST", path, params=params, json=json if json is not None else {})

    def put(self, path: str, json=None):
        return self.request("PUT", path, json=json if json is not None else {})

    def patch(self, path: str, json=None):
        return self.request("PATCH", path, json=json if json is not None else {})

    def delete(self, path: str):
        return self.request("DELETE", path)


def _decode(resp):
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text
