"""
Login against the backend.

POST /auth/login {email, password} → {"token": "..."}. The token is kept in
the local store so every later ApiClient request carries it.
"""

import logging

from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.auth")


def _token_from(body):
    if not isinstance(body, dict):
        return None
    if body.get("token"):
        return body["token"]
    data = body.get("data")
    if isinstance(data, dict) and data.get("token"):
        return data["token"]
    return None


def login(client: ApiClient, email: str, password: str) -> str:
    """Log in and persist the bearer token. Returns the token.

    Raises ApiError on a failed login or when the response has no token.
    """
    try:
        body = client.post("/auth/login", json={"email": email, "password": password})
    except ApiError as e:
        log.error("Login failed for %s: %s", email, e, extra={"user": email})
        raise

    token = _token_from(body)
    if not token:
        log.error("Login for %s returned no token", email, extra={"user": email})
        raise ApiError("No token received from server", payload=body)

    client.set_token(token)
    log.info("Logged in as %s", email, extra={"user": email})
    return token


def logout(client: ApiClient):
    """Forget the stored token."""
    client.set_token(None)
