"""
Quote endpoints.

    GET    /quotes?all=true         every version of every quote
    GET    /quotes/{id}
    POST   /quotes                  new quote, or new version when parentQuoteId is set
    PATCH  /quotes/{id}             edit a draft in place
    PATCH  /quotes/{id}/status
    POST   /quotes/{id}/clone       duplicate as a new V1 draft
    DELETE /quotes/{id}
"""

import logging
from typing import Optional

from bones.integrations import normalize
from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.quotes")


def list_quotes(client: ApiClient, all_versions: bool = True, **filters) -> list:
    params = {k: v for k, v in filters.items() if v not in (None, "")}
    if all_versions:
        params["all"] = "true"
    try:
        body = client.get("/quotes", params=params)
    except ApiError as e:
        log.error("Error fetching quotes: %s", e)
        raise
    quotes = normalize.quotes_from(body)
    log.debug("Fetched %d quotes", len(quotes))
    return quotes


def get_quote(client: ApiClient, quote_id: str) -> dict:
    try:
        return normalize.unwrap_data(client.get(f"/quotes/{quote_id}"))
    except ApiError as e:
        log.error("Error fetching quote %s: %s", quote_id, e)
        raise


def create_quote(client: ApiClient, payload: dict) -> dict:
    try:
        return normalize.unwrap_data(client.post("/quotes", json=payload))
    except ApiError as e:
        log.error("Error creating quote: %s", e)
        raise


def update_quote(client: ApiClient, quote_id: str, payload: dict) -> dict:
    try:
        return normalize.unwrap_data(client.patch(f"/quotes/{quote_id}", json=payload))
    except ApiError as e:
        log.error("Error updating quote %s: %s", quote_id, e)
        raise


def update_quote_status(client: ApiClient, quote_id: str, status: str) -> dict:
    try:
        return normalize.unwrap_data(
            client.patch(f"/quotes/{quote_id}/status", json={"status": status}))
    except ApiError as e:
        log.error("Error updating status of quote %s: %s", quote_id, e)
        raise


def clone_quote(client: ApiClient, quote_id: str, customer_id: Optional[str] = None,
                title: Optional[str] = None) -> dict:
    data = {}
    if customer_id:
        data["customerId"] = customer_id
    if title:
        data["title"] = title
    try:
        return normalize.unwrap_data(client.post(f"/quotes/{quote_id}/clone", json=data))
    except ApiError as e:
        log.error("Error cloning quote %s: %s", quote_id, e)
        raise


def delete_quote(client: ApiClient, quote_id: str) -> bool:
    try:
        client.delete(f"/quotes/{quote_id}")
        return True
    except ApiError as e:
        log.error("Error deleting quote %s: %s", quote_id, e)
        raise
