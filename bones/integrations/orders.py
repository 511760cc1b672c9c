"""Order endpoints, including quote → order conversion."""

import logging

from bones.integrations import normalize
from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.orders")


def list_orders(client: ApiClient, **filters) -> list:
    params = {k: v for k, v in filters.items() if v not in (None, "")}
    try:
        return normalize.orders_from(client.get("/orders", params=params or None))
    except ApiError as e:
        log.error("Error fetching orders: %s", e)
        raise


def get_order(client: ApiClient, order_id: str) -> dict:
    try:
        return normalize.unwrap_data(client.get(f"/orders/{order_id}"))
    except ApiError as e:
        log.error("Error fetching order %s: %s", order_id, e)
        raise


def create_from_quote(client: ApiClient, quote_id: str):
    """POST /orders/from-quote/{id}. Returns the raw body; see normalize.extract_order_id."""
    try:
        body = client.post(f"/orders/from-quote/{quote_id}")
    except ApiError as e:
        log.error("Error converting quote %s to order: %s", quote_id, e,
                  extra={"quote_id": quote_id})
        raise
    log.info("Quote %s converted to order %s", quote_id,
             normalize.extract_order_id(body), extra={"quote_id": quote_id})
    return body
