"""
Customer endpoints.

GET /customers is paginated: {customers, currentPage, totalPages, totalCustomers}.
The list is not on the critical path: failures return an empty page.
"""

import logging
from typing import Optional

from bones.integrations import normalize
from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.customers")


def get_customers(client: ApiClient, search: Optional[str] = None,
                  status: Optional[str] = None, page: int = 1,
                  limit: Optional[int] = None) -> dict:
    params = {"page": page}
    if search:
        params["search"] = search
    if status:
        params["status"] = status
    if limit:
        params["limit"] = limit
    try:
        body = client.get("/customers", params=params)
    except ApiError as e:
        log.error("Error fetching customers: %s", e)
        return normalize.empty_customer_page(page)
    return normalize.customer_page(body, page)


def get_customer(client: ApiClient, customer_id: str) -> dict:
    try:
        return normalize.unwrap_data(client.get(f"/customers/{customer_id}"))
    except ApiError as e:
        log.error("Error fetching customer %s: %s", customer_id, e)
        raise


def get_customer_contacts(client: ApiClient, customer_id: str) -> list:
    body = client.get(f"/customers/{customer_id}/contacts")
    return normalize.extract_list(body, (None, "contacts", "data"), "contacts")


def get_customers_with_contacts(client: ApiClient) -> list:
    """Every customer on the first page, each with a contacts list.

    A failed contacts lookup gives that customer an empty list; a failed
    customer lookup raises.
    """
    try:
        body = client.get("/customers")
    except ApiError as e:
        log.error("Error fetching customers with contacts: %s", e)
        raise

    result = []
    for customer in normalize.customers_from(body):
        try:
            contacts = get_customer_contacts(client, customer["id"])
        except ApiError as e:
            log.warning("Failed to fetch contacts for customer %s: %s",
                        customer.get("id"), e)
            contacts = []
        result.append({**customer, "contacts": contacts})
    return result


def create_contact(client: ApiClient, customer_id: str, contact: dict) -> dict:
    try:
        return client.post(f"/customers/{customer_id}/contacts", json=contact)
    except ApiError as e:
        log.error("Error creating contact for customer %s: %s", customer_id, e)
        raise


def set_primary_contact(client: ApiClient, customer_id: str, contact_id: str):
    try:
        client.put(f"/customers/{customer_id}/contacts/{contact_id}/set-primary")
    except ApiError as e:
        log.error("Error setting primary contact %s: %s", contact_id, e)
        raise
