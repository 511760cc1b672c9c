"""
normalize.py: Response-shape normalization for the Bones backend

The backend wraps lists inconsistently across endpoints: sometimes a bare
array, sometimes {"data": [...]}, {"items": [...]}, {"results": [...]} or
{"<resource>": [...]}. Each resource gets one explicit, ordered list of
candidate paths here instead of ad hoc probing at every call site.

A candidate of None means "the body itself".
"""

import logging
from typing import Optional

log = logging.getLogger("bones.normalize")

QUOTE_PATHS = (None, "data", "items", "results", "quotes")
CUSTOMER_PATHS = (None, "customers", "data", "items")
JOB_PATHS = (None, "jobs", "data", "items")
MATERIAL_PATHS = (None, "materials", "data", "items")
SUPPLIER_PATHS = (None, "suppliers", "data", "items")
BUNDLE_PATHS = (None, "data", "bundles", "items")
ORDER_PATHS = (None, "orders", "data", "items")


def _at(body, path):
    if path is None:
        return body
    node = body
    for part in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def extract_list(body, candidates, resource: str = "items") -> list:
    """Return the first candidate path holding a list, else []."""
    for path in candidates:
        found = _at(body, path)
        if isinstance(found, list):
            return found
    if body not in (None, "", [], {}):
        log.warning("Unexpected %s response shape: %s", resource,
                    type(body).__name__ if not isinstance(body, dict) else sorted(body))
    return []


def quotes_from(body) -> list:
    return extract_list(body, QUOTE_PATHS, "quotes")


def customers_from(body) -> list:
    found = extract_list(body, CUSTOMER_PATHS, "customers")
    if found or not isinstance(body, dict):
        return found
    # Last resort: an object keyed by id whose values look like records
    return [v for v in body.values()
            if isinstance(v, dict) and (v.get("id") or v.get("name"))]


def jobs_from(body) -> list:
    return extract_list(body, JOB_PATHS, "jobs")


def materials_from(body) -> list:
    return extract_list(body, MATERIAL_PATHS, "materials")


def suppliers_from(body) -> list:
    return extract_list(body, SUPPLIER_PATHS, "suppliers")


def bundles_from(body) -> list:
    return extract_list(body, BUNDLE_PATHS, "bundles")


def orders_from(body) -> list:
    return extract_list(body, ORDER_PATHS, "orders")


def unwrap_data(body):
    """{"data": x} → x; anything else unchanged."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def extract_order_id(body) -> Optional[str]:
    """Order id from a conversion response: order.id, then id."""
    if not isinstance(body, dict):
        return None
    order = body.get("order")
    if isinstance(order, dict) and order.get("id"):
        return order["id"]
    return body.get("id") or None


def customer_page(body, page: int = 1) -> dict:
    """Paginated customers → {customers, currentPage, totalPages, totalCustomers}."""
    customers = customers_from(body)
    meta = body if isinstance(body, dict) else {}
    return {
        "customers": customers,
        "currentPage": meta.get("currentPage", page),
        "totalPages": meta.get("totalPages", 1 if customers else 0),
        "totalCustomers": meta.get("totalCustomers", len(customers)),
    }


def empty_customer_page(page: int = 1) -> dict:
    return {"customers": [], "currentPage": page, "totalPages": 0, "totalCustomers": 0}
