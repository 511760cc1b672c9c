"""
Customer-intelligence endpoints behind the smart quote panels.

    GET  /customer-intelligence/{customerId}/suggestions?currentItems=a,b
    GET  /customer-intelligence/{customerId}/bundles?currentItems=a,b
    GET  /customer-intelligence/{customerId}
    GET  /customer-intelligence/{customerId}/insights
    GET  /customer-intelligence/quick-templates?customerType=
    GET  /customer-intelligence/dynamic-bundles?customerId=&currentItems=
    GET  /customer-intelligence/seasonal-recommendations?month=
    POST /customer-intelligence/analyze-quote-health

Item search and quote health degrade instead of raising: search returns no
items, health returns DEFAULT_HEALTH. The rest log and re-raise.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from bones.integrations import normalize
from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.intelligence")

DEFAULT_HEALTH = {
    "score": 75,
    "factors": {"completeness": 80, "pricing": 70, "margin": 75},
    "recommendations": ["Consider adding complementary items"],
    "issues": [],
}


def _items_param(current_items) -> dict:
    names = [str(i) for i in (current_items or []) if i]
    return {"currentItems": ",".join(names)} if names else {}


def _get_list(client: ApiClient, path: str, params: dict, what: str) -> list:
    try:
        body = client.get(path, params=params or None)
    except ApiError as e:
        log.error("Error fetching %s: %s", what, e)
        raise
    return normalize.bundles_from(body)


# ─── Suggestions & Bundles ──────────────────────────────────────────────────

def get_customer_suggestions(client: ApiClient, customer_id, current_items=None) -> list:
    return _get_list(client, f"/customer-intelligence/{customer_id}/suggestions",
                     _items_param(current_items), f"suggestions for customer {customer_id}")


def get_bundle_recommendations(client: ApiClient, customer_id, current_items=None) -> list:
    return _get_list(client, f"/customer-intelligence/{customer_id}/bundles",
                     _items_param(current_items), f"bundles for customer {customer_id}")


def get_dynamic_bundle_recommendations(client: ApiClient, customer_id=None,
                                       current_items=None) -> list:
    params = _items_param(current_items)
    if customer_id:
        params["customerId"] = str(customer_id)
    return _get_list(client, "/customer-intelligence/dynamic-bundles", params,
                     "dynamic bundles")


def get_seasonal_recommendations(client: ApiClient, month: Optional[int] = None) -> list:
    params = {"month": str(month)} if month else {}
    return _get_list(client, "/customer-intelligence/seasonal-recommendations", params,
                     "seasonal recommendations")


def get_quick_assembly_templates(client: ApiClient, customer_type: Optional[str] = None) -> list:
    params = {"customerType": customer_type} if customer_type else {}
    return _get_list(client, "/customer-intelligence/quick-templates", params,
                     "quick assembly templates")


# ─── Profiles ────────────────────────────────────────────────────────────────

def get_customer_intelligence(client: ApiClient, customer_id) -> dict:
    try:
        return normalize.unwrap_data(client.get(f"/customer-intelligence/{customer_id}"))
    except ApiError as e:
        log.error("Error fetching intelligence for customer %s: %s", customer_id, e)
        raise


def get_comprehensive_insights(client: ApiClient, customer_id, current_items=None) -> dict:
    try:
        body = client.get(f"/customer-intelligence/{customer_id}/insights",
                          params=_items_param(current_items) or None)
    except ApiError as e:
        log.error("Error fetching insights for customer %s: %s", customer_id, e)
        raise
    return normalize.unwrap_data(body)


# ─── Quote Health ────────────────────────────────────────────────────────────

def analyze_quote_health(client: ApiClient, items: list, total_value: float,
                         customer_id=None) -> dict:
    payload = {"items": items, "totalValue": total_value}
    if customer_id is not None:
        payload["customerId"] = customer_id
    try:
        body = client.post("/customer-intelligence/analyze-quote-health", json=payload)
    except ApiError as e:
        log.warning("Quote health unavailable (%s): using default score", e)
        return dict(DEFAULT_HEALTH)
    health = normalize.unwrap_data(body)
    if not isinstance(health, dict) or "score" not in health:
        log.warning("Quote health response had no score: using default")
        return dict(DEFAULT_HEALTH)
    return health


# ─── Historical Item Search ──────────────────────────────────────────────────

def _num(value, cast, default=0):
    try:
        return cast(value)
    except (TypeError, ValueError):
        return default


def map_historical_item(item: dict) -> dict:
    """Suggestion record → historical quote item, tolerating both key styles."""
    unit_price = _num(item.get("unitPrice", item.get("price", item.get("suggestedPrice"))), float)
    quantity = _num(item.get("quantity", 1), int, 1) or 1
    material = item.get("material") or None
    total = item.get("totalPrice")
    return {
        "id": str(item.get("id") or item.get("itemId") or ""),
        "description": item.get("description") or item.get("name")
                       or item.get("itemName") or "Unknown Item",
        "unitPrice": unit_price,
        "quantity": quantity,
        "totalPrice": _num(total, float) if total is not None else unit_price * quantity,
        "category": (material or {}).get("category") or item.get("category") or "Uncategorized",
        "confidence": _num(item.get("confidence", 0), float),
        "lastUsed": item.get("lastUsed") or item.get("lastPurchased")
                    or datetime.now(timezone.utc).isoformat(),
        "timesUsed": _num(item.get("orderCount", item.get("usageCount", item.get("timesUsed", 0))), int),
        "materialId": item.get("materialId") or (material or {}).get("id"),
        "material": material,
    }


def validate_search_filters(filters: dict) -> dict:
    """→ {"isValid": bool, "errors": [str]}"""
    errors = []
    pmin, pmax = filters.get("priceMin"), filters.get("priceMax")
    if pmin is not None and pmax is not None and pmin > pmax:
        errors.append("Minimum price cannot be greater than maximum price")
    dfrom, dto = filters.get("dateFrom"), filters.get("dateTo")
    if dfrom and dto and dfrom > dto:
        errors.append("Start date cannot be after end date")
    limit = filters.get("limit")
    if limit is not None and not 1 <= limit <= 100:
        errors.append("Limit must be between 1 and 100")
    return {"isValid": not errors, "errors": errors}


def search_quote_items(client: ApiClient, filters: dict) -> dict:
    """Search a customer's historical items → {"items": [...], "total": n}.

    Without a customerId there is nothing to search. Failures return no items.
    """
    customer_id = filters.get("customerId")
    if not customer_id:
        return {"items": [], "total": 0}
    try:
        raw = get_customer_suggestions(client, customer_id)
    except ApiError as e:
        log.warning("Item search for customer %s failed (%s): returning no items",
                    customer_id, e, extra={"customer_id": customer_id})
        return {"items": [], "total": 0}

    term = (filters.get("searchTerm") or "").lower()
    if term:
        raw = [i for i in raw
               if term in str(i.get("description") or "").lower()
               or term in str(i.get("name") or i.get("itemName") or "").lower()]
    limit = filters.get("limit") or 20
    return {"items": [map_historical_item(i) for i in raw[:limit]], "total": len(raw)}


def group_items_by_category(items: list) -> dict:
    groups = {}
    for item in items:
        groups.setdefault(item.get("category") or "Uncategorized", []).append(item)
    return groups


def calculate_total_value(items: list) -> float:
    return sum(i.get("totalPrice") or i.get("unitPrice", 0) * i.get("quantity", 0)
               for i in items)
