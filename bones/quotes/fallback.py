"""
Local fallback orders.

When POST /orders/from-quote/{id} fails, the client does not block the user:
it builds an order from the quote's own fields and keeps it in the local
store under "mockOrders". These orders never reach the backend.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from bones.core.local_store import LocalStore
from bones.quotes.filters import customer_name

log = logging.getLogger("bones.fallback")

MOCK_ORDERS_KEY = "mockOrders"
MOCK_ORDER_PREFIX = "mock-order-"

DEFAULT_MARGIN_PERCENT = 20
DEFAULT_LEAD_TIME_WEEKS = 2
DEFAULT_PAYMENT_TERMS = "THIRTY_DAYS"
DEFAULT_CURRENCY = "GBP"
DEFAULT_VAT_RATE = 20
DEADLINE_DAYS = 30
NOTES_MAX_LEN = 500

_ITEM_FIELDS = ("description", "quantity", "unitPrice", "materialId")


def _num(value) -> float:
    """Form fields arrive as strings; anything unparseable counts as 0."""
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def quote_total(quote: dict) -> float:
    """totalAmount if the quote carries one, else the sum of its line totals."""
    total = quote.get("totalAmount")
    if total is not None:
        return _num(total)
    return sum(_num(li.get("quantity")) * _num(li.get("unitPrice"))
               for li in quote.get("lineItems") or [])


def map_line_item(item: dict) -> dict:
    """Quote line item → order item, field for field. materialId only when set."""
    mapped = {k: item[k] for k in _ITEM_FIELDS if k in item}
    if mapped.get("materialId") is None:
        mapped.pop("materialId", None)
    return mapped


def build_mock_order(quote: dict, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    value = quote_total(quote)
    vat = value * DEFAULT_VAT_RATE / 100
    return {
        "id": f"{MOCK_ORDER_PREFIX}{int(now.timestamp() * 1000)}",
        "projectTitle": quote.get("title") or "Untitled Project",
        "quoteId": quote.get("id"),
        "quoteRef": quote.get("quoteReference"),
        "orderType": "CUSTOMER_LINKED",
        "status": "APPROVED",
        "customerId": quote.get("customerId") or "",
        "customerName": customer_name(quote) or "Unknown Customer",
        "contactPerson": quote.get("contactPerson") or "",
        "contactEmail": quote.get("contactEmail") or "",
        "contactPhone": quote.get("contactPhone") or "",
        "projectValue": value,
        "value": value,
        "subTotal": value,
        "marginPercent": DEFAULT_MARGIN_PERCENT,
        "leadTimeWeeks": DEFAULT_LEAD_TIME_WEEKS,
        "paymentTerms": DEFAULT_PAYMENT_TERMS,
        "currency": DEFAULT_CURRENCY,
        "vatRate": DEFAULT_VAT_RATE,
        "totalTax": vat,
        "totalAmount": value + vat,
        "profitMargin": value * DEFAULT_MARGIN_PERCENT / 100,
        "deadline": (now + timedelta(days=DEADLINE_DAYS)).date().isoformat(),
        "items": [map_line_item(li) for li in quote.get("lineItems") or []],
        "notes": (quote.get("notes") or "")[:NOTES_MAX_LEN],
        "createdAt": now.isoformat(),
        "isMock": True,
    }


class MockOrderRepository:
    """put / get / list over the local store's mockOrders list."""

    def __init__(self, store: LocalStore):
        self.store = store

    def list(self) -> list:
        orders = self.store.get(MOCK_ORDERS_KEY, [])
        return orders if isinstance(orders, list) else []

    def get(self, order_id: str) -> Optional[dict]:
        for order in self.list():
            if order.get("id") == order_id:
                return order
        return None

    def put(self, order: dict) -> dict:
        count = self.store.append(MOCK_ORDERS_KEY, order)
        log.warning("Order %s saved locally only (%d local orders)", order.get("id"), count,
                    extra={"order_id": order.get("id"), "quote_id": order.get("quoteId")})
        return order

    def for_quote(self, quote_id: str) -> list:
        return [o for o in self.list() if o.get("quoteId") == quote_id]
