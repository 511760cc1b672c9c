"""
Quote Lifecycle Manager
=======================

Decides which lifecycle action a quote may undergo and runs it against the
backend:

  edit     : DRAFT / SENT / PENDING only; hands back a pre-filled form
  clone    : confirmed; POST /quotes/{id}/clone, then refresh
  convert  : APPROVED only, confirmed; POST /orders/from-quote/{id}.
              If that call fails the order is synthesized locally, stored
              under "mockOrders" and the quote is marked CONVERTED in memory.
  save     : PATCH /quotes/{id} for an in-place draft edit, POST /quotes
              for new quotes, versions and clones
  status   : PATCH /quotes/{id}/status
  pdf      : render the quote with bones.forms.quote_pdf

confirm(prompt) -> bool and notify(message) stand in for the browser's
confirm() and alert(). Every operation returns a dict with "ok" and "message".
"""

import logging
import threading
from copy import deepcopy
from typing import Callable, Optional

from bones.core.local_store import LocalStore
from bones.integrations import normalize
from bones.integrations import orders as orders_api
from bones.integrations import quotes as quotes_api
from bones.integrations.client import ApiClient, ApiError
from bones.quotes import status as qs
from bones.quotes.fallback import MockOrderRepository, build_mock_order, quote_total
from bones.quotes.filters import filter_quotes

log = logging.getLogger("bones.lifecycle")


class CancelToken:
    """Marks a pending fetch as stale. Cancelling a parent cancels its children."""

    def __init__(self, parent: Optional["CancelToken"] = None):
        self._event = threading.Event()
        self._parent = parent

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def child(self) -> "CancelToken":
        return CancelToken(parent=self)


def _always_yes(prompt: str) -> bool:
    return True


def _log_notice(message: str):
    log.info("NOTICE: %s", message)


class QuoteLifecycleManager:

    def __init__(self, client: ApiClient, orders: Optional[MockOrderRepository] = None,
                 confirm: Optional[Callable[[str], bool]] = None,
                 notify: Optional[Callable[[str], None]] = None):
        self.client = client
        if orders is None:
            orders = MockOrderRepository(client.store or LocalStore())
        self.orders = orders
        self.confirm = confirm or _always_yes
        self.notify = notify or _log_notice
        self.quotes = []
        self.last_error = None
        self._lifetime = CancelToken()

    # ── Lifetime ─────────────────────────────────────────────────────────────

    def close(self):
        """Discard any fetch still in flight."""
        self._lifetime.cancel()

    @property
    def closed(self) -> bool:
        return self._lifetime.cancelled

    def new_token(self) -> CancelToken:
        return self._lifetime.child()

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _result(self, ok: bool, message: str, **extra) -> dict:
        self.notify(message)
        return {"ok": ok, "message": message, **extra}

    def _not_found(self, quote_id: str) -> dict:
        return self._result(False, f"Quote {quote_id} not found", not_found=True)

    @staticmethod
    def _ref(quote: dict) -> str:
        ref = quote.get("quoteReference") or quote.get("id")
        version = quote.get("versionNumber")
        return f"{ref} v{version}" if version else str(ref)

    def _replace(self, quote_id: str, updated: dict):
        self.quotes = [updated if q.get("id") == quote_id else q for q in self.quotes]

    # ── List ─────────────────────────────────────────────────────────────────

    def refresh(self, cancel_token: Optional[CancelToken] = None) -> Optional[list]:
        """Reload every quote version. None when the load failed or went stale."""
        token = cancel_token or self.new_token()
        if token.cancelled or self.closed:
            return None
        try:
            quotes = quotes_api.list_quotes(self.client)
        except ApiError as e:
            self.last_error = e.message
            self.notify(f"Failed to load quotes: {e.message}")
            return None
        if token.cancelled or self.closed:
            log.debug("Discarding quote list: fetch was cancelled")
            return None
        self.quotes = self._with_local_orders(quotes)
        self.last_error = None
        return self.quotes

    def _with_local_orders(self, quotes: list) -> list:
        """Mark quotes converted by a locally stored order as CONVERTED.

        The backend never heard of those orders, so without this a reload
        would offer the conversion again.
        """
        local = {}
        for order in self.orders.list():
            if order.get("quoteId"):
                local[order["quoteId"]] = order
        if not local:
            return quotes
        merged = []
        for q in quotes:
            order = local.get(q.get("id"))
            if order and not q.get("orderId"):
                q = {**q, "status": qs.CONVERTED, "orderId": order["id"]}
            merged.append(q)
        return merged

    def visible(self, status: str = "all", search: str = "",
                hide_converted: bool = False) -> list:
        return filter_quotes(self.quotes, status=status, search=search,
                             hide_converted=hide_converted)

    def find(self, quote_id: str) -> Optional[dict]:
        for q in self.quotes:
            if q.get("id") == quote_id:
                return q
        return None

    def actions(self, quote_id: str) -> list:
        quote = self.find(quote_id)
        return sorted(qs.allowed_actions(quote)) if quote else []

    # ── Edit / version ───────────────────────────────────────────────────────

    def edit(self, quote_id: str, as_new_version: bool = False,
             change_reason: str = "") -> dict:
        """Pre-filled form for an editable quote.

        as_new_version gives a form that saves as the next version of the
        same quoteReference; the server assigns the version number.
        """
        quote = self.find(quote_id)
        if not quote:
            return self._not_found(quote_id)

        status = qs.normalize_status(quote.get("status"))
        if not qs.is_allowed(status, qs.EDIT):
            return self._result(
                False,
                f"Quote {self._ref(quote)} cannot be edited because its status is "
                f"{qs.label(status)}. Only Draft, Sent or Pending quotes can be edited.",
                status=status)

        form = deepcopy(quote)
        if as_new_version:
            for key in ("id", "versionNumber", "isLatestVersion", "orderId", "status"):
                form.pop(key, None)
            form["parentQuoteId"] = quote_id
            form["changeReason"] = change_reason
        log.info("Editing quote %s (new version=%s)", quote_id, as_new_version,
                 extra={"quote_id": quote_id})
        return {"ok": True, "message": f"Editing quote {self._ref(quote)}", "form": form}

    # ── Clone ────────────────────────────────────────────────────────────────

    def clone(self, quote_id: str, customer_id: Optional[str] = None,
              title: Optional[str] = None) -> dict:
        quote = self.find(quote_id)
        if not quote:
            return self._not_found(quote_id)

        if not self.confirm(f"Clone quote {self._ref(quote)} as a new draft?"):
            return {"ok": False, "cancelled": True, "message": "Clone cancelled"}

        try:
            new_quote = quotes_api.clone_quote(self.client, quote_id,
                                               customer_id=customer_id, title=title)
        except ApiError as e:
            return self._result(False, f"Failed to clone quote: {e.message}")

        self.refresh()
        ref = (new_quote or {}).get("quoteReference") or (new_quote or {}).get("id")
        return self._result(True, f"Quote cloned successfully: {ref}", quote=new_quote)

    # ── Convert to order ─────────────────────────────────────────────────────

    def convert_to_order(self, quote_id: str, create_job: bool = False) -> dict:
        quote = self.find(quote_id)
        if not quote:
            return self._not_found(quote_id)

        if quote.get("orderId"):
            return self._result(
                False, f"Quote {self._ref(quote)} has already been converted to "
                       f"order {quote['orderId']}.", order_id=quote["orderId"])

        status = qs.normalize_status(quote.get("status"))
        if not qs.is_allowed(status, qs.CONVERT):
            return self._result(
                False, f"Only approved quotes can be converted to orders. "
                       f"Quote {self._ref(quote)} is {qs.label(status)}.", status=status)

        if not self.confirm(f"Convert quote {self._ref(quote)} to an order?"):
            return {"ok": False, "cancelled": True, "message": "Conversion cancelled"}

        try:
            body = orders_api.create_from_quote(self.client, quote_id)
        except ApiError as e:
            return self._convert_locally(quote, e, create_job)

        order_id = normalize.extract_order_id(body)
        if order_id is None:
            log.warning("Conversion of %s succeeded but response had no order id: %r",
                        quote_id, body)
        self.refresh()
        result = self._result(
            True, f"Quote {self._ref(quote)} has been converted to order {order_id}",
            order_id=order_id, fallback=False)
        if create_job and order_id:
            result["next"] = {"view": "jobs/new", "orderId": order_id}
        return result

    def _convert_locally(self, quote: dict, error: ApiError, create_job: bool) -> dict:
        order = build_mock_order(quote)
        self.orders.put(order)

        updated = {**quote, "status": qs.CONVERTED, "orderId": order["id"]}
        self._replace(quote["id"], updated)

        result = self._result(
            True,
            f"Server conversion failed ({error.message}). Quote {self._ref(quote)} was "
            f"converted to order {order['id']} in local storage only.",
            order_id=order["id"], order=order, fallback=True,
            next_options=[{"view": "orders"},
                          {"view": "jobs/new", "orderId": order["id"]}])
        if create_job:
            result["next"] = {"view": "jobs/new", "orderId": order["id"]}
        return result

    # ── Save ─────────────────────────────────────────────────────────────────

    def save(self, payload: dict) -> dict:
        """PATCH an existing draft in place, otherwise POST a new quote/version."""
        body = deepcopy(payload)
        if body.get("totalAmount") is None and body.get("lineItems"):
            body["totalAmount"] = quote_total(body)

        quote_id = body.get("id")
        in_place = bool(quote_id) and not body.get("parentQuoteId")
        try:
            if in_place:
                body.pop("id")
                saved = quotes_api.update_quote(self.client, quote_id, body)
            else:
                body.pop("id", None)
                saved = quotes_api.create_quote(self.client, body)
        except ApiError as e:
            return self._result(False, f"Failed to save quote: {e.message}")

        self.refresh()
        method = "PATCH" if in_place else "POST"
        verb = "updated" if in_place else "created"
        return self._result(True, f"Quote {verb}", quote=saved, method=method)

    # ── Status ───────────────────────────────────────────────────────────────

    def update_status(self, quote_id: str, new_status: str) -> dict:
        new_status = qs.normalize_status(new_status)
        if new_status not in qs.VALID_STATUSES:
            return self._result(False, f"Unknown quote status {new_status!r}")

        quote = self.find(quote_id)
        if not quote:
            return self._not_found(quote_id)
        if not qs.is_allowed(quote.get("status"), qs.SET_STATUS):
            return self._result(
                False, f"Status of quote {self._ref(quote)} cannot change from "
                       f"{qs.label(quote.get('status'))}.")

        try:
            saved = quotes_api.update_quote_status(self.client, quote_id, new_status)
        except ApiError as e:
            return self._result(False, f"Failed to update status: {e.message}")

        updated = {**quote, "status": new_status}
        if isinstance(saved, dict) and saved.get("id") == quote_id:
            updated.update(saved)
        self._replace(quote_id, updated)
        return self._result(True, f"Quote {self._ref(quote)} is now {qs.label(new_status)}",
                            quote=updated)

    # ── PDF ──────────────────────────────────────────────────────────────────

    def generate_pdf(self, quote_id: str, output_path: str) -> dict:
        from bones.forms.quote_pdf import generate_quote_pdf

        quote = self.find(quote_id)
        if not quote:
            return self._not_found(quote_id)
        return generate_quote_pdf(quote, output_path)
