"""
Tests for bones.quotes.lifecycle.QuoteLifecycleManager against the fake backend.

Covers status-gated edit, convert preconditions, the local-order fallback,
PATCH-vs-POST save selection, status updates and stale refresh handling.
"""
import os

import pytest

from bones.integrations.client import ApiError
from bones.quotes.fallback import MOCK_ORDERS_KEY
from bones.quotes.lifecycle import CancelToken, QuoteLifecycleManager


@pytest.fixture
def notices():
    return []


@pytest.fixture
def mgr(backend, notices):
    m = QuoteLifecycleManager(backend, notify=notices.append)
    m.refresh()
    return m


# ═══════════════════════════════════════════════════════════════════════════════
# Refresh
# ═══════════════════════════════════════════════════════════════════════════════

class TestRefresh:

    def test_loads_all_versions(self, mgr, backend):
        assert len(mgr.quotes) == 5
        assert backend.calls_to("GET", "/quotes")[0]["params"] == {"all": "true"}

    def test_error_keeps_previous_list(self, mgr, backend, notices):
        backend.routes[("GET", "/quotes")] = ApiError("Backend down", status_code=503)
        assert mgr.refresh() is None
        assert len(mgr.quotes) == 5
        assert mgr.last_error == "Backend down"
        assert notices[-1] == "Failed to load quotes: Backend down"

    def test_cancelled_token_skips_fetch(self, backend):
        m = QuoteLifecycleManager(backend)
        token = m.new_token()
        token.cancel()
        assert m.refresh(token) is None
        assert backend.calls == []

    def test_stale_result_discarded(self, backend, sample_quotes):
        m = QuoteLifecycleManager(backend)
        token = m.new_token()

        def slow_list(params, json):
            token.cancel()  # superseded while in flight
            return sample_quotes

        backend.routes[("GET", "/quotes")] = slow_list
        assert m.refresh(token) is None
        assert m.quotes == []

    def test_closed_manager_discards(self, backend):
        m = QuoteLifecycleManager(backend)
        m.close()
        assert m.closed
        assert m.refresh() is None

    def test_cancel_parent_cancels_child(self):
        parent = CancelToken()
        child = parent.child()
        parent.cancel()
        assert child.cancelled

    def test_actions(self, mgr):
        assert mgr.actions("q-100-2") == ["clone", "convert", "pdf", "status"]
        assert mgr.actions("missing") == []

    def test_visible(self, mgr):
        assert [q["id"] for q in mgr.visible(status="DECLINED")] == ["q-098-1"]


# ═══════════════════════════════════════════════════════════════════════════════
# Edit
# ═══════════════════════════════════════════════════════════════════════════════

class TestEdit:

    def test_draft_gives_form(self, mgr):
        result = mgr.edit("q-101-1")
        assert result["ok"]
        assert result["form"]["id"] == "q-101-1"

    def test_form_is_a_copy(self, mgr):
        form = mgr.edit("q-101-1")["form"]
        form["lineItems"][0]["quantity"] = 99
        assert mgr.find("q-101-1")["lineItems"][0]["quantity"] == 3

    def test_approved_refused_with_status_in_message(self, mgr, notices):
        result = mgr.edit("q-100-2")
        assert not result["ok"]
        assert "Approved" in result["message"]
        assert "Q-100 v2" in result["message"]
        assert notices[-1] == result["message"]

    def test_new_version_form(self, mgr):
        form = mgr.edit("q-101-1", as_new_version=True, change_reason="Price rise")["form"]
        assert "id" not in form
        assert "versionNumber" not in form
        assert form["parentQuoteId"] == "q-101-1"
        assert form["changeReason"] == "Price rise"

    def test_unknown_quote(self, mgr):
        result = mgr.edit("nope")
        assert not result["ok"]
        assert result["not_found"]


# ═══════════════════════════════════════════════════════════════════════════════
# Clone
# ═══════════════════════════════════════════════════════════════════════════════

class TestClone:

    def test_clone_refreshes(self, mgr, backend):
        backend.routes[("POST", "/quotes/q-100-2/clone")] = {
            "data": {"id": "q-102-1", "quoteReference": "Q-102"}}
        result = mgr.clone("q-100-2", title="Copy")
        assert result["ok"]
        assert result["message"] == "Quote cloned successfully: Q-102"
        assert backend.calls_to("POST", "/quotes/q-100-2/clone")[0]["json"] == {"title": "Copy"}
        assert len(backend.calls_to("GET", "/quotes")) == 2

    def test_declined_confirmation(self, backend):
        m = QuoteLifecycleManager(backend, confirm=lambda prompt: False)
        m.refresh()
        result = m.clone("q-100-2")
        assert result["cancelled"]
        assert backend.calls_to("POST") == []

    def test_clone_failure(self, mgr, backend):
        backend.routes[("POST", "/quotes/q-100-2/clone")] = ApiError("Quota exceeded", 429)
        result = mgr.clone("q-100-2")
        assert not result["ok"]
        assert "Quota exceeded" in result["message"]


# ═══════════════════════════════════════════════════════════════════════════════
# Convert to order
# ═══════════════════════════════════════════════════════════════════════════════

class TestConvertPreconditions:

    @pytest.mark.parametrize("quote_id", ["q-101-1", "q-098-1", "q-100-1"])
    def test_non_approved_refused_without_network(self, mgr, backend, quote_id):
        result = mgr.convert_to_order(quote_id)
        assert not result["ok"]
        assert "approved" in result["message"].lower()
        assert backend.calls_to("POST") == []

    def test_already_linked_refused(self, mgr, backend):
        result = mgr.convert_to_order("q-099-1")
        assert not result["ok"]
        assert result["order_id"] == "o-55"
        assert backend.calls_to("POST") == []

    def test_confirmation_declined(self, backend):
        m = QuoteLifecycleManager(backend, confirm=lambda prompt: False)
        m.refresh()
        assert m.convert_to_order("q-100-2")["cancelled"]
        assert backend.calls_to("POST") == []


class TestConvertSuccess:

    def test_nested_order_id(self, mgr, backend):
        backend.routes[("POST", "/orders/from-quote/q-100-2")] = {"order": {"id": "o-77"}}
        result = mgr.convert_to_order("q-100-2")
        assert result["ok"]
        assert result["order_id"] == "o-77"
        assert result["fallback"] is False
        assert len(backend.calls_to("GET", "/quotes")) == 2

    def test_top_level_id_and_job_handoff(self, mgr, backend):
        backend.routes[("POST", "/orders/from-quote/q-100-2")] = {"id": "o-78"}
        result = mgr.convert_to_order("q-100-2", create_job=True)
        assert result["next"] == {"view": "jobs/new", "orderId": "o-78"}

    def test_no_id_still_success(self, mgr, backend):
        backend.routes[("POST", "/orders/from-quote/q-100-2")] = {"success": True}
        result = mgr.convert_to_order("q-100-2")
        assert result["ok"]
        assert result["order_id"] is None


class TestConvertFallback:

    @pytest.fixture
    def failed(self, mgr, backend):
        backend.routes[("POST", "/orders/from-quote/q-100-2")] = ApiError(
            "Internal Server Error", status_code=500)
        return mgr.convert_to_order("q-100-2")

    def test_result_flags_fallback(self, failed):
        assert failed["ok"]
        assert failed["fallback"] is True
        assert failed["order_id"].startswith("mock-order-")
        assert "Internal Server Error" in failed["message"]

    def test_order_mirrors_quote(self, failed):
        order = failed["order"]
        assert order["projectValue"] == 1200
        assert order["value"] == 1200
        assert order["quoteId"] == "q-100-2"
        assert order["customerName"] == "Acme Foods"
        assert order["items"] == [
            {"description": "Widget", "quantity": 2, "unitPrice": 600, "materialId": "m-9"}]
        assert order["isMock"] is True

    def test_order_persisted(self, failed, store):
        stored = store.get(MOCK_ORDERS_KEY)
        assert [o["id"] for o in stored] == [failed["order_id"]]

    def test_quote_patched_in_memory(self, failed, mgr):
        quote = mgr.find("q-100-2")
        assert quote["status"] == "CONVERTED"
        assert quote["orderId"] == failed["order_id"]
        assert "convert" not in mgr.actions("q-100-2")

    def test_next_options(self, failed):
        views = [o["view"] for o in failed["next_options"]]
        assert views == ["orders", "jobs/new"]

    def test_reload_keeps_local_conversion(self, failed, mgr, store):
        mgr.refresh()
        quote = mgr.find("q-100-2")
        assert quote["status"] == "CONVERTED"
        assert quote["orderId"] == failed["order_id"]
        again = mgr.convert_to_order("q-100-2")
        assert not again["ok"]
        assert again["order_id"] == failed["order_id"]
        assert len(store.get(MOCK_ORDERS_KEY)) == 1

    def test_new_manager_sees_local_order(self, failed, backend):
        fresh = QuoteLifecycleManager(backend)
        fresh.refresh()
        assert fresh.find("q-100-2")["orderId"] == failed["order_id"]
        assert "convert" not in fresh.actions("q-100-2")

    def test_backend_order_id_wins(self, store, backend):
        store.append(MOCK_ORDERS_KEY, {"id": "mock-order-1", "quoteId": "q-099-1"})
        m = QuoteLifecycleManager(backend)
        m.refresh()
        assert m.find("q-099-1")["orderId"] == "o-55"
        assert m.find("q-101-1")["status"] == "DRAFT"


# ═══════════════════════════════════════════════════════════════════════════════
# Save
# ═══════════════════════════════════════════════════════════════════════════════

class TestSave:

    def test_existing_draft_patched(self, mgr, backend):
        backend.routes[("PATCH", "/quotes/q-101-1")] = {"data": {"id": "q-101-1"}}
        form = mgr.edit("q-101-1")["form"]
        form["title"] = "Belt replacement (rev)"
        result = mgr.save(form)
        assert result["ok"]
        assert result["method"] == "PATCH"
        sent = backend.calls_to("PATCH", "/quotes/q-101-1")[0]["json"]
        assert "id" not in sent
        assert sent["title"] == "Belt replacement (rev)"
        assert backend.calls_to("POST") == []

    def test_new_version_posted(self, mgr, backend):
        backend.routes[("POST", "/quotes")] = {"data": {"id": "q-101-2"}}
        form = mgr.edit("q-101-1", as_new_version=True)["form"]
        result = mgr.save(form)
        assert result["method"] == "POST"
        assert backend.calls_to("POST", "/quotes")[0]["json"]["parentQuoteId"] == "q-101-1"
        assert backend.calls_to("PATCH") == []

    def test_id_with_parent_still_posts(self, mgr, backend):
        backend.routes[("POST", "/quotes")] = {"id": "q-200-1"}
        result = mgr.save({"id": "stale", "parentQuoteId": "q-101-1", "title": "x"})
        assert result["method"] == "POST"
        assert "id" not in backend.calls_to("POST", "/quotes")[0]["json"]

    def test_new_quote_posted_with_total(self, mgr, backend):
        backend.routes[("POST", "/quotes")] = {"id": "q-300-1"}
        mgr.save({"title": "New", "lineItems": [
            {"description": "Roller", "quantity": 4, "unitPrice": 25}]})
        assert backend.calls_to("POST", "/quotes")[0]["json"]["totalAmount"] == 100

    def test_string_numbers_totalled(self, mgr, backend):
        backend.routes[("POST", "/quotes")] = {"id": "q-301-1"}
        result = mgr.save({"lineItems": [{"quantity": "2", "unitPrice": "600"}]})
        assert result["ok"]
        assert backend.calls_to("POST", "/quotes")[0]["json"]["totalAmount"] == 1200.0

    def test_unparseable_numbers_count_as_zero(self, mgr, backend):
        backend.routes[("POST", "/quotes")] = {"id": "q-302-1"}
        mgr.save({"lineItems": [{"quantity": "two", "unitPrice": "600"},
                                {"quantity": 1, "unitPrice": "50.5"}]})
        assert backend.calls_to("POST", "/quotes")[0]["json"]["totalAmount"] == 50.5

    def test_payload_not_mutated(self, mgr, backend):
        backend.routes[("PATCH", "/quotes/q-101-1")] = {"id": "q-101-1"}
        payload = {"id": "q-101-1", "title": "x"}
        mgr.save(payload)
        assert payload == {"id": "q-101-1", "title": "x"}

    def test_failure_reported(self, mgr, backend):
        backend.routes[("POST", "/quotes")] = ApiError("Validation failed", 400)
        result = mgr.save({"title": "x"})
        assert not result["ok"]
        assert "Validation failed" in result["message"]


# ═══════════════════════════════════════════════════════════════════════════════
# Status & PDF
# ═══════════════════════════════════════════════════════════════════════════════

class TestStatus:

    def test_update(self, mgr, backend):
        backend.routes[("PATCH", "/quotes/q-101-1/status")] = {"id": "q-101-1", "status": "SENT"}
        result = mgr.update_status("q-101-1", "sent")
        assert result["ok"]
        assert mgr.find("q-101-1")["status"] == "SENT"
        assert backend.calls_to("PATCH", "/quotes/q-101-1/status")[0]["json"] == {"status": "SENT"}

    def test_unknown_status(self, mgr, backend):
        assert not mgr.update_status("q-101-1", "LOST")["ok"]
        assert backend.calls_to("PATCH") == []

    def test_converted_locked(self, mgr, backend):
        assert not mgr.update_status("q-099-1", "DRAFT")["ok"]
        assert backend.calls_to("PATCH") == []


class TestPdf:

    def test_generates_file(self, mgr, temp_data_dir):
        out = os.path.join(temp_data_dir, "output", "q.pdf")
        result = mgr.generate_pdf("q-100-2", out)
        assert result["ok"]
        assert os.path.exists(out)
        assert result["total"] == 1440.0
