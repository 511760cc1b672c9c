"""
Dashboard: JSON endpoints over the quote lifecycle.

Every route is behind HTTP Basic auth (DASH_USER / DASH_PASS). Each request
builds a fresh QuoteLifecycleManager from the app's client and store and
refreshes the quote list first, so the handlers always act on what the
backend currently returns.

Actions that the UI guards with a confirmation dialog (clone, convert)
need {"confirm": true} in the JSON body; without it the route answers 409.
"""

import os
import time
import logging
import functools

from flask import Blueprint, Response, current_app, jsonify, request, send_file

from bones.core import paths
from bones.core.local_store import LocalStore
from bones.core.settings import get_setting, settings_status
from bones.integrations.client import ApiClient
from bones.quotes.fallback import MockOrderRepository
from bones.quotes.lifecycle import QuoteLifecycleManager

log = logging.getLogger("bones.dashboard")

bp = Blueprint("dashboard", __name__)


# ═══════════════════════════════════════════════════════════════════════
# Request logging
# ═══════════════════════════════════════════════════════════════════════

@bp.before_app_request
def _log_request_start():
    request._start_time = time.time()


@bp.after_app_request
def _log_request_end(response):
    if hasattr(request, "_start_time"):
        duration_ms = round((time.time() - request._start_time) * 1000, 1)
        if request.path != "/api/health":
            log.info("%s %s → %d (%.0fms)",
                     request.method, request.path, response.status_code, duration_ms,
                     extra={"route": request.path, "method": request.method,
                            "status": response.status_code, "duration_ms": duration_ms})
    return response


# ═══════════════════════════════════════════════════════════════════════
# Password Protection
# ═══════════════════════════════════════════════════════════════════════

def check_auth(username, password):
    expected = get_setting("dash_pass")
    return bool(expected) and username == get_setting("dash_user") and password == expected


def auth_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        auth = request.authorization
        if not auth or not check_auth(auth.username, auth.password):
            return Response(
                "Bones Admin: Login Required",
                401, {"WWW-Authenticate": 'Basic realm="Bones Admin"'})
        return f(*args, **kwargs)
    return decorated


# ═══════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════

def _store() -> LocalStore:
    store = current_app.config.get("BONES_STORE")
    if store is None:
        store = LocalStore()
        current_app.config["BONES_STORE"] = store
    return store


def _client() -> ApiClient:
    client = current_app.config.get("BONES_CLIENT")
    if client is None:
        client = ApiClient(store=_store())
        current_app.config["BONES_CLIENT"] = client
    return client


def _body() -> dict:
    return request.get_json(silent=True) or {}


def _manager(confirmed: bool = False) -> QuoteLifecycleManager:
    mgr = QuoteLifecycleManager(
        _client(), orders=MockOrderRepository(_store()),
        confirm=lambda prompt: confirmed)
    mgr.refresh()
    return mgr


def _unavailable(mgr: QuoteLifecycleManager):
    """502 body when the quote list could not be loaded, else None."""
    if not mgr.last_error:
        return None
    return jsonify({"ok": False, "error": mgr.last_error}), 502


def _respond(result: dict):
    if result.get("ok"):
        return jsonify(result)
    if result.get("not_found"):
        return jsonify(result), 404
    if result.get("cancelled"):
        return jsonify({**result, "error": "Confirmation required"}), 409
    return jsonify(result), 400


# ═══════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/health")
@auth_required
def api_health():
    return jsonify({
        "ok": True,
        "api_url": _client().base_url,
        "paths": paths.validate_paths(),
        "settings": settings_status(),
    })


@bp.route("/api/quotes")
@auth_required
def api_quotes():
    """Filtered quote list. ?status=&search=&hide_converted=1"""
    mgr = _manager()
    if mgr.last_error:
        return jsonify({"ok": False, "error": mgr.last_error, "quotes": []}), 502
    quotes = mgr.visible(
        status=request.args.get("status", "all"),
        search=request.args.get("search", ""),
        hide_converted=request.args.get("hide_converted", "").lower() in ("1", "true", "yes"))
    return jsonify({"ok": True, "count": len(quotes), "quotes": quotes})


@bp.route("/api/quotes", methods=["POST"])
@auth_required
def api_save_quote():
    payload = _body()
    if not payload:
        return jsonify({"ok": False, "error": "Quote body required"}), 400
    return _respond(_manager().save(payload))


@bp.route("/api/quotes/<quote_id>/actions")
@auth_required
def api_quote_actions(quote_id):
    mgr = _manager()
    outage = _unavailable(mgr)
    if outage:
        return outage
    quote = mgr.find(quote_id)
    if not quote:
        return jsonify({"ok": False, "error": f"Quote {quote_id} not found"}), 404
    return jsonify({"ok": True, "id": quote_id, "status": quote.get("status"),
                    "actions": mgr.actions(quote_id)})


@bp.route("/api/quotes/<quote_id>/edit", methods=["POST"])
@auth_required
def api_edit_quote(quote_id):
    body = _body()
    mgr = _manager()
    outage = _unavailable(mgr)
    if outage:
        return outage
    return _respond(mgr.edit(
        quote_id, as_new_version=bool(body.get("new_version")),
        change_reason=body.get("change_reason", "")))


@bp.route("/api/quotes/<quote_id>/clone", methods=["POST"])
@auth_required
def api_clone_quote(quote_id):
    body = _body()
    mgr = _manager(confirmed=body.get("confirm") is True)
    outage = _unavailable(mgr)
    if outage:
        return outage
    return _respond(mgr.clone(quote_id, customer_id=body.get("customerId"),
                              title=body.get("title")))


@bp.route("/api/quotes/<quote_id>/convert", methods=["POST"])
@auth_required
def api_convert_quote(quote_id):
    body = _body()
    mgr = _manager(confirmed=body.get("confirm") is True)
    outage = _unavailable(mgr)
    if outage:
        return outage
    return _respond(mgr.convert_to_order(quote_id, create_job=bool(body.get("create_job"))))


@bp.route("/api/quotes/<quote_id>/status", methods=["PATCH"])
@auth_required
def api_quote_status(quote_id):
    new_status = _body().get("status")
    if not new_status:
        return jsonify({"ok": False, "error": "status required"}), 400
    mgr = _manager()
    outage = _unavailable(mgr)
    if outage:
        return outage
    return _respond(mgr.update_status(quote_id, new_status))


@bp.route("/api/quotes/<quote_id>/pdf")
@auth_required
def api_quote_pdf(quote_id):
    out_dir = current_app.config.get("OUTPUT_DIR", paths.OUTPUT_DIR)
    out_path = os.path.join(out_dir, f"quote_{quote_id}.pdf")
    mgr = _manager()
    outage = _unavailable(mgr)
    if outage:
        return outage
    result = mgr.generate_pdf(quote_id, out_path)
    if not result.get("ok"):
        return _respond(result)
    return send_file(result["path"], mimetype="application/pdf",
                     download_name=os.path.basename(result["path"]))


@bp.route("/api/orders/local")
@auth_required
def api_local_orders():
    repo = MockOrderRepository(_store())
    quote_id = request.args.get("quote_id")
    orders = repo.for_quote(quote_id) if quote_id else repo.list()
    return jsonify({"ok": True, "count": len(orders), "orders": orders})
