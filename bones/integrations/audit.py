"""
Audit endpoints: change history across quote → order → job, plus the
legal evidence package the backend assembles from that history.

Statistics feed a dashboard widget and are not critical: failures return
EMPTY_STATISTICS. Everything else logs and re-raises.
"""

import logging
from typing import Optional

from bones.integrations import normalize
from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.audit")

ENTITY_TYPES = ("QUOTE", "ORDER", "JOB")
EVIDENCE_FORMATS = ("JSON", "PDF")

EMPTY_STATISTICS = {
    "totalChanges": 0,
    "changesByType": {},
    "changesByUser": {},
    "recentActivity": [],
    "trendData": [],
}


def _check_entity(entity_type: str):
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"entity_type must be one of {ENTITY_TYPES}, got {entity_type!r}")


def _history(client: ApiClient, kind: str, entity_id: str) -> list:
    try:
        body = client.get(f"/audit/{kind}/{entity_id}/history")
    except ApiError as e:
        log.error("Error fetching %s history for %s: %s", kind[:-1], entity_id, e)
        raise
    return normalize.extract_list(body, (None, "history", "data"), "history")


def get_quote_history(client: ApiClient, quote_id: str) -> list:
    return _history(client, "quotes", quote_id)


def get_order_history(client: ApiClient, order_id: str) -> list:
    return _history(client, "orders", order_id)


def get_job_history(client: ApiClient, job_id: str) -> list:
    return _history(client, "jobs", job_id)


def get_complete_history(client: ApiClient, quote_id: Optional[str] = None,
                         order_id: Optional[str] = None,
                         job_id: Optional[str] = None) -> dict:
    """Combined quote → order → job timeline. At least one id is required."""
    params = {k: v for k, v in (("quoteId", quote_id), ("orderId", order_id),
                                ("jobId", job_id)) if v}
    if not params:
        raise ValueError("get_complete_history needs a quote, order or job id")
    try:
        return client.get("/audit/complete-history", params=params)
    except ApiError as e:
        log.error("Error fetching complete history %s: %s", params, e)
        raise


def get_legal_evidence_package(client: ApiClient, entity_type: str, entity_id: str,
                               include_documents: bool = True,
                               format: str = "JSON") -> dict:
    _check_entity(entity_type)
    if format not in EVIDENCE_FORMATS:
        raise ValueError(f"format must be one of {EVIDENCE_FORMATS}")
    payload = {"entityType": entity_type, "entityId": entity_id,
               "includeDocuments": include_documents, "format": format}
    try:
        body = client.post("/audit/legal-evidence", json=payload)
    except ApiError as e:
        log.error("Error generating legal evidence for %s %s: %s",
                  entity_type, entity_id, e)
        raise
    return normalize.unwrap_data(body)


def search_audit_history(client: ApiClient, entity_type: Optional[str] = None,
                         entity_id: Optional[str] = None,
                         change_type: Optional[str] = None,
                         changed_by: Optional[str] = None,
                         date_from: Optional[str] = None,
                         date_to: Optional[str] = None,
                         page: int = 1, limit: int = 50) -> dict:
    if entity_type:
        _check_entity(entity_type)
    params = {
        "entityType": entity_type, "entityId": entity_id,
        "changeType": change_type, "changedBy": changed_by,
        "dateFrom": date_from, "dateTo": date_to,
        "page": page, "limit": limit,
    }
    params = {k: v for k, v in params.items() if v is not None}
    try:
        return client.get("/audit/search", params=params)
    except ApiError as e:
        log.error("Error searching audit history: %s", e)
        raise


def get_audit_statistics(client: ApiClient, entity_type: Optional[str] = None,
                         date_from: Optional[str] = None,
                         date_to: Optional[str] = None) -> dict:
    params = {k: v for k, v in (("entityType", entity_type), ("dateFrom", date_from),
                                ("dateTo", date_to)) if v}
    try:
        body = client.get("/audit/statistics", params=params or None)
    except ApiError as e:
        log.error("Error fetching audit statistics: %s", e)
        return dict(EMPTY_STATISTICS)
    stats = normalize.unwrap_data(body)
    if not isinstance(stats, dict):
        return dict(EMPTY_STATISTICS)
    return {**EMPTY_STATISTICS, **stats}


def verify_digital_signature(client: ApiClient, entity_type: str, entity_id: str,
                             signature: str) -> dict:
    _check_entity(entity_type)
    try:
        return client.post("/audit/verify-signature", json={
            "entityType": entity_type, "entityId": entity_id, "signature": signature})
    except ApiError as e:
        log.error("Error verifying signature for %s %s: %s", entity_type, entity_id, e)
        raise
