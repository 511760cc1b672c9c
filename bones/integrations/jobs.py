"""
Job endpoints: jobs plus their cost and material sub-resources.

    /jobs, /jobs/{id}
    /jobs/{id}/costs, /jobs/{id}/costs/summary, /jobs/{id}/costs/{costId}
    /jobs/{id}/materials, /jobs/{id}/notes
    /jobs/at-risk, /jobs/available-orders, /jobs/available-users
    /jobs/{id}/performance-metrics

All functions log and re-raise ApiError.
"""

import logging
from typing import Optional

from bones.integrations import normalize
from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.jobs")

JOB_STATUSES = ("DRAFT", "PENDING", "IN_PROGRESS", "COMPLETED", "CANCELLED")
COST_CATEGORIES = ("MATERIALS", "LABOR", "EQUIPMENT", "SUBCONTRACTOR",
                   "ADMINISTRATIVE", "TRAVEL", "OTHER")


def _call(what: str, fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except ApiError as e:
        log.error("Error %s: %s", what, e)
        raise


# ─── Jobs ────────────────────────────────────────────────────────────────────

def get_jobs(client: ApiClient, status: Optional[str] = None, page: Optional[int] = None,
             limit: Optional[int] = None) -> dict:
    """List jobs → {"jobs": [...], "pagination": {...} | None}. status "ALL" = no filter."""
    params = {}
    if status and status.upper() != "ALL":
        params["status"] = status
    if page:
        params["page"] = page
    if limit:
        params["limit"] = limit
    body = _call("fetching jobs", client.get, "/jobs", params=params or None)
    pagination = body.get("pagination") if isinstance(body, dict) else None
    return {"jobs": normalize.jobs_from(body), "pagination": pagination}


def get_job(client: ApiClient, job_id: str) -> dict:
    return _call(f"fetching job {job_id}", client.get, f"/jobs/{job_id}")


def create_job(client: ApiClient, job: dict) -> dict:
    return _call("creating job", client.post, "/jobs", json=job)


def create_job_from_order(client: ApiClient, order_id: str, title: str, **extra) -> dict:
    """Job pre-filled with the order it delivers."""
    return create_job(client, {"orderId": order_id, "title": title, "status": "PENDING", **extra})


def update_job(client: ApiClient, job_id: str, changes: dict) -> dict:
    return _call(f"updating job {job_id}", client.patch, f"/jobs/{job_id}", json=changes)


def delete_job(client: ApiClient, job_id: str) -> bool:
    _call(f"deleting job {job_id}", client.delete, f"/jobs/{job_id}")
    return True


def get_at_risk_jobs(client: ApiClient, days_threshold: int = 7) -> list:
    body = _call("fetching at-risk jobs", client.get, "/jobs/at-risk",
                 params={"days": days_threshold})
    return normalize.jobs_from(body)


def get_job_performance_metrics(client: ApiClient, job_id: str) -> dict:
    return _call(f"fetching metrics for job {job_id}",
                 client.get, f"/jobs/{job_id}/performance-metrics")


def get_available_orders(client: ApiClient) -> list:
    body = _call("fetching available orders", client.get, "/jobs/available-orders")
    return normalize.orders_from(body)


def get_available_users(client: ApiClient) -> list:
    body = _call("fetching available users", client.get, "/jobs/available-users")
    return normalize.extract_list(body, (None, "users", "data"), "users")


def add_job_note(client: ApiClient, job_id: str, content: str) -> dict:
    return _call(f"adding note to job {job_id}",
                 client.post, f"/jobs/{job_id}/notes", json={"content": content})


# ─── Materials ───────────────────────────────────────────────────────────────

def get_job_materials(client: ApiClient, job_id: str) -> list:
    body = _call(f"fetching materials for job {job_id}",
                 client.get, f"/jobs/{job_id}/materials")
    return normalize.materials_from(body)


def add_job_material(client: ApiClient, job_id: str, material: dict) -> dict:
    return _call(f"adding material to job {job_id}",
                 client.post, f"/jobs/{job_id}/materials", json=material)


# ─── Costs ───────────────────────────────────────────────────────────────────

def get_job_costs(client: ApiClient, job_id: str) -> list:
    body = _call(f"fetching costs for job {job_id}", client.get, f"/jobs/{job_id}/costs")
    return normalize.extract_list(body, (None, "costs", "data"), "costs")


def get_job_cost_summary(client: ApiClient, job_id: str) -> dict:
    return _call(f"fetching cost summary for job {job_id}",
                 client.get, f"/jobs/{job_id}/costs/summary")


def add_job_cost(client: ApiClient, job_id: str, description: str, amount: float,
                 category: str, date: str, **extra) -> dict:
    if category not in COST_CATEGORIES:
        raise ValueError(f"Unknown cost category {category!r}")
    cost = {"description": description, "amount": amount,
            "category": category, "date": date, **extra}
    return _call(f"adding cost to job {job_id}",
                 client.post, f"/jobs/{job_id}/costs", json=cost)


def update_job_cost(client: ApiClient, job_id: str, cost_id: str, changes: dict) -> dict:
    return _call(f"updating cost {cost_id}",
                 client.put, f"/jobs/{job_id}/costs/{cost_id}", json=changes)


def delete_job_cost(client: ApiClient, job_id: str, cost_id: str) -> bool:
    _call(f"deleting cost {cost_id}", client.delete, f"/jobs/{job_id}/costs/{cost_id}")
    return True


def mark_cost_invoiced(client: ApiClient, job_id: str, cost_id: str,
                       invoiced: bool = True) -> dict:
    return update_job_cost(client, job_id, cost_id, {"invoiced": invoiced})
