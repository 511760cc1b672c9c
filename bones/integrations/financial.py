"""Financial metrics: GET /financial/metrics?period=."""

import logging

from bones.integrations import normalize
from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.financial")

PERIODS = ("week", "month", "quarter", "year")

EMPTY_METRICS = {
    "metrics": {"totalRevenue": 0, "totalCosts": 0, "profit": 0, "marginPercentage": 0},
    "trends": {"revenueGrowth": 0, "costGrowth": 0},
}


def get_financial_metrics(client: ApiClient, period: str = "month") -> dict:
    """{"metrics": {...}, "trends": {...}}; missing sections filled with zeros."""
    if period not in PERIODS:
        raise ValueError(f"period must be one of {PERIODS}, got {period!r}")
    try:
        body = client.get("/financial/metrics", params={"period": period})
    except ApiError as e:
        log.error("Error fetching financial metrics for %s: %s", period, e)
        raise
    data = normalize.unwrap_data(body)
    if not isinstance(data, dict):
        log.warning("Unexpected financial metrics shape: %s", type(data).__name__)
        data = {}
    return {
        "metrics": {**EMPTY_METRICS["metrics"], **(data.get("metrics") or {})},
        "trends": {**EMPTY_METRICS["trends"], **(data.get("trends") or {})},
    }
