"""
Customer health scores for the dashboard.

    GET /dashboard/customer-health
    GET /dashboard/predictive-health?timeframe=30|60|90
"""

import logging

from bones.integrations import normalize
from bones.integrations.client import ApiClient, ApiError

log = logging.getLogger("bones.rest.customer_health")

TIMEFRAMES = ("30", "60", "90")


def get_customer_health(client: ApiClient) -> dict:
    try:
        return normalize.unwrap_data(client.get("/dashboard/customer-health"))
    except ApiError as e:
        log.error("Error fetching customer health data: %s", e)
        raise


def get_predictive_health(client: ApiClient, timeframe="90") -> dict:
    """Predicted scores, churn and upsell over the next 30, 60 or 90 days."""
    timeframe = str(timeframe)
    if timeframe not in TIMEFRAMES:
        raise ValueError(f"timeframe must be one of {TIMEFRAMES}, got {timeframe!r}")
    try:
        body = client.get("/dashboard/predictive-health", params={"timeframe": timeframe})
    except ApiError as e:
        log.error("Error fetching predictive health data: %s", e)
        raise
    return normalize.unwrap_data(body)
