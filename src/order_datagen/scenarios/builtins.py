"""
Built-in scenario profiles.

Each profile is a plain mapping validated into a ``ScenarioProfile`` when the
scenario manager is constructed. Profiles share the default entity rates and
distributions and override only what distinguishes them.
"""

from copy import deepcopy
from typing import Any

DEFAULT_ENTITY_RATES: dict[str, Any] = {
    "users": 20,
    "companies": 100,
    "branch_ratio": 0.3,
    "products": 200,
    "orders_per_day": 50,
    "maintenance_visits_per_week": 10,
}

DEFAULT_DISTRIBUTIONS: dict[str, Any] = {
    "order_status": {
        "Pending": 0.1,
        "Processing": 0.0,
        "Shipped": 0.15,
        "Delivered": 0.7,
        "Cancelled": 0.05,
        "Delivery Failed": 0.0,
    },
    "payment_status": {"Paid": 0.8, "Pending": 0.15, "Overdue": 0.05},
    "product_popularity": "zipf",
    "region_distribution": {"A": 0.6, "B": 0.4},
    "delivery_delays": 0.1,
}


def _profile(
    name: str,
    description: str,
    anomaly_rate: float,
    entity_rates: dict[str, Any] | None = None,
    distributions: dict[str, Any] | None = None,
    anomaly_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    profile: dict[str, Any] = {
        "name": name,
        "description": description,
        "entity_rates": {**deepcopy(DEFAULT_ENTITY_RATES), **(entity_rates or {})},
        "distributions": {**deepcopy(DEFAULT_DISTRIBUTIONS), **(distributions or {})},
        "anomaly_rate": anomaly_rate,
    }
    if anomaly_config is not None:
        profile["anomaly_config"] = anomaly_config
    return profile


BUILT_IN_SCENARIOS: dict[str, dict[str, Any]] = {
    "normal-ops": _profile(
        "normal-ops",
        "Standard business operations with typical patterns",
        anomaly_rate=0.05,
    ),
    "peak-season": _profile(
        "peak-season",
        "High-volume holiday/peak season simulation",
        anomaly_rate=0.15,
        entity_rates={"orders_per_day": 150, "maintenance_visits_per_week": 25},
        distributions={
            "payment_status": {"Paid": 0.6, "Pending": 0.3, "Overdue": 0.1},
        },
    ),
    "anomaly-heavy": _profile(
        "anomaly-heavy",
        "Stress testing with high anomaly rate",
        anomaly_rate=0.4,
        distributions={
            "payment_status": {"Paid": 0.4, "Pending": 0.3, "Overdue": 0.3},
            "delivery_delays": 0.3,
        },
        anomaly_config={
            "rate": 0.4,
            "types": [
                "payment_delay",
                "delivery_delay",
                "order_cancellation",
                "maintenance_failure",
            ],
            "clustering": "spread",
        },
    ),
    "warehouse-outage": _profile(
        "warehouse-outage",
        "Simulates warehouse disruption scenario",
        anomaly_rate=0.6,
        entity_rates={"orders_per_day": 30},
        distributions={
            "order_status": {
                "Pending": 0.5,
                "Processing": 0.3,
                "Shipped": 0.05,
                "Delivered": 0.1,
                "Cancelled": 0.05,
                "Delivery Failed": 0.0,
            },
            "delivery_delays": 0.7,
        },
        anomaly_config={
            "rate": 0.6,
            "types": ["delivery_delay", "stock_shortage", "order_cancellation"],
            "clustering": "burst",
        },
    ),
    "growth-phase": _profile(
        "growth-phase",
        "Rapid business growth with increasing orders",
        anomaly_rate=0.08,
        entity_rates={"companies": 200, "orders_per_day": 80, "products": 300},
        distributions={
            "payment_status": {"Paid": 0.75, "Pending": 0.2, "Overdue": 0.05},
        },
    ),
    "payment-crisis": _profile(
        "payment-crisis",
        "High payment delays and overdue rates",
        anomaly_rate=0.25,
        distributions={
            "payment_status": {"Paid": 0.3, "Pending": 0.4, "Overdue": 0.3},
        },
        anomaly_config={
            "rate": 0.25,
            "types": ["payment_delay"],
            "clustering": "spread",
        },
    ),
}
