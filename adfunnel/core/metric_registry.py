"""ADFUNNEL — Unified Metric Registry.

Defines the canonical set of funnel metrics and their classifications.
Parsers emit these names; the aggregator and parity checks look up units
here to tell currency fields from counts.
"""

from enum import Enum
from typing import Dict


class MetricType(str, Enum):
    """How a metric is categorised."""

    VOLUME = "volume"  # Raw counts: impressions, clicks
    COST = "cost"  # Monetary: spend
    FUNNEL = "funnel"  # Conversion funnel counts
    REVENUE = "revenue"  # Income: reservation_value, conversion_value
    DERIVED = "derived"  # Computed after aggregation: roas, ctr


class FunnelCategory(str, Enum):
    """Canonical conversion funnel categories, in matching order."""

    CLICK_TO_CALL = "click_to_call"
    EMAIL_CONTACTS = "email_contacts"
    BOOKING_STEP_1 = "booking_step_1"
    BOOKING_STEP_2 = "booking_step_2"
    BOOKING_STEP_3 = "booking_step_3"
    RESERVATIONS = "reservations"


# Booking path order: each step is a narrowing of the previous one.
BOOKING_PATH = (
    FunnelCategory.BOOKING_STEP_1,
    FunnelCategory.BOOKING_STEP_2,
    FunnelCategory.BOOKING_STEP_3,
    FunnelCategory.RESERVATIONS,
)


class MetricDefinition:
    """Describes a single metric."""

    def __init__(
        self, name: str, metric_type: MetricType, unit: str = "", description: str = ""
    ):
        self.name = name
        self.metric_type = metric_type
        self.unit = unit
        self.description = description

    @property
    def is_currency(self) -> bool:
        return self.unit == "currency"

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.metric_type.value})>"


# ─────────────────────────────────────────────
# FUNNEL METRICS — Parser output
# ─────────────────────────────────────────────

FUNNEL_METRICS: Dict[str, MetricDefinition] = {
    "click_to_call": MetricDefinition(
        "click_to_call", MetricType.FUNNEL, "count", "Phone click / call events"
    ),
    "email_contacts": MetricDefinition(
        "email_contacts", MetricType.FUNNEL, "count", "E-mail and lead-form contacts"
    ),
    "booking_step_1": MetricDefinition(
        "booking_step_1", MetricType.FUNNEL, "count", "Booking engine search"
    ),
    "booking_step_2": MetricDefinition(
        "booking_step_2", MetricType.FUNNEL, "count", "Booking engine offer view"
    ),
    "booking_step_3": MetricDefinition(
        "booking_step_3", MetricType.FUNNEL, "count", "Booking engine checkout start"
    ),
    "reservations": MetricDefinition(
        "reservations", MetricType.FUNNEL, "count", "Completed reservations"
    ),
    # Revenue
    "reservation_value": MetricDefinition(
        "reservation_value",
        MetricType.REVENUE,
        "currency",
        "Value of completed reservations",
    ),
    "conversion_value": MetricDefinition(
        "conversion_value",
        MetricType.REVENUE,
        "currency",
        "Platform-reported total conversion value",
    ),
}


# ─────────────────────────────────────────────
# DELIVERY METRICS — Taken from raw campaign rows
# ─────────────────────────────────────────────

DELIVERY_METRICS: Dict[str, MetricDefinition] = {
    "spend": MetricDefinition(
        "spend", MetricType.COST, "currency", "Total amount spent"
    ),
    "impressions": MetricDefinition(
        "impressions", MetricType.VOLUME, "count", "Number of times ad was shown"
    ),
    "clicks": MetricDefinition("clicks", MetricType.VOLUME, "count", "Total clicks"),
}


# ─────────────────────────────────────────────
# DERIVED METRICS — Computed from aggregates
# ─────────────────────────────────────────────

DERIVED_METRICS: Dict[str, MetricDefinition] = {
    "ctr": MetricDefinition("ctr", MetricType.DERIVED, "%", "Click-through rate"),
    "cpc": MetricDefinition("cpc", MetricType.DERIVED, "currency", "Cost per click"),
    "roas": MetricDefinition("roas", MetricType.DERIVED, "ratio", "Return on ad spend"),
    "cost_per_reservation": MetricDefinition(
        "cost_per_reservation",
        MetricType.DERIVED,
        "currency",
        "Spend / reservations",
    ),
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

ALL_METRICS = {**FUNNEL_METRICS, **DELIVERY_METRICS, **DERIVED_METRICS}


def get_metric(name: str) -> MetricDefinition | None:
    """Look up a metric by name."""
    return ALL_METRICS.get(name)