"""ADFUNNEL — Funnel Output Models.

``FunnelRecord`` is what a parser returns for one campaign. ``CampaignRecord``
adds identity and delivery metrics and is the shape cached per campaign.
``AggregateRecord`` is the period total handed to reporting.

All records are plain pydantic models that round-trip through JSON, so a
cached copy is indistinguishable from a freshly computed one.
"""

from datetime import datetime, timezone
from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from adfunnel.config import settings
from adfunnel.core.numbers import safe_count, safe_float
from adfunnel.parsers.matchers import MATCHER_TABLE_VERSION

COUNT_FIELDS = (
    "click_to_call",
    "email_contacts",
    "booking_step_1",
    "booking_step_2",
    "booking_step_3",
    "reservations",
)
VALUE_FIELDS = ("reservation_value", "conversion_value")
FUNNEL_FIELDS = COUNT_FIELDS + VALUE_FIELDS


class FunnelRecord(BaseModel):
    """Canonical conversion funnel for one campaign and period."""

    click_to_call: int = 0
    email_contacts: int = 0
    booking_step_1: int = 0
    booking_step_2: int = 0
    booking_step_3: int = 0
    reservations: int = 0
    reservation_value: float = 0.0
    # Platform total; equals reservation_value for Meta, tracked apart for Google
    conversion_value: float = 0.0

    @field_validator(*COUNT_FIELDS, mode="before")
    @classmethod
    def _coerce_counts(cls, v: Any) -> int:
        return safe_count(v)

    @field_validator(*VALUE_FIELDS, mode="before")
    @classmethod
    def _coerce_values(cls, v: Any) -> float:
        return safe_float(v)


class CampaignRecord(FunnelRecord):
    """Raw campaign row enriched with its parsed funnel."""

    model_config = {"extra": "ignore"}

    platform: str = ""
    campaign_id: str = ""
    campaign_name: str = ""
    date_start: str = ""
    date_stop: str = ""
    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    # Platform-reported conversion total; fractional under Google attribution
    conversions: float = 0.0

    @field_validator("spend", "conversions", mode="before")
    @classmethod
    def _coerce_floats(cls, v: Any) -> float:
        return safe_float(v)

    @field_validator("impressions", "clicks", mode="before")
    @classmethod
    def _coerce_delivery(cls, v: Any) -> int:
        return safe_count(v)


class AggregateRecord(FunnelRecord):
    """Funnel and delivery totals across every campaign of a period."""

    spend: float = 0.0
    impressions: int = 0
    clicks: int = 0
    conversions: float = 0.0
    campaign_count: int = 0

    @property
    def ctr(self) -> float:
        return (self.clicks / self.impressions * 100) if self.impressions > 0 else 0.0

    @property
    def cpc(self) -> float:
        return (self.spend / self.clicks) if self.clicks > 0 else 0.0

    @property
    def roas(self) -> float:
        return (self.conversion_value / self.spend) if self.spend > 0 else 0.0

    @property
    def cost_per_reservation(self) -> float:
        return (self.spend / self.reservations) if self.reservations > 0 else 0.0


class ReportSnapshot(BaseModel):
    """A period report as stored in the cache tables.

    ``stale`` is set when the snapshot is served from cache because a live
    fetch failed; totals are always rebuilt from ``campaigns``.
    """

    schema_version: str = settings.snapshot_schema_version
    matcher_version: str = MATCHER_TABLE_VERSION
    platform: str
    date_start: str
    date_stop: str
    campaigns: List[CampaignRecord] = []
    totals: AggregateRecord = AggregateRecord()
    fetched_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    source: str = "live"  # "live" | "cache"
    stale: bool = False

    def mark_stale(self) -> "ReportSnapshot":
        """Return a copy flagged as a stale cache fallback."""
        return self.model_copy(update={"source": "cache", "stale": True})
