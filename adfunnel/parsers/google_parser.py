"""ADFUNNEL — Google Ads Conversions Parser.

Google already reports ``conversions`` / ``conversion_value`` as platform
totals, so there is no synonym soup to deduplicate: each named conversion
action is counted once and categories are summed directly.

The one rule that matters: only conversion actions named as a reservation
feed ``reservations`` / ``reservation_value``. The row's total
``conversion_value`` also includes newsletter sign-ups, calls and other goals
and is carried separately as ``conversion_value``.
"""

from collections import defaultdict
from typing import Any, Dict, Optional

from adfunnel.analyzer.validation import non_reservation_value, validate_funnel
from adfunnel.core.logging import get_logger
from adfunnel.core.metric_registry import FunnelCategory
from adfunnel.core.numbers import round_count, round_currency
from adfunnel.models.funnel_models import CampaignRecord, FunnelRecord
from adfunnel.models.raw_models import GoogleCampaignMetrics
from adfunnel.parsers.matchers import GOOGLE_MATCHERS, classify

logger = get_logger("parsers.google")


def _as_metrics(row: Dict[str, Any] | GoogleCampaignMetrics) -> GoogleCampaignMetrics:
    if isinstance(row, GoogleCampaignMetrics):
        return row
    return GoogleCampaignMetrics.model_validate(row)


def parse_google_campaign_metrics(
    row: Dict[str, Any] | GoogleCampaignMetrics,
    campaign_name: Optional[str] = None,
) -> FunnelRecord:
    """Parse a Google Ads campaign row into a FunnelRecord.

    Funnel fields come from the ``conversion_actions`` breakdown; without one
    they stay 0 and only ``conversion_value`` carries the platform total.
    """
    metrics = _as_metrics(row)
    name = campaign_name or metrics.campaign_name or "unknown"

    totals: Dict[FunnelCategory, float] = defaultdict(float)
    reservation_value = 0.0
    for action in metrics.conversion_actions:
        matcher = classify(action.name, GOOGLE_MATCHERS)
        if matcher is None:
            logger.debug(f"Unmapped Google conversion action: {action.name!r}")
            continue
        totals[matcher.category] += action.conversions
        if matcher.category == FunnelCategory.RESERVATIONS:
            reservation_value += action.conversion_value

    record = FunnelRecord(
        click_to_call=round_count(totals[FunnelCategory.CLICK_TO_CALL]),
        email_contacts=round_count(totals[FunnelCategory.EMAIL_CONTACTS]),
        booking_step_1=round_count(totals[FunnelCategory.BOOKING_STEP_1]),
        booking_step_2=round_count(totals[FunnelCategory.BOOKING_STEP_2]),
        booking_step_3=round_count(totals[FunnelCategory.BOOKING_STEP_3]),
        reservations=round_count(totals[FunnelCategory.RESERVATIONS]),
        reservation_value=round_currency(reservation_value),
        conversion_value=round_currency(metrics.conversion_value),
    )

    other_value = non_reservation_value(record)
    if other_value > 0:
        logger.debug(
            f"{other_value:.2f} of {record.conversion_value:.2f} conversion value "
            f"is not reservation value",
            extra={"platform": "google", "campaign_name": name},
        )

    validation = validate_funnel(record, source=f"google:{name}")
    for message in validation.inversions:
        logger.warning(
            f"Funnel inversion: {message}",
            extra={"platform": "google", "campaign_name": name},
        )
    return record


def enhance_google_campaign(
    row: Dict[str, Any] | GoogleCampaignMetrics,
) -> CampaignRecord:
    """Parse one Google Ads campaign row into a CampaignRecord."""
    metrics = _as_metrics(row)
    funnel = parse_google_campaign_metrics(metrics)
    return CampaignRecord(
        platform="google",
        campaign_id=metrics.campaign_id,
        campaign_name=metrics.campaign_name,
        date_start=metrics.date_start,
        date_stop=metrics.date_stop,
        spend=metrics.spend,
        impressions=metrics.impressions,
        clicks=metrics.clicks,
        conversions=metrics.conversions,
        **funnel.model_dump(),
    )


def enhance_google_campaigns(rows: Any) -> list[CampaignRecord]:
    """Parse a list of campaign rows; anything but a list yields []."""
    if not isinstance(rows, list):
        logger.warning("enhance_google_campaigns: rows is not a list")
        return []
    return [enhance_google_campaign(row) for row in rows]
