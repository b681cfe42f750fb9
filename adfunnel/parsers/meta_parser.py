"""ADFUNNEL — Meta Actions Parser.

Reduces a Meta insight's ``actions`` / ``action_values`` arrays into the
canonical conversion funnel. This is the only place Meta action types are
interpreted; every caller that needs funnel numbers goes through here.

Meta reports one logical event under several synonym tags at once (a single
checkout fires ``purchase``, ``omni_purchase`` and
``offsite_conversion.fb_pixel_purchase``). Each category therefore takes the
value of one representative tag: the canonical short tag when present,
otherwise the first synonym seen. Summing synonyms would multiply the count.
"""

from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from adfunnel.analyzer.validation import validate_funnel
from adfunnel.config import settings
from adfunnel.core.logging import get_logger
from adfunnel.core.metric_registry import FunnelCategory
from adfunnel.core.numbers import is_valid_number, safe_count, safe_float
from adfunnel.models.funnel_models import CampaignRecord, FunnelRecord
from adfunnel.models.raw_models import MetaAction, MetaCampaignInsight
from adfunnel.parsers.matchers import META_MATCHERS, classify, normalize_tag

logger = get_logger("parsers.meta")


def _entry_fields(entry: Any) -> Tuple[str, Any]:
    """Pull (action_type, value) out of a dict or MetaAction entry."""
    if isinstance(entry, MetaAction):
        return entry.action_type, entry.value
    if isinstance(entry, dict):
        return entry.get("action_type", ""), entry.get("value")
    return "", None


def _resolve_custom_events(
    custom_events: Optional[Mapping[str, str]],
) -> Dict[str, FunnelCategory]:
    """Normalize a {action_type: category} mapping, dropping bad categories."""
    if custom_events is None:
        custom_events = settings.meta_custom_events
    resolved: Dict[str, FunnelCategory] = {}
    for tag, category in custom_events.items():
        try:
            resolved[normalize_tag(tag)] = FunnelCategory(category)
        except ValueError:
            logger.warning(f"Ignoring custom event {tag!r}: unknown category {category!r}")
    return resolved


def _reduce_entries(
    entries: Optional[Iterable[Any]],
    custom_events: Dict[str, FunnelCategory],
    read: Callable[[Any], float],
) -> Dict[FunnelCategory, float]:
    """Collapse synonym tags into one value per funnel category.

    Precedence per category: client custom events (summed, each distinct tag
    once), then the canonical tag, then the first matching synonym.
    """
    custom: Dict[FunnelCategory, float] = {}
    seen_custom: set[str] = set()
    canonical: Dict[FunnelCategory, float] = {}
    first: Dict[FunnelCategory, float] = {}

    for entry in entries or []:
        action_type, raw_value = _entry_fields(entry)
        tag = normalize_tag(action_type)
        if not tag:
            continue
        if not is_valid_number(raw_value):
            logger.debug(f"Skipping Meta action {tag} with unusable value {raw_value!r}")
            continue
        value = read(raw_value)

        if tag in custom_events:
            if tag not in seen_custom:
                seen_custom.add(tag)
                category = custom_events[tag]
                custom[category] = custom.get(category, 0) + value
            continue

        matcher = classify(tag, META_MATCHERS)
        if matcher is None:
            logger.debug(f"Unmapped Meta action type: {tag}")
            continue
        if tag == matcher.canonical:
            canonical.setdefault(matcher.category, value)
        else:
            first.setdefault(matcher.category, value)

    reduced: Dict[FunnelCategory, float] = {}
    for matcher in META_MATCHERS:
        category = matcher.category
        if category in custom:
            reduced[category] = custom[category]
        elif category in canonical:
            reduced[category] = canonical[category]
        elif category in first:
            reduced[category] = first[category]
    return reduced


def parse_meta_actions(
    actions: Optional[Iterable[Any]] = None,
    action_values: Optional[Iterable[Any]] = None,
    campaign_name: Optional[str] = None,
    custom_events: Optional[Mapping[str, str]] = None,
) -> FunnelRecord:
    """Parse Meta ``actions`` and ``action_values`` into a FunnelRecord.

    Never raises on data: entries with malformed values are skipped so a
    valid synonym can stand in, categories with no usable entry read as 0,
    unknown action types are ignored, and funnel inversions are logged but
    left untouched.

    Args:
        actions: Entries of ``{"action_type", "value"}`` (dicts or MetaAction).
        action_values: Monetary counterpart of ``actions``.
        campaign_name: Used for log context only.
        custom_events: ``{action_type: category}`` overrides for client-specific
            custom conversions. Defaults to ``settings.meta_custom_events``.
    """
    custom = _resolve_custom_events(custom_events)
    counts = _reduce_entries(actions, custom, safe_count)
    values = _reduce_entries(action_values, custom, safe_float)

    reservation_value = values.get(FunnelCategory.RESERVATIONS, 0.0)
    record = FunnelRecord(
        click_to_call=counts.get(FunnelCategory.CLICK_TO_CALL, 0),
        email_contacts=counts.get(FunnelCategory.EMAIL_CONTACTS, 0),
        booking_step_1=counts.get(FunnelCategory.BOOKING_STEP_1, 0),
        booking_step_2=counts.get(FunnelCategory.BOOKING_STEP_2, 0),
        booking_step_3=counts.get(FunnelCategory.BOOKING_STEP_3, 0),
        reservations=counts.get(FunnelCategory.RESERVATIONS, 0),
        reservation_value=reservation_value,
        # Meta action_values only carry purchase value
        conversion_value=reservation_value,
    )

    validation = validate_funnel(record, source=f"meta:{campaign_name or 'unknown'}")
    for message in validation.inversions:
        logger.warning(
            f"Funnel inversion: {message}",
            extra={"platform": "meta", "campaign_name": campaign_name or "unknown"},
        )
    return record


def enhance_meta_campaign(
    row: Dict[str, Any] | MetaCampaignInsight,
    custom_events: Optional[Mapping[str, str]] = None,
) -> CampaignRecord:
    """Parse one Graph API insight row into a CampaignRecord."""
    insight = (
        row
        if isinstance(row, MetaCampaignInsight)
        else MetaCampaignInsight.model_validate(row)
    )
    funnel = parse_meta_actions(
        insight.actions,
        insight.action_values,
        insight.campaign_name,
        custom_events,
    )
    return CampaignRecord(
        platform="meta",
        campaign_id=insight.campaign_id,
        campaign_name=insight.campaign_name,
        date_start=insight.date_start,
        date_stop=insight.date_stop,
        spend=insight.spend,
        impressions=insight.impressions,
        clicks=insight.clicks,
        # Meta reports purchases as its conversions
        conversions=funnel.reservations,
        **funnel.model_dump(),
    )


def enhance_meta_campaigns(
    rows: Any,
    custom_events: Optional[Mapping[str, str]] = None,
) -> list[CampaignRecord]:
    """Parse a list of insight rows; anything but a list yields []."""
    if not isinstance(rows, list):
        logger.warning("enhance_meta_campaigns: rows is not a list")
        return []
    return [enhance_meta_campaign(row, custom_events) for row in rows]
