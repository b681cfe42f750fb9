"""ADFUNNEL — Report Snapshot Pipeline.

Runs the data flow for one reporting period:
  fetch → parse per campaign → aggregate → ReportSnapshot

When the live fetch fails the last cached snapshot is served instead,
flagged ``stale`` so the reporting layer can say so rather than show zeros.
"""

import json
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

from adfunnel.analyzer.aggregator import aggregate
from adfunnel.config import settings
from adfunnel.connectors.meta.client import MetaAPIError, MetaClient
from adfunnel.connectors.meta.endpoints import MetaEndpoints
from adfunnel.core.logging import get_logger
from adfunnel.models.funnel_models import CampaignRecord, ReportSnapshot
from adfunnel.models.raw_models import MetaCampaignInsight, parse_raw_campaign
from adfunnel.parsers.google_parser import enhance_google_campaign
from adfunnel.parsers.matchers import MATCHER_TABLE_VERSION
from adfunnel.parsers.meta_parser import enhance_meta_campaign

logger = get_logger("analyzer.pipeline")

PLATFORMS = ("meta", "google")


def _validate_date(d: Optional[str]) -> Optional[str]:
    """Return the date string if valid YYYY-MM-DD, else None."""
    if not d:
        return None
    try:
        datetime.strptime(d, "%Y-%m-%d")
        return d
    except ValueError:
        return None


def resolve_dates(
    date_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    today: Optional[date] = None,
) -> tuple[str, str]:
    """Resolve date parameters into (start, end) strings."""
    today = today or datetime.now(timezone.utc).date()

    # Sanitize inputs
    start_date = _validate_date(start_date)
    end_date = _validate_date(end_date)

    if start_date and end_date:
        return start_date, end_date

    first_of_month = today.replace(day=1)
    last_month_end = first_of_month - timedelta(days=1)
    mapping = {
        "yesterday": (today - timedelta(days=1), today - timedelta(days=1)),
        "last_7d": (today - timedelta(days=7), today - timedelta(days=1)),
        "this_week": (today - timedelta(days=today.weekday()), today),
        "this_month": (first_of_month, today),
        "last_month": (last_month_end.replace(day=1), last_month_end),
    }
    if date_range in mapping:
        s, e = mapping[date_range]
        return s.isoformat(), e.isoformat()

    # Default: current month to date
    return first_of_month.isoformat(), today.isoformat()


def enhance_campaigns(
    rows: Iterable[Any],
    platform: Optional[str] = None,
    custom_events: Optional[Mapping[str, str]] = None,
) -> list[CampaignRecord]:
    """Parse raw rows into CampaignRecords.

    With ``platform`` set every row is read as that platform; otherwise each
    row must carry its own ``platform`` tag.
    """
    if platform == "meta":
        return [enhance_meta_campaign(row, custom_events) for row in rows]
    if platform == "google":
        return [enhance_google_campaign(row) for row in rows]
    if platform is not None:
        raise ValueError(f"Unknown platform {platform!r}; use one of {PLATFORMS}")

    records = []
    for row in rows:
        raw = parse_raw_campaign(row)
        if isinstance(raw, MetaCampaignInsight):
            records.append(enhance_meta_campaign(raw, custom_events))
        else:
            records.append(enhance_google_campaign(raw))
    return records


def build_snapshot(
    rows: Iterable[Any],
    platform: str,
    date_start: str,
    date_stop: str,
    custom_events: Optional[Mapping[str, str]] = None,
) -> ReportSnapshot:
    """Parse and aggregate already-fetched rows into a live snapshot."""
    campaigns = enhance_campaigns(rows, platform, custom_events)
    totals = aggregate(campaigns)
    logger.info(
        f"Built {platform} snapshot {date_start} → {date_stop}: "
        f"{totals.campaign_count} campaigns, {totals.reservations} reservations",
        extra={"platform": platform},
    )
    return ReportSnapshot(
        schema_version=settings.snapshot_schema_version,
        platform=platform,
        date_start=date_start,
        date_stop=date_stop,
        campaigns=campaigns,
        totals=totals,
        source="live",
    )


def snapshot_from_cache(payload: str | bytes | Dict[str, Any]) -> ReportSnapshot:
    """Load a cached snapshot, rebuilding totals from its campaign records.

    Stored totals are ignored so a cached report can never drift from the
    per-campaign data it was built from.
    """
    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)
    snapshot = ReportSnapshot.model_validate(payload)
    if snapshot.matcher_version != MATCHER_TABLE_VERSION:
        logger.warning(
            f"Cached snapshot parsed with matcher table {snapshot.matcher_version}, "
            f"current is {MATCHER_TABLE_VERSION}; funnel numbers may not compare",
            extra={"platform": snapshot.platform},
        )
    return snapshot.model_copy(
        update={"totals": aggregate(snapshot.campaigns), "source": "cache"}
    )


async def refresh_meta_snapshot(
    date_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    client: Optional[MetaClient] = None,
    cached: Optional[ReportSnapshot] = None,
    custom_events: Optional[Mapping[str, str]] = None,
) -> ReportSnapshot:
    """Fetch Meta campaign insights and build a fresh snapshot.

    Falls back to ``cached`` marked stale if the fetch fails. With nothing
    cached, or a cached snapshot for a different period, the MetaAPIError
    propagates.
    """
    date_start, date_stop = resolve_dates(date_range, start_date, end_date)
    logger.info(f"Refreshing Meta snapshot: {date_start} → {date_stop}")

    owns_client = client is None
    client = client or MetaClient()
    try:
        rows = await MetaEndpoints(client).fetch_campaign_insights(date_start, date_stop)
    except MetaAPIError as e:
        if cached is None:
            logger.error(f"Meta API fetch failed and no cached snapshot: {e}")
            raise
        if (cached.date_start, cached.date_stop) != (date_start, date_stop):
            logger.error(
                f"Meta API fetch failed; cached snapshot covers "
                f"{cached.date_start} → {cached.date_stop}, not {date_start} → {date_stop}: {e}",
                extra={"platform": "meta", "status_code": e.status_code},
            )
            raise
        logger.error(
            f"Meta API fetch failed, serving cached snapshot from {cached.fetched_at}: {e}",
            extra={"platform": "meta", "status_code": e.status_code},
        )
        return cached.mark_stale()
    finally:
        if owns_client:
            await client.close()

    return build_snapshot(rows, "meta", date_start, date_stop, custom_events)
