"""ADFUNNEL — Aggregator.

Sums per-campaign funnel records into period totals. The same function runs
over freshly parsed records and over records loaded from the cache, so
cache-vs-live totals can only differ if the inputs do.

Totals are always rebuilt from the source records, never updated in place.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from adfunnel.core.logging import get_logger
from adfunnel.core.metric_registry import DELIVERY_METRICS, get_metric
from adfunnel.core.numbers import round_currency, safe_count, safe_float
from adfunnel.models.funnel_models import (
    FUNNEL_FIELDS,
    AggregateRecord,
    CampaignRecord,
    FunnelRecord,
)

logger = get_logger("analyzer.aggregator")

GRANULARITIES = ("daily", "weekly", "monthly")


def _as_record(record: Any) -> FunnelRecord:
    """Accept parsed records or their cached dict form."""
    if isinstance(record, FunnelRecord):
        return record
    return CampaignRecord.model_validate(record)


def _read(source: Any, name: str) -> float:
    """Read a metric from a model or a raw dict, as a clean number."""
    if isinstance(source, dict):
        raw = source.get(name)
    else:
        raw = getattr(source, name, 0)
    metric = get_metric(name)
    if metric is not None and metric.is_currency:
        return safe_float(raw)
    return safe_count(raw)


def aggregate(
    records: Iterable[Any],
    campaigns: Optional[Iterable[Any]] = None,
) -> AggregateRecord:
    """Sum funnel and delivery metrics across campaigns.

    Args:
        records: FunnelRecords (or CampaignRecords / their cached dicts).
        campaigns: Raw campaign rows paired 1:1 with ``records`` by position,
            used for spend / impressions / clicks. When omitted those come
            from the records themselves, or count as 0 for bare FunnelRecords.

    Raises:
        ValueError: if ``campaigns`` is given with a different length.
    """
    parsed = [_as_record(r) for r in records]
    sources: List[Any] = parsed
    if campaigns is not None:
        sources = list(campaigns)
        if len(sources) != len(parsed):
            raise ValueError(
                f"Cannot pair {len(parsed)} funnel records with {len(sources)} campaigns"
            )

    # Fixed input order keeps float accumulation reproducible
    sums: Dict[str, float] = defaultdict(int)
    for record, source in zip(parsed, sources):
        for name in FUNNEL_FIELDS:
            sums[name] += getattr(record, name)
        for name in DELIVERY_METRICS:
            sums[name] += _read(source, name)
        sums["conversions"] += getattr(record, "conversions", 0.0)

    totals = {}
    for name in (*FUNNEL_FIELDS, *DELIVERY_METRICS):
        metric = get_metric(name)
        if metric is not None and metric.is_currency:
            totals[name] = round_currency(float(sums[name]))
        else:
            totals[name] = int(sums[name])
    totals["conversions"] = round(float(sums["conversions"]), 2)

    return AggregateRecord(campaign_count=len(parsed), **totals)


def period_start(day: str, granularity: str) -> str:
    """Return the YYYY-MM-DD start of the period containing ``day``."""
    d = date.fromisoformat(day[:10])
    if granularity == "daily":
        start = d
    elif granularity == "weekly":
        start = d - timedelta(days=d.weekday())  # ISO week, Monday start
    elif granularity == "monthly":
        start = d.replace(day=1)
    else:
        raise ValueError(f"Unknown granularity {granularity!r}; use one of {GRANULARITIES}")
    return start.isoformat()


def aggregate_by_period(
    records: Iterable[Any],
    granularity: str = "monthly",
) -> Dict[str, AggregateRecord]:
    """Group CampaignRecords by ``date_start`` and aggregate each period.

    Returns totals keyed by period start date, in chronological order.
    Records without a usable ``date_start`` are skipped with a warning.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity {granularity!r}; use one of {GRANULARITIES}")

    buckets: Dict[str, List[FunnelRecord]] = defaultdict(list)
    skipped = 0
    for raw in records:
        record = _as_record(raw)
        day = getattr(record, "date_start", "")
        try:
            key = period_start(day, granularity)
        except ValueError:
            skipped += 1
            continue
        buckets[key].append(record)

    if skipped:
        logger.warning(f"Skipped {skipped} records without a valid date_start")

    result = {key: aggregate(buckets[key]) for key in sorted(buckets)}
    logger.info(
        f"Aggregated {sum(len(b) for b in buckets.values())} records into "
        f"{len(result)} {granularity} periods"
    )
    return result
