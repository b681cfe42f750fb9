"""ADFUNNEL — Funnel Validation.

Diagnostics only. Nothing here corrects data: an inverted funnel usually
means an upstream tracking discrepancy that operators need to see.
"""

from typing import Optional

from adfunnel.config import settings
from adfunnel.core.logging import get_logger
from adfunnel.core.metric_registry import BOOKING_PATH, get_metric
from adfunnel.core.numbers import round_currency
from adfunnel.models.analysis_models import FunnelValidation, ParityReport, ValueParity
from adfunnel.models.funnel_models import FUNNEL_FIELDS, FunnelRecord

logger = get_logger("analyzer.validation")

_STEP_LABELS = {
    "booking_step_1": "Step 1",
    "booking_step_2": "Step 2",
    "booking_step_3": "Step 3",
    "reservations": "Reservations",
}


def validate_funnel(record: FunnelRecord, source: str = "") -> FunnelValidation:
    """Check that each booking step narrows the previous one.

    A step is only compared against a previous step that was actually
    tracked (> 0); an untracked step says nothing about order.
    """
    inversions: list[str] = []
    for upper, lower in zip(BOOKING_PATH, BOOKING_PATH[1:]):
        upper_value = getattr(record, upper.value)
        lower_value = getattr(record, lower.value)
        if lower_value > upper_value and upper_value > 0:
            inversions.append(
                f"{source}: {_STEP_LABELS[lower.value]} ({lower_value}) > "
                f"{_STEP_LABELS[upper.value]} ({upper_value})"
            )

    has_real_data = any(getattr(record, f) > 0 for f in FUNNEL_FIELDS)
    return FunnelValidation(
        source=source, has_real_data=has_real_data, inversions=inversions
    )


def non_reservation_value(record: FunnelRecord) -> float:
    """Conversion value attributed to goals other than reservations."""
    return round_currency(max(record.conversion_value - record.reservation_value, 0.0))


def check_value_parity(
    api_value: float,
    reference_value: float,
    tolerance_pct: Optional[float] = None,
) -> ValueParity:
    """Compare an API figure with a reference (e.g. the Ads UI export)."""
    if tolerance_pct is None:
        tolerance_pct = settings.google_value_tolerance_pct
    gap = api_value - reference_value
    if reference_value > 0:
        gap_pct = abs(gap) / reference_value * 100
    else:
        gap_pct = 0.0 if api_value == 0 else 100.0
    return ValueParity(
        api_value=api_value,
        reference_value=reference_value,
        gap=round_currency(gap),
        gap_pct=round(gap_pct, 4),
        tolerance_pct=tolerance_pct,
        within_tolerance=gap_pct <= tolerance_pct,
    )


def compare_aggregates(
    left: FunnelRecord,
    right: FunnelRecord,
    epsilon: Optional[float] = None,
) -> ParityReport:
    """Field-by-field parity of two aggregates (e.g. cache vs live).

    Counts must match exactly; currency fields within ``epsilon``.
    """
    if epsilon is None:
        epsilon = settings.parity_epsilon

    fields = [f for f in type(left).model_fields if f in type(right).model_fields]
    differences: dict[str, float] = {}
    for name in fields:
        a = getattr(left, name)
        b = getattr(right, name)
        if not isinstance(a, (int, float)) or not isinstance(b, (int, float)):
            continue
        metric = get_metric(name)
        if metric is not None and metric.is_currency:
            if abs(a - b) > epsilon:
                differences[name] = round_currency(a - b)
        elif a != b:
            differences[name] = a - b

    return ParityReport(
        matches=not differences, epsilon=epsilon, differences=differences
    )


def check_conversion_value_parity(
    record: FunnelRecord,
    tolerance_pct: Optional[float] = None,
) -> ValueParity:
    """Gap between a record's reservation value and its total conversion value.

    The two are tracked separately and only expected to be close; the gap is
    measured against ``conversion_value``.
    """
    parity = check_value_parity(
        record.reservation_value, record.conversion_value, tolerance_pct
    )
    if not parity.within_tolerance:
        logger.info(
            f"Reservation value {record.reservation_value} is {parity.gap_pct}% off "
            f"conversion value {record.conversion_value}"
        )
    return parity
