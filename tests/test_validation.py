from adfunnel.analyzer.validation import (
    check_conversion_value_parity,
    check_value_parity,
    compare_aggregates,
    non_reservation_value,
    validate_funnel,
)
from adfunnel.models.funnel_models import AggregateRecord, FunnelRecord


def test_clean_funnel_has_no_inversions():
    record = FunnelRecord(
        booking_step_1=400, booking_step_2=123, booking_step_3=28, reservations=6
    )

    result = validate_funnel(record, source="meta:Belmonte")

    assert not result.has_inversion
    assert result.has_real_data


def test_every_inverted_step_is_reported():
    record = FunnelRecord(
        booking_step_1=10, booking_step_2=20, booking_step_3=5, reservations=9
    )

    result = validate_funnel(record, source="google:Havet")

    assert result.inversions == [
        "google:Havet: Step 2 (20) > Step 1 (10)",
        "google:Havet: Reservations (9) > Step 3 (5)",
    ]
    assert record.booking_step_2 == 20  # untouched


def test_untracked_step_is_not_an_inversion():
    record = FunnelRecord(booking_step_1=0, booking_step_2=20, reservations=3)
    assert not validate_funnel(record).has_inversion


def test_zero_record_has_no_real_data():
    assert not validate_funnel(FunnelRecord()).has_real_data


def test_non_reservation_value():
    record = FunnelRecord(reservation_value=148828.75, conversion_value=149126.0)
    assert non_reservation_value(record) == 297.25
    assert non_reservation_value(FunnelRecord(reservation_value=5.0)) == 0.0


def test_value_parity_within_tolerance():
    parity = check_value_parity(149126.00, 148900.00, tolerance_pct=0.2)

    assert parity.within_tolerance
    assert parity.gap == 226.0
    assert 0.15 < parity.gap_pct < 0.16


def test_value_parity_outside_tolerance():
    parity = check_value_parity(149126.00, 140000.00, tolerance_pct=0.2)
    assert not parity.within_tolerance


def test_value_parity_with_zero_reference():
    assert check_value_parity(0.0, 0.0).within_tolerance
    assert not check_value_parity(10.0, 0.0).within_tolerance


def test_conversion_value_parity_uses_record_values():
    record = FunnelRecord(reservation_value=148000.0, conversion_value=149126.0)

    assert not check_conversion_value_parity(record).within_tolerance
    assert check_conversion_value_parity(record, tolerance_pct=1.0).within_tolerance
    assert check_conversion_value_parity(FunnelRecord()).within_tolerance


def test_compare_aggregates_reports_count_differences():
    left = AggregateRecord(reservations=7, spend=100.004)
    right = AggregateRecord(reservations=6, spend=100.0)

    report = compare_aggregates(left, right, epsilon=0.01)

    assert not report.matches
    assert report.differences == {"reservations": 1}


def test_compare_aggregates_currency_beyond_epsilon():
    report = compare_aggregates(
        AggregateRecord(reservation_value=18262.0),
        AggregateRecord(reservation_value=18261.5),
        epsilon=0.01,
    )

    assert report.differences == {"reservation_value": 0.5}
