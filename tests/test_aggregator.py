import json

import pytest

from adfunnel.analyzer.aggregator import aggregate, aggregate_by_period, period_start
from adfunnel.analyzer.validation import compare_aggregates
from adfunnel.models.funnel_models import AggregateRecord, CampaignRecord, FunnelRecord
from adfunnel.parsers.meta_parser import enhance_meta_campaigns


def _campaign(day: str, **kwargs) -> CampaignRecord:
    return CampaignRecord(platform="meta", date_start=day, date_stop=day, **kwargs)


def test_empty_input_gives_zero_aggregate():
    assert aggregate([]) == AggregateRecord()


def test_aggregate_is_idempotent(meta_rows):
    records = enhance_meta_campaigns(meta_rows, custom_events={})
    assert aggregate(records) == aggregate(records)


def test_sums_funnel_and_delivery_metrics(meta_rows):
    totals = aggregate(enhance_meta_campaigns(meta_rows, custom_events={}))

    assert totals.campaign_count == 2
    assert totals.booking_step_1 == 451
    assert totals.booking_step_2 == 143
    assert totals.booking_step_3 == 32
    assert totals.reservations == 7
    assert totals.click_to_call == 3
    assert totals.email_contacts == 2
    assert totals.reservation_value == 20572.50
    assert totals.spend == 2966.50
    assert totals.impressions == 224443
    assert totals.clicks == 4113
    assert totals.conversions == 7


def test_delivery_metrics_from_paired_raw_rows():
    records = [FunnelRecord(reservations=2), FunnelRecord(reservations=1)]
    campaigns = [
        {"spend": "10.50", "impressions": "100", "clicks": "5"},
        {"spend": "20.25", "impressions": "300", "clicks": "x"},
    ]

    totals = aggregate(records, campaigns)

    assert totals.reservations == 3
    assert totals.spend == 30.75
    assert totals.impressions == 400
    assert totals.clicks == 5


def test_bare_funnel_records_have_no_delivery_metrics():
    totals = aggregate([FunnelRecord(booking_step_1=4)])
    assert totals.booking_step_1 == 4
    assert totals.spend == 0.0
    assert totals.impressions == 0


def test_pairing_length_mismatch_raises():
    with pytest.raises(ValueError):
        aggregate([FunnelRecord()], [{"spend": 1}, {"spend": 2}])


def test_cache_and_live_aggregates_match(meta_rows):
    live = enhance_meta_campaigns(meta_rows, custom_events={})
    cached_blob = json.dumps([r.model_dump() for r in live])

    from_cache = aggregate(json.loads(cached_blob))
    from_live = aggregate(live)

    assert from_cache == from_live
    assert compare_aggregates(from_cache, from_live).matches


def test_input_order_does_not_change_totals(meta_rows):
    records = enhance_meta_campaigns(meta_rows, custom_events={})

    forward = aggregate(records)
    backward = aggregate(list(reversed(records)))

    assert compare_aggregates(forward, backward).matches


def test_currency_totals_rounded_to_cents():
    records = [CampaignRecord(spend=0.1), CampaignRecord(spend=0.2)]
    assert aggregate(records).spend == 0.3


def test_derived_metrics():
    totals = AggregateRecord(
        spend=100.0,
        impressions=1000,
        clicks=50,
        reservations=4,
        conversion_value=500.0,
    )

    assert totals.ctr == 5.0
    assert totals.cpc == 2.0
    assert totals.roas == 5.0
    assert totals.cost_per_reservation == 25.0
    assert AggregateRecord().roas == 0.0


def test_period_start():
    assert period_start("2024-08-07", "daily") == "2024-08-07"
    assert period_start("2024-08-07", "weekly") == "2024-08-05"
    assert period_start("2024-08-07T00:00:00", "monthly") == "2024-08-01"
    with pytest.raises(ValueError):
        period_start("2024-08-07", "yearly")


def test_aggregate_by_week():
    records = [
        _campaign("2024-08-12", reservations=1, spend=10.0),
        _campaign("2024-08-05", reservations=2, spend=5.0),
        _campaign("2024-08-07", reservations=3, spend=7.5),
    ]

    weeks = aggregate_by_period(records, "weekly")

    assert list(weeks) == ["2024-08-05", "2024-08-12"]
    assert weeks["2024-08-05"].reservations == 5
    assert weeks["2024-08-05"].spend == 12.5
    assert weeks["2024-08-05"].campaign_count == 2
    assert weeks["2024-08-12"].reservations == 1


def test_aggregate_by_month_skips_undated_records():
    records = [
        _campaign("2024-07-31", booking_step_1=10),
        _campaign("2024-08-01", booking_step_1=20),
        _campaign("", booking_step_1=99),
    ]

    months = aggregate_by_period(records, "monthly")

    assert {k: v.booking_step_1 for k, v in months.items()} == {
        "2024-07-01": 10,
        "2024-08-01": 20,
    }


def test_daily_buckets_match_total():
    records = [_campaign(f"2024-08-0{d}", reservations=d) for d in range(1, 8)]

    days = aggregate_by_period(records, "daily")

    assert len(days) == 7
    assert sum(d.reservations for d in days.values()) == aggregate(records).reservations


def test_unknown_granularity_raises():
    with pytest.raises(ValueError):
        aggregate_by_period([], "quarterly")
