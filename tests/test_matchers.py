import pytest

from adfunnel.core.metric_registry import FunnelCategory
from adfunnel.parsers.matchers import GOOGLE_MATCHERS, META_MATCHERS, classify


@pytest.mark.parametrize(
    "tag, expected",
    [
        ("click_to_call_native_call_placed", FunnelCategory.CLICK_TO_CALL),
        ("click_to_call_call_confirm", FunnelCategory.CLICK_TO_CALL),
        ("onsite_conversion.lead_grouped", FunnelCategory.EMAIL_CONTACTS),
        ("omni_search", FunnelCategory.BOOKING_STEP_1),
        ("offsite_conversion.fb_pixel_search", FunnelCategory.BOOKING_STEP_1),
        ("omni_view_content", FunnelCategory.BOOKING_STEP_2),
        ("omni_initiated_checkout", FunnelCategory.BOOKING_STEP_3),
        ("offsite_conversion.fb_pixel_initiate_checkout", FunnelCategory.BOOKING_STEP_3),
        ("purchase", FunnelCategory.RESERVATIONS),
        ("omni_purchase", FunnelCategory.RESERVATIONS),
        ("offsite_conversion.fb_pixel_purchase", FunnelCategory.RESERVATIONS),
    ],
)
def test_meta_tags(tag, expected):
    assert classify(tag, META_MATCHERS).category == expected


@pytest.mark.parametrize(
    "tag", ["link_click", "landing_page_view", "video_view", "", "onsite_web_purchase"]
)
def test_meta_tags_outside_funnel(tag):
    assert classify(tag, META_MATCHERS) is None


def test_meta_canonical_tags():
    canonical = {m.category: m.canonical for m in META_MATCHERS}
    assert canonical[FunnelCategory.RESERVATIONS] == "purchase"
    assert canonical[FunnelCategory.BOOKING_STEP_1] == "search"
    assert canonical[FunnelCategory.BOOKING_STEP_2] == "view_content"
    assert canonical[FunnelCategory.BOOKING_STEP_3] == "initiate_checkout"


def test_tables_cover_every_category_once():
    for table in (META_MATCHERS, GOOGLE_MATCHERS):
        assert [m.category for m in table] == list(FunnelCategory)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Telefon - kliknięcie", FunnelCategory.CLICK_TO_CALL),
        ("Klik w mail", FunnelCategory.EMAIL_CONTACTS),
        ("1 krok silnik rezerwacyjny", FunnelCategory.BOOKING_STEP_1),
        ("drugi krok", FunnelCategory.BOOKING_STEP_2),
        ("Step 3 w BE", FunnelCategory.BOOKING_STEP_3),
        ("Zakup", FunnelCategory.RESERVATIONS),
        ("Reservation completed", FunnelCategory.RESERVATIONS),
    ],
)
def test_google_labels(name, expected):
    assert classify(name, GOOGLE_MATCHERS).category == expected
