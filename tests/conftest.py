import pytest


@pytest.fixture
def meta_scenario_actions():
    """Hotel campaign month as returned by the Graph API (synonyms included)."""
    return [
        {"action_type": "omni_search", "value": "400"},
        {"action_type": "search", "value": "400"},
        {"action_type": "view_content", "value": "123"},
        {"action_type": "omni_view_content", "value": "123"},
        {"action_type": "initiate_checkout", "value": "28"},
        {"action_type": "purchase", "value": "6"},
        {"action_type": "omni_purchase", "value": "6"},
    ]


@pytest.fixture
def meta_scenario_action_values():
    return [{"action_type": "purchase", "value": "18262"}]


@pytest.fixture
def meta_rows(meta_scenario_actions, meta_scenario_action_values):
    return [
        {
            "campaign_id": "120210000000001",
            "campaign_name": "Belmonte - Rezerwacje",
            "date_start": "2024-08-01",
            "date_stop": "2024-08-31",
            "spend": "2554.32",
            "impressions": "184233",
            "clicks": "3211",
            "actions": meta_scenario_actions,
            "action_values": meta_scenario_action_values,
        },
        {
            "campaign_id": "120210000000002",
            "campaign_name": "Belmonte - Remarketing",
            "date_start": "2024-08-01",
            "date_stop": "2024-08-31",
            "spend": "412.18",
            "impressions": "40210",
            "clicks": "902",
            "actions": [
                {"action_type": "click_to_call_call_confirm", "value": "3"},
                {"action_type": "lead", "value": "2"},
                {"action_type": "offsite_conversion.fb_pixel_search", "value": "51"},
                {"action_type": "omni_search", "value": "51"},
                {"action_type": "offsite_conversion.fb_pixel_view_content", "value": "20"},
                {"action_type": "omni_initiated_checkout", "value": "4"},
                {"action_type": "offsite_conversion.fb_pixel_purchase", "value": "1"},
                {"action_type": "omni_purchase", "value": "1"},
                {"action_type": "link_click", "value": "880"},
            ],
            "action_values": [
                {"action_type": "offsite_conversion.fb_pixel_purchase", "value": "2310.50"},
                {"action_type": "omni_purchase", "value": "2310.50"},
            ],
        },
    ]


@pytest.fixture
def google_row():
    return {
        "campaign_id": 20871234567,
        "campaign_name": "Hotel Search - Brand",
        "date_start": "2024-08-01",
        "date_stop": "2024-08-31",
        "cost": "8420.77",
        "impressions": "96120",
        "clicks": "5310",
        "conversions": "81.4",
        "conversion_value": "149126.00",
        "conversion_actions": [
            {"name": "Step 1 w BE", "conversions": 30.4},
            {"name": "Step 2 w BE", "conversions": 20.5},
            {"name": "Step 3 w BE", "conversions": 10},
            {"name": "Rezerwacja", "conversions": 4.5, "conversion_value": 148828.75},
            {"name": "Kliknięcie w numer telefonu", "conversions": 3},
            {"name": "Formularz kontaktowy", "conversions": 2},
            {"name": "Zapis do newslettera", "conversions": 11, "conversion_value": 297.25},
        ],
    }
