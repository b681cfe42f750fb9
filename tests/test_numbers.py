import pytest

from adfunnel.core.numbers import round_count, safe_count, safe_float


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("18262", 18262.0),
        (" 12.5 ", 12.5),
        (7, 7.0),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("-3", 0.0),
        ("nan", 0.0),
        ("inf", 0.0),
        (True, 0.0),
        ({"value": 1}, 0.0),
    ],
)
def test_safe_float(raw, expected):
    assert safe_float(raw) == expected


def test_safe_count_truncates():
    assert safe_count("6.9") == 6
    assert safe_count("x") == 0


def test_round_count_rounds_half_up():
    assert round_count(20.5) == 21
    assert round_count(0.5) == 1
    assert round_count(30.4) == 30
