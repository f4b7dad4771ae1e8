from datetime import datetime, timezone

from services.normalization import (
    is_missing,
    normalize_address,
    normalize_rating,
    normalize_text,
    parse_date,
    round_half_up,
    to_number,
    to_timestamp,
)


def test_is_missing():
    assert is_missing(None)
    assert is_missing("  ")
    assert is_missing([])
    assert not is_missing(0)
    assert not is_missing("B3")


def test_to_number():
    assert to_number("€450,000") == 450000.0
    assert to_number(3) == 3.0
    assert to_number("POA") is None
    assert to_number(True) is None
    assert to_number("1.2.3") is None


def test_text_normalizers():
    assert normalize_text("  Semi-Detached   House ") == "semi-detached house"
    assert normalize_rating(" b2 ") == "B2"
    assert normalize_address("123 Main St., Dublin 4!") == "123 main st dublin 4"
    assert normalize_address(None) == ""


def test_dates():
    assert parse_date("2024-01-15T10:30:00Z") == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert parse_date("15th January") is None
    assert parse_date(None) is None
    assert to_timestamp("1970-01-01T00:01:00") == 60.0
    assert to_timestamp("1970-01-01T00:01:00Z") == 60.0


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(42.857) == 43
    assert round_half_up(71.4) == 71
