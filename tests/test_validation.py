import datetime

import pytest

from expense_ledger import validation


@pytest.mark.parametrize("text", ["10", "10.5", "10.50", "0.01", " 4.50 "])
def test_valid_amounts(text):
    assert validation.is_valid_amount(text)


@pytest.mark.parametrize("text", ["", "0", "0.00", "-5", "10.555", "abc", "1e3", "10.", "\u0661\u0660"])
def test_invalid_amounts(text):
    assert not validation.is_valid_amount(text)


def test_parse_amount():
    assert validation.parse_amount("12.3") == 12.3
    assert validation.parse_amount("nope") is None


def test_leap_years():
    assert validation.is_valid_date("2024-02-29")
    assert not validation.is_valid_date("2023-02-29")
    assert validation.is_valid_date("2000-02-29")
    assert not validation.is_valid_date("1900-02-29")


@pytest.mark.parametrize("text", ["2023-02-30", "2023-13-01", "2023-00-10", "2023-04-31",
                                  "1899-12-31", "2101-01-01", "2023-1-01", "20230101", "",
                                  "2024-03-05\n", "\uff12\uff10\uff12\uff14-03-05"])
def test_invalid_dates(text):
    assert not validation.is_valid_date(text)


def test_date_bounds_inclusive():
    assert validation.is_valid_date("1900-01-01")
    assert validation.is_valid_date("2100-12-31")


def test_today_format():
    assert validation.today() == datetime.date.today().isoformat()
    assert validation.is_valid_date(validation.today())


def test_normalize_and_storable():
    assert validation.normalize("  Food  ") == "Food"
    assert validation.normalize(None) == ""
    assert validation.is_storable("plain text")
    assert not validation.is_storable("a|b")
    assert not validation.is_storable("two\nlines")


def test_parse_bool_and_int():
    assert validation.parse_bool("Y") is True
    assert validation.parse_bool("no") is False
    assert validation.parse_bool("maybe") is None
    assert validation.parse_int(" 42 ") == 42
    assert validation.parse_int("4.2") is None


def test_format_currency():
    assert validation.format_currency(6.5) == "$6.50"
