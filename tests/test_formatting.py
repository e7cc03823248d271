from datetime import date, datetime
from decimal import Decimal

from invoicing.formatting import NARROW_NBSP, NBSP, format_currency, format_date, format_number


def test_format_number():
    assert format_number(Decimal("2.5")) == "2,50"
    assert format_number(1234.5) == f"1{NARROW_NBSP}234,50"
    assert format_number("1234567.891") == f"1{NARROW_NBSP}234{NARROW_NBSP}567,89"


def test_format_number_invalid():
    assert format_number(None) == "0,00"
    assert format_number("abc") == "0,00"
    assert format_number(float("nan")) == "0,00"


def test_format_currency():
    assert format_currency(Decimal("250")) == f"250,00{NBSP}€"
    assert format_currency(None) == f"0,00{NBSP}€"


def test_format_date():
    assert format_date(date(2024, 1, 5)) == "05/01/2024"
    assert format_date("2024-02-29") == "29/02/2024"
    assert format_date(datetime(2024, 12, 31, 10, 0)) == "31/12/2024"
    assert format_date(None) == ""
    assert format_date("pas une date") == ""
