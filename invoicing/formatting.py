"""Formats fr-FR : montants, nombres, dates."""
from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

NARROW_NBSP = "\u202f"  # séparateur de milliers fr-FR
NBSP = "\u00a0"  # avant le symbole €
TWO_PLACES = Decimal("0.01")


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite():
        return None
    return d


def format_number(value: Any) -> str:
    """1234.5 -> '1 234,50' (toujours 2 décimales)."""
    d = _to_decimal(value)
    if d is None:
        return "0,00"
    s = f"{d.quantize(TWO_PLACES, rounding=ROUND_HALF_UP):,.2f}"
    return s.replace(",", NARROW_NBSP).replace(".", ",")


def format_currency(value: Any) -> str:
    return f"{format_number(value)}{NBSP}€"


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        return None


def format_date(value: Any) -> str:
    """Date au format JJ/MM/AAAA, chaîne vide si absente ou illisible."""
    if not value:
        return ""
    d = _parse_date(value)
    return d.strftime("%d/%m/%Y") if d else ""
