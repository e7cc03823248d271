from __future__ import annotations
import re
from decimal import Decimal, InvalidOperation

INVOICE_PREFIX = "F"
CLIENT_PREFIX = "C"
SEQUENCE_WIDTH = 6


def generate_reference(prefix: str, last_number: int) -> str:
    """generate_reference("F", 66) -> "F-000067"."""
    return f"{prefix}-{int(last_number) + 1:0{SEQUENCE_WIDTH}d}"


def parse_reference(reference: str | None, prefix: str = INVOICE_PREFIX) -> int:
    """Séquence numérique d'une référence, 0 si elle ne suit pas le format."""
    match = re.search(rf"{re.escape(prefix)}-(\d+)", reference or "")
    return int(match.group(1)) if match else 0


def next_reference(prefix: str, existing: list[str]) -> str:
    """Référence suivante à partir de la séquence maximale déjà émise pour ce préfixe."""
    last = max((parse_reference(r, prefix) for r in existing), default=0)
    return generate_reference(prefix, last)


def generate_invoice_reference(last_number: int) -> str:
    return generate_reference(INVOICE_PREFIX, last_number)


def generate_client_reference(last_number: int) -> str:
    return generate_reference(CLIENT_PREFIX, last_number)


def parse_invoice_reference(reference: str | None) -> int:
    return parse_reference(reference, INVOICE_PREFIX)


def parse_client_reference(reference: str | None) -> int:
    return parse_reference(reference, CLIENT_PREFIX)


def bump_version(version: str | None) -> str:
    """'1.0' -> '1.1' -> ... -> '1.9' -> '2.0' (incrément de 0.1 en Decimal)."""
    try:
        current = Decimal(version or "1.0")
    except InvalidOperation:
        current = Decimal("1.0")
    return str((current + Decimal("0.1")).quantize(Decimal("0.1")))
