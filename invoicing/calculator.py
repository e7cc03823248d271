"""
Calcul des lignes et des totaux HT / TVA / TTC.

Tout est fait en Decimal (virgule fixe) : aucune erreur d'arrondi ne
s'accumule, quel que soit le nombre de lignes.
"""
from __future__ import annotations
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, List, Sequence

from invoicing.errors import ValidationError
from invoicing.models.invoice import InvoiceItem, ItemInput, Totals

VAT_RATE = Decimal("0.20")
TWO_PLACES = Decimal("0.01")
INVALID_ITEMS_MESSAGE = "Veuillez ajouter au moins une ligne valide"


def round2(value: Any) -> Decimal:
    d = value if isinstance(value, Decimal) else Decimal(str(value))
    return d.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def item_total(unit_price_ht: Any, quantity: Any) -> Decimal:
    return round2(Decimal(str(unit_price_ht)) * Decimal(str(quantity)))


def _ordered(items: Iterable[InvoiceItem]) -> List[InvoiceItem]:
    # tri stable : à order_index égal, l'ordre d'insertion est conservé
    return sorted(items, key=lambda it: it.order_index)


def compute_totals(items: Iterable[InvoiceItem], vat_applicable: bool) -> Totals:
    total_ht = round2(sum((round2(it.total_ht) for it in _ordered(items)), Decimal("0")))
    total_ttc = round2(total_ht * (1 + VAT_RATE)) if vat_applicable else total_ht
    return Totals(total_ht=total_ht, vat_amount=total_ttc - total_ht, total_ttc=total_ttc)


def validate_items(items: Sequence[ItemInput | InvoiceItem]) -> None:
    """Une seule erreur pour tout le tableau : liste vide, description vide, total nul ou hors précision."""
    if not items:
        raise ValidationError(INVALID_ITEMS_MESSAGE)
    grand_total = Decimal("0")
    for it in items:
        if not (it.description or "").strip():
            raise ValidationError(INVALID_ITEMS_MESSAGE)
        try:
            total = item_total(it.unit_price_ht, it.quantity)
            grand_total += total
            round2(grand_total * (1 + VAT_RATE))
        except InvalidOperation as e:
            # montant hors de la précision Decimal
            raise ValidationError(INVALID_ITEMS_MESSAGE) from e
        if total == 0:
            raise ValidationError(INVALID_ITEMS_MESSAGE)


def normalize_items(items: Sequence[ItemInput | InvoiceItem], invoice_id: str) -> List[InvoiceItem]:
    """Lignes prêtes à stocker : total recalculé, order_index renuméroté depuis 0."""
    if items and all(isinstance(it, InvoiceItem) for it in items):
        items = _ordered(items)  # type: ignore[arg-type]
    out: List[InvoiceItem] = []
    for idx, it in enumerate(items):
        out.append(InvoiceItem(
            invoice_id=invoice_id,
            description=it.description.strip(),
            additional_info=(it.additional_info or "").strip() or None,
            unit_price_ht=Decimal(str(it.unit_price_ht)),
            quantity=Decimal(str(it.quantity)),
            total_ht=item_total(it.unit_price_ht, it.quantity),
            order_index=idx,
        ))
    return out
