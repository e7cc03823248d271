"""
Arbre de document d'une facture.

`render()` est la seule source de contenu : l'aperçu HTML et l'export PDF
sérialisent le même arbre, chacun dans son propre gabarit. Toute nouvelle
donnée affichée s'ajoute ici, jamais dans un gabarit seul.
"""
from __future__ import annotations
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from invoicing.calculator import VAT_RATE
from invoicing.formatting import format_currency, format_date, format_number
from invoicing.models.client import Client
from invoicing.models.invoice import Invoice, InvoiceItem, Totals
from invoicing.models.profile import Profile

DOCUMENT_TITLE = "FACTURE"

LEGAL_FOOTER: Tuple[str, ...] = (
    "Micro-Entreprise - SIRET: 978 934 560 00019 - SIREN: 978 934 560 - "
    "RCS: Basse-Terre - APE/NAF: 6201Z - Num TVA: FR 70 978 934 560",
    "En cas de retard de paiement, une indemnité forfaitaire pour frais de "
    "recouvrement de 40 euros sera exigée (Décret n°2012-1115 du 2 octobre 2012).",
)


class SenderBlock(BaseModel):
    company_name: Optional[str] = None
    address_lines: List[str] = Field(default_factory=list)
    phone_line: Optional[str] = None
    email: Optional[str] = None


class HeaderBlock(BaseModel):
    sender: SenderBlock
    title: str = DOCUMENT_TITLE
    meta_lines: List[str] = Field(default_factory=list)


class ClientBlock(BaseModel):
    name: str
    address: Optional[str] = None


class ItemRow(BaseModel):
    description: str
    additional_info: Optional[str] = None
    unit_price: str
    quantity: str
    total: str


class TotalLine(BaseModel):
    label: str
    value: str
    final: bool = False


class BankingBlock(BaseModel):
    title: str = "Informations Bancaires"
    bank_lines: List[str] = Field(default_factory=list)
    payment_lines: List[str] = Field(default_factory=list)
    service_mention: str = "Prestation de service"


class Document(BaseModel):
    reference: str
    header: HeaderBlock
    client: Optional[ClientBlock] = None
    item_columns: Tuple[str, str, str, str] = ("Description", "Prix Unit. HT", "Quantité", "Total HT")
    items: List[ItemRow] = Field(default_factory=list)
    totals: List[TotalLine] = Field(default_factory=list)
    vat_note: Optional[str] = None
    banking: BankingBlock
    notes: Optional[str] = None
    footer: Tuple[str, ...] = LEGAL_FOOTER


def group_address(address: str) -> List[str]:
    """'1 rue X, 75000, Paris, France' -> ['1 rue X, 75000', 'Paris, France']."""
    parts = [p.strip() for p in address.split(",")]
    return [", ".join(parts[i:i + 2]) for i in range(0, len(parts), 2)]


def _sender_block(sender: Optional[Profile]) -> SenderBlock:
    if sender is None:
        return SenderBlock()
    return SenderBlock(
        company_name=sender.company_name or None,
        address_lines=group_address(sender.address) if sender.address else [],
        phone_line=f"Tél.: {sender.phone}" if sender.phone else None,
        email=sender.email or None,
    )


def _meta_lines(invoice: Invoice) -> List[str]:
    lines = [
        f"Référence: {invoice.reference}",
        f"Version: {invoice.version}",
        f"Date de facturation: {format_date(invoice.invoice_date)}",
    ]
    if invoice.client_reference:
        lines.append(f"Référence client: {invoice.client_reference}")
    return lines


def _totals_lines(invoice: Invoice, totals: Totals) -> List[TotalLine]:
    out = [TotalLine(label="Total HT:", value=format_currency(totals.total_ht))]
    if invoice.vat_applicable:
        rate = int(VAT_RATE * 100)
        out.append(TotalLine(label=f"TVA ({rate}%):", value=format_currency(totals.total_ttc - totals.total_ht)))
    ttc = format_currency(totals.total_ttc)
    out.append(TotalLine(label="Total Net TTC:", value=ttc, final=True))
    out.append(TotalLine(label="Net à payer:", value=ttc, final=True))
    return out


def _banking_block(sender: Optional[Profile], invoice: Invoice) -> BankingBlock:
    bank_lines: List[str] = []
    info = sender.banking_info if sender else None
    if info:
        for label, value in (("Banque", info.bank_name), ("RIB", info.rib),
                             ("IBAN", info.iban), ("BIC", info.bic)):
            if value:
                bank_lines.append(f"{label}: {value}")
    return BankingBlock(
        bank_lines=bank_lines,
        payment_lines=[
            f"Date d'échéance: {format_date(invoice.due_date)}",
            f"Mode de paiement: {invoice.payment_method}",
        ],
    )


def render(sender: Optional[Profile], client: Optional[Client], invoice: Invoice,
           items: Sequence[InvoiceItem], totals: Totals) -> Document:
    rows = [
        ItemRow(
            description=it.description,
            additional_info=it.additional_info or None,
            unit_price=format_currency(it.unit_price_ht),
            quantity=format_number(it.quantity),
            total=format_currency(it.total_ht),
        )
        for it in sorted(items, key=lambda it: it.order_index)
    ]

    vat_note = None
    if not invoice.vat_applicable and invoice.vat_article:
        vat_note = f"TVA non applicable, {invoice.vat_article}"

    return Document(
        reference=invoice.reference,
        header=HeaderBlock(sender=_sender_block(sender), meta_lines=_meta_lines(invoice)),
        client=ClientBlock(name=client.name, address=client.address or None) if client else None,
        items=rows,
        totals=_totals_lines(invoice, totals),
        vat_note=vat_note,
        banking=_banking_block(sender, invoice),
        notes=invoice.notes if invoice.notes and invoice.notes.strip() else None,
    )
