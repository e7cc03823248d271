from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .common import TimeStamped, gen_id

InvoiceStatus = Literal["draft", "sent", "paid", "overdue"]
StatusAction = Literal["draft", "sent", "paid", "unpaid"]

INVOICE_STATUSES = ("draft", "sent", "paid", "overdue")
STATUS_ACTIONS = ("draft", "sent", "paid", "unpaid")
INITIAL_VERSION = "1.0"


class InvoiceItem(BaseModel):
    id: str = Field(default_factory=gen_id)
    invoice_id: Optional[str] = None
    description: str = ""
    additional_info: Optional[str] = None
    unit_price_ht: Decimal = Decimal("0")
    quantity: Decimal = Decimal("1")
    total_ht: Decimal = Decimal("0")  # recalculé, jamais repris de la saisie
    order_index: int = 0


class Invoice(TimeStamped):
    id: str = Field(default_factory=gen_id)
    user_id: str
    reference: str
    version: str = INITIAL_VERSION
    client_id: str
    client_reference: Optional[str] = None  # snapshot à la création
    invoice_date: date
    due_date: date
    payment_method: str = "Virement"
    status: InvoiceStatus = "draft"
    vat_applicable: bool = False
    vat_article: Optional[str] = None
    notes: Optional[str] = None


class ItemInput(BaseModel):
    description: str = ""
    additional_info: Optional[str] = None
    unit_price_ht: Decimal = Decimal("0")
    quantity: Decimal = Decimal("1")


class InvoiceInput(BaseModel):
    """Saisie d'une facture (création ou édition). Les dates vides prennent les valeurs par défaut."""
    reference: Optional[str] = None  # éditable seulement sur une facture existante
    client_id: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    payment_method: Optional[str] = None
    vat_applicable: Optional[bool] = None
    vat_article: Optional[str] = None
    notes: Optional[str] = None
    items: List[ItemInput] = Field(default_factory=list)


class Totals(BaseModel):
    total_ht: Decimal
    vat_amount: Decimal
    total_ttc: Decimal


class InvoiceSummary(BaseModel):
    id: str
    reference: str
    client_id: str
    client_name: Optional[str] = None
    invoice_date: date
    due_date: date
    status: InvoiceStatus
    display_status: InvoiceStatus
    total_ht: Decimal
