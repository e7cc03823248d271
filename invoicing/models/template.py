from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field
from .common import TimeStamped, gen_id


class VatSettings(BaseModel):
    vat_applicable: bool = False
    vat_article: Optional[str] = None


class InvoiceTemplate(TimeStamped):
    id: str = Field(default_factory=gen_id)
    user_id: str
    name: str
    default_payment_method: str = "Virement"
    default_payment_terms: int = 30  # jours
    default_vat_settings: VatSettings = Field(default_factory=VatSettings)
    is_default: bool = False


class TemplateInput(BaseModel):
    name: str
    default_payment_method: str = "Virement"
    default_payment_terms: int = Field(default=30, ge=0)
    default_vat_settings: VatSettings = Field(default_factory=VatSettings)
    is_default: bool = False
