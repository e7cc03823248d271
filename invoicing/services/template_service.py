from __future__ import annotations
from datetime import date, timedelta
from typing import List, Optional

from invoicing.errors import NotFoundError, ValidationError
from invoicing.models.common import Account
from invoicing.models.invoice import InvoiceInput
from invoicing.models.template import InvoiceTemplate, TemplateInput
from invoicing.storage.store import JsonStore


class TemplateService:
    def __init__(self, store: JsonStore):
        self.store = store

    def list_templates(self, account: Account) -> List[InvoiceTemplate]:
        return self.store.list_templates(account.id)

    def get_default(self, account: Account) -> Optional[InvoiceTemplate]:
        return next((t for t in self.list_templates(account) if t.is_default), None)

    def add_template(self, account: Account, data: TemplateInput) -> InvoiceTemplate:
        if not data.name.strip():
            raise ValidationError("Le nom du modèle est obligatoire")
        tpl = InvoiceTemplate(user_id=account.id, **data.model_dump())
        return self.store.save_template(tpl)

    def delete_template(self, account: Account, template_id: str) -> None:
        if not self.store.delete_template(account.id, template_id):
            raise NotFoundError("Modèle", template_id)

    def apply(self, account: Account, template_id: str, data: InvoiceInput,
              today: Optional[date] = None) -> InvoiceInput:
        """Complète une saisie de facture avec les valeurs par défaut d'un modèle (sans écraser la saisie)."""
        tpl = self.store.get_template(account.id, template_id)
        if tpl is None:
            raise NotFoundError("Modèle", template_id)
        invoice_date = data.invoice_date or today or date.today()
        return data.model_copy(update={
            "invoice_date": invoice_date,
            "due_date": data.due_date or invoice_date + timedelta(days=tpl.default_payment_terms),
            "payment_method": data.payment_method or tpl.default_payment_method,
            "vat_applicable": tpl.default_vat_settings.vat_applicable if data.vat_applicable is None else data.vat_applicable,
            "vat_article": data.vat_article or tpl.default_vat_settings.vat_article,
        })
