from __future__ import annotations
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from invoicing.calculator import compute_totals, normalize_items, validate_items
from invoicing.config import InvoicingDefaults, PdfSettings
from invoicing.errors import DependencyError, NotFoundError, ValidationError
from invoicing.models.client import Client
from invoicing.models.common import Account, gen_id
from invoicing.models.invoice import (
    INITIAL_VERSION, Invoice, InvoiceInput, InvoiceItem, InvoiceStatus, InvoiceSummary, Totals,
)
from invoicing.models.profile import Profile
from invoicing.references import bump_version
from invoicing.rendering.document import Document, render
from invoicing.rendering.html import render_preview_html
from invoicing.rendering.pdf import export_pdf, pdf_filename
from invoicing.status import apply_status_action, display_status, needs_overdue_refresh
from invoicing.storage.store import JsonStore

logger = logging.getLogger(__name__)

RECENT_INVOICES = 5


class InvoiceView(BaseModel):
    invoice: Invoice
    items: List[InvoiceItem]
    client: Optional[Client] = None
    sender: Optional[Profile] = None
    totals: Totals
    display_status: InvoiceStatus
    needs_refresh: bool = False  # overdue non encore stocké -> OverdueRefresher

    def document(self) -> Document:
        return render(self.sender, self.client, self.invoice, self.items, self.totals)


class DashboardSummary(BaseModel):
    invoice_count: int
    client_count: int
    recent_invoices: List[InvoiceSummary] = Field(default_factory=list)


class InvoiceService:
    def __init__(self, store: JsonStore, defaults: Optional[InvoicingDefaults] = None,
                 pdf_settings: Optional[PdfSettings] = None):
        self.store = store
        self.defaults = defaults or InvoicingDefaults()
        self.pdf_settings = pdf_settings or PdfSettings()

    # ----------- lecture ----------- #

    def get_by_id(self, account: Account, invoice_id: str) -> Invoice:
        inv = self.store.get_invoice(account.id, invoice_id)
        if inv is None:
            raise NotFoundError("Facture", invoice_id)
        return inv

    def list_invoices(self, account: Account, status: Optional[str] = None,
                      client_id: Optional[str] = None, today: Optional[date] = None,
                      limit: Optional[int] = None) -> List[InvoiceSummary]:
        invoices = self.store.list_invoices(account.id, status=status, client_id=client_id)
        if limit is not None:
            invoices = invoices[:limit]
        items = self.store.items_by_invoice([inv.id for inv in invoices])
        clients = {c.id: c.name for c in self.store.list_clients(account.id)}
        return [
            InvoiceSummary(
                id=inv.id,
                reference=inv.reference,
                client_id=inv.client_id,
                client_name=clients.get(inv.client_id),
                invoice_date=inv.invoice_date,
                due_date=inv.due_date,
                status=inv.status,
                display_status=display_status(inv.due_date, inv.status, today),
                total_ht=compute_totals(items.get(inv.id, []), False).total_ht,
            )
            for inv in invoices
        ]

    def view(self, account: Account, invoice_id: str, today: Optional[date] = None) -> InvoiceView:
        """Facture résolue (émetteur, client, lignes, totaux, statut affiché). Aucune écriture."""
        inv = self.get_by_id(account, invoice_id)
        items = self.store.list_items(inv.id)
        return InvoiceView(
            invoice=inv,
            items=items,
            client=self.store.get_client(account.id, inv.client_id),
            sender=self.store.get_profile(account.id),
            totals=compute_totals(items, inv.vat_applicable),
            display_status=display_status(inv.due_date, inv.status, today),
            needs_refresh=needs_overdue_refresh(inv.due_date, inv.status, today),
        )

    def dashboard(self, account: Account, today: Optional[date] = None) -> DashboardSummary:
        return DashboardSummary(
            invoice_count=self.store.count_invoices(account.id),
            client_count=self.store.count_clients(account.id),
            recent_invoices=self.list_invoices(account, today=today, limit=RECENT_INVOICES),
        )

    # ----------- documents ----------- #

    def render_document(self, account: Account, invoice_id: str) -> Document:
        return self.view(account, invoice_id).document()

    def preview_html(self, account: Account, invoice_id: str) -> str:
        return render_preview_html(self.render_document(account, invoice_id))

    def export_pdf(self, account: Account, invoice_id: str) -> Tuple[str, bytes]:
        doc = self.render_document(account, invoice_id)
        return pdf_filename(doc.reference), export_pdf(doc, self.pdf_settings)

    # ----------- écriture ----------- #

    def _resolve_client(self, account: Account, client_id: Optional[str]) -> Client:
        if not client_id:
            raise ValidationError("Veuillez sélectionner un client")
        client = self.store.get_client(account.id, client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    def _save_items(self, invoice_id: str, items: List[InvoiceItem]) -> List[InvoiceItem]:
        try:
            return self.store.replace_items(invoice_id, items)
        except DependencyError as e:
            # l'en-tête est déjà écrit : l'erreur doit remonter telle quelle
            raise DependencyError("Échec de l'enregistrement des lignes de facture", e.detail) from e

    def create(self, account: Account, data: InvoiceInput, today: Optional[date] = None) -> Invoice:
        client = self._resolve_client(account, data.client_id)
        validate_items(data.items)

        invoice_date = data.invoice_date or today or date.today()
        inv = Invoice(
            user_id=account.id,
            reference=self.store.next_reference(account.id, "invoice"),
            client_id=client.id,
            client_reference=client.reference,
            invoice_date=invoice_date,
            due_date=data.due_date or invoice_date + timedelta(days=self.defaults.payment_terms_days),
            payment_method=data.payment_method or self.defaults.default_payment_method,
            status="draft",
            vat_applicable=bool(data.vat_applicable),
            vat_article=(data.vat_article or "").strip() or None,
            notes=(data.notes or "").strip() or None,
        )
        self.store.insert_invoice(inv)
        self._save_items(inv.id, normalize_items(data.items, inv.id))
        logger.info("Facture %s créée (%s)", inv.reference, inv.id)
        return inv

    def update(self, account: Account, invoice_id: str, data: InvoiceInput) -> Invoice:
        """Édition du contenu : version +0.1, statut inchangé, lignes remplacées."""
        current = self.get_by_id(account, invoice_id)
        client = self._resolve_client(account, data.client_id)

        reference = current.reference
        if data.reference is not None:
            reference = data.reference.strip()
            if not reference:
                raise ValidationError("La référence de facture est obligatoire")
            if reference != current.reference and self.store.find_invoice_by_reference(
                    account.id, reference, exclude_id=current.id):
                raise ValidationError("Une facture avec cette référence existe déjà")

        validate_items(data.items)

        inv = current.model_copy(update={
            "reference": reference,
            "client_id": client.id,
            "client_reference": client.reference if client.id != current.client_id else current.client_reference,
            "invoice_date": data.invoice_date or current.invoice_date,
            "due_date": data.due_date or current.due_date,
            "payment_method": data.payment_method or current.payment_method,
            "vat_applicable": current.vat_applicable if data.vat_applicable is None else data.vat_applicable,
            "vat_article": current.vat_article if data.vat_article is None else data.vat_article.strip() or None,
            "notes": current.notes if data.notes is None else data.notes.strip() or None,
            "version": bump_version(current.version),
        })
        inv.touch()
        self.store.update_invoice(inv)
        self._save_items(inv.id, normalize_items(data.items, inv.id))
        logger.info("Facture %s mise à jour (version %s)", inv.reference, inv.version)
        return inv

    def delete(self, account: Account, invoice_id: str) -> None:
        if not self.store.delete_invoice(account.id, invoice_id):
            raise NotFoundError("Facture", invoice_id)
        logger.info("Facture %s supprimée", invoice_id)

    def duplicate(self, account: Account, invoice_id: str, today: Optional[date] = None) -> Invoice:
        """Copie : nouvelle référence, version 1.0, brouillon, dates du jour / +30 j, lignes recopiées."""
        source = self.get_by_id(account, invoice_id)
        items = self.store.list_items(source.id)

        invoice_date = today or date.today()
        inv = Invoice(
            user_id=account.id,
            reference=self.store.next_reference(account.id, "invoice"),
            version=INITIAL_VERSION,
            client_id=source.client_id,
            client_reference=source.client_reference,
            invoice_date=invoice_date,
            due_date=invoice_date + timedelta(days=self.defaults.payment_terms_days),
            payment_method=source.payment_method,
            status="draft",
            vat_applicable=source.vat_applicable,
            vat_article=source.vat_article,
            notes=source.notes,
        )
        self.store.insert_invoice(inv)
        copies = [
            it.model_copy(update={"id": gen_id(), "invoice_id": inv.id, "order_index": idx})
            for idx, it in enumerate(items)
        ]
        if copies:
            self._save_items(inv.id, copies)
        logger.info("Facture %s dupliquée en %s", source.reference, inv.reference)
        return inv

    # ----------- statut ----------- #

    def update_status(self, account: Account, invoice_id: str, action: object,
                      today: Optional[date] = None) -> str:
        """Applique une action {draft, sent, paid, unpaid} ; la version n'est pas modifiée."""
        inv = self.get_by_id(account, invoice_id)
        new_status = apply_status_action(action, inv.due_date, inv.status, today)
        self.store.update_invoice_status(account.id, inv.id, new_status)
        logger.info("Facture %s : %s -> %s", inv.reference, inv.status, new_status)
        return new_status

    def reconcile_overdue(self, account: Account, invoice_id: str, today: Optional[date] = None) -> bool:
        """Stocke "overdue" si la facture est échue et pas encore marquée. Renvoie True si écrit."""
        inv = self.get_by_id(account, invoice_id)
        if not needs_overdue_refresh(inv.due_date, inv.status, today):
            return False
        return self.store.update_invoice_status(account.id, inv.id, "overdue")

    def reconcile_all_overdue(self, account: Account, today: Optional[date] = None) -> List[str]:
        updated: List[str] = []
        for inv in self.store.list_invoices(account.id):
            if needs_overdue_refresh(inv.due_date, inv.status, today):
                self.store.update_invoice_status(account.id, inv.id, "overdue")
                updated.append(inv.id)
        if updated:
            logger.info("%d facture(s) passée(s) en overdue", len(updated))
        return updated
