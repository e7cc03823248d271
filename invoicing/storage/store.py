from __future__ import annotations

import functools
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from invoicing.config import NumberingSettings
from invoicing.errors import DependencyError
from invoicing.models.client import Client
from invoicing.models.invoice import Invoice, InvoiceItem
from invoicing.models.profile import Profile
from invoicing.models.template import InvoiceTemplate
from invoicing.references import next_reference
from invoicing.storage.repo import JsonRepository, Record

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
F = TypeVar("F", bound=Callable[..., Any])


def _guard(fn: F) -> F:
    """Toute panne d'I/O ou de décodage du stockage remonte en DependencyError."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (OSError, UnicodeDecodeError) as e:
            raise DependencyError("Erreur de stockage", e) from e
    return wrapper  # type: ignore[return-value]


def _hydrate(model: Type[M], rows: Sequence[Record]) -> List[M]:
    out: List[M] = []
    for d in rows:
        try:
            out.append(model.model_validate(d))
        except SchemaError:
            # On ignore les entrées invalides pour ne pas casser la lecture
            logger.warning("%s invalide ignoré : %s", model.__name__, d.get("id"))
            continue
    return out


def _one(model: Type[M], row: Optional[Record]) -> Optional[M]:
    items = _hydrate(model, [row]) if row else []
    return items[0] if items else None


class JsonStore:
    """
    Stockage des tables profiles / clients / invoices / invoice_items / invoice_templates,
    chaque ligne portant son propriétaire (user_id, ou id pour les profils).
    Un verrou unique couvre toutes les tables : next_reference est atomique.
    """

    def __init__(
        self,
        data_dir: os.PathLike | str,
        numbering: Optional[NumberingSettings] = None,
        *,
        backup_enabled: bool = False,
    ) -> None:
        base = Path(data_dir)
        self.numbering = numbering or NumberingSettings()
        self.lock = threading.RLock()

        def table(name: str, entity: str) -> JsonRepository:
            return JsonRepository(base / f"{name}.json", entity_name=entity, key="id",
                                  lock=self.lock, backup_enabled=backup_enabled)

        self.profiles = table("profiles", "profile")
        self.clients = table("clients", "client")
        self.invoices = table("invoices", "invoice")
        self.items = table("invoice_items", "invoice_item")
        self.templates = table("invoice_templates", "invoice_template")
        self.sequences = table("sequences", "sequence")

    # ----------- références ----------- #

    def _prefix(self, kind: str) -> str:
        if kind == "invoice":
            return self.numbering.invoice_prefix
        if kind == "client":
            return self.numbering.client_prefix
        raise ValueError(f"Type de référence inconnu : {kind}")

    @_guard
    def next_reference(self, owner_id: str, kind: str) -> str:
        """
        Réserve la prochaine référence (owner, kind) en une seule opération :
        max(séquence déjà réservée, séquence max existante) + 1.
        """
        prefix = self._prefix(kind)
        table = self.invoices if kind == "invoice" else self.clients
        seq_id = f"{owner_id}:{prefix}"
        with self.lock:
            existing = [r.get("reference") or "" for r in table.find(lambda d: d.get("user_id") == owner_id)]
            counter = self.sequences.get_by_id(seq_id) or {"id": seq_id, "last": 0}
            existing.append(f"{prefix}-{int(counter.get('last') or 0)}")
            reference = next_reference(prefix, existing)
            counter["last"] = int(reference.rsplit("-", 1)[-1])
            if self.sequences.get_by_id(seq_id):
                self.sequences.update(counter)
            else:
                self.sequences.add(counter)
        return reference

    # ----------- profils ----------- #

    @_guard
    def get_profile(self, account_id: str) -> Optional[Profile]:
        return _one(Profile, self.profiles.get_by_id(account_id))

    @_guard
    def save_profile(self, profile: Profile) -> Profile:
        with self.lock:
            if self.profiles.get_by_id(profile.id):
                self.profiles.update(profile)
            else:
                self.profiles.add(profile)
        return profile

    # ----------- clients ----------- #

    @_guard
    def list_clients(self, owner_id: str) -> List[Client]:
        rows = self.clients.find(lambda d: d.get("user_id") == owner_id)
        return sorted(_hydrate(Client, rows), key=lambda c: c.name.casefold())

    @_guard
    def get_client(self, owner_id: str, client_id: str) -> Optional[Client]:
        return _one(Client, self.clients.find_one(
            lambda d: d.get("id") == client_id and d.get("user_id") == owner_id))

    @_guard
    def find_client_by_reference(self, owner_id: str, reference: str, exclude_id: Optional[str] = None) -> Optional[Client]:
        return _one(Client, self.clients.find_one(
            lambda d: d.get("user_id") == owner_id and d.get("reference") == reference and d.get("id") != exclude_id))

    @_guard
    def insert_client(self, client: Client) -> Client:
        self.clients.add(client)
        return client

    @_guard
    def update_client(self, client: Client) -> Client:
        self.clients.update(client)
        return client

    @_guard
    def delete_client(self, owner_id: str, client_id: str) -> int:
        """Supprime le client et, en cascade, ses factures et leurs lignes. Renvoie le nb de factures supprimées."""
        with self.lock:
            invoice_ids = {d.get("id") for d in self.invoices.find(
                lambda d: d.get("user_id") == owner_id and d.get("client_id") == client_id)}
            self.items.delete_where(lambda d: d.get("invoice_id") in invoice_ids)
            self.invoices.delete_where(lambda d: d.get("id") in invoice_ids)
            self.clients.delete_where(lambda d: d.get("id") == client_id and d.get("user_id") == owner_id)
        return len(invoice_ids)

    @_guard
    def count_clients(self, owner_id: str) -> int:
        return len(self.clients.find(lambda d: d.get("user_id") == owner_id))

    # ----------- factures ----------- #

    @_guard
    def list_invoices(self, owner_id: str, status: Optional[str] = None, client_id: Optional[str] = None) -> List[Invoice]:
        def pred(d: Record) -> bool:
            return (d.get("user_id") == owner_id
                    and (status is None or d.get("status") == status)
                    and (client_id is None or d.get("client_id") == client_id))
        invoices = _hydrate(Invoice, self.invoices.find(pred))
        return sorted(invoices, key=lambda inv: inv.created_at, reverse=True)

    @_guard
    def get_invoice(self, owner_id: str, invoice_id: str) -> Optional[Invoice]:
        return _one(Invoice, self.invoices.find_one(
            lambda d: d.get("id") == invoice_id and d.get("user_id") == owner_id))

    @_guard
    def find_invoice_by_reference(self, owner_id: str, reference: str, exclude_id: Optional[str] = None) -> Optional[Invoice]:
        return _one(Invoice, self.invoices.find_one(
            lambda d: d.get("user_id") == owner_id and d.get("reference") == reference and d.get("id") != exclude_id))

    @_guard
    def insert_invoice(self, invoice: Invoice) -> Invoice:
        self.invoices.add(invoice)
        return invoice

    @_guard
    def update_invoice(self, invoice: Invoice) -> Invoice:
        self.invoices.update(invoice)
        return invoice

    @_guard
    def update_invoice_status(self, owner_id: str, invoice_id: str, status: str) -> bool:
        with self.lock:
            row = self.invoices.find_one(lambda d: d.get("id") == invoice_id and d.get("user_id") == owner_id)
            if not row:
                return False
            self.invoices.update({"id": invoice_id, "status": status})
        return True

    @_guard
    def delete_invoice(self, owner_id: str, invoice_id: str) -> bool:
        with self.lock:
            if not self.invoices.find_one(lambda d: d.get("id") == invoice_id and d.get("user_id") == owner_id):
                return False
            # lignes d'abord
            self.items.delete_where(lambda d: d.get("invoice_id") == invoice_id)
            self.invoices.delete(invoice_id)
        return True

    @_guard
    def count_invoices(self, owner_id: str) -> int:
        return len(self.invoices.find(lambda d: d.get("user_id") == owner_id))

    # ----------- lignes ----------- #

    @_guard
    def list_items(self, invoice_id: str) -> List[InvoiceItem]:
        items = _hydrate(InvoiceItem, self.items.find(lambda d: d.get("invoice_id") == invoice_id))
        return sorted(items, key=lambda it: it.order_index)

    @_guard
    def items_by_invoice(self, invoice_ids: Sequence[str]) -> Dict[str, List[InvoiceItem]]:
        wanted = set(invoice_ids)
        out: Dict[str, List[InvoiceItem]] = {i: [] for i in wanted}
        for it in _hydrate(InvoiceItem, self.items.find(lambda d: d.get("invoice_id") in wanted)):
            out[it.invoice_id].append(it)
        return out

    @_guard
    def replace_items(self, invoice_id: str, items: Sequence[InvoiceItem]) -> List[InvoiceItem]:
        self.items.replace_where(lambda d: d.get("invoice_id") == invoice_id, items)
        return list(items)

    # ----------- modèles de facture ----------- #

    @_guard
    def list_templates(self, owner_id: str) -> List[InvoiceTemplate]:
        rows = self.templates.find(lambda d: d.get("user_id") == owner_id)
        return sorted(_hydrate(InvoiceTemplate, rows), key=lambda t: t.name.casefold())

    @_guard
    def get_template(self, owner_id: str, template_id: str) -> Optional[InvoiceTemplate]:
        return _one(InvoiceTemplate, self.templates.find_one(
            lambda d: d.get("id") == template_id and d.get("user_id") == owner_id))

    @_guard
    def save_template(self, template: InvoiceTemplate) -> InvoiceTemplate:
        with self.lock:
            if template.is_default:
                # un seul modèle par défaut par compte
                for d in self.templates.find(lambda d: d.get("user_id") == template.user_id and d.get("is_default")):
                    if d.get("id") != template.id:
                        self.templates.update({"id": d["id"], "is_default": False})
            if self.templates.get_by_id(template.id):
                self.templates.update(template)
            else:
                self.templates.add(template)
        return template

    @_guard
    def delete_template(self, owner_id: str, template_id: str) -> bool:
        return self.templates.delete_where(
            lambda d: d.get("id") == template_id and d.get("user_id") == owner_id) > 0
