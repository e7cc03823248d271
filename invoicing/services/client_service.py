from __future__ import annotations
import logging
from typing import List

from invoicing.errors import NotFoundError, ValidationError
from invoicing.models.client import Client, ClientInput
from invoicing.models.common import Account
from invoicing.storage.store import JsonStore

logger = logging.getLogger(__name__)


class ClientService:
    def __init__(self, store: JsonStore):
        self.store = store

    def list_clients(self, account: Account) -> List[Client]:
        return self.store.list_clients(account.id)

    def get_by_id(self, account: Account, client_id: str) -> Client:
        client = self.store.get_client(account.id, client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    def _check_unique(self, account: Account, reference: str, exclude_id: str | None = None) -> None:
        if self.store.find_client_by_reference(account.id, reference, exclude_id=exclude_id):
            raise ValidationError(f"Un client avec la référence {reference} existe déjà")

    def add_client(self, account: Account, data: ClientInput) -> Client:
        name = data.name.strip()
        if not name:
            raise ValidationError("Le nom du client est obligatoire")
        reference = (data.reference or "").strip()
        if reference:
            self._check_unique(account, reference)
        else:
            # référence auto (C-000001)
            reference = self.store.next_reference(account.id, "client")
        client = Client(user_id=account.id, reference=reference, name=name,
                        address=(data.address or "").strip() or None)
        return self.store.insert_client(client)

    def update_client(self, account: Account, client_id: str, data: ClientInput) -> Client:
        current = self.get_by_id(account, client_id)
        reference = (data.reference or "").strip()
        if not reference:
            raise ValidationError("La référence ne peut pas être vide")
        name = data.name.strip()
        if not name:
            raise ValidationError("Le nom du client est obligatoire")
        if reference != current.reference:
            self._check_unique(account, reference, exclude_id=client_id)
        c = current.model_copy(update={"reference": reference, "name": name,
                                       "address": (data.address or "").strip() or None})
        c.touch()
        return self.store.update_client(c)

    def delete_client(self, account: Account, client_id: str) -> int:
        self.get_by_id(account, client_id)
        removed = self.store.delete_client(account.id, client_id)
        logger.info("Client %s supprimé (%d facture(s) en cascade)", client_id, removed)
        return removed
