"""Dépendances FastAPI : compte courant (en-têtes fournis par la couche d'identité) et services."""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from invoicing.config import Settings
from invoicing.models.common import Account
from invoicing.services.client_service import ClientService
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.profile_service import ProfileService
from invoicing.services.reconciliation import OverdueRefresher
from invoicing.services.template_service import TemplateService
from invoicing.storage.store import JsonStore


def get_account(
    x_account_id: Optional[str] = Header(default=None),
    x_account_email: Optional[str] = Header(default=None),
) -> Account:
    if not x_account_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return Account(id=x_account_id, email=x_account_email)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> JsonStore:
    return request.app.state.store


def get_refresher(request: Request) -> OverdueRefresher:
    return request.app.state.refresher


def get_invoice_service(store: JsonStore = Depends(get_store),
                        settings: Settings = Depends(get_settings)) -> InvoiceService:
    return InvoiceService(store, settings.invoicing, settings.pdf)


def get_client_service(store: JsonStore = Depends(get_store)) -> ClientService:
    return ClientService(store)


def get_profile_service(store: JsonStore = Depends(get_store)) -> ProfileService:
    return ProfileService(store)


def get_template_service(store: JsonStore = Depends(get_store)) -> TemplateService:
    return TemplateService(store)
