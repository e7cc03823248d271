from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from invoicing.api.app import create_app
from invoicing.config import Settings
from invoicing.models.client import ClientInput
from invoicing.models.common import Account
from invoicing.models.invoice import InvoiceInput, ItemInput
from invoicing.models.profile import BankingInfo, ProfileUpdate
from invoicing.services.client_service import ClientService
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.profile_service import ProfileService
from invoicing.services.template_service import TemplateService
from invoicing.storage.store import JsonStore

TODAY = date(2024, 3, 15)


@pytest.fixture()
def store(tmp_path) -> JsonStore:
    return JsonStore(tmp_path / "data")


@pytest.fixture()
def account() -> Account:
    return Account(id="acc-1", email="moi@example.com")


@pytest.fixture()
def other_account() -> Account:
    return Account(id="acc-2", email="autre@example.com")


@pytest.fixture()
def invoices(store) -> InvoiceService:
    return InvoiceService(store)


@pytest.fixture()
def clients(store) -> ClientService:
    return ClientService(store)


@pytest.fixture()
def profiles(store) -> ProfileService:
    return ProfileService(store)


@pytest.fixture()
def templates(store) -> TemplateService:
    return TemplateService(store)


@pytest.fixture()
def client(clients, account):
    return clients.add_client(account, ClientInput(name="Atelier Dupont", address="3 rue des Lilas, 97100 Basse-Terre"))


@pytest.fixture()
def profile(profiles, account):
    return profiles.update(account, ProfileUpdate(
        company_name="Studio Caraïbes",
        address="12 rue de la Paix, 97100, Basse-Terre, Guadeloupe",
        phone="0590 00 00 00",
        email="contact@studio.example",
        banking_info=BankingInfo(bank_name="Banque Populaire", IBAN="FR76 0000 0000 0000", BIC="CCBPFRPP"),
    ))


def make_input(client_id, *items, **kwargs) -> InvoiceInput:
    rows = items or (("Développement site vitrine", "100", "2.5"),)
    return InvoiceInput(
        client_id=client_id,
        items=[ItemInput(description=d, unit_price_ht=Decimal(p), quantity=Decimal(q)) for d, p, q in rows],
        **kwargs,
    )


@pytest.fixture()
def api(tmp_path):
    settings = Settings(data_dir=tmp_path / "api-data")
    app = create_app(settings)
    with TestClient(app) as c:
        yield c
    app.state.refresher.shutdown()
