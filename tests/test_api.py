from datetime import date, timedelta
from decimal import Decimal

HEADERS = {"X-Account-Id": "acc-api", "X-Account-Email": "api@example.com"}


def _client(api, name="Atelier Dupont"):
    r = api.post("/clients", json={"name": name, "address": "3 rue des Lilas"}, headers=HEADERS)
    assert r.status_code == 201
    return r.json()


def _invoice(api, client_id, **fields):
    payload = {
        "client_id": client_id,
        "items": [{"description": "Développement", "unit_price_ht": "100", "quantity": "2.5"}],
        **fields,
    }
    r = api.post("/invoices", json=payload, headers=HEADERS)
    assert r.status_code == 201, r.text
    return r.json()


def test_requires_account(api):
    assert api.get("/invoices").status_code == 401
    assert api.get("/healthz").status_code == 200


def test_create_and_get_invoice(api):
    client = _client(api)
    inv = _invoice(api, client["id"], vat_applicable=True)
    assert inv["reference"] == "F-000001"
    assert inv["client_reference"] == client["reference"]

    r = api.get(f"/invoices/{inv['id']}", headers=HEADERS)
    assert r.status_code == 200
    body = r.json()
    assert Decimal(body["totals"]["total_ht"]) == Decimal("250.00")
    assert Decimal(body["totals"]["total_ttc"]) == Decimal("300.00")
    assert body["display_status"] == "draft"
    assert body["needs_refresh"] is False


def test_validation_error_is_400(api):
    client = _client(api)
    r = api.post("/invoices", json={"client_id": client["id"], "items": []}, headers=HEADERS)
    assert r.status_code == 400
    assert r.json() == {"error": "Veuillez ajouter au moins une ligne valide"}


def test_unknown_invoice_is_404(api):
    assert api.get("/invoices/absente", headers=HEADERS).status_code == 404


def test_status_endpoint(api):
    inv = _invoice(api, _client(api)["id"])
    r = api.patch(f"/invoices/{inv['id']}/status", json={"status": "sent"}, headers=HEADERS)
    assert r.status_code == 200
    assert r.json() == {"status": "sent"}

    r = api.patch(f"/invoices/{inv['id']}/status", json={"status": "archived"}, headers=HEADERS)
    assert r.status_code == 400
    r = api.patch(f"/invoices/{inv['id']}/status", json={}, headers=HEADERS)
    assert r.status_code == 400

    r = api.get(f"/invoices/{inv['id']}", headers=HEADERS)
    assert r.json()["invoice"]["status"] == "sent"
    assert r.json()["invoice"]["version"] == "1.0"


def test_overdue_is_refreshed_after_view(api):
    due = (date.today() - timedelta(days=10)).isoformat()
    start = (date.today() - timedelta(days=40)).isoformat()
    inv = _invoice(api, _client(api)["id"], invoice_date=start, due_date=due)

    first = api.get(f"/invoices/{inv['id']}", headers=HEADERS).json()
    assert first["display_status"] == "overdue"
    assert first["needs_refresh"] is True

    # la tâche d'arrière-plan s'exécute avant le retour du TestClient
    second = api.get(f"/invoices/{inv['id']}", headers=HEADERS).json()
    assert second["invoice"]["status"] == "overdue"
    assert second["needs_refresh"] is False


def test_pdf_export_headers(api, monkeypatch):
    monkeypatch.setattr("invoicing.services.invoice_service.export_pdf",
                        lambda doc, settings=None: b"%PDF-1.4 test")
    inv = _invoice(api, _client(api)["id"])
    r = api.get(f"/invoices/{inv['id']}/pdf", headers=HEADERS)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.headers["content-disposition"] == 'attachment; filename="invoice-F-000001.pdf"'
    assert r.content == b"%PDF-1.4 test"


def test_pdf_dependency_failure_is_500(api, monkeypatch):
    from invoicing.errors import DependencyError

    def broken(doc, settings=None):
        raise DependencyError("wkhtmltopdf introuvable")

    monkeypatch.setattr("invoicing.services.invoice_service.export_pdf", broken)
    inv = _invoice(api, _client(api)["id"])
    r = api.get(f"/invoices/{inv['id']}/pdf", headers=HEADERS)
    assert r.status_code == 500
    assert r.json() == {"error": "wkhtmltopdf introuvable", "details": ""}


def test_preview_is_html(api):
    api.put("/profile", json={"company_name": "Studio Caraïbes"}, headers=HEADERS)
    inv = _invoice(api, _client(api)["id"])
    r = api.get(f"/invoices/{inv['id']}/preview", headers=HEADERS)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "Studio Caraïbes" in r.text
    assert "F-000001" in r.text


def test_duplicate_endpoint(api):
    inv = _invoice(api, _client(api)["id"])
    r = api.post(f"/invoices/{inv['id']}/duplicate", headers=HEADERS)
    assert r.status_code == 200
    dup = r.json()
    assert dup["reference"] == "F-000002"
    assert dup["id"] != inv["id"]


def test_update_and_delete(api):
    client = _client(api)
    inv = _invoice(api, client["id"])
    r = api.put(f"/invoices/{inv['id']}", json={
        "client_id": client["id"],
        "items": [{"description": "Audit", "unit_price_ht": "80", "quantity": "1"}],
    }, headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["version"] == "1.1"

    assert api.delete(f"/invoices/{inv['id']}", headers=HEADERS).json() == {"success": True}
    assert api.get(f"/invoices/{inv['id']}", headers=HEADERS).status_code == 404


def test_list_filters_and_dashboard(api):
    first = _client(api, "Atelier Dupont")
    second = _client(api, "Boulangerie Marie")
    paid = _invoice(api, first["id"])
    _invoice(api, second["id"])
    api.patch(f"/invoices/{paid['id']}/status", json={"status": "paid"}, headers=HEADERS)

    r = api.get("/invoices", params={"status": "paid"}, headers=HEADERS)
    assert [i["id"] for i in r.json()] == [paid["id"]]
    r = api.get("/invoices", params={"client": second["id"]}, headers=HEADERS)
    assert [i["client_name"] for i in r.json()] == ["Boulangerie Marie"]

    dash = api.get("/dashboard", headers=HEADERS).json()
    assert dash["invoice_count"] == 2
    assert dash["client_count"] == 2


def test_accounts_are_isolated(api):
    inv = _invoice(api, _client(api)["id"])
    other = {"X-Account-Id": "acc-other"}
    assert api.get(f"/invoices/{inv['id']}", headers=other).status_code == 404
    assert api.get("/invoices", headers=other).json() == []


def test_profile_defaults_to_account_email(api):
    r = api.get("/profile", headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["email"] == "api@example.com"


def test_create_invoice_from_template(api):
    tpl = api.post("/templates", json={"name": "Chèque 15 j", "default_payment_method": "Chèque",
                                       "default_payment_terms": 15}, headers=HEADERS).json()
    inv = _invoice(api, _client(api)["id"], invoice_date="2024-03-01")
    r = api.post(f"/invoices?template={tpl['id']}", json={
        "client_id": inv["client_id"], "invoice_date": "2024-03-01",
        "items": [{"description": "Audit", "unit_price_ht": "80", "quantity": "1"}],
    }, headers=HEADERS)
    assert r.status_code == 201
    assert r.json()["payment_method"] == "Chèque"
    assert r.json()["due_date"] == "2024-03-16"


def test_delete_client_reports_cascade(api):
    client = _client(api)
    _invoice(api, client["id"])
    r = api.delete(f"/clients/{client['id']}", headers=HEADERS)
    assert r.json() == {"success": True, "deleted_invoices": 1}


def test_non_string_status_is_400(api):
    inv = _invoice(api, _client(api)["id"])
    for payload in ({"status": 3}, {"status": None}, {}):
        r = api.patch(f"/invoices/{inv['id']}/status", json=payload, headers=HEADERS)
        assert r.status_code == 400
        assert "error" in r.json()
    assert api.get(f"/invoices/{inv['id']}", headers=HEADERS).json()["invoice"]["status"] == "draft"


def test_default_template_applies_without_query(api):
    api.post("/templates", json={"name": "Chèque 15 j", "default_payment_method": "Chèque",
                                 "default_payment_terms": 15, "is_default": True}, headers=HEADERS)
    inv = _invoice(api, _client(api)["id"], invoice_date="2024-03-01")
    assert inv["payment_method"] == "Chèque"
    assert inv["due_date"] == "2024-03-16"


def test_get_client(api):
    client = _client(api)
    r = api.get(f"/clients/{client['id']}", headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["name"] == "Atelier Dupont"
    assert api.get(f"/clients/{client['id']}", headers={"X-Account-Id": "acc-other"}).status_code == 404


def test_oversized_amount_is_400(api):
    client = _client(api)
    r = api.post("/invoices", json={
        "client_id": client["id"],
        "items": [{"description": "Licence", "unit_price_ht": "1e30", "quantity": "1"}],
    }, headers=HEADERS)
    assert r.status_code == 400
