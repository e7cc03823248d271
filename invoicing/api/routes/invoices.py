"""Factures : liste, détail, édition, statut, duplication, aperçu et export PDF."""
from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from invoicing.api.deps import (
    get_account, get_invoice_service, get_refresher, get_template_service,
)
from invoicing.models.common import Account
from invoicing.models.invoice import Invoice, InvoiceInput, InvoiceSummary
from invoicing.rendering.pdf import PDF_MEDIA_TYPE
from invoicing.services.invoice_service import DashboardSummary, InvoiceService, InvoiceView
from invoicing.services.reconciliation import OverdueRefresher
from invoicing.services.template_service import TemplateService

router = APIRouter(tags=["invoices"])


class StatusUpdate(BaseModel):
    status: Any = None  # validé par apply_status_action (400 si invalide)


class CreatedRef(BaseModel):
    id: str
    reference: str


@router.get("/dashboard", response_model=DashboardSummary)
def dashboard(account: Account = Depends(get_account),
              service: InvoiceService = Depends(get_invoice_service)):
    return service.dashboard(account)


@router.get("/invoices", response_model=List[InvoiceSummary])
def list_invoices(
    status: Optional[str] = Query(None),
    client: Optional[str] = Query(None),
    account: Account = Depends(get_account),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.list_invoices(account, status=status, client_id=client)


@router.post("/invoices", response_model=Invoice, status_code=201)
def create_invoice(
    data: InvoiceInput,
    template: Optional[str] = Query(None),
    account: Account = Depends(get_account),
    service: InvoiceService = Depends(get_invoice_service),
    templates: TemplateService = Depends(get_template_service),
):
    if template is None:
        # sans modèle explicite : modèle par défaut du compte, s'il existe
        default = templates.get_default(account)
        template = default.id if default else None
    if template:
        data = templates.apply(account, template, data)
    return service.create(account, data)


@router.get("/invoices/{invoice_id}", response_model=InvoiceView)
def get_invoice(
    invoice_id: str,
    background: BackgroundTasks,
    account: Account = Depends(get_account),
    service: InvoiceService = Depends(get_invoice_service),
    refresher: OverdueRefresher = Depends(get_refresher),
):
    view = service.view(account, invoice_id)
    if view.needs_refresh:
        # une seule écriture en arrière-plan par consultation, erreurs journalisées seulement
        background.add_task(refresher.run, account, invoice_id)
    return view


@router.put("/invoices/{invoice_id}", response_model=Invoice)
def update_invoice(
    invoice_id: str,
    data: InvoiceInput,
    account: Account = Depends(get_account),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.update(account, invoice_id, data)


@router.delete("/invoices/{invoice_id}")
def delete_invoice(invoice_id: str, account: Account = Depends(get_account),
                   service: InvoiceService = Depends(get_invoice_service)):
    service.delete(account, invoice_id)
    return {"success": True}


@router.patch("/invoices/{invoice_id}/status")
def update_status(
    invoice_id: str,
    payload: StatusUpdate = Body(...),
    account: Account = Depends(get_account),
    service: InvoiceService = Depends(get_invoice_service),
):
    return {"status": service.update_status(account, invoice_id, payload.status)}


@router.post("/invoices/{invoice_id}/duplicate", response_model=CreatedRef)
def duplicate_invoice(invoice_id: str, account: Account = Depends(get_account),
                      service: InvoiceService = Depends(get_invoice_service)):
    inv = service.duplicate(account, invoice_id)
    return CreatedRef(id=inv.id, reference=inv.reference)


@router.get("/invoices/{invoice_id}/preview", response_class=HTMLResponse)
def preview_invoice(invoice_id: str, account: Account = Depends(get_account),
                    service: InvoiceService = Depends(get_invoice_service)):
    return HTMLResponse(service.preview_html(account, invoice_id))


@router.get("/invoices/{invoice_id}/pdf")
def export_invoice_pdf(invoice_id: str, account: Account = Depends(get_account),
                       service: InvoiceService = Depends(get_invoice_service)):
    filename, content = service.export_pdf(account, invoice_id)
    return Response(
        content=content,
        media_type=PDF_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
