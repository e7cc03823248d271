from typing import List

from fastapi import APIRouter, Depends

from invoicing.api.deps import get_account, get_template_service
from invoicing.models.common import Account
from invoicing.models.template import InvoiceTemplate, TemplateInput
from invoicing.services.template_service import TemplateService

router = APIRouter(tags=["templates"])


@router.get("/templates", response_model=List[InvoiceTemplate])
def list_templates(account: Account = Depends(get_account),
                   service: TemplateService = Depends(get_template_service)):
    return service.list_templates(account)


@router.post("/templates", response_model=InvoiceTemplate, status_code=201)
def create_template(data: TemplateInput, account: Account = Depends(get_account),
                    service: TemplateService = Depends(get_template_service)):
    return service.add_template(account, data)


@router.delete("/templates/{template_id}")
def delete_template(template_id: str, account: Account = Depends(get_account),
                    service: TemplateService = Depends(get_template_service)):
    service.delete_template(account, template_id)
    return {"success": True}
