from typing import List

from fastapi import APIRouter, Depends

from invoicing.api.deps import get_account, get_client_service
from invoicing.models.client import Client, ClientInput
from invoicing.models.common import Account
from invoicing.services.client_service import ClientService

router = APIRouter(tags=["clients"])


@router.get("/clients", response_model=List[Client])
def list_clients(account: Account = Depends(get_account),
                 service: ClientService = Depends(get_client_service)):
    return service.list_clients(account)


@router.post("/clients", response_model=Client, status_code=201)
def create_client(data: ClientInput, account: Account = Depends(get_account),
                  service: ClientService = Depends(get_client_service)):
    return service.add_client(account, data)


@router.get("/clients/{client_id}", response_model=Client)
def get_client(client_id: str, account: Account = Depends(get_account),
               service: ClientService = Depends(get_client_service)):
    return service.get_by_id(account, client_id)


@router.put("/clients/{client_id}", response_model=Client)
def update_client(client_id: str, data: ClientInput, account: Account = Depends(get_account),
                  service: ClientService = Depends(get_client_service)):
    return service.update_client(account, client_id, data)


@router.delete("/clients/{client_id}")
def delete_client(client_id: str, account: Account = Depends(get_account),
                  service: ClientService = Depends(get_client_service)):
    removed = service.delete_client(account, client_id)
    return {"success": True, "deleted_invoices": removed}
