from fastapi import APIRouter, Depends

from invoicing.api.deps import get_account, get_profile_service
from invoicing.models.common import Account
from invoicing.models.profile import Profile, ProfileUpdate
from invoicing.services.profile_service import ProfileService

router = APIRouter(tags=["profile"])


@router.get("/profile", response_model=Profile)
def get_profile(account: Account = Depends(get_account),
                service: ProfileService = Depends(get_profile_service)):
    return service.get_or_create(account)


@router.put("/profile", response_model=Profile)
def update_profile(changes: ProfileUpdate, account: Account = Depends(get_account),
                   service: ProfileService = Depends(get_profile_service)):
    return service.update(account, changes)
