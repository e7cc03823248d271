from __future__ import annotations
import logging

from invoicing.models.common import Account
from invoicing.models.profile import Profile, ProfileUpdate
from invoicing.storage.store import JsonStore

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, store: JsonStore):
        self.store = store

    def get_or_create(self, account: Account) -> Profile:
        """Profil émetteur du compte, créé à la première lecture avec l'email du compte."""
        profile = self.store.get_profile(account.id)
        if profile is None:
            profile = Profile(id=account.id, email=account.email or "")
            self.store.save_profile(profile)
            logger.info("Profil créé pour le compte %s", account.id)
        return profile

    def update(self, account: Account, changes: ProfileUpdate) -> Profile:
        profile = self.get_or_create(account)
        updated = profile.model_copy(update=changes.model_dump(exclude_unset=True))
        if changes.banking_info is not None:
            updated.banking_info = changes.banking_info
        updated.touch()
        return self.store.save_profile(updated)
