from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from .common import TimeStamped


class BankingInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bank_name: Optional[str] = None
    rib: Optional[str] = Field(default=None, alias="RIB")
    iban: Optional[str] = Field(default=None, alias="IBAN")
    bic: Optional[str] = Field(default=None, alias="BIC")


class Profile(TimeStamped):
    id: str  # = id du compte
    company_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    banking_info: Optional[BankingInfo] = None


class ProfileUpdate(BaseModel):
    company_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    banking_info: Optional[BankingInfo] = None
