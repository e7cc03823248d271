from pydantic import BaseModel, Field
from .common import TimeStamped, gen_id


class Client(TimeStamped):
    id: str = Field(default_factory=gen_id)
    user_id: str
    reference: str
    name: str
    address: str | None = None


class ClientInput(BaseModel):
    reference: str | None = None  # vide -> générée (C-000001)
    name: str
    address: str | None = None
