from pydantic import BaseModel, Field
from datetime import datetime, timezone
import uuid


def gen_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimeStamped(BaseModel):
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def touch(self):
        object.__setattr__(self, "updated_at", utcnow())


class Account(BaseModel):
    """Identité du compte courant, passée explicitement à chaque service."""
    id: str
    email: str | None = None
