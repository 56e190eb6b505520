from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field


class ProfileRole(str, Enum):
    customer = "customer"
    operator = "operator"
    admin = "admin"


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    # same value as the auth subject (`sub` claim)
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = None

    role: ProfileRole = ProfileRole.customer

    opt_in_email: bool = Field(default=True)
    opt_in_sms: bool = Field(default=False)

    account_disabled: bool = Field(default=False)
    pending_deletion: bool = Field(default=False)
    deletion_requested_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)
