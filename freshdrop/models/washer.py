from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


class Washer(SQLModel, table=True):
    __tablename__ = "washers"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="profiles.id", index=True)

    zip_codes: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    is_active: bool = Field(default=True)
    is_online: bool = Field(default=False)
    is_verified: bool = Field(default=False)
    notifications_enabled: bool = Field(default=True)
    push_notification_token: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    def serves(self, zip_codes) -> bool:
        return bool(set(self.zip_codes or []) & set(zip_codes or []))
