from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field


class DeletionStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    cancelled = "cancelled"


class AccountDeletionRequest(SQLModel, table=True):
    __tablename__ = "account_deletion_requests"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="profiles.id", index=True)

    reason: Optional[str] = None
    status: DeletionStatus = DeletionStatus.pending
    data_export_requested: bool = Field(default=False)

    confirmation_token: Optional[str] = None
    scheduled_deletion_at: datetime

    created_at: datetime = Field(default_factory=datetime.utcnow)


class DataExportLog(SQLModel, table=True):
    __tablename__ = "data_export_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="profiles.id", index=True)
    export_type: str
    status: str = "requested"

    created_at: datetime = Field(default_factory=datetime.utcnow)
