from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_number: Optional[str] = Field(default=None, index=True)

    customer_id: str = Field(foreign_key="profiles.id", index=True)
    operator_id: Optional[str] = Field(default=None, foreign_key="profiles.id")

    status: str = Field(default="placed", index=True)
    # 1..13, see constants.order_status.ORDER_STEPS
    current_step: Optional[int] = None

    service_name: Optional[str] = None
    zip_code: Optional[str] = None
    is_express: bool = Field(default=False)

    total_amount_cents: int = 0
    operator_earnings_cents: Optional[int] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    claimed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
