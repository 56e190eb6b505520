from pydantic import BaseModel
from typing import Optional


class OrderStatusUpdate(BaseModel):
    status: str
    step: Optional[int] = None
    notify: bool = True


class ProgressResponse(BaseModel):
    order_id: str
    status: str
    step: Optional[int] = None
    step_label: Optional[str] = None
    progress: float
    label: str
    description: str
    icon: str
    animate: bool
