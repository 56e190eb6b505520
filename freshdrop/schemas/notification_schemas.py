from pydantic import BaseModel
from typing import List, Optional


class ChannelOverrides(BaseModel):
    email: Optional[bool] = None
    sms: Optional[bool] = None


class OrderNotificationRequest(BaseModel):
    # order chat messages use notification_type="message" and snake_case ids
    notification_type: Optional[str] = None
    customer_id: Optional[str] = None
    operator_id: Optional[str] = None
    order_id: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    sender_name: Optional[str] = None

    orderId: Optional[str] = None
    customerId: Optional[str] = None
    status: Optional[str] = None
    step: Optional[int] = None
    currentStep: Optional[int] = None
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None
    customerName: Optional[str] = None
    orderNumber: Optional[str] = None
    channels: Optional[ChannelOverrides] = None


class OperatorOrderData(BaseModel):
    zipCode: Optional[str] = None
    serviceName: Optional[str] = None
    totalAmount: Optional[int] = None  # cents
    isExpress: bool = False
    customerName: Optional[str] = None
    pickupAddress: Optional[str] = None


class NotifyOperatorsRequest(BaseModel):
    type: str
    zipCodes: Optional[List[str]] = None
    orderId: Optional[str] = None
    title: str
    message: str
    orderData: Optional[OperatorOrderData] = None
