from pydantic import BaseModel
from typing import Optional


class AccountDeletionCreate(BaseModel):
    reason: Optional[str] = None
    requestDataExport: bool = False


class OperatorApprovalData(BaseModel):
    application_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    zip_code: Optional[str] = None


class OperatorApprovalRequest(BaseModel):
    approval_data: OperatorApprovalData
