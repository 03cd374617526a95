from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime

from src.contracts.enums import ContractStatus

class ContractRequest(BaseModel):
    """Contract submission or resubmission from a bus operator"""
    vat_code: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    phone: str = Field(..., min_length=6, max_length=30)
    address: str = Field(..., min_length=1, max_length=500)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    operation_area: str = Field(..., min_length=1, max_length=255)

    @field_validator('vat_code', 'phone', 'address', 'operation_area')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Field must not be blank')
        return v

    @model_validator(mode='after')
    def validate_period(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError('end_date must not be before start_date')
        return self

class Attachment(BaseModel):
    """License file handed to object storage"""
    filename: str
    content: bytes
    content_type: Optional[str] = None

class ContractReview(BaseModel):
    """Admin review decision; action is matched case-insensitively"""
    action: str
    admin_note: Optional[str] = None

class ContractResponse(BaseModel):
    id: int
    vat_code: str
    email: str
    phone: str
    address: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    operation_area: str
    license_url: Optional[str] = None
    status: ContractStatus
    admin_note: Optional[str] = None
    created_date: datetime
    created_by: Optional[str] = None
    last_modified: Optional[datetime] = None
    last_modified_by: Optional[str] = None
    approved_date: Optional[datetime] = None

    class Config:
        from_attributes = True

class ContractPage(BaseModel):
    items: List[ContractResponse]
    total: int
    page: int
    limit: int
    total_pages: int

class ContractCount(BaseModel):
    status: ContractStatus
    count: int
