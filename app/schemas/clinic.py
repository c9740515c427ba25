from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime

class ClinicBase(BaseModel):
    name: str
    contact_email: str
    contact_phone: Optional[str] = None
    address: Optional[str] = None

class ClinicCreate(ClinicBase):
    pass

class ClinicResponse(ClinicBase):
    id: UUID
    slug: str
    created_at: datetime

    class Config:
        from_attributes = True

class AdminCredentials(BaseModel):
    username: str
    password: str

class ClinicCreatedResponse(BaseModel):
    tenant_id: UUID
    clinic: ClinicResponse
    admin_credentials: AdminCredentials
