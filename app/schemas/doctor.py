from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.core.lifecycle import StaffRole

class DoctorBase(BaseModel):
    name: str
    specialization: Optional[str] = None
    cabinet_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

class DoctorCreate(DoctorBase):
    username: str
    password: str
    role: StaffRole = StaffRole.DOCTOR

class DoctorUpdate(BaseModel):
    name: Optional[str] = None
    specialization: Optional[str] = None
    cabinet_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[StaffRole] = None
    password: Optional[str] = None

class DoctorResponse(DoctorBase):
    id: UUID
    tenant_id: UUID
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class DoctorSummary(BaseModel):
    id: UUID
    name: str
    specialization: Optional[str] = None
    cabinet_number: Optional[str] = None

    class Config:
        from_attributes = True
