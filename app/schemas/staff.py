from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.core.lifecycle import StaffRole

class StaffCreate(BaseModel):
    name: str
    username: str
    password: str
    role: StaffRole = StaffRole.RECEPTIONIST
    email: Optional[str] = None
    phone: Optional[str] = None
    specialization: Optional[str] = None
    cabinet_number: Optional[str] = None

class StaffResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    username: str
    role: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True
