from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import date, datetime

class PatientBase(BaseModel):
    name: str
    phone: str
    age: Optional[int] = None
    date_of_birth: Optional[date] = None
    blood_type: Optional[str] = None
    address: Optional[str] = None
    allergies: Optional[str] = None
    chronic_conditions: Optional[str] = None
    notes: Optional[str] = None

class PatientCreate(PatientBase):
    pass

class PatientUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    age: Optional[int] = None
    date_of_birth: Optional[date] = None
    blood_type: Optional[str] = None
    address: Optional[str] = None
    allergies: Optional[str] = None
    chronic_conditions: Optional[str] = None
    notes: Optional[str] = None

class PatientResponse(PatientBase):
    id: UUID
    tenant_id: UUID
    created_at: datetime
    last_visit: Optional[date] = None
    last_visit_type: Optional[str] = None

    class Config:
        from_attributes = True

class PatientSummary(BaseModel):
    id: UUID
    name: str
    phone: str
    age: Optional[int] = None

    class Config:
        from_attributes = True
