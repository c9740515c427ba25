from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import date, datetime

from app.core.lifecycle import VisitStatus, VisitType
from app.schemas.patient import PatientSummary
from app.schemas.doctor import DoctorSummary

class VisitCreate(BaseModel):
    patient_id: UUID
    doctor_id: UUID
    visit_date: date
    visit_type: VisitType = VisitType.CONSULTATION
    chief_complaint: Optional[str] = None
    status: VisitStatus = VisitStatus.SCHEDULED

class VisitUpdate(BaseModel):
    patient_id: Optional[UUID] = None
    doctor_id: Optional[UUID] = None
    visit_date: Optional[date] = None
    visit_type: Optional[VisitType] = None
    chief_complaint: Optional[str] = None
    status: Optional[VisitStatus] = None

class VisitResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    patient_id: UUID
    doctor_id: UUID
    visit_date: date
    visit_type: str
    chief_complaint: Optional[str] = None
    status: VisitStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class VisitDetailResponse(VisitResponse):
    patient: PatientSummary
    doctor: DoctorSummary
