from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import date, datetime

from app.core.lifecycle import QueueStatus, VisitType
from app.schemas.patient import PatientSummary
from app.schemas.doctor import DoctorSummary
from app.schemas.visit import VisitResponse

class QueueAdmit(BaseModel):
    patient_id: UUID
    doctor_id: Optional[UUID] = None
    visit_id: Optional[UUID] = None
    visit_type: Optional[VisitType] = None
    visit_date: Optional[date] = None
    chief_complaint: Optional[str] = None

class QueueStatusUpdate(BaseModel):
    # Parsed by the service so unknown values surface as a validation_error envelope
    status: str

class QueueItemResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    patient_id: UUID
    doctor_id: Optional[UUID] = None
    visit_id: Optional[UUID] = None
    queue_number: int
    queue_date: date
    visit_type: Optional[str] = None
    status: QueueStatus
    created_at: datetime
    called_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class QueueAdmission(BaseModel):
    queue_item: QueueItemResponse
    visit: Optional[VisitResponse] = None

class QueueEntryResponse(QueueItemResponse):
    patient: PatientSummary
    doctor: Optional[DoctorSummary] = None
    visit: Optional[VisitResponse] = None

class QueueStats(BaseModel):
    waiting: int = 0
    serving: int = 0
    completed: int = 0
    skipped: int = 0
    cancelled: int = 0

class CallNextResponse(BaseModel):
    completed: Optional[QueueItemResponse] = None
    serving: Optional[QueueItemResponse] = None
