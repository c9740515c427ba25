from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import date, datetime

class ClinicalNoteFields(BaseModel):
    symptoms: Optional[str] = None
    clinical_examination: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment_given: Optional[str] = None
    medications: Optional[str] = None
    recommendations: Optional[str] = None
    follow_up_needed: bool = False
    follow_up_date: Optional[date] = None
    additional_notes: Optional[str] = None

class ClinicalNoteCreate(ClinicalNoteFields):
    visit_id: UUID
    doctor_id: UUID

class ClinicalNoteUpdate(BaseModel):
    visit_id: Optional[UUID] = None
    doctor_id: Optional[UUID] = None
    symptoms: Optional[str] = None
    clinical_examination: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment_given: Optional[str] = None
    medications: Optional[str] = None
    recommendations: Optional[str] = None
    follow_up_needed: Optional[bool] = None
    follow_up_date: Optional[date] = None
    additional_notes: Optional[str] = None

class ClinicalNoteResponse(ClinicalNoteFields):
    id: UUID
    visit_id: UUID
    doctor_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True
