from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import date, datetime
from uuid import UUID, uuid4

from app.core.lifecycle import VisitStatus, VisitType
from app.core.utils import utc_now

if TYPE_CHECKING:
    from .tenant import Tenant
    from .patient import Patient

class Visit(SQLModel, table=True):
    __tablename__ = "visits"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    patient_id: UUID = Field(foreign_key="patients.id", index=True)
    doctor_id: UUID = Field(foreign_key="users.id", index=True)
    visit_date: date
    visit_type: str = Field(default=VisitType.CONSULTATION.value)
    chief_complaint: Optional[str] = None
    status: str = Field(default=VisitStatus.SCHEDULED.value) # Scheduled, In-Progress, Completed, Cancelled
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    tenant: "Tenant" = Relationship(back_populates="visits")
    patient: "Patient" = Relationship(back_populates="visits")
    clinical_notes: List["ClinicalNote"] = Relationship(back_populates="visit")

class ClinicalNote(SQLModel, table=True):
    __tablename__ = "clinical_notes"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    # Copied from the parent visit on creation
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    visit_id: UUID = Field(foreign_key="visits.id", index=True)
    doctor_id: UUID = Field(foreign_key="users.id")
    symptoms: Optional[str] = None
    clinical_examination: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment_given: Optional[str] = None
    medications: Optional[str] = None
    recommendations: Optional[str] = None
    follow_up_needed: bool = Field(default=False)
    follow_up_date: Optional[date] = None
    additional_notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)

    visit: "Visit" = Relationship(back_populates="clinical_notes")
