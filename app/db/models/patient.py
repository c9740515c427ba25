from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import date, datetime
from uuid import UUID, uuid4

from app.core.utils import utc_now

if TYPE_CHECKING:
    from .tenant import Tenant
    from .visit import Visit

class Patient(SQLModel, table=True):
    __tablename__ = "patients"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    name: str
    phone: str
    age: Optional[int] = None
    date_of_birth: Optional[date] = None
    blood_type: Optional[str] = None
    address: Optional[str] = None
    allergies: Optional[str] = None
    chronic_conditions: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)

    # Projection of the latest visit, maintained by VisitService only
    last_visit: Optional[date] = None
    last_visit_type: Optional[str] = None

    tenant: "Tenant" = Relationship(back_populates="patients")
    visits: List["Visit"] = Relationship(back_populates="patient")
