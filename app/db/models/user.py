from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

from app.core.lifecycle import StaffRole
from app.core.utils import utc_now

if TYPE_CHECKING:
    from .tenant import Tenant

class User(SQLModel, table=True):
    """Clinic staff member. Doctors are users with the doctor or head_doctor role."""
    __tablename__ = "users"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    role: str = Field(default=StaffRole.USER.value) # admin, head_doctor, doctor, receptionist, user
    name: str
    username: str = Field(unique=True, index=True)
    email: Optional[str] = None
    phone: Optional[str] = None
    password_hash: Optional[str] = None
    specialization: Optional[str] = None
    cabinet_number: Optional[str] = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    last_login: Optional[datetime] = None

    tenant: "Tenant" = Relationship(back_populates="users")
