from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Index, UniqueConstraint, text
from typing import Optional, TYPE_CHECKING
from datetime import date, datetime
from uuid import UUID, uuid4

from app.core.lifecycle import QueueStatus
from app.core.utils import utc_now

if TYPE_CHECKING:
    from .tenant import Tenant

_SERVING = text("status = 'serving'")

class QueueItem(SQLModel, table=True):
    __tablename__ = "queue_items"
    __table_args__ = (
        UniqueConstraint("tenant_id", "queue_date", "queue_number", name="uq_queue_items_number"),
        # One patient being served per clinic and day
        Index(
            "uq_queue_items_serving",
            "tenant_id",
            "queue_date",
            unique=True,
            postgresql_where=_SERVING,
            sqlite_where=_SERVING,
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    patient_id: UUID = Field(foreign_key="patients.id", index=True)
    doctor_id: Optional[UUID] = Field(default=None, foreign_key="users.id")
    visit_id: Optional[UUID] = Field(default=None, foreign_key="visits.id", index=True)
    queue_number: int
    queue_date: date
    visit_type: Optional[str] = None
    status: str = Field(default=QueueStatus.WAITING.value) # waiting, serving, completed, skipped, cancelled
    created_at: datetime = Field(default_factory=utc_now)
    called_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    tenant: "Tenant" = Relationship(back_populates="queue_items")
