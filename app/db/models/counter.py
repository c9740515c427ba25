from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from datetime import date
from uuid import UUID, uuid4

class QueueCounter(SQLModel, table=True):
    """Last queue number issued to a clinic on a queue day."""
    __tablename__ = "queue_counters"
    __table_args__ = (
        UniqueConstraint("tenant_id", "queue_date", name="uq_queue_counters_day"),
    )
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: UUID = Field(foreign_key="tenants.id")
    queue_date: date
    last_number: int = Field(default=0)
