from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.utils import queue_day
from app.db.models import QueueCounter

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

class QueueNumberAllocator:
    """
    Hands out daily queue numbers per clinic from the ``queue_counters`` row.

    ``next_number`` increments the counter inside the caller's transaction: the
    row stays locked until commit and a rollback returns the number, so the
    numbers of one day are gapless and unique even under concurrent admissions.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def next_number(self, tenant_id: UUID, as_of: Optional[datetime] = None) -> int:
        day = queue_day(as_of)
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            return await self._next_number_locked(tenant_id, day)

        stmt = insert(QueueCounter).values(
            id=uuid4(),
            tenant_id=tenant_id,
            queue_date=day,
            last_number=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["tenant_id", "queue_date"],
            set_={"last_number": QueueCounter.last_number + 1},
        ).returning(QueueCounter.last_number)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def _next_number_locked(self, tenant_id: UUID, day) -> int:
        stmt = select(QueueCounter).where(
            QueueCounter.tenant_id == tenant_id,
            QueueCounter.queue_date == day,
        ).with_for_update()
        result = await self.session.execute(stmt)
        counter = result.scalars().first()
        if counter is None:
            counter = QueueCounter(tenant_id=tenant_id, queue_date=day, last_number=0)
        counter.last_number += 1
        self.session.add(counter)
        await self.session.flush()
        return counter.last_number

    async def current_number(self, tenant_id: UUID, as_of: Optional[datetime] = None) -> int:
        """Last number issued on the day of ``as_of``, 0 when none."""
        stmt = select(QueueCounter.last_number).where(
            QueueCounter.tenant_id == tenant_id,
            QueueCounter.queue_date == queue_day(as_of),
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0
