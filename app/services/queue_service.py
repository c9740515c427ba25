from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import and_, func, or_, select

from app.core.exceptions import ConcurrencyError, InvalidTransitionError, ValidationError
from app.core.lifecycle import (
    ACTIVE_QUEUE_STATUSES,
    QUEUE_VISIT_CASCADE,
    QueueStatus,
    VisitStatus,
    VisitType,
    ensure_queue_transition,
    is_terminal_visit_status,
)
from app.core.logger import logger
from app.core.utils import queue_day, utc_now
from app.db.models import Patient, QueueItem, User, Visit
from app.db.session import atomic
from app.schemas.queue import QueueAdmit
from app.schemas.visit import VisitCreate
from app.services.counter_service import QueueNumberAllocator
from app.services.isolation_service import IsolationValidator
from app.services.visit_service import VisitService


@dataclass
class QueueEntry:
    item: QueueItem
    patient: Patient
    doctor: Optional[User] = None
    visit: Optional[Visit] = None


class QueueService:
    """
    Same-day walk-in queue of a clinic.

    Every write runs in one transaction that first locks the clinic row, so
    numbering and the single serving slot stay consistent per clinic.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.isolation = IsolationValidator(session)
        self.allocator = QueueNumberAllocator(session)
        self.visits = VisitService(session)

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------
    async def admit(
        self,
        tenant_id: UUID,
        data: QueueAdmit,
        as_of: Optional[datetime] = None,
    ) -> Tuple[QueueItem, Optional[Visit]]:
        now = as_of or utc_now()
        day = queue_day(now)

        async with atomic(self.session):
            await self.isolation.lock_tenant(tenant_id)
            await self.isolation.get_patient(tenant_id, data.patient_id)
            if data.doctor_id:
                await self.isolation.get_doctor(tenant_id, data.doctor_id)

            visit = None
            if data.visit_id:
                visit = await self._existing_visit_for_admission(tenant_id, data)
            elif data.doctor_id:
                visit = await self.visits._create_visit(
                    tenant_id,
                    VisitCreate(
                        patient_id=data.patient_id,
                        doctor_id=data.doctor_id,
                        visit_date=data.visit_date or day,
                        visit_type=data.visit_type or VisitType.CONSULTATION,
                        chief_complaint=data.chief_complaint,
                        status=VisitStatus.SCHEDULED,
                    ),
                )

            visit_type = data.visit_type.value if data.visit_type else None
            if visit_type is None and visit is not None:
                visit_type = visit.visit_type

            queue_number = await self.allocator.next_number(tenant_id, now)
            item = QueueItem(
                tenant_id=tenant_id,
                patient_id=data.patient_id,
                doctor_id=data.doctor_id or (visit.doctor_id if visit else None),
                visit_id=visit.id if visit else None,
                queue_number=queue_number,
                queue_date=day,
                visit_type=visit_type,
                status=QueueStatus.WAITING.value,
                created_at=now,
            )
            self.session.add(item)
            try:
                await self.session.flush()
            except IntegrityError as exc:
                raise ConcurrencyError(
                    "Queue number was taken by a concurrent admission, please retry",
                    details={"queue_number": queue_number},
                ) from exc

        logger.info(f"Admitted patient {data.patient_id} as #{queue_number} on {day} (tenant {tenant_id})")
        return item, visit

    async def _existing_visit_for_admission(self, tenant_id: UUID, data: QueueAdmit) -> Visit:
        visit = await self.isolation.get_visit(tenant_id, data.visit_id, for_update=True)
        if visit.patient_id != data.patient_id:
            raise ValidationError(
                "Visit belongs to a different patient",
                details={"visit_id": "must belong to patient_id"},
            )
        if data.doctor_id and visit.doctor_id != data.doctor_id:
            raise ValidationError(
                "Visit is assigned to a different doctor",
                details={"visit_id": "must belong to doctor_id"},
            )
        if is_terminal_visit_status(visit.status):
            raise InvalidTransitionError(
                f"Visit is already {visit.status}",
                details={"visit_id": str(visit.id), "status": visit.status},
            )
        stmt = select(QueueItem.id).where(
            QueueItem.tenant_id == tenant_id,
            QueueItem.visit_id == visit.id,
            QueueItem.status.in_(ACTIVE_QUEUE_STATUSES),
        )
        result = await self.session.execute(stmt)
        if result.first() is not None:
            raise InvalidTransitionError(
                "Visit is already in the queue",
                details={"visit_id": str(visit.id)},
            )
        return visit

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    async def set_status(self, tenant_id: UUID, queue_item_id: UUID, status: Union[str, QueueStatus]) -> QueueItem:
        async with atomic(self.session):
            await self.isolation.lock_tenant(tenant_id)
            item = await self.isolation.get_queue_item(tenant_id, queue_item_id, for_update=True)
            await self._transition(tenant_id, item, status)
        logger.info(f"Queue item {item.id} (#{item.queue_number}) is now {item.status} (tenant {tenant_id})")
        return item

    async def call_next(self, tenant_id: UUID) -> Tuple[Optional[QueueItem], Optional[QueueItem]]:
        """
        Complete the patient being served today and serve the next waiting one.

        Returns ``(completed, promoted)``; either may be None.
        """
        day = queue_day()
        async with atomic(self.session):
            await self.isolation.lock_tenant(tenant_id)

            completed = await self._first_with_status(tenant_id, day, QueueStatus.SERVING)
            if completed is not None:
                await self._transition(tenant_id, completed, QueueStatus.COMPLETED)

            promoted = await self._first_with_status(tenant_id, day, QueueStatus.WAITING)
            if promoted is not None:
                await self._transition(tenant_id, promoted, QueueStatus.SERVING)

        logger.info(
            f"Call next (tenant {tenant_id}): completed "
            f"#{completed.queue_number if completed else '-'}, serving "
            f"#{promoted.queue_number if promoted else '-'}"
        )
        return completed, promoted

    async def _transition(self, tenant_id: UUID, item: QueueItem, status: Union[str, QueueStatus]) -> QueueItem:
        target = ensure_queue_transition(item.status, status)

        if target is QueueStatus.SERVING:
            serving = await self._first_with_status(tenant_id, item.queue_date, QueueStatus.SERVING)
            if serving is not None and serving.id != item.id:
                raise InvalidTransitionError(
                    f"Queue number {serving.queue_number} is already being served",
                    details={"serving_id": str(serving.id)},
                )
            item.called_at = utc_now()

        cascade = QUEUE_VISIT_CASCADE.get(target)
        if cascade is not None:
            item.finished_at = utc_now()
            if item.visit_id:
                await self.visits.apply_queue_cascade(tenant_id, item.visit_id, cascade)

        item.status = target.value
        self.session.add(item)
        # Flush per item so a completion is written before the next promotion
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConcurrencyError(
                "Another queue item was served at the same time, please retry",
                details={"queue_item_id": str(item.id)},
            ) from exc
        return item

    async def _first_with_status(self, tenant_id: UUID, day, status: QueueStatus) -> Optional[QueueItem]:
        stmt = (
            select(QueueItem)
            .where(
                QueueItem.tenant_id == tenant_id,
                QueueItem.queue_date == day,
                QueueItem.status == status.value,
            )
            .order_by(QueueItem.queue_number)
            .limit(1)
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def todays_queue(self, tenant_id: UUID) -> List[QueueEntry]:
        # Joins repeat the tenant predicate even though references were validated on write
        stmt = (
            select(QueueItem, Patient, User, Visit)
            .join(Patient, and_(Patient.id == QueueItem.patient_id, Patient.tenant_id == tenant_id))
            .outerjoin(User, and_(User.id == QueueItem.doctor_id, User.tenant_id == tenant_id))
            .outerjoin(Visit, and_(Visit.id == QueueItem.visit_id, Visit.tenant_id == tenant_id))
            .where(
                QueueItem.tenant_id == tenant_id,
                QueueItem.queue_date == queue_day(),
                or_(QueueItem.doctor_id.is_(None), User.id.is_not(None)),
                or_(QueueItem.visit_id.is_(None), Visit.id.is_not(None)),
            )
            .order_by(QueueItem.queue_number)
        )
        result = await self.session.execute(stmt)
        return [QueueEntry(item, patient, doctor, visit) for item, patient, doctor, visit in result.all()]

    async def current_serving(self, tenant_id: UUID) -> Optional[QueueItem]:
        stmt = select(QueueItem).where(
            QueueItem.tenant_id == tenant_id,
            QueueItem.queue_date == queue_day(),
            QueueItem.status == QueueStatus.SERVING.value,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def queue_stats(self, tenant_id: UUID) -> Dict[str, int]:
        stmt = (
            select(QueueItem.status, func.count(QueueItem.id))
            .where(
                QueueItem.tenant_id == tenant_id,
                QueueItem.queue_date == queue_day(),
            )
            .group_by(QueueItem.status)
        )
        result = await self.session.execute(stmt)
        stats = {status.value: 0 for status in QueueStatus}
        for status, count in result.all():
            stats[status] = count
        return stats
