from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import and_, select

from app.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.core.lifecycle import (
    ACTIVE_QUEUE_STATUSES,
    VisitStatus,
    ensure_visit_transition,
    parse_visit_status,
)
from app.core.logger import logger
from app.core.utils import utc_now
from app.db.models import ClinicalNote, Patient, QueueItem, User, Visit
from app.db.session import atomic
from app.schemas.visit import VisitCreate, VisitUpdate
from app.services.isolation_service import EntityKind, IsolationValidator

# Statuses a visit may be created with; terminal ones only come from transitions
INITIAL_VISIT_STATUSES = (VisitStatus.SCHEDULED, VisitStatus.IN_PROGRESS)
REQUIRED_VISIT_FIELDS = ("patient_id", "doctor_id", "visit_date", "visit_type", "status")


@dataclass
class VisitDetail:
    visit: Visit
    patient: Patient
    doctor: User


class VisitService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.isolation = IsolationValidator(session)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def create_visit(self, tenant_id: UUID, data: VisitCreate) -> Visit:
        async with atomic(self.session):
            visit = await self._create_visit(tenant_id, data)
        logger.info(f"Visit {visit.id} scheduled for patient {visit.patient_id} (tenant {tenant_id})")
        return visit

    async def _create_visit(self, tenant_id: UUID, data: VisitCreate) -> Visit:
        """Insert a visit inside the caller's transaction."""
        status = parse_visit_status(data.status)
        if status not in INITIAL_VISIT_STATUSES:
            raise ValidationError(
                f"A visit cannot be created as '{status.value}'",
                details={"status": "must be Scheduled or In-Progress"},
            )

        await self.isolation.get_patient(tenant_id, data.patient_id)
        await self.isolation.get_doctor(tenant_id, data.doctor_id)

        visit = Visit(
            tenant_id=tenant_id,
            patient_id=data.patient_id,
            doctor_id=data.doctor_id,
            visit_date=data.visit_date,
            visit_type=data.visit_type.value,
            chief_complaint=data.chief_complaint,
            status=status.value,
        )
        self.session.add(visit)
        await self.session.flush()
        await self.refresh_last_visit(tenant_id, data.patient_id)
        return visit

    async def update_visit(self, tenant_id: UUID, visit_id: UUID, patch: VisitUpdate) -> Visit:
        update_data = patch.model_dump(exclude_unset=True)
        for field in REQUIRED_VISIT_FIELDS:
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be null", details={field: "required"})

        async with atomic(self.session):
            # Same lock order as queue writes: clinic first, then the visit
            await self.isolation.lock_tenant(tenant_id)
            visit = await self.isolation.get_visit(tenant_id, visit_id, for_update=True)
            previous_patient_id = visit.patient_id

            patient_changed = "patient_id" in update_data and update_data["patient_id"] != visit.patient_id
            doctor_changed = "doctor_id" in update_data and update_data["doctor_id"] != visit.doctor_id
            if patient_changed or doctor_changed:
                await self._ensure_not_queue_owned(tenant_id, visit.id)
            if patient_changed:
                await self.isolation.get_patient(tenant_id, update_data["patient_id"])
            if doctor_changed:
                await self.isolation.get_doctor(tenant_id, update_data["doctor_id"])

            if "status" in update_data:
                target = parse_visit_status(update_data["status"])
                if target.value != visit.status:
                    await self._ensure_not_queue_owned(tenant_id, visit.id)
                    ensure_visit_transition(visit.status, target)
                update_data["status"] = target.value
            if "visit_type" in update_data:
                update_data["visit_type"] = update_data["visit_type"].value

            for key, value in update_data.items():
                setattr(visit, key, value)
            visit.updated_at = utc_now()
            self.session.add(visit)
            await self.session.flush()

            await self.refresh_last_visit(tenant_id, visit.patient_id)
            if previous_patient_id != visit.patient_id:
                await self.refresh_last_visit(tenant_id, previous_patient_id)
        return visit

    async def delete_visit(self, tenant_id: UUID, visit_id: UUID) -> bool:
        async with atomic(self.session):
            await self.isolation.lock_tenant(tenant_id)
            stmt = select(Visit).where(Visit.id == visit_id, Visit.tenant_id == tenant_id)
            result = await self.session.execute(stmt)
            visit = result.scalars().first()
            if visit is None:
                return False
            patient_id = visit.patient_id

            await self._ensure_not_queue_owned(tenant_id, visit.id)
            await self.session.execute(
                update(QueueItem)
                .where(QueueItem.visit_id == visit.id, QueueItem.tenant_id == tenant_id)
                .values(visit_id=None)
            )
            await self.session.execute(
                delete(ClinicalNote).where(
                    ClinicalNote.visit_id == visit.id,
                    ClinicalNote.tenant_id == tenant_id,
                )
            )
            await self.session.execute(
                delete(Visit).where(Visit.id == visit.id, Visit.tenant_id == tenant_id)
            )
            await self.refresh_last_visit(tenant_id, patient_id)
        logger.info(f"Visit {visit_id} deleted (tenant {tenant_id})")
        return True

    async def apply_queue_cascade(self, tenant_id: UUID, visit_id: UUID, target: VisitStatus) -> Visit:
        """
        Move a queue-linked visit to ``target`` inside the caller's transaction.

        Raises InvalidTransitionError when the visit cannot reach ``target``,
        which rolls back the queue transition that triggered it.
        """
        visit = await self.isolation.get_visit(tenant_id, visit_id, for_update=True)
        if visit.status != target.value:
            ensure_visit_transition(visit.status, target)
            visit.status = target.value
            visit.updated_at = utc_now()
            self.session.add(visit)
            await self.session.flush()
            await self.refresh_last_visit(tenant_id, visit.patient_id)
        return visit

    async def _ensure_not_queue_owned(self, tenant_id: UUID, visit_id: UUID):
        stmt = select(QueueItem.id).where(
            QueueItem.tenant_id == tenant_id,
            QueueItem.visit_id == visit_id,
            QueueItem.status.in_(ACTIVE_QUEUE_STATUSES),
        )
        result = await self.session.execute(stmt)
        if result.first() is not None:
            raise InvalidTransitionError(
                "Visit is linked to an active queue item; finish or cancel the queue entry first",
                details={"visit_id": str(visit_id)},
            )

    # ------------------------------------------------------------------
    # Last-visit projection
    # ------------------------------------------------------------------
    async def refresh_last_visit(self, tenant_id: UUID, patient_id: UUID):
        stmt = (
            select(Visit.visit_date, Visit.visit_type)
            .where(
                Visit.tenant_id == tenant_id,
                Visit.patient_id == patient_id,
                Visit.status != VisitStatus.CANCELLED.value,
            )
            .order_by(Visit.visit_date.desc(), Visit.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        latest = result.first()
        await self.session.execute(
            update(Patient)
            .where(Patient.id == patient_id, Patient.tenant_id == tenant_id)
            .values(
                last_visit=latest.visit_date if latest else None,
                last_visit_type=latest.visit_type if latest else None,
            )
        )

    async def rebuild_last_visits(self, tenant_id: UUID) -> int:
        async with atomic(self.session):
            result = await self.session.execute(select(Patient.id).where(Patient.tenant_id == tenant_id))
            patient_ids = result.scalars().all()
            for patient_id in patient_ids:
                await self.refresh_last_visit(tenant_id, patient_id)
        return len(patient_ids)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def _detail_query(self, tenant_id: UUID):
        return (
            select(Visit, Patient, User)
            .join(Patient, and_(Patient.id == Visit.patient_id, Patient.tenant_id == tenant_id))
            .join(User, and_(User.id == Visit.doctor_id, User.tenant_id == tenant_id))
            .where(Visit.tenant_id == tenant_id)
        )

    async def get_visit(self, tenant_id: UUID, visit_id: UUID) -> VisitDetail:
        stmt = self._detail_query(tenant_id).where(Visit.id == visit_id)
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            raise NotFoundError(EntityKind.VISIT.value)
        return VisitDetail(*row)

    async def list_visits(
        self,
        tenant_id: UUID,
        patient_id: Optional[UUID] = None,
        doctor_id: Optional[UUID] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[VisitDetail]:
        stmt = self._detail_query(tenant_id)
        if patient_id:
            stmt = stmt.where(Visit.patient_id == patient_id)
        if doctor_id:
            stmt = stmt.where(Visit.doctor_id == doctor_id)
        if status:
            stmt = stmt.where(Visit.status == parse_visit_status(status).value)
        if date_from:
            stmt = stmt.where(Visit.visit_date >= date_from)
        if date_to:
            stmt = stmt.where(Visit.visit_date <= date_to)
        stmt = stmt.order_by(Visit.visit_date.desc(), Visit.created_at.desc())
        result = await self.session.execute(stmt)
        return [VisitDetail(*row) for row in result.all()]
