from typing import List
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import func, or_, select

from app.core.exceptions import ConflictError, ValidationError
from app.core.logger import logger
from app.db.models import Patient, QueueItem, Visit
from app.db.session import atomic
from app.schemas.patient import PatientCreate, PatientUpdate
from app.services.isolation_service import EntityKind, IsolationValidator

class PatientService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.isolation = IsolationValidator(session)

    async def create_patient(self, tenant_id: UUID, data: PatientCreate) -> Patient:
        async with atomic(self.session):
            patient = Patient(**data.model_dump(), tenant_id=tenant_id)
            self.session.add(patient)
        return patient

    async def update_patient(self, tenant_id: UUID, patient_id: UUID, patch: PatientUpdate) -> Patient:
        update_data = patch.model_dump(exclude_unset=True)
        for field in ("name", "phone"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be null", details={field: "required"})

        async with atomic(self.session):
            patient = await self.isolation.validate_owned(tenant_id, EntityKind.PATIENT, patient_id, for_update=True)
            for key, value in update_data.items():
                setattr(patient, key, value)
            self.session.add(patient)
            await self.session.flush()
        return patient

    async def delete_patient(self, tenant_id: UUID, patient_id: UUID) -> bool:
        """
        Hard delete a patient with no history.

        Patients referenced by visits or queue items are kept; returns False
        when no such patient exists in the clinic.
        """
        async with atomic(self.session):
            await self.isolation.lock_tenant(tenant_id)
            stmt = select(Patient.id).where(Patient.id == patient_id, Patient.tenant_id == tenant_id)
            if (await self.session.execute(stmt)).first() is None:
                return False

            visits = await self._count(Visit, tenant_id, Visit.patient_id == patient_id)
            queue_items = await self._count(QueueItem, tenant_id, QueueItem.patient_id == patient_id)
            if visits or queue_items:
                raise ConflictError(
                    "Patient has visits or queue entries and cannot be deleted",
                    details={"visits": visits, "queue_items": queue_items},
                )
            await self.session.execute(
                delete(Patient).where(Patient.id == patient_id, Patient.tenant_id == tenant_id)
            )
        logger.info(f"Patient {patient_id} deleted (tenant {tenant_id})")
        return True

    async def _count(self, model, tenant_id: UUID, *criteria) -> int:
        stmt = select(func.count(model.id)).where(model.tenant_id == tenant_id, *criteria)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_patient(self, tenant_id: UUID, patient_id: UUID) -> Patient:
        return await self.isolation.get_patient(tenant_id, patient_id)

    def _ordered(self, stmt):
        # Most recently seen first, patients never seen last
        return stmt.order_by(
            Patient.last_visit.is_(None),
            Patient.last_visit.desc(),
            Patient.created_at.desc(),
        )

    async def get_patients(self, tenant_id: UUID) -> List[Patient]:
        stmt = self._ordered(select(Patient).where(Patient.tenant_id == tenant_id))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def search_patients(self, tenant_id: UUID, query: str) -> List[Patient]:
        pattern = f"%{query.strip()}%"
        stmt = self._ordered(
            select(Patient).where(
                Patient.tenant_id == tenant_id,
                or_(Patient.name.ilike(pattern), Patient.phone.ilike(pattern)),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
