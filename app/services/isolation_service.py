from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import NotFoundError
from app.core.lifecycle import DOCTOR_ROLES
from app.core.logger import logger
from app.db.models import ClinicalNote, Patient, QueueItem, Tenant, User, Visit


class EntityKind(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    VISIT = "visit"
    QUEUE_ITEM = "queue_item"
    CLINICAL_NOTE = "clinical_note"


class IsolationValidator:
    """
    Resolves client supplied ids inside one clinic.

    Every lookup filters by id and tenant in the same statement, so an id owned
    by another clinic behaves exactly like an id that does not exist.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _owned_query(self, tenant_id: UUID, kind: EntityKind, entity_id: UUID):
        if kind is EntityKind.PATIENT:
            return select(Patient).where(Patient.id == entity_id, Patient.tenant_id == tenant_id)
        if kind is EntityKind.DOCTOR:
            return select(User).where(
                User.id == entity_id,
                User.tenant_id == tenant_id,
                User.role.in_(DOCTOR_ROLES),
                User.is_active == True,
            )
        if kind is EntityKind.VISIT:
            return select(Visit).where(Visit.id == entity_id, Visit.tenant_id == tenant_id)
        if kind is EntityKind.QUEUE_ITEM:
            return select(QueueItem).where(QueueItem.id == entity_id, QueueItem.tenant_id == tenant_id)
        if kind is EntityKind.CLINICAL_NOTE:
            # Notes carry their own tenant id; the parent visit must agree with it
            return (
                select(ClinicalNote)
                .join(Visit, Visit.id == ClinicalNote.visit_id)
                .where(
                    ClinicalNote.id == entity_id,
                    ClinicalNote.tenant_id == tenant_id,
                    Visit.tenant_id == tenant_id,
                )
            )
        raise ValueError(f"Unsupported entity kind: {kind}")

    async def validate_owned(
        self,
        tenant_id: UUID,
        kind: EntityKind,
        entity_id: UUID,
        for_update: bool = False,
    ) -> Any:
        kind = EntityKind(kind)
        stmt = self._owned_query(tenant_id, kind, entity_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        entity = result.scalars().first()
        if entity is None:
            logger.warning(f"Rejected {kind.value} reference {entity_id} for tenant {tenant_id}")
            raise NotFoundError(kind.value)
        return entity

    async def get_patient(self, tenant_id: UUID, patient_id: UUID) -> Patient:
        return await self.validate_owned(tenant_id, EntityKind.PATIENT, patient_id)

    async def get_doctor(self, tenant_id: UUID, doctor_id: UUID) -> User:
        return await self.validate_owned(tenant_id, EntityKind.DOCTOR, doctor_id)

    async def get_visit(self, tenant_id: UUID, visit_id: UUID, for_update: bool = False) -> Visit:
        return await self.validate_owned(tenant_id, EntityKind.VISIT, visit_id, for_update=for_update)

    async def get_queue_item(self, tenant_id: UUID, queue_item_id: UUID, for_update: bool = False) -> QueueItem:
        return await self.validate_owned(tenant_id, EntityKind.QUEUE_ITEM, queue_item_id, for_update=for_update)

    async def get_clinical_note(self, tenant_id: UUID, note_id: UUID) -> ClinicalNote:
        return await self.validate_owned(tenant_id, EntityKind.CLINICAL_NOTE, note_id)

    async def lock_tenant(self, tenant_id: UUID) -> Tenant:
        """Serialize queue writes of one clinic (no-op on SQLite)."""
        stmt = select(Tenant).where(Tenant.id == tenant_id).with_for_update()
        result = await self.session.execute(stmt)
        tenant = result.scalars().first()
        if tenant is None:
            raise NotFoundError("clinic", "Clinic not found")
        return tenant
