from typing import List
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import ValidationError
from app.core.logger import logger
from app.db.models import ClinicalNote
from app.db.session import atomic
from app.schemas.clinical_note import ClinicalNoteCreate, ClinicalNoteUpdate
from app.services.isolation_service import IsolationValidator

class ClinicalNoteService:
    """Clinical notes are bound to the clinic of their visit."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.isolation = IsolationValidator(session)

    async def create_clinical_note(self, tenant_id: UUID, data: ClinicalNoteCreate) -> ClinicalNote:
        async with atomic(self.session):
            visit = await self.isolation.get_visit(tenant_id, data.visit_id)
            await self.isolation.get_doctor(tenant_id, data.doctor_id)

            note = ClinicalNote(**data.model_dump(), tenant_id=visit.tenant_id)
            self.session.add(note)
            await self.session.flush()
        logger.info(f"Clinical note {note.id} added to visit {note.visit_id} (tenant {tenant_id})")
        return note

    async def update_clinical_note(self, tenant_id: UUID, note_id: UUID, patch: ClinicalNoteUpdate) -> ClinicalNote:
        update_data = patch.model_dump(exclude_unset=True)
        for field in ("visit_id", "doctor_id", "follow_up_needed"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be null", details={field: "required"})

        async with atomic(self.session):
            note = await self.isolation.get_clinical_note(tenant_id, note_id)
            if "visit_id" in update_data and update_data["visit_id"] != note.visit_id:
                await self.isolation.get_visit(tenant_id, update_data["visit_id"])
            if "doctor_id" in update_data and update_data["doctor_id"] != note.doctor_id:
                await self.isolation.get_doctor(tenant_id, update_data["doctor_id"])

            for key, value in update_data.items():
                setattr(note, key, value)
            self.session.add(note)
            await self.session.flush()
        return note

    async def delete_clinical_note(self, tenant_id: UUID, note_id: UUID) -> bool:
        async with atomic(self.session):
            note = await self.isolation.get_clinical_note(tenant_id, note_id)
            result = await self.session.execute(
                delete(ClinicalNote).where(
                    ClinicalNote.id == note.id,
                    ClinicalNote.tenant_id == tenant_id,
                )
            )
        return result.rowcount > 0

    async def get_clinical_note(self, tenant_id: UUID, note_id: UUID) -> ClinicalNote:
        return await self.isolation.get_clinical_note(tenant_id, note_id)

    async def list_clinical_notes(self, tenant_id: UUID, visit_id: UUID) -> List[ClinicalNote]:
        await self.isolation.get_visit(tenant_id, visit_id)
        stmt = (
            select(ClinicalNote)
            .where(ClinicalNote.visit_id == visit_id, ClinicalNote.tenant_id == tenant_id)
            .order_by(ClinicalNote.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
