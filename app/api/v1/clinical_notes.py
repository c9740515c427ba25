from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api.deps import get_current_tenant_id
from app.db.session import get_session
from app.schemas.clinical_note import ClinicalNoteCreate, ClinicalNoteResponse, ClinicalNoteUpdate
from app.services.clinical_note_service import ClinicalNoteService

router = APIRouter()

async def get_clinical_note_service(session: AsyncSession = Depends(get_session)) -> ClinicalNoteService:
    return ClinicalNoteService(session)

@router.post("/", response_model=ClinicalNoteResponse)
async def create_clinical_note(
    payload: ClinicalNoteCreate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: ClinicalNoteService = Depends(get_clinical_note_service)
):
    return await service.create_clinical_note(tenant_id, payload)

@router.get("/{note_id}", response_model=ClinicalNoteResponse)
async def read_clinical_note(
    note_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: ClinicalNoteService = Depends(get_clinical_note_service)
):
    return await service.get_clinical_note(tenant_id, note_id)

@router.patch("/{note_id}", response_model=ClinicalNoteResponse)
async def update_clinical_note(
    note_id: UUID,
    patch: ClinicalNoteUpdate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: ClinicalNoteService = Depends(get_clinical_note_service)
):
    return await service.update_clinical_note(tenant_id, note_id, patch)

@router.delete("/{note_id}", status_code=204)
async def delete_clinical_note(
    note_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: ClinicalNoteService = Depends(get_clinical_note_service)
):
    await service.delete_clinical_note(tenant_id, note_id)
    return Response(status_code=204)
