from datetime import date
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID

from app.api.deps import get_current_tenant_id
from app.core.exceptions import NotFoundError
from app.db.session import get_session
from app.schemas.clinical_note import ClinicalNoteResponse
from app.schemas.doctor import DoctorSummary
from app.schemas.patient import PatientSummary
from app.schemas.visit import VisitCreate, VisitDetailResponse, VisitResponse, VisitUpdate
from app.services.clinical_note_service import ClinicalNoteService
from app.services.visit_service import VisitDetail, VisitService

router = APIRouter()

async def get_visit_service(session: AsyncSession = Depends(get_session)) -> VisitService:
    return VisitService(session)

def to_detail_response(detail: VisitDetail) -> VisitDetailResponse:
    return VisitDetailResponse(
        **VisitResponse.model_validate(detail.visit).model_dump(),
        patient=PatientSummary.model_validate(detail.patient),
        doctor=DoctorSummary.model_validate(detail.doctor),
    )

@router.post("/", response_model=VisitResponse)
async def create_visit(
    payload: VisitCreate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: VisitService = Depends(get_visit_service)
):
    return await service.create_visit(tenant_id, payload)

@router.get("/", response_model=List[VisitDetailResponse])
async def read_visits(
    patient_id: Optional[UUID] = None,
    doctor_id: Optional[UUID] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: VisitService = Depends(get_visit_service)
):
    details = await service.list_visits(
        tenant_id,
        patient_id=patient_id,
        doctor_id=doctor_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )
    return [to_detail_response(detail) for detail in details]

@router.get("/{visit_id}", response_model=VisitDetailResponse)
async def read_visit(
    visit_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: VisitService = Depends(get_visit_service)
):
    return to_detail_response(await service.get_visit(tenant_id, visit_id))

@router.patch("/{visit_id}", response_model=VisitResponse)
async def update_visit(
    visit_id: UUID,
    patch: VisitUpdate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: VisitService = Depends(get_visit_service)
):
    return await service.update_visit(tenant_id, visit_id, patch)

@router.delete("/{visit_id}", status_code=204)
async def delete_visit(
    visit_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: VisitService = Depends(get_visit_service)
):
    if not await service.delete_visit(tenant_id, visit_id):
        raise NotFoundError("visit")
    return Response(status_code=204)

@router.get("/{visit_id}/clinical-notes", response_model=List[ClinicalNoteResponse])
async def read_visit_clinical_notes(
    visit_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    session: AsyncSession = Depends(get_session)
):
    service = ClinicalNoteService(session)
    return await service.list_clinical_notes(tenant_id, visit_id)
