from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID

from app.api.deps import get_current_tenant_id
from app.db.session import get_session
from app.schemas.doctor import DoctorSummary
from app.schemas.patient import PatientSummary
from app.schemas.queue import (
    CallNextResponse,
    QueueAdmission,
    QueueAdmit,
    QueueEntryResponse,
    QueueItemResponse,
    QueueStats,
    QueueStatusUpdate,
)
from app.schemas.visit import VisitResponse
from app.services.queue_service import QueueEntry, QueueService

router = APIRouter()

async def get_queue_service(session: AsyncSession = Depends(get_session)) -> QueueService:
    return QueueService(session)

def to_entry_response(entry: QueueEntry) -> QueueEntryResponse:
    return QueueEntryResponse(
        **QueueItemResponse.model_validate(entry.item).model_dump(),
        patient=PatientSummary.model_validate(entry.patient),
        doctor=DoctorSummary.model_validate(entry.doctor) if entry.doctor else None,
        visit=VisitResponse.model_validate(entry.visit) if entry.visit else None,
    )

@router.get("/", response_model=List[QueueEntryResponse])
async def read_todays_queue(
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: QueueService = Depends(get_queue_service)
):
    return [to_entry_response(entry) for entry in await service.todays_queue(tenant_id)]

@router.post("/", response_model=QueueAdmission)
async def admit_patient(
    payload: QueueAdmit,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: QueueService = Depends(get_queue_service)
):
    item, visit = await service.admit(tenant_id, payload)
    return QueueAdmission(
        queue_item=QueueItemResponse.model_validate(item),
        visit=VisitResponse.model_validate(visit) if visit else None,
    )

@router.get("/stats", response_model=QueueStats)
async def read_queue_stats(
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: QueueService = Depends(get_queue_service)
):
    return QueueStats(**await service.queue_stats(tenant_id))

@router.get("/current", response_model=Optional[QueueItemResponse])
async def read_current_serving(
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: QueueService = Depends(get_queue_service)
):
    return await service.current_serving(tenant_id)

@router.post("/call-next", response_model=CallNextResponse)
async def call_next(
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: QueueService = Depends(get_queue_service)
):
    completed, serving = await service.call_next(tenant_id)
    return CallNextResponse(
        completed=QueueItemResponse.model_validate(completed) if completed else None,
        serving=QueueItemResponse.model_validate(serving) if serving else None,
    )

@router.put("/{queue_item_id}/status", response_model=QueueItemResponse)
async def update_queue_status(
    queue_item_id: UUID,
    payload: QueueStatusUpdate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: QueueService = Depends(get_queue_service)
):
    return await service.set_status(tenant_id, queue_item_id, payload.status)
