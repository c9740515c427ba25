from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID

from app.api.deps import get_current_tenant_id
from app.db.session import get_session
from app.core.exceptions import NotFoundError
from app.schemas.patient import PatientCreate, PatientResponse, PatientUpdate
from app.services.patient_service import PatientService

router = APIRouter()

async def get_patient_service(session: AsyncSession = Depends(get_session)) -> PatientService:
    return PatientService(session)

@router.post("/", response_model=PatientResponse)
async def create_patient(
    payload: PatientCreate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: PatientService = Depends(get_patient_service)
):
    return await service.create_patient(tenant_id, payload)

@router.get("/", response_model=List[PatientResponse])
async def read_patients(
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: PatientService = Depends(get_patient_service)
):
    return await service.get_patients(tenant_id)

@router.get("/search", response_model=List[PatientResponse])
async def search_patients(
    q: str,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: PatientService = Depends(get_patient_service)
):
    return await service.search_patients(tenant_id, q)

@router.get("/{patient_id}", response_model=PatientResponse)
async def read_patient(
    patient_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: PatientService = Depends(get_patient_service)
):
    return await service.get_patient(tenant_id, patient_id)

@router.patch("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: UUID,
    patch: PatientUpdate,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: PatientService = Depends(get_patient_service)
):
    return await service.update_patient(tenant_id, patient_id, patch)

@router.delete("/{patient_id}", status_code=204)
async def delete_patient(
    patient_id: UUID,
    tenant_id: UUID = Depends(get_current_tenant_id),
    service: PatientService = Depends(get_patient_service)
):
    if not await service.delete_patient(tenant_id, patient_id):
        raise NotFoundError("patient")
    return Response(status_code=204)
