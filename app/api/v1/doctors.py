from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID

from app.api.deps import get_current_user
from app.db.models import User
from app.db.session import get_session
from app.schemas.doctor import DoctorCreate, DoctorResponse, DoctorUpdate
from app.services.doctor_service import DoctorService

router = APIRouter()

@router.post("/", response_model=DoctorResponse)
async def create_doctor(
    payload: DoctorCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    service = DoctorService(session)
    return await service.create_doctor(current_user, payload)

@router.get("/", response_model=List[DoctorResponse])
async def read_doctors(
    include_inactive: bool = False,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    service = DoctorService(session)
    return await service.get_doctors(current_user.tenant_id, include_inactive)

@router.get("/{doctor_id}", response_model=DoctorResponse)
async def read_doctor(
    doctor_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    service = DoctorService(session)
    return await service.get_doctor(current_user.tenant_id, doctor_id)

@router.patch("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: UUID,
    patch: DoctorUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    service = DoctorService(session)
    return await service.update_doctor(current_user, doctor_id, patch)

@router.post("/{doctor_id}/deactivate", response_model=DoctorResponse)
async def deactivate_doctor(
    doctor_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    service = DoctorService(session)
    return await service.deactivate_doctor(current_user, doctor_id)
