from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.db.session import get_session
from app.services.clinic_service import ClinicService
from app.schemas.clinic import ClinicCreate, ClinicCreatedResponse, ClinicResponse
from app.api.deps import get_current_tenant_id

router = APIRouter()

@router.post("/", response_model=ClinicCreatedResponse)
async def create_clinic(
    clinic_data: ClinicCreate,
    session: AsyncSession = Depends(get_session)
):
    service = ClinicService(session)
    return await service.create_clinic(clinic_data)

@router.get("/me", response_model=ClinicResponse)
async def read_my_clinic(
    tenant_id: UUID = Depends(get_current_tenant_id),
    session: AsyncSession = Depends(get_session)
):
    service = ClinicService(session)
    return await service.get_clinic(tenant_id)
