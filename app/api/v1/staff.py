from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.api.deps import get_current_user
from app.db.models import User
from app.db.session import get_session
from app.schemas.staff import StaffCreate, StaffResponse
from app.services.staff_service import StaffService

router = APIRouter()

@router.post("/", response_model=StaffResponse)
async def create_staff(
    payload: StaffCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    service = StaffService(session)
    return await service.create_staff(current_user, payload)

@router.get("/", response_model=List[StaffResponse])
async def read_staff(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    service = StaffService(session)
    return await service.get_staff(current_user.tenant_id)
