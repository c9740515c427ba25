from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import NotFoundError, ValidationError
from app.core.lifecycle import DOCTOR_ROLES
from app.core.logger import logger
from app.core.security import get_password_hash
from app.db.models import User
from app.db.session import atomic
from app.schemas.doctor import DoctorCreate, DoctorUpdate
from app.services.isolation_service import IsolationValidator
from app.services.staff_service import StaffService, ensure_can_manage_staff

class DoctorService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_doctor(self, current_user: User, data: DoctorCreate) -> User:
        ensure_can_manage_staff(current_user)
        if data.role.value not in DOCTOR_ROLES:
            raise ValidationError("Doctor accounts need a doctor role", details={"role": "doctor or head_doctor"})

        async with atomic(self.session):
            doctor = await StaffService(self.session).add_user(current_user.tenant_id, data)
        logger.info(f"Doctor {doctor.id} created (tenant {current_user.tenant_id})")
        return doctor

    async def get_doctors(self, tenant_id: UUID, include_inactive: bool = False) -> List[User]:
        query = select(User).where(User.tenant_id == tenant_id, User.role.in_(DOCTOR_ROLES))
        if not include_inactive:
            query = query.where(User.is_active == True)
        result = await self.session.execute(query.order_by(User.name))
        return result.scalars().all()

    async def get_doctor(self, tenant_id: UUID, doctor_id: UUID, for_update: bool = False) -> User:
        # Unlike reference checks, deactivated doctors stay readable
        query = select(User).where(
            User.id == doctor_id,
            User.tenant_id == tenant_id,
            User.role.in_(DOCTOR_ROLES),
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        doctor = result.scalars().first()
        if doctor is None:
            raise NotFoundError("doctor")
        return doctor

    async def update_doctor(self, current_user: User, doctor_id: UUID, patch: DoctorUpdate) -> User:
        ensure_can_manage_staff(current_user)
        update_data = patch.model_dump(exclude_unset=True)
        if "name" in update_data and update_data["name"] is None:
            raise ValidationError("name cannot be null", details={"name": "required"})
        if "role" in update_data:
            role = update_data["role"]
            if role is None or role.value not in DOCTOR_ROLES:
                raise ValidationError("Doctor accounts need a doctor role", details={"role": "doctor or head_doctor"})
            update_data["role"] = role.value
        password = update_data.pop("password", None)

        async with atomic(self.session):
            doctor = await self.get_doctor(current_user.tenant_id, doctor_id, for_update=True)
            for key, value in update_data.items():
                setattr(doctor, key, value)
            if password:
                doctor.password_hash = get_password_hash(password)
            self.session.add(doctor)
            await self.session.flush()
        return doctor

    async def deactivate_doctor(self, current_user: User, doctor_id: UUID) -> User:
        ensure_can_manage_staff(current_user)
        async with atomic(self.session):
            doctor = await IsolationValidator(self.session).get_doctor(current_user.tenant_id, doctor_id)
            doctor.is_active = False
            self.session.add(doctor)
        return doctor
