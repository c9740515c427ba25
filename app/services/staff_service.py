from typing import List, Union
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import ValidationError
from app.core.lifecycle import STAFF_MANAGER_ROLES, StaffRole
from app.core.logger import logger
from app.core.security import get_password_hash
from app.db.models import User
from app.db.session import atomic
from app.schemas.doctor import DoctorCreate
from app.schemas.staff import StaffCreate

def ensure_can_manage_staff(current_user: User):
    if current_user.role not in STAFF_MANAGER_ROLES:
        raise HTTPException(status_code=403, detail="Not authorized to manage staff of this clinic")

class StaffService:
    """Staff accounts of a clinic: admins, doctors, receptionists and plain users."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_staff(self, current_user: User, data: StaffCreate) -> User:
        ensure_can_manage_staff(current_user)
        if data.role is StaffRole.ADMIN and current_user.role != StaffRole.ADMIN.value:
            raise HTTPException(status_code=403, detail="Only clinic admins can create admin accounts")

        async with atomic(self.session):
            user = await self.add_user(current_user.tenant_id, data)
        logger.info(f"Staff account {user.id} ({user.role}) created (tenant {current_user.tenant_id})")
        return user

    async def add_user(self, tenant_id: UUID, data: Union[StaffCreate, DoctorCreate]) -> User:
        """Insert a staff account inside the caller's transaction."""
        if await self._username_taken(data.username):
            raise ValidationError("Username is already taken", details={"username": "must be unique"})

        user = User(
            **data.model_dump(exclude={"password", "role"}),
            tenant_id=tenant_id,
            role=data.role.value,
            password_hash=get_password_hash(data.password),
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same username
            raise ValidationError("Username is already taken", details={"username": "must be unique"}) from exc
        return user

    async def _username_taken(self, username: str) -> bool:
        result = await self.session.execute(select(User.id).where(User.username == username))
        return result.first() is not None

    async def get_staff(self, tenant_id: UUID) -> List[User]:
        stmt = select(User).where(User.tenant_id == tenant_id).order_by(User.name)
        result = await self.session.execute(stmt)
        return result.scalars().all()
