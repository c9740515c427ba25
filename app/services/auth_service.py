from datetime import timedelta
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.core.logger import logger
from app.core.redis import redis_client
from app.core.security import verify_password, create_access_token
from app.core.utils import utc_now
from app.db.models import User, Tenant
from app.db.session import atomic
from app.schemas.auth import LoginRequest, LoginResponse, UserInfo

class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def login(self, login_data: LoginRequest) -> LoginResponse:
        # 1. Find Clinic by Slug
        stmt = select(Tenant).where(Tenant.slug == login_data.clinic_slug)
        result = await self.session.execute(stmt)
        clinic = result.scalars().first()

        if not clinic:
            raise NotFoundError("clinic", "Clinic not found")

        # 2. Find active staff member in that Clinic
        stmt = select(User).where(
            User.tenant_id == clinic.id,
            User.username == login_data.username,
            User.is_active == True
        )
        result = await self.session.execute(stmt)
        user = result.scalars().first()

        if not user or not verify_password(login_data.password, user.password_hash):
            logger.warning(f"Failed login for '{login_data.username}' at clinic {clinic.slug}")
            raise HTTPException(status_code=401, detail="Invalid username or password")

        async with atomic(self.session):
            user.last_login = utc_now()
            self.session.add(user)

        # 3. Generate Token
        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": str(user.id), "tenant_id": str(clinic.id)},
            expires_delta=access_token_expires
        )

        # A token is only honoured while its session entry exists
        await redis_client.set_session(
            access_token,
            {"user_id": str(user.id), "tenant_id": str(clinic.id), "role": user.role},
            settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )
        logger.info(f"User {user.id} logged in (tenant {clinic.id})")

        return LoginResponse(
            access_token=access_token,
            token_type="bearer",
            user=UserInfo(
                id=user.id,
                name=user.name,
                role=user.role,
                clinic_id=clinic.id,
                clinic_name=clinic.name
            )
        )

    async def logout(self, token: str):
        await redis_client.delete_session(token)
