from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.db.models import Tenant, User
from app.db.session import atomic
from app.schemas.clinic import ClinicCreate, ClinicCreatedResponse, ClinicResponse, AdminCredentials
from app.core.lifecycle import StaffRole
from app.core.logger import logger
from app.core.utils import generate_slug, generate_username, generate_password
from app.core.security import get_password_hash
from app.core.exceptions import NotFoundError

class ClinicService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_clinic(self, clinic_data: ClinicCreate) -> ClinicCreatedResponse:
        username = generate_username(clinic_data.name)
        password = generate_password()

        async with atomic(self.session):
            clinic = Tenant(**clinic_data.model_dump(), slug=generate_slug(clinic_data.name))
            self.session.add(clinic)
            await self.session.flush()

            # Every clinic starts with one admin account
            admin_user = User(
                tenant_id=clinic.id,
                role=StaffRole.ADMIN.value,
                name=f"Admin - {clinic.name}",
                username=username,
                email=clinic.contact_email,
                password_hash=get_password_hash(password)
            )
            self.session.add(admin_user)

        logger.info(f"Clinic {clinic.id} ({clinic.slug}) signed up")
        return ClinicCreatedResponse(
            tenant_id=clinic.id,
            clinic=ClinicResponse.model_validate(clinic),
            admin_credentials=AdminCredentials(username=username, password=password)
        )

    async def get_clinic(self, clinic_id: UUID) -> Tenant:
        clinic = await self.session.get(Tenant, clinic_id)
        if not clinic:
            raise NotFoundError("clinic", "Clinic not found")
        return clinic
