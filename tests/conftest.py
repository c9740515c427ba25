import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.lifecycle import StaffRole
from app.core.redis import redis_client
from app.db.models import Patient, Tenant, User
from app.db.session import get_session, init_db
from app.main import app


class FakeRedis:
    """In-memory stand-in for the redis.asyncio client used by the session store."""

    def __init__(self):
        self.store = {}

    async def set(self, key, value, ex=None):
        self.store[key] = value

    async def get(self, key):
        return self.store.get(key)

    async def delete(self, key):
        self.store.pop(key, None)

    async def aclose(self):
        pass


class ServiceRunner:
    """
    Calls a service method in a fresh session, the way one API request would.

    Returned entities are detached with their attributes loaded.
    """

    def __init__(self, session_factory, service_cls):
        self.session_factory = session_factory
        self.service_cls = service_cls

    def __getattr__(self, name):
        async def call(*args, **kwargs):
            async with self.session_factory() as session:
                return await getattr(self.service_cls(session), name)(*args, **kwargs)
        return call


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def service(session_factory):
    def build(service_cls):
        return ServiceRunner(session_factory, service_cls)
    return build


@pytest.fixture
def seed(session_factory):
    async def add(*entities):
        async with session_factory() as session:
            session.add_all(entities)
            await session.commit()
        return entities[0] if len(entities) == 1 else entities
    return add


@pytest.fixture
async def clinic(seed):
    return await seed(Tenant(name="Sunrise Clinic", slug="sunrise", contact_email="desk@sunrise.test"))


@pytest.fixture
async def other_clinic(seed):
    return await seed(Tenant(name="Harbor Clinic", slug="harbor", contact_email="desk@harbor.test"))


@pytest.fixture
async def doctor(seed, clinic):
    return await seed(User(
        tenant_id=clinic.id,
        role=StaffRole.DOCTOR.value,
        name="Dr. Ada Moss",
        username="ada",
        specialization="General practice",
        cabinet_number="3",
    ))


@pytest.fixture
async def other_doctor(seed, other_clinic):
    return await seed(User(
        tenant_id=other_clinic.id,
        role=StaffRole.DOCTOR.value,
        name="Dr. Ian Hale",
        username="ian",
    ))


@pytest.fixture
async def patient(seed, clinic):
    return await seed(Patient(tenant_id=clinic.id, name="Maria Lopez", phone="555-0107"))


@pytest.fixture
async def second_patient(seed, clinic):
    return await seed(Patient(tenant_id=clinic.id, name="Tom Becker", phone="555-0109"))


@pytest.fixture
async def other_patient(seed, other_clinic):
    return await seed(Patient(tenant_id=other_clinic.id, name="Lena Ortiz", phone="555-0200"))


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "redis", fake)
    return fake


@pytest.fixture
async def client(session_factory, fake_redis):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
