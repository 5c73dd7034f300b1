"""
Complaint portal - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator
from unittest.mock import patch

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from faker import Faker

_TEST_DIR = tempfile.mkdtemp(prefix="pengaduan-tests-")

# Set testing environment
os.environ['TESTING'] = 'true'
os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{_TEST_DIR}/test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['STORAGE_PATH'] = os.path.join(_TEST_DIR, 'storage')
os.environ['LOG_FILE'] = ''
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''

from app.main import app
from app.core.database import Base, get_db, enable_sqlite_savepoints
from app.core.security import get_password_hash, create_access_token
from app.models.user import User, UserRole
from app.models.service import Service
from app.services.notification_service import notification_service
from app.services.storage_service import storage_service

fake = Faker()

# Test database setup
TEST_DATABASE_URL = os.environ['DATABASE_URL']
test_engine = enable_sqlite_savepoints(create_async_engine(TEST_DATABASE_URL, echo=False))
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# 1x1 transparent PNG
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
    b"\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)
PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def storage_root(tmp_path):
    """Point the storage singleton at a per-test directory"""
    original = storage_service._root
    storage_service._root = tmp_path / "storage"
    yield storage_service._root
    storage_service._root = original


@pytest.fixture(autouse=True)
def scheduled_mail():
    """Capture mail handed to the background sender instead of spawning tasks"""
    with patch.object(notification_service, "schedule") as schedule:
        yield schedule


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def make_user(db_session: AsyncSession, role: UserRole = UserRole.USER,
                    password: str = 'testpassword123', **kwargs) -> User:
    user = User(
        name=kwargs.pop('name', fake.name()),
        email=kwargs.pop('email', fake.unique.email()),
        hashed_password=get_password_hash(password),
        role=role,
        is_active=kwargs.pop('is_active', True),
        **kwargs
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def headers_for(user: User) -> dict:
    token_data = {
        'sub': str(user.id),
        'email': user.email,
        'role': UserRole(user.role).value
    }
    token = create_access_token(token_data)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a citizen test user"""
    return await make_user(db_session)


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second citizen, for ownership checks"""
    return await make_user(db_session)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin test user"""
    return await make_user(db_session, role=UserRole.ADMIN, password='adminpassword123')


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user"""
    return headers_for(test_user)


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    return headers_for(other_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Generate authentication headers for admin user"""
    return headers_for(admin_user)


@pytest.fixture
async def ktp_service(db_session: AsyncSession) -> Service:
    service = Service(
        name="Permohonan KTP",
        description="Layanan pembuatan atau perpanjangan Kartu Tanda Penduduk",
        category="Kependudukan",
        required_documents=["KK (Kartu Keluarga)", "Akta Kelahiran"],
        is_active=True,
    )
    db_session.add(service)
    await db_session.commit()
    await db_session.refresh(service)
    return service


@pytest.fixture
async def inactive_service(db_session: AsyncSession) -> Service:
    service = Service(
        name="Layanan Lama",
        description="Tidak lagi menerima pengaduan",
        category="Arsip",
        required_documents=[],
        is_active=False,
    )
    db_session.add(service)
    await db_session.commit()
    await db_session.refresh(service)
    return service


def complaint_form(service: Service, **overrides) -> dict:
    """Multipart text fields of a valid submission"""
    form = {
        'service_id': str(service.id),
        'applicant_name': 'Budi Santoso',
        'applicant_nik': '1234567890123456',
        'applicant_address': 'Jl. Raya Kuta No. 1, Badung',
        'applicant_phone': '081234567890',
        'applicant_job': 'Wiraswasta',
        'applicant_birth_date': '1990-05-17',
        'description': 'Permohonan KTP baru',
    }
    form.update(overrides)
    return form


@pytest.fixture
async def submitted_complaint(client: AsyncClient, auth_headers: dict, ktp_service: Service) -> dict:
    """A complaint submitted by test_user through the API, with one PDF attachment"""
    response = await client.post(
        '/api/v1/complaints',
        data=complaint_form(ktp_service),
        files=[('documents[]', ('kk.pdf', PDF_BYTES, 'application/pdf'))],
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()['data']
