import asyncio
import os
import sys
import tempfile
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

# Garante que a raiz do projeto seja importável (main.py, rental_auth/)
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Configuração de teste ANTES de importar qualquer módulo da aplicação
TEST_DB_PATH = Path(tempfile.gettempdir()) / "rental_auth_api_test.db"
if TEST_DB_PATH.exists():
    TEST_DB_PATH.unlink()

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["INTERNAL_API_KEY"] = "test-internal-key"
os.environ["ALLOW_SELF_REGISTRATION"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient  # noqa: E402

from main import app  # noqa: E402
from rental_auth.crud.crud_user import user as crud_user  # noqa: E402
from rental_auth.db.base import Base  # noqa: E402
from rental_auth.db.session import get_async_engine, get_session_local, dispose_engine  # noqa: E402
from rental_auth.models.user import Role  # noqa: E402
from rental_auth.schemas.user import UserCreate  # noqa: E402

ADMIN_EMAIL = "admin@rental.example.com"
ADMIN_PASSWORD = "AdminPass123!"
OWNER_EMAIL = "owner@rental.example.com"
OWNER_PASSWORD = "OwnerPass123!"


async def _seed(session: AsyncSession) -> None:
    await crud_user.create(session, obj_in=UserCreate(
        email=ADMIN_EMAIL, password=ADMIN_PASSWORD,
        first_name="System", last_name="Administrator", phone="555-0100", role=Role.ADMIN,
    ))
    await crud_user.create(session, obj_in=UserCreate(
        email=OWNER_EMAIL, password=OWNER_PASSWORD,
        first_name="Olivia", last_name="Owner", phone="555-0101", role=Role.OWNER,
    ))


async def _reset_app_db() -> None:
    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with get_session_local()() as session:
        await _seed(session)
    # O TestClient roda em outro event loop: a engine é recriada lá
    await dispose_engine()


@pytest.fixture()
def app_db():
    """Banco da aplicação recriado e populado, sem TestClient."""
    asyncio.run(_reset_app_db())


@pytest.fixture()
def client(app_db):
    with TestClient(app) as tc:
        yield tc


def run_on_app_db(operation):
    """
    Executa `operation(session)` no banco da aplicação por fora da API.
    Engine própria (NullPool) para não compartilhar conexões com o loop do TestClient.
    """
    async def _run():
        engine = create_async_engine(os.environ["DATABASE_URL"], poolclass=NullPool)
        try:
            async with async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)() as session:
                return await operation(session)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


def login(client: TestClient, email: str, password: str):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_token(client):
    response = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert response.status_code == 200
    return response.json()["data"]["token"]


@pytest.fixture()
def owner_token(client):
    response = login(client, OWNER_EMAIL, OWNER_PASSWORD)
    assert response.status_code == 200
    return response.json()["data"]["token"]


@pytest.fixture()
async def db(tmp_path):
    """Sessão isolada (banco próprio) para testes de store e serviço."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'unit.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with SessionLocal() as session:
        await _seed(session)
        yield session
    await engine.dispose()


@pytest.fixture()
async def admin(db):
    return await crud_user.get_by_email(db, email=ADMIN_EMAIL)


@pytest.fixture()
async def owner(db):
    return await crud_user.get_by_email(db, email=OWNER_EMAIL)
