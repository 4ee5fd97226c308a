# rental_auth/db/initial_data.py
"""
Cria as tabelas (se não existirem) e o admin padrão.

    python -m rental_auth.db.initial_data [--reset]
"""
import argparse
import asyncio

from loguru import logger

from rental_auth.core.config import settings
from rental_auth.core.logging import setup_logging
from rental_auth.crud.crud_user import user as crud_user
from rental_auth.db.base import Base
from rental_auth.db.session import get_async_engine, get_session_local, dispose_engine
from rental_auth.models.user import Role
from rental_auth.schemas.user import UserCreate

# Importar TODOS os modelos para que Base.metadata os conheça
from rental_auth.models import user, revoked_token  # noqa F401


async def init_db(reset: bool = False) -> None:
    engine = get_async_engine()
    async with engine.begin() as conn:
        if reset:
            logger.warning("Removendo todas as tabelas existentes (--reset)...")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tabelas prontas.")


async def seed_admin() -> None:
    if not settings.FIRST_ADMIN_EMAIL or not settings.FIRST_ADMIN_PASSWORD:
        logger.info("FIRST_ADMIN_EMAIL/FIRST_ADMIN_PASSWORD não definidos; admin padrão não criado.")
        return
    SessionLocal = get_session_local()
    async with SessionLocal() as db:
        existing = await crud_user.get_by_email(db, email=settings.FIRST_ADMIN_EMAIL)
        if existing:
            logger.info(f"Admin padrão já existe: {existing.email}")
            return
        admin = await crud_user.create(db, obj_in=UserCreate(
            email=settings.FIRST_ADMIN_EMAIL,
            password=settings.FIRST_ADMIN_PASSWORD,
            first_name="System",
            last_name="Administrator",
            role=Role.ADMIN,
        ))
        logger.info(f"Admin padrão criado: {admin.email}")


async def main(reset: bool = False) -> None:
    try:
        await init_db(reset=reset)
        await seed_admin()
    finally:
        await dispose_engine()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Inicializa o banco de autenticação.")
    parser.add_argument("--reset", action="store_true", help="DROP ALL antes de criar as tabelas")
    args = parser.parse_args()
    setup_logging()
    asyncio.run(main(reset=args.reset))
