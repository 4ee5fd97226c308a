# rental_auth/db/session.py
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from rental_auth.core.config import settings
from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncEngine

# --- Engine e Session criadas sob demanda ---
_async_engine: Optional[AsyncEngine] = None
_AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite só respeita ON DELETE CASCADE com o pragma ligado
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_async_engine() -> AsyncEngine:
    """Creates the engine if it doesn't exist yet."""
    global _async_engine
    if _async_engine is None:
        # O driver async vem na própria URL:
        # "postgresql+asyncpg://...", "sqlite+aiosqlite:///..."
        db_url = settings.DATABASE_URL
        if not db_url:
            raise RuntimeError("DATABASE_URL not loaded from settings. Check .env file and config.py")
        try:
            _async_engine = create_async_engine(
                db_url,
                pool_pre_ping=True,
                echo=False  # Change to True to see SQL logs
            )
        except Exception as e:
            raise RuntimeError(f"Could not create async engine: {e}") from e
        if db_url.startswith("sqlite"):
            event.listen(_async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return _async_engine


def get_session_local() -> async_sessionmaker[AsyncSession]:
    """Creates the session factory if it doesn't exist yet."""
    global _AsyncSessionLocal
    if _AsyncSessionLocal is None:
        engine = get_async_engine()  # Ensure engine is created first
        _AsyncSessionLocal = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _AsyncSessionLocal


# Uma sessão por requisição; nenhum estado compartilhado além do banco
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    SessionLocal = get_session_local()
    async with SessionLocal() as db:
        yield db


async def dispose_engine() -> None:
    global _async_engine, _AsyncSessionLocal
    if _async_engine:
        await _async_engine.dispose()
        _async_engine = None
        _AsyncSessionLocal = None
