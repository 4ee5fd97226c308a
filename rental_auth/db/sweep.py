# rental_auth/db/sweep.py
"""Uma rodada de limpeza da lista de revogação (para cron): python -m rental_auth.db.sweep"""
import asyncio

from loguru import logger

from rental_auth.core.logging import setup_logging
from rental_auth.db.session import get_session_local, dispose_engine
from rental_auth.services import auth_service


async def main() -> int:
    try:
        SessionLocal = get_session_local()
        async with SessionLocal() as db:
            deleted = await auth_service.sweep_revocations(db)
    finally:
        await dispose_engine()
    logger.info(f"{deleted} entradas expiradas removidas.")
    return deleted


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
