# rental_auth/api/endpoints/health.py
from fastapi import APIRouter, Depends, status
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_auth.api.responses import Envelope, render_error, render_success
from rental_auth.db.session import get_db

router = APIRouter()


@router.get("", response_model=Envelope, responses={503: {"model": Envelope}})
async def health(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check: banco indisponível: {e}")
        return render_error("Service unavailable", ["database unreachable"], status.HTTP_503_SERVICE_UNAVAILABLE)
    return render_success("OK", {"database": "ok"})
