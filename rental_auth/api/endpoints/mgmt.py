# rental_auth/api/endpoints/mgmt.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rental_auth.api.responses import Envelope, render_success
from rental_auth.db.session import get_db
from rental_auth.services import auth_service

router = APIRouter()


@router.post("/revocations/sweep", response_model=Envelope)
async def sweep_revocations(db: AsyncSession = Depends(get_db)):
    """
    Remove da lista de revogação as entradas cujo token já expirou.
    Protegido pela X-API-Key (definido no main.py). Pode ser chamado por um cron.
    """
    deleted = await auth_service.sweep_revocations(db)
    return render_success("Expired revocations removed", {"deleted": deleted})
