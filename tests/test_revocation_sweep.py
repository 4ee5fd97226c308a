import asyncio
from datetime import timedelta

from sqlalchemy import select

from rental_auth.core.security import decode_access_token, utc_now
from rental_auth.crud import crud_revoked_token
from rental_auth.crud.crud_user import user as crud_user
from rental_auth.db import sweep
from rental_auth.models.revoked_token import RevokedToken

from conftest import OWNER_EMAIL, OWNER_PASSWORD, bearer, login, run_on_app_db

API_KEY = {"X-API-Key": "test-internal-key"}


def _seed_revocations(**expires_in: timedelta) -> None:
    async def _seed(db):
        owner = await crud_user.get_by_email(db, email=OWNER_EMAIL)
        for jti, delta in expires_in.items():
            await crud_revoked_token.revoke(db, jti=jti, user_id=owner.id, expires_at=utc_now() + delta)

    run_on_app_db(_seed)


def _revoked_jtis() -> set:
    async def _list(db):
        return set((await db.execute(select(RevokedToken.jti))).scalars().all())

    return run_on_app_db(_list)


def test_logout_sweeps_expired_revocations(client):
    _seed_revocations(stale=timedelta(hours=-1), live=timedelta(hours=1))
    token = login(client, OWNER_EMAIL, OWNER_PASSWORD).json()["data"]["token"]

    assert client.delete("/api/v1/auth/logout", headers=bearer(token)).status_code == 200

    # A limpeza roda como background task, antes do TestClient devolver a resposta
    assert _revoked_jtis() == {"live", decode_access_token(token)["jti"]}


def test_mgmt_sweep_reports_deleted_count(client):
    _seed_revocations(old_a=timedelta(minutes=-5), old_b=timedelta(days=-2), live=timedelta(hours=1))

    response = client.post("/api/v1/mgmt/revocations/sweep", headers=API_KEY)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Expired revocations removed",
        "data": {"deleted": 2},
    }
    assert _revoked_jtis() == {"live"}


def test_sweep_command_removes_expired_entries(app_db):
    _seed_revocations(stale=timedelta(seconds=-1), live=timedelta(hours=1))

    assert asyncio.run(sweep.main()) == 1
    assert _revoked_jtis() == {"live"}
    # Segunda rodada não tem o que remover
    assert asyncio.run(sweep.main()) == 0
