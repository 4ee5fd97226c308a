# rental_auth/crud/crud_revoked_token.py
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import delete, exists, insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from rental_auth.core.security import utc_now
from rental_auth.models.revoked_token import RevokedToken

# INSERT ... ON CONFLICT DO NOTHING por dialeto
_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


async def revoke(db: AsyncSession, *, jti: str, user_id: int, expires_at: datetime) -> bool:
    """
    Adiciona o jti à lista de revogação.
    Idempotente: jti repetido (duplo logout, inclusive concorrente) não é erro, retorna False.
    Nunca faz rollback da sessão do chamador; só retorna depois do commit,
    então o próximo is_revoked já enxerga a entrada.
    """
    values = {"jti": jti, "user_id": user_id, "expires_at": expires_at}
    dialect = db.get_bind().dialect.name
    dialect_insert = _UPSERT_INSERTS.get(dialect)

    if dialect_insert is not None:
        stmt = dialect_insert(RevokedToken).values(**values).on_conflict_do_nothing(index_elements=["jti"])
        result = await db.execute(stmt)
        inserted = result.rowcount == 1
    else:
        # Outros bancos: SAVEPOINT, o rollback fica restrito ao INSERT
        try:
            async with db.begin_nested():
                await db.execute(insert(RevokedToken).values(**values))
            inserted = True
        except IntegrityError:
            inserted = False
    await db.commit()

    if not inserted:
        logger.debug(f"jti {jti} já estava revogado.")
    return inserted


async def is_revoked(db: AsyncSession, *, jti: str) -> bool:
    # Consulta direta ao banco (sem cache): nunca dá falso negativo após o commit
    stmt = select(exists().where(RevokedToken.jti == jti))
    result = await db.execute(stmt)
    return bool(result.scalar())


async def sweep_expired(db: AsyncSession, *, now: Optional[datetime] = None) -> int:
    """Remove entradas cujo token já expirou (o verificador as rejeitaria de qualquer forma)."""
    cutoff = now or utc_now()
    stmt = delete(RevokedToken).where(RevokedToken.expires_at < cutoff)
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount  # Número de linhas deletadas


async def delete_for_user(db: AsyncSession, *, user_id: int) -> int:
    """Remove as entradas de um usuário (sem commit; usado ao excluir o usuário)."""
    stmt = delete(RevokedToken).where(RevokedToken.user_id == user_id)
    result = await db.execute(stmt)
    return result.rowcount
