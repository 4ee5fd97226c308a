# rental_auth/crud/crud_user.py
from sqlalchemy import func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm.attributes import set_committed_value
from typing import Optional, List
from datetime import datetime

from rental_auth.crud.base import CRUDBase
from rental_auth.crud import crud_revoked_token
from rental_auth.models.user import User
from rental_auth.schemas.user import UserCreate, UserUpdate, normalize_email
from rental_auth.core.exceptions import ErrorKind
from rental_auth.core.result import Ok, Err, Result
from rental_auth.core.security import get_password_hash, verify_password, utc_now
from loguru import logger

# Mesma mensagem para email inexistente e senha errada (evita enumeração de contas)
AUTH_FAILED_MESSAGE = "Authentication failed"
AUTH_FAILED_ERRORS = ["Invalid credentials"]


class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):

    async def get_by_email(self, db: AsyncSession, *, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == normalize_email(email))
        result = await db.execute(stmt)
        return result.scalars().first()

    async def get_by_refresh_token(self, db: AsyncSession, *, token: str) -> Optional[User]:
        if not token:
            return None
        stmt = select(User).where(
            User.refresh_token == token,
            User.refresh_token_expires_at > utc_now(),
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    async def create(self, db: AsyncSession, *, obj_in: UserCreate) -> User:
        db_obj = User(
            email=normalize_email(obj_in.email),
            hashed_password=get_password_hash(obj_in.password),
            first_name=obj_in.first_name,
            last_name=obj_in.last_name,
            phone=obj_in.phone,
            role=obj_in.role.value,
            is_active=True,
        )
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    def verify_password(self, user: User, plaintext: str) -> bool:
        return verify_password(plaintext, user.hashed_password)

    async def authenticate(self, db: AsyncSession, *, email: str, password: str) -> Result[User]:
        if not email or not password:
            return Err(ErrorKind.INVALID_CREDENTIALS, AUTH_FAILED_MESSAGE, AUTH_FAILED_ERRORS)
        user = await self.get_by_email(db, email=email)
        if not user:
            # Roda o bcrypt mesmo assim para não vazar existência pelo tempo de resposta
            verify_password(password, _DUMMY_HASH)
            return Err(ErrorKind.INVALID_CREDENTIALS, AUTH_FAILED_MESSAGE, AUTH_FAILED_ERRORS)
        if not self.verify_password(user, password):
            logger.info(f"Senha incorreta para usuário ID {user.id}")
            return Err(ErrorKind.INVALID_CREDENTIALS, AUTH_FAILED_MESSAGE, AUTH_FAILED_ERRORS)
        if not user.is_active:
            logger.warning(f"Tentativa de login (senha correta) para conta inativa: ID {user.id}")
            return Err(ErrorKind.INVALID_CREDENTIALS, AUTH_FAILED_MESSAGE, AUTH_FAILED_ERRORS)
        return Ok(user, "Login successful")

    async def set_refresh_token(
        self, db: AsyncSession, *, user: User, token: Optional[str], expires_at: Optional[datetime]
    ) -> None:
        """
        Substitui o refresh token do usuário num único UPDATE (só estas colunas,
        sem validação de modelo). O token anterior deixa de valer imediatamente;
        logins concorrentes: vence a última escrita.
        """
        stmt = (
            update(User)
            .where(User.id == user.id)
            .values(refresh_token=token, refresh_token_expires_at=expires_at)
            .execution_options(synchronize_session=False)
        )
        await db.execute(stmt)
        await db.commit()
        # Reflete no objeto carregado sem marcá-lo como sujo
        set_committed_value(user, "refresh_token", token)
        set_committed_value(user, "refresh_token_expires_at", expires_at)

    async def clear_refresh_token(self, db: AsyncSession, *, user: User) -> None:
        await self.set_refresh_token(db, user=user, token=None, expires_at=None)

    async def get_multi_filtered(
        self,
        db: AsyncSession,
        *,
        search: Optional[str] = None,
        role: Optional[str] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[List[User], int]:
        conditions = []
        if role:
            conditions.append(User.role == role)
        if search:
            term = f"%{search.lower()}%"
            conditions.append(or_(
                func.lower(User.first_name).like(term),
                func.lower(User.last_name).like(term),
                User.email.like(term),
            ))

        count_stmt = select(func.count()).select_from(User).where(*conditions)
        total = (await db.execute(count_stmt)).scalar_one()

        stmt = (
            select(User)
            .where(*conditions)
            .order_by(User.id)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all()), total

    async def remove(self, db: AsyncSession, *, db_obj: User) -> User:
        # Entradas de revogação saem junto; tokens ainda vivos falham com USER_NOT_FOUND
        removed = await crud_revoked_token.delete_for_user(db, user_id=db_obj.id)
        logger.info(f"Removidas {removed} entradas de revogação do usuário ID {db_obj.id}")
        return await super().remove(db, db_obj=db_obj)


_DUMMY_HASH = get_password_hash("timing-equalizer-not-a-password")

user = CRUDUser(User)
