# rental_auth/services/user_service.py
import math

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_auth.core.config import settings
from rental_auth.core.exceptions import ErrorKind
from rental_auth.core.permissions import authorize
from rental_auth.core.result import Err, Ok, Result
from rental_auth.crud.crud_user import user as crud_user
from rental_auth.models.user import User
from rental_auth.schemas.user import (
    Pagination, User as UserSchema, UserCreate, UserFilter, UserList, UserUpdate
)

USER_NOT_FOUND = Err(ErrorKind.NOT_FOUND, "User not found", ["User not found"])


async def list_users(db: AsyncSession, *, actor: User, filters: UserFilter) -> Result[UserList]:
    gate = authorize(actor, "index", User)
    if not gate.success:
        return gate

    per_page = min(filters.per_page, settings.MAX_PAGE_SIZE)
    users, total = await crud_user.get_multi_filtered(
        db,
        search=filters.search,
        role=filters.role.value if filters.role else None,
        page=filters.page,
        per_page=per_page,
    )
    payload = UserList(
        users=[UserSchema.present(u, viewer=actor) for u in users],
        pagination=Pagination(
            current_page=filters.page,
            per_page=per_page,
            total_pages=math.ceil(total / per_page) if total else 0,
            total_count=total,
        ),
    )
    return Ok(payload, "Users retrieved successfully")


async def create_user(db: AsyncSession, *, actor: User, user_in: UserCreate) -> Result[User]:
    gate = authorize(actor, "create", User)
    if not gate.success:
        return gate

    if await crud_user.get_by_email(db, email=user_in.email):
        return Err(ErrorKind.VALIDATION_FAILED, "Failed to create user", ["Email has already been taken"])
    try:
        db_user = await crud_user.create(db, obj_in=user_in)
    except IntegrityError:
        await db.rollback()
        return Err(ErrorKind.VALIDATION_FAILED, "Failed to create user", ["Email has already been taken"])
    logger.info(f"Usuário ID {db_user.id} ({db_user.role}) criado pelo admin ID {actor.id}")
    return Ok(db_user, "User created successfully")


async def show_user(db: AsyncSession, *, actor: User, user_id: int) -> Result[User]:
    db_user = await crud_user.get(db, id=user_id)
    if db_user is None:
        return USER_NOT_FOUND
    gate = authorize(actor, "show", db_user)
    if not gate.success:
        return gate
    return Ok(db_user, "User retrieved successfully")


async def update_user(
    db: AsyncSession, *, actor: User, user_id: int, user_in: UserUpdate
) -> Result[User]:
    db_user = await crud_user.get(db, id=user_id)
    if db_user is None:
        return USER_NOT_FOUND
    gate = authorize(actor, "update", db_user)
    if not gate.success:
        return gate

    changes = user_in.model_dump(exclude_unset=True)
    if "first_name" in changes and not (changes["first_name"] or "").strip():
        return Err(ErrorKind.VALIDATION_FAILED, "Validation failed", ["First name can't be blank"])
    db_user = await crud_user.update(db, db_obj=db_user, obj_in=changes)
    return Ok(db_user, "User updated successfully")


async def delete_user(db: AsyncSession, *, actor: User, user_id: int) -> Result[User]:
    db_user = await crud_user.get(db, id=user_id)
    if db_user is None:
        return USER_NOT_FOUND
    gate = authorize(actor, "destroy", db_user)
    if not gate.success:
        return gate

    await crud_user.remove(db, db_obj=db_user)
    logger.info(f"Usuário ID {user_id} excluído pelo admin ID {actor.id}")
    return Ok(db_user, "User deleted permanently")
