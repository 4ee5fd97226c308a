# rental_auth/api/endpoints/users.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_auth.api.dependencies import get_current_user
from rental_auth.api.responses import Envelope, error_for, render_success
from rental_auth.core.config import settings
from rental_auth.db.session import get_db
from rental_auth.models.user import Role, User as UserModel
from rental_auth.schemas.user import User as UserSchema, UserCreate, UserFilter, UserUpdate
from rental_auth.services import user_service

router = APIRouter()

ERROR_RESPONSES = {
    401: {"model": Envelope, "description": "Token ausente ou inválido"},
    404: {"model": Envelope, "description": "Usuário não encontrado"},
    422: {"model": Envelope, "description": "Validação ou autorização negada"},
}


@router.get("", response_model=Envelope, responses=ERROR_RESPONSES)
async def read_users(
    search: Optional[str] = None,
    role: Optional[Role] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Lista paginada de usuários com busca por nome/email e filtro por role.
    (Somente admin; per_page limitado a MAX_PAGE_SIZE)
    """
    filters = UserFilter(search=search, role=role, page=page, per_page=per_page)
    result = await user_service.list_users(db, actor=current_user, filters=filters)
    if not result.success:
        raise error_for(result, "Failed to retrieve users")
    return render_success("Users retrieved", result.data)


@router.post("", response_model=Envelope, status_code=status.HTTP_201_CREATED, responses=ERROR_RESPONSES)
async def create_user(
    *,
    db: AsyncSession = Depends(get_db),
    user_in: UserCreate,
    current_user: UserModel = Depends(get_current_user),
):
    """Cria um usuário (somente admin). Auto-cadastro fica em /auth/register."""
    result = await user_service.create_user(db, actor=current_user, user_in=user_in)
    if not result.success:
        raise error_for(result, "Failed to create user")
    return render_success(
        "User created",
        UserSchema.present(result.data, viewer=current_user),
        status.HTTP_201_CREATED,
    )


@router.get("/{user_id}", response_model=Envelope, responses=ERROR_RESPONSES)
async def read_user_by_id(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """Busca um usuário pelo ID (admin ou o próprio usuário)."""
    result = await user_service.show_user(db, actor=current_user, user_id=user_id)
    if not result.success:
        raise error_for(result, "Failed to retrieve user")
    return render_success("User retrieved", UserSchema.present(result.data, viewer=current_user))


@router.api_route("/{user_id}", methods=["PUT", "PATCH"], response_model=Envelope, responses=ERROR_RESPONSES)
async def update_user(
    *,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    user_in: UserUpdate,
    current_user: UserModel = Depends(get_current_user),
):
    """Atualiza nome e telefone (admin ou o próprio usuário). Campos omitidos não mudam."""
    result = await user_service.update_user(db, actor=current_user, user_id=user_id, user_in=user_in)
    if not result.success:
        raise error_for(result, "Failed to update user")
    return render_success("User updated", UserSchema.present(result.data, viewer=current_user))


@router.delete("/{user_id}", response_model=Envelope, responses=ERROR_RESPONSES)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """Exclusão definitiva (somente admin)."""
    result = await user_service.delete_user(db, actor=current_user, user_id=user_id)
    if not result.success:
        raise error_for(result, "Failed to delete user")
    return render_success(result.message)
