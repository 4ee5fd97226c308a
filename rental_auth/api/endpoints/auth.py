# rental_auth/api/endpoints/auth.py
from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_auth.api.dependencies import get_auth_context
from rental_auth.api.responses import Envelope, error_for, render_success
from rental_auth.core.config import settings
from rental_auth.core.exceptions import ApiError
from rental_auth.core.rate_limit import limiter
from rental_auth.db.session import get_db, get_session_local
from rental_auth.schemas.token import AuthContext, LoginRequest, RefreshTokenRequest
from rental_auth.schemas.user import User as UserSchema, UserRegister
from rental_auth.services import auth_service

router = APIRouter()


async def sweep_expired_revocations() -> None:
    """Limpeza oportunista após logout; melhor esforço, roda com sessão própria."""
    SessionLocal = get_session_local()
    async with SessionLocal() as db:
        try:
            await auth_service.sweep_revocations(db)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(f"Limpeza de revogações falhou (será tentada de novo): {e}")


@router.post(
    "/login",
    response_model=Envelope,
    responses={401: {"model": Envelope, "description": "Credenciais inválidas"}},
)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Login com email e senha. Devolve access token (JWT), refresh token opaco e a expiração.
    Email inexistente e senha errada geram exatamente a mesma resposta.
    """
    result = await auth_service.login(db, email=credentials.email, password=credentials.password)
    if not result.success:
        raise error_for(result)
    return render_success(result.message, result.data)


@router.post(
    "/refresh",
    response_model=Envelope,
    responses={401: {"model": Envelope}},
)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def refresh_access_token(
    request: Request,
    refresh_request: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db),
):
    """Troca o refresh token por um novo par; o refresh token usado deixa de valer."""
    result = await auth_service.refresh(db, refresh_token=refresh_request.refresh_token)
    if not result.success:
        raise error_for(result)
    return render_success(result.message, result.data)


@router.post(
    "/register",
    response_model=Envelope,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": Envelope}, 422: {"model": Envelope}},
)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def register(
    request: Request,
    user_in: UserRegister,
    db: AsyncSession = Depends(get_db),
):
    """
    Auto-cadastro público (desligado por padrão, ver ALLOW_SELF_REGISTRATION).
    Não passa pelo gate de autorização e sempre cria 'owner'.
    """
    if not settings.ALLOW_SELF_REGISTRATION:
        raise ApiError(status.HTTP_403_FORBIDDEN, "Self-registration is disabled")
    result = await auth_service.register(db, user_in=user_in)
    if not result.success:
        raise error_for(result)
    return render_success(
        "User registered",
        UserSchema.present(result.data, viewer=result.data),
        status.HTTP_201_CREATED,
    )


@router.get("/me", response_model=Envelope, responses={401: {"model": Envelope}})
async def read_users_me(context: AuthContext = Depends(get_auth_context)):
    return render_success("Profile retrieved", UserSchema.present(context.user, viewer=context.user))


@router.delete(
    "/logout",
    response_model=Envelope,
    responses={401: {"model": Envelope}, 422: {"model": Envelope}},
)
async def logout(
    background_tasks: BackgroundTasks,
    context: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Revoga o access token atual (pelo jti) e apaga o refresh token do usuário.
    Requisições já em andamento não são canceladas; só as próximas verificações falham.
    """
    result = await auth_service.logout(db, context=context)
    if not result.success:
        raise error_for(result)
    background_tasks.add_task(sweep_expired_revocations)
    return render_success(result.message)
