# rental_auth/services/auth_service.py
"""
Emissão, verificação e revogação de tokens.

Nenhuma função daqui levanta exceção para falhas de autenticação: todas
devolvem Ok/Err e a camada HTTP decide o status. Erros inesperados do banco
(SQLAlchemyError) sobem normalmente e viram 500 no handler global.
"""
from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_auth.core import security
from rental_auth.core.exceptions import ErrorKind, TokenDecodeError
from rental_auth.core.result import Err, Ok, Result
from rental_auth.crud import crud_revoked_token
from rental_auth.crud.crud_user import user as crud_user, AUTH_FAILED_MESSAGE, AUTH_FAILED_ERRORS
from rental_auth.models.user import Role, User
from rental_auth.schemas.token import AuthContext, LoginResponse, TokenPair
from rental_auth.schemas.user import User as UserSchema, UserCreate, UserRegister

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


async def issue_tokens(db: AsyncSession, *, user: User) -> TokenPair:
    """Gera access + refresh e substitui o refresh token gravado no usuário."""
    access_token, jti, access_expires_at = security.create_access_token(user)
    refresh_token, refresh_expires_at = security.create_refresh_token()
    await crud_user.set_refresh_token(
        db, user=user, token=refresh_token, expires_at=refresh_expires_at
    )
    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        jti=jti,
        access_expires_at=access_expires_at,
        refresh_expires_at=refresh_expires_at,
    )


def login_payload(user: User, pair: TokenPair) -> LoginResponse:
    return LoginResponse(
        user=UserSchema.present(user, viewer=user),
        token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_at=_as_utc(pair.access_expires_at),
        refresh_expires_at=_as_utc(pair.refresh_expires_at),
    )


async def login(db: AsyncSession, *, email: str, password: str) -> Result[LoginResponse]:
    auth = await crud_user.authenticate(db, email=email, password=password)
    if not auth.success:
        return auth
    user = auth.data
    pair = await issue_tokens(db, user=user)
    logger.info(f"Login bem-sucedido para usuário ID {user.id}; tokens emitidos (jti={pair.jti}).")
    return Ok(login_payload(user, pair), "Login successful")


async def refresh(db: AsyncSession, *, refresh_token: str) -> Result[LoginResponse]:
    """Troca um refresh token válido por um novo par (rotação: o antigo morre)."""
    user = await crud_user.get_by_refresh_token(db, token=refresh_token)
    if user is None or not user.is_active:
        return Err(ErrorKind.INVALID_CREDENTIALS, AUTH_FAILED_MESSAGE, AUTH_FAILED_ERRORS)
    pair = await issue_tokens(db, user=user)
    logger.info(f"Refresh token rotacionado para usuário ID {user.id}.")
    return Ok(login_payload(user, pair), "Token refreshed")


async def verify_access_token(db: AsyncSession, *, token: str) -> Result[AuthContext]:
    """
    Verifica um access token sem efeitos colaterais.
    Ordem: formato, assinatura, expiração, revogação, existência do usuário.
    """
    try:
        claims = security.decode_access_token(token)
    except TokenDecodeError as e:
        return Err(e.kind, INVALID_TOKEN_MESSAGE, [e.message])

    if await crud_revoked_token.is_revoked(db, jti=claims["jti"]):
        return Err(ErrorKind.REVOKED, INVALID_TOKEN_MESSAGE, ["Token has been revoked"])

    user = await crud_user.get(db, id=claims["user_id"])
    if user is None:
        return Err(ErrorKind.USER_NOT_FOUND, INVALID_TOKEN_MESSAGE, ["User not found"])

    return Ok(AuthContext(user=user, claims=claims, token=token))


async def logout(db: AsyncSession, *, context: AuthContext) -> Result[None]:
    """Revoga o jti do access token atual e apaga o refresh token do usuário."""
    user = context.user
    # Lido antes de qualquer I/O: um rollback expira o objeto e a sessão async não faz lazy load
    user_id = user.id
    expires_at = datetime.fromtimestamp(context.claims["exp"], tz=timezone.utc).replace(tzinfo=None)
    try:
        newly_revoked = await crud_revoked_token.revoke(
            db, jti=context.jti, user_id=user_id, expires_at=expires_at
        )
        await crud_user.clear_refresh_token(db, user=user)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Erro no logout do usuário ID {user_id}: {e}")
        return Err(ErrorKind.VALIDATION_FAILED, "Logout failed", ["Could not revoke the current session"])

    if not newly_revoked:
        logger.debug(f"jti {context.jti} já estava revogado; logout repetido.")
    logger.info(f"Logout do usuário ID {user_id}; jti {context.jti} revogado.")
    return Ok(None, "Logout successful")


async def register(db: AsyncSession, *, user_in: UserRegister) -> Result[User]:
    """Auto-cadastro (fora do gate de autorização); sempre cria 'owner'."""
    if await crud_user.get_by_email(db, email=user_in.email):
        return Err(ErrorKind.VALIDATION_FAILED, "Registration failed", ["Email has already been taken"])
    obj_in = UserCreate(**user_in.model_dump(), role=Role.OWNER)
    try:
        db_user = await crud_user.create(db, obj_in=obj_in)
    except IntegrityError:
        # Cadastro concorrente com o mesmo email
        await db.rollback()
        return Err(ErrorKind.VALIDATION_FAILED, "Registration failed", ["Email has already been taken"])
    logger.info(f"Novo usuário auto-cadastrado: ID {db_user.id}")
    return Ok(db_user, "Registration successful")


async def sweep_revocations(db: AsyncSession) -> int:
    deleted = await crud_revoked_token.sweep_expired(db)
    if deleted:
        logger.info(f"Limpeza de revogações: {deleted} entradas expiradas removidas.")
    return deleted
