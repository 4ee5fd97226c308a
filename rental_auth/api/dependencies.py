# rental_auth/api/dependencies.py
import secrets  # Comparação de chave em tempo constante
from typing import Optional

from fastapi import Depends, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rental_auth.core.config import settings
from rental_auth.core.exceptions import ApiError
from rental_auth.db.session import get_db
from rental_auth.models.user import User as UserModel
from rental_auth.schemas.token import AuthContext
from rental_auth.services import auth_service

# auto_error=False: a resposta 401 sai no envelope padrão, não no {"detail": ...} do FastAPI
bearer_scheme = HTTPBearer(auto_error=False, description="Access token (Authorization: Bearer <token>)")

WWW_AUTHENTICATE = {"WWW-Authenticate": "Bearer"}


async def get_auth_context(
    db: AsyncSession = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthContext:
    """
    Resolve o usuário da requisição a partir do Bearer token.
    O resultado é passado explicitamente aos endpoints; não existe 'current_user' global.
    """
    if credentials is None or not credentials.credentials:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Authentication required", headers=WWW_AUTHENTICATE)

    result = await auth_service.verify_access_token(db, token=credentials.credentials)
    if not result.success:
        # O tipo da falha fica no log; o cliente recebe sempre a mesma mensagem
        logger.info(f"Token rejeitado: {result.kind.value}")
        raise ApiError(status.HTTP_401_UNAUTHORIZED, result.message, headers=WWW_AUTHENTICATE)
    return result.data


async def get_current_user(context: AuthContext = Depends(get_auth_context)) -> UserModel:
    return context.user


# --- DEPENDÊNCIA DA CHAVE DE API (X-API-Key) ---
api_key_header_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)


async def get_api_key(api_key: Optional[str] = Depends(api_key_header_scheme)) -> str:
    """
    Verifica se a X-API-Key enviada no header é válida.
    """
    if not settings.INTERNAL_API_KEY:
        # Erro de configuração: a chave nem está definida no servidor
        logger.error("INTERNAL_API_KEY não está configurada; /mgmt indisponível.")
        raise ApiError(status.HTTP_503_SERVICE_UNAVAILABLE, "Management API is not configured")
    if not api_key or not secrets.compare_digest(api_key, settings.INTERNAL_API_KEY):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid or missing API key")
    return api_key
# --- FIM DEPENDÊNCIA DA CHAVE DE API ---
