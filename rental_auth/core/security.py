# rental_auth/core/security.py
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError
from jose.exceptions import ExpiredSignatureError, JWTClaimsError
from passlib.context import CryptContext

from .config import settings
from .exceptions import ErrorKind, TokenDecodeError
# Import UserModel QUALIFICADO para evitar conflito de nome 'User'
from rental_auth.models.user import User as UserModel

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

REQUIRED_ACCESS_CLAIMS = ("jti", "user_id", "exp")


def utc_now() -> datetime:
    """UTC naive, o mesmo formato gravado nas colunas DateTime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        # Limita o tamanho da senha ANTES de passar para o bcrypt (evita erros > 72 bytes)
        password_bytes = plain_password.encode('utf-8')[:72]
        return pwd_context.verify(password_bytes, hashed_password)
    except ValueError:
        # Hash corrompido ou em formato desconhecido
        return False


def get_password_hash(password: str) -> str:
    # Limita o tamanho da senha ANTES de passar para o bcrypt
    password_bytes = password.encode('utf-8')[:72]
    return pwd_context.hash(password_bytes)


# --- Access Token (JWT) ---
def create_access_token(
    user: UserModel,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, str, datetime]:
    """
    Emite um access token assinado.
    Retorna (token, jti, expiração em UTC naive).
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    jti = str(uuid.uuid4())
    to_encode: Dict[str, Any] = {
        "jti": jti,
        "user_id": user.id,
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": expire,
    }
    encoded_jwt = jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    return encoded_jwt, jti, expire.replace(tzinfo=None)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decodifica e valida um access token.

    A ordem das verificações importa: formato, assinatura e só então expiração.
    O algoritmo vem sempre de settings, nunca do header do token.
    Levanta TokenDecodeError com o tipo da falha.
    """
    if not token or token.count(".") != 2:
        raise TokenDecodeError(ErrorKind.MALFORMED_TOKEN, "Token is not a JWS compact string")
    try:
        jwt.get_unverified_header(token)
        unverified = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise TokenDecodeError(ErrorKind.MALFORMED_TOKEN, str(e))

    missing = [claim for claim in REQUIRED_ACCESS_CLAIMS if claim not in unverified]
    if missing:
        raise TokenDecodeError(ErrorKind.MALFORMED_TOKEN, f"Missing claims: {', '.join(missing)}")
    if not isinstance(unverified["user_id"], int) or isinstance(unverified["user_id"], bool):
        raise TokenDecodeError(ErrorKind.MALFORMED_TOKEN, "user_id claim must be an integer")

    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_aud": False, "require_exp": True, "require_jti": True},
        )
    except ExpiredSignatureError:
        raise TokenDecodeError(ErrorKind.EXPIRED, "Signature has expired")
    except JWTClaimsError as e:
        raise TokenDecodeError(ErrorKind.MALFORMED_TOKEN, str(e))
    except JWTError as e:
        # Assinatura inválida ou algoritmo diferente do fixado
        raise TokenDecodeError(ErrorKind.BAD_SIGNATURE, str(e))


# --- Refresh Token (opaco) ---
def create_refresh_token() -> tuple[str, datetime]:
    token = secrets.token_urlsafe(32)
    expire = utc_now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return token, expire
