# rental_auth/schemas/token.py
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel

from rental_auth.models.user import User as UserModel
from rental_auth.schemas.user import User


class LoginRequest(BaseModel):
    # Sem validação de formato aqui: qualquer entrada inválida vira a mesma falha genérica
    email: str = ""
    password: str = ""


class RefreshTokenRequest(BaseModel):
    refresh_token: str = ""


class LoginResponse(BaseModel):
    user: User
    token: str
    refresh_token: str
    expires_at: datetime
    refresh_expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    jti: str
    access_expires_at: datetime
    refresh_expires_at: datetime


@dataclass(frozen=True)
class AuthContext:
    """Contexto explícito da requisição autenticada (substitui o 'current_user' global)."""
    user: UserModel
    claims: Dict[str, Any]
    token: str

    @property
    def jti(self) -> str:
        return self.claims["jti"]
