# rental_auth/schemas/user.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime

from rental_auth.models.user import Role


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserBase(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator('first_name')
    @classmethod
    def first_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("First name can't be blank")
        return v.strip()


class UserRegister(UserBase):
    """Auto-cadastro: sempre cria 'owner'."""
    password: str = Field(..., min_length=8)


class UserCreate(UserRegister):
    """Criação por admin: pode escolher a role."""
    role: Role = Role.OWNER


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)


class User(BaseModel):
    """Payload de usuário devolvido pela API."""
    id: int
    email: str
    first_name: str
    last_name: Optional[str] = None
    full_name: str
    phone: Optional[str] = None
    role: Role
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def present(cls, user, viewer=None) -> "User":
        payload = cls.model_validate(user)
        # Telefone só para o próprio usuário ou admin
        if viewer is None or not (viewer.is_admin or viewer.id == user.id):
            payload.phone = None
        return payload


class UserFilter(BaseModel):
    search: Optional[str] = None
    role: Optional[Role] = None
    page: int = Field(1, ge=1)
    per_page: int = Field(20, ge=1)


class Pagination(BaseModel):
    current_page: int
    per_page: int
    total_pages: int
    total_count: int


class UserList(BaseModel):
    users: List[User]
    pagination: Pagination
