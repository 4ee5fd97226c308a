# rental_auth/models/user.py
import enum
from sqlalchemy import String, DateTime, func, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from typing import Optional

from rental_auth.db.base import Base


class Role(str, enum.Enum):
    # Tag textual canônica; o antigo enum inteiro (0 = owner, 1 = admin) é só migração
    OWNER = "owner"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    # Sempre gravado em minúsculas: unicidade case-insensitive
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    role: Mapped[str] = mapped_column(String(20), default=Role.OWNER.value, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # --- Refresh token opaco (no máximo um ativo por usuário) ---
    refresh_token: Mapped[Optional[str]] = mapped_column(String(255), unique=True, index=True)
    refresh_token_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime)  # UTC naive
    # --- Fim Refresh token ---

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
