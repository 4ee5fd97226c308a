# rental_auth/models/revoked_token.py
from sqlalchemy import String, DateTime, func, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from rental_auth.db.base import Base


class RevokedToken(Base):
    """Access token invalidado antes da expiração natural (logout)."""
    __tablename__ = "revoked_tokens"

    # jti como chave primária: unicidade e lookup por PK no verificador
    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Referência fraca para auditoria; apagada junto com o usuário
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Mesmo 'exp' do token (UTC naive); depois disso a entrada pode ser removida
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    __table_args__ = (Index("ix_revoked_tokens_expires_at", "expires_at"),)
