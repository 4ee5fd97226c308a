# rental_auth/db/base.py
from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Nomes determinísticos de constraints para o autogenerate do Alembic
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """
    Classe base declarativa dos modelos (users, revoked_tokens).
    """
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
