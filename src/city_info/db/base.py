"""
city_info.db.base

SQLAlchemy declarative base for the city schema.

Responsibilities:
- Provide the shared DeclarativeBase for `City` and `PointOfInterest`.
- Fix constraint naming so Alembic autogenerate emits stable names on every backend.
"""

from __future__ import annotations

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# --- Module Notes -----------------------------------------------------------
# `alembic/env.py` and `db.init_db` both read `Base.metadata`; entities must be imported
# (see `city_info.db.models`) before either uses it.
