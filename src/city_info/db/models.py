"""
city_info.db.models

Persistence schema for cities and their points of interest.

Responsibilities:
- Define the internal entity shapes (`City`, `PointOfInterest`) that the mapper
  turns into wire representations.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from city_info.db.base import Base


class City(Base):
    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # lazy="raise": async sessions cannot lazy-load; repositories eager-load explicitly.
    points_of_interest: Mapped[list[PointOfInterest]] = relationship(
        back_populates="city",
        cascade="all, delete-orphan",
        lazy="raise",
        order_by="PointOfInterest.id",
    )


class PointOfInterest(Base):
    __tablename__ = "points_of_interest"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city_id: Mapped[int] = mapped_column(ForeignKey("cities.id"), nullable=False, index=True)

    city: Mapped[City] = relationship(back_populates="points_of_interest", lazy="raise")


# --- Module Notes -----------------------------------------------------------
# Column lengths mirror the request-model constraints in `api.schemas`.
