"""
city_info.db.repositories.city_info

City / point-of-interest repository.

Responsibilities:
- Declare the `CityInfoRepository` contract (internal entity shapes or `None` for not-found).
- Implement it over an async SQLAlchemy session.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from city_info.db.models import City, PointOfInterest


class CityInfoRepository(Protocol):
    async def get_cities(self) -> Sequence[City]: ...

    async def get_city(self, city_id: int, *, include_points_of_interest: bool) -> City | None: ...

    async def city_exists(self, city_id: int) -> bool: ...

    async def city_name_matches_city_id(self, city_name: str | None, city_id: int) -> bool: ...

    async def get_points_of_interest_for_city(self, city_id: int) -> Sequence[PointOfInterest]: ...

    async def get_point_of_interest_for_city(
        self, city_id: int, point_of_interest_id: int
    ) -> PointOfInterest | None: ...

    async def add_point_of_interest_for_city(
        self, city_id: int, point_of_interest: PointOfInterest
    ) -> None: ...

    async def delete_point_of_interest(self, point_of_interest: PointOfInterest) -> None: ...

    async def save_changes(self) -> bool: ...


class CityInfoRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_cities(self) -> Sequence[City]:
        stmt = select(City).order_by(City.name)
        return (await self._session.execute(stmt)).scalars().all()

    async def get_city(self, city_id: int, *, include_points_of_interest: bool) -> City | None:
        stmt = select(City).where(City.id == city_id)
        if include_points_of_interest:
            stmt = stmt.options(selectinload(City.points_of_interest))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def city_exists(self, city_id: int) -> bool:
        stmt = select(City.id).where(City.id == city_id)
        return (await self._session.execute(stmt)).first() is not None

    async def city_name_matches_city_id(self, city_name: str | None, city_id: int) -> bool:
        if not city_name:
            return False
        stmt = select(City.id).where(City.id == city_id, City.name == city_name)
        return (await self._session.execute(stmt)).first() is not None

    async def get_points_of_interest_for_city(self, city_id: int) -> Sequence[PointOfInterest]:
        stmt = (
            select(PointOfInterest)
            .where(PointOfInterest.city_id == city_id)
            .order_by(PointOfInterest.id)
        )
        return (await self._session.execute(stmt)).scalars().all()

    async def get_point_of_interest_for_city(
        self, city_id: int, point_of_interest_id: int
    ) -> PointOfInterest | None:
        stmt = select(PointOfInterest).where(
            PointOfInterest.city_id == city_id,
            PointOfInterest.id == point_of_interest_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def add_point_of_interest_for_city(
        self, city_id: int, point_of_interest: PointOfInterest
    ) -> None:
        point_of_interest.city_id = city_id
        self._session.add(point_of_interest)

    async def delete_point_of_interest(self, point_of_interest: PointOfInterest) -> None:
        await self._session.delete(point_of_interest)

    async def save_changes(self) -> bool:
        await self._session.commit()
        return True
