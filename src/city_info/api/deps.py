"""
city_info.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the repository.
- Encapsulate app.state access patterns (sessionmaker, mapper, mail service).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from city_info.db.repositories.city_info import CityInfoRepo, CityInfoRepository
from city_info.mapping.mapper import Mapper
from city_info.services.mail import MailService
from city_info.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The app was built from an explicit Settings instance; requests see the same one.
    return request.app.state.settings


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created on app startup in `city_info.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Handlers commit explicitly via `save_changes`.
    async with session_factory() as session:
        yield session


def city_info_repository(session: AsyncSession = Depends(db_session)) -> CityInfoRepository:
    return CityInfoRepo(session)


def mapper_dep(request: Request) -> Mapper:
    return request.app.state.mapper


def mail_service_dep(request: Request) -> MailService:
    return request.app.state.mail_service


# --- Module Notes -----------------------------------------------------------
# Tests can swap the repository with `app.dependency_overrides[city_info_repository]`.
