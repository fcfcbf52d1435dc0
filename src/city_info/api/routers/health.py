"""
city_info.api.routers.health

Liveness and readiness endpoints.

Responsibilities:
- `/healthz`: report the running service and build, without touching the store.
- `/readyz`: confirm the city store answers and its schema is in place.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from city_info import __version__
from city_info.api.deps import db_session
from city_info.db.models import City
from city_info.errors import ServiceNotReady

router = APIRouter()


@router.get("/healthz", include_in_schema=False)
async def healthz(request: Request) -> dict[str, Any]:
    return {
        "status": "ok",
        "service": request.app.state.settings.service_name,
        "version": __version__,
        "apiVersions": request.app.state.api_versions.supported(),
    }


@router.get("/readyz", include_in_schema=False)
async def readyz(request: Request, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    try:
        cities = await session.scalar(select(func.count()).select_from(City))
    except SQLAlchemyError as e:
        log = request.app.state.diagnostics.get_logger(__name__)
        log.warning("readiness.failed", error=type(e).__name__)
        raise ServiceNotReady("The city store is not available.") from e
    return {"status": "ready", "cities": cities}


# --- Module Notes -----------------------------------------------------------
# Outside dev/test the schema comes from Alembic; `/readyz` stays 503 until it is applied.
