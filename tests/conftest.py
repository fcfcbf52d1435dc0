"""
tests.conftest

Shared fixtures for the City Info API tests.

Responsibilities:
- Build a dev-mode app against a throwaway sqlite database.
- Provide an httpx client bound to the app via ASGITransport (lifespan managed explicitly).
- Mint bearer tokens with the app's own JWT settings.
"""

from __future__ import annotations

import io
from collections.abc import AsyncIterator, Callable
from datetime import timedelta
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from city_info.api.app import create_app
from city_info.auth.jwt import JwtConfig, issue_token
from city_info.settings import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="dev",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'cityinfo-test.db'}",
        jwt_secret="test-secret-with-enough-bytes-for-hs256",
        jwt_issuer="https://cityinfo.test",
        jwt_audience="cityinfoapi",
    )


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def app(settings: Settings, log_stream: io.StringIO) -> FastAPI:
    return create_app(settings=settings, log_stream=log_stream)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    # httpx ASGITransport does not manage lifespan automatically; do it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


@pytest.fixture
def make_token(settings: Settings) -> Callable[..., str]:
    def _make(
        subject: str = "kvinckier",
        *,
        city: str | None = "Antwerp",
        ttl: timedelta = timedelta(minutes=30),
        cfg: JwtConfig | None = None,
        **claims: Any,
    ) -> str:
        if city is not None:
            claims["city"] = city
        return issue_token(
            cfg=cfg or JwtConfig.from_settings(settings), subject=subject, claims=claims, ttl=ttl
        )

    return _make


# --- Module Notes -----------------------------------------------------------
# Each test gets its own database file, so seeded ids and mutations never leak.
