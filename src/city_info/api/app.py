"""
city_info.api.app

FastAPI app factory for the City Info service.

Responsibilities:
- Assemble the diagnostics sink, policy table, version registry, negotiator and mapper once.
- Register middleware (forwarded headers, request context, supported versions) and routers.
- Validate the start-up tables eagerly; any `ConfigurationError` aborts boot.
- Initialize and dispose shared infrastructure (DB engine/session factory).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import IO

from fastapi import FastAPI
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from city_info import __version__
from city_info.api.docs import API_TITLE, ApiDescriptionPublisher
from city_info.api.negotiation import default_negotiator
from city_info.api.problems import register_exception_handlers
from city_info.api.routers.authentication import router as authentication_router
from city_info.api.routers.cities import router as cities_router
from city_info.api.routers.docs import router as docs_router
from city_info.api.routers.health import router as health_router
from city_info.api.routers.points_of_interest import router as points_of_interest_router
from city_info.api.versioning import (
    VERSIONED_PREFIX,
    ApiVersionRegistry,
    SupportedVersionsMiddleware,
)
from city_info.auth.deps import referenced_policies
from city_info.auth.jwt import CredentialValidator, JwtConfig
from city_info.auth.policies import PolicyTable, default_policies
from city_info.db.init_db import init_db
from city_info.db.session import create_engine, create_sessionmaker
from city_info.mapping.profiles import build_mapper
from city_info.observability.logging import build_diagnostics_config, install_diagnostics
from city_info.observability.middleware import RequestContextMiddleware
from city_info.services.mail import build_mail_service
from city_info.settings import Settings

VERSIONED_ROUTERS = (cities_router, points_of_interest_router)


def create_app(
    *,
    settings: Settings,
    policies: PolicyTable | None = None,
    log_stream: IO[str] | None = None,
) -> FastAPI:
    # Diagnostics first: every later start-up step logs through this handle.
    diagnostics = install_diagnostics(build_diagnostics_config(settings), stream=log_stream)
    log = diagnostics.get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, sinks=list(diagnostics.config.sinks))
        # Create the async DB engine and session factory once and stash them on app.state.
        # Routers obtain sessions via dependencies (see `city_info.api.deps`).
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create and seed tables. Prod should use Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            # Dispose the engine to close pools/FDs gracefully.
            await engine.dispose()
            log.info("shutdown")
            diagnostics.shutdown()

    app = FastAPI(
        title=API_TITLE,
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    # Read-only tables shared by every request.
    app.state.settings = settings
    app.state.diagnostics = diagnostics
    app.state.credential_validator = CredentialValidator(
        JwtConfig.from_settings(settings), diagnostics=diagnostics
    )
    app.state.policies = policies or default_policies()
    app.state.api_versions = ApiVersionRegistry(
        settings.api_versions, default=settings.default_api_version
    )
    app.state.negotiator = default_negotiator(settings.default_media_type)
    app.state.mapper = build_mapper()
    app.state.mail_service = build_mail_service(settings, diagnostics=diagnostics)

    register_exception_handlers(app)

    # Last added runs first: forwarded headers are normalized before anything reads the client.
    app.add_middleware(SupportedVersionsMiddleware, registry=app.state.api_versions)
    app.add_middleware(RequestContextMiddleware, diagnostics=diagnostics)
    if settings.https_redirect:
        app.add_middleware(HTTPSRedirectMiddleware)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.forwarded_allow_ips)

    app.include_router(health_router, tags=["health"])
    app.include_router(authentication_router)
    app.include_router(docs_router)
    for router in VERSIONED_ROUTERS:
        app.include_router(router, prefix=VERSIONED_PREFIX)
        # Unversioned paths resolve to the default version.
        app.include_router(router, prefix="/api", include_in_schema=False)

    # Fail fast on wiring errors before the first request can be accepted.
    # Router routes carry their router-level dependencies and no prefix.
    versioned_routes = [route for router in VERSIONED_ROUTERS for route in router.routes]
    app.state.policies.validate(
        producible_claims=CredentialValidator.produces_claims,
        referenced=referenced_policies(versioned_routes),
    )
    app.state.api_versions.validate_routes(versioned_routes)

    publisher = ApiDescriptionPublisher(
        diagnostics=diagnostics,
        comments_path=Path(settings.doc_comments_path) if settings.doc_comments_path else None,
    )
    app.state.api_documents = publisher.publish(versioned_routes, app.state.api_versions)

    log.info(
        "app.composed",
        api_versions=app.state.api_versions.supported(),
        policies=app.state.policies.names(),
        media_types=app.state.negotiator.supported_media_types(),
    )
    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; pipeline logic stays
# in auth/versioning/negotiation/mapping modules.
