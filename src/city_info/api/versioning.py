"""
city_info.api.versioning

API version resolution.

Responsibilities:
- Parse version tokens from the `/api/v{version}/...` URL segment.
- Hold the registered version descriptors and resolve a request to exactly one of them.
- Let routes declare which versions they serve, and check every descriptor is served.
- Advertise the supported versions on every response.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from fastapi import Request
from fastapi.routing import APIRoute
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.routing import BaseRoute
from starlette.types import ASGIApp

from city_info.errors import AmbiguousVersion, ConfigurationError, UnsupportedVersion

SUPPORTED_VERSIONS_HEADER = "api-supported-versions"
VERSIONED_PREFIX = "/api/v{version}"

_VERSION_RE = re.compile(r"^[vV]?(\d+)(?:\.(\d+))?$")


@dataclass(frozen=True, slots=True, order=True)
class ApiVersion:
    major: int
    minor: int = 0

    @classmethod
    def parse(cls, text: str) -> ApiVersion:
        m = _VERSION_RE.match(text.strip())
        if m is None:
            raise ValueError(f"not an API version: {text!r}")
        return cls(int(m.group(1)), int(m.group(2) or 0))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    @property
    def url_segment(self) -> str:
        return str(self.major) if self.minor == 0 else str(self)


@dataclass(frozen=True, slots=True)
class ApiVersionDescriptor:
    group_name: str
    version: ApiVersion
    label: str

    @classmethod
    def for_version(cls, version: ApiVersion) -> ApiVersionDescriptor:
        group = f"v{version.url_segment}"
        return cls(group_name=group, version=version, label=group.upper())


class ApiVersionRegistry:
    """
    Immutable after construction; shared by all requests.
    """

    def __init__(self, versions: Iterable[str], *, default: str | None = None) -> None:
        try:
            parsed = sorted({ApiVersion.parse(v) for v in versions})
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if not parsed:
            raise ConfigurationError("at least one API version must be registered")

        self._descriptors = tuple(ApiVersionDescriptor.for_version(v) for v in parsed)
        self._by_version = {d.version: d for d in self._descriptors}

        self._default: ApiVersionDescriptor | None = None
        if default is not None:
            try:
                self._default = self._by_version[ApiVersion.parse(default)]
            except (ValueError, KeyError):
                raise ConfigurationError(
                    f"default API version {default!r} is not one of {self.supported()}"
                ) from None

    @property
    def default(self) -> ApiVersionDescriptor | None:
        return self._default

    def descriptors(self) -> list[ApiVersionDescriptor]:
        return list(self._descriptors)

    def supported(self) -> list[str]:
        return [str(d.version) for d in self._descriptors]

    def resolve(self, declared: str | None) -> ApiVersionDescriptor:
        if declared is None or not declared.strip():
            if self._default is None:
                raise AmbiguousVersion(
                    "An API version is required but was not specified.",
                    supported=self.supported(),
                )
            return self._default

        try:
            version = ApiVersion.parse(declared)
        except ValueError:
            version = None
        descriptor = self._by_version.get(version) if version is not None else None
        if descriptor is None:
            raise UnsupportedVersion(
                f"The requested API version '{declared}' is not supported.",
                supported=self.supported(),
            )
        return descriptor

    def validate_routes(self, routes: Iterable[BaseRoute]) -> None:
        bound: set[ApiVersion] = set()
        for route in api_routes(routes):
            requirement = route_versions(route)
            if requirement is not None:
                bound |= requirement.versions
        for descriptor in self._descriptors:
            if descriptor.version not in bound:
                raise ConfigurationError(
                    f"API version {descriptor.version} has no routes bound to it"
                )


class ApiVersionRequirement:
    """
    Router-level dependency: resolves the request's version and checks the route serves it.
    Declared first on versioned routers so it runs before authentication.
    """

    def __init__(self, *versions: str) -> None:
        self.versions = frozenset(ApiVersion.parse(v) for v in versions)

    def __call__(self, request: Request) -> ApiVersionDescriptor:
        registry: ApiVersionRegistry = request.app.state.api_versions
        declared = request.path_params.get("version")
        try:
            descriptor = registry.resolve(declared)
            if descriptor.version not in self.versions:
                raise UnsupportedVersion(
                    f"The requested resource does not support API version '{descriptor.version}'.",
                    supported=registry.supported(),
                )
        except (UnsupportedVersion, AmbiguousVersion) as e:
            log = request.app.state.diagnostics.get_logger(__name__)
            log.info("api_version.rejected", declared=declared, reason=type(e).__name__)
            raise
        request.state.api_version = descriptor
        return descriptor


def api_versions(*versions: str) -> ApiVersionRequirement:
    return ApiVersionRequirement(*versions)


def api_routes(routes: Iterable[BaseRoute]) -> Iterator[APIRoute]:
    """
    Yield the `APIRoute`s in `routes`, descending into anything that nests its own routes.
    """
    for route in routes:
        if isinstance(route, APIRoute):
            yield route
            continue
        nested = getattr(route, "routes", None)
        if nested:
            yield from api_routes(nested)


def route_versions(route: object) -> ApiVersionRequirement | None:
    if not isinstance(route, APIRoute):
        return None
    for dep in route.dependant.dependencies:
        if isinstance(dep.call, ApiVersionRequirement):
            return dep.call
    return None


class SupportedVersionsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, *, registry: ApiVersionRegistry) -> None:
        super().__init__(app)
        self._header_value = ", ".join(registry.supported())

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers[SUPPORTED_VERSIONS_HEADER] = self._header_value
        return response


# --- Module Notes -----------------------------------------------------------
# Versioned routers are mounted twice in `api.app`: under `/api/v{version}` and under
# `/api` (which falls back to the default version).
