"""
city_info.errors

Error taxonomy for the request pipeline and start-up composition.

Responsibilities:
- Define per-request failures with their HTTP status and problem type slug.
- Define `ConfigurationError`, which aborts boot instead of being rendered.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class ConfigurationError(Exception):
    """
    Start-up wiring is invalid (unknown policy, missing mapping, missing credential).
    Never converted into an HTTP response.
    """


class CityInfoError(Exception):
    """
    Base class for failures that are reported to the caller as a problem response.
    `detail` is caller-safe text; internal reasons are logged separately.
    """

    status_code: int = 500
    slug: str = "internal-server-error"
    title: str = "Internal Server Error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.title)
        self.detail = detail or self.title

    def extensions(self) -> dict[str, Any]:
        return {}

    def headers(self) -> dict[str, str] | None:
        return None


class AuthenticationFailure(CityInfoError):
    status_code = 401
    slug = "unauthorized"
    title = "Authentication Required"

    # Callers always see the same detail, whichever check failed.
    public_detail = "The request requires a valid bearer token."

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(self.public_detail)
        self.reason = reason or type(self).__name__

    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class InvalidToken(AuthenticationFailure):
    pass


class ExpiredToken(AuthenticationFailure):
    pass


class UntrustedIssuer(AuthenticationFailure):
    pass


class UntrustedAudience(AuthenticationFailure):
    pass


class AuthorizationFailure(CityInfoError):
    status_code = 403
    slug = "forbidden"
    title = "Access Denied"


class VersionResolutionError(CityInfoError):
    status_code = 400
    slug = "bad-request"
    title = "Bad Request"

    def __init__(self, detail: str, *, supported: Sequence[str]) -> None:
        super().__init__(detail)
        self.supported = list(supported)

    def extensions(self) -> dict[str, Any]:
        return {"supportedVersions": self.supported}


class UnsupportedVersion(VersionResolutionError):
    pass


class AmbiguousVersion(VersionResolutionError):
    pass


class NotAcceptable(CityInfoError):
    status_code = 406
    slug = "not-acceptable"
    title = "Not Acceptable"

    def __init__(self, detail: str, *, supported: Sequence[str]) -> None:
        super().__init__(detail)
        self.supported = list(supported)

    def extensions(self) -> dict[str, Any]:
        return {"supportedMediaTypes": self.supported}


class ResourceNotFound(CityInfoError):
    status_code = 404
    slug = "not-found"
    title = "Resource Not Found"


class InvalidPatch(CityInfoError):
    status_code = 400
    slug = "invalid-patch"
    title = "Invalid Patch Document"


class ServiceNotReady(CityInfoError):
    status_code = 503
    slug = "service-unavailable"
    title = "Service Unavailable"


# --- Module Notes -----------------------------------------------------------
# Rendering lives in `city_info.api.problems`; this module stays free of FastAPI
# imports so the auth/mapping layers can raise these errors without the web stack.
