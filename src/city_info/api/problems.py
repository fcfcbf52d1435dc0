"""
city_info.api.problems

Problem Details (RFC 9457) error responses.

Responsibilities:
- Define the problem body shape (kind, human message, optional extensions).
- Convert pipeline errors, HTTPException and validation errors into problem responses.
- Log internal detail without echoing it to the caller.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from city_info.api.versioning import SUPPORTED_VERSIONS_HEADER
from city_info.errors import AuthenticationFailure, CityInfoError
from city_info.observability.middleware import REQUEST_ID_HEADER

PROBLEM_MEDIA_TYPE = "application/problem+json"

# HTTP status code -> (title, slug)
_HTTP_STATUS_INFO: dict[int, tuple[str, str]] = {
    400: ("Bad Request", "bad-request"),
    401: ("Authentication Required", "unauthorized"),
    403: ("Access Denied", "forbidden"),
    404: ("Resource Not Found", "not-found"),
    405: ("Method Not Allowed", "method-not-allowed"),
    406: ("Not Acceptable", "not-acceptable"),
    415: ("Unsupported Media Type", "unsupported-media-type"),
    422: ("Validation Failed", "validation-failed"),
    500: ("Internal Server Error", "internal-server-error"),
    503: ("Service Unavailable", "service-unavailable"),
}


class ProblemDetails(BaseModel):
    """
    RFC 9457 body. Extension members are carried as extra fields.

    `traceId` is the request id assigned by `RequestContextMiddleware` (caller-supplied
    `x-request-id` or a generated UUID), so a problem body can be matched to its log lines.
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str
    status: int
    detail: str | None = None
    instance: str | None = None
    trace_id: str | None = Field(default=None, alias="traceId")


def problem_response(
    request: Request,
    *,
    status_code: int,
    detail: str | None,
    title: str | None = None,
    slug: str | None = None,
    extensions: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    default_title, default_slug = _HTTP_STATUS_INFO.get(status_code, ("Error", "error"))
    base_url = request.app.state.settings.problem_base_url.rstrip("/")
    problem = ProblemDetails(
        type=f"{base_url}/{slug or default_slug}",
        title=title or default_title,
        status=status_code,
        detail=detail,
        instance=request.url.path,
        traceId=request_id(request),
        **(extensions or {}),
    )
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(by_alias=True, exclude_none=True),
        headers={**_pipeline_headers(request), **(headers or {})},
        media_type=PROBLEM_MEDIA_TYPE,
    )


def request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER)


def _pipeline_headers(request: Request) -> dict[str, str]:
    # Responses raised past the middleware stack (unhandled errors) still carry these.
    headers = {SUPPORTED_VERSIONS_HEADER: ", ".join(request.app.state.api_versions.supported())}
    rid = request_id(request)
    if rid:
        headers[REQUEST_ID_HEADER] = rid
    return headers


async def city_info_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, CityInfoError)
    log = request.app.state.diagnostics.get_logger(__name__)
    # Authentication reasons were already logged by the validator; never sent to the caller.
    internal = exc.reason if isinstance(exc, AuthenticationFailure) else exc.detail
    log.info("request.rejected", kind=type(exc).__name__, status=exc.status_code, internal=internal)
    return problem_response(
        request,
        status_code=exc.status_code,
        detail=exc.detail,
        title=exc.title,
        slug=exc.slug,
        extensions=exc.extensions(),
        headers=exc.headers(),
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    return problem_response(
        request,
        status_code=exc.status_code,
        detail=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "body",
            "code": err.get("type", "value_error"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return problem_response(
        request,
        status_code=422,
        detail="Request validation failed",
        extensions={"errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log = request.app.state.diagnostics.get_logger(__name__)
    log.exception(
        "request.unhandled_error",
        error_type=type(exc).__name__,
        request_id=request_id(request),
        path=request.url.path,
    )
    return problem_response(request, status_code=500, detail="An unexpected error occurred.")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CityInfoError, city_info_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# --- Module Notes -----------------------------------------------------------
# Problem bodies are always JSON, whatever the Accept header asked for.
