"""
city_info.api.routers.docs

Documentation endpoints.

Responsibilities:
- Serve the generated OpenAPI document of each API version group.
- Serve a Swagger UI that lists every version group.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import HTMLResponse
from starlette.status import HTTP_404_NOT_FOUND

from city_info.api.docs import API_TITLE

router = APIRouter(prefix="/swagger", include_in_schema=False)


@router.get("/{group}/swagger.json")
async def api_description(group: str, request: Request) -> dict[str, Any]:
    documents: dict[str, dict[str, Any]] = request.app.state.api_documents
    document = documents.get(group.lower())
    if document is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"No API description for '{group}'")
    return document


@router.get("", response_class=HTMLResponse)
async def swagger_ui(request: Request) -> HTMLResponse:
    descriptors = request.app.state.api_versions.descriptors()
    urls = [
        {"url": f"/swagger/{d.group_name}/swagger.json", "name": d.label} for d in descriptors
    ]
    return get_swagger_ui_html(
        openapi_url=urls[0]["url"],
        title=f"{API_TITLE} - Swagger UI",
        swagger_ui_parameters={"urls": urls, "urls.primaryName": urls[0]["name"]},
    )
