"""
city_info.api.docs

Per-version OpenAPI document generation.

Responsibilities:
- Emit one OpenAPI document per registered API version, paths shown with the version substituted.
- Declare the bearer security scheme and require it globally.
- Merge externally authored operation text from the doc-comments file; a missing file only
  degrades the documents.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from fastapi.openapi.utils import get_openapi
from fastapi.routing import APIRoute
from starlette.routing import BaseRoute

from city_info.api.versioning import (
    VERSIONED_PREFIX,
    ApiVersionDescriptor,
    ApiVersionRegistry,
    api_routes,
    route_versions,
)
from city_info.observability.logging import Diagnostics

API_TITLE = "City Info API"
API_DESCRIPTION = "Through this API you can access cities and their points of interest."

SECURITY_SCHEME_NAME = "ApiBearerAuth"
SECURITY_SCHEME = {
    "type": "http",
    "scheme": "bearer",
    "bearerFormat": "JWT",
    "description": "Input a valid token to access this API",
}

DEFAULT_COMMENTS_PATH = Path(__file__).with_name("doc_comments.json")

VERSION_PARAM = "{version}"


class ApiDescriptionPublisher:
    def __init__(self, *, diagnostics: Diagnostics, comments_path: Path | None = None) -> None:
        self._log = diagnostics.get_logger(__name__)
        self._comments_path = comments_path or DEFAULT_COMMENTS_PATH

    def load_comments(self) -> dict[str, dict[str, str]]:
        try:
            raw = json.loads(self._comments_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            # Documentation without operation text is still usable; do not block boot.
            self._log.warning(
                "docs.comments_missing", path=str(self._comments_path), error=type(e).__name__
            )
            return {}
        operations = raw.get("operations") if isinstance(raw, dict) else None
        if not isinstance(operations, dict):
            self._log.warning(
                "docs.comments_malformed",
                path=str(self._comments_path),
                found=type(operations).__name__,
            )
            return {}
        return {k: v for k, v in operations.items() if isinstance(v, dict)}

    def publish(
        self, routes: Iterable[BaseRoute], registry: ApiVersionRegistry
    ) -> dict[str, dict[str, Any]]:
        """
        `routes` are the versioned routers' own routes, before any prefix is applied.
        """
        routes = list(api_routes(routes))
        comments = self.load_comments()
        documents = {
            d.group_name: self.document(routes, d, comments) for d in registry.descriptors()
        }
        self._log.info("docs.published", groups=sorted(documents))
        return documents

    def document(
        self,
        routes: list[APIRoute],
        descriptor: ApiVersionDescriptor,
        comments: dict[str, dict[str, str]],
    ) -> dict[str, Any]:
        served = [r for r in routes if _serves(r, descriptor)]
        schema = get_openapi(
            title=API_TITLE,
            version=str(descriptor.version),
            description=API_DESCRIPTION,
            routes=served,
        )

        prefix = VERSIONED_PREFIX.replace(VERSION_PARAM, descriptor.version.url_segment)
        schema["paths"] = {prefix + path: ops for path, ops in schema.get("paths", {}).items()}

        for route in served:
            text = comments.get(route.name)
            if not text:
                continue
            ops = schema["paths"].get(prefix + route.path_format, {})
            for method in route.methods:
                op = ops.get(method.lower())
                if op is None:
                    continue
                if "summary" in text:
                    op["summary"] = text["summary"]
                if "description" in text:
                    op["description"] = text["description"]

        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {})[SECURITY_SCHEME_NAME] = dict(SECURITY_SCHEME)
        schema["security"] = [{SECURITY_SCHEME_NAME: []}]
        return schema


def _serves(route: APIRoute, descriptor: ApiVersionDescriptor) -> bool:
    if not route.include_in_schema:
        return False
    requirement = route_versions(route)
    return requirement is not None and descriptor.version in requirement.versions


# --- Module Notes -----------------------------------------------------------
# Documents are generated once in `api.app.create_app` from the unprefixed router routes and
# served from app.state by `api.routers.docs`.
