"""
tests.test_docs

Per-version OpenAPI documents.
"""

from __future__ import annotations

import io

import pytest
from fastapi import FastAPI
from helpers import log_events

from city_info.api.app import create_app
from city_info.api.docs import SECURITY_SCHEME_NAME
from city_info.settings import Settings


def test_one_document_per_version(app: FastAPI) -> None:
    documents = app.state.api_documents
    assert sorted(documents) == ["v1", "v2"]

    v1, v2 = documents["v1"], documents["v2"]
    assert v1["info"]["title"] == "City Info API"
    assert v1["info"]["version"] == "1.0"
    assert set(v1["paths"]) == {"/api/v1/cities", "/api/v1/cities/{city_id}"}
    assert "/api/v2/cities/{city_id}/pointsofinterest/{point_of_interest_id}" in v2["paths"]
    assert not any("{version}" in path for doc in documents.values() for path in doc["paths"])


def test_bearer_scheme_required_globally(app: FastAPI) -> None:
    for doc in app.state.api_documents.values():
        scheme = doc["components"]["securitySchemes"][SECURITY_SCHEME_NAME]
        assert scheme["type"] == "http"
        assert scheme["scheme"] == "bearer"
        assert scheme["description"] == "Input a valid token to access this API"
        assert doc["security"] == [{SECURITY_SCHEME_NAME: []}]


def test_operation_comments_are_merged(app: FastAPI) -> None:
    op = app.state.api_documents["v2"]["paths"]["/api/v2/cities/{city_id}/pointsofinterest"]["post"]
    assert op["summary"] == "Create a point of interest"
    assert "Location" in op["description"]


def test_missing_comments_file_only_degrades(tmp_path, log_stream: io.StringIO) -> None:
    settings = Settings(
        env="dev",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'docs.db'}",
        doc_comments_path=str(tmp_path / "missing.json"),
    )
    app = create_app(settings=settings, log_stream=log_stream)

    op = app.state.api_documents["v1"]["paths"]["/api/v1/cities"]["get"]
    assert op["summary"] != "Get all cities"
    assert any(e["event"] == "docs.comments_missing" for e in log_events(log_stream))


@pytest.mark.parametrize("content", ['{"operations": []}', "[1, 2]", '{"operations": "none"}'])
def test_malformed_comments_file_only_degrades(
    tmp_path, log_stream: io.StringIO, content: str
) -> None:
    comments = tmp_path / "comments.json"
    comments.write_text(content, encoding="utf-8")
    settings = Settings(
        env="dev",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'docs.db'}",
        doc_comments_path=str(comments),
    )
    app = create_app(settings=settings, log_stream=log_stream)

    assert sorted(app.state.api_documents) == ["v1", "v2"]
    assert any(e["event"] == "docs.comments_malformed" for e in log_events(log_stream))


# --- Module Notes -----------------------------------------------------------
# Serving over HTTP is covered in `test_api.py`.
