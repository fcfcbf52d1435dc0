"""
tests.test_versioning

API version parsing, resolution and start-up validation.
"""

from __future__ import annotations

import pytest
from starlette.routing import Mount

from city_info.api.app import VERSIONED_ROUTERS, create_app
from city_info.api.routers.cities import router as cities_router
from city_info.api.versioning import ApiVersion, ApiVersionRegistry, api_routes
from city_info.errors import AmbiguousVersion, ConfigurationError, UnsupportedVersion
from city_info.settings import Settings


@pytest.mark.parametrize("text", ["2", "2.0", "v2", "V2.0"])
def test_parse_equivalent_spellings(text: str) -> None:
    assert ApiVersion.parse(text) == ApiVersion(2, 0)


def test_formatting() -> None:
    assert str(ApiVersion(1)) == "1.0"
    assert ApiVersion(1).url_segment == "1"
    assert ApiVersion(1, 5).url_segment == "1.5"
    assert ApiVersion(1, 5) > ApiVersion(1, 0)


@pytest.mark.parametrize("text", ["", "one", "1.0.0", "v"])
def test_parse_rejects_garbage(text: str) -> None:
    with pytest.raises(ValueError):
        ApiVersion.parse(text)


def test_resolve_declared_and_default() -> None:
    registry = ApiVersionRegistry(["2.0", "1.0"], default="1.0")

    assert registry.supported() == ["1.0", "2.0"]
    assert [d.group_name for d in registry.descriptors()] == ["v1", "v2"]
    assert registry.resolve("2").version == ApiVersion(2)
    assert registry.resolve(None).group_name == "v1"


def test_resolve_unsupported_lists_supported_versions() -> None:
    registry = ApiVersionRegistry(["1.0", "2.0"], default="1.0")
    with pytest.raises(UnsupportedVersion) as e:
        registry.resolve("3")
    assert e.value.status_code == 400
    assert e.value.extensions() == {"supportedVersions": ["1.0", "2.0"]}

    with pytest.raises(UnsupportedVersion):
        registry.resolve("latest")


def test_resolve_without_default_is_ambiguous() -> None:
    registry = ApiVersionRegistry(["1.0", "2.0"])
    with pytest.raises(AmbiguousVersion):
        registry.resolve(None)


@pytest.mark.parametrize(
    ("versions", "default"),
    [([], None), (["one"], None), (["2.0"], "1.0")],
)
def test_bad_registry_is_configuration_error(versions: list[str], default: str | None) -> None:
    with pytest.raises(ConfigurationError):
        ApiVersionRegistry(versions, default=default)


def test_version_without_routes_aborts_boot(tmp_path) -> None:
    settings = Settings(
        env="dev",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'boot.db'}",
        api_versions=["1.0", "3.0"],
    )
    with pytest.raises(ConfigurationError, match="3.0"):
        create_app(settings=settings)


def test_route_check_reads_router_routes() -> None:
    routes = [route for router in VERSIONED_ROUTERS for route in router.routes]

    ApiVersionRegistry(["1.0", "2.0"]).validate_routes(routes)
    with pytest.raises(ConfigurationError, match="3.0"):
        ApiVersionRegistry(["1.0", "3.0"]).validate_routes(routes)


def test_api_routes_descends_into_nested_routers() -> None:
    nested = Mount("/api", routes=list(cities_router.routes))

    found = list(api_routes([nested]))

    assert {r.name for r in found} == {"get_cities", "get_city"}
    ApiVersionRegistry(["1.0", "2.0"]).validate_routes([nested])


def test_app_boots_with_versioned_routers(tmp_path) -> None:
    settings = Settings(env="dev", database_url=f"sqlite+aiosqlite:///{tmp_path / 'b.db'}")
    app = create_app(settings=settings)

    assert sorted(app.state.api_documents) == ["v1", "v2"]
    assert app.state.policies.names()


# --- Module Notes -----------------------------------------------------------
# The request-level behaviour (400 with supportedVersions) lives in `test_api.py`.
