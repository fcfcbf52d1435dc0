"""
city_info.api.routers.points_of_interest

Point-of-interest endpoints (API version 2.0).

Responsibilities:
- CRUD over the points of interest of one city.
- Restrict listing to callers whose `city` claim names the requested city.
- Send a notification mail when a point of interest is deleted.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.responses import Response
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from city_info.api.deps import city_info_repository, mail_service_dep, mapper_dep
from city_info.api.negotiation import Selection, negotiate
from city_info.api.patching import apply_patch
from city_info.api.schemas import (
    JsonPatchOperation,
    PointOfInterestDto,
    PointOfInterestForCreationDto,
    PointOfInterestForUpdateDto,
)
from city_info.api.versioning import api_versions
from city_info.auth.deps import get_principal, require_policy
from city_info.auth.models import Principal
from city_info.auth.policies import MUST_BE_FROM_ANTWERP
from city_info.db.models import PointOfInterest
from city_info.db.repositories.city_info import CityInfoRepository
from city_info.errors import AuthorizationFailure, ResourceNotFound
from city_info.mapping.mapper import Mapper
from city_info.services.mail import MailService

router = APIRouter(
    prefix="/cities/{city_id}/pointsofinterest",
    tags=["points-of-interest"],
    dependencies=[
        Depends(api_versions("2.0")),
        Depends(require_policy(MUST_BE_FROM_ANTWERP)),
    ],
)


async def _require_city(repo: CityInfoRepository, city_id: int) -> None:
    if not await repo.city_exists(city_id):
        raise ResourceNotFound(f"City with id {city_id} was not found.")


async def _require_point_of_interest(
    repo: CityInfoRepository, city_id: int, point_of_interest_id: int
) -> PointOfInterest:
    await _require_city(repo, city_id)
    poi = await repo.get_point_of_interest_for_city(city_id, point_of_interest_id)
    if poi is None:
        raise ResourceNotFound(
            f"Point of interest with id {point_of_interest_id} was not found in city {city_id}."
        )
    return poi


@router.get("", response_model=list[PointOfInterestDto])
async def get_points_of_interest(
    request: Request,
    city_id: int,
    principal: Principal = Depends(get_principal),
    selection: Selection = Depends(negotiate),
    repo: CityInfoRepository = Depends(city_info_repository),
    mapper: Mapper = Depends(mapper_dep),
) -> Response:
    city_name = principal.first_claim("city")
    if not await repo.city_name_matches_city_id(city_name, city_id):
        log = request.app.state.diagnostics.get_logger(__name__)
        log.info("authz.city_mismatch", subject=principal.subject, city_id=city_id)
        raise AuthorizationFailure("Access to this resource is denied.")

    await _require_city(repo, city_id)
    points = await repo.get_points_of_interest_for_city(city_id)
    return selection.response(mapper.map_many(points, PointOfInterestDto), item=PointOfInterestDto)


@router.get(
    "/{point_of_interest_id}",
    response_model=PointOfInterestDto,
    responses={404: {"description": "City or point of interest not found"}},
)
async def get_point_of_interest(
    city_id: int,
    point_of_interest_id: int,
    selection: Selection = Depends(negotiate),
    repo: CityInfoRepository = Depends(city_info_repository),
    mapper: Mapper = Depends(mapper_dep),
) -> Response:
    poi = await _require_point_of_interest(repo, city_id, point_of_interest_id)
    return selection.response(mapper.map(poi, PointOfInterestDto))


@router.post("", status_code=HTTP_201_CREATED, response_model=PointOfInterestDto)
async def create_point_of_interest(
    request: Request,
    city_id: int,
    body: PointOfInterestForCreationDto,
    selection: Selection = Depends(negotiate),
    repo: CityInfoRepository = Depends(city_info_repository),
    mapper: Mapper = Depends(mapper_dep),
) -> Response:
    await _require_city(repo, city_id)

    poi = mapper.map(body, PointOfInterest)
    await repo.add_point_of_interest_for_city(city_id, poi)
    await repo.save_changes()

    created = mapper.map(poi, PointOfInterestDto)
    location = request.url_for(
        "get_point_of_interest",
        version=request.state.api_version.version.url_segment,
        city_id=str(city_id),
        point_of_interest_id=str(created.id),
    )
    return selection.response(
        created, status_code=HTTP_201_CREATED, headers={"Location": str(location)}
    )


@router.put("/{point_of_interest_id}", status_code=HTTP_204_NO_CONTENT)
async def update_point_of_interest(
    city_id: int,
    point_of_interest_id: int,
    body: PointOfInterestForUpdateDto,
    repo: CityInfoRepository = Depends(city_info_repository),
    mapper: Mapper = Depends(mapper_dep),
) -> Response:
    poi = await _require_point_of_interest(repo, city_id, point_of_interest_id)
    mapper.map_onto(body, poi)
    await repo.save_changes()
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.patch("/{point_of_interest_id}", status_code=HTTP_204_NO_CONTENT)
async def partially_update_point_of_interest(
    city_id: int,
    point_of_interest_id: int,
    patch_document: list[JsonPatchOperation],
    repo: CityInfoRepository = Depends(city_info_repository),
    mapper: Mapper = Depends(mapper_dep),
) -> Response:
    poi = await _require_point_of_interest(repo, city_id, point_of_interest_id)

    to_patch = mapper.map(poi, PointOfInterestForUpdateDto)
    values = apply_patch(to_patch, patch_document)
    try:
        patched = PointOfInterestForUpdateDto.model_validate(values)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e

    mapper.map_onto(patched, poi)
    await repo.save_changes()
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.delete("/{point_of_interest_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_point_of_interest(
    city_id: int,
    point_of_interest_id: int,
    repo: CityInfoRepository = Depends(city_info_repository),
    mail: MailService = Depends(mail_service_dep),
) -> Response:
    poi = await _require_point_of_interest(repo, city_id, point_of_interest_id)
    await repo.delete_point_of_interest(poi)
    await repo.save_changes()

    mail.send(
        "Point of interest deleted.",
        f"Point of interest {poi.name} with id {poi.id} was deleted.",
    )
    return Response(status_code=HTTP_204_NO_CONTENT)
