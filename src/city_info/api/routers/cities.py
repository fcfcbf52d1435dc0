"""
city_info.api.routers.cities

City endpoints (API versions 1.0 and 2.0).

Responsibilities:
- List cities (restricted view).
- Fetch one city in the full or restricted view.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from starlette.responses import Response

from city_info.api.deps import city_info_repository, mapper_dep
from city_info.api.negotiation import Selection, negotiate
from city_info.api.schemas import CityDto, CityWithoutPointsOfInterestDto
from city_info.api.versioning import api_versions
from city_info.auth.deps import require_policy
from city_info.auth.policies import MUST_BE_FROM_ANTWERP
from city_info.db.repositories.city_info import CityInfoRepository
from city_info.errors import ResourceNotFound
from city_info.mapping.mapper import Mapper

router = APIRouter(
    prefix="/cities",
    tags=["cities"],
    dependencies=[
        Depends(api_versions("1.0", "2.0")),
        Depends(require_policy(MUST_BE_FROM_ANTWERP)),
    ],
)


@router.get("", response_model=list[CityWithoutPointsOfInterestDto])
async def get_cities(
    selection: Selection = Depends(negotiate),
    repo: CityInfoRepository = Depends(city_info_repository),
    mapper: Mapper = Depends(mapper_dep),
) -> Response:
    cities = await repo.get_cities()
    return selection.response(
        mapper.map_many(cities, CityWithoutPointsOfInterestDto),
        item=CityWithoutPointsOfInterestDto,
    )


@router.get(
    "/{city_id}",
    response_model=CityDto | CityWithoutPointsOfInterestDto,
    responses={404: {"description": "City not found"}},
)
async def get_city(
    city_id: int,
    include_points_of_interest: bool = Query(default=False, alias="includePointsOfInterest"),
    selection: Selection = Depends(negotiate),
    repo: CityInfoRepository = Depends(city_info_repository),
    mapper: Mapper = Depends(mapper_dep),
) -> Response:
    city = await repo.get_city(city_id, include_points_of_interest=include_points_of_interest)
    if city is None:
        raise ResourceNotFound(f"City with id {city_id} was not found.")

    if include_points_of_interest:
        return selection.response(mapper.map(city, CityDto))
    return selection.response(mapper.map(city, CityWithoutPointsOfInterestDto))
