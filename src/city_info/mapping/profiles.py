"""
city_info.mapping.profiles

Registered mappings for cities and points of interest.

Responsibilities:
- Declare one TypeMap per exposed shape (full and restricted city views coexist).
- List the pairs request handlers rely on, for start-up validation.
"""

from __future__ import annotations

from city_info.api.schemas import (
    CityDto,
    CityWithoutPointsOfInterestDto,
    PointOfInterestDto,
    PointOfInterestForCreationDto,
    PointOfInterestForUpdateDto,
)
from city_info.db.models import City, PointOfInterest
from city_info.mapping.mapper import Mapper, Nested, TypeMap

CITY_MAPS = [
    TypeMap(City, CityWithoutPointsOfInterestDto),
    TypeMap(
        City,
        CityDto,
        rules={"points_of_interest": Nested("points_of_interest", PointOfInterest, PointOfInterestDto)},
    ),
]

POINT_OF_INTEREST_MAPS = [
    TypeMap(PointOfInterest, PointOfInterestDto),
    TypeMap(PointOfInterestForCreationDto, PointOfInterest),
    TypeMap(PointOfInterestForUpdateDto, PointOfInterest),
    TypeMap(PointOfInterest, PointOfInterestForUpdateDto),
]

# Every (source, target) pair a handler maps at request time.
REQUIRED_PAIRS: list[tuple[type, type]] = [
    (City, CityWithoutPointsOfInterestDto),
    (City, CityDto),
    (PointOfInterest, PointOfInterestDto),
    (PointOfInterestForCreationDto, PointOfInterest),
    (PointOfInterestForUpdateDto, PointOfInterest),
    (PointOfInterest, PointOfInterestForUpdateDto),
]


def build_mapper() -> Mapper:
    mapper = Mapper([*CITY_MAPS, *POINT_OF_INTEREST_MAPS])
    mapper.validate(REQUIRED_PAIRS)
    return mapper


# --- Module Notes -----------------------------------------------------------
# A target field absent from its source and not covered by a rule is a boot failure,
# so adding a required field to a DTO forces an update here.
