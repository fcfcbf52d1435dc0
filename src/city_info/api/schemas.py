"""
city_info.api.schemas

Wire representations (request/response models).

Responsibilities:
- Define the externally exposed shapes for cities and points of interest.
- Keep the restricted city view free of point-of-interest data.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class Representation(BaseModel):
    # camelCase on the wire; field names still accepted so the mapper can construct by name.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class PointOfInterestDto(Representation):
    id: int
    name: str
    description: str | None = None


class CityWithoutPointsOfInterestDto(Representation):
    id: int
    name: str
    description: str | None = None


class CityDto(Representation):
    id: int
    name: str
    description: str | None = None
    points_of_interest: list[PointOfInterestDto] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def number_of_points_of_interest(self) -> int:
        return len(self.points_of_interest)


class PointOfInterestForCreationDto(Representation):
    model_config = ConfigDict(frozen=False)

    name: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=200)


class PointOfInterestForUpdateDto(Representation):
    model_config = ConfigDict(frozen=False, validate_assignment=True)

    name: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=200)


class JsonPatchOperation(BaseModel):
    op: str = Field(pattern="^(add|remove|replace|test|move|copy)$")
    path: str
    value: Any = None
    from_: str | None = Field(default=None, alias="from")


# --- Module Notes -----------------------------------------------------------
# Exactly one TypeMap per exposed shape is registered in `mapping.profiles`.
