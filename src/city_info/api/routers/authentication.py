from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_404_NOT_FOUND

from city_info.api.deps import settings_dep
from city_info.auth.jwt import JwtConfig, issue_token
from city_info.settings import Settings

router = APIRouter(prefix="/api/authentication", tags=["authentication"])


class AuthenticationRequestBody(BaseModel):
    user_name: str = Field(min_length=1, max_length=256, alias="userName")
    given_name: str | None = Field(default=None, alias="givenName")
    family_name: str | None = Field(default=None, alias="familyName")
    city: str | None = None
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60, alias="ttlMinutes")


class AuthenticationResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/authenticate", response_model=AuthenticationResponse, include_in_schema=False)
async def authenticate(
    body: AuthenticationRequestBody,
    settings: Settings = Depends(settings_dep),
) -> AuthenticationResponse:
    # Local token minting only; production tokens come from the identity provider.
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    claims = {
        "given_name": body.given_name,
        "family_name": body.family_name,
        "city": body.city,
    }
    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=body.user_name,
        claims={k: v for k, v in claims.items() if v is not None},
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return AuthenticationResponse(access_token=token)
