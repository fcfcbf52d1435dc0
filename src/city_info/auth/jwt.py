"""
city_info.auth.jwt

JWT issuing and validation.

Responsibilities:
- Issue short-lived JWTs for local/dev scenarios.
- Validate bearer tokens in a fixed order (signature, issuer, audience, expiry)
  and turn them into a `Principal`.
- Log the precise rejection reason while raising caller-safe errors.

Note:
- Production systems often prefer RS256 + JWKS; this service uses a pre-shared HS256 key.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from city_info.auth.models import Principal
from city_info.errors import (
    AuthenticationFailure,
    ExpiredToken,
    InvalidToken,
    UntrustedAudience,
    UntrustedIssuer,
)
from city_info.observability.logging import Diagnostics
from city_info.settings import Settings

# Claims a token issued by this service carries; policies may only reference these.
REGISTERED_CLAIMS = ("iss", "aud", "sub", "iat", "nbf", "exp")
IDENTITY_CLAIMS = ("given_name", "family_name", "city")

REQUIRED_CLAIMS = ["exp", "iss", "aud", "sub"]


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str
    leeway: timedelta = timedelta(0)

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
            leeway=timedelta(seconds=settings.jwt_leeway_seconds),
        )

    def __repr__(self) -> str:
        # The signing secret must never reach logs.
        return f"JwtConfig(alg={self.alg!r}, issuer={self.issuer!r}, audience={self.audience!r})"


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    claims: Mapping[str, Any] | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = dict(claims or {})
    payload.update(
        {
            "iss": cfg.issuer,
            "aud": cfg.audience,
            "sub": subject,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
    )
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


class CredentialValidator:
    """
    Bearer token -> Principal.

    PyJWT verifies the signature (and structural claims); issuer, audience and expiry are
    checked here afterwards so that the first failing check is deterministic.
    """

    produces_claims: frozenset[str] = frozenset(REGISTERED_CLAIMS + IDENTITY_CLAIMS)

    def __init__(self, cfg: JwtConfig, *, diagnostics: Diagnostics) -> None:
        self._cfg = cfg
        self._log = diagnostics.get_logger(__name__)

    def validate(self, token: str) -> Principal:
        try:
            payload = self._validated_payload(token)
        except AuthenticationFailure as e:
            self._log.warning("auth.token_rejected", reason=type(e).__name__, detail=e.reason)
            raise
        return Principal.from_payload(payload)

    def _validated_payload(self, token: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                self._cfg.secret,
                algorithms=[self._cfg.alg],
                leeway=self._cfg.leeway,
                options={
                    "verify_signature": True,
                    "verify_iss": False,
                    "verify_aud": False,
                    "verify_exp": False,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except InvalidTokenError as e:
            raise InvalidToken(str(e)) from e

        if payload.get("iss") != self._cfg.issuer:
            raise UntrustedIssuer(f"issuer {payload.get('iss')!r} is not trusted")

        audience = payload.get("aud")
        audiences = audience if isinstance(audience, list) else [audience]
        if self._cfg.audience not in audiences:
            raise UntrustedAudience(f"audience {audience!r} is not accepted")

        try:
            exp = int(payload["exp"])
        except (TypeError, ValueError) as e:
            raise InvalidToken("exp claim is not an integer") from e
        now = datetime.now(tz=UTC).timestamp()
        if exp <= now - self._cfg.leeway.total_seconds():
            raise ExpiredToken("token has expired")
        return payload


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by `api/routers/authentication.py` (dev convenience) and tests.
