"""
city_info.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal` (anonymous when absent).
- Enforce named policies via reusable dependency objects.
- Enumerate the policies referenced by a set of routes for start-up validation.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from fastapi import Depends, Request
from fastapi.dependencies.models import Dependant
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.routing import BaseRoute

from city_info.api.versioning import api_routes
from city_info.auth.jwt import CredentialValidator
from city_info.auth.models import Principal
from city_info.auth.policies import PolicyTable
from city_info.errors import AuthenticationFailure, AuthorizationFailure

_bearer = HTTPBearer(auto_error=False, scheme_name="ApiBearerAuth")


def get_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    # Authn: no token is not an error yet; policies decide whether anonymous is acceptable.
    if creds is None or not creds.credentials:
        return Principal.anonymous()
    validator: CredentialValidator = request.app.state.credential_validator
    # Raises an AuthenticationFailure subclass; rendered as a generic 401.
    return validator.validate(creds.credentials)


class PolicyRequirement:
    """
    Dependency enforcing one named policy. Declared on routes as
    `Depends(require_policy("MustBeFromAntwerp"))`.
    """

    def __init__(self, policy_name: str) -> None:
        self.policy_name = policy_name

    def __call__(self, request: Request, principal: Principal = Depends(get_principal)) -> Principal:
        policies: PolicyTable = request.app.state.policies
        if policies.evaluate(principal, self.policy_name):
            return principal

        log = request.app.state.diagnostics.get_logger(__name__)
        if not principal.is_authenticated:
            log.info("authz.challenge", policy=self.policy_name)
            raise AuthenticationFailure("missing bearer token")
        log.info("authz.denied", policy=self.policy_name, subject=principal.subject)
        raise AuthorizationFailure("Access to this resource is denied.")


def require_policy(policy_name: str) -> PolicyRequirement:
    return PolicyRequirement(policy_name)


def referenced_policies(routes: Iterable[BaseRoute]) -> list[str]:
    names: set[str] = set()
    for route in api_routes(routes):
        names.update(
            dep.call.policy_name
            for dep in _walk(route.dependant.dependencies)
            if isinstance(dep.call, PolicyRequirement)
        )
    return sorted(names)


def _walk(dependants: Iterable[Dependant]) -> Iterator[Dependant]:
    for dep in dependants:
        yield dep
        yield from _walk(dep.dependencies)


# --- Module Notes -----------------------------------------------------------
# Anonymous callers failing a policy get 401 (challenge); authenticated callers get 403.
