"""
city_info.auth.policies

Named authorization policies.

Responsibilities:
- Model a policy as a conjunction of pure requirements over a `Principal`.
- Hold policies in an immutable, name-keyed table built once at start-up.
- Validate the table eagerly (claims it references must be producible).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from city_info.auth.models import Principal
from city_info.errors import ConfigurationError

MUST_BE_FROM_ANTWERP = "MustBeFromAntwerp"


@dataclass(frozen=True, slots=True)
class RequireAuthenticated:
    def is_satisfied(self, principal: Principal) -> bool:
        return principal.is_authenticated

    @property
    def claim_names(self) -> frozenset[str]:
        return frozenset()


@dataclass(frozen=True, slots=True)
class RequireClaim:
    """
    Caller must hold `name`; if `values` is non-empty, one of them.
    """

    name: str
    values: tuple[str, ...] = ()

    def is_satisfied(self, principal: Principal) -> bool:
        if not self.values:
            return principal.has_claim(self.name)
        return any(principal.has_claim(self.name, v) for v in self.values)

    @property
    def claim_names(self) -> frozenset[str]:
        return frozenset({self.name})


Requirement = RequireAuthenticated | RequireClaim


@dataclass(frozen=True, slots=True)
class Policy:
    name: str
    requirements: tuple[Requirement, ...]

    def evaluate(self, principal: Principal) -> bool:
        # all() short-circuits on the first failing requirement.
        return all(r.is_satisfied(principal) for r in self.requirements)

    @property
    def claim_names(self) -> frozenset[str]:
        names: set[str] = set()
        for r in self.requirements:
            names |= r.claim_names
        return frozenset(names)


class PolicyTable:
    def __init__(self, policies: Iterable[Policy]) -> None:
        table: dict[str, Policy] = {}
        for policy in policies:
            if policy.name in table:
                raise ConfigurationError(f"policy {policy.name!r} registered twice")
            if not policy.requirements:
                raise ConfigurationError(f"policy {policy.name!r} has no requirements")
            table[policy.name] = policy
        self._policies: Mapping[str, Policy] = MappingProxyType(table)

    def names(self) -> list[str]:
        return sorted(self._policies)

    def get(self, name: str) -> Policy:
        try:
            return self._policies[name]
        except KeyError:
            raise ConfigurationError(f"unknown authorization policy {name!r}") from None

    def evaluate(self, principal: Principal, policy_name: str) -> bool:
        return self.get(policy_name).evaluate(principal)

    def validate(self, *, producible_claims: Iterable[str], referenced: Iterable[str] = ()) -> None:
        """
        Fail fast when a policy needs a claim the credential validator never emits,
        or when routes reference a policy that is not registered.
        """

        producible = frozenset(producible_claims)
        for policy in self._policies.values():
            missing = policy.claim_names - producible
            if missing:
                raise ConfigurationError(
                    f"policy {policy.name!r} references unknown claims: {sorted(missing)}"
                )
        for name in referenced:
            self.get(name)


def default_policies() -> PolicyTable:
    return PolicyTable(
        [
            Policy(
                MUST_BE_FROM_ANTWERP,
                (RequireAuthenticated(), RequireClaim("city", ("Antwerp",))),
            ),
        ]
    )


# --- Module Notes -----------------------------------------------------------
# Policies are data, not classes: adding one means adding a row to `default_policies`.
