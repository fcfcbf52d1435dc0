"""
city_info.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Caller identity as a set of (claim name, claim value) pairs.
    """

    subject: str | None
    claims: frozenset[tuple[str, str]]
    is_authenticated: bool = True

    @classmethod
    def anonymous(cls) -> Principal:
        return cls(subject=None, claims=frozenset(), is_authenticated=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Principal:
        pairs: set[tuple[str, str]] = set()
        for name, value in payload.items():
            values: Iterable[Any] = value if isinstance(value, list | tuple) else (value,)
            pairs.update((name, str(v)) for v in values)
        subject = payload.get("sub")
        return cls(subject=str(subject) if subject is not None else None, claims=frozenset(pairs))

    def has_claim(self, name: str, value: str | None = None) -> bool:
        if value is None:
            return any(n == name for n, _ in self.claims)
        return (name, value) in self.claims

    def claim_values(self, name: str) -> list[str]:
        return sorted(v for n, v in self.claims if n == name)

    def first_claim(self, name: str) -> str | None:
        values = self.claim_values(name)
        return values[0] if values else None


# --- Module Notes -----------------------------------------------------------
# Keep this model minimal; it is used across API, policies, and handlers.
