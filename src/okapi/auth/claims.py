"""Claims-based identity.

An ``Identity`` is a flat, immutable record: the authentication scheme
that vouched for it plus a tuple of ``(type, value, issuer)`` claims.
Unauthenticated requests carry ``ANONYMOUS``, so handlers never need a
``None`` check.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


class ClaimTypes:
    """Well-known claim type names."""

    NAME = "name"
    SURNAME = "surname"
    GIVEN_NAME = "given_name"
    EMAIL = "email"
    ROLE = "role"


DEFAULT_ISSUER = "LOCAL AUTHORITY"


@dataclass(frozen=True, slots=True)
class Claim:
    type: str
    value: str
    issuer: str = DEFAULT_ISSUER
    value_type: str = "string"


@dataclass(frozen=True, slots=True)
class Identity:
    """An authenticated (or anonymous) principal.

    ``is_authenticated`` is true when a scheme issued the identity.
    """

    claims: tuple[Claim, ...] = ()
    scheme: str | None = None

    @classmethod
    def create(cls, claims: Iterable[Claim], scheme: str) -> Identity:
        return cls(claims=tuple(claims), scheme=scheme)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.scheme)

    @property
    def name(self) -> str | None:
        """Value of the first ``name`` claim."""
        return self.find_first(ClaimTypes.NAME)

    @property
    def roles(self) -> frozenset[str]:
        return frozenset(self.find_all(ClaimTypes.ROLE))

    def find_first(self, claim_type: str) -> str | None:
        for claim in self.claims:
            if claim.type == claim_type:
                return claim.value
        return None

    def find_all(self, claim_type: str) -> list[str]:
        return [c.value for c in self.claims if c.type == claim_type]

    def has_claim(self, claim_type: str, value: str) -> bool:
        return any(c.type == claim_type and c.value == value for c in self.claims)

    def is_in_role(self, role: str) -> bool:
        return self.has_claim(ClaimTypes.ROLE, role)

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe form used by the auth cookie."""
        return {
            "scheme": self.scheme,
            "claims": [[c.type, c.value, c.issuer, c.value_type] for c in self.claims],
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Identity:
        """Inverse of ``to_payload``.

        Raises ``ValueError`` for a malformed payload.
        """
        try:
            claims = tuple(Claim(*map(str, item)) for item in payload["claims"])
            scheme = payload["scheme"]
        except (KeyError, TypeError) as exc:
            msg = f"Malformed identity payload: {exc}"
            raise ValueError(msg) from exc
        if scheme is not None and not isinstance(scheme, str):
            msg = "Malformed identity payload: scheme must be a string"
            raise ValueError(msg)
        return cls(claims=claims, scheme=scheme)


ANONYMOUS = Identity()
