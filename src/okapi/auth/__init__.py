"""Cookie authentication, claims identities, and authorization guards."""

from okapi.auth.claims import ANONYMOUS, Claim, ClaimTypes, Identity
from okapi.auth.cookie import (
    COOKIE_SCHEME,
    CookieAuthConfig,
    CookieAuthentication,
    sign_in,
    sign_out,
    sign_out_handler,
)
from okapi.auth.guards import (
    Guard,
    authorize_user,
    requires_authentication,
    requires_one_of_roles,
    requires_role,
)

__all__ = [
    "ANONYMOUS",
    "COOKIE_SCHEME",
    "Claim",
    "ClaimTypes",
    "CookieAuthConfig",
    "CookieAuthentication",
    "Guard",
    "Identity",
    "authorize_user",
    "requires_authentication",
    "requires_one_of_roles",
    "requires_role",
    "sign_in",
    "sign_out",
    "sign_out_handler",
]
