"""
Identity context extraction.

Turns the claims of an authenticated principal into a typed IdentityContext:
who the caller is (username), which tenant they act in, which app roles they
hold and which delegated scopes their token carries.

The context is recomputed from the current token on every request and never
cached. A principal without a tenant claim is rejected with MissingClaim
rather than being treated as tenant-less.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from todolist.auth import TokenInfo
from todolist.config import settings

# Long-form claim types emitted by some identity middleware instead of the
# short JWT names.
TENANT_CLAIM_URI = "http://schemas.microsoft.com/identity/claims/tenantid"
SCOPE_CLAIM_URI = "http://schemas.microsoft.com/identity/claims/scope"


class Role(str, Enum):
    READER = "Reader"
    WRITER = "Writer"
    ADMIN = "Admin"


class ClaimError(Exception):
    """Raised when the principal's claims cannot form an identity context."""

    def __init__(self, message: str, claim: str):
        self.message = message
        self.claim = claim
        super().__init__(message)


class MissingClaim(ClaimError):
    """A claim the identity context depends on is absent."""

    def __init__(self, claim: str):
        super().__init__(f"Missing required claim '{claim}'", claim)


@dataclass(frozen=True)
class IdentityContext:
    """
    Per-request view of the caller.

    Attributes:
        username: Owner name used for Todo records
        tenant_id: Tenant the caller acts in; all data access is scoped to it
        roles: App roles held by the caller
        scopes: Delegated scopes granted to the caller's token
    """

    username: str
    tenant_id: str
    roles: frozenset[Role]
    scopes: frozenset[str]

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)


def _first_claim(claims: Mapping[str, Any], *names: str) -> tuple[str, Any] | None:
    for name in names:
        if name in claims and claims[name] is not None:
            return name, claims[name]
    return None


def _parse_tenant(claims: Mapping[str, Any]) -> str:
    found = _first_claim(claims, settings.tenant_claim, TENANT_CLAIM_URI)
    if found is None:
        raise MissingClaim(settings.tenant_claim)
    name, value = found
    if not isinstance(value, str) or not value.strip():
        raise ClaimError(f"Invalid tenant claim '{name}': must be a non-empty string", name)
    return value.strip()


def _parse_scopes(claims: Mapping[str, Any]) -> frozenset[str]:
    found = _first_claim(claims, settings.scope_claim, SCOPE_CLAIM_URI)
    if found is None:
        return frozenset()
    name, value = found
    if isinstance(value, str):
        return frozenset(value.split())
    if isinstance(value, list) and all(isinstance(s, str) for s in value):
        return frozenset(s for s in value if s)
    raise ClaimError(f"Invalid scope claim '{name}': expected a string or list of strings", name)


def _parse_roles(claims: Mapping[str, Any]) -> frozenset[Role]:
    value = claims.get(settings.roles_claim)
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ClaimError(
            f"Invalid roles claim '{settings.roles_claim}': expected a list of strings",
            settings.roles_claim,
        )

    known = {role.value: role for role in Role}
    # Roles this service does not define are ignored.
    return frozenset(known[r] for r in value if isinstance(r, str) and r in known)


def _parse_username(claims: Mapping[str, Any], subject: str) -> str:
    for name in (settings.username_claim, "name"):
        value = claims.get(name)
        # Blank values fall through to the next claim.
        if isinstance(value, str) and value.strip():
            return value.strip()
    return subject


def extract_identity(principal: TokenInfo) -> IdentityContext:
    """
    Build the IdentityContext for an authenticated principal.

    Raises:
        MissingClaim: If the tenant claim is absent
        ClaimError: If a present claim has an unusable type or value
    """
    claims = principal.claims
    return IdentityContext(
        username=_parse_username(claims, principal.subject),
        tenant_id=_parse_tenant(claims),
        roles=_parse_roles(claims),
        scopes=_parse_scopes(claims),
    )
