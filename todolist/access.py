"""
Access control evaluator.

Central policy decision point for Todo operations. Given the caller's
IdentityContext, the operation and (where relevant) the target Todo, it
returns a Decision instead of raising. Rules are checked in this order:

1. Role: the caller must hold a role accepted by the operation's policy
2. Scope: the caller's token must carry the operation's scope
3. Target: read and update need an existing Todo in the caller's tenant

A Todo from another tenant is reported as NOT_FOUND, never UNAUTHORIZED,
so callers cannot probe for ids that exist outside their tenant.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from todolist.identity import IdentityContext
from todolist.policies import OPERATION_REQUIREMENTS, Operation
from todolist.store import Todo


class Denial(str, Enum):
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    denial: Denial | None = None
    reason: str = ""

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, denial: Denial, reason: str) -> "Decision":
        return cls(allowed=False, denial=denial, reason=reason)


# Operations that act on one existing record.
_TARGETED = frozenset({Operation.READ, Operation.UPDATE})


def evaluate(
    identity: IdentityContext,
    operation: Operation,
    target: Todo | None = None,
) -> Decision:
    """
    Decide whether the caller may perform the operation.

    Args:
        identity: The caller
        operation: The Todo operation being attempted
        target: For READ and UPDATE, the record looked up by id (None when
                no record has that id)
    """
    requirement = OPERATION_REQUIREMENTS[operation]

    if not identity.roles & requirement.roles:
        return Decision.deny(Denial.UNAUTHORIZED, f"policy_{requirement.policy.lower()}_not_met")

    if requirement.scope not in identity.scopes:
        return Decision.deny(Denial.UNAUTHORIZED, "insufficient_scope")

    if operation in _TARGETED:
        if target is None:
            return Decision.deny(Denial.NOT_FOUND, "no_such_todo")
        if target.tenant_id != identity.tenant_id:
            return Decision.deny(Denial.NOT_FOUND, "tenant_mismatch")

    return Decision.allow()


def visible_todos(identity: IdentityContext, todos: Iterable[Todo]) -> list[Todo]:
    """
    Filter Todos down to what the caller may see in a list.

    Admins see every Todo of their tenant; everyone else sees only their own.
    """
    tenant_todos = [t for t in todos if t.tenant_id == identity.tenant_id]
    if identity.is_admin:
        return tenant_todos
    return [t for t in tenant_todos if t.owner == identity.username]


def owner_for_new_todo(identity: IdentityContext, requested_owner: str | None) -> str:
    """Admins may create Todos on behalf of others; everyone else owns what they create."""
    if identity.is_admin and requested_owner:
        return requested_owner
    return identity.username
