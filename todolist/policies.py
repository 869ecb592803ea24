"""
Named authorization policies and per-operation requirements.

This module is the central registry for access control: every Todo operation
maps to the policy (a set of accepted roles) and the delegated scope it
requires. Both are necessary; holding the right role without the scope, or
the scope without the role, is not enough.

    OPERATION_REQUIREMENTS = {
        Operation.LIST: Requirement(policy="Readers", scope="ToDo.Read"),
        ...
    }

Policies:
- "Readers": any of Reader, Writer, Admin
- "Writers": Writer or Admin
"""

from dataclasses import dataclass
from enum import Enum

from todolist.identity import Role

READ_SCOPE = "ToDo.Read"
WRITE_SCOPE = "ToDo.Write"

READERS_POLICY = "Readers"
WRITERS_POLICY = "Writers"

POLICIES: dict[str, frozenset[Role]] = {
    READERS_POLICY: frozenset({Role.READER, Role.WRITER, Role.ADMIN}),
    WRITERS_POLICY: frozenset({Role.WRITER, Role.ADMIN}),
}


class Operation(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Requirement:
    policy: str
    scope: str

    @property
    def roles(self) -> frozenset[Role]:
        return POLICIES[self.policy]


# Delete requires ToDo.Write like the other mutating operations.
OPERATION_REQUIREMENTS: dict[Operation, Requirement] = {
    Operation.LIST: Requirement(policy=READERS_POLICY, scope=READ_SCOPE),
    Operation.READ: Requirement(policy=READERS_POLICY, scope=READ_SCOPE),
    Operation.CREATE: Requirement(policy=WRITERS_POLICY, scope=WRITE_SCOPE),
    Operation.UPDATE: Requirement(policy=WRITERS_POLICY, scope=WRITE_SCOPE),
    Operation.DELETE: Requirement(policy=WRITERS_POLICY, scope=WRITE_SCOPE),
}
