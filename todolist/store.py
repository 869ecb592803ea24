"""
In-memory Todo store.

A single TodoStore instance is owned by the application and shared by all
requests. Records live in one dict keyed by id; tenant isolation is applied
by filtering on tenant_id at read time.

Every operation runs under one lock, so concurrent creates never hand out the
same id and readers never observe a half-applied replace.
"""

import threading
from dataclasses import dataclass, replace as dataclass_replace
from typing import Any

SAMPLE_TITLES = ("Pick up groceries", "Finish invoice report")


@dataclass(frozen=True)
class Todo:
    id: int
    title: str
    owner: str
    tenant_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "owner": self.owner,
            "tenantId": self.tenant_id,
        }


class TodoStore:
    """Lock-guarded mapping from Todo id to Todo."""

    def __init__(self) -> None:
        self._todos: dict[int, Todo] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._todos)

    def list(self, tenant_id: str) -> list[Todo]:
        """All Todos belonging to the tenant, in insertion order."""
        with self._lock:
            return [t for t in self._todos.values() if t.tenant_id == tenant_id]

    def get(self, todo_id: int, tenant_id: str) -> Todo | None:
        with self._lock:
            todo = self._todos.get(todo_id)
        if todo is None or todo.tenant_id != tenant_id:
            return None
        return todo

    def create(self, todo: Todo) -> Todo:
        """
        Store a new Todo, assigning id = 1 + highest existing id.

        The id carried by the argument is ignored.
        """
        with self._lock:
            next_id = max(self._todos, default=0) + 1
            created = dataclass_replace(todo, id=next_id)
            self._todos[next_id] = created
            return created

    def replace(self, todo_id: int, todo: Todo, tenant_id: str) -> Todo | None:
        """
        Replace the record with the given id inside the tenant.

        Returns None if no such record exists (including one that vanished
        after the caller last looked it up).
        """
        with self._lock:
            existing = self._todos.get(todo_id)
            if existing is None or existing.tenant_id != tenant_id:
                return None
            updated = dataclass_replace(todo, id=todo_id)
            self._todos[todo_id] = updated
            return updated

    def delete(self, todo_id: int, tenant_id: str | None = None) -> None:
        """
        Remove a Todo. Absent ids are a no-op.

        When tenant_id is given, a record belonging to another tenant is
        left untouched.
        """
        with self._lock:
            existing = self._todos.get(todo_id)
            if existing is None:
                return
            if tenant_id is not None and existing.tenant_id != tenant_id:
                return
            del self._todos[todo_id]

    def seed(self, tenant_id: str, owner: str) -> "list[Todo]":
        """Add the sample Todos for one tenant/owner."""
        return [
            self.create(Todo(id=0, title=title, owner=owner, tenant_id=tenant_id))
            for title in SAMPLE_TITLES
        ]
