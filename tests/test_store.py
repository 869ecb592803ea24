"""Unit tests for the in-memory TodoStore."""

import threading
from typing import get_type_hints

from todolist.store import SAMPLE_TITLES, Todo, TodoStore


def todo(title="A", owner="alice", tenant_id="t1") -> Todo:
    return Todo(id=0, title=title, owner=owner, tenant_id=tenant_id)


class TestCreate:
    def test_ids_start_at_one_and_increase(self, store):
        first = store.create(todo("A"))
        second = store.create(todo("B"))

        assert first.id == 1
        assert second.id == 2

    def test_next_id_follows_highest_existing_id(self, store):
        for title in "ABC":
            store.create(todo(title))
        store.delete(2)

        assert store.create(todo("D")).id == 4

        store.delete(4)
        assert store.create(todo("E")).id == 4

    def test_supplied_id_is_ignored(self, store):
        created = store.create(Todo(id=99, title="A", owner="alice", tenant_id="t1"))

        assert created.id == 1
        assert store.get(99, "t1") is None

    def test_concurrent_creates_get_distinct_ids(self, store):
        def worker():
            for _ in range(50):
                store.create(todo())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ids = [t.id for t in store.list("t1")]
        assert len(ids) == 400
        assert sorted(ids) == list(range(1, 401))


class TestTenantScoping:
    def test_list_only_returns_tenant_records(self, store):
        store.create(todo("mine", tenant_id="t1"))
        store.create(todo("theirs", tenant_id="t2"))

        assert [t.title for t in store.list("t1")] == ["mine"]
        assert [t.title for t in store.list("t2")] == ["theirs"]

    def test_get_from_other_tenant_returns_none(self, store):
        created = store.create(todo(tenant_id="t2"))

        assert store.get(created.id, "t1") is None
        assert store.get(created.id, "t2") == created

    def test_replace_requires_matching_tenant(self, store):
        created = store.create(todo(tenant_id="t2"))

        assert store.replace(created.id, todo("hijack", tenant_id="t1"), "t1") is None
        assert store.get(created.id, "t2").title == "A"

    def test_replace_keeps_id(self, store):
        created = store.create(todo())

        updated = store.replace(created.id, Todo(id=7, title="B", owner="bob", tenant_id="t1"), "t1")

        assert updated == Todo(id=created.id, title="B", owner="bob", tenant_id="t1")
        assert store.get(created.id, "t1") == updated

    def test_replace_missing_returns_none(self, store):
        assert store.replace(5, todo(), "t1") is None
        assert len(store) == 0


class TestDelete:
    def test_delete_is_idempotent(self, store):
        created = store.create(todo())

        store.delete(created.id)
        store.delete(created.id)
        store.delete(12345)

        assert len(store) == 0

    def test_tenant_scoped_delete_leaves_other_tenant_alone(self, store):
        created = store.create(todo(tenant_id="t2"))

        store.delete(created.id, tenant_id="t1")

        assert store.get(created.id, "t2") == created


def test_seed_is_deterministic(store):
    seeded = store.seed("contoso", "admin")

    assert [t.title for t in seeded] == list(SAMPLE_TITLES)
    assert [t.id for t in seeded] == [1, 2]
    assert all(t.owner == "admin" and t.tenant_id == "contoso" for t in seeded)


def test_to_dict_uses_camel_case_tenant():
    assert Todo(id=1, title="A", owner="alice", tenant_id="t1").to_dict() == {
        "id": 1,
        "title": "A",
        "owner": "alice",
        "tenantId": "t1",
    }


def test_seed_annotation_resolves_to_builtin_list():
    # The store defines its own list() method; the return type must still
    # resolve to the builtin.
    assert get_type_hints(TodoStore.seed)["return"] == list[Todo]
