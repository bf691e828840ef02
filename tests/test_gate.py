"""Tests for the enforcement gate and the in-memory data layer."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from listguard import (
    AccessDeniedError,
    AccessProfile,
    AccessRegistry,
    DataLayer,
    DynamicPolicy,
    EnforcementGate,
    Evaluator,
    GateFactory,
    Identity,
    InMemoryStore,
    ItemNotFoundError,
    RequestContext,
    UnknownResourceError,
    identity_policy,
    item_policy,
)
from listguard.permissions import owned_by

from conftest import ACCESS_COMBINATIONS, admin_only_list_name, dynamic_list_name, static_list_name


def _request(identity: Identity | None = None, resource_type: str = "Widget") -> RequestContext:
    return RequestContext.build(resource_type, "read", identity)


def _gate(profile: AccessProfile, store: DataLayer, name: str = "Note") -> EnforcementGate:
    registry = AccessRegistry()
    registry.register(name, profile)
    return EnforcementGate(name, store, Evaluator(registry.freeze()))


class TestInMemoryStore:
    """Tests for the reference data layer."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryStore(), DataLayer)

    def test_ids(self) -> None:
        """Missing ids are assigned sequentially."""
        store = InMemoryStore([{"name": "a"}, {"id": "x", "name": "b"}])
        assert [item["id"] for item in store.read()] == ["1", "x"]
        assert store.create({"name": "c"})["id"] == "2"

    def test_returns_copies(self) -> None:
        """Callers cannot mutate stored items."""
        store = InMemoryStore([{"id": "a", "name": "a"}])
        store.get("a")["name"] = "changed"
        assert store.get("a")["name"] == "a"

    def test_read_filter_and_visibility(self) -> None:
        """Equality filters and the visibility callable combine."""
        store = InMemoryStore([{"kind": "x", "n": 1}, {"kind": "x", "n": 2}, {"kind": "y", "n": 3}])
        assert [i["n"] for i in store.read({"kind": "x"})] == [1, 2]
        assert [i["n"] for i in store.read(visible=lambda item_id, item: item["n"] > 1)] == [2, 3]

    def test_missing_items(self) -> None:
        """Updating or deleting a missing id raises KeyError."""
        store = InMemoryStore()
        assert store.get("nope") is None
        with pytest.raises(KeyError):
            store.update("nope", {})
        with pytest.raises(KeyError):
            store.delete("nope")

    def test_update_keeps_id(self) -> None:
        """The id field is never overwritten."""
        store = InMemoryStore([{"id": "a", "name": "a"}])
        assert store.update("a", {"id": "b", "name": "z"}) == {"id": "a", "name": "z"}


class TestWidgetScenario:
    """create/read static grants, update by owner, delete never."""

    def test_read_all(self, gates: GateFactory, reader: Identity) -> None:
        """Any identity can read every widget."""
        items = gates("Widget").read(_request(reader))
        assert {item["id"] for item in items} == {"w1", "w2"}

    def test_owner_updates_own(self, gates: GateFactory, alice: Identity, stores) -> None:
        """The owner can update their widget."""
        updated = gates("Widget").update(_request(alice), "w1", {"name": "Big Sprocket"})
        assert updated["name"] == "Big Sprocket"
        assert stores["Widget"].get("w1")["name"] == "Big Sprocket"

    def test_owner_cannot_update_other(self, gates: GateFactory, alice: Identity, stores) -> None:
        """Updating someone else's widget is denied and changes nothing."""
        with pytest.raises(AccessDeniedError) as exc_info:
            gates("Widget").update(_request(alice), "w2", {"name": "Mine now"})
        assert str(exc_info.value) == "Access denied: update on Widget"
        assert stores["Widget"].get("w2")["name"] == "Gear"

    def test_anonymous_cannot_update(self, gates: GateFactory) -> None:
        """Anonymous requests never own anything."""
        with pytest.raises(AccessDeniedError):
            gates("Widget").update(_request(), "w1", {"name": "x"})

    def test_delete_denied_even_for_owner(self, gates: GateFactory, alice: Identity, stores) -> None:
        """Delete is denied for everyone."""
        with pytest.raises(AccessDeniedError):
            gates("Widget").delete(_request(alice), "w1")
        assert stores["Widget"].get("w1") is not None

    def test_create(self, gates: GateFactory, reader: Identity, stores) -> None:
        """Create is granted to any identity."""
        created = gates("Widget").create(_request(reader), {"name": "Cog", "owner": "reader"})
        assert stores["Widget"].get(created["id"])["name"] == "Cog"

    def test_update_missing_item_is_denied(self, gates: GateFactory, alice: Identity) -> None:
        """Item-dependent rules cannot grant on an item that is not there."""
        with pytest.raises(AccessDeniedError):
            gates("Widget").update(_request(alice), "w404", {"name": "x"})


class TestStaticEnforcement:
    """Static denials never reach the data layer."""

    @pytest.mark.parametrize("access", ACCESS_COMBINATIONS)
    def test_combinations(self, gates: GateFactory, reader: Identity, access) -> None:
        """Every operation follows the declared access for static and dynamic lists."""
        for name in (static_list_name(access), dynamic_list_name(access)):
            gate = gates(name)
            context = _request(reader, name)

            if access["read"]:
                assert len(gate.read(context)) == 2
            else:
                with pytest.raises(AccessDeniedError):
                    gate.read(context)

            if access["create"]:
                gate.create(context, {"name": "third", "rating": 3})
            else:
                with pytest.raises(AccessDeniedError):
                    gate.create(context, {"name": "third", "rating": 3})

            if access["update"]:
                assert gate.update(context, "1", {"rating": 5})["rating"] == 5
            else:
                with pytest.raises(AccessDeniedError):
                    gate.update(context, "1", {"rating": 5})

            if access["delete"]:
                gate.delete(context, "2")
            else:
                with pytest.raises(AccessDeniedError):
                    gate.delete(context, "2")

    @pytest.mark.parametrize("access", ACCESS_COMBINATIONS)
    def test_admin_only(self, gates: GateFactory, su: Identity, reader: Identity, access) -> None:
        """Admin-only lists grant create to admins only."""
        name = admin_only_list_name(access)
        gate = gates(name)
        with pytest.raises(AccessDeniedError):
            gate.create(_request(reader, name), {"name": "x"})
        if access["create"]:
            gate.create(_request(su, name), {"name": "x"})
        else:
            with pytest.raises(AccessDeniedError):
                gate.create(_request(su, name), {"name": "x"})

    def test_denied_create_never_touches_store(self) -> None:
        """A denied create never reaches the store."""
        store = MagicMock(spec=InMemoryStore)
        gate = _gate(AccessProfile(read=True), store)
        with pytest.raises(AccessDeniedError):
            gate.create(_request(resource_type="Note"), {"name": "x"})
        store.create.assert_not_called()

    def test_denied_update_never_touches_store(self) -> None:
        """Denied updates and deletes never reach the store."""
        store = MagicMock(spec=InMemoryStore)
        gate = _gate(AccessProfile(read=True), store)
        with pytest.raises(AccessDeniedError):
            gate.update(_request(resource_type="Note"), "1", {"name": "x"})
        with pytest.raises(AccessDeniedError):
            gate.delete(_request(resource_type="Note"), "1")
        assert store.method_calls == []

    def test_denied_read_never_touches_store(self) -> None:
        """A denied read never reaches the store."""
        store = MagicMock(spec=InMemoryStore)
        gate = _gate(AccessProfile(read=identity_policy(lambda identity: identity.is_admin)), store)
        with pytest.raises(AccessDeniedError):
            gate.read(_request(Identity.user("u1"), "Note"))
        store.read.assert_not_called()

    def test_update_missing_item_static_grant(self) -> None:
        """Granted operations on a missing item raise ItemNotFoundError."""
        gate = _gate(AccessProfile(update=True, delete=True), InMemoryStore())
        with pytest.raises(ItemNotFoundError):
            gate.update(_request(resource_type="Note"), "9", {"name": "x"})
        with pytest.raises(ItemNotFoundError):
            gate.delete(_request(resource_type="Note"), "9")

    def test_gate_scopes_context(self) -> None:
        """The gate evaluates its own list and operation, not the caller's."""
        seen = []

        def record(context: RequestContext) -> bool:
            seen.append((context.resource_type, context.operation.value, dict(context.changes or {})))
            return True

        gate = _gate(AccessProfile(create=DynamicPolicy(record)), InMemoryStore())
        gate.create(RequestContext.build("Other", "delete"), {"name": "x"})
        assert seen == [("Note", "create", {"name": "x"})]


class TestItemDependentRead:
    """Per-item read rules filter the result set."""

    def _gate(self) -> tuple[EnforcementGate, InMemoryStore]:
        store = InMemoryStore(
            [
                {"id": "n1", "owner": "alice", "title": "a"},
                {"id": "n2", "owner": "bob", "title": "b"},
                {"id": "n3", "owner": "alice", "title": "c"},
            ]
        )
        return _gate(AccessProfile(read=item_policy(owned_by("owner"))), store), store

    def test_read_filters(self, alice: Identity) -> None:
        """Only items the rule grants are returned."""
        gate, _ = self._gate()
        assert [item["id"] for item in gate.read(_request(alice, "Note"))] == ["n1", "n3"]

    def test_read_combines_with_filter(self, alice: Identity) -> None:
        """The caller's filter applies on top of the rule."""
        gate, _ = self._gate()
        assert [item["id"] for item in gate.read(_request(alice, "Note"), {"title": "c"})] == ["n3"]

    def test_read_never_denies_request(self) -> None:
        """An item rule filters to empty instead of denying."""
        gate, _ = self._gate()
        assert gate.read(_request(resource_type="Note")) == []

    def test_get_hidden_item_not_found(self, alice: Identity) -> None:
        """A hidden item looks the same as a missing one."""
        gate, _ = self._gate()
        assert gate.get(_request(alice, "Note"), "n1")["title"] == "a"
        with pytest.raises(ItemNotFoundError):
            gate.get(_request(alice, "Note"), "n2")
        with pytest.raises(ItemNotFoundError):
            gate.get(_request(alice, "Note"), "n404")

    def test_fault_hides_item(self, alice: Identity) -> None:
        """An item whose predicate raises is left out."""
        def flaky(context: RequestContext) -> bool:
            if context.item_id == "n2":
                raise RuntimeError("boom")
            return True

        store = InMemoryStore([{"id": "n1"}, {"id": "n2"}, {"id": "n3"}])
        gate = _gate(AccessProfile(read=item_policy(flaky)), store)
        assert [item["id"] for item in gate.read(_request(alice, "Note"))] == ["n1", "n3"]

    def test_plain_owned_by_filters_reads(self, alice: Identity) -> None:
        """owned_by can be passed without item_policy and still filters per item."""
        store = InMemoryStore([{"id": "n1", "owner": "alice"}, {"id": "n2", "owner": "bob"}])
        gate = _gate(AccessProfile(read=owned_by("owner")), store)
        assert [item["id"] for item in gate.read(_request(alice, "Note"))] == ["n1"]


class TestBatchOperations:
    """update_many/delete_many are all-or-nothing."""

    def test_update_many_denied_if_any_denied(self, gates: GateFactory, alice: Identity, stores) -> None:
        """One denied item aborts the whole batch."""
        with pytest.raises(AccessDeniedError):
            gates("Widget").update_many(_request(alice), ["w1", "w2"], {"name": "bulk"})
        assert stores["Widget"].get("w1")["name"] == "Sprocket"
        assert stores["Widget"].get("w2")["name"] == "Gear"

    def test_update_many_granted(self, gates: GateFactory, alice: Identity, stores) -> None:
        """A fully granted batch updates every item."""
        stores["Widget"].create({"id": "w3", "name": "Axle", "owner": "alice"})
        updated = gates("Widget").update_many(_request(alice), ["w1", "w3"], {"name": "bulk"})
        assert [item["name"] for item in updated] == ["bulk", "bulk"]

    def test_delete_many(self, reader: Identity) -> None:
        """A missing item aborts the batch before anything is deleted."""
        store = InMemoryStore([{"id": "a"}, {"id": "b"}])
        gate = _gate(AccessProfile(delete=True), store)
        with pytest.raises(ItemNotFoundError):
            gate.delete_many(_request(reader, "Note"), ["a", "zzz"])
        assert len(store) == 2
        gate.delete_many(_request(reader, "Note"), ["a", "b"])
        assert len(store) == 0

    def test_delete_many_repeated_ids(self, reader: Identity) -> None:
        """Repeated ids are deleted once without a store error."""
        store = InMemoryStore([{"id": "a"}, {"id": "b"}, {"id": "c"}])
        gate = _gate(AccessProfile(delete=True), store)
        gate.delete_many(_request(reader, "Note"), ["a", "b", "a"])
        assert [item["id"] for item in store.read()] == ["c"]

    def test_update_many_repeated_ids(self, gates: GateFactory, alice: Identity) -> None:
        """Repeated ids are updated once and returned once."""
        updated = gates("Widget").update_many(_request(alice), ["w1", "w1"], {"name": "bulk"})
        assert [item["id"] for item in updated] == ["w1"]


class TestGateFactory:
    """Tests for GateFactory."""

    def test_caches_gates(self, gates: GateFactory) -> None:
        """The factory returns one gate per list."""
        assert gates("Widget") is gates("Widget")
        assert gates("Widget").resource_type == "Widget"

    def test_unknown_list(self, gates: GateFactory) -> None:
        with pytest.raises(UnknownResourceError):
            gates("Ghost")

    def test_missing_store(self, evaluator: Evaluator) -> None:
        """A list without a data layer raises LookupError."""
        with pytest.raises(LookupError, match="No data layer"):
            GateFactory(evaluator, {})("Widget")

    def test_gate_rejects_unknown_list(self, evaluator: Evaluator) -> None:
        with pytest.raises(UnknownResourceError):
            EnforcementGate("Ghost", InMemoryStore(), evaluator)
