"""Shared fixtures: the access-control project used across the suite.

Every combination of the four operations is declared three times:

- ``Static…``: literal booleans.
- ``Dynamic…``: predicates returning the same booleans.
- ``DynamicForAdminOnly…``: identity predicates, true only for admins.
"""

from __future__ import annotations

import itertools

import pytest

from listguard import (
    AccessProfile,
    AccessRegistry,
    AdminNavigator,
    CapabilityAdvisor,
    DynamicPolicy,
    Evaluator,
    GateFactory,
    Identity,
    InMemoryStore,
    identity_policy,
    item_policy,
    reset_registry,
)
from listguard.permissions import owned_by

OPERATION_NAMES = ("create", "read", "update", "delete")

ACCESS_COMBINATIONS = [
    dict(zip(OPERATION_NAMES, combo)) for combo in itertools.product((False, True), repeat=4)
]

LIST_FIELDS = ("name", "rating")


def _suffix(access: dict[str, bool]) -> str:
    return "".join(op.capitalize() for op in OPERATION_NAMES if access[op]) or "NoAccess"


def static_list_name(access: dict[str, bool]) -> str:
    return f"Static{_suffix(access)}"


def dynamic_list_name(access: dict[str, bool]) -> str:
    return f"Dynamic{_suffix(access)}"


def admin_only_list_name(access: dict[str, bool]) -> str:
    return f"DynamicForAdminOnly{_suffix(access)}"


def _constant(allowed: bool) -> DynamicPolicy:
    return DynamicPolicy(lambda context: allowed, name=f"always_{str(allowed).lower()}")


def _admin_only(allowed: bool) -> DynamicPolicy:
    return identity_policy(lambda identity: allowed and identity.is_admin, name="admin_only")


def build_access_control_registry() -> AccessRegistry:
    registry = AccessRegistry()
    for access in ACCESS_COMBINATIONS:
        registry.register(static_list_name(access), AccessProfile(**access), fields=LIST_FIELDS)
        registry.register(
            dynamic_list_name(access),
            AccessProfile(**{op: _constant(v) for op, v in access.items()}),
            fields=LIST_FIELDS,
        )
        registry.register(
            admin_only_list_name(access),
            AccessProfile(**{op: _admin_only(v) for op, v in access.items()}),
            fields=LIST_FIELDS,
        )
    registry.register(
        "Widget",
        AccessProfile(create=True, read=True, update=item_policy(owned_by("owner")), delete=False),
        fields=("name", "owner"),
    )
    return registry.freeze()


@pytest.fixture(autouse=True)
def _clean_registry():
    """Keep the process-wide registry isolated between tests."""
    reset_registry()
    yield
    reset_registry()


@pytest.fixture
def registry() -> AccessRegistry:
    return build_access_control_registry()


@pytest.fixture
def stores(registry: AccessRegistry) -> dict[str, InMemoryStore]:
    result: dict[str, InMemoryStore] = {}
    for name in registry.resource_types():
        if name == "Widget":
            result[name] = InMemoryStore(
                [
                    {"id": "w1", "name": "Sprocket", "owner": "alice"},
                    {"id": "w2", "name": "Gear", "owner": "bob"},
                ]
            )
        else:
            result[name] = InMemoryStore([{"name": "first", "rating": 1}, {"name": "second", "rating": 2}])
    return result


@pytest.fixture
def evaluator(registry: AccessRegistry) -> Evaluator:
    return Evaluator(registry)


@pytest.fixture
def gates(evaluator: Evaluator, stores: dict[str, InMemoryStore]) -> GateFactory:
    return GateFactory(evaluator, stores)


@pytest.fixture
def advisor(registry: AccessRegistry, evaluator: Evaluator) -> CapabilityAdvisor:
    return CapabilityAdvisor(registry, evaluator)


@pytest.fixture
def navigator(advisor: CapabilityAdvisor, gates: GateFactory) -> AdminNavigator:
    return AdminNavigator(advisor, gates)


@pytest.fixture
def su() -> Identity:
    return Identity.user("su", is_admin=True)


@pytest.fixture
def reader() -> Identity:
    return Identity.user("reader", roles=("reader",))


@pytest.fixture
def alice() -> Identity:
    return Identity.user("alice")
