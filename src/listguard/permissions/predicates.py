"""Named predicates referenced from declarative list definitions.

Definitions files cannot carry code, so a dynamic operation names a
predicate (``"update": "owner_only"``) and the name is resolved through a
:class:`PredicateCatalog` when the registry is built.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from ..exceptions import ConfigurationError
from .policy import DynamicPolicy, IdentityPredicate, Predicate, StaticPolicy, identity_policy

if TYPE_CHECKING:
    from ..context import RequestContext
    from ..identity import Identity


# ── Built-in predicates ─────────────────────────────────


def is_authenticated(identity: Identity) -> bool:
    return identity.is_authenticated


def is_admin(identity: Identity) -> bool:
    return identity.is_admin


def owned_by(field: str = "owner") -> Predicate:
    """Build an item predicate: the identity is recorded in ``item[field]``.

    Without a fetched item (e.g. a collection read evaluated per request)
    the predicate grants nothing.

    The returned function is marked item-dependent, so it can be passed to
    ``AccessProfile`` without wrapping it in ``item_policy``.
    """

    def owner_only(context: RequestContext) -> bool:
        if not context.identity.is_authenticated or context.item is None:
            return False
        return context.item.get(field) == context.identity.user_id

    owner_only.__name__ = "owner_only" if field == "owner" else f"owned_by_{field}"
    owner_only.item_dependent = True  # type: ignore[attr-defined]
    return owner_only


class PredicateCatalog:
    """Name → policy factory for dynamic rules.

    Register before the registry is built; resolving happens once, at
    startup.

    Example::

        catalog = PredicateCatalog.with_defaults()
        catalog.register_identity("is_editor", lambda identity: identity.has_role("editor"))
        catalog.resolve("is_editor")   # DynamicPolicy('is_editor', identity_only=True)
    """

    def __init__(self) -> None:
        self._policies: dict[str, DynamicPolicy | StaticPolicy] = {}

    @classmethod
    def with_defaults(cls) -> PredicateCatalog:
        catalog = cls()
        catalog.register_static("allow_all", True)
        catalog.register_static("deny_all", False)
        catalog.register_identity("is_authenticated", is_authenticated)
        catalog.register_identity("is_admin", is_admin)
        catalog.register_item("owner_only", owned_by("owner"))
        return catalog

    def _add(self, name: str, policy: DynamicPolicy | StaticPolicy) -> None:
        if not name or not name.strip():
            raise ConfigurationError("Predicate name must not be empty")
        if name in self._policies:
            raise ConfigurationError(f"Predicate {name!r} already registered")
        self._policies[name] = policy

    def register(self, name: str, predicate: Predicate) -> None:
        """Register a predicate over the whole request context."""
        self._add(name, DynamicPolicy(predicate, name=name))

    def register_identity(self, name: str, predicate: IdentityPredicate) -> None:
        """Register a predicate that only inspects the identity."""
        self._add(name, identity_policy(predicate, name=name))

    def register_item(self, name: str, predicate: Predicate) -> None:
        """Register a predicate whose result depends on the target item."""
        self._add(name, DynamicPolicy(predicate, name=name, item_dependent=True))

    def register_static(self, name: str, allowed: bool) -> None:
        """Register an alias for a literal decision."""
        self._add(name, StaticPolicy(allowed))

    def resolve(self, name: str) -> DynamicPolicy | StaticPolicy:
        """Return the policy registered under ``name``.

        Raises:
            ConfigurationError: If nothing is registered under that name.
        """
        try:
            return self._policies[name]
        except KeyError:
            raise ConfigurationError(f"Unknown predicate reference: {name!r}") from None

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._policies))

    def __contains__(self, name: object) -> bool:
        return name in self._policies

    def as_mapping(self) -> Mapping[str, DynamicPolicy | StaticPolicy]:
        return MappingProxyType(self._policies)


__all__ = [
    "PredicateCatalog",
    "is_admin",
    "is_authenticated",
    "owned_by",
]
