"""Access registry: one access profile per list, built once at startup.

The registry is populated single-threaded during initialization, then
frozen. After :meth:`AccessRegistry.freeze` it is never mutated, so any
number of request handlers may read it without locking.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Iterable, Mapping

from ..exceptions import ConfigurationError, UnknownResourceError
from .constants import OPERATIONS
from .policy import AccessProfile
from .predicates import PredicateCatalog
from .schema import ListDefinition

logger = logging.getLogger(__name__)


class AccessRegistry:
    """Resource type → :class:`AccessProfile`.

    Example::

        registry = AccessRegistry()
        registry.register("Widget", AccessProfile(create=True, read=True))
        registry.freeze()
        registry.profile_for("Widget").policy_for("read")  # StaticPolicy(True)
    """

    def __init__(self) -> None:
        self._profiles: dict[str, AccessProfile] = {}
        self._fields: dict[str, tuple[str, ...]] = {}
        self._frozen = False

    def register(
        self,
        resource_type: str,
        profile: AccessProfile,
        *,
        fields: Iterable[str] = (),
    ) -> None:
        """Add a list.

        Raises:
            ConfigurationError: Duplicate name, malformed profile, or the
                registry is already frozen.
        """
        if self._frozen:
            raise ConfigurationError(f"Registry is frozen; cannot register {resource_type!r}")
        if not isinstance(resource_type, str) or not resource_type.strip():
            raise ConfigurationError(f"Invalid resource type name: {resource_type!r}")
        if resource_type in self._profiles:
            raise ConfigurationError(f"Resource type {resource_type!r} is already registered")
        if not isinstance(profile, AccessProfile):
            raise ConfigurationError(
                f"Resource type {resource_type!r} needs an AccessProfile, got {type(profile).__name__}"
            )
        self._profiles[resource_type] = profile
        self._fields[resource_type] = tuple(fields)
        logger.debug("Registered access profile for %s: %r", resource_type, profile)

    def freeze(self) -> AccessRegistry:
        """Make the registry read-only. Returns self for chaining."""
        if not self._frozen:
            self._profiles = MappingProxyType(dict(self._profiles))  # type: ignore[assignment]
            self._fields = MappingProxyType(dict(self._fields))  # type: ignore[assignment]
            self._frozen = True
            logger.info("Access registry frozen with %d resource types", len(self._profiles))
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def profile_for(self, resource_type: str) -> AccessProfile:
        """Return the profile for ``resource_type``.

        Raises:
            UnknownResourceError: If the list was never registered.
        """
        try:
            return self._profiles[resource_type]
        except KeyError:
            raise UnknownResourceError(resource_type) from None

    def fields_for(self, resource_type: str) -> tuple[str, ...]:
        if resource_type not in self._profiles:
            raise UnknownResourceError(resource_type)
        return self._fields.get(resource_type, ())

    def resource_types(self) -> tuple[str, ...]:
        """Registered names in registration order."""
        return tuple(self._profiles)

    def profiles(self) -> Mapping[str, AccessProfile]:
        return MappingProxyType(dict(self._profiles))

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"AccessRegistry({len(self._profiles)} resource types, {state})"


def profile_from_definition(definition: ListDefinition, catalog: PredicateCatalog) -> AccessProfile:
    """Resolve a declarative definition into an :class:`AccessProfile`.

    Literal booleans become static policies; strings are looked up in
    ``catalog``.
    """
    policies = {}
    for operation in OPERATIONS:
        value = getattr(definition.access, operation.value)
        if isinstance(value, bool):
            policies[operation.value] = value
        else:
            try:
                policies[operation.value] = catalog.resolve(value)
            except ConfigurationError as e:
                raise ConfigurationError(
                    f"{definition.name}.{operation.value}: {e.message}",
                    resource_type=definition.name,
                    operation=operation.value,
                ) from e
    return AccessProfile(**policies)


def build_registry(
    definitions: Iterable[ListDefinition],
    catalog: PredicateCatalog | None = None,
) -> AccessRegistry:
    """Build and freeze a registry from list definitions.

    All-or-nothing: any error aborts the build and no registry is returned.

    Raises:
        ConfigurationError: On duplicates or unresolved predicate references.
    """
    catalog = catalog or PredicateCatalog.with_defaults()
    registry = AccessRegistry()
    for definition in definitions:
        registry.register(
            definition.name,
            profile_from_definition(definition, catalog),
            fields=definition.fields,
        )
    return registry.freeze()


# ── Process-wide registry ───────────────────────────────

_registry: AccessRegistry | None = None
_registry_lock = threading.Lock()


def init_registry(registry: AccessRegistry) -> AccessRegistry:
    """Install the process-wide registry. Call once at startup.

    The registry is frozen on installation.

    Raises:
        ConfigurationError: If a registry is already installed.
    """
    global _registry
    with _registry_lock:
        if _registry is not None:
            raise ConfigurationError("Access registry already initialized")
        _registry = registry.freeze()
        return _registry


def get_registry() -> AccessRegistry:
    """Return the process-wide registry.

    Raises:
        ConfigurationError: If :func:`init_registry` has not run.
    """
    if _registry is None:
        raise ConfigurationError("Access registry not initialized")
    return _registry


def reset_registry() -> None:
    """Drop the process-wide registry (for testing)."""
    global _registry
    with _registry_lock:
        _registry = None


__all__ = [
    "AccessRegistry",
    "build_registry",
    "get_registry",
    "init_registry",
    "profile_from_definition",
    "reset_registry",
]
