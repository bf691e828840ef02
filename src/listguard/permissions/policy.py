"""Policy variants and per-list access profiles.

Provides:
- ``Policy``: base of the two policy kinds.
- ``StaticPolicy``: decision fixed at definition time.
- ``DynamicPolicy``: decision computed per request by a predicate.
- ``identity_policy()`` / ``item_policy()``: narrowed dynamic policies.
- ``AccessProfile``: the four policies of one list.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping, Union

from ..exceptions import ConfigurationError
from .constants import OPERATIONS, Operation

if TYPE_CHECKING:
    from ..context import RequestContext
    from ..identity import Identity

Predicate = Callable[["RequestContext"], bool]
IdentityPredicate = Callable[["Identity"], bool]


class Policy:
    """A single operation's access rule."""

    __slots__ = ()

    is_static: bool = False

    @property
    def is_dynamic(self) -> bool:
        return not self.is_static


class StaticPolicy(Policy):
    """Permission fixed for the lifetime of the process."""

    __slots__ = ("allowed",)

    is_static = True

    def __init__(self, allowed: bool) -> None:
        if not isinstance(allowed, bool):
            raise ConfigurationError(f"Static policy needs a bool, got {type(allowed).__name__}")
        object.__setattr__(self, "allowed", allowed)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("StaticPolicy is immutable")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, StaticPolicy) and other.allowed == self.allowed

    def __hash__(self) -> int:
        return hash((StaticPolicy, self.allowed))

    def __repr__(self) -> str:
        return f"StaticPolicy({self.allowed!r})"


class DynamicPolicy(Policy):
    """Permission computed per request.

    The predicate receives the :class:`~listguard.context.RequestContext`
    and must return ``True`` to grant. It must not mutate the context or
    have side effects; the evaluator calls it exactly once per evaluation.

    Args:
        predicate: Callable ``RequestContext -> bool``.
        name: Name used in logs (defaults to the callable's ``__name__``).
        item_dependent: The predicate inspects the target item, so the
            decision can differ between items of the same list.
        identity_only: The predicate only inspects the identity.
    """

    __slots__ = ("predicate", "name", "item_dependent", "identity_only")

    def __init__(
        self,
        predicate: Predicate,
        *,
        name: str | None = None,
        item_dependent: bool = False,
        identity_only: bool = False,
    ) -> None:
        if predicate is None or not callable(predicate):
            raise ConfigurationError(f"Dynamic policy needs a callable predicate, got {predicate!r}")
        if item_dependent and identity_only:
            raise ConfigurationError("A predicate cannot be both item-dependent and identity-only")
        object.__setattr__(self, "predicate", predicate)
        object.__setattr__(self, "name", name or getattr(predicate, "__name__", "<predicate>"))
        object.__setattr__(self, "item_dependent", item_dependent)
        object.__setattr__(self, "identity_only", identity_only)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("DynamicPolicy is immutable")

    def __call__(self, context: RequestContext) -> Any:
        return self.predicate(context)

    def __repr__(self) -> str:
        flags = ""
        if self.item_dependent:
            flags = ", item_dependent=True"
        elif self.identity_only:
            flags = ", identity_only=True"
        return f"DynamicPolicy({self.name!r}{flags})"


def identity_policy(predicate: IdentityPredicate, *, name: str | None = None) -> DynamicPolicy:
    """Dynamic policy whose predicate only sees the identity.

    Example::

        admin_only = identity_policy(lambda identity: identity.is_admin, name="is_admin")
    """
    if predicate is None or not callable(predicate):
        raise ConfigurationError(f"Identity policy needs a callable predicate, got {predicate!r}")

    def _by_identity(context: RequestContext) -> Any:
        return predicate(context.identity)

    return DynamicPolicy(
        _by_identity,
        name=name or getattr(predicate, "__name__", "<identity predicate>"),
        identity_only=True,
    )


def item_policy(predicate: Predicate, *, name: str | None = None) -> DynamicPolicy:
    """Dynamic policy whose decision depends on the target item."""
    return DynamicPolicy(predicate, name=name, item_dependent=True)


PolicyLike = Union[bool, Policy, Predicate]


def coerce_policy(value: PolicyLike) -> Policy:
    """Turn a literal bool, a callable or a Policy into a Policy.

    A bare callable is treated as request-level unless it carries a true
    ``item_dependent`` attribute (as the ``owned_by`` predicates do). Wrap
    other item predicates with :func:`item_policy`.

    Raises:
        ConfigurationError: For ``None`` or anything else.
    """
    if isinstance(value, Policy):
        return value
    if isinstance(value, bool):
        return StaticPolicy(value)
    if callable(value):
        return DynamicPolicy(value, item_dependent=bool(getattr(value, "item_dependent", False)))
    raise ConfigurationError(f"Cannot build a policy from {value!r}")


_DENY = StaticPolicy(False)


class AccessProfile:
    """The four operation policies of one list.

    Unspecified operations are denied. Immutable after construction.
    Plain callables are coerced with :func:`coerce_policy`; a predicate that
    inspects the item should be passed as ``item_policy(predicate)`` so that
    collection reads filter per item instead of denying the request.

    Example::

        profile = AccessProfile(
            create=True,
            read=True,
            update=item_policy(owner_only),
            delete=False,
        )
        profile.policy_for(Operation.UPDATE)   # DynamicPolicy('owner_only', item_dependent=True)
    """

    __slots__ = ("_policies",)

    def __init__(
        self,
        *,
        create: PolicyLike = False,
        read: PolicyLike = False,
        update: PolicyLike = False,
        delete: PolicyLike = False,
    ) -> None:
        supplied = {
            Operation.CREATE: create,
            Operation.READ: read,
            Operation.UPDATE: update,
            Operation.DELETE: delete,
        }
        policies: dict[Operation, Policy] = {}
        for operation, value in supplied.items():
            try:
                policies[operation] = coerce_policy(value)
            except ConfigurationError as e:
                raise ConfigurationError(f"Invalid {operation.value} policy: {e.message}") from e
        object.__setattr__(self, "_policies", MappingProxyType(policies))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str | Operation, PolicyLike]) -> AccessProfile:
        """Build from ``{"read": True, "update": predicate, ...}``.

        Raises:
            ConfigurationError: On unknown operation keys or bad values.
        """
        kwargs: dict[str, PolicyLike] = {}
        for key, value in mapping.items():
            try:
                operation = Operation.coerce(key)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
            if operation.value in kwargs:
                raise ConfigurationError(f"Operation {operation.value!r} declared twice")
            kwargs[operation.value] = value
        return cls(**kwargs)

    @classmethod
    def deny_all(cls) -> AccessProfile:
        return cls()

    @classmethod
    def allow_all(cls) -> AccessProfile:
        return cls(create=True, read=True, update=True, delete=True)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("AccessProfile is immutable")

    def policy_for(self, operation: Operation | str) -> Policy:
        return self._policies.get(Operation.coerce(operation), _DENY)

    @property
    def policies(self) -> Mapping[Operation, Policy]:
        return self._policies

    def __iter__(self):
        return iter(OPERATIONS)

    def __repr__(self) -> str:
        body = ", ".join(f"{op.value}={self._policies[op]!r}" for op in OPERATIONS)
        return f"AccessProfile({body})"


__all__ = [
    "AccessProfile",
    "DynamicPolicy",
    "IdentityPredicate",
    "Policy",
    "PolicyLike",
    "Predicate",
    "StaticPolicy",
    "coerce_policy",
    "identity_policy",
    "item_policy",
]
