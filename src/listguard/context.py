"""Per-request context handed to dynamic predicates.

A ``RequestContext`` is built once per incoming request and discarded
when it completes. It is frozen; per-item evaluation derives a new
context with :meth:`RequestContext.for_item` instead of mutating it.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

from .identity import ANONYMOUS, Identity
from .permissions.constants import Operation


def _freeze(value: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if value is None or isinstance(value, MappingProxyType):
        return value
    return MappingProxyType(dict(value))


@dataclass(frozen=True)
class RequestContext:
    """Everything a dynamic predicate may look at.

    Attributes:
        identity: Authenticated identity (anonymous if nobody signed in).
        resource_type: Requested list.
        operation: Requested operation.
        item_id: Target item for single-item operations.
        item: Current field values of the target item, when fetched.
        changes: Proposed field changes for create/update.
        metadata: Arbitrary request metadata (headers, time, tenant...).
        request_id: Correlation id for logs.
    """

    resource_type: str
    operation: Operation
    identity: Identity = ANONYMOUS
    item_id: Any = None
    item: Mapping[str, Any] | None = field(default=None, hash=False)
    changes: Mapping[str, Any] | None = field(default=None, hash=False)
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}), hash=False)
    request_id: str = field(default_factory=lambda: secrets.token_hex(8))

    def __post_init__(self) -> None:
        object.__setattr__(self, "operation", Operation.coerce(self.operation))
        object.__setattr__(self, "item", _freeze(self.item))
        object.__setattr__(self, "changes", _freeze(self.changes))
        object.__setattr__(self, "metadata", _freeze(self.metadata) or MappingProxyType({}))

    @classmethod
    def build(
        cls,
        resource_type: str,
        operation: Operation | str,
        identity: Identity | None = None,
        **kwargs: Any,
    ) -> RequestContext:
        """Convenience constructor tolerating ``identity=None``."""
        return cls(
            resource_type=resource_type,
            operation=Operation.coerce(operation),
            identity=identity or ANONYMOUS,
            **kwargs,
        )

    def for_operation(self, operation: Operation | str) -> RequestContext:
        """Same request, another operation."""
        return replace(self, operation=Operation.coerce(operation))

    def for_item(self, item_id: Any, item: Mapping[str, Any] | None) -> RequestContext:
        """Derive the context for one concrete item."""
        return replace(self, item_id=item_id, item=item)

    def with_changes(self, changes: Mapping[str, Any] | None) -> RequestContext:
        return replace(self, changes=changes)

    @property
    def is_item_scoped(self) -> bool:
        return self.item_id is not None or self.item is not None


__all__ = ["RequestContext"]
