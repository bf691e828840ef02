"""Operation and decision constants.

Provides:
- ``Operation``: the fixed CRUD operation set.
- ``Decision``: evaluation outcome (granted / denied / indeterminate).
"""

from __future__ import annotations

from enum import Enum


class Operation(str, Enum):
    """One of the four operations every list governs."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def coerce(cls, value: Operation | str) -> Operation:
        """Accept an ``Operation`` or its string value.

        Raises:
            ValueError: If ``value`` names no operation.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown operation: {value!r}. Must be one of {[o.value for o in cls]}")


#: Evaluation order used wherever all four operations are listed
OPERATIONS: tuple[Operation, ...] = (
    Operation.CREATE,
    Operation.READ,
    Operation.UPDATE,
    Operation.DELETE,
)


class Decision(str, Enum):
    """Outcome of an access evaluation.

    ``INDETERMINATE`` is advisory-only: it means a dynamic rule decides and
    no request context was available to run it.
    """

    GRANTED = "granted"
    DENIED = "denied"
    INDETERMINATE = "indeterminate"

    @classmethod
    def of(cls, allowed: bool) -> Decision:
        return cls.GRANTED if allowed else cls.DENIED

    @property
    def granted(self) -> bool:
        return self is Decision.GRANTED

    @property
    def denied(self) -> bool:
        return self is Decision.DENIED


__all__ = [
    "OPERATIONS",
    "Decision",
    "Operation",
]
