"""Authenticated identity as seen by access predicates.

Identity is produced by whatever authentication layer fronts the data
layer; the engine only reads it. It is immutable so a predicate cannot
alter who the request runs as.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class Identity:
    """Who is making the request.

    - user_id: Identity of the authenticated user (None = anonymous)
    - roles: Role names granted to the user (e.g. "editor")
    - is_admin: Role flag checked by admin-only policies
    - attributes: Any other identity attributes predicates may inspect
    """

    user_id: str | None = None
    roles: tuple[str, ...] = ()
    is_admin: bool = False
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}), hash=False)

    def __post_init__(self) -> None:
        # Normalize so callers can pass lists and dicts
        object.__setattr__(self, "roles", tuple(self.roles))
        if not isinstance(self.attributes, MappingProxyType):
            object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @classmethod
    def anonymous(cls) -> Identity:
        return cls()

    @classmethod
    def user(
        cls,
        user_id: str,
        *,
        roles: Iterable[str] = (),
        is_admin: bool = False,
        **attributes: Any,
    ) -> Identity:
        """Build an authenticated identity."""
        return cls(user_id=user_id, roles=tuple(roles), is_admin=is_admin, attributes=attributes)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def has_role(self, role: str) -> bool:
        return role in self.roles


ANONYMOUS = Identity()


__all__ = ["ANONYMOUS", "Identity"]
