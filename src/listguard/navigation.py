"""Admin navigation: the presentation contract built on the advisory.

Reproduces what the admin UI does with capabilities:

- lists whose read is concretely denied are absent from navigation and
  their slug resolves like an unknown one ("list doesn't exist");
- other lists are navigable; a read the gate denies renders as
  *restricted*, which is distinct from *empty* and from *not found*;
- list rows carry their own capabilities when update or delete is
  decided per item;
- item views render field editors only when the post-fetch update
  decision is granted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .advisory import Capabilities, CapabilityAdvisor
from .context import RequestContext
from .exceptions import AccessDeniedError, ConfigurationError, ListNotFoundError
from .gate import EnforcementGate
from .permissions.constants import Decision, Operation
from .permissions.policy import DynamicPolicy
from .store import Item

RESTRICTED_MESSAGE = "You do not have access to this resource"

_UPPER = re.compile(r"[A-Z]")


def list_slug(name: str) -> str:
    """``"DynamicCreateRead"`` → ``"dynamic-create-reads"``."""
    return _UPPER.sub(lambda m: "-" + m.group(0), f"{name}s").lstrip("-").lower()


def pretty_list_name(name: str) -> str:
    """``"DynamicCreateRead"`` → ``"Dynamic Create Reads"``."""
    return _UPPER.sub(lambda m: " " + m.group(0), f"{name}s").strip()


class ListState(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    RESTRICTED = "restricted"


@dataclass(frozen=True)
class NavEntry:
    resource_type: str
    label: str
    slug: str


@dataclass(frozen=True)
class ListView:
    resource_type: str
    label: str
    state: ListState
    capabilities: Capabilities
    items: tuple[Item, ...] = ()
    item_capabilities: Mapping[Any, Capabilities] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def message(self) -> str | None:
        return RESTRICTED_MESSAGE if self.state is ListState.RESTRICTED else None

    def capabilities_for(self, item_id: Any) -> Capabilities:
        """Row affordances for one listed item; the list-level view otherwise."""
        return self.item_capabilities.get(item_id, self.capabilities)


@dataclass(frozen=True)
class ItemView:
    resource_type: str
    item: Item
    capabilities: Capabilities
    fields: tuple[str, ...] = ()
    editable_fields: tuple[str, ...] = field(default=())

    @property
    def show_create(self) -> bool:
        return self.capabilities.show_create

    @property
    def show_update(self) -> bool:
        return self.capabilities.show_update

    @property
    def show_delete(self) -> bool:
        return self.capabilities.show_delete


class AdminNavigator:
    """Navigation, routing and view state for the admin UI.

    Args:
        advisor: Capability advisor over the registry.
        gates: Callable returning the enforcement gate for a list.

    Raises:
        ConfigurationError: If two lists map to the same slug.
    """

    def __init__(self, advisor: CapabilityAdvisor, gates: Callable[[str], EnforcementGate]) -> None:
        self._advisor = advisor
        self._gates = gates
        self._by_slug: dict[str, str] = {}
        for resource_type in advisor.registry.resource_types():
            slug = list_slug(resource_type)
            if slug in self._by_slug:
                raise ConfigurationError(
                    f"Lists {self._by_slug[slug]!r} and {resource_type!r} share the slug {slug!r}"
                )
            self._by_slug[slug] = resource_type

    def navigation(self) -> list[NavEntry]:
        return [
            NavEntry(resource_type=rt, label=pretty_list_name(rt), slug=list_slug(rt))
            for rt in self._advisor.visible_resources()
        ]

    def resolve(self, slug: str) -> str:
        """Map a slug to its list.

        Raises:
            ListNotFoundError: Unknown slug, or a list that is never readable.
        """
        resource_type = self._by_slug.get(slug)
        if resource_type is None or not self._advisor.advise(resource_type).is_listed:
            raise ListNotFoundError(slug)
        return resource_type

    def open_list(self, slug: str, context: RequestContext, filter: dict[str, Any] | None = None) -> ListView:
        """Read a list through the gate and derive its view state.

        When update or delete is decided per item, every listed row gets
        its own capabilities (see :meth:`ListView.capabilities_for`).

        Raises:
            ListNotFoundError: See :meth:`resolve`.
        """
        resource_type = self.resolve(slug)
        capabilities = self._advisor.advise(resource_type)
        ctx = replace(context, resource_type=resource_type, operation=Operation.READ)
        try:
            items = self._gates(resource_type).read(ctx, filter)
        except AccessDeniedError:
            return ListView(
                resource_type=resource_type,
                label=pretty_list_name(resource_type),
                state=ListState.RESTRICTED,
                capabilities=capabilities,
            )
        per_item: dict[Any, Capabilities] = {}
        if self._has_item_rules(resource_type):
            for item in items:
                per_item[item["id"]] = self._advisor.advise_item(ctx.for_item(item["id"], item))
        return ListView(
            resource_type=resource_type,
            label=pretty_list_name(resource_type),
            state=ListState.OK if items else ListState.EMPTY,
            capabilities=capabilities,
            items=tuple(items),
            item_capabilities=MappingProxyType(per_item),
        )

    def _has_item_rules(self, resource_type: str) -> bool:
        profile = self._advisor.registry.profile_for(resource_type)
        return any(
            isinstance(policy, DynamicPolicy) and policy.item_dependent
            for policy in (profile.policy_for(Operation.UPDATE), profile.policy_for(Operation.DELETE))
        )

    def open_item(self, slug: str, item_id: Any, context: RequestContext) -> ItemView:
        """Fetch one item and derive its capabilities.

        Raises:
            ListNotFoundError: See :meth:`resolve`.
            AccessDeniedError: The read was denied.
            ItemNotFoundError: No such (visible) item.
        """
        resource_type = self.resolve(slug)
        ctx = replace(context, resource_type=resource_type, operation=Operation.READ)
        item = self._gates(resource_type).get(ctx, item_id)
        capabilities = self._advisor.advise_item(ctx.for_item(item_id, item), resolve_request=True)
        fields = self._advisor.registry.fields_for(resource_type)
        editable = fields if capabilities.update is Decision.GRANTED else ()
        return ItemView(
            resource_type=resource_type,
            item=item,
            capabilities=capabilities,
            fields=fields,
            editable_fields=editable,
        )


__all__ = [
    "RESTRICTED_MESSAGE",
    "AdminNavigator",
    "ItemView",
    "ListState",
    "ListView",
    "NavEntry",
    "list_slug",
    "pretty_list_name",
]
