"""Capability advisory: what a presentation layer may show before asking.

The advisory never runs a dynamic predicate without a concrete request:
static policies resolve to ``GRANTED``/``DENIED``, dynamic ones to
``INDETERMINATE``. Consumers apply the tri-state rule:

- ``DENIED`` read    → the list is hidden from navigation and routing.
- ``GRANTED``/``INDETERMINATE`` → affordance shown; the enforcement gate
  remains the authoritative check at submission time.

:meth:`CapabilityAdvisor.advise_item` is the post-fetch variant: with a
concrete item in hand it resolves item-dependent rules for that item.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from .permissions.constants import OPERATIONS, Decision, Operation
from .permissions.evaluator import Evaluator
from .permissions.policy import DynamicPolicy
from .permissions.registry import AccessRegistry

if TYPE_CHECKING:
    from .context import RequestContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capabilities:
    """Tri-state decision per operation for one list (or one item)."""

    resource_type: str
    create: Decision
    read: Decision
    update: Decision
    delete: Decision

    def decision(self, operation: Operation | str) -> Decision:
        return getattr(self, Operation.coerce(operation).value)

    def shows(self, operation: Operation | str) -> bool:
        """Whether the affordance for ``operation`` is rendered."""
        return self.decision(operation) is not Decision.DENIED

    @property
    def is_listed(self) -> bool:
        """Listed in navigation and routable."""
        return self.shows(Operation.READ)

    @property
    def show_create(self) -> bool:
        return self.is_listed and self.shows(Operation.CREATE)

    @property
    def show_update(self) -> bool:
        return self.is_listed and self.shows(Operation.UPDATE)

    @property
    def show_delete(self) -> bool:
        return self.is_listed and self.shows(Operation.DELETE)

    def acl(self) -> Mapping[str, bool]:
        """Boolean projection handed to the UI (``list.acl.create`` etc.)."""
        return MappingProxyType({op.value: self.shows(op) for op in OPERATIONS})

    def as_dict(self) -> dict[str, str]:
        return {op.value: self.decision(op).value for op in OPERATIONS}


class CapabilityAdvisor:
    """Read-only projection of the registry for presentation layers.

    Args:
        registry: The (frozen) access registry.
        evaluator: Evaluator used for post-fetch item decisions
            (defaults to a fresh one over ``registry``).
    """

    def __init__(self, registry: AccessRegistry, evaluator: Evaluator | None = None) -> None:
        self._registry = registry
        self._evaluator = evaluator or Evaluator(registry)

    @property
    def registry(self) -> AccessRegistry:
        return self._registry

    def advise(self, resource_type: str) -> Capabilities:
        """Pre-request capabilities for a list.

        Raises:
            UnknownResourceError: If the list is not registered.
        """
        decisions = {
            op.value: self._evaluator.evaluate_for_discovery(resource_type, op) for op in OPERATIONS
        }
        return Capabilities(resource_type=resource_type, **decisions)

    def advise_item(self, context: RequestContext, *, resolve_request: bool = False) -> Capabilities:
        """Capabilities for the item carried by ``context``, after a fetch.

        Item-dependent rules for read/update/delete are evaluated against
        the item; a predicate fault yields ``DENIED``. With
        ``resolve_request`` every dynamic read/update/delete rule is
        evaluated against the request. ``create`` always keeps its
        pre-request value: the viewed item says nothing about a new one.
        """
        resource_type = context.resource_type
        profile = self._registry.profile_for(resource_type)
        decisions: dict[str, Decision] = {}
        for op in OPERATIONS:
            policy = profile.policy_for(op)
            decision = self._evaluator.evaluate_for_discovery(resource_type, op)
            if op is not Operation.CREATE and isinstance(policy, DynamicPolicy):
                if resolve_request or (policy.item_dependent and context.item is not None):
                    decision = self._evaluator.evaluate(resource_type, op, context.for_operation(op))
            decisions[op.value] = decision
        return Capabilities(resource_type=resource_type, **decisions)

    def visible_resources(self) -> tuple[str, ...]:
        """Lists whose read is not concretely denied, in registration order."""
        return tuple(rt for rt in self._registry.resource_types() if self.advise(rt).is_listed)

    def advise_all(self) -> Mapping[str, Capabilities]:
        return MappingProxyType({rt: self.advise(rt) for rt in self._registry.resource_types()})


__all__ = ["Capabilities", "CapabilityAdvisor"]
