"""Policy evaluation.

Two entry points:

- :meth:`Evaluator.evaluate`: authoritative, needs a request context,
  always returns ``GRANTED`` or ``DENIED``.
- :meth:`Evaluator.evaluate_for_discovery`: no context, returns the
  static value or ``INDETERMINATE``; never runs a predicate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from ..exceptions import AccessDeniedError, PredicateFault
from .constants import Decision, Operation
from .policy import DynamicPolicy, Policy, StaticPolicy
from .registry import AccessRegistry

if TYPE_CHECKING:
    from ..context import RequestContext

logger = logging.getLogger(__name__)


class Evaluator:
    """Decides access for (resource type, operation, context).

    Stateless apart from the frozen registry it reads, so one instance is
    shared by every request handler.

    Args:
        registry: The access registry.
        log_decisions: Log every decision at DEBUG.
    """

    def __init__(self, registry: AccessRegistry, *, log_decisions: bool = False) -> None:
        self._registry = registry
        self._log_decisions = log_decisions

    @property
    def registry(self) -> AccessRegistry:
        return self._registry

    def policy_for(self, resource_type: str, operation: Operation | str) -> Policy:
        """Raises :class:`UnknownResourceError` for unregistered lists."""
        return self._registry.profile_for(resource_type).policy_for(operation)

    def evaluate(
        self,
        resource_type: str,
        operation: Operation | str,
        context: RequestContext,
    ) -> Decision:
        """Authoritative decision for one request.

        A dynamic predicate is invoked exactly once. If it raises, the fault
        is logged and the decision is ``DENIED``.
        """
        operation = Operation.coerce(operation)
        policy = self.policy_for(resource_type, operation)

        if isinstance(policy, StaticPolicy):
            decision = Decision.of(policy.allowed)
        else:
            decision = self._run_predicate(resource_type, operation, policy, context)

        if self._log_decisions:
            logger.debug(
                "%s %s -> %s",
                operation.value,
                resource_type,
                decision.value,
                extra={"request_id": context.request_id, "resource_type": resource_type, "operation": operation.value},
            )
        return decision

    def evaluate_for_discovery(self, resource_type: str, operation: Operation | str) -> Decision:
        """Pre-request decision: the static value, or ``INDETERMINATE``."""
        policy = self.policy_for(resource_type, operation)
        if isinstance(policy, StaticPolicy):
            return Decision.of(policy.allowed)
        return Decision.INDETERMINATE

    def evaluate_item(
        self,
        context: RequestContext,
        item_id: Any,
        item: Mapping[str, Any] | None,
    ) -> Decision:
        """Evaluate ``context.operation`` against one concrete item."""
        return self.evaluate(context.resource_type, context.operation, context.for_item(item_id, item))

    def require(
        self,
        resource_type: str,
        operation: Operation | str,
        context: RequestContext,
    ) -> None:
        """Raise an opaque :class:`AccessDeniedError` unless granted."""
        operation = Operation.coerce(operation)
        if self.evaluate(resource_type, operation, context) is not Decision.GRANTED:
            logger.info(
                "Denied %s on %s",
                operation.value,
                resource_type,
                extra={"request_id": context.request_id, "resource_type": resource_type, "operation": operation.value},
            )
            raise AccessDeniedError(resource_type, operation.value)

    def _run_predicate(
        self,
        resource_type: str,
        operation: Operation,
        policy: DynamicPolicy,
        context: RequestContext,
    ) -> Decision:
        try:
            result = policy(context)
        except Exception as e:
            fault = PredicateFault(resource_type, operation.value, policy.name, e)
            logger.error(
                "%s; denying",
                fault.message,
                exc_info=e,
                extra={"request_id": context.request_id, "resource_type": resource_type, "operation": operation.value},
            )
            return Decision.DENIED

        if not isinstance(result, bool):
            logger.warning(
                "Predicate %r returned %s instead of bool for %s on %s; denying",
                policy.name,
                type(result).__name__,
                operation.value,
                resource_type,
            )
            return Decision.DENIED
        return Decision.of(result)


__all__ = ["Evaluator"]
