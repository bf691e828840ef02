"""Enforcement gate: the authoritative checkpoint in front of the data layer.

Every entry point evaluates before the wrapped store mutates or returns
anything:

- ``create``: context carries the proposed item as ``changes``.
- ``read``: item-dependent read policies become a visibility
  predicate applied while the store builds the result set; the request
  itself is never denied in that case. Other read policies are decided
  once per request.
- ``get``: a hidden item is indistinguishable from a missing one.
- ``update`` / ``delete``: context carries the item id, its current
  values and the proposed changes.
- ``update_many`` / ``delete_many``: every item is authorized before the
  first one is touched.

Denials raise :class:`AccessDeniedError` naming only the list and the
operation.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping

from .context import RequestContext
from .exceptions import AccessDeniedError, ItemNotFoundError
from .logging import get_access_logger
from .permissions.constants import Decision, Operation
from .permissions.evaluator import Evaluator
from .permissions.policy import DynamicPolicy, StaticPolicy
from .store import DataLayer, Item, ItemFilter

logger = get_access_logger(__name__)


class EnforcementGate:
    """Guards one list's data layer.

    Args:
        resource_type: The list this gate guards.
        store: The wrapped data layer.
        evaluator: Shared evaluator.

    Raises:
        UnknownResourceError: If ``resource_type`` is not registered.
    """

    def __init__(self, resource_type: str, store: DataLayer, evaluator: Evaluator) -> None:
        evaluator.registry.profile_for(resource_type)
        self._resource_type = resource_type
        self._store = store
        self._evaluator = evaluator

    @property
    def resource_type(self) -> str:
        return self._resource_type

    def _context(self, context: RequestContext, operation: Operation, **changes: Any) -> RequestContext:
        return replace(context, resource_type=self._resource_type, operation=operation, **changes)

    def _item_dependent(self, operation: Operation) -> bool:
        policy = self._evaluator.policy_for(self._resource_type, operation)
        return isinstance(policy, DynamicPolicy) and policy.item_dependent

    # ------------------------------------------------------------------
    def create(self, context: RequestContext, item: Mapping[str, Any]) -> Item:
        ctx = self._context(context, Operation.CREATE, item_id=None, item=None, changes=item)
        self._evaluator.require(self._resource_type, Operation.CREATE, ctx)
        created = self._store.create(item)
        logger.debug("Created item %s", created.get("id"), context=ctx)
        return created

    def read(self, context: RequestContext, filter: ItemFilter = None) -> list[Item]:
        ctx = self._context(context, Operation.READ, item_id=None, item=None, changes=None)

        if not self._item_dependent(Operation.READ):
            self._evaluator.require(self._resource_type, Operation.READ, ctx)
            return self._store.read(filter)

        def visible(item_id: Any, item: Mapping[str, Any]) -> bool:
            return self._evaluator.evaluate_item(ctx, item_id, item) is Decision.GRANTED

        return self._store.read(filter, visible=visible)

    def get(self, context: RequestContext, item_id: Any) -> Item:
        ctx = self._context(context, Operation.READ, item_id=item_id, item=None, changes=None)

        if not self._item_dependent(Operation.READ):
            self._evaluator.require(self._resource_type, Operation.READ, ctx)
            item = self._store.get(item_id)
            if item is None:
                raise ItemNotFoundError(self._resource_type, item_id)
            return item

        item = self._store.get(item_id)
        if item is None or self._evaluator.evaluate_item(ctx, item_id, item) is not Decision.GRANTED:
            raise ItemNotFoundError(self._resource_type, item_id)
        return item

    def update(self, context: RequestContext, item_id: Any, changes: Mapping[str, Any]) -> Item:
        ctx = self._context(context, Operation.UPDATE, item_id=item_id, item=None, changes=changes)
        self._authorize_item(ctx, item_id)
        updated = self._store.update(item_id, changes)
        logger.debug("Updated item %s", item_id, context=ctx)
        return updated

    def delete(self, context: RequestContext, item_id: Any) -> None:
        ctx = self._context(context, Operation.DELETE, item_id=item_id, item=None, changes=None)
        self._authorize_item(ctx, item_id)
        self._store.delete(item_id)
        logger.debug("Deleted item %s", item_id, context=ctx)

    def update_many(
        self,
        context: RequestContext,
        item_ids: Iterable[Any],
        changes: Mapping[str, Any],
    ) -> list[Item]:
        """Update several items; denied if any single item is denied.

        Repeated ids are applied once.
        """
        ctx = self._context(context, Operation.UPDATE, item_id=None, item=None, changes=changes)
        item_ids = list(dict.fromkeys(item_ids))
        for item_id in item_ids:
            self._authorize_item(replace(ctx, item_id=item_id), item_id)
        return [self._store.update(item_id, changes) for item_id in item_ids]

    def delete_many(self, context: RequestContext, item_ids: Iterable[Any]) -> None:
        """Delete several items; denied if any single item is denied.

        Repeated ids are deleted once.
        """
        ctx = self._context(context, Operation.DELETE, item_id=None, item=None, changes=None)
        item_ids = list(dict.fromkeys(item_ids))
        for item_id in item_ids:
            self._authorize_item(replace(ctx, item_id=item_id), item_id)
        for item_id in item_ids:
            self._store.delete(item_id)

    # ------------------------------------------------------------------
    def _authorize_item(self, ctx: RequestContext, item_id: Any) -> Item:
        """Fetch the target and require a grant for it.

        Static denials never touch the store. A missing target is
        ``ItemNotFoundError`` only when the caller would otherwise be
        allowed without seeing the item; for item-dependent policies it
        is a denial.
        """
        operation = ctx.operation
        policy = self._evaluator.policy_for(self._resource_type, operation)

        if isinstance(policy, StaticPolicy) and not policy.allowed:
            self._evaluator.require(self._resource_type, operation, ctx)

        item = self._store.get(item_id)
        if item is None:
            if isinstance(policy, DynamicPolicy) and policy.item_dependent:
                logger.info("Denied %s on missing item", operation.value, context=ctx)
                raise AccessDeniedError(self._resource_type, operation.value)
            self._evaluator.require(self._resource_type, operation, ctx)
            raise ItemNotFoundError(self._resource_type, item_id)

        self._evaluator.require(self._resource_type, operation, ctx.for_item(item_id, item))
        return item


class GateFactory:
    """Builds gates for every list from one evaluator and a store lookup.

    Args:
        evaluator: Shared evaluator.
        stores: List name → data layer.
    """

    def __init__(self, evaluator: Evaluator, stores: Mapping[str, DataLayer]) -> None:
        self._evaluator = evaluator
        self._stores = dict(stores)
        self._gates: dict[str, EnforcementGate] = {}

    def __call__(self, resource_type: str) -> EnforcementGate:
        gate = self._gates.get(resource_type)
        if gate is None:
            self._evaluator.registry.profile_for(resource_type)
            try:
                store = self._stores[resource_type]
            except KeyError:
                raise LookupError(f"No data layer configured for {resource_type!r}") from None
            gate = EnforcementGate(resource_type, store, self._evaluator)
            self._gates[resource_type] = gate
        return gate


__all__ = ["EnforcementGate", "GateFactory"]
