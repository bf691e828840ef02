"""Unified exception hierarchy for listguard.

All errors inherit from ListGuardError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for protocol mapping
- gRPC error handler decorators (unary + streaming)

Usage in services:
    from listguard.exceptions import (
        AccessDeniedError,
        ListGuardError,
        grpc_error_handler,
    )

Denial errors carry the resource type and operation only. Predicate
internals stay on the server side of the access boundary.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "ListGuardError",
    "ConfigurationError",
    "UnknownResourceError",
    "AccessDeniedError",
    "PredicateFault",
    "ItemNotFoundError",
    "ListNotFoundError",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
    # gRPC helpers
    "get_grpc_status_code",
    "grpc_error_handler",
    "grpc_stream_error_handler",
]

logger = logging.getLogger(__name__)


# ---- Exception Hierarchy ----------------------------------------------------


class ListGuardError(Exception):
    """Base exception for the access-control engine.

    Attributes:
        code: Stable error code string for protocol mapping (e.g. "PERMISSION_DENIED").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(ListGuardError):
    """Malformed or duplicate registry entry. Fatal at startup."""

    code: str = "CONFIGURATION_ERROR"


class UnknownResourceError(ListGuardError):
    """Evaluation requested for an unregistered resource type."""

    code: str = "UNKNOWN_RESOURCE"

    def __init__(self, resource_type: str) -> None:
        super().__init__(f"Unknown resource type: {resource_type!r}", resource_type=resource_type)
        self.resource_type = resource_type


class AccessDeniedError(ListGuardError):
    """Operation denied at the enforcement gate.

    The message names the resource type and operation and nothing else,
    so the shape of a dynamic rule cannot be inferred from it.
    """

    code: str = "PERMISSION_DENIED"

    def __init__(self, resource_type: str, operation: str) -> None:
        operation = getattr(operation, "value", operation)
        super().__init__(
            f"Access denied: {operation} on {resource_type}",
            resource_type=resource_type,
            operation=operation,
        )
        self.resource_type = resource_type
        self.operation = operation


class PredicateFault(ListGuardError):
    """A dynamic predicate raised while being evaluated.

    Internal only: the evaluator logs it and turns it into a denial.
    """

    code: str = "PREDICATE_FAULT"

    def __init__(self, resource_type: str, operation: str, predicate: str, cause: BaseException) -> None:
        operation = getattr(operation, "value", operation)
        super().__init__(
            f"Predicate {predicate!r} failed for {operation} on {resource_type}: {cause!r}",
            resource_type=resource_type,
            operation=operation,
            predicate=predicate,
        )
        self.cause = cause


class ItemNotFoundError(ListGuardError):
    """Single-item operation addressed an item that does not exist."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, resource_type: str, item_id: Any) -> None:
        super().__init__(
            f"Item {item_id!r} not found in {resource_type}",
            resource_type=resource_type,
            item_id=item_id,
        )


class ListNotFoundError(ListGuardError):
    """A list slug that is unknown, or hidden because it is never readable."""

    code: str = "LIST_NOT_FOUND"

    def __init__(self, slug: str) -> None:
        super().__init__(f"The list “{slug}” doesn't exist", slug=slug)
        self.slug = slug


# ---- Error Registry for Protocol Mapping ------------------------------------

_E = TypeVar("_E", bound=type[ListGuardError])


class ErrorRegistry:
    """Registry for mapping internal errors to external protocol codes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[ListGuardError]] = {}

    def register(self, code: str, error_cls: type[ListGuardError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[ListGuardError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[ListGuardError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("QUOTA_EXCEEDED")
        class QuotaExceededError(ListGuardError):
            code = "QUOTA_EXCEEDED"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register base errors
error_registry.register("INTERNAL_ERROR", ListGuardError)
error_registry.register("CONFIGURATION_ERROR", ConfigurationError)
error_registry.register("UNKNOWN_RESOURCE", UnknownResourceError)
error_registry.register("PERMISSION_DENIED", AccessDeniedError)
error_registry.register("PREDICATE_FAULT", PredicateFault)
error_registry.register("ITEM_NOT_FOUND", ItemNotFoundError)
error_registry.register("LIST_NOT_FOUND", ListNotFoundError)


# ---- gRPC Error Handling Utilities ------------------------------------------


def get_grpc_status_code(error: ListGuardError) -> int:
    """Map ListGuardError to gRPC status code.

    A predicate fault is reported as PERMISSION_DENIED, the same as the
    denial it produces.
    Import grpc locally to avoid hard dependency at module level.
    """
    import grpc

    error_to_status = {
        "PERMISSION_DENIED": grpc.StatusCode.PERMISSION_DENIED,
        "PREDICATE_FAULT": grpc.StatusCode.PERMISSION_DENIED,
        "CONFIGURATION_ERROR": grpc.StatusCode.FAILED_PRECONDITION,
        "UNKNOWN_RESOURCE": grpc.StatusCode.NOT_FOUND,
        "LIST_NOT_FOUND": grpc.StatusCode.NOT_FOUND,
        "ITEM_NOT_FOUND": grpc.StatusCode.NOT_FOUND,
    }
    return error_to_status.get(error.code, grpc.StatusCode.INTERNAL)


def _public_message(error: ListGuardError) -> str:
    if isinstance(error, PredicateFault):
        operation = error.details.get("operation", "")
        resource_type = error.details.get("resource_type", "")
        return f"[{AccessDeniedError.code}] Access denied: {operation} on {resource_type}"
    return f"[{error.code}] {error.message}"


def grpc_error_handler(method):
    """Decorator for unary gRPC service methods with proper error handling.

    Catches ListGuardError and sets appropriate gRPC status codes.
    Unexpected exceptions abort as INTERNAL without their message.

    Usage:
        @grpc_error_handler
        async def UpdateItem(self, request, context):
            ...
    """

    @functools.wraps(method)
    async def wrapper(self, request, context):
        try:
            return await method(self, request, context)
        except ListGuardError as e:
            status_code = get_grpc_status_code(e)

            logger.error(
                "%s failed: [%s] %s",
                method.__name__,
                e.code,
                e.message,
                extra={
                    "error_code": e.code,
                    "error_details": e.details,
                },
            )

            context.set_trailing_metadata([("error-code", e.code)])
            await context.abort(status_code, _public_message(e))
            return

        except Exception as e:
            import grpc

            logger.exception("%s unexpected error: %s", method.__name__, e)
            await context.abort(grpc.StatusCode.INTERNAL, "Internal error")
            return

    return wrapper


def grpc_stream_error_handler(method):
    """Decorator for streaming gRPC service methods with proper error handling.

    Works with async generator methods that use 'yield'.

    Usage:
        @grpc_stream_error_handler
        async def ListItems(self, request, context):
            for item in gate.read(ctx):
                yield to_proto(item)
    """

    @functools.wraps(method)
    async def wrapper(self, request, context):
        try:
            async for item in method(self, request, context):
                yield item
        except ListGuardError as e:
            status_code = get_grpc_status_code(e)

            logger.error(
                "%s failed: [%s] %s",
                method.__name__,
                e.code,
                e.message,
                extra={
                    "error_code": e.code,
                    "error_details": e.details,
                },
            )

            context.set_trailing_metadata([("error-code", e.code)])
            await context.abort(status_code, _public_message(e))
            return

        except Exception as e:
            import grpc

            logger.exception("%s unexpected error: %s", method.__name__, e)
            await context.abort(grpc.StatusCode.INTERNAL, "Internal error")
            return

    return wrapper
