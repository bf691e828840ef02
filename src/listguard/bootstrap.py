"""Startup wiring: configuration → list definitions → process-wide registry."""

from __future__ import annotations

import logging

from .config import GuardConfig, load_config_from_env
from .exceptions import ConfigurationError
from .permissions.evaluator import Evaluator
from .permissions.predicates import PredicateCatalog
from .permissions.registry import AccessRegistry, build_registry, init_registry
from .permissions.schema import load_definitions

logger = logging.getLogger(__name__)


def bootstrap(
    config: GuardConfig | None = None,
    catalog: PredicateCatalog | None = None,
) -> AccessRegistry:
    """Build the registry from ``config.definitions_path`` and install it.

    Any configuration error aborts initialization; no partial registry is
    ever installed.

    Raises:
        ConfigurationError: Missing definitions path, unreadable file,
            invalid entries, or a registry that is already installed.
    """
    config = config or load_config_from_env()
    if not config.definitions_path:
        raise ConfigurationError("No list definitions configured (set LISTGUARD_DEFINITIONS)")

    definitions = load_definitions(config.definitions_path)
    registry = build_registry(definitions, catalog)
    init_registry(registry)
    logger.info(
        "Access registry initialized from %s (%d lists)",
        config.definitions_path,
        len(registry),
    )
    return registry


def make_evaluator(registry: AccessRegistry, config: GuardConfig | None = None) -> Evaluator:
    """Evaluator honoring ``config.log_decisions``."""
    config = config or GuardConfig()
    return Evaluator(registry, log_decisions=config.log_decisions)


__all__ = ["bootstrap", "make_evaluator"]
