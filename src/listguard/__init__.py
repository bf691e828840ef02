from .config import GuardConfig, LogLevel, load_config_from_env
from .identity import ANONYMOUS, Identity
from .context import RequestContext
from .exceptions import (
    AccessDeniedError,
    ConfigurationError,
    ItemNotFoundError,
    ListGuardError,
    ListNotFoundError,
    PredicateFault,
    UnknownResourceError,
)
from .logging import (
    AccessLogFormatter,
    AccessLoggerAdapter,
    get_access_logger,
    redact_secrets,
    safe_log_value,
    safe_preview,
    setup_logging,
)
from .permissions import (
    OPERATIONS,
    AccessProfile,
    AccessRegistry,
    Decision,
    DynamicPolicy,
    Evaluator,
    ListDefinition,
    Operation,
    PredicateCatalog,
    StaticPolicy,
    build_registry,
    get_registry,
    identity_policy,
    init_registry,
    item_policy,
    load_definitions,
    reset_registry,
)
from .store import DataLayer, InMemoryStore
from .gate import EnforcementGate, GateFactory
from .advisory import Capabilities, CapabilityAdvisor
from .navigation import AdminNavigator, ListState, list_slug, pretty_list_name
from .bootstrap import bootstrap, make_evaluator

__all__ = [
    'GuardConfig',
    'LogLevel',
    'load_config_from_env',
    'ANONYMOUS',
    'Identity',
    'RequestContext',
    'AccessDeniedError',
    'ConfigurationError',
    'ItemNotFoundError',
    'ListGuardError',
    'ListNotFoundError',
    'PredicateFault',
    'UnknownResourceError',
    'AccessLogFormatter',
    'AccessLoggerAdapter',
    'get_access_logger',
    'redact_secrets',
    'safe_log_value',
    'safe_preview',
    'setup_logging',
    'OPERATIONS',
    'AccessProfile',
    'AccessRegistry',
    'Decision',
    'DynamicPolicy',
    'Evaluator',
    'ListDefinition',
    'Operation',
    'PredicateCatalog',
    'StaticPolicy',
    'build_registry',
    'get_registry',
    'identity_policy',
    'init_registry',
    'item_policy',
    'load_definitions',
    'reset_registry',
    'DataLayer',
    'InMemoryStore',
    'EnforcementGate',
    'GateFactory',
    'Capabilities',
    'CapabilityAdvisor',
    'AdminNavigator',
    'ListState',
    'list_slug',
    'pretty_list_name',
    'bootstrap',
    'make_evaluator',
]
