"""Access policies, registry and evaluation for listguard.

Defines:
- Operation / Decision: CRUD operations and evaluation outcomes
- StaticPolicy / DynamicPolicy: the two policy kinds
- AccessProfile: the four policies of one list
- PredicateCatalog: named predicates for declarative definitions
- AccessRegistry: list → profile, frozen after startup
- Evaluator: authoritative and discovery-time decisions
"""

from .constants import OPERATIONS, Decision, Operation
from .evaluator import Evaluator
from .policy import (
    AccessProfile,
    DynamicPolicy,
    Policy,
    StaticPolicy,
    coerce_policy,
    identity_policy,
    item_policy,
)
from .predicates import PredicateCatalog, is_admin, is_authenticated, owned_by
from .registry import (
    AccessRegistry,
    build_registry,
    get_registry,
    init_registry,
    profile_from_definition,
    reset_registry,
)
from .schema import AccessDefinition, ListDefinition, load_definitions, parse_definitions

__all__ = [
    "OPERATIONS",
    "AccessDefinition",
    "AccessProfile",
    "AccessRegistry",
    "Decision",
    "DynamicPolicy",
    "Evaluator",
    "ListDefinition",
    "Operation",
    "Policy",
    "PredicateCatalog",
    "StaticPolicy",
    "build_registry",
    "coerce_policy",
    "get_registry",
    "identity_policy",
    "init_registry",
    "is_admin",
    "is_authenticated",
    "item_policy",
    "load_definitions",
    "owned_by",
    "parse_definitions",
    "profile_from_definition",
    "reset_registry",
]
