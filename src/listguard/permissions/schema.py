"""Declarative list definitions: the configuration surface of the registry.

A definitions file is a JSON list of lists::

    [
      {"name": "Widget",
       "fields": ["name", "owner"],
       "access": {"create": true, "read": true, "update": "owner_only", "delete": false}}
    ]

Each operation holds a literal boolean or the name of a predicate
registered in a :class:`~listguard.permissions.predicates.PredicateCatalog`.
Omitted operations are denied.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigurationError

AccessValue = Union[bool, str]


class AccessDefinition(BaseModel):
    """Per-operation access declaration."""

    model_config = {"extra": "forbid", "strict": True}

    create: AccessValue = False
    read: AccessValue = False
    update: AccessValue = False
    delete: AccessValue = False

    @field_validator("create", "read", "update", "delete")
    @classmethod
    def validate_reference(cls, v: AccessValue) -> AccessValue:
        if isinstance(v, str) and not v.strip():
            raise ValueError("Predicate reference must not be empty")
        return v


class ListDefinition(BaseModel):
    """One resource type ("list") as declared in configuration."""

    model_config = {"extra": "forbid"}

    name: str = Field(description="List name, e.g. 'Widget'")
    access: AccessDefinition = Field(default_factory=AccessDefinition)
    fields: list[str] = Field(default_factory=list, description="Editable field names")
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("List name must not be empty")
        if not v[0].isalpha() or not v.replace("_", "").isalnum():
            raise ValueError(f"List name must be alphanumeric and start with a letter: {v!r}")
        return v


def parse_definitions(raw: object) -> list[ListDefinition]:
    """Validate raw (already-decoded) configuration.

    Raises:
        ConfigurationError: If the payload is not a list of valid definitions.
    """
    if not isinstance(raw, list):
        raise ConfigurationError("List definitions must be a JSON array")
    definitions: list[ListDefinition] = []
    for index, entry in enumerate(raw):
        try:
            definitions.append(ListDefinition.model_validate(entry))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid list definition at index {index}: {e}", index=index) from e
    return definitions


def load_definitions(path: str | Path) -> list[ListDefinition]:
    """Read and validate a definitions JSON file.

    Raises:
        ConfigurationError: On unreadable files, bad JSON or bad entries.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read list definitions from {path}: {e}", path=str(path)) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Malformed list definitions in {path}: {e}", path=str(path)) from e
    return parse_definitions(raw)


__all__ = [
    "AccessDefinition",
    "AccessValue",
    "ListDefinition",
    "load_definitions",
    "parse_definitions",
]
