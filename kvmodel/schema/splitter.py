"""
Splitting flat schema declarations.

A schema is declared as one dict. Its values are sorted by kind:

    - dict: attribute definition
    - callable or property: computed attribute
    - list or tuple of callables: hooks of the event named by the key

Invariants:
    - Declaration order is kept in every section
    - Definitions and hook lists are copied, the declaration is never
      modified
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..errors import SchemaError

Hook = Callable[..., Any]


@dataclass(frozen=True)
class Computed:
    """Getter and optional setter of a computed attribute."""

    get: Callable[[Any], Any]
    set: Optional[Callable[[Any, Any], Any]] = None

    @classmethod
    def from_declaration(cls, value: Any) -> Computed:
        if isinstance(value, property):
            return cls(get=value.fget, set=value.fset)
        return cls(get=lambda instance: value(instance), set=lambda instance, v: value(instance, v))


@dataclass(frozen=True)
class Schema:
    """Schema split into attributes, computed attributes and hooks."""

    attributes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    computeds: Dict[str, Computed] = field(default_factory=dict)
    hooks: Dict[str, Tuple[Hook, ...]] = field(default_factory=dict)


def _is_hook_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(callable(item) for item in value)


def split_schema(model_name: str, schema: Optional[Mapping[str, Any]]) -> Schema:
    """Split schema declaration of a model.

    Args:
        model_name: Name of model, used in error messages
        schema: Flat schema declaration, None for an empty schema

    Returns:
        Split schema

    Raises:
        SchemaError: If schema or any of its elements is malformed
    """
    if schema is None:
        return Schema()

    if not isinstance(schema, Mapping):
        raise SchemaError(f"invalid schema of model {model_name}", model_name=model_name)

    attributes: Dict[str, Dict[str, Any]] = {}
    computeds: Dict[str, Computed] = {}
    hooks: Dict[str, Tuple[Hook, ...]] = {}

    for name, value in schema.items():
        if not isinstance(name, str) or not name:
            raise SchemaError(f"invalid element name {name!r} in schema of model {model_name}",
                              model_name=model_name)

        if isinstance(value, Mapping):
            attributes[name] = dict(value)
        elif isinstance(value, property):
            if value.fget is None:
                raise SchemaError(f"computed attribute {name} of model {model_name} lacks getter",
                                  model_name=model_name, element=name)
            computeds[name] = Computed.from_declaration(value)
        elif callable(value):
            computeds[name] = Computed.from_declaration(value)
        elif _is_hook_list(value):
            hooks[name] = tuple(value)
        else:
            raise SchemaError(f"invalid element {name} in schema of model {model_name}",
                              model_name=model_name, element=name)

    return Schema(attributes=attributes, computeds=computeds, hooks=hooks)
