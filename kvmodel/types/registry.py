"""
Type registry for kvmodel.

The TypeRegistry maps names and aliases of attribute types onto their
handlers. Lookup is insensitive to case, surrounding whitespace and
kebab-case vs. camelCase spelling.

Invariants:
    - Canonical names always win over aliases
    - An alias never replaces an existing entry
    - Handlers are registered by class, never instantiated

Example:
    >>> registry = get_type_registry()
    >>> registry.select_by_name("Int")
    <class 'kvmodel.types.number.IntegerType'>
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Dict, Iterator, List, Optional, Type

from .base import ModelType
from .boolean import BooleanType
from .date import DateType
from .number import IntegerType, NumberType
from .string import StringType

logger = logging.getLogger(__name__)

BUILTIN_TYPES = (StringType, IntegerType, BooleanType, NumberType, DateType)

PTN_KEBAB_SEGMENT = re.compile(r"-+([^-])")

_global_registry: Optional[TypeRegistry] = None
_registry_lock = threading.Lock()


def kebab_to_camel(name: str) -> str:
    return PTN_KEBAB_SEGMENT.sub(lambda m: m.group(1).upper(), name)


class TypeRegistry:
    """Registry of attribute type handlers.

    Thread-safety:
        - Registration is guarded by an internal lock
        - Lookups are lock-free

    Example:
        >>> registry = TypeRegistry()
        >>> registry.register(StringType)
        >>> registry.select_by_name("text")
        <class 'kvmodel.types.string.StringType'>
    """

    def __init__(self, handlers: Optional[List[Type[ModelType]]] = None) -> None:
        self._handlers: Dict[str, Type[ModelType]] = {}
        self._canonical: Dict[str, Type[ModelType]] = {}
        self._lock = threading.Lock()

        for handler in handlers or ():
            self.register(handler)

    @staticmethod
    def map_name_to_key(name: str) -> str:
        """Normalize a type name or alias into its lookup key.

        Raises:
            TypeError: If name is not a string
        """
        if not isinstance(name, str):
            raise TypeError("invalid name of attribute type")
        return kebab_to_camel(name.strip().lower()).upper()

    def register(self, handler: Type[ModelType]) -> None:
        """Register a type handler under its name and aliases.

        Registering a handler under a name already used by another
        canonical type replaces that type.

        Raises:
            TypeError: If handler isn't a ModelType with a name
        """
        if not isinstance(handler, type) or not issubclass(handler, ModelType) or not handler.type_name:
            raise TypeError(f"invalid type handler: {handler!r}")

        with self._lock:
            key = self.map_name_to_key(handler.type_name)
            self._canonical[key] = handler
            self._handlers[key] = handler

            for alias in handler.aliases:
                alias_key = self.map_name_to_key(alias)
                if alias_key not in self._handlers:
                    self._handlers[alias_key] = handler

        logger.debug(f"Registered attribute type: {handler.type_name} (aliases={list(handler.aliases)})")

    def select_by_name(self, name: str) -> Optional[Type[ModelType]]:
        """Select handler by name or alias, None if missing."""
        return self._handlers.get(self.map_name_to_key(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.select_by_name(name) is not None

    def names(self) -> List[str]:
        """List canonical names of all registered types."""
        return [handler.type_name for handler in self._canonical.values()]

    def __iter__(self) -> Iterator[Type[ModelType]]:
        yield from self._canonical.values()


def get_type_registry() -> TypeRegistry:
    """Get the global type registry, populated with the built-in types."""
    global _global_registry
    with _registry_lock:
        if _global_registry is None:
            _global_registry = TypeRegistry(list(BUILTIN_TYPES))
        return _global_registry


def register_type(handler: Type[ModelType]) -> None:
    """Register a custom type handler with the global registry."""
    get_type_registry().register(handler)


def reset_type_registry() -> None:
    """Reset the global registry (for testing only)."""
    global _global_registry
    with _registry_lock:
        _global_registry = None
