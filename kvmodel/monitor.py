"""
Change tracking for model properties.

A Monitor wraps a mutable mapping or list and records the dotted path of
every property written through it in a shared ChangeContext. Nested
containers are wrapped as well when monitoring recursively, all of them
referring to the same context owned by the root wrapper's creator.

Invariants:
    - One ChangeContext per model instance, never copied
    - Writing a value identical to the current one tracks nothing
    - The reserved key "$context" reads the context and is never stored

Example:
    >>> data = monitor({"a": {"b": 1}}, recursive=True)
    >>> data["a"]["b"] = 2
    >>> data.context.changed
    {'a.b'}
"""

from __future__ import annotations

import logging
from collections import ChainMap
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Set, Union

logger = logging.getLogger(__name__)

CONTEXT_KEY = "$context"

_MISSING = object()

Container = Union[MutableMapping, list]


@dataclass(eq=False)
class ChangeContext:
    """Set of dotted property paths changed since last commit."""

    changed: Set[str] = field(default_factory=set)

    @property
    def dirty(self) -> bool:
        return bool(self.changed)

    def commit(self) -> None:
        """Forget all tracked changes, e.g. after saving."""
        self.changed.clear()


def is_container(value: Any) -> bool:
    return isinstance(value, (MutableMapping, list)) and not isinstance(value, Monitor)


def _same(current: Any, value: Any) -> bool:
    if current is value:
        return True
    if is_container(current) or is_container(value):
        return False
    return type(current) is type(value) and bool(current == value)


class Monitor:
    """Change-tracking wrapper around a mapping or list.

    Attributes:
        target: The wrapped container
        context: Shared ChangeContext
        warn: Log when replacing a changed, unsaved value
        recursive: Wrap nested containers, too
        prefix: Prepended to names of tracked properties
        just_owned: Track only properties the target owns itself (for a
            ChainMap, those in its first map); list items always count
    """

    __slots__ = ("target", "context", "warn", "recursive", "prefix", "just_owned", "_wrapped")

    def __init__(
        self,
        target: Container,
        *,
        context: Optional[ChangeContext] = None,
        warn: bool = True,
        recursive: bool = False,
        prefix: str = "",
        just_owned: bool = True,
    ) -> None:
        if isinstance(target, Monitor):
            target = target.target
        if not is_container(target):
            raise TypeError(f"cannot monitor {type(target).__name__}")

        self.target = target
        self.context = context if context is not None else ChangeContext()
        self.warn = warn
        self.recursive = recursive
        self.prefix = prefix
        self.just_owned = just_owned
        self._wrapped: Dict[Any, Monitor] = {}

    def _owns(self, name: Any) -> bool:
        if isinstance(self.target, list):
            return True
        if isinstance(self.target, ChainMap):
            return name in self.target.maps[0]
        return name in self.target

    def _has(self, name: Any) -> bool:
        if isinstance(self.target, list):
            return isinstance(name, int) and -len(self.target) <= name < len(self.target)
        return name in self.target

    def _wrap(self, value: Container, prefix: str) -> Monitor:
        return Monitor(
            value,
            context=self.context,
            warn=self.warn,
            recursive=True,
            prefix=prefix,
            just_owned=self.just_owned,
        )

    def __getitem__(self, name: Any) -> Any:
        if name == CONTEXT_KEY:
            return self.context

        value = self.target[name]

        if self.recursive and is_container(value):
            wrapped = self._wrapped.get(name)
            if wrapped is not None and wrapped.target is value:
                return wrapped
            if not self.just_owned or self._owns(name) or isinstance(value, list):
                return self._wrap(value, f"{self.prefix}{name}.")

        return value

    def get(self, name: Any, default: Any = None) -> Any:
        if name == CONTEXT_KEY or self._has(name):
            return self[name]
        return default

    def __setitem__(self, name: Any, value: Any) -> None:
        if name == CONTEXT_KEY:
            raise TypeError(f"{CONTEXT_KEY} is reserved and cannot be replaced")

        if isinstance(value, Monitor):
            value = value.target

        exists = self._has(name)
        if not exists and isinstance(self.target, list):
            raise IndexError(f"list assignment index out of range: {name}")

        if exists and _same(self.target[name], value):
            self.target[name] = value
            return

        label = f"{self.prefix}{name}"

        if not self.just_owned or self._owns(name) or not exists:
            if self.warn and label in self.context.changed:
                logger.warning(f"replacing previously changed property {label} w/o prior saving")

            self.context.changed.add(label)

            if self.recursive and is_container(value):
                self._wrapped[name] = self._wrap(value, label + ".")
            else:
                self._wrapped.pop(name, None)

        self.target[name] = value

    def __delitem__(self, name: Any) -> None:
        if name == CONTEXT_KEY:
            raise TypeError(f"{CONTEXT_KEY} is reserved and cannot be removed")

        if isinstance(self.target, list):
            del self.target[name]
            # shifts later items, so their wrappers are stale
            self._wrapped.clear()
            self.context.changed.add(f"{self.prefix}{name}")
            return

        if self._has(name) and (not self.just_owned or self._owns(name)):
            self.context.changed.add(f"{self.prefix}{name}")
        self._wrapped.pop(name, None)

        del self.target[name]

    def append(self, value: Any) -> None:
        """Append to a monitored list, tracking the new index."""
        if not isinstance(self.target, list):
            raise TypeError("append() requires monitoring a list")
        if isinstance(value, Monitor):
            value = value.target

        index = len(self.target)
        label = f"{self.prefix}{index}"
        self.context.changed.add(label)
        if self.recursive and is_container(value):
            self._wrapped[index] = self._wrap(value, label + ".")
        self.target.append(value)

    def __contains__(self, name: Any) -> bool:
        return name in self.target

    def __iter__(self) -> Iterator[Any]:
        return iter(self.target)

    def __len__(self) -> int:
        return len(self.target)

    def keys(self) -> Any:
        return self.target.keys()

    def items(self) -> Iterator[tuple]:
        for name in self.target.keys():
            yield name, self[name]

    def values(self) -> Iterator[Any]:
        for name in self.target.keys():
            yield self[name]

    def unwrap(self) -> Container:
        """Return the wrapped container."""
        return self.target

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Monitor):
            other = other.target
        return self.target == other

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Monitor({self.target!r}, prefix={self.prefix!r})"


def monitor(
    target: Container,
    *,
    context: Optional[ChangeContext] = None,
    warn: bool = True,
    recursive: bool = False,
    prefix: str = "",
    just_owned: bool = True,
) -> Monitor:
    """Wrap target for tracking changes of its properties."""
    return Monitor(
        target,
        context=context,
        warn=warn,
        recursive=recursive,
        prefix=prefix,
        just_owned=just_owned,
    )
