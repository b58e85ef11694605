"""
Base class for storage adapters.

An adapter is a key-value backend storing one JSON-like record per key.
Keys are "/"-separated paths such as "models/Person/items/<uuid>".

This base class implements no storage: every operation raises
AdapterError, every transaction operation raises
TransactionNotSupportedError. Backends override what they support.

Invariants:
    - create() substitutes every "%u" in the key template with a fresh UUID
    - remove() succeeds whether or not the key exists
    - key_to_path() and path_to_key() are inverse to each other

How to change safely:
    - Keep subclasses free of model knowledge; they store plain records
    - Streams must be restartable by calling the stream method again
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, List, Optional

from ..errors import AdapterError, TransactionNotSupportedError

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "/"


def key_depth(key: str, prefix: str, separator: Optional[str]) -> Optional[int]:
    """Depth of key relative to prefix, None if key isn't beneath prefix."""
    if not key.startswith(prefix):
        return None
    if separator is None:
        return 0

    relative = key[len(prefix):].strip(separator)
    if not relative:
        return 0
    return relative.count(separator) + 1


def matches_stream(key: str, prefix: str, max_depth: Optional[int], separator: Optional[str]) -> bool:
    depth = key_depth(key, prefix, separator)
    if depth is None:
        return False
    return max_depth is None or separator is None or depth <= max_depth


class Adapter:
    """Abstract storage adapter."""

    async def create(self, key_template: str, data: Any) -> str:
        """Store data under a new key derived from key_template.

        Args:
            key_template: Key containing "%u" to be replaced with a new UUID
            data: Record to store

        Returns:
            Key of the new record
        """
        raise AdapterError("invalid use of abstract base adapter")

    async def has(self, key: str) -> bool:
        raise AdapterError("invalid use of abstract base adapter", key=key)

    async def list(self, parent_key: str) -> List[str]:
        """List keys directly beneath parent_key."""
        raise AdapterError("invalid use of abstract base adapter", key=parent_key)

    async def read(self, key: str, *, if_missing: Any = None) -> Any:
        """Read record stored under key.

        Raises:
            NoSuchRecordError: If record is missing and no if_missing is given
        """
        raise AdapterError("invalid use of abstract base adapter", key=key)

    async def write(self, key: str, data: Any) -> Any:
        raise AdapterError("invalid use of abstract base adapter", key=key)

    async def remove(self, key: str) -> str:
        """Remove record under key, incl. all records beneath it."""
        raise AdapterError("invalid use of abstract base adapter", key=key)

    def key_stream(
        self,
        prefix: str = "",
        max_depth: Optional[int] = None,
        separator: Optional[str] = DEFAULT_SEPARATOR,
    ) -> AsyncIterator[str]:
        """Stream keys starting with prefix.

        Args:
            prefix: Only stream keys starting with this prefix
            max_depth: Skip keys nested deeper below prefix
            separator: Separates segments of a key, None disables depth checks

        Returns:
            Async iterator of keys; close it with aclose() to stop early
        """
        raise AdapterError("invalid use of abstract base adapter", key=prefix)

    def value_stream(
        self,
        prefix: str = "",
        max_depth: Optional[int] = None,
        separator: Optional[str] = DEFAULT_SEPARATOR,
    ) -> AsyncIterator[Any]:
        """Stream records of keys starting with prefix."""
        raise AdapterError("invalid use of abstract base adapter", key=prefix)

    async def begin(self) -> None:
        raise TransactionNotSupportedError()

    async def roll_back(self) -> None:
        raise TransactionNotSupportedError("There is no running transaction to be rolled back.")

    async def commit(self) -> None:
        raise TransactionNotSupportedError("There is no running transaction to be committed.")

    @staticmethod
    def key_to_path(key: str) -> str:
        """Map key onto the path addressing its record in the backend."""
        return key

    @staticmethod
    def path_to_key(path: str) -> str:
        """Reverse key_to_path()."""
        return path
