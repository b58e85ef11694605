"""
In-memory storage adapter.

This module provides a dict-backed adapter for:
- Unit tests
- Local development without persistent storage
- The default adapter when nothing else is configured

Invariants:
    - All data is lost on process exit
    - Records are deep-copied on write and read, callers never share them
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from ..errors import NoSuchRecordError
from ..ids import UUID_PLACEHOLDER, generate_uuid
from .base import DEFAULT_SEPARATOR, Adapter, matches_stream

logger = logging.getLogger(__name__)


class MemoryAdapter(Adapter):
    """Adapter keeping all records in a dict.

    Example:
        >>> adapter = MemoryAdapter()
        >>> key = await adapter.create("models/Person/items/%u", {"name": "Jane"})
        >>> await adapter.read(key)
        {'name': 'Jane'}
    """

    def __init__(self) -> None:
        self._records: Dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def create(self, key_template: str, data: Any) -> str:
        while True:
            key = self.key_to_path(key_template.replace(UUID_PLACEHOLDER, generate_uuid()))
            if key not in self._records:
                break

        self._records[key] = copy.deepcopy(data)
        logger.debug("Record created in memory", extra={"key": key})
        return key

    async def has(self, key: str) -> bool:
        return key in self._records

    async def list(self, parent_key: str) -> List[str]:
        parent = parent_key.rstrip(DEFAULT_SEPARATOR) + DEFAULT_SEPARATOR
        children: Dict[str, None] = {}
        for key in self._records:
            if key.startswith(parent):
                child = key[len(parent):].split(DEFAULT_SEPARATOR, 1)[0]
                children[parent + child] = None
        return list(children)

    async def read(self, key: str, *, if_missing: Any = None) -> Any:
        if key in self._records:
            return copy.deepcopy(self._records[key])
        if if_missing is not None:
            return if_missing
        raise NoSuchRecordError(key)

    async def write(self, key: str, data: Any) -> Any:
        self._records[key] = copy.deepcopy(data)
        logger.debug("Record written to memory", extra={"key": key})
        return data

    async def remove(self, key: str) -> str:
        nested = key.rstrip(DEFAULT_SEPARATOR) + DEFAULT_SEPARATOR
        for existing in [k for k in self._records if k == key or k.startswith(nested)]:
            del self._records[existing]
        logger.debug("Record removed from memory", extra={"key": key})
        return key

    async def key_stream(
        self,
        prefix: str = "",
        max_depth: Optional[int] = None,
        separator: Optional[str] = DEFAULT_SEPARATOR,
    ) -> AsyncIterator[str]:
        for key in list(self._records):
            if key in self._records and matches_stream(key, prefix, max_depth, separator):
                yield key
                await asyncio.sleep(0)

    async def value_stream(
        self,
        prefix: str = "",
        max_depth: Optional[int] = None,
        separator: Optional[str] = DEFAULT_SEPARATOR,
    ) -> AsyncIterator[Any]:
        async for key in self.key_stream(prefix, max_depth, separator):
            if key in self._records:
                yield copy.deepcopy(self._records[key])

    def clear(self) -> None:
        """Drop all records (testing helper)."""
        self._records.clear()
