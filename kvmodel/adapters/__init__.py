"""
Storage adapters for kvmodel.

- Adapter: abstract base rejecting every operation
- MemoryAdapter: dict-backed, for tests and local development
- FileAdapter: JSON files in a sharded directory tree
"""

from .base import Adapter
from .file import FileAdapter
from .memory import MemoryAdapter

__all__ = [
    "Adapter",
    "MemoryAdapter",
    "FileAdapter",
]
