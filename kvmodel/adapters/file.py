"""
File-tree storage adapter.

Every record is a JSON file below a data directory. A UUID trailing a key
is sharded into three path segments to bound the number of entries per
directory:

    models/Person/items/0123abcd-...  ->  models/Person/items/0/12/3abcd-...

Invariants:
    - Keys with "." or ".." segments are rejected
    - key_to_path() and path_to_key() are inverse; keys without a trailing
      UUID pass through unchanged
    - Blocking file IO runs in the loop's default executor
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Any, AsyncIterator, Callable, List, Optional

from ..errors import InvalidKeyError, NoSuchRecordError
from ..ids import UUID_PLACEHOLDER, generate_uuid
from .base import DEFAULT_SEPARATOR, Adapter, matches_stream

logger = logging.getLogger(__name__)

PTN_KEY_UUID = re.compile(
    r"(^|[/\\])([0-9a-f]{8}(?:-[0-9a-f]{4}){3}-[0-9a-f]{12})$", re.IGNORECASE
)

PTN_PATH_UUID = re.compile(
    r"(^|[/\\])([0-9a-f])([/\\])([0-9a-f]{2})\3([0-9a-f]{5}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})$",
    re.IGNORECASE,
)

PTN_DOT_SEGMENT = re.compile(r"(?:^|[/\\])\.\.?(?:[/\\]|$)")


class FileAdapter(Adapter):
    """Adapter storing records as JSON files in a local directory.

    Attributes:
        data_dir: Directory containing all record files
    """

    def __init__(self, data_dir: str | os.PathLike = "/data") -> None:
        self.data_dir = Path(data_dir)

    def _resolve(self, key: str) -> Path:
        if PTN_DOT_SEGMENT.search(key):
            raise InvalidKeyError(key)
        path = self.key_to_path(key).strip("/\\")
        return self.data_dir.joinpath(*re.split(r"[/\\]", path)) if path else self.data_dir

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.get_event_loop().run_in_executor(None, fn, *args)

    async def create(self, key_template: str, data: Any) -> str:
        while True:
            key = key_template.replace(UUID_PLACEHOLDER, generate_uuid())
            path = self._resolve(key)
            if not await self._run(path.exists):
                break

        await self._run(self._write_file, path, data)
        logger.debug("Record file created", extra={"key": key, "path": str(path)})
        return key

    async def has(self, key: str) -> bool:
        path = self._resolve(key)
        return await self._run(path.is_file)

    async def list(self, parent_key: str) -> List[str]:
        path = self._resolve(parent_key)
        entries = await self._run(self._list_dir, path)
        parent = parent_key.rstrip("/")
        return [f"{parent}/{entry}" if parent else entry for entry in entries]

    async def read(self, key: str, *, if_missing: Any = None) -> Any:
        path = self._resolve(key)
        try:
            return await self._run(self._read_file, path)
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            if if_missing is not None:
                return if_missing
            raise NoSuchRecordError(key)

    async def write(self, key: str, data: Any) -> Any:
        path = self._resolve(key)
        await self._run(self._write_file, path, data)
        logger.debug("Record file written", extra={"key": key, "path": str(path)})
        return data

    async def remove(self, key: str) -> str:
        path = self._resolve(key)
        await self._run(self._remove_path, path)
        logger.debug("Record file removed", extra={"key": key, "path": str(path)})
        return key

    async def key_stream(
        self,
        prefix: str = "",
        max_depth: Optional[int] = None,
        separator: Optional[str] = DEFAULT_SEPARATOR,
    ) -> AsyncIterator[str]:
        keys = await self._run(self._collect_keys, prefix)
        for key in keys:
            if matches_stream(key, prefix, max_depth, separator):
                yield key

    async def value_stream(
        self,
        prefix: str = "",
        max_depth: Optional[int] = None,
        separator: Optional[str] = DEFAULT_SEPARATOR,
    ) -> AsyncIterator[Any]:
        async for key in self.key_stream(prefix, max_depth, separator):
            yield await self.read(key)

    @staticmethod
    def key_to_path(key: str) -> str:
        return PTN_KEY_UUID.sub(
            lambda m: f"{m.group(1)}{m.group(2)[0]}/{m.group(2)[1:3]}/{m.group(2)[3:]}",
            key,
        )

    @staticmethod
    def path_to_key(path: str) -> str:
        return PTN_PATH_UUID.sub(
            lambda m: f"{m.group(1)}{m.group(2)}{m.group(4)}{m.group(5)}",
            path,
        )

    def _collect_keys(self, prefix: str) -> List[str]:
        """Walk the directory holding prefix and map all record files to keys."""
        head = prefix.rsplit("/", 1)[0] if "/" in prefix else ""
        root = self._resolve(head)
        if not root.is_dir():
            return []

        keys = []
        for directory, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for filename in sorted(filenames):
                if filename.startswith("."):
                    continue
                relative = Path(directory, filename).relative_to(self.data_dir)
                keys.append(self.path_to_key(relative.as_posix()))
        return keys

    @staticmethod
    def _list_dir(path: Path) -> List[str]:
        if not path.is_dir():
            return []
        return sorted(entry.name for entry in path.iterdir() if not entry.name.startswith("."))

    @staticmethod
    def _read_file(path: Path) -> Any:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def _write_file(path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_name, path)
        except BaseException:
            os.unlink(tmp_name)
            raise

    @staticmethod
    def _remove_path(path: Path) -> None:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
