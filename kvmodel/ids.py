"""UUID helpers shared by models and adapters."""

from __future__ import annotations

import re
import uuid
from typing import Any, Optional

PTN_UUID = re.compile(r"^[0-9a-f]{8}(?:-[0-9a-f]{4}){3}-[0-9a-f]{12}$", re.IGNORECASE)

PTN_TRAILING_UUID = re.compile(
    r"(?:^|[/\\])([0-9a-f]{8}(?:-[0-9a-f]{4}){3}-[0-9a-f]{12})$", re.IGNORECASE
)

# Placeholder in key templates replaced with a generated UUID.
UUID_PLACEHOLDER = "%u"


def generate_uuid() -> str:
    return str(uuid.uuid4())


def is_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(PTN_UUID.match(value))


def key_to_uuid(key: str) -> Optional[str]:
    """Extract the UUID trailing a data key, None if there is none."""
    match = PTN_TRAILING_UUID.search(key or "")
    return match.group(1) if match else None
