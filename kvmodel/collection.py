"""
Enumerating and searching instances of a model.

Both functions scan the keys of all records below "models/<ModelName>/items"
in the adapter of the model. Searching loads every item and compares the
named attribute using the attribute's type handler.

Invariants:
    - offset counts matching items, not scanned keys
    - Keys without trailing UUID are skipped
    - The key stream is closed as soon as limit is reached, unless meta
      requests the total count
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .config import get_default_adapter
from .errors import SchemaError
from .ids import key_to_uuid
from .model import Model

if TYPE_CHECKING:
    from .adapters import Adapter
    from .schema.compiler import CompiledModel

logger = logging.getLogger(__name__)


def _adapter_of(model: CompiledModel) -> Adapter:
    return model.adapter if model.adapter is not None else get_default_adapter()


def _limit(limit: Optional[int]) -> Optional[int]:
    return limit if limit is not None and limit > 0 else None


async def _uuids(model: CompiledModel, adapter: Adapter):
    async with aclosing(adapter.key_stream(prefix=model.items_prefix, max_depth=1)) as keys:
        async for key in keys:
            uuid = key_to_uuid(adapter.path_to_key(key))
            if uuid is not None:
                yield uuid


async def list_items(
    model: CompiledModel,
    offset: int = 0,
    limit: Optional[int] = None,
    load_properties: bool = False,
    meta: Optional[Dict[str, Any]] = None,
) -> List[Model]:
    """List instances of a model.

    Args:
        model: Compiled model
        offset: Number of items to skip
        limit: Maximum number of items to return, None for all
        load_properties: Load every item returned
        meta: Dict receiving "count" of all items found

    Returns:
        List of instances
    """
    adapter = _adapter_of(model)
    limit = _limit(limit)
    items: List[Model] = []
    count = 0

    async with aclosing(_uuids(model, adapter)) as uuids:
        async for uuid in uuids:
            count += 1
            if count <= offset:
                continue
            if limit is not None and len(items) >= limit:
                continue

            item = model(uuid, adapter=adapter)
            if load_properties:
                await item.load()
            items.append(item)

            if meta is None and limit is not None and len(items) >= limit:
                break

    if meta is not None:
        meta["count"] = count

    return items


async def find_by_attribute(
    model: CompiledModel,
    name: str,
    value: Any = None,
    operation: str = "eq",
    offset: int = 0,
    limit: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> List[Model]:
    """Find instances of a model with an attribute matching a value.

    Args:
        model: Compiled model
        name: Name of attribute to test
        value: Value searched for, coerced before comparing
        operation: Comparison operation, see ModelType.compare()
        offset: Number of matches to skip
        limit: Maximum number of matches to return, None for all
        meta: Dict receiving "count" of all matches

    Returns:
        List of loaded instances

    Raises:
        SchemaError: If model has no attribute of given name
    """
    step = next((step for step in model.steps if step.name == name), None)
    if step is None:
        raise SchemaError(f"unknown attribute {name} of model {model.name}",
                          model_name=model.name, element=name)

    handler, definition = step.handler, step.definition
    reference = handler.coerce(value, definition)
    adapter = _adapter_of(model)
    limit = _limit(limit)
    matches: List[Model] = []
    count = 0

    async with aclosing(_uuids(model, adapter)) as uuids:
        async for uuid in uuids:
            item = model(uuid, adapter=adapter)
            await item.load()

            actual = handler.coerce(handler.deserialize(item.properties.target.get(name)), definition)
            if not handler.compare(actual, reference, operation):
                continue

            count += 1
            if count <= offset:
                continue
            if limit is not None and len(matches) >= limit:
                continue

            matches.append(item)

            if meta is None and limit is not None and len(matches) >= limit:
                break

    logger.debug(
        f"Searched {model.name} by {name}",
        extra={"operation": operation, "matches": count},
    )

    if meta is not None:
        meta["count"] = count

    return matches
