"""
Runtime of model instances.

Every instance of a compiled model is a Model (or a subclass given as base
on definition) managing one record of the model's adapter.

States:
    - New: no UUID yet, loaded is a future resolved without reading
    - Bound, unloaded: UUID given, nothing read yet
    - Bound, loading: load() pending
    - Bound, loaded: properties replaced with the record read

Unsaved changes are tracked by the Monitor wrapping the instance's
properties. Saving clears them, so does loading.

Invariants:
    - A UUID is assigned at most once
    - load() is single-flight: all callers share one future and one read
    - save() on an unchanged, loaded instance writes nothing
    - save() writes nothing unless validation passes
    - data_key is "models/<ModelName>/items/<uuid>" ("%u" while new)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .adapters import Adapter
from .config import UnsavedPolicy, get_default_adapter, get_config
from .errors import ModelStateError, ValidationError
from .ids import UUID_PLACEHOLDER, is_uuid, key_to_uuid
from .monitor import Monitor, monitor

if TYPE_CHECKING:
    from .schema.compiler import CompiledModel

logger = logging.getLogger(__name__)


async def invoke_hook(hook: Callable[..., Any], *args: Any) -> Any:
    """Call a hook, awaiting its result if it is awaitable."""
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Model:
    """Instance of a compiled model.

    Instances are created by calling the compiled model:

        >>> Person = define("Person", {"name": {}, "age": {"type": "integer"}})
        >>> jane = Person()
        >>> jane.name = "Jane"
        >>> await jane.save()

    Attributes and computed attributes of the model are available as
    attributes of the instance unless their names collide with a member
    of this class.

    Args:
        model: Compiled model this instance belongs to
        uuid: UUID of an existing record, None for a new one
        adapter: Adapter overriding the model's one
        on_unsaved: Policy for loading over unsaved changes
        warn_overwrites: Log when replacing a changed, unsaved property
    """

    def __init__(
        self,
        model: CompiledModel,
        uuid: Optional[str] = None,
        *,
        adapter: Optional[Adapter] = None,
        on_unsaved: Optional[UnsavedPolicy] = None,
        warn_overwrites: Optional[bool] = None,
    ) -> None:
        if uuid is not None and not is_uuid(uuid):
            raise ModelStateError(f"invalid UUID: {uuid}", uuid)

        settings = get_config().models
        if on_unsaved is None:
            on_unsaved = settings.on_unsaved
        elif not isinstance(on_unsaved, UnsavedPolicy):
            on_unsaved = UnsavedPolicy(on_unsaved)

        if adapter is None:
            adapter = model.adapter if model.adapter is not None else get_default_adapter()

        state = self.__dict__
        state["_model"] = model
        state["_uuid"] = uuid
        state["_adapter"] = adapter
        state["_on_unsaved"] = on_unsaved
        state["_warn"] = settings.warn_overwrites if warn_overwrites is None else warn_overwrites
        state["_properties"] = monitor({}, recursive=True, warn=state["_warn"])
        state["_loaded"] = None

    def __getattr__(self, name: str) -> Any:
        model = self.__dict__.get("_model")
        if model is not None and not name.startswith("_"):
            accessor = model.accessors.get(name)
            if accessor is not None:
                return accessor.get(self)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_"):
            accessor = self._model.accessors.get(name)
            if accessor is not None:
                accessor.set(self, value)
                return
        object.__setattr__(self, name, value)

    @property
    def model(self) -> CompiledModel:
        return self._model

    @property
    def uuid(self) -> Optional[str]:
        return self._uuid

    @uuid.setter
    def uuid(self, value: str) -> None:
        if self._uuid is not None:
            raise ModelStateError(f"UUID of {self.data_key} must not be changed", self._uuid)
        if not is_uuid(value):
            raise ModelStateError(f"invalid UUID: {value}", value)
        self.__dict__["_uuid"] = value

    @property
    def is_new(self) -> bool:
        return self._uuid is None

    @property
    def adapter(self) -> Adapter:
        return self._adapter

    @property
    def data_key(self) -> str:
        return self._model.data_key(self._uuid or UUID_PLACEHOLDER)

    @property
    def properties(self) -> Monitor:
        """Change-tracked properties of instance."""
        return self._properties

    @properties.setter
    def properties(self, value: Any) -> None:
        if isinstance(value, Monitor):
            value = value.target
        if not isinstance(value, MutableMapping):
            raise ModelStateError("invalid set of properties", self._uuid)

        if self._warn and self._properties.context.dirty:
            logger.warning(f"replacing properties of {self.data_key} after changing some w/o saving")

        self._replace_properties(value)

    def _replace_properties(self, data: MutableMapping) -> None:
        self.__dict__["_properties"] = monitor(data, recursive=True, warn=self._warn)

    @property
    def loaded(self) -> Optional[asyncio.Future]:
        """Future of loading properties.

        New instances always have a future resolved to themselves. Bound
        instances have None until load() is called.
        """
        if self._loaded is None and self.is_new:
            return self.load()
        return self._loaded

    async def exists(self) -> bool:
        """Check if backend contains a record of this instance."""
        if self.is_new:
            return False
        return await self._adapter.has(self.data_key)

    def load(self) -> asyncio.Future:
        """Load properties from backend.

        The first call starts reading the record; every later call returns
        the same future. New instances get a future resolved immediately.

        Returns:
            Future resolving to this instance
        """
        if self._loaded is None:
            loop = asyncio.get_running_loop()
            if self.is_new:
                future = loop.create_future()
                future.set_result(self)
            else:
                future = loop.create_task(self._load())
            self.__dict__["_loaded"] = future
        return self._loaded

    async def _load(self) -> Model:
        try:
            record = await self._adapter.read(self.data_key)

            if self._properties.context.dirty:
                if self._on_unsaved == UnsavedPolicy.FAIL:
                    raise ModelStateError(
                        f"loading {self.data_key} would discard unsaved changes", self._uuid
                    )
                if self._on_unsaved == UnsavedPolicy.WARN:
                    logger.warning(
                        f"discarding unsaved changes of {self.data_key} on loading",
                        extra={"changed": sorted(self._properties.context.changed)},
                    )

            self._replace_properties(self._model.deserialize(record))
        except BaseException:
            self.__dict__["_loaded"] = None
            raise

        logger.debug("Item loaded", extra={"key": self.data_key})
        return self

    async def save(self) -> Model:
        """Validate and write properties to backend.

        Returns:
            This instance

        Raises:
            ModelStateError: If instance is bound but wasn't loaded
            ValidationError: If properties are invalid
        """
        if self.is_new:
            await self.load()
        else:
            if self._loaded is None:
                raise ModelStateError(f"saving unloaded item {self.data_key} rejected", self._uuid)
            await self._loaded
            if not self._properties.context.dirty:
                return self

        self._model.coerce(self._properties)

        errors = await self.validate()
        if errors:
            raise ValidationError.aggregate(self._model.name, errors)

        record = self._model.serialize(self._properties)

        if self.is_new:
            key = await self._adapter.create(self.data_key, record)
            uuid = key_to_uuid(self._adapter.path_to_key(key))
            if uuid is None:
                raise ModelStateError(f"adapter returned key without UUID: {key}")
            self.uuid = uuid
            logger.debug("Item created", extra={"key": self.data_key})
        else:
            await self._adapter.write(self.data_key, record)
            logger.debug("Item written", extra={"key": self.data_key})

        self._properties.context.commit()
        return self

    async def remove(self) -> Model:
        """Remove record of this instance from backend."""
        await self._adapter.remove(self.data_key)
        logger.debug("Item removed", extra={"key": self.data_key})
        return self

    async def validate(self) -> List[Exception]:
        """Validate properties, running validation hooks of model.

        Hooks named on_before_validate receive the instance, hooks named
        on_after_validate receive the instance and the list of errors.
        A failing hook stops all remaining ones.

        Returns:
            List of validation errors, empty if valid
        """
        hooks = self._model.schema.hooks
        before = hooks.get("on_before_validate", ())
        after = hooks.get("on_after_validate", ())

        if not before and not after:
            return self._model.validate(self._properties)

        for hook in before:
            await invoke_hook(hook, self)

        errors = self._model.validate(self._properties)

        for hook in after:
            await invoke_hook(hook, self, errors)

        return errors

    def to_object(self, omit_computed: bool = False) -> Dict[str, Any]:
        """Snapshot of computed and basic attributes plus UUID."""
        result: Dict[str, Any] = {}

        if not omit_computed:
            for name, computed in self._model.schema.computeds.items():
                result[name] = computed.get(self)

        data = self._properties.target
        for name in self._model.schema.attributes:
            result[name] = data.get(name)

        result["uuid"] = self._uuid
        return result

    def __repr__(self) -> str:
        return f"<{self._model.name} {self._uuid or '(new)'}>"
