"""
Compiling model definitions.

compile_model() turns a name and a schema declaration into a CompiledModel.
Compiling:

    1. splits the declaration into attributes, computed attributes and hooks
    2. checks every attribute definition with its type handler, defaulting
       to type "string"
    3. collects one (name, handler, definition) step per attribute, in
       declaration order, run by coerce(), validate(), serialize() and
       deserialize() of the compiled model
    4. builds the accessor table instances dispatch attribute access through
    5. freezes the schema

Invariants:
    - Definition errors raise SchemaError here, never on first use
    - A compiled model is never modified after compilation
    - Accessors skip names of Model members; attributes win over computed
      attributes of the same name

How to change safely:
    - New type handlers go into the type registry, not into this module
    - Steps must behave exactly like invoking each handler on its own
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple, Type

from .. import collection
from ..adapters import Adapter
from ..errors import SchemaError
from ..model import Model
from ..types import ModelType, get_type_registry
from .splitter import Computed, Schema, split_schema

if TYPE_CHECKING:
    from ..monitor import Monitor

logger = logging.getLogger(__name__)

DEFAULT_TYPE = "string"

# names referring to class machinery, never used for accessors
META_NAMES = frozenset({"constructor", "prototype", "super", "mro"})


def freeze(value: Any) -> Any:
    """Create deeply immutable copy of value."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, set):
        return frozenset(freeze(item) for item in value)
    return value


def reserved_names(base: Type[Model]) -> frozenset:
    return frozenset(dir(base)) | META_NAMES


@dataclass(frozen=True)
class Step:
    """Compiled handling of one attribute."""

    name: str
    handler: Type[ModelType]
    definition: Mapping[str, Any]


class AttributeAccessor:
    """Reads and writes a basic attribute in an instance's properties."""

    __slots__ = ("name", "step")

    def __init__(self, step: Step) -> None:
        self.name = step.name
        self.step = step

    def get(self, instance: Model) -> Any:
        return instance.properties.get(self.name)

    def set(self, instance: Model, value: Any) -> None:
        step = self.step
        instance.properties[self.name] = step.handler.coerce(value, step.definition)


class ComputedAccessor:
    """Delegates access to the getter and setter of a computed attribute."""

    __slots__ = ("name", "computed")

    def __init__(self, name: str, computed: Computed) -> None:
        self.name = name
        self.computed = computed

    def get(self, instance: Model) -> Any:
        return self.computed.get(instance)

    def set(self, instance: Model, value: Any) -> None:
        if self.computed.set is None:
            raise AttributeError(f"computed attribute {self.name} is read-only")
        self.computed.set(instance, value)


class CompiledModel:
    """Compiled model, calling it creates instances.

    Attributes:
        name: Name of model
        schema: Frozen schema
        base: Class of instances
        adapter: Adapter of model, None for the default adapter
        accessors: Accessors of instances by name
    """

    kind = "kvmodel.model"

    def __init__(
        self,
        name: str,
        schema: Schema,
        base: Type[Model],
        adapter: Optional[Adapter],
        steps: Tuple[Step, ...],
        accessors: Mapping[str, Any],
    ) -> None:
        self.name = name
        self.schema = schema
        self.base = base
        self.adapter = adapter
        self.steps = steps
        self.accessors = accessors

    def __call__(self, uuid: Optional[str] = None, **options: Any) -> Model:
        return self.base(self, uuid, **options)

    def __repr__(self) -> str:
        return f"<CompiledModel {self.name}>"

    @property
    def items_prefix(self) -> str:
        """Common prefix of data keys of all instances."""
        return f"models/{self.name}/items/"

    def data_key(self, uuid: str) -> str:
        return f"{self.items_prefix}{uuid}"

    def coerce(self, properties: Monitor) -> None:
        """Coerce every attribute in given properties in place."""
        for step in self.steps:
            present = step.name in properties
            value = step.handler.coerce(properties.get(step.name), step.definition)
            if present or value is not None:
                properties[step.name] = value

    def validate(self, properties: Mapping[str, Any]) -> List[Exception]:
        """Validate every attribute in given properties.

        Returns:
            List of validation errors, empty if valid
        """
        errors: List[Exception] = []
        for step in self.steps:
            step.handler.is_valid(step.name, properties.get(step.name), step.definition, errors)
        return errors

    def serialize(self, properties: Mapping[str, Any]) -> Dict[str, Any]:
        """Serialize attributes for storing them in a record."""
        data = getattr(properties, "target", properties)
        return {step.name: step.handler.serialize(data.get(step.name)) for step in self.steps}

    def deserialize(self, record: Any) -> Dict[str, Any]:
        """Deserialize and coerce attributes of a record read from storage."""
        source = record if isinstance(record, Mapping) else {}
        result = {}
        for step in self.steps:
            value = step.handler.deserialize(source.get(step.name))
            result[step.name] = step.handler.coerce(value, step.definition)
        return result

    async def list(self, offset: int = 0, limit: Optional[int] = None,
                   load_properties: bool = False, meta: Optional[Dict[str, Any]] = None) -> List[Model]:
        """List instances of model. See collection.list_items()."""
        return await collection.list_items(self, offset=offset, limit=limit,
                                           load_properties=load_properties, meta=meta)

    async def find_by_attribute(self, name: str, value: Any = None, operation: str = "eq",
                                offset: int = 0, limit: Optional[int] = None,
                                meta: Optional[Dict[str, Any]] = None) -> List[Model]:
        """Find instances by attribute value. See collection.find_by_attribute()."""
        return await collection.find_by_attribute(self, name, value, operation,
                                                  offset=offset, limit=limit, meta=meta)


def _compile_steps(name: str, attributes: Dict[str, Dict[str, Any]]) -> Tuple[Step, ...]:
    registry = get_type_registry()
    steps = []

    for attribute, definition in attributes.items():
        type_name = definition.get("type") or DEFAULT_TYPE
        if not isinstance(type_name, str):
            raise SchemaError(f"invalid type of attribute {attribute} of model {name}",
                              model_name=name, element=attribute)
        definition["type"] = type_name

        handler = registry.select_by_name(type_name)
        if handler is None:
            raise SchemaError(f"invalid type {type_name} of attribute {attribute} of model {name}",
                              model_name=name, element=attribute)

        errors = handler.check_definition(definition)
        if errors:
            raise SchemaError(
                f"invalid definition of attribute {attribute} of model {name}: "
                + "; ".join(str(error) for error in errors),
                model_name=name,
                element=attribute,
            )

        steps.append(Step(name=attribute, handler=handler, definition=freeze(definition)))

    return tuple(steps)


def _compile_accessors(base: Type[Model], steps: Tuple[Step, ...],
                       computeds: Mapping[str, Computed]) -> Mapping[str, Any]:
    reserved = reserved_names(base)
    accessors: Dict[str, Any] = {}

    for name, computed in computeds.items():
        if name not in reserved and not name.startswith("_"):
            accessors[name] = ComputedAccessor(name, computed)

    for step in steps:
        if step.name not in reserved and not step.name.startswith("_"):
            accessors[step.name] = AttributeAccessor(step)

    return MappingProxyType(accessors)


def compile_model(
    name: str,
    schema: Optional[Mapping[str, Any]] = None,
    base: Optional[Type[Model]] = None,
    adapter: Optional[Adapter] = None,
) -> CompiledModel:
    """Compile model definition.

    Args:
        name: Name of model, must be a valid identifier
        schema: Schema declaration
        base: Class of instances, Model or a subclass of it
        adapter: Adapter of model, None for the default adapter

    Returns:
        Compiled model

    Raises:
        SchemaError: If any part of the definition is invalid
    """
    if not isinstance(name, str) or not name.isidentifier():
        raise SchemaError(f"invalid model name {name!r}", model_name=str(name))

    if base is None:
        base = Model
    elif not (isinstance(base, type) and issubclass(base, Model)):
        raise SchemaError(f"invalid base class of model {name}", model_name=name)

    if adapter is not None and not isinstance(adapter, Adapter):
        raise SchemaError(f"invalid adapter of model {name}", model_name=name)

    split = split_schema(name, schema)
    steps = _compile_steps(name, split.attributes)
    accessors = _compile_accessors(base, steps, split.computeds)

    frozen = Schema(
        attributes=MappingProxyType({step.name: step.definition for step in steps}),
        computeds=MappingProxyType(dict(split.computeds)),
        hooks=MappingProxyType(dict(split.hooks)),
    )

    logger.debug(
        f"Model {name} compiled",
        extra={"attributes": len(steps), "computeds": len(split.computeds), "hooks": len(split.hooks)},
    )

    return CompiledModel(name, frozen, base, adapter, steps, accessors)


define = compile_model
