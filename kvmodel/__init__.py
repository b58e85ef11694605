"""
kvmodel - Declarative models persisted in key-value stores.

This package maps declaratively defined models onto records of a
key-value store:
- Attribute types with coercion, validation and (de)serialization
- Schema compiler producing models from plain dicts
- Change tracking of instance properties (Monitor)
- Storage adapters for memory and local files
- Listing and searching instances of a model

Example:
    >>> from kvmodel import MemoryAdapter, define
    >>>
    >>> Person = define(
    ...     "Person",
    ...     {
    ...         "name": {"required": True, "trim": True},
    ...         "age": {"type": "integer", "min": 0},
    ...     },
    ...     adapter=MemoryAdapter(),
    ... )
    >>>
    >>> jane = Person()
    >>> jane.name = "Jane"
    >>> jane.age = 30
    >>> await jane.save()
    >>> matches = await Person.find_by_attribute("age", 18, operation="gte")

Invariants:
    - Definition errors are raised when defining a model
    - Records are stored at models/<ModelName>/items/<uuid>
    - UUIDs of instances never change once assigned

Version: 0.1.0
"""

__version__ = "0.1.0"

from .adapters import Adapter, FileAdapter, MemoryAdapter
from .config import (
    Config,
    UnsavedPolicy,
    get_config,
    get_default_adapter,
    set_default_adapter,
)
from .errors import (
    AdapterError,
    FieldValidationError,
    InvalidKeyError,
    ModelError,
    ModelStateError,
    NoSuchRecordError,
    SchemaError,
    TransactionNotSupportedError,
    ValidationError,
)
from .model import Model
from .monitor import ChangeContext, Monitor, monitor
from .schema import CompiledModel, compile_model, define
from .types import ModelType, TypeRegistry, get_type_registry, register_type

__all__ = [
    # Version
    "__version__",
    # Models
    "define",
    "compile_model",
    "CompiledModel",
    "Model",
    # Types
    "ModelType",
    "TypeRegistry",
    "get_type_registry",
    "register_type",
    # Change tracking
    "ChangeContext",
    "Monitor",
    "monitor",
    # Adapters
    "Adapter",
    "MemoryAdapter",
    "FileAdapter",
    # Configuration
    "Config",
    "UnsavedPolicy",
    "get_config",
    "get_default_adapter",
    "set_default_adapter",
    # Errors
    "ModelError",
    "SchemaError",
    "FieldValidationError",
    "ValidationError",
    "ModelStateError",
    "AdapterError",
    "NoSuchRecordError",
    "InvalidKeyError",
    "TransactionNotSupportedError",
]
