"""
Attribute types for kvmodel.

This module provides the value types available to model attributes:
- string (alias text)
- integer (alias int)
- number (aliases float, real, double, decimal)
- boolean (alias bool)
- date (aliases datetime, timestamp)

Custom types subclass ModelType and are added with register_type().
"""

from .base import ModelType, is_nan
from .boolean import BooleanType
from .date import DateType
from .number import IntegerType, NumberType
from .registry import (
    TypeRegistry,
    get_type_registry,
    register_type,
    reset_type_registry,
)
from .string import StringType

__all__ = [
    "ModelType",
    "StringType",
    "IntegerType",
    "NumberType",
    "BooleanType",
    "DateType",
    "TypeRegistry",
    "get_type_registry",
    "register_type",
    "reset_type_registry",
    "is_nan",
]
