"""
Base class of all attribute type handlers.

A type handler bundles everything the compiler needs to process values of
one attribute type:
- check_definition: validate and normalize an attribute's constraints
- coerce: convert arbitrary input into the canonical in-memory value
- is_valid: append validation errors for a coerced value
- serialize / deserialize: convert to and from the storable representation
- compare: test a value against a reference for searching

Invariants:
    - coerce() is idempotent
    - is_valid() never raises on bad input, it only appends errors
    - Handlers are stateless; all methods are classmethods

How to change safely:
    - New types subclass ModelType and register with the TypeRegistry
    - Keep coerce() tolerant of values already coerced
"""

from __future__ import annotations

import math
import re
from typing import Any, ClassVar, Dict, List, Tuple

# Matches strings representing a decimal number (incl. exponent).
PTN_FLOAT = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:e[+-]?\d+)?\s*$", re.IGNORECASE)

NAN = float("nan")

ORDERED_OPERATIONS = ("lt", "lte", "gt", "gte")


def is_nan(value: Any) -> bool:
    """Tell whether value is the float NaN marker."""
    return isinstance(value, float) and math.isnan(value)


def is_numeric(value: Any) -> bool:
    """Tell whether value is a usable number or a numeric string."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return not is_nan(value)
    if isinstance(value, str):
        return bool(PTN_FLOAT.match(value))
    return False


def js_round(value: float) -> float:
    """Round half up, as opposed to round() which rounds half to even."""
    return math.floor(value + 0.5)


class ModelType:
    """Abstract attribute type handler.

    Attributes:
        type_name: Canonical name of the type
        aliases: Alternative names; ignored when colliding with another type's name
    """

    type_name: ClassVar[str] = ""
    aliases: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def check_definition(cls, definition: Any) -> List[Exception]:
        """Check an attribute definition, normalizing recoverable issues in place.

        Args:
            definition: Attribute spec dict, may be adjusted

        Returns:
            List of encountered errors, empty on success
        """
        if not isinstance(definition, dict):
            return [TypeError("invalid definition")]
        return []

    @classmethod
    def coerce(cls, value: Any, requirements: Dict[str, Any]) -> Any:
        return value

    @classmethod
    def is_valid(
        cls,
        name: str,
        value: Any,
        requirements: Dict[str, Any],
        errors: List[Exception],
    ) -> None:
        """Append errors for value violating requirements of attribute name."""
        raise NotImplementedError("must not use abstract model type")

    @classmethod
    def serialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        return value

    @classmethod
    def compare(cls, value: Any, reference: Any, operation: str) -> bool:
        """Compare a coerced value with a coerced reference.

        Args:
            value: Value of a stored item, deserialized and coerced
            reference: Value searched for, coerced
            operation: One of eq, noteq, lt, lte, gt, gte, null, notnull, not

        Returns:
            True if the comparison matches, False otherwise or on unknown operation
        """
        if operation == "eq":
            return value == reference
        if operation == "noteq":
            return value != reference
        if operation == "null":
            return value is None
        if operation == "notnull":
            return value is not None
        if operation == "not":
            return not value
        if operation in ORDERED_OPERATIONS:
            if value is None or reference is None:
                return False
            return cls._compare_ordered(cls._ordering_key(value), cls._ordering_key(reference), operation)
        return False

    @classmethod
    def _ordering_key(cls, value: Any) -> Any:
        return value

    @staticmethod
    def _compare_ordered(value: Any, reference: Any, operation: str) -> bool:
        try:
            if operation == "lt":
                return value < reference
            if operation == "lte":
                return value <= reference
            if operation == "gt":
                return value > reference
            return value >= reference
        except TypeError:
            return False
