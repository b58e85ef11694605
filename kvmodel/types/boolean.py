"""
Boolean attribute type.

Stored values are 1/0. Deserialization understands common textual
spellings of either state; subclasses may replace TRUE_PATTERN and
FALSE_PATTERN to support further spellings.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

from ..errors import FieldValidationError
from .base import PTN_FLOAT, ModelType

# Matches any string representing boolean true.
PTN_TRUE = re.compile(r"^(?:y(?:es)?|ja?|on|hi(?:gh)?|true|t|set|x)$", re.IGNORECASE)

# Matches any string representing boolean false, incl. whitespace-only strings.
PTN_FALSE = re.compile(r"^(?:n(?:o|ein)?|off|low?|false|f|cl(?:ea)?r|-|\s*)$", re.IGNORECASE)


class BooleanType(ModelType):
    """Scalar type `boolean`."""

    type_name = "boolean"
    aliases = ("bool",)

    TRUE_PATTERN = PTN_TRUE
    FALSE_PATTERN = PTN_FALSE

    @classmethod
    def coerce(cls, value: Any, requirements: Dict[str, Any]) -> Any:
        if value is None:
            return None
        return bool(value)

    @classmethod
    def is_valid(
        cls,
        name: str,
        value: Any,
        requirements: Dict[str, Any],
        errors: List[Exception],
    ) -> None:
        if value is None:
            if requirements.get("required"):
                errors.append(FieldValidationError(f"{name} must be boolean value", name))
        elif requirements.get("is_set") and not value:
            errors.append(FieldValidationError(f"{name} must be set", name))

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return None
        return 1 if value else 0

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None or value == "null":
            return None

        if isinstance(value, str):
            text = value.strip()
            if cls.TRUE_PATTERN.match(text):
                return True
            if cls.FALSE_PATTERN.match(text):
                return False
            if PTN_FLOAT.match(text):
                return bool(float(text))

        return bool(value)
