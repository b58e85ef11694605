"""
String attribute type.

Constraints:
    trim: strip leading/trailing whitespace on coercion
    reduce_space: collapse runs of whitespace (incl. CR/LF/tab) into one space
    upper_case / lower_case: convert case, True or a locale tag (mutually exclusive)
    length / max_length: maximum number of characters
    min_length: minimum number of characters
    pattern: regular expression (string or compiled) the value must match
"""

from __future__ import annotations

import locale
import re
from typing import Any, Dict, List, Optional

from ..errors import FieldValidationError
from .base import ModelType

PTN_SPACE = re.compile(r"\s+")

# Locales with dotted/dotless i casing rules.
DOTTED_I_LOCALES = ("tr", "az")


def _locale_of(option: Any) -> Optional[str]:
    if isinstance(option, (list, tuple)):
        option = option[0] if option else None
    if isinstance(option, str) and option:
        return option.replace("_", "-").split("-")[0].lower()
    return None


def to_text(value: Any) -> str:
    """Convert scalars to text, booleans in lower case, integral floats without fraction."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_upper(value: str, option: Any = True) -> str:
    if _locale_of(option) in DOTTED_I_LOCALES:
        value = value.replace("i", "İ")
    return value.upper()


def to_lower(value: str, option: Any = True) -> str:
    if _locale_of(option) in DOTTED_I_LOCALES:
        value = value.replace("I", "ı").replace("İ", "i")
    return value.lower()


class StringType(ModelType):
    """Scalar type `string`."""

    type_name = "string"
    aliases = ("text",)

    @classmethod
    def check_definition(cls, definition: Any) -> List[Exception]:
        errors = super().check_definition(definition)
        if errors:
            return errors

        if "length" in definition and "max_length" not in definition:
            definition["max_length"] = definition["length"]

        min_length = definition.get("min_length")
        max_length = definition.get("max_length")

        for key in ("min_length", "max_length"):
            limit = definition.get(key)
            if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int)):
                errors.append(TypeError(f"invalid requirement on {key.replace('_', ' ')}"))
                return errors

        if min_length is not None and max_length is not None and min_length > max_length:
            definition["min_length"], definition["max_length"] = max_length, min_length
            min_length, max_length = max_length, min_length

        if max_length is not None and max_length < 1:
            errors.append(TypeError("invalid requirement on maximum length"))

        if min_length is not None and min_length < 0:
            errors.append(TypeError("invalid requirement on minimum length"))

        if definition.get("upper_case") and definition.get("lower_case"):
            errors.append(TypeError("ambiguous request for converting case"))

        pattern = definition.get("pattern")
        if pattern is not None:
            if isinstance(pattern, str):
                try:
                    re.compile(pattern)
                except re.error as e:
                    errors.append(TypeError(f"invalid pattern: {e}"))
            elif not isinstance(pattern, re.Pattern):
                errors.append(TypeError("invalid pattern"))

        return errors

    @classmethod
    def coerce(cls, value: Any, requirements: Dict[str, Any]) -> Any:
        if value is None:
            return None

        if not isinstance(value, str):
            value = to_text(value)

        if requirements.get("trim"):
            value = value.strip()

        if requirements.get("reduce_space"):
            value = PTN_SPACE.sub(" ", value)

        upper_case = requirements.get("upper_case")
        if upper_case:
            value = to_upper(value, upper_case)

        lower_case = requirements.get("lower_case")
        if lower_case:
            value = to_lower(value, lower_case)

        return value

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
                errors.append(FieldValidationError(f"{name} is required, but missing", name))
            return

        if not isinstance(value, str):
            errors.append(FieldValidationError(f"{name} must be a string", name))
            return

        max_length = requirements.get("max_length")
        if max_length is not None and len(value) > max_length:
            errors.append(
                FieldValidationError(f"{name} exceeds maximum length of {max_length} characters", name)
            )

        min_length = requirements.get("min_length")
        if min_length is not None and len(value) < min_length:
            errors.append(
                FieldValidationError(f"{name} must contain at least {min_length} characters", name)
            )

        pattern = requirements.get("pattern")
        if pattern:
            regex = re.compile(pattern) if isinstance(pattern, str) else pattern
            if not regex.search(value):
                errors.append(FieldValidationError(f"{name} does not match required pattern", name))

    @classmethod
    def serialize(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @classmethod
    def _ordering_key(cls, value: Any) -> Any:
        return locale.strxfrm(value) if isinstance(value, str) else value
