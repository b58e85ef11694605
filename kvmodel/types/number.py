"""
Numeric attribute types `number` and `integer`.

Constraints:
    min / max: inclusive limits (swapped on definition if inverted)
    step: snap values to min + n * step, min defaulting to 0

Non-numeric input coerces to NaN which fails validation whenever the
attribute is required or limited.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List

from ..errors import FieldValidationError
from .base import NAN, PTN_FLOAT, ModelType, is_nan, is_numeric, js_round


def _parse(value: Any) -> Any:
    """Map input onto int/float, NaN or None (for empty input)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return NAN
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if not PTN_FLOAT.match(value):
            return NAN
        return float(value)
    return NAN


class NumberType(ModelType):
    """Scalar type `number`."""

    type_name = "number"
    aliases = ("float", "real", "double", "decimal")

    @classmethod
    def check_definition(cls, definition: Any) -> List[Exception]:
        errors = super().check_definition(definition)
        if errors:
            return errors

        for key in ("min", "max", "step"):
            limit = definition.get(key)
            if limit is None:
                continue
            if not is_numeric(limit):
                label = {"min": "minimum value", "max": "maximum value", "step": "value stepping"}[key]
                errors.append(TypeError(f"invalid requirement on {label}"))
            elif isinstance(limit, str):
                definition[key] = float(limit)

        if errors:
            return errors

        low, high = definition.get("min"), definition.get("max")
        if low is not None and high is not None and low > high:
            definition["min"], definition["max"] = high, low

        step = definition.get("step")
        if step is not None and step <= 0:
            errors.append(TypeError("invalid requirement on value stepping"))

        return errors

    @classmethod
    def coerce(cls, value: Any, requirements: Dict[str, Any]) -> Any:
        value = _parse(value)
        if value is None or is_nan(value):
            return value
        if isinstance(value, float) and math.isinf(value):
            return value

        step = requirements.get("step")
        if step:
            low = requirements.get("min") or 0
            value = js_round((value - low) / step) * step + low

        return cls._finish(value)

    @classmethod
    def _finish(cls, value: Any) -> Any:
        return float(value)

    @classmethod
    def is_valid(
        cls,
        name: str,
        value: Any,
        requirements: Dict[str, Any],
        errors: List[Exception],
    ) -> None:
        number = value if is_numeric(value) and not isinstance(value, str) else NAN

        if requirements.get("required") and (value is None or is_nan(number)):
            errors.append(FieldValidationError(f"{name} is required", name))

        if value is None:
            return

        low = requirements.get("min")
        if low is not None and (is_nan(number) or number < low):
            errors.append(FieldValidationError(f"{name} is below required minimum {low}", name))

        high = requirements.get("max")
        if high is not None and (is_nan(number) or number > high):
            errors.append(FieldValidationError(f"{name} is above required maximum {high}", name))

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if value is None:
            return None
        value = _parse(value)
        if value is None or is_nan(value):
            return None
        return float(value)

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        if value is None or value == "null":
            return None
        value = _parse(value)
        if value is None or is_nan(value):
            return None
        return value


class IntegerType(NumberType):
    """Scalar type `integer`, rounding values to whole numbers."""

    type_name = "integer"
    aliases = ("int",)

    @classmethod
    def _finish(cls, value: Any) -> Any:
        if isinstance(value, int):
            return value
        return int(js_round(value))

    @classmethod
    def serialize(cls, value: Any) -> Any:
        value = _parse(value)
        if value is None or is_nan(value):
            return None
        if isinstance(value, float):
            return None if math.isinf(value) else int(js_round(value))
        return value

    @classmethod
    def deserialize(cls, value: Any) -> Any:
        value = super().deserialize(value)
        if value is None or (isinstance(value, float) and math.isinf(value)):
            return None
        return int(js_round(value))
