"""
Date attribute type.

Values are timezone-aware datetimes in UTC. Input may be a datetime, a
millisecond timestamp (int, float or numeric string) or any string
understood by dateutil, ISO-8601 preferred.

Constraints:
    min / max: earliest/latest instant (normalized to datetimes on definition)
    step: snap to min + n * step milliseconds
    time: set False to drop time of day (UTC)
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from ..errors import FieldValidationError
from .base import NAN, PTN_FLOAT, ModelType, is_nan, js_round

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MS = timedelta(milliseconds=1)


def to_milliseconds(value: datetime) -> int:
    return (value - EPOCH) // ONE_MS


def from_milliseconds(ms: float) -> Any:
    try:
        return EPOCH + timedelta(milliseconds=math.trunc(ms))
    except (OverflowError, ValueError):
        return NAN


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date(text: str) -> Any:
    """Parse a date string into an aware UTC datetime, NaN if unparseable."""
    try:
        return as_utc(date_parser.isoparse(text))
    except (ValueError, OverflowError):
        pass
    try:
        return as_utc(date_parser.parse(text))
    except (ValueError, OverflowError):
        return NAN


def to_instant(value: Any) -> Any:
    """Convert supported input into an aware datetime, None or NaN."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        return NAN
    if isinstance(value, (int, float)):
        if is_nan(value) or math.isinf(value):
            return NAN
        return from_milliseconds(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if PTN_FLOAT.match(text):
            return from_milliseconds(float(text))
        return parse_date(text)
    return NAN


class DateType(ModelType):
    """Scalar type `date`."""

    type_name = "date"
    aliases = ("datetime", "timestamp")

    @classmethod
    def check_definition(cls, definition: Any) -> List[Exception]:
        errors = super().check_definition(definition)
        if errors:
            return errors

        for key, label in (("min", "minimum"), ("max", "maximum")):
            if definition.get(key) is None:
                continue
            instant = to_instant(definition[key])
            if not isinstance(instant, datetime):
                errors.append(TypeError(f"invalid requirement on {label} timestamp"))
            else:
                definition[key] = instant

        low, high = definition.get("min"), definition.get("max")
        if isinstance(low, datetime) and isinstance(high, datetime) and low > high:
            definition["min"], definition["max"] = high, low

        step = definition.get("step")
        if step is not None:
            if isinstance(step, bool) or not isinstance(step, (int, float)) or step <= 0:
                errors.append(TypeError("invalid requirement on value stepping"))

        return errors

    @classmethod
    def coerce(cls, value: Any, requirements: Dict[str, Any]) -> Any:
        value = to_instant(value)
        if not isinstance(value, datetime):
            return value

        if "time" in requirements and not requirements["time"]:
            value = value.replace(hour=0, minute=0, second=0)

        step = requirements.get("step")
        if step and step > 0:
            low: Optional[datetime] = requirements.get("min")
            offset = to_milliseconds(low) if isinstance(low, datetime) else 0
            ms = to_milliseconds(value)
            value = from_milliseconds(js_round((ms - offset) / step) * step + offset)

        return value

    @classmethod
    def is_valid(
        cls,
        name: str,
        value: Any,
        requirements: Dict[str, Any],
        errors: List[Exception],
    ) -> None:
        valid = isinstance(value, datetime)

        if requirements.get("required") and not valid:
            errors.append(FieldValidationError(f"{name} is required", name))

        if value is None:
            return

        instant = as_utc(value) if valid else None

        low = requirements.get("min")
        if isinstance(low, datetime) and (instant is None or instant < low):
            errors.append(FieldValidationError(f"{name} is below required minimum", name))

        high = requirements.get("max")
        if isinstance(high, datetime) and (instant is None or instant > high):
            errors.append(FieldValidationError(f"{name} is above required maximum", name))

    @classmethod
    def serialize(cls, value: Any) -> Any:
        if not isinstance(value, datetime):
            return None
        value = as_utc(value)
        # strftime("%Y") doesn't pad years below 1000
        return f"{value.year:04d}-" + value.strftime("%m-%dT%H:%M:%SZ")

    @classmethod
    def compare(cls, value: Any, reference: Any, operation: str) -> bool:
        if operation in ("eq", "noteq"):
            same = cls._instant_key(value) == cls._instant_key(reference)
            return same if operation == "eq" else not same
        return super().compare(value, reference, operation)

    @classmethod
    def _ordering_key(cls, value: Any) -> Any:
        return cls._instant_key(value)

    @staticmethod
    def _instant_key(value: Any) -> Any:
        if isinstance(value, datetime):
            return to_milliseconds(as_utc(value))
        return value
