"""
Error types for kvmodel.

This module defines all exception types raised by the library:
- ModelError: Base exception
- SchemaError: Invalid model definition (raised at compile time)
- FieldValidationError: A single attribute failing validation
- ValidationError: Aggregated validation failure on save
- ModelStateError: Lifecycle violations of a model instance
- AdapterError: Storage backend failures

Invariants:
    - All errors inherit from ModelError
    - Definition errors are raised synchronously, never deferred
    - Validation never raises while collecting; only save() aggregates
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class ModelError(Exception):
    """Base exception for all kvmodel errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "MODEL_ERROR"
        self.details = details or {}


class SchemaError(ModelError, TypeError):
    """Model definition is invalid.

    Raised when:
    - Model name is not a valid identifier
    - Schema is not a plain dict
    - Attribute type is unknown or its constraints are malformed
    - Computed attribute or hook entry is not callable
    - Base class or adapter is invalid
    """

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        element: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="SCHEMA_ERROR",
            details={"model": model_name, "element": element},
        )
        self.model_name = model_name
        self.element = element


class FieldValidationError(ModelError):
    """Single attribute value failed validation.

    Instances are collected by type handlers, not raised.
    """

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="FIELD_INVALID",
            details={"field": field_name},
        )
        self.field_name = field_name


class ValidationError(ModelError):
    """Saving rejected due to invalid properties.

    Attributes:
        errors: Individual validation errors
    """

    def __init__(self, message: str, errors: Optional[List[Exception]] = None) -> None:
        errors = list(errors or [])
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"errors": [str(e) for e in errors]},
        )
        self.errors = errors

    @classmethod
    def aggregate(cls, model_name: str, errors: List[Exception]) -> ValidationError:
        """Combine collected errors into one exception."""
        joined = "; ".join(str(e) for e in errors)
        return cls(f"saving invalid properties of {model_name} rejected: {joined}", errors)


class ModelStateError(ModelError):
    """Operation not permitted in the instance's current state.

    Raised when:
    - Saving a bound instance that has not been loaded
    - Reassigning a UUID
    - Reloading over unsaved changes under the fail policy
    """

    def __init__(self, message: str, uuid: Optional[str] = None) -> None:
        super().__init__(message, code="STATE_ERROR", details={"uuid": uuid})
        self.uuid = uuid


class AdapterError(ModelError):
    """Storage adapter failed or does not support the operation."""

    def __init__(self, message: str, key: Optional[str] = None, code: str = "ADAPTER_ERROR") -> None:
        super().__init__(message, code=code, details={"key": key})
        self.key = key


class NoSuchRecordError(AdapterError):
    """Record addressed by key does not exist."""

    def __init__(self, key: str) -> None:
        super().__init__(f"no such record @{key}", key=key, code="NOT_FOUND")


class InvalidKeyError(AdapterError):
    """Key cannot be mapped onto the backend."""

    def __init__(self, key: str) -> None:
        super().__init__(f"invalid key: {key}", key=key, code="INVALID_KEY")


class TransactionNotSupportedError(AdapterError):
    """Adapter has no transaction support."""

    def __init__(self, message: str = "missing transaction support") -> None:
        super().__init__(message, code="NO_TRANSACTIONS")
