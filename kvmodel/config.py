"""
Configuration management for kvmodel.

All configuration is read from environment variables. This module provides
typed configuration classes with validation plus the process-wide default
adapter used by models defined without an adapter of their own.

Invariants:
    - All settings have sensible defaults for local development
    - The default adapter is created once, on first use

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Prefix all environment variables with KVMODEL_
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .adapters import Adapter, FileAdapter, MemoryAdapter

logger = logging.getLogger(__name__)

_config: Optional[Config] = None
_config_lock = threading.Lock()

_default_adapter: Optional[Adapter] = None
_adapter_lock = threading.Lock()


class StorageBackend(Enum):
    """Supported default storage backends."""

    MEMORY = "memory"
    FILE = "file"


class UnsavedPolicy(Enum):
    """How load() treats unsaved changes it would discard."""

    IGNORE = "ignore"
    WARN = "warn"
    FAIL = "fail"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class StorageConfig:
    """Storage configuration.

    Attributes:
        backend: Adapter created as default
        data_dir: Directory of record files for the file backend
    """

    backend: StorageBackend = StorageBackend.MEMORY
    data_dir: str = "./data"

    @classmethod
    def from_env(cls) -> StorageConfig:
        """Load configuration from environment variables."""
        backend_str = os.getenv("KVMODEL_ADAPTER", "memory").lower()
        try:
            backend = StorageBackend(backend_str)
        except ValueError:
            raise ValueError(f"Invalid KVMODEL_ADAPTER '{backend_str}'. Must be one of: memory, file")

        return cls(
            backend=backend,
            data_dir=os.getenv("KVMODEL_DATA_DIR", "./data"),
        )


@dataclass(frozen=True)
class ModelConfig:
    """Model instance behavior.

    Attributes:
        on_unsaved: Policy for loading over unsaved changes
        warn_overwrites: Log when replacing a changed, unsaved property
    """

    on_unsaved: UnsavedPolicy = UnsavedPolicy.FAIL
    warn_overwrites: bool = True

    @classmethod
    def from_env(cls) -> ModelConfig:
        """Load configuration from environment variables."""
        policy_str = os.getenv("KVMODEL_ON_UNSAVED", "fail").lower()
        try:
            policy = UnsavedPolicy(policy_str)
        except ValueError:
            raise ValueError(
                f"Invalid KVMODEL_ON_UNSAVED '{policy_str}'. Must be one of: ignore, warn, fail"
            )

        return cls(
            on_unsaved=policy,
            warn_overwrites=_env_flag("KVMODEL_WARN_OVERWRITES", "true"),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("KVMODEL_LOG_LEVEL", "INFO"),
            log_format=os.getenv("KVMODEL_LOG_FORMAT", "text"),
        )


@dataclass
class Config:
    """Complete configuration.

    Attributes:
        storage: Storage configuration
        models: Model instance behavior
        observability: Logging configuration
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    models: ModelConfig = field(default_factory=ModelConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> Config:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is invalid.
        """
        config = cls(
            storage=StorageConfig.from_env(),
            models=ModelConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self.storage.backend == StorageBackend.FILE:
            if not self.storage.data_dir:
                raise ValueError("KVMODEL_DATA_DIR is required when KVMODEL_ADAPTER=file")
            if not os.path.exists(self.storage.data_dir):
                logger.warning(
                    f"Data directory does not exist: {self.storage.data_dir}. "
                    "It will be created on first write."
                )

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(f"Invalid KVMODEL_LOG_FORMAT '{self.observability.log_format}'")

    def create_adapter(self) -> Adapter:
        """Create the adapter selected by storage configuration."""
        if self.storage.backend == StorageBackend.FILE:
            return FileAdapter(self.storage.data_dir)
        return MemoryAdapter()

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "kvmodel configuration loaded",
            extra={
                "adapter": self.storage.backend.value,
                "data_dir": self.storage.data_dir,
                "on_unsaved": self.models.on_unsaved.value,
                "log_level": self.observability.log_level,
            },
        )


def get_config() -> Config:
    """Get the process-wide configuration, read from environment on first use."""
    global _config
    with _config_lock:
        if _config is None:
            _config = Config.from_env()
        return _config


def reset_config() -> None:
    """Drop cached configuration so it is read from environment again."""
    global _config
    with _config_lock:
        _config = None


def get_default_adapter() -> Adapter:
    """Get the process-wide default adapter.

    Created from environment configuration on first use.
    """
    global _default_adapter
    config = get_config()
    with _adapter_lock:
        if _default_adapter is None:
            _default_adapter = config.create_adapter()
            logger.debug(f"Default adapter created: {type(_default_adapter).__name__}")
        return _default_adapter


def set_default_adapter(adapter: Optional[Adapter]) -> None:
    """Replace the process-wide default adapter, None to recreate it on next use.

    Raises:
        TypeError: If adapter is not an Adapter
    """
    global _default_adapter
    if adapter is not None and not isinstance(adapter, Adapter):
        raise TypeError("invalid adapter")
    with _adapter_lock:
        _default_adapter = adapter
