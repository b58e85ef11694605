"""
Shared fixtures for kvmodel tests.
"""

import pytest

from kvmodel.config import reset_config, set_default_adapter
from kvmodel.types import reset_type_registry


@pytest.fixture(autouse=True)
def fresh_globals(monkeypatch):
    """Isolate tests from environment and process-wide state."""
    for name in (
        "KVMODEL_ADAPTER",
        "KVMODEL_DATA_DIR",
        "KVMODEL_ON_UNSAVED",
        "KVMODEL_WARN_OVERWRITES",
        "KVMODEL_LOG_LEVEL",
        "KVMODEL_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)

    reset_config()
    set_default_adapter(None)
    reset_type_registry()
    yield
    reset_config()
    set_default_adapter(None)
    reset_type_registry()
