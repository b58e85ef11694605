"""
Schema handling: splitting declarations and compiling models.
"""

from .compiler import (
    AttributeAccessor,
    CompiledModel,
    ComputedAccessor,
    Step,
    compile_model,
    define,
)
from .splitter import Computed, Schema, split_schema

__all__ = [
    "AttributeAccessor",
    "CompiledModel",
    "Computed",
    "ComputedAccessor",
    "Schema",
    "Step",
    "compile_model",
    "define",
    "split_schema",
]
