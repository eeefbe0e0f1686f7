# src/circuitsim_core/parser/__init__.py
from .raw_data import (
    ParsedComponentData,
    ParsedSnapshot,
    ParsedWireData,
)
from .parser import SnapshotParser
from .exceptions import ParsingError, SchemaValidationError

__all__ = [
    # IR Data Structures
    "ParsedComponentData",
    "ParsedSnapshot",
    "ParsedWireData",
    # Parser and Exceptions
    "SnapshotParser",
    "ParsingError",
    "SchemaValidationError",
]
