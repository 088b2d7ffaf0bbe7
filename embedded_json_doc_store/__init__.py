from __future__ import annotations

from .database import Database
from .errors import (
    DecodeError,
    DocStoreError,
    KeyNotFoundError,
    ReadOnlyError,
    StoreIOError,
    StoreStateError,
    StoreUnusableError,
    TypeMismatchError,
    ValidationError,
)
from .tree import Tree
from .value import Value, ValueKind

__version__ = "0.1.0"

__all__ = [
    "Database",
    "Tree",
    "Value",
    "ValueKind",
    "DocStoreError",
    "DecodeError",
    "KeyNotFoundError",
    "TypeMismatchError",
    "ValidationError",
    "StoreIOError",
    "StoreStateError",
    "StoreUnusableError",
    "ReadOnlyError",
]
