from __future__ import annotations
from typing import Optional


class DocStoreError(Exception):
    """Base class for all embedded_json_doc_store errors."""


class DecodeError(DocStoreError, ValueError):
    """Raised when raw bytes are not a valid object-rooted JSON document."""


class ValidationError(DocStoreError, ValueError):
    """Raised when inputs fail validation (keys, typed values, configuration)."""


class KeyNotFoundError(DocStoreError, KeyError):
    """
    Raised by find() for a key absent from the tree.
    Expected, recoverable outcome; the message is safe to show to end users.
    """
    def __init__(self, key: str) -> None:
        self.key = key
        # args holds the key; __str__ builds the message
        super().__init__(key)

    def __str__(self) -> str:
        return (
            f"The key `{self.key}` does not exist in the database. "
            "You might want to create this or handle the error!"
        )


class TypeMismatchError(DocStoreError, TypeError):
    """Raised when a Value projection does not match the stored kind."""
    def __init__(self, expected: str, actual: str, detail: Optional[str] = None) -> None:
        self.expected = expected
        self.actual = actual
        msg = f"expected a {expected} value, found {actual}"
        self.detail = detail
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)

    def __reduce__(self):
        return (type(self), (self.expected, self.actual, self.detail))


class StoreIOError(DocStoreError, OSError):
    """Raised when the backing file cannot be opened, read or rewritten."""


class StoreStateError(DocStoreError):
    """Raised when a Database is used outside of its loaded lifecycle."""


class StoreUnusableError(StoreStateError):
    """Raised after a failed commit: memory and file may disagree."""


class ReadOnlyError(DocStoreError):
    """Raised when a mutation is attempted on a read-only Database."""
