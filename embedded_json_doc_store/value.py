from __future__ import annotations
import copy
from enum import Enum
from typing import TYPE_CHECKING, Any, List

from .codec import pretty_text
from .errors import TypeMismatchError

if TYPE_CHECKING:
    from .tree import Tree


class ValueKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def kind_of(native: Any) -> ValueKind:
    """Classify a JSON-compatible Python object. bool is checked before int."""
    if native is None:
        return ValueKind.NULL
    if isinstance(native, bool):
        return ValueKind.BOOLEAN
    if isinstance(native, (int, float)):
        return ValueKind.NUMBER
    if isinstance(native, str):
        return ValueKind.STRING
    if isinstance(native, list):
        return ValueKind.ARRAY
    if isinstance(native, dict):
        return ValueKind.OBJECT
    raise TypeError(f"unsupported value type: {type(native).__name__}")


class Value:
    """
    Immutable typed view over one stored value.

    Projections never coerce: as_number() on a string raises TypeMismatchError
    instead of parsing it. Containers are deep-copied on the way in and on the
    way out, so a Value never aliases the tree it was read from.
    """
    __slots__ = ("_kind", "_data")

    def __init__(self, kind: ValueKind, data: Any) -> None:
        object.__setattr__(self, "_kind", kind)
        object.__setattr__(self, "_data", data)

    @classmethod
    def of(cls, native: Any) -> "Value":
        kind = kind_of(native)
        if kind in (ValueKind.ARRAY, ValueKind.OBJECT):
            native = copy.deepcopy(native)
        return cls(kind, native)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Value is immutable")

    @property
    def kind(self) -> ValueKind:
        return self._kind

    def is_null(self) -> bool:
        return self._kind is ValueKind.NULL

    def _expect(self, kind: ValueKind) -> None:
        if self._kind is not kind:
            raise TypeMismatchError(kind.value, self._kind.value)

    def as_str(self) -> str:
        self._expect(ValueKind.STRING)
        return self._data

    def as_number(self) -> int | float:
        self._expect(ValueKind.NUMBER)
        return self._data

    def as_bool(self) -> bool:
        self._expect(ValueKind.BOOLEAN)
        return self._data

    def as_array(self) -> List[str]:
        self._expect(ValueKind.ARRAY)
        for i, item in enumerate(self._data):
            if not isinstance(item, str):
                raise TypeMismatchError(
                    "array of strings", self._kind.value,
                    detail=f"element {i} is a {kind_of(item).value}",
                )
        return list(self._data)

    def as_tree(self) -> "Tree":
        from .tree import Tree
        self._expect(ValueKind.OBJECT)
        return Tree._adopt(copy.deepcopy(self._data))

    def to_native(self) -> Any:
        return copy.deepcopy(self._data)

    def __str__(self) -> str:
        kind = self._kind
        if kind is ValueKind.NULL:
            return ""
        if kind is ValueKind.BOOLEAN:
            return "true" if self._data else "false"
        if kind is ValueKind.NUMBER or kind is ValueKind.STRING:
            return str(self._data)
        if kind is ValueKind.ARRAY or kind is ValueKind.OBJECT:
            return pretty_text(self._data)
        raise AssertionError(f"unhandled kind {kind!r}")

    def __repr__(self) -> str:
        return f"Value({self._kind.value}, {self._data!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self._kind is other._kind and self._data == other._data

    __hash__ = None  # type: ignore[assignment]
