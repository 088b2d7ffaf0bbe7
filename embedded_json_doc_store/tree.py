from __future__ import annotations
import copy
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .codec import decode, encode, encode_pretty, pretty_text
from .errors import KeyNotFoundError, ValidationError
from .value import Value


def check_key(key: Any) -> str:
    if not isinstance(key, str):
        raise ValidationError(f"key must be a str, got {type(key).__name__}")
    if not key:
        raise ValidationError("key must be a non-empty string")
    return key


class Tree:
    """
    Ordered mapping of string keys to stored values; the unit of nesting and persistence.

    A Tree built standalone is detached and in-memory only. insert_tree() copies
    the child's content into the parent: later changes to either side are not
    visible to the other, and the child remains usable.

    Overwriting an existing key replaces the value in place (same position, no merge).
    """
    __slots__ = ("_children",)

    def __init__(self) -> None:
        self._children: Dict[str, Any] = {}

    @classmethod
    def _adopt(cls, children: Dict[str, Any]) -> "Tree":
        # Takes ownership of an already-copied dict
        tree = cls()
        tree._children = children
        return tree

    @classmethod
    def from_bytes(cls, raw: bytes | str) -> "Tree":
        """Decode a tree from JSON text; raises DecodeError on malformed input."""
        return cls._adopt(decode(raw))

    @classmethod
    def from_dict(cls, doc: Dict[str, Any]) -> "Tree":
        for k in doc:
            check_key(k)
        return cls._adopt(copy.deepcopy(dict(doc)))

    # ----- Mutations -----

    def insert(self, key: str, value: str) -> None:
        check_key(key)
        if not isinstance(value, str):
            raise ValidationError(f"insert() expects a str value, got {type(value).__name__}")
        self._children[key] = value

    def insert_number(self, key: str, value: int) -> None:
        check_key(key)
        # bool is an int subclass; it has its own entry point
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"insert_number() expects an int, got {type(value).__name__}")
        if value < 0:
            raise ValidationError(f"insert_number() expects an unsigned int, got {value}")
        self._children[key] = value

    def insert_bool(self, key: str, value: bool) -> None:
        check_key(key)
        if not isinstance(value, bool):
            raise ValidationError(f"insert_bool() expects a bool, got {type(value).__name__}")
        self._children[key] = value

    def insert_array(self, key: str, values: Iterable[str]) -> None:
        check_key(key)
        if isinstance(values, (str, bytes)):
            raise ValidationError("insert_array() expects an iterable of str, not a single string")
        items = list(values)
        for i, item in enumerate(items):
            if not isinstance(item, str):
                raise ValidationError(
                    f"insert_array() expects str elements, element {i} is {type(item).__name__}"
                )
        self._children[key] = items

    def insert_tree(self, key: str, tree: "Tree") -> None:
        check_key(key)
        if not isinstance(tree, Tree):
            raise ValidationError(f"insert_tree() expects a Tree, got {type(tree).__name__}")
        # Deep copy; also covers inserting a tree into itself
        self._children[key] = copy.deepcopy(tree._children)

    def remove(self, key: str) -> None:
        check_key(key)
        self._children.pop(key, None)

    # ----- Reads -----

    def find(self, key: str) -> Value:
        try:
            native = self._children[key]
        except KeyError:
            raise KeyNotFoundError(key) from None
        return Value.of(native)

    def get(self, key: str, default: Optional[Value] = None) -> Optional[Value]:
        if key not in self._children:
            return default
        return Value.of(self._children[key])

    def contains_key(self, key: str) -> bool:
        return key in self._children

    def keys(self) -> List[str]:
        return list(self._children)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._children)

    def to_bytes(self, pretty: bool = True) -> bytes:
        return encode_pretty(self._children) if pretty else encode(self._children)

    def __contains__(self, key: object) -> bool:
        return key in self._children

    def __len__(self) -> int:
        return len(self._children)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._children))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tree):
            return NotImplemented
        return self._children == other._children

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return pretty_text(self._children)

    def __repr__(self) -> str:
        return f"Tree({len(self._children)} keys)"
