from __future__ import annotations
import logging
import threading
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .errors import (
    ReadOnlyError,
    StoreStateError,
    StoreUnusableError,
    ValidationError,
)
from .progress import Progress, ProgressCallback
from .storage import READ_ONLY, READ_WRITE, FileStorage
from .tree import Tree
from .value import Value

logger = logging.getLogger(__name__)

_MODES = (READ_WRITE, READ_ONLY)
_DURABILITY_DEFAULTS = {"fsync": False, "atomic_replace": False}


class _State(Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    FAILED = "failed"
    CLOSED = "closed"


class Database:
    """
    Single-file document store with write-through persistence.

    Construct with a path (no I/O), then call load(). Every mutation updates the
    in-memory root tree and rewrites the whole file before returning; reads never
    touch the disk. One lock guards tree and file together, so calls from several
    threads are serialized, but a sequence of calls is not a transaction.

    Only one process may use a given path; nothing on disk coordinates writers.
    """

    def __init__(
        self,
        path: str,
        mode: str = READ_WRITE,
        on_progress: Optional[ProgressCallback] = None,
        durability: Optional[Dict[str, Any]] = None,
    ) -> None:
        if mode not in _MODES:
            raise ValidationError(f"unsupported mode {mode!r}; expected one of {_MODES}")
        self.path = str(path)
        self.mode = mode
        self._durability = self._parse_durability(durability)
        self._fs = FileStorage(
            self.path,
            fsync=self._durability["fsync"],
            atomic=self._durability["atomic_replace"],
        )
        self._progress = Progress(on_progress)
        self._lock = threading.RLock()
        self._state = _State.UNLOADED
        self._root: Optional[Tree] = None

    @staticmethod
    def _parse_durability(durability: Optional[Dict[str, Any]]) -> Dict[str, bool]:
        opts = dict(_DURABILITY_DEFAULTS)
        for k, v in (durability or {}).items():
            if k not in _DURABILITY_DEFAULTS:
                raise ValidationError(f"unknown durability option {k!r}")
            if not isinstance(v, bool):
                raise ValidationError(f"durability option {k!r} must be a bool")
            opts[k] = v
        return opts

    # ----- Lifecycle -----

    def load(self) -> "Database":
        """
        Open (or create) the backing file and decode it into the root tree.
        An empty file is an empty document. Malformed content raises DecodeError,
        leaves the file untouched and the store unloaded.
        """
        with self._lock:
            if self._state is not _State.UNLOADED:
                raise StoreStateError(f"cannot load a database in state {self._state.value!r}")
            self._progress.emit("load.start", 0, self.path)
            self._fs.open(self.mode)
            try:
                raw = self._fs.read_all()
                self._progress.emit("load.read", 50, f"{len(raw)} bytes")
                root = Tree() if len(raw) == 0 else Tree.from_bytes(raw)
            except BaseException:
                self._fs.close()
                raise
            self._root = root
            self._state = _State.LOADED
            logger.debug("loaded %s: %d keys from %d bytes", self.path, len(root), len(raw))
            self._progress.emit("load.done", 100, f"{len(root)} keys")
            return self

    def close(self) -> None:
        with self._lock:
            if self._state is _State.CLOSED:
                return
            self._state = _State.CLOSED
            self._root = None
            self._fs.close()

    def __enter__(self) -> "Database":
        with self._lock:
            if self._state is _State.UNLOADED:
                self.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def loaded(self) -> bool:
        return self._state is _State.LOADED

    def _tree(self) -> Tree:
        if self._state is _State.LOADED:
            assert self._root is not None
            return self._root
        if self._state is _State.FAILED:
            raise StoreUnusableError(
                f"{self.path}: a previous write failed; reopen the database"
            )
        if self._state is _State.CLOSED:
            raise StoreStateError(f"{self.path}: database is closed")
        raise StoreStateError(f"{self.path}: call load() before using the database")

    def _writable(self) -> Tree:
        tree = self._tree()
        if self.mode == READ_ONLY:
            raise ReadOnlyError(f"{self.path} is opened read-only")
        return tree

    def _commit(self, op: str) -> None:
        assert self._root is not None
        try:
            self._progress.emit("save.start", 0, op)
            data = self._root.to_bytes(pretty=True)
            self._progress.emit("save.write", 50, f"{len(data)} bytes")
            self._fs.rewrite(data)
        except BaseException:
            # memory already holds the change; the file may not
            self._state = _State.FAILED
            logger.error("commit of %r to %s failed; database marked unusable", op, self.path)
            raise
        logger.debug("%s: wrote %d bytes to %s", op, len(data), self.path)
        self._progress.emit("save.done", 100, op)

    # ----- Mutations -----

    def insert(self, key: str, value: str) -> None:
        with self._lock:
            self._writable().insert(key, value)
            self._commit(f"insert {key}")

    def insert_number(self, key: str, value: int) -> None:
        with self._lock:
            self._writable().insert_number(key, value)
            self._commit(f"insert_number {key}")

    def insert_bool(self, key: str, value: bool) -> None:
        with self._lock:
            self._writable().insert_bool(key, value)
            self._commit(f"insert_bool {key}")

    def insert_array(self, key: str, values: Iterable[str]) -> None:
        with self._lock:
            self._writable().insert_array(key, values)
            self._commit(f"insert_array {key}")

    def insert_tree(self, key: str, tree: Tree) -> None:
        with self._lock:
            self._writable().insert_tree(key, tree)
            self._commit(f"insert_tree {key}")

    def remove(self, key: str) -> None:
        with self._lock:
            self._writable().remove(key)
            self._commit(f"remove {key}")

    # ----- Queries -----

    def find(self, key: str) -> Value:
        """Return the Value at key; raises KeyNotFoundError if absent."""
        with self._lock:
            return self._tree().find(key)

    def get(self, key: str, default: Optional[Value] = None) -> Optional[Value]:
        with self._lock:
            return self._tree().get(key, default)

    def contains_key(self, key: str) -> bool:
        with self._lock:
            return self._tree().contains_key(key)

    def keys(self) -> List[str]:
        with self._lock:
            return self._tree().keys()

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return self._tree().to_dict()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._tree()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tree())

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __str__(self) -> str:
        with self._lock:
            return str(self._tree())

    def __repr__(self) -> str:
        return f"Database({self.path!r}, state={self._state.value!r})"
