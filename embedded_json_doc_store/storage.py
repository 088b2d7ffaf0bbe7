from __future__ import annotations
import logging
import os
from typing import BinaryIO, Optional

from .errors import StoreIOError, StoreStateError

logger = logging.getLogger(__name__)

READ_WRITE = "+"
READ_ONLY = "r"
TMP_SUFFIX = ".tmp"


class FileStorage:
    """
    Low-level I/O for the single backing file.

    The whole document is rewritten on every save: truncate to zero, seek to
    start, write all bytes. With atomic=True the bytes go to "<path>.tmp" first
    and are moved over the path with os.replace, so a crash never leaves a
    half-written file behind.

    Every OSError is re-raised as StoreIOError with the original chained.
    """
    def __init__(self, path: str, *, fsync: bool = False, atomic: bool = False) -> None:
        self.path = path
        self.fsync = fsync
        self.atomic = atomic
        self._fh: Optional[BinaryIO] = None

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    def open(self, mode: str = READ_WRITE) -> bool:
        """
        Open the file for the store's lifetime. In read/write mode the file is
        created if missing. Returns True when a new file was created.
        """
        if self._fh is not None:
            raise StoreStateError(f"{self.path} is already open")
        created = False
        try:
            if mode == READ_ONLY:
                self._fh = open(self.path, "rb")
            else:
                created = not os.path.exists(self.path)
                # r+b semantics, created if missing
                fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
                self._fh = os.fdopen(fd, "r+b")
        except OSError as exc:
            raise StoreIOError(f"cannot open {self.path}: {exc}") from exc
        if created:
            logger.info("created empty database file %s", self.path)
        return created

    def _handle(self) -> BinaryIO:
        if self._fh is None:
            raise StoreStateError(f"{self.path} is not open")
        return self._fh

    def read_all(self) -> bytes:
        fh = self._handle()
        try:
            fh.seek(0)
            return fh.read()
        except OSError as exc:
            raise StoreIOError(f"cannot read {self.path}: {exc}") from exc

    def rewrite(self, data: bytes) -> None:
        """Replace the file content with data."""
        if self.atomic:
            self._rewrite_via_staging(data)
            return
        fh = self._handle()
        try:
            fh.truncate(0)
            fh.seek(0)
            written = fh.write(data)
            if written != len(data):
                raise StoreIOError(
                    f"short write to {self.path}: {written} of {len(data)} bytes"
                )
            fh.flush()
            if self.fsync:
                os.fsync(fh.fileno())
        except OSError as exc:
            if isinstance(exc, StoreIOError):
                raise
            raise StoreIOError(f"cannot write {self.path}: {exc}") from exc

    def _rewrite_via_staging(self, data: bytes) -> None:
        tmp_path = self.path + TMP_SUFFIX
        try:
            try:
                with open(tmp_path, "wb") as tmp:
                    written = tmp.write(data)
                    if written != len(data):
                        raise StoreIOError(
                            f"short write to {tmp_path}: {written} of {len(data)} bytes"
                        )
                    tmp.flush()
                    os.fsync(tmp.fileno())
            except OSError as exc:
                if isinstance(exc, StoreIOError):
                    raise
                raise StoreIOError(f"cannot write {tmp_path}: {exc}") from exc
            self.replace_file(tmp_path)
        except BaseException:
            self._discard(tmp_path)
            raise

    def _discard(self, tmp_path: str) -> None:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            # the original error is already propagating
            logger.warning("cannot remove staging file %s: %s", tmp_path, exc)

    def replace_file(self, tmp_path: str) -> None:
        """Atomically move tmp_path over the backing file and reopen the handle on it."""
        old = self._handle()
        try:
            old.close()
            self._fh = None
            os.replace(tmp_path, self.path)
            self._fsync_dir()
            self._fh = open(self.path, "r+b")
        except OSError as exc:
            raise StoreIOError(f"cannot replace {self.path}: {exc}") from exc

    def _fsync_dir(self) -> None:
        if not self.fsync or not hasattr(os, "O_DIRECTORY"):
            return
        dirname = os.path.dirname(os.path.abspath(self.path))
        fd = os.open(dirname, os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

    def close(self) -> None:
        if self._fh is None:
            return
        fh, self._fh = self._fh, None
        try:
            fh.close()
        except OSError as exc:
            raise StoreIOError(f"cannot close {self.path}: {exc}") from exc
