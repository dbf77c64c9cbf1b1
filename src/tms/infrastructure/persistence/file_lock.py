"""Exclusive locks that hold across processes as well as threads.

A ``FileLock`` pairs an in-process ``RLock`` with ``fcntl.flock`` on a sidecar
file.  Threads of one process queue on the ``RLock``; other processes queue
on the ``flock``.  The lock is re-entrant for the owning thread and the
sidecar is only opened on the outermost acquire.
"""

from __future__ import annotations

import fcntl
import hashlib
import threading
from pathlib import Path
from typing import IO

from tms.domain.model.value_objects import SupplyKey
from tms.domain.service.key_locks import KeyLockRegistry


class FileLock:

    def __init__(self, path: Path) -> None:
        self.path = path
        self._local = threading.RLock()
        self._depth = 0
        self._handle: IO[bytes] | None = None

    def acquire(self) -> None:
        self._local.acquire()
        try:
            if self._depth == 0:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                handle = open(self.path, "a+b")
                try:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                except BaseException:
                    handle.close()
                    raise
                self._handle = handle
            self._depth += 1
        except BaseException:
            self._local.release()
            raise

    def release(self) -> None:
        try:
            self._depth -= 1
            if self._depth == 0 and self._handle is not None:
                try:
                    fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
                finally:
                    self._handle.close()
                    self._handle = None
        finally:
            self._local.release()

    def __enter__(self) -> FileLock:
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class FileKeyLockRegistry(KeyLockRegistry):
    """Per-pool locks backed by one sidecar file per key under ``lock_dir``.

    Every process pointing at the same data directory contends on the same
    files, so the check-then-reserve window is exclusive machine-wide.
    """

    def __init__(self, lock_dir: Path) -> None:
        super().__init__()
        self.lock_dir = lock_dir

    def _new_lock(self, key: SupplyKey) -> FileLock:
        digest = hashlib.sha256("|".join(key.identity).encode("utf-8")).hexdigest()[:24]
        return FileLock(self.lock_dir / f"pool-{digest}.lock")
