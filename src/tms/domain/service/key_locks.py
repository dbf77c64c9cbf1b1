"""Per-pool mutual exclusion for the check-then-reserve window.

One lock per (city, province, tier) key.  Locks for several keys are always
taken in sorted key order, so two submissions sharing keys cannot deadlock,
and submissions with disjoint keys never wait on each other.

The base registry hands out ``threading.Lock`` objects; subclasses override
``_new_lock`` to hand out anything with ``acquire``/``release``.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager

from tms.domain.model.value_objects import SupplyKey


class KeyLockRegistry:

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str, str], object] = {}

    def _new_lock(self, key: SupplyKey):
        return threading.Lock()

    def lock_for(self, key: SupplyKey):
        with self._guard:
            lock = self._locks.get(key.identity)
            if lock is None:
                lock = self._new_lock(key)
                self._locks[key.identity] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[SupplyKey]) -> Iterator[None]:
        ordered = sorted(set(keys))
        with ExitStack() as stack:
            for key in ordered:
                lock = self.lock_for(key)
                lock.acquire()
                stack.callback(lock.release)
            yield


# Shared by every ledger in the process.
default_registry = KeyLockRegistry()
