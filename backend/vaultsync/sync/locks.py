"""Per-vault single-flight guard"""

import threading
from contextlib import contextmanager
from typing import Iterator

from ..errors import VaultBusyError
from ..indexer.database import normalize_vault_id


class VaultLocks:
    """
    One lock per vault.

    ``hold`` either waits for the vault to become free or, with
    ``reject_concurrent``, raises VaultBusyError immediately.
    """

    def __init__(self, reject_concurrent: bool = False):
        self.reject_concurrent = reject_concurrent
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, vault_path: str) -> threading.Lock:
        key = normalize_vault_id(vault_path)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def is_busy(self, vault_path: str) -> bool:
        return self._lock_for(vault_path).locked()

    @contextmanager
    def hold(self, vault_path: str) -> Iterator[None]:
        lock = self._lock_for(vault_path)
        if not lock.acquire(blocking=not self.reject_concurrent):
            raise VaultBusyError(vault_path)
        try:
            yield
        finally:
            lock.release()
