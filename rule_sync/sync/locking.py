"""Advisory per-directory lock serializing sync runs."""

from __future__ import annotations

import fcntl
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rule_sync.constants import (
    DEFAULT_LOCK_POLL_INTERVAL_SECONDS,
    DEFAULT_LOCK_TIMEOUT_SECONDS,
)
from rule_sync.errors import SyncLockTimeoutError

_THREAD_MUTEXES: dict[str, threading.Lock] = {}
_THREAD_MUTEXES_GUARD = threading.Lock()


def _thread_mutex(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _THREAD_MUTEXES_GUARD:
        return _THREAD_MUTEXES.setdefault(key, threading.Lock())


@contextmanager
def sync_lock(
    lock_path: Path,
    timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    poll_interval: float = DEFAULT_LOCK_POLL_INTERVAL_SECONDS,
) -> Iterator[Path]:
    """Hold an exclusive ``flock`` on ``lock_path`` for the duration of the block.

    Threads of one process are serialized by an in-process mutex first,
    because ``flock`` locks are per open file description and would not
    exclude a second thread opening the same file.

    Raises:
        SyncLockTimeoutError: when the lock is not acquired within ``timeout``.
    """
    if timeout <= 0:
        raise ValueError(f"timeout must be positive (got {timeout})")

    start = time.monotonic()
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    mutex = _thread_mutex(lock_path)
    if not mutex.acquire(timeout=timeout):
        raise SyncLockTimeoutError(lock_path, timeout)

    try:
        with open(lock_path, "a+") as handle:
            while True:
                try:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except OSError:
                    if time.monotonic() - start >= timeout:
                        raise SyncLockTimeoutError(lock_path, timeout)
                    time.sleep(poll_interval)
            try:
                yield lock_path
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    finally:
        mutex.release()
