"""In-process mutual exclusion for orchestration runs.

The routing record is read at the start of a run and written later without
any server-side compare-and-swap, so two runs for the same application would
race on slot selection.  ``DeploymentLockRegistry`` guarantees at most one
in-flight run per ``(namespace, app_name)`` inside this process.  Runs in
other processes (parallel pipeline jobs) must still be serialized by the
caller, e.g. with the scheduler's concurrent-build guard.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from bluegreen.domain.exceptions import ConcurrentDeploymentError

logger = logging.getLogger(__name__)


class DeploymentLockRegistry:
    """One non-blocking lock per ``(namespace, app_name)`` key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.Lock] = {}

    def _lock_for(self, key: tuple[str, str]) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def is_locked(self, namespace: str, app_name: str) -> bool:
        return self._lock_for((namespace, app_name)).locked()

    @contextmanager
    def hold(self, namespace: str, app_name: str) -> Iterator[None]:
        """Hold the lock for the duration of the ``with`` block.

        Raises ``ConcurrentDeploymentError`` immediately if another run
        already holds it.
        """
        lock = self._lock_for((namespace, app_name))
        if not lock.acquire(blocking=False):
            raise ConcurrentDeploymentError(
                f"deployment of {namespace}/{app_name} already in progress",
                namespace=namespace,
                app_name=app_name,
            )
        logger.debug("Acquired deployment lock for %s/%s", namespace, app_name)
        try:
            yield
        finally:
            lock.release()
            logger.debug("Released deployment lock for %s/%s", namespace, app_name)


# Process-wide registry shared by orchestrators that are not given their own.
default_lock_registry = DeploymentLockRegistry()
