"""
Per-project mutual exclusion for Cordova commands.

At most one Cordova command may run against a project at a time; commands
for different projects run independently.  The registry is a plain service
object: create one at start-up and hand it to every ``CordovaCLI``.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class ProjectLockRegistry:
    """
    Lazily created lock per project id.

    Entries are never evicted, so the registry grows with the number of
    distinct projects ever touched.  ``reentrant=True`` hands out
    ``threading.RLock`` instances instead of plain locks.
    """

    def __init__(self, *, reentrant: bool = False) -> None:
        self.reentrant = reentrant
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, project_id: str):
        """Return the lock for *project_id*, creating it on first use."""
        with self._guard:
            lock = self._locks.get(project_id)
            if lock is None:
                lock = threading.RLock() if self.reentrant else threading.Lock()
                self._locks[project_id] = lock
            return lock

    def acquire(self, project_id: str):
        """Block until the project's lock is free, take it and return it."""
        lock = self.lock_for(project_id)
        lock.acquire()
        return lock

    def release(self, lock) -> None:
        lock.release()

    @contextmanager
    def holding(self, project_id: str) -> Iterator[None]:
        lock = self.acquire(project_id)
        try:
            yield
        finally:
            self.release(lock)

    def __contains__(self, project_id: str) -> bool:
        with self._guard:
            return project_id in self._locks

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
