"""In-memory record of the debt status last seen on each namespace."""

import logging
import threading
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class StatusCache:
    """
    Thread-safe map of namespace name to the raw debt status last
    observed, used to decide whether a namespace event is a real change.
    """

    def __init__(self):
        """Initialize the cache."""
        self._statuses: Dict[str, Optional[str]] = {}
        self._failed: set = set()
        self._namespace_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.RLock()

    def observe(self, event_type: str, name: str, status: Optional[str]) -> bool:
        """
        Record a namespace event and report whether it needs reconciling.

        ADDED triggers when the namespace carries a status it was not
        already known to have; MODIFIED triggers when the status is
        present and differs from the previous one. DELETED forgets the
        namespace.

        Args:
            event_type: ADDED, MODIFIED, or DELETED
            name: Namespace name
            status: Raw debt status annotation value, or None if absent

        Returns:
            True if the namespace should be reconciled
        """
        with self._lock:
            if event_type == "DELETED":
                self._statuses.pop(name, None)
                self._failed.discard(name)
                return False

            known = name in self._statuses
            previous = self._statuses.get(name)
            self._statuses[name] = status

            if status is None:
                return False
            if event_type == "ADDED":
                return not known or previous != status
            if event_type == "MODIFIED":
                return previous != status
            return False

    def lock_for(self, name: str) -> threading.Lock:
        """
        Return the lock serializing reconciliation of one namespace.

        Locks outlive DELETED events, since a reconciliation may still
        hold one.
        """
        with self._lock:
            lock = self._namespace_locks.get(name)
            if lock is None:
                lock = self._namespace_locks[name] = threading.Lock()
            return lock

    def get(self, name: str) -> Optional[str]:
        with self._lock:
            return self._statuses.get(name)

    def mark_failed(self, name: str) -> None:
        """Remember that reconciling a namespace failed."""
        with self._lock:
            self._failed.add(name)
            logger.debug(f"Namespace {name} queued for retry")

    def mark_succeeded(self, name: str) -> None:
        with self._lock:
            self._failed.discard(name)

    def get_failed(self) -> List[str]:
        """Return the namespaces awaiting retry."""
        with self._lock:
            return sorted(self._failed)

    def clear(self) -> None:
        """Clear all recorded state."""
        with self._lock:
            self._statuses.clear()
            self._failed.clear()
            logger.info("Cleared status cache")
