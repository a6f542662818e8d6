"""Main controller logic for the Namespace Debt Controller."""

import logging
import threading
import time
from typing import Optional

from kubernetes import client, watch
from kubernetes.client.rest import ApiException

from .config import (
    DEBT_SCHEDULER_NAME,
    RECREATE_TIMEOUT_SECONDS,
    RECONCILE_INTERVAL_SECONDS,
    WATCH_RETRY_DELAY_SECONDS,
    WATCH_TIMEOUT_SECONDS,
)
from .reconciler import NamespaceReconciler
from .status import get_raw_debt_status
from .status_cache import StatusCache

logger = logging.getLogger(__name__)


class NamespaceDebtController:
    """
    Watches namespaces and reconciles those whose debt status changed.
    Failed namespaces are retried periodically until they succeed.
    """

    def __init__(
        self,
        scheduler_name: str = DEBT_SCHEDULER_NAME,
        recreate_timeout: float = RECREATE_TIMEOUT_SECONDS,
        dry_run: bool = False,
        v1: Optional[client.CoreV1Api] = None,
        reconciler: Optional[NamespaceReconciler] = None,
    ):
        """
        Initialize the controller.

        Args:
            scheduler_name: Reserved scheduler designator for parked pods
            recreate_timeout: Upper bound on each pod deletion wait
            dry_run: If True, don't make actual changes
            v1: CoreV1Api to use (a new one is created if omitted)
            reconciler: NamespaceReconciler to use instead of building one
        """
        self.dry_run = dry_run
        self.v1 = v1 or client.CoreV1Api()

        self.status_cache = StatusCache()
        self.reconciler = reconciler or NamespaceReconciler(
            self.v1,
            scheduler_name=scheduler_name,
            recreate_timeout=recreate_timeout,
            dry_run=dry_run
        )

        self._stop_event = threading.Event()

    def handle_namespace_event(self, event_type: str, namespace) -> None:
        """
        Handle a namespace watch event.

        Args:
            event_type: ADDED, MODIFIED, or DELETED
            namespace: The Namespace object from the event
        """
        name = namespace.metadata.name
        status = get_raw_debt_status(namespace)

        if not self.status_cache.observe(event_type, name, status):
            return

        logger.info(f"Namespace {event_type}: {name} (debt status: {status})")
        self.reconcile_namespace(name)

    def reconcile_namespace(self, name: str) -> bool:
        """
        Reconcile a namespace, queueing it for retry on failure.

        The watch and retry threads share a per-namespace lock, so a
        namespace is never reconciled by both at once.

        Returns:
            True if reconciliation succeeded
        """
        with self.status_cache.lock_for(name):
            try:
                self.reconciler.reconcile(name)
            except Exception as e:
                logger.error(f"Reconciliation of namespace {name} failed: {e}")
                self.status_cache.mark_failed(name)
                return False

            self.status_cache.mark_succeeded(name)
            return True

    def watch_namespaces(self) -> None:
        """Watch for Namespace events in a loop."""
        logger.info("Starting namespace watcher...")
        w = watch.Watch()

        while not self._stop_event.is_set():
            try:
                for event in w.stream(
                    self.v1.list_namespace,
                    timeout_seconds=WATCH_TIMEOUT_SECONDS
                ):
                    if self._stop_event.is_set():
                        break

                    self.handle_namespace_event(event["type"], event["object"])

            except ApiException as e:
                logger.error(f"Namespace watch error: {e}")
                time.sleep(WATCH_RETRY_DELAY_SECONDS)
            except Exception as e:
                logger.error(f"Unexpected error in namespace watcher: {e}")
                time.sleep(WATCH_RETRY_DELAY_SECONDS)

    def retry_failed(self) -> int:
        """
        Re-run reconciliation for every namespace that previously failed.

        Returns:
            Number of namespaces that still fail
        """
        failed = self.status_cache.get_failed()
        if failed:
            logger.info(f"Retrying {len(failed)} failed namespace(s)")

        still_failing = 0
        for name in failed:
            if self._stop_event.is_set():
                break
            if not self.reconcile_namespace(name):
                still_failing += 1
        return still_failing

    def periodic_retry(self) -> None:
        """Periodically retry failed namespaces."""
        logger.info(f"Starting periodic retry (interval: {RECONCILE_INTERVAL_SECONDS}s)")

        while not self._stop_event.wait(RECONCILE_INTERVAL_SECONDS):
            self.retry_failed()

    def run(self) -> None:
        """Run the controller."""
        logger.info("=" * 60)
        logger.info("Starting Namespace Debt Controller")
        logger.info("=" * 60)
        logger.info(f"Scheduler name: {self.reconciler.scheduler_name}")
        logger.info(f"Dry run: {self.dry_run}")

        watch_thread = threading.Thread(
            target=self.watch_namespaces,
            name="namespace-watcher",
            daemon=True
        )

        retry_thread = threading.Thread(
            target=self.periodic_retry,
            name="periodic-retry",
            daemon=True
        )

        watch_thread.start()
        retry_thread.start()

        logger.info("Controller is running. Press Ctrl+C to stop.")

        # Keep main thread alive
        try:
            while not self._stop_event.is_set():
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Shutdown requested...")
            self._stop_event.set()

    def stop(self) -> None:
        """Stop the controller."""
        logger.info("Stopping controller...")
        self._stop_event.set()
