"""Suspend/resume transitions driven by a namespace's debt status."""

import logging
from typing import Callable, List, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from .classifier import Direction, PodClassifier, PodDisposition
from .config import (
    DEBT_SCHEDULER_NAME,
    DEBT_STATUS_ANNOTATION,
    NORMAL_DEBT_STATUS,
    RECREATE_TIMEOUT_SECONDS,
)
from .quota import QuotaGate
from .recreate import (
    PodRecreateError,
    PodRecreator,
    build_parked_pod,
    build_resumed_pod,
)
from .status import DebtStatus, get_debt_status, get_raw_debt_status
from .utils import is_not_found, pod_key

logger = logging.getLogger(__name__)


class NamespaceReconciler:
    """
    Drives a namespace between running and suspended according to its
    debt status annotation.

    Every stage lists pods and checks quota state afresh, so a pipeline
    that failed half way can simply be run again.
    """

    def __init__(
        self,
        v1: Optional[client.CoreV1Api] = None,
        scheduler_name: str = DEBT_SCHEDULER_NAME,
        recreate_timeout: float = RECREATE_TIMEOUT_SECONDS,
        dry_run: bool = False,
        recreator: Optional[PodRecreator] = None,
    ):
        """
        Initialize the reconciler.

        Args:
            v1: CoreV1Api to use (a new one is created if omitted)
            scheduler_name: Reserved scheduler designator for parked pods
            recreate_timeout: Upper bound on each pod deletion wait
            dry_run: If True, don't make actual changes
            recreator: PodRecreator to use instead of building one
        """
        self.v1 = v1 or client.CoreV1Api()
        self.scheduler_name = scheduler_name
        self.dry_run = dry_run

        self.quota_gate = QuotaGate(self.v1, dry_run=dry_run)
        self.classifier = PodClassifier(self.v1, scheduler_name=scheduler_name)
        self.recreator = recreator or PodRecreator(
            self.v1,
            timeout_seconds=recreate_timeout,
            dry_run=dry_run
        )

    def reconcile(self, name: str) -> Optional[DebtStatus]:
        """
        Reconcile one namespace against its debt status.

        Args:
            name: Namespace name

        Returns:
            The status that was acted on, or None if the namespace is
            gone or carries no debt status

        Raises:
            ApiException: On API failures other than a missing namespace
            PodRecreateError: If a pod could not be replaced
        """
        try:
            ns = self.v1.read_namespace(name=name)
        except ApiException as e:
            if is_not_found(e):
                logger.debug(f"Namespace {name} not found, nothing to do")
                return None
            raise

        status = get_debt_status(ns)
        if status is None:
            logger.error(f"Namespace {name} has no debt status")
            return None

        logger.info(f"Namespace {name} debt status: {status.name}")

        if status is DebtStatus.SUSPEND:
            logger.info(f"Suspending resources in namespace {name}")
            try:
                self.suspend_user_resource(name)
            except Exception as e:
                logger.error(f"Suspend of namespace {name} failed: {e}")
                raise
        elif status is DebtStatus.RESUME:
            logger.info(f"Resuming resources in namespace {name}")
            try:
                self.resume_user_resource(name)
            except Exception as e:
                logger.error(f"Resume of namespace {name} failed: {e}")
                raise
            self._set_normal(name)
        elif status is DebtStatus.UNKNOWN:
            logger.error(
                f"Unknown debt status '{get_raw_debt_status(ns)}' on namespace "
                f"{name}, changing to {NORMAL_DEBT_STATUS}"
            )
            self._set_normal(name)

        return status

    def suspend_user_resource(self, namespace: str) -> None:
        """Park unmanaged pods, block the namespace, delete managed pods."""
        self._run_pipeline(namespace, [
            self.suspend_orphan_pods,
            self.quota_gate.block,
            self.delete_controlled_pods,
        ])

    def resume_user_resource(self, namespace: str) -> None:
        """Unblock the namespace, then bring every parked pod back."""
        self._run_pipeline(namespace, [
            self.quota_gate.unblock,
            self.resume_pods,
        ])

    def _run_pipeline(self, namespace: str, stages: List[Callable[[str], None]]) -> None:
        for stage in stages:
            stage(namespace)

    def suspend_orphan_pods(self, namespace: str) -> None:
        """Recreate every running unmanaged pod under the reserved scheduler."""
        classified = self.classifier.classify(namespace, Direction.SUSPEND)
        for pod in classified.unmanaged:
            self._recreate(pod, build_parked_pod(pod, self.scheduler_name))

    def delete_controlled_pods(self, namespace: str) -> None:
        """Delete every running managed pod, leaving recreation to its owner."""
        classified = self.classifier.classify(namespace, Direction.SUSPEND)
        for pod in classified.skipped:
            logger.debug(f"Skipping parked pod {pod_key(pod)}")
        for pod in classified.managed:
            self._delete_pod(pod)

    def resume_pods(self, namespace: str) -> None:
        """Delete parked managed pods and restore parked unmanaged pods."""
        classified = self.classifier.classify(namespace, Direction.RESUME)
        for pod, disposition in classified.actionable():
            if disposition is PodDisposition.DELETE:
                self._delete_pod(pod)
            else:
                self._recreate(pod, build_resumed_pod(pod))

    def _recreate(self, old_pod, new_pod) -> None:
        try:
            self.recreator.recreate(old_pod, new_pod)
        except PodRecreateError as e:
            raise type(e)(
                f"recreate unowned pod {old_pod.metadata.name} failed: {e}"
            ) from e

    def _delete_pod(self, pod) -> None:
        key = pod_key(pod)
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would delete pod {key}")
            return

        try:
            self.v1.delete_namespaced_pod(
                name=pod.metadata.name,
                namespace=pod.metadata.namespace
            )
            logger.info(f"Deleted pod {key}")
        except ApiException as e:
            if not is_not_found(e):
                raise
            logger.debug(f"Pod {key} already deleted")

    def _set_normal(self, name: str) -> None:
        """Write the Normal debt status back onto the namespace."""
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would set debt status of {name} to {NORMAL_DEBT_STATUS}")
            return

        self.v1.patch_namespace(
            name=name,
            body={"metadata": {"annotations": {DEBT_STATUS_ANNOTATION: NORMAL_DEBT_STATUS}}}
        )
        logger.info(f"Set debt status of namespace {name} to {NORMAL_DEBT_STATUS}")
