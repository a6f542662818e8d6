"""Delete-then-create replacement of a pod that keeps its name."""

import copy
import logging
import math
import time
from typing import Optional

from kubernetes import client, watch
from kubernetes.client.rest import ApiException
from urllib3.exceptions import ReadTimeoutError

from .config import (
    DEFAULT_TERMINATION_GRACE_PERIOD_SECONDS,
    PREVIOUS_SCHEDULER_ANNOTATION,
    RECREATE_TIMEOUT_SECONDS,
    POD_DELETE_GRACE_PERIOD_SECONDS,
    WATCH_REQUEST_TIMEOUT_MARGIN_SECONDS,
)
from .utils import get_scheduler_name, is_not_found, pod_key

logger = logging.getLogger(__name__)


class PodRecreateError(Exception):
    """Raised when a pod could not be replaced."""


class PodDeletionTimeout(PodRecreateError):
    """Raised when deletion of the old pod was not confirmed in time."""


def _clone_pod(original_pod) -> client.V1Pod:
    """
    Copy a pod into a new object suitable for creation.

    The whole metadata is carried over (finalizers, generateName and
    owner references included); only server-populated fields, the node
    assignment and the status are dropped.
    """
    new_pod = client.V1Pod(
        api_version="v1",
        kind="Pod",
        metadata=copy.deepcopy(original_pod.metadata),
        spec=copy.deepcopy(original_pod.spec)
    )
    if new_pod.metadata.annotations is None:
        new_pod.metadata.annotations = {}

    # Clear fields that shouldn't be set on creation
    new_pod.metadata.resource_version = None
    new_pod.metadata.uid = None
    new_pod.metadata.creation_timestamp = None
    new_pod.metadata.deletion_timestamp = None
    new_pod.metadata.deletion_grace_period_seconds = None
    new_pod.metadata.managed_fields = None
    new_pod.spec.node_name = None
    new_pod.status = None

    return new_pod


def build_parked_pod(original_pod, scheduler_name: str) -> client.V1Pod:
    """
    Build the parked replacement of a running pod.

    The original scheduler is saved into the previous-scheduler
    annotation and the reserved scheduler is assigned, so no scheduler
    will place the pod.

    Args:
        original_pod: The running Kubernetes Pod object
        scheduler_name: The controller's reserved scheduler designator

    Returns:
        New V1Pod object
    """
    new_pod = _clone_pod(original_pod)
    new_pod.metadata.annotations[PREVIOUS_SCHEDULER_ANNOTATION] = get_scheduler_name(original_pod)
    new_pod.spec.scheduler_name = scheduler_name
    return new_pod


def build_resumed_pod(parked_pod) -> client.V1Pod:
    """
    Build the runnable replacement of a parked pod.

    The scheduler is restored from the previous-scheduler annotation,
    which is removed. Without the annotation the scheduler is cleared
    so the cluster default applies.
    """
    new_pod = _clone_pod(parked_pod)
    previous = new_pod.metadata.annotations.pop(PREVIOUS_SCHEDULER_ANNOTATION, None)
    new_pod.spec.scheduler_name = previous or None
    return new_pod


class PodRecreator:
    """
    Replaces a pod by deleting it, waiting for the deletion to be
    confirmed by the API server and only then creating the new spec.
    """

    def __init__(
        self,
        v1: client.CoreV1Api,
        timeout_seconds: float = RECREATE_TIMEOUT_SECONDS,
        grace_period_seconds: Optional[int] = POD_DELETE_GRACE_PERIOD_SECONDS,
        dry_run: bool = False,
        watch_factory=watch.Watch,
    ):
        """
        Initialize the recreator.

        Args:
            v1: CoreV1Api used for pod calls
            timeout_seconds: Upper bound on the wait for deletion
            grace_period_seconds: Grace period for the delete call; None
                uses the pod's own, capped to half of timeout_seconds
            dry_run: If True, don't make actual changes
            watch_factory: Callable returning a watch.Watch-like object
        """
        self.v1 = v1
        self.timeout_seconds = timeout_seconds
        self.grace_period_seconds = grace_period_seconds
        self.dry_run = dry_run
        self.watch_factory = watch_factory

    def grace_period_for(self, pod) -> int:
        """Grace period to delete a pod with, short enough to confirm in time."""
        if self.grace_period_seconds is not None:
            return self.grace_period_seconds

        grace = None
        if pod.spec is not None:
            grace = pod.spec.termination_grace_period_seconds
        if grace is None:
            grace = DEFAULT_TERMINATION_GRACE_PERIOD_SECONDS
        return min(grace, int(self.timeout_seconds // 2))

    def recreate(self, old_pod, new_pod) -> None:
        """
        Replace ``old_pod`` with ``new_pod`` under the same name.

        The watch is anchored at a resourceVersion read before the
        delete is issued, so the deletion event cannot be missed. The
        create is only issued once that event has been observed, or
        once the delete reported the pod as already gone.

        Raises:
            PodDeletionTimeout: If the deletion was not observed in time
            PodRecreateError: If any step failed; no create is attempted
                unless the deletion was confirmed
        """
        name = old_pod.metadata.name
        namespace = old_pod.metadata.namespace
        key = pod_key(old_pod)

        if self.dry_run:
            logger.info(
                f"[DRY-RUN] Would recreate pod {key} with scheduler "
                f"'{new_pod.spec.scheduler_name or ''}'"
            )
            return

        try:
            listing = self.v1.list_namespaced_pod(namespace=namespace, limit=1)
        except ApiException as e:
            raise PodRecreateError(f"failed to start watch for pod {key}: {e}") from e
        resource_version = listing.metadata.resource_version

        try:
            self.v1.delete_namespaced_pod(
                name=name,
                namespace=namespace,
                grace_period_seconds=self.grace_period_for(old_pod)
            )
            logger.info(f"Deleted pod {key}, waiting for confirmation")
        except ApiException as e:
            if not is_not_found(e):
                raise PodRecreateError(f"failed to delete pod {key}: {e}") from e
            logger.info(f"Pod {key} already deleted")
        else:
            self._wait_for_deletion(name, namespace, resource_version)

        try:
            self.v1.create_namespaced_pod(namespace=namespace, body=new_pod)
        except ApiException as e:
            raise PodRecreateError(f"failed to recreate pod {key}: {e}") from e
        logger.info(
            f"Recreated pod {key} with scheduler '{new_pod.spec.scheduler_name or ''}'"
        )

    def _wait_for_deletion(self, name: str, namespace: str, resource_version: str) -> None:
        """Block until a DELETED event for ``name`` arrives."""
        key = f"{namespace}/{name}"
        deadline = time.monotonic() + self.timeout_seconds
        server_timeout = max(1, math.ceil(self.timeout_seconds))
        w = self.watch_factory()

        try:
            for event in w.stream(
                self.v1.list_namespaced_pod,
                namespace=namespace,
                resource_version=resource_version,
                timeout_seconds=server_timeout,
                _request_timeout=server_timeout + WATCH_REQUEST_TIMEOUT_MARGIN_SECONDS
            ):
                event_type = event["type"]
                if event_type == "ERROR":
                    raise PodRecreateError(
                        f"watch error while waiting for pod {key}: {event.get('raw_object')}"
                    )

                obj = event["object"]
                if event_type == "DELETED" and obj.metadata.name == name:
                    logger.debug(f"Observed deletion of pod {key}")
                    return

                if time.monotonic() >= deadline:
                    break
        except ApiException as e:
            raise PodRecreateError(f"watch failed for pod {key}: {e}") from e
        except ReadTimeoutError as e:
            raise PodDeletionTimeout(
                f"watch for pod {key} stalled past {self.timeout_seconds}s"
            ) from e
        finally:
            w.stop()

        if time.monotonic() >= deadline:
            raise PodDeletionTimeout(
                f"deletion of pod {key} not observed within {self.timeout_seconds}s"
            )
        raise PodRecreateError(f"watch closed before deletion of pod {key} was observed")
