"""Partitioning of namespace pods for suspend and resume."""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Tuple

from kubernetes import client

from .config import DEBT_SCHEDULER_NAME
from .utils import has_owner, is_parked

logger = logging.getLogger(__name__)


class PodDisposition(enum.Enum):
    """What a pipeline does with a pod."""

    # Unmanaged pod: this controller deletes and recreates it itself
    RECREATE = "recreate"
    # Managed pod: deleted, its owning controller recreates it
    DELETE = "delete"
    # Not acted on in this direction
    SKIP = "skip"


class Direction(enum.Enum):
    SUSPEND = "suspend"
    RESUME = "resume"


@dataclass
class ClassifiedPods:
    """Pods of one namespace, each paired with its disposition, in list order."""
    namespace: str
    direction: Direction
    entries: List[Tuple[Any, PodDisposition]] = field(default_factory=list)

    def _select(self, disposition: PodDisposition) -> List[Any]:
        return [pod for pod, d in self.entries if d is disposition]

    @property
    def unmanaged(self) -> List[Any]:
        return self._select(PodDisposition.RECREATE)

    @property
    def managed(self) -> List[Any]:
        return self._select(PodDisposition.DELETE)

    @property
    def skipped(self) -> List[Any]:
        return self._select(PodDisposition.SKIP)

    def actionable(self) -> List[Tuple[Any, PodDisposition]]:
        return [(pod, d) for pod, d in self.entries if d is not PodDisposition.SKIP]


def disposition_for(pod, direction: Direction, scheduler_name: str) -> PodDisposition:
    """
    Decide what to do with a single pod.

    During suspend, pods already parked under ``scheduler_name`` are
    skipped so a second run does not park them again. During resume,
    only parked pods are acted on.

    Args:
        pod: Kubernetes Pod object
        direction: Suspend or resume
        scheduler_name: The controller's reserved scheduler designator

    Returns:
        The PodDisposition for the pod
    """
    parked = is_parked(pod, scheduler_name)
    if direction is Direction.SUSPEND and parked:
        return PodDisposition.SKIP
    if direction is Direction.RESUME and not parked:
        return PodDisposition.SKIP
    if has_owner(pod):
        return PodDisposition.DELETE
    return PodDisposition.RECREATE


def classify_pods(
    pods: List[Any],
    namespace: str,
    direction: Direction,
    scheduler_name: str = DEBT_SCHEDULER_NAME
) -> ClassifiedPods:
    """Partition an already listed set of pods."""
    classified = ClassifiedPods(namespace=namespace, direction=direction)
    for pod in pods:
        classified.entries.append(
            (pod, disposition_for(pod, direction, scheduler_name))
        )
    return classified


class PodClassifier:
    """Lists the pods of a namespace and classifies them."""

    def __init__(self, v1: client.CoreV1Api, scheduler_name: str = DEBT_SCHEDULER_NAME):
        self.v1 = v1
        self.scheduler_name = scheduler_name

    def classify(self, namespace: str, direction: Direction) -> ClassifiedPods:
        """
        List pods in a namespace and classify them for a direction.

        A list failure propagates; no partial result is ever returned.

        Raises:
            ApiException: If listing pods failed
        """
        pods = self.v1.list_namespaced_pod(namespace=namespace)
        classified = classify_pods(
            pods.items or [], namespace, direction, self.scheduler_name
        )
        logger.debug(
            f"Classified pods in {namespace} for {direction.value}: "
            f"{len(classified.unmanaged)} unmanaged, "
            f"{len(classified.managed)} managed, "
            f"{len(classified.skipped)} skipped"
        )
        return classified
