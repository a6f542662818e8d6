"""Utility functions for pod inspection and API error handling."""

from typing import Dict

from kubernetes.client.rest import ApiException


def pod_key(pod) -> str:
    """Return "namespace/name" for a pod."""
    return f"{pod.metadata.namespace}/{pod.metadata.name}"


def get_annotations(obj) -> Dict[str, str]:
    """Return the annotations of an object, never None."""
    metadata = getattr(obj, "metadata", None)
    return getattr(metadata, "annotations", None) or {}


def has_owner(pod) -> bool:
    """Check if a pod is owned by a higher-level controller."""
    return bool(pod.metadata.owner_references)


def get_scheduler_name(pod) -> str:
    """Return the scheduler designated for a pod ("" if unset)."""
    if pod.spec is None:
        return ""
    return pod.spec.scheduler_name or ""


def is_parked(pod, scheduler_name: str) -> bool:
    """Check if a pod is parked under the given reserved scheduler."""
    return get_scheduler_name(pod) == scheduler_name


def is_not_found(error: ApiException) -> bool:
    return error.status == 404


def is_conflict(error: ApiException) -> bool:
    return error.status == 409
