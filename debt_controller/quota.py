"""Zero-limit resource quota used to block a namespace while suspended."""

import logging

from kubernetes import client
from kubernetes.client.rest import ApiException

from .config import DEBT_QUOTA_NAME, DEBT_QUOTA_HARD_LIMITS
from .utils import is_conflict, is_not_found

logger = logging.getLogger(__name__)


def build_limit0_quota(namespace: str) -> client.V1ResourceQuota:
    """Build the zero-limit quota object for a namespace."""
    return client.V1ResourceQuota(
        api_version="v1",
        kind="ResourceQuota",
        metadata=client.V1ObjectMeta(
            name=DEBT_QUOTA_NAME,
            namespace=namespace,
        ),
        spec=client.V1ResourceQuotaSpec(hard=dict(DEBT_QUOTA_HARD_LIMITS)),
    )


class QuotaGate:
    """Installs and removes the debt quota on a namespace."""

    def __init__(self, v1: client.CoreV1Api, dry_run: bool = False):
        """
        Initialize the quota gate.

        Args:
            v1: CoreV1Api used for quota calls
            dry_run: If True, don't make actual changes
        """
        self.v1 = v1
        self.dry_run = dry_run

    def is_blocked(self, namespace: str) -> bool:
        """Check whether the debt quota currently exists in a namespace."""
        try:
            self.v1.read_namespaced_resource_quota(
                name=DEBT_QUOTA_NAME,
                namespace=namespace
            )
        except ApiException as e:
            if is_not_found(e):
                return False
            raise
        return True

    def block(self, namespace: str) -> None:
        """
        Ensure the zero-limit quota exists in a namespace.

        An already existing quota is left untouched.

        Raises:
            ApiException: If the quota could not be created
        """
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would create quota {namespace}/{DEBT_QUOTA_NAME}")
            return

        try:
            self.v1.create_namespaced_resource_quota(
                namespace=namespace,
                body=build_limit0_quota(namespace)
            )
            logger.info(f"Created quota {namespace}/{DEBT_QUOTA_NAME}")
        except ApiException as e:
            if not is_conflict(e):
                raise
            logger.debug(f"Quota {namespace}/{DEBT_QUOTA_NAME} already exists")

    def unblock(self, namespace: str) -> None:
        """
        Ensure the zero-limit quota is absent from a namespace.

        Raises:
            ApiException: If the delete failed for any reason but not-found
        """
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would delete quota {namespace}/{DEBT_QUOTA_NAME}")
            return

        try:
            self.v1.delete_namespaced_resource_quota(
                name=DEBT_QUOTA_NAME,
                namespace=namespace
            )
            logger.info(f"Deleted quota {namespace}/{DEBT_QUOTA_NAME}")
        except ApiException as e:
            if not is_not_found(e):
                raise
            logger.debug(f"Quota {namespace}/{DEBT_QUOTA_NAME} already absent")
