"""Debt status carried on namespace annotations."""

import enum
from typing import Optional

from .config import (
    DEBT_STATUS_ANNOTATION,
    NORMAL_DEBT_STATUS,
    SUSPEND_DEBT_STATUS,
    RESUME_DEBT_STATUS,
)
from .utils import get_annotations


class DebtStatus(enum.Enum):
    """Debt status of a namespace.

    ``UNKNOWN`` is never written to a namespace; it stands for any value
    the controller does not recognize and is normalized back to ``NORMAL``.
    """

    NORMAL = NORMAL_DEBT_STATUS
    SUSPEND = SUSPEND_DEBT_STATUS
    RESUME = RESUME_DEBT_STATUS
    UNKNOWN = None

    @classmethod
    def parse(cls, value: str) -> "DebtStatus":
        """Map an annotation value onto a status, falling back to UNKNOWN."""
        for status in cls:
            if status is not cls.UNKNOWN and status.value == value:
                return status
        return cls.UNKNOWN


def get_raw_debt_status(namespace_obj) -> Optional[str]:
    """Return the raw debt status annotation, or None when it is absent."""
    return get_annotations(namespace_obj).get(DEBT_STATUS_ANNOTATION)


def get_debt_status(namespace_obj) -> Optional[DebtStatus]:
    """
    Read the debt status of a namespace object.

    Args:
        namespace_obj: Kubernetes Namespace object

    Returns:
        The parsed DebtStatus, or None if the namespace carries no
        debt status annotation at all
    """
    raw = get_raw_debt_status(namespace_obj)
    if raw is None:
        return None
    return DebtStatus.parse(raw)
