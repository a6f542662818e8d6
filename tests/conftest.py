import pytest

from fakes import FakeCoreV1, make_namespace, make_pod
from debt_controller.config import SUSPEND_DEBT_STATUS
from debt_controller.reconciler import NamespaceReconciler
from debt_controller.recreate import PodRecreator


@pytest.fixture
def cluster() -> FakeCoreV1:
    """An empty in-memory cluster."""
    return FakeCoreV1()


@pytest.fixture
def tenant(cluster: FakeCoreV1) -> FakeCoreV1:
    """A namespace with one unmanaged pod and one managed pod."""
    cluster.add_namespace(make_namespace("tenant", SUSPEND_DEBT_STATUS))
    cluster.add_pod(make_pod("orphan"))
    cluster.add_pod(make_pod("web-abc12", owner="web-6d4f"))
    return cluster


@pytest.fixture
def reconciler(cluster: FakeCoreV1) -> NamespaceReconciler:
    recreator = PodRecreator(cluster, timeout_seconds=10, watch_factory=cluster.watch_factory)
    return NamespaceReconciler(cluster, recreator=recreator)
