"""Tests for the namespace watchdog."""

import threading
import time
from unittest.mock import MagicMock, patch

from kubernetes.client.rest import ApiException

from fakes import make_namespace
from debt_controller.controller import NamespaceDebtController


def _controller():
    reconciler = MagicMock()
    controller = NamespaceDebtController(v1=MagicMock(), reconciler=reconciler)
    return controller, reconciler


def test_status_change_triggers_reconcile():
    controller, reconciler = _controller()

    controller.handle_namespace_event("ADDED", make_namespace("tenant", "Normal"))
    controller.handle_namespace_event("MODIFIED", make_namespace("tenant", "SuspendRequested"))

    assert [c.args for c in reconciler.reconcile.call_args_list] == [("tenant",), ("tenant",)]


def test_unrelated_changes_are_ignored():
    controller, reconciler = _controller()

    controller.handle_namespace_event("ADDED", make_namespace("plain"))
    controller.handle_namespace_event("ADDED", make_namespace("tenant", "Normal"))
    controller.handle_namespace_event("MODIFIED", make_namespace("tenant", "Normal"))
    controller.handle_namespace_event("DELETED", make_namespace("tenant", "Normal"))

    reconciler.reconcile.assert_called_once_with("tenant")


def test_failure_is_retried_until_success():
    controller, reconciler = _controller()
    reconciler.reconcile.side_effect = [ApiException(status=500, reason="boom"), None]

    controller.handle_namespace_event("ADDED", make_namespace("tenant", "SuspendRequested"))
    assert controller.status_cache.get_failed() == ["tenant"]

    assert controller.retry_failed() == 0
    assert controller.status_cache.get_failed() == []
    assert reconciler.reconcile.call_count == 2


def test_retry_keeps_still_failing_namespaces():
    controller, reconciler = _controller()
    reconciler.reconcile.side_effect = ApiException(status=500, reason="boom")

    controller.reconcile_namespace("tenant")

    assert controller.retry_failed() == 1
    assert controller.status_cache.get_failed() == ["tenant"]


def test_watch_loop_dispatches_events():
    controller, reconciler = _controller()
    events = [
        {"type": "ADDED", "object": make_namespace("tenant", "ResumeRequested")},
        {"type": "MODIFIED", "object": make_namespace("tenant", "Normal")},
    ]

    def stream(*args, **kwargs):
        yield from events
        controller.stop()

    with patch("debt_controller.controller.watch.Watch") as watch_cls:
        watch_cls.return_value.stream.side_effect = stream
        controller.watch_namespaces()

    assert reconciler.reconcile.call_count == 2


def test_default_reconciler_uses_settings():
    controller = NamespaceDebtController(
        scheduler_name="parking-lot", recreate_timeout=3, dry_run=True, v1=MagicMock()
    )

    assert controller.reconciler.scheduler_name == "parking-lot"
    assert controller.reconciler.recreator.timeout_seconds == 3
    assert controller.reconciler.dry_run


def test_watch_and_retry_never_reconcile_same_namespace_together():
    controller, reconciler = _controller()
    active = []
    peak = []
    guard = threading.Lock()

    def slow_reconcile(name):
        with guard:
            active.append(name)
            peak.append(active.count(name))
        time.sleep(0.2)
        with guard:
            active.remove(name)

    controller.status_cache.mark_failed("tenant")
    controller.status_cache.observe("ADDED", "tenant", "Normal")
    reconciler.reconcile.side_effect = slow_reconcile

    retry = threading.Thread(target=controller.retry_failed)
    retry.start()
    time.sleep(0.05)
    controller.handle_namespace_event("MODIFIED", make_namespace("tenant", "SuspendRequested"))
    retry.join()

    assert reconciler.reconcile.call_count == 2
    assert max(peak) == 1
