"""Tests for the command line entry point."""

from unittest.mock import patch

import pytest

import run


def test_parser_defaults():
    args = run.build_parser().parse_args([])

    assert args.scheduler_name == "debt-scheduler"
    assert args.recreate_timeout == 10
    assert not args.dry_run
    assert not args.in_cluster


def test_parser_overrides():
    args = run.build_parser().parse_args(
        ["--scheduler-name", "parking-lot", "--recreate-timeout", "2.5", "--dry-run", "-v"]
    )

    assert args.scheduler_name == "parking-lot"
    assert args.recreate_timeout == 2.5
    assert args.dry_run
    assert args.verbose


def test_main_exits_when_config_fails():
    with patch.object(run.config, "load_kube_config", side_effect=Exception("no kubeconfig")), \
            patch("sys.argv", ["run.py"]):
        with pytest.raises(SystemExit) as excinfo:
            run.main()

    assert excinfo.value.code == 1


def test_main_runs_controller():
    with patch.object(run.config, "load_incluster_config"), \
            patch.object(run, "NamespaceDebtController") as controller_cls, \
            patch("sys.argv", ["run.py", "--in-cluster", "--scheduler-name", "parking-lot"]):
        run.main()

    controller_cls.assert_called_once_with(
        scheduler_name="parking-lot", recreate_timeout=10, dry_run=False
    )
    controller_cls.return_value.run.assert_called_once()
