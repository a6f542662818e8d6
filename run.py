#!/usr/bin/env python3
"""
Namespace Debt Controller - Entry Point

Watches the debt status annotation on namespaces, suspends the workloads
of namespaces in arrears and resumes them once the debt is cleared.

Usage:
    python run.py [--scheduler-name NAME] [--recreate-timeout SECONDS]
                  [--dry-run] [--in-cluster] [--verbose]
"""

import argparse
import logging
import sys

from kubernetes import config

from debt_controller.config import DEBT_SCHEDULER_NAME, RECREATE_TIMEOUT_SECONDS
from debt_controller.controller import NamespaceDebtController

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Namespace Debt Controller - Suspend and resume workloads of namespaces in debt"
    )
    parser.add_argument(
        "--scheduler-name",
        default=DEBT_SCHEDULER_NAME,
        help=f"Reserved scheduler name for parked pods (default: {DEBT_SCHEDULER_NAME})"
    )
    parser.add_argument(
        "--recreate-timeout",
        type=float,
        default=RECREATE_TIMEOUT_SECONDS,
        help=f"Seconds to wait for a pod deletion to be confirmed (default: {RECREATE_TIMEOUT_SECONDS})"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run in dry-run mode (no changes made)"
    )
    parser.add_argument(
        "--in-cluster",
        action="store_true",
        help="Use in-cluster config (for running inside Kubernetes)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )
    return parser


def main():
    """Main entry point."""
    args = build_parser().parse_args()

    # Set log level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load Kubernetes configuration
    try:
        if args.in_cluster:
            config.load_incluster_config()
            logger.info("Loaded in-cluster configuration")
        else:
            config.load_kube_config()
            logger.info("Loaded kubeconfig from default location")
    except Exception as e:
        logger.error(f"Failed to load Kubernetes config: {e}")
        sys.exit(1)

    # Create and run controller
    controller = NamespaceDebtController(
        scheduler_name=args.scheduler_name,
        recreate_timeout=args.recreate_timeout,
        dry_run=args.dry_run
    )

    try:
        controller.run()
    except KeyboardInterrupt:
        controller.stop()
        logger.info("Controller stopped")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Controller error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
