"""
Command line entry point.

    clustershift migrate --origin-kubeconfig origin.yaml \\
        --target-kubeconfig target.yaml --networking submariner

This is the only place a failure becomes a non-zero exit status.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from clustershift.config import MigrationConfig, MongoCredentials
from clustershift.exceptions import ClusterShiftError
from clustershift.kube import Clusters, KubernetesCluster
from clustershift.mongo import MigrationDriver
from clustershift.networking import ToolIdentifier, get_networking_capability

logger = logging.getLogger("clustershift")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clustershift",
        description="Migrate live replicated databases between Kubernetes clusters.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    commands = parser.add_subparsers(dest="command", required=True)

    migrate = commands.add_parser("migrate", help="Migrate every discovered replica set.")
    migrate.add_argument("--origin-kubeconfig", required=True, help="Kubeconfig of the origin cluster.")
    migrate.add_argument("--target-kubeconfig", required=True, help="Kubeconfig of the target cluster.")
    migrate.add_argument("--origin-context", help="Context to use in the origin kubeconfig.")
    migrate.add_argument("--target-context", help="Context to use in the target kubeconfig.")
    migrate.add_argument(
        "--networking",
        required=True,
        choices=[tool.value for tool in ToolIdentifier],
        help="Cross-cluster networking fabric already installed in both clusters.",
    )
    migrate.add_argument("--poll-interval", type=float, help="Seconds between replica-set polls.")
    migrate.add_argument(
        "--secondary-timeout", type=float, help="Seconds a new member may take to become SECONDARY."
    )
    migrate.add_argument(
        "--election-timeout", type=float, help="Seconds to wait for a target member to become primary."
    )
    migrate.add_argument(
        "--settle-seconds", type=float, help="Pause after exporting services before using them."
    )
    migrate.add_argument("--client-namespace", help="Namespace of the worker pods.")
    migrate.add_argument(
        "--keep-client-pods", action="store_true", help="Leave the worker pods running afterwards."
    )
    migrate.add_argument("--no-tracing", action="store_true", help="Disable OpenTelemetry spans.")
    return parser


def config_from_args(args: argparse.Namespace) -> MigrationConfig:
    overrides = {
        "poll_interval": args.poll_interval,
        "secondary_timeout": args.secondary_timeout,
        "election_timeout": args.election_timeout,
        "networking_settle_seconds": args.settle_seconds,
        "client_namespace": args.client_namespace,
    }
    values = {key: value for key, value in overrides.items() if value is not None}
    values["cleanup_client_pods"] = not args.keep_client_pods
    return MigrationConfig.from_dict(values)


def run_migrate(args: argparse.Namespace, config: MigrationConfig) -> int:
    clusters = Clusters(
        origin=KubernetesCluster.from_kubeconfig("origin", args.origin_kubeconfig, args.origin_context),
        target=KubernetesCluster.from_kubeconfig("target", args.target_kubeconfig, args.target_context),
    )
    driver = MigrationDriver(
        clusters,
        get_networking_capability(args.networking),
        config,
        MongoCredentials.from_env(),
        enable_tracing=not args.no_tracing,
    )
    results = driver.run()
    for result in results:
        logger.info(
            "%s: %s in %.1fs, primary %s",
            result.workload,
            result.final_state.value,
            result.duration_seconds,
            result.primary_host,
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    try:
        return run_migrate(args, config)
    except ClusterShiftError as exc:
        logger.log(exc.severity.log_level, "%s", exc)
        logger.info("Suggested action: %s", exc.to_dict()["suggested_action"])
        return 1


if __name__ == "__main__":
    sys.exit(main())
