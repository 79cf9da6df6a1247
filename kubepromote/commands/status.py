"""Status command: read-only view of a Deployment."""

import asyncio
import json
import logging
import sys

from kubepromote.commands.deploy import make_cluster
from kubepromote.deploy import ClusterApiError

logger = logging.getLogger(__name__)


async def _status(cluster, name, namespace):
    status = await cluster.get_status(name, namespace)
    if status is None:
        return {"name": name, "namespace": namespace, "exists": False}
    running = await cluster.count_running_pods(name, namespace)
    return {"exists": True, **status.to_dict(), "running_pods": running}


def handle_status(args):
    """Handle the status command."""
    try:
        cluster = make_cluster(args)
        info = asyncio.run(_status(cluster, args.name, args.namespace))
    except ClusterApiError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    if args.json:
        logger.info(json.dumps(info, indent=2, sort_keys=True))
        return

    if not info["exists"]:
        logger.info(f"Deployment {args.namespace}/{args.name} not found")
        return
    logger.info(f"Deployment: {args.namespace}/{args.name}")
    logger.info(f"Images: {', '.join(info['images'])}")
    logger.info(
        f"Replicas: {info['replicas']} desired, {info['updated_replicas']} updated, "
        f"{info['available_replicas']} available, {info['current_replicas']} total"
    )
    logger.info(f"Running pods: {info['running_pods']}")
    logger.info(f"Converged: {'yes' if info['converged'] else 'no'}")


def register_status_command(subparsers):
    """Register the status subcommand."""
    parser = subparsers.add_parser("status", help="Show a Deployment's image, replicas and running pods")
    parser.add_argument("--name", required=True, help="Deployment name")
    parser.add_argument("--namespace", default="default", help="Namespace (default: default)")
    parser.add_argument("--kube-context", default=None, help="kubeconfig context to use")
    parser.add_argument("--in-cluster", action="store_true", help="Use the pod's service account instead of kubeconfig")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    parser.add_argument("--dry-run", action="store_true", help="Query a simulated cluster")
    parser.add_argument("--assume-exists", action="store_true", help="With --dry-run, simulate an existing Deployment")
    parser.set_defaults(func=handle_status)
