"""Deploy command: promote an image to a Kubernetes Deployment."""

import asyncio
import logging
import os
import sys

from kubepromote.cluster import DEFAULT_REQUEST_TIMEOUT, DryRunCluster
from kubepromote.config import DEFAULT_CONFIG_FILE, load_config
from kubepromote.deploy import (
    CleanupHandler,
    ClusterApiError,
    DeploymentContext,
    Reconciler,
    remove_local_image,
    remove_workdir,
    run_deploy,
)
from kubepromote.redact import add_secret_env_vars
from kubepromote.report import log_report, notify_webhook, write_result_file

logger = logging.getLogger(__name__)


def build_context(args, config) -> DeploymentContext:
    """Merge CLI flags over the loaded config. CLI wins when a flag is given."""
    name = args.name or config.name
    if not name:
        raise ValueError("workload name is required (--name or 'name' in the config file)")

    def pick(flag, fallback):
        return fallback if flag is None else flag

    return DeploymentContext(
        workload_name=name,
        image_reference=args.image,
        namespace=pick(args.namespace, config.namespace),
        desired_replicas=pick(args.replicas, config.replicas),
        rollout_timeout=pick(args.timeout, config.rollout_timeout),
        environment_label=config.environment or "",
        branch=pick(args.branch, os.environ.get("GIT_BRANCH", "")),
        commit=pick(args.commit, os.environ.get("GIT_COMMIT", "")),
        service_port=pick(args.port, config.service.port),
        container_port=pick(args.target_port, config.service.target_port),
    )


def build_cleanup(args, config, ctx) -> CleanupHandler:
    cleanup = CleanupHandler()
    if config.cleanup.remove_image and not args.keep_image:
        cleanup.add(f"remove local image {ctx.image_reference}", remove_local_image(ctx.image_reference, dry_run=args.dry_run))
    workdir = args.workdir or config.cleanup.workdir
    if workdir:
        cleanup.add(f"remove workdir {workdir}", remove_workdir(workdir, dry_run=args.dry_run))
    return cleanup


def make_cluster(args, request_timeout=DEFAULT_REQUEST_TIMEOUT):
    """DryRunCluster for --dry-run, otherwise a KubeCluster from kubeconfig / service account.

    Raises ClusterApiError if cluster credentials cannot be loaded.
    """
    if args.dry_run:
        return DryRunCluster(assume_exists=args.assume_exists)

    from kubernetes.config import ConfigException

    from kubepromote.cluster.kube import KubeCluster

    try:
        return KubeCluster.from_config(in_cluster=args.in_cluster, context=args.kube_context, request_timeout=request_timeout)
    except ConfigException as e:
        raise ClusterApiError("load cluster credentials", str(e)) from e


async def _deploy(ctx, cluster, cleanup, reconciler, config, args):
    result = await run_deploy(ctx, cluster, cleanup=cleanup, reconciler=reconciler)
    log_report(result)

    if args.result_file:
        write_result_file(result, args.result_file)

    notify_url = args.notify_url or config.notify.url
    if notify_url:
        await notify_webhook(result, notify_url, timeout=config.notify.timeout, dry_run=args.dry_run)

    return result


def handle_deploy(args):
    """Handle the deploy command."""
    try:
        config = load_config(args.config, environment=args.environment)
        ctx = build_context(args, config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    add_secret_env_vars(config.redact_env)
    cleanup = build_cleanup(args, config, ctx)
    try:
        cluster = make_cluster(args, request_timeout=config.request_timeout)
    except ClusterApiError as e:
        logger.error(f"Error: {e}")
        asyncio.run(cleanup.run())
        sys.exit(1)

    reconciler = Reconciler(cluster, update_attempts=config.update.attempts, update_backoff=config.update.backoff)
    result = asyncio.run(_deploy(ctx, cluster, cleanup, reconciler, config, args))
    if not result.succeeded:
        sys.exit(1)


def register_deploy_command(subparsers):
    """Register the deploy subcommand."""
    parser = subparsers.add_parser("deploy", help="Create or update a Deployment with a new image and verify the rollout")
    parser.add_argument("--image", required=True, help="Fully qualified image reference (registry/name:tag), already pushed")
    parser.add_argument("--name", default=None, help="Deployment name (default: 'name' from the config file)")
    parser.add_argument("--config", default=None, help=f"Config file, or a directory containing {DEFAULT_CONFIG_FILE}")
    parser.add_argument("--environment", default=None, help="Environment overlay from the config file (e.g. staging)")
    parser.add_argument("--namespace", default=None, help="Target namespace (must exist)")
    parser.add_argument("--replicas", type=int, default=None, help="Desired running replicas")
    parser.add_argument("--timeout", type=float, default=None, help="Rollout timeout in seconds")
    parser.add_argument("--port", type=int, default=None, help="Service port exposed when the Deployment is created")
    parser.add_argument("--target-port", type=int, default=None, help="Container port behind the service")
    parser.add_argument("--branch", default=None, help="Source branch for the report (default: $GIT_BRANCH)")
    parser.add_argument("--commit", default=None, help="Source commit for the report (default: $GIT_COMMIT)")
    parser.add_argument("--kube-context", default=None, help="kubeconfig context to use")
    parser.add_argument("--in-cluster", action="store_true", help="Use the pod's service account instead of kubeconfig")
    parser.add_argument("--keep-image", action="store_true", help="Do not remove the local image after the run")
    parser.add_argument("--workdir", default=None, help="Scratch directory to remove after the run")
    parser.add_argument("--result-file", default=None, help="Write the JSON result to this path")
    parser.add_argument("--notify-url", default=None, help="POST the JSON result to this webhook")
    parser.add_argument("--dry-run", action="store_true", help="Log cluster calls without executing them")
    parser.add_argument("--assume-exists", action="store_true", help="With --dry-run, simulate an existing Deployment")
    parser.set_defaults(func=handle_deploy)
