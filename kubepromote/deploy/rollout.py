"""Rollout monitor: the single blocking wait of a deploy run."""

import asyncio
import logging

from kubepromote.cluster.adapter import ClusterAdapter
from kubepromote.deploy.context import DeploymentContext
from kubepromote.deploy.errors import ClusterApiError, ClusterQueryFailure, RolloutTimeout

logger = logging.getLogger(__name__)


class RolloutMonitor:
    """Waits for the workload to converge, bounded by the context's rollout_timeout.

    The bound is enforced here as well as in the adapter, so an adapter
    that never returns still ends the wait on time. No retry.
    """

    def __init__(self, cluster: ClusterAdapter):
        self.cluster = cluster

    async def wait(self, ctx: DeploymentContext) -> None:
        timeout = ctx.rollout_timeout
        logger.info(f"Waiting up to {timeout:g}s for rollout of {ctx.namespace}/{ctx.workload_name}...")
        try:
            await asyncio.wait_for(
                self.cluster.await_rollout(ctx.workload_name, ctx.namespace, timeout),
                timeout=timeout,
            )
        except TimeoutError as e:
            raise RolloutTimeout(timeout) from e
        except ClusterApiError as e:
            raise ClusterQueryFailure("rollout status", e.detail) from e
        logger.info("Rollout converged.")
