"""Verification gate: one point-in-time sample of running pods after convergence."""

import logging

from kubepromote.cluster.adapter import ClusterAdapter
from kubepromote.deploy.context import DeploymentContext
from kubepromote.deploy.errors import ClusterApiError, ClusterQueryFailure, ReplicaShortfall

logger = logging.getLogger(__name__)


class VerificationGate:
    """Fails the run when fewer pods are Running than desired.

    Single sample, no retry: a pod still being scheduled right after
    convergence counts as missing. More pods than desired is accepted.
    """

    def __init__(self, cluster: ClusterAdapter):
        self.cluster = cluster

    async def verify(self, ctx: DeploymentContext) -> int:
        """Return the observed Running pod count, or raise ReplicaShortfall."""
        try:
            observed = await self.cluster.count_running_pods(ctx.workload_name, ctx.namespace)
        except ClusterApiError as e:
            raise ClusterQueryFailure("count running pods", e.detail) from e

        logger.info(f"Running pods: {observed} (desired {ctx.desired_replicas})")
        if observed < ctx.desired_replicas:
            raise ReplicaShortfall(desired=ctx.desired_replicas, observed=observed)
        return observed
