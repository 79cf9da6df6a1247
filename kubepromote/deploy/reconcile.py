"""Reconciler: decide create-vs-update once, then apply exactly that path."""

import asyncio
import logging
from dataclasses import dataclass, field

from kubepromote.cluster.adapter import ClusterAdapter
from kubepromote.deploy.context import DeploymentContext
from kubepromote.deploy.errors import (
    ClusterApiError,
    ClusterQueryFailure,
    ExposeFailure,
    MutationFailure,
    TransientClusterError,
)

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_ATTEMPTS = 3
DEFAULT_UPDATE_BACKOFF = 2.0


@dataclass(frozen=True)
class CreateIntent:
    """Workload absent at decision time: create it and expose an endpoint."""

    kind = "create"


@dataclass(frozen=True)
class UpdateIntent:
    """Workload present at decision time: set image and scale as one step."""

    kind = "update"


@dataclass
class ReconcileOutcome:
    intent: CreateIntent | UpdateIntent
    attempts: int = 1
    warnings: list = field(default_factory=list)


class Reconciler:
    """Applies a DeploymentContext to the cluster through a ClusterAdapter.

    The existence check runs once; the resulting intent is never
    re-evaluated. If the workload appears or disappears between the check
    and the mutation, the mutation fails and the run fails with it.
    """

    def __init__(self, cluster: ClusterAdapter, update_attempts=DEFAULT_UPDATE_ATTEMPTS, update_backoff=DEFAULT_UPDATE_BACKOFF):
        self.cluster = cluster
        self.update_attempts = max(1, int(update_attempts))
        self.update_backoff = max(0.0, float(update_backoff))

    async def decide(self, ctx: DeploymentContext):
        """Resolve the tagged intent for this run."""
        try:
            found = await self.cluster.exists(ctx.workload_name, ctx.namespace)
        except ClusterApiError as e:
            raise ClusterQueryFailure("exists", e.detail) from e
        return UpdateIntent() if found else CreateIntent()

    async def reconcile(self, ctx: DeploymentContext) -> ReconcileOutcome:
        intent = await self.decide(ctx)
        if isinstance(intent, UpdateIntent):
            logger.info(f"Deployment {ctx.namespace}/{ctx.workload_name} exists, updating")
            attempts = await self._update(ctx)
            return ReconcileOutcome(intent=intent, attempts=attempts)

        logger.info(f"Deployment {ctx.namespace}/{ctx.workload_name} not found, creating")
        warnings = await self._create(ctx)
        return ReconcileOutcome(intent=intent, warnings=warnings)

    async def _create(self, ctx):
        try:
            await self.cluster.create(
                ctx.workload_name,
                ctx.namespace,
                ctx.image_reference,
                ctx.desired_replicas,
                container_port=ctx.container_port,
            )
        except ClusterApiError as e:
            raise MutationFailure("create", e.detail) from e

        warnings = []
        try:
            await self.cluster.expose_endpoint(
                ctx.workload_name,
                ctx.namespace,
                ctx.service_port,
                target_port=ctx.container_port,
            )
        except ClusterApiError as e:
            # An existing Service or a headless workload is fine
            failure = ExposeFailure(str(e))
            logger.warning(f"WARNING: {failure} (continuing)")
            warnings.append(failure)
        return warnings

    async def _update(self, ctx):
        """Set image and scale; retried together on transient errors. Returns attempts used."""
        for attempt in range(1, self.update_attempts + 1):
            try:
                await self.cluster.update_image(ctx.workload_name, ctx.namespace, ctx.image_reference)
                await self.cluster.scale(ctx.workload_name, ctx.namespace, ctx.desired_replicas)
                return attempt
            except TransientClusterError as e:
                if attempt == self.update_attempts:
                    raise MutationFailure(e.operation, f"{e.detail} (after {attempt} attempts)") from e
                logger.warning(f"Transient error during update ({e}), retrying in {self.update_backoff:g}s ({attempt}/{self.update_attempts})")
                await asyncio.sleep(self.update_backoff)
            except ClusterApiError as e:
                raise MutationFailure(e.operation, e.detail) from e
