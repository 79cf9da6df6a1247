"""Deploy orchestration: reconcile -> rollout -> verify, cleanup always."""

import logging

from kubepromote.cluster.adapter import ClusterAdapter
from kubepromote.deploy.cleanup import CleanupHandler
from kubepromote.deploy.context import DeploymentContext
from kubepromote.deploy.errors import DeployError
from kubepromote.deploy.reconcile import Reconciler
from kubepromote.deploy.result import DeployResult, RunState
from kubepromote.deploy.rollout import RolloutMonitor
from kubepromote.deploy.verify import VerificationGate

logger = logging.getLogger(__name__)


async def run_deploy(
    ctx: DeploymentContext,
    cluster: ClusterAdapter,
    cleanup: CleanupHandler | None = None,
    reconciler: Reconciler | None = None,
    monitor: RolloutMonitor | None = None,
    gate: VerificationGate | None = None,
) -> DeployResult:
    """Run one promotion of ctx.image_reference to ctx.workload_name.

    Stages run strictly in order; the first DeployError ends the chain and
    is recorded on the result. Cleanup runs exactly once afterwards,
    whatever happened. Exceptions outside the DeployError taxonomy still
    propagate, after cleanup.

    Args:
        ctx: immutable parameters for this run
        cluster: query/mutation adapter
        cleanup: cleanup actions to run at the end (default: none)
        reconciler, monitor, gate: stage overrides, built from *cluster* if omitted
    """
    cleanup = cleanup or CleanupHandler()
    reconciler = reconciler or Reconciler(cluster)
    monitor = monitor or RolloutMonitor(cluster)
    gate = gate or VerificationGate(cluster)

    result = DeployResult(context=ctx)
    logger.info(f"Deploying {ctx.image_reference} to {ctx.namespace}/{ctx.workload_name} (replicas={ctx.desired_replicas})")
    try:
        # Step 1: create or update
        result.transition(RunState.DECIDING)
        outcome = await reconciler.reconcile(ctx)
        result.intent = outcome.intent.kind
        result.warnings.extend(outcome.warnings)

        # Step 2: wait for convergence
        result.transition(RunState.AWAITING_CONVERGENCE)
        await monitor.wait(ctx)

        # Step 3: verify running replicas
        result.transition(RunState.VERIFYING)
        result.observed_replicas = await gate.verify(ctx)

        result.transition(RunState.SUCCEEDED)
    except DeployError as e:
        logger.error(f"Deploy failed during {result.state.value}: {e}")
        result.error = e
        result.transition(RunState.FAILED)
    finally:
        cleanup_failures = await cleanup.run()
        result.warnings.extend(cleanup_failures)
        result.cleanup_ran = True

    return result
