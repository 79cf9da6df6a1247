"""Deploy library: context, stages, orchestration."""

from kubepromote.deploy.cleanup import CleanupHandler, remove_local_image, remove_workdir
from kubepromote.deploy.context import DeploymentContext
from kubepromote.deploy.errors import (
    CleanupFailure,
    ClusterApiError,
    ClusterQueryFailure,
    DeployError,
    ExposeFailure,
    MutationFailure,
    ReplicaShortfall,
    RolloutTimeout,
    TransientClusterError,
)
from kubepromote.deploy.orchestrate import run_deploy
from kubepromote.deploy.reconcile import CreateIntent, Reconciler, UpdateIntent
from kubepromote.deploy.result import DeployResult, RunState
from kubepromote.deploy.rollout import RolloutMonitor
from kubepromote.deploy.verify import VerificationGate

__all__ = [
    "CleanupFailure",
    "CleanupHandler",
    "ClusterApiError",
    "ClusterQueryFailure",
    "CreateIntent",
    "DeployError",
    "DeployResult",
    "DeploymentContext",
    "ExposeFailure",
    "MutationFailure",
    "Reconciler",
    "ReplicaShortfall",
    "RolloutMonitor",
    "RolloutTimeout",
    "RunState",
    "TransientClusterError",
    "UpdateIntent",
    "VerificationGate",
    "remove_local_image",
    "remove_workdir",
    "run_deploy",
]
