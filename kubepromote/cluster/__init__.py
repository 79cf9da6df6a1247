"""Cluster adapters: interface, Kubernetes API implementation, dry-run simulation."""

from kubepromote.cluster.adapter import DEFAULT_REQUEST_TIMEOUT, ClusterAdapter, WorkloadStatus
from kubepromote.cluster.dryrun import DryRunCluster

__all__ = [
    "DEFAULT_REQUEST_TIMEOUT",
    "ClusterAdapter",
    "DryRunCluster",
    "WorkloadStatus",
]
