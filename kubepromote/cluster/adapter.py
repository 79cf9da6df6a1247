"""Cluster adapter interface consumed by the deploy stages."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

# Per-call bound on Kubernetes API requests (seconds)
DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass
class WorkloadStatus:
    """Observed state of a Deployment. Owned by the cluster, read-only here."""

    name: str
    namespace: str
    generation: int = 0
    observed_generation: int = 0
    replicas: int = 0  # spec.replicas
    current_replicas: int = 0  # status.replicas, includes old-revision pods
    updated_replicas: int = 0
    available_replicas: int = 0
    ready_replicas: int = 0
    images: list[str] = field(default_factory=list)
    progress_deadline_exceeded: bool = False

    @property
    def converged(self) -> bool:
        """All replicas run the latest revision, are available, and no old pods remain."""
        return (
            self.observed_generation >= self.generation
            and self.updated_replicas == self.replicas
            and self.available_replicas == self.replicas
            and self.current_replicas == self.replicas
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "images": list(self.images),
            "replicas": self.replicas,
            "current_replicas": self.current_replicas,
            "updated_replicas": self.updated_replicas,
            "available_replicas": self.available_replicas,
            "ready_replicas": self.ready_replicas,
            "converged": self.converged,
        }


class ClusterAdapter(ABC):
    """Query and mutation operations against one cluster.

    Every call raises ClusterApiError on failure, or its subclass
    TransientClusterError when the API error is worth retrying.
    await_rollout raises RolloutTimeout when convergence is not observed.
    """

    # query

    @abstractmethod
    async def exists(self, name: str, namespace: str) -> bool:
        ...

    @abstractmethod
    async def get_status(self, name: str, namespace: str) -> WorkloadStatus | None:
        """Current status, or None if the Deployment does not exist."""
        ...

    @abstractmethod
    async def count_running_pods(self, name: str, namespace: str) -> int:
        """Pods matching the Deployment's selector in phase Running."""
        ...

    # mutation

    @abstractmethod
    async def create(self, name: str, namespace: str, image: str, replicas: int, container_port: int | None = None) -> None:
        ...

    @abstractmethod
    async def expose_endpoint(self, name: str, namespace: str, port: int, target_port: int | None = None) -> None:
        """Create a ClusterIP Service in front of the Deployment."""
        ...

    @abstractmethod
    async def update_image(self, name: str, namespace: str, image: str) -> None:
        ...

    @abstractmethod
    async def scale(self, name: str, namespace: str, replicas: int) -> None:
        ...

    @abstractmethod
    async def await_rollout(self, name: str, namespace: str, timeout: float) -> None:
        """Block until the rollout converges; raise RolloutTimeout after *timeout* seconds."""
        ...
