"""Deployment context: immutable parameters for one run."""

import re
from dataclasses import dataclass

# Kubernetes object names (DNS-1123 label)
_NAME_RE = re.compile(r"^[a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?$")

DEFAULT_SERVICE_PORT = 80
DEFAULT_CONTAINER_PORT = 8080


@dataclass(frozen=True)
class DeploymentContext:
    """All parameters for a single promotion. Built once, passed to every stage.

    environment_label, branch and commit are carried for reporting only.
    """

    workload_name: str
    image_reference: str
    namespace: str = "default"
    desired_replicas: int = 1
    rollout_timeout: float = 300.0
    environment_label: str = ""
    branch: str = ""
    commit: str = ""
    service_port: int = DEFAULT_SERVICE_PORT
    container_port: int = DEFAULT_CONTAINER_PORT

    def __post_init__(self):
        if not _NAME_RE.match(self.workload_name or ""):
            raise ValueError(
                f"Invalid workload name '{self.workload_name}': use lowercase letters, digits and '-' (max 63 chars)"
            )
        if not _NAME_RE.match(self.namespace or ""):
            raise ValueError(f"Invalid namespace '{self.namespace}'")
        if not self.image_reference or not self.image_reference.strip():
            raise ValueError("image_reference must not be empty")
        if isinstance(self.desired_replicas, bool) or not isinstance(self.desired_replicas, int):
            raise ValueError(f"desired_replicas must be an integer, got {self.desired_replicas!r}")
        if self.desired_replicas < 1:
            raise ValueError(f"desired_replicas must be positive, got {self.desired_replicas}")
        if self.rollout_timeout <= 0:
            raise ValueError(f"rollout_timeout must be positive, got {self.rollout_timeout}")
        for label, port in (("service_port", self.service_port), ("container_port", self.container_port)):
            if not 1 <= port <= 65535:
                raise ValueError(f"{label} must be between 1 and 65535, got {port}")

    def metadata(self) -> dict:
        """Reporting fields carried through the run."""
        return {
            "workload": self.workload_name,
            "namespace": self.namespace,
            "image": self.image_reference,
            "replicas": self.desired_replicas,
            "environment": self.environment_label,
            "branch": self.branch,
            "commit": self.commit,
        }
