"""Shared pytest fixtures for all test modules."""

import asyncio
import os
import subprocess
import sys

import pytest
import yaml

from kubepromote.cluster.adapter import ClusterAdapter, WorkloadStatus
from kubepromote.deploy import DeploymentContext

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def run_cli(project_root):
    """Return a callable that invokes the kubepromote CLI as a subprocess."""

    def _run(*args, env=None):
        full_env = {**os.environ, **(env or {})}
        result = subprocess.run(
            [sys.executable, "-m", "kubepromote.kubepromote", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            env=full_env,
        )
        return result.returncode, result.stdout, result.stderr

    return _run


# ── Unit-test fixtures ──────────────────────────────────────────────


class FakeCluster(ClusterAdapter):
    """In-memory cluster with call recording and failure injection.

    failures maps an operation name to an exception, or to a list of
    exceptions raised one per call (then the call succeeds).
    """

    def __init__(self):
        self.workloads: dict[tuple[str, str], dict] = {}
        self.services: set[tuple[str, str]] = set()
        self.calls: list[str] = []
        self.failures: dict[str, object] = {}
        self.running_pods: int | None = None
        self.rollout_hangs = False

    def _record(self, op):
        self.calls.append(op)
        failure = self.failures.get(op)
        if isinstance(failure, list):
            if failure:
                raise failure.pop(0)
        elif failure is not None:
            raise failure

    def add_workload(self, name, namespace="default", image="registry.example.com/app:old", replicas=1):
        self.workloads[(namespace, name)] = {"image": image, "replicas": replicas}

    async def exists(self, name, namespace):
        self._record("exists")
        return (namespace, name) in self.workloads

    async def get_status(self, name, namespace):
        self._record("get_status")
        w = self.workloads.get((namespace, name))
        if w is None:
            return None
        n = w["replicas"]
        return WorkloadStatus(
            name=name,
            namespace=namespace,
            generation=1,
            observed_generation=1,
            replicas=n,
            current_replicas=n,
            updated_replicas=n,
            available_replicas=n,
            ready_replicas=n,
            images=[w["image"]],
        )

    async def count_running_pods(self, name, namespace):
        self._record("count_running_pods")
        if self.running_pods is not None:
            return self.running_pods
        w = self.workloads.get((namespace, name))
        return w["replicas"] if w else 0

    async def create(self, name, namespace, image, replicas, container_port=None):
        self._record("create")
        self.workloads[(namespace, name)] = {"image": image, "replicas": replicas}

    async def expose_endpoint(self, name, namespace, port, target_port=None):
        self._record("expose_endpoint")
        self.services.add((namespace, name))

    async def update_image(self, name, namespace, image):
        self._record("update_image")
        self.workloads[(namespace, name)]["image"] = image

    async def scale(self, name, namespace, replicas):
        self._record("scale")
        self.workloads[(namespace, name)]["replicas"] = replicas

    async def await_rollout(self, name, namespace, timeout):
        self._record("await_rollout")
        if self.rollout_hangs:
            await asyncio.sleep(3600)


@pytest.fixture
def fake_cluster():
    """Empty FakeCluster; use add_workload() to pre-create a Deployment."""
    return FakeCluster()


@pytest.fixture
def make_context():
    """Return a factory for DeploymentContext with test defaults."""

    def _make(**overrides):
        values = {
            "workload_name": "web",
            "image_reference": "registry.example.com/web:abc123",
            "namespace": "default",
            "desired_replicas": 2,
            "rollout_timeout": 5.0,
            "environment_label": "staging",
            "branch": "main",
            "commit": "abc123def4567890",
        }
        values.update(overrides)
        return DeploymentContext(**values)

    return _make


@pytest.fixture
def tmp_config_file(tmp_path):
    """Write a sample kubepromote.yaml with staging/prod overlays; return its path."""
    config = {
        "name": "web",
        "namespace": "apps",
        "replicas": 2,
        "rollout_timeout": 120,
        "service": {"port": 80, "target_port": 8080},
        "update": {"attempts": 3, "backoff": 0},
        "environments": {
            "staging": {"namespace": "staging", "replicas": 1},
            "prod": {
                "namespace": "prod",
                "replicas": 4,
                "rollout_timeout": 600,
                "service": {"target_port": 9000},
            },
        },
    }
    path = tmp_path / "kubepromote.yaml"
    with open(path, "w") as f:
        yaml.dump(config, f)
    return str(path)
