"""Kubernetes API adapter built on the official `kubernetes` client.

The client is synchronous; every call runs in a worker thread via
asyncio.to_thread so the deploy run stays on one event loop. Calls are
still issued strictly one at a time.
"""

import asyncio
import logging

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from kubepromote.cluster import manifests
from kubepromote.cluster.adapter import DEFAULT_REQUEST_TIMEOUT, ClusterAdapter, WorkloadStatus
from kubepromote.deploy.errors import ClusterApiError, RolloutTimeout, TransientClusterError

logger = logging.getLogger(__name__)

# API statuses worth retrying: conflict, throttling, server-side errors
TRANSIENT_STATUSES = {409, 429, 500, 502, 503, 504}

DEFAULT_POLL_INTERVAL = 2.0


def load_kube_config(in_cluster=False, context=None):
    """Load cluster credentials from the service account or kubeconfig."""
    if in_cluster:
        config.load_incluster_config()
    elif context:
        config.load_kube_config(context=context)
    else:
        config.load_kube_config()


def _api_error(operation, exc):
    """Translate a client exception into ClusterApiError / TransientClusterError."""
    if isinstance(exc, ApiException):
        detail = f"{exc.status} {exc.reason}".strip()
        if exc.status in TRANSIENT_STATUSES:
            return TransientClusterError(operation, detail, status=exc.status)
        return ClusterApiError(operation, detail, status=exc.status)
    # Connection-level failures never reached the API server
    return TransientClusterError(operation, str(exc))


def status_from_deployment(deployment) -> WorkloadStatus:
    """Flatten a V1Deployment into a WorkloadStatus."""
    spec = deployment.spec
    status = deployment.status
    conditions = (status.conditions if status else None) or []
    deadline_exceeded = any(
        c.type == "Progressing" and c.reason == "ProgressDeadlineExceeded" for c in conditions
    )
    containers = spec.template.spec.containers or []
    return WorkloadStatus(
        name=deployment.metadata.name,
        namespace=deployment.metadata.namespace,
        generation=deployment.metadata.generation or 0,
        observed_generation=(status.observed_generation if status else None) or 0,
        replicas=spec.replicas if spec.replicas is not None else 1,
        current_replicas=(status.replicas if status else None) or 0,
        updated_replicas=(status.updated_replicas if status else None) or 0,
        available_replicas=(status.available_replicas if status else None) or 0,
        ready_replicas=(status.ready_replicas if status else None) or 0,
        images=[c.image for c in containers],
        progress_deadline_exceeded=deadline_exceeded,
    )


class KubeCluster(ClusterAdapter):
    """ClusterAdapter backed by the Kubernetes AppsV1/CoreV1 APIs.

    Every request carries request_timeout; a stalled API server surfaces as
    TransientClusterError once it elapses.
    """

    def __init__(
        self,
        apps_api=None,
        core_api=None,
        poll_interval=DEFAULT_POLL_INTERVAL,
        request_timeout=DEFAULT_REQUEST_TIMEOUT,
    ):
        self.apps = apps_api or client.AppsV1Api()
        self.core = core_api or client.CoreV1Api()
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout

    @classmethod
    def from_config(cls, in_cluster=False, context=None, **kwargs):
        load_kube_config(in_cluster=in_cluster, context=context)
        return cls(**kwargs)

    async def _call(self, operation, fn, *args, **kwargs):
        logger.debug(f"{operation}")
        try:
            return await asyncio.to_thread(fn, *args, _request_timeout=self.request_timeout, **kwargs)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _api_error(operation, e) from e

    async def _read(self, name, namespace):
        return await self._call(
            f"read deployment {namespace}/{name}",
            self.apps.read_namespaced_deployment,
            name=name,
            namespace=namespace,
        )

    # ── query ─────────────────────────────────────────────────────

    async def exists(self, name, namespace):
        try:
            await self._read(name, namespace)
        except ClusterApiError as e:
            if e.status == 404:
                return False
            raise
        return True

    async def get_status(self, name, namespace):
        try:
            deployment = await self._read(name, namespace)
        except ClusterApiError as e:
            if e.status == 404:
                return None
            raise
        return status_from_deployment(deployment)

    async def count_running_pods(self, name, namespace):
        deployment = await self._read(name, namespace)
        selector = manifests.label_selector(deployment)
        pods = await self._call(
            f"list pods {namespace} ({selector})",
            self.core.list_namespaced_pod,
            namespace=namespace,
            label_selector=selector,
        )
        return sum(1 for pod in pods.items if pod.status is not None and pod.status.phase == "Running")

    # ── mutation ──────────────────────────────────────────────────

    async def create(self, name, namespace, image, replicas, container_port=None):
        body = manifests.build_deployment(name, namespace, image, replicas, container_port=container_port)
        await self._call(
            f"create deployment {namespace}/{name}",
            self.apps.create_namespaced_deployment,
            namespace=namespace,
            body=body,
        )
        logger.info(f"Created deployment {namespace}/{name} ({image}, replicas={replicas})")

    async def expose_endpoint(self, name, namespace, port, target_port=None):
        body = manifests.build_service(name, namespace, port, target_port=target_port)
        await self._call(
            f"create service {namespace}/{name}",
            self.core.create_namespaced_service,
            namespace=namespace,
            body=body,
        )
        logger.info(f"Exposed {namespace}/{name} on ClusterIP port {port}")

    async def update_image(self, name, namespace, image):
        deployment = await self._read(name, namespace)
        await self._call(
            f"set image {namespace}/{name}",
            self.apps.patch_namespaced_deployment,
            name=name,
            namespace=namespace,
            body=manifests.image_patch(deployment, image),
        )
        logger.info(f"Set image of {namespace}/{name} to {image}")

    async def scale(self, name, namespace, replicas):
        await self._call(
            f"scale {namespace}/{name}",
            self.apps.patch_namespaced_deployment_scale,
            name=name,
            namespace=namespace,
            body=manifests.scale_patch(replicas),
        )
        logger.info(f"Scaled {namespace}/{name} to {replicas} replicas")

    # ── rollout ───────────────────────────────────────────────────

    async def await_rollout(self, name, namespace, timeout):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        last = None
        while True:
            status = await self.get_status(name, namespace)
            if status is None:
                raise ClusterApiError(f"rollout status {namespace}/{name}", "deployment not found", status=404)
            if status.converged:
                logger.info(f"Rollout of {namespace}/{name} complete: {status.updated_replicas}/{status.replicas} updated")
                return
            if status.progress_deadline_exceeded:
                raise RolloutTimeout(timeout, detail="progress deadline exceeded")

            progress = (status.updated_replicas, status.available_replicas, status.current_replicas)
            if progress != last:
                logger.info(
                    f"Waiting for rollout of {namespace}/{name}: "
                    f"{status.updated_replicas}/{status.replicas} updated, "
                    f"{status.available_replicas} available, "
                    f"{status.current_replicas} total"
                )
                last = progress

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise RolloutTimeout(timeout)
            await asyncio.sleep(min(self.poll_interval, remaining))
