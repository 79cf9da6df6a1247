"""Dry-run adapter: logs every cluster call and simulates a converging cluster."""

import logging

from kubepromote.cluster.adapter import ClusterAdapter, WorkloadStatus

logger = logging.getLogger(__name__)


class DryRunCluster(ClusterAdapter):
    """In-memory stand-in for a cluster, used by --dry-run.

    Starts with the workload absent unless *assume_exists* is set. Every
    mutation is logged as a `[dry-run]` line and applied to the simulated
    state, so the rest of the run behaves as it would on a healthy cluster.
    """

    def __init__(self, assume_exists=False, existing_image="<current>", existing_replicas=1):
        self._workloads: dict[tuple[str, str], WorkloadStatus] = {}
        self._assume_exists = assume_exists
        self._existing_image = existing_image
        self._existing_replicas = existing_replicas

    def _get(self, name, namespace):
        key = (namespace, name)
        if key not in self._workloads and self._assume_exists:
            self._workloads[key] = self._converged(name, namespace, [self._existing_image], self._existing_replicas)
        return self._workloads.get(key)

    @staticmethod
    def _converged(name, namespace, images, replicas):
        return WorkloadStatus(
            name=name,
            namespace=namespace,
            generation=1,
            observed_generation=1,
            replicas=replicas,
            current_replicas=replicas,
            updated_replicas=replicas,
            available_replicas=replicas,
            ready_replicas=replicas,
            images=list(images),
        )

    async def exists(self, name, namespace):
        found = self._get(name, namespace) is not None
        logger.info(f"[dry-run] get deployment {namespace}/{name} -> {'found' if found else 'not found'}")
        return found

    async def get_status(self, name, namespace):
        return self._get(name, namespace)

    async def count_running_pods(self, name, namespace):
        status = self._get(name, namespace)
        count = status.replicas if status else 0
        logger.info(f"[dry-run] count running pods {namespace}/{name} -> {count}")
        return count

    async def create(self, name, namespace, image, replicas, container_port=None):
        logger.info(f"[dry-run] create deployment {namespace}/{name} image={image} replicas={replicas}")
        self._workloads[(namespace, name)] = self._converged(name, namespace, [image], replicas)

    async def expose_endpoint(self, name, namespace, port, target_port=None):
        logger.info(f"[dry-run] create service {namespace}/{name} type=ClusterIP port={port} targetPort={target_port or port}")

    async def update_image(self, name, namespace, image):
        logger.info(f"[dry-run] set image deployment/{name} -n {namespace} *={image}")
        status = self._get(name, namespace)
        if status is not None:
            status.images = [image for _ in status.images] or [image]

    async def scale(self, name, namespace, replicas):
        logger.info(f"[dry-run] scale deployment/{name} -n {namespace} --replicas={replicas}")
        status = self._get(name, namespace)
        if status is not None:
            self._workloads[(namespace, name)] = self._converged(name, namespace, status.images, replicas)

    async def await_rollout(self, name, namespace, timeout):
        logger.info(f"[dry-run] rollout status deployment/{name} -n {namespace} --timeout={timeout:g}s")
