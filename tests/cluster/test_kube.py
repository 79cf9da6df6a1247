"""Unit tests for KubeCluster against mocked AppsV1/CoreV1 APIs."""

import asyncio
from unittest.mock import MagicMock

import pytest
import urllib3
from kubernetes.client import V1DeploymentCondition, V1DeploymentStatus, V1Pod, V1PodList, V1PodStatus
from kubernetes.client.rest import ApiException

from kubepromote.cluster import manifests
from kubepromote.cluster.kube import KubeCluster, status_from_deployment
from kubepromote.deploy import ClusterApiError, RolloutTimeout, TransientClusterError


def _deployment(replicas=2, updated=2, available=2, current=2, generation=1, observed=1, conditions=None):
    dep = manifests.build_deployment("web", "apps", "img:1", replicas)
    dep.metadata.generation = generation
    dep.status = V1DeploymentStatus(
        observed_generation=observed,
        replicas=current,
        updated_replicas=updated,
        available_replicas=available,
        ready_replicas=available,
        conditions=conditions,
    )
    return dep


def _pod(phase):
    return V1Pod(status=V1PodStatus(phase=phase))


@pytest.fixture
def apis():
    return MagicMock(), MagicMock()


@pytest.fixture
def kube(apis):
    apps, core = apis
    return KubeCluster(apps_api=apps, core_api=core, poll_interval=0.01)


# ── status ──────────────────────────────────────────────────────


def test_status_from_deployment():
    status = status_from_deployment(_deployment(replicas=3, updated=1, available=2, current=4))

    assert status.name == "web"
    assert status.namespace == "apps"
    assert status.images == ["img:1"]
    assert status.replicas == 3
    assert status.current_replicas == 4
    assert not status.converged


def test_status_converged():
    assert status_from_deployment(_deployment()).converged


def test_status_stale_generation_not_converged():
    assert not status_from_deployment(_deployment(generation=2, observed=1)).converged


def test_status_without_status_block():
    dep = manifests.build_deployment("web", "apps", "img:1", 1)
    status = status_from_deployment(dep)
    assert status.available_replicas == 0
    assert not status.converged


# ── query ───────────────────────────────────────────────────────


def test_exists_true(kube, apis):
    apis[0].read_namespaced_deployment.return_value = _deployment()
    assert asyncio.run(kube.exists("web", "apps")) is True
    apis[0].read_namespaced_deployment.assert_called_once_with(name="web", namespace="apps", _request_timeout=30.0)


def test_exists_false_on_404(kube, apis):
    apis[0].read_namespaced_deployment.side_effect = ApiException(status=404, reason="Not Found")
    assert asyncio.run(kube.exists("web", "apps")) is False


def test_exists_raises_on_forbidden(kube, apis):
    apis[0].read_namespaced_deployment.side_effect = ApiException(status=403, reason="Forbidden")
    with pytest.raises(ClusterApiError) as exc_info:
        asyncio.run(kube.exists("web", "apps"))
    assert not isinstance(exc_info.value, TransientClusterError)
    assert exc_info.value.status == 403


def test_get_status_none_on_404(kube, apis):
    apis[0].read_namespaced_deployment.side_effect = ApiException(status=404, reason="Not Found")
    assert asyncio.run(kube.get_status("web", "apps")) is None


def test_count_running_pods(kube, apis):
    apps, core = apis
    apps.read_namespaced_deployment.return_value = _deployment()
    core.list_namespaced_pod.return_value = V1PodList(
        items=[_pod("Running"), _pod("Pending"), _pod("Running"), _pod("Failed")]
    )

    assert asyncio.run(kube.count_running_pods("web", "apps")) == 2
    core.list_namespaced_pod.assert_called_once_with(
        namespace="apps", label_selector="app=web", _request_timeout=30.0
    )


# ── mutation ────────────────────────────────────────────────────


def test_create_posts_deployment(kube, apis):
    asyncio.run(kube.create("web", "apps", "img:2", 3, container_port=8080))

    kwargs = apis[0].create_namespaced_deployment.call_args.kwargs
    assert kwargs["namespace"] == "apps"
    assert kwargs["body"].spec.replicas == 3
    assert kwargs["body"].spec.template.spec.containers[0].image == "img:2"


def test_expose_endpoint_posts_service(kube, apis):
    asyncio.run(kube.expose_endpoint("web", "apps", 80, target_port=8080))

    body = apis[1].create_namespaced_service.call_args.kwargs["body"]
    assert body.metadata.name == "web"
    assert body.spec.ports[0].port == 80


def test_update_image_patches_containers(kube, apis):
    apps, _ = apis
    apps.read_namespaced_deployment.return_value = _deployment()

    asyncio.run(kube.update_image("web", "apps", "img:2"))

    body = apps.patch_namespaced_deployment.call_args.kwargs["body"]
    assert body["spec"]["template"]["spec"]["containers"] == [{"name": "web", "image": "img:2"}]


def test_scale_patches_scale_subresource(kube, apis):
    asyncio.run(kube.scale("web", "apps", 5))
    apis[0].patch_namespaced_deployment_scale.assert_called_once_with(
        name="web", namespace="apps", body={"spec": {"replicas": 5}}, _request_timeout=30.0
    )


@pytest.mark.parametrize("status", [409, 429, 500, 503])
def test_retryable_statuses_are_transient(kube, apis, status):
    apis[0].patch_namespaced_deployment_scale.side_effect = ApiException(status=status, reason="x")
    with pytest.raises(TransientClusterError):
        asyncio.run(kube.scale("web", "apps", 2))


def test_connection_error_is_transient(kube, apis):
    apis[0].create_namespaced_deployment.side_effect = urllib3.exceptions.MaxRetryError(None, "/apis", "refused")
    with pytest.raises(TransientClusterError):
        asyncio.run(kube.create("web", "apps", "img:1", 1))


def test_unprocessable_is_not_transient(kube, apis):
    apis[0].create_namespaced_deployment.side_effect = ApiException(status=422, reason="Unprocessable Entity")
    with pytest.raises(ClusterApiError) as exc_info:
        asyncio.run(kube.create("web", "apps", "img:1", 1))
    assert not isinstance(exc_info.value, TransientClusterError)
    assert exc_info.value.detail == "422 Unprocessable Entity"


# ── rollout ─────────────────────────────────────────────────────


def test_await_rollout_polls_until_converged(kube, apis):
    apis[0].read_namespaced_deployment.side_effect = [
        _deployment(updated=0, available=1, current=3),
        _deployment(updated=1, available=1, current=3),
        _deployment(),
    ]
    asyncio.run(kube.await_rollout("web", "apps", timeout=5))
    assert apis[0].read_namespaced_deployment.call_count == 3


def test_await_rollout_times_out(kube, apis):
    apis[0].read_namespaced_deployment.return_value = _deployment(available=1)
    with pytest.raises(RolloutTimeout):
        asyncio.run(kube.await_rollout("web", "apps", timeout=0.05))


def test_await_rollout_stops_on_progress_deadline(kube, apis):
    condition = V1DeploymentCondition(type="Progressing", status="False", reason="ProgressDeadlineExceeded")
    apis[0].read_namespaced_deployment.return_value = _deployment(available=0, conditions=[condition])

    with pytest.raises(RolloutTimeout, match="progress deadline exceeded"):
        asyncio.run(kube.await_rollout("web", "apps", timeout=5))
    assert apis[0].read_namespaced_deployment.call_count == 1


def test_await_rollout_deployment_deleted(kube, apis):
    apis[0].read_namespaced_deployment.side_effect = ApiException(status=404, reason="Not Found")
    with pytest.raises(ClusterApiError) as exc_info:
        asyncio.run(kube.await_rollout("web", "apps", timeout=5))
    assert exc_info.value.status == 404


# ── request timeout ─────────────────────────────────────────────


def test_every_call_carries_request_timeout(apis):
    apps, core = apis
    apps.read_namespaced_deployment.return_value = _deployment()
    core.list_namespaced_pod.return_value = V1PodList(items=[])
    cluster = KubeCluster(apps_api=apps, core_api=core, request_timeout=7.5)

    asyncio.run(cluster.exists("web", "apps"))
    asyncio.run(cluster.create("web", "apps", "img:1", 1))
    asyncio.run(cluster.expose_endpoint("web", "apps", 80))
    asyncio.run(cluster.update_image("web", "apps", "img:2"))
    asyncio.run(cluster.scale("web", "apps", 2))
    asyncio.run(cluster.count_running_pods("web", "apps"))

    for method in (
        apps.read_namespaced_deployment,
        apps.create_namespaced_deployment,
        apps.patch_namespaced_deployment,
        apps.patch_namespaced_deployment_scale,
        core.create_namespaced_service,
        core.list_namespaced_pod,
    ):
        assert method.called, method
        for call in method.call_args_list:
            assert call.kwargs["_request_timeout"] == 7.5


def test_read_timeout_is_transient(kube, apis):
    apis[0].read_namespaced_deployment.side_effect = urllib3.exceptions.ReadTimeoutError(None, "/apis", "timed out")
    with pytest.raises(TransientClusterError):
        asyncio.run(kube.exists("web", "apps"))
