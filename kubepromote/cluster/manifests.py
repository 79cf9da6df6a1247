"""Deployment and Service bodies for the create and expose steps.

Mirrors what `kubectl create deployment NAME --image=IMAGE --replicas=N`
and `kubectl expose deployment NAME --port=PORT` produce: one container
named after the workload, selector `app=NAME`, ClusterIP service of the
same name.
"""

from kubernetes.client import (
    V1Container,
    V1ContainerPort,
    V1Deployment,
    V1DeploymentSpec,
    V1LabelSelector,
    V1ObjectMeta,
    V1PodSpec,
    V1PodTemplateSpec,
    V1Service,
    V1ServicePort,
    V1ServiceSpec,
)

MANAGED_BY = "kubepromote"


def selector_labels(name):
    return {"app": name}


def build_deployment(name, namespace, image, replicas, container_port=None):
    """Build a V1Deployment with a single container running *image*."""
    labels = {**selector_labels(name), "app.kubernetes.io/managed-by": MANAGED_BY}
    ports = [V1ContainerPort(container_port=container_port)] if container_port else None
    return V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=V1ObjectMeta(name=name, namespace=namespace, labels=labels),
        spec=V1DeploymentSpec(
            replicas=replicas,
            selector=V1LabelSelector(match_labels=selector_labels(name)),
            template=V1PodTemplateSpec(
                metadata=V1ObjectMeta(labels=labels),
                spec=V1PodSpec(containers=[V1Container(name=name, image=image, ports=ports)]),
            ),
        ),
    )


def build_service(name, namespace, port, target_port=None):
    """Build a ClusterIP V1Service selecting the workload's pods."""
    return V1Service(
        api_version="v1",
        kind="Service",
        metadata=V1ObjectMeta(
            name=name,
            namespace=namespace,
            labels={**selector_labels(name), "app.kubernetes.io/managed-by": MANAGED_BY},
        ),
        spec=V1ServiceSpec(
            type="ClusterIP",
            selector=selector_labels(name),
            ports=[V1ServicePort(name="http", port=port, target_port=target_port or port, protocol="TCP")],
        ),
    )


def image_patch(deployment, image):
    """Strategic-merge patch setting *image* on every container (`kubectl set image NAME *=IMAGE`)."""
    containers = deployment.spec.template.spec.containers or []
    return {
        "spec": {
            "template": {
                "spec": {
                    "containers": [{"name": c.name, "image": image} for c in containers],
                }
            }
        }
    }


def scale_patch(replicas):
    return {"spec": {"replicas": replicas}}


def label_selector(deployment):
    """Render the Deployment's matchLabels as a label selector string."""
    match_labels = deployment.spec.selector.match_labels or {}
    return ",".join(f"{k}={v}" for k, v in sorted(match_labels.items()))
