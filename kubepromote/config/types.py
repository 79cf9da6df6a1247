"""Deploy config dataclass types."""

from dataclasses import dataclass, field

from kubepromote.cluster.adapter import DEFAULT_REQUEST_TIMEOUT
from kubepromote.deploy.context import DEFAULT_CONTAINER_PORT, DEFAULT_SERVICE_PORT
from kubepromote.deploy.reconcile import DEFAULT_UPDATE_ATTEMPTS, DEFAULT_UPDATE_BACKOFF


@dataclass
class ServiceConfig:
    """Endpoint exposed when the workload is first created."""

    port: int = DEFAULT_SERVICE_PORT
    target_port: int = DEFAULT_CONTAINER_PORT


@dataclass
class UpdateConfig:
    """Retry policy for the image+scale update step."""

    attempts: int = DEFAULT_UPDATE_ATTEMPTS
    backoff: float = DEFAULT_UPDATE_BACKOFF


@dataclass
class CleanupConfig:
    remove_image: bool = True
    workdir: str | None = None


@dataclass
class NotifyConfig:
    url: str | None = None
    timeout: float = 10.0


def _get(d, key, default):
    """d[key], with a missing key or YAML null meaning *default*."""
    value = d.get(key)
    return default if value is None else value


def _as_int(value, key):
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"'{key}' must be an integer, got {value!r}") from e


def _as_float(value, key):
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"'{key}' must be a number, got {value!r}") from e


@dataclass
class DeployConfig:
    """Complete deploy configuration after environment overlay."""

    name: str | None = None
    namespace: str = "default"
    replicas: int = 1
    rollout_timeout: float = 300.0
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    environment: str = ""
    redact_env: list[str] = field(default_factory=list)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    update: UpdateConfig = field(default_factory=UpdateConfig)
    cleanup: CleanupConfig = field(default_factory=CleanupConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)

    @classmethod
    def from_dict(cls, d: dict) -> "DeployConfig":
        """Build a DeployConfig from a (post-merge) config dict.

        Raises ValueError for values of the wrong type, e.g. `replicas: 1.5`.
        """
        service_dict = d.get("service") or {}
        update_dict = d.get("update") or {}
        cleanup_dict = d.get("cleanup") or {}
        notify_dict = d.get("notify") or {}

        redact_env = _get(d, "redact_env", [])
        if isinstance(redact_env, str) or not all(isinstance(v, str) for v in redact_env):
            raise ValueError(f"'redact_env' must be a list of env var names, got {redact_env!r}")

        return cls(
            name=d.get("name"),
            namespace=_get(d, "namespace", "default"),
            replicas=_as_int(_get(d, "replicas", 1), "replicas"),
            rollout_timeout=_as_float(_get(d, "rollout_timeout", 300.0), "rollout_timeout"),
            request_timeout=_as_float(_get(d, "request_timeout", DEFAULT_REQUEST_TIMEOUT), "request_timeout"),
            environment=_get(d, "environment", ""),
            redact_env=list(redact_env),
            service=ServiceConfig(
                port=_as_int(_get(service_dict, "port", DEFAULT_SERVICE_PORT), "service.port"),
                target_port=_as_int(_get(service_dict, "target_port", DEFAULT_CONTAINER_PORT), "service.target_port"),
            ),
            update=UpdateConfig(
                attempts=_as_int(_get(update_dict, "attempts", DEFAULT_UPDATE_ATTEMPTS), "update.attempts"),
                backoff=_as_float(_get(update_dict, "backoff", DEFAULT_UPDATE_BACKOFF), "update.backoff"),
            ),
            cleanup=CleanupConfig(
                remove_image=bool(_get(cleanup_dict, "remove_image", True)),
                workdir=cleanup_dict.get("workdir"),
            ),
            notify=NotifyConfig(
                url=notify_dict.get("url"),
                timeout=_as_float(_get(notify_dict, "timeout", 10.0), "notify.timeout"),
            ),
        )
