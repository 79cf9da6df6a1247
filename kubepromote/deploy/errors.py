"""Deploy error taxonomy.

Fatal errors short-circuit the run; ExposeFailure and CleanupFailure are
recorded as warnings and never raised out of the run.
"""


class DeployError(Exception):
    """Base class for every failure the deploy run knows how to report."""

    kind = "DeployError"
    fatal = True

    def params(self) -> dict:
        """Parameters carried for reporting."""
        return {}

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": str(self), **self.params()}


class MutationFailure(DeployError):
    """Create/update/scale call rejected by the cluster API."""

    kind = "MutationFailure"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")

    def params(self) -> dict:
        return {"operation": self.operation, "detail": self.detail}


class ClusterQueryFailure(DeployError):
    """Read-only lookup against the cluster failed."""

    kind = "ClusterQueryFailure"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")

    def params(self) -> dict:
        return {"operation": self.operation, "detail": self.detail}


class RolloutTimeout(DeployError):
    """Convergence not observed within the rollout timeout."""

    kind = "RolloutTimeout"

    def __init__(self, timeout: float, detail: str = ""):
        self.timeout = timeout
        self.detail = detail
        message = f"rollout did not converge within {timeout:g}s"
        if detail:
            message += f" ({detail})"
        super().__init__(message)

    def params(self) -> dict:
        return {"timeout": self.timeout}


class ReplicaShortfall(DeployError):
    """Running pod count below the desired replica count."""

    kind = "ReplicaShortfall"

    def __init__(self, desired: int, observed: int):
        self.desired = desired
        self.observed = observed
        super().__init__(f"expected at least {desired} running pods, observed {observed}")

    def params(self) -> dict:
        return {"desired": self.desired, "observed": self.observed}


class ExposeFailure(DeployError):
    """Endpoint creation failed. Logged, never fatal."""

    kind = "ExposeFailure"
    fatal = False

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"expose failed: {detail}")

    def params(self) -> dict:
        return {"detail": self.detail}


class CleanupFailure(DeployError):
    """A best-effort cleanup action failed. Logged, never escalated."""

    kind = "CleanupFailure"
    fatal = False

    def __init__(self, action: str, detail: str):
        self.action = action
        self.detail = detail
        super().__init__(f"cleanup '{action}' failed: {detail}")

    def params(self) -> dict:
        return {"action": self.action, "detail": self.detail}


class ClusterApiError(RuntimeError):
    """A cluster adapter call failed. Stages translate it into a DeployError."""

    def __init__(self, operation: str, detail: str, status: int | None = None):
        self.operation = operation
        self.detail = detail
        self.status = status
        super().__init__(f"{operation}: {detail}")


class TransientClusterError(ClusterApiError):
    """Retryable cluster API error (conflict, throttling, server error).

    Only the reconciler's update step retries on it. Anywhere else it is
    treated like any other ClusterApiError.
    """
