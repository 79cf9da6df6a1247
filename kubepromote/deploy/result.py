"""Run-level state and the terminal result of a deploy run."""

from dataclasses import dataclass, field
from enum import Enum

from kubepromote.deploy.context import DeploymentContext
from kubepromote.deploy.errors import DeployError


class RunState(str, Enum):
    START = "Start"
    DECIDING = "Deciding"
    AWAITING_CONVERGENCE = "AwaitingConvergence"
    VERIFYING = "Verifying"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


@dataclass
class DeployResult:
    """Terminal status of one run plus everything a report needs."""

    context: DeploymentContext
    state: RunState = RunState.START
    intent: str | None = None  # "create" or "update"
    error: DeployError | None = None
    observed_replicas: int | None = None
    warnings: list[DeployError] = field(default_factory=list)
    states: list[RunState] = field(default_factory=lambda: [RunState.START])
    cleanup_ran: bool = False

    def transition(self, state: RunState) -> None:
        self.state = state
        self.states.append(state)

    @property
    def succeeded(self) -> bool:
        return self.state == RunState.SUCCEEDED

    @property
    def status(self) -> str:
        """'Succeeded' or 'Failed(<ErrorKind>)'."""
        if self.succeeded:
            return RunState.SUCCEEDED.value
        if self.error is not None:
            return f"{RunState.FAILED.value}({self.error.kind})"
        return RunState.FAILED.value

    def to_dict(self) -> dict:
        return {
            "status": RunState.SUCCEEDED.value if self.succeeded else RunState.FAILED.value,
            "intent": self.intent,
            "error": self.error.to_dict() if self.error is not None else None,
            "observed_replicas": self.observed_replicas,
            "warnings": [w.to_dict() for w in self.warnings],
            "states": [s.value for s in self.states],
            "cleanup_ran": self.cleanup_ran,
            **self.context.metadata(),
        }
