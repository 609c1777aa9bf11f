# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import CIError, ConfigurationError


class Trigger(str, Enum):
    """Events that can start a run."""
    PUSH = "push"
    PULL_REQUEST = "pull_request"


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


# pending -> running -> (success | failed)
_TRANSITIONS = {
    RunStatus.PENDING: {RunStatus.RUNNING},
    RunStatus.RUNNING: {RunStatus.SUCCESS, RunStatus.FAILED},
    RunStatus.SUCCESS: set(),
    RunStatus.FAILED: set(),
}


@dataclass(frozen=True)
class Step:
    """A single named unit of work, backed by a collaborator action."""
    name: str
    uses: str                                   # action reference, e.g. "actions/checkout@v2"
    inputs: Mapping[str, str] = field(default_factory=dict, hash=False)
    continue_on_error: bool = False

    def __post_init__(self) -> None:
        # inputs are read-only once declared
        object.__setattr__(self, "inputs", MappingProxyType(dict(self.inputs)))

    @property
    def action_reference(self) -> str:
        return self.uses


@dataclass(frozen=True)
class Pipeline:
    """An ordered sequence of steps (one workflow job)."""
    name: str
    steps: Tuple[Step, ...]
    runs_on: str | None = None

    def __post_init__(self) -> None:
        # freeze declaration order
        object.__setattr__(self, "steps", tuple(self.steps))
        if not self.steps:
            raise ValueError(f"Pipeline '{self.name}' has no steps")


@dataclass(frozen=True)
class Workflow:
    """
    A workflow file: which events trigger it, and its pipelines keyed by job id.

    Pipelines keep declaration order (dicts are ordered).
    """
    name: str
    pipelines: Dict[str, Pipeline]
    triggers: Tuple[Trigger, ...] = (Trigger.PUSH, Trigger.PULL_REQUEST)

    def accepts(self, trigger: Trigger | str) -> bool:
        return Trigger(trigger) in self.triggers

    def select(self, job_id: str | None = None) -> Pipeline:
        if job_id is not None:
            if job_id not in self.pipelines:
                raise ConfigurationError(
                    f"Unknown job '{job_id}'",
                    details={"known_jobs": ", ".join(self.pipelines) or "<none>"},
                )
            return self.pipelines[job_id]

        if len(self.pipelines) == 1:
            return next(iter(self.pipelines.values()))

        if not self.pipelines:
            raise ConfigurationError(f"Workflow '{self.name}' defines no jobs")

        raise ConfigurationError(
            f"Workflow '{self.name}' defines several jobs; pick one",
            details={"known_jobs": ", ".join(self.pipelines)},
        )


@dataclass
class StepResult:
    """Outcome of one step inside a run."""
    step: Step
    status: str                     # "ok" | "failed" | "skipped"
    error: Optional[CIError] = None
    continued: bool = False         # failed, but continue_on_error let the run go on
    log: str = ""
    duration: float = 0.0


@dataclass
class Run:
    """One execution of a pipeline, created per trigger event."""
    steps: Tuple[Step, ...]
    trigger: Trigger
    status: RunStatus = RunStatus.PENDING
    results: List[StepResult] = field(default_factory=list)
    log: str = ""

    def __post_init__(self) -> None:
        self.steps = tuple(self.steps)
        self.trigger = Trigger(self.trigger)

    # ---- lifecycle ----
    def transition(self, new: RunStatus) -> None:
        if new not in _TRANSITIONS[self.status]:
            raise ValueError(f"Illegal run transition: {self.status.value} -> {new.value}")
        self.status = new

    def start(self) -> None:
        self.transition(RunStatus.RUNNING)

    def finish(self) -> None:
        failed = any(r.status == "failed" and not r.continued for r in self.results)
        self.transition(RunStatus.FAILED if failed else RunStatus.SUCCESS)

    # ---- reporting ----
    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    @property
    def failed_result(self) -> Optional[StepResult]:
        for r in self.results:
            if r.status == "failed" and not r.continued:
                return r
        return None

    @property
    def failed_step(self) -> Optional[Step]:
        r = self.failed_result
        return r.step if r else None

    @property
    def error(self) -> Optional[CIError]:
        r = self.failed_result
        return r.error if r else None

    def result_for(self, name: str) -> Optional[StepResult]:
        for r in self.results:
            if r.step.name == name:
                return r
        return None

    def failure_report(self) -> str:
        r = self.failed_result
        if r is None:
            return ""
        lines = [f"Run failed at step '{r.step.name}' ({r.step.uses})"]
        if r.error is not None:
            lines.append(str(r.error))
        return "\n".join(lines)
