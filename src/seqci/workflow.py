# workflow.py
from __future__ import annotations

import runpy
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .actions.shell import ShellAction
from .errors import ConfigurationError
from .model import Pipeline, Step, Trigger, Workflow
from .ui.console import get_console

YAML_SUFFIXES = (".yml", ".yaml")

Scalar = Union[str, int, float, bool, None]


# ----------------------------------------------------------------------
# YAML schema (GitHub Actions layout, the parts a sequential run needs)
# ----------------------------------------------------------------------

def _to_input(value: Scalar) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class StepSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    name: Optional[str] = None
    uses: Optional[str] = None
    run: Optional[str] = None
    with_: Dict[str, Scalar] = Field(default_factory=dict, alias="with")
    continue_on_error: bool = Field(False, alias="continue-on-error")
    working_directory: Optional[str] = Field(None, alias="working-directory")

    @model_validator(mode="after")
    def _uses_or_run(self) -> "StepSpec":
        if bool(self.uses) == bool(self.run):
            raise ValueError("a step needs exactly one of 'uses' or 'run'")
        return self

    def display_name(self, index: int) -> str:
        if self.name:
            return self.name
        if self.id:
            return self.id
        if self.uses:
            return f"Run {self.uses}"
        first_line = (self.run or "").strip().splitlines()[0] if (self.run or "").strip() else ""
        return f"Run {first_line}" if first_line else f"step-{index}"

    def to_step(self, index: int) -> Step:
        inputs = {k: _to_input(v) for k, v in self.with_.items()}
        if self.run:
            inputs["run"] = self.run
            if self.working_directory:
                inputs["working-directory"] = self.working_directory
            uses = ShellAction.name
        else:
            uses = self.uses
        return Step(
            name=self.display_name(index),
            uses=uses,
            inputs=inputs,
            continue_on_error=self.continue_on_error,
        )


class JobSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    runs_on: Union[str, List[str], None] = Field(None, alias="runs-on")
    steps: List[StepSpec] = Field(min_length=1)

    def to_pipeline(self, job_id: str) -> Pipeline:
        runs_on = self.runs_on
        if isinstance(runs_on, list):
            runs_on = ", ".join(runs_on)
        return Pipeline(
            name=self.name or job_id,
            steps=tuple(s.to_step(i) for i, s in enumerate(self.steps, start=1)),
            runs_on=runs_on,
        )


class WorkflowSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    jobs: Dict[str, JobSpec] = Field(min_length=1)


def parse_triggers(on: Any) -> Tuple[Trigger, ...]:
    """
    `on:` may be a string, a list of event names, or a mapping keyed by event.
    Events other than push/pull_request are ignored.
    """
    if on is None:
        raise ConfigurationError("Workflow has no 'on' triggers")
    if isinstance(on, str):
        names = [on]
    elif isinstance(on, list):
        names = [str(n) for n in on]
    elif isinstance(on, dict):
        names = [str(n) for n in on]
    else:
        raise ConfigurationError(f"Unsupported 'on' value: {on!r}")

    known = {t.value for t in Trigger}
    triggers: List[Trigger] = []
    for n in names:
        if n in known:
            if Trigger(n) not in triggers:
                triggers.append(Trigger(n))
        else:
            get_console().print_debug(f"ignoring unsupported trigger: {n}")

    if not triggers:
        raise ConfigurationError(
            "Workflow declares no supported triggers",
            details={"declared": ", ".join(names), "supported": ", ".join(sorted(known))},
        )
    return tuple(triggers)


def parse_workflow(text: str, *, default_name: str = "workflow") -> Workflow:
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}") from None
    if not isinstance(raw, dict):
        raise ConfigurationError("Workflow file must be a mapping")

    # YAML 1.1 reads a bare `on` key as boolean True
    on = raw.get("on", raw.get(True))
    triggers = parse_triggers(on)

    try:
        spec = WorkflowSpec.model_validate({k: v for k, v in raw.items() if isinstance(k, str)})
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise ConfigurationError(
            "Invalid workflow definition",
            details={"problems": "; ".join(problems)},
        ) from None

    pipelines = {job_id: job.to_pipeline(job_id) for job_id, job in spec.jobs.items()}
    return Workflow(name=spec.name or default_name, pipelines=pipelines, triggers=triggers)


# ----------------------------------------------------------------------
# Python workflows
# ----------------------------------------------------------------------

def _as_workflow(obj: Any, default_name: str) -> Workflow:
    if isinstance(obj, Workflow):
        return obj
    if isinstance(obj, Pipeline):
        return Workflow(name=default_name, pipelines={obj.name: obj})
    if isinstance(obj, (list, tuple)) and obj and all(isinstance(s, Step) for s in obj):
        return Workflow(name=default_name, pipelines={default_name: Pipeline(default_name, tuple(obj))})
    raise TypeError(
        "Workflow must return/define a Workflow, a Pipeline or a list of Steps. "
        "Define workflow() -> Workflow or WORKFLOW = wf(...)."
    )


def _load_python(wf_path: Path) -> Workflow:
    module_name = f"seqci_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        obj = globals_dict["workflow"]()
    elif "WORKFLOW" in globals_dict:
        obj = globals_dict["WORKFLOW"]
    else:
        raise TypeError(f"{wf_path.name} defines neither workflow() nor WORKFLOW")
    return _as_workflow(obj, wf_path.stem)


# ----------------------------------------------------------------------
# Workflow loading (local file)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path) -> Workflow:
    """
    Load a workflow from a file path.

    Supported:
      - .yml / .yaml: GitHub Actions style workflow
      - .py: a file defining workflow() or WORKFLOW
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")

    if wf_path.suffix in YAML_SUFFIXES:
        return parse_workflow(wf_path.read_text(encoding="utf-8"), default_name=wf_path.stem)
    if wf_path.suffix == ".py":
        return _load_python(wf_path)

    raise ConfigurationError(f"Workflow must be a .py, .yml or .yaml file, got: {wf_path.name}")
