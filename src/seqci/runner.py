# runner.py
from __future__ import annotations

import time
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .actions import Action, default_actions, resolve
from .config import RunnerConfig
from .context import RunLog, StepContext
from .errors import CIError, StepExecutionError
from .expressions import interpolate_inputs
from .model import Run, Step, StepResult, Trigger
from .ui.console import Console, get_console


class Runner:
    """
    Sequential pipeline runner.

    Steps run one at a time, in declaration order. The first failure of a
    step without continue_on_error halts the run; every later step is
    recorded as skipped and never executed.
    """

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        *,
        actions: Optional[Mapping[str, Action]] = None,
        console: Optional[Console] = None,
    ):
        self.config = config or RunnerConfig()
        self.actions: Dict[str, Action] = dict(default_actions() if actions is None else actions)
        self.console = console or get_console()

    # ------------------------------------------------------------------
    # Step preparation
    # ------------------------------------------------------------------

    def prepare(self, step: Step, trigger: Trigger) -> Tuple[Action, Dict[str, str]]:
        """Resolve the collaborator and the final inputs of a step, or raise ConfigurationError."""
        try:
            action = resolve(step.uses, self.actions)
            inputs = interpolate_inputs(step.inputs, self.config, trigger)
            return action, action.prepare(step, inputs)
        except CIError as e:
            raise e.for_step(step.name)

    def validate(self, steps: Iterable[Step], trigger: Trigger | str = Trigger.PUSH) -> List[CIError]:
        """Check every step's action and inputs without running anything."""
        trigger = Trigger(trigger)
        problems: List[CIError] = []
        for step in steps:
            try:
                self.prepare(step, trigger)
            except CIError as e:
                problems.append(e)
        return problems

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run_step(self, step: Step, trigger: Trigger, log: RunLog) -> None:
        action, inputs = self.prepare(step, trigger)
        ctx = StepContext(step=step, inputs=inputs, config=self.config, trigger=trigger, log=log)
        try:
            action.run(ctx)
        except CIError as e:
            raise e.for_step(step.name)
        except Exception as e:
            raise StepExecutionError(
                f"{type(e).__name__}: {e}",
                step=step.name,
                details={"action": step.uses},
            ) from e
        for key, value in ctx.outputs.items():
            log.write(f"output {key}={value}")

    def run(self, steps: Iterable[Step], trigger: Trigger | str = Trigger.PUSH) -> Run:
        run = Run(steps=tuple(steps), trigger=Trigger(trigger))
        log = RunLog(self.console, secrets=self.config.secrets.values())
        total = len(run.steps)
        halted = False

        run.start()
        for index, step in enumerate(run.steps, start=1):
            if halted:
                run.results.append(StepResult(step=step, status="skipped"))
                self.console.print_step_skipped(step.name, "previous step failed")
                continue

            self.console.print_step(index, total, step.name)
            log.begin_step(step.name)
            started = time.monotonic()
            try:
                self._run_step(step, run.trigger, log)
            except CIError as e:
                duration = time.monotonic() - started
                continued = step.continue_on_error
                run.results.append(StepResult(
                    step=step,
                    status="failed",
                    error=e,
                    continued=continued,
                    log=log.end_step(),
                    duration=duration,
                ))
                self.console.print_failure(
                    step.name,
                    str(e),
                    exit_code=getattr(e, "exit_code", None),
                    hint=e.details.get("hint"),
                    continued=continued,
                )
                if not continued:
                    halted = True
                continue

            duration = time.monotonic() - started
            run.results.append(StepResult(step=step, status="ok", log=log.end_step(), duration=duration))
            self.console.print_success(step.name, duration)

        run.log = log.text()
        run.finish()
        return run


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_pipeline(
    steps: Iterable[Step],
    *,
    trigger: Trigger | str = Trigger.PUSH,
    config: Optional[RunnerConfig] = None,
    actions: Optional[Mapping[str, Action]] = None,
    console: Optional[Console] = None,
) -> Run:
    """Run `steps` once for `trigger` and return the finished Run."""
    return Runner(config, actions=actions, console=console).run(steps, trigger)
