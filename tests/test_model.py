from __future__ import annotations

import dataclasses

import pytest

from seqci.errors import ConfigurationError, StepExecutionError
from seqci.model import Pipeline, Run, RunStatus, Step, StepResult, Trigger, Workflow


def test_run_lifecycle():
    run = Run(steps=(), trigger="push")
    assert run.status is RunStatus.PENDING

    run.start()
    assert run.status is RunStatus.RUNNING

    run.finish()
    assert run.status is RunStatus.SUCCESS
    assert run.exit_code == 0


@pytest.mark.parametrize(
    "start,target",
    [
        (RunStatus.PENDING, RunStatus.SUCCESS),
        (RunStatus.PENDING, RunStatus.FAILED),
        (RunStatus.RUNNING, RunStatus.PENDING),
        (RunStatus.SUCCESS, RunStatus.RUNNING),
        (RunStatus.FAILED, RunStatus.SUCCESS),
    ],
)
def test_illegal_transitions(start, target):
    run = Run(steps=(), trigger=Trigger.PUSH, status=start)
    with pytest.raises(ValueError):
        run.transition(target)


def test_finish_marks_failed_on_hard_failure():
    step = Step("a", "x/y")
    run = Run(steps=(step,), trigger=Trigger.PUSH)
    run.start()
    run.results.append(StepResult(step=step, status="failed", error=StepExecutionError("no")))
    run.finish()

    assert run.status is RunStatus.FAILED
    assert run.exit_code == 1
    assert run.failed_step is step
    assert "Run failed at step 'a' (x/y)" in run.failure_report()


def test_step_inputs_are_read_only():
    source = {"toolchain": "stable"}
    step = Step("Install Rust", "actions-rs/toolchain@v1", source)

    with pytest.raises(TypeError):
        step.inputs["toolchain"] = "nightly"
    with pytest.raises(dataclasses.FrozenInstanceError):
        step.name = "other"

    source["toolchain"] = "nightly"
    assert step.inputs["toolchain"] == "stable"
    assert step.action_reference == "actions-rs/toolchain@v1"


def test_steps_are_hashable():
    a = Step("Build", "seqci/run", {"run": "cargo build"})
    b = Step("Build", "seqci/run", {"run": "cargo build"})
    c = Step("Build", "seqci/run", {"run": "cargo test"})

    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert len({a, b, c}) == 2
    assert hash(Pipeline("p", [a, c]))


def test_pipeline_keeps_declaration_order():
    steps = [Step(f"s{i}", "x/y") for i in range(5)]
    p = Pipeline("test", steps)
    assert [s.name for s in p.steps] == ["s0", "s1", "s2", "s3", "s4"]
    assert isinstance(p.steps, tuple)


def test_pipeline_needs_steps():
    with pytest.raises(ValueError):
        Pipeline("empty", ())


def test_workflow_select():
    a = Pipeline("a", (Step("s", "x/y"),))
    b = Pipeline("b", (Step("s", "x/y"),))

    assert Workflow("one", {"a": a}).select() is a

    two = Workflow("two", {"a": a, "b": b})
    assert two.select("b") is b
    with pytest.raises(ConfigurationError, match="several jobs"):
        two.select()
    with pytest.raises(ConfigurationError, match="Unknown job"):
        two.select("c")


def test_workflow_accepts():
    wf = Workflow("w", {"a": Pipeline("a", (Step("s", "x/y"),))}, triggers=(Trigger.PUSH,))
    assert wf.accepts("push")
    assert not wf.accepts(Trigger.PULL_REQUEST)


def test_error_rendering():
    err = StepExecutionError("Command failed (exit=2)", step="Run tests", cmd="cargo tarpaulin", exit_code=2)
    text = str(err)
    assert text.splitlines()[0] == "step_failed: Command failed (exit=2)"
    assert "step=Run tests" in text
    assert "cmd=cargo tarpaulin" in text
    assert "exit_code=2" in text


def test_for_step_keeps_first_name():
    err = ConfigurationError("bad", step="first")
    assert err.for_step("second").step == "first"
    assert ConfigurationError("bad").for_step("second").step == "second"
