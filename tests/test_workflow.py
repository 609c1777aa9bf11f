from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from seqci.errors import ConfigurationError
from seqci.model import Trigger, Workflow
from seqci.workflow import load_workflow, parse_triggers, parse_workflow

EXAMPLE = Path(__file__).resolve().parent.parent / "examples" / "rust_coverage.yaml"


def test_example_workflow_loads():
    wf = load_workflow(EXAMPLE)

    assert wf.name == "test"
    assert wf.triggers == (Trigger.PUSH, Trigger.PULL_REQUEST)

    pipeline = wf.select()
    assert pipeline.name == "test"
    assert pipeline.runs_on == "ubuntu-latest"
    assert [s.name for s in pipeline.steps] == [
        "Check out repository",
        "Install Rust",
        "Run tests with coverage",
        "Upload to Coveralls",
    ]

    checkout, toolchain, tests, upload = pipeline.steps
    assert checkout.uses == "actions/checkout@v2"
    assert dict(checkout.inputs) == {}
    assert dict(toolchain.inputs) == {"toolchain": "stable", "override": "true"}
    assert dict(tests.inputs) == {"timeout": "60", "args": "--ignore-tests --out Lcov"}
    assert dict(upload.inputs) == {
        "github-token": "${{ secrets.GITHUB_TOKEN }}",
        "path-to-lcov": "./lcov.info",
    }
    assert not any(s.continue_on_error for s in pipeline.steps)


def test_run_steps_and_flags():
    wf = parse_workflow(dedent("""
        name: ci
        on:
          push:
            branches: [main]
        jobs:
          build:
            steps:
              - run: cargo build
              - name: Lint
                run: cargo clippy
                working-directory: crates/core
                continue-on-error: true
    """))

    assert wf.triggers == (Trigger.PUSH,)
    build, lint = wf.select("build").steps
    assert build.name == "Run cargo build"
    assert build.uses == "seqci/run"
    assert dict(build.inputs) == {"run": "cargo build"}
    assert lint.continue_on_error is True
    assert dict(lint.inputs) == {"run": "cargo clippy", "working-directory": "crates/core"}


def test_quoted_on_key():
    wf = parse_workflow('name: q\n"on": pull_request\njobs:\n  j:\n    steps:\n      - run: "true"\n')
    assert wf.triggers == (Trigger.PULL_REQUEST,)


@pytest.mark.parametrize(
    "on,expected",
    [
        ("push", (Trigger.PUSH,)),
        (["pull_request", "push", "push"], (Trigger.PULL_REQUEST, Trigger.PUSH)),
        ({"push": None, "workflow_dispatch": None}, (Trigger.PUSH,)),
    ],
)
def test_parse_triggers(on, expected):
    assert parse_triggers(on) == expected


def test_only_unsupported_triggers():
    with pytest.raises(ConfigurationError, match="no supported triggers"):
        parse_triggers(["schedule", "workflow_dispatch"])


@pytest.mark.parametrize(
    "text,needle",
    [
        ("on: push\njobs: {}\n", "jobs"),
        ("on: push\njobs:\n  j:\n    steps: []\n", "steps"),
        ("on: push\njobs:\n  j:\n    steps:\n      - name: nothing\n", "exactly one of"),
        ("on: push\njobs:\n  j:\n    steps:\n      - uses: a/b@v1\n        run: echo\n", "exactly one of"),
    ],
)
def test_invalid_definitions(text, needle):
    with pytest.raises(ConfigurationError) as exc:
        parse_workflow(text)
    assert needle in str(exc.value)


def test_invalid_yaml():
    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        parse_workflow("on: [push\njobs:")


def test_missing_on():
    with pytest.raises(ConfigurationError, match="no 'on'"):
        parse_workflow("jobs:\n  j:\n    steps:\n      - run: echo\n")


def test_python_workflow(tmp_path):
    path = tmp_path / "demo_workflow.py"
    path.write_text(dedent("""
        from seqci.dsl import wf, pipeline, sh

        def workflow():
            return wf("demo", pipeline("unit", sh("Test", "cargo test")), on=["push"])
    """))

    wf = load_workflow(path)
    assert isinstance(wf, Workflow)
    assert wf.name == "demo"
    assert wf.triggers == (Trigger.PUSH,)
    assert wf.select().steps[0].inputs["run"] == "cargo test"


def test_python_workflow_with_step_list(tmp_path):
    path = tmp_path / "steps_workflow.py"
    path.write_text("from seqci.dsl import sh\nWORKFLOW = [sh('a', 'true'), sh('b', 'true')]\n")

    wf = load_workflow(path)
    assert wf.name == "steps_workflow"
    assert [s.name for s in wf.select().steps] == ["a", "b"]


def test_python_workflow_wrong_type(tmp_path):
    path = tmp_path / "bad_workflow.py"
    path.write_text("WORKFLOW = 42\n")
    with pytest.raises(TypeError):
        load_workflow(path)


def test_unknown_suffix_and_missing_file(tmp_path):
    other = tmp_path / "workflow.json"
    other.write_text("{}")
    with pytest.raises(ConfigurationError):
        load_workflow(other)
    with pytest.raises(FileNotFoundError):
        load_workflow(tmp_path / "nope.yml")
