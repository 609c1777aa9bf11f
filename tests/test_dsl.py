from __future__ import annotations

import pytest

from seqci.dsl import build, coverage_steps, pipeline, sh, uses, wf
from seqci.model import Trigger


def test_uses_stringifies_inputs():
    step = uses("Install", "actions-rs/toolchain@v1", {"toolchain": "stable", "override": True, "skip": None})
    assert dict(step.inputs) == {"toolchain": "stable", "override": "true"}


def test_sh_step():
    step = sh("Build", "cargo build", cwd="crates/core", continue_on_error=True)
    assert step.uses == "seqci/run"
    assert dict(step.inputs) == {"run": "cargo build", "working-directory": "crates/core"}
    assert step.continue_on_error


def test_coverage_steps_match_the_classic_workflow():
    steps = coverage_steps()
    assert [s.uses for s in steps] == [
        "actions/checkout@v2",
        "actions-rs/toolchain@v1",
        "actions-rs/tarpaulin@v0.1",
        "coverallsapp/github-action@master",
    ]
    assert dict(steps[2].inputs) == {"timeout": "60", "args": "--ignore-tests --out Lcov"}
    assert dict(steps[3].inputs) == {
        "github-token": "${{ secrets.GITHUB_TOKEN }}",
        "path-to-lcov": "./lcov.info",
    }


def test_builder():
    p = (
        build("test")
        .runs_on("self-hosted")
        .checkout()
        .rust_toolchain("nightly", override=False)
        .define_step("Clippy", "cargo clippy", continue_on_error=True)
        .uses("Custom", "acme/thing@v2", flag_name="unit")
        .build()
    )
    assert p.runs_on == "self-hosted"
    assert [s.name for s in p.steps] == ["Check out repository", "Install Rust", "Clippy", "Custom"]
    assert dict(p.steps[1].inputs) == {"toolchain": "nightly", "override": "false"}
    assert p.steps[2].continue_on_error
    assert dict(p.steps[3].inputs) == {"flag-name": "unit"}


def test_builder_needs_steps():
    with pytest.raises(ValueError):
        build("empty").build()


def test_wf():
    w = wf("ci", pipeline("a", sh("x", "true")), pipeline("b", sh("y", "true")), on=["push"])
    assert list(w.pipelines) == ["a", "b"]
    assert w.triggers == (Trigger.PUSH,)

    with pytest.raises(ValueError, match="Duplicate"):
        wf("ci", pipeline("a", sh("x", "true")), pipeline("a", sh("y", "true")))
    with pytest.raises(ValueError):
        pipeline("nothing")
