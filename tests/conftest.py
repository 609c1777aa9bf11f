"""Shared fixtures: quiet console, a scratch workspace, and recording fake actions."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pytest

from seqci.actions import Action
from seqci.config import RunnerConfig
from seqci.context import StepContext
from seqci.errors import CIError
from seqci.ui.console import Console, set_console


class FakeAction(Action):
    """Records every call; optionally fails with the given error."""

    def __init__(
        self,
        name: str,
        calls: List[Tuple[str, Dict[str, str]]],
        *,
        required: Tuple[str, ...] = (),
        defaults: Optional[Dict[str, str]] = None,
        fail: Optional[Exception] = None,
    ):
        self.name = name
        self.required = tuple(required)
        self.defaults = dict(defaults or {})
        self.calls = calls
        self.fail = fail

    def run(self, ctx: StepContext) -> None:
        self.calls.append((ctx.step.name, dict(ctx.inputs)))
        ctx.log.write(f"ran {ctx.step.name}")
        if self.fail is not None:
            raise self.fail


@pytest.fixture(autouse=True)
def quiet_console():
    console = Console(quiet=True)
    set_console(console)
    yield console
    set_console(Console())


@pytest.fixture
def calls() -> List[Tuple[str, Dict[str, str]]]:
    return []


@pytest.fixture
def config(tmp_path) -> RunnerConfig:
    return RunnerConfig(workspace=tmp_path, secrets={"GITHUB_TOKEN": "tok-123"})


@pytest.fixture
def make_action(calls):
    def _make(name: str, **kwargs) -> FakeAction:
        return FakeAction(name, calls, **kwargs)
    return _make


@pytest.fixture
def fake_registry(make_action):
    """Stand-ins for the four collaborators of the coverage pipeline."""
    def _registry(**failures: CIError) -> Dict[str, Action]:
        return {
            "actions/checkout": make_action("actions/checkout", fail=failures.get("checkout")),
            "actions-rs/toolchain": make_action(
                "actions-rs/toolchain", required=("toolchain",), fail=failures.get("toolchain"),
            ),
            "actions-rs/tarpaulin": make_action("actions-rs/tarpaulin", fail=failures.get("test")),
            "coverallsapp/github-action": make_action(
                "coverallsapp/github-action", required=("github-token",), fail=failures.get("upload"),
            ),
        }
    return _registry


@pytest.fixture
def fake_action_cls():
    return FakeAction
