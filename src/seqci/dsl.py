# src/seqci/dsl.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .actions.checkout import CheckoutAction
from .actions.coveralls import CoverallsAction
from .actions.shell import ShellAction
from .actions.tarpaulin import LCOV_REPORT, TarpaulinAction
from .actions.toolchain import ToolchainAction
from .model import Pipeline, Step, Trigger, Workflow


def _inputs(values: Optional[Dict[str, Any]]) -> Dict[str, str]:
    # force values to str; booleans the way workflow files spell them
    out: Dict[str, str] = {}
    for k, v in (values or {}).items():
        if v is None:
            continue
        out[k] = ("true" if v else "false") if isinstance(v, bool) else str(v)
    return out


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def uses(
    name: str,
    action: str,
    with_: Optional[Dict[str, Any]] = None,
    *,
    continue_on_error: bool = False,
) -> Step:
    """A step backed by a collaborator action: uses("Check out", "actions/checkout@v2")."""
    return Step(name=name, uses=action, inputs=_inputs(with_), continue_on_error=continue_on_error)


def sh(name: str, cmd: str, *, cwd: str | None = None, continue_on_error: bool = False) -> Step:
    """Create a shell step."""
    return uses(
        name,
        ShellAction.name,
        {"run": cmd, "working-directory": cwd},
        continue_on_error=continue_on_error,
    )


def checkout(name: str = "Check out repository", *, version: str = "v2", ref: str | None = None) -> Step:
    return uses(name, f"{CheckoutAction.name}@{version}", {"ref": ref})


def rust_toolchain(
    toolchain: str = "stable",
    *,
    override: bool = True,
    name: str = "Install Rust",
    version: str = "v1",
    **extra: Any,
) -> Step:
    return uses(name, f"{ToolchainAction.name}@{version}", {"toolchain": toolchain, "override": override, **extra})


def tarpaulin(
    args: str = "--ignore-tests --out Lcov",
    *,
    timeout: int | None = 60,
    name: str = "Run tests with coverage",
    version: str = "v0.1",
    continue_on_error: bool = False,
) -> Step:
    return uses(
        name,
        f"{TarpaulinAction.name}@{version}",
        {"timeout": timeout, "args": args},
        continue_on_error=continue_on_error,
    )


def coveralls(
    token: str = "${{ secrets.GITHUB_TOKEN }}",
    path: str = f"./{LCOV_REPORT}",
    *,
    name: str = "Upload to Coveralls",
    version: str = "master",
    continue_on_error: bool = False,
) -> Step:
    return uses(
        name,
        f"{CoverallsAction.name}@{version}",
        {"github-token": token, "path-to-lcov": path},
        continue_on_error=continue_on_error,
    )


def coverage_steps(toolchain: str = "stable", *, timeout: int = 60) -> List[Step]:
    """checkout -> toolchain -> tests with coverage -> upload."""
    return [
        checkout(),
        rust_toolchain(toolchain),
        tarpaulin(timeout=timeout),
        coveralls(),
    ]


# ---------------------------------------------------------------------
# Pipeline helpers
# ---------------------------------------------------------------------

def pipeline(name: str, *steps: Step, runs_on: str | None = "ubuntu-latest") -> Pipeline:
    if not steps:
        raise ValueError(f"pipeline({name!r}) must have at least one step")
    return Pipeline(name=name, steps=tuple(steps), runs_on=runs_on)


class PipelineBuilder:
    """
    Builder API:

        build("test").checkout().define_step("Lint", "cargo clippy").build()
    """

    def __init__(self, name: str):
        self.name = name
        self._steps: list[Step] = []
        self._runs_on: str | None = "ubuntu-latest"

    def runs_on(self, label: str):
        self._runs_on = label
        return self

    def add(self, *steps: Step):
        self._steps.extend(steps)
        return self

    def define_step(self, name: str, run: str, cwd: str | None = None, *, continue_on_error: bool = False):
        self._steps.append(sh(name, run, cwd=cwd, continue_on_error=continue_on_error))
        return self

    def uses(self, name: str, action: str, continue_on_error: bool = False, **inputs: Any):
        # python names can't hold '-', so github_token -> github-token
        with_ = {k.replace("_", "-"): v for k, v in inputs.items()}
        self._steps.append(uses(name, action, with_, continue_on_error=continue_on_error))
        return self

    def checkout(self, **kwargs: Any):
        return self.add(checkout(**kwargs))

    def rust_toolchain(self, toolchain: str = "stable", **kwargs: Any):
        return self.add(rust_toolchain(toolchain, **kwargs))

    def tarpaulin(self, args: str = "--ignore-tests --out Lcov", **kwargs: Any):
        return self.add(tarpaulin(args, **kwargs))

    def coveralls(self, **kwargs: Any):
        return self.add(coveralls(**kwargs))

    def build(self) -> Pipeline:
        if not self._steps:
            raise ValueError(f"Pipeline '{self.name}' has no steps")
        return Pipeline(name=self.name, steps=tuple(self._steps), runs_on=self._runs_on)


def build(name: str) -> PipelineBuilder:
    """Convenience: build('test').define_step(...).build()"""
    return PipelineBuilder(name)


# ---------------------------------------------------------------------
# Workflow helper (single-file story)
# ---------------------------------------------------------------------

def wf(
    name: str,
    *pipelines: Pipeline,
    on: Iterable[str | Trigger] = (Trigger.PUSH, Trigger.PULL_REQUEST),
) -> Workflow:
    """
    Workflow definition helper.

        from seqci import wf, pipeline, sh

        def workflow():
            return wf("ci", pipeline("test", sh("Test", "cargo test")))
    """
    if not pipelines:
        raise ValueError(f"wf({name!r}) must have at least one pipeline")
    by_name: Dict[str, Pipeline] = {}
    for p in pipelines:
        if p.name in by_name:
            raise ValueError(f"Duplicate pipeline name: {p.name}")
        by_name[p.name] = p
    return Workflow(name=name, pipelines=by_name, triggers=tuple(Trigger(t) for t in on))
