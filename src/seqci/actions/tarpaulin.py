# actions/tarpaulin.py
from __future__ import annotations

import shlex
from pathlib import Path
from typing import List, Optional

from ..context import StepContext
from ..errors import ConfigurationError, StepExecutionError
from .base import Action

# cargo-tarpaulin writes its Lcov report here, relative to --output-dir or the workspace
LCOV_REPORT = "lcov.info"


def _option_values(args: List[str], names: tuple[str, ...]) -> List[str]:
    """
    Values given to any of `names`, in both `--opt a b` and `--opt=a` forms.

    A bare option takes every following argument up to the next flag.
    """
    values: List[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        key, eq, inline = arg.partition("=")
        if key in names and eq:
            values.append(inline)
        elif arg in names:
            i += 1
            while i < len(args) and not args[i].startswith("-"):
                values.append(args[i])
                i += 1
            continue
        i += 1
    return values


def wants_lcov(args: List[str]) -> bool:
    """True if the tarpaulin args ask for Lcov output (`--out Xml Lcov`, `-o lcov`, `--out=Lcov`)."""
    return any(v.lower() == "lcov" for v in _option_values(args, ("--out", "-o")))


def report_path(args: List[str], workspace: Path) -> Path:
    """Where tarpaulin will write lcov.info for these args."""
    dirs: List[str] = _option_values(args, ("--output-dir",))
    output_dir: Optional[str] = dirs[-1] if dirs else None
    base = workspace / output_dir if output_dir else workspace
    return base / LCOV_REPORT


class TarpaulinAction(Action):
    """
    Run the test suite under cargo-tarpaulin.

    `timeout` bounds the whole test process; when it is exceeded the step
    fails with StepTimeoutError.
    """
    name = "actions-rs/tarpaulin"
    defaults = {"args": ""}

    def command(self, ctx: StepContext) -> List[str]:
        try:
            extra = shlex.split(ctx.input("args"))
        except ValueError as e:
            raise ConfigurationError(f"Cannot parse args: {e}", step=ctx.step.name) from None
        return ["cargo", "tarpaulin", *extra]

    def run(self, ctx: StepContext) -> None:
        timeout = ctx.input_int("timeout")
        cmd = self.command(ctx)
        args = cmd[2:]
        lcov = wants_lcov(args)

        report = report_path(args, ctx.workspace)
        if lcov and report.exists():
            report.unlink()  # stale report from an earlier run

        ctx.exec(cmd, timeout=timeout)

        if lcov:
            if not report.is_file():
                raise StepExecutionError(
                    f"Coverage report was not produced: {report}",
                    step=ctx.step.name,
                    cmd=shlex.join(cmd),
                )
            ctx.outputs["report"] = str(report)
            ctx.log.write(f"Coverage report: {report}")
