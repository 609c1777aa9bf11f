# actions/shell.py
from __future__ import annotations

from ..context import StepContext
from ..errors import ConfigurationError
from .base import Action


class ShellAction(Action):
    """A plain `run:` step: one shell command, run in the workspace."""
    name = "seqci/run"
    required = ("run",)
    defaults = {"working-directory": "."}

    def run(self, ctx: StepContext) -> None:
        cwd = (ctx.workspace / ctx.input("working-directory", ".")).resolve()
        if not cwd.exists():
            raise ConfigurationError(
                f"working-directory not found: {cwd}",
                step=ctx.step.name,
            )
        ctx.exec(ctx.input("run"), cwd=cwd)
