# actions/toolchain.py
from __future__ import annotations

from typing import List

from ..context import StepContext
from .base import Action


class ToolchainAction(Action):
    """Install a Rust toolchain with rustup, optionally making it the override/default."""
    name = "actions-rs/toolchain"
    required = ("toolchain",)
    defaults = {"profile": "minimal", "override": "false", "default": "false"}

    def commands(self, ctx: StepContext) -> List[List[str]]:
        toolchain = ctx.input("toolchain").strip()

        install = ["rustup", "toolchain", "install", toolchain, "--profile", ctx.input("profile", "minimal")]
        for component in ctx.input_list("components"):
            install += ["--component", component]
        for target in ctx.input_list("target"):
            install += ["--target", target]

        cmds = [install]
        if ctx.input_bool("default"):
            cmds.append(["rustup", "default", toolchain])
        if ctx.input_bool("override"):
            cmds.append(["rustup", "override", "set", toolchain])
        return cmds

    def run(self, ctx: StepContext) -> None:
        for cmd in self.commands(ctx):
            ctx.exec(cmd)
        ctx.outputs["toolchain"] = ctx.input("toolchain").strip()
