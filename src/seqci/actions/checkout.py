# actions/checkout.py
from __future__ import annotations

import subprocess

from ..context import StepContext
from ..errors import ConfigurationError, StepExecutionError
from ..git_facts import git
from .base import Action


def _clone_url(repository: str) -> str:
    # "owner/name" is shorthand for a GitHub repository
    if "://" in repository or repository.startswith("git@") or repository.startswith("/"):
        return repository
    if repository.count("/") == 1:
        return f"https://github.com/{repository}.git"
    return repository


class CheckoutAction(Action):
    """
    Make the workspace hold the repository at the requested ref.

    - workspace already a git work tree: fetch + checkout `ref` if given
    - otherwise: clone `repository` into the workspace, then checkout `ref`
    """
    name = "actions/checkout"

    def run(self, ctx: StepContext) -> None:
        workspace = ctx.workspace
        repository = ctx.input("repository") or (ctx.config.repository or "")
        ref = ctx.input("ref") or (ctx.config.sha or "")

        try:
            if git.is_repo(workspace):
                if ref:
                    ctx.log.write(f"Fetching and checking out {ref}")
                    git.fetch(workspace)
                    git.checkout(ref, workspace)
                else:
                    ctx.log.write(f"Using existing checkout at {workspace}")
            else:
                if not repository:
                    raise ConfigurationError(
                        "Workspace is not a git repository and no repository is configured",
                        step=ctx.step.name,
                        details={"workspace": workspace},
                    )
                if workspace.exists() and any(workspace.iterdir()):
                    raise StepExecutionError(
                        f"Cannot clone into non-empty directory: {workspace}",
                        step=ctx.step.name,
                    )
                url = _clone_url(repository)
                ctx.log.write(f"Cloning {url} into {workspace}")
                git.clone(url, workspace)
                if ref:
                    git.checkout(ref, workspace)

            sha = git.head_sha(workspace)
        except subprocess.CalledProcessError as e:
            raise StepExecutionError(
                f"git {' '.join(e.cmd[1:]) if isinstance(e.cmd, list) else e.cmd} failed",
                step=ctx.step.name,
                exit_code=e.returncode,
                details={"stderr": (e.stderr or "").strip()[-500:]},
            ) from e
        except FileNotFoundError as e:
            raise StepExecutionError(
                "git is not available",
                step=ctx.step.name,
                details={"hint": "Install Git or fix PATH."},
            ) from e

        ctx.outputs["sha"] = sha
        ctx.log.write(f"HEAD is {sha}")
