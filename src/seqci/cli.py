# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from seqci.config import RunnerConfig
from seqci.errors import CIError
from seqci.model import Trigger, Workflow
from seqci.runner import Runner
from seqci.ui.console import Console, set_console, get_console
from seqci.workflow import YAML_SUFFIXES, load_workflow

DEFAULT_WORKFLOW = "seqci_workflow.py"


def find_workflow_files(root: Path = Path(".")) -> list[Path]:
    """
    Find all workflow files under `root`.

    Looks for seqci_workflow.py, *_workflow.py, *_workflow.y[a]ml and
    .github/workflows/*.y[a]ml.
    """
    found: set[Path] = set()

    default_workflow = root / DEFAULT_WORKFLOW
    if default_workflow.exists():
        found.add(default_workflow)

    for pattern in ("*_workflow.py", "*_workflow.yml", "*_workflow.yaml"):
        found.update(root.glob(pattern))

    gh_dir = root / ".github" / "workflows"
    if gh_dir.is_dir():
        found.update(p for p in gh_dir.iterdir() if p.suffix in YAML_SUFFIXES)

    return sorted(found)


def discover_workflow(workflow_arg: str | None) -> Path:
    """
    Discover workflow file from argument or default.

    Raises:
        SystemExit: If workflow cannot be found or multiple workflows exist
    """
    console = get_console()

    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists() and not workflow_path.suffix:
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow_arg}",
                suggestion="Create a workflow file or specify a different path:\n  seqci run --workflow my_workflow.py",
            )
            sys.exit(1)
        return workflow_path

    workflow_files = find_workflow_files()

    if len(workflow_files) == 0:
        console.print_error(
            "No workflow file found",
            "Could not find any workflow files.",
            details=[
                "Looked for:",
                f"  {DEFAULT_WORKFLOW}",
                "  *_workflow.py / *_workflow.yml",
                "  .github/workflows/*.yml",
            ],
            suggestion=f"Create a workflow file:\n  {DEFAULT_WORKFLOW}\n\nOr specify a workflow explicitly:\n  seqci run --workflow my_workflow.py",
        )
        sys.exit(1)

    if len(workflow_files) > 1:
        file_list = "\n".join(f"  {f}" for f in workflow_files)
        console.print_error(
            "Multiple workflow files found",
            "Found multiple workflow files. Please specify which one to use:",
            details=[file_list],
            suggestion=f"Specify a workflow explicitly:\n  seqci run --workflow {workflow_files[0]}",
        )
        sys.exit(1)

    return workflow_files[0]


def _load(ctx, workflow_arg: str | None) -> tuple[Path, Workflow]:
    console = get_console()
    workflow_path = discover_workflow(workflow_arg)
    try:
        return workflow_path, load_workflow(workflow_path)
    except CIError as e:
        console.print_error(
            "Invalid workflow",
            f"Could not load workflow from {workflow_path}",
            details=str(e).splitlines(),
        )
    except Exception as e:
        console.print_error(
            "Failed to load workflow",
            f"Could not load workflow from {workflow_path}",
            details=[str(e)],
        )
        if ctx.obj.get("debug", False):
            import traceback
            traceback.print_exc()
    sys.exit(1)


workflow_option = click.option(
    "--workflow",
    default=None,
    help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present)",
)
job_option = click.option("--job", "job_id", default=None, help="Job id to run (required when the workflow has several)")
workspace_option = click.option("--workspace", default=None, help="Directory the steps run in (defaults to $GITHUB_WORKSPACE or .)")
event_option = click.option(
    "--event",
    type=click.Choice([t.value for t in Trigger]),
    default=Trigger.PUSH.value,
    show_default=True,
    help="Event that triggers the run",
)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option("--quiet", is_flag=True, default=False, help="Do not echo step output")
@click.pass_context
def cli(ctx, debug, quiet):
    """seqci: sequential, fail-fast CI pipeline runner."""
    console = Console(debug=debug, quiet=quiet)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@workflow_option
@job_option
@event_option
@workspace_option
@click.option(
    "--secret",
    "secret_names",
    multiple=True,
    help="Expose environment variable NAME as ${{ secrets.NAME }} (repeatable)",
)
@click.pass_context
def run(ctx, workflow, job_id, event, workspace, secret_names):
    """Run one job of a workflow for an event."""
    console = get_console()
    workflow_path, wf = _load(ctx, workflow)

    try:
        if not wf.accepts(event):
            console.print_info(f"Workflow '{wf.name}' is not triggered by '{event}'; nothing to run.")
            return

        pipeline = wf.select(job_id)
        config = RunnerConfig.from_env(workspace=workspace, secret_names=secret_names)
        console.print_debug(f"workspace={config.workspace} secrets={sorted(config.secrets)}")

        console.print_run_started(
            workflow=f"{wf.name} ({workflow_path.name})",
            job=pipeline.name,
            trigger=event,
            step_count=len(pipeline.steps),
        )

        result = Runner(config, console=console).run(pipeline.steps, event)
        console.print_results(result)
        if result.exit_code != 0:
            sys.exit(result.exit_code)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except CIError as e:
        console.print_error("Run aborted", str(e))
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@workflow_option
@job_option
@event_option
@workspace_option
@click.option("--secret", "secret_names", multiple=True, help="Expose environment variable NAME as ${{ secrets.NAME }} (repeatable)")
@click.pass_context
def validate(ctx, workflow, job_id, event, workspace, secret_names):
    """Check actions and required inputs of every step without running anything."""
    console = get_console()
    workflow_path, wf = _load(ctx, workflow)

    job_ids = [job_id] if job_id else list(wf.pipelines)
    config = RunnerConfig.from_env(workspace=workspace, secret_names=secret_names)
    runner = Runner(config, console=console)

    problems = 0
    for jid in job_ids:
        try:
            pipeline = wf.select(jid)
        except CIError as e:
            console.print_error("Invalid job", str(e))
            sys.exit(1)
        for err in runner.validate(pipeline.steps, event):
            problems += 1
            console.print_error(f"{jid}: {err.step or '?'}", str(err))

    if problems:
        sys.exit(1)
    console.print_info(f"{workflow_path.name}: OK ({len(job_ids)} job(s))")


@cli.command()
@workflow_option
@job_option
@click.pass_context
def plan(ctx, workflow, job_id):
    """Print the steps a run would execute, in order."""
    console = get_console()
    workflow_path, wf = _load(ctx, workflow)

    console.print_header(f"{wf.name} ({workflow_path.name})")
    console.print_info(f"on: {', '.join(t.value for t in wf.triggers)}")
    if job_id:
        try:
            jobs = {job_id: wf.select(job_id)}
        except CIError as e:
            console.print_error("Invalid job", str(e))
            sys.exit(1)
    else:
        jobs = wf.pipelines

    for jid, pipeline in jobs.items():
        runs_on = f" [{pipeline.runs_on}]" if pipeline.runs_on else ""
        console.print_info(f"\njob {jid}{runs_on}")
        for i, step in enumerate(pipeline.steps, start=1):
            console.print_plan_step(i, step)


if __name__ == "__main__":
    cli()
