"""Console output formatting utilities for seqci."""

from __future__ import annotations

import sys
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from seqci.model import Run, Step


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, quiet: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            quiet: If True, do not echo step output lines
        """
        self.debug = debug
        self.quiet = quiet

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        workflow: str,
        job: str,
        trigger: str,
        step_count: int,
    ) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Workflow: {workflow}")
        print(f"Job: {job}")
        print(f"Event: {trigger}")
        print(f"Steps: {step_count}")
        print()

    def print_step(self, index: int, total: int, name: str) -> None:
        """Print step start message."""
        print(f"\nSTEP {index}/{total}: {name}")

    def print_output(self, line: str) -> None:
        """Echo one line of step output."""
        if not self.quiet:
            print(f"  {line}")

    def print_success(self, name: str, duration: Optional[float] = None) -> None:
        """Print step success message."""
        if duration is not None:
            print(f"STATUS: success ({duration:.1f}s)")
        else:
            print("STATUS: success")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
        continued: bool = False,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Step name
            reason: Failure reason/error message
            exit_code: Optional exit code
            hint: Optional hint for user
            continued: If True, the step is marked continue-on-error
        """
        prefix = "STEP FAILED (continuing)" if continued else "STEP FAILED"
        print(f"{prefix}: {name}")
        if exit_code is not None:
            print(f"Exit code: {exit_code}")
        if hint:
            print(f"Hint: {hint}")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            # first line only outside debug mode
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}")

    def print_step_skipped(self, name: str, reason: str) -> None:
        """Print step skipped message."""
        print(f"STEP SKIPPED: {name} ({reason})")

    def print_plan_step(self, index: int, step: "Step") -> None:
        """Print one step of a plan."""
        flag = " [continue-on-error]" if step.continue_on_error else ""
        print(f"  {index}. {step.name} -> {step.uses}{flag}")
        for key, value in step.inputs.items():
            print(f"       {key}: {value}")

    def print_results(self, run: "Run") -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for r in run.results:
            if r.status == "ok":
                status_display = "SUCCESS"
            elif r.continued:
                status_display = "FAILED (continued)"
            else:
                status_display = r.status.upper()
            print(f"  {r.step.name}: {status_display}")
        print(f"\nRUN: {run.status.value.upper()}")
        report = run.failure_report()
        if report:
            print(report, file=sys.stderr)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
