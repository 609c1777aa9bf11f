# errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class CIError(Exception):
    """
    Structured CI error with enough context for:
      - clean CLI output
      - a single failure report per run
      - debugging without full tracebacks
    """
    kind = "ci_error"

    def __init__(
        self,
        message: str,
        *,
        step: str | None = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.details: Dict[str, Any] = dict(details or {})

    def for_step(self, step: str) -> "CIError":
        """Attach the failing step name (only if not already set)."""
        if self.step is None:
            self.step = step
        return self

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class ConfigurationError(CIError):
    """Missing or invalid input / workflow definition."""
    kind = "configuration_error"


class StepExecutionError(CIError):
    """An external collaborator returned failure."""
    kind = "step_failed"

    def __init__(
        self,
        message: str,
        *,
        step: str | None = None,
        cmd: str | None = None,
        exit_code: int | None = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if cmd is not None:
            merged.setdefault("cmd", cmd)
        if exit_code is not None:
            merged.setdefault("exit_code", exit_code)
        super().__init__(message, step=step, details=merged)
        self.cmd = cmd
        self.exit_code = exit_code


class StepTimeoutError(CIError, TimeoutError):
    """A step exceeded its configured timeout."""
    kind = "timeout"

    def __init__(
        self,
        message: str,
        *,
        step: str | None = None,
        timeout: float | None = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if timeout is not None:
            merged.setdefault("timeout", timeout)
        super().__init__(message, step=step, details=merged)
        self.timeout = timeout
