# context.py
from __future__ import annotations

import io
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .config import RunnerConfig
from .errors import ConfigurationError, StepExecutionError, StepTimeoutError
from .model import Step, Trigger
from .ui.console import Console, get_console

# keep only the tail of long tool output
OUTPUT_TAIL = 4000

TOOL_HINTS = {
    "git": "Install Git or fix PATH.",
    "rustup": "Install rustup (https://rustup.rs) or fix PATH.",
    "cargo": "Install a Rust toolchain (rustup) or fix PATH.",
    "sh": "A POSIX shell is required for run steps.",
}

_TRUE = {"true", "yes", "1", "on"}
_FALSE = {"false", "no", "0", "off", ""}


class RunLog:
    """
    The single accumulating log buffer of one run.

    Lines are prefixed with the current step name in the run-wide buffer and
    kept unprefixed in a per-step buffer, so the runner can hand each
    StepResult its own log.
    """

    def __init__(self, console: Optional[Console] = None, secrets: Iterable[str] = ()):
        self.console = console or get_console()
        # longest first so a secret containing another is masked whole
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)
        self._buffer = io.StringIO()
        self._step_buffer: Optional[io.StringIO] = None
        self._step_name: Optional[str] = None

    def begin_step(self, name: str) -> None:
        self._step_name = name
        self._step_buffer = io.StringIO()

    def end_step(self) -> str:
        text = self._step_buffer.getvalue() if self._step_buffer else ""
        self._step_buffer = None
        self._step_name = None
        return text

    def mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text

    def write(self, text: str) -> None:
        for line in self.mask(text).splitlines() or [""]:
            prefix = f"[{self._step_name}] " if self._step_name else ""
            self._buffer.write(f"{prefix}{line}\n")
            if self._step_buffer is not None:
                self._step_buffer.write(f"{line}\n")
            self.console.print_output(line)

    def text(self) -> str:
        return self._buffer.getvalue()


def _as_text(data: Union[str, bytes, None]) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


@dataclass
class StepContext:
    """What a collaborator gets to see while running one step."""
    step: Step
    inputs: Dict[str, str]
    config: RunnerConfig
    trigger: Trigger
    log: RunLog
    outputs: Dict[str, str] = field(default_factory=dict)

    @property
    def workspace(self) -> Path:
        return self.config.workspace

    # ---- typed input accessors ----
    def input(self, name: str, default: str = "") -> str:
        return self.inputs.get(name, default)

    def input_bool(self, name: str, default: bool = False) -> bool:
        raw = self.inputs.get(name)
        if raw is None:
            return default
        value = raw.strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        raise ConfigurationError(
            f"Input '{name}' must be a boolean, got {raw!r}",
            step=self.step.name,
        )

    def input_int(self, name: str) -> Optional[int]:
        raw = (self.inputs.get(name) or "").strip()
        if not raw:
            return None
        try:
            value = int(raw)
        except ValueError:
            raise ConfigurationError(
                f"Input '{name}' must be an integer, got {raw!r}",
                step=self.step.name,
            ) from None
        if value <= 0:
            raise ConfigurationError(
                f"Input '{name}' must be positive, got {value}",
                step=self.step.name,
            )
        return value

    def input_list(self, name: str) -> List[str]:
        raw = self.inputs.get(name) or ""
        return [p.strip() for p in raw.replace("\n", ",").split(",") if p.strip()]

    # ---- process execution ----
    def _log_output(self, stdout, stderr) -> None:
        out = _as_text(stdout)[-OUTPUT_TAIL:]
        err = _as_text(stderr)[-OUTPUT_TAIL:]
        if out.strip():
            self.log.write(out.rstrip("\n"))
        if err.strip():
            self.log.write(err.rstrip("\n"))

    def exec(
        self,
        cmd: Union[Sequence[str], str],
        *,
        timeout: Optional[float] = None,
        cwd: str | Path | None = None,
    ) -> subprocess.CompletedProcess:
        """
        Run an external command in the workspace.

        A string runs through the shell; a sequence runs directly.

        Raises:
            StepTimeoutError: the command outlived `timeout` seconds
            StepExecutionError: non-zero exit, or the tool is missing
        """
        shell = isinstance(cmd, str)
        display = self.log.mask(cmd if shell else shlex.join(cmd))
        self.log.write(f"$ {display}")

        try:
            proc = subprocess.run(
                cmd if shell else list(cmd),
                shell=shell,
                cwd=str(cwd or self.workspace),
                env=self.config.process_env(),
                text=True,
                capture_output=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            self._log_output(e.stdout, e.stderr)
            raise StepTimeoutError(
                f"Command timed out after {timeout}s: {display}",
                step=self.step.name,
                timeout=timeout,
            ) from e
        except FileNotFoundError as e:
            tool = "sh" if shell else cmd[0]
            raise StepExecutionError(
                f"{tool} is not available",
                step=self.step.name,
                cmd=display,
                details={"hint": TOOL_HINTS.get(tool, f"Install {tool} or fix PATH.")},
            ) from e

        self._log_output(proc.stdout, proc.stderr)
        if proc.returncode != 0:
            raise StepExecutionError(
                f"Command failed (exit={proc.returncode})",
                step=self.step.name,
                cmd=display,
                exit_code=proc.returncode,
            )
        return proc
