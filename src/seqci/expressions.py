# expressions.py
# ${{ ... }} interpolation for step inputs.
from __future__ import annotations

import re
from typing import Dict, Mapping

from .config import RunnerConfig
from .errors import ConfigurationError
from .model import Trigger

EXPR_RE = re.compile(r"\$\{\{\s*(.*?)\s*\}\}")
_PATH_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\.([A-Za-z_][A-Za-z0-9_\-]*)$")


def github_context(config: RunnerConfig, trigger: Trigger) -> Dict[str, str]:
    return {
        "event_name": Trigger(trigger).value,
        "sha": config.sha or "",
        "ref": config.ref or "",
        "repository": config.repository or "",
        "workspace": str(config.workspace),
        "run_id": config.run_id or "",
    }


def evaluate(expr: str, config: RunnerConfig, trigger: Trigger) -> str:
    """
    Evaluate a single `context.name` expression.

    Missing secrets/env vars resolve to "" (required-input validation
    catches them later); unknown contexts are a configuration error.
    """
    m = _PATH_RE.match(expr)
    if not m:
        raise ConfigurationError(f"Unsupported expression: ${{{{ {expr} }}}}")

    context, name = m.group(1), m.group(2)
    if context == "secrets":
        return config.secrets.get(name, "")
    if context == "env":
        return config.env.get(name, "")
    if context == "github":
        ctx = github_context(config, trigger)
        if name not in ctx:
            raise ConfigurationError(
                f"Unknown github context field: {name}",
                details={"known": ", ".join(sorted(ctx))},
            )
        return ctx[name]

    raise ConfigurationError(f"Unsupported expression context: {context}")


def interpolate(value: str, config: RunnerConfig, trigger: Trigger) -> str:
    return EXPR_RE.sub(lambda m: evaluate(m.group(1), config, trigger), value)


def interpolate_inputs(
    inputs: Mapping[str, str],
    config: RunnerConfig,
    trigger: Trigger,
) -> Dict[str, str]:
    return {k: interpolate(str(v), config, trigger) for k, v in inputs.items()}
