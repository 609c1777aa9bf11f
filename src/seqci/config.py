# config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

SECRET_ENV_PREFIX = "SEQCI_SECRET_"
DEFAULT_COVERALLS_ENDPOINT = "https://coveralls.io"


@dataclass
class RunnerConfig:
    """
    Everything a run may read from the outside world.

    Secrets and environment are passed in explicitly; collaborators never
    look at os.environ on their own. Use `from_env()` at the CLI boundary.
    """
    workspace: Path = field(default_factory=lambda: Path("."))
    secrets: Dict[str, str] = field(default_factory=dict)
    env: Dict[str, str] = field(default_factory=dict)

    # repository facts (used by checkout + coverage upload)
    repository: Optional[str] = None        # clone URL or owner/name
    ref: Optional[str] = None
    sha: Optional[str] = None
    run_id: Optional[str] = None

    def __post_init__(self) -> None:
        self.workspace = Path(self.workspace).expanduser().resolve()
        self.secrets = {k: str(v) for k, v in (self.secrets or {}).items()}
        self.env = {k: str(v) for k, v in (self.env or {}).items()}

    def process_env(self) -> Dict[str, str]:
        """Environment for child processes: the host env overlaid with config.env."""
        env = os.environ.copy()
        env.update(self.env)
        return env

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        workspace: str | Path | None = None,
        secret_names: Iterable[str] = (),
    ) -> "RunnerConfig":
        """
        Build config from environment variables.

        Secrets picked up:
          - GITHUB_TOKEN
          - SEQCI_SECRET_<NAME>  -> secrets[NAME]
          - every name in `secret_names` (read verbatim)
        """
        environ = os.environ if environ is None else environ

        secrets: Dict[str, str] = {}
        if environ.get("GITHUB_TOKEN"):
            secrets["GITHUB_TOKEN"] = environ["GITHUB_TOKEN"]
        for key, value in environ.items():
            if key.startswith(SECRET_ENV_PREFIX) and len(key) > len(SECRET_ENV_PREFIX):
                secrets[key[len(SECRET_ENV_PREFIX):]] = value
        for name in secret_names:
            if name in environ:
                secrets[name] = environ[name]

        return cls(
            workspace=Path(workspace or environ.get("GITHUB_WORKSPACE", ".")),
            secrets=secrets,
            repository=environ.get("GITHUB_REPOSITORY"),
            ref=environ.get("GITHUB_REF"),
            sha=environ.get("GITHUB_SHA"),
            run_id=environ.get("GITHUB_RUN_ID"),
        )
