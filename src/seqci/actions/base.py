# actions/base.py
from __future__ import annotations

from typing import Dict, Mapping, Tuple

from ..context import StepContext
from ..errors import ConfigurationError
from ..model import Step


class Action:
    """
    A collaborator a step can `uses:`.

    Subclasses declare:
      - name:      reference without the version pin ("owner/repo")
      - required:  inputs that must be present and non-empty
      - defaults:  values for optional inputs left unset
    and implement run(ctx).
    """
    name: str = ""
    required: Tuple[str, ...] = ()
    defaults: Mapping[str, str] = {}

    def prepare(self, step: Step, inputs: Mapping[str, str]) -> Dict[str, str]:
        """Apply defaults, then check required inputs. Empty strings count as missing."""
        merged: Dict[str, str] = dict(self.defaults)
        merged.update({k: v for k, v in inputs.items() if v is not None})

        missing = [k for k in self.required if not str(merged.get(k, "")).strip()]
        if missing:
            raise ConfigurationError(
                f"Missing required input(s): {', '.join(missing)}",
                step=step.name,
                details={"action": step.uses},
            )
        return merged

    def run(self, ctx: StepContext) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
