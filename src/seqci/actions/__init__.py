# actions/__init__.py
from __future__ import annotations

from typing import Dict, Mapping, Optional, Tuple

from ..errors import ConfigurationError
from .base import Action
from .checkout import CheckoutAction
from .coveralls import CoverallsAction
from .shell import ShellAction
from .tarpaulin import TarpaulinAction
from .toolchain import ToolchainAction


def default_actions() -> Dict[str, Action]:
    """Built-in collaborators keyed by reference (version pin stripped)."""
    actions = [
        CheckoutAction(),
        ToolchainAction(),
        TarpaulinAction(),
        CoverallsAction(),
        ShellAction(),
    ]
    return {a.name: a for a in actions}


def parse_reference(reference: str) -> Tuple[str, Optional[str]]:
    """
    "actions/checkout@v2" -> ("actions/checkout", "v2")
    "seqci/run"           -> ("seqci/run", None)
    """
    ref = (reference or "").strip()
    if not ref:
        raise ConfigurationError("Empty action reference")
    name, sep, version = ref.partition("@")
    if not name or (sep and not version):
        raise ConfigurationError(f"Malformed action reference: {reference!r}")
    return name, (version or None)


def resolve(reference: str, registry: Optional[Mapping[str, Action]] = None) -> Action:
    """Find the collaborator behind a step's `uses`. Lookup tries the full ref first."""
    registry = default_actions() if registry is None else registry
    name, _version = parse_reference(reference)
    action = registry.get(reference.strip()) or registry.get(name)
    if action is None:
        raise ConfigurationError(
            f"Unknown action: {reference}",
            details={"known_actions": ", ".join(sorted(registry)) or "<none>"},
        )
    return action


__all__ = [
    "Action",
    "CheckoutAction",
    "CoverallsAction",
    "ShellAction",
    "TarpaulinAction",
    "ToolchainAction",
    "default_actions",
    "parse_reference",
    "resolve",
]
