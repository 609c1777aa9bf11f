# seqci_workflow.py
# Workflow for seqci itself: install, test, and a smoke run of the CLI.
from __future__ import annotations

from seqci.dsl import wf, pipeline, sh


def workflow():
    return wf(
        "seqci",
        pipeline(
            "test",
            sh("Install package", "pip install -e '.[test]'"),
            sh("Run pytest", "pytest -q"),
            sh("Plan the Rust coverage example", "seqci plan --workflow examples/rust_coverage.yaml"),
            sh("Show git status", "git status --short", continue_on_error=True),
        ),
    )
