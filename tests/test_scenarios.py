"""
The coverage pipeline end to end: real collaborators for the test and upload
steps, with the processes and the HTTP endpoint faked out.
"""

from __future__ import annotations

import io
import json
import subprocess
import urllib.parse
import urllib.request

import pytest

from seqci.actions import CoverallsAction, TarpaulinAction
from seqci.actions import coveralls as coveralls_module
from seqci.config import RunnerConfig
from seqci.dsl import checkout, coveralls, rust_toolchain, tarpaulin
from seqci.errors import ConfigurationError, StepTimeoutError
from seqci.model import RunStatus
from seqci.runner import run_pipeline

LCOV = """\
TN:
SF:src/lib.rs
DA:1,3
DA:2,0
end_of_record
"""


@pytest.fixture
def registry(make_action):
    return {
        "actions/checkout": make_action("actions/checkout"),
        "actions-rs/toolchain": make_action("actions-rs/toolchain", required=("toolchain",)),
        "actions-rs/tarpaulin": TarpaulinAction(),
        "coverallsapp/github-action": CoverallsAction(),
    }


@pytest.fixture
def uploads(monkeypatch):
    sent = []

    def fake_urlopen(req, timeout=None):
        sent.append(req)
        return io.BytesIO(json.dumps({"message": "Job #1.1", "url": "https://coveralls.io/jobs/1"}).encode())

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    monkeypatch.setattr(coveralls_module, "git_info", lambda ctx: None)
    return sent


def _pipeline():
    return [checkout(), rust_toolchain("stable"), tarpaulin(timeout=60), coveralls()]


def test_failing_tests_skip_the_upload(monkeypatch, registry, config, calls, uploads):
    def slow_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(subprocess, "run", slow_run)

    run = run_pipeline(_pipeline(), config=config, actions=registry)

    assert run.status is RunStatus.FAILED
    assert run.failed_step.name == "Run tests with coverage"
    assert isinstance(run.error, StepTimeoutError)
    assert run.error.timeout == 60
    assert run.result_for("Upload to Coveralls").status == "skipped"
    assert uploads == []
    assert [name for name, _ in calls] == ["Check out repository", "Install Rust"]


def test_green_pipeline_uploads_the_report(monkeypatch, registry, config, uploads):
    commands = []

    def fake_run(cmd, **kwargs):
        commands.append((cmd, kwargs))
        (config.workspace / "lcov.info").write_text(LCOV)
        return subprocess.CompletedProcess(cmd, 0, stdout="2 tests passed\n", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    (config.workspace / "src").mkdir()
    (config.workspace / "src" / "lib.rs").write_text("fn a() {}\nfn b() {}\n")

    run = run_pipeline(_pipeline(), config=config, actions=registry)

    assert run.status is RunStatus.SUCCESS
    assert run.exit_code == 0

    cmd, kwargs = commands[0]
    assert cmd == ["cargo", "tarpaulin", "--ignore-tests", "--out", "Lcov"]
    assert kwargs["timeout"] == 60
    assert kwargs["cwd"] == str(config.workspace)

    assert len(uploads) == 1
    req = uploads[0]
    assert req.full_url == "https://coveralls.io/api/v1/jobs"
    payload = json.loads(urllib.parse.parse_qs(req.data.decode())["json"][0])
    assert payload["repo_token"] == "tok-123"
    assert payload["service_name"] == "github"
    assert payload["source_files"][0]["name"] == "src/lib.rs"
    assert payload["source_files"][0]["coverage"] == [3, 0]
    assert "2 tests passed" in run.log


def test_missing_token_stops_before_upload(monkeypatch, registry, tmp_path, uploads):
    def fake_run(cmd, **kwargs):
        (tmp_path / "lcov.info").write_text(LCOV)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    config = RunnerConfig(workspace=tmp_path)  # no GITHUB_TOKEN secret

    run = run_pipeline(_pipeline(), config=config, actions=registry)

    assert run.status is RunStatus.FAILED
    assert isinstance(run.error, ConfigurationError)
    assert run.error.step == "Upload to Coveralls"
    assert "github-token" in run.error.message
    assert uploads == []
