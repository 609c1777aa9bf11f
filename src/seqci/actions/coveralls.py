# actions/coveralls.py
from __future__ import annotations

import json
import re
import subprocess
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Any, Dict, Optional

from .. import lcov
from ..config import DEFAULT_COVERALLS_ENDPOINT
from ..context import StepContext
from ..errors import StepExecutionError
from ..git_facts import git
from ..model import Trigger
from .base import Action

JOBS_PATH = "/api/v1/jobs"
REQUEST_TIMEOUT = 60

_PR_REF_RE = re.compile(r"^refs/pull/(\d+)/")


def _branch_from_ref(ref: str | None) -> Optional[str]:
    if ref and ref.startswith("refs/heads/"):
        return ref[len("refs/heads/"):]
    return None


def pull_request_number(ref: str | None) -> Optional[str]:
    m = _PR_REF_RE.match(ref or "")
    return m.group(1) if m else None


def git_info(ctx: StepContext) -> Optional[Dict[str, Any]]:
    """HEAD, branch and remotes of the workspace; None if it is not a git checkout."""
    try:
        branch = _branch_from_ref(ctx.config.ref) or git.current_branch(ctx.workspace)
        return {
            "head": git.head_commit(ctx.workspace),
            "branch": branch or "",
            "remotes": git.remotes(ctx.workspace),
        }
    except (subprocess.CalledProcessError, FileNotFoundError, NotADirectoryError) as e:
        ctx.log.write(f"No git metadata for upload ({type(e).__name__})")
        return None


class CoverallsAction(Action):
    """Upload an lcov report to Coveralls."""
    name = "coverallsapp/github-action"
    required = ("github-token",)
    defaults = {
        "path-to-lcov": "./coverage/lcov.info",
        "coveralls-endpoint": DEFAULT_COVERALLS_ENDPOINT,
        "parallel": "false",
    }

    def build_payload(self, ctx: StepContext) -> Dict[str, Any]:
        report = Path(ctx.input("path-to-lcov"))
        if not report.is_absolute():
            report = ctx.workspace / report
        if not report.is_file():
            raise StepExecutionError(
                f"Lcov file not found: {report}",
                step=ctx.step.name,
            )

        try:
            files = lcov.load(report)
        except lcov.LcovError as e:
            raise StepExecutionError(f"Invalid lcov report: {e}", step=ctx.step.name) from e

        payload: Dict[str, Any] = {
            "repo_token": ctx.input("github-token"),
            "service_name": "github",
            "source_files": lcov.to_source_files(files, ctx.workspace),
        }
        if ctx.config.run_id:
            payload["service_job_id"] = ctx.config.run_id
        if ctx.trigger is Trigger.PULL_REQUEST:
            pr = pull_request_number(ctx.config.ref)
            if pr:
                payload["service_pull_request"] = pr
        if ctx.input("flag-name"):
            payload["flag_name"] = ctx.input("flag-name")
        if ctx.input_bool("parallel"):
            payload["parallel"] = True

        info = git_info(ctx)
        if info is not None:
            payload["git"] = info
        return payload

    def post(self, endpoint: str, payload: Dict[str, Any], step_name: str) -> Dict[str, Any]:
        url = endpoint.rstrip("/") + JOBS_PATH
        body = urllib.parse.urlencode({"json": json.dumps(payload)}).encode("utf-8")
        req = urllib.request.Request(
            url,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=REQUEST_TIMEOUT) as response:
                data = response.read().decode("utf-8")
                return json.loads(data) if data else {}
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8") if e.fp else ""
            raise StepExecutionError(
                f"Coverage upload failed: HTTP {e.code} {e.reason}",
                step=step_name,
                details={"url": url, "response": error_body[-500:]},
            ) from e
        except urllib.error.URLError as e:
            raise StepExecutionError(
                f"Network error: {e.reason}",
                step=step_name,
                details={"url": url},
            ) from e
        except json.JSONDecodeError as e:
            raise StepExecutionError(
                f"Invalid JSON response: {e}",
                step=step_name,
                details={"url": url},
            ) from e

    def run(self, ctx: StepContext) -> None:
        payload = self.build_payload(ctx)
        ctx.log.write(f"Uploading coverage for {len(payload['source_files'])} file(s)")

        result = self.post(ctx.input("coveralls-endpoint"), payload, ctx.step.name)
        if result.get("error"):
            raise StepExecutionError(
                f"Coverage service rejected the upload: {result.get('message', 'unknown error')}",
                step=ctx.step.name,
            )

        if result.get("url"):
            ctx.outputs["url"] = result["url"]
        ctx.log.write(result.get("message") or "Upload complete")
