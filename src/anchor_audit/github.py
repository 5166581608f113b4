"""GitHub integration — PR comments, check runs and Actions outputs.

Publishing is best effort: API failures are logged and never change the
outcome of the audit itself.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from anchor_audit.analyzer.models import AnalysisReport, Severity
from anchor_audit.config import AuditConfig
from anchor_audit.policy.evaluator import should_fail
from anchor_audit.policy.models import FailOn
from anchor_audit.report.markdown import shorten_path

logger = logging.getLogger(__name__)

CHECK_NAME = "anchor-audit"
_GITHUB_HEADERS_ACCEPT = "application/vnd.github+json"
# GitHub rejects more than 50 annotations per request
_MAX_ANNOTATIONS = 50

_ANNOTATION_LEVELS = {
    Severity.HIGH: "failure",
    Severity.MEDIUM: "warning",
    Severity.LOW: "notice",
}


def _load_event(event_path: str | Path) -> dict[str, Any]:
    try:
        data = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Could not read event payload %s: %s", event_path, e)
        return {}
    return data if isinstance(data, dict) else {}


def get_pr_number_from_event(event_path: str | Path) -> int | None:
    """Pull-request number from an Actions event payload."""
    event = _load_event(event_path)
    pr = event.get("pull_request")
    number = pr.get("number") if isinstance(pr, dict) else event.get("number")
    return number if isinstance(number, int) else None


def get_head_sha_from_event(event_path: str | Path) -> str | None:
    """Head commit SHA from an Actions event payload."""
    event = _load_event(event_path)
    pr = event.get("pull_request")
    if isinstance(pr, dict):
        sha = (pr.get("head") or {}).get("sha")
        if isinstance(sha, str) and sha:
            return sha
    sha = event.get("after")
    return sha if isinstance(sha, str) and sha else None


def _headers(token: str) -> dict[str, str]:
    return {"Authorization": f"token {token}", "Accept": _GITHUB_HEADERS_ACCEPT}


def post_pr_comment(
    client: httpx.Client,
    config: AuditConfig,
    pr_number: int,
    body: str,
) -> dict[str, Any]:
    """POST a comment on the pull request."""
    url = f"{config.api_url}/repos/{config.repository}/issues/{pr_number}/comments"
    resp = client.post(url, json={"body": body}, headers=_headers(config.github_token or ""))
    resp.raise_for_status()
    return resp.json()


def check_conclusion(report: AnalysisReport, fail_on: FailOn) -> str:
    if should_fail(report, fail_on):
        return "failure"
    if report.findings:
        return "neutral"
    return "success"


def build_annotations(
    report: AnalysisReport, base_dir: str | None = None
) -> list[dict[str, Any]]:
    annotations = []
    for finding in report.findings[:_MAX_ANNOTATIONS]:
        annotations.append(
            {
                "path": shorten_path(finding.file, base_dir),
                "start_line": finding.line,
                "end_line": finding.line,
                "annotation_level": _ANNOTATION_LEVELS[finding.severity],
                "title": finding.check,
                "message": finding.message,
            }
        )
    return annotations


def create_check_run(
    client: httpx.Client,
    config: AuditConfig,
    head_sha: str,
    report: AnalysisReport,
    fail_on: FailOn,
    summary: str = "",
) -> dict[str, Any]:
    """POST a completed check run with one annotation per finding."""
    url = f"{config.api_url}/repos/{config.repository}/check-runs"
    title = (
        f"{len(report.findings)} issue(s) found"
        if report.findings
        else "No issues found"
    )
    body: dict[str, Any] = {
        "name": CHECK_NAME,
        "head_sha": head_sha,
        "status": "completed",
        "conclusion": check_conclusion(report, fail_on),
        "output": {
            "title": title,
            "summary": summary or title,
            "annotations": build_annotations(report, config.scan_path),
        },
    }
    resp = client.post(url, json=body, headers=_headers(config.github_token or ""))
    resp.raise_for_status()
    return resp.json()


def publish_report(
    report: AnalysisReport,
    markdown: str,
    config: AuditConfig,
    fail_on: FailOn,
    client: httpx.Client | None = None,
) -> None:
    """Best-effort publish of the report to the pull request and checks API."""
    if not config.github_enabled:
        logger.info("GitHub token or repository not set, skipping PR integration")
        return
    if not config.event_path:
        return

    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=30.0)
    try:
        pr_number = get_pr_number_from_event(config.event_path)
        if pr_number is not None:
            logger.info("Posting comment on PR #%d", pr_number)
            try:
                post_pr_comment(client, config, pr_number, markdown)
            except httpx.HTTPError as e:
                logger.warning("Failed to post PR comment: %s", e)

        sha = get_head_sha_from_event(config.event_path)
        if sha is not None:
            logger.info("Creating check run for %s", sha[:8])
            try:
                create_check_run(
                    client, config, sha, report, fail_on, summary=markdown
                )
            except httpx.HTTPError as e:
                logger.warning("Failed to create check run: %s", e)
    finally:
        if owns_client:
            client.close()


def write_action_outputs(output_path: str | Path, report: AnalysisReport) -> None:
    """Append step outputs for later workflow steps."""
    lines = (
        f"finding-count={len(report.findings)}\n"
        f"has-high={str(report.has_high()).lower()}\n"
        f"has-medium={str(report.has_medium_or_above()).lower()}\n"
    )
    try:
        with open(output_path, "a", encoding="utf-8") as f:
            f.write(lines)
    except OSError as e:
        logger.warning("Could not write Actions outputs to %s: %s", output_path, e)
