"""CLI command: anchor-audit action — GitHub Actions entry point."""

from __future__ import annotations

import sys

import click
from rich.console import Console

from anchor_audit.analyzer.engine import AuditEngine
from anchor_audit.config import AuditConfig
from anchor_audit.github import publish_report, write_action_outputs
from anchor_audit.policy.evaluator import should_fail
from anchor_audit.policy.models import FailOn
from anchor_audit.report.markdown import format_report
from anchor_audit.report.serialize import report_to_json

console = Console(stderr=True)


@click.command()
def action() -> None:
    """Run inside GitHub Actions, configured from the environment.

    Prints the JSON report to stdout, posts a PR comment and check run when
    a token is available, and exits non-zero per INPUT_FAIL_ON.
    """
    config = AuditConfig.load()
    fail_on = FailOn.parse(config.fail_on)

    console.print(f"anchor-audit: scanning {config.scan_path}")

    engine = AuditEngine()
    files = engine.discover(config.scan_path)
    if not files:
        console.print(f"anchor-audit: no Rust files found under {config.scan_path}")
        return

    console.print(f"anchor-audit: found {len(files)} Rust files")
    report = engine.analyze(files)

    click.echo(report_to_json(report))

    markdown = format_report(report, base_dir=config.scan_path)
    console.print(f"\n{markdown}", markup=False, emoji=False, soft_wrap=True)

    if config.in_actions:
        publish_report(report, markdown, config, fail_on)
        if config.output_path:
            write_action_outputs(config.output_path, report)

    if should_fail(report, fail_on):
        console.print(
            f"anchor-audit: failing with {len(report.findings)} issue(s) "
            f"(fail_on={fail_on.value})"
        )
        sys.exit(1)

    console.print("anchor-audit: done")
