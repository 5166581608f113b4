"""CLI command: anchor-audit scan <path> — audit Rust sources locally."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from anchor_audit.analyzer.engine import AuditEngine
from anchor_audit.analyzer.models import AnalysisReport, Severity
from anchor_audit.policy.evaluator import should_fail
from anchor_audit.policy.loader import find_policy_file, load_policy
from anchor_audit.policy.models import AuditPolicy, FailOn
from anchor_audit.report.markdown import format_report, shorten_path
from anchor_audit.report.serialize import report_to_json

console = Console(stderr=True)

_SEVERITY_COLORS = {
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}


@click.command()
@click.argument("path", type=click.Path(exists=True))
@click.option(
    "--fail-on",
    "fail_on",
    default=None,
    help="Lowest severity that fails the run: high, medium, low or none.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "markdown"]),
    default="table",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--exclude",
    "-e",
    multiple=True,
    help="Directory or file names to exclude from the scan.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML policy file (defaults to .anchor-audit.yml).",
)
def scan(
    path: str,
    fail_on: str | None,
    output_format: str,
    exclude: tuple[str, ...],
    config_path: str | None,
) -> None:
    """Scan Anchor program sources for account and CPI vulnerabilities."""
    policy = _load_policy(path, config_path)
    threshold = FailOn.parse(fail_on) if fail_on is not None else policy.fail_on

    console.print(f"[bold]anchor-audit[/bold] scanning [cyan]{escape(path)}[/cyan]\n")

    engine = AuditEngine(exclude_patterns=[*policy.exclude, *exclude])
    report = engine.scan(path)

    if output_format == "json":
        click.echo(report_to_json(report))
    elif output_format == "markdown":
        click.echo(format_report(report, base_dir=path))
    elif report.findings:
        _print_table(report, path)
    else:
        console.print("[green]No findings.[/green]")

    _print_summary(report)

    if should_fail(report, threshold):
        console.print(
            f"\n[red]Failing with {len(report.findings)} issue(s) "
            f"(fail-on={threshold.value})[/red]"
        )
        sys.exit(1)


def _load_policy(path: str, config_path: str | None) -> AuditPolicy:
    policy_file = config_path or find_policy_file(path)
    if policy_file is None:
        return AuditPolicy()
    try:
        return load_policy(policy_file)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e


def _print_table(report: AnalysisReport, base_dir: str) -> None:
    table = Table(title="Findings", show_lines=False)
    table.add_column("Severity", style="bold", width=8)
    table.add_column("Check")
    table.add_column("File", style="cyan")
    table.add_column("Line", justify="right")
    table.add_column("Message", max_width=60)

    for finding in report.findings:
        color = _SEVERITY_COLORS.get(finding.severity, "white")
        table.add_row(
            f"[{color}]{finding.severity.value}[/{color}]",
            finding.check,
            shorten_path(finding.file, base_dir),
            str(finding.line),
            escape(finding.message),
        )

    console.print(table)


def _print_summary(report: AnalysisReport) -> None:
    console.print(f"\nScanned {report.files_scanned} files")
    console.print(
        f"Total findings: {len(report.findings)} "
        f"({report.count(Severity.HIGH)} high, "
        f"{report.count(Severity.MEDIUM)} medium, "
        f"{report.count(Severity.LOW)} low)"
    )
