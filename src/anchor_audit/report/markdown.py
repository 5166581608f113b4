"""Markdown digest for pull-request comments and logs."""

from __future__ import annotations

from pathlib import Path

from anchor_audit.analyzer.models import AnalysisReport, Severity

TITLE = "## anchor-audit report"


def format_report(report: AnalysisReport, base_dir: str | None = None) -> str:
    """Render a report as a markdown summary plus findings table."""
    lines = [TITLE, ""]

    if not report.findings:
        lines.append(
            f"No issues found in **{report.files_scanned}** scanned file(s)."
        )
        return "\n".join(lines) + "\n"

    counts = ", ".join(
        f"{report.count(sev)} {sev.value}" for sev in Severity
    )
    lines.append(
        f"Found **{len(report.findings)}** issue(s) ({counts}) "
        f"in **{report.files_scanned}** scanned file(s)."
    )
    lines.append("")
    lines.append("| Severity | Check | Location | Message |")
    lines.append("| --- | --- | --- | --- |")

    for finding in report.findings:
        location = f"{shorten_path(finding.file, base_dir)}:{finding.line}"
        lines.append(
            f"| {finding.severity.label} "
            f"| `{finding.check}` "
            f"| `{location}` "
            f"| {_escape(finding.message)} |"
        )

    return "\n".join(lines) + "\n"


def shorten_path(file_path: str, base_dir: str | None) -> str:
    """Shorten a file path relative to the scan directory."""
    if not base_dir:
        return file_path
    base = Path(base_dir).resolve()
    if base.is_file():
        base = base.parent
    try:
        return Path(file_path).resolve().relative_to(base).as_posix()
    except ValueError:
        return file_path


def _escape(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")
