"""Policy evaluator — maps a report onto pass/fail."""

from __future__ import annotations

from anchor_audit.analyzer.models import AnalysisReport
from anchor_audit.policy.models import FailOn


def should_fail(report: AnalysisReport, fail_on: FailOn) -> bool:
    """True when the report holds a finding at or above the threshold."""
    if fail_on == FailOn.HIGH:
        return report.has_high()
    if fail_on == FailOn.MEDIUM:
        return report.has_medium_or_above()
    if fail_on == FailOn.LOW:
        return bool(report.findings)
    return False
