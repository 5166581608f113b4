"""JSON rendering of analysis reports."""

from __future__ import annotations

import json

from anchor_audit.analyzer.models import AnalysisReport


def report_to_json(report: AnalysisReport, indent: int = 2) -> str:
    return json.dumps(report.to_dict(), indent=indent)
