"""Rust source analysis — parsing, detectors and the audit engine."""

from anchor_audit.analyzer.engine import AuditEngine, analyze_source
from anchor_audit.analyzer.models import AnalysisReport, Finding, Severity

__all__ = ["AnalysisReport", "AuditEngine", "Finding", "Severity", "analyze_source"]
