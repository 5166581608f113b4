"""Analyzer data models — findings and analysis reports."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass


class Severity(enum.Enum):
    """Finding severity level."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Ordinal rank, lower is more severe."""
        return SEVERITY_RANK[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


SEVERITY_RANK: dict[Severity, int] = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


@dataclass(frozen=True)
class Finding:
    """A single detector finding.

    ``check`` is the stable identifier consumed by policies and annotations;
    ``message`` is free text and may change between releases.
    """

    severity: Severity
    check: str
    message: str
    file: str
    line: int

    def __lt__(self, other: Finding) -> bool:
        if not isinstance(other, Finding):
            return NotImplemented
        return self.severity.rank < other.severity.rank

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "check": self.check,
            "message": self.message,
            "file": self.file,
            "line": self.line,
        }


@dataclass(frozen=True)
class AnalysisReport:
    """Aggregate result of an audit run."""

    findings: tuple[Finding, ...] = ()
    files_scanned: int = 0

    @classmethod
    def from_findings(
        cls, findings: Iterable[Finding], files_scanned: int
    ) -> AnalysisReport:
        """Build a report, most severe first. Ties keep discovery order."""
        ordered = sorted(findings, key=lambda f: f.severity.rank)
        return cls(findings=tuple(ordered), files_scanned=files_scanned)

    def has_high(self) -> bool:
        return any(f.severity == Severity.HIGH for f in self.findings)

    def has_medium_or_above(self) -> bool:
        return any(
            f.severity in (Severity.HIGH, Severity.MEDIUM) for f in self.findings
        )

    def count(self, severity: Severity) -> int:
        return sum(1 for f in self.findings if f.severity == severity)

    def to_dict(self) -> dict:
        return {
            "findings": [f.to_dict() for f in self.findings],
            "files_scanned": self.files_scanned,
        }
