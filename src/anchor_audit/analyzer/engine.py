"""Audit engine — discovers Rust sources and runs every detector per file."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from tree_sitter import Tree

from anchor_audit.analyzer.accounts import check_account_validation
from anchor_audit.analyzer.cpi import check_cpi_safety
from anchor_audit.analyzer.models import AnalysisReport, Finding
from anchor_audit.analyzer.pda import check_pda_usage
from anchor_audit.analyzer.syntax import RustParseError, parse_rust

logger = logging.getLogger(__name__)

Detector = Callable[[Tree, str, str], list[Finding]]

DETECTORS: tuple[Detector, ...] = (
    check_account_validation,
    check_cpi_safety,
    check_pda_usage,
)

# Directories to always skip; `target` holds cargo build output
_SKIP_DIRS = {
    "target",
    ".git",
    ".hg",
    ".svn",
    ".anchor",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
}


class AuditEngine:
    """Runs the Anchor detectors over a set of Rust files."""

    def __init__(self, exclude_patterns: Iterable[str] | None = None) -> None:
        self._exclude = set(exclude_patterns or [])

    def scan(self, path: str | Path) -> AnalysisReport:
        """Discover and analyze every Rust file under ``path``."""
        return self.analyze(self.discover(path))

    def discover(self, path: str | Path) -> list[Path]:
        """List ``.rs`` files under a directory, or the file itself."""
        root = Path(path)
        if root.is_file():
            return [root] if root.suffix == ".rs" else []
        return sorted(self._walk(root))

    def _walk(self, directory: Path) -> Iterator[Path]:
        for root, dirs, files in os.walk(directory):
            # Prune skipped directories in-place
            dirs[:] = [
                d for d in dirs if d not in _SKIP_DIRS and d not in self._exclude
            ]
            for name in files:
                if not name.endswith(".rs") or name in self._exclude:
                    continue
                yield Path(root) / name

    def analyze(self, files: Iterable[str | Path]) -> AnalysisReport:
        """Analyze files and return one severity-sorted report.

        Unreadable or unparsable files are skipped but still counted in
        ``files_scanned``.
        """
        files = list(files)
        findings: list[Finding] = []

        for file_path in files:
            file_findings = self.analyze_file(file_path)
            if file_findings is not None:
                findings.extend(file_findings)

        return AnalysisReport.from_findings(findings, files_scanned=len(files))

    def analyze_file(self, file_path: str | Path) -> list[Finding] | None:
        """Analyze a single file, or return ``None`` if it was skipped."""
        try:
            source = Path(file_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping %s: %s", file_path, e)
            return None
        return analyze_source(source, str(file_path))


def analyze_source(source: str, path: str) -> list[Finding] | None:
    """Parse Rust source and run all detectors; ``None`` if it doesn't parse."""
    try:
        tree = parse_rust(source)
    except RustParseError as e:
        logger.debug("Skipping %s: %s", path, e)
        return None

    findings: list[Finding] = []
    for detector in DETECTORS:
        findings.extend(detector(tree, path, source))
    return findings
