"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def vulnerable_program(fixtures_dir: Path) -> Path:
    return fixtures_dir / "programs" / "vulnerable"


@pytest.fixture
def safe_program(fixtures_dir: Path) -> Path:
    return fixtures_dir / "programs" / "safe"
