"""Policy data models — immutable dataclasses for exit policy."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class FailOn(enum.Enum):
    """Lowest severity that fails the run."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    @classmethod
    def parse(cls, value: str | None) -> FailOn:
        """Parse a threshold name; anything unrecognized means ``high``."""
        if value is None:
            return cls.HIGH
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning("Unrecognized fail-on value %r, using 'high'", value)
            return cls.HIGH


@dataclass(frozen=True)
class AuditPolicy:
    """Settings read from a ``.anchor-audit.yml`` policy file."""

    fail_on: FailOn = FailOn.HIGH
    exclude: tuple[str, ...] = ()
