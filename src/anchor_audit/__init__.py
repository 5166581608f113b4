"""Static security auditor for Anchor smart-contract programs."""

__version__ = "0.1.0"
