"""Global configuration — GitHub Actions environment and defaults."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_API_URL = "https://api.github.com"


@dataclass
class AuditConfig:
    """Run configuration, read once from the environment."""

    scan_path: str = "."
    fail_on: str = "high"
    github_token: str | None = None
    repository: str | None = None
    event_path: str | None = None
    output_path: str | None = None
    in_actions: bool = False
    api_url: str = DEFAULT_API_URL

    @property
    def github_enabled(self) -> bool:
        return self.in_actions and bool(self.github_token and self.repository)

    @classmethod
    def load(cls, environ: Mapping[str, str] | None = None) -> AuditConfig:
        """Load config from environment variables (Actions inputs first)."""
        env = os.environ if environ is None else environ
        config = cls()

        scan_path = env.get("INPUT_PATH") or env.get("GITHUB_WORKSPACE")
        if scan_path:
            config.scan_path = scan_path

        fail_on = env.get("INPUT_FAIL_ON")
        if fail_on:
            config.fail_on = fail_on

        config.github_token = env.get("GITHUB_TOKEN") or env.get("INPUT_GITHUB_TOKEN")
        config.repository = env.get("GITHUB_REPOSITORY")
        config.event_path = env.get("GITHUB_EVENT_PATH")
        config.output_path = env.get("GITHUB_OUTPUT")
        config.in_actions = "GITHUB_ACTIONS" in env
        config.api_url = env.get("GITHUB_API_URL") or DEFAULT_API_URL

        return config
