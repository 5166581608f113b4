"""Load AuditPolicy objects from YAML files."""

from __future__ import annotations

from pathlib import Path

import yaml

from anchor_audit.policy.models import AuditPolicy, FailOn

DEFAULT_POLICY_FILES = (".anchor-audit.yml", ".anchor-audit.yaml")


def load_policy(path: str | Path) -> AuditPolicy:
    """Load a policy from a YAML file path."""
    text = Path(path).read_text(encoding="utf-8")
    return load_policy_from_string(text)


def load_policy_from_string(text: str) -> AuditPolicy:
    """Parse a YAML string into an AuditPolicy."""
    data = yaml.safe_load(text)
    if data is None:
        return AuditPolicy()
    if not isinstance(data, dict):
        raise ValueError("Policy YAML must be a mapping")
    return _build_policy(data)


def find_policy_file(scan_root: str | Path) -> Path | None:
    """Return the default policy file in a scan root, if one exists."""
    root = Path(scan_root)
    if not root.is_dir():
        return None
    for name in DEFAULT_POLICY_FILES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def _build_policy(data: dict) -> AuditPolicy:
    exclude = data.get("exclude", [])
    if isinstance(exclude, str):
        exclude = [exclude]
    if not isinstance(exclude, list):
        raise ValueError("Policy 'exclude' must be a list of names")

    fail_on = data.get("fail_on")
    return AuditPolicy(
        fail_on=FailOn.parse(str(fail_on)) if fail_on is not None else FailOn.HIGH,
        exclude=tuple(str(e) for e in exclude),
    )
