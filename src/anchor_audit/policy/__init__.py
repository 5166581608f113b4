"""Exit policy — fail-on thresholds and policy files."""
