"""Tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from anchor_audit.cli import main
from anchor_audit.policy.models import FailOn

ACTIONS_ENV_KEYS = (
    "GITHUB_ACTIONS",
    "GITHUB_TOKEN",
    "INPUT_GITHUB_TOKEN",
    "GITHUB_REPOSITORY",
    "GITHUB_EVENT_PATH",
    "GITHUB_OUTPUT",
    "INPUT_PATH",
    "INPUT_FAIL_ON",
    "GITHUB_WORKSPACE",
)


def _clean_env(**overrides: str) -> dict[str, str | None]:
    env: dict[str, str | None] = {key: None for key in ACTIONS_ENV_KEYS}
    env.update(overrides)
    return env


def test_main_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "anchor-audit" in result.output
    assert "scan" in result.output
    assert "action" in result.output


def test_main_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


class TestScan:
    def test_vulnerable_fails(self, vulnerable_program: Path):
        runner = CliRunner()
        result = runner.invoke(main, ["scan", str(vulnerable_program)])
        assert result.exit_code == 1
        assert "Total findings: 6" in result.output

    def test_safe_passes(self, safe_program: Path):
        runner = CliRunner()
        result = runner.invoke(main, ["scan", str(safe_program)])
        assert result.exit_code == 0
        assert "No findings" in result.output

    def test_fail_on_none(self, vulnerable_program: Path):
        runner = CliRunner()
        result = runner.invoke(
            main, ["scan", str(vulnerable_program), "--fail-on", "none"]
        )
        assert result.exit_code == 0

    def test_json_output(self, vulnerable_program: Path):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["scan", str(vulnerable_program), "--format", "json", "--fail-on", "none"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["files_scanned"] == 1
        assert data["findings"][0]["severity"] == "high"

    def test_markdown_output(self, vulnerable_program: Path):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["scan", str(vulnerable_program), "--format", "markdown"],
        )
        assert result.exit_code == 1
        assert "## anchor-audit report" in result.stdout

    def test_policy_file_threshold(self, tmp_path: Path):
        (tmp_path / "lib.rs").write_text(
            "pub fn forward(accounts: &[AccountInfo]) -> ProgramResult {\n"
            "    invoke(&ix, accounts)?;\n"
            "    Ok(())\n"
            "}\n"
        )
        runner = CliRunner()
        assert runner.invoke(main, ["scan", str(tmp_path)]).exit_code == 0

        (tmp_path / ".anchor-audit.yml").write_text("fail_on: medium\n")
        assert runner.invoke(main, ["scan", str(tmp_path)]).exit_code == 1

    def test_policy_exclude(self, tmp_path: Path):
        (tmp_path / "generated").mkdir()
        (tmp_path / "generated" / "lib.rs").write_text(
            "#[derive(Accounts)]\n"
            "pub struct Withdraw<'info> {\n"
            "    pub vault: AccountInfo<'info>,\n"
            "}\n"
        )
        config = tmp_path / "audit.yml"
        config.write_text("exclude: [generated]\n")

        runner = CliRunner()
        result = runner.invoke(main, ["scan", str(tmp_path), "--config", str(config)])
        assert result.exit_code == 0

    def test_invalid_policy_file(self, tmp_path: Path):
        config = tmp_path / "audit.yml"
        config.write_text("- not\n- a mapping\n")
        runner = CliRunner()
        result = runner.invoke(main, ["scan", str(tmp_path), "--config", str(config)])
        assert result.exit_code == 2
        assert "mapping" in result.output


class TestAction:
    def test_reports_and_fails(self, vulnerable_program: Path):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["action"],
            env=_clean_env(INPUT_PATH=str(vulnerable_program)),
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["files_scanned"] == 1
        assert "anchor-audit report" in result.stderr

    def test_no_rust_files(self, tmp_path: Path):
        runner = CliRunner()
        result = runner.invoke(
            main, ["action"], env=_clean_env(INPUT_PATH=str(tmp_path))
        )
        assert result.exit_code == 0
        assert "no Rust files found" in result.stderr

    def test_writes_outputs_in_actions(self, vulnerable_program: Path, tmp_path: Path):
        output = tmp_path / "output"
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["action"],
            env=_clean_env(
                GITHUB_ACTIONS="true",
                GITHUB_OUTPUT=str(output),
                INPUT_PATH=str(vulnerable_program),
                INPUT_FAIL_ON="none",
            ),
        )
        assert result.exit_code == 0
        assert "has-high=true" in output.read_text()

    def test_unknown_threshold_parsed_once(
        self,
        vulnerable_program: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ):
        published: list[FailOn] = []
        monkeypatch.setattr(
            "anchor_audit.cli.action.publish_report",
            lambda report, markdown, config, fail_on: published.append(fail_on),
        )

        runner = CliRunner()
        with caplog.at_level(logging.WARNING):
            result = runner.invoke(
                main,
                ["action"],
                env=_clean_env(
                    GITHUB_ACTIONS="true",
                    INPUT_PATH=str(vulnerable_program),
                    INPUT_FAIL_ON="bogus",
                ),
            )

        assert result.exit_code == 1
        assert published == [FailOn.HIGH]
        warnings = [r for r in caplog.records if "Unrecognized fail-on" in r.message]
        assert len(warnings) == 1
