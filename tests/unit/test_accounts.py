"""Tests for the account-context checks."""

from __future__ import annotations

from anchor_audit.analyzer.accounts import (
    check_account_validation,
    has_check_comment,
)
from anchor_audit.analyzer.models import Finding, Severity
from anchor_audit.analyzer.syntax import parse_rust


def _audit(source: str) -> list[Finding]:
    return check_account_validation(parse_rust(source), "lib.rs", source)


def _checks(findings: list[Finding]) -> list[str]:
    return [f.check for f in findings]


class TestUncheckedAccount:
    def test_raw_account_info_flagged(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Withdraw<'info> {\n"
            "    pub vault: AccountInfo<'info>,\n"
            "}\n"
        )
        findings = _audit(source)
        assert len(findings) == 1
        assert findings[0].check == "unchecked-account"
        assert findings[0].severity == Severity.HIGH
        assert findings[0].line == 3
        assert findings[0].file == "lib.rs"
        assert "vault" in findings[0].message
        assert "Withdraw" in findings[0].message

    def test_unchecked_account_type_flagged(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Init<'info> {\n"
            "    pub target: UncheckedAccount<'info>,\n"
            "}\n"
        )
        assert _checks(_audit(source)) == ["unchecked-account"]

    def test_scoped_type_path_flagged(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Init<'info> {\n"
            "    pub target: anchor_lang::prelude::AccountInfo<'info>,\n"
            "}\n"
        )
        assert _checks(_audit(source)) == ["unchecked-account"]

    def test_check_comment_suppresses(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Withdraw<'info> {\n"
            "    /// CHECK: only receives lamports\n"
            "    #[account(mut)]\n"
            "    pub vault: AccountInfo<'info>,\n"
            "}\n"
        )
        assert _audit(source) == []

    def test_safety_comment_suppresses(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Withdraw<'info> {\n"
            "    // SAFETY: address checked in the handler\n"
            "    pub vault: AccountInfo<'info>,\n"
            "}\n"
        )
        assert _audit(source) == []

    def test_comment_too_far_above(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Withdraw<'info> {\n"
            "    /// CHECK: only for the first field\n"
            "    pub first: UncheckedAccount<'info>,\n"
            "    pub authority: Signer<'info>,\n"
            "    pub payer: Signer<'info>,\n"
            "    pub second: AccountInfo<'info>,\n"
            "}\n"
        )
        findings = _audit(source)
        assert len(findings) == 1
        assert findings[0].line == 7
        assert "second" in findings[0].message

    def test_raw_field_with_empty_account_attr_reported_once(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Init<'info> {\n"
            "    #[account()]\n"
            "    pub other_program: AccountInfo<'info>,\n"
            "}\n"
        )
        assert _checks(_audit(source)) == ["unchecked-account"]


class TestMissingConstraint:
    def test_bare_account_attribute(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Init<'info> {\n"
            "    #[account]\n"
            "    pub config: Account<'info, Config>,\n"
            "}\n"
        )
        findings = _audit(source)
        assert len(findings) == 1
        assert findings[0].check == "missing-constraint"
        assert findings[0].severity == Severity.MEDIUM
        assert findings[0].line == 4

    def test_empty_parens(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Init<'info> {\n"
            "    #[account()]\n"
            "    pub config: Account<'info, Config>,\n"
            "}\n"
        )
        assert _checks(_audit(source)) == ["missing-constraint"]

    def test_mut_only(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Init<'info> {\n"
            "    #[account(mut)]\n"
            "    pub config: Account<'info, Config>,\n"
            "}\n"
        )
        assert _checks(_audit(source)) == ["missing-constraint"]

    def test_validated_constraint(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Update<'info> {\n"
            "    #[account(mut, has_one = authority)]\n"
            "    pub config: Account<'info, Config>,\n"
            "    #[account(seeds = [b\"vault\"], bump)]\n"
            "    pub vault: Account<'info, Vault>,\n"
            "    pub authority: Signer<'info>,\n"
            "}\n"
        )
        assert _audit(source) == []

    def test_no_attribute_is_not_reported(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Update<'info> {\n"
            "    pub config: Account<'info, Config>,\n"
            "}\n"
        )
        assert _audit(source) == []

    def test_signer_and_program_exempt(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Init<'info> {\n"
            "    #[account]\n"
            "    pub authority: Signer<'info>,\n"
            "    #[account(mut)]\n"
            "    pub system_program: Program<'info, System>,\n"
            "}\n"
        )
        assert _audit(source) == []


class TestAccountsMarker:
    def test_struct_without_derive_ignored(self):
        source = (
            "pub struct Plain<'info> {\n"
            "    #[account]\n"
            "    pub config: Account<'info, Config>,\n"
            "    pub vault: AccountInfo<'info>,\n"
            "}\n"
        )
        assert _audit(source) == []

    def test_other_derive_ignored(self):
        source = (
            "#[derive(Clone, Debug)]\n"
            "pub struct Plain<'info> {\n"
            "    pub vault: AccountInfo<'info>,\n"
            "}\n"
        )
        assert _audit(source) == []

    def test_derive_list_with_accounts(self):
        source = (
            "#[derive(Accounts, Clone)]\n"
            "pub struct Multi<'info> {\n"
            "    pub vault: AccountInfo<'info>,\n"
            "}\n"
        )
        assert _checks(_audit(source)) == ["unchecked-account"]

    def test_tuple_struct_not_inspected(self):
        source = (
            "#[derive(Accounts)]\n"
            "pub struct Wrapper<'info>(AccountInfo<'info>);\n"
        )
        assert _audit(source) == []

    def test_struct_inside_module(self):
        source = (
            "pub mod contexts {\n"
            "    use super::*;\n"
            "\n"
            "    #[derive(Accounts)]\n"
            "    pub struct Withdraw<'info> {\n"
            "        pub vault: AccountInfo<'info>,\n"
            "    }\n"
            "}\n"
        )
        findings = _audit(source)
        assert [f.line for f in findings] == [6]


def test_has_check_comment_window():
    source = "// CHECK: ok\nfn a() {}\nfn b() {}\nfn c() {}\nfn d() {}\n"
    assert has_check_comment(source, 4)
    assert not has_check_comment(source, 5)
    assert not has_check_comment(source, 0)
