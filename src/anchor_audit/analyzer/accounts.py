"""Account-context checks.

Inspects ``#[derive(Accounts)]`` structs for:

1. raw ``AccountInfo`` / ``UncheckedAccount`` fields without a
   ``/// CHECK:`` justification
2. fields whose ``#[account]`` attribute carries no validation
"""

from __future__ import annotations

import logging
import re

from tree_sitter import Node, Tree

from anchor_audit.analyzer.models import Finding, Severity
from anchor_audit.analyzer.syntax import (
    Visitor,
    attribute_arguments,
    attribute_name,
    line_of,
    node_text,
    outer_attributes,
    trailing_type_name,
)
from anchor_audit.analyzer.window import CHECK_COMMENT_LINES, window

logger = logging.getLogger(__name__)

RAW_ACCOUNT_TYPES = frozenset({"AccountInfo", "UncheckedAccount"})
SIGNER_TYPES = frozenset({"Signer"})
PROGRAM_TYPES = frozenset({"Program", "SystemProgram"})
CONSTRAINT_ATTRIBUTES = frozenset({"account", "has_one", "constraint"})

# Attribute arguments that mark an account but validate nothing
_NON_VALIDATING_ARGS = frozenset({"", "mut"})

_CHECK_COMMENT_RE = re.compile(r"(//|/\*).*\b(CHECK|SAFETY):")


def check_account_validation(tree: Tree, path: str, source: str) -> list[Finding]:
    """Run the account-context checks over one parsed file."""
    visitor = AccountVisitor(path, source)
    visitor.visit(tree.root_node)
    return visitor.findings


def is_accounts_struct(node: Node) -> bool:
    """True when a struct item carries ``#[derive(.., Accounts, ..)]``."""
    for attr in outer_attributes(node):
        if attribute_name(attr) != "derive":
            continue
        args = attribute_arguments(attr) or ""
        if "Accounts" in (a.strip() for a in args.split(",")):
            return True
    return False


def has_check_comment(source: str, line: int) -> bool:
    """True when a CHECK:/SAFETY: comment sits just above (or on) ``line``."""
    if line <= 0:
        return False
    context = window(source, line, CHECK_COMMENT_LINES + 1, 0)
    return any(_CHECK_COMMENT_RE.search(ln) for ln in context.split("\n"))


def constraint_status(attrs: list[Node]) -> str:
    """Classify a field's constraint attributes.

    Returns ``"validated"`` when any constraint attribute carries real
    arguments, ``"bare"`` when only empty markers such as ``#[account]`` or
    ``#[account(mut)]`` are present, and ``"absent"`` otherwise.
    """
    status = "absent"
    for attr in attrs:
        if attribute_name(attr) not in CONSTRAINT_ATTRIBUTES:
            continue
        args = attribute_arguments(attr)
        tokens = {t.strip() for t in (args or "").split(",")}
        if tokens - _NON_VALIDATING_ARGS:
            return "validated"
        status = "bare"
    return status


class AccountVisitor(Visitor):
    def __init__(self, path: str, source: str) -> None:
        self.path = path
        self.source = source
        self.findings: list[Finding] = []

    def visit_struct_item(self, node: Node) -> None:
        if not is_accounts_struct(node):
            return

        body = node.child_by_field_name("body")
        # Tuple structs have no named fields to inspect
        if body is None or body.type != "field_declaration_list":
            return

        struct_name = node_text(node.child_by_field_name("name"))
        for field in body.named_children:
            if field.type == "field_declaration":
                self._check_field(field, struct_name)

    def _check_field(self, field: Node, struct_name: str) -> None:
        name_node = field.child_by_field_name("name")
        type_node = field.child_by_field_name("type")
        if name_node is None or type_node is None:
            logger.debug("Skipping malformed field in %s", self.path)
            return

        field_name = node_text(name_node)
        line = line_of(name_node)
        type_name = trailing_type_name(type_node)

        if type_name in RAW_ACCOUNT_TYPES:
            if not has_check_comment(self.source, line):
                self.findings.append(
                    Finding(
                        severity=Severity.HIGH,
                        check="unchecked-account",
                        message=(
                            f"Raw `{type_name}` field `{field_name}` in "
                            f"`{struct_name}` without `/// CHECK:` comment. "
                            "Use `Account<'info, T>` for type-safe "
                            "deserialization, or add a `/// CHECK:` comment "
                            "explaining why this is safe."
                        ),
                        file=self.path,
                        line=line,
                    )
                )
            return

        # Signers and programs are validated by their wrapper types
        if type_name in SIGNER_TYPES or type_name in PROGRAM_TYPES:
            return

        if constraint_status(outer_attributes(field)) == "bare":
            self.findings.append(
                Finding(
                    severity=Severity.MEDIUM,
                    check="missing-constraint",
                    message=(
                        f"Field `{field_name}` in `{struct_name}` has "
                        "`#[account]` without constraints. Consider adding "
                        "`has_one`, `constraint`, `seeds`, or `address` to "
                        "validate this account."
                    ),
                    file=self.path,
                    line=line,
                )
            )
