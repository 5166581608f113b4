"""Program-derived address checks.

Flags ``find_program_address`` / ``create_program_address`` calls whose
enclosing function shows no sign of deriving against the program's own ID,
and the bump-less ``create_program_address`` variant in that same situation.
"""

from __future__ import annotations

import logging

from tree_sitter import Node, Tree

from anchor_audit.analyzer.models import Finding, Severity
from anchor_audit.analyzer.syntax import (
    FunctionTrackingVisitor,
    callee_path,
    line_of,
    node_text,
)
from anchor_audit.analyzer.window import (
    PDA_FALLBACK_LINES,
    PDA_FN_CHARS,
    SEED_LOOKAHEAD_LINES,
    SEED_LOOKBACK_LINES,
    contains_any,
    function_window,
    window,
)

logger = logging.getLogger(__name__)

FIND_PDA = "find_program_address"
CREATE_PDA = "create_program_address"

PROGRAM_ID_EVIDENCE = (
    "program_id",
    "program.key()",
    "crate::ID",
    "crate::id()",
    "ID.key()",
)
# The line fallback only trusts the two explicit spellings
PROGRAM_ID_FALLBACK_EVIDENCE = ("program_id", "program.key()")

USER_KEY_SEEDS = (".key()", ".key.as_ref()")
NUMERIC_SEEDS = (".to_le_bytes()", ".to_be_bytes()", "as_bytes()")
SEED_VALIDATION = ("require!", "assert!", "constraint", "has_one")


def check_pda_usage(tree: Tree, path: str, source: str) -> list[Finding]:
    """Run the PDA checks over one parsed file."""
    visitor = PdaVisitor(path, source)
    visitor.visit(tree.root_node)
    return visitor.findings


def has_unvalidated_seed_input(source: str, line: int) -> bool:
    """True when the call line builds seeds from keys or numeric input and
    no ``require!``/``assert!``/constraint appears nearby.
    """
    lines = source.split("\n")
    if not 1 <= line <= len(lines):
        return False
    call_line = lines[line - 1]
    external_seed = contains_any(call_line, USER_KEY_SEEDS) or contains_any(
        call_line, NUMERIC_SEEDS
    )
    if not external_seed:
        return False
    context = window(source, line, SEED_LOOKBACK_LINES, SEED_LOOKAHEAD_LINES)
    return not contains_any(context, SEED_VALIDATION)


class PdaVisitor(FunctionTrackingVisitor):
    def __init__(self, path: str, source: str) -> None:
        super().__init__()
        self.path = path
        self.source = source
        self.findings: list[Finding] = []
        # Seed-safety verdicts are recorded, not reported
        self.unvalidated_seeds: list[int] = []

    def visit_call_expression(self, node: Node) -> None:
        path = callee_path(node)
        if path is not None:
            full = node_text(path)
            if FIND_PDA in full:
                self._check_derivation(FIND_PDA, line_of(path))
            elif CREATE_PDA in full:
                self._check_derivation(CREATE_PDA, line_of(path))

    def has_program_id_verification(self, line: int) -> bool:
        fn_src = function_window(self.source, self.current_fn, PDA_FN_CHARS)
        if fn_src is not None:
            return contains_any(fn_src, PROGRAM_ID_EVIDENCE)
        nearby = window(self.source, line, PDA_FALLBACK_LINES, PDA_FALLBACK_LINES)
        return contains_any(nearby, PROGRAM_ID_FALLBACK_EVIDENCE)

    def _check_derivation(self, variant: str, line: int) -> None:
        verified = self.has_program_id_verification(line)

        if not verified:
            self.findings.append(
                Finding(
                    severity=Severity.HIGH,
                    check="pda-program-id",
                    message=(
                        f"`{variant}` called without verifying against the "
                        "expected program ID. An attacker could pass a "
                        "different program's PDA. Ensure you derive against "
                        "`crate::ID` or validate the program account."
                    ),
                    file=self.path,
                    line=line,
                )
            )

        if variant == CREATE_PDA and not verified:
            self.findings.append(
                Finding(
                    severity=Severity.MEDIUM,
                    check="pda-create-unverified",
                    message=(
                        "`create_program_address` is used instead of "
                        "`find_program_address`. Prefer "
                        "`find_program_address` which returns the bump, "
                        "preventing PDA collision issues."
                    ),
                    file=self.path,
                    line=line,
                )
            )

        if has_unvalidated_seed_input(self.source, line):
            logger.debug(
                "%s:%d: PDA seeds built from unvalidated input", self.path, line
            )
            self.unvalidated_seeds.append(line)
