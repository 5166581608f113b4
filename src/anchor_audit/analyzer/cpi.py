"""Cross-program invocation checks.

Flags:

1. ``invoke_signed`` calls without bump validation in the enclosing function
2. ``invoke`` calls without signer/key validation in the surrounding lines

Which account actually reaches the call is not tracked; "validation evidence
appears near the call in source text" stands in for that.
"""

from __future__ import annotations

from tree_sitter import Node, Tree

from anchor_audit.analyzer.models import Finding, Severity
from anchor_audit.analyzer.syntax import (
    FunctionTrackingVisitor,
    callee_path,
    line_of,
    method_name,
    node_text,
    path_last_segment,
)
from anchor_audit.analyzer.window import (
    INVOKE_LOOKAHEAD_LINES,
    INVOKE_LOOKBACK_LINES,
    INVOKE_SIGNED_FALLBACK_LINES,
    INVOKE_SIGNED_FN_CHARS,
    contains_any,
    function_window,
    window,
)

BUMP_EVIDENCE = ("find_program_address", ".bump", "bump =", "bump=")
SIGNER_EVIDENCE = (
    "is_signer",
    "Signer<",
    ".key()",
    ".key ==",
    "has_one",
    "constraint",
)


def check_cpi_safety(tree: Tree, path: str, source: str) -> list[Finding]:
    """Run the CPI checks over one parsed file."""
    visitor = CpiVisitor(path, source)
    visitor.visit(tree.root_node)
    return visitor.findings


class CpiVisitor(FunctionTrackingVisitor):
    def __init__(self, path: str, source: str) -> None:
        super().__init__()
        self.path = path
        self.source = source
        self.findings: list[Finding] = []

    def visit_call_expression(self, node: Node) -> None:
        target = self._invoked_name(node)
        if target is not None:
            name, line = target
            if name == "invoke_signed":
                self.check_invoke_signed_call(line)
            elif name == "invoke":
                self.check_invoke_call(line)

    @staticmethod
    def _invoked_name(node: Node) -> tuple[str, int] | None:
        """Name and line of the callee, for free-function or method calls."""
        path = callee_path(node)
        ident = path_last_segment(path) if path is not None else method_name(node)
        if ident is None:
            return None
        return node_text(ident), line_of(ident)

    def has_bump_validation(self, line: int) -> bool:
        fn_src = function_window(self.source, self.current_fn, INVOKE_SIGNED_FN_CHARS)
        if fn_src is not None:
            return "bump" in fn_src and contains_any(fn_src, BUMP_EVIDENCE)
        # No enclosing function (item initializers, or after a nested fn):
        # the line window is used instead and any mention of "bump" counts.
        nearby = window(
            self.source,
            line,
            INVOKE_SIGNED_FALLBACK_LINES,
            INVOKE_SIGNED_FALLBACK_LINES,
        )
        return "bump" in nearby

    def has_signer_validation(self, line: int) -> bool:
        context = window(
            self.source, line, INVOKE_LOOKBACK_LINES, INVOKE_LOOKAHEAD_LINES
        )
        return contains_any(context, SIGNER_EVIDENCE)

    def check_invoke_signed_call(self, line: int) -> None:
        if self.has_bump_validation(line):
            return
        self.findings.append(
            Finding(
                severity=Severity.HIGH,
                check="invoke-signed-no-bump",
                message=(
                    "`invoke_signed` call without bump validation. Seeds "
                    "without a verified bump can allow PDA collision attacks. "
                    "Ensure the bump is derived from `find_program_address` "
                    "or stored/validated on-chain."
                ),
                file=self.path,
                line=line,
            )
        )

    def check_invoke_call(self, line: int) -> None:
        if self.has_signer_validation(line):
            return
        self.findings.append(
            Finding(
                severity=Severity.MEDIUM,
                check="cpi-missing-signer-check",
                message=(
                    "CPI `invoke` call without apparent signer validation in "
                    "surrounding context. Ensure accounts passed to CPI are "
                    "properly validated."
                ),
                file=self.path,
                line=line,
            )
        )
