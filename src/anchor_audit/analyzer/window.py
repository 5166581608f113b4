"""Source-text windows used by the proximity heuristics.

Every detector answers "does validation evidence appear near this call?" by
slicing the raw file text, either by lines around an anchor or by a
character span starting at a function declaration. All sizes live here.
"""

from __future__ import annotations

from collections.abc import Iterable

# Lines above a field searched for a `CHECK:` / `SAFETY:` justification
CHECK_COMMENT_LINES = 3

# invoke_signed: function span, and the line fallback when it can't be found
INVOKE_SIGNED_FN_CHARS = 2000
INVOKE_SIGNED_FALLBACK_LINES = 15

# invoke: context searched for signer evidence
INVOKE_LOOKBACK_LINES = 20
INVOKE_LOOKAHEAD_LINES = 5

# PDA derivation: function span and line fallback
PDA_FN_CHARS = 3000
PDA_FALLBACK_LINES = 10

# PDA seed-safety context
SEED_LOOKBACK_LINES = 15
SEED_LOOKAHEAD_LINES = 5


def window(text: str, anchor_line: int, lookback: int, lookahead: int) -> str:
    """Return the lines around a 1-based anchor line, joined by newlines.

    The window covers ``lookback`` lines ending at the anchor (the anchor
    itself included) plus ``lookahead`` lines after it, clamped to the file.
    """
    lines = text.split("\n")
    start = max(anchor_line - lookback, 0)
    end = min(max(anchor_line + lookahead, 0), len(lines))
    return "\n".join(lines[start:end])


def function_window(text: str, fn_name: str | None, span: int) -> str | None:
    """Return up to ``span`` characters from the first ``fn <name>``.

    This is a textual lookup: the first occurrence wins, even if it belongs
    to another function sharing the prefix. ``None`` when not found.
    """
    if not fn_name:
        return None
    start = text.find(f"fn {fn_name}")
    if start < 0:
        return None
    return text[start : start + span]


def contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(n in text for n in needles)
