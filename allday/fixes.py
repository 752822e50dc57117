"""Apply diagnostic fixes to source text."""

from __future__ import annotations

import itertools
import typing

from loguru import logger

if typing.TYPE_CHECKING:
    from allday.rules import base


def _line_starts(source: str) -> list[int]:
    """Return the offset at which each line begins.

    Only ``\\n`` ends a line, matching the rows tree-sitter reports.
    """
    lengths = (len(line) + 1 for line in source.split("\n"))
    return [0, *itertools.accumulate(lengths)]


def _edits(
    source: str, diagnostics: list[base.Diagnostic]
) -> list[tuple[int, int, str]]:
    """Return non-overlapping ``(start, end, replacement)`` edits in source order.

    Where fixes overlap, as with a matched range nested inside the receiver
    of another, only the outermost is kept; the inner one is found again
    once the outer fix has been applied.
    """
    starts = _line_starts(source)
    # Stable sort: among fixes for the same range the first reported wins.
    candidates = sorted(
        (
            (
                starts[diag.line - 1] + diag.col,
                starts[diag.end_line - 1] + diag.end_col,
                diag.fix.replacement,
            )
            for diag in diagnostics
            if diag.fix is not None
        ),
        key=lambda edit: (edit[0], -edit[1]),
    )
    accepted: list[tuple[int, int, str]] = []
    for start, end, replacement in candidates:
        if accepted and start < accepted[-1][1]:
            logger.debug("Skipping fix at offset {} overlapping an earlier fix", start)
            continue
        accepted.append((start, end, replacement))
    return accepted


def apply_fixes(source: str, diagnostics: list[base.Diagnostic]) -> str:
    """Return *source* with all fixable diagnostics applied.

    Offsets are resolved against the original text and edits are applied
    from the end of the file backwards, so each one lands where its
    diagnostic was reported.
    """
    for start, end, replacement in reversed(_edits(source, diagnostics)):
        source = source[:start] + replacement + source[end:]
    return source
