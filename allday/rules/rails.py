"""Rails date/time rules: DTR001."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from allday import matcher, ruby
from allday.rules import base

if TYPE_CHECKING:
    import tree_sitter

_SEVERITIES: dict[str, base.Severity] = {
    severity.name.lower(): severity for severity in base.Severity
}


class DTR001(base.Rule):
    """Flag ``beginning_of_<unit>..end_of_<unit>`` ranges that have an ``all_<unit>`` form.

    ActiveSupport defines ``all_day``, ``all_week``, ``all_month``,
    ``all_quarter`` and ``all_year`` on dates and times. A range built from
    the matching beginning/end pair on the same receiver is the same value.
    Only inclusive ranges (``..``) with identical receiver text are flagged.
    ``beginning_of_week`` may take a start-day argument, in which case both
    sides must pass the same one.

    Allowed:
        date.all_day
        date.beginning_of_day...date.end_of_day     # exclusive
        date1.beginning_of_day..date2.end_of_day    # different receivers
        date.beginning_of_week(:sunday)..date.end_of_week(:saturday)

    Flagged:
        date.beginning_of_day..date.end_of_day                    # date.all_day
        foo.date.beginning_of_month..foo.date.end_of_month        # foo.date.all_month
        date.beginning_of_week(:sunday)..date.end_of_week(:sunday)  # date.all_week(:sunday)
    """

    def __init__(self, severity: base.Severity = base.Severity.WARNING) -> None:
        """Initialise with the severity reported for each match.

        Args:
            severity: Severity attached to every emitted diagnostic.
        """
        self._severity = severity

    def configure(self, options: dict[str, int | str | bool]) -> base.Rule:
        """Return a new DTR001 with options applied.

        Args:
            options: Recognises ``severity`` (``"error"``, ``"warning"``,
                ``"information"`` or ``"hint"``).

        Returns:
            A new DTR001 with the configured severity, or self if the option
            is absent or not a known severity name.
        """
        raw = options.get("severity")
        if raw is None:
            return self
        severity = _SEVERITIES.get(str(raw).lower())
        if severity is None:
            logger.warning("DTR001: ignoring unknown severity {!r}", raw)
            return self
        return DTR001(severity=severity)

    def check(self, tree: tree_sitter.Tree, source: str) -> list[base.Diagnostic]:
        """Return a diagnostic with a fix for every replaceable range."""
        source_bytes = source.encode("utf-8")
        diagnostics: list[base.Diagnostic] = []
        for node in ruby.iter_nodes(tree, "range"):
            if ruby.range_operator(node) != "..":
                continue
            result = matcher.match(ruby.range_expression(node))
            if result is None:
                continue
            line, col, end_line, end_col = ruby.node_span(source_bytes, node)
            diagnostics.append(
                base.Diagnostic(
                    rule_id="DTR001",
                    message=f"Use `{result.replacement}` instead.",
                    line=line,
                    col=col,
                    end_line=end_line,
                    end_col=end_col,
                    severity=self._severity,
                    fix=base.Fix(replacement=result.replacement),
                )
            )
        return diagnostics
