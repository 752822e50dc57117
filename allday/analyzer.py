"""Orchestrates rule execution against a parsed Ruby syntax tree."""

from __future__ import annotations

import dataclasses
import re
import typing

from loguru import logger

from allday import ruby

if typing.TYPE_CHECKING:
    import tree_sitter

    from allday.rules import base

# `# allday: noqa`, `# allday: disable-file: DTR001, ...` inside a Ruby comment.
_DIRECTIVE_PAT = re.compile(
    r"#\s*allday:\s*(noqa|disable-file)\b(?::\s*([A-Z0-9][A-Z0-9,\s]*))?",
    re.IGNORECASE,
)

# Rule scope meaning "every rule".
_EVERY_RULE = None


def _scope(raw: str | None) -> frozenset[str] | None:
    ids = frozenset(part.strip().upper() for part in (raw or "").split(",") if part.strip())
    return ids or _EVERY_RULE


@dataclasses.dataclass
class Suppressions:
    """Rule scopes silenced by ``# allday:`` comments in one file.

    A scope is a set of rule IDs, or None for every rule.  Line directives
    apply to any diagnostic whose span includes the comment's line, so a
    trailing ``# allday: noqa`` also covers a range split over several lines.
    """

    whole_file: list[frozenset[str] | None] = dataclasses.field(default_factory=list)
    by_line: dict[int, frozenset[str] | None] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_tree(cls, tree: tree_sitter.Tree) -> Suppressions:
        """Collect directives from the comment nodes of *tree*."""
        suppressions = cls()
        for comment in ruby.iter_nodes(tree, "comment"):
            directive = _DIRECTIVE_PAT.search(ruby.text(comment))
            if directive is None:
                continue
            scope = _scope(directive.group(2))
            if directive.group(1).lower() == "disable-file":
                suppressions.whole_file.append(scope)
            else:
                suppressions.by_line[comment.start_point[0] + 1] = scope
        return suppressions

    def silences(self, diag: base.Diagnostic) -> bool:
        scopes = [
            *self.whole_file,
            *(
                self.by_line[line]
                for line in range(diag.line, diag.end_line + 1)
                if line in self.by_line
            ),
        ]
        return any(scope is _EVERY_RULE or diag.rule_id in scope for scope in scopes)


class Analyzer:
    """Runs all registered rules against a Ruby source file."""

    def __init__(self, rules: list[base.Rule]) -> None:
        self.rules = rules

    def analyze(self, source: str) -> list[base.Diagnostic]:
        """Parse source, run all rules, and drop suppressed diagnostics.

        Args:
            source: Raw Ruby source code to analyze.

        Returns:
            Diagnostics sorted by (line, col).  Returns an empty list if the
            source has syntax errors.
        """
        tree = ruby.parse(source)
        if tree.root_node.has_error:
            logger.debug("Skipping source with syntax errors")
            return []

        suppressions = Suppressions.from_tree(tree)
        return sorted(
            (
                diag
                for rule in self.rules
                for diag in rule.check(tree, source)
                if not suppressions.silences(diag)
            ),
            key=lambda diag: (diag.line, diag.col),
        )
