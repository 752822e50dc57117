"""Base abstractions for allday rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import tree_sitter


class Severity(Enum):
    """LSP diagnostic severity levels."""

    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


@dataclass(frozen=True)
class Fix:
    """Replacement text for the full range of the owning diagnostic."""

    replacement: str


@dataclass
class Diagnostic:
    """A single diagnostic emitted by a rule."""

    rule_id: str
    message: str
    line: int      # 1-indexed
    col: int       # 0-indexed, in characters
    end_line: int
    end_col: int
    severity: Severity
    fix: Fix | None = None


class Rule(ABC):
    """Abstract base class for all allday rules."""

    @abstractmethod
    def check(self, tree: tree_sitter.Tree, source: str) -> list[Diagnostic]:
        """Analyze the syntax tree and return any diagnostics.

        Args:
            tree: The parsed Ruby syntax tree of the source file.
            source: The raw source string the tree was parsed from.

        Returns:
            A list of Diagnostic instances. Returns an empty list if no issues
            are found.
        """

    def configure(self, options: dict[str, int | str | bool]) -> Rule:
        """Return a rule with *options* applied.

        Rules without options ignore them and return themselves.
        """
        return self
