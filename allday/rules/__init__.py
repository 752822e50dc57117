"""All allday rules."""

from allday.rules import base, rails

ALL_RULES: list[base.Rule] = [
    rails.DTR001(),
]

__all__ = ["ALL_RULES"]
