"""Load allday configuration from ``.allday.toml`` or ``pyproject.toml``.

Ruby projects usually keep a ``.allday.toml`` next to their ``Gemfile``;
its top-level keys are the settings.  Mixed repositories can use a
``[tool.allday]`` table in ``pyproject.toml`` instead.  The nearest
directory holding either file wins, and ``.allday.toml`` is preferred
when both sit in the same directory::

    select = ["DTR001"]
    ignore = []

    [rules.DTR001]
    severity = "hint"
"""

from __future__ import annotations

import dataclasses
import pathlib
import tomllib
import typing

from loguru import logger

if typing.TYPE_CHECKING:
    from allday.rules import base

OptionValue = int | str | bool

_CONFIG_FILES: tuple[str, ...] = (".allday.toml", "pyproject.toml")


@dataclasses.dataclass(frozen=True)
class Config:
    """Resolved allday configuration.

    Attributes:
        select: Rule IDs to run. ``None`` means every registered rule.
        ignore: Rule IDs removed after ``select`` is applied.
        rule_options: Per-rule option overrides keyed by rule ID.
    """

    select: frozenset[str] | None = None
    ignore: frozenset[str] = frozenset()
    rule_options: dict[str, dict[str, OptionValue]] = dataclasses.field(
        default_factory=dict, hash=False
    )

    def is_enabled(self, rule_id: str) -> bool:
        selected = self.select is None or rule_id in self.select
        return selected and rule_id not in self.ignore

    def options_for(self, rule_id: str) -> dict[str, OptionValue]:
        return self.rule_options.get(rule_id, {})


def _find_config_file(start: pathlib.Path) -> pathlib.Path | None:
    for directory in [start, *start.parents]:
        for name in _CONFIG_FILES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def _section(path: pathlib.Path, data: dict[str, typing.Any]) -> dict[str, typing.Any]:
    if path.name == "pyproject.toml":
        return data.get("tool", {}).get("allday", {})
    return data


def _from_section(section: dict[str, typing.Any]) -> Config:
    select_raw: list[str] | None = section.get("select")
    rules_raw: dict[str, object] = section.get("rules", {})
    return Config(
        select=(
            frozenset(rule_id.upper() for rule_id in select_raw)
            if select_raw is not None
            else None
        ),
        ignore=frozenset(rule_id.upper() for rule_id in section.get("ignore", [])),
        rule_options={
            rule_id.upper(): {
                key: value
                for key, value in opts.items()
                if isinstance(value, OptionValue)
            }
            for rule_id, opts in rules_raw.items()
            if isinstance(opts, dict)
        },
    )


def load_config(start: pathlib.Path | None = None) -> Config:
    """Return the Config nearest to *start* (default: cwd), or the defaults.

    A file that cannot be read or parsed is logged and treated as absent.
    """
    search_root = start if start is not None else pathlib.Path.cwd()
    path = _find_config_file(search_root)
    if path is None:
        logger.debug("No allday configuration found above {}", search_root)
        return Config()

    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable {}: {}", path, exc)
        return Config()

    logger.debug("Loaded configuration from {}", path)
    return _from_section(_section(path, data))


def active_rules(all_rules: list[base.Rule], config: Config) -> list[base.Rule]:
    """Return the enabled rules, in registry order, with their options applied.

    A rule's ID is its class name (e.g. ``DTR001``).
    """
    result: list[base.Rule] = []
    for rule in all_rules:
        rule_id = type(rule).__name__
        if not config.is_enabled(rule_id):
            continue
        options = config.options_for(rule_id)
        result.append(rule.configure(options) if options else rule)
    return result
