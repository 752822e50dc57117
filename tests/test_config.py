"""Tests for allday.config: load_config, Config and active_rules."""

import pathlib

from allday import analyzer as allday_analyzer
from allday import config as allday_config
from allday import ruby
from allday.rules import base, rails

_SOURCE = "date.beginning_of_day..date.end_of_day\n"


class OTH001(base.Rule):
    """Rule stand-in with a distinct ID for filtering tests."""

    def check(self, tree, source: str) -> list[base.Diagnostic]:
        return []


_SAMPLE_RULES = [rails.DTR001(), OTH001()]


def _ids(rule_list: list) -> list[str]:
    return [type(rule).__name__ for rule in rule_list]


# ---------------------------------------------------------------------------
# load_config: no config file
# ---------------------------------------------------------------------------


class TestLoadConfigMissing:
    def test_no_config_file_returns_defaults(self, tmp_path: pathlib.Path) -> None:
        cfg = allday_config.load_config(tmp_path)
        assert cfg.select is None
        assert cfg.ignore == frozenset()
        assert cfg.rule_options == {}

    def test_finds_pyproject_in_parent(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.allday]\nignore = ["DTR001"]\n'
        )
        child = tmp_path / "app" / "models"
        child.mkdir(parents=True)
        cfg = allday_config.load_config(child)
        assert "DTR001" in cfg.ignore

    def test_invalid_toml_returns_defaults(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text("this is not : valid toml ][")
        cfg = allday_config.load_config(tmp_path)
        assert cfg.select is None
        assert cfg.ignore == frozenset()

    def test_no_tool_section_returns_defaults(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.ruff]\nline-length = 88\n")
        cfg = allday_config.load_config(tmp_path)
        assert cfg.select is None
        assert cfg.ignore == frozenset()


# ---------------------------------------------------------------------------
# load_config: select / ignore / rules
# ---------------------------------------------------------------------------


class TestLoadConfigValues:
    def test_select_normalised_to_uppercase(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[tool.allday]\nselect = ["dtr001"]\n')
        cfg = allday_config.load_config(tmp_path)
        assert cfg.select == frozenset({"DTR001"})
        assert cfg.ignore == frozenset()

    def test_ignore_normalised_to_uppercase(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[tool.allday]\nignore = ["dtr001"]\n')
        cfg = allday_config.load_config(tmp_path)
        assert cfg.select is None
        assert cfg.ignore == frozenset({"DTR001"})

    def test_rule_options_loaded(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.allday.rules.dtr001]\nseverity = "hint"\n'
        )
        cfg = allday_config.load_config(tmp_path)
        assert cfg.rule_options == {"DTR001": {"severity": "hint"}}

    def test_non_scalar_option_values_ignored(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.allday.rules.DTR001]\nseverity = "hint"\nbad = [1, 2, 3]\n'
        )
        cfg = allday_config.load_config(tmp_path)
        assert cfg.rule_options["DTR001"] == {"severity": "hint"}


# ---------------------------------------------------------------------------
# load_config: .allday.toml
# ---------------------------------------------------------------------------


class TestLoadConfigAlldayToml:
    def test_top_level_keys_are_settings(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / ".allday.toml").write_text(
            'ignore = ["dtr001"]\n\n[rules.DTR001]\nseverity = "hint"\n'
        )
        cfg = allday_config.load_config(tmp_path)
        assert cfg.ignore == frozenset({"DTR001"})
        assert cfg.rule_options == {"DTR001": {"severity": "hint"}}

    def test_preferred_over_pyproject_in_same_directory(
        self, tmp_path: pathlib.Path
    ) -> None:
        (tmp_path / ".allday.toml").write_text('select = ["DTR001"]\n')
        (tmp_path / "pyproject.toml").write_text('[tool.allday]\nignore = ["DTR001"]\n')
        cfg = allday_config.load_config(tmp_path)
        assert cfg.select == frozenset({"DTR001"})
        assert cfg.ignore == frozenset()

    def test_nearer_pyproject_wins_over_parent_allday_toml(
        self, tmp_path: pathlib.Path
    ) -> None:
        (tmp_path / ".allday.toml").write_text('ignore = ["DTR001"]\n')
        child = tmp_path / "engine"
        child.mkdir()
        (child / "pyproject.toml").write_text('[tool.allday]\nselect = ["DTR001"]\n')
        cfg = allday_config.load_config(child)
        assert cfg.select == frozenset({"DTR001"})
        assert cfg.ignore == frozenset()


# ---------------------------------------------------------------------------
# Config.is_enabled / Config.options_for
# ---------------------------------------------------------------------------


class TestConfig:
    def test_everything_enabled_by_default(self) -> None:
        assert allday_config.Config().is_enabled("DTR001")

    def test_select_restricts(self) -> None:
        cfg = allday_config.Config(select=frozenset({"OTH001"}))
        assert cfg.is_enabled("OTH001")
        assert not cfg.is_enabled("DTR001")

    def test_ignore_applies_after_select(self) -> None:
        cfg = allday_config.Config(
            select=frozenset({"DTR001", "OTH001"}), ignore=frozenset({"DTR001"})
        )
        assert not cfg.is_enabled("DTR001")
        assert cfg.is_enabled("OTH001")

    def test_options_for_unknown_rule_is_empty(self) -> None:
        cfg = allday_config.Config(rule_options={"DTR001": {"severity": "error"}})
        assert cfg.options_for("DTR001") == {"severity": "error"}
        assert cfg.options_for("OTH001") == {}


# ---------------------------------------------------------------------------
# active_rules
# ---------------------------------------------------------------------------


class TestActiveRules:
    def test_defaults_keep_registry_order(self) -> None:
        rules = allday_config.active_rules(_SAMPLE_RULES, allday_config.Config())
        assert _ids(rules) == ["DTR001", "OTH001"]

    def test_select_unknown_id_returns_empty(self) -> None:
        cfg = allday_config.Config(select=frozenset({"UNKNOWN"}))
        assert allday_config.active_rules(_SAMPLE_RULES, cfg) == []

    def test_select_then_ignore(self) -> None:
        cfg = allday_config.Config(
            select=frozenset({"DTR001", "OTH001"}), ignore=frozenset({"DTR001"})
        )
        assert _ids(allday_config.active_rules(_SAMPLE_RULES, cfg)) == ["OTH001"]

    def test_rules_without_options_returned_unchanged(self) -> None:
        rules = [rails.DTR001(), OTH001()]
        assert allday_config.active_rules(rules, allday_config.Config()) == rules

    def test_options_applied_to_matching_rule(self) -> None:
        cfg = allday_config.Config(rule_options={"DTR001": {"severity": "error"}})
        [configured, other] = allday_config.active_rules(_SAMPLE_RULES, cfg)
        [diag] = configured.check(ruby.parse(_SOURCE), _SOURCE)
        assert diag.severity is base.Severity.ERROR
        assert other is _SAMPLE_RULES[1]


# ---------------------------------------------------------------------------
# Integration: active rules actually affect analysis
# ---------------------------------------------------------------------------


class TestFilterIntegration:
    def test_ignored_rule_produces_no_diagnostic(self) -> None:
        cfg = allday_config.Config(select=None, ignore=frozenset({"DTR001"}))
        az = allday_analyzer.Analyzer(rules=allday_config.active_rules(_SAMPLE_RULES, cfg))
        assert az.analyze(_SOURCE) == []

    def test_selected_rule_still_fires(self) -> None:
        cfg = allday_config.Config(select=frozenset({"DTR001"}), ignore=frozenset())
        az = allday_analyzer.Analyzer(rules=allday_config.active_rules(_SAMPLE_RULES, cfg))
        assert [diag.rule_id for diag in az.analyze(_SOURCE)] == ["DTR001"]
