"""Tests for the mixver CLI."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from mixver.cli import cli

CONFIG = """\
seed: 8
nodes: 3
versions: [v23.2.7, v24.1.3, v24.2.12]
cluster_settings:
  - name: kv.rangefeed.enabled
    values: [true, false]
    min_version: v24.1.0
    max_changes: 4
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("MIXVER_SEED", "MIXVER_NODES", "MIXVER_VERBOSE"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "mixver.yaml"
    path.write_text(CONFIG)
    return str(path)


class TestPlanCommand:
    def test_plain_output(self, runner):
        result = runner.invoke(cli, ["plan", "--plain", "--seed", "4"])
        assert result.exit_code == 0, result.output
        assert result.output.startswith("mixed-version test plan (initial version v23.1.9):")
        assert "upgrade cluster from v23.1.9 to v23.2.7" in result.output
        assert "seed: 4 |" in result.output

    def test_same_seed_same_plan(self, runner, config_path):
        args = ["-c", config_path, "plan", "--plain", "--seed", "21", "--force"]
        first = runner.invoke(cli, args)
        second = runner.invoke(cli, args)
        assert first.exit_code == 0, first.output
        assert first.output == second.output

    def test_force_applies_every_mutator(self, runner, config_path):
        result = runner.invoke(cli, ["-c", config_path, "plan", "--plain", "--force"])
        assert result.exit_code == 0, result.output
        assert "preserve_downgrade_option_randomizer, cluster_setting[kv.rangefeed.enabled]" in result.output
        # Seed comes from the config file.
        assert "seed: 8 |" in result.output

    def test_overrides(self, runner):
        result = runner.invoke(
            cli, ["plan", "--plain", "--seed", "1", "--versions", "v24.1.3, v24.2.12", "--nodes", "2"]
        )
        assert result.exit_code == 0, result.output
        assert "upgrade cluster from v24.1.3 to v24.2.12" in result.output
        assert "restart node 3" not in result.output

    def test_bad_versions_exit_code(self, runner):
        result = runner.invoke(cli, ["plan", "--versions", "v24.2.12,v24.1.3"])
        assert result.exit_code == 1

    def test_tree_output(self, runner):
        result = runner.invoke(cli, ["plan", "--seed", "2"])
        assert result.exit_code == 0, result.output
        assert "mixed-version test plan" in result.output


class TestMutationsCommand:
    def test_force_lists_each_mutator(self, runner, config_path):
        result = runner.invoke(cli, ["-c", config_path, "mutations", "--force"])
        assert result.exit_code == 0, result.output
        assert "preserve_downgrade_option_randomizer" in result.output
        assert "cluster_setting[kv.rangefeed.enabled]" in result.output

    def test_nothing_selected(self, runner, tmp_path):
        path = tmp_path / "quiet.yaml"
        path.write_text("downgrade_option_probability: 0.0\n")
        result = runner.invoke(cli, ["-c", str(path), "mutations", "--seed", "3"])
        assert result.exit_code == 0, result.output
        assert "No mutator was selected for this seed." in result.output


class TestSettingsCommand:
    def test_lists_mutators(self, runner, config_path):
        result = runner.invoke(cli, ["-c", config_path, "settings"])
        assert result.exit_code == 0, result.output
        assert "kv.rangefeed.enabled" in result.output
        assert "2 mutator(s) configured" in result.output

    def test_invalid_config_exit_code(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("nodes: 0\n")
        result = runner.invoke(cli, ["-c", str(path), "settings"])
        assert result.exit_code == 1
        assert "E202" in result.output

    def test_verbose_error_lists_suggestions(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("versions: [v24.1.3]\n")
        result = runner.invoke(cli, ["-v", "-c", str(path), "settings"])
        assert result.exit_code == 1
        assert "Suggestions:" in result.output


class TestMarkupInNames:
    def test_skipped_line_keeps_setting_name(self, runner, tmp_path):
        path = tmp_path / "skip.yaml"
        path.write_text(
            "downgrade_option_probability: 1.0\n"
            "cluster_settings:\n"
            "  - name: kv.rangefeed.enabled\n"
            "    values: [true]\n"
            "    probability: 0.0\n"
        )
        result = runner.invoke(cli, ["-c", str(path), "mutations", "--seed", "5"])
        assert result.exit_code == 0, result.output
        assert "skipped cluster_setting[kv.rangefeed.enabled]" in result.output

    def test_bracketed_value_survives_tree(self, runner, tmp_path):
        path = tmp_path / "brackets.yaml"
        path.write_text(
            "randomize_downgrade_option: false\n"
            "cluster_settings:\n"
            "  - name: sql.stats.mode\n"
            "    values: ['[on]']\n"
        )
        result = runner.invoke(cli, ["-c", str(path), "plan", "--seed", "3", "--force"])
        assert result.exit_code == 0, result.output
        assert "set cluster setting 'sql.stats.mode' to '[on]'" in result.output
