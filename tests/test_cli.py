"""Tests for CLI commands."""
import json

import pytest
from click.testing import CliRunner

from src.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def _json_output(output: str) -> dict:
    return json.loads(output[output.index("{"):])


class TestCalculateCommand:
    """Test the calculate command."""

    def test_calculate_table(self, runner):
        result = runner.invoke(
            cli,
            ["calculate", "--home-xg", "1.5", "--away-xg", "1.2",
             "--home-team", "Arsenal", "--away-team", "Chelsea"],
        )

        assert result.exit_code == 0, result.output
        assert "Arsenal vs Chelsea" in result.output
        assert "Match Result" in result.output
        assert "Over 2.5" in result.output

    def test_calculate_json(self, runner):
        result = runner.invoke(
            cli,
            ["calculate", "--home-xg", "1.5", "--away-xg", "1.2",
             "--pi-home", "0.1", "--margin", "10", "--output", "json"],
        )

        assert result.exit_code == 0, result.output
        data = _json_output(result.output)
        assert data["parameters"]["full"]["pi_home"] == 0.1
        assert "htft" in data["compound"]
        home = data["priced"]["periods"]["full"]["1x2"]["home"]
        assert home["adjusted_prob"] > home["prob"]

    def test_calculate_supremacy_mode(self, runner):
        result = runner.invoke(
            cli,
            ["calculate", "--supremacy", "0.5", "--expectancy", "2.7", "--output", "json"],
        )

        assert result.exit_code == 0, result.output
        data = _json_output(result.output)
        assert data["parameters"]["full"]["lambda_home"] == pytest.approx(1.6)

    def test_calculate_with_profile(self, runner):
        result = runner.invoke(
            cli,
            ["calculate", "--home-xg", "1.5", "--away-xg", "1.2", "--profile", "per_period"],
        )

        assert result.exit_code == 0, result.output
        assert "per_period" in result.output

    def test_unknown_profile(self, runner):
        result = runner.invoke(
            cli,
            ["calculate", "--home-xg", "1.5", "--away-xg", "1.2", "--profile", "nope"],
        )

        assert result.exit_code == 2

    def test_invalid_expectancy(self, runner):
        result = runner.invoke(
            cli, ["calculate", "--supremacy", "0.5", "--expectancy", "0"]
        )

        assert result.exit_code == 2
        assert "Total expectancy" in result.output

    def test_missing_inputs(self, runner):
        result = runner.invoke(cli, ["calculate", "--home-xg", "1.5"])

        assert result.exit_code == 2

    def test_supremacy_without_expectancy(self, runner):
        result = runner.invoke(cli, ["calculate", "--supremacy", "0.5"])

        assert result.exit_code == 2


class TestOtherCommands:
    """Test grid, htft and profiles."""

    def test_grid(self, runner):
        result = runner.invoke(cli, ["grid", "--home-xg", "1.5", "--away-xg", "1.2"])

        assert result.exit_code == 0, result.output
        assert "Warning" not in result.output

    def test_grid_tail_warning(self, runner):
        result = runner.invoke(cli, ["grid", "--home-xg", "4.5", "--away-xg", "4.0"])

        assert result.exit_code == 0, result.output
        assert "Tail probability" in result.output

    def test_grid_first_half(self, runner):
        result = runner.invoke(
            cli, ["grid", "--home-xg", "1.5", "--away-xg", "1.2", "--period", "first_half"]
        )

        assert result.exit_code == 0, result.output

    def test_htft(self, runner):
        result = runner.invoke(cli, ["htft", "--home-xg", "1.5", "--away-xg", "1.2"])

        assert result.exit_code == 0, result.output
        assert "X/X" in result.output
        assert "Covered mass" in result.output

    def test_profiles(self, runner):
        result = runner.invoke(cli, ["profiles"])

        assert result.exit_code == 0, result.output
        assert "per_period" in result.output
        assert "correct_score: 20.0%" in result.output


class TestConfiguredDefaults:
    """Test that commands honour configured settings."""

    def test_configured_margin_profile(self, runner, monkeypatch):
        """MARGIN_PROFILE is used when neither --profile nor --margin is given."""
        from src.config import settings

        monkeypatch.setattr(settings, "margin_profile", "per_period")

        result = runner.invoke(cli, ["calculate", "--home-xg", "1.5", "--away-xg", "1.2"])

        assert result.exit_code == 0, result.output
        assert "Margin profile: per_period" in result.output

    def test_margin_flag_beats_configured_profile(self, runner, monkeypatch):
        from src.config import settings

        monkeypatch.setattr(settings, "margin_profile", "per_period")

        result = runner.invoke(
            cli, ["calculate", "--home-xg", "1.5", "--away-xg", "1.2", "--margin", "3"]
        )

        assert result.exit_code == 0, result.output
        assert "Margin profile: single (3.0%)" in result.output

    def test_htft_uses_configured_profile(self, runner, monkeypatch):
        from src.config import settings

        monkeypatch.setattr(settings, "margin_profile", "per_period")

        result = runner.invoke(cli, ["htft", "--home-xg", "1.5", "--away-xg", "1.2"])

        assert result.exit_code == 0, result.output
        assert "Margin profile: per_period (15.0%)" in result.output

    def test_unknown_configured_profile(self, runner, monkeypatch):
        from src.config import settings

        monkeypatch.setattr(settings, "margin_profile", "missing")

        result = runner.invoke(cli, ["calculate", "--home-xg", "1.5", "--away-xg", "1.2"])

        assert result.exit_code == 1
        assert "Unknown margin profile" in result.output

    @pytest.mark.parametrize(
        "args",
        [
            ["calculate", "--home-xg", "1.5", "--away-xg", "1.2"],
            ["grid", "--home-xg", "1.5", "--away-xg", "1.2"],
            ["htft", "--home-xg", "1.5", "--away-xg", "1.2"],
            ["profiles"],
        ],
    )
    def test_commands_configure_logging(self, runner, monkeypatch, args):
        """Every command sets up logging before running."""
        calls = []
        monkeypatch.setattr("src.config.setup_logging", lambda: calls.append(True))

        result = runner.invoke(cli, args)

        assert result.exit_code == 0, result.output
        assert calls == [True]
