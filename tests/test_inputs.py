"""Tests for input validation and period parameters."""
import dataclasses

import pytest

from src.models.inputs import (
    InvalidParameterError,
    MatchInputs,
    ScoringParameters,
    split_factors,
)


class TestScoringParameters:
    """Test per-period scoring parameters."""

    def test_valid_parameters(self):
        """Valid rates and inflation are stored as floats."""
        params = ScoringParameters(1, 2, 0.1, 0.2)

        assert params.lambda_home == 1.0
        assert isinstance(params.lambda_home, float)
        assert params.pi_away == 0.2

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"lambda_home": -0.5, "lambda_away": 1.0},
            {"lambda_home": 1.0, "lambda_away": -1.0},
            {"lambda_home": 1.0, "lambda_away": 1.0, "pi_home": 1.2},
            {"lambda_home": 1.0, "lambda_away": 1.0, "pi_away": -0.1},
            {"lambda_home": float("nan"), "lambda_away": 1.0},
            {"lambda_home": "abc", "lambda_away": 1.0},
        ],
    )
    def test_invalid_parameters_rejected(self, kwargs):
        """Out-of-range values raise instead of being clamped."""
        with pytest.raises(InvalidParameterError):
            ScoringParameters(**kwargs)

    def test_invalid_parameter_is_value_error(self):
        """Callers catching ValueError still see validation failures."""
        with pytest.raises(ValueError):
            ScoringParameters(-1.0, 1.0)

    def test_zero_lambda_allowed(self):
        """A side expected to score nothing is valid."""
        params = ScoringParameters(0.0, 0.0)

        assert params.lambda_home == 0.0

    def test_scaled_keeps_inflation(self):
        """Scaling changes rates only."""
        params = ScoringParameters(2.0, 1.0, 0.1, 0.05).scaled(0.45)

        assert params.lambda_home == pytest.approx(0.9)
        assert params.lambda_away == pytest.approx(0.45)
        assert params.pi_home == 0.1
        assert params.pi_away == 0.05

    def test_parameters_are_frozen(self):
        """Parameters cannot be changed after construction."""
        params = ScoringParameters(1.5, 1.2)

        with pytest.raises(dataclasses.FrozenInstanceError):
            params.lambda_home = 2.0


class TestSplitFactors:
    """Test half-period split policies."""

    def test_complementary_split(self):
        assert split_factors(0.45, "complementary") == pytest.approx((0.45, 0.55))

    def test_symmetric_split(self):
        assert split_factors(0.45, "symmetric") == (0.45, 0.45)

    @pytest.mark.parametrize("factor", [0.0, 1.0, -0.2, 1.5])
    def test_factor_outside_unit_interval(self, factor):
        with pytest.raises(InvalidParameterError):
            split_factors(factor, "complementary")

    def test_unknown_policy(self):
        with pytest.raises(InvalidParameterError):
            split_factors(0.45, "thirds")


class TestMatchInputs:
    """Test input modes and caller-side rules."""

    def test_from_xg(self):
        """xG mode uses the values directly."""
        inputs = MatchInputs.from_xg(1.5, 1.2, pi_home=0.1, pi_away=0.05)

        assert inputs.lambda_home == 1.5
        assert inputs.lambda_away == 1.2
        assert inputs.pi_home == 0.1

    def test_from_supremacy(self):
        """Home = (exp + sup) / 2, away = (exp - sup) / 2."""
        inputs = MatchInputs.from_supremacy(0.5, 2.7)

        assert inputs.lambda_home == pytest.approx(1.6)
        assert inputs.lambda_away == pytest.approx(1.1)

    def test_negative_supremacy_favours_away(self):
        inputs = MatchInputs.from_supremacy(-0.4, 2.4)

        assert inputs.lambda_away > inputs.lambda_home

    @pytest.mark.parametrize("expectancy", [0.0, -1.0])
    def test_non_positive_expectancy_rejected(self, expectancy):
        with pytest.raises(InvalidParameterError, match="Total expectancy"):
            MatchInputs.from_supremacy(0.0, expectancy)

    def test_negative_implied_goals_rejected(self):
        """Supremacy larger than expectancy implies negative goals."""
        with pytest.raises(InvalidParameterError, match="negative"):
            MatchInputs.from_supremacy(3.0, 2.0)

    def test_negative_xg_rejected(self):
        with pytest.raises(InvalidParameterError):
            MatchInputs.from_xg(-0.1, 1.0)

    def test_zip_disabled_ignores_inflation(self):
        """With zero inflation off both pi are zero."""
        inputs = MatchInputs.from_xg(1.5, 1.2, pi_home=0.3, pi_away=0.2, use_zip=False)

        assert inputs.pi_home == 0.0
        assert inputs.pi_away == 0.0

    def test_zip_disabled_ignores_invalid_inflation(self):
        """Inflation fields are not read when disabled."""
        inputs = MatchInputs.from_xg(1.5, 1.2, pi_home=5.0, use_zip=False)

        assert inputs.pi_home == 0.0

    def test_invalid_inflation_rejected(self):
        with pytest.raises(InvalidParameterError):
            MatchInputs.from_xg(1.5, 1.2, pi_home=1.1)

    def test_negative_margin_clamped(self):
        """Negative margin becomes zero rather than an error."""
        inputs = MatchInputs.from_xg(1.5, 1.2, margin_pct=-5.0)

        assert inputs.margin_pct == 0.0

    def test_default_team_names(self):
        inputs = MatchInputs.from_xg(1.5, 1.2, home_team="", away_team="")

        assert inputs.home_team == "Home"
        assert inputs.away_team == "Away"

    def test_period_parameters_complementary(self):
        """Halves get f and 1 - f of full expectancy."""
        inputs = MatchInputs.from_xg(
            2.0, 1.0, pi_home=0.1, half_factor=0.45, half_split="complementary"
        )
        periods = inputs.period_parameters()

        assert periods["full"].lambda_home == 2.0
        assert periods["first_half"].lambda_home == pytest.approx(0.9)
        assert periods["second_half"].lambda_home == pytest.approx(1.1)
        assert periods["second_half"].lambda_away == pytest.approx(0.55)
        assert periods["first_half"].pi_home == 0.1

    def test_period_parameters_symmetric(self):
        """Symmetric split scales both halves by f."""
        inputs = MatchInputs.from_xg(2.0, 1.0, half_factor=0.45, half_split="symmetric")
        periods = inputs.period_parameters()

        assert periods["first_half"].lambda_home == pytest.approx(0.9)
        assert periods["second_half"].lambda_home == pytest.approx(0.9)

    def test_invalid_half_factor_rejected(self):
        with pytest.raises(InvalidParameterError):
            MatchInputs.from_xg(1.5, 1.2, half_factor=1.0)
