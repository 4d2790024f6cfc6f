"""Validated scoring inputs for a calculation request."""
import logging
import math
from dataclasses import dataclass
from typing import Optional

from src.config.settings import settings, HALF_SPLITS

logger = logging.getLogger(__name__)


class InvalidParameterError(ValueError):
    """Raised when a scoring parameter is outside its documented range."""


def _check_finite(name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value}")
    return value


def validate_rate(name: str, value: float) -> float:
    """Validate an expected-goals rate (lambda >= 0)."""
    value = _check_finite(name, value)
    if value < 0:
        raise InvalidParameterError(f"{name} must be non-negative, got {value}")
    return value


def validate_inflation(name: str, value: float) -> float:
    """Validate a zero-inflation probability (0 <= pi <= 1)."""
    value = _check_finite(name, value)
    if not 0 <= value <= 1:
        raise InvalidParameterError(f"{name} must be between 0 and 1, got {value}")
    return value


@dataclass(frozen=True)
class ScoringParameters:
    """Expected goals and zero inflation for both sides over one period."""
    lambda_home: float
    lambda_away: float
    pi_home: float = 0.0
    pi_away: float = 0.0

    def __post_init__(self):
        # Frozen dataclass, so normalised values go through object.__setattr__
        object.__setattr__(self, "lambda_home", validate_rate("lambda_home", self.lambda_home))
        object.__setattr__(self, "lambda_away", validate_rate("lambda_away", self.lambda_away))
        object.__setattr__(self, "pi_home", validate_inflation("pi_home", self.pi_home))
        object.__setattr__(self, "pi_away", validate_inflation("pi_away", self.pi_away))

    def scaled(self, factor: float) -> "ScoringParameters":
        """Scale both rates, keeping the inflation probabilities."""
        return ScoringParameters(
            lambda_home=self.lambda_home * factor,
            lambda_away=self.lambda_away * factor,
            pi_home=self.pi_home,
            pi_away=self.pi_away,
        )


def split_factors(half_factor: float, half_split: str) -> tuple[float, float]:
    """Return the (first half, second half) share of full-match expectancy.

    'complementary' gives (f, 1 - f). 'symmetric' gives (f, f).
    """
    half_factor = _check_finite("half_factor", half_factor)
    if not 0 < half_factor < 1:
        raise InvalidParameterError(
            f"half_factor must be strictly between 0 and 1, got {half_factor}"
        )
    if half_split == "complementary":
        return half_factor, 1 - half_factor
    if half_split == "symmetric":
        return half_factor, half_factor
    raise InvalidParameterError(
        f"Invalid half split: {half_split}. Must be one of {list(HALF_SPLITS)}"
    )


@dataclass(frozen=True)
class MatchInputs:
    """Everything a calculation needs, already validated."""
    lambda_home: float
    lambda_away: float
    pi_home: float = 0.0
    pi_away: float = 0.0
    home_team: str = "Home"
    away_team: str = "Away"
    half_factor: float = 0.45
    half_split: str = "complementary"
    margin_pct: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "lambda_home", validate_rate("lambda_home", self.lambda_home))
        object.__setattr__(self, "lambda_away", validate_rate("lambda_away", self.lambda_away))
        object.__setattr__(self, "pi_home", validate_inflation("pi_home", self.pi_home))
        object.__setattr__(self, "pi_away", validate_inflation("pi_away", self.pi_away))
        split_factors(self.half_factor, self.half_split)

        # Negative margin is clamped, not rejected
        margin = _check_finite("margin_pct", self.margin_pct)
        object.__setattr__(self, "margin_pct", max(0.0, margin))

        object.__setattr__(self, "home_team", self.home_team or "Home")
        object.__setattr__(self, "away_team", self.away_team or "Away")

    @classmethod
    def from_xg(
        cls,
        home_xg: float,
        away_xg: float,
        pi_home: float = 0.0,
        pi_away: float = 0.0,
        use_zip: bool = True,
        home_team: str = "Home",
        away_team: str = "Away",
        half_factor: Optional[float] = None,
        half_split: Optional[str] = None,
        margin_pct: Optional[float] = None,
    ) -> "MatchInputs":
        """Build inputs from full-match expected goals per side."""
        if not use_zip:
            pi_home = pi_away = 0.0

        return cls(
            lambda_home=home_xg,
            lambda_away=away_xg,
            pi_home=pi_home,
            pi_away=pi_away,
            home_team=home_team,
            away_team=away_team,
            half_factor=settings.engine.half_factor if half_factor is None else half_factor,
            half_split=half_split or settings.engine.half_split,
            margin_pct=settings.default_margin_pct if margin_pct is None else margin_pct,
        )

    @classmethod
    def from_supremacy(
        cls,
        supremacy: float,
        expectancy: float,
        **kwargs,
    ) -> "MatchInputs":
        """Build inputs from goal supremacy (H - A) and total expectancy (H + A).

        Example: supremacy 0.5, expectancy 2.7 -> home 1.6, away 1.1
        """
        supremacy = _check_finite("supremacy", supremacy)
        expectancy = _check_finite("expectancy", expectancy)

        if expectancy <= 0:
            raise InvalidParameterError("Total expectancy must be greater than 0.")

        home_xg = (expectancy + supremacy) / 2
        away_xg = (expectancy - supremacy) / 2

        if home_xg < 0 or away_xg < 0:
            raise InvalidParameterError(
                "Implied team goals are negative. Check Supremacy vs Expectancy."
            )

        return cls.from_xg(home_xg, away_xg, **kwargs)

    @property
    def full(self) -> ScoringParameters:
        return ScoringParameters(
            lambda_home=self.lambda_home,
            lambda_away=self.lambda_away,
            pi_home=self.pi_home,
            pi_away=self.pi_away,
        )

    def period_parameters(self) -> dict[str, ScoringParameters]:
        """Scoring parameters for the full match and each half."""
        first, second = split_factors(self.half_factor, self.half_split)
        full = self.full
        return {
            "full": full,
            "first_half": full.scaled(first),
            "second_half": full.scaled(second),
        }
