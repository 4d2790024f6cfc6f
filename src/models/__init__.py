"""Model calculation orchestration."""
import logging
from dataclasses import dataclass
from typing import Optional, Union

from src.config.settings import MarginProfile
from src.models.inputs import (
    InvalidParameterError,
    MatchInputs,
    ScoringParameters,
)
from src.models.poisson_matrix import (
    GoalDistribution,
    JointMatrix,
    PoissonCalculator,
    poisson_calc,
)
from src.models.market_probabilities import MarketDeriver, MarketSet, market_deriver
from src.models.compound_markets import (
    CompoundMarketDeriver,
    CompoundMarketSet,
    HalfTimeFullTime,
    compound_deriver,
)
from src.models.pricing import (
    PricedOutcome,
    apply_margin,
    price_group,
    price_of,
    price_single,
    price_yes,
)

logger = logging.getLogger(__name__)

__all__ = [
    "MatchCalculator",
    "MatchCalculation",
    "PricedMarkets",
    "match_calculator",
    "InvalidParameterError",
    "MatchInputs",
    "ScoringParameters",
    "GoalDistribution",
    "JointMatrix",
    "PoissonCalculator",
    "poisson_calc",
    "MarketDeriver",
    "MarketSet",
    "market_deriver",
    "CompoundMarketDeriver",
    "CompoundMarketSet",
    "HalfTimeFullTime",
    "compound_deriver",
    "PricedOutcome",
    "apply_margin",
    "price_of",
]

PERIODS = ("full", "first_half", "second_half")


@dataclass(frozen=True)
class MatchCalculation:
    """Immutable result of one calculation request."""
    inputs: MatchInputs
    parameters: dict  # {period: ScoringParameters}
    joints: dict  # {period: JointMatrix}
    markets: dict  # {period: MarketSet}
    compound: CompoundMarketSet

    @property
    def tail_warnings(self) -> dict:
        """Warning message per period whose tail mass exceeds the threshold."""
        return {
            period: joint.warning_message
            for period, joint in self.joints.items()
            if joint.tail_warning
        }

    def to_dict(self) -> dict:
        return {
            "home_team": self.inputs.home_team,
            "away_team": self.inputs.away_team,
            "parameters": {
                period: {
                    "lambda_home": params.lambda_home,
                    "lambda_away": params.lambda_away,
                    "pi_home": params.pi_home,
                    "pi_away": params.pi_away,
                }
                for period, params in self.parameters.items()
            },
            "markets": {period: m.to_dict() for period, m in self.markets.items()},
            "compound": self.compound.to_dict(),
        }


@dataclass(frozen=True)
class PricedMarkets:
    """Priced view over a calculation for one margin profile."""
    profile: MarginProfile
    periods: dict  # {period: {market: {outcome: PricedOutcome}}}
    htft: dict  # {"1/1": PricedOutcome, ...}

    def to_dict(self) -> dict:
        def _plain(value):
            if isinstance(value, PricedOutcome):
                return value.to_dict()
            return {str(k): _plain(v) for k, v in value.items()}

        return {
            "margin_profile": self.profile.name,
            "periods": _plain(self.periods),
            "htft": _plain(self.htft),
        }


def price_period(markets: MarketSet, margin_pct: float, correct_score_margin: float) -> dict:
    """Price every market of one period."""
    p_1x2 = price_group(
        {"home": markets.home_win, "draw": markets.draw, "away": markets.away_win},
        margin_pct,
    )

    # Double chance from the already margined 1X2 legs
    double_chance = {}
    for name, (first, second) in {
        "1X": ("home", "draw"),
        "X2": ("draw", "away"),
        "12": ("home", "away"),
    }.items():
        prob = p_1x2[first].probability + p_1x2[second].probability
        adjusted = p_1x2[first].adjusted_probability + p_1x2[second].adjusted_probability
        double_chance[name] = PricedOutcome(
            probability=prob,
            adjusted_probability=adjusted,
            fair_price=price_of(prob),
            price=price_of(adjusted),
        )

    size = markets.joint.max_goals + 1
    return {
        "1x2": p_1x2,
        "double_chance": double_chance,
        "btts": price_group(markets.p_btts, margin_pct),
        "over_under": {
            line: price_group({"over": over, "under": 1 - over}, margin_pct)
            for line, over in markets.overs.items()
        },
        "win_to_nil": {
            "home": price_yes(markets.win_to_nil_home, margin_pct),
            "away": price_yes(markets.win_to_nil_away, margin_pct),
        },
        "clean_sheet": {
            "home": price_yes(markets.clean_sheet_home, margin_pct),
            "away": price_yes(markets.clean_sheet_away, margin_pct),
        },
        "exact_totals": {
            total: price_single(p, margin_pct)
            for total, p in enumerate(markets.exact_totals)
        },
        "correct_score": {
            f"{h}-{a}": price_single(markets.correct_score(h, a), correct_score_margin)
            for h in range(size)
            for a in range(size)
        },
    }


class MatchCalculator:
    """Complete calculation pipeline: full match, first half, second half."""

    def __init__(
        self,
        calculator: Optional[PoissonCalculator] = None,
        deriver: Optional[MarketDeriver] = None,
        compound: Optional[CompoundMarketDeriver] = None,
    ):
        self.calculator = calculator or poisson_calc
        self.deriver = deriver or market_deriver
        self.compound = compound or compound_deriver

    def calculate(self, inputs: MatchInputs) -> MatchCalculation:
        """Build all three periods and derive every market."""
        parameters = inputs.period_parameters()

        joints = {
            period: self.calculator.calculate(parameters[period])
            for period in PERIODS
        }
        markets = {
            period: self.deriver.derive_markets(joints[period])
            for period in PERIODS
        }
        compound = self.compound.derive_compound_markets(
            joints["full"], joints["first_half"], joints["second_half"]
        )

        logger.info(
            f"Calculated {inputs.home_team} vs {inputs.away_team}: "
            f"lambda {inputs.lambda_home:.2f}-{inputs.lambda_away:.2f}, "
            f"1H {parameters['first_half'].lambda_home:.2f}-{parameters['first_half'].lambda_away:.2f}, "
            f"2H {parameters['second_half'].lambda_home:.2f}-{parameters['second_half'].lambda_away:.2f}"
        )

        return MatchCalculation(
            inputs=inputs,
            parameters=parameters,
            joints=joints,
            markets=markets,
            compound=compound,
        )

    def price(
        self,
        calculation: MatchCalculation,
        margin: Union[float, MarginProfile, None] = None,
    ) -> PricedMarkets:
        """Price an existing calculation without rebuilding any matrix.

        Args:
            calculation: Result of calculate()
            margin: Single margin percentage, a MarginProfile, or None to use
                the margin carried by the inputs
        """
        if margin is None:
            profile = MarginProfile.single(calculation.inputs.margin_pct)
        elif isinstance(margin, MarginProfile):
            profile = margin
        else:
            profile = MarginProfile.single(margin)

        periods = {
            period: price_period(
                calculation.markets[period],
                max(0.0, profile.for_period(period)),
                max(0.0, profile.correct_score),
            )
            for period in PERIODS
        }
        htft = price_group(calculation.compound.htft.htft, max(0.0, profile.htft))

        return PricedMarkets(profile=profile, periods=periods, htft=htft)


# Singleton instance
match_calculator = MatchCalculator()
