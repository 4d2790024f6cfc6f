"""Convert true probabilities into margin-adjusted decimal prices."""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from src.config.settings import settings

logger = logging.getLogger(__name__)


def apply_margin(probabilities: Sequence[float], margin_pct: float) -> list[float]:
    """Rescale mutually exclusive probabilities to sum to 1 + margin.

    Callers clamp negative margins to 0 before calling.

    Example: [0.5, 0.3, 0.2] at 10% -> [0.55, 0.33, 0.22] (sum 1.10)
    """
    target_sum = 1 + margin_pct / 100
    current_sum = sum(probabilities)

    if current_sum == 0:
        return [0.0 for _ in probabilities]

    return [p / current_sum * target_sum for p in probabilities]


def price_of(probability: float, epsilon: Optional[float] = None) -> float:
    """Decimal price for a probability, 0.0 when there is no market."""
    epsilon = settings.engine.price_epsilon if epsilon is None else epsilon
    if probability <= epsilon:
        return 0.0
    return 1 / probability


def inflate(probability: float, margin_pct: float) -> float:
    """Single-outcome implied probability: p * (1 + margin)."""
    return probability * (1 + margin_pct / 100)


@dataclass(frozen=True)
class PricedOutcome:
    """A true probability with its margin-adjusted price."""
    probability: float
    adjusted_probability: float
    fair_price: float
    price: float

    def to_dict(self) -> dict:
        return {
            "prob": self.probability,
            "adjusted_prob": self.adjusted_probability,
            "fair_odds": self.fair_price,
            "odds": self.price,
        }


def price_group(probabilities: dict, margin_pct: float) -> dict:
    """Price a mutually exclusive group of outcomes together.

    Args:
        probabilities: {outcome: probability}, order preserved
        margin_pct: Overround percentage (>= 0)

    Returns:
        {outcome: PricedOutcome}
    """
    labels = list(probabilities)
    raw = [probabilities[label] for label in labels]
    adjusted = apply_margin(raw, margin_pct)

    return {
        label: PricedOutcome(
            probability=p,
            adjusted_probability=adj,
            fair_price=price_of(p),
            price=price_of(adj),
        )
        for label, p, adj in zip(labels, raw, adjusted)
    }


def price_single(probability: float, margin_pct: float) -> PricedOutcome:
    """Price one outcome of a large book by simple inflation."""
    adjusted = inflate(probability, margin_pct)
    return PricedOutcome(
        probability=probability,
        adjusted_probability=adjusted,
        fair_price=price_of(probability),
        price=price_of(adjusted),
    )


def price_yes(probability: float, margin_pct: float) -> PricedOutcome:
    """Price a one-sided yes/no market, returning the 'yes' leg."""
    return price_group({"yes": probability, "no": 1 - probability}, margin_pct)["yes"]
