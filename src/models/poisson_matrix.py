"""Zero-inflated Poisson distributions and the joint scoreline matrix."""
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.stats import poisson

from src.config.settings import settings
from src.models.inputs import (
    InvalidParameterError,
    ScoringParameters,
    validate_inflation,
    validate_rate,
)

logger = logging.getLogger(__name__)


def _freeze(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class GoalDistribution:
    """Probability of one side scoring 0..max_goals in a period."""
    probs: np.ndarray  # 1D, index = goals scored
    tail: float  # Mass for goal counts above max_goals
    lam: float
    pi: float

    @property
    def max_goals(self) -> int:
        return len(self.probs) - 1

    @property
    def total_mass(self) -> float:
        """Mass covered by the grid (1 - tail)."""
        return 1 - self.tail


@dataclass(frozen=True)
class JointMatrix:
    """Scoreline probabilities [home_goals][away_goals] for one period.

    Cells are the outer product of two independent team distributions.
    Independence is a modelling assumption: no correlation term is applied.
    """
    matrix: np.ndarray  # 2D, shape (max_goals + 1, max_goals + 1)
    home: GoalDistribution
    away: GoalDistribution
    tail_mass: float
    tail_warning_threshold: float = 0.01

    @property
    def max_goals(self) -> int:
        return self.matrix.shape[0] - 1

    @property
    def total_mass(self) -> float:
        return 1 - self.tail_mass

    @property
    def tail_warning(self) -> bool:
        """True when truncation makes the grid unreliable for high scores."""
        return self.tail_mass > self.tail_warning_threshold

    @property
    def warning_message(self) -> Optional[str]:
        if not self.tail_warning:
            return None
        return (
            f"Tail probability > {self.max_goals} goals is {self.tail_mass:.2%}. "
            "Model may understate high scores."
        )

    def probability(self, home_goals: int, away_goals: int) -> float:
        """Raw probability of an exact scoreline (0.0 outside the grid)."""
        size = self.max_goals + 1
        if not (0 <= home_goals < size and 0 <= away_goals < size):
            return 0.0
        return float(self.matrix[home_goals, away_goals])


class PoissonCalculator:
    """Build team distributions and joint matrices on a fixed goal grid."""

    def __init__(
        self,
        max_goals: Optional[int] = None,
        tail_warning_threshold: Optional[float] = None,
    ):
        self.max_goals = settings.engine.max_goals if max_goals is None else max_goals
        self.tail_warning_threshold = (
            settings.engine.tail_warning_threshold
            if tail_warning_threshold is None
            else tail_warning_threshold
        )
        if self.max_goals < 0:
            raise InvalidParameterError(f"max_goals must be >= 0, got {self.max_goals}")

    def build_distribution(
        self,
        lam: float,
        pi: float = 0.0,
        max_goals: Optional[int] = None,
    ) -> GoalDistribution:
        """Zero-inflated Poisson mass for goal counts 0..max_goals.

        P(0) = pi + (1 - pi) * Poisson(0; lam)
        P(k) = (1 - pi) * Poisson(k; lam) for k > 0

        Args:
            lam: Expected goals (>= 0, 0 concentrates all mass on 0 goals)
            pi: Extra probability of scoring nothing (0 <= pi <= 1)
            max_goals: Grid maximum, defaults to the calculator's grid

        Returns:
            GoalDistribution with tail = 1 - sum(probs)
        """
        lam = validate_rate("lambda", lam)
        pi = validate_inflation("pi", pi)
        max_goals = self.max_goals if max_goals is None else max_goals
        if max_goals < 0:
            raise InvalidParameterError(f"max_goals must be >= 0, got {max_goals}")

        standard = poisson.pmf(np.arange(max_goals + 1), lam)
        probs = (1 - pi) * standard
        probs[0] = pi + (1 - pi) * standard[0]

        tail = 1 - float(probs.sum())
        logger.debug(f"Distribution lambda={lam:.3f} pi={pi:.3f}: tail={tail:.6f}")

        return GoalDistribution(probs=_freeze(probs), tail=tail, lam=lam, pi=pi)

    def build_joint(
        self,
        dist_home: GoalDistribution,
        dist_away: GoalDistribution,
    ) -> JointMatrix:
        """Combine two independent team distributions into a scoreline grid."""
        if dist_home.max_goals != dist_away.max_goals:
            raise InvalidParameterError(
                f"Distributions must share a grid size: "
                f"{dist_home.max_goals} != {dist_away.max_goals}"
            )

        matrix = np.outer(dist_home.probs, dist_away.probs)
        tail_mass = 1 - dist_home.total_mass * dist_away.total_mass

        joint = JointMatrix(
            matrix=_freeze(matrix),
            home=dist_home,
            away=dist_away,
            tail_mass=tail_mass,
            tail_warning_threshold=self.tail_warning_threshold,
        )

        if joint.tail_warning:
            logger.warning(joint.warning_message)

        return joint

    def calculate(self, params: ScoringParameters) -> JointMatrix:
        """Build the joint matrix for one period's scoring parameters."""
        dist_home = self.build_distribution(params.lambda_home, params.pi_home)
        dist_away = self.build_distribution(params.lambda_away, params.pi_away)
        return self.build_joint(dist_home, dist_away)

    def get_most_likely_scores(
        self,
        matrix: np.ndarray,
        top_n: int = 5
    ) -> list[tuple[int, int, float]]:
        """Get most likely scorelines.

        Returns:
            List of (home_goals, away_goals, probability) tuples
        """
        scores = []
        size = matrix.shape[0]
        for h in range(size):
            for a in range(size):
                scores.append((h, a, float(matrix[h, a])))

        scores.sort(key=lambda x: x[2], reverse=True)
        return scores[:top_n]


# Singleton instance
poisson_calc = PoissonCalculator()
