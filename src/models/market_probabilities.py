"""Derive single-period market probabilities from a joint matrix."""
import logging
from dataclasses import dataclass
from typing import Optional

from src.config.settings import settings
from src.models.poisson_matrix import JointMatrix, poisson_calc

logger = logging.getLogger(__name__)


def classify_result(home_goals: int, away_goals: int) -> str:
    """Match result code for a scoreline: '1' home, 'X' draw, '2' away."""
    if home_goals > away_goals:
        return "1"
    elif home_goals == away_goals:
        return "X"
    return "2"


@dataclass(frozen=True)
class MarketSet:
    """All markets derived from one period's joint matrix.

    1X2 is renormalised over the grid so the three outcomes sum to 1.
    Every other market keeps raw grid probabilities, with complements
    taken as 1 - p (so tail mass lands on the complement side).
    """
    joint: JointMatrix

    # 1X2 (renormalised)
    home_win: float
    draw: float
    away_win: float
    result_mass: float  # Grid mass of 1X2 before renormalisation

    # BTTS
    btts_yes: float
    btts_no: float

    # Win to nil / clean sheet
    win_to_nil_home: float
    win_to_nil_away: float
    clean_sheet_home: float
    clean_sheet_away: float

    overs: dict  # {2.5: float, ...}
    exact_totals: tuple  # index = total goals, 0..2 * max_goals

    @property
    def tail_mass(self) -> float:
        return self.joint.tail_mass

    @property
    def tail_warning(self) -> bool:
        return self.joint.tail_warning

    @property
    def p_1x2(self) -> dict:
        return {"home": self.home_win, "draw": self.draw, "away": self.away_win}

    @property
    def p_btts(self) -> dict:
        return {"yes": self.btts_yes, "no": self.btts_no}

    @property
    def double_chance(self) -> dict:
        """Double chance from the renormalised 1X2."""
        return {
            "1X": self.home_win + self.draw,
            "X2": self.draw + self.away_win,
            "12": self.home_win + self.away_win,
        }

    def over(self, line: float) -> float:
        if line not in self.overs:
            raise KeyError(f"Goal line {line} not derived. Available: {sorted(self.overs)}")
        return self.overs[line]

    def under(self, line: float) -> float:
        return 1 - self.over(line)

    @property
    def p_over_under(self) -> dict:
        return {
            str(line): {"over": over, "under": 1 - over}
            for line, over in self.overs.items()
        }

    def correct_score(self, home_goals: int, away_goals: int) -> float:
        """Raw probability of an exact scoreline."""
        return self.joint.probability(home_goals, away_goals)

    def exact_total(self, total: int) -> float:
        if 0 <= total < len(self.exact_totals):
            return self.exact_totals[total]
        return 0.0

    def most_likely_scores(self, top_n: int = 5) -> list[tuple[int, int, float]]:
        return poisson_calc.get_most_likely_scores(self.joint.matrix, top_n=top_n)

    def to_dict(self) -> dict:
        """Plain JSON-ready representation."""
        size = self.joint.max_goals + 1
        return {
            "1x2": self.p_1x2,
            "double_chance": self.double_chance,
            "btts": self.p_btts,
            "over_under": self.p_over_under,
            "win_to_nil": {"home": self.win_to_nil_home, "away": self.win_to_nil_away},
            "clean_sheet": {"home": self.clean_sheet_home, "away": self.clean_sheet_away},
            "exact_totals": {str(t): p for t, p in enumerate(self.exact_totals)},
            "correct_score": {
                f"{h}-{a}": float(self.joint.matrix[h, a])
                for h in range(size)
                for a in range(size)
            },
            "tail_mass": self.tail_mass,
            "tail_warning": self.joint.warning_message,
        }


class MarketDeriver:
    """Aggregate a joint matrix into named markets in a single scan."""

    def __init__(self, goal_lines: Optional[list[float]] = None):
        self.goal_lines = list(settings.engine.goal_lines if goal_lines is None else goal_lines)

    def derive_markets(self, joint: JointMatrix) -> MarketSet:
        """Derive every single-period market from one matrix snapshot."""
        matrix = joint.matrix
        size = matrix.shape[0]

        home_win = 0.0
        draw = 0.0
        away_win = 0.0
        btts_yes = 0.0
        win_to_nil_home = 0.0
        win_to_nil_away = 0.0
        clean_sheet_home = 0.0
        clean_sheet_away = 0.0
        overs = {line: 0.0 for line in self.goal_lines}
        exact_totals = [0.0] * (2 * (size - 1) + 1)

        for h in range(size):
            for a in range(size):
                p = float(matrix[h, a])
                total = h + a

                if h > a:
                    home_win += p
                elif h == a:
                    draw += p
                else:
                    away_win += p

                if h > 0 and a > 0:
                    btts_yes += p

                # 0-0 is a clean sheet for both sides but a win to nil for neither
                if h > 0 and a == 0:
                    win_to_nil_home += p
                if a > 0 and h == 0:
                    win_to_nil_away += p
                if a == 0:
                    clean_sheet_home += p
                if h == 0:
                    clean_sheet_away += p

                exact_totals[total] += p

                for line in self.goal_lines:
                    if total > line:
                        overs[line] += p

        # Grid truncation correction for 1X2 only
        result_mass = home_win + draw + away_win
        if result_mass > 0:
            home_win /= result_mass
            draw /= result_mass
            away_win /= result_mass

        return MarketSet(
            joint=joint,
            home_win=home_win,
            draw=draw,
            away_win=away_win,
            result_mass=result_mass,
            btts_yes=btts_yes,
            btts_no=1 - btts_yes,
            win_to_nil_home=win_to_nil_home,
            win_to_nil_away=win_to_nil_away,
            clean_sheet_home=clean_sheet_home,
            clean_sheet_away=clean_sheet_away,
            overs=overs,
            exact_totals=tuple(exact_totals),
        )


# Singleton instance
market_deriver = MarketDeriver()
