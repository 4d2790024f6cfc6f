"""Multi-period and combined markets.

Half-time/full-time markets combine the first and second half matrices
under an independence assumption: a real match has correlated halves,
this model treats them as separate draws.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from src.config.settings import settings
from src.models.market_probabilities import classify_result
from src.models.poisson_matrix import JointMatrix

logger = logging.getLogger(__name__)

RESULTS = ("1", "X", "2")
RESULT_INDEX = {code: i for i, code in enumerate(RESULTS)}
HTFT_KEYS = tuple(f"{ht}/{ft}" for ht in RESULTS for ft in RESULTS)
DOUBLE_CHANCE = {
    "1X": ("1", "X"),
    "X2": ("X", "2"),
    "12": ("1", "2"),
}


def _result_index(home_goals: int, away_goals: int) -> int:
    if home_goals > away_goals:
        return 0
    elif home_goals == away_goals:
        return 1
    return 2


@dataclass(frozen=True)
class HalfTimeFullTime:
    """HT/FT result table and its goal-line split."""
    table: tuple  # 3x3 [ht_result][ft_result], order 1, X, 2
    goals: dict  # {line: {"1/1": {"over": float, "under": float}, ...}}
    half_most_goals: dict  # {"first": float, "second": float, "tie": float}
    win_either_half: dict  # {"home": float, "away": float}
    win_both_halves: dict  # {"home": float, "away": float}
    covered_mass: float  # Product of both halves' grid mass

    @property
    def htft(self) -> dict:
        """HT/FT probabilities keyed '1/1', '1/X', ... '2/2'."""
        return {
            f"{ht}/{ft}": self.table[i][j]
            for i, ht in enumerate(RESULTS)
            for j, ft in enumerate(RESULTS)
        }

    def probability(self, half_time: str, full_time: str) -> float:
        return self.table[RESULT_INDEX[half_time]][RESULT_INDEX[full_time]]


@dataclass(frozen=True)
class CompoundMarketSet:
    """Markets that need more than one joint matrix or a crossed scan."""
    htft: HalfTimeFullTime
    double_chance_goals: dict  # {line: {"1X": {"over", "under"}, ...}}
    result_goals: dict  # {line: {"1": {"over", "under"}, ...}}
    final_score_by_goals: dict  # {total: [(h, a, p), ...]}

    def to_dict(self) -> dict:
        """Plain JSON-ready representation."""
        return {
            "htft": self.htft.htft,
            "htft_goals": {str(line): v for line, v in self.htft.goals.items()},
            "half_most_goals": self.htft.half_most_goals,
            "win_either_half": self.htft.win_either_half,
            "win_both_halves": self.htft.win_both_halves,
            "double_chance_goals": {str(line): v for line, v in self.double_chance_goals.items()},
            "result_goals": {str(line): v for line, v in self.result_goals.items()},
            "final_score_by_goals": {
                str(total): [{"score": f"{h}-{a}", "prob": p} for h, a, p in scores]
                for total, scores in self.final_score_by_goals.items()
            },
        }


class CompoundMarketDeriver:
    """Derive HT/FT and result/double-chance x goals markets."""

    def __init__(self, goal_lines: Optional[list[float]] = None):
        self.goal_lines = list(settings.engine.goal_lines if goal_lines is None else goal_lines)

    def derive_half_time_full_time(
        self,
        joint_h1: JointMatrix,
        joint_h2: JointMatrix,
    ) -> HalfTimeFullTime:
        """Combine both halves cell by cell ((G+1)^4 visits).

        Full-time score is the sum of the two half scorelines and its
        probability the product of the two half cells.
        """
        m1 = joint_h1.matrix
        m2 = joint_h2.matrix
        size1 = m1.shape[0]
        size2 = m2.shape[0]

        table = [[0.0] * 3 for _ in RESULTS]
        goals = {
            line: [[{"over": 0.0, "under": 0.0} for _ in RESULTS] for _ in RESULTS]
            for line in self.goal_lines
        }
        half_most = {"first": 0.0, "second": 0.0, "tie": 0.0}
        either = {"home": 0.0, "away": 0.0}
        both = {"home": 0.0, "away": 0.0}

        for h1 in range(size1):
            for a1 in range(size1):
                p1 = float(m1[h1, a1])
                if p1 == 0.0:
                    continue
                ht = _result_index(h1, a1)
                total1 = h1 + a1

                for h2 in range(size2):
                    for a2 in range(size2):
                        p2 = float(m2[h2, a2])
                        if p2 == 0.0:
                            continue
                        p = p1 * p2
                        ft = _result_index(h1 + h2, a1 + a2)
                        second = _result_index(h2, a2)
                        total = total1 + h2 + a2

                        table[ht][ft] += p

                        for line in self.goal_lines:
                            side = "over" if total > line else "under"
                            goals[line][ht][ft][side] += p

                        total2 = h2 + a2
                        if total1 > total2:
                            half_most["first"] += p
                        elif total1 < total2:
                            half_most["second"] += p
                        else:
                            half_most["tie"] += p

                        if ht == 0 or second == 0:
                            either["home"] += p
                        if ht == 2 or second == 2:
                            either["away"] += p
                        if ht == 0 and second == 0:
                            both["home"] += p
                        if ht == 2 and second == 2:
                            both["away"] += p

        covered_mass = joint_h1.total_mass * joint_h2.total_mass
        logger.debug(f"HT/FT derived, covered mass {covered_mass:.6f}")

        return HalfTimeFullTime(
            table=tuple(tuple(row) for row in table),
            goals={
                line: {
                    f"{ht}/{ft}": cells[i][j]
                    for i, ht in enumerate(RESULTS)
                    for j, ft in enumerate(RESULTS)
                }
                for line, cells in goals.items()
            },
            half_most_goals=half_most,
            win_either_half=either,
            win_both_halves=both,
            covered_mass=covered_mass,
        )

    def derive_final_score_by_goals(self, joint: JointMatrix) -> dict:
        """Group scorelines by total goals, most likely first.

        Equal probabilities keep (home, away) enumeration order.
        """
        size = joint.max_goals + 1
        by_total = {total: [] for total in range(2 * (size - 1) + 1)}

        for h in range(size):
            for a in range(size):
                by_total[h + a].append((h, a, float(joint.matrix[h, a])))

        for scores in by_total.values():
            scores.sort(key=lambda x: x[2], reverse=True)

        return by_total

    def _result_split(self, joint: JointMatrix) -> dict:
        """Per line, raw over/under probability for each full-time result."""
        size = joint.max_goals + 1
        split = {
            line: {code: {"over": 0.0, "under": 0.0} for code in RESULTS}
            for line in self.goal_lines
        }

        for h in range(size):
            for a in range(size):
                p = float(joint.matrix[h, a])
                result = classify_result(h, a)
                total = h + a
                for line in self.goal_lines:
                    side = "over" if total > line else "under"
                    split[line][result][side] += p

        return split

    def derive_1x2_goals(self, joint: JointMatrix) -> dict:
        """Match result crossed with each goal line (raw grid probabilities)."""
        return self._result_split(joint)

    def derive_double_chance_goals(self, joint: JointMatrix) -> dict:
        """Double chance crossed with each goal line.

        A scoreline counts towards both double-chance buckets containing its result.
        """
        split = self._result_split(joint)
        return {
            line: {
                name: {
                    side: sum(by_result[code][side] for code in codes)
                    for side in ("over", "under")
                }
                for name, codes in DOUBLE_CHANCE.items()
            }
            for line, by_result in split.items()
        }

    def derive_compound_markets(
        self,
        joint_full: JointMatrix,
        joint_h1: JointMatrix,
        joint_h2: JointMatrix,
    ) -> CompoundMarketSet:
        return CompoundMarketSet(
            htft=self.derive_half_time_full_time(joint_h1, joint_h2),
            double_chance_goals=self.derive_double_chance_goals(joint_full),
            result_goals=self.derive_1x2_goals(joint_full),
            final_score_by_goals=self.derive_final_score_by_goals(joint_full),
        )


# Singleton instance
compound_deriver = CompoundMarketDeriver()
