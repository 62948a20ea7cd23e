"""
Heuristic position evaluator for minimax search.

Scores a board for one side given that side's target color and the
opponent's. Completed lines short-circuit to a fixed sentinel; otherwise
every open line scores by how many of its cells already show the color,
with the opponent's lines weighted more heavily.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import numpy as np

from ..core.board import Color, LINES, NUM_LINES, check_win, line_values
from ..core.state import GameState


@dataclass
class EvaluatorConfig:
    """Weights for the line heuristic."""
    win_score: float = 10000.0
    defense_weight: float = 1.2  # Multiplier on the opponent's line score
    empty_weight: float = 2.0  # Per empty cell in an open line
    count_exponent: int = 3  # Matching cells are cubed


@dataclass
class LineScore:
    """Per-line breakdown, for analysis output."""
    line: int
    mine: int
    theirs: int
    empty: int
    mine_score: float
    theirs_score: float


class HeuristicEvaluator:
    """
    Line-based evaluator.

    A line counts for a side only while the other side's color is absent
    from it. Cells showing the third color count for neither side.
    """

    def __init__(self, config: Optional[EvaluatorConfig] = None):
        self.config = config or EvaluatorConfig()
        self.total_evals = 0

    def _counts(self, front: np.ndarray, mine: Color, theirs: Color):
        values = line_values(front)
        m = (values == mine).sum(axis=1)
        t = (values == theirs).sum(axis=1)
        e = (values == Color.NONE).sum(axis=1)
        return m, t, e

    def _line_scores(self, m: np.ndarray, t: np.ndarray, e: np.ndarray):
        cfg = self.config
        mine_scores = np.where(t == 0, m.astype(np.float64) ** cfg.count_exponent + cfg.empty_weight * e, 0.0)
        theirs_scores = np.where(m == 0, t.astype(np.float64) ** cfg.count_exponent + cfg.empty_weight * e, 0.0)
        return mine_scores, theirs_scores

    def evaluate_board(self, front: np.ndarray, mine: Color, theirs: Color) -> float:
        """Score a front-color grid from the side targeting mine."""
        self.total_evals += 1

        if check_win(front, mine):
            return self.config.win_score
        if check_win(front, theirs):
            return -self.config.win_score

        m, t, e = self._counts(front, mine, theirs)
        mine_scores, theirs_scores = self._line_scores(m, t, e)
        return float(mine_scores.sum() - self.config.defense_weight * theirs_scores.sum())

    def evaluate(self, state: GameState, player: int) -> float:
        """Score a state from player's perspective."""
        return self.evaluate_board(
            state.front,
            state.target_of(player),
            state.target_of(state.opponent_of(player))
        )

    def breakdown(self, state: GameState, player: int) -> list[LineScore]:
        """Per-line contributions (ignores the win sentinel)."""
        mine = state.target_of(player)
        theirs = state.target_of(state.opponent_of(player))
        m, t, e = self._counts(state.front, mine, theirs)
        mine_scores, theirs_scores = self._line_scores(m, t, e)
        return [
            LineScore(
                line=i,
                mine=int(m[i]),
                theirs=int(t[i]),
                empty=int(e[i]),
                mine_score=float(mine_scores[i]),
                theirs_score=float(theirs_scores[i])
            )
            for i in range(NUM_LINES)
        ]

    def stats(self) -> dict:
        return {'total_evals': self.total_evals, 'num_lines': len(LINES)}
