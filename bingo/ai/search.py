"""
Minimax search with alpha-beta pruning for double-sided bingo.

Every node works on its own copy of the state, so the search can never
disturb the caller's game. The candidate list at each node is cut to a
fixed number of entries in generation order to bound the tree.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import logging
import math
import time

from ..core.state import GameState
from ..core.moves import Move, get_legal_moves, move_to_notation
from ..core.rules import apply_move
from .evaluator import HeuristicEvaluator

logger = logging.getLogger(__name__)


@dataclass
class SearchConfig:
    """Configuration for minimax search."""
    early_depth: int = 3  # Plies while few tiles are down
    late_depth: int = 4  # Plies once the position has narrowed
    depth_switch_at: int = 10  # Move counter at which late_depth applies
    branch_cap: int = 30  # Candidates kept per node, in generation order
    fixed_depth: Optional[int] = None  # Overrides both depths when set


@dataclass
class SearchStats:
    """Counters for a single search call."""
    nodes: int = 0


@dataclass
class SearchResult:
    """
    Outcome of a search.

    root_values holds (move, value) for each searched root candidate. Only
    the chosen move's value is exact; the rest may be alpha-beta bounds.
    """
    move: Optional[Move]
    value: float
    depth: int
    nodes: int = 0
    time_ms: int = 0
    immediate_win: bool = False
    root_values: list[tuple[Move, float]] = field(default_factory=list)

    def analyze(self, top_k: int = 5) -> list[dict]:
        """Best root candidates, highest value first (stable on ties)."""
        ranked = sorted(self.root_values, key=lambda mv: -mv[1])[:top_k]
        return [
            {'move': move, 'notation': move_to_notation(move), 'value': value}
            for move, value in ranked
        ]


class MinimaxSearch:
    """
    Depth-limited minimax over the move generator and evaluator.

    Counters live in a SearchStats created per call, so searches that
    overlap on one instance (a discarded job still running after a reset)
    report their own node counts.
    """

    def __init__(
        self,
        evaluator: Optional[HeuristicEvaluator] = None,
        config: Optional[SearchConfig] = None
    ):
        self.evaluator = evaluator or HeuristicEvaluator()
        self.config = config or SearchConfig()

    def depth_for(self, state: GameState) -> int:
        if self.config.fixed_depth is not None:
            return self.config.fixed_depth
        if state.move_count < self.config.depth_switch_at:
            return self.config.early_depth
        return self.config.late_depth

    def choose_move(self, state: GameState, player: int) -> Optional[Move]:
        """Pick a move for player, or None if there is no legal move."""
        return self.search(state, player).move

    def search(self, state: GameState, player: int) -> SearchResult:
        """Run the search from player's point of view."""
        start_time = time.time()
        stats = SearchStats()

        root = state.copy()
        root.turn = player
        depth = self.depth_for(root)

        moves = get_legal_moves(root, player)
        if not moves:
            return SearchResult(move=None, value=self.evaluator.evaluate(root, player), depth=0)

        win_score = self.evaluator.config.win_score

        # Take an immediate win without searching
        for move in moves:
            child = root.copy()
            apply_move(child, move)
            stats.nodes += 1
            value = self.evaluator.evaluate(child, player)
            if value >= win_score:
                elapsed_ms = int((time.time() - start_time) * 1000)
                logger.debug("Immediate win %s for player %d", move_to_notation(move), player)
                return SearchResult(
                    move=move,
                    value=value,
                    depth=1,
                    nodes=stats.nodes,
                    time_ms=elapsed_ms,
                    immediate_win=True,
                    root_values=[(move, value)]
                )

        best_move = None
        best_value = -math.inf
        alpha, beta = -math.inf, math.inf
        root_values = []

        for move in moves[:self.config.branch_cap]:
            child = root.copy()
            apply_move(child, move)
            value = self._minimax(child, depth - 1, alpha, beta, player, stats)
            root_values.append((move, value))
            if value > best_value:
                best_value = value
                best_move = move
            alpha = max(alpha, best_value)

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            "Search depth %d chose %s (value %.1f, %d nodes, %d ms)",
            depth, move_to_notation(best_move), best_value, stats.nodes, elapsed_ms
        )
        return SearchResult(
            move=best_move,
            value=best_value,
            depth=depth,
            nodes=stats.nodes,
            time_ms=elapsed_ms,
            root_values=root_values
        )

    def _minimax(
        self,
        state: GameState,
        depth: int,
        alpha: float,
        beta: float,
        player: int,
        stats: SearchStats
    ) -> float:
        stats.nodes += 1

        if depth <= 0 or state.winner is not None:
            return self.evaluator.evaluate(state, player)

        moves = get_legal_moves(state)[:self.config.branch_cap]
        if not moves:
            return self.evaluator.evaluate(state, player)

        if state.turn == player:
            value = -math.inf
            for move in moves:
                child = state.copy()
                apply_move(child, move)
                value = max(value, self._minimax(child, depth - 1, alpha, beta, player, stats))
                alpha = max(alpha, value)
                if alpha >= beta:
                    break
            return value

        value = math.inf
        for move in moves:
            child = state.copy()
            apply_move(child, move)
            value = min(value, self._minimax(child, depth - 1, alpha, beta, player, stats))
            beta = min(beta, value)
            if alpha >= beta:
                break
        return value


def choose_move(
    state: GameState,
    player: int,
    config: Optional[SearchConfig] = None
) -> Optional[Move]:
    """Convenience wrapper: search with default evaluator."""
    return MinimaxSearch(config=config).choose_move(state, player)
