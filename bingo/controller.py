"""
Game controller: owns the live game and runs the AI opponent.

Human actions are applied synchronously through the rule engine. An AI
turn runs the search on a snapshot in a worker thread and, when it
finishes, applies the chosen move through the same rules. Only one AI job
may be in flight; starting a new game cancels it and any late result is
thrown away.
"""

from __future__ import annotations
from typing import Optional, Sequence
import asyncio
import logging
import random

from .core.board import Color, PairType
from .core.moves import Move, move_to_notation
from .core.rules import Rejection, Result, apply_move, pass_turn
from .core.state import GameState
from .ai.search import MinimaxSearch, SearchResult

logger = logging.getLogger(__name__)

PLAYER_TYPES = ("human", "ai")


class GameController:
    """Single live game plus its AI job."""

    def __init__(
        self,
        player_types: Sequence[str] = ("human", "ai"),
        search: Optional[MinimaxSearch] = None,
        rng: Optional[random.Random] = None,
        targets: Optional[tuple[Color, Color]] = None
    ):
        for kind in player_types:
            if kind not in PLAYER_TYPES:
                raise ValueError(f"Unknown player type: {kind}")
        if len(player_types) != 2:
            raise ValueError("Exactly two player types are required")

        self.player_types = list(player_types)
        self.search = search or MinimaxSearch()
        self.last_search: Optional[SearchResult] = None

        self._rng = rng or random.Random()
        self._targets = targets
        self._generation = 0
        self._ai_task: Optional[asyncio.Task] = None

        self.state = GameState.new_game(targets=self._targets, rng=self._rng)

    # --- Queries ---

    @property
    def ai_pending(self) -> bool:
        return self._ai_task is not None and not self._ai_task.done()

    def is_ai_turn(self) -> bool:
        return self.player_types[self.state.turn - 1] == "ai"

    def should_ai_move(self) -> bool:
        """True when the AI is to act and nothing is already running."""
        return self.state.winner is None and self.is_ai_turn() and not self.ai_pending

    def get_state(self) -> GameState:
        """Snapshot of the live state."""
        return self.state.copy()

    # --- Lifecycle ---

    def new_game(self) -> GameState:
        """Start over with fresh targets, cancelling any AI job."""
        self._generation += 1
        if self.ai_pending:
            logger.info("Cancelling pending AI move")
            self._ai_task.cancel()
        self._ai_task = None
        self.last_search = None
        self.state = GameState.new_game(targets=self._targets, rng=self._rng)
        logger.info(
            "New game: player 1 target %s, player 2 target %s",
            self.state.targets[0].name, self.state.targets[1].name
        )
        return self.get_state()

    # --- Human actions ---

    def _human_rejection(self) -> Optional[Rejection]:
        if self.ai_pending:
            return Rejection.AI_PENDING
        if self.state.winner is not None:
            return Rejection.GAME_ALREADY_WON
        if self.is_ai_turn():
            return Rejection.NOT_HUMAN_TURN
        return None

    def apply(self, move: Move) -> Result:
        """Apply a human move."""
        rejection = self._human_rejection()
        if rejection is not None:
            return Result.rejected(rejection, move)
        result = apply_move(self.state, move)
        if result.ok and result.winner is not None:
            logger.info("Player %d wins with %s", result.winner, move_to_notation(move))
        return result

    def place(self, cell: tuple[int, int], pair_type: PairType, flipped: bool = False) -> Result:
        return self.apply(Move.place(cell, pair_type, flipped))

    def move(self, src: tuple[int, int], dst: tuple[int, int]) -> Result:
        return self.apply(Move.shift(src, dst))

    def flip(self, cell: tuple[int, int]) -> Result:
        return self.apply(Move.flip(cell))

    # --- AI ---

    def schedule_ai_move(self) -> Optional[asyncio.Task]:
        """Start the AI job for the player to act. Must run inside an event loop."""
        if self.ai_pending or self.state.winner is not None:
            return None
        self._ai_task = asyncio.get_running_loop().create_task(
            self._run_ai(self._generation)
        )
        return self._ai_task

    async def request_ai_move(self) -> Result:
        """
        Let the AI play one move for the player to act.

        Completes with the applied move, NO_LEGAL_MOVE (the turn was passed),
        or CANCELLED if the game was reset while the AI was thinking.
        """
        if self.ai_pending:
            return Result.rejected(Rejection.AI_PENDING)
        if self.state.winner is not None:
            return Result.rejected(Rejection.GAME_ALREADY_WON)

        task = self.schedule_ai_move()
        await asyncio.wait({task})
        if task.cancelled():
            return Result.rejected(Rejection.CANCELLED)
        return task.result()

    async def _run_ai(self, generation: int) -> Result:
        snapshot = self.state.copy()
        player = snapshot.turn

        loop = asyncio.get_running_loop()
        search_result = await loop.run_in_executor(None, self.search.search, snapshot, player)

        if generation != self._generation:
            logger.warning("Discarding stale AI move for player %d", player)
            return Result.rejected(Rejection.CANCELLED)

        self.last_search = search_result

        if search_result.move is None:
            logger.info("Player %d has no legal move, passing", player)
            pass_turn(self.state)
            return Result(ok=False, rejection=Rejection.NO_LEGAL_MOVE, player=player)

        result = apply_move(self.state, search_result.move)
        if not result.ok:
            logger.error(
                "AI move %s rejected: %s",
                move_to_notation(search_result.move), result.rejection.value
            )
            return result

        logger.info(
            "AI player %d plays %s (value %.1f, depth %d, %d nodes, %d ms)",
            player, move_to_notation(search_result.move), search_result.value,
            search_result.depth, search_result.nodes, search_result.time_ms
        )
        return result
