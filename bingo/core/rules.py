"""
Rule engine for double-sided bingo.

Every action is validated completely before the state is touched, so a
rejected action leaves the state (and the turn) exactly as it was. Client
errors are reported as a Result carrying a Rejection, never raised.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from .board import (
    MOVEMENT_PHASE_AT, PLAYERS,
    PairType, is_valid_cell, is_orthogonal_step, pair_faces
)
from .state import GameState, Phase
from .moves import Move, MoveKind

logger = logging.getLogger(__name__)


class Rejection(str, Enum):
    """Why an action was not applied."""
    OCCUPIED_CELL = "occupied_cell"
    EMPTY_CELL = "empty_cell"
    INSUFFICIENT_STOCK = "insufficient_stock"
    ILLEGAL_ADJACENCY = "illegal_adjacency"
    GAME_ALREADY_WON = "game_already_won"
    NO_LEGAL_MOVE = "no_legal_move"
    OFF_BOARD = "off_board"
    INVALID_PAIR_TYPE = "invalid_pair_type"
    # Raised by the controller, not the rules themselves
    AI_PENDING = "ai_pending"
    NOT_HUMAN_TURN = "not_human_turn"
    CANCELLED = "cancelled"


REJECTION_MESSAGES = {
    Rejection.OCCUPIED_CELL: "Cell is already occupied",
    Rejection.EMPTY_CELL: "Cell is empty",
    Rejection.INSUFFICIENT_STOCK: "No tiles of that type left",
    Rejection.ILLEGAL_ADJACENCY: "Tiles move one step up, down, left or right",
    Rejection.GAME_ALREADY_WON: "Game already finished",
    Rejection.NO_LEGAL_MOVE: "No legal move available",
    Rejection.OFF_BOARD: "Cell is off the board",
    Rejection.INVALID_PAIR_TYPE: "Unknown tile pair type",
    Rejection.AI_PENDING: "AI is still thinking",
    Rejection.NOT_HUMAN_TURN: "It is the AI's turn",
    Rejection.CANCELLED: "AI move discarded after reset",
}


@dataclass(frozen=True)
class Result:
    """Outcome of an action."""
    ok: bool
    rejection: Optional[Rejection] = None
    move: Optional[Move] = None
    player: Optional[int] = None
    winner: Optional[int] = None

    @classmethod
    def rejected(cls, rejection: Rejection, move: Optional[Move] = None) -> Result:
        logger.debug("Rejected %s: %s", move, rejection.value)
        return cls(ok=False, rejection=rejection, move=move)

    @property
    def message(self) -> str:
        if self.rejection is None:
            return "ok"
        return REJECTION_MESSAGES[self.rejection]


def _finish_turn(state: GameState, player: int, action: Optional[Move]) -> Result:
    """Re-evaluate win (player 1 first) and alternate the turn if nobody won."""
    for p in PLAYERS:
        if state.check_win(state.target_of(p)):
            state.winner = p
            break
    if state.winner is None:
        state.turn = state.opponent_of(player)
    return Result(ok=True, move=action, player=player, winner=state.winner)


def place(
    state: GameState,
    cell: tuple[int, int],
    pair_type: PairType,
    flipped: bool = False,
    action: Optional[Move] = None
) -> Result:
    """Place a tile from the acting player's stock onto an empty cell."""
    if state.winner is not None:
        return Result.rejected(Rejection.GAME_ALREADY_WON, action)
    row, col = cell
    if not is_valid_cell(row, col):
        return Result.rejected(Rejection.OFF_BOARD, action)
    if not state.is_empty(row, col):
        return Result.rejected(Rejection.OCCUPIED_CELL, action)
    try:
        pair_type = PairType(pair_type)
    except ValueError:
        return Result.rejected(Rejection.INVALID_PAIR_TYPE, action)
    player = state.turn
    if state.stock_of(player, pair_type) <= 0:
        return Result.rejected(Rejection.INSUFFICIENT_STOCK, action)

    front, back = pair_faces(pair_type, flipped)
    state.front[row, col] = front
    state.back[row, col] = back
    state.owner[row, col] = player
    state.stock[player - 1, pair_type] -= 1
    state.move_count += 1
    if state.move_count >= MOVEMENT_PHASE_AT:
        state.phase = Phase.MOVEMENT

    return _finish_turn(state, player, action)


def move(
    state: GameState,
    src: tuple[int, int],
    dst: tuple[int, int],
    action: Optional[Move] = None
) -> Result:
    """
    Slide a tile one orthogonal step into an empty cell.

    Any tile may be moved and the phase is not checked; restricting moves
    to the movement phase is left to the client.
    """
    src, dst = tuple(src), tuple(dst)
    if state.winner is not None:
        return Result.rejected(Rejection.GAME_ALREADY_WON, action)
    if not (is_valid_cell(*src) and is_valid_cell(*dst)):
        return Result.rejected(Rejection.OFF_BOARD, action)
    if state.is_empty(*src):
        return Result.rejected(Rejection.EMPTY_CELL, action)
    if not state.is_empty(*dst):
        return Result.rejected(Rejection.OCCUPIED_CELL, action)
    if not is_orthogonal_step(src, dst):
        return Result.rejected(Rejection.ILLEGAL_ADJACENCY, action)

    player = state.turn
    for grid in (state.front, state.back, state.owner):
        grid[dst] = grid[src]
        grid[src] = 0

    return _finish_turn(state, player, action)


def flip(
    state: GameState,
    cell: tuple[int, int],
    action: Optional[Move] = None
) -> Result:
    """Swap front and back of a tile in place; the owner is unchanged."""
    cell = tuple(cell)
    if state.winner is not None:
        return Result.rejected(Rejection.GAME_ALREADY_WON, action)
    if not is_valid_cell(*cell):
        return Result.rejected(Rejection.OFF_BOARD, action)
    if state.is_empty(*cell):
        return Result.rejected(Rejection.EMPTY_CELL, action)

    player = state.turn
    state.front[cell], state.back[cell] = state.back[cell], state.front[cell]

    return _finish_turn(state, player, action)


def apply_move(state: GameState, action: Move) -> Result:
    """Apply a generated or parsed Move through the matching rule."""
    if action.kind == MoveKind.PLACE:
        return place(state, action.cell, action.pair_type, action.flipped, action=action)
    if action.kind == MoveKind.SHIFT:
        return move(state, action.cell, action.target, action=action)
    return flip(state, action.cell, action=action)


def pass_turn(state: GameState) -> Result:
    """Hand the turn over without touching the board (no legal move)."""
    if state.winner is not None:
        return Result.rejected(Rejection.GAME_ALREADY_WON)
    player = state.turn
    state.turn = state.opponent_of(player)
    return Result(ok=True, player=player)
