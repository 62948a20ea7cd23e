"""
Move generation for double-sided bingo.

Three kinds of move, written in notation as:
- Place: "YR@a1" (front letter, back letter, then the cell)
- Shift: "a1-a2" (tile slides one orthogonal step)
- Flip:  "~b2"   (tile at b2 turns over)
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from .board import (
    COLOR_LETTERS, LETTER_COLORS,
    PairType, iter_cells, neighbors, pair_faces, faces_to_pair,
    cell_to_algebraic, algebraic_to_cell
)
from .state import GameState


class MoveKind(str, Enum):
    PLACE = "place"
    SHIFT = "move"
    FLIP = "flip"


@dataclass(frozen=True)
class Move:
    """A single action. target is set for shifts, pair_type/flipped for placements."""
    kind: MoveKind
    cell: tuple[int, int]
    target: Optional[tuple[int, int]] = None
    pair_type: Optional[PairType] = None
    flipped: bool = False

    @classmethod
    def place(cls, cell: tuple[int, int], pair_type: PairType, flipped: bool = False) -> Move:
        return cls(MoveKind.PLACE, tuple(cell), pair_type=PairType(pair_type), flipped=bool(flipped))

    @classmethod
    def shift(cls, src: tuple[int, int], dst: tuple[int, int]) -> Move:
        return cls(MoveKind.SHIFT, tuple(src), target=tuple(dst))

    @classmethod
    def flip(cls, cell: tuple[int, int]) -> Move:
        return cls(MoveKind.FLIP, tuple(cell))

    def __str__(self) -> str:
        return move_to_notation(self)


def move_to_notation(move: Move) -> str:
    """Convert move to notation."""
    if move.kind == MoveKind.PLACE:
        front, back = pair_faces(move.pair_type, move.flipped)
        return f"{COLOR_LETTERS[front]}{COLOR_LETTERS[back]}@{cell_to_algebraic(move.cell)}"
    if move.kind == MoveKind.SHIFT:
        return f"{cell_to_algebraic(move.cell)}-{cell_to_algebraic(move.target)}"
    return f"~{cell_to_algebraic(move.cell)}"


def notation_to_move(s: str) -> Move:
    """Parse notation to a move."""
    s = s.strip()
    if '@' in s:
        faces, cell = s.split('@', 1)
        faces = faces.strip().upper()
        if len(faces) != 2 or any(ch not in LETTER_COLORS for ch in faces):
            raise ValueError(f"Invalid tile faces: {faces}")
        pair_type, flipped = faces_to_pair(LETTER_COLORS[faces[0]], LETTER_COLORS[faces[1]])
        return Move.place(algebraic_to_cell(cell), pair_type, flipped)
    if s.startswith('~'):
        return Move.flip(algebraic_to_cell(s[1:]))
    parts = s.split('-')
    if len(parts) != 2:
        raise ValueError(f"Invalid move format: {s}")
    return Move.shift(algebraic_to_cell(parts[0]), algebraic_to_cell(parts[1]))


class MoveGenerator:
    """
    Generates legal moves for a player.

    Order is fixed: placements (cell-major, then pair-type, then unflipped
    before flipped), shifts, flips. Shifts and flips are produced in every
    phase; callers wanting placement-only play filter them out.
    """

    @staticmethod
    def get_place_moves(state: GameState, player: int) -> Iterator[Move]:
        available = [p for p in PairType if state.stock_of(player, p) > 0]
        if not available:
            return
        for cell in iter_cells():
            if not state.is_empty(*cell):
                continue
            for pair_type in available:
                yield Move.place(cell, pair_type, False)
                yield Move.place(cell, pair_type, True)

    @staticmethod
    def get_shift_moves(state: GameState, player: int) -> Iterator[Move]:
        for cell in iter_cells():
            if state.owner[cell] != player:
                continue
            for dst in neighbors(*cell):
                if state.is_empty(*dst):
                    yield Move.shift(cell, dst)

    @staticmethod
    def get_flip_moves(state: GameState, player: int) -> Iterator[Move]:
        for cell in iter_cells():
            if state.owner[cell] == player:
                yield Move.flip(cell)

    @staticmethod
    def get_legal_moves(state: GameState, player: Optional[int] = None) -> list[Move]:
        """All legal moves for player (defaults to the player to act)."""
        if state.winner is not None:
            return []
        if player is None:
            player = state.turn
        moves = list(MoveGenerator.get_place_moves(state, player))
        moves.extend(MoveGenerator.get_shift_moves(state, player))
        moves.extend(MoveGenerator.get_flip_moves(state, player))
        return moves


# Convenience functions
def get_legal_moves(state: GameState, player: Optional[int] = None) -> list[Move]:
    """Get all legal moves for a player."""
    return MoveGenerator.get_legal_moves(state, player)


def is_legal_move(state: GameState, move: Move) -> bool:
    """Check if a move is legal for the player to act."""
    return move in MoveGenerator.get_legal_moves(state)


def get_move_count(state: GameState) -> int:
    """Get number of legal moves."""
    return len(MoveGenerator.get_legal_moves(state))
