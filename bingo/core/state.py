"""
Game state representation for double-sided bingo.

The board is held as three 4x4 numpy arrays (front color, back color,
owner) so that copies are cheap and never alias the original.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import random

import numpy as np

from .board import (
    ROWS, COLS, NO_OWNER, TILES_PER_PAIR, TARGET_COLORS,
    Color, PairType, check_win, cell_to_algebraic, grid_to_string, iter_cells
)


class Phase(str, Enum):
    PLACEMENT = "placement"
    MOVEMENT = "movement"


@dataclass(frozen=True)
class Tile:
    """A tile as seen on the board."""
    front: Color
    back: Color
    owner: int

    def flipped(self) -> Tile:
        return Tile(front=self.back, back=self.front, owner=self.owner)


def draw_targets(rng: Optional[random.Random] = None) -> tuple[Color, Color]:
    """Draw player 1's target from all colors, player 2's from the other two."""
    rng = rng or random.Random()
    p1 = rng.choice(TARGET_COLORS)
    p2 = rng.choice([c for c in TARGET_COLORS if c != p1])
    return p1, p2


def _empty_grid() -> np.ndarray:
    return np.zeros((ROWS, COLS), dtype=np.int8)


def _full_stock() -> np.ndarray:
    return np.full((2, len(PairType)), TILES_PER_PAIR, dtype=np.int8)


@dataclass
class GameState:
    """
    Represents the complete state of a double-sided bingo game.

    Attributes:
        front: Visible color per cell (Color.NONE when empty)
        back: Hidden color per cell (Color.NONE when empty)
        owner: Owning player per cell (0 when empty)
        stock: Remaining tiles, shape (2, 3): [player - 1, pair_type]
        targets: (player 1 target, player 2 target)
        phase: Placement until 14 tiles are placed, then movement
        turn: Player to act (1 or 2)
        move_count: Number of successful placements
        winner: Winning player, or None while the game is live
    """
    targets: tuple[Color, Color] = (Color.RED, Color.YELLOW)
    front: np.ndarray = field(default_factory=_empty_grid)
    back: np.ndarray = field(default_factory=_empty_grid)
    owner: np.ndarray = field(default_factory=_empty_grid)
    stock: np.ndarray = field(default_factory=_full_stock)
    phase: Phase = Phase.PLACEMENT
    turn: int = 1
    move_count: int = 0
    winner: Optional[int] = None

    @classmethod
    def new_game(
        cls,
        targets: Optional[tuple[Color, Color]] = None,
        rng: Optional[random.Random] = None
    ) -> GameState:
        """Create a new game. Targets are drawn at random unless given."""
        if targets is None:
            targets = draw_targets(rng)
        if targets[0] == targets[1]:
            raise ValueError("Player targets must differ")
        return cls(targets=(Color(targets[0]), Color(targets[1])))

    def target_of(self, player: int) -> Color:
        return self.targets[player - 1]

    def opponent_of(self, player: int) -> int:
        return 3 - player

    def is_empty(self, row: int, col: int) -> bool:
        return self.owner[row, col] == NO_OWNER

    def tile_at(self, row: int, col: int) -> Optional[Tile]:
        """Return the tile at a cell, or None if empty."""
        owner = int(self.owner[row, col])
        if owner == NO_OWNER:
            return None
        return Tile(
            front=Color(int(self.front[row, col])),
            back=Color(int(self.back[row, col])),
            owner=owner
        )

    def stock_of(self, player: int, pair_type: PairType) -> int:
        return int(self.stock[player - 1, pair_type])

    def tiles_on_board(self, player: int) -> int:
        return int((self.owner == player).sum())

    def check_win(self, color: Color) -> bool:
        """True iff a full row, column or diagonal shows color."""
        return check_win(self.front, color)

    def is_terminal(self) -> bool:
        return self.winner is not None

    def copy(self) -> GameState:
        """Create an independent copy; arrays are never shared."""
        return GameState(
            targets=self.targets,
            front=self.front.copy(),
            back=self.back.copy(),
            owner=self.owner.copy(),
            stock=self.stock.copy(),
            phase=self.phase,
            turn=self.turn,
            move_count=self.move_count,
            winner=self.winner
        )

    def to_dict(self) -> dict:
        """Read-only snapshot for rendering."""
        cells = []
        for row, col in iter_cells():
            tile = self.tile_at(row, col)
            cells.append({
                "cell": cell_to_algebraic((row, col)),
                "row": row,
                "col": col,
                "front": tile.front.name.lower() if tile else None,
                "back": tile.back.name.lower() if tile else None,
                "owner": tile.owner if tile else None,
            })
        return {
            "cells": cells,
            "stock": {
                str(player): {
                    pair.name.lower(): self.stock_of(player, pair) for pair in PairType
                }
                for player in (1, 2)
            },
            "targets": {
                "1": self.targets[0].name.lower(),
                "2": self.targets[1].name.lower(),
            },
            "phase": self.phase.value,
            "turn": self.turn,
            "move_count": self.move_count,
            "winner": self.winner,
        }

    def __hash__(self) -> int:
        return hash((
            self.front.tobytes(), self.back.tobytes(), self.owner.tobytes(),
            self.stock.tobytes(), self.turn, self.phase, self.winner
        ))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameState):
            return False
        return (
            self.targets == other.targets and
            np.array_equal(self.front, other.front) and
            np.array_equal(self.back, other.back) and
            np.array_equal(self.owner, other.owner) and
            np.array_equal(self.stock, other.stock) and
            self.phase == other.phase and
            self.turn == other.turn and
            self.move_count == other.move_count and
            self.winner == other.winner
        )

    def __repr__(self) -> str:
        """Pretty print the board."""
        board = grid_to_string(self.front, self.back, self.owner)
        status = f"Player {self.turn} to move ({self.phase.value}, {self.move_count} placed)"
        if self.winner is not None:
            status = f"Player {self.winner} wins"
        return f"{board}\n\n{status}"
