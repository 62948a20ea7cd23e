"""
Board utilities for double-sided bingo.

Board layout (4 rows x 4 cols = 16 cells), row 0 at the top:

  1 |  0  1  2  3
  2 |  4  5  6  7
  3 |  8  9 10 11
  4 | 12 13 14 15
    +-------------
       a  b  c  d

Cell index = row * 4 + col. Cells are addressed as (row, col) tuples in
the engine and as 'a1'..'d4' in notation (column letter, then row + 1).
"""

from __future__ import annotations
from enum import IntEnum
from typing import Iterator

import numpy as np

# Board dimensions
ROWS = 4
COLS = 4
NUM_CELLS = ROWS * COLS  # 16

# Players are 1 and 2; 0 marks an empty owner slot
PLAYERS = (1, 2)
NO_OWNER = 0

# Each player starts with 3 tiles of each pair-type
TILES_PER_PAIR = 3

# Placements after which the game enters the movement phase
MOVEMENT_PHASE_AT = 14

# Orthogonal neighbour offsets (up, down, left, right)
ORTHOGONAL_DELTAS = [(-1, 0), (1, 0), (0, -1), (0, 1)]


class Color(IntEnum):
    """Face colors. NONE is the value of an empty cell, never a tile face."""
    NONE = 0
    RED = 1
    YELLOW = 2
    BLUE = 3


TARGET_COLORS = (Color.RED, Color.YELLOW, Color.BLUE)


class PairType(IntEnum):
    """The three two-color tile templates."""
    YELLOW_RED = 0
    BLUE_YELLOW = 1
    RED_BLUE = 2


# Canonical (front, back) when a tile is placed unflipped
PAIR_FACES: dict[PairType, tuple[Color, Color]] = {
    PairType.YELLOW_RED: (Color.YELLOW, Color.RED),
    PairType.BLUE_YELLOW: (Color.BLUE, Color.YELLOW),
    PairType.RED_BLUE: (Color.RED, Color.BLUE),
}

COLOR_LETTERS = {Color.RED: 'R', Color.YELLOW: 'Y', Color.BLUE: 'B'}
LETTER_COLORS = {v: k for k, v in COLOR_LETTERS.items()}


def pair_faces(pair_type: PairType, flipped: bool = False) -> tuple[Color, Color]:
    """Resolve (front, back) for a pair-type and orientation."""
    front, back = PAIR_FACES[pair_type]
    if flipped:
        return back, front
    return front, back


def faces_to_pair(front: Color, back: Color) -> tuple[PairType, bool]:
    """Inverse of pair_faces: find (pair_type, flipped) for two faces."""
    for pair_type, faces in PAIR_FACES.items():
        if faces == (front, back):
            return pair_type, False
        if faces == (back, front):
            return pair_type, True
    raise ValueError(f"No tile has faces {front.name}/{back.name}")


def pair_from_name(name: str) -> PairType:
    """Parse a pair-type name ('yellow_red', 'yellowRed', 'YR')."""
    key = name.strip().replace('-', '_')
    # Accept the camelCase names used by browser clients
    key = ''.join('_' + ch if ch.isupper() and i > 0 and key[i - 1].islower() else ch
                  for i, ch in enumerate(key))
    key = key.upper()
    if key in PairType.__members__:
        return PairType[key]
    if len(key) == 2 and all(ch in LETTER_COLORS for ch in key):
        pair_type, flipped = faces_to_pair(LETTER_COLORS[key[0]], LETTER_COLORS[key[1]])
        if not flipped:
            return pair_type
    raise ValueError(f"Unknown pair-type: {name}")


# --- Cells ---

def cell_to_index(row: int, col: int) -> int:
    """Convert (row, col) to cell index."""
    return row * COLS + col


def index_to_cell(idx: int) -> tuple[int, int]:
    """Convert cell index to (row, col)."""
    return idx // COLS, idx % COLS


def is_valid_cell(row: int, col: int) -> bool:
    """Check if (row, col) is on the board."""
    return 0 <= row < ROWS and 0 <= col < COLS


def cell_to_algebraic(cell: tuple[int, int]) -> str:
    """Convert (row, col) to notation (e.g., (0, 0) -> 'a1')."""
    row, col = cell
    return chr(ord('a') + col) + str(row + 1)


def algebraic_to_cell(s: str) -> tuple[int, int]:
    """Convert notation to (row, col)."""
    s = s.strip().lower()
    if len(s) != 2:
        raise ValueError(f"Invalid cell: {s}")
    col = ord(s[0]) - ord('a')
    row = int(s[1]) - 1
    if not is_valid_cell(row, col):
        raise ValueError(f"Cell off board: {s}")
    return row, col


def iter_cells() -> Iterator[tuple[int, int]]:
    """Iterate all cells in row-major order."""
    for row in range(ROWS):
        for col in range(COLS):
            yield row, col


def neighbors(row: int, col: int) -> Iterator[tuple[int, int]]:
    """Iterate in-bounds orthogonal neighbours of a cell."""
    for dr, dc in ORTHOGONAL_DELTAS:
        r, c = row + dr, col + dc
        if is_valid_cell(r, c):
            yield r, c


def is_orthogonal_step(src: tuple[int, int], dst: tuple[int, int]) -> bool:
    """True if dst is exactly one orthogonal step from src."""
    return abs(src[0] - dst[0]) + abs(src[1] - dst[1]) == 1


# --- Lines ---

def _build_lines() -> np.ndarray:
    lines = []
    for r in range(ROWS):
        lines.append([cell_to_index(r, c) for c in range(COLS)])
    for c in range(COLS):
        lines.append([cell_to_index(r, c) for r in range(ROWS)])
    lines.append([cell_to_index(i, i) for i in range(ROWS)])
    lines.append([cell_to_index(i, COLS - 1 - i) for i in range(ROWS)])
    return np.array(lines, dtype=np.intp)


# 4 rows, 4 columns, 2 diagonals as flat cell indices, shape (10, 4)
LINES = _build_lines()
NUM_LINES = len(LINES)


def line_values(grid: np.ndarray) -> np.ndarray:
    """Gather a 4x4 grid into per-line values, shape (10, 4)."""
    return grid.reshape(-1)[LINES]


def check_win(front: np.ndarray, color: Color) -> bool:
    """
    True iff some line has all 4 fronts equal to color.

    Empty cells hold Color.NONE, so a line with a gap never matches.
    """
    if color == Color.NONE:
        return False
    return bool((line_values(front) == color).all(axis=1).any())


def winning_lines(front: np.ndarray, color: Color) -> list[int]:
    """Indices into LINES of every completed line for color."""
    if color == Color.NONE:
        return []
    full = (line_values(front) == color).all(axis=1)
    return [int(i) for i in np.flatnonzero(full)]


def grid_to_string(front: np.ndarray, back: np.ndarray, owner: np.ndarray) -> str:
    """Render a board as text: front letter, lowercase back letter, owner digit."""
    lines = []
    for row in range(ROWS):
        rank = f"{row + 1} |"
        for col in range(COLS):
            if owner[row, col] == NO_OWNER:
                rank += "  . "
            else:
                f = COLOR_LETTERS[Color(int(front[row, col]))]
                b = COLOR_LETTERS[Color(int(back[row, col]))].lower()
                rank += f" {f}{b}{int(owner[row, col])}"
        lines.append(rank)
    lines.append("  +" + "-" * (COLS * 4))
    lines.append("    " + "   ".join("abcd"[:COLS]))
    return "\n".join(lines)
