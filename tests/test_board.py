"""Tests for board constants, cells, lines and win detection."""

import pytest
import sys
from pathlib import Path
import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from bingo.core.board import (
    LINES, NUM_LINES, ROWS, COLS, Color, PairType,
    pair_faces, faces_to_pair, pair_from_name,
    cell_to_algebraic, algebraic_to_cell, cell_to_index, index_to_cell,
    neighbors, is_orthogonal_step, check_win, winning_lines
)


def grid_with(cells, color):
    front = np.zeros((ROWS, COLS), dtype=np.int8)
    for cell in cells:
        front[cell] = color
    return front


class TestLines:
    def test_ten_lines(self):
        assert NUM_LINES == 10
        assert LINES.shape == (10, 4)

    def test_rows_and_columns(self):
        assert list(LINES[0]) == [0, 1, 2, 3]
        assert list(LINES[3]) == [12, 13, 14, 15]
        assert list(LINES[4]) == [0, 4, 8, 12]
        assert list(LINES[7]) == [3, 7, 11, 15]

    def test_diagonals(self):
        assert list(LINES[8]) == [0, 5, 10, 15]
        assert list(LINES[9]) == [3, 6, 9, 12]

    def test_every_cell_is_covered(self):
        assert set(LINES.ravel()) == set(range(16))


class TestCells:
    def test_index_roundtrip(self):
        for idx in range(16):
            assert cell_to_index(*index_to_cell(idx)) == idx

    def test_algebraic(self):
        assert cell_to_algebraic((0, 0)) == 'a1'
        assert cell_to_algebraic((3, 3)) == 'd4'
        assert cell_to_algebraic((1, 2)) == 'c2'
        assert algebraic_to_cell('c2') == (1, 2)
        assert algebraic_to_cell(' B4 ') == (3, 1)

    def test_algebraic_off_board(self):
        with pytest.raises(ValueError):
            algebraic_to_cell('e1')
        with pytest.raises(ValueError):
            algebraic_to_cell('a5')
        with pytest.raises(ValueError):
            algebraic_to_cell('a10')

    def test_corner_has_two_neighbors(self):
        assert sorted(neighbors(0, 0)) == [(0, 1), (1, 0)]

    def test_center_has_four_neighbors(self):
        assert sorted(neighbors(1, 1)) == [(0, 1), (1, 0), (1, 2), (2, 1)]

    def test_orthogonal_step(self):
        assert is_orthogonal_step((1, 1), (1, 2))
        assert is_orthogonal_step((1, 1), (0, 1))
        assert not is_orthogonal_step((1, 1), (2, 2))
        assert not is_orthogonal_step((1, 1), (1, 3))
        assert not is_orthogonal_step((1, 1), (1, 1))


class TestPairTypes:
    def test_canonical_faces(self):
        assert pair_faces(PairType.YELLOW_RED) == (Color.YELLOW, Color.RED)
        assert pair_faces(PairType.BLUE_YELLOW) == (Color.BLUE, Color.YELLOW)
        assert pair_faces(PairType.RED_BLUE) == (Color.RED, Color.BLUE)

    def test_flipped_swaps(self):
        assert pair_faces(PairType.YELLOW_RED, flipped=True) == (Color.RED, Color.YELLOW)

    def test_faces_to_pair(self):
        assert faces_to_pair(Color.BLUE, Color.YELLOW) == (PairType.BLUE_YELLOW, False)
        assert faces_to_pair(Color.BLUE, Color.RED) == (PairType.RED_BLUE, True)

    def test_faces_to_pair_rejects_same_color(self):
        with pytest.raises(ValueError):
            faces_to_pair(Color.RED, Color.RED)

    def test_pair_from_name(self):
        assert pair_from_name('yellow_red') == PairType.YELLOW_RED
        assert pair_from_name('blueYellow') == PairType.BLUE_YELLOW
        assert pair_from_name('RED_BLUE') == PairType.RED_BLUE
        assert pair_from_name('YR') == PairType.YELLOW_RED

    def test_pair_from_name_invalid(self):
        with pytest.raises(ValueError):
            pair_from_name('green_red')
        with pytest.raises(ValueError):
            pair_from_name('RY')


class TestCheckWin:
    def test_empty_board(self):
        front = np.zeros((4, 4), dtype=np.int8)
        for color in (Color.RED, Color.YELLOW, Color.BLUE):
            assert not check_win(front, color)

    def test_row(self):
        front = grid_with([(2, c) for c in range(4)], Color.YELLOW)
        assert check_win(front, Color.YELLOW)
        assert not check_win(front, Color.RED)

    def test_column(self):
        front = grid_with([(r, 1) for r in range(4)], Color.BLUE)
        assert check_win(front, Color.BLUE)

    def test_main_diagonal(self):
        front = grid_with([(i, i) for i in range(4)], Color.RED)
        assert check_win(front, Color.RED)

    def test_anti_diagonal(self):
        front = grid_with([(i, 3 - i) for i in range(4)], Color.RED)
        assert check_win(front, Color.RED)

    def test_line_with_gap(self):
        front = grid_with([(0, 0), (0, 1), (0, 2)], Color.YELLOW)
        assert not check_win(front, Color.YELLOW)

    def test_line_with_other_color(self):
        front = grid_with([(0, 0), (0, 1), (0, 2)], Color.YELLOW)
        front[0, 3] = Color.RED
        assert not check_win(front, Color.YELLOW)

    def test_none_never_wins(self):
        front = np.zeros((4, 4), dtype=np.int8)
        assert not check_win(front, Color.NONE)

    def test_each_line_alone(self):
        for idx, line in enumerate(LINES):
            front = np.zeros(16, dtype=np.int8)
            front[line] = Color.BLUE
            front = front.reshape(4, 4)
            assert check_win(front, Color.BLUE)
            assert winning_lines(front, Color.BLUE) == [idx]
