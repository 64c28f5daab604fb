"""
Tests for placement geometry: symmetry classes, table indexing, consistency
marking and evidence accumulation.

The vectorized markers are checked against the per-placement reference
`check_inconsistent` on small boards.
"""

import numpy as np
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from identifier_solver.types import ON, OFF, UNKNOWN, REFL_ALL, REFL_ROT, REFL_MIR, REFL_ORIG
from identifier_solver.shapes import make_unit_shape, make_empty_board, board_from_rows, board_to_rows
from identifier_solver.dictionary import get_shape_dictionary
from identifier_solver.placements import (
    calc_needed_positions, PlacementLayout,
    board_conflict_masks, mark_inconsistent, mark_cell,
    accumulate_possibilities, check_inconsistent, copy_to_board,
)


# ==============================================================================
# Helper Functions
# ==============================================================================

def reference_poss(board, layout):
    """Possibility table built placement by placement."""
    poss = np.zeros(layout.length, dtype=bool)
    for i in range(layout.length):
        x, y, bit = layout.locate(i)
        poss[i] = not check_inconsistent(board, layout.shape, bit, x, y)
    return poss


def ell_tromino():
    return get_shape_dictionary('all', 3).get(3, 1)


# ==============================================================================
# Symmetry classes
# ==============================================================================

def test_unit_needs_one_orientation():
    smask, nr1, nr2, np1, np2 = calc_needed_positions(make_unit_shape(), 4, 4, REFL_ALL)
    assert smask == 1
    assert (nr1, nr2, np1, np2) == (1, 0, 16, 16)


def test_domino_needs_two_orientations():
    domino = get_shape_dictionary('all', 2).get(2, 0)
    smask, nr1, nr2, np1, np2 = calc_needed_positions(domino, 4, 4, REFL_ALL)
    assert smask == 5
    assert (nr1, nr2) == (1, 1)
    assert np1 == 3 * 4 and np2 == 4 * 3


def test_ell_needs_four_orientations():
    # The L-tromino is symmetric about its anti-diagonal, so the four
    # axis flips cover every orientation without swapping width and height
    smask, nr1, nr2, _, _ = calc_needed_positions(ell_tromino(), 5, 5, REFL_ALL)
    assert smask == 153
    assert (nr1, nr2) == (4, 0)
    smask, nr1, nr2, _, _ = calc_needed_positions(ell_tromino(), 5, 5, REFL_ROT)
    assert smask == 85
    assert (nr1, nr2) == (2, 2)


def test_identity_group_uses_identity_only():
    smask, nr1, nr2, _, _ = calc_needed_positions(ell_tromino(), 5, 5, REFL_ORIG)
    assert (smask, nr1, nr2) == (1, 1, 0)


@pytest.mark.parametrize("rows,expected", [
    (["##"], (1, 1, 0)),              # both axis flips fix it
    (["#", "#"], (1, 1, 0)),
    (["###"], (1, 1, 0)),
    (["##", "#."], (153, 4, 0)),      # only a diagonal fixes it
    (["###", ".#."], (17, 2, 0)),     # one axis flip fixes it
    ([".##", "##."], (9, 2, 0)),      # only the half turn fixes it
])
def test_mirror_group_orientations(rows, expected):
    """
    Under the mirror group width and height are never swapped, so every
    class enumerates unswapped orientations only.
    """
    shape = board_from_rows(rows)
    smask, nr1, nr2, np1, np2 = calc_needed_positions(shape, 5, 5, REFL_MIR)
    assert (smask, nr1, nr2) == expected
    layout = PlacementLayout(shape, 5, 5, REFL_MIR)
    assert layout.length == nr1 * np1
    assert all(s.rows == 5 - shape.height + 1 for s in layout.slots)


def test_shape_too_large_for_board():
    line = get_shape_dictionary('all', 4).get(4, 0)
    _, _, _, np1, np2 = calc_needed_positions(line, 3, 3, REFL_ALL)
    assert np1 == 0 and np2 == 0
    assert PlacementLayout(line, 3, 3, REFL_ALL).length == 0


# ==============================================================================
# Table indexing
# ==============================================================================

def test_layout_length_counts_placements():
    domino = get_shape_dictionary('all', 2).get(2, 0)
    layout = PlacementLayout(domino, 4, 4, REFL_ALL)
    assert layout.length == 24
    assert [s.bit for s in layout.slots] == [1, 4]


def test_index_and_locate_are_inverse():
    layout = PlacementLayout(ell_tromino(), 5, 4, REFL_ALL)
    bits = [s.bit for s in layout.slots]
    for i in range(layout.length):
        x, y, bit = layout.locate(i)
        assert layout.index(bits.index(bit), x, y) == i


def test_placements_in_table_order():
    layout = PlacementLayout(make_unit_shape(), 3, 2, REFL_ALL)
    poss = np.ones(layout.length, dtype=bool)
    poss[1] = False
    assert layout.placements(poss) == [(0, 0, 1), (2, 0, 1), (0, 1, 1), (1, 1, 1), (2, 1, 1)]


# ==============================================================================
# Consistency marking
# ==============================================================================

def test_mark_inconsistent_matches_reference():
    board = board_from_rows([
        "?#??.",
        "??.??",
        "#????",
        "???.?",
    ])
    for shape in get_shape_dictionary('all', 3).shapes(3):
        layout = PlacementLayout(shape, board.width, board.height, REFL_ALL)
        poss = np.ones(layout.length, dtype=bool)
        mark_inconsistent(board, layout, poss)
        assert np.array_equal(poss, reference_poss(board, layout))


def test_mark_inconsistent_only_clears():
    board = board_from_rows(["?#?", "???", "?.?"])
    layout = PlacementLayout(make_unit_shape(), 3, 3, REFL_ALL)
    poss = np.zeros(layout.length, dtype=bool)
    poss[4] = True
    mark_inconsistent(board, layout, poss, board_conflict_masks(board))
    # Unit at the centre touches the ON cell above it
    assert not poss.any()


def test_mark_cell_matches_full_recompute():
    layout = PlacementLayout(ell_tromino(), 5, 5, REFL_ALL)
    for val in (ON, OFF):
        board = make_empty_board(5, 5)
        incremental = np.ones(layout.length, dtype=bool)
        board.set(2, 1, val)
        mark_cell(layout, incremental, 2, 1, val)
        full = np.ones(layout.length, dtype=bool)
        mark_inconsistent(board, layout, full)
        assert np.array_equal(incremental, full)


def test_check_inconsistent_halo():
    board = board_from_rows(["#??", "???", "???"])
    unit = make_unit_shape()
    assert not check_inconsistent(board, unit, 1, 0, 0)
    assert check_inconsistent(board, unit, 1, 1, 1)     # diagonal neighbour
    assert not check_inconsistent(board, unit, 1, 2, 2)


# ==============================================================================
# Stamping
# ==============================================================================

def test_copy_to_board_stamps_shape_and_halo():
    board = make_empty_board(3, 3)
    copy_to_board(board, make_unit_shape(), 1, 0, 0, ON)
    assert board_to_rows(board) == ["#.?", "..?", "???"]
    # Border untouched
    assert board.get(-1, -1) == UNKNOWN


def test_copy_to_board_orientation():
    board = make_empty_board(3, 3)
    domino = get_shape_dictionary('all', 2).get(2, 0)
    copy_to_board(board, domino, 4, 2, 0, ON)
    assert board_to_rows(board) == ["?.#", "?.#", "?.."]


# ==============================================================================
# Evidence accumulation
# ==============================================================================

def test_accumulate_unit_on_empty_board():
    board = make_empty_board(3, 3)
    layout = PlacementLayout(make_unit_shape(), 3, 3, REFL_ALL)
    poss = np.ones(layout.length, dtype=bool)
    bpos = np.zeros((3, 3), dtype=np.int64)
    bneg = np.zeros((3, 3), dtype=np.int64)
    accumulate_possibilities(board, layout, poss, bpos, bneg)
    assert np.array_equal(bpos, np.ones((3, 3)))
    assert np.array_equal(bneg, [[3, 5, 3], [5, 8, 5], [3, 5, 3]])


def test_accumulate_skips_known_cells():
    board = board_from_rows(["???", "?.?", "???"])
    layout = PlacementLayout(make_unit_shape(), 3, 3, REFL_ALL)
    poss = np.ones(layout.length, dtype=bool)
    mark_inconsistent(board, layout, poss)
    bpos = np.zeros((3, 3), dtype=np.int64)
    bneg = np.zeros((3, 3), dtype=np.int64)
    accumulate_possibilities(board, layout, poss, bpos, bneg)
    assert bpos[1, 1] == 0 and bneg[1, 1] == 0
    assert bpos[0, 0] == 1
    # Corner covered by its own placement (ON) and two edge placements (OFF)
    assert bneg[0, 0] == 2
