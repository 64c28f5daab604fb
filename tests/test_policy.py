"""
Tests for the query policy and the puzzle minimizer.
"""

import math
import numpy as np
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from identifier_solver.types import ON, OFF, UNKNOWN, SOLVED, Component, ShapeConfig
from identifier_solver.shapes import board_from_rows, board_to_rows
from identifier_solver.dictionary import get_shape_dictionary
from identifier_solver.statistics import DictStatistics, render_answer
from identifier_solver.search import calc_entropy
from identifier_solver.policy import pick_best_entropy, prune_superfluous


# ==============================================================================
# Helper Functions
# ==============================================================================

def make_store(items, width, height):
    config = ShapeConfig(tuple(Component(*item) for item in items))
    sd = get_shape_dictionary('all', config.max_level())
    return DictStatistics(sd, config, width, height)


def small_truth():
    """Domino in the top-left corner, unit cell in the opposite corner."""
    return board_from_rows([
        "##..",
        "....",
        "....",
        "...#",
    ])


# ==============================================================================
# pick_best_entropy
# ==============================================================================

def test_pick_among_ties():
    stat = make_store([(1, 1)], 3, 3)
    calc_entropy(stat)
    expected = math.log(9) - (8 / 9) * math.log(8)
    picks = set()
    rng = np.random.default_rng(0)
    for _ in range(40):
        entr, x, y = pick_best_entropy(stat, rng)
        assert abs(entr - expected) < 1e-12
        assert 0 <= x < 3 and 0 <= y < 3
        picks.add((x, y))
    # Uniform tie-breaking reaches more than one cell
    assert len(picks) > 1


def test_pick_maximum():
    stat = make_store([(1, 1)], 3, 3)
    stat.entropy = np.array([0.0, 0.5, 0.2,
                             0.5, 0.0, 0.0,
                             0.1, 0.0, 0.0])
    rng = np.random.default_rng(1)
    for _ in range(10):
        entr, x, y = pick_best_entropy(stat, rng)
        assert entr == 0.5
        assert (x, y) in {(1, 0), (0, 1)}


def test_pick_filtered_by_reference_board():
    stat = make_store([(1, 1)], 3, 3)
    stat.entropy = np.array([0.0, 0.5, 0.2,
                             0.5, 0.0, 0.0,
                             0.1, 0.0, 0.0])
    solboard = board_from_rows(["##.", "#..", "..."])
    entr, x, y = pick_best_entropy(stat, np.random.default_rng(2), solboard, OFF)
    assert (entr, x, y) == (0.2, 2, 0)


def test_pick_nothing_when_all_decided():
    stat = make_store([(1, 1)], 3, 3)
    stat.entropy = np.zeros(9)
    assert pick_best_entropy(stat, np.random.default_rng(0)) == (0.0, None, None)
    solboard = board_from_rows(["...", "...", "..."])
    stat.entropy[4] = 1.0
    assert pick_best_entropy(stat, np.random.default_rng(0), solboard, ON) == (0.0, None, None)


# ==============================================================================
# prune_superfluous
# ==============================================================================

def test_prune_keeps_unique_solution():
    """
    Test: the minimized board still determines the fleet.

    Setup:
    - Fully revealed 4x4 board with one domino and one unit cell

    Verify:
    - Some cells get hidden
    - Remaining givens agree with the truth
    - A fresh store on the givens solves to the original board
    """
    sd = get_shape_dictionary('all', 2)
    config = ShapeConfig.normalized([(2, 1), (1, 1)])
    truth = small_truth()
    stat = DictStatistics.from_board(sd, config, truth)
    assert calc_entropy(stat).status == SOLVED

    stats = prune_superfluous(stat, np.random.default_rng(3))
    assert stats["visited"] == 16
    assert stats["hidden"] + stats["kept"] == 16
    assert stats["hidden"] > 0

    givens = stat.board.cells()
    known = givens != UNKNOWN
    assert np.array_equal(givens[known], truth.cells()[known])

    fresh = DictStatistics.from_board(sd, config, stat.board)
    assert calc_entropy(fresh).status == SOLVED
    rendered = render_answer(fresh.answer, sd, config, 4, 4)
    assert board_to_rows(rendered) == board_to_rows(truth)


def test_prune_leaves_store_consistent():
    sd = get_shape_dictionary('all', 2)
    config = ShapeConfig.normalized([(2, 1), (1, 1)])
    stat = DictStatistics.from_board(sd, config, small_truth())
    prune_superfluous(stat, np.random.default_rng(4))
    rebuilt = stat.copy()
    rebuilt.recompute_poss()
    assert rebuilt.numposs == stat.numposs


def test_prune_leaves_answer_for_minimized_board():
    """
    Test: whichever cell is visited last, the store comes back with the
    answer and entropy of the minimized board.
    """
    sd = get_shape_dictionary('all', 2)
    config = ShapeConfig.normalized([(2, 1), (1, 1)])
    truth = small_truth()
    for seed in range(6):
        stat = DictStatistics.from_board(sd, config, truth)
        stats = prune_superfluous(stat, np.random.default_rng(seed))
        assert stats["status"] == SOLVED
        assert stat.answer.is_resolved()
        rendered = render_answer(stat.answer, sd, config, 4, 4)
        assert board_to_rows(rendered) == board_to_rows(truth)
        assert not stat.entropy.any()
