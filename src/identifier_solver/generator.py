"""
Ground-truth generation and game pipelines.

Random fleets are dropped shape by shape onto an empty board; placed shapes
are stamped BLOCKED (with their OFF halo) so later shapes can neither overlap
nor touch them, even diagonally.
"""

import bisect
import numpy as np
from typing import Optional, Tuple

from .types import (
    ON, OFF, BLOCKED,
    MAKE_BOARD_TRIALS, MAX_LEVEL, MIN_BOARD, MAX_BOARD, COMPLEXITY_LIMIT,
    SINGLE_GAME_HANDICAP, SOLVED, AMBIGUOUS,
    Component, ShapeConfig,
)
from .shapes import Shape, make_empty_board
from .dictionary import ShapeDict
from .placements import PlacementLayout, mark_inconsistent, copy_to_board
from .statistics import DictStatistics
from .search import calc_entropy
from .policy import pick_best_entropy, prune_superfluous

FLEET_TYPES = ('unknown', 'random', 'standard')


# ==============================================================================
# Configuration checks
# ==============================================================================

def validate_config(config: ShapeConfig, width: int, height: int):
    """Raise ValueError if the board size or fleet is out of range."""
    if not (MIN_BOARD <= width <= MAX_BOARD and MIN_BOARD <= height <= MAX_BOARD):
        raise ValueError(f"Grid size must be between {MIN_BOARD} and {MAX_BOARD}")
    if not len(config):
        raise ValueError("Malformed configuration string")
    if config.total_cells() * 2 > width * height:
        raise ValueError("Too dense configuration")
    if config.max_level() > MAX_LEVEL:
        raise ValueError(f"Maximum level is {MAX_LEVEL}")


def apply_fleet_type(config: ShapeConfig, fleet: str = 'unknown') -> Tuple[ShapeConfig, bool]:
    """
    Adapt `config` to a fleet type.

    Returns:
        (config, store_shapes)
        - 'unknown': any shape of each level
        - 'random': shapes drawn with the board are fixed into the config
        - 'standard': every free component fixed to shape 0 (straight line)
    """
    if fleet not in FLEET_TYPES:
        raise ValueError(f"Invalid fleet type {fleet!r}, must be one of {FLEET_TYPES}")
    if fleet == 'standard':
        config = ShapeConfig(tuple(
            c if c.shape_id != -1 else Component(c.level, c.multiplicity, 0)
            for c in config
        ))
    return config, fleet == 'random'


# ==============================================================================
# Random boards
# ==============================================================================

def add_random_board_shape(board: Shape, shape: Shape, reflmask: int, num: int,
                           rng: np.random.Generator) -> bool:
    """
    Drop `num` instances of `shape`, each uniformly among the placements
    still consistent with `board`. Returns False if one cannot be placed.
    """
    layout = PlacementLayout(shape, board.width, board.height, reflmask)
    poss = np.ones(layout.length, dtype=bool)
    for _ in range(num):
        mark_inconsistent(board, layout, poss)
        free = np.flatnonzero(poss)
        if not len(free):
            return False
        x, y, bit = layout.locate(int(free[rng.integers(len(free))]))
        copy_to_board(board, shape, bit, x, y, BLOCKED)
    return True


def make_random_board(dictionary: ShapeDict, config: ShapeConfig, width: int, height: int,
                      rng: np.random.Generator,
                      store_shapes: bool = False) -> Optional[Tuple[Shape, ShapeConfig]]:
    """
    Solved board for `config`: fleet cells ON, everything else OFF.

    Components without a fixed id draw a shape uniformly, never repeating a
    shape used by the preceding run of same-level components.

    Returns:
        (board, config), where config carries the drawn shape ids if
        `store_shapes`; None if a component could not be placed.
    """
    dictionary.extend(config.max_level())
    board = make_empty_board(width, height)
    same = []
    ids = []
    for i, comp in enumerate(config):
        n = dictionary.count(comp.level)
        if comp.shape_id > -1:
            ind = comp.shape_id
            same = [ind]
        elif i > 0 and comp.level == config[i - 1].level:
            if n <= len(same):
                return None
            ind = int(rng.integers(n - len(same)))
            for s in same:
                if ind >= s:
                    ind += 1
            bisect.insort(same, ind)
        else:
            ind = int(rng.integers(n))
            same = [ind]
        ids.append(ind)
        shape = dictionary.get(comp.level, ind)
        if not add_random_board_shape(board, shape, dictionary.reflmask, comp.multiplicity, rng):
            return None

    cells = board.cells()
    cells[...] = np.where(cells == BLOCKED, ON, OFF)
    if store_shapes:
        config = config.with_shape_ids(ids)
    return board, config


def try_make_random_board(dictionary: ShapeDict, config: ShapeConfig, width: int, height: int,
                          rng: np.random.Generator, store_shapes: bool = False,
                          max_trials: int = MAKE_BOARD_TRIALS) -> Optional[Tuple[Shape, ShapeConfig]]:
    """`make_random_board` retried up to `max_trials` times."""
    for _ in range(max_trials):
        made = make_random_board(dictionary, config, width, height, rng, store_shapes)
        if made is not None:
            return made
    return None


# ==============================================================================
# Self-play
# ==============================================================================

def solve_by_queries(dictionary: ShapeDict, config: ShapeConfig, truth: Shape,
                     rng: np.random.Generator, target_value: Optional[int] = None,
                     climit: int = COMPLEXITY_LIMIT) -> Tuple[DictStatistics, str, int]:
    """
    Reveal cells of `truth` by maximum entropy until the fleet is determined.

    Args:
        target_value: if given, only cells whose true value equals it are
            revealed (puzzle generation reveals OFF cells only)

    Returns:
        (stat, status, reveals)
        - status: 'solved', 'impossible', or 'ambiguous' if no cell with
          positive entropy was left to reveal
    """
    stat = DictStatistics(dictionary, config, truth.width, truth.height)
    reveals = 0
    while True:
        status = calc_entropy(stat, climit).status
        if status != AMBIGUOUS:
            break
        entr, x, y = pick_best_entropy(stat, rng, truth, target_value)
        if x is None:
            break
        stat.update_poss(x, y, truth.get(x, y))
        reveals += 1
    return stat, status, reveals


# ==============================================================================
# Game pipelines
# ==============================================================================

def make_single_game(dictionary: ShapeDict, config: ShapeConfig, width: int, height: int,
                     rng: np.random.Generator, fleet: str = 'unknown',
                     climit: int = COMPLEXITY_LIMIT) -> Tuple[Shape, ShapeConfig, int]:
    """
    Hidden board for the single-player game.

    Returns:
        (truth, config, goal): goal is the number of reveals the computer
        needed plus a handicap.
    """
    validate_config(config, width, height)
    config, store_shapes = apply_fleet_type(config, fleet)
    made = try_make_random_board(dictionary, config, width, height, rng, store_shapes)
    if made is None:
        raise RuntimeError(f"Could not place fleet on {width}x{height} board "
                           f"in {MAKE_BOARD_TRIALS} trials")
    truth, config = made
    _, _, reveals = solve_by_queries(dictionary, config, truth, rng, climit=climit)
    return truth, config, reveals + SINGLE_GAME_HANDICAP


def make_puzzle_game(dictionary: ShapeDict, config: ShapeConfig, width: int, height: int,
                     rng: np.random.Generator, fleet: str = 'unknown',
                     climit: int = COMPLEXITY_LIMIT,
                     max_attempts: int = MAKE_BOARD_TRIALS) -> Tuple[Shape, Shape, ShapeConfig]:
    """
    Puzzle with minimal givens.

    Self-plays against a random board revealing OFF cells only; once that
    pins down the fleet, hides every given that is not needed.

    Returns:
        (truth, givens, config)
    """
    validate_config(config, width, height)
    config, store_shapes = apply_fleet_type(config, fleet)
    for _ in range(max_attempts):
        made = make_random_board(dictionary, config, width, height, rng, store_shapes)
        if made is None:
            continue
        truth, drawn = made
        stat, status, _ = solve_by_queries(dictionary, drawn, truth, rng,
                                           target_value=OFF, climit=climit)
        if status == SOLVED:
            prune_superfluous(stat, rng, climit)
            return truth, stat.board.copy(), drawn
    raise RuntimeError(f"No uniquely solvable puzzle found in {max_attempts} attempts")
