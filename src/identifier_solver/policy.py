"""
Query policy and puzzle minimizer.
"""

import time
import numpy as np
from typing import Dict, Optional, Tuple

from .types import UNKNOWN, COMPLEXITY_LIMIT, SOLVED
from .shapes import Shape
from .search import calc_entropy


def pick_best_entropy(stat, rng: np.random.Generator, solboard: Optional[Shape] = None,
                      solval: Optional[int] = None) -> Tuple[float, Optional[int], Optional[int]]:
    """
    Cell with the highest entropy, ties broken uniformly at random.

    Args:
        stat: DictStatistics after `calc_entropy`
        rng: numpy Generator used for tie-breaking
        solboard: reference solution (self-play against a known board)
        solval: if given with `solboard`, only cells whose true value is
            `solval` are candidates

    Returns:
        (entropy, x, y), or (0.0, None, None) when no candidate has
        positive entropy.
    """
    entropy = stat.entropy.reshape(stat.height, stat.width)
    candidates = np.ones(entropy.shape, dtype=bool)
    if solboard is not None and solval:
        candidates = solboard.cells() == solval
    if not candidates.any():
        return 0.0, None, None

    best = float(entropy[candidates].max())
    if best <= 0.0:
        return 0.0, None, None

    ys, xs = np.nonzero(candidates & (entropy == best))
    pick = int(rng.integers(len(ys)))
    return best, int(xs[pick]), int(ys[pick])


def prune_superfluous(stat, rng: np.random.Generator, climit: int = COMPLEXITY_LIMIT) -> Dict:
    """
    Greedily hide revealed cells while the board still has a unique solution.

    Cells are visited in random order; each known cell is hidden, the store
    is rebuilt from the board and the search rerun, and the cell is restored
    unless the search still reports a unique placement. The result depends on
    the visiting order (a local minimum). `stat` is modified in place and is
    left consistent with the minimized board, with its answer and entropy
    recomputed for it.

    Returns:
        stats dict: visited, hidden, kept, status (final search), timing_ms
    """
    t_start = time.time()
    width, height = stat.width, stat.height
    order = rng.permutation(width * height)

    visited = hidden = kept = 0
    for i in order:
        x, y = int(i) % width, int(i) // width
        px = stat.board.get(x, y)
        if px == UNKNOWN:
            continue
        visited += 1
        stat.board.set(x, y, UNKNOWN)
        stat.recompute_poss()
        if calc_entropy(stat, climit).status != SOLVED:
            stat.board.set(x, y, px)
            kept += 1
        else:
            hidden += 1

    # Last search may have run on a restored cell's hidden board
    stat.recompute_poss()
    result = calc_entropy(stat, climit)
    return {
        "visited": visited,
        "hidden": hidden,
        "kept": kept,
        "status": result.status,
        "timing_ms": int((time.time() - t_start) * 1000),
    }
