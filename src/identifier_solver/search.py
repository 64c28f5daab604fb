"""
Entropy / uniqueness search.

Branch-and-bound over fleet components driven by an explicit stack of forked
stores. The cheapest component is branched on with a hyper index while its
branching cost stays below the complexity limit; above it, every remaining
component contributes an approximate per-cell estimate instead.

After the search, each cell's entropy is

    log(norm) - p*log(sumpos) - (1-p)*log(sumneg),  p = prob / norm

and 0 where p is 0 or 1 or either evidence sum is 0.
"""

import math
import time
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple
from scipy.special import comb

from .types import ON, COMPLEXITY_LIMIT, SOLVED, IMPOSSIBLE, AMBIGUOUS
from .hyper_index import HyperIndex
from .placements import accumulate_possibilities


def over(n: int, m: int) -> int:
    """Binomial coefficient C(n, m); 0 when m > n."""
    if m > n or n < 0:
        return 0
    return math.comb(n, m)


@dataclass
class SearchResult:
    """
    Outcome of one entropy computation.

    status: 'solved' (norm == 1), 'impossible' (norm == 0) or 'ambiguous'
    norm: weighted count of fleet placements consistent with the board
    stats: receipts (branches, leaves, approximations, timing_ms)
    """
    status: str
    norm: int
    stats: Dict = field(default_factory=dict)

    @property
    def solved(self) -> bool:
        return self.status == SOLVED

    @property
    def impossible(self) -> bool:
        return self.status == IMPOSSIBLE


class EntropySearch:
    """
    One run of the uniqueness search over `stat`.

    The caller's store is never mutated except for its `entropy` buffer and
    its shared answer. Accumulators are owned by this object.
    """

    def __init__(self, stat, climit: int = COMPLEXITY_LIMIT):
        self.stat = stat
        self.climit = climit
        shape = (stat.height, stat.width)
        self.prob = np.zeros(shape, dtype=float)
        self.sumpos = np.zeros(shape, dtype=float)
        self.sumneg = np.zeros(shape, dtype=float)
        self.norm = 0
        self.stats = {"branches": 0, "leaves": 0, "approximations": 0}

    # --------------------------------------------------------------------------
    # Driver
    # --------------------------------------------------------------------------

    def run(self) -> SearchResult:
        t_start = time.time()
        ncomp = len(self.stat.conf)
        states = [self.stat]
        cursors: List[HyperIndex] = []

        while True:
            current = states[-1]
            if len(cursors) < ncomp:
                done = {c.comp for c in cursors}
                k, cost = self._cheapest(current, done)
                if cost < self.climit:
                    child = current.copy()
                    cursors.append(HyperIndex(child, k))
                    states.append(child)
                    self.stats["branches"] += 1
                else:
                    self._approximate(current, done)
            else:
                self._leaf(current, cursors)

            while cursors and not cursors[-1].advance():
                cursors.pop()
                states.pop()
            if not cursors:
                break

        self._write_entropy()
        status = IMPOSSIBLE if self.norm == 0 else SOLVED if self.norm == 1 else AMBIGUOUS
        if status != SOLVED:
            self.stat.answer._clear()
        self.stats["norm"] = self.norm
        self.stats["timing_ms"] = int((time.time() - t_start) * 1000)
        return SearchResult(status, self.norm, self.stats)

    def _cheapest(self, current, done: Set[int]) -> Tuple[int, int]:
        """Unresolved component with the smallest branching cost, and that cost."""
        lay = current.layout
        best_k, best_cost = -1, -1
        for k, comp in enumerate(current.conf):
            if k in done:
                continue
            cost = sum(over(current.numposs[j], comp.multiplicity)
                       for j in lay.comp_entries(k)
                       if current.numposs[j] >= comp.multiplicity)
            if best_k == -1 or cost < best_cost:
                best_k, best_cost = k, cost
        return best_k, best_cost

    # --------------------------------------------------------------------------
    # Accumulation
    # --------------------------------------------------------------------------

    def _approximate(self, current, done: Set[int]):
        """Per-cell estimate for every unresolved component, weighted by C(n, m)."""
        self.stats["approximations"] += 1
        lay = current.layout
        outer_on = self.stat.board.cells() == ON
        shape = self.prob.shape
        for k, comp in enumerate(current.conf):
            if k in done:
                continue
            m = comp.multiplicity
            for j in lay.comp_entries(k):
                n = current.numposs[j]
                if n < m:
                    continue
                bpos = np.zeros(shape, dtype=np.int64)
                bneg = np.zeros(shape, dtype=np.int64)
                accumulate_possibilities(current.board, lay.layouts[j], current.poss_of(j), bpos, bneg)
                weight = over(n, m)
                self.norm += weight
                self.prob += float(weight) * np.minimum(n, m * bpos) / n
                self.sumpos += np.where(bpos == 0, 0.0, comb(n - bneg, m))
                self.sumneg += np.where(outer_on, 0.0, comb(n - bpos, m))

    def _leaf(self, current, cursors: List[HyperIndex]):
        """Every component resolved: count the placement if the ON total matches."""
        cells = current.board.cells()
        on = cells == ON
        if int(np.count_nonzero(on)) != self.stat.conf.total_cells():
            return
        self.stats["leaves"] += 1
        self.norm += 1
        self.prob += on
        self.sumpos += on
        self.sumneg += ~on
        answer = self.stat.answer
        if self.norm == 1:
            answer._record([(c.comp, c.shind, c.placements) for c in cursors])
        else:
            answer._clear([c.comp for c in cursors])

    def _write_entropy(self):
        entropy = np.zeros_like(self.prob)
        if self.norm > 0:
            p = self.prob / float(self.norm)
            undecided = (p != 0.0) & (p != 1.0) & (self.sumpos != 0) & (self.sumneg != 0)
            sumpos = np.where(undecided, self.sumpos, 1.0)
            sumneg = np.where(undecided, self.sumneg, 1.0)
            values = math.log(self.norm) - p * np.log(sumpos) - (1.0 - p) * np.log(sumneg)
            entropy = np.where(undecided, values, 0.0)
        self.stat.entropy = entropy.reshape(-1)


def calc_entropy(stat, climit: int = COMPLEXITY_LIMIT) -> SearchResult:
    """
    Decide whether the board pins down the fleet, and score every cell.

    Args:
        stat: DictStatistics for the current board (not modified, apart from
            its entropy buffer and its shared answer)
        climit: branching cost at or above which components are approximated

    Returns:
        SearchResult with status 'solved', 'impossible' or 'ambiguous'.
        When solved, `stat.answer` holds the unique placement.
    """
    return EntropySearch(stat, climit).run()
