"""
Hyper-index enumerator.

Cursor over every way to resolve one fleet component: for each shape the
component may still use, every combination of `multiplicity` placements that
can coexist on the board. Each accepted combination is stamped onto the
store's (private) board and every other component's possibilities are
recomputed against it.
"""

import itertools
from typing import Iterator, List, Optional, Tuple

from .types import ON, Placement
from .shapes import Shape
from .placements import board_conflict_masks, check_inconsistent, copy_to_board


class HyperIndex:
    """
    Enumerates resolutions of component `comp` of a forked store.

    The store passed in must be a private copy; `advance()` overwrites its
    board, possibility tables and counts.

    Usage:
        cursor = HyperIndex(stat.copy(), k)
        while cursor.advance():
            ...  # cursor.stat is resolved for component k
    """

    def __init__(self, stat, comp: int):
        self.stat = stat
        self.comp = comp
        self.mult = stat.conf[comp].multiplicity
        self.j0 = stat.layout.start[comp]
        self.nshape = stat.layout.count[comp]
        self.origboard = stat.board.copy()
        self.orignumposs = list(stat.numposs)

        self.shind = -1
        self.shape: Optional[Shape] = None
        self.candidates: List[Tuple[int, int, int]] = []
        self.chosen: Tuple[int, ...] = ()
        self._combos: Iterator[Tuple[int, ...]] = iter(())

    @property
    def placements(self) -> List[Placement]:
        """Placements of the current combination."""
        return [Placement(*self.candidates[i]) for i in self.chosen]

    def advance(self) -> bool:
        """
        Move to the next consistent combination.

        Returns:
            True if the store now holds a new resolution, False once every
            shape and combination has been tried (counts are then restored).
        """
        stat = self.stat
        while True:
            combo = next(self._combos, None)
            if combo is None:
                stat.numposs[:] = self.orignumposs
                if not self._next_shape():
                    return False
                continue

            stat.board.copy_from(self.origboard)
            accepted = True
            for i in combo:
                x, y, bit = self.candidates[i]
                if check_inconsistent(stat.board, self.shape, bit, x, y):
                    accepted = False
                    break
                copy_to_board(stat.board, self.shape, bit, x, y, ON)
            if not accepted:
                continue

            self.chosen = combo
            self._propagate()
            return True

    def _next_shape(self) -> bool:
        stat = self.stat
        self.shind += 1
        while self.shind < self.nshape and stat.numposs[self.j0 + self.shind] < self.mult:
            self.shind += 1
        if self.shind == self.nshape:
            return False

        j = self.j0 + self.shind
        self.shape = stat.shape_of(j)
        stat.board.copy_from(self.origboard)
        stat.recompute_entry(j)
        self.candidates = stat.layout.layouts[j].placements(stat.poss_of(j))
        self._combos = itertools.combinations(range(len(self.candidates)), self.mult)
        return True

    def _propagate(self):
        """Recount every other component against the stamped board."""
        stat, lay = self.stat, self.stat.layout
        level = stat.conf[self.comp].level
        masks = board_conflict_masks(stat.board)
        for k, comp in enumerate(stat.conf):
            entries = lay.comp_entries(k)
            if k == self.comp:
                for jk, j in enumerate(entries):
                    stat.numposs[j] = self.mult if jk == self.shind else 0
                continue
            for j in entries:
                if self.orignumposs[j]:
                    stat.numposs[j] = stat.recompute_entry(j, masks)
            # Same-level components may not reuse the chosen shape
            if comp.level == level:
                stat.numposs[lay.start[k] + self.shind] = 0
        stat.constrain_shapes()
        stat.break_symmetry()
