"""
Constraint store (DictStatistics).

For one board and one fleet configuration, tracks every placement of every
dictionary shape a component may use, and keeps only those consistent with
the cells revealed so far.

Entries are numbered j = start[k] + jk, where k is the component and jk the
shape index within the component's level. All possibility tables live in one
flat boolean arena; entry j owns `poss[offset[j]:offset[j] + lenposs[j]]`.

Narrowing discipline (same as a closure over a set-valued grid):
1. Shrinking: `update_poss` only clears placements
2. Idempotent: revealing an already known cell again changes nothing
"""

import numpy as np
from typing import List, Tuple, Optional

from .types import (
    Grid, ON, OFF, UNKNOWN,
    ShapeConfig, ShapeAnswer,
)
from .shapes import Shape, make_empty_board
from .dictionary import ShapeDict
from .placements import (
    PlacementLayout, board_conflict_masks,
    mark_inconsistent, mark_cell, copy_to_board,
)


class StoreLayout:
    """
    Immutable indexing metadata shared by a store and all of its copies:
    entry numbering, per-entry placement layouts and arena offsets.
    """

    def __init__(self, dictionary: ShapeDict, config: ShapeConfig, width: int, height: int):
        self.width = width
        self.height = height
        self.start: List[int] = []     # first entry of each component
        self.count: List[int] = []     # shapes per component
        self.entry_comp: List[int] = []
        self.entry_shape: List[int] = []
        self.layouts: List[PlacementLayout] = []
        self.offset: List[int] = []
        self.lenposs: List[int] = []

        by_level = {}
        total = 0
        for k, comp in enumerate(config):
            n = dictionary.count(comp.level)
            if comp.level not in by_level:
                by_level[comp.level] = [
                    PlacementLayout(dictionary.get(comp.level, jk), width, height, dictionary.reflmask)
                    for jk in range(n)
                ]
            self.start.append(len(self.layouts))
            self.count.append(n)
            for jk, layout in enumerate(by_level[comp.level]):
                self.entry_comp.append(k)
                self.entry_shape.append(jk)
                self.layouts.append(layout)
                self.offset.append(total)
                self.lenposs.append(layout.length)
                total += layout.length
        self.arena_size = total

    @property
    def num(self) -> int:
        return len(self.layouts)

    def comp_entries(self, k: int) -> range:
        return range(self.start[k], self.start[k] + self.count[k])


class DictStatistics:
    """
    Placement possibilities for one board instance.

    Invariant: poss[j][i] is True only if placement i of entry j fits on the
    board and agrees with every known cell it covers. numposs[j] is the
    number of True entries, or 0 once fewer than the component's
    multiplicity remain (or once a fixed-id / symmetry rule excludes j).
    """

    def __init__(self, dictionary: ShapeDict, config: ShapeConfig, width: int, height: int):
        dictionary.extend(config.max_level())
        self.dict = dictionary
        self.conf = config
        self.answer = ShapeAnswer.empty(config)
        self.layout = StoreLayout(dictionary, config, width, height)
        self.board = make_empty_board(width, height)
        self.poss = np.ones(self.layout.arena_size, dtype=bool)
        self.numposs: List[int] = list(self.layout.lenposs)
        self.entropy = np.zeros(width * height, dtype=float)
        self.constrain_shapes()
        self.break_symmetry()

    @classmethod
    def from_board(cls, dictionary: ShapeDict, config: ShapeConfig, board: Shape) -> 'DictStatistics':
        """Fresh store with every known (ON/OFF) cell of `board` revealed."""
        stat = cls(dictionary, config, board.width, board.height)
        cells = board.cells()
        for y in range(board.height):
            for x in range(board.width):
                if cells[y, x] in (ON, OFF):
                    stat.update_poss(x, y, int(cells[y, x]))
        return stat

    # --------------------------------------------------------------------------
    # Accessors
    # --------------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self.board.width

    @property
    def height(self) -> int:
        return self.board.height

    @property
    def num(self) -> int:
        return self.layout.num

    def poss_of(self, j: int) -> Grid:
        """View of entry j's possibility table inside the arena."""
        off = self.layout.offset[j]
        return self.poss[off:off + self.layout.lenposs[j]]

    def entry(self, k: int, jk: int) -> int:
        if not 0 <= jk < self.layout.count[k]:
            raise IndexError(f"Shape {jk} outside level of component {k}")
        return self.layout.start[k] + jk

    def shape_of(self, j: int) -> Shape:
        return self.layout.layouts[j].shape

    def component_numposs(self, k: int) -> List[int]:
        return [self.numposs[j] for j in self.layout.comp_entries(k)]

    # --------------------------------------------------------------------------
    # Copy / update
    # --------------------------------------------------------------------------

    def copy(self) -> 'DictStatistics':
        """
        Fork for a hypothetical branch: board, arena, counts and entropy are
        private; dictionary, config, layout and answer are shared.
        """
        stat = DictStatistics.__new__(DictStatistics)
        stat.dict = self.dict
        stat.conf = self.conf
        stat.answer = self.answer
        stat.layout = self.layout
        stat.board = self.board.copy()
        stat.poss = self.poss.copy()
        stat.numposs = list(self.numposs)
        stat.entropy = self.entropy.copy()
        return stat

    def update_poss(self, x: int, y: int, val: int):
        """
        Reveal board cell (x, y) as `val` and drop every placement that
        disagrees with it.
        """
        if val not in (ON, OFF):
            raise ValueError(f"Revealed value must be ON or OFF, got {val}")
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Cell ({x}, {y}) outside {self.width}x{self.height} board")
        self.board.set(x, y, val)
        for j in range(self.num):
            if not self.numposs[j]:
                continue
            poss = self.poss_of(j)
            mark_cell(self.layout.layouts[j], poss, x, y, val)
            n = int(np.count_nonzero(poss))
            mult = self.conf[self.layout.entry_comp[j]].multiplicity
            self.numposs[j] = n if n >= mult else 0
        self.constrain_shapes()
        self.break_symmetry()

    def recompute_entry(self, j: int, masks: Optional[Tuple[Grid, Grid]] = None) -> int:
        """Rebuild entry j's table from scratch against the board; returns its count."""
        poss = self.poss_of(j)
        poss[:] = True
        mark_inconsistent(self.board, self.layout.layouts[j], poss, masks)
        return int(np.count_nonzero(poss))

    def recompute_poss(self):
        """Rebuild every table from the current board and reapply the id rules."""
        masks = board_conflict_masks(self.board)
        for j in range(self.num):
            self.numposs[j] = self.recompute_entry(j, masks)
        self.constrain_shapes()
        self.break_symmetry()

    # --------------------------------------------------------------------------
    # Shape-identity rules
    # --------------------------------------------------------------------------

    def constrain_shapes(self):
        """
        Components with a fixed shape id may only use that shape, and the
        following same-level components may not use it.
        """
        conf, lay = self.conf, self.layout
        for k, comp in enumerate(conf):
            if comp.shape_id == -1:
                continue
            j0, n = lay.start[k], lay.count[k]
            for jk in range(n):
                if jk != comp.shape_id:
                    self.numposs[j0 + jk] = 0
            if comp.shape_id < n:
                kk = k + 1
                while kk < len(conf) and conf[kk].level == comp.level:
                    self.numposs[lay.start[kk] + comp.shape_id] = 0
                    kk += 1

    def break_symmetry(self):
        """
        Adjacent interchangeable components (same level and multiplicity, no
        fixed id) must use strictly increasing shape ids, so permutations of
        one fleet are counted once.
        """
        conf, lay = self.conf, self.layout
        ncomp = len(conf)
        # A later component may not use an id at or below the earlier one's lowest
        for k in range(ncomp - 1):
            a, b = conf[k], conf[k + 1]
            if a.level == b.level and a.shape_id == -1 and a.multiplicity == b.multiplicity:
                j0, n = lay.start[k], lay.count[k]
                jk = 0
                while jk < n and not self.numposs[j0 + jk]:
                    self.numposs[j0 + n + jk] = 0
                    jk += 1
                if jk < n:
                    self.numposs[j0 + n + jk] = 0
        # An earlier component may not use an id at or above the later one's highest
        for k in range(ncomp - 1, 0, -1):
            a, b = conf[k - 1], conf[k]
            if a.level == b.level and a.shape_id == -1 and a.multiplicity == b.multiplicity:
                j0, n = lay.start[k], lay.count[k]
                jk = n - 1
                while jk >= 0 and not self.numposs[j0 + jk]:
                    self.numposs[j0 - n + jk] = 0
                    jk -= 1
                if jk >= 0:
                    self.numposs[j0 - n + jk] = 0

    # --------------------------------------------------------------------------
    # Answer rendering
    # --------------------------------------------------------------------------

    def fill_board(self):
        """Replace the board with the resolved answer: fleet ON, rest OFF."""
        self.board = render_answer(self.answer, self.dict, self.conf, self.width, self.height)

    def is_unsatisfiable(self) -> bool:
        """True if some component has no shape left with enough placements."""
        return any(
            all(self.numposs[j] < comp.multiplicity for j in self.layout.comp_entries(k))
            for k, comp in enumerate(self.conf)
        )


def render_answer(answer: ShapeAnswer, dictionary: ShapeDict, config: ShapeConfig,
                  width: int, height: int) -> Shape:
    """Board with every resolved component stamped ON and all other cells OFF."""
    board = make_empty_board(width, height)
    board.reset(OFF)
    for k, comp in enumerate(config):
        if answer.shape_ids[k] == -1:
            continue
        shape = dictionary.get(comp.level, answer.shape_ids[k])
        for p in answer.placements[k]:
            copy_to_board(board, shape, p.orientation, p.x, p.y, ON)
    return board
