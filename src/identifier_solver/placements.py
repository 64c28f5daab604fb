"""
Placement geometry: which (orientation, x, y) placements of a shape exist on
a board, and which of them agree with the board's known cells.

Possibility tables are flat boolean arrays. A shape's placements are laid out
orientation by orientation (in increasing bit order over its `smask`), each
orientation contributing a row-major block of (H-h+1) x (W-w+1) positions.
`PlacementLayout` owns that indexing scheme.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Tuple, Optional
from scipy.signal import correlate2d, convolve2d

from .types import (
    Grid, UNKNOWN, OFF, ON,
    ORIENTATION_BITS, REFL_SWAP, REFL_ORIG, REFL_ROT, REFL_MIR,
)
from .shapes import Shape, same_shape


# ==============================================================================
# Symmetry class of a shape
# ==============================================================================

def calc_needed_positions(shape: Shape, board_width: int, board_height: int,
                          reflmask: int) -> Tuple[int, int, int, int, int]:
    """
    Orientations needed to enumerate every placement of `shape` exactly once.

    Returns:
        (smask, nr1, nr2, np1, np2)
        - smask: orientation bits to enumerate
        - nr1/nr2: how many of them keep / swap width and height
        - np1/np2: translational positions per unswapped / swapped orientation
    """
    if reflmask == REFL_ORIG:
        smask = 1
    else:
        s1 = int(same_shape(shape, shape, 128)) + int(same_shape(shape, shape, 8))
        s2 = int(same_shape(shape, shape, 32)) + int(same_shape(shape, shape, 2))
        if s1 + s2:
            if s1 + s2 == 4:
                smask = 1
            elif s1:
                if s1 == 2:
                    smask = 1 if reflmask == REFL_MIR else 5
                else:
                    smask = 17 if reflmask == REFL_MIR else 85
            else:
                if s2 == 2:
                    smask = 5 if reflmask == REFL_ROT else 9
                else:
                    smask = 85 if reflmask == REFL_ROT else 153
        elif same_shape(shape, shape, 4):
            smask = 1 if reflmask == REFL_ROT else 9
        elif same_shape(shape, shape, 16):
            if reflmask == REFL_MIR:
                smask = 9
            elif reflmask == REFL_ROT:
                smask = 5
            else:
                smask = 15
        else:
            smask = reflmask

    nr1 = sum(1 for b in ORIENTATION_BITS if smask & b and not b & REFL_SWAP)
    nr2 = sum(1 for b in ORIENTATION_BITS if smask & b and b & REFL_SWAP)
    np1 = max(board_width - shape.width + 1, 0) * max(board_height - shape.height + 1, 0)
    np2 = max(board_width - shape.height + 1, 0) * max(board_height - shape.width + 1, 0)
    return smask, nr1, nr2, np1, np2


# ==============================================================================
# Placement layout (indexing scheme of one possibility table)
# ==============================================================================

@dataclass(frozen=True, eq=False)
class OrientationSlot:
    """One orientation's block inside a possibility table."""
    bit: int
    offset: int
    rows: int        # number of y positions
    cols: int        # number of x positions
    view: Grid       # padded oriented pixels
    on_mask: Grid    # int32, 1 where the oriented pixel is ON
    off_mask: Grid   # int32, 1 where the oriented pixel is OFF
    pix_r: Grid      # padded row of every non-UNKNOWN pixel
    pix_c: Grid      # padded column of every non-UNKNOWN pixel
    pix_v: Grid      # value of every non-UNKNOWN pixel

    @property
    def size(self) -> int:
        return self.rows * self.cols


class PlacementLayout:
    """
    Indexing scheme for the placements of one shape on one board size.

    Immutable; shared between a store and all of its copies.
    """

    def __init__(self, shape: Shape, board_width: int, board_height: int, reflmask: int):
        self.shape = shape
        self.board_width = board_width
        self.board_height = board_height
        self.smask, self.nr1, self.nr2, self.np1, self.np2 = \
            calc_needed_positions(shape, board_width, board_height, reflmask)
        self.slots: List[OrientationSlot] = []
        offset = 0
        for bit in ORIENTATION_BITS:
            if not self.smask & bit:
                continue
            view = shape.oriented(bit)
            rows = max(board_height - shape.height_of(bit) + 1, 0)
            cols = max(board_width - shape.width_of(bit) + 1, 0)
            known = np.nonzero(view != UNKNOWN)
            self.slots.append(OrientationSlot(
                bit=bit, offset=offset, rows=rows, cols=cols, view=view,
                on_mask=(view == ON).astype(np.int32),
                off_mask=(view == OFF).astype(np.int32),
                pix_r=known[0], pix_c=known[1], pix_v=view[known],
            ))
            offset += rows * cols
        self.length = offset
        assert self.length == self.nr1 * self.np1 + self.nr2 * self.np2

    def index(self, slot: int, x: int, y: int) -> int:
        """Flat index of placement (x, y) in orientation slot `slot`."""
        s = self.slots[slot]
        if not (0 <= x < s.cols and 0 <= y < s.rows):
            raise IndexError(f"Position ({x}, {y}) outside {s.cols}x{s.rows} block")
        return s.offset + y * s.cols + x

    def locate(self, index: int) -> Tuple[int, int, int]:
        """Inverse of `index`: flat index -> (x, y, orientation bit)."""
        for s in self.slots:
            if index < s.offset + s.size:
                pos = index - s.offset
                return pos % s.cols, pos // s.cols, s.bit
        raise IndexError(f"Placement index {index} outside table of length {self.length}")

    def block(self, poss: Grid, s: OrientationSlot) -> Grid:
        """(rows, cols) view of one orientation's block of `poss`."""
        return poss[s.offset:s.offset + s.size].reshape(s.rows, s.cols)

    def placements(self, poss: Grid) -> List[Tuple[int, int, int]]:
        """Every still-possible placement as (x, y, bit), in table order."""
        out = []
        for s in self.slots:
            if not s.size:
                continue
            ys, xs = np.nonzero(self.block(poss, s))
            out.extend((int(x), int(y), s.bit) for y, x in zip(ys, xs))
        return out


# ==============================================================================
# Consistency against a board
# ==============================================================================

def board_conflict_masks(board: Shape) -> Tuple[Grid, Grid]:
    """
    Padded masks of board cells that contradict an ON / an OFF shape pixel.
    """
    pix = board.pix
    known = pix != UNKNOWN
    bad_on = (known & (pix != ON)).astype(np.int32)
    bad_off = (known & (pix != OFF)).astype(np.int32)
    return bad_on, bad_off


def mark_inconsistent(board: Shape, layout: PlacementLayout, poss: Grid,
                      masks: Optional[Tuple[Grid, Grid]] = None):
    """
    Clear every placement whose silhouette disagrees with a known board cell.

    Shape pixels falling outside the board are ignored (the board border is
    UNKNOWN). `poss` is modified in place.
    """
    bad_on, bad_off = masks if masks is not None else board_conflict_masks(board)
    for s in layout.slots:
        if not s.size:
            continue
        conflicts = (correlate2d(bad_on, s.on_mask, mode='valid') +
                     correlate2d(bad_off, s.off_mask, mode='valid'))
        layout.block(poss, s)[conflicts > 0] = False


def mark_cell(layout: PlacementLayout, poss: Grid, x: int, y: int, val: int):
    """
    Clear placements that disagree with `val` at board cell (x, y) only.
    """
    for s in layout.slots:
        if not s.size:
            continue
        clash = s.pix_v != val
        py = y + 1 - s.pix_r[clash]
        px = x + 1 - s.pix_c[clash]
        inside = (py >= 0) & (py < s.rows) & (px >= 0) & (px < s.cols)
        poss[s.offset + py[inside] * s.cols + px[inside]] = False


def accumulate_possibilities(board: Shape, layout: PlacementLayout, poss: Grid,
                             bpos: Grid, bneg: Grid):
    """
    For every UNKNOWN board cell, count possible placements covering it with
    an ON pixel (into `bpos`) or an OFF pixel (into `bneg`). Both are (H, W).
    """
    unknown = board.cells() == UNKNOWN
    for s in layout.slots:
        if not s.size:
            continue
        grid = layout.block(poss, s).astype(np.int64)
        on = convolve2d(grid, s.on_mask, mode='full')[1:-1, 1:-1]
        off = convolve2d(grid, s.off_mask, mode='full')[1:-1, 1:-1]
        bpos += np.where(unknown, on, 0)
        bneg += np.where(unknown, off, 0)


def check_inconsistent(board: Shape, shape: Shape, bit: int, x: int, y: int) -> bool:
    """True if placing `shape` at (x, y) under `bit` contradicts a known cell."""
    view = shape.oriented(bit)
    hs, ws = view.shape
    window = board.pix[y:y + hs, x:x + ws]
    return bool(np.any((view != UNKNOWN) & (window != UNKNOWN) & (window != view)))


def copy_to_board(board: Shape, shape: Shape, bit: int, x: int, y: int, val: int):
    """
    Stamp `shape` at (x, y) under `bit`: ON pixels become `val`, OFF pixels
    stay OFF. Pixels outside the board are dropped.
    """
    view = shape.oriented(bit)
    hs, ws = view.shape
    r0, r1 = max(y, 1), min(y + hs, board.height + 1)
    c0, c1 = max(x, 1), min(x + ws, board.width + 1)
    src = view[r0 - y:r1 - y, c0 - x:c1 - x]
    dst = board.pix[r0:r1, c0:c1]
    known = src != UNKNOWN
    dst[known] = np.where(src == ON, val, src)[known]
