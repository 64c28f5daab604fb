"""
Shapes and boards.

A Shape is a width x height pixel pattern of ON/OFF/UNKNOWN cells stored
with a one-cell border, i.e. as an (H+2)x(W+2) array indexed [y+1, x+1].
Boards use the same representation with an UNKNOWN border.

Orientations are never materialized: `oriented(bit)` returns a numpy view
(transpose and/or reversed axes) of the stored pixels.
"""

import numpy as np
from typing import List, Sequence

from .types import (
    Grid, UNKNOWN, OFF, ON, BLOCKED,
    ORIENTATION_BITS, REFL_SWAP, FLIP_X, FLIP_Y, REFL_MIR,
)

_CHARS = {UNKNOWN: '?', OFF: '.', ON: '#', BLOCKED: 'X'}
_CODES = {'?': UNKNOWN, '.': OFF, '#': ON, 'X': BLOCKED}


class Shape:
    """Rectangular pixel pattern with a one-cell border."""

    __slots__ = ('width', 'height', 'pix')

    def __init__(self, width: int, height: int, pix: Grid = None):
        self.width = width
        self.height = height
        if pix is None:
            pix = np.full((height + 2, width + 2), UNKNOWN, dtype=np.int8)
        assert pix.shape == (height + 2, width + 2), \
            f"Pixel array {pix.shape} does not match {width}x{height} shape"
        self.pix = pix

    # --------------------------------------------------------------------------
    # Orientation access
    # --------------------------------------------------------------------------

    def oriented(self, bit: int = 1) -> Grid:
        """Padded pixel view under orientation `bit` (no copy)."""
        if bit not in ORIENTATION_BITS:
            raise ValueError(f"Invalid orientation bit {bit}")
        view = self.pix.T if bit & REFL_SWAP else self.pix
        if bit & FLIP_X:
            view = view[:, ::-1]
        if bit & FLIP_Y:
            view = view[::-1, :]
        return view

    def width_of(self, bit: int = 1) -> int:
        return self.height if bit & REFL_SWAP else self.width

    def height_of(self, bit: int = 1) -> int:
        return self.width if bit & REFL_SWAP else self.height

    def get(self, x: int, y: int, bit: int = 1) -> int:
        """Pixel at (x, y) in [-1, W] x [-1, H] under orientation `bit`."""
        return int(self.oriented(bit)[y + 1, x + 1])

    def set(self, x: int, y: int, val: int, bit: int = 1):
        self.oriented(bit)[y + 1, x + 1] = val

    def interior(self, bit: int = 1) -> Grid:
        """View of the width x height cells (border excluded)."""
        return self.oriented(bit)[1:-1, 1:-1]

    def key(self, bit: int = 1) -> bytes:
        """Hashable pixel signature of the interior under orientation `bit`."""
        inner = np.ascontiguousarray(self.interior(bit))
        return bytes([self.width_of(bit), self.height_of(bit)]) + inner.tobytes()

    # --------------------------------------------------------------------------
    # Board helpers
    # --------------------------------------------------------------------------

    def copy(self) -> 'Shape':
        return Shape(self.width, self.height, self.pix.copy())

    def reset(self, val: int):
        """Set every interior cell to `val`."""
        self.pix[1:-1, 1:-1] = val

    def copy_from(self, other: 'Shape'):
        """Overwrite pixels from a board of the same size."""
        if other.width == self.width and other.height == self.height:
            self.pix[...] = other.pix

    def count(self, val: int) -> int:
        return int(np.count_nonzero(self.pix[1:-1, 1:-1] == val))

    def cells(self) -> Grid:
        """Interior cells as a (H, W) view."""
        return self.pix[1:-1, 1:-1]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Shape):
            return NotImplemented
        return (self.width == other.width and self.height == other.height and
                np.array_equal(self.pix, other.pix))

    def __repr__(self) -> str:
        return f"Shape({self.width}x{self.height})\n" + "\n".join(board_to_rows(self))


# ==============================================================================
# Constructors
# ==============================================================================

def make_unit_shape() -> Shape:
    """The single-cell shape: ON centre surrounded by OFF."""
    pix = np.full((3, 3), OFF, dtype=np.int8)
    pix[1, 1] = ON
    return Shape(1, 1, pix)


def make_empty_board(width: int, height: int) -> Shape:
    return Shape(width, height)


def board_from_rows(rows: Sequence[str]) -> Shape:
    """
    Build a board from strings, one per row.

    '#' = ON, '.' = OFF, '?' = UNKNOWN, 'X' = BLOCKED.
    """
    height = len(rows)
    width = len(rows[0]) if height else 0
    board = make_empty_board(width, height)
    for y, row in enumerate(rows):
        assert len(row) == width, "All rows must have the same length."
        for x, ch in enumerate(row):
            board.pix[y + 1, x + 1] = _CODES[ch]
    return board


def board_to_rows(board: Shape, bit: int = 1) -> List[str]:
    inner = board.interior(bit)
    return [''.join(_CHARS[int(v)] for v in row) for row in inner]


# ==============================================================================
# Growth and comparison
# ==============================================================================

def can_incr_shape(initial: Shape, addx: int, addy: int) -> bool:
    """True if (addx, addy) is not ON and has an ON 4-neighbour."""
    pix = initial.pix
    r, c = addy + 1, addx + 1
    if pix[r, c] == ON:
        return False
    H, W = pix.shape
    for dr, dc in ((0, 1), (1, 0), (0, -1), (-1, 0)):
        rr, cc = r + dr, c + dc
        if 0 <= rr < H and 0 <= cc < W and pix[rr, cc] == ON:
            return True
    return False


def make_incr_shape(initial: Shape, addx: int, addy: int) -> Shape:
    """
    Shape obtained by switching on (addx, addy), which may lie in the
    border. The bounding box grows by one column/row when needed; the new
    cell and its 8 neighbours (unless ON) are marked OFF around it.
    """
    pix = initial.pix
    width, height = initial.width, initial.height
    if addx == -1:
        pix = np.pad(pix, ((0, 0), (1, 0)), constant_values=UNKNOWN)
        width += 1
    elif addx == initial.width:
        pix = np.pad(pix, ((0, 0), (0, 1)), constant_values=UNKNOWN)
        width += 1
    elif addy == -1:
        pix = np.pad(pix, ((1, 0), (0, 0)), constant_values=UNKNOWN)
        height += 1
    elif addy == initial.height:
        pix = np.pad(pix, ((0, 1), (0, 0)), constant_values=UNKNOWN)
        height += 1
    else:
        pix = pix.copy()
    ax, ay = max(addx, 0), max(addy, 0)
    window = pix[ay:ay + 3, ax:ax + 3]
    window[window != ON] = OFF
    pix[ay + 1, ax + 1] = ON
    return Shape(width, height, pix)


def same_shape(sh1: Shape, sh2: Shape, reflmask: int) -> bool:
    """True if sh2 under some orientation in `reflmask` equals sh1 pixel by pixel."""
    smask = 0
    if sh1.width == sh2.width and sh1.height == sh2.height:
        smask |= REFL_MIR
    if sh1.width == sh2.height and sh1.height == sh2.width:
        smask |= REFL_SWAP
    smask &= reflmask
    if not smask:
        return False
    base = sh1.interior(1)
    for bit in ORIENTATION_BITS:
        if smask & bit and np.array_equal(base, sh2.interior(bit)):
            return True
    return False
