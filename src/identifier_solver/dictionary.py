"""
Canonical shape dictionary.

For every size level 1..N keeps the polyominoes that are distinct under the
active symmetry group, built incrementally: every level-L shape is a level
L-1 shape plus one edge-adjacent cell, kept only if no permitted orientation
of it was accepted already.
"""

from typing import Dict, List

from .types import MAX_LEVEL, ORIENTATION_BITS, symmetry_mask
from .shapes import Shape, make_unit_shape, can_incr_shape, make_incr_shape


class ShapeDict:
    """
    Lists of canonical shapes per level for one symmetry group.

    Growth is monotonic: `extend(level)` only builds the missing levels.
    Shapes are read-only once accepted and shared by every board.
    """

    def __init__(self, reflmask: int, maxlevel: int = MAX_LEVEL):
        self.reflmask = symmetry_mask(reflmask)
        self.maxlevel = maxlevel
        self.levels: List[List[Shape]] = [[make_unit_shape()]]

    @property
    def toplevel(self) -> int:
        return len(self.levels)

    @property
    def totnum(self) -> int:
        return sum(len(lv) for lv in self.levels)

    def count(self, level: int) -> int:
        """Number of canonical shapes of `level` cells."""
        return len(self.levels[level - 1])

    def get(self, level: int, ind: int) -> Shape:
        return self.levels[level - 1][ind]

    def shapes(self, level: int) -> List[Shape]:
        return self.levels[level - 1]

    def extend(self, level: int) -> 'ShapeDict':
        """Build all levels up to `level` (no-op for levels already present)."""
        if level > self.maxlevel:
            raise ValueError(f"Level {level} exceeds dictionary maximum {self.maxlevel}")
        while self.toplevel < level:
            self.levels.append(self._grow(self.levels[-1]))
        return self

    def _grow(self, previous: List[Shape]) -> List[Shape]:
        accepted: List[Shape] = []
        # Identity signatures of accepted shapes; a candidate is a duplicate
        # when any of its permitted orientations matches one of them.
        seen = set()
        bits = [b for b in ORIENTATION_BITS if self.reflmask & b]
        for base in previous:
            for x in range(-1, base.width + 1):
                for y in range(-1, base.height + 1):
                    if not can_incr_shape(base, x, y):
                        continue
                    shape = make_incr_shape(base, x, y)
                    if any(shape.key(b) in seen for b in bits):
                        continue
                    accepted.append(shape)
                    seen.add(shape.key(1))
        return accepted


# ==============================================================================
# Lazy per-symmetry registry
# ==============================================================================

_DICTIONARIES: Dict[int, ShapeDict] = {}


def get_shape_dictionary(symmetry='all', level: int = 1) -> ShapeDict:
    """
    Shared dictionary for `symmetry`, extended to at least `level`.

    Args:
        symmetry: 'identity', 'rotation', 'mirror', 'all' or a group mask
        level: minimum level the dictionary must contain
    """
    mask = symmetry_mask(symmetry)
    if mask not in _DICTIONARIES:
        _DICTIONARIES[mask] = ShapeDict(mask)
    return _DICTIONARIES[mask].extend(level)
