"""
Type definitions, cell codes and constants for the Identifier solver.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List, Tuple, Sequence, Optional

# Grid type: padded (H+2)x(W+2) int8 array of cell codes
Grid = np.ndarray

# ==============================================================================
# Cell codes
# ==============================================================================

UNKNOWN = 0
OFF = 1
ON = 2
BLOCKED = 3  # scratch value used while stamping random boards


# ==============================================================================
# Orientation tags
# ==============================================================================

# An orientation is one bit of an 8-bit mask. Bits in REFL_SWAP exchange
# width and height, bits in FLIP_X mirror the x axis, bits in FLIP_Y the y axis.
#
#   1: identity          16: rot180
#   2: transpose         32: anti-transpose
#   4: rot90             64: rot270
#   8: mirror x         128: mirror y
ORIENTATION_BITS = (1, 2, 4, 8, 16, 32, 64, 128)

REFL_SWAP = 102
FLIP_X = 60
FLIP_Y = 240

# Symmetry groups (masks of permitted orientations)
REFL_ORIG = 1
REFL_ROT = 85
REFL_MIR = 153
REFL_ALL = 255

SYMMETRY_GROUPS = {
    'identity': REFL_ORIG,
    'rotation': REFL_ROT,
    'mirror': REFL_MIR,
    'all': REFL_ALL,
}

# ==============================================================================
# Engine constants
# ==============================================================================

COMPLEXITY_LIMIT = 64
MAKE_BOARD_TRIALS = 200
MAX_LEVEL = 12
MIN_BOARD = 3
MAX_BOARD = 15
SINGLE_GAME_HANDICAP = 2

# Search outcomes
SOLVED = 'solved'
IMPOSSIBLE = 'impossible'
AMBIGUOUS = 'ambiguous'


def symmetry_mask(symmetry) -> int:
    """Resolve a symmetry name (or a raw group mask) to an orientation mask."""
    if isinstance(symmetry, str):
        if symmetry not in SYMMETRY_GROUPS:
            raise ValueError(f"Invalid symmetry {symmetry!r}, must be one of {sorted(SYMMETRY_GROUPS)}")
        return SYMMETRY_GROUPS[symmetry]
    if symmetry not in SYMMETRY_GROUPS.values():
        raise ValueError(f"Invalid symmetry mask {symmetry}")
    return int(symmetry)


# ==============================================================================
# Fleet configuration
# ==============================================================================

@dataclass(frozen=True)
class Component:
    """One fleet entry: `multiplicity` copies of one shape of `level` cells."""
    level: int
    multiplicity: int
    shape_id: int = -1  # -1 = any shape of that level


@dataclass(frozen=True)
class ShapeConfig:
    """Ordered fleet components. Adjacent equal components are interchangeable."""
    components: Tuple[Component, ...]

    def __post_init__(self):
        object.__setattr__(self, 'components', tuple(self.components))
        for comp in self.components:
            if comp.level < 1 or comp.multiplicity < 1:
                raise ValueError(f"Component needs level and multiplicity >= 1, got {comp}")

    @classmethod
    def normalized(cls, items: Sequence) -> 'ShapeConfig':
        """
        Build a config ordered by insertion: level descending, and within a
        level a component moves ahead of earlier ones when it has a fixed
        shape id or a larger multiplicity.

        Args:
            items: Components or (level, multiplicity[, shape_id]) tuples
        """
        out: List[Component] = []
        for item in items:
            comp = item if isinstance(item, Component) else Component(*item)
            i = len(out)
            while i > 0 and (comp.level > out[i-1].level or
                             (comp.level == out[i-1].level and
                              (comp.shape_id != -1 or comp.multiplicity > out[i-1].multiplicity))):
                i -= 1
            out.insert(i, comp)
        return cls(tuple(out))

    def __len__(self) -> int:
        return len(self.components)

    def __getitem__(self, k: int) -> Component:
        return self.components[k]

    def __iter__(self):
        return iter(self.components)

    def total_cells(self) -> int:
        """Number of ON cells the whole fleet occupies."""
        return sum(c.level * c.multiplicity for c in self.components)

    def max_level(self) -> int:
        return max((c.level for c in self.components), default=0)

    def with_shape_ids(self, ids: Sequence[int]) -> 'ShapeConfig':
        """Copy of this config with every component's shape id replaced."""
        if len(ids) != len(self.components):
            raise ValueError(f"Expected {len(self.components)} shape ids, got {len(ids)}")
        return ShapeConfig(tuple(Component(c.level, c.multiplicity, int(i))
                                 for c, i in zip(self.components, ids)))


# ==============================================================================
# Answers
# ==============================================================================

@dataclass(frozen=True)
class Placement:
    """Top-left position of one shape instance under orientation `orientation`."""
    x: int
    y: int
    orientation: int


@dataclass
class ShapeAnswer:
    """
    Resolved fleet: chosen shape id and instance placements per component.

    One answer object is shared by a store and every copy forked from it.
    Only the uniqueness search writes into it (`_record` / `_clear`).
    """
    shape_ids: List[int]
    placements: List[List[Placement]] = field(default_factory=list)

    @classmethod
    def empty(cls, config: ShapeConfig) -> 'ShapeAnswer':
        return cls([-1] * len(config), [[] for _ in config])

    def is_resolved(self) -> bool:
        return all(i != -1 for i in self.shape_ids)

    def _record(self, choices: Sequence[Tuple[int, int, List[Placement]]]):
        for comp, shape_id, placements in choices:
            self.shape_ids[comp] = shape_id
            self.placements[comp] = list(placements)

    def _clear(self, comps: Optional[Sequence[int]] = None):
        for comp in (range(len(self.shape_ids)) if comps is None else comps):
            self.shape_ids[comp] = -1
            self.placements[comp] = []
