"""
Identifier Solver - shape-placement inference engine

Canonical polyomino dictionaries, placement possibility tracking, exact or
approximate uniqueness search, and entropy-driven cell queries.
"""

from .types import (
    Grid, UNKNOWN, OFF, ON, BLOCKED,
    REFL_ORIG, REFL_ROT, REFL_MIR, REFL_ALL, SYMMETRY_GROUPS,
    COMPLEXITY_LIMIT, SOLVED, IMPOSSIBLE, AMBIGUOUS,
    Component, ShapeConfig, Placement, ShapeAnswer,
    symmetry_mask,
)
from .shapes import (
    Shape, make_unit_shape, make_empty_board,
    board_from_rows, board_to_rows,
    can_incr_shape, make_incr_shape, same_shape,
)
from .dictionary import ShapeDict, get_shape_dictionary
from .placements import (
    calc_needed_positions, PlacementLayout,
    mark_inconsistent, accumulate_possibilities,
    check_inconsistent, copy_to_board,
)
from .statistics import DictStatistics, render_answer
from .hyper_index import HyperIndex
from .search import over, calc_entropy, EntropySearch, SearchResult
from .policy import pick_best_entropy, prune_superfluous
from .generator import (
    validate_config, apply_fleet_type,
    add_random_board_shape, make_random_board, try_make_random_board,
    solve_by_queries, make_single_game, make_puzzle_game,
)
from .session import IdentifierEngine, Query
from .utils import board_sha, config_sha, answer_to_record, log_receipt

__all__ = [
    # Types
    'Grid', 'UNKNOWN', 'OFF', 'ON', 'BLOCKED',
    'REFL_ORIG', 'REFL_ROT', 'REFL_MIR', 'REFL_ALL', 'SYMMETRY_GROUPS',
    'COMPLEXITY_LIMIT', 'SOLVED', 'IMPOSSIBLE', 'AMBIGUOUS',
    'Component', 'ShapeConfig', 'Placement', 'ShapeAnswer',
    'symmetry_mask',

    # Shapes
    'Shape', 'make_unit_shape', 'make_empty_board',
    'board_from_rows', 'board_to_rows',
    'can_incr_shape', 'make_incr_shape', 'same_shape',

    # Dictionary
    'ShapeDict', 'get_shape_dictionary',

    # Placements
    'calc_needed_positions', 'PlacementLayout',
    'mark_inconsistent', 'accumulate_possibilities',
    'check_inconsistent', 'copy_to_board',

    # Constraint store and search
    'DictStatistics', 'render_answer',
    'HyperIndex',
    'over', 'calc_entropy', 'EntropySearch', 'SearchResult',

    # Policy
    'pick_best_entropy', 'prune_superfluous',

    # Generation
    'validate_config', 'apply_fleet_type',
    'add_random_board_shape', 'make_random_board', 'try_make_random_board',
    'solve_by_queries', 'make_single_game', 'make_puzzle_game',

    # Facade
    'IdentifierEngine', 'Query',

    # Utils
    'board_sha', 'config_sha', 'answer_to_record', 'log_receipt',
]
