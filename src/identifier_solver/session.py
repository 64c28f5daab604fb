"""
Computer opponent facade.

Wraps one constraint store and one random stream: the game layer feeds it
reveal events and asks it for the next cell to query.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from .types import COMPLEXITY_LIMIT, SOLVED, IMPOSSIBLE, ShapeConfig, ShapeAnswer
from .shapes import Shape
from .dictionary import ShapeDict, get_shape_dictionary
from .statistics import DictStatistics, render_answer
from .search import calc_entropy
from .policy import pick_best_entropy

QUERY = 'query'
STUCK = 'stuck'


@dataclass
class Query:
    """
    Result of `IdentifierEngine.query_next`.

    status: 'query' (reveal x, y next), 'solved' (answer and board are set),
    'impossible' (reveals contradict the fleet) or 'stuck' (no cell carries
    information; only possible in the approximate regime)
    """
    status: str
    x: Optional[int] = None
    y: Optional[int] = None
    entropy: float = 0.0
    answer: Optional[ShapeAnswer] = None
    board: Optional[Shape] = None


class IdentifierEngine:
    """
    Computer player for one hidden board.

    Usage:
        engine = IdentifierEngine(config, 8, 8, rng=np.random.default_rng(0))
        q = engine.query_next()
        while q.status == 'query':
            engine.reveal(q.x, q.y, truth.get(q.x, q.y))
            q = engine.query_next()
    """

    def __init__(self, config: ShapeConfig, width: int, height: int,
                 rng: Optional[np.random.Generator] = None, symmetry='all',
                 dictionary: Optional[ShapeDict] = None, climit: int = COMPLEXITY_LIMIT):
        if dictionary is None:
            dictionary = get_shape_dictionary(symmetry, config.max_level())
        self.rng = rng if rng is not None else np.random.default_rng()
        self.climit = climit
        self.stat = DictStatistics(dictionary, config, width, height)
        self.turns = 0
        self.last = None

    @property
    def board(self) -> Shape:
        return self.stat.board

    def reveal(self, x: int, y: int, value: int):
        """Record the true value of cell (x, y)."""
        self.stat.update_poss(x, y, value)
        self.turns += 1

    def query_next(self) -> Query:
        """Run the search and return the next query or a terminal outcome."""
        self.last = calc_entropy(self.stat, self.climit)
        if self.last.solved:
            stat = self.stat
            solved = render_answer(stat.answer, stat.dict, stat.conf, stat.width, stat.height)
            return Query(SOLVED, answer=stat.answer, board=solved)
        if self.last.impossible:
            return Query(IMPOSSIBLE)
        entr, x, y = pick_best_entropy(self.stat, self.rng)
        if x is None:
            return Query(STUCK)
        return Query(QUERY, x, y, entr)
