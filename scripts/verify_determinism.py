#!/usr/bin/env python3
"""
Determinism verification for board generation, self-play and puzzles.

Tests:
1. Same seed -> same random board
2. Same seed -> same reveal sequence and answer
3. Same seed -> same minimized puzzle
4. Search on a fixed board -> identical entropy map across runs

Usage:
    PYTHONPATH=src python scripts/verify_determinism.py
"""

import sys
import os
import numpy as np

# Add src to path if not already there
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from identifier_solver.types import ON, AMBIGUOUS, ShapeConfig
from identifier_solver.shapes import board_to_rows
from identifier_solver.dictionary import get_shape_dictionary
from identifier_solver.statistics import DictStatistics
from identifier_solver.search import calc_entropy
from identifier_solver.policy import pick_best_entropy
from identifier_solver.generator import try_make_random_board, make_puzzle_game
from identifier_solver.utils import board_sha, answer_to_record

CONFIG = ShapeConfig.normalized([(3, 1), (2, 1), (1, 1)])
WIDTH, HEIGHT = 5, 5
RUNS = 5


def play_with_trace(seed):
    """Self-play one board, recording every revealed cell."""
    sd = get_shape_dictionary('all', CONFIG.max_level())
    rng = np.random.default_rng(seed)
    truth, config = try_make_random_board(sd, CONFIG, WIDTH, HEIGHT, rng)
    stat = DictStatistics(sd, config, WIDTH, HEIGHT)
    trace = []
    status = calc_entropy(stat).status
    while status == AMBIGUOUS:
        _, x, y = pick_best_entropy(stat, rng)
        if x is None:
            break
        stat.update_poss(x, y, truth.get(x, y))
        trace.append((x, y, truth.get(x, y)))
        status = calc_entropy(stat).status
    return board_sha(truth), trace, status, answer_to_record(stat.answer)


def test_board_determinism():
    """Test: Same seed produces the same board."""
    print("Test 1: Random board determinism")

    sd = get_shape_dictionary('all', CONFIG.max_level())
    hashes = []
    for i in range(RUNS):
        board, _ = try_make_random_board(sd, CONFIG, WIDTH, HEIGHT, np.random.default_rng(42))
        hashes.append(board_sha(board))

    all_same = len(set(hashes)) == 1
    print(f"  {RUNS} runs: {'PASS - identical' if all_same else 'FAIL - different boards'}")
    if all_same:
        for row in board_to_rows(board):
            print(f"    {row}")
    return all_same


def test_reveal_sequence_determinism():
    """Test: Same seed produces the same reveals and answer."""
    print("\nTest 2: Reveal sequence determinism")

    results = [play_with_trace(7) for _ in range(RUNS)]
    all_same = all(r == results[0] for r in results)
    print(f"  {RUNS} runs: {'PASS - identical' if all_same else 'FAIL - different sequences'}")
    print(f"    Status: {results[0][2]}, reveals: {len(results[0][1])}")
    if not all_same:
        for i, r in enumerate(results[:3]):
            print(f"    Run {i+1}: {r[1]}")
    return all_same


def test_puzzle_determinism():
    """Test: Same seed produces the same minimized puzzle."""
    print("\nTest 3: Puzzle determinism")

    sd = get_shape_dictionary('all', CONFIG.max_level())
    puzzles = []
    for i in range(RUNS):
        truth, givens, _ = make_puzzle_game(sd, CONFIG, WIDTH, HEIGHT, np.random.default_rng(3))
        puzzles.append((board_sha(truth), board_sha(givens)))

    all_same = len(set(puzzles)) == 1
    print(f"  {RUNS} runs: {'PASS - identical' if all_same else 'FAIL - different puzzles'}")
    if all_same:
        for row in board_to_rows(givens):
            print(f"    {row}")
    return all_same


def test_entropy_determinism():
    """Test: Search gives the same entropy map every time."""
    print("\nTest 4: Entropy map determinism")

    sd = get_shape_dictionary('all', CONFIG.max_level())
    maps = []
    norms = []
    for i in range(RUNS):
        stat = DictStatistics(sd, CONFIG, WIDTH, HEIGHT)
        stat.update_poss(2, 2, ON)
        result = calc_entropy(stat)
        maps.append(stat.entropy.copy())
        norms.append(result.norm)

    all_same = all(np.array_equal(maps[0], m) for m in maps) and len(set(norms)) == 1
    print(f"  {RUNS} runs: {'PASS - identical' if all_same else 'FAIL - different maps'}")
    print(f"    Norm: {norms[0]}")
    return all_same


def main():
    print("=" * 60)
    print("DETERMINISM VERIFICATION")
    print("=" * 60)

    tests = [
        test_board_determinism,
        test_reveal_sequence_determinism,
        test_puzzle_determinism,
        test_entropy_determinism,
    ]

    results = [test() for test in tests]

    print("\n" + "=" * 60)
    print(f"OVERALL: {sum(results)}/{len(results)} tests passed")
    print("=" * 60)

    if all(results):
        print("\n✓ Generation, self-play and puzzles are DETERMINISTIC per seed")
        return 0
    else:
        print("\n✗ Some tests failed - review implementation")
        return 1


if __name__ == "__main__":
    sys.exit(main())
