#!/usr/bin/env python3
"""
Generate random boards and let the computer self-play them.

Each game draws a hidden board for the fleet, reveals maximum-entropy cells
until the fleet is determined, and writes one receipt per game.
With --puzzle, each game instead produces a minimized puzzle (OFF givens only).

Usage:
    python scripts/run_selfplay.py --size=8x8 --fleet=6x2,4x3 --games=10
    python scripts/run_selfplay.py --size=6x6 --fleet=3x2,2x1 --symmetry=rotation --puzzle
    python scripts/run_selfplay.py --size=7x7 --fleet=4x1:0,3x2 --fleet-type=standard
"""

import sys
import time
import argparse
from pathlib import Path
from datetime import datetime

import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from identifier_solver import (
    OFF, SOLVED, COMPLEXITY_LIMIT,
    ShapeConfig, get_shape_dictionary,
    validate_config, apply_fleet_type, try_make_random_board,
    solve_by_queries, make_puzzle_game, render_answer,
    board_to_rows, board_sha, config_sha, answer_to_record, log_receipt,
)


def parse_size(text: str):
    """'8x6' -> (8, 6); '8' -> (8, 8)."""
    parts = text.lower().split('x')
    if len(parts) == 1:
        return int(parts[0]), int(parts[0])
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"Bad board size: {text}")
    return int(parts[0]), int(parts[1])


def parse_fleet(text: str) -> ShapeConfig:
    """
    Parse a fleet list: comma-separated LEVELxCOUNT items, each optionally
    followed by :ID to fix the shape id.

    '6x2,4x3' -> two hexominoes and three tetrominoes.
    """
    items = []
    for item in text.split(','):
        item = item.strip()
        if not item:
            continue
        head, _, sid = item.partition(':')
        level, _, mult = head.lower().partition('x')
        try:
            entry = (int(level), int(mult) if mult else 1)
            if sid:
                entry += (int(sid),)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Bad fleet item: {item}")
        items.append(entry)
    if not items:
        raise argparse.ArgumentTypeError("Empty fleet")
    return ShapeConfig.normalized(items)


def run_selfplay(config: ShapeConfig, width: int, height: int, games: int,
                 symmetry: str = 'all', fleet: str = 'unknown', puzzle: bool = False,
                 seed: int = 0, climit: int = COMPLEXITY_LIMIT,
                 output_dir: str = None, verbose: bool = True):
    """
    Self-play `games` random boards and log a receipt for each.

    Args:
        config: Fleet configuration
        width, height: Board size
        games: Number of games
        symmetry: Symmetry group name
        fleet: Fleet type ('unknown', 'random' or 'standard')
        puzzle: Produce minimized puzzles instead of query games
        seed: Seed for the random generator
        climit: Complexity limit of the search
        output_dir: Receipt directory (default: runs/YYYY-MM-DD)
        verbose: Print progress messages

    Returns:
        (solved_count, total_count)
    """
    validate_config(config, width, height)
    if output_dir is None:
        output_dir = f"runs/{datetime.now().strftime('%Y-%m-%d')}"
    rng = np.random.default_rng(seed)
    sd = get_shape_dictionary(symmetry, config.max_level())

    if verbose:
        print("=" * 70)
        print(f"Identifier Self-Play - {'Puzzle Generator' if puzzle else 'Entropy Queries'}")
        print(f"Board: {width}x{height}  Symmetry: {symmetry}  Fleet type: {fleet}")
        print(f"Fleet: {[(c.level, c.multiplicity, c.shape_id) for c in config]}")
        print(f"Games: {games}  Seed: {seed}")
        print("=" * 70)

    solved_count = 0
    reveal_total = 0

    for idx in range(1, games + 1):
        t0 = time.time()

        if puzzle:
            truth, givens, drawn = make_puzzle_game(sd, config, width, height, rng,
                                                    fleet=fleet, climit=climit)
            status = SOLVED
            reveals = givens.count(OFF)
            extra = {"givens": board_to_rows(givens), "givens_sha": board_sha(givens)}
        else:
            game_config, store_shapes = apply_fleet_type(config, fleet)
            made = try_make_random_board(sd, game_config, width, height, rng, store_shapes)
            if made is None:
                raise RuntimeError(f"Could not place fleet on {width}x{height} board")
            truth, drawn = made
            stat, status, reveals = solve_by_queries(sd, drawn, truth, rng, climit=climit)
            extra = {"answer": answer_to_record(stat.answer)}
            if status == SOLVED:
                rendered = render_answer(stat.answer, sd, drawn, width, height)
                extra["answer_matches"] = board_to_rows(rendered) == board_to_rows(truth)

        elapsed_ms = round((time.time() - t0) * 1000, 1)
        if status == SOLVED:
            solved_count += 1
            reveal_total += reveals

        receipt = {
            "game": idx,
            "mode": "puzzle" if puzzle else "selfplay",
            "status": status,
            "reveals": reveals,
            "size": [width, height],
            "timing_ms": elapsed_ms,
            "hashes": {
                "board_sha": board_sha(truth),
                "config_sha": config_sha(drawn, symmetry),
            },
        }
        receipt.update(extra)
        log_receipt(receipt, out_dir=output_dir)

        if verbose:
            print(f"[{idx}/{games}] {status}: {reveals} "
                  f"{'givens' if puzzle else 'reveals'} ({elapsed_ms} ms)")

    if verbose:
        avg = reveal_total / solved_count if solved_count else 0.0
        print("=" * 70)
        print(f"COMPLETE: Solved {solved_count}/{games}  Avg {'givens' if puzzle else 'reveals'}: {avg:.1f}")
        print(f"Receipts: {Path(output_dir) / 'receipts.jsonl'}")
        print("=" * 70)

    return solved_count, games


def main():
    parser = argparse.ArgumentParser(description="Self-play Identifier boards")
    parser.add_argument(
        "--size",
        type=parse_size,
        default=(8, 8),
        help="Board size WxH (default: 8x8)"
    )
    parser.add_argument(
        "--fleet",
        type=parse_fleet,
        default=parse_fleet("6x2,4x3"),
        help="Fleet as LEVELxCOUNT[:ID] items, comma separated (default: 6x2,4x3)"
    )
    parser.add_argument(
        "--symmetry",
        choices=["identity", "rotation", "mirror", "all"],
        default="all",
        help="Orientations that count as the same shape"
    )
    parser.add_argument(
        "--fleet-type",
        choices=["unknown", "random", "standard"],
        default="unknown",
        help="How shape ids are drawn"
    )
    parser.add_argument("--games", type=int, default=10, help="Number of games")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument(
        "--climit",
        type=int,
        default=COMPLEXITY_LIMIT,
        help="Branching limit of the uniqueness search"
    )
    parser.add_argument(
        "--puzzle",
        action="store_true",
        help="Generate minimized puzzles instead of query games"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory (default: runs/YYYY-MM-DD)"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress messages"
    )

    args = parser.parse_args()

    width, height = args.size
    try:
        solved, total = run_selfplay(args.fleet, width, height, args.games,
                                     symmetry=args.symmetry, fleet=args.fleet_type,
                                     puzzle=args.puzzle, seed=args.seed, climit=args.climit,
                                     output_dir=args.output, verbose=not args.quiet)
    except (ValueError, RuntimeError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    # Exit code: 0 if every game was solved, 1 otherwise
    sys.exit(0 if solved == total else 1)


if __name__ == "__main__":
    main()
