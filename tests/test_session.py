"""
Tests for the computer opponent facade, config types and receipts.
"""

import json
import numpy as np
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from identifier_solver import (
    ON, OFF, SOLVED, IMPOSSIBLE,
    Component, ShapeConfig, ShapeAnswer, Placement,
    IdentifierEngine, board_from_rows, board_to_rows,
    get_shape_dictionary, try_make_random_board,
    board_sha, config_sha, answer_to_record, log_receipt, symmetry_mask,
)


# ==============================================================================
# Fleet configuration
# ==============================================================================

def test_normalized_orders_by_level():
    config = ShapeConfig.normalized([(2, 1), (4, 1), (3, 2)])
    assert [c.level for c in config] == [4, 3, 2]


def test_normalized_moves_fixed_and_larger_ahead():
    config = ShapeConfig.normalized([(2, 1), (2, 2), (2, 1, 0)])
    assert list(config) == [Component(2, 1, 0), Component(2, 2), Component(2, 1)]


def test_config_totals():
    config = ShapeConfig.normalized([(6, 2), (4, 3)])
    assert config.total_cells() == 24
    assert config.max_level() == 6
    assert len(config) == 2
    assert [c.shape_id for c in config.with_shape_ids([3, 1])] == [3, 1]


@pytest.mark.parametrize("items", [[(0, 1)], [(3, 0)], [(2, 1), (4, -1)]])
def test_config_rejects_empty_components(items):
    with pytest.raises(ValueError):
        ShapeConfig.normalized(items)


def test_with_shape_ids_needs_one_id_per_component():
    config = ShapeConfig.normalized([(6, 2), (4, 3)])
    with pytest.raises(ValueError):
        config.with_shape_ids([0])


def test_symmetry_names():
    assert symmetry_mask('identity') == 1
    assert symmetry_mask('rotation') == 85
    assert symmetry_mask('mirror') == 153
    assert symmetry_mask('all') == 255
    with pytest.raises(ValueError):
        symmetry_mask(7)


def test_answer_lifecycle():
    config = ShapeConfig.normalized([(2, 1), (1, 1)])
    answer = ShapeAnswer.empty(config)
    assert not answer.is_resolved()
    answer._record([(0, 0, [Placement(0, 0, 1)]), (1, 0, [Placement(3, 3, 1)])])
    assert answer.is_resolved()
    answer._clear([1])
    assert answer.shape_ids == [0, -1]
    assert answer.placements[1] == []


# ==============================================================================
# IdentifierEngine
# ==============================================================================

def play(engine, truth, limit):
    q = engine.query_next()
    while q.status == 'query' and engine.turns < limit:
        assert q.entropy > 0.0
        engine.reveal(q.x, q.y, truth.get(q.x, q.y))
        q = engine.query_next()
    return q


def test_engine_finds_single_cell():
    truth = board_from_rows(["...", "..#", "..."])
    config = ShapeConfig.normalized([(1, 1)])
    engine = IdentifierEngine(config, 3, 3, rng=np.random.default_rng(0))
    q = play(engine, truth, 9)
    assert q.status == SOLVED
    assert q.answer.placements == [[Placement(2, 1, 1)]]
    assert board_to_rows(q.board) == board_to_rows(truth)
    # The store keeps the revealed cells, not the rendered answer
    assert engine.board.count(ON) <= 1


@pytest.mark.parametrize("seed", range(3))
def test_engine_solves_random_boards(seed):
    rng = np.random.default_rng(seed)
    config = ShapeConfig.normalized([(2, 1), (1, 1)])
    sd = get_shape_dictionary('all', 2)
    truth, _ = try_make_random_board(sd, config, 4, 4, rng)
    engine = IdentifierEngine(config, 4, 4, rng=rng, dictionary=sd)
    q = play(engine, truth, 16)
    assert q.status == SOLVED
    assert engine.turns <= 16
    assert board_to_rows(q.board) == board_to_rows(truth)


def test_engine_reports_contradiction():
    config = ShapeConfig.normalized([(1, 1)])
    engine = IdentifierEngine(config, 3, 3, rng=np.random.default_rng(0))
    engine.reveal(0, 0, ON)
    engine.reveal(2, 2, ON)
    assert engine.query_next().status == IMPOSSIBLE


# ==============================================================================
# Receipts
# ==============================================================================

def test_hashes_are_stable():
    a = board_from_rows(["#..", "..."])
    b = board_from_rows(["#..", "..."])
    c = board_from_rows(["..#", "..."])
    assert board_sha(a) == board_sha(b)
    assert board_sha(a) != board_sha(c)
    config = ShapeConfig.normalized([(2, 1)])
    assert config_sha(config, 'all') == config_sha(ShapeConfig.normalized([(2, 1)]), 'all')
    assert config_sha(config, 'all') != config_sha(config, 'rotation')


def test_log_receipt_appends_jsonl(tmp_path):
    answer = ShapeAnswer([0], [[Placement(1, 2, 4)]])
    record = {"status": SOLVED, "answer": answer_to_record(answer)}
    log_receipt(record, str(tmp_path))
    log_receipt({"status": IMPOSSIBLE}, str(tmp_path))
    lines = (tmp_path / "receipts.jsonl").read_text().splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0])["answer"] == {"shape_ids": [0], "placements": [[[1, 2, 4]]]}
