"""
Utility functions for the Identifier solver: hashes and receipts.
"""

import json
import hashlib
from typing import Dict
from pathlib import Path
from datetime import datetime

from .types import ShapeConfig, ShapeAnswer
from .shapes import Shape, board_to_rows


# ==============================================================================
# Hash functions for receipts
# ==============================================================================

def board_sha(board: Shape) -> str:
    """
    Compute SHA-256 hash of a board's interior cells.

    Args:
        board: Board (or shape)

    Returns:
        Hex string of SHA-256 hash
    """
    payload = {"width": board.width, "height": board.height, "rows": board_to_rows(board)}
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()


def config_sha(config: ShapeConfig, symmetry=None) -> str:
    """
    Compute SHA-256 hash of a fleet configuration.

    Args:
        config: ShapeConfig
        symmetry: optional symmetry name/mask to include

    Returns:
        Hex string of SHA-256 hash
    """
    payload = {
        "components": [[c.level, c.multiplicity, c.shape_id] for c in config],
        "symmetry": symmetry,
    }
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()


def answer_to_record(answer: ShapeAnswer) -> Dict:
    """JSON-serializable form of a resolved fleet."""
    return {
        "shape_ids": [int(i) for i in answer.shape_ids],
        "placements": [
            [[p.x, p.y, p.orientation] for p in comp]
            for comp in answer.placements
        ],
    }


# ==============================================================================
# Receipt logging
# ==============================================================================

def log_receipt(record: Dict, out_dir: str = None) -> None:
    """
    Write receipt record to JSONL file.

    Args:
        record: Dictionary with receipt data
        out_dir: Output directory (default: runs/YYYY-MM-DD)
    """
    if out_dir is None:
        date_str = datetime.now().strftime("%Y-%m-%d")
        out_dir = f"runs/{date_str}"

    Path(out_dir).mkdir(parents=True, exist_ok=True)
    receipt_path = Path(out_dir) / "receipts.jsonl"

    with open(receipt_path, "a") as f:
        f.write(json.dumps(record, sort_keys=True) + "\n")
