#!/usr/bin/env python3
"""Rename inference scoring.

File watchers report a rename as an unrelated delete followed by a create.
These pure functions decide which recent delete a create most likely
pairs with; the coalescer owns the timing and state.

Score of a candidate:
    10 * common_prefix_length(old_stem, new_stem) + (1 - elapsed / window)
An identical stem scores EXACT_MATCH_SCORE and ends the search.
"""

import os
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

EXACT_MATCH_SCORE = 1000.0
PREFIX_WEIGHT = 10


@dataclass(frozen=True)
class DeleteRecord:
    """A delete held as a rename candidate."""

    timestamp: float
    stem: str


def stem_of(path: str) -> str:
    """File name without its extension."""
    return os.path.splitext(os.path.basename(path))[0]


def common_prefix_length(first: str, second: str) -> int:
    """Length of the longest common literal prefix."""
    length = 0
    for a, b in zip(first, second):
        if a != b:
            break
        length += 1
    return length


def score_candidate(old_stem: str, new_stem: str, elapsed: float, window: float) -> float:
    """Score how likely ``old_stem`` was renamed to ``new_stem``.

    Args:
        old_stem: Stem of the deleted file
        new_stem: Stem of the created file
        elapsed: Seconds between the delete and the create
        window: Rename detection window in seconds

    Returns:
        Score; higher is more likely
    """
    if old_stem == new_stem:
        return EXACT_MATCH_SCORE
    return PREFIX_WEIGHT * common_prefix_length(old_stem, new_stem) + (1 - elapsed / window)


def pick_rename_source(
    new_path: str,
    candidates: Iterable[Tuple[str, DeleteRecord]],
    now: float,
    window: float,
    min_score: float = 0.0,
) -> Optional[str]:
    """Choose the deleted path a newly created path was renamed from.

    Only candidates in the same directory and still inside the detection
    window are scored. Ties go to the earliest candidate in iteration order.

    Args:
        new_path: Path of the created file
        candidates: (deleted path, record) pairs in insertion order
        now: Current time
        window: Rename detection window in seconds
        min_score: The best score must exceed this to be accepted

    Returns:
        Deleted path, or None when no candidate qualifies
    """
    directory = os.path.dirname(new_path)
    new_stem = stem_of(new_path)

    best_path: Optional[str] = None
    best_score = float("-inf")

    for old_path, record in candidates:
        elapsed = now - record.timestamp
        if elapsed >= window or os.path.dirname(old_path) != directory:
            continue

        if record.stem == new_stem:
            return old_path

        score = score_candidate(record.stem, new_stem, elapsed, window)
        if score > best_score:
            best_score = score
            best_path = old_path

    if best_path is not None and best_score > min_score:
        return best_path
    return None
