"""
Consideration-set selection: which words get scored on a given turn.

Hard mode only scores words that could still be the answer. Easy mode scores
the whole dictionary, since a word known to be wrong can still split the
remaining answers well. The cutoff keeps only the most frequent prefix of the
remaining words, trading a little optimality for a bounded per-turn cost.
"""

import numpy as np
from typing import Tuple


# ============================================================================
# CONSTANTS
# ============================================================================

CUTOFF_DIVISOR = 3  # Score the most frequent third of the remaining words...
CUTOFF_MINIMUM = 20  # ...but never fewer than this many


def cutoff_stop(n_remaining: int) -> int:
    """How many still-possible words are scored when the cutoff is on."""
    return min(max(n_remaining // CUTOFF_DIVISOR, CUTOFF_MINIMUM), n_remaining)


def consideration_set(n_words: int, remaining: np.ndarray, hard_mode: bool,
                      cutoff: bool) -> Tuple[np.ndarray, np.ndarray]:
    """
    Select the words to score this turn.

    Args:
        n_words: dictionary size
        remaining: ascending dictionary indices of the still-possible words
        hard_mode: only consider still-possible words
        cutoff: stop after ``cutoff_stop`` still-possible words

    Returns:
        (indices to score in ascending order, aligned bool array telling
        whether each of them is still possible)
    """
    n_remaining = len(remaining)

    if hard_mode:
        consider = remaining[:cutoff_stop(n_remaining)] if cutoff else remaining
        return consider, np.ones(len(consider), dtype=np.bool_)

    # Dictionary order is frequency order, so in easy mode the scan walks the
    # whole dictionary and stops once it has passed the last kept possible word.
    if cutoff and n_remaining > 0:
        last = int(remaining[cutoff_stop(n_remaining) - 1])
        consider = np.arange(last + 1, dtype=np.int64)
    else:
        consider = np.arange(n_words, dtype=np.int64)

    possible = np.zeros(n_words, dtype=np.bool_)
    possible[remaining] = True
    return consider, possible[consider]
