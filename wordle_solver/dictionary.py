"""
Word Dictionary
===============

The immutable, frequency-ordered word list every solver plays against.

Entries are sorted by descending raw frequency once, at construction, and a
word's index in that order is its identity for the rest of the process (the
correctness cache and the ranking engine address words by index).
"""

import numpy as np
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .correctness import is_valid_word, words_to_chars
from .errors import InvalidWord


# ============================================================================
# SIGMOID SMOOTHING
# ============================================================================

# Height of the curve
SIGMOID_L = 1.0
# How steep is the cut-off?
SIGMOID_K = 30000000.0
# Where is the cut-off? (as a share of the total frequency)
SIGMOID_X0 = 0.00000497


def sigmoid(p: np.ndarray) -> np.ndarray:
    """
    Logistic transform of relative word frequencies.

    Words well above ``SIGMOID_X0`` saturate near ``SIGMOID_L`` and words well
    below decay toward 0, with a sharp transition around the midpoint.
    """
    return SIGMOID_L / (1.0 + np.exp(-SIGMOID_K * (p - SIGMOID_X0)))


# ============================================================================
# DICTIONARY
# ============================================================================

class Dictionary:
    """
    Ordered (word, weight) entries with stable indices.

    Args:
        entries: (word, raw frequency) pairs, in any order
    """

    def __init__(self, entries: Iterable[Tuple[str, float]]):
        entries = list(entries)
        seen = set()
        for word, count in entries:
            if not is_valid_word(word):
                raise InvalidWord(f"'{word}' is not a 5-letter lowercase word")
            if word in seen:
                raise ValueError(f"duplicate dictionary word '{word}'")
            if count < 0:
                raise ValueError(f"negative frequency {count} for '{word}'")
            seen.add(word)

        # sorted() is stable, so equal counts keep their input order
        entries = sorted(entries, key=lambda e: -e[1])

        self.words: Tuple[str, ...] = tuple(w for w, _ in entries)
        self.counts = np.array([c for _, c in entries], dtype=np.float64)
        self.counts.setflags(write=False)
        self.index: Dict[str, int] = {w: i for i, w in enumerate(self.words)}
        self.chars = words_to_chars(self.words)
        self.chars.setflags(write=False)
        self.all_indices = np.arange(len(self.words), dtype=np.int64)
        self.all_indices.setflags(write=False)

        self._weights: Dict[bool, np.ndarray] = {}
        # SharedCache handed to solvers built without one (see cache.default_cache)
        self._default_cache = None

    def __len__(self):
        return len(self.words)

    def __contains__(self, word):
        return word in self.index

    def __iter__(self):
        return iter(self.words)

    def __repr__(self):
        return f"Dictionary({len(self)} words)"

    def index_of(self, word: str) -> Optional[int]:
        return self.index.get(word)

    def require(self, word: str) -> int:
        """Index of ``word``, raising InvalidWord if it is not a dictionary member."""
        if not is_valid_word(word):
            raise InvalidWord(f"'{word}' is not a 5-letter lowercase word")
        idx = self.index.get(word)
        if idx is None:
            raise InvalidWord(f"'{word}' is not in the dictionary")
        return idx

    def weights(self, smoothed: bool) -> np.ndarray:
        """
        Per-word weights shared by every solver built from this dictionary.

        Args:
            smoothed: apply sigmoid smoothing to the relative frequencies
                instead of using the raw counts

        Returns:
            Read-only float64 array aligned with ``words``
        """
        weights = self._weights.get(smoothed)
        if weights is None:
            if smoothed:
                total = self.counts.sum()
                p = self.counts / total if total > 0 else self.counts
                weights = sigmoid(p)
            else:
                weights = self.counts.copy()
            weights.setflags(write=False)
            # Racing initialisers compute the same array, so last write wins harmlessly
            self._weights[smoothed] = weights
        return weights


# ============================================================================
# LOADING
# ============================================================================

def parse_dictionary(lines: Iterable[str]) -> List[Tuple[str, int]]:
    """
    Parse ``word count`` lines. A line holding only a word gets count 1.
    Blank lines and ``#`` comments are skipped.
    """
    entries = []
    for lineno, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        fields = line.split()
        if len(fields) == 1:
            entries.append((fields[0].lower(), 1))
        elif len(fields) == 2:
            try:
                count = int(fields[1])
            except ValueError:
                raise ValueError(f"line {lineno}: frequency '{fields[1]}' is not an integer") from None
            entries.append((fields[0].lower(), count))
        else:
            raise ValueError(f"line {lineno}: expected 'word count', got {line!r}")
    return entries


def load_dictionary(filepath: str) -> Dictionary:
    """Load a dictionary from a file of ``word count`` lines."""
    with open(filepath, 'r') as f:
        return Dictionary(parse_dictionary(f))


def from_words(words: Sequence[str]) -> Dictionary:
    """Dictionary with uniform weights, in the given order."""
    return Dictionary((w.lower(), 1) for w in words)
