"""
Correctness Cache
=================

Memoized feedback for every (guess index, answer index) pair of a dictionary.

The table is N x N bytes (about 170MB for a 13k-word dictionary), filled
lazily row by row as the solver asks for it. Feedback is a pure function of
the two words, so a cell never changes once written, and two workers that
race to fill the same cell write the same byte.

Two concurrency disciplines:

- ``ExclusiveCache``: every worker thread owns a private table. No locking,
  but memory grows with the number of threads.
- ``SharedCache``: one table for everybody, writers serialised per row.
"""

import numpy as np
import threading
import time
from numba import jit
from typing import List, Optional

from .correctness import compute_feedback, compute_feedback_matrix
from .dictionary import Dictionary


# ============================================================================
# CONSTANTS
# ============================================================================

UNSET = 255  # Never a valid pattern (patterns stop at 242)


# ============================================================================
# NUMBA KERNELS
# ============================================================================

@jit(nopython=True, nogil=True, cache=True)
def fill_row(row: np.ndarray, guess: np.ndarray, chars: np.ndarray, answers: np.ndarray) -> int:
    """
    Compute the missing cells of one cache row.

    Args:
        row: shape (n_words,) uint8 cache row for ``guess``
        guess: shape (5,) char codes of the guess
        chars: shape (n_words, 5) char codes of the dictionary
        answers: indices of the answers whose cells are needed

    Returns:
        Number of cells that had to be computed
    """
    computed = 0
    for k in range(answers.shape[0]):
        a = answers[k]
        if row[a] == UNSET:
            row[a] = compute_feedback(guess, chars[a])
            computed += 1
    return computed


def _empty_table(n: int) -> np.ndarray:
    return np.full((n, n), UNSET, dtype=np.uint8)


# ============================================================================
# CACHE CLASSES
# ============================================================================

class CorrectnessCache:
    """Common interface of the cache variants."""

    def __init__(self, dictionary: Dictionary, verbose: bool = False):
        self.dictionary = dictionary
        self.n_words = len(dictionary)
        self.verbose = verbose

    def _table(self) -> np.ndarray:
        raise NotImplementedError

    def _fill(self, guess_idx: int, row: np.ndarray, answers: np.ndarray):
        fill_row(row, self.dictionary.chars[guess_idx], self.dictionary.chars, answers)

    def _install(self, matrix: np.ndarray):
        raise NotImplementedError

    def row(self, guess_idx: int, answers: np.ndarray) -> np.ndarray:
        """
        Cache row of ``guess_idx``, guaranteed filled for every index in ``answers``.

        The returned array is indexed by answer index. Cells outside ``answers``
        may still hold ``UNSET``.
        """
        row = self._table()[guess_idx]
        self._fill(guess_idx, row, answers)
        return row

    def get(self, guess_idx: int, answer_idx: int) -> int:
        """Packed feedback of guess ``guess_idx`` against answer ``answer_idx``."""
        answers = np.array([answer_idx], dtype=np.int64)
        return int(self.row(guess_idx, answers)[answer_idx])

    def filled(self) -> int:
        """Number of cells computed so far (in the calling thread's view)."""
        return int(np.count_nonzero(self._table() != UNSET))

    def warm(self):
        """Fill the whole table up front with the parallel matrix kernel."""
        chars = self.dictionary.chars
        if self.verbose:
            print(f"Precomputing feedback matrix ({self.n_words} guesses × {self.n_words} answers)...")
        start = time.time()
        matrix = compute_feedback_matrix(chars, chars)
        elapsed = time.time() - start
        if self.verbose:
            pairs = self.n_words * self.n_words
            rate = pairs / elapsed / 1e6 if elapsed > 0 else float('inf')
            print(f"Done in {elapsed:.1f}s ({rate:.1f}M pairs/sec)")
        self._install(matrix)


class ExclusiveCache(CorrectnessCache):
    """
    One private table per thread.

    Threads that first touch the cache after ``warm()`` start from a copy of
    the warmed table.
    """

    def __init__(self, dictionary: Dictionary, verbose: bool = False):
        super().__init__(dictionary, verbose)
        self._local = threading.local()
        self._seed: Optional[np.ndarray] = None
        self._tables: List[np.ndarray] = []
        self._tables_lock = threading.Lock()

    def _table(self) -> np.ndarray:
        table = getattr(self._local, 'table', None)
        if table is None:
            seed = self._seed
            table = seed.copy() if seed is not None else _empty_table(self.n_words)
            self._local.table = table
            with self._tables_lock:
                self._tables.append(table)
            if self.verbose:
                print(f"Allocated {table.nbytes / 1e6:.1f}MB correctness table for {threading.current_thread().name}")
        return table

    def _install(self, matrix: np.ndarray):
        self._seed = matrix
        self._local.table = matrix.copy()
        with self._tables_lock:
            self._tables.append(self._local.table)

    @property
    def n_tables(self) -> int:
        with self._tables_lock:
            return len(self._tables)


class SharedCache(CorrectnessCache):
    """One table shared by all threads, with one writer lock per row."""

    def __init__(self, dictionary: Dictionary, verbose: bool = False):
        super().__init__(dictionary, verbose)
        self._shared = _empty_table(self.n_words)
        self._locks = [threading.Lock() for _ in range(self.n_words)]
        if verbose:
            print(f"Allocated {self._shared.nbytes / 1e6:.1f}MB shared correctness table")

    def _table(self) -> np.ndarray:
        return self._shared

    def _fill(self, guess_idx: int, row: np.ndarray, answers: np.ndarray):
        with self._locks[guess_idx]:
            super()._fill(guess_idx, row, answers)

    def _install(self, matrix: np.ndarray):
        for guess_idx in range(self.n_words):
            with self._locks[guess_idx]:
                self._shared[guess_idx] = matrix[guess_idx]


# ============================================================================
# DEFAULT CACHE
# ============================================================================

_default_lock = threading.Lock()


def default_cache(dictionary: Dictionary) -> SharedCache:
    """
    The SharedCache attached to ``dictionary``, created on first use.

    Solvers built without an explicit cache all land here, so consecutive games
    over one dictionary reuse a single N x N table instead of allocating one
    each.
    """
    with _default_lock:
        cache = dictionary._default_cache
        if cache is None:
            cache = SharedCache(dictionary)
            dictionary._default_cache = cache
    return cache
