"""
Entropy Solver
==============

Stateful per-game guesser tying the pieces together:

1. Narrow the remaining words with the latest feedback (cache or oracle)
2. Open with a fixed word, since turn 1 always sees the full dictionary
3. Shortcut when ranking is FIRST or a single word is left
4. Otherwise rank the (pruned) consideration set and return the best word

A Solver plays one game. Start a new one for every game; solvers may share a
Dictionary, a CorrectnessCache and an executor, but never their remaining set.
"""

import numpy as np
from abc import ABC, abstractmethod
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .cache import CorrectnessCache, default_cache
from .correctness import Guess, mask_to_string
from .dictionary import Dictionary
from .errors import ContradictoryHistory
from .pruning import consideration_set
from .ranking import (
    ESCORE_COEFFICIENTS,
    PARALLEL_THRESHOLD,
    Rank,
    RankingContext,
    best_candidate,
)


# ============================================================================
# CONSTANTS
# ============================================================================

FIRST_GUESS = "tares"


# ============================================================================
# GUESSER CONTRACT
# ============================================================================

class Guesser(ABC):
    """Anything that can play Wordle."""

    @abstractmethod
    def guess(self, history: Sequence[Guess]) -> str:
        """Return the next guess given the (guess, feedback) history."""
        ...

    def finish(self, total_guesses: int) -> None:
        """Called once the answer has been found. Does nothing by default."""


# ============================================================================
# OPTIONS
# ============================================================================

@dataclass(frozen=True)
class SolverOptions:
    """
    Solver toggles, read once when a Solver is built.

    Attributes
    ----------
    sigmoid : bool
        Smooth word frequencies with a sigmoid before turning them into
        probabilities.
    rank_by : Rank
        Ranking strategy.
    cache : bool
        Memoise feedback in a CorrectnessCache.
    cutoff : bool
        Only score the most frequent third (at least 20) of the remaining words.
    hard_mode : bool
        Never guess a word that is already known to be wrong.
    escore_coefficients : tuple[float, float]
        ``(A, B)`` in ``E[guesses] = ln(entropy * A + B)`` for EXPECTED_SCORE.
    """

    sigmoid: bool = True
    rank_by: Rank = Rank.EXPECTED_SCORE
    cache: bool = True
    cutoff: bool = True
    hard_mode: bool = True
    escore_coefficients: Tuple[float, float] = ESCORE_COEFFICIENTS

    def build(self, dictionary: Dictionary, **kwargs) -> "Solver":
        return Solver(dictionary, self, **kwargs)


# ============================================================================
# REMAINING SET
# ============================================================================

class RemainingSet:
    """
    Words still consistent with the history of one game.

    Borrows the dictionary's full index range until the first filter, then
    owns its own (ascending) index array.
    """

    def __init__(self, dictionary: Dictionary):
        self.dictionary = dictionary
        self._owned: Optional[np.ndarray] = None

    @property
    def borrowed(self) -> bool:
        return self._owned is None

    @property
    def indices(self) -> np.ndarray:
        if self._owned is None:
            return self.dictionary.all_indices
        return self._owned

    def __len__(self):
        return len(self.indices)

    def __iter__(self):
        words = self.dictionary.words
        return (words[i] for i in self.indices)

    def __contains__(self, word):
        idx = self.dictionary.index_of(word)
        if idx is None:
            return False
        indices = self.indices
        pos = np.searchsorted(indices, idx)
        return bool(pos < len(indices) and indices[pos] == idx)

    def first(self) -> int:
        return int(self.indices[0])

    def retain(self, keep: np.ndarray):
        """Keep the words whose flag in ``keep`` (aligned with ``indices``) is set."""
        self._owned = self.indices[keep]

    def words(self) -> List[str]:
        return list(self)


# ============================================================================
# SOLVER
# ============================================================================

class Solver(Guesser):
    """
    Entropy-ranked Wordle solver for one game.

    Args:
        dictionary: words to play with
        options: solver toggles (defaults: SolverOptions())
        cache: correctness cache to use when ``options.cache`` is set; if
            omitted, the dictionary's default SharedCache is used
        executor: thread pool for the ranking scan
        workers: number of workers behind ``executor``; with workers > 1 and
            no executor the solver starts its own pool (see ``close``)
        first_guess: fixed opening word
        parallel_threshold: minimum consideration-set size for a parallel scan
    """

    def __init__(self, dictionary: Dictionary, options: Optional[SolverOptions] = None,
                 cache: Optional[CorrectnessCache] = None, executor: Optional[Executor] = None,
                 workers: int = 1, first_guess: str = FIRST_GUESS,
                 parallel_threshold: int = PARALLEL_THRESHOLD):
        self.dictionary = dictionary
        self.options = options or SolverOptions()
        self.weights = dictionary.weights(self.options.sigmoid)
        self.first_guess = first_guess.lower()
        self.first_guess_idx = dictionary.require(self.first_guess)

        if self.options.cache:
            if cache is None:
                cache = default_cache(dictionary)
            elif cache.dictionary is not dictionary:
                raise ValueError("Cache was built for a different dictionary")
            self.cache = cache
        else:
            self.cache = None

        self.workers = max(1, workers)
        self._own_executor = executor is None and self.workers > 1
        if self._own_executor:
            executor = ThreadPoolExecutor(max_workers=self.workers)
        self.executor = executor
        self.parallel_threshold = parallel_threshold

        self.remaining = RemainingSet(dictionary)
        self.last_guess_idx: Optional[int] = None
        self.entropy: List[Tuple[int, float]] = []
        self.samples: List[Tuple[float, int]] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        """Shut down the solver's own thread pool, if it started one."""
        if self._own_executor and self.executor is not None:
            self.executor.shutdown()
            self.executor = None

    # ------------------------------------------------------------------------

    def _trim(self, last: Guess):
        """Drop remaining words that are inconsistent with ``last``."""
        indices = self.remaining.indices
        guess_idx = self.last_guess_idx
        if guess_idx is None or self.dictionary.words[guess_idx] != last.word:
            guess_idx = self.dictionary.index_of(last.word)

        if self.cache is not None and guess_idx is not None:
            row = self.cache.row(guess_idx, indices)
            keep = row[indices] == last.packed
        else:
            words = self.dictionary.words
            keep = np.fromiter((last.matches(words[i]) for i in indices),
                               dtype=np.bool_, count=len(indices))

        self.remaining.retain(keep)

    def _pick(self, idx: int) -> str:
        self.last_guess_idx = idx
        return self.dictionary.words[idx]

    def guess(self, history: Sequence[Guess]) -> str:
        turn = len(history)

        if history:
            self._trim(history[-1])
            if len(self.remaining) == 0:
                trail = ', '.join(f"{g.word}={mask_to_string(g.mask)}" for g in history)
                raise ContradictoryHistory(f"No dictionary word is consistent with the history: {trail}")

        if not history:
            return self._pick(self.first_guess_idx)

        if self.options.rank_by is Rank.FIRST or len(self.remaining) == 1:
            return self._pick(self.remaining.first())

        ctx = RankingContext(
            self.dictionary.chars, self.weights, self.remaining.indices,
            self.options.rank_by, turn, self.cache, self.options.escore_coefficients,
        )
        self.entropy.append((turn, ctx.entropy))

        consider, possible = consideration_set(
            len(self.dictionary), self.remaining.indices,
            self.options.hard_mode, self.options.cutoff,
        )
        best = best_candidate(ctx, consider, possible, self.executor,
                              self.workers, self.parallel_threshold)
        return self._pick(best.index)

    def finish(self, total_guesses: int) -> None:
        """
        Record (remaining entropy, guesses still needed) samples for
        recalibrating the ExpectedScore estimator with ``fit_escore``.
        """
        for turn, e in self.entropy:
            self.samples.append((e, total_guesses - turn))
