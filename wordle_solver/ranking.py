"""
Candidate Ranking
=================

Scores a candidate guess by the distribution of feedback patterns it would
induce over the remaining answers.

For a guess ``w`` every remaining answer falls into exactly one of the 243
pattern buckets; the bucket weights give ``p_i``, and the expected information
is the entropy ``-sum(p_i * log2(p_i))``. Five ranking strategies turn that
(and the probability that ``w`` itself is the answer) into a goodness score to
maximise.

The scan over candidates is a map (score each candidate independently) and a
reduce (keep the best), so it can be split over a thread pool. The numba
kernels release the GIL. Ties go to the lower dictionary index in both the
sequential and the parallel reduction, which keeps the chosen word independent
of the pool size.
"""

import math
import numpy as np
from concurrent.futures import Executor
from enum import Enum
from numba import jit
from typing import NamedTuple, Optional, Sequence, Tuple

from .cache import CorrectnessCache
from .correctness import N_PATTERNS, compute_feedback_row


# ============================================================================
# CONSTANTS
# ============================================================================

# E[guesses left] = ln(entropy * A + B), fitted on a 13k-word web frequency
# corpus. Recalibrate with ``fit_escore`` for a different dictionary.
ESCORE_COEFFICIENTS = (3.870, 3.679)

PARALLEL_THRESHOLD = 32  # Below this many candidates, dispatch costs more than it saves
CHUNKS_PER_WORKER = 4


class Rank(Enum):
    """How candidates are ranked."""

    #: Just pick the first (most frequent) remaining word.
    FIRST = 'first'

    #: Minimise E[score] = p(word) * (turn + 1) + (1 - p(word)) * (turn + E[guesses](entropy - E[information]))
    EXPECTED_SCORE = 'expected-score'

    #: p(word) * E[information]
    WEIGHTED_INFORMATION = 'weighted-information'

    #: p(word) + E[information]
    INFO_PLUS_PROBABILITY = 'info-plus-probability'

    #: E[information]
    EXPECTED_INFORMATION = 'expected-information'


class Candidate(NamedTuple):
    index: int
    goodness: float


# ============================================================================
# NUMBA KERNELS
# ============================================================================

@jit(nopython=True, nogil=True, cache=True)
def pattern_totals(packed: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """
    Sum answer weights per feedback pattern.

    Args:
        packed: packed pattern of the guess against each remaining answer
        weights: weight of each remaining answer (aligned with ``packed``)

    Returns:
        Array of 243 bucket weights
    """
    totals = np.zeros(N_PATTERNS, dtype=np.float64)
    for k in range(packed.shape[0]):
        totals[packed[k]] += weights[k]
    return totals


@jit(nopython=True, nogil=True, cache=True)
def information(totals: np.ndarray, total: float) -> float:
    """Shannon entropy (bits) of the bucket distribution."""
    entropy = 0.0
    for i in range(totals.shape[0]):
        t = totals[i]
        if t > 0.0:
            p = t / total
            entropy -= p * np.log2(p)
    return entropy


# ============================================================================
# SCORING
# ============================================================================

def est_steps(entropy: float, coefficients: Tuple[float, float] = ESCORE_COEFFICIENTS) -> float:
    """Estimated number of further guesses needed when ``entropy`` bits remain."""
    a, b = coefficients
    return math.log(entropy * a + b)


def remaining_entropy(weights: np.ndarray) -> float:
    """Entropy (bits) of the answer distribution itself."""
    w = weights[weights > 0]
    p = w / w.sum()
    return float(-(p * np.log2(p)).sum())


def goodness(rank: Rank, e_info: float, p_word: float, turn: int,
             entropy_left: float, coefficients: Tuple[float, float]) -> float:
    """Score to maximise for one candidate."""
    if rank is Rank.EXPECTED_SCORE:
        # Higher is better, so negate the expected score
        return -(p_word * (turn + 1)
                 + (1.0 - p_word) * (turn + est_steps(entropy_left - e_info, coefficients)))
    if rank is Rank.WEIGHTED_INFORMATION:
        return p_word * e_info
    if rank is Rank.INFO_PLUS_PROBABILITY:
        return p_word + e_info
    if rank is Rank.EXPECTED_INFORMATION:
        return e_info
    raise ValueError(f"{rank} does not score candidates")


def better(a: Optional[Candidate], b: Optional[Candidate]) -> Optional[Candidate]:
    """The better of two candidates: higher goodness, then lower index."""
    if a is None:
        return b
    if b is None:
        return a
    if b.goodness > a.goodness or (b.goodness == a.goodness and b.index < a.index):
        return b
    return a


class RankingContext:
    """
    Everything needed to score candidates against one turn's remaining set.

    Args:
        chars: (n_words, 5) char codes of the dictionary
        word_weights: weight of every dictionary word
        remaining: ascending indices of the still-possible words
        rank: ranking strategy
        turn: number of guesses already made
        cache: correctness cache, or None to compute feedback directly
        coefficients: ExpectedScore regression coefficients
    """

    def __init__(self, chars: np.ndarray, word_weights: np.ndarray, remaining: np.ndarray,
                 rank: Rank, turn: int, cache: Optional[CorrectnessCache] = None,
                 coefficients: Tuple[float, float] = ESCORE_COEFFICIENTS):
        if not word_weights[remaining].sum() > 0:
            # All remaining words have zero frequency; treat them as equally likely
            word_weights = np.ones(len(word_weights), dtype=np.float64)

        self.chars = chars
        self.word_weights = word_weights
        self.remaining = remaining
        self.rank = rank
        self.turn = turn
        self.cache = cache
        self.coefficients = coefficients

        self.weights = word_weights[remaining]
        self.total = float(self.weights.sum())
        self.entropy = remaining_entropy(self.weights)

    def patterns_for(self, guess_idx: int) -> np.ndarray:
        """Packed pattern of ``guess_idx`` against each remaining word."""
        if self.cache is not None:
            return self.cache.row(guess_idx, self.remaining)[self.remaining]
        return compute_feedback_row(self.chars[guess_idx], self.chars, self.remaining)

    def totals_for(self, guess_idx: int) -> np.ndarray:
        return pattern_totals(self.patterns_for(guess_idx), self.weights)

    def p_word(self, guess_idx: int, possible: bool) -> float:
        if not possible:
            # Known-wrong guesses only ever earn information
            return 0.0
        return float(self.word_weights[guess_idx]) / self.total

    def score(self, guess_idx: int, possible: bool) -> float:
        e_info = information(self.totals_for(guess_idx), self.total)
        return goodness(self.rank, e_info, self.p_word(guess_idx, possible),
                        self.turn, self.entropy, self.coefficients)

    def score_chunk(self, indices: Sequence[int], possible: Sequence[bool]) -> Optional[Candidate]:
        best = None
        for idx, is_possible in zip(indices, possible):
            idx = int(idx)
            g = self.score(idx, bool(is_possible))
            # Indices ascend within a chunk, so strict > keeps the lower index on ties
            if best is None or g > best.goodness:
                best = Candidate(idx, g)
        return best


def best_candidate(ctx: RankingContext, consider: np.ndarray, possible: np.ndarray,
                   executor: Optional[Executor] = None, workers: int = 1,
                   threshold: int = PARALLEL_THRESHOLD) -> Candidate:
    """
    Highest-goodness word among ``consider``.

    Args:
        ctx: scoring context for this turn
        consider: ascending dictionary indices to score
        possible: aligned flags, True where the word could still be the answer
        executor: pool to spread the scan over, or None to scan in-line
        workers: number of workers behind ``executor``
        threshold: minimum number of candidates worth a parallel scan

    Returns:
        The best Candidate
    """
    if len(consider) == 0:
        raise ValueError("No candidates to rank")

    if executor is None or workers <= 1 or len(consider) < threshold:
        return ctx.score_chunk(consider, possible)

    n_chunks = min(len(consider), workers * CHUNKS_PER_WORKER)
    index_chunks = np.array_split(consider, n_chunks)
    possible_chunks = np.array_split(possible, n_chunks)

    best = None
    for result in executor.map(ctx.score_chunk, index_chunks, possible_chunks):
        best = better(best, result)
    return best


# ============================================================================
# CALIBRATION
# ============================================================================

def fit_escore(samples: Sequence[Tuple[float, int]]) -> Tuple[float, float]:
    """
    Fit ``E[guesses] = ln(entropy * A + B)`` to observed samples.

    Regresses ``exp(guesses)`` on ``entropy`` by least squares.

    Args:
        samples: (remaining entropy, guesses still needed) pairs, as collected
            by ``Solver.finish``

    Returns:
        (A, B) for use as ``SolverOptions.escore_coefficients``
    """
    if len(samples) < 2:
        raise ValueError("Need at least two samples to fit the estimator")
    data = np.asarray(samples, dtype=np.float64)
    a, b = np.polyfit(data[:, 0], np.exp(data[:, 1]), 1)
    return float(a), float(b)
