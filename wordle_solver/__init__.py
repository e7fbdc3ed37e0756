"""
Wordle Solver - Entropy-Ranked Implementation
=============================================

Picks each guess by the expected information it yields over the remaining
answers, weighted by word frequency, with a memoized feedback table and an
optional parallel ranking scan.
"""

__version__ = "2.1.0"

from .cache import CorrectnessCache, ExclusiveCache, SharedCache, default_cache
from .correctness import (
    CORRECT_PATTERN,
    N_PATTERNS,
    Correctness,
    Guess,
    compute,
    pack,
    parse_mask,
    patterns,
    unpack,
)
from .dictionary import Dictionary, from_words, load_dictionary
from .errors import ContradictoryHistory, InvalidWord, MalformedMask, WordleError
from .game import Wordle, benchmark
from .ranking import Rank, fit_escore
from .solver import FIRST_GUESS, Guesser, Solver, SolverOptions
