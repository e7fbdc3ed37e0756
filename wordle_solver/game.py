"""
Game harness and batch benchmarking.

The harness owns the hidden answer: it asks a guesser for words, scores them
with ``compute`` and feeds the growing history back, until the answer is hit
or the turn budget runs out.
"""

import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .cache import CorrectnessCache, SharedCache
from .correctness import Guess, compute
from .dictionary import Dictionary
from .errors import InvalidWord
from .solver import Guesser, SolverOptions


# ============================================================================
# CONSTANTS
# ============================================================================

# Wordle only allows six guesses. Games run longer so the score distribution
# is not chopped off at 6.
MAX_TURNS = 32


# ============================================================================
# GAME
# ============================================================================

class Wordle:
    """Referee for games over one dictionary."""

    def __init__(self, dictionary: Dictionary, max_turns: int = MAX_TURNS):
        self.dictionary = dictionary
        self.max_turns = max_turns

    def play(self, answer: str, guesser: Guesser, verbose: bool = False) -> Tuple[Optional[int], List[str]]:
        """
        Play one game.

        Args:
            answer: the hidden word
            guesser: who is guessing
            verbose: print each turn

        Returns:
            (num_guesses or None if the turn budget ran out, list_of_guesses)
        """
        self.dictionary.require(answer)
        history: List[Guess] = []
        guesses: List[str] = []

        for turn in range(1, self.max_turns + 1):
            guess = guesser.guess(history)
            guesses.append(guess)

            if guess == answer:
                if verbose:
                    print(f"Turn {turn}: {guess} - solved")
                guesser.finish(turn)
                return turn, guesses

            if guess not in self.dictionary:
                raise InvalidWord(f"guess '{guess}' is not in the dictionary")

            mask = compute(answer, guess)
            history.append(Guess(guess, mask))
            if verbose:
                print(f"Turn {turn}: {guess} ({history[-1]})")

        return None, guesses


# ============================================================================
# BENCHMARK
# ============================================================================

def benchmark(dictionary: Dictionary, answers: Optional[Sequence[str]] = None,
              options: Optional[SolverOptions] = None, cache: Optional[CorrectnessCache] = None,
              workers: int = 1, verbose: bool = True,
              make_guesser: Optional[Callable[..., Guesser]] = None) -> Dict:
    """
    Play one game per answer and collect statistics.

    All games share one correctness cache and one thread pool.

    Args:
        dictionary: words to play with
        answers: answers to play (default: the whole dictionary)
        options: solver options (default: SolverOptions())
        cache: correctness cache shared by every game
        workers: thread pool size for the ranking scan
        verbose: print progress
        make_guesser: factory replacing the default solver; called with the
            same keyword arguments as ``SolverOptions.build``

    Returns:
        Dict with results
    """
    options = options or SolverOptions()
    if answers is None:
        answers = dictionary.words
    if options.cache and cache is None:
        cache = SharedCache(dictionary, verbose=verbose)
    if make_guesser is None:
        make_guesser = options.build

    game = Wordle(dictionary)
    results = []
    per_game = []
    dist = Counter()
    failures = []
    samples = []
    executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None

    start = time.time()
    try:
        for i, word in enumerate(answers):
            if verbose and i % 500 == 0:
                elapsed = time.time() - start
                rate = (i + 1) / elapsed if elapsed > 0 else 0
                avg = sum(results) / len(results) if results else 0
                print(f"[{i}/{len(answers)}] {rate:.1f} w/s, avg={avg:.4f}")

            guesser = make_guesser(dictionary, cache=cache, executor=executor, workers=workers)
            n, _ = game.play(word, guesser)
            per_game.append(n)
            if n is None:
                failures.append(word)
                continue
            results.append(n)
            dist[n] += 1
            samples.extend(getattr(guesser, 'samples', ()))
    finally:
        if executor is not None:
            executor.shutdown()

    elapsed = time.time() - start

    return {
        'total': len(answers),
        'average': sum(results) / len(results) if results else float('nan'),
        'total_guesses': sum(results),
        'per_game': per_game,
        'distribution': dict(sorted(dist.items())),
        'failures': len(failures),
        'failed_words': failures,
        'samples': samples,
        'time': elapsed,
        'rate': len(answers) / elapsed if elapsed > 0 else float('inf'),
    }
