"""
Feedback Computation
====================

Wordle feedback ("correctness") for a guess against an answer, in two forms:

- a pure-Python ``compute`` returning a tuple of ``Correctness`` symbols, used
  by the game harness and the consistency oracle
- numba kernels working on letter-code arrays and returning the packed
  pattern (0-242), used by the cache and the ranking engine

Packing: position ``i`` contributes ``symbol * 3**i`` with WRONG=0,
MISPLACED=1, CORRECT=2, so the all-green pattern packs to 242.
"""

import numpy as np
from numba import jit, prange
from enum import IntEnum
from itertools import product
from typing import Iterator, Sequence, Tuple

from .errors import InvalidWord, MalformedMask


# ============================================================================
# CONSTANTS
# ============================================================================

WORD_LENGTH = 5
GRAY = 0
YELLOW = 1
GREEN = 2
CORRECT_PATTERN = 242  # 2 + 2*3 + 2*9 + 2*27 + 2*81 = 242 (all green)
N_PATTERNS = 243  # 3^5 possible feedback patterns


class Correctness(IntEnum):
    """Feedback for a single letter."""
    WRONG = GRAY
    MISPLACED = YELLOW
    CORRECT = GREEN


Pattern = Tuple[Correctness, Correctness, Correctness, Correctness, Correctness]

_SYMBOLS = {'c': Correctness.CORRECT, 'm': Correctness.MISPLACED, 'w': Correctness.WRONG}


# ============================================================================
# PURE-PYTHON FEEDBACK
# ============================================================================

def is_valid_word(word: str) -> bool:
    """True if ``word`` is exactly 5 lowercase ASCII letters."""
    return (
        isinstance(word, str)
        and len(word) == WORD_LENGTH
        and all('a' <= ch <= 'z' for ch in word)
    )


def compute(answer: str, guess: str) -> Pattern:
    """
    Compute the feedback Wordle shows for ``guess`` when ``answer`` is hidden.

    Pass 1 marks exact matches and counts the answer letters that were not
    matched. Pass 2 walks the remaining guess letters left to right; a letter is
    misplaced only while an unmatched copy of it is left in the answer.

    Args:
        answer: the hidden word
        guess: the guessed word

    Returns:
        Tuple of 5 Correctness values
    """
    if len(answer) != WORD_LENGTH or len(guess) != WORD_LENGTH:
        raise InvalidWord(f"cannot compare '{guess}' against '{answer}': words must have 5 letters")

    result = [Correctness.WRONG] * WORD_LENGTH
    unmatched = {}

    for i in range(WORD_LENGTH):
        if answer[i] == guess[i]:
            result[i] = Correctness.CORRECT
        else:
            unmatched[answer[i]] = unmatched.get(answer[i], 0) + 1

    for i in range(WORD_LENGTH):
        if result[i] == Correctness.WRONG:
            letter = guess[i]
            if unmatched.get(letter, 0) > 0:
                result[i] = Correctness.MISPLACED
                unmatched[letter] -= 1

    return tuple(result)


def pack(pattern: Sequence[Correctness]) -> int:
    """Pack a 5-symbol pattern into a base-3 integer in [0, 243)."""
    packed = 0
    for symbol in reversed(pattern):
        packed = packed * 3 + int(symbol)
    return packed


def patterns() -> Iterator[Pattern]:
    """Yield all 243 patterns, in packed order (the first letter varies fastest)."""
    for symbols in product(Correctness, repeat=WORD_LENGTH):
        yield tuple(reversed(symbols))


_UNPACKED = tuple(patterns())


def unpack(packed: int) -> Pattern:
    """Inverse of ``pack``."""
    if not 0 <= packed < N_PATTERNS:
        raise ValueError(f"packed pattern {packed} out of range")
    return _UNPACKED[packed]


def parse_mask(text: str) -> Pattern:
    """
    Parse a transcribed mask such as ``"cmwww"`` (correct/misplaced/wrong).

    Raises:
        MalformedMask: if the text is not exactly 5 recognised symbols
    """
    cleaned = text.strip().lower()
    if len(cleaned) != WORD_LENGTH:
        raise MalformedMask(f"mask '{text}' must have exactly 5 symbols")
    try:
        return tuple(_SYMBOLS[ch] for ch in cleaned)
    except KeyError as e:
        raise MalformedMask(f"mask '{text}' contains unknown symbol {e.args[0]!r}; use c, m or w") from None


def mask_to_string(pattern: Sequence[Correctness]) -> str:
    letters = {Correctness.CORRECT: 'c', Correctness.MISPLACED: 'm', Correctness.WRONG: 'w'}
    return ''.join(letters[c] for c in pattern)


# ============================================================================
# CONSISTENCY ORACLE
# ============================================================================

class Guess:
    """A guessed word together with the feedback it received."""

    __slots__ = ('word', 'mask')

    def __init__(self, word: str, mask: Sequence[Correctness]):
        if not is_valid_word(word):
            raise InvalidWord(f"guessed word '{word}' is not a 5-letter lowercase word")
        if len(mask) != WORD_LENGTH:
            raise MalformedMask(f"mask for '{word}' must have exactly 5 symbols")
        self.word = word
        self.mask = tuple(Correctness(c) for c in mask)

    def __repr__(self):
        return f"Guess({self.word!r}, {mask_to_string(self.mask)!r})"

    def __eq__(self, other):
        if not isinstance(other, Guess):
            return NotImplemented
        return self.word == other.word and self.mask == other.mask

    def __hash__(self):
        return hash((self.word, self.mask))

    @property
    def packed(self) -> int:
        return pack(self.mask)

    def matches(self, candidate: str) -> bool:
        """
        Could ``candidate`` be the answer, given this guess and its feedback?

        Equivalent to ``compute(candidate, self.word) == self.mask`` but bails
        out at the first position that disagrees.
        """
        word = self.word
        mask = self.mask
        used = [False] * WORD_LENGTH

        for i in range(WORD_LENGTH):
            if candidate[i] == word[i]:
                if mask[i] != Correctness.CORRECT:
                    return False
                used[i] = True
            elif mask[i] == Correctness.CORRECT:
                return False

        for i in range(WORD_LENGTH):
            if mask[i] == Correctness.CORRECT:
                continue
            letter = word[i]
            found = False
            for j in range(WORD_LENGTH):
                if not used[j] and candidate[j] == letter:
                    used[j] = True
                    found = True
                    break
            if found != (mask[i] == Correctness.MISPLACED):
                return False

        return True


# ============================================================================
# NUMBA-ACCELERATED FEEDBACK COMPUTATION
# ============================================================================

def words_to_chars(words: Sequence[str]) -> np.ndarray:
    """Convert words to a (n, 5) array of char codes (0-25 for a-z)."""
    arr = np.zeros((len(words), WORD_LENGTH), dtype=np.int32)
    for i, w in enumerate(words):
        for j, c in enumerate(w):
            arr[i, j] = ord(c) - ord('a')
    return arr


@jit(nopython=True, nogil=True, cache=True)
def compute_feedback(guess: np.ndarray, answer: np.ndarray) -> int:
    """
    Compute packed Wordle feedback for a guess against an answer.

    Args:
        guess: shape (5,) array of char codes (0-25 for a-z)
        answer: shape (5,) array of char codes

    Returns:
        Integer feedback pattern (0-242)
    """
    feedback = np.zeros(5, dtype=np.int32)
    unmatched = np.zeros(26, dtype=np.int32)

    # First pass: mark greens, count the answer letters left over
    for i in range(5):
        if guess[i] == answer[i]:
            feedback[i] = GREEN
        else:
            unmatched[answer[i]] += 1

    # Second pass: mark yellows
    for i in range(5):
        if feedback[i] == GRAY:
            c = guess[i]
            if unmatched[c] > 0:
                feedback[i] = YELLOW
                unmatched[c] -= 1

    return feedback[0] + 3*feedback[1] + 9*feedback[2] + 27*feedback[3] + 81*feedback[4]


@jit(nopython=True, parallel=True, cache=True)
def compute_feedback_matrix(guess_chars: np.ndarray, answer_chars: np.ndarray) -> np.ndarray:
    """
    Compute feedback for all guess/answer pairs in parallel.

    Args:
        guess_chars: shape (n_guesses, 5) array of char codes
        answer_chars: shape (n_answers, 5) array of char codes

    Returns:
        shape (n_guesses, n_answers) feedback matrix
    """
    n_guesses = guess_chars.shape[0]
    n_answers = answer_chars.shape[0]
    result = np.zeros((n_guesses, n_answers), dtype=np.uint8)

    for i in prange(n_guesses):
        for j in range(n_answers):
            result[i, j] = compute_feedback(guess_chars[i], answer_chars[j])

    return result


@jit(nopython=True, nogil=True, cache=True)
def compute_feedback_row(guess: np.ndarray, chars: np.ndarray, answers: np.ndarray) -> np.ndarray:
    """Packed feedback of one guess against the selected answer indices."""
    out = np.empty(answers.shape[0], dtype=np.uint8)
    for k in range(answers.shape[0]):
        out[k] = compute_feedback(guess, chars[answers[k]])
    return out

