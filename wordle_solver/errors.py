"""Exceptions raised by the solver and its harness."""


class WordleError(Exception):
    """Base class for all solver errors."""


class ContradictoryHistory(WordleError, RuntimeError):
    """No dictionary word is consistent with the supplied feedback history."""


class InvalidWord(WordleError, ValueError):
    """A word is not 5 lowercase letters, or is not in the dictionary."""


class MalformedMask(WordleError, ValueError):
    """A transcribed feedback mask is not exactly 5 of the symbols c/m/w."""
