import os

import pytest

from wordle_solver import Dictionary, load_dictionary

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")

# The opening word, four words that all come back gray against it, and one
# anagram of it. Relative frequencies run from about 1e-9 ("aster") to 1.5e-5
# ("mould") and up, so they straddle the sigmoid midpoint.
SKEWED = [
    ("tares", 1e9),
    ("bound", 1e6),
    ("would", 3e4),
    ("could", 2e4),
    ("mould", 1.5e4),
    ("aster", 1),
]


@pytest.fixture(scope="session")
def dictionary():
    return load_dictionary(os.path.join(DATA_DIR, "dictionary.txt"))


@pytest.fixture(scope="session")
def skewed():
    return Dictionary(SKEWED)
