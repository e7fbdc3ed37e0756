import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from wordle_solver.cache import SharedCache
from wordle_solver.correctness import Guess, compute, pack
from wordle_solver.pruning import consideration_set, cutoff_stop
from wordle_solver.ranking import (
    ESCORE_COEFFICIENTS,
    Candidate,
    Rank,
    RankingContext,
    best_candidate,
    better,
    est_steps,
    fit_escore,
    goodness,
    information,
    pattern_totals,
    remaining_entropy,
)


def context(dictionary, remaining=None, rank=Rank.EXPECTED_INFORMATION, turn=1,
            cache=None, smoothed=False):
    if remaining is None:
        remaining = dictionary.all_indices
    return RankingContext(dictionary.chars, dictionary.weights(smoothed), remaining,
                          rank, turn, cache)


class TestKernels:
    def test_pattern_totals(self):
        packed = np.array([0, 242, 0, 5], dtype=np.uint8)
        weights = np.array([1.0, 2.0, 3.0, 4.0])
        totals = pattern_totals(packed, weights)
        assert totals[0] == 4.0
        assert totals[242] == 2.0
        assert totals[5] == 4.0
        assert totals.sum() == 10.0

    def test_information_of_even_split(self):
        totals = np.zeros(243)
        totals[:4] = 1.0
        assert information(totals, 4.0) == pytest.approx(2.0)

    def test_information_of_single_bucket(self):
        totals = np.zeros(243)
        totals[7] = 5.0
        assert information(totals, 5.0) == 0.0

    def test_remaining_entropy_uniform(self):
        assert remaining_entropy(np.ones(8)) == pytest.approx(3.0)

    def test_remaining_entropy_ignores_zero_weights(self):
        assert remaining_entropy(np.array([1.0, 0.0, 1.0])) == pytest.approx(1.0)


class TestConservation:
    @pytest.mark.parametrize("guess_word", ["tares", "about", "quick", "mouse"])
    def test_buckets_sum_to_remaining_weight(self, dictionary, guess_word):
        ctx = context(dictionary)
        totals = ctx.totals_for(dictionary.index_of(guess_word))
        assert totals.sum() == dictionary.counts.sum()

    def test_after_filtering(self, dictionary):
        g = Guess("tares", compute("about", "tares"))
        remaining = np.array([i for i, w in enumerate(dictionary.words) if g.matches(w)],
                             dtype=np.int64)
        ctx = context(dictionary, remaining)
        for guess_idx in range(0, len(dictionary), 11):
            assert ctx.totals_for(guess_idx).sum() == dictionary.counts[remaining].sum()

    def test_buckets_match_compute(self, dictionary):
        ctx = context(dictionary)
        guess_idx = dictionary.index_of("crane")
        totals = ctx.totals_for(guess_idx)
        bucket = pack(compute("about", "crane"))
        same = [w for w in dictionary.words if compute(w, "crane") == compute("about", "crane")]
        assert totals[bucket] == sum(dictionary.counts[dictionary.index_of(w)] for w in same)


class TestCachedScoring:
    def test_cache_and_kernel_agree(self, dictionary):
        cached = context(dictionary, cache=SharedCache(dictionary))
        direct = context(dictionary)
        for guess_idx in range(0, len(dictionary), 17):
            assert np.array_equal(cached.patterns_for(guess_idx), direct.patterns_for(guess_idx))
            assert cached.score(guess_idx, True) == direct.score(guess_idx, True)


class TestGoodness:
    def test_expected_information(self):
        assert goodness(Rank.EXPECTED_INFORMATION, 3.5, 0.2, 1, 8.0, ESCORE_COEFFICIENTS) == 3.5

    def test_weighted_information(self):
        assert goodness(Rank.WEIGHTED_INFORMATION, 3.5, 0.2, 1, 8.0, ESCORE_COEFFICIENTS) == pytest.approx(0.7)

    def test_info_plus_probability(self):
        assert goodness(Rank.INFO_PLUS_PROBABILITY, 3.5, 0.2, 1, 8.0, ESCORE_COEFFICIENTS) == pytest.approx(3.7)

    def test_expected_score(self):
        g = goodness(Rank.EXPECTED_SCORE, 3.0, 0.25, 2, 5.0, (3.870, 3.679))
        expected = -(0.25 * 3 + 0.75 * (2 + math.log(2.0 * 3.870 + 3.679)))
        assert g == pytest.approx(expected)

    def test_expected_score_certain_word(self):
        # A word that is certainly the answer costs exactly one more guess
        assert goodness(Rank.EXPECTED_SCORE, 0.0, 1.0, 3, 0.0, ESCORE_COEFFICIENTS) == -4.0

    def test_first_is_not_scored(self):
        with pytest.raises(ValueError):
            goodness(Rank.FIRST, 1.0, 0.5, 1, 2.0, ESCORE_COEFFICIENTS)

    def test_est_steps(self):
        assert est_steps(0.0) == pytest.approx(math.log(3.679))
        assert est_steps(1.0, (1.0, math.e - 1.0)) == pytest.approx(1.0)

    def test_out_of_set_word_has_zero_probability(self, dictionary):
        ctx = context(dictionary, rank=Rank.WEIGHTED_INFORMATION)
        assert ctx.p_word(0, False) == 0.0
        assert ctx.score(0, False) == 0.0

    def test_zero_weight_remaining_treated_as_uniform(self):
        from wordle_solver.dictionary import Dictionary
        d = Dictionary([("crane", 0), ("slate", 0), ("tares", 0)])
        ctx = context(d)
        assert ctx.total == 3.0
        assert ctx.p_word(1, True) == pytest.approx(1 / 3)
        assert ctx.entropy == pytest.approx(math.log2(3))


class TestTieBreak:
    def test_higher_goodness_wins(self):
        assert better(Candidate(5, 1.0), Candidate(9, 2.0)) == Candidate(9, 2.0)

    def test_lower_index_wins_ties(self):
        assert better(Candidate(9, 1.0), Candidate(5, 1.0)) == Candidate(5, 1.0)
        assert better(Candidate(5, 1.0), Candidate(9, 1.0)) == Candidate(5, 1.0)

    def test_none(self):
        assert better(None, Candidate(1, 0.0)) == Candidate(1, 0.0)
        assert better(Candidate(1, 0.0), None) == Candidate(1, 0.0)

    def test_sequential_scan_prefers_lower_index(self):
        from wordle_solver.dictionary import from_words
        # Mirror-image words score identically against each other
        d = from_words(["abcde", "edcba"])
        ctx = context(d)
        best = ctx.score_chunk(d.all_indices, np.ones(2, dtype=np.bool_))
        assert best.index == 0


class TestBestCandidate:
    @pytest.mark.parametrize("rank", [Rank.EXPECTED_SCORE, Rank.WEIGHTED_INFORMATION,
                                      Rank.INFO_PLUS_PROBABILITY, Rank.EXPECTED_INFORMATION])
    @pytest.mark.parametrize("workers", [2, 3, 8])
    def test_parallel_matches_sequential(self, dictionary, rank, workers):
        ctx = context(dictionary, rank=rank, smoothed=True)
        consider = dictionary.all_indices
        possible = np.ones(len(consider), dtype=np.bool_)
        sequential = best_candidate(ctx, consider, possible)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            parallel = best_candidate(ctx, consider, possible, pool, workers, threshold=1)
        assert parallel == sequential

    def test_small_scans_stay_inline(self, dictionary):
        class Exploding:
            def map(self, *args):
                raise AssertionError("should not dispatch")

        ctx = context(dictionary)
        consider = dictionary.all_indices[:5]
        best = best_candidate(ctx, consider, np.ones(5, dtype=np.bool_), Exploding(), 4, threshold=32)
        assert best.index in consider

    def test_empty(self, dictionary):
        ctx = context(dictionary)
        with pytest.raises(ValueError):
            best_candidate(ctx, np.array([], dtype=np.int64), np.array([], dtype=np.bool_))


class TestPruning:
    @pytest.mark.parametrize("n, stop", [(0, 0), (1, 1), (15, 15), (20, 20), (60, 20), (61, 20),
                                         (63, 21), (300, 100)])
    def test_cutoff_stop(self, n, stop):
        assert cutoff_stop(n) == stop

    def test_hard_mode_without_cutoff(self):
        remaining = np.array([2, 5, 9], dtype=np.int64)
        consider, possible = consideration_set(12, remaining, True, False)
        assert consider.tolist() == [2, 5, 9]
        assert possible.all()

    def test_hard_mode_with_cutoff(self):
        remaining = np.arange(0, 200, 2, dtype=np.int64)
        consider, possible = consideration_set(200, remaining, True, True)
        assert consider.tolist() == remaining[:33].tolist()
        assert possible.all()

    def test_easy_mode_without_cutoff(self):
        remaining = np.array([2, 5, 9], dtype=np.int64)
        consider, possible = consideration_set(12, remaining, False, False)
        assert consider.tolist() == list(range(12))
        assert possible.tolist() == [i in (2, 5, 9) for i in range(12)]

    def test_easy_mode_with_cutoff(self):
        remaining = np.arange(0, 200, 2, dtype=np.int64)
        consider, possible = consideration_set(200, remaining, False, True)
        # Stops right after the 33rd possible word (index 64)
        assert consider.tolist() == list(range(65))
        assert possible.sum() == 33
        assert possible[64]


class TestCalibration:
    def test_fit_recovers_coefficients(self):
        a, b = 3.87, 3.679
        samples = [(e, math.log(e * a + b)) for e in np.linspace(0.0, 8.0, 20)]
        fa, fb = fit_escore(samples)
        assert fa == pytest.approx(a, rel=1e-6)
        assert fb == pytest.approx(b, rel=1e-6)

    def test_fit_needs_samples(self):
        with pytest.raises(ValueError):
            fit_escore([(1.0, 2)])
