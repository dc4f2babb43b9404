import random
import unittest
from collections import Counter

from powerball_picker import (
    POWERBALL_MAX,
    WHITE_BALL_MAX,
    FrequencyAnalyzer,
    HistoricalDraw,
    WeightedPickGenerator,
    build_frequency_table,
    clamp_int,
    clamp_number,
    fallback_draws,
    pick_one_weighted,
)


def scripted(*values):
    """Random source that replays fixed values."""
    it = iter(values)
    return lambda: next(it)


class FrequencyTableTests(unittest.TestCase):
    def test_empty_history_gives_all_ones(self):
        table = build_frequency_table([], WHITE_BALL_MAX)
        self.assertEqual(sorted(table), list(range(1, 70)))
        self.assertTrue(all(w == 1 for w in table.values()))

        pb_table = build_frequency_table([], POWERBALL_MAX, 'powerball')
        self.assertEqual(sorted(pb_table), list(range(1, 27)))
        self.assertTrue(all(w == 1 for w in pb_table.values()))

    def test_counts_are_smoothed(self):
        draws = [
            HistoricalDraw((1, 2, 3, 4, 5), 10),
            HistoricalDraw((1, 2, 30, 40, 50), 10),
        ]
        table = build_frequency_table(draws, WHITE_BALL_MAX)
        self.assertEqual(table[1], 3)
        self.assertEqual(table[3], 2)
        self.assertEqual(table[69], 1)

        pb_table = build_frequency_table(draws, POWERBALL_MAX, 'powerball')
        self.assertEqual(pb_table[10], 3)
        self.assertEqual(pb_table[11], 1)

    def test_out_of_domain_history_is_ignored(self):
        # Pre-2015 drawings had Powerballs up to 35
        draws = [HistoricalDraw((1, 2, 3, 4, 5), 35)]
        table = build_frequency_table(draws, POWERBALL_MAX, 'powerball')
        self.assertNotIn(35, table)
        self.assertEqual(len(table), POWERBALL_MAX)
        self.assertTrue(all(w >= 1 for w in table.values()))

    def test_analyzer_tables_match_builder(self):
        draws = fallback_draws()
        analyzer = FrequencyAnalyzer(draws)
        self.assertEqual(analyzer.white_weights, build_frequency_table(draws, WHITE_BALL_MAX))
        self.assertEqual(analyzer.pb_weights, build_frequency_table(draws, POWERBALL_MAX, 'powerball'))
        self.assertEqual(analyzer.white_freq[36], 3)
        self.assertEqual(analyzer.white_weights[36], 4)


class ClampTests(unittest.TestCase):
    def test_clamp_int(self):
        self.assertEqual(clamp_int(0, 1, 50), 1)
        self.assertEqual(clamp_int(500, 1, 50), 50)
        self.assertEqual(clamp_int("7", 1, 50), 7)
        self.assertEqual(clamp_int(3.9, 1, 50), 3)
        self.assertEqual(clamp_int("abc", 1, 50), 1)
        self.assertEqual(clamp_int(None, 1, 50), 1)
        self.assertEqual(clamp_int(float('nan'), 1, 50), 1)
        self.assertEqual(clamp_int(float('inf'), 1, 50), 1)

    def test_clamp_number(self):
        self.assertEqual(clamp_number(150, 0, 100), 100)
        self.assertEqual(clamp_number(-3, 0, 100), 0)
        self.assertEqual(clamp_number(42.5, 0, 100), 42.5)
        self.assertEqual(clamp_number(float('nan'), 0, 100), 0)
        self.assertEqual(clamp_number(float('-inf'), 0, 100), 0)
        self.assertEqual(clamp_number("x", 0, 100), 0)


class PickOneWeightedTests(unittest.TestCase):
    def test_walks_cumulative_probability_in_order(self):
        weights = {1: 1, 2: 1, 3: 1}
        self.assertEqual(pick_one_weighted([1, 2, 3], weights, 0, scripted(0.0)), 1)
        self.assertEqual(pick_one_weighted([1, 2, 3], weights, 0, scripted(0.5)), 2)
        self.assertEqual(pick_one_weighted([1, 2, 3], weights, 0, scripted(0.9)), 3)

    def test_blend_of_weighted_and_uniform(self):
        # p(1) = 0.5 * 0.75 + 0.5 * 0.5 = 0.625
        weights = {1: 3, 2: 1}
        self.assertEqual(pick_one_weighted([1, 2], weights, 0.5, scripted(0.6)), 1)
        self.assertEqual(pick_one_weighted([1, 2], weights, 0.5, scripted(0.7)), 2)

    def test_falls_back_to_last_candidate(self):
        self.assertEqual(pick_one_weighted([4, 8, 15], {}, 0, scripted(1.5)), 15)

    def test_missing_weights_default_to_one(self):
        # 5 has no entry: weight 1 against 3 -> p(5) = 0.25
        self.assertEqual(pick_one_weighted([5, 6], {6: 3}, 0, scripted(0.2)), 5)
        self.assertEqual(pick_one_weighted([5, 6], {6: 3}, 0, scripted(0.3)), 6)

    def test_alpha_is_clamped(self):
        weights = {1: 99, 2: 1}
        # alpha > 1 behaves like uniform: p(1) = 0.5
        self.assertEqual(pick_one_weighted([1, 2], weights, 5, scripted(0.6)), 2)
        # alpha < 0 behaves like weighted: p(1) = 0.99
        self.assertEqual(pick_one_weighted([1, 2], weights, -1, scripted(0.6)), 1)

    def test_empty_candidates_raise(self):
        with self.assertRaises(ValueError):
            pick_one_weighted([], {}, 0.5, scripted(0.1))

    def test_uniform_when_alpha_is_one(self):
        rng = random.Random(1234)
        weights = {1: 50, 2: 10, 3: 1, 4: 1, 5: 1}
        trials = 20000
        counts = Counter(pick_one_weighted([1, 2, 3, 4, 5], weights, 1, rng.random)
                         for _ in range(trials))
        for n in range(1, 6):
            self.assertAlmostEqual(counts[n] / trials, 0.2, delta=0.02)

    def test_proportional_to_weights_when_alpha_is_zero(self):
        rng = random.Random(99)
        weights = {1: 1, 2: 2, 3: 3, 4: 4}
        trials = 20000
        counts = Counter(pick_one_weighted([1, 2, 3, 4], weights, 0, rng.random)
                         for _ in range(trials))
        for n in range(1, 5):
            self.assertAlmostEqual(counts[n] / trials, n / 10, delta=0.02)


class GeneratePicksTests(unittest.TestCase):
    def setUp(self):
        self.draws = fallback_draws()

    def make_generator(self, seed=0):
        return WeightedPickGenerator(self.draws, random.Random(seed).random)

    def assert_valid_pick(self, pick):
        self.assertEqual(len(pick.main), 5)
        self.assertEqual(len(set(pick.main)), 5)
        self.assertEqual(list(pick.main), sorted(pick.main))
        self.assertTrue(all(1 <= n <= 69 for n in pick.main))
        self.assertTrue(1 <= pick.powerball <= 26)

    def test_returns_requested_count_of_valid_picks(self):
        generator = self.make_generator()
        for randomness in (0, 35, 70, 100):
            picks = generator.generate_picks(12, randomness)
            self.assertEqual(len(picks), 12)
            for pick in picks:
                self.assert_valid_pick(pick)

    def test_count_is_clamped(self):
        generator = self.make_generator()
        self.assertEqual(len(generator.generate_picks(0, 50)), 1)
        self.assertEqual(len(generator.generate_picks(-4, 50)), 1)
        self.assertEqual(len(generator.generate_picks(500, 50)), 50)
        self.assertEqual(len(generator.generate_picks(float('nan'), 50)), 1)
        self.assertEqual(len(generator.generate_picks("3", 50)), 3)

    def test_out_of_range_randomness_still_generates(self):
        generator = self.make_generator()
        for randomness in (-20, 250, float('nan'), float('inf'), None):
            for pick in generator.generate_picks(3, randomness):
                self.assert_valid_pick(pick)

    def test_main_locked_numbers_in_every_pick(self):
        generator = self.make_generator(3)
        picks = generator.generate_picks(30, 40, main_locked=[7, 63])
        for pick in picks:
            self.assert_valid_pick(pick)
            self.assertIn(7, pick.main)
            self.assertIn(63, pick.main)

    def test_main_locked_truncated_to_first_five(self):
        generator = self.make_generator(4)
        picks = generator.generate_picks(10, 50, main_locked=[9, 1, 2, 3, 4, 5])
        for pick in picks:
            self.assertEqual(pick.main, (1, 2, 3, 4, 9))

    def test_duplicate_locks_are_placed_once(self):
        generator = self.make_generator(5)
        for pick in generator.generate_picks(10, 50, main_locked=[12, 12]):
            self.assert_valid_pick(pick)
            self.assertIn(12, pick.main)

    def test_powerball_drawn_from_locked_candidates(self):
        generator = self.make_generator(6)
        candidates = [3, 17, 22]
        seen = set()
        for pick in generator.generate_picks(50, 100, powerball_locked=candidates):
            self.assert_valid_pick(pick)
            self.assertIn(pick.powerball, candidates)
            seen.add(pick.powerball)
        self.assertGreater(len(seen), 1)

    def test_same_seed_gives_same_picks(self):
        first = self.make_generator(42).generate_picks(8, 60, [5], [1, 2])
        second = self.make_generator(42).generate_picks(8, 60, [5], [1, 2])
        self.assertEqual(first, second)

    def test_zero_randomness_follows_history(self):
        draws = [HistoricalDraw((1, 2, 3, 4, 5), 1)] * 200
        generator = WeightedPickGenerator(draws, random.Random(11).random)
        hits = Counter()
        for pick in generator.generate_picks(50, 0):
            hits.update(n for n in pick.main if n <= 5)
        # Numbers 1-5 carry weight 201 against 1 for the rest
        self.assertGreater(sum(hits.values()), 175)


if __name__ == "__main__":
    unittest.main()
