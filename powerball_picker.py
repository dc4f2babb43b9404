#!/usr/bin/env python3
"""
Powerball Picker - Weighted Generator & Prize Evaluator
=======================================================
Generates Powerball lines biased toward historically frequent numbers and
evaluates prizes and odds for a line against a reference draw.

Generation:
1. Frequency Tables - Laplace-smoothed counts over the full number domain
2. Blended Sampling - Mix of frequency-weighted and uniform probability
3. Locked Numbers - Main numbers forced into every line, Powerball candidates

Evaluation:
1. Prize Tiers - Official prize chart keyed by (white matches, Powerball match)
2. Power Play - Multiplier rules (jackpot never multiplied, Match 5 fixed at $2M)
3. Odds - Official odds per tier
"""

import csv
import logging
import math
import random
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


# Powerball Constants
WHITE_BALL_MIN = 1
WHITE_BALL_MAX = 69
POWERBALL_MIN = 1
POWERBALL_MAX = 26
WHITE_BALL_COUNT = 5
MAX_PICKS = 50

JACKPOT = "JACKPOT"

# Odds calculation
TOTAL_WHITE_COMBINATIONS = math.comb(69, 5)  # 11,238,513
JACKPOT_ODDS = TOTAL_WHITE_COMBINATIONS * POWERBALL_MAX  # 292,201,338

Prize = Union[int, str]
RandomSource = Callable[[], float]


@dataclass(frozen=True)
class HistoricalDraw:
    """A single past Powerball drawing, as delivered by the history feed."""
    main: Tuple[int, ...]
    powerball: int
    multiplier: Optional[int] = None
    draw_date: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, 'main', tuple(self.main))

    def __str__(self):
        date = self.draw_date.strftime('%m/%d/%Y') + ": " if self.draw_date else ""
        pp = f" x{self.multiplier}" if self.multiplier else ""
        return f"{date}{' '.join(map(str, self.main))} PB:{self.powerball}{pp}"


@dataclass
class Pick:
    """A generated (or user-entered) line: 5 main numbers and a Powerball."""
    main: Tuple[int, ...]
    powerball: int

    def __post_init__(self):
        self.main = tuple(sorted(self.main))

    def __str__(self):
        return format_pick_line(self)

    def to_dict(self) -> Dict:
        return {'main': list(self.main), 'powerball': self.powerball}


@dataclass(frozen=True)
class PrizeResult:
    """Prize for one line, with and without the Power Play multiplier."""
    base: Prize
    with_multiplier: Optional[Prize] = None

    @property
    def is_winning(self) -> bool:
        if self.base == JACKPOT:
            return True
        return isinstance(self.base, (int, float)) and self.base > 0

    def to_dict(self) -> Dict:
        return {'base': self.base, 'with_multiplier': self.with_multiplier}


@dataclass
class PrizeCheck:
    """Result of checking a line against a reference draw."""
    pick: Pick
    white_matches: int
    powerball_match: bool
    prize: PrizeResult
    matched_whites: List[int] = field(default_factory=list)
    odds: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            'main': list(self.pick.main),
            'powerball': self.pick.powerball,
            'white_matches': self.white_matches,
            'powerball_match': self.powerball_match,
            'matched_whites': self.matched_whites,
            'prize': self.prize.to_dict(),
            'prize_label': format_prize(self.prize.base),
            'odds': self.odds,
            'odds_label': format_odds(self.odds),
        }


# Dev fixture used when no feed or CSV history is available
FALLBACK_DRAWS = [
    ("11 21 27 36 62 24", "3"),
    ("14 18 36 49 67 18", "2"),
    ("18 31 36 43 47 20", "2"),
    ("06 24 30 53 56 19", "2"),
    ("05 18 23 40 50 18", "3"),
    ("21 37 52 53 58 05", "2"),
    ("06 10 31 37 44 23", "2"),
]


def clamp_int(value, min_value: int, max_value: int) -> int:
    """Clamp to an integer range; anything that isn't a finite number becomes min_value."""
    try:
        n = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return min_value
    return max(min_value, min(max_value, n))


def clamp_number(value, min_value: float, max_value: float) -> float:
    """Clamp to a float range; anything that isn't a finite number becomes min_value."""
    try:
        n = float(value)
    except (TypeError, ValueError):
        return min_value
    if not math.isfinite(n):
        return min_value
    return max(min_value, min(max_value, n))


def count_numbers(draws: Iterable[HistoricalDraw], ball_type: str = 'white') -> Counter:
    """Raw occurrence counts; white balls are pooled across all five slots."""
    counts = Counter()
    for draw in draws:
        if ball_type == 'white':
            counts.update(draw.main)
        else:
            counts[draw.powerball] += 1
    return counts


def smoothed_table(counts: Dict[int, int], domain_max: int) -> Dict[int, int]:
    """Every number in 1..domain_max with count + 1; values outside the domain are dropped."""
    return {n: counts.get(n, 0) + 1 for n in range(1, domain_max + 1)}


def build_frequency_table(draws: Iterable[HistoricalDraw], domain_max: int,
                          ball_type: str = 'white') -> Dict[int, int]:
    """
    Count occurrences of every number in 1..domain_max across the draws.

    White balls are pooled across all five slots; 'powerball' counts the
    bonus ball. Each count gets +1 (Laplace smoothing) so every number in the
    domain keeps a positive weight. Values outside the domain are ignored.
    """
    return smoothed_table(count_numbers(draws, ball_type), domain_max)


def pick_one_weighted(candidates: Sequence[int], weights: Dict[int, float],
                      alpha: float, random_source: RandomSource = random.random) -> int:
    """
    Pick one candidate from a blend of weighted and uniform probabilities.

    P(c) = (1 - alpha) * w(c) / sum(w) + alpha / len(candidates)

    alpha 0 is purely frequency-weighted, alpha 1 purely uniform. A single
    uniform draw r is compared against the running cumulative probability in
    candidate order; if rounding leaves the total just short of r the last
    candidate is returned.
    """
    if not candidates:
        raise ValueError("candidates must not be empty")

    a = clamp_number(alpha, 0.0, 1.0)
    uniform_p = 1.0 / len(candidates)

    total_weight = sum(weights.get(n, 1) for n in candidates)
    if total_weight <= 0:
        total_weight = len(candidates)

    r = random_source()
    cumulative = 0.0

    for n in candidates:
        weighted_p = weights.get(n, 1) / total_weight
        cumulative += (1 - a) * weighted_p + a * uniform_p
        if r <= cumulative:
            return n

    return candidates[-1]


class FrequencyAnalyzer:
    """Frequency snapshot of a draw history (read-only once built)."""

    def __init__(self, draws: List[HistoricalDraw]):
        self.draws = draws
        self.white_freq = count_numbers(draws, 'white')
        self.pb_freq = count_numbers(draws, 'powerball')

        self.white_weights = smoothed_table(self.white_freq, WHITE_BALL_MAX)
        self.pb_weights = smoothed_table(self.pb_freq, POWERBALL_MAX)

    def get_hot_numbers(self, n: int = 10, ball_type: str = 'white') -> List[Tuple[int, int]]:
        """Get most frequently drawn numbers."""
        freq = self.white_freq if ball_type == 'white' else self.pb_freq
        return freq.most_common(n)

    def expected_frequency(self, ball_type: str = 'white') -> float:
        """Expected count per number if draws were perfectly uniform."""
        total_draws = len(self.draws)
        if ball_type == 'white':
            return (total_draws * WHITE_BALL_COUNT) / WHITE_BALL_MAX
        return total_draws / POWERBALL_MAX


class WeightedPickGenerator:
    """
    Generates Powerball lines biased toward historically frequent numbers.

    The frequency tables are built once per history snapshot and never
    mutated, so one generator can serve concurrent requests. Randomness comes
    from the injected random_source (uniform in [0, 1)), which makes
    generation reproducible under a seeded source.
    """

    def __init__(self, draws: List[HistoricalDraw],
                 random_source: Optional[RandomSource] = None):
        self.draws = draws
        self.freq_analyzer = FrequencyAnalyzer(draws)
        self.random_source = random_source or random.random

    @property
    def white_weights(self) -> Dict[int, int]:
        return self.freq_analyzer.white_weights

    @property
    def pb_weights(self) -> Dict[int, int]:
        return self.freq_analyzer.pb_weights

    def _pick(self, candidates: Sequence[int], weights: Dict[int, int], alpha: float) -> int:
        return pick_one_weighted(candidates, weights, alpha, self.random_source)

    def generate_pick(self, alpha: float, main_locked: Sequence[int] = (),
                      powerball_locked: Sequence[int] = ()) -> Pick:
        """Generate a single line. Locks are assumed already truncated/deduplicated."""
        locked_pb = None
        if powerball_locked:
            locked_pb = self._pick(powerball_locked, self.pb_weights, alpha)

        available = list(range(WHITE_BALL_MIN, WHITE_BALL_MAX + 1))
        main = []

        for forced in main_locked:
            if forced not in main:
                main.append(forced)
                if forced in available:
                    available.remove(forced)

        while len(main) < WHITE_BALL_COUNT:
            selected = self._pick(available, self.white_weights, alpha)
            main.append(selected)
            available.remove(selected)

        if locked_pb is not None:
            powerball = locked_pb
        else:
            powerball = self._pick(range(POWERBALL_MIN, POWERBALL_MAX + 1), self.pb_weights, alpha)

        return Pick(tuple(sorted(main)), powerball)

    def generate_picks(self, count, randomness_percent, main_locked: Sequence[int] = (),
                       powerball_locked: Sequence[int] = ()) -> List[Pick]:
        """
        Generate `count` independent lines.

        Args:
            count: number of lines, clamped to 1..50
            randomness_percent: 0 leans fully on history, 100 is uniform random
            main_locked: numbers forced into every line (only the first 5 are used)
            powerball_locked: if non-empty, every Powerball is drawn from this set

        Identical lines across the batch are possible; nothing is deduplicated.
        """
        safe_count = clamp_int(count, 1, MAX_PICKS)
        alpha = clamp_number(randomness_percent, 0, 100) / 100

        locked_main = list(main_locked or [])[:WHITE_BALL_COUNT]
        pb_candidates = list(dict.fromkeys(powerball_locked or []))

        return [self.generate_pick(alpha, locked_main, pb_candidates)
                for _ in range(safe_count)]


def _lock_number(value) -> int:
    try:
        return int(value)
    except OverflowError:
        raise ValueError("Locked numbers must be finite whole numbers.") from None


def validate_locks(main_locked: Sequence[int], powerball_locked: Sequence[int]) -> Tuple[List[int], List[int]]:
    """Boundary check for user-supplied locks. Raises ValueError with a user-facing message."""
    main = [_lock_number(n) for n in main_locked or []]
    pb = [_lock_number(n) for n in powerball_locked or []]

    if len(set(main)) > WHITE_BALL_COUNT:
        raise ValueError("Main locked can include at most 5 numbers (since there are only 5 main balls).")
    if any(n < WHITE_BALL_MIN or n > WHITE_BALL_MAX for n in main):
        raise ValueError("Main numbers must be 1–69.")
    if any(n < POWERBALL_MIN or n > POWERBALL_MAX for n in pb):
        raise ValueError("Powerball must be 1–26.")

    return list(dict.fromkeys(main)), sorted(set(pb))


# Prize structure from the official prize chart (without Power Play)
PRIZE_TIERS = {
    (5, True): JACKPOT,
    (5, False): 1000000,
    (4, True): 50000,
    (4, False): 100,
    (3, True): 100,
    (3, False): 7,
    (2, True): 7,
    (1, True): 4,
    (0, True): 4,
}

# Power Play pays a flat $2M on Match 5 regardless of the multiplier
MATCH_5_POWER_PLAY = 2000000

ODDS_TABLE = {
    (5, True): JACKPOT_ODDS,
    (5, False): 11688053.52,
    (4, True): 913129.18,
    (4, False): 36525.17,
    (3, True): 14494.11,
    (3, False): 579.76,
    (2, True): 701.33,
    (1, True): 91.98,
    (0, True): 38.32,
}


def _valid_multiplier(multiplier) -> Optional[float]:
    if multiplier is None or isinstance(multiplier, bool):
        return None
    try:
        m = float(multiplier)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(m) or m < 2:
        return None
    return int(m) if m.is_integer() else m


def compute_prize(white_matches: int, powerball_match: bool, multiplier=None) -> PrizeResult:
    """Calculate the prize for a line, with Power Play if a valid multiplier (>= 2) is given."""
    key = (white_matches, bool(powerball_match))
    base = PRIZE_TIERS.get(key, 0)

    m = _valid_multiplier(multiplier)
    if m is None:
        return PrizeResult(base, None)

    if base == JACKPOT:
        return PrizeResult(base, JACKPOT)
    if base == 0:
        return PrizeResult(0, 0)
    if key == (5, False):
        return PrizeResult(base, MATCH_5_POWER_PLAY)
    return PrizeResult(base, base * m)


def get_odds(white_matches: int, powerball_match: bool) -> Optional[float]:
    """Official odds (1 in N) for a tier, or None for non-winning combinations."""
    return ODDS_TABLE.get((white_matches, bool(powerball_match)))


def count_matches(pick: Pick, draw: HistoricalDraw) -> Tuple[int, bool]:
    """Returns (white_matches, powerball_match)"""
    white_matches = len(set(pick.main) & set(draw.main))
    return white_matches, pick.powerball == draw.powerball


class PrizeEvaluator:
    """Checks lines against a reference draw (normally the latest one)."""

    def __init__(self, reference_draw: HistoricalDraw):
        self.reference = reference_draw

    def check(self, pick: Pick) -> PrizeCheck:
        white_matches, pb_match = count_matches(pick, self.reference)
        return PrizeCheck(
            pick=pick,
            white_matches=white_matches,
            powerball_match=pb_match,
            prize=compute_prize(white_matches, pb_match, self.reference.multiplier),
            matched_whites=sorted(set(pick.main) & set(self.reference.main)),
            odds=get_odds(white_matches, pb_match),
        )

    def check_lines(self, lines: Iterable[str]) -> List[Dict]:
        """Parse and check free-text lines; blank lines are skipped, bad ones report an error."""
        results = []
        for raw in lines:
            raw = str(raw).strip()
            if not raw:
                continue
            try:
                pick = parse_ticket_line(raw)
            except ValueError as e:
                results.append({'raw': raw, 'ok': False, 'error': str(e)})
                continue
            results.append({'raw': raw, 'ok': True, **self.check(pick).to_dict()})
        return results

    @staticmethod
    def prize_chart(multiplier=None) -> List[Dict]:
        """All winning tiers, best first, with prize and odds."""
        chart = []
        for (white, pb), base in PRIZE_TIERS.items():
            prize = compute_prize(white, pb, multiplier)
            odds = get_odds(white, pb)
            chart.append({
                'white_matches': white,
                'powerball_match': pb,
                'prize': prize.to_dict(),
                'prize_label': format_prize(prize.base),
                'odds': odds,
                'odds_label': format_odds(odds),
            })
        return chart


def parse_ticket_line(line: str) -> Pick:
    """Parse '5 11 22 33 44 PB 9'-style input; any non-digit separators are accepted."""
    trimmed = str(line or "").strip()
    if not trimmed:
        raise ValueError("Empty line")

    parts = re.findall(r'\d+', trimmed)
    if len(parts) != WHITE_BALL_COUNT + 1:
        raise ValueError("Expected 6 numbers (5 + Powerball).")

    nums = [int(p) for p in parts]
    main, pb = nums[:WHITE_BALL_COUNT], nums[WHITE_BALL_COUNT]

    if any(n < WHITE_BALL_MIN or n > WHITE_BALL_MAX for n in main):
        raise ValueError("Main numbers must be 1–69.")
    if pb < POWERBALL_MIN or pb > POWERBALL_MAX:
        raise ValueError("Powerball must be 1–26.")
    if len(set(main)) != len(main):
        raise ValueError("Main numbers must be unique.")

    return Pick(tuple(main), pb)


def format_pick_line(pick: Pick) -> str:
    main = " ".join(f"{n:02d}" for n in pick.main)
    return f"{main} {pick.powerball:02d}"


def format_prize(value) -> str:
    if value == JACKPOT:
        return "Jackpot"
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return "$0"
    if not math.isfinite(amount) or amount <= 0:
        return "$0"
    if amount >= 1_000_000_000:
        return f"${amount / 1_000_000_000:.2f}B"
    if amount >= 1_000_000:
        decimals = 0 if amount % 1_000_000 == 0 else 1
        return f"${amount / 1_000_000:.{decimals}f}M"
    if amount >= 1000:
        return f"${amount:,.0f}"
    return f"${amount:g}"


def format_odds(odds: Optional[float]) -> str:
    if not odds:
        return "—"
    if odds >= 1_000_000:
        return f"1/{odds / 1_000_000:.1f}M"
    if odds >= 1000:
        return f"1/{odds / 1000:.1f}K"
    return f"1/{odds:.1f}"


def parse_winning_numbers(text: str) -> Optional[Tuple[Tuple[int, ...], int]]:
    """Split a 'Winning Numbers' field into (main, powerball); None if fewer than 6 numbers."""
    nums = []
    for part in str(text or "").split():
        try:
            nums.append(int(part))
        except ValueError:
            continue
    if len(nums) < WHITE_BALL_COUNT + 1:
        return None
    return tuple(nums[:WHITE_BALL_COUNT]), nums[WHITE_BALL_COUNT]


def to_int_or_none(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def fallback_draws() -> List[HistoricalDraw]:
    """Embedded dev history (no dates), used when nothing better is available."""
    draws = []
    for winning_numbers, multiplier in FALLBACK_DRAWS:
        parsed = parse_winning_numbers(winning_numbers)
        if parsed:
            draws.append(HistoricalDraw(parsed[0], parsed[1], to_int_or_none(multiplier)))
    return draws


def load_historical_data(filepath: str) -> List[HistoricalDraw]:
    """Load historical draws from the NY Open Data CSV export, newest first."""
    draws = []

    with open(filepath, 'r', newline='') as f:
        reader = csv.DictReader(f)
        for row in reader:
            parsed = parse_winning_numbers(row.get('Winning Numbers'))
            if not parsed:
                continue
            try:
                date = datetime.strptime(row['Draw Date'].strip(), '%m/%d/%Y')
            except (KeyError, ValueError, AttributeError):
                date = None
            draws.append(HistoricalDraw(parsed[0], parsed[1],
                                        to_int_or_none(row.get('Multiplier')), date))

    draws.sort(key=lambda d: d.draw_date or datetime.min, reverse=True)
    logger.info("Loaded %d draws from %s", len(draws), filepath)
    return draws


def print_top_numbers(analyzer: FrequencyAnalyzer):
    print("\n[TOP MAIN NUMBERS]:")
    for num, count in analyzer.get_hot_numbers(10):
        print(f"  #{num:2d}: {count:4d} times")

    print("\n[TOP POWERBALLS]:")
    for num, count in analyzer.get_hot_numbers(5, 'powerball'):
        print(f"  #{num:2d}: {count:4d} times")


def print_prize_chart(multiplier=None):
    print("\n" + "-"*70)
    print("PRIZE CHART" + (f" (Power Play x{multiplier})" if multiplier else ""))
    print("-"*70)
    for row in PrizeEvaluator.prize_chart(multiplier):
        pb = "+PB" if row['powerball_match'] else "   "
        with_pp = row['prize']['with_multiplier']
        pp = f"  PP: {format_prize(with_pp)}" if with_pp is not None else ""
        print(f"  {row['white_matches']}{pb}  {row['prize_label']:>10s}{pp}  odds {row['odds_label']}")


def _read_numbers(prompt: str) -> List[int]:
    text = input(prompt).strip()
    return [int(p) for p in re.findall(r'\d+', text)]


def main(draws: Optional[List[HistoricalDraw]] = None):
    """Main interactive program."""
    import os

    if draws is None:
        script_dir = os.path.dirname(os.path.abspath(__file__))
        data_file = os.path.join(script_dir, 'historical_data.csv')
        if os.path.exists(data_file):
            print("\nLoading historical data...")
            draws = load_historical_data(data_file)
        else:
            print("historical_data.csv not found, using the embedded sample history.")
            draws = fallback_draws()

    print("\n" + "="*70)
    print("   POWERBALL PICKER")
    print("   'Weighted by history, tuned by you'")
    print("="*70)
    print(f"Loaded {len(draws):,} historical draws")

    generator = WeightedPickGenerator(draws)
    latest = draws[0] if draws else None

    while True:
        print("\n" + "-"*70)
        print("MENU")
        print("-"*70)
        print("1. Top Numbers")
        print("2. Generate Picks")
        print("3. Check a Line Against the Latest Draw")
        print("4. Prize Chart")
        print("5. Exit")

        choice = input("\nSelect option (1-5): ").strip()

        if choice == '1':
            print_top_numbers(generator.freq_analyzer)

        elif choice == '2':
            try:
                count = input("How many lines? (1-50, default 5): ").strip() or 5
                randomness = input("Randomness % (0 = history, 100 = uniform, default 70): ").strip() or 70
                main_locked, pb_locked = validate_locks(
                    _read_numbers("Main locked numbers (blank for none): "),
                    _read_numbers("Powerball candidates (blank for none): "),
                )
            except ValueError as e:
                print(f"Error: {e}")
                continue

            picks = generator.generate_picks(count, randomness, main_locked, pb_locked)
            print(f"\nGenerated {len(picks)} lines:\n")
            for i, pick in enumerate(picks, 1):
                print(f"  Line #{i}: {pick}")

        elif choice == '3':
            if latest is None:
                print("No recent draw loaded.")
                continue
            print(f"Latest draw: {latest}")
            evaluator = PrizeEvaluator(latest)
            for result in evaluator.check_lines([input("Your line (5 numbers + Powerball): ")]):
                if not result['ok']:
                    print(f"Error: {result['error']}")
                    continue
                pb_str = "+PB" if result['powerball_match'] else ""
                print(f"  {result['white_matches']}{pb_str} -> {result['prize_label']} (odds {result['odds_label']})")
                if result['prize']['with_multiplier'] is not None:
                    print(f"  With Power Play: {format_prize(result['prize']['with_multiplier'])}")

        elif choice == '4':
            print_prize_chart(latest.multiplier if latest else None)

        elif choice == '5':
            print("\nGood luck!")
            break

        else:
            print("Invalid option")


if __name__ == "__main__":
    main()
