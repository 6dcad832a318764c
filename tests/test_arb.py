import logging
import random

import pytest

from arbdash.config.constants import STAKE_TOLERANCE
from arbdash.core.arb import evaluate, find_best_quotes
from arbdash.core.models import INSUFFICIENT_OUTCOMES, NO_EDGE, Market, NoArbitrage, Opportunity, Outcome
from arbdash.core.odds import two_way_split
from arbdash.utils.validation import InsufficientMarketError, InvalidPriceError, InvalidStakeError


def market(*quotes):
    return Market(outcomes=tuple(Outcome(name=n, price=p, bookmaker=b) for n, p, b in quotes))


def assert_balanced(opp, total_stake):
    tol = STAKE_TOLERANCE * total_stake
    assert abs(sum(a.stake for a in opp.allocations) - total_stake) < tol
    payouts = [a.payout for a in opp.allocations]
    assert max(payouts) - min(payouts) < tol
    assert payouts[0] == pytest.approx(opp.guaranteed_return, rel=1e-9)


def test_scenario_a_two_way_arbitrage():
    result = evaluate(market(("Home", 2.10, "X"), ("Away", 2.05, "Y")), 1000)

    assert isinstance(result, Opportunity)
    assert result.implied_margin == pytest.approx(1 / 2.10 + 1 / 2.05)
    assert result.implied_margin < 1.0
    home, away = result.allocations
    assert (home.outcome_name, home.bookmaker, home.price) == ("Home", "X", 2.10)
    assert (away.outcome_name, away.bookmaker, away.price) == ("Away", "Y", 2.05)
    assert home.stake == pytest.approx(493.98, abs=0.01)
    assert away.stake == pytest.approx(506.02, abs=0.01)
    assert result.guaranteed_return == pytest.approx(1037.35, abs=0.01)
    assert result.profit == pytest.approx(37.35, abs=0.01)
    assert result.roi_percent == pytest.approx(3.735, abs=0.001)
    assert_balanced(result, 1000)


def test_scenario_b_no_edge():
    result = evaluate(market(("Home", 1.80, "X"), ("Away", 1.90, "Y")), 1000)

    assert isinstance(result, NoArbitrage)
    assert result.reason == NO_EDGE
    assert result.implied_margin == pytest.approx(1.0819, abs=1e-4)


def test_scenario_c_single_outcome_name():
    m = market(("Home", 2.5, "X"), ("Home", 2.6, "Y"), ("Home", 2.4, "Z"))
    with pytest.raises(InsufficientMarketError):
        evaluate(m, 1000)


@pytest.mark.parametrize("stake", [0, -10, float("nan"), float("inf"), "100", None, True])
def test_scenario_d_invalid_stake(stake):
    with pytest.raises(InvalidStakeError):
        evaluate(market(("Home", 2.10, "X"), ("Away", 2.05, "Y")), stake)


def test_invalid_stake_checked_before_market():
    with pytest.raises(InvalidStakeError):
        evaluate(market(("Home", 2.5, "X")), 0)


def test_three_way_market():
    m = market(
        ("Home", 4.00, "A"),
        ("Draw", 3.80, "B"),
        ("Away", 4.50, "C"),
        ("Home", 4.20, "D"),
        ("Draw", 3.50, "A"),
    )
    result = evaluate(m, 1000)

    assert isinstance(result, Opportunity)
    assert result.implied_margin == pytest.approx(1 / 4.20 + 1 / 3.80 + 1 / 4.50)
    assert [(a.outcome_name, a.bookmaker) for a in result.allocations] == [("Home", "D"), ("Draw", "B"), ("Away", "C")]
    assert_balanced(result, 1000)
    assert result.profit > 0


def test_exactly_break_even_is_not_arbitrage():
    result = evaluate(market(("Home", 2.0, "X"), ("Away", 2.0, "Y")), 100)
    assert isinstance(result, NoArbitrage)
    assert result.implied_margin == 1.0


def test_two_way_matches_head_to_head_formula():
    for p1, p2 in [(2.10, 2.05), (1.5, 3.5), (10.0, 1.15), (2.6, 1.7)]:
        result = evaluate(market(("A", p1, "X"), ("B", p2, "Y")), 250)
        if isinstance(result, NoArbitrage):
            continue
        s1, s2 = two_way_split(p1, p2, 250)
        assert result.allocations[0].stake == pytest.approx(s1, rel=1e-12)
        assert result.allocations[1].stake == pytest.approx(s2, rel=1e-12)


def _random_two_way(rng):
    p1 = rng.uniform(1.01, 50.0)
    # keep 1/p1 + 1/p2 < 1 by construction
    floor = 1.0 / (1.0 - 1.0 / p1)
    p2 = rng.uniform(floor * 1.0001, floor * 3 + 1)
    return p1, p2


@pytest.mark.parametrize("seed", range(20))
def test_two_way_property_stakes_sum_and_payouts_equal(seed):
    rng = random.Random(seed)
    for _ in range(50):
        p1, p2 = _random_two_way(rng)
        stake = rng.uniform(0.01, 1e6)
        result = evaluate(market(("A", p1, "X"), ("B", p2, "Y")), stake)
        assert isinstance(result, Opportunity)
        assert_balanced(result, stake)


@pytest.mark.parametrize("seed", range(10))
def test_two_way_property_no_edge_never_opportunity(seed):
    rng = random.Random(seed)
    for _ in range(50):
        p1 = rng.uniform(1.01, 20.0)
        ceiling = 1.0 / (1.0 - 1.0 / p1)
        p2 = rng.uniform(1.01, ceiling)
        result = evaluate(market(("A", p1, "X"), ("B", p2, "Y")), 100)
        assert isinstance(result, NoArbitrage)


def test_extreme_price_ratio_still_sums_to_total():
    result = evaluate(market(("Fav", 1.0001, "X"), ("Dog", 20000.0, "Y")), 1_000_000)
    assert isinstance(result, Opportunity)
    assert_balanced(result, 1_000_000)


def test_many_outcomes():
    names = [f"Runner {i}" for i in range(12)]
    m = market(*[(n, 13.5, f"Book{i % 3}") for i, n in enumerate(names)])
    result = evaluate(m, 500)
    assert isinstance(result, Opportunity)
    assert len(result.allocations) == 12
    assert_balanced(result, 500)


def test_evaluate_is_idempotent():
    m = market(("Home", 4.2, "A"), ("Draw", 3.8, "B"), ("Away", 4.5, "C"))
    assert evaluate(m, 1234.5) == evaluate(m, 1234.5)


def test_best_quote_ties_go_to_first_seen():
    best = find_best_quotes(market(("Home", 2.2, "First"), ("Away", 1.9, "X"), ("Home", 2.2, "Second")))
    assert best["Home"].bookmaker == "First"


def test_best_quotes_ordered_by_first_appearance():
    best = find_best_quotes(market(("Away", 2.0, "X"), ("Home", 2.0, "Y"), ("Away", 2.1, "Z")))
    assert list(best) == ["Away", "Home"]
    assert best["Away"].bookmaker == "Z"


def test_lower_quote_never_changes_best():
    base = [("Home", 2.3, "A"), ("Away", 1.8, "B"), ("Home", 2.1, "C")]
    before = find_best_quotes(market(*base))
    for extra in [("Home", 2.29, "D"), ("Home", 1.01, "E"), ("Away", 1.5, "F")]:
        after = find_best_quotes(market(*base, extra))
        assert after == before


def test_invalid_prices_are_skipped_and_reported():
    rejected = []
    best = find_best_quotes(
        market(("Home", 1.0, "Bad"), ("Home", 2.1, "X"), ("Away", 0.5, "Bad"), ("Away", 2.05, "Y"), ("Draw", "x", "Z")),
        rejected=rejected,
    )
    assert set(best) == {"Home", "Away"}
    assert best["Home"].bookmaker == "X"
    assert len(rejected) == 3
    assert all(isinstance(e, InvalidPriceError) for e in rejected)


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_each_skipped_quote_logs_one_warning_naming_the_bookmaker():
    handler = RecordingHandler()
    arb_logger = logging.getLogger("arbdash.arb")
    arb_logger.addHandler(handler)
    try:
        find_best_quotes(
            market(("Home", 1.0, "BadBook"), ("Home", 2.1, "X"), ("Away", float("nan"), "NanBook"), ("Away", 2.05, "Y"))
        )
    finally:
        arb_logger.removeHandler(handler)

    warnings = [r for r in handler.records if r.levelno == logging.WARNING]
    assert len(warnings) == 2
    assert "BadBook" in warnings[0].getMessage()
    assert "NanBook" in warnings[1].getMessage()


def test_invalid_prices_leaving_one_outcome_is_insufficient():
    with pytest.raises(InsufficientMarketError):
        evaluate(market(("Home", 2.5, "X"), ("Away", 1.0, "Y"), ("Away", -3.0, "Z")), 100)


def test_empty_market_is_insufficient():
    with pytest.raises(InsufficientMarketError):
        find_best_quotes(Market())


def test_market_accepts_list_and_stays_hashable():
    m = Market(outcomes=[Outcome("A", 2.0, "X"), Outcome("B", 2.0, "Y")])
    assert isinstance(m.outcomes, tuple)
    assert m.names() == ("A", "B")
    hash(m)


def test_insufficient_reason_constant_is_distinct():
    assert INSUFFICIENT_OUTCOMES != NO_EDGE
