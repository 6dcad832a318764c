from datetime import datetime, timezone

import pytest

from arbdash.core.models import INSUFFICIENT_OUTCOMES, NO_EDGE, BookmakerOdds, Game, NoArbitrage, Outcome
from arbdash.core.normalize import dedupe_games, market_from_game
from arbdash.core.scanner import (
    confidence_for,
    describe_no_arbitrage,
    filter_min_return,
    format_opportunity_text,
    scan_games,
    sort_opportunities,
)
from arbdash.utils.validation import InvalidStakeError


def book(title, prices, market_key="h2h"):
    return BookmakerOdds(
        key=title.lower(),
        title=title,
        market_key=market_key,
        outcomes=tuple(Outcome(name=n, price=p, bookmaker=title) for n, p in prices),
    )


def game(gid, books, day=1, home="Home", away="Away"):
    return Game(
        id=gid,
        source="test",
        sport_key="basketball_nba",
        sport_title="NBA",
        home_team=home,
        away_team=away,
        commence_time=datetime(2026, 11, day, 19, 0, tzinfo=timezone.utc),
        bookmakers=tuple(books),
    )


ARB = game("g1", [book("X", [("Home", 2.10), ("Away", 1.80)]), book("Y", [("Home", 1.75), ("Away", 2.05)])])
BIG_ARB = game(
    "g2",
    [book("X", [("Lakers", 2.40), ("Nets", 1.60)]), book("Y", [("Lakers", 1.50), ("Nets", 2.20)])],
    day=2,
    home="Lakers",
    away="Nets",
)
NO_EDGE = game("g3", [book("X", [("Home", 1.80), ("Away", 1.90)])], day=3)
ONE_SIDED = game("g4", [book("X", [("Home", 2.50)])], day=4)


def test_market_from_game_filters_market_and_keeps_order():
    g = game(
        "g",
        [
            book("X", [("Home", 2.0), ("Away", 1.9)]),
            book("X", [("Home", 1.5), ("Away", 2.5)], market_key="spreads"),
            book("Y", [("Home", 2.1), ("Away", 1.8)]),
        ],
    )
    m = market_from_game(g)
    assert [(o.bookmaker, o.name, o.price) for o in m.outcomes] == [
        ("X", "Home", 2.0),
        ("X", "Away", 1.9),
        ("Y", "Home", 2.1),
        ("Y", "Away", 1.8),
    ]


def test_dedupe_games_keeps_first():
    other = game("g1", [], home="Other")
    assert dedupe_games([ARB, other, NO_EDGE]) == [ARB, NO_EDGE]


def test_confidence_tiers():
    assert confidence_for(5.0) == "high"
    assert confidence_for(4.99) == "medium"
    assert confidence_for(2.0) == "medium"
    assert confidence_for(1.99) == "low"


def test_scan_games_counts_and_collects():
    result = scan_games([ARB, BIG_ARB, NO_EDGE, ONE_SIDED], 1000)
    assert result.evaluated == 4
    assert result.no_edge == 1
    assert result.insufficient == 1
    assert [o.game.id for o in result.opportunities] == ["g1", "g2"]
    first = result.opportunities[0].opportunity
    assert [(a.outcome_name, a.bookmaker) for a in first.allocations] == [("Home", "X"), ("Away", "Y")]


def test_scan_games_rejects_bad_stake():
    with pytest.raises(InvalidStakeError):
        scan_games([ARB], 0)


def test_filter_and_sort():
    opps = scan_games([ARB, BIG_ARB], 1000).opportunities
    # BIG_ARB: 1/2.4 + 1/2.2 = 0.871 -> ~14.8%, ARB: ~3.7%
    assert [o.game.id for o in sort_opportunities(opps, "return")] == ["g2", "g1"]
    assert [o.game.id for o in sort_opportunities(opps, "profit")] == ["g2", "g1"]
    assert [o.game.id for o in sort_opportunities(opps, "confidence")] == ["g2", "g1"]
    assert [o.game.id for o in sort_opportunities(opps, "date")] == ["g1", "g2"]
    assert [o.game.id for o in filter_min_return(opps, 5.0)] == ["g2"]
    with pytest.raises(ValueError):
        sort_opportunities(opps, "alphabetical")


def test_format_opportunity_text():
    opp = scan_games([ARB], 1000).opportunities[0]
    text = format_opportunity_text(opp)
    lines = text.splitlines()
    assert lines[0] == "Home vs Away"
    assert lines[1] == "NBA - 2026-11-01 19:00 UTC"
    assert lines[2].startswith("Return: 3.7")
    assert "Bet 1: Home" in lines
    assert "Odds: 2.10 (+110)" in lines
    assert "Bet 2: Away" in lines


def test_describe_no_arbitrage_with_and_without_margin():
    assert describe_no_arbitrage(NoArbitrage(NO_EDGE, 1.0819)) == (
        "No arbitrage: implied margin 108.19% (must be under 100%)."
    )
    assert describe_no_arbitrage(NoArbitrage(INSUFFICIENT_OUTCOMES)) == "No arbitrage: insufficient outcomes."
