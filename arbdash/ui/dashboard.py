from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from typing import List

# Ensure project root is on sys.path when running via Streamlit
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import streamlit as st

from arbdash.config.constants import SORT_OPTIONS
from arbdash.config.settings import settings
from arbdash.core.arb import evaluate
from arbdash.core.models import EventOpportunity, Market, NoArbitrage, Outcome
from arbdash.core.odds import format_odds, hedge_profits
from arbdash.core.scanner import (
    describe_no_arbitrage,
    filter_min_return,
    format_opportunity_text,
    scan_games,
    sort_opportunities,
)
from arbdash.main import build_sources, load_games
from arbdash.utils.notifications import Notification, Notifier
from arbdash.utils.validation import InsufficientMarketError, ValidationError


st.set_page_config(page_title="Arbitrage Dashboard", layout="wide")
st.title("Sports Arbitrage Dashboard")


@st.cache_data(ttl=settings.polling.refresh_seconds)
def load_games_sync(live: bool):
    async def _run():
        sources = build_sources(live)
        try:
            return await load_games(sources)
        finally:
            for s in sources:
                await s.close()

    return asyncio.run(_run())


def _toast(note: Notification) -> None:
    st.toast(f"**{note.title}**\n\n{note.body}")


# One notifier per browser session, closed when the user turns alerts off
if "notifier" not in st.session_state:
    st.session_state.notifier = Notifier(sink=_toast)
notifier: Notifier = st.session_state.notifier


def render_opportunities(opps: List[EventOpportunity]):
    if not opps:
        st.info("No arbitrage opportunities at current prices.")
        return
    rows = []
    for o in opps:
        game, opp = o.game, o.opportunity
        rows.append(
            {
                "event": f"{game.home_team} vs {game.away_team}",
                "sport": game.sport_title,
                "start": game.commence_time.strftime("%Y-%m-%d %H:%M") if game.commence_time else "TBD",
                "return %": round(opp.roi_percent, 2),
                "profit": f"${opp.profit:.2f}",
                "stake": f"${opp.total_stake:.2f}",
                "confidence": o.confidence,
                "bets": " / ".join(f"{a.outcome_name} @ {a.price:.2f} ({a.bookmaker})" for a in opp.allocations),
                "source": game.source,
            }
        )
    st.dataframe(rows, width="stretch", hide_index=True)


def render_best_summary(opps: List[EventOpportunity]):
    if not opps:
        return
    best = max(opps, key=lambda o: o.opportunity.roi_percent)
    opp = best.opportunity
    st.markdown("#### Best opportunity")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Return", f"{opp.roi_percent:.2f}%")
    c2.metric("Guaranteed profit", f"${opp.profit:.2f}")
    c3.metric("Implied margin", f"{opp.implied_margin * 100:.2f}%")
    c4.metric("Legs", str(len(opp.allocations)))
    st.caption(f"{best.game.home_team} vs {best.game.away_team} · {best.game.sport_title} · {best.game.source}")


def render_detail(o: EventOpportunity):
    opp = o.opportunity
    rows = []
    for a in opp.allocations:
        decimal, american = format_odds(a.price)
        rows.append(
            {
                "outcome": a.outcome_name,
                "bookmaker": a.bookmaker,
                "odds": f"{decimal} ({american})",
                "stake": f"${a.stake:.2f}",
                "payout": f"${a.payout:.2f}",
            }
        )
    st.dataframe(rows, width="stretch", hide_index=True)
    st.code(format_opportunity_text(o), language=None)

    st.markdown("##### Hedge calculator")
    st.caption("Adjust stakes to see the profit for each outcome. Defaults are the equal-payout split.")
    cols = st.columns(len(opp.allocations))
    stakes = []
    for col, a in zip(cols, opp.allocations):
        stakes.append(
            col.number_input(
                f"{a.outcome_name} stake ($)",
                min_value=0.0,
                value=round(a.stake, 2),
                step=1.0,
                key=f"hedge-{o.game.id}-{a.outcome_name}",
            )
        )
    profits = hedge_profits([a.price for a in opp.allocations], stakes)
    for col, a, p in zip(cols, opp.allocations, profits):
        col.metric(f"If {a.outcome_name} wins", f"${p:.2f}")


def render_calculator(default_stake: float):
    st.markdown("#### Arbitrage calculator")
    n = st.radio("Outcomes", [2, 3], horizontal=True)
    stake = st.number_input("Total stake ($)", min_value=0.0, value=float(default_stake), step=100.0, key="calc-stake")
    cols = st.columns(n)
    defaults = [2.10, 2.05, 4.50]
    outcomes = []
    for i, col in enumerate(cols):
        price = col.number_input(f"Odds (outcome {i + 1})", min_value=1.0, value=defaults[i], step=0.01, key=f"calc-odds-{i}")
        outcomes.append(Outcome(name=f"Outcome {i + 1}", price=price, bookmaker=f"Bookmaker {i + 1}"))
    try:
        result = evaluate(Market(outcomes=tuple(outcomes)), stake)
    except (ValidationError, InsufficientMarketError) as e:
        st.warning(str(e))
        return
    if isinstance(result, NoArbitrage):
        st.info(describe_no_arbitrage(result))
        return
    c1, c2, c3 = st.columns(3)
    c1.metric("Guaranteed return", f"${result.guaranteed_return:.2f}")
    c2.metric("Profit", f"${result.profit:.2f}")
    c3.metric("ROI", f"{result.roi_percent:.2f}%")
    st.dataframe(
        [{"outcome": a.outcome_name, "odds": a.price, "stake": round(a.stake, 2), "payout": round(a.payout, 2)} for a in result.allocations],
        width="stretch",
        hide_index=True,
    )


with st.sidebar:
    st.markdown("### Controls")
    data_mode = st.radio("Data", ["Demo data", "Live data"], index=1 if settings.live else 0)
    refresh = st.button("Refresh odds", type="primary")
    st.caption("Demo uses randomized quotes. Live fetches The Odds API and RapidAPI.")

    st.markdown("### Staking")
    total_stake = st.number_input(
        "Total stake ($)", min_value=1.0, max_value=1_000_000.0, value=float(settings.staking.total_stake), step=50.0
    )
    min_return = st.number_input(
        "Minimum return (%)", min_value=0.0, max_value=100.0, value=float(settings.staking.min_roi_percent), step=0.1
    )
    sort_by = st.selectbox("Sort by", SORT_OPTIONS, index=0)

    st.markdown("### Alerts")
    alerts_on = st.checkbox("Notify on new opportunities", value=True)
    if st.button("Clear alert history"):
        notifier.reset()

    st.markdown("### Env status")
    st.write(f"Odds API: {'OK' if settings.odds_api.api_key else 'missing'}")
    st.write(f"RapidAPI: {'OK' if settings.rapid_api.api_key else 'missing'}")

if alerts_on and notifier.closed:
    st.session_state.notifier = notifier = Notifier(sink=_toast)
elif not alerts_on and not notifier.closed:
    notifier.close()

if refresh:
    load_games_sync.clear()

live = data_mode == "Live data"
if live and not (settings.odds_api.api_key or settings.rapid_api.api_key):
    st.error("No API keys found. Set THE_ODDS_API_KEY and/or RAPID_API_KEY, or switch to demo data.")
    st.stop()

with st.spinner("Fetching odds..."):
    games, statuses = load_games_sync(live)

scan = scan_games(games, total_stake)
opps = sort_opportunities(filter_min_return(scan.opportunities, min_return), sort_by)
for o in opps:
    notifier.notify_opportunity(o)

tab_opps, tab_calc, tab_diag = st.tabs(["Opportunities", "Calculator", "Diagnostics"])

with tab_opps:
    render_best_summary(opps)
    render_opportunities(opps)
    if opps:
        labels = {f"{o.game.home_team} vs {o.game.away_team} ({o.game.source})": o for o in opps}
        choice = st.selectbox("Details for", list(labels))
        render_detail(labels[choice])

with tab_calc:
    render_calculator(total_stake)

with tab_diag:
    st.markdown("#### Sources")
    st.dataframe(
        [
            {
                "source": s.name,
                "status": "OK" if s.ok else "error",
                "games": s.count,
                "fetched at": s.fetched_at.strftime("%H:%M:%S") if s.fetched_at else "",
                "error": s.error or "",
            }
            for s in statuses
        ],
        width="stretch",
        hide_index=True,
    )
    st.markdown("#### Last scan")
    st.write(
        {
            "games": scan.evaluated,
            "opportunities": len(scan.opportunities),
            "no edge": scan.no_edge,
            "insufficient outcomes": scan.insufficient,
            "shown after filter": len(opps),
            "log level": os.environ.get("LOG_LEVEL", "INFO"),
        }
    )
