"""
Player Prop Dashboard
Run with: streamlit run app.py

Uses the same ProbabilityCalculator as the API and CLI.
"""

import logging

import streamlit as st
import pandas as pd

from propedge.config import Config
from propedge.constants import STAT_TYPES
from propedge.exceptions import PropEdgeError
from propedge.models.context import GameContext
from propedge.ops.logging import configure_logging
from propedge.services import build_services
from propedge.utils.odds import format_pct

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Player Props", page_icon="🏀", layout="wide")


@st.cache_resource
def get_services():
    configure_logging()
    return build_services(Config.load())


@st.cache_data(ttl=300)
def get_player_summaries():
    return [dataset.summary() for dataset in get_services().store.list_players()]


services = get_services()
calculator = services.calculator

st.title("🏀 Player Prop Analyzer")

# Sidebar
st.sidebar.header("Settings")
use_odds = st.sidebar.checkbox("Price against live odds", value=bool(services.config.odds_api_key))
st.sidebar.caption(f"Min games: {services.config.min_games_for_prediction}")

tab1, tab2 = st.tabs(["🎯 Predict", "📊 Players"])

with tab1:
    summaries = get_player_summaries()
    names = [summary["name"] for summary in summaries]

    col1, col2, col3 = st.columns([2, 1, 1])
    with col1:
        player = st.selectbox("Player", names) if names else st.text_input("Player Name")
    with col2:
        stat_type = st.selectbox("Prop", STAT_TYPES)
    with col3:
        line = st.number_input("Line", min_value=0.0, value=20.5, step=0.5)

    col1, col2, col3 = st.columns(3)
    with col1:
        location = st.radio("Location", ["Home", "Away"], horizontal=True)
    with col2:
        opponent = st.text_input("Opponent", "")
    with col3:
        minutes = st.number_input("Expected minutes (0 = use average)", min_value=0.0, value=0.0, step=1.0)

    if st.button("Calculate", type="primary"):
        context = GameContext(
            is_home=location == "Home",
            opponent=opponent or None,
            expected_minutes=minutes or None,
        )
        next_match = None
        with st.spinner("Calculating probability..."):
            try:
                if use_odds:
                    team = next((s["team"] for s in summaries if s["name"] == player), None)
                    next_match = services.odds_client.get_next_match(team) if team else None
                    event_id = next_match["id"] if next_match else None
                    result = calculator.predict_with_odds(player, stat_type, line, context, event_id=event_id)
                else:
                    result = calculator.calculate_probability(player, stat_type, line, context)
            except PropEdgeError as exc:
                logger.warning("Dashboard prediction failed: %s", exc)
                st.error(str(exc))
                st.stop()

        rec = result.recommendation
        st.subheader(f"{result.player} - {result.prop}")
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Recommendation", rec.bet, rec.strength or None)
        col2.metric("Over", format_pct(result.probability.over))
        col3.metric("Under", format_pct(result.probability.under))
        col4.metric("Confidence", result.analysis.confidence.level, format_pct(result.analysis.confidence.score))

        for reason in rec.reasoning:
            st.write(f"- {reason}")

        analysis = result.analysis
        st.divider()
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Mean", f"{analysis.summary.mean:.1f}")
        col2.metric("Weighted Avg", f"{analysis.weighted_avg:.1f}")
        col3.metric("Hit Rate", format_pct(analysis.historical.over_rate),
                    f"{analysis.historical.over_count}/{analysis.historical.total_games}")
        col4.metric("Trend", analysis.trend.direction, f"{analysis.trend.slope:+.2f}/game")

        if result.ml.available:
            st.caption(
                f"{result.ml.model}: {result.ml.prediction:.1f} "
                f"(confidence {format_pct(result.ml.confidence)}) | method {result.probability.method}"
            )
        else:
            st.caption(f"ML unavailable: {result.ml.error}")

        if analysis.adjustments:
            st.dataframe(
                pd.DataFrame([adj.to_dict() for adj in analysis.adjustments]),
                hide_index=True,
                use_container_width=True,
            )

        if result.odds is not None:
            st.divider()
            odds = result.odds.to_dict()
            if next_match:
                st.markdown(f"**Next match:** vs {next_match['opponent']} ({next_match['date']})")
            if not odds["available"]:
                st.info(odds["message"])
            else:
                rows = [{"Bookmaker": name, **value} for name, value in odds["bookmakers"].items()]
                st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
                best = odds["best_value"]
                st.success(f"{odds['recommendation']} {best['bookmaker'] or ''} {best['ev'] or ''}")

with tab2:
    st.subheader("Stored Players")
    if st.button("Refresh"):
        get_player_summaries.clear()

    summaries = get_player_summaries()
    if not summaries:
        st.info("No stored players. Collect one with `propedge collect --player NAME`.")
    else:
        frame = pd.DataFrame(summaries)
        frame["seasons"] = frame["seasons"].apply(", ".join)
        st.dataframe(frame, hide_index=True, use_container_width=True)

        selected = st.selectbox("Game log", [s["name"] for s in summaries])
        dataset = services.store.find_by_name(selected)
        if dataset is not None:
            logs = dataset.to_frame()
            cols = ["date", "season", "opponent", "home", "minutes", "points", "rebounds", "assists", "pra"]
            available = [c for c in cols if c in logs.columns]
            st.dataframe(logs[available], hide_index=True, use_container_width=True)
