"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Race plan visualization: target pace per segment colored by terrain, with
aid station markers.
"""

from __future__ import annotations

import altair as alt
import pandas as pd
import streamlit as st
from streamlit.logger import get_logger

from services.race.models import Plan
from utils.constants import AID_STATION_COLOR, TERRAIN_COLORS

logger = get_logger(__name__)


def segments_frame(plan: Plan) -> pd.DataFrame:
    """One row per segment with the columns the chart encodes."""
    return pd.DataFrame(
        [
            {
                "index": s.index,
                "startKm": s.start_km,
                "endKm": s.end_km,
                "terrain": s.terrain,
                "paceMinPerKm": round(s.target_pace_min_per_km, 2),
                "paceLabel": s.target_pace_label,
                "gradePct": round(s.average_grade_pct, 1),
                "effort": s.effort_score,
            }
            for s in plan.segments
        ],
        columns=["index", "startKm", "endKm", "terrain", "paceMinPerKm", "paceLabel", "gradePct", "effort"],
    )


def aid_stations_frame(plan: Plan) -> pd.DataFrame:
    return pd.DataFrame(
        [{"atKm": a.at_km, "reason": a.reason} for a in plan.aid_stations],
        columns=["atKm", "reason"],
    )


def build_plan_chart(plan: Plan) -> alt.LayerChart:
    seg_df = segments_frame(plan)
    domain = list(TERRAIN_COLORS.keys())
    bars = (
        alt.Chart(seg_df)
        .mark_bar(opacity=0.85)
        .encode(
            x=alt.X("startKm:Q", title="Distance (km)"),
            x2="endKm:Q",
            y=alt.Y("paceMinPerKm:Q", title="Allure cible (min/km)", scale=alt.Scale(zero=False)),
            color=alt.Color(
                "terrain:N",
                scale=alt.Scale(domain=domain, range=[TERRAIN_COLORS[t] for t in domain]),
                title="Terrain",
            ),
            tooltip=[
                alt.Tooltip("index:Q", title="Segment"),
                alt.Tooltip("paceLabel:N", title="Allure"),
                alt.Tooltip("gradePct:Q", title="Pente (%)"),
                alt.Tooltip("effort:Q", title="Effort"),
            ],
        )
    )
    aid_df = aid_stations_frame(plan)
    rules = (
        alt.Chart(aid_df)
        .mark_rule(color=AID_STATION_COLOR, strokeDash=[4, 3])
        .encode(x="atKm:Q", tooltip=[alt.Tooltip("reason:N", title="Ravito")])
    )
    return alt.layer(bars, rules).properties(height=320)


def render_plan_chart(plan: Plan) -> None:
    if not plan.segments:
        st.warning("Aucun segment à afficher.")
        return
    logger.debug("Rendering plan chart: %d segments", len(plan.segments))
    st.altair_chart(build_plan_chart(plan), use_container_width=True)
