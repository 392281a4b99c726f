"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Streamlit entry point for the race-day planner.
"""

import pandas as pd
import streamlit as st
from streamlit.logger import get_logger

from graph.plan_chart import render_plan_chart
from persistence.csv_storage import CsvStorage
from services.activity_history import CsvActivityHistory, StravaActivityHistory
from services.race_plan_service import RacePlanService
from utils.config import Config, load_config, redact
from utils.errors import PlannerError
from utils.formatting import fmt_decimal, fmt_int, fmt_km, format_pace

logger = get_logger(__name__)


def _history_provider(cfg: Config, use_strava: bool):
    if use_strava and cfg.strava_access_token:
        return StravaActivityHistory(access_token=cfg.strava_access_token)
    return CsvActivityHistory(CsvStorage(base_dir=cfg.data_dir))


def _plan_form(cfg: Config) -> dict:
    with st.sidebar:
        st.header("Course")
        mode = st.radio("Source", ["distance", "gpx"], horizontal=True)
        raw: dict = {"mode": mode}
        if mode == "distance":
            raw["distanceKm"] = st.number_input("Distance (km)", min_value=0.0, value=21.1, step=0.1)
            raw["elevationGainM"] = st.number_input("D+ (m)", min_value=0.0, value=0.0, step=10.0)
        else:
            upload = st.file_uploader("Trace GPX", type=["gpx"])
            raw["gpx"] = upload.getvalue().decode("utf-8", errors="replace") if upload else ""

        st.header("Athlète")
        raw["locale"] = st.selectbox("Langue", ["fr", "en"], index=0 if cfg.default_locale == "fr" else 1)
        if st.checkbox("Poids connu"):
            raw["weightKg"] = st.number_input("Poids (kg)", min_value=40.0, max_value=130.0, value=70.0)
        if st.checkbox("Météo prévue"):
            raw["temperatureC"] = st.slider("Température (°C)", -10, 45, 18)
            raw["humidityPct"] = st.slider("Humidité (%)", 5, 100, 55)
    return raw


def _render_summary(plan, locale: str) -> None:
    summary = plan.summary
    cols = st.columns(5)
    cols[0].metric("Distance", fmt_km(summary.distance_km, locale))
    cols[1].metric("Durée estimée", f"{fmt_int(summary.estimated_duration_min, locale)} min")
    cols[2].metric("Allure moyenne", format_pace(summary.average_target_pace_min_per_km))
    cols[3].metric("Glucides", f"{fmt_int(summary.total_carbs_g, locale)} g")
    cols[4].metric("Confiance", f"{summary.confidence_score}/100")
    st.caption(
        f"Profil {summary.runner_type} · pénalité distance "
        f"{fmt_decimal(summary.distance_penalty_pct, 1, locale)} %"
    )


def main():
    st.set_page_config(page_title="Race Day Planner", layout="wide")
    cfg = load_config()
    st.session_state.setdefault("app_config", cfg)
    st.title("Race Day Planner")

    with st.expander("Environment (sanitized)", expanded=False):
        st.write(
            {
                "DATA_DIR": str(cfg.data_dir),
                "STRAVA_ACCESS_TOKEN": redact(cfg.strava_access_token),
            }
        )

    athlete_id = st.text_input("Athlete ID", value="1")
    use_strava = st.toggle("Historique Strava", value=bool(cfg.strava_access_token))
    raw = _plan_form(cfg)

    if not st.button("Générer le plan", type="primary"):
        return

    service = RacePlanService(_history_provider(cfg, use_strava), config=cfg)
    try:
        plan = service.build_plan(athlete_id, raw)
    except PlannerError as exc:
        logger.warning("Plan generation failed (%s): %s", exc.status_code, exc.message)
        st.error(exc.message)
        return

    locale = raw.get("locale", cfg.default_locale)
    _render_summary(plan, locale)
    render_plan_chart(plan)

    st.subheader("Segments")
    st.dataframe(pd.DataFrame([s.to_dict() for s in plan.segments]), hide_index=True)
    st.subheader("Ravitaillements")
    st.dataframe(pd.DataFrame([a.to_dict() for a in plan.aid_stations]), hide_index=True)
    for note in plan.pacing.notes:
        st.info(note)
    with st.expander("JSON", expanded=False):
        st.json(plan.to_dict())


if __name__ == "__main__":
    main()
