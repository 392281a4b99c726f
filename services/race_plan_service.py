"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Race plan assembly: orchestrates baseline, course, segmentation, pacing,
fueling and aid stations into one Plan.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from streamlit.logger import get_logger

from services.activity_history import ActivityHistoryProvider
from services.race.aid_stations import AidStationPlanner
from services.race.athlete_baseline import AthleteBaselineEstimator
from services.race.course_profile import CourseProfileBuilder
from services.race.fueling import FuelAllocator
from services.race.models import (
    AthleteBaseline,
    CourseProfile,
    Plan,
    PlanRequest,
    PlanSummary,
    RaceContext,
    Segment,
)
from services.race.pacing import PacingModel, distance_penalty_pct
from services.race.segmentation import SegmentationService, TerrainSynthesizer
from utils.coercion import clamp
from utils.config import Config
from utils.constants import HISTORY_DAYS_DEFAULT, HISTORY_LIMIT_DEFAULT
from utils.errors import InvalidInput
from utils.formatting import round2
from utils.time import iso_timestamp, utc_now

logger = get_logger(__name__)

CONFIDENCE_BASE = 38.0
CONFIDENCE_RANGE = (20.0, 96.0)


def confidence_score(request: PlanRequest, profile: CourseProfile, athlete: AthleteBaseline) -> int:
    """How much the plan can be trusted given the inputs it was built from."""
    score = CONFIDENCE_BASE
    if profile.has_track:
        score += 20.0
    score += min(28.0, 0.7 * athlete.activities_sample_count)
    if request.weight_kg is not None:
        score += 5.0
    if request.has_weather_override:
        score += 5.0
    return int(round(clamp(score, *CONFIDENCE_RANGE)))


def weighted_pace(segments: Sequence[Segment]) -> float:
    distance = sum(s.distance_km for s in segments)
    if distance <= 0:
        return 0.0
    return sum(s.target_pace_min_per_km * s.distance_km for s in segments) / distance


class RacePlanService:
    """Build race-day execution plans.

    The service holds no per-request state: every call to build_plan works on
    local values, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        history_provider: ActivityHistoryProvider,
        config: Optional[Config] = None,
        clock: Optional[Callable[[], dt.datetime]] = None,
        synthesizer: Optional[TerrainSynthesizer] = None,
    ) -> None:
        self.config = config
        self.clock = clock or utc_now
        self.default_locale = config.default_locale if config else "en"
        self.baseline = AthleteBaselineEstimator(
            history_provider,
            history_days=config.history_days if config else HISTORY_DAYS_DEFAULT,
            history_limit=config.history_limit if config else HISTORY_LIMIT_DEFAULT,
            clock=self.clock,
        )
        self.profiles = CourseProfileBuilder()
        self.segmentation = SegmentationService(synthesizer)
        self.pacing = PacingModel()
        self.fuel = FuelAllocator()
        self.aid_stations = AidStationPlanner()

    def parse_request(self, raw_input: Union[PlanRequest, Mapping[str, Any]]) -> PlanRequest:
        if isinstance(raw_input, PlanRequest):
            return raw_input
        try:
            return PlanRequest.from_input(raw_input, default_locale=self.default_locale)
        except InvalidInput as exc:
            logger.warning("Rejected plan request: %s", exc.message)
            raise

    def build_plan(self, user_id: str, raw_input: Union[PlanRequest, Mapping[str, Any]]) -> Plan:
        """Build a full plan for one athlete and one course.

        Args:
            user_id: Athlete identifier passed to the history provider
            raw_input: A PlanRequest or a camelCase input mapping

        Returns:
            Plan: the assembled plan; nothing is returned on failure

        Raises:
            InvalidInput: the request or the course cannot be used
            UpstreamUnavailable: the activity history could not be fetched
        """
        request = self.parse_request(raw_input)
        locale = request.locale

        athlete = self.baseline.estimate(user_id, request.weight_kg)
        profile = self.profiles.build(request)
        context = RaceContext.from_overrides(request.temperature_c, request.humidity_pct)

        sections = self.segmentation.segment_course(profile)
        segments = self.pacing.pace_sections(sections, athlete, context, profile.distance_km, locale)
        segments = self.fuel.allocate(segments, athlete, context)

        hydration = self.fuel.hydration_plan(segments, athlete, locale)
        nutrition = self.fuel.nutrition_plan(segments, athlete, locale)
        guidance = self.pacing.build_guidance(segments, athlete, profile.distance_km, locale)
        aid_stations = self.aid_stations.place(profile, segments, locale)

        summary = PlanSummary(
            distance_km=round2(profile.distance_km),
            elevation_gain_m=profile.elevation_gain_m,
            estimated_duration_min=sum(s.estimated_duration_min for s in segments),
            average_target_pace_min_per_km=weighted_pace(segments),
            total_calories_kcal=nutrition.total_calories_kcal,
            total_carbs_g=nutrition.total_carbs_g,
            total_hydration_ml=hydration.total_ml,
            runner_type=athlete.runner_type,
            distance_penalty_pct=distance_penalty_pct(profile.distance_km, athlete.endurance_score),
            confidence_score=confidence_score(request, profile, athlete),
        )
        logger.info(
            "Built %s plan for user %s: %d segments, %d activities, %d aid stations",
            request.mode,
            user_id,
            len(segments),
            athlete.activities_sample_count,
            len(aid_stations),
        )
        return Plan(
            source=profile.source,
            athlete=athlete,
            summary=summary,
            context=context,
            pacing=guidance,
            hydration=hydration,
            nutrition=nutrition,
            aid_stations=aid_stations,
            segments=segments,
            generated_at=iso_timestamp(self.clock()),
        )
