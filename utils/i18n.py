"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Human-readable strings for the race plan (English and French).
"""

from __future__ import annotations

from typing import Any, Literal

Locale = Literal["en", "fr"]

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "slow_zone_reason": "Steep climb: protect heart rate and shorten stride.",
        "push_zone_reason": "Runnable section: progressive acceleration possible.",
        "note_start_controlled": "Start controlled until {km} to preserve glycogen.",
        "note_keep_fueling": "Keep fueling before you feel empty.",
        "note_manage_climbs": "Use climbs to manage effort, not to chase pace.",
        "aid_periodic": "Periodic refill point",
        "aid_top_climb": "Top of climb transition",
        "aid_terrain_high": "Natural terrain high point",
        "strategy_start": "Controlled start, keep breathing easy.",
        "strategy_climb": "Climb management: shorten stride and cap effort.",
        "strategy_push": "Progressive push if fueling is on track.",
        "strategy_steady": "Steady execution and regular fueling.",
        "hydration_guideline": "{rate} ml/h adjusted by effort and weather",
        "nutrition_guideline": "{rate} g carbs/h",
        "feed_kind": "gel/drink mix",
    },
    "fr": {
        "slow_zone_reason": "Montée raide : protège la fréquence cardiaque et raccourcis la foulée.",
        "push_zone_reason": "Section roulante : accélération progressive possible.",
        "note_start_controlled": "Départ contrôlé jusqu'à {km} pour préserver le glycogène.",
        "note_keep_fueling": "Hydrate-toi et mange avant d'avoir un coup de mou.",
        "note_manage_climbs": "Utilise les montées pour gérer l'effort, pas pour chasser l'allure.",
        "aid_periodic": "Ravito périodique",
        "aid_top_climb": "Transition en haut de montée",
        "aid_terrain_high": "Point haut naturel du terrain",
        "strategy_start": "Départ contrôlé, respiration facile.",
        "strategy_climb": "Gestion de montée : raccourcis la foulée et plafonne l'effort.",
        "strategy_push": "Accélération progressive si l'hydratation/nutrition est bien tenue.",
        "strategy_steady": "Exécution régulière et ravitaillement constant.",
        "hydration_guideline": "{rate} ml/h ajusté selon l'effort et la météo",
        "nutrition_guideline": "{rate} g glucides/h",
        "feed_kind": "gel/boisson d'effort",
    },
}


def normalize_locale(raw: Any) -> Locale:
    value = str(raw or "").strip().lower()
    return "fr" if value.startswith("fr") else "en"


def translate(locale: str, key: str, **kwargs: Any) -> str:
    """Return the message for key in locale, falling back to the key itself."""
    template = MESSAGES.get(locale, MESSAGES["en"]).get(key, key)
    return template.format(**kwargs) if kwargs else template
