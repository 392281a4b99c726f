"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

GPX parser for course track points.

Reads every trkpt regardless of the GPX namespace version. Timestamps are
ignored: a course track only needs positions and optional elevation.
"""

from __future__ import annotations

import math
from typing import Optional

import pandas as pd
from lxml import etree
from streamlit.logger import get_logger

logger = get_logger(__name__)

TRACK_COLUMNS = ["lat", "lon", "elevationM"]


def _to_float(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except (ValueError, TypeError):
        return None
    return value if math.isfinite(value) else None


def parse_gpx_track_points(gpx: str | bytes) -> pd.DataFrame:
    """Parse a GPX payload into a DataFrame of track points.

    Args:
        gpx: Raw GPX document, as text or bytes

    Returns:
        DataFrame with columns lat, lon, elevationM (NaN when a point has no
        usable elevation). Empty DataFrame if nothing usable is found.
    """
    payload = gpx.encode("utf-8") if isinstance(gpx, str) else gpx
    if not payload or not payload.strip():
        return pd.DataFrame(columns=TRACK_COLUMNS)

    parser = etree.XMLParser(recover=True, huge_tree=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(payload, parser=parser)
    except etree.XMLSyntaxError as e:
        logger.warning(f"Invalid GPX XML: {e}")
        return pd.DataFrame(columns=TRACK_COLUMNS)

    if root is None:
        logger.warning("GPX payload could not be parsed")
        return pd.DataFrame(columns=TRACK_COLUMNS)

    trkpts = root.xpath(".//*[local-name()='trkpt']")
    if not trkpts:
        logger.debug("No track points found in GPX")
        return pd.DataFrame(columns=TRACK_COLUMNS)

    rows = []
    skipped = 0
    for trkpt in trkpts:
        lat = _to_float(trkpt.get("lat"))
        lon = _to_float(trkpt.get("lon"))
        if lat is None or lon is None:
            skipped += 1
            continue

        ele_nodes = trkpt.xpath("./*[local-name()='ele']")
        elevation = _to_float(ele_nodes[0].text) if ele_nodes else None

        rows.append({"lat": lat, "lon": lon, "elevationM": elevation})

    if skipped:
        logger.debug(f"Skipped {skipped} track points without usable coordinates")

    df = pd.DataFrame(rows, columns=TRACK_COLUMNS)
    df["elevationM"] = pd.to_numeric(df["elevationM"], errors="coerce")
    logger.debug(f"Parsed GPX: {len(df)} points")
    return df
