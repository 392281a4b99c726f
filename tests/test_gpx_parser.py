"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for GPX parser.
"""

from __future__ import annotations

import math

from utils.gpx_parser import TRACK_COLUMNS, parse_gpx_track_points


def test_parse_namespaced_gpx():
    gpx_content = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <trkseg>
      <trkpt lat="45.0" lon="5.0"><ele>100</ele></trkpt>
      <trkpt lat="45.1" lon="5.1"><ele>110.5</ele></trkpt>
      <trkpt lat="45.2" lon="5.2"></trkpt>
    </trkseg>
  </trk>
</gpx>"""
    df = parse_gpx_track_points(gpx_content)
    assert list(df.columns) == TRACK_COLUMNS
    assert len(df) == 3
    assert df["elevationM"].iloc[1] == 110.5
    assert math.isnan(df["elevationM"].iloc[2])


def test_parse_gpx_10_namespace_and_bytes():
    gpx_content = b"""<gpx version="1.0" xmlns="http://www.topografix.com/GPX/1/0">
<trk><trkseg>
<trkpt lat="45.0" lon="5.0"><ele>100</ele></trkpt>
<trkpt lat="45.001" lon="5.0"><ele>101</ele></trkpt>
</trkseg></trk></gpx>"""
    df = parse_gpx_track_points(gpx_content)
    assert len(df) == 2


def test_points_without_coordinates_are_skipped():
    gpx_content = """<gpx><trk><trkseg>
<trkpt lat="45.0" lon="5.0"/>
<trkpt lat="abc" lon="5.0"/>
<trkpt lon="5.0"/>
<trkpt lat="inf" lon="5.0"/>
<trkpt lat="45.2" lon="5.2"><ele>NaN</ele></trkpt>
</trkseg></trk></gpx>"""
    df = parse_gpx_track_points(gpx_content)
    assert len(df) == 2
    assert df["elevationM"].isna().all()


def test_empty_and_garbage_payloads():
    assert parse_gpx_track_points("").empty
    assert parse_gpx_track_points("   ").empty
    assert parse_gpx_track_points("not xml at all").empty
    assert parse_gpx_track_points("<gpx></gpx>").empty
