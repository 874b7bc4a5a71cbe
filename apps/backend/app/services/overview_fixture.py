"""
overview_fixture.py — Canned Overview payload served when no real data exists.

Used when MongoDB is unreachable, when every date window came back empty,
or when filtering left nothing to draw. The payload is always tagged
is_demo=True so the dashboard can show its "sample data" badge.

The six hotspots are fixed; only occurred_at follows the caller's clock,
which keeps the payload reproducible in tests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from app.models.overview import (
    OverviewCorporateImpactSummary,
    OverviewEventSummary,
    OverviewMapData,
    OverviewMapStats,
    OverviewSignal,
)

_INVESTIGATE = "/search"

# Columns: id, lat, lon, type, impact, importance, confidence,
#          label_short, subtitle_short, impact_one_line
_SIGNALS = [
    ("1", -2.5,  28.8,  "security",      "regional", 85, 82, "DRC – North Kivu", "ADF activity escalation",        "Gold supply risk"),
    ("2", 25.2,  55.3,  "supply-chains", "global",   78, 76, "UAE – Dubai",      "Gold trade hub disruption",      "Precious metals flow"),
    ("3", 51.5,  -0.1,  "geopolitics",   "global",   90, 94, "UK – London",      "Sanctions policy update",        "Financial compliance"),
    ("4", 55.7,  37.6,  "energy",        "regional", 72, 88, "Russia – Moscow",  "Energy export reconfiguration",  "Gas supply routes"),
    ("5", 39.9,  116.4, "supply-chains", "global",   80, 79, "China – Beijing",  "Strategic minerals stockpiling", "Rare earth dominance"),
    ("6", 40.7,  -74.0, "markets",       "global",   88, 91, "USA – New York",   "Financial markets volatility",   "Commodity futures"),
]

_TOP_IMPACTS = [
    ("Barrick Gold", "Production disruption"),
    ("Gazprom",      "Route reconfiguration"),
    ("HSBC",         "Compliance costs"),
]

FIXTURE_SIGNAL_COUNT = len(_SIGNALS)


def build_fixture(now: datetime, stats: Optional[OverviewMapStats] = None) -> OverviewMapData:
    """
    Build the demo payload.

    `stats` lets the aggregator keep its real counters (how many rows were
    queried, which window was tried) while the map falls back to the demo
    markers. Without it the stats describe the fixture itself.
    """
    signals = [
        OverviewSignal(
            id=sid,
            lat=lat,
            lon=lon,
            type=sig_type,
            impact=impact,
            importance=importance,
            confidence=confidence,
            occurred_at=now,
            label_short=label,
            subtitle_short=subtitle,
            impact_one_line=impact_line,
            investigate_id=_INVESTIGATE,
        )
        for (sid, lat, lon, sig_type, impact, importance, confidence,
             label, subtitle, impact_line) in _SIGNALS
    ]

    top_events = [
        OverviewEventSummary(
            id=s.id,
            label_short=s.label_short,
            impact_one_line=s.impact_one_line,
            investigate_id=s.investigate_id,
            type=s.type,
        )
        for s in signals[:3]
    ]

    top_impacts = [
        OverviewCorporateImpactSummary(name=name, impact_one_line=line, investigate_id=_INVESTIGATE)
        for name, line in _TOP_IMPACTS
    ]

    if stats is None:
        stats = OverviewMapStats(final_count=FIXTURE_SIGNAL_COUNT, effective_date_range="demo")

    return OverviewMapData(
        signals=signals,
        top_events=top_events,
        top_impacts=top_impacts,
        is_demo=True,
        stats=stats,
    )
