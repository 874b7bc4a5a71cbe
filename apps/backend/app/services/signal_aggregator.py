"""
signal_aggregator.py — Build the Overview map payload from classified events.

HOW THE DATA FLOWS
──────────────────
  A. window widening   query the requested window; if empty, retry with the
                       next wider one (24h → 7d → 30d), never narrower
  B. row fetch         impact desc, recency desc, capped upstream (store)
  C. scope filters     watchlist → countries → enabled sources
  D. geo resolution    country, region, then a place name from the summary
  E. collision jitter  one marker per ~1 km cell; a second collision drops
  F. attribute filters min importance → enabled types → free-text search
  G. summaries         top 3 events (news-padded) + top 3 corporate impacts
  H. demo fallback     nothing left to draw → fixture, is_demo=True

Every step updates OverviewMapStats so tests and logs can see where rows
went. Nothing here raises on missing data: the worst case is the fixture.

State
─────
The occupied-coordinate set and jitter counter live in a _CoordinateGrid
created inside each aggregate() call. The geo tables are the only shared
data and they are read-only.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.models.overview import (
    AggregationParams,
    EventRow,
    OverviewCorporateImpactSummary,
    OverviewEventSummary,
    OverviewMapData,
    OverviewMapStats,
    OverviewSignal,
)
from app.services.event_classifier import classify, scope_of
from app.services.geo_resolver import GeoResolver, geo_resolver
from app.services.overview_fixture import build_fixture
from app.services.overview_store import OverviewStore
from app.services.top_events_enricher import TOP_EVENTS_TARGET, TopEventsEnricher

logger = logging.getLogger(__name__)

# ── Tunables ──────────────────────────────────────────────────────────────────

WINDOW_SEQUENCE: tuple[str, ...] = ("24h", "7d", "30d")
WINDOW_HOURS = {"24h": 24, "7d": 7 * 24, "30d": 30 * 24}

JITTER_DEGREES = 0.5       # ~50 km at the equator
COORD_KEY_DECIMALS = 2     # ~1 km cells

DEFAULT_IMPACT_SCORE = 0.5
DEFAULT_CONFIDENCE = 0.7
IMPORTANCE_RANGE = (30, 100)
CONFIDENCE_RANGE = (50, 100)

LABEL_MAX_LEN = 60
SUBTITLE_MAX_LEN = 80
IMPACT_FALLBACK_LEN = 60
IMPACT_LINE_MAX_LEN = 80
TOP_IMPACTS_LIMIT = 3


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _percent(value: float) -> int:
    """0–1 score → 0–100 integer, rounding halves up."""
    return int(math.floor(value * 100 + 0.5))


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


def windows_from(date_range: str) -> tuple[str, ...]:
    """The requested window followed by every wider one."""
    if date_range not in WINDOW_SEQUENCE:
        date_range = WINDOW_SEQUENCE[0]
    return WINDOW_SEQUENCE[WINDOW_SEQUENCE.index(date_range):]


class _CoordinateGrid:
    """Occupied marker cells for one aggregation call."""

    def __init__(self) -> None:
        self._used: set[str] = set()
        self._jitter_index = 0

    @staticmethod
    def _key(lat: float, lon: float) -> str:
        return f"{lat:.{COORD_KEY_DECIMALS}f},{lon:.{COORD_KEY_DECIMALS}f}"

    def place(self, lat: float, lon: float) -> Optional[tuple[float, float]]:
        """
        Claim a cell for (lat, lon), nudging once on collision.

        Latitude cycles 0/+0.5/−0.5 and longitude alternates −0.5/+0.5 with
        a running counter, so the sequence is reproducible for a given row
        order. Returns None when the nudged cell is also taken.
        """
        key = self._key(lat, lon)
        if key in self._used:
            self._jitter_index += 1
            lat += ((self._jitter_index % 3) - 1) * JITTER_DEGREES
            lon += JITTER_DEGREES if self._jitter_index % 2 == 0 else -JITTER_DEGREES
            key = self._key(lat, lon)
            if key in self._used:
                return None
        self._used.add(key)
        return lat, lon


class SignalAggregator:
    """
    Orchestrates one Overview map request.

    `store` is None when MongoDB is unavailable; the fixture is returned
    straight away in that case.
    """

    def __init__(
        self,
        store: Optional[OverviewStore],
        enricher: Optional[TopEventsEnricher] = None,
        resolver: GeoResolver = geo_resolver,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.enricher = enricher or TopEventsEnricher()
        self.resolver = resolver
        self.clock = clock

    async def aggregate(self, params: AggregationParams) -> OverviewMapData:
        now = self.clock()

        if self.store is None:
            logger.info("Overview map: no event store available, serving demo data")
            return build_fixture(now)

        # ── A + B. Query, widening the window while empty ─────────────────────
        rows: list[EventRow] = []
        effective_range = params.date_range
        for window in windows_from(params.date_range):
            effective_range = window
            rows = await self._query_window(window, now)
            if rows:
                break

        stats = OverviewMapStats(total_queried=len(rows), effective_date_range=effective_range)

        if not rows:
            logger.info("Overview map: no events in any window, serving demo data %s", stats.model_dump())
            return build_fixture(now, stats)

        # ── C. Scope filters ──────────────────────────────────────────────────
        rows = await self._apply_watchlist(rows, params)
        rows = self._apply_countries(rows, params, stats)
        rows = await self._apply_sources(rows, params)

        # ── D–F. Convert, place and filter ────────────────────────────────────
        signals = self._build_signals(rows, params, stats)
        stats.final_count = len(signals)

        # ── H. Demo fallback ──────────────────────────────────────────────────
        if not signals:
            logger.info("Overview map: every row filtered out, serving demo data %s", stats.model_dump())
            return build_fixture(now, stats)

        # ── G. Side panels ────────────────────────────────────────────────────
        top_events = [
            OverviewEventSummary(
                id=s.id,
                label_short=s.label_short,
                impact_one_line=s.impact_one_line,
                investigate_id=s.investigate_id,
                type=s.type,
            )
            for s in signals[:TOP_EVENTS_TARGET]
        ]
        top_events = await self.enricher.enrich(top_events, params.date_range, now)
        top_impacts = await self._top_impacts()

        logger.info("Overview map stats: %s", stats.model_dump())

        return OverviewMapData(
            signals=signals,
            top_events=top_events,
            top_impacts=top_impacts,
            is_demo=False,
            stats=stats,
        )

    # ── Step helpers ──────────────────────────────────────────────────────────

    async def _query_window(self, window: str, now: datetime) -> list[EventRow]:
        created_after = now - timedelta(hours=WINDOW_HOURS[window])
        try:
            return await self.store.query_events(created_after)
        except Exception as exc:
            logger.warning("Event store query for %s window failed: %s", window, exc)
            return []

    async def _apply_watchlist(self, rows: list[EventRow], params: AggregationParams) -> list[EventRow]:
        if params.scope_mode != "watchlist" or not params.user_id:
            return rows

        entities = await self.store.get_watchlist_entities(params.user_id)
        if entities.is_empty:
            return rows

        event_ids = set(entities.event_ids)
        sectors = {s.lower() for s in entities.sectors}
        countries = {c.lower() for c in entities.countries}
        return [
            r for r in rows
            if r.id in event_ids
            or (r.sector and r.sector.lower() in sectors)
            or (r.country and r.country.lower() in countries)
        ]

    @staticmethod
    def _apply_countries(
        rows: list[EventRow], params: AggregationParams, stats: OverviewMapStats
    ) -> list[EventRow]:
        wanted = {c.strip().lower() for c in params.countries if c.strip()}
        if not wanted:
            return rows

        kept = [r for r in rows if r.country and r.country.strip().lower() in wanted]
        stats.filtered_out += len(rows) - len(kept)
        return kept

    async def _apply_sources(self, rows: list[EventRow], params: AggregationParams) -> list[EventRow]:
        if not params.sources_enabled:
            return rows

        source_ids = [r.source_event_id for r in rows if r.source_event_id]
        if not source_ids:
            return []

        allowed = await self.store.get_event_ids_for_sources(source_ids, list(params.sources_enabled))
        return [r for r in rows if r.source_event_id in allowed]

    def _build_signals(
        self, rows: list[EventRow], params: AggregationParams, stats: OverviewMapStats
    ) -> list[OverviewSignal]:
        grid = _CoordinateGrid()
        search = (params.search or "").strip().lower()
        types_enabled = set(params.types_enabled)
        signals: list[OverviewSignal] = []

        for row in rows:
            if len(signals) >= params.max_signals:
                break

            geo = self.resolver.resolve([row.country, row.region, self.resolver.location_hint(row.summary)])
            if geo is None:
                stats.geo_missed += 1
                continue
            stats.geo_matched += 1

            placed = grid.place(geo.lat, geo.lon)
            if placed is None:
                stats.filtered_out += 1
                continue
            lat, lon = placed

            category = classify(row)
            importance = _percent(row.impact_score if row.impact_score is not None else DEFAULT_IMPACT_SCORE)
            confidence = _percent(row.confidence if row.confidence is not None else DEFAULT_CONFIDENCE)

            if params.min_importance is not None and importance < params.min_importance:
                stats.filtered_out += 1
                continue
            if types_enabled and category not in types_enabled:
                stats.filtered_out += 1
                continue

            label = row.country or row.region or "Unknown"
            if row.sector:
                label = f"{label} – {row.sector}"
            subtitle = (row.summary or "")[:SUBTITLE_MAX_LEN]
            impact_line = row.why_it_matters or row.first_order_effect or (row.summary or "")[:IMPACT_FALLBACK_LEN]

            label = label[:LABEL_MAX_LEN]
            impact_line = impact_line[:IMPACT_LINE_MAX_LEN]

            if search and not any(search in text.lower() for text in (label, subtitle, impact_line)):
                stats.filtered_out += 1
                continue

            signals.append(
                OverviewSignal(
                    id=row.id,
                    lat=lat,
                    lon=lon,
                    type=category,
                    impact=scope_of(row.impact_score),
                    importance=_clamp(importance, IMPORTANCE_RANGE),
                    confidence=_clamp(confidence, CONFIDENCE_RANGE),
                    occurred_at=row.created_at,
                    label_short=label,
                    subtitle_short=subtitle,
                    impact_one_line=impact_line,
                    investigate_id=f"/events/{row.id}",
                )
            )

        return signals

    async def _top_impacts(self) -> list[OverviewCorporateImpactSummary]:
        rows = await self.store.get_recent_active_impacts(limit=TOP_IMPACTS_LIMIT)
        return [
            OverviewCorporateImpactSummary(
                name=r.company_name,
                impact_one_line=r.summary[:IMPACT_LINE_MAX_LEN],
                investigate_id="/corporate-impact",
            )
            for r in rows[:TOP_IMPACTS_LIMIT]
        ]
