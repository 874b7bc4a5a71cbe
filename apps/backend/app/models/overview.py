"""
overview.py — Pydantic models for the Overview map ("Global Situation") API.

Data flow
─────────
  EventRow (nucigen_events document)
      └─ GeoResolver      → GeoPoint
      └─ EventClassifier  → SignalType + SignalImpact
          └─ SignalAggregator → OverviewSignal (one marker on the map)

Everything here is request-scoped: signals are rebuilt on every call and
never written back to MongoDB.

Wire format
───────────
The response envelope uses camelCase keys (signals, topEvents, topImpacts,
isDemo, stats). Signal, summary and stats fields stay snake_case because the
map components read them as-is.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SignalType = Literal["geopolitics", "supply-chains", "markets", "energy", "security"]
SignalImpact = Literal["local", "regional", "global"]
DateRange = Literal["24h", "7d", "30d"]
ScopeMode = Literal["global", "watchlist"]

SIGNAL_TYPES: tuple[str, ...] = ("geopolitics", "supply-chains", "markets", "energy", "security")


class GeoPoint(BaseModel):
    """Approximate coordinates resolved from a free-text location."""

    lat: float
    lon: float
    label: Optional[str] = None  # original (unnormalized) location string that matched


class EventRow(BaseModel):
    """A classified event row as stored in `nucigen_events`. Read-only here."""

    model_config = ConfigDict(extra="ignore")

    id: str
    event_type: str = ""
    event_subtype: Optional[str] = None
    sector: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    summary: str = ""
    why_it_matters: Optional[str] = None
    first_order_effect: Optional[str] = None
    impact_score: Optional[float] = None  # 0–1
    confidence: Optional[float] = None    # 0–1
    created_at: datetime
    source_event_id: Optional[str] = None  # id in the raw `events` collection

    @field_validator("event_type", "summary", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        # Upstream writes explicit nulls for unclassified rows
        return "" if value is None else value


class OverviewSignal(BaseModel):
    """A single marker on the Overview map."""

    id: str
    lat: float
    lon: float
    type: SignalType
    impact: SignalImpact
    importance: int = Field(..., ge=30, le=100)  # clamped so markers stay visible
    confidence: int = Field(..., ge=50, le=100)
    occurred_at: datetime
    label_short: str
    subtitle_short: str
    impact_one_line: str
    investigate_id: str  # front-end route for the "Investigate" button


class OverviewEventSummary(BaseModel):
    """Compact record for the "Top events" side panel."""

    id: str
    label_short: str
    impact_one_line: str
    investigate_id: str
    type: SignalType


class OverviewCorporateImpactSummary(BaseModel):
    """Compact record for the "Top corporate impacts" side panel."""

    name: str
    impact_one_line: str
    investigate_id: str


class OverviewMapStats(BaseModel):
    """Per-request pipeline counters. Diagnostic only, not shown to users."""

    total_queried: int = 0
    geo_matched: int = 0
    geo_missed: int = 0
    filtered_out: int = 0
    final_count: int = 0
    effective_date_range: str = "24h"  # "24h" | "7d" | "30d" | "demo"


class OverviewMapData(BaseModel):
    """Combined snapshot returned by GET /api/overview/map."""

    model_config = ConfigDict(populate_by_name=True)

    signals: list[OverviewSignal]
    top_events: list[OverviewEventSummary] = Field(default_factory=list, alias="topEvents")
    top_impacts: list[OverviewCorporateImpactSummary] = Field(default_factory=list, alias="topImpacts")
    is_demo: bool = Field(default=False, alias="isDemo")
    stats: OverviewMapStats = Field(default_factory=OverviewMapStats)


class AggregationParams(BaseModel):
    """Request-scoped configuration for one aggregation call. Immutable."""

    model_config = ConfigDict(frozen=True)

    date_range: DateRange = "24h"
    scope_mode: ScopeMode = "global"
    search: Optional[str] = None
    countries: tuple[str, ...] = ()
    sources_enabled: tuple[str, ...] = ()
    types_enabled: tuple[str, ...] = ()
    min_importance: Optional[int] = Field(default=None, ge=0, le=100)
    max_signals: int = Field(default=50, ge=1, le=500)
    user_id: Optional[str] = None


class WatchlistEntities(BaseModel):
    """Entities a user follows, grouped by kind."""

    event_ids: list[str] = Field(default_factory=list)
    sectors: list[str] = Field(default_factory=list)
    countries: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.event_ids or self.sectors or self.countries)


class CorporateImpactRow(BaseModel):
    """A recent active corporate-impact signal from `market_signals`."""

    company_name: str
    summary: str


class NewsEvent(BaseModel):
    """Structured news item from the event-registry collaborator."""

    uri: Optional[str] = None
    title: str = ""
    summary: str = ""
    location: Optional[str] = None


class NewsArticle(BaseModel):
    """General web-search news hit."""

    title: str = ""
    content: str = ""
    url: Optional[str] = None


class FeedConfig(BaseModel):
    """Per-user default filters for the Overview map feed."""

    types_enabled: Optional[list[SignalType]] = None
    min_importance: Optional[int] = Field(default=None, ge=0, le=100)


class FeedConfigUpdate(FeedConfig):
    """Request body for PUT /api/overview/feed-config."""

    user_id: str = Field(..., min_length=1, max_length=200, alias="userId")

    model_config = ConfigDict(populate_by_name=True)
