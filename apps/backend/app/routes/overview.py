"""
overview.py — Overview ("Global Situation") map routes.

Routes:
  GET  /api/overview/map          — map signals + top events + top corporate impacts
  GET  /api/overview/feed-config  — a user's saved map filters
  PUT  /api/overview/feed-config  — save a user's map filters

HOW THE DATA FLOWS
──────────────────
1. The dashboard calls GET /api/overview/map on load and whenever a filter
   pill, the search box or the date-range toggle changes.
2. Query params are folded into an immutable AggregationParams.
3. SignalAggregator (app/services/signal_aggregator.py) reads nucigen_events,
   widens the window if it is empty, geolocates, de-overlaps and filters.
4. The response is always renderable. When there is nothing real to show the
   payload is the demo fixture with isDemo=true.

List parameters (countries, types, sources) are comma-separated:
  /api/overview/map?dateRange=7d&countries=France,Germany&types=energy,markets

When `userId` is given and the request sets neither `types` nor
`minImportance`, the user's saved feed config fills them in.

TESTING YOUR CHANGES
─────────────────────
  pytest apps/backend/tests/test_overview_routes.py -v

  curl "http://localhost:8000/api/overview/map"
  curl "http://localhost:8000/api/overview/map?dateRange=30d&q=gold&minImportance=60"
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.ai.eventregistry_adapter import eventregistry_adapter
from app.ai.tavily_adapter import tavily_adapter
from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import OVERVIEW_MAP_LIMIT, limiter
from app.models.overview import (
    SIGNAL_TYPES,
    AggregationParams,
    DateRange,
    FeedConfig,
    FeedConfigUpdate,
    OverviewMapData,
    ScopeMode,
)
from app.services.overview_store import FEED_CONFIGS_COLLECTION, OverviewStore
from app.services.signal_aggregator import SignalAggregator, utcnow
from app.services.top_events_enricher import TopEventsEnricher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/overview", tags=["overview"])


# ── Dependencies ──────────────────────────────────────────────────────────────

def get_overview_store(db=Depends(get_db)) -> Optional[OverviewStore]:
    """Store over the live database, or None when MongoDB is down."""
    if db is None:
        return None
    return OverviewStore(db, query_limit=settings.overview_query_limit)


def get_clock() -> Callable[[], datetime]:
    """Time source for the date windows. Overridden in tests to pin "now"."""
    return utcnow


def get_signal_aggregator(
    store: Optional[OverviewStore] = Depends(get_overview_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> SignalAggregator:
    """Fresh aggregator per request; per-call state never crosses requests."""
    enricher = TopEventsEnricher(
        structured=eventregistry_adapter,
        general=tavily_adapter,
        timeout=settings.enrichment_timeout_seconds,
    )
    return SignalAggregator(store, enricher=enricher, clock=clock)


def _split_csv(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/map", response_model=OverviewMapData)
@limiter.limit(OVERVIEW_MAP_LIMIT)
async def get_overview_map(
    request: Request,
    date_range: DateRange = Query(default="24h", alias="dateRange", description="Initial look-back window"),
    scope: ScopeMode = Query(default="global", description="global | watchlist"),
    q: Optional[str] = Query(default=None, max_length=200, description="Free-text search"),
    countries: Optional[str] = Query(default=None, description="Comma-separated country names"),
    types: Optional[str] = Query(default=None, description="Comma-separated signal types"),
    sources: Optional[str] = Query(default=None, description="Comma-separated enabled sources"),
    min_importance: Optional[int] = Query(default=None, ge=0, le=100, alias="minImportance"),
    max_signals: Optional[int] = Query(default=None, ge=1, le=500, alias="maxSignals"),
    user_id: Optional[str] = Query(default=None, max_length=200, alias="userId"),
    store: Optional[OverviewStore] = Depends(get_overview_store),
    aggregator: SignalAggregator = Depends(get_signal_aggregator),
):
    """
    Return the Overview map snapshot.

    Response shape (OverviewMapData, camelCase envelope):
      signals     : markers for the world map (≤ maxSignals, no overlaps)
      topEvents   : up to 3 summaries for the side panel
      topImpacts  : up to 3 corporate-impact summaries
      isDemo      : true when the payload is the canned demo fixture
      stats       : pipeline counters (queried / geo matched / filtered ...)
    """
    types_enabled = _split_csv(types)
    unknown = [t for t in types_enabled if t not in SIGNAL_TYPES]
    if unknown:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown signal type(s): {', '.join(unknown)}. Valid: {', '.join(SIGNAL_TYPES)}",
        )

    if user_id and store is not None and types is None and min_importance is None:
        feed_config = await store.get_feed_config(user_id)
        if feed_config is not None:
            types_enabled = tuple(feed_config.types_enabled or ())
            min_importance = feed_config.min_importance

    params = AggregationParams(
        date_range=date_range,
        scope_mode=scope,
        search=q,
        countries=_split_csv(countries),
        sources_enabled=_split_csv(sources),
        types_enabled=types_enabled,
        min_importance=min_importance,
        max_signals=max_signals or settings.overview_max_signals,
        user_id=user_id,
    )
    return await aggregator.aggregate(params)


@router.get("/feed-config", response_model=FeedConfig)
async def get_feed_config(
    user_id: str = Query(..., min_length=1, max_length=200, alias="userId"),
    store: Optional[OverviewStore] = Depends(get_overview_store),
):
    """Return the user's saved map filters."""
    if store is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    config = await store.get_feed_config(user_id)
    if config is None:
        raise HTTPException(status_code=404, detail="No feed config saved for this user")
    return config


@router.put("/feed-config", response_model=FeedConfig)
async def save_feed_config(payload: FeedConfigUpdate, db=Depends(get_db)):
    """Replace the user's saved map filters (upsert)."""
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    config = FeedConfig(types_enabled=payload.types_enabled, min_importance=payload.min_importance)
    await db[FEED_CONFIGS_COLLECTION].update_one(
        {"user_id": payload.user_id},
        {"$set": {"user_id": payload.user_id, **config.model_dump()}},
        upsert=True,
    )
    logger.info("Saved overview feed config for user %s", payload.user_id)
    return config
