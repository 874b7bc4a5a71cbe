"""
pytest configuration and shared fixtures for the Nucigen Overview API tests.

Key concern: tests must not require a live MongoDB or any news API key.
We achieve this by:
  1. Patching connect_to_mongo / close_mongo_connection to no-ops so
     FastAPI's lifespan doesn't try to reach a real database.
  2. Setting db_client.client = None (disconnected) so health check
     correctly reports "disconnected" and the map serves demo data.
  3. Leaving EVENTREGISTRY_API_KEY / TAVILY_API_KEY unset so the news
     adapters return [] without touching the network.

Pipeline tests use FakeEventStore below instead of Motor: it implements
the same five coroutines as OverviewStore over plain Python lists.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["EVENTREGISTRY_API_KEY"] = ""
os.environ["TAVILY_API_KEY"] = ""

from app.models.overview import (  # noqa: E402
    CorporateImpactRow,
    EventRow,
    FeedConfig,
    WatchlistEntities,
)

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def make_row(
    id: str,
    hours_ago: float = 1.0,
    *,
    event_type: str = "geopolitical",
    sector: Optional[str] = None,
    country: Optional[str] = None,
    region: Optional[str] = None,
    summary: str = "",
    why_it_matters: Optional[str] = None,
    first_order_effect: Optional[str] = None,
    impact_score: Optional[float] = 0.5,
    confidence: Optional[float] = 0.8,
    source_event_id: Optional[str] = None,
) -> EventRow:
    """EventRow factory with sensible defaults; created_at is relative to NOW."""
    return EventRow(
        id=id,
        event_type=event_type,
        sector=sector,
        country=country,
        region=region,
        summary=summary,
        why_it_matters=why_it_matters,
        first_order_effect=first_order_effect,
        impact_score=impact_score,
        confidence=confidence,
        created_at=NOW - timedelta(hours=hours_ago),
        source_event_id=source_event_id,
    )


class FakeEventStore:
    """In-memory stand-in for OverviewStore."""

    def __init__(
        self,
        rows: Optional[list[EventRow]] = None,
        *,
        watchlist: Optional[WatchlistEntities] = None,
        sources: Optional[dict[str, str]] = None,
        impacts: Optional[list[CorporateImpactRow]] = None,
        feed_config: Optional[FeedConfig] = None,
        fail_queries: bool = False,
    ) -> None:
        self.rows = rows or []
        self.watchlist = watchlist or WatchlistEntities()
        self.sources = sources or {}  # source_event_id → source name
        self.impacts = impacts or []
        self.feed_config = feed_config
        self.fail_queries = fail_queries
        self.queried_after: list[datetime] = []
        self.source_lookups = 0

    async def query_events(self, created_after: datetime) -> list[EventRow]:
        self.queried_after.append(created_after)
        if self.fail_queries:
            raise RuntimeError("connection reset")
        rows = [r for r in self.rows if r.created_at >= created_after]
        return sorted(
            rows,
            key=lambda r: (-(r.impact_score if r.impact_score is not None else -1), -r.created_at.timestamp()),
        )

    async def get_watchlist_entities(self, user_id: str) -> WatchlistEntities:
        return self.watchlist

    async def get_event_ids_for_sources(self, event_ids: list[str], sources: list[str]) -> set[str]:
        self.source_lookups += 1
        return {eid for eid in event_ids if self.sources.get(eid) in sources}

    async def get_recent_active_impacts(self, limit: int = 3) -> list[CorporateImpactRow]:
        return self.impacts[:limit]

    async def get_feed_config(self, user_id: str) -> Optional[FeedConfig]:
        return self.feed_config


@pytest.fixture(autouse=True)
async def mock_db():
    """
    Patch the MongoDB lifecycle for every test.

    - connect_to_mongo → no-op AsyncMock (startup doesn't attempt real connection)
    - close_mongo_connection → no-op AsyncMock
    - db_client.client → None  (health check reports "disconnected", which is fine)
    - db_client.db → None

    Tests that need a real db should override this fixture locally.
    """
    with (
        patch("app.core.database.connect_to_mongo", new_callable=AsyncMock),
        patch("app.core.database.close_mongo_connection", new_callable=AsyncMock),
    ):
        import app.core.database as db_module

        # Save originals so we can restore after the test
        original_client = db_module.db_client.client
        original_db = db_module.db_client.db

        db_module.db_client.client = None
        db_module.db_client.db = None

        yield

        db_module.db_client.client = original_client
        db_module.db_client.db = original_db


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Every test starts with a fresh per-IP request budget."""
    from app.core.rate_limit import limiter

    limiter.reset()
    yield


@pytest.fixture()
async def client(mock_db):  # noqa: ARG001 — mock_db must run first
    """
    HTTPX async test client wired to the FastAPI app.

    Usage:
        async def test_something(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
