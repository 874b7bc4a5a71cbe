"""
overview_store.py — MongoDB reads behind the Overview map pipeline.

Wraps the Motor database handle with the four queries the aggregator needs.
Every method is best-effort: a failed query is logged and reported as "no
results", never raised, so one flaky collection cannot take the map down.

Expected document shapes
────────────────────────
  nucigen_events   { id, event_type, sector, country, region, summary,
                     why_it_matters, first_order_effect, impact_score,
                     confidence, created_at, source_event_id }
  watchlists       { user_id, entity_type: "event"|"sector"|"country", entity_id }
  events           { id, source }
  market_signals   { company_name, reasoning_summary, catalyst_event_title,
                     is_active, generated_at }
  overview_feed_configs { user_id, types_enabled, min_importance }
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from app.models.overview import CorporateImpactRow, EventRow, FeedConfig, WatchlistEntities

logger = logging.getLogger(__name__)

EVENTS_COLLECTION = "nucigen_events"
WATCHLISTS_COLLECTION = "watchlists"
RAW_EVENTS_COLLECTION = "events"
IMPACTS_COLLECTION = "market_signals"
FEED_CONFIGS_COLLECTION = "overview_feed_configs"

_EVENT_PROJECTION = {
    "_id": 1, "id": 1, "source_event_id": 1, "event_type": 1, "event_subtype": 1,
    "summary": 1, "country": 1, "region": 1, "sector": 1, "why_it_matters": 1,
    "first_order_effect": 1, "impact_score": 1, "confidence": 1, "created_at": 1,
}


class OverviewStore:
    """Read-only access to the collections feeding the Overview map."""

    def __init__(self, db: Any, query_limit: int = 100) -> None:
        self.db = db
        self.query_limit = query_limit

    async def query_events(self, created_after: datetime) -> list[EventRow]:
        """
        Event rows created at or after `created_after`.

        Sorted by impact_score desc (missing scores sort last in a
        descending Mongo sort) then created_at desc, capped at query_limit.
        """
        try:
            cursor = (
                self.db[EVENTS_COLLECTION]
                .find({"created_at": {"$gte": created_after}}, _EVENT_PROJECTION)
                .sort([("impact_score", -1), ("created_at", -1)])
                .limit(self.query_limit)
            )
            docs = await cursor.to_list(length=self.query_limit)
        except Exception as exc:
            logger.warning("nucigen_events query failed: %s", exc)
            return []

        rows: list[EventRow] = []
        for doc in docs:
            row = _to_event_row(doc)
            if row is not None:
                rows.append(row)
        return rows

    async def get_watchlist_entities(self, user_id: str) -> WatchlistEntities:
        """Split a user's watchlist into event ids, sector names and country names."""
        try:
            docs = await (
                self.db[WATCHLISTS_COLLECTION]
                .find({"user_id": user_id}, {"entity_type": 1, "entity_id": 1})
                .to_list(length=None)
            )
        except Exception as exc:
            logger.warning("watchlists query failed for user %s: %s", user_id, exc)
            return WatchlistEntities()

        entities = WatchlistEntities()
        buckets = {
            "event": entities.event_ids,
            "sector": entities.sectors,
            "country": entities.countries,
        }
        for doc in docs:
            entity_type = str(doc.get("entity_type") or "").lower()
            entity_id = str(doc.get("entity_id") or "").strip()
            if entity_id and entity_type in buckets:
                buckets[entity_type].append(entity_id)
        return entities

    async def get_event_ids_for_sources(self, event_ids: list[str], sources: list[str]) -> set[str]:
        """Subset of `event_ids` whose raw event came from one of `sources`."""
        if not event_ids or not sources:
            return set()
        try:
            docs = await (
                self.db[RAW_EVENTS_COLLECTION]
                .find({"id": {"$in": event_ids}, "source": {"$in": sources}}, {"id": 1})
                .to_list(length=len(event_ids))
            )
        except Exception as exc:
            logger.warning("events source lookup failed: %s", exc)
            return set()
        return {str(doc["id"]) for doc in docs if doc.get("id") is not None}

    async def get_recent_active_impacts(self, limit: int = 3) -> list[CorporateImpactRow]:
        """Most recently generated active corporate-impact signals."""
        try:
            docs = await (
                self.db[IMPACTS_COLLECTION]
                .find({"is_active": True})
                .sort("generated_at", -1)
                .limit(limit)
                .to_list(length=limit)
            )
        except Exception as exc:
            logger.warning("market_signals query failed: %s", exc)
            return []

        return [
            CorporateImpactRow(
                company_name=doc.get("company_name") or "Unknown",
                summary=doc.get("reasoning_summary") or doc.get("catalyst_event_title") or "",
            )
            for doc in docs
        ]

    async def get_feed_config(self, user_id: str) -> Optional[FeedConfig]:
        """Saved map filters for a user, or None."""
        try:
            doc = await self.db[FEED_CONFIGS_COLLECTION].find_one({"user_id": user_id})
        except Exception as exc:
            logger.warning("feed config lookup failed for user %s: %s", user_id, exc)
            return None
        if not doc:
            return None
        try:
            return FeedConfig(
                types_enabled=doc.get("types_enabled"),
                min_importance=doc.get("min_importance"),
            )
        except ValidationError as exc:
            logger.warning("Ignoring invalid feed config for user %s: %s", user_id, exc)
            return None


def _to_event_row(doc: dict) -> Optional[EventRow]:
    data = dict(doc)
    raw_id = data.pop("_id", None)
    if not data.get("id"):
        data["id"] = str(raw_id) if raw_id is not None else ""
    try:
        return EventRow.model_validate(data)
    except ValidationError as exc:
        logger.warning("Skipping malformed nucigen_events document %s: %s", data.get("id"), exc)
        return None
