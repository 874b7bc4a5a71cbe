"""
top_events_enricher.py — Pad the Overview "Top events" panel from live news.

When the event store yields fewer than three signals, the side panel would
look broken. This module tops it up from two external collaborators, in
order:

  1. a structured news source (EventRegistry): already-clustered events
  2. a general news search (Tavily): plain article hits

Both are optional capabilities injected by the caller. NullNewsSource
satisfies either interface and returns nothing, which is what tests and
key-less deployments use.

Guarantees
──────────
  • best-effort: a timeout or error from a source counts as zero results
    from that source and is logged, never raised
  • each source call is bounded by `timeout` seconds
  • candidates are deduplicated on a lowercased 30-char label prefix, both
    against the existing entries and across the two sources
  • at most 5 candidates are read per source; the panel never exceeds 3
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from app.models.overview import NewsArticle, NewsEvent, OverviewEventSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")

TOP_EVENTS_TARGET = 3
CANDIDATES_PER_SOURCE = 5
DEDUP_PREFIX_LEN = 30
LABEL_MAX_LEN = 60
IMPACT_LINE_MAX_LEN = 80

GENERAL_SEARCH_QUERY = "geopolitics OR markets OR energy OR supply chain"
_FALLBACK_IMPACT_LINE = "Latest development."
_WINDOW_DAYS = {"24h": 1, "7d": 7, "30d": 30}


class StructuredNewsSource(Protocol):
    async def search_recent_events(self, date_start: str, date_end: str) -> list[NewsEvent]: ...


class GeneralSearchSource(Protocol):
    async def search(self, query: str, days: int) -> list[NewsArticle]: ...


class NullNewsSource:
    """No-op news capability: always returns an empty result."""

    async def search_recent_events(self, date_start: str, date_end: str) -> list[NewsEvent]:
        return []

    async def search(self, query: str, days: int) -> list[NewsArticle]:
        return []


def _dedup_key(label: str) -> str:
    return label.lower()[:DEDUP_PREFIX_LEN]


def _stable_suffix(value: str) -> str:
    return hashlib.sha1(value.encode("utf-8")).hexdigest()[:12]


class TopEventsEnricher:
    """Top up a short list of event summaries from external news."""

    def __init__(
        self,
        structured: Optional[StructuredNewsSource] = None,
        general: Optional[GeneralSearchSource] = None,
        timeout: float = 8.0,
    ) -> None:
        self.structured = structured or NullNewsSource()
        self.general = general or NullNewsSource()
        self.timeout = timeout

    async def enrich(
        self,
        existing: list[OverviewEventSummary],
        date_range: str,
        now: datetime,
    ) -> list[OverviewEventSummary]:
        """
        Return `existing` padded to at most three entries.

        The input list is not mutated. If both sources are down the result
        equals `existing`.
        """
        result = list(existing)
        if len(result) >= TOP_EVENTS_TARGET:
            return result

        days = _WINDOW_DAYS.get(date_range, 1)
        seen = {_dedup_key(e.label_short) for e in result}

        date_start = (now - timedelta(days=days)).date().isoformat()
        date_end = now.date().isoformat()
        events = await self._bounded(
            "EventRegistry",
            lambda: self.structured.search_recent_events(date_start, date_end),
        )
        for ev in events[:CANDIDATES_PER_SOURCE]:
            label = ev.title.strip() or (ev.location or "").strip() or "News"
            impact_line = ev.summary.strip() or _FALLBACK_IMPACT_LINE
            news_id = f"news-er-{ev.uri or _stable_suffix(label)}"
            self._push(result, seen, news_id, label, impact_line)

        if len(result) < TOP_EVENTS_TARGET:
            articles = await self._bounded(
                "Tavily",
                lambda: self.general.search(GENERAL_SEARCH_QUERY, days),
            )
            for article in articles[:CANDIDATES_PER_SOURCE]:
                label = article.title.strip()
                if not label:
                    continue
                impact_line = (article.content or article.title).strip()[:IMPACT_LINE_MAX_LEN]
                news_id = f"news-tavily-{article.url or _stable_suffix(label)}"
                self._push(result, seen, news_id, label, impact_line or _FALLBACK_IMPACT_LINE)

        return result

    @staticmethod
    def _push(
        result: list[OverviewEventSummary],
        seen: set[str],
        news_id: str,
        label: str,
        impact_line: str,
    ) -> None:
        key = _dedup_key(label)
        if len(result) >= TOP_EVENTS_TARGET or key in seen:
            return
        seen.add(key)
        result.append(
            OverviewEventSummary(
                id=news_id,
                label_short=label[:LABEL_MAX_LEN],
                impact_one_line=impact_line[:IMPACT_LINE_MAX_LEN],
                investigate_id="/search",
                type="geopolitics",
            )
        )

    async def _bounded(self, name: str, call: Callable[[], Awaitable[list[T]]]) -> list[T]:
        try:
            return list(await asyncio.wait_for(call(), timeout=self.timeout))
        except asyncio.TimeoutError:
            logger.warning("%s enrichment timed out after %.1fs", name, self.timeout)
        except Exception as exc:
            logger.warning("%s enrichment skipped: %s", name, exc)
        return []
