"""
EventRegistryAdapter — Structured news events via the EventRegistry API.

Used by the Overview map to pad the "Top events" panel when the internal
event store has fewer than three geolocated signals.

Graceful degradation: if EVENTREGISTRY_API_KEY is not set, every call
returns an empty list with a logged warning.

API docs: https://eventregistry.org/documentation
"""

import logging
from typing import Any

import httpx

from app.core.config import settings
from app.models.overview import NewsEvent

logger = logging.getLogger(__name__)

EVENTREGISTRY_BASE_URL = "https://eventregistry.org/api/v1"


class EventRegistryAdapter:
    """
    Thin async wrapper around EventRegistry's getEvents endpoint.

    EventRegistry clusters articles into events; each result has a uri,
    a multilingual title/summary and an optional location. Titles and
    summaries arrive either as plain strings or as {"eng": "..."} maps
    depending on the account tier, so both are accepted.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self.api_key = settings.eventregistry_api_key
        self.enabled = bool(self.api_key)
        self.timeout = timeout

        if not self.enabled:
            logger.warning(
                "EVENTREGISTRY_API_KEY not set — structured news enrichment disabled. "
                "Overview top events will only come from the internal event store."
            )

    async def search_recent_events(
        self,
        date_start: str,
        date_end: str,
        count: int = 5,
    ) -> list[NewsEvent]:
        """
        Most recent events between two ISO dates (YYYY-MM-DD), newest first.

        Returns [] if not configured or on any error.
        """
        if not self.enabled:
            return []

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{EVENTREGISTRY_BASE_URL}/event/getEvents",
                    params={
                        "apiKey": self.api_key,
                        "resultType": "events",
                        "eventsSortBy": "date",
                        "eventsSortByAsc": "false",
                        "eventsCount": count,
                        "dateStart": date_start,
                        "dateEnd": date_end,
                        "lang": "eng",
                    },
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "EventRegistry API error: %s — %s",
                    exc.response.status_code,
                    exc.response.text[:200],
                )
                return []
            except Exception as exc:
                logger.error("EventRegistry request failed: %s", exc)
                return []

        results = (data.get("events") or {}).get("results") or []
        return [_to_news_event(item) for item in results[:count]]


def _localized(value: Any) -> str:
    """Pick the English string out of a plain or language-keyed value."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        if isinstance(value.get("eng"), str):
            return value["eng"]
        for candidate in value.values():
            if isinstance(candidate, str):
                return candidate
    return ""


def _to_news_event(item: dict[str, Any]) -> NewsEvent:
    location = item.get("location")
    location_label = _localized(location.get("label")).strip() if isinstance(location, dict) else ""
    return NewsEvent(
        uri=item.get("uri"),
        title=_localized(item.get("title")).strip(),
        summary=_localized(item.get("summary")).strip(),
        location=location_label or None,
    )


# Module-level singleton
eventregistry_adapter = EventRegistryAdapter()
