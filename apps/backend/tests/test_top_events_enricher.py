"""
test_top_events_enricher.py — Padding the "Top events" panel from news.

Sources are faked; no network access.

Run:
    cd apps/backend
    pytest tests/test_top_events_enricher.py -v
"""

import asyncio

from app.models.overview import NewsArticle, NewsEvent, OverviewEventSummary
from app.services.top_events_enricher import NullNewsSource, TopEventsEnricher

from conftest import NOW


def _summary(id: str, label: str) -> OverviewEventSummary:
    return OverviewEventSummary(
        id=id, label_short=label, impact_one_line="impact", investigate_id=f"/events/{id}", type="energy"
    )


class FakeStructured:
    def __init__(self, events=None, *, error=None, delay=0.0):
        self.events = events or []
        self.error = error
        self.delay = delay
        self.calls = []

    async def search_recent_events(self, date_start, date_end):
        self.calls.append((date_start, date_end))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.events


class FakeGeneral:
    def __init__(self, articles=None, *, error=None):
        self.articles = articles or []
        self.error = error
        self.calls = []

    async def search(self, query, days):
        self.calls.append((query, days))
        if self.error:
            raise self.error
        return self.articles


class TestTopEventsEnricher:

    async def test_full_list_untouched_and_sources_not_called(self):
        structured, general = FakeStructured(), FakeGeneral()
        existing = [_summary(f"e{i}", f"Event {i}") for i in range(3)]
        result = await TopEventsEnricher(structured, general).enrich(existing, "24h", NOW)

        assert [e.id for e in result] == ["e0", "e1", "e2"]
        assert structured.calls == [] and general.calls == []

    async def test_null_sources_return_existing(self):
        existing = [_summary("e0", "Event")]
        result = await TopEventsEnricher(NullNewsSource(), NullNewsSource()).enrich(existing, "24h", NOW)
        assert result == existing

    async def test_input_not_mutated(self):
        existing = [_summary("e0", "Event")]
        structured = FakeStructured([NewsEvent(uri="u1", title="Fresh headline")])
        result = await TopEventsEnricher(structured).enrich(existing, "24h", NOW)

        assert len(existing) == 1
        assert len(result) == 2

    async def test_structured_events_mapped(self):
        structured = FakeStructured([NewsEvent(uri="u1", title="Fresh headline", summary="Markets react")])
        result = await TopEventsEnricher(structured).enrich([], "24h", NOW)

        item = result[0]
        assert item.id == "news-er-u1"
        assert item.label_short == "Fresh headline"
        assert item.impact_one_line == "Markets react"
        assert item.investigate_id == "/search"
        assert item.type == "geopolitics"

    async def test_structured_fallback_label_and_line(self):
        structured = FakeStructured([NewsEvent(title="", summary="", location="Nairobi")])
        result = await TopEventsEnricher(structured).enrich([], "24h", NOW)

        assert result[0].label_short == "Nairobi"
        assert result[0].impact_one_line == "Latest development."
        assert result[0].id.startswith("news-er-")

    async def test_date_window_follows_range(self):
        structured = FakeStructured()
        general = FakeGeneral()
        await TopEventsEnricher(structured, general).enrich([], "7d", NOW)

        assert structured.calls == [("2026-03-07", "2026-03-14")]
        assert general.calls[0][1] == 7

    async def test_general_search_tops_up_after_structured(self):
        structured = FakeStructured([NewsEvent(uri="u1", title="Structured one")])
        general = FakeGeneral([
            NewsArticle(title="Article one", content="c" * 200, url="https://a/1"),
            NewsArticle(title="Article two", content="", url="https://a/2"),
            NewsArticle(title="Article three", content="", url="https://a/3"),
        ])
        result = await TopEventsEnricher(structured, general).enrich([_summary("e0", "Own")], "24h", NOW)

        assert [e.id for e in result] == ["e0", "news-er-u1", "news-tavily-https://a/1"]
        assert len(result[2].impact_one_line) == 80

    async def test_general_skipped_when_structured_fills_panel(self):
        structured = FakeStructured([NewsEvent(uri=f"u{i}", title=f"Headline {i}") for i in range(5)])
        general = FakeGeneral([NewsArticle(title="Unused")])
        result = await TopEventsEnricher(structured, general).enrich([], "24h", NOW)

        assert len(result) == 3
        assert general.calls == []

    async def test_dedup_on_label_prefix(self):
        label = "Central bank raises rates in a surprise move"
        structured = FakeStructured([
            NewsEvent(uri="dup", title=label.upper() + " again"),
            NewsEvent(uri="new", title="Something else entirely happened today"),
        ])
        general = FakeGeneral([NewsArticle(title="Something else entirely happened again", url="https://x")])
        result = await TopEventsEnricher(structured, general).enrich([_summary("e0", label)], "24h", NOW)

        assert [e.id for e in result] == ["e0", "news-er-new"]

    async def test_only_five_candidates_read_per_source(self):
        events = [NewsEvent(uri=f"u{i}", title="Same title") for i in range(5)]
        events.append(NewsEvent(uri="sixth", title="Distinct sixth"))
        result = await TopEventsEnricher(FakeStructured(events)).enrich([], "24h", NOW)

        assert [e.id for e in result] == ["news-er-u0"]

    async def test_articles_without_title_skipped(self):
        general = FakeGeneral([NewsArticle(title="  ", content="body"), NewsArticle(title="Real", url="https://r")])
        result = await TopEventsEnricher(general=general).enrich([], "24h", NOW)
        assert [e.id for e in result] == ["news-tavily-https://r"]

    async def test_error_in_structured_source_is_swallowed(self):
        structured = FakeStructured(error=RuntimeError("503"))
        general = FakeGeneral([NewsArticle(title="Backup", url="https://b")])
        result = await TopEventsEnricher(structured, general).enrich([], "24h", NOW)

        assert [e.id for e in result] == ["news-tavily-https://b"]

    async def test_both_sources_failing_returns_existing(self):
        existing = [_summary("e0", "Own")]
        enricher = TopEventsEnricher(FakeStructured(error=RuntimeError("x")), FakeGeneral(error=ValueError("y")))
        assert await enricher.enrich(existing, "24h", NOW) == existing

    async def test_timeout_counts_as_no_results(self):
        structured = FakeStructured([NewsEvent(uri="late", title="Too late")], delay=1.0)
        result = await TopEventsEnricher(structured, timeout=0.01).enrich([], "24h", NOW)
        assert result == []

    async def test_ids_stable_without_uri(self):
        structured = FakeStructured([NewsEvent(title="No uri here")])
        first = await TopEventsEnricher(structured).enrich([], "24h", NOW)
        second = await TopEventsEnricher(structured).enrich([], "24h", NOW)
        assert first[0].id == second[0].id
