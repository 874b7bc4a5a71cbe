"""
event_classifier.py — Map classified event rows onto Overview signal categories.

The upstream LLM classifier writes free-form `event_type` and `sector`
strings. The map only knows five categories, so this module folds the
upstream vocabulary into them with a fixed-priority rule table, and turns
the 0–1 impact score into a geographic scope tier.

Both functions are pure and total: every row gets a category and every
score (including None) gets a scope.
"""

from __future__ import annotations

from typing import Callable, Optional

from app.models.overview import EventRow, SignalImpact, SignalType

Rule = tuple[Callable[[str, str], bool], SignalType]

# ── Category rules (evaluated top to bottom, first hit wins) ──────────────────
# Each predicate receives the lowercased (event_type, sector).

_ENERGY_KEYWORD = "energy"

_CATEGORY_RULES: tuple[Rule, ...] = (
    (lambda et, sector: _ENERGY_KEYWORD in sector or _ENERGY_KEYWORD in et, "energy"),
    (lambda et, sector: et in ("geopolitical", "regulatory"),               "geopolitics"),
    (lambda et, sector: et in ("supplychain", "industrial"),                "supply-chains"),
    (lambda et, sector: et == "market",                                     "markets"),
    (lambda et, sector: et == "security",                                   "security"),
    (lambda et, sector: "commodity" in sector or "material" in sector,      "supply-chains"),
    (lambda et, sector: "financial" in sector or "bank" in sector,          "markets"),
)

_DEFAULT_CATEGORY: SignalType = "geopolitics"

# ── Scope thresholds (score >= threshold) ─────────────────────────────────────

_SCOPE_THRESHOLDS: tuple[tuple[float, SignalImpact], ...] = (
    (0.7, "global"),
    (0.4, "regional"),
)
_SCOPE_FLOOR: SignalImpact = "local"
_SCOPE_UNKNOWN: SignalImpact = "regional"


def classify(row: EventRow) -> SignalType:
    """Return the Overview category for an event row."""
    event_type = (row.event_type or "").strip().lower()
    sector = (row.sector or "").strip().lower()

    for predicate, category in _CATEGORY_RULES:
        if predicate(event_type, sector):
            return category
    return _DEFAULT_CATEGORY


def scope_of(impact_score: Optional[float]) -> SignalImpact:
    """Return the geographic scope tier for an impact score (None → regional)."""
    if impact_score is None:
        return _SCOPE_UNKNOWN
    for threshold, scope in _SCOPE_THRESHOLDS:
        if impact_score >= threshold:
            return scope
    return _SCOPE_FLOOR
