#!/usr/bin/env python3
"""
seed_overview_events.py — Populate MongoDB with realistic Overview map data.

Usage (from apps/backend/):
    python scripts/seed_overview_events.py             # replace existing seed data
    python scripts/seed_overview_events.py --append    # add without clearing first
    python scripts/seed_overview_events.py --days-ago 10
                                                       # age every row, to exercise
                                                       # the 24h → 7d → 30d widening

Prerequisites:
    • MONGO_URI env var set (or .env file present)

What this script creates
────────────────────────
  nucigen_events  ← classified event rows spread over the chosen window
  events          ← raw events carrying the originating `source`
  market_signals  ← active corporate-impact rows for the side panel
  indexes         ← impact/recency compound index used by the map query
"""

import argparse
import asyncio
import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

ROOT = Path(__file__).parent.parent

from dotenv import load_dotenv

load_dotenv(ROOT / ".env")

import certifi
from motor.motor_asyncio import AsyncIOMotorClient

MONGO_URI = os.environ.get("MONGO_URI", "")
MONGO_DB_NAME = os.environ.get("MONGO_DB_NAME", "nucigen")

if not MONGO_URI:
    print("ERROR: MONGO_URI not set. Add it to apps/backend/.env")
    sys.exit(1)

# ── Seed events ───────────────────────────────────────────────────────────────
# Columns: event_type, sector, country, region, impact_score, confidence,
#          source, summary, why_it_matters
_RAW = [
    ("security",     "mining",     "Democratic Republic of the Congo", "Central Africa", 0.85, 0.80, "reuters",
     "ADF attacks near artisanal gold sites in North Kivu displace miners", "Gold supply risk for regional refiners"),
    ("geopolitical", "finance",    "United Kingdom",  "Europe",        0.78, 0.90, "ft",
     "London widens sanctions on Russian metals traders",               "Compliance costs for commodity desks"),
    ("market",       "banking",    "United States",   "North America", 0.74, 0.88, "bloomberg",
     "New York futures swing as rate expectations reset",               "Commodity futures volatility"),
    ("energy",       "energy",     "Russia",          "Eastern Europe", 0.72, 0.85, "reuters",
     "Moscow reroutes pipeline gas exports toward Asia",                "Gas supply routes reconfigured"),
    ("supplychain",  "materials",  "China",           "East Asia",     0.81, 0.79, "caixin",
     "Beijing tightens export licences for rare earth magnets",         "Rare earth dominance leveraged"),
    ("industrial",   "logistics",  "UAE",             "Gulf",          0.66, 0.76, "gulfnews",
     "Dubai gold trade hub faces refinery audit backlog",               "Precious metals flow slows"),
    ("regulatory",   "technology", "France",          "Europe",        0.55, 0.83, "lemonde",
     "Paris fast-tracks critical minerals permitting reform",           None),
    ("security",     "shipping",   None,              "Red Sea",       0.69, 0.72, "reuters",
     "Houthi drone strikes force container reroutes around the Cape",   "Freight rates up on Asia–Europe lanes"),
    ("energy",       "oil",        "Saudi Arabia",    "Gulf",          0.63, 0.81, "bloomberg",
     "Riyadh signals extension of voluntary output cuts",               "Brent curve backwardation deepens"),
    ("market",       "financial",  "Japan",           "East Asia",     0.48, 0.77, "nikkei",
     "Tokyo intervenes as yen breaches multi-decade low",               "Importers face margin squeeze"),
    ("geopolitical", None,         "Taiwan",          "Taiwan Strait", 0.71, 0.74, "reuters",
     "PLA exercises encircle Taiwan for a second day",                  "Semiconductor logistics on alert"),
    ("supplychain",  "commodity",  "Chile",           "South America", 0.44, 0.70, "reuters",
     "Copper smelter strike enters third week in Antofagasta",          None),
    ("industrial",   "automotive", "Germany",         "Europe",        0.38, 0.68, "handelsblatt",
     "Berlin auto suppliers cut shifts on weak EV demand",              None),
    ("regulatory",   "agriculture", "India",          "South Asia",    0.35, 0.66, "mint",
     "New Delhi extends rice export restrictions",                      "Regional food prices pressured"),
]

_IMPACTS = [
    ("Barrick Gold",  "Production disruption risk at Kibali after North Kivu escalation"),
    ("Gazprom",       "Export route reconfiguration toward Power of Siberia"),
    ("HSBC",          "Higher sanctions screening costs on metals trade finance"),
    ("Maersk",        "Red Sea diversions add 10-14 days to Asia–Europe loops"),
]


def _make_rows(days_ago: float, window_hours: float) -> tuple[list[dict], list[dict]]:
    """Build matching nucigen_events and raw events documents."""
    now = datetime.now(tz=timezone.utc) - timedelta(days=days_ago)
    step = window_hours / len(_RAW)
    events, raw_events = [], []

    for i, row in enumerate(_RAW):
        (event_type, sector, country, region, impact, confidence,
         source, summary, why) = row
        raw_id = f"evt_{uuid.uuid4().hex[:12]}"
        created_at = now - timedelta(hours=i * step + 0.5)

        raw_events.append({"id": raw_id, "source": source, "created_at": created_at})
        events.append({
            "id":                 str(uuid.uuid4()),
            "source_event_id":    raw_id,
            "event_type":         event_type,
            "event_subtype":      None,
            "sector":             sector,
            "country":            country,
            "region":             region,
            "summary":            summary,
            "why_it_matters":     why,
            "first_order_effect": None,
            "impact_score":       impact,
            "confidence":         confidence,
            "created_at":         created_at,
        })
    return events, raw_events


async def create_indexes(db) -> None:
    """Idempotent index creation — safe to run multiple times."""
    print("  Creating indexes…")
    # Matches the map query: created_at range, impact_score desc then created_at desc
    await db["nucigen_events"].create_index(
        [("impact_score", -1), ("created_at", -1)],
        name="impact_desc_created_desc",
        background=True,
    )
    await db["events"].create_index([("id", 1)], name="id_asc", unique=True, background=True)
    await db["watchlists"].create_index([("user_id", 1)], name="user_asc", background=True)
    await db["market_signals"].create_index(
        [("is_active", 1), ("generated_at", -1)],
        name="active_generated_desc",
        background=True,
    )
    await db["overview_feed_configs"].create_index(
        [("user_id", 1)], name="user_asc", unique=True, background=True,
    )
    print("  Indexes OK")


async def seed(append: bool = False, days_ago: float = 0.0) -> None:
    client = AsyncIOMotorClient(MONGO_URI, tlsCAFile=certifi.where())
    db = client[MONGO_DB_NAME]

    try:
        await client.admin.command("ping")
        print(f"Connected to MongoDB ({MONGO_DB_NAME})")
    except Exception as exc:
        print(f"ERROR: Cannot connect to MongoDB: {exc}")
        return

    if not append:
        print("\nClearing existing seed collections…")
        for name in ("nucigen_events", "events", "market_signals"):
            result = await db[name].delete_many({})
            print(f"  {name}: deleted {result.deleted_count}")

    print("\nInserting events…")
    # Spread rows over the last 23 hours (inside the default 24h window)
    events, raw_events = _make_rows(days_ago=days_ago, window_hours=23.0)
    await db["events"].insert_many(raw_events)
    result = await db["nucigen_events"].insert_many(events)
    print(f"  Inserted {len(result.inserted_ids)} nucigen_events")

    print("\nInserting corporate impacts…")
    generated = datetime.now(tz=timezone.utc)
    await db["market_signals"].insert_many([
        {
            "company_name":         name,
            "reasoning_summary":    summary,
            "catalyst_event_title": None,
            "is_active":            True,
            "generated_at":         generated - timedelta(minutes=i * 7),
        }
        for i, (name, summary) in enumerate(_IMPACTS)
    ])
    print(f"  Inserted {len(_IMPACTS)} market_signals")

    print("\nEnsuring indexes…")
    await create_indexes(db)

    total = await db["nucigen_events"].count_documents({})
    countries = await db["nucigen_events"].distinct("country")
    print("\n✓ Done")
    print(f"  nucigen_events total : {total}")
    print(f"  Countries            : {sorted(c for c in countries if c)}")

    client.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed Overview map data into MongoDB")
    parser.add_argument(
        "--append",
        action="store_true",
        help="Add events without clearing existing data first",
    )
    parser.add_argument(
        "--days-ago",
        type=float,
        default=0.0,
        help="Shift every row this many days into the past",
    )
    args = parser.parse_args()

    print(f"Nucigen Overview Seeder  (db: {MONGO_DB_NAME})")
    print(f"Mode: {'append' if args.append else 'replace'}\n")

    asyncio.run(seed(append=args.append, days_ago=args.days_ago))
