"""Typed fetch functions for the tennis data API."""

from __future__ import annotations

import asyncio
import logging

from tennis.api.client import TennisAPIClient
from tennis.api.models import APIMatch, APIPlayer, APIRanking, APITournament

log = logging.getLogger(__name__)


async def get_players(
    client: TennisAPIClient, tour: str = "atp", *, limit: int = 100
) -> list[APIPlayer]:
    data = await client.get("/players", params={"tour": tour, "limit": str(limit)})
    return [APIPlayer(**p) for p in data.get("players", [])]


async def get_rankings(
    client: TennisAPIClient, tour: str = "atp", *, date: str | None = None
) -> list[APIRanking]:
    """Fetch the current (or dated) ranking table for a tour."""
    params = {"tour": tour}
    if date:
        params["date"] = date
    data = await client.get("/rankings", params=params)
    return [APIRanking(**r) for r in data.get("rankings", [])]


async def get_recent_matches(
    client: TennisAPIClient,
    tour: str = "atp",
    days: int = 7,
    *,
    player_id: int | None = None,
) -> list[APIMatch]:
    params = {"tour": tour, "days": str(days)}
    if player_id:
        params["player_id"] = str(player_id)
    data = await client.get("/matches/recent", params=params)
    return [APIMatch(**m) for m in data.get("matches", [])]


async def get_upcoming_matches(
    client: TennisAPIClient, tour: str = "atp", days: int = 14
) -> list[APIMatch]:
    data = await client.get("/matches/upcoming", params={"tour": tour, "days": str(days)})
    return [APIMatch(**m) for m in data.get("matches", [])]


async def get_tournaments(
    client: TennisAPIClient,
    tour: str = "atp",
    *,
    year: int | None = None,
    status: str = "upcoming",
) -> list[APITournament]:
    params = {"tour": tour, "status": status}
    if year:
        params["year"] = str(year)
    data = await client.get("/tournaments", params=params)
    return [APITournament(**t) for t in data.get("tournaments", [])]


async def get_recent_and_upcoming(
    client: TennisAPIClient, tour: str = "atp", days: int = 7
) -> list[APIMatch]:
    """Fetch recent and upcoming matches concurrently.

    Resilient to either side failing: a failed half contributes no matches.
    """

    async def _safe(coro, label: str) -> list[APIMatch]:
        try:
            return await coro
        except Exception as exc:
            log.warning("Failed to fetch %s %s matches: %s", label, tour, exc)
            return []

    recent, upcoming = await asyncio.gather(
        _safe(get_recent_matches(client, tour, days), "recent"),
        _safe(get_upcoming_matches(client, tour, days), "upcoming"),
    )
    return recent + upcoming
