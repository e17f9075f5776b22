"""Tests for the tennis API client and endpoint functions using httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from tennis.api.client import USER_AGENT, TennisAPIClient
from tennis.api.endpoints import get_rankings, get_recent_and_upcoming, get_tournaments


def _client(handler) -> TennisAPIClient:
    return TennisAPIClient("secret", transport=httpx.MockTransport(handler))


async def test_get_adds_api_key_and_headers():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"rankings": [
            {"player_id": 1, "player_name": "Jannik Sinner", "ranking": 1, "points": 11000},
        ]})

    client = _client(handler)
    rankings = await get_rankings(client, "atp")
    await client.close()

    assert rankings[0].player_name == "Jannik Sinner"
    request = seen[0]
    assert request.url.path == "/v1/rankings"
    assert request.url.params["api_key"] == "secret"
    assert request.url.params["tour"] == "atp"
    assert request.headers["User-Agent"] == USER_AGENT


async def test_http_error_raises():
    client = _client(lambda request: httpx.Response(503))
    with pytest.raises(httpx.HTTPStatusError):
        await get_tournaments(client, "wta", year=2024)
    await client.close()


async def test_recent_and_upcoming_survives_one_side_failing():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/upcoming"):
            return httpx.Response(500)
        return httpx.Response(200, json={"matches": [
            {"id": 5, "tournament_name": "Rome", "date": "2024-05-19",
             "player1": {"id": 1, "name": "A"}, "player2": {"id": 2, "name": "B"}},
        ]})

    client = _client(handler)
    matches = await get_recent_and_upcoming(client, "atp", 7)
    await client.close()

    assert [m.id for m in matches] == [5]
