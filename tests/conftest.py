"""Shared test fixtures."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock

import pytest

from tennis.api.models import Match, Player, PlayerStats
from tennis.config import Settings
from tennis.services.cache import CacheStore, FailSafeCache
from tennis.services.data_service import TennisService
from tennis.services.store import TennisStore


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store_cache(clock) -> CacheStore:
    return CacheStore(clock=clock)


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test_key", db_path=":memory:", tours=["atp"])


@pytest.fixture
def tennis_store() -> TennisStore:
    store = TennisStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def mock_client():
    return AsyncMock()


@pytest.fixture
def service(settings, tennis_store, mock_client, store_cache) -> TennisService:
    return TennisService(
        settings=settings,
        store=tennis_store,
        client=mock_client,
        cache=FailSafeCache(store_cache),
    )


@pytest.fixture
def seeded_store(tennis_store) -> TennisStore:
    """Djokovic (id 1) and Nadal (id 2) with stats and one clay match."""
    djokovic = tennis_store.upsert_player(Player(
        name="Novak Djokovic", birth_date=date(1987, 5, 22),
        dominant_hand="right", two_handed_backhand=True, country="SRB",
    ))
    nadal = tennis_store.upsert_player(Player(
        name="Rafael Nadal", birth_date=date(1986, 6, 3),
        dominant_hand="left", two_handed_backhand=True, country="ESP",
    ))
    tennis_store.save_stats(PlayerStats(
        player_id=djokovic, ranking=1, elo_rating=2100, elo_clay=2050,
        career_win_pct=0.83, clay_win_pct=0.80, recent_form_5=4,
        aces_per_match=6.5, first_serve_pct=0.65,
    ))
    tennis_store.save_stats(PlayerStats(
        player_id=nadal, ranking=3, elo_rating=2050, elo_clay=2200,
        career_win_pct=0.83, clay_win_pct=0.91, recent_form_5=3,
        aces_per_match=3.2, first_serve_pct=0.68,
    ))
    tennis_store.insert_match(Match(
        player1_id=djokovic, player2_id=nadal, winner_id=nadal,
        match_date=date(2022, 5, 31), tournament_name="Roland Garros",
        tournament_level="Grand Slam", surface="clay", best_of=5,
    ))
    return tennis_store
