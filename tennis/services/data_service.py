"""Orchestrator for the read paths: check cache, else query store / API and fill cache."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from tennis.api.client import TennisAPIClient
from tennis.api.endpoints import get_rankings, get_recent_and_upcoming, get_tournaments
from tennis.api.models import (
    HeadToHead,
    LiveData,
    LiveMatch,
    LiveRanking,
    LiveTournament,
    Player,
    PlayerList,
    PlayerProfile,
    PlayerStats,
    PredictionInput,
    PredictionPage,
    PredictionResult,
)
from tennis.config import Settings
from tennis.services.cache import CacheBackend, create_cache
from tennis.services.invalidation import InvalidationRouter
from tennis.services.prediction import calculate_match_prediction
from tennis.services.store import TennisStore
from tennis.services.tennis_cache import TennisCache

log = logging.getLogger(__name__)

TOURS = ("atp", "wta")
MAX_LIVE_DAYS = 365


class PlayerNotFoundError(LookupError):
    """Raised when a player (or their statistics) is not in the store."""


def validate_live_args(tour: str, days: int = 7) -> None:
    if tour not in TOURS:
        raise ValueError("Tour must be 'atp' or 'wta'")
    if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= MAX_LIVE_DAYS:
        raise ValueError(f"Days must be a number between 1 and {MAX_LIVE_DAYS}")


class TennisService:
    """Serves players, predictions and live data through the shared cache."""

    def __init__(
        self,
        settings: Settings,
        store: TennisStore | None = None,
        client: TennisAPIClient | None = None,
        cache: CacheBackend | None = None,
    ) -> None:
        self.settings = settings
        self.store = store or TennisStore(settings.db_path)
        self.client = client or TennisAPIClient(
            settings.api_key,
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
        )
        backend = cache or create_cache(settings.cache_url, settings.cache_max_entries)
        self.cache = TennisCache(backend, ttls=settings.cache_ttls)
        self.invalidation = InvalidationRouter(backend)

    async def close(self) -> None:
        await self.client.close()
        self.store.close()

    # ── Players ──

    def list_players(self) -> PlayerList:
        cached = self.cache.get_all_players()
        if cached is not None:
            return PlayerList(players=cached, from_cache=True)
        players = self.store.list_players()
        self.cache.set_all_players(players)
        return PlayerList(players=players)

    def get_player(self, name: str) -> PlayerProfile:
        """Player by name (case-insensitive) with their latest stats."""
        cached = self.cache.get_player_data(name)
        if cached is not None:
            return cached.model_copy(update={"from_cache": True})

        player = self.store.find_player(name)
        if player is None:
            raise PlayerNotFoundError(f'Player "{name}" not found')
        profile = PlayerProfile(player=player, latest_stats=self.store.latest_stats(player.id))
        self.cache.set_player_data(name, profile)
        return profile

    def save_player(self, player: Player) -> int:
        """Insert or update a player, then drop the cached views of it."""
        player_id = self.store.upsert_player(player)
        self.invalidation.player_written(player.name)
        return player_id

    def _player_stats(self, player_id: int) -> PlayerStats | None:
        stats = self.cache.get_player_stats(player_id)
        if stats is None:
            stats = self.store.latest_stats(player_id)
            if stats is not None:
                self.cache.set_player_stats(player_id, stats)
        return stats

    def _head_to_head(self, player1_id: int, player2_id: int) -> HeadToHead | None:
        h2h = self.cache.get_head_to_head(player1_id, player2_id)
        if h2h is None:
            h2h = self.store.head_to_head(player1_id, player2_id)
            if h2h is not None:
                self.cache.set_head_to_head(player1_id, player2_id, h2h)
        return h2h

    # ── Predictions ──

    def predict_match(self, prediction_input: PredictionInput, today: date | None = None) -> PredictionResult:
        """Predict a match, reusing a cached result for the same ordered pair."""
        cached = self.cache.get_prediction(
            prediction_input.player1_name,
            prediction_input.player2_name,
            prediction_input.surface,
            prediction_input.tournament_level,
        )
        if cached is not None:
            return cached

        player1 = self.store.find_player(prediction_input.player1_name)
        if player1 is None:
            raise PlayerNotFoundError(f'Player "{prediction_input.player1_name}" not found')
        player2 = self.store.find_player(prediction_input.player2_name)
        if player2 is None:
            raise PlayerNotFoundError(f'Player "{prediction_input.player2_name}" not found')

        stats1 = self._player_stats(player1.id)
        stats2 = self._player_stats(player2.id)
        if stats1 is None or stats2 is None:
            raise PlayerNotFoundError("Player statistics not found")

        result = calculate_match_prediction(
            player1, stats1, player2, stats2,
            self._head_to_head(player1.id, player2.id),
            prediction_input,
            today=today,
        )
        self.store.insert_prediction(prediction_input, result)
        self.cache.set_prediction(
            prediction_input.player1_name,
            prediction_input.player2_name,
            prediction_input.surface,
            result,
            tournament_level=prediction_input.tournament_level,
        )
        return result

    def get_predictions(self, limit: int = 50, player: str | None = None) -> PredictionPage:
        cached = self.cache.get_predictions_list(limit, player)
        if cached is not None:
            return cached.model_copy(update={"from_cache": True})
        page = PredictionPage(
            predictions=self.store.list_predictions(limit, player),
            total=self.store.count_predictions(player),
        )
        self.cache.set_predictions_list(limit, player, page)
        return page

    # ── Live data ──

    async def get_live_rankings(self, tour: str = "atp") -> LiveData:
        validate_live_args(tour)
        now = datetime.now(timezone.utc)
        cached = self.cache.get_rankings(tour)
        if cached is not None:
            return LiveData(rankings=cached, last_updated=now, from_cache=True)

        raw = await get_rankings(self.client, tour)
        rankings = sorted(
            (
                LiveRanking(
                    player_name=r.player_name,
                    ranking=r.ranking,
                    points=r.points,
                    country=r.country or "Unknown",
                    movement=r.movement,
                )
                for r in raw
                if r.player_name and r.ranking and r.points
            ),
            key=lambda r: r.ranking,
        )
        self.cache.set_rankings(tour, rankings)
        return LiveData(rankings=rankings, last_updated=now)

    async def get_live_matches(self, tour: str = "atp", days: int = 7) -> LiveData:
        validate_live_args(tour, days)
        now = datetime.now(timezone.utc)
        cached = self.cache.get_matches(tour, days)
        if cached is not None:
            return LiveData(matches=cached, last_updated=now, from_cache=True)

        raw = await get_recent_and_upcoming(self.client, tour, days)
        matches: list[LiveMatch] = []
        for m in raw:
            if not (m.player1 and m.player1.name and m.player2 and m.player2.name):
                continue
            if not m.tournament_name or m.player1.name == m.player2.name:
                continue
            matches.append(LiveMatch(
                id=m.id,
                tournament_name=m.tournament_name,
                tournament_level=m.tournament_level or "Unknown",
                surface=m.surface or "hard",
                round=m.round or "Unknown",
                date=m.date,
                player1_name=m.player1.name,
                player2_name=m.player2.name,
                winner_name=m.winner.name if m.winner else None,
                score=m.score,
                status=m.status or "unknown",
                location=m.location,
            ))
        matches.sort(key=lambda m: m.date)
        self.cache.set_matches(tour, days, matches)
        return LiveData(matches=matches, last_updated=now)

    async def get_live_tournaments(self, tour: str = "atp") -> LiveData:
        validate_live_args(tour)
        now = datetime.now(timezone.utc)
        cached = self.cache.get_tournaments(tour)
        if cached is not None:
            return LiveData(tournaments=cached, last_updated=now, from_cache=True)

        raw = await get_tournaments(self.client, tour, year=now.year, status="upcoming")
        tournaments = sorted(
            (
                LiveTournament(
                    id=t.id,
                    name=t.name,
                    level=t.level or "Unknown",
                    surface=t.surface or "hard",
                    location=t.location,
                    country=t.country or "Unknown",
                    start_date=t.start_date,
                    end_date=t.end_date,
                    prize_money=t.prize_money,
                )
                for t in raw
                if t.name and t.location and t.start_date and t.end_date
            ),
            key=lambda t: t.start_date,
        )
        self.cache.set_tournaments(tour, tournaments)
        return LiveData(tournaments=tournaments, last_updated=now)
