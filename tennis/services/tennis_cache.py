"""Typed cache accessors for each tennis resource, with per-resource TTLs."""

from __future__ import annotations

from typing import Any, Mapping

from tennis.api.models import (
    HeadToHead,
    LiveMatch,
    LiveRanking,
    LiveTournament,
    Player,
    PlayerProfile,
    PlayerStats,
    PredictionPage,
    PredictionResult,
)
from tennis.services.cache import CacheBackend
from tennis.services.cache_keys import (
    ALL_PLAYERS,
    HEAD_TO_HEAD,
    MATCHES,
    PLAYER_DATA,
    PLAYER_STATS,
    PREDICTION,
    PREDICTIONS_LIST,
    RANKINGS,
    TOURNAMENTS,
    build_key,
    pair_params,
)

# Seconds each resource stays fresh.
DEFAULT_TTLS: dict[str, int] = {
    ALL_PLAYERS: 900,
    PLAYER_DATA: 600,
    PREDICTION: 3600,
    PLAYER_STATS: 600,
    HEAD_TO_HEAD: 1800,
    RANKINGS: 3600,
    MATCHES: 1800,
    TOURNAMENTS: 7200,
    PREDICTIONS_LIST: 300,
}


class TennisCache:
    """Cache facade used by the read paths.

    Every ``get_*`` returns None on a miss; the caller computes the value and
    hands it back through the matching ``set_*``.
    """

    def __init__(
        self,
        cache: CacheBackend,
        ttls: Mapping[str, int] | None = None,
    ) -> None:
        self.cache = cache
        self.ttls = {**DEFAULT_TTLS, **(ttls or {})}

    def _get(self, prefix: str, params: Mapping[str, Any]) -> Any | None:
        return self.cache.get(build_key(prefix, params))

    def _set(
        self, prefix: str, params: Mapping[str, Any], value: Any, ttl: int | None
    ) -> None:
        self.cache.set(build_key(prefix, params), value, ttl if ttl is not None else self.ttls[prefix])

    # ── Players ──

    def get_all_players(self) -> list[Player] | None:
        return self._get(ALL_PLAYERS, {})

    def set_all_players(self, players: list[Player], ttl: int | None = None) -> None:
        self._set(ALL_PLAYERS, {}, players, ttl)

    def get_player_data(self, name: str) -> PlayerProfile | None:
        return self._get(PLAYER_DATA, {"name": name.lower()})

    def set_player_data(self, name: str, profile: PlayerProfile, ttl: int | None = None) -> None:
        self._set(PLAYER_DATA, {"name": name.lower()}, profile, ttl)

    def get_player_stats(self, player_id: int) -> PlayerStats | None:
        return self._get(PLAYER_STATS, {"playerId": player_id})

    def set_player_stats(self, player_id: int, stats: PlayerStats, ttl: int | None = None) -> None:
        self._set(PLAYER_STATS, {"playerId": player_id}, stats, ttl)

    def get_head_to_head(self, player1_id: int, player2_id: int) -> HeadToHead | None:
        return self._get(HEAD_TO_HEAD, pair_params(player1_id, player2_id))

    def set_head_to_head(
        self, player1_id: int, player2_id: int, h2h: HeadToHead, ttl: int | None = None
    ) -> None:
        self._set(HEAD_TO_HEAD, pair_params(player1_id, player2_id), h2h, ttl)

    # ── Predictions ──

    @staticmethod
    def _prediction_params(
        player1_name: str, player2_name: str, surface: str, tournament_level: str | None
    ) -> dict[str, str]:
        # Order-sensitive: player1 is the side the probability is reported for.
        return {
            "player1Name": player1_name.lower(),
            "player2Name": player2_name.lower(),
            "surface": surface,
            "tournamentLevel": tournament_level or "default",
        }

    def get_prediction(
        self,
        player1_name: str,
        player2_name: str,
        surface: str,
        tournament_level: str | None = None,
    ) -> PredictionResult | None:
        return self._get(
            PREDICTION,
            self._prediction_params(player1_name, player2_name, surface, tournament_level),
        )

    def set_prediction(
        self,
        player1_name: str,
        player2_name: str,
        surface: str,
        prediction: PredictionResult,
        tournament_level: str | None = None,
        ttl: int | None = None,
    ) -> None:
        self._set(
            PREDICTION,
            self._prediction_params(player1_name, player2_name, surface, tournament_level),
            prediction,
            ttl,
        )

    def get_predictions_list(self, limit: int, player: str | None = None) -> PredictionPage | None:
        return self._get(PREDICTIONS_LIST, {"limit": limit, "player": player or "all"})

    def set_predictions_list(
        self, limit: int, player: str | None, page: PredictionPage, ttl: int | None = None
    ) -> None:
        self._set(PREDICTIONS_LIST, {"limit": limit, "player": player or "all"}, page, ttl)

    def invalidate_all_predictions(self) -> int:
        return self.cache.invalidate_pattern(f"{PREDICTION}:")

    # ── Live data ──

    def get_rankings(self, tour: str) -> list[LiveRanking] | None:
        return self._get(RANKINGS, {"tour": tour})

    def set_rankings(self, tour: str, rankings: list[LiveRanking], ttl: int | None = None) -> None:
        self._set(RANKINGS, {"tour": tour}, rankings, ttl)

    def get_matches(self, tour: str, days: int) -> list[LiveMatch] | None:
        return self._get(MATCHES, {"tour": tour, "days": days})

    def set_matches(
        self, tour: str, days: int, matches: list[LiveMatch], ttl: int | None = None
    ) -> None:
        self._set(MATCHES, {"tour": tour, "days": days}, matches, ttl)

    def get_tournaments(self, tour: str) -> list[LiveTournament] | None:
        return self._get(TOURNAMENTS, {"tour": tour})

    def set_tournaments(
        self, tour: str, tournaments: list[LiveTournament], ttl: int | None = None
    ) -> None:
        self._set(TOURNAMENTS, {"tour": tour}, tournaments, ttl)
