"""Periodic sync: pull players, rankings and matches, recompute stats, purge stale cache."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from tennis.api.client import TennisAPIClient
from tennis.api.endpoints import get_players, get_rankings, get_recent_matches
from tennis.api.models import APIPlayer, Match, Player
from tennis.config import Settings
from tennis.services.invalidation import InvalidationRouter
from tennis.services.store import TennisStore

log = logging.getLogger(__name__)

DATA_TYPES = ("players", "rankings", "matches")
TOURS = ("atp", "wta")
PLAYER_FETCH_LIMIT = 500
PLAYER_REFRESH_AGE = timedelta(days=7)


def player_from_api(api_player: APIPlayer) -> Player:
    """Map an API player onto the stored record."""
    return Player(
        name=api_player.name,
        birth_date=api_player.birth_date,
        height_cm=api_player.height or None,
        dominant_hand="left" if api_player.plays == "L" else "right",
        two_handed_backhand=api_player.backhand in ("2", "Two-handed"),
        country=api_player.country,
    )


@dataclass
class SyncResult:
    players: dict[str, int] = field(default_factory=dict)
    rankings: dict[str, int] = field(default_factory=dict)
    matches: dict[str, int] = field(default_factory=dict)
    players_updated: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class SyncService:
    """Writes API data into the store and tells the cache what changed.

    Each step reports its mutations to the InvalidationRouter only after the
    store write has committed.
    """

    def __init__(
        self,
        settings: Settings,
        store: TennisStore,
        client: TennisAPIClient,
        invalidation: InvalidationRouter,
    ) -> None:
        self.settings = settings
        self.store = store
        self.client = client
        self.invalidation = invalidation

    def _tours(self, tour: str | None) -> list[str]:
        if tour is None:
            return list(self.settings.tours)
        if tour == "both":
            return list(TOURS)
        if tour not in TOURS:
            raise ValueError(f"Invalid tour: {tour}")
        return [tour]

    def _write_player(self, player: Player) -> int:
        player_id = self.store.upsert_player(player)
        self.invalidation.player_written(player.name)
        return player_id

    def _get_or_create_player(self, api_player: APIPlayer | None) -> Player | None:
        """Resolve a match participant, creating the player row if it is new."""
        if api_player is None or not api_player.name:
            return None
        player = self.store.find_player(api_player.name)
        if player is not None:
            return player
        try:
            new_player = player_from_api(api_player)
            player_id = self._write_player(new_player)
        except Exception:
            log.warning("Failed to create player %s", api_player.name, exc_info=True)
            return None
        log.debug("Created player %s from match data", api_player.name)
        return new_player.model_copy(update={"id": player_id})

    async def sync_players(
        self,
        result: SyncResult | None = None,
        *,
        tour: str | None = None,
        force_update: bool = False,
        now: datetime | None = None,
    ) -> SyncResult:
        """Insert new API players and refresh rows older than PLAYER_REFRESH_AGE."""
        result = result or SyncResult()
        now = now or datetime.now(timezone.utc)
        for current in self._tours(tour):
            try:
                api_players = await get_players(self.client, current, limit=PLAYER_FETCH_LIMIT)
            except Exception as exc:
                log.exception("Failed to sync %s players", current.upper())
                result.errors.append(f"{current} players: {exc}")
                continue

            synced = 0
            for api_player in api_players:
                if not api_player.name:
                    continue
                try:
                    existing = self.store.find_player(api_player.name)
                    if existing is not None and not force_update:
                        updated_at = self.store.player_updated_at(existing.id)
                        if updated_at is not None and now - updated_at <= PLAYER_REFRESH_AGE:
                            continue
                    self._write_player(player_from_api(api_player))
                except Exception:
                    log.warning("Failed to sync player %s", api_player.name, exc_info=True)
                    continue
                synced += 1

            result.players[current] = result.players.get(current, 0) + synced
            log.info("Synced %d %s players", synced, current.upper())
        return result

    async def sync_rankings(
        self, result: SyncResult | None = None, *, tour: str | None = None
    ) -> SyncResult:
        result = result or SyncResult()
        for current in self._tours(tour):
            try:
                rankings = await get_rankings(self.client, current)
            except Exception as exc:
                log.exception("Failed to sync %s rankings", current.upper())
                result.errors.append(f"{current} rankings: {exc}")
                continue

            synced = 0
            for ranking in rankings:
                if not ranking.player_name or not ranking.ranking:
                    continue
                player = self.store.find_player(ranking.player_name)
                if player is None:
                    continue
                try:
                    self.store.upsert_ranking(player.id, ranking.ranking)
                except Exception:
                    log.warning("Failed to sync ranking for %s", ranking.player_name, exc_info=True)
                    continue
                self.invalidation.ranking_ingested(player.id)
                synced += 1

            self.invalidation.rankings_synced(current)
            result.rankings[current] = synced
            log.info("Synced %d %s rankings", synced, current.upper())
        return result

    async def sync_recent_matches(
        self,
        result: SyncResult | None = None,
        *,
        tour: str | None = None,
        days_back: int | None = None,
    ) -> SyncResult:
        """Store completed matches, creating unknown participants on the way."""
        result = result or SyncResult()
        days = days_back or self.settings.sync_match_days
        for current in self._tours(tour):
            try:
                matches = await get_recent_matches(self.client, current, days)
            except Exception as exc:
                log.exception("Failed to sync %s matches", current.upper())
                result.errors.append(f"{current} matches: {exc}")
                continue

            synced = 0
            for m in matches:
                if m.status != "completed" or m.winner is None:
                    continue
                player1 = self._get_or_create_player(m.player1)
                player2 = self._get_or_create_player(m.player2)
                if player1 is None or player2 is None:
                    continue
                tournament = m.tournament_name or ""
                try:
                    match_date = date.fromisoformat(m.date[:10])
                except ValueError:
                    log.warning("Skipping match %s with bad date %r", m.id, m.date)
                    continue
                if self.store.find_match(player1.id, player2.id, match_date.isoformat(), tournament):
                    continue
                try:
                    self.store.insert_match(Match(
                        player1_id=player1.id,
                        player2_id=player2.id,
                        winner_id=player1.id if m.winner.name == m.player1.name else player2.id,
                        match_date=match_date,
                        tournament_name=tournament,
                        tournament_level=m.tournament_level,
                        surface=m.surface or "hard",
                        round_name=m.round,
                        best_of=m.best_of or 3,
                        score=m.score or "",
                        location=m.location or "",
                        indoor=bool(m.indoor),
                    ))
                except Exception:
                    log.warning("Failed to sync match %s", m.id, exc_info=True)
                    continue
                self.invalidation.match_ingested(player1.id, player2.id)
                synced += 1

            self.invalidation.matches_synced()
            result.matches[current] = synced
            log.info("Synced %d new %s matches", synced, current.upper())
        return result

    def update_player_statistics(self, result: SyncResult | None = None) -> SyncResult:
        """Recompute career and surface win rates from stored matches."""
        result = result or SyncResult()
        players = self.store.player_ids()
        for player_id, name in players:
            try:
                summary = self.store.career_summary(player_id)
                if summary["total_matches"] == 0:
                    continue
                recent = self.store.recent_winner_ids(player_id, 5)
                form = sum(1 for winner_id in recent if winner_id == player_id)
                self.store.update_career_stats(player_id, summary, form)
            except Exception:
                log.warning("Failed to update stats for player %s", name, exc_info=True)
                continue
            self.invalidation.player_stats_changed(player_id)
            result.players_updated += 1
        log.info("Updated statistics for %d of %d players", result.players_updated, len(players))
        return result

    async def run(
        self,
        data_types: tuple[str, ...] | list[str] = DATA_TYPES,
        *,
        tour: str | None = None,
        days_back: int | None = None,
        force_update: bool = False,
    ) -> SyncResult:
        """One pass over the selected data types.

        Statistics are always recomputed, and predictions and lists are
        purged last, after all writes.
        """
        unknown = set(data_types) - set(DATA_TYPES)
        if unknown:
            raise ValueError(f"Unknown data types: {', '.join(sorted(unknown))}")
        tours = self._tours(tour)

        log.info("Starting tennis data sync: %s for %s", ", ".join(data_types), ", ".join(tours))
        result = SyncResult()
        for current in tours:
            if "players" in data_types:
                await self.sync_players(result, tour=current, force_update=force_update)
            if "rankings" in data_types:
                await self.sync_rankings(result, tour=current)
            if "matches" in data_types:
                await self.sync_recent_matches(result, tour=current, days_back=days_back)
        self.update_player_statistics(result)
        self.invalidation.stats_recomputed()
        if result.success:
            log.info("Tennis data sync completed")
        else:
            log.warning("Tennis data sync completed with %d errors", len(result.errors))
        return result

    async def run_forever(self) -> None:
        interval = self.settings.sync_interval_hours * 3600
        while True:
            try:
                await self.run()
            except Exception:
                log.exception("Tennis data sync failed")
            await asyncio.sleep(interval)
