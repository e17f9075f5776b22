"""Map data mutations to cache purges.

Invalidation is coarse: whole key families are dropped by substring rather
than tracking which entries depend on which rows.
"""

from __future__ import annotations

import logging

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
    build_key,
)

log = logging.getLogger(__name__)


class InvalidationRouter:
    """Purges cache entries after the store has been written."""

    def __init__(self, cache: CacheBackend) -> None:
        self.cache = cache

    def _purge(self, patterns: list[str]) -> int:
        removed = 0
        for pattern in patterns:
            removed += self.cache.invalidate_pattern(pattern)
        log.debug("Invalidated %d entries for %s", removed, patterns)
        return removed

    def player_written(self, name: str | None = None) -> int:
        """A player row was inserted or updated."""
        removed = self._purge([ALL_PLAYERS])
        if name:
            self.cache.delete(build_key(PLAYER_DATA, {"name": name.lower()}))
        return removed

    def player_stats_changed(self, player_id: int) -> int:
        return self._purge([
            f"{PLAYER_STATS}:playerId:{player_id}",
            f"{HEAD_TO_HEAD}:player1Id:{player_id}",
            f"{HEAD_TO_HEAD}:player2Id:{player_id}",
        ])

    def ranking_ingested(self, player_id: int) -> int:
        """A new ranking row was stored for ``player_id``."""
        return self.player_stats_changed(player_id)

    def rankings_synced(self, tour: str) -> int:
        return self._purge([f"{RANKINGS}:tour:{tour}"])

    def match_ingested(self, player1_id: int, player2_id: int) -> int:
        """A match was stored; aggregate stats for both players are stale."""
        removed = self.player_stats_changed(player1_id)
        removed += self.player_stats_changed(player2_id)
        return removed + self.matches_synced()

    def matches_synced(self) -> int:
        return self._purge([f"{MATCHES}:", f"{HEAD_TO_HEAD}:"])

    def stats_recomputed(self) -> int:
        """A statistics pass finished; every prediction may have moved."""
        return self._purge([f"{PREDICTION}:", ALL_PLAYERS, PREDICTIONS_LIST])
