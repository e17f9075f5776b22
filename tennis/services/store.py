"""SQLite persistence for players, matches, statistics and predictions."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from tennis.api.models import (
    HeadToHead,
    Match,
    Player,
    PlayerStats,
    PredictionInput,
    PredictionRecord,
    PredictionResult,
)
from tennis.services.cache_keys import ordered_pair

SURFACES = ("clay", "grass", "hard", "indoor")

_PLAYER_COLUMNS = "id, name, birth_date, height_cm, dominant_hand, two_handed_backhand, country"


def name_key(name: str) -> str:
    """Lookup key for a player name. Matches the lower-casing used in cache keys."""
    return name.lower()


class TennisStore:
    """Source of truth for tennis records. The cache never reads this directly."""

    def __init__(self, db_path: Path | str) -> None:
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS players (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                name_key TEXT NOT NULL UNIQUE,
                birth_date TEXT,
                height_cm INTEGER,
                dominant_hand TEXT,
                two_handed_backhand INTEGER NOT NULL DEFAULT 0,
                country TEXT,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS matches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                player1_id INTEGER NOT NULL REFERENCES players(id),
                player2_id INTEGER NOT NULL REFERENCES players(id),
                winner_id INTEGER NOT NULL REFERENCES players(id),
                match_date TEXT NOT NULL,
                tournament_name TEXT NOT NULL DEFAULT '',
                tournament_level TEXT,
                surface TEXT NOT NULL,
                round_name TEXT,
                best_of INTEGER NOT NULL DEFAULT 3,
                score TEXT NOT NULL DEFAULT '',
                location TEXT NOT NULL DEFAULT '',
                indoor INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS player_stats (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                player_id INTEGER NOT NULL REFERENCES players(id),
                match_id INTEGER NOT NULL DEFAULT 0,
                ranking INTEGER,
                elo_rating REAL,
                elo_clay REAL,
                elo_grass REAL,
                elo_hard REAL,
                career_matches_played INTEGER NOT NULL DEFAULT 0,
                career_matches_won INTEGER NOT NULL DEFAULT 0,
                career_win_pct REAL NOT NULL DEFAULT 0,
                clay_win_pct REAL NOT NULL DEFAULT 0,
                grass_win_pct REAL NOT NULL DEFAULT 0,
                hard_win_pct REAL NOT NULL DEFAULT 0,
                indoor_win_pct REAL NOT NULL DEFAULT 0,
                aces_per_match REAL NOT NULL DEFAULT 0,
                first_serve_pct REAL NOT NULL DEFAULT 0,
                recent_form_5 INTEGER NOT NULL DEFAULT 0,
                years_on_tour REAL NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                UNIQUE(player_id, match_id)
            );

            CREATE TABLE IF NOT EXISTS head_to_head (
                player1_id INTEGER NOT NULL REFERENCES players(id),
                player2_id INTEGER NOT NULL REFERENCES players(id),
                total_matches INTEGER NOT NULL DEFAULT 0,
                player1_wins INTEGER NOT NULL DEFAULT 0,
                player2_wins INTEGER NOT NULL DEFAULT 0,
                last_match_date TEXT,
                PRIMARY KEY (player1_id, player2_id)
            );

            CREATE TABLE IF NOT EXISTS predictions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                player1_name TEXT NOT NULL,
                player2_name TEXT NOT NULL,
                surface TEXT NOT NULL,
                tournament_level TEXT NOT NULL,
                predicted_winner TEXT NOT NULL,
                win_probability REAL NOT NULL,
                feature_importance TEXT NOT NULL DEFAULT '[]',
                model_version TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_matches_players
                ON matches(player1_id, player2_id, match_date);
            CREATE INDEX IF NOT EXISTS idx_player_stats_latest
                ON player_stats(player_id, created_at DESC);
            CREATE INDEX IF NOT EXISTS idx_predictions_created
                ON predictions(created_at DESC);
        """)
        self._conn.commit()

    # ── Players ──

    def list_players(self) -> list[Player]:
        rows = self._conn.execute(
            f"SELECT {_PLAYER_COLUMNS} FROM players ORDER BY name_key, id"
        ).fetchall()
        return [Player(**dict(r)) for r in rows]

    def find_player(self, name: str) -> Player | None:
        """Case-insensitive lookup by full name."""
        row = self._conn.execute(
            f"SELECT {_PLAYER_COLUMNS} FROM players WHERE name_key = ?",
            (name_key(name),),
        ).fetchone()
        return Player(**dict(row)) if row else None

    def upsert_player(self, player: Player) -> int:
        """Insert a player or update the existing row with the same name. Returns the id."""
        self._conn.execute("""
            INSERT INTO players
                (name, name_key, birth_date, height_cm, dominant_hand, two_handed_backhand, country)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(name_key) DO UPDATE SET
                birth_date = COALESCE(excluded.birth_date, birth_date),
                height_cm = COALESCE(excluded.height_cm, height_cm),
                dominant_hand = COALESCE(excluded.dominant_hand, dominant_hand),
                two_handed_backhand = excluded.two_handed_backhand,
                country = COALESCE(excluded.country, country),
                updated_at = CURRENT_TIMESTAMP
        """, (
            player.name,
            name_key(player.name),
            player.birth_date.isoformat() if player.birth_date else None,
            player.height_cm,
            player.dominant_hand,
            1 if player.two_handed_backhand else 0,
            player.country,
        ))
        self._conn.commit()
        row = self._conn.execute(
            "SELECT id FROM players WHERE name_key = ?", (name_key(player.name),)
        ).fetchone()
        return row["id"]

    def player_updated_at(self, player_id: int) -> datetime | None:
        """When the player row was last written, in UTC."""
        row = self._conn.execute(
            "SELECT updated_at FROM players WHERE id = ?", (player_id,)
        ).fetchone()
        if row is None:
            return None
        return datetime.fromisoformat(row["updated_at"]).replace(tzinfo=timezone.utc)

    def player_ids(self) -> list[tuple[int, str]]:
        rows = self._conn.execute("SELECT id, name FROM players ORDER BY id").fetchall()
        return [(r["id"], r["name"]) for r in rows]

    # ── Statistics ──

    def latest_stats(self, player_id: int) -> PlayerStats | None:
        row = self._conn.execute("""
            SELECT * FROM player_stats
            WHERE player_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT 1
        """, (player_id,)).fetchone()
        if row is None:
            return None
        data = dict(row)
        data.pop("id")
        return PlayerStats(**data)

    def save_stats(self, stats: PlayerStats) -> None:
        data = stats.model_dump(exclude={"created_at"})
        columns = ", ".join(data)
        placeholders = ", ".join("?" * len(data))
        updates = ", ".join(f"{c} = excluded.{c}" for c in data if c not in ("player_id", "match_id"))
        self._conn.execute(f"""
            INSERT INTO player_stats ({columns}, created_at)
            VALUES ({placeholders}, ?)
            ON CONFLICT(player_id, match_id) DO UPDATE SET
                {updates}, created_at = excluded.created_at
        """, [*data.values(), datetime.now().isoformat()])
        self._conn.commit()

    def upsert_ranking(self, player_id: int, ranking: int) -> None:
        """Store a ranking on the player's rolling (match_id 0) stats row."""
        self._conn.execute("""
            INSERT INTO player_stats (player_id, match_id, ranking, elo_rating, created_at)
            VALUES (?, 0, ?, ?, ?)
            ON CONFLICT(player_id, match_id) DO UPDATE SET
                ranking = excluded.ranking,
                elo_rating = excluded.elo_rating,
                created_at = excluded.created_at
        """, (player_id, ranking, 1500 + (200 - ranking) * 2, datetime.now().isoformat()))
        self._conn.commit()

    def career_summary(self, player_id: int) -> dict[str, int]:
        """Match and win counts overall and per surface."""
        row = self._conn.execute("""
            SELECT
                COUNT(*) AS total_matches,
                SUM(winner_id = :pid) AS total_wins,
                SUM(surface = 'clay') AS clay_matches,
                SUM(surface = 'clay' AND winner_id = :pid) AS clay_wins,
                SUM(surface = 'grass') AS grass_matches,
                SUM(surface = 'grass' AND winner_id = :pid) AS grass_wins,
                SUM(surface = 'hard') AS hard_matches,
                SUM(surface = 'hard' AND winner_id = :pid) AS hard_wins,
                SUM(indoor = 1) AS indoor_matches,
                SUM(indoor = 1 AND winner_id = :pid) AS indoor_wins
            FROM matches
            WHERE player1_id = :pid OR player2_id = :pid
        """, {"pid": player_id}).fetchone()
        return {k: row[k] or 0 for k in row.keys()}

    def recent_winner_ids(self, player_id: int, limit: int = 5) -> list[int]:
        rows = self._conn.execute("""
            SELECT winner_id FROM matches
            WHERE player1_id = ? OR player2_id = ?
            ORDER BY match_date DESC, id DESC
            LIMIT ?
        """, (player_id, player_id, limit)).fetchall()
        return [r["winner_id"] for r in rows]

    def update_career_stats(self, player_id: int, summary: dict[str, int], recent_form: int) -> None:
        """Write derived career numbers onto the rolling stats row, creating it if needed."""
        def pct(wins: int, played: int) -> float:
            return wins / played if played else 0.0

        values = {
            "career_matches_played": summary["total_matches"],
            "career_matches_won": summary["total_wins"],
            "career_win_pct": pct(summary["total_wins"], summary["total_matches"]),
            **{
                f"{s}_win_pct": pct(summary[f"{s}_wins"], summary[f"{s}_matches"])
                for s in SURFACES
            },
            "recent_form_5": recent_form,
        }
        columns = ", ".join(values)
        updates = ", ".join(f"{c} = excluded.{c}" for c in values)
        self._conn.execute(f"""
            INSERT INTO player_stats (player_id, match_id, {columns}, created_at)
            VALUES (?, 0, {", ".join("?" * len(values))}, ?)
            ON CONFLICT(player_id, match_id) DO UPDATE SET
                {updates}, created_at = excluded.created_at
        """, [player_id, *values.values(), datetime.now().isoformat()])
        self._conn.commit()

    # ── Matches ──

    def find_match(
        self, player1_id: int, player2_id: int, match_date: str, tournament_name: str
    ) -> int | None:
        row = self._conn.execute("""
            SELECT id FROM matches
            WHERE player1_id = ? AND player2_id = ?
              AND match_date = ? AND tournament_name = ?
        """, (player1_id, player2_id, match_date, tournament_name)).fetchone()
        return row["id"] if row else None

    def insert_match(self, match: Match) -> int:
        """Insert a match and fold it into the pair's head-to-head record.

        Both writes commit together or not at all.
        """
        low, high = ordered_pair(match.player1_id, match.player2_id)
        low_won = 1 if match.winner_id == low else 0
        with self._conn:
            cur = self._conn.execute("""
                INSERT INTO matches (
                    player1_id, player2_id, winner_id, match_date, tournament_name,
                    tournament_level, surface, round_name, best_of, score, location, indoor
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                match.player1_id, match.player2_id, match.winner_id,
                match.match_date.isoformat(), match.tournament_name,
                match.tournament_level, match.surface, match.round_name,
                match.best_of, match.score, match.location, 1 if match.indoor else 0,
            ))
            self._conn.execute("""
                INSERT INTO head_to_head
                    (player1_id, player2_id, total_matches, player1_wins, player2_wins, last_match_date)
                VALUES (?, ?, 1, ?, ?, ?)
                ON CONFLICT(player1_id, player2_id) DO UPDATE SET
                    total_matches = total_matches + 1,
                    player1_wins = player1_wins + excluded.player1_wins,
                    player2_wins = player2_wins + excluded.player2_wins,
                    last_match_date = MAX(COALESCE(last_match_date, ''), excluded.last_match_date)
            """, (low, high, low_won, 1 - low_won, match.match_date.isoformat()))
        return cur.lastrowid

    def head_to_head(self, player1_id: int, player2_id: int) -> HeadToHead | None:
        low, high = ordered_pair(player1_id, player2_id)
        row = self._conn.execute(
            "SELECT * FROM head_to_head WHERE player1_id = ? AND player2_id = ?",
            (low, high),
        ).fetchone()
        return HeadToHead(**dict(row)) if row else None

    # ── Predictions ──

    def insert_prediction(self, prediction_input: PredictionInput, result: PredictionResult) -> int:
        cur = self._conn.execute("""
            INSERT INTO predictions (
                player1_name, player2_name, surface, tournament_level,
                predicted_winner, win_probability, feature_importance,
                model_version, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            prediction_input.player1_name,
            prediction_input.player2_name,
            prediction_input.surface,
            prediction_input.tournament_level or "Unknown",
            result.predicted_winner,
            result.win_probability,
            json.dumps([fi.model_dump() for fi in result.feature_importance]),
            result.model_version,
            datetime.now().isoformat(),
        ))
        self._conn.commit()
        return cur.lastrowid

    @staticmethod
    def _player_filter(player: str | None) -> tuple[str, list]:
        if not player:
            return "", []
        like = f"%{player}%"
        return (
            "WHERE player1_name LIKE ? COLLATE NOCASE OR player2_name LIKE ? COLLATE NOCASE",
            [like, like],
        )

    def list_predictions(self, limit: int = 50, player: str | None = None) -> list[PredictionRecord]:
        """Most recent predictions first, optionally filtered by a name fragment."""
        where, params = self._player_filter(player)
        rows = self._conn.execute(f"""
            SELECT id, player1_name, player2_name, surface, tournament_level,
                   predicted_winner, win_probability, model_version, created_at
            FROM predictions
            {where}
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """, [*params, limit]).fetchall()
        return [PredictionRecord(**dict(r)) for r in rows]

    def count_predictions(self, player: str | None = None) -> int:
        where, params = self._player_filter(player)
        row = self._conn.execute(
            f"SELECT COUNT(*) AS count FROM predictions {where}", params
        ).fetchone()
        return row["count"]

    def close(self) -> None:
        self._conn.close()
