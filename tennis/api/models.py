"""Pydantic models for tennis records, API responses and service results."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

Surface = Literal["clay", "grass", "hard", "indoor"]
Tour = Literal["atp", "wta"]


# ── Stored records ──


class Player(BaseModel):
    id: int | None = None
    name: str
    birth_date: date | None = None
    height_cm: int | None = None
    dominant_hand: Literal["right", "left"] | None = None
    two_handed_backhand: bool = False
    country: str | None = None


class PlayerStats(BaseModel):
    player_id: int
    match_id: int = 0
    ranking: int | None = None
    elo_rating: float | None = None
    elo_clay: float | None = None
    elo_grass: float | None = None
    elo_hard: float | None = None
    career_matches_played: int = 0
    career_matches_won: int = 0
    career_win_pct: float = 0.0
    clay_win_pct: float = 0.0
    grass_win_pct: float = 0.0
    hard_win_pct: float = 0.0
    indoor_win_pct: float = 0.0
    aces_per_match: float = 0.0
    first_serve_pct: float = 0.0
    recent_form_5: int = 0
    years_on_tour: float = 0.0
    created_at: datetime | None = None


class HeadToHead(BaseModel):
    """Aggregate record, always stored with player1_id < player2_id."""

    player1_id: int
    player2_id: int
    total_matches: int = 0
    player1_wins: int = 0
    player2_wins: int = 0
    last_match_date: date | None = None

    def wins_for(self, player_id: int) -> int:
        if player_id == self.player1_id:
            return self.player1_wins
        return self.player2_wins


class Match(BaseModel):
    id: int | None = None
    player1_id: int
    player2_id: int
    winner_id: int
    match_date: date
    tournament_name: str = ""
    tournament_level: str | None = None
    surface: Surface = "hard"
    round_name: str | None = None
    best_of: int = 3
    score: str = ""
    location: str = ""
    indoor: bool = False


# ── Predictions ──


class PredictionInput(BaseModel):
    player1_name: str
    player2_name: str
    surface: Surface
    tournament_level: str | None = None
    best_of: int | None = None
    location: str | None = None
    indoor: bool | None = None


class FeatureImportance(BaseModel):
    feature: str
    importance: float
    description: str


class PredictionResult(BaseModel):
    predicted_winner: str
    win_probability: float
    player1_probability: float
    player2_probability: float
    confidence_level: Literal["low", "medium", "high"]
    feature_importance: list[FeatureImportance] = Field(default_factory=list)
    model_version: str = "v1.0"


class PredictionRecord(BaseModel):
    id: int
    player1_name: str
    player2_name: str
    surface: str
    tournament_level: str
    predicted_winner: str
    win_probability: float
    model_version: str
    created_at: datetime


# ── External tennis data API ──


class APIPlayer(BaseModel):
    id: int
    name: str
    country: str | None = None
    birth_date: date | None = None
    height: int | None = None
    plays: str | None = None
    backhand: str | None = None
    ranking: int | None = None
    points: int | None = None


class APIMatch(BaseModel):
    id: int
    tournament_name: str | None = None
    tournament_level: str | None = None
    surface: str | None = None
    round: str | None = None
    date: str
    player1: APIPlayer | None = None
    player2: APIPlayer | None = None
    winner: APIPlayer | None = None
    score: str | None = None
    status: str | None = None
    best_of: int | None = None
    location: str | None = None
    indoor: bool | None = None


class APITournament(BaseModel):
    id: int
    name: str | None = None
    level: str | None = None
    surface: str | None = None
    location: str | None = None
    country: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    prize_money: float | None = None


class APIRanking(BaseModel):
    player_id: int | None = None
    player_name: str | None = None
    ranking: int | None = None
    points: int | None = None
    country: str | None = None
    movement: int | None = None
    ranking_date: str | None = None


# ── Live views ──


class LiveRanking(BaseModel):
    player_name: str
    ranking: int
    points: int
    country: str = "Unknown"
    movement: int | None = None


class LiveMatch(BaseModel):
    id: int
    tournament_name: str
    tournament_level: str = "Unknown"
    surface: str = "hard"
    round: str = "Unknown"
    date: str
    player1_name: str
    player2_name: str
    winner_name: str | None = None
    score: str | None = None
    status: str = "unknown"
    location: str | None = None


class LiveTournament(BaseModel):
    id: int
    name: str
    level: str = "Unknown"
    surface: str = "hard"
    location: str
    country: str = "Unknown"
    start_date: str
    end_date: str
    prize_money: float | None = None


# ── Service responses ──


class PlayerList(BaseModel):
    players: list[Player]
    from_cache: bool = False


class PlayerProfile(BaseModel):
    player: Player
    latest_stats: PlayerStats | None = None
    from_cache: bool = False


class PredictionPage(BaseModel):
    predictions: list[PredictionRecord]
    total: int
    from_cache: bool = False


class LiveData(BaseModel):
    rankings: list[LiveRanking] | None = None
    matches: list[LiveMatch] | None = None
    tournaments: list[LiveTournament] | None = None
    last_updated: datetime
    from_cache: bool = False
