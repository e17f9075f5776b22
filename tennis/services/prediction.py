"""Heuristic match-outcome model: fixed logistic weights over stat differences.

Pure functions with no I/O or caching. Feature order matches WEIGHTS.
"""

from __future__ import annotations

import math
from datetime import date

from tennis.api.models import (
    FeatureImportance,
    HeadToHead,
    Player,
    PlayerStats,
    PredictionInput,
    PredictionResult,
)

MODEL_VERSION = "v1.0"
DEFAULT_AGE = 30.0
DEFAULT_ELO = 1500.0
UNRANKED = 100

WEIGHTS = [
    -0.02,  # age difference
    0.01,   # ranking difference (positive = player1 ranked better)
    0.003,  # surface elo difference
    2.0,    # surface win % difference
    0.15,   # recent form difference
    1.5,    # head-to-head advantage
    0.3,    # serve advantage
]


def age_years(birth_date: date | None, today: date) -> float:
    if birth_date is None:
        return DEFAULT_AGE
    return (today - birth_date).days / 365.25


def surface_elo(stats: PlayerStats, surface: str) -> float:
    """Surface elo, falling back to overall elo and then 1500. Indoor uses hard."""
    by_surface = {
        "clay": stats.elo_clay,
        "grass": stats.elo_grass,
        "hard": stats.elo_hard,
        "indoor": stats.elo_hard,
    }
    return by_surface.get(surface) or stats.elo_rating or DEFAULT_ELO


def surface_win_pct(stats: PlayerStats, surface: str) -> float:
    by_surface = {
        "clay": stats.clay_win_pct,
        "grass": stats.grass_win_pct,
        "hard": stats.hard_win_pct,
        "indoor": stats.indoor_win_pct,
    }
    return by_surface.get(surface, stats.career_win_pct)


def confidence_level(player1_probability: float) -> str:
    diff = abs(player1_probability - 0.5)
    if diff < 0.1:
        return "low"
    if diff < 0.25:
        return "medium"
    return "high"


def calculate_match_prediction(
    player1: Player,
    stats1: PlayerStats,
    player2: Player,
    stats2: PlayerStats,
    h2h: HeadToHead | None,
    prediction_input: PredictionInput,
    today: date | None = None,
) -> PredictionResult:
    today = today or date.today()
    surface = prediction_input.surface
    features: list[float] = []
    importance: list[FeatureImportance] = []

    features.append(age_years(player1.birth_date, today) - age_years(player2.birth_date, today))

    ranking_diff = (stats2.ranking or UNRANKED) - (stats1.ranking or UNRANKED)
    features.append(ranking_diff)
    importance.append(FeatureImportance(
        feature="Ranking Difference",
        importance=abs(ranking_diff) / 100,
        description=(
            f"{player1.name} ranked {stats1.ranking or 'unranked'}, "
            f"{player2.name} ranked {stats2.ranking or 'unranked'}"
        ),
    ))

    elo1, elo2 = surface_elo(stats1, surface), surface_elo(stats2, surface)
    features.append(elo1 - elo2)
    importance.append(FeatureImportance(
        feature="Elo Rating Difference",
        importance=abs(elo1 - elo2) / 200,
        description=f"{player1.name}: {elo1:.0f}, {player2.name}: {elo2:.0f} on {surface}",
    ))

    win1, win2 = surface_win_pct(stats1, surface), surface_win_pct(stats2, surface)
    features.append(win1 - win2)
    importance.append(FeatureImportance(
        feature="Surface Win % Difference",
        importance=abs(win1 - win2),
        description=(
            f"{player1.name}: {win1 * 100:.1f}%, {player2.name}: {win2 * 100:.1f}% on {surface}"
        ),
    ))

    form_diff = stats1.recent_form_5 - stats2.recent_form_5
    features.append(form_diff)
    importance.append(FeatureImportance(
        feature="Recent Form (Last 5)",
        importance=abs(form_diff) / 5,
        description=(
            f"{player1.name}: {stats1.recent_form_5}/5, {player2.name}: {stats2.recent_form_5}/5"
        ),
    ))

    h2h_advantage = 0.0
    if h2h is not None and h2h.total_matches > 0 and player1.id is not None:
        wins = h2h.wins_for(player1.id)
        h2h_advantage = wins / h2h.total_matches - 0.5
        importance.append(FeatureImportance(
            feature="Head-to-Head Record",
            importance=abs(h2h_advantage) * 2,
            description=(
                f"{player1.name} leads {wins}-{h2h.total_matches - wins} "
                f"in {h2h.total_matches} matches"
            ),
        ))
    features.append(h2h_advantage)

    features.append(
        (stats1.aces_per_match - stats2.aces_per_match) / 10
        + (stats1.first_serve_pct - stats2.first_serve_pct)
    )

    logit = sum(f * w for f, w in zip(features, WEIGHTS))
    p1 = 1 / (1 + math.exp(-logit))
    p2 = 1 - p1

    return PredictionResult(
        predicted_winner=player1.name if p1 > 0.5 else player2.name,
        win_probability=max(p1, p2),
        player1_probability=p1,
        player2_probability=p2,
        confidence_level=confidence_level(p1),
        feature_importance=sorted(importance, key=lambda fi: fi.importance, reverse=True),
        model_version=MODEL_VERSION,
    )
