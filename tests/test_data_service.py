"""Tests for TennisService with an in-memory store and a mocked API client."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from tennis.api.models import APIMatch, APIPlayer, APIRanking, APITournament, Player, PredictionInput
from tennis.services.data_service import PlayerNotFoundError, validate_live_args

CLAY_FINAL = PredictionInput(
    player1_name="Novak Djokovic", player2_name="Rafael Nadal", surface="clay",
)


def test_list_players_caches_until_player_written(service, seeded_store):
    first = service.list_players()
    assert not first.from_cache
    assert len(first.players) == 2

    assert service.list_players().from_cache

    service.save_player(Player(name="Carlos Alcaraz", country="ESP"))
    refreshed = service.list_players()
    assert not refreshed.from_cache
    assert len(refreshed.players) == 3


def test_get_player_cached_by_lower_case_name(service, seeded_store):
    profile = service.get_player("Rafael Nadal")
    assert not profile.from_cache
    assert profile.latest_stats.ranking == 3

    again = service.get_player("RAFAEL NADAL")
    assert again.from_cache
    assert again.player.name == "Rafael Nadal"


def test_save_player_drops_cached_profile(service, seeded_store):
    service.get_player("Rafael Nadal")
    service.save_player(Player(name="Rafael Nadal", height_cm=185))
    profile = service.get_player("rafael nadal")
    assert not profile.from_cache
    assert profile.player.height_cm == 185


def test_non_ascii_name_shares_one_row_and_cache_entry(service):
    service.save_player(Player(name="Łukasz Kubot", country="POL"))
    profile = service.get_player("łukasz kubot")
    assert profile.player.name == "Łukasz Kubot"
    assert service.get_player("ŁUKASZ KUBOT").from_cache

    service.save_player(Player(name="łukasz kubot", height_cm=190))
    refreshed = service.get_player("Łukasz Kubot")
    assert not refreshed.from_cache
    assert refreshed.player.height_cm == 190
    assert len(service.list_players().players) == 1


def test_get_player_not_found(service, seeded_store):
    with pytest.raises(PlayerNotFoundError):
        service.get_player("Nobody")


def test_predict_match_computes_then_hits_cache(service, seeded_store):
    result = service.predict_match(CLAY_FINAL, today=date(2024, 6, 1))
    assert result.predicted_winner in ("Novak Djokovic", "Rafael Nadal")
    assert seeded_store.count_predictions() == 1

    with patch("tennis.services.data_service.calculate_match_prediction") as calc:
        cached = service.predict_match(CLAY_FINAL)
        calc.assert_not_called()
    assert cached == result
    assert seeded_store.count_predictions() == 1


def test_predict_match_favours_nadal_on_clay(service, seeded_store):
    result = service.predict_match(CLAY_FINAL, today=date(2024, 6, 1))
    assert result.predicted_winner == "Rafael Nadal"
    assert result.player1_probability < 0.5


def test_predict_match_swapped_order_is_separate_request(service, seeded_store):
    forward = service.predict_match(CLAY_FINAL, today=date(2024, 6, 1))
    swapped = service.predict_match(
        PredictionInput(player1_name="Rafael Nadal", player2_name="Novak Djokovic", surface="clay"),
        today=date(2024, 6, 1),
    )
    assert seeded_store.count_predictions() == 2
    assert swapped.player1_probability == pytest.approx(forward.player2_probability)


def test_predict_match_populates_stats_and_head_to_head_cache(service, seeded_store):
    service.predict_match(CLAY_FINAL, today=date(2024, 6, 1))
    assert service.cache.get_player_stats(1) is not None
    assert service.cache.get_head_to_head(2, 1).total_matches == 1


def test_predict_match_unknown_player(service, seeded_store):
    with pytest.raises(PlayerNotFoundError, match="Roger"):
        service.predict_match(PredictionInput(
            player1_name="Roger Federer", player2_name="Rafael Nadal", surface="grass",
        ))


def test_predict_match_missing_stats(service, seeded_store):
    service.save_player(Player(name="Rookie"))
    with pytest.raises(PlayerNotFoundError, match="statistics"):
        service.predict_match(PredictionInput(
            player1_name="Rookie", player2_name="Rafael Nadal", surface="hard",
        ))


def test_get_predictions_cached(service, seeded_store):
    service.predict_match(CLAY_FINAL, today=date(2024, 6, 1))
    page = service.get_predictions(limit=10)
    assert page.total == 1
    assert not page.from_cache
    assert service.get_predictions(limit=10).from_cache
    assert not service.get_predictions(limit=10, player="nadal").from_cache


async def test_live_rankings_filters_sorts_and_caches(service):
    raw = [
        APIRanking(player_name="Alexander Zverev", ranking=2, points=8000, country="GER"),
        APIRanking(player_name="Jannik Sinner", ranking=1, points=11000),
        APIRanking(player_name=None, ranking=3, points=7000),
    ]
    with patch("tennis.services.data_service.get_rankings", new_callable=AsyncMock) as mock_rankings:
        mock_rankings.return_value = raw

        data = await service.get_live_rankings("atp")
        assert not data.from_cache
        assert [r.player_name for r in data.rankings] == ["Jannik Sinner", "Alexander Zverev"]
        assert data.rankings[0].country == "Unknown"

        again = await service.get_live_rankings("atp")
        assert again.from_cache
        mock_rankings.assert_awaited_once()


async def test_live_matches_drops_incomplete_rows(service):
    p1 = APIPlayer(id=1, name="Jannik Sinner")
    p2 = APIPlayer(id=2, name="Carlos Alcaraz")
    raw = [
        APIMatch(id=11, tournament_name="Wimbledon", date="2024-07-14", player1=p2, player2=p1,
                 winner=p2, status="completed"),
        APIMatch(id=10, tournament_name="Queen's", date="2024-06-20", player1=p1, player2=p2),
        APIMatch(id=12, tournament_name="Wimbledon", date="2024-07-01", player1=p1, player2=p1),
        APIMatch(id=13, tournament_name=None, date="2024-07-02", player1=p1, player2=p2),
        APIMatch(id=14, tournament_name="Halle", date="2024-06-18", player1=p1),
    ]
    with patch("tennis.services.data_service.get_recent_and_upcoming", new_callable=AsyncMock) as mock_fetch:
        mock_fetch.return_value = raw
        data = await service.get_live_matches("atp", 7)

    assert [m.id for m in data.matches] == [10, 11]
    assert data.matches[0].status == "unknown"
    assert data.matches[1].winner_name == "Carlos Alcaraz"
    assert service.cache.get_matches("atp", 7) == data.matches


async def test_live_tournaments(service):
    raw = [
        APITournament(id=2, name="US Open", location="New York", start_date="2024-08-26", end_date="2024-09-08"),
        APITournament(id=1, name="Cincinnati", location="Mason", start_date="2024-08-12", end_date="2024-08-19",
                      level="Masters 1000"),
        APITournament(id=3, name="TBD", start_date="2024-09-01", end_date="2024-09-02"),
    ]
    with patch("tennis.services.data_service.get_tournaments", new_callable=AsyncMock) as mock_fetch:
        mock_fetch.return_value = raw
        data = await service.get_live_tournaments("wta")

    assert [t.name for t in data.tournaments] == ["Cincinnati", "US Open"]
    assert data.tournaments[1].level == "Unknown"


async def test_live_data_api_failure_propagates_and_caches_nothing(service):
    with patch("tennis.services.data_service.get_rankings", new_callable=AsyncMock) as mock_rankings:
        mock_rankings.side_effect = RuntimeError("boom")
        with pytest.raises(RuntimeError):
            await service.get_live_rankings("atp")
    assert service.cache.get_rankings("atp") is None


@pytest.mark.parametrize("tour, days", [("itf", 7), ("atp", 0), ("atp", 366), ("wta", True)])
def test_validate_live_args_rejects(tour, days):
    with pytest.raises(ValueError):
        validate_live_args(tour, days)


def test_validate_live_args_accepts():
    validate_live_args("wta", 365)
