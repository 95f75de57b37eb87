"""
Pytest configuration and fixtures for Edgeline tests.
"""

from datetime import datetime, timedelta

import pytest

from database.models import Game, GameStatus, OddsSnapshot, Team
from database.store import RatingStore

SEASON_START = datetime(2024, 9, 8, 17, 0)


def make_team(team_id: str, rating: float = 1500.0, points_for: int = 0,
              points_against: int = 0, games_played: int = 0, sport: str = "nfl") -> Team:
    return Team(
        id=team_id,
        sport=sport,
        name=f"Team {team_id}",
        abbreviation=team_id.upper()[:3],
        rating=rating,
        points_for=points_for,
        points_against=points_against,
        games_played=games_played,
    )


def make_game(game_id: str, home: str, away: str, home_score=None, away_score=None,
              day: int = 0, status: GameStatus = None, sport: str = "nfl") -> Game:
    if status is None:
        status = GameStatus.FINAL if home_score is not None else GameStatus.SCHEDULED
    return Game(
        id=game_id,
        sport=sport,
        home_team_id=home,
        away_team_id=away,
        game_time=SEASON_START + timedelta(days=day),
        status=status,
        home_score=home_score,
        away_score=away_score,
    )


def make_odds(game_id: str, bookmaker: str, home_spread: float, total: float,
              minutes: int = 0, home_ml: float = -150, away_ml: float = 130) -> OddsSnapshot:
    return OddsSnapshot(
        game_id=game_id,
        bookmaker=bookmaker,
        timestamp=SEASON_START - timedelta(hours=6) + timedelta(minutes=minutes),
        home_spread=home_spread,
        total=total,
        home_moneyline=home_ml,
        away_moneyline=away_ml,
    )


@pytest.fixture
def store(tmp_path) -> RatingStore:
    """Empty store on a temporary SQLite file."""
    return RatingStore(tmp_path / "test.db")


@pytest.fixture
def season_games():
    """Four completed games between three teams plus one scheduled game."""
    return [
        make_game("g1", "a", "b", 24, 17, day=0),
        make_game("g2", "b", "c", 10, 31, day=7),
        make_game("g3", "c", "a", 20, 20, day=14),
        make_game("g4", "a", "c", 35, 14, day=21),
        make_game("g5", "b", "a", day=28),
    ]


@pytest.fixture
def seeded_store(store, season_games) -> RatingStore:
    """Store with three teams and the season fixture."""
    store.save_teams([make_team("a"), make_team("b"), make_team("c")])
    store.save_games(season_games)
    return store
