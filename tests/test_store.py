import pytest

from conftest import make_game, make_odds, make_team
from database.models import EloState, GameStatus, Prediction
from modeling.stats import TeamStats


def test_teams_round_trip(store):
    store.save_teams([make_team("b"), make_team("a")])
    teams = store.get_teams("nfl")
    assert [t.id for t in teams] == ["a", "b"]
    assert teams[0].name == "Team a"
    assert store.get_team("missing") is None
    assert store.get_teams("nba") == []


def test_save_teams_keeps_rating_and_stats(store):
    store.save_teams([make_team("a")])
    store.update_ratings({"a": 1612.5})
    store.update_team_stats({"a": TeamStats(points_for=70, points_against=40, games_played=3)})

    store.save_teams([make_team("a")])

    team = store.get_team("a")
    assert team.rating == 1612.5
    assert team.games_played == 3
    assert team.ppg == pytest.approx(70 / 3)


def test_find_team_by_name_or_abbreviation(store):
    store.save_teams([make_team("kc")])
    assert store.find_team("nfl", "Team kc").id == "kc"
    assert store.find_team("nfl", "kc").id == "kc"
    assert store.find_team("nba", "kc") is None


def test_games_filters(seeded_store):
    assert [g.id for g in seeded_store.get_games("nfl")] == ["g1", "g2", "g3", "g4", "g5"]
    assert [g.id for g in seeded_store.get_games("nfl", status=GameStatus.SCHEDULED)] == ["g5"]
    assert [g.id for g in seeded_store.get_games("nfl", on_date="2024-09-15")] == ["g2"]

    seeded_store.mark_processed(["g1", "g2"])
    pending = seeded_store.get_games("nfl", elo_state=EloState.UNPROCESSED)
    assert [g.id for g in pending] == ["g3", "g4", "g5"]


def test_game_round_trip(seeded_store):
    game = seeded_store.get_game("g1")
    assert game.home_score == 24
    assert game.status == GameStatus.FINAL
    assert game.is_complete
    assert game.home_margin == 7
    assert game.game_time.isoformat() == "2024-09-08T17:00:00"


def test_status_never_moves_backward(seeded_store):
    seeded_store.save_games([make_game("g1", "a", "b", status=GameStatus.SCHEDULED)])

    game = seeded_store.get_game("g1")
    assert game.status == GameStatus.FINAL
    assert (game.home_score, game.away_score) == (24, 17)


def test_status_moves_forward_and_keeps_elo_state(seeded_store):
    seeded_store.mark_processed(["g5"])
    seeded_store.save_games([make_game("g5", "b", "a", 13, 16, day=28)])

    game = seeded_store.get_game("g5")
    assert game.status == GameStatus.FINAL
    assert game.away_score == 16
    assert game.elo_state == EloState.PROCESSED


def test_game_advance_rejects_backward_move():
    game = make_game("g1", "a", "b", 24, 17)
    with pytest.raises(ValueError):
        game.advance(GameStatus.IN_PROGRESS)
    assert make_game("g2", "a", "b").advance(GameStatus.IN_PROGRESS).status == GameStatus.IN_PROGRESS


def test_reset_ratings_and_processed(seeded_store):
    seeded_store.update_ratings({"a": 1550.0, "b": 1450.0})
    seeded_store.mark_processed(["g1"])

    seeded_store.reset_ratings("nfl", 1500)
    seeded_store.reset_processed("nfl")

    assert {t.rating for t in seeded_store.get_teams("nfl")} == {1500}
    assert seeded_store.get_games("nfl", elo_state=EloState.PROCESSED) == []


def test_odds_newest_first(seeded_store):
    seeded_store.save_odds([
        make_odds("g5", "draftkings", 2.5, 44.0, minutes=0),
        make_odds("g5", "draftkings", 3.0, 44.5, minutes=60),
    ])
    odds = seeded_store.get_odds("g5")
    assert [o.home_spread for o in odds] == [3.0, 2.5]
    assert odds[0].away_spread == -3.0
    assert odds[0].home_moneyline == -150


def test_latest_prediction_ignores_old_schema(seeded_store):
    old = Prediction(game_id="g5", home_score=20, away_score=23, spread=3, total=43,
                     home_win_probability=0.4, confidence=0.5, schema_version=1)
    seeded_store.save_prediction(old)
    assert seeded_store.latest_prediction("g5") is None

    current = Prediction(game_id="g5", home_score=21, away_score=20, spread=-1, total=41,
                         home_win_probability=0.55, confidence=0.6, recommendation="over")
    assert seeded_store.save_prediction(current) > 0

    latest = seeded_store.latest_prediction("g5")
    assert latest.spread == -1
    assert latest.recommendation == "over"


def test_missing_moneyline_stays_missing(seeded_store):
    seeded_store.save_odds([make_odds("g5", "fanduel", 3.0, 44.5, home_ml=None, away_ml=None)])
    odds = seeded_store.get_odds("g5")[0]
    assert odds.home_moneyline is None
    assert odds.away_moneyline is None
