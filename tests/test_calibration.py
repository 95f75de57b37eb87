import pytest

from conftest import make_game
from modeling.calibration import calibrate
from modeling.elo import chronological, replay_from_scratch, update_after_game
from modeling.params import EloConfig


def test_two_games_fit_exactly():
    games = [
        make_game("g2", "a", "b", 30, 20, day=7),
        make_game("g1", "a", "b", 24, 17, day=0),
    ]
    new_a, new_b = update_after_game(1500, 1500, 24, 17)

    result = calibrate(games)

    # First game has no rating gap, so its margin is the intercept
    assert result.home_field_points == pytest.approx(7)
    assert result.elo_to_points == pytest.approx(3 / (new_a - new_b) * 100)
    assert result.r_squared == pytest.approx(1.0)
    assert result.sample_size == 2
    assert result.home_win_pct == 100.0
    assert result.avg_margin == 8.5


def test_matches_least_squares():
    games = [
        make_game("g1", "a", "b", 31, 10, day=0),
        make_game("g2", "c", "d", 20, 23, day=1),
        make_game("g3", "a", "c", 27, 24, day=7),
        make_game("g4", "d", "b", 14, 13, day=8),
        make_game("g5", "b", "c", 17, 28, day=14),
        make_game("g6", "a", "d", 35, 7, day=15),
        make_game("g7", "b", "a", 20, 20, day=21),
    ]
    config = EloConfig(k_factor=32)
    history = []
    replay_from_scratch(chronological(games), {}, config, history)
    xs = [home - away for _, home, away in history]
    ys = [g.home_margin for g, _, _ in history]
    n = len(xs)
    slope = ((n * sum(x * y for x, y in zip(xs, ys)) - sum(xs) * sum(ys))
             / (n * sum(x * x for x in xs) - sum(xs) ** 2))
    intercept = (sum(ys) - slope * sum(xs)) / n

    result = calibrate(games, config)

    assert result.elo_to_points == pytest.approx(slope * 100)
    assert result.home_field_points == pytest.approx(intercept)
    assert 0 <= result.r_squared <= 1
    assert result.sample_size == 7


def test_skips_unfinished_games():
    games = [
        make_game("g1", "a", "b", 24, 17, day=0),
        make_game("g2", "a", "b", 30, 20, day=7),
        make_game("g3", "b", "a", day=14),
    ]
    assert calibrate(games).sample_size == 2


def test_too_little_data():
    assert calibrate([make_game("g1", "a", "b", 24, 17)]) is None
    # Two openers between unrated teams leave no rating gap to fit
    assert calibrate([
        make_game("g1", "a", "b", 24, 17, day=0),
        make_game("g2", "c", "d", 21, 20, day=0),
    ]) is None
