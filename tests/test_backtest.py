import csv

import pytest

from backtest.simulator import (
    LOSS,
    OVER,
    PUSH,
    UNDER,
    WIN,
    Backtester,
    BetPricing,
    grade_moneyline_bet,
    grade_spread_bet,
    grade_total_bet,
    total_pick,
)
from conftest import make_game, make_odds, make_team
from modeling.params import SimulationParams

# With no Elo-to-points conversion and no team stats, every game is predicted
# at exactly home -3.
HOME_BY_THREE = SimulationParams(elo_to_points=0, home_field_points=3, league_avg_ppg=22)


@pytest.mark.parametrize("predicted,actual,expected", [
    (-3.0, -3, PUSH),
    (-3.0, -7, WIN),
    (-3.0, -1, LOSS),
    (-3.0, 2, LOSS),
    (2.5, 5, WIN),
    (2.5, 1, LOSS),
    (0.0, 3, WIN),
])
def test_grade_spread_bet(predicted, actual, expected):
    assert grade_spread_bet(predicted, actual) == expected


@pytest.fixture
def teams():
    return [make_team("a"), make_team("b")]


@pytest.fixture
def four_games():
    return [
        make_game("g1", "a", "b", 24, 21, day=0),   # home by 3: push
        make_game("g2", "b", "a", 27, 20, day=7),   # home by 7: win
        make_game("g3", "a", "b", 17, 20, day=14),  # home lost: loss
        make_game("g4", "b", "a", 21, 20, day=21),  # home by 1: loss
        make_game("g5", "a", "b", day=28),          # not played
    ]


def test_run_counts_and_profit(teams, four_games):
    result = Backtester(four_games, teams).run(HOME_BY_THREE)

    assert result.games == 4
    assert (result.wins, result.losses, result.pushes) == (1, 2, 1)
    assert result.graded == 3
    assert result.profit == 1 * 100 - 2 * 110
    assert result.win_pct == 33.3
    assert result.roi == pytest.approx(-120 / 330)


def test_spread_filter_skips_bets(teams, four_games):
    result = Backtester(four_games, teams).run(HOME_BY_THREE.replace(min_spread=4))
    assert result.graded == 0
    assert result.pushes == 0
    assert result.profit == 0
    assert result.win_pct == 0.0


def test_runs_are_independent(teams, four_games):
    backtester = Backtester(four_games, teams)
    params = SimulationParams.for_sport("nfl")
    first = backtester.run(params)
    second = backtester.run(params)
    assert first.summary() == second.summary()


def test_games_are_replayed_in_time_order(teams, four_games):
    ordered = Backtester(four_games, teams).run(SimulationParams(), keep_bets=True)
    shuffled = Backtester(list(reversed(four_games)), teams).run(SimulationParams(), keep_bets=True)
    assert [b.game_id for b in shuffled.bets] == ["g1", "g2", "g3", "g4"]
    assert ordered.summary() == shuffled.summary()


def test_rolling_stats_ignore_season_totals(four_games):
    # Season totals that make "a" look dominant
    teams = [make_team("a", points_for=400, points_against=0, games_played=10), make_team("b")]
    params = HOME_BY_THREE.replace(stats_regression=0, max_spread=40)

    season = Backtester(four_games, teams).run(params, keep_bets=True)
    rolling = Backtester(four_games, teams, rolling_stats=True).run(params, keep_bets=True)

    assert rolling.bets[0].predicted_spread == -3.0
    assert season.bets[0].predicted_spread < -3.0


def test_custom_pricing(teams, four_games):
    result = Backtester(four_games, teams, pricing=BetPricing(odds=100, stake=100)).run(HOME_BY_THREE)
    assert result.profit == 1 * 100 - 2 * 100


def test_export_to_csv(tmp_path, teams, four_games):
    backtester = Backtester(four_games, teams)
    result = backtester.run(HOME_BY_THREE, keep_bets=True)
    output = tmp_path / "bets.csv"

    backtester.export_to_csv(result, str(output))

    with open(output, newline='') as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == 'Game Time'
    assert [r[7] for r in rows[1:]] == [PUSH, WIN, LOSS, LOSS]
    assert (tmp_path / "bets_summary.csv").exists()


def test_print_results(capsys, teams, four_games):
    backtester = Backtester(four_games, teams)
    backtester.print_results(backtester.run(HOME_BY_THREE))
    out = capsys.readouterr().out
    assert "BACKTEST RESULTS" in out
    assert "Pushes:            1" in out
    assert "Moneyline:         3-1-0" in out


@pytest.mark.parametrize("probability,home_score,away_score,expected", [
    (0.6, 24, 17, WIN),
    (0.6, 17, 24, LOSS),
    (0.4, 17, 24, WIN),
    (0.5, 24, 17, LOSS),
    (0.7, 20, 20, PUSH),
])
def test_grade_moneyline_bet(probability, home_score, away_score, expected):
    assert grade_moneyline_bet(probability, home_score, away_score) == expected


def test_total_pick_and_grade():
    assert total_pick(46.1, 44.5) == OVER
    assert total_pick(41.0, 44.5) == UNDER
    assert total_pick(44.0, 44.0) is None
    assert grade_total_bet(OVER, 44.5, 45) == WIN
    assert grade_total_bet(UNDER, 44.5, 45) == LOSS
    assert grade_total_bet(UNDER, 44.0, 44) == PUSH


def test_moneyline_record_follows_elo_favourite(teams, four_games):
    result = Backtester(four_games, teams).run(HOME_BY_THREE)
    # Home side is the Elo favourite every week; only g3's home team lost
    assert str(result.moneyline) == "3-1-0"
    assert result.moneyline.win_pct == 75.0


def test_totals_graded_against_market_lines(teams, four_games):
    odds = [
        make_odds("g1", "dk", -3.0, 40.0),   # over, 45 scored: win
        make_odds("g2", "dk", -3.0, 48.5),   # under, 47 scored: win
        make_odds("g3", "dk", -3.0, 37.0),   # over, 37 scored: push
    ]
    result = Backtester(four_games, teams, odds=odds).run(HOME_BY_THREE)

    # g4 has no odds and its 44-point line matches the prediction, so no pick
    assert (result.totals.wins, result.totals.losses, result.totals.pushes) == (2, 0, 1)
    assert result.summary()['ou_record'] == "2-0-1"


def test_totals_fall_back_to_league_average(four_games):
    teams = [make_team("a", points_for=300, points_against=200, games_played=10), make_team("b")]
    result = Backtester(four_games, teams).run(HOME_BY_THREE)

    # Predicted total is 46.1 every game against a 44-point line
    assert str(result.totals) == "2-2-0"
