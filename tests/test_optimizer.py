import pytest

from backtest.optimizer import DEFAULT_COMBOS, DEFAULT_OPTIONS, GridSearchOptimizer, SearchReport
from backtest.simulator import Backtester
from conftest import make_game, make_team
from modeling.params import SimulationParams

BASELINE = SimulationParams(elo_to_points=0, home_field_points=3, league_avg_ppg=22)


@pytest.fixture
def backtester():
    """Sixty games: the home side wins by 7 two times in three, otherwise loses by 5."""
    games = []
    for i in range(60):
        if i % 3 == 2:
            games.append(make_game(f"g{i}", "a", "b", 20, 25, day=i))
        else:
            games.append(make_game(f"g{i}", "a", "b", 27, 20, day=i))
    return Backtester(games, [make_team("a"), make_team("b")])


@pytest.fixture
def optimizer(backtester):
    return GridSearchOptimizer(backtester, BASELINE, min_bets=50)


def test_expand_is_cartesian_product(optimizer):
    candidates = optimizer.expand({'elo_cap': [0, 4], 'max_spread': [5, 10]})
    assert len(candidates) == 4
    assert {(c.elo_cap, c.max_spread) for c in candidates} == {(0, 5), (0, 10), (4, 5), (4, 10)}
    assert all(c.home_field_points == 3 for c in candidates)


def test_sweep_varies_one_parameter_and_skips_invalid(optimizer):
    candidates = optimizer.sweep(
        {'max_spread': [3, 5]},
        [{'min_spread': [4], 'max_spread': [3, 10]}],
    )
    assert candidates[0] == BASELINE
    assert len(candidates) == 4
    assert all(c.min_spread <= c.max_spread for c in candidates)


def test_default_sweep_is_valid(optimizer):
    candidates = optimizer.sweep(DEFAULT_OPTIONS, DEFAULT_COMBOS)
    assert len(candidates) > len(DEFAULT_OPTIONS)


def test_search_ranks_by_profit_and_drops_small_samples(optimizer, capsys):
    report = optimizer.search({'home_field_points': [3, -3], 'min_spread': [0, 4]})

    assert report.tested == 4
    # min_spread 4 never bets
    assert len(report.viable) == 2

    best = report.best_by_profit
    assert best.params.home_field_points == 3
    assert (best.wins, best.losses) == (40, 20)
    assert best.profit == 40 * 100 - 20 * 110

    worst = report.top()[-1]
    assert worst.params.home_field_points == -3
    assert worst.profit == 20 * 100 - 40 * 110

    assert report.best_by_win_pct is best
    assert report.best_by_volume is best
    assert "Testing 4 parameter combinations" in capsys.readouterr().out


def test_search_removes_duplicate_candidates(optimizer):
    report = optimizer.search([BASELINE, BASELINE, BASELINE.replace(elo_cap=2)])
    assert report.tested == 2


def test_best_by_volume_requires_breakeven(optimizer):
    report = optimizer.search([BASELINE.replace(home_field_points=-3)])
    assert report.best_by_profit is not None
    assert report.best_by_volume is None


def test_frame_and_best_per(optimizer):
    report = optimizer.search({'home_field_points': [3, -3], 'elo_cap': [0, 2]})

    frame = report.to_frame()
    assert len(frame) == 4
    assert list(frame['profit']) == sorted(frame['profit'], reverse=True)

    best = report.best_per('home_field_points')
    assert list(best['home_field_points']) == [-3, 3]
    assert list(best['bets']) == [60, 60]


def test_empty_report():
    report = SearchReport([])
    assert report.best_by_profit is None
    assert report.best_by_win_pct is None
    assert report.top() == []
    assert report.best_per('elo_cap').empty


def test_process_pool_matches_serial(optimizer):
    grid = {'home_field_points': [3, -3]}
    serial = optimizer.search(grid)
    pooled = optimizer.search(grid, workers=2)
    assert [r.summary() for r in pooled.viable] == [r.summary() for r in serial.viable]
