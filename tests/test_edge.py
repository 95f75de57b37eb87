import pytest

from conftest import make_odds
from database.models import Prediction
from edge.detector import (
    MONEYLINE_AWAY,
    MONEYLINE_HOME,
    OVER,
    SPREAD_AWAY,
    SPREAD_HOME,
    UNDER,
    EdgeCalculator,
    EdgeThresholds,
)
from edge.odds import american_to_decimal, american_to_implied, devig, implied_to_american, payout


def make_prediction(spread=-6.0, total=45.0, home_win_probability=0.55) -> Prediction:
    home = (total - spread) / 2
    return Prediction(
        game_id="g1",
        home_score=home,
        away_score=total - home,
        spread=spread,
        total=total,
        home_win_probability=home_win_probability,
        confidence=0.5,
    )


@pytest.fixture
def calculator() -> EdgeCalculator:
    return EdgeCalculator()


def test_consensus_uses_latest_snapshot_per_bookmaker(calculator):
    snapshots = [
        make_odds("g1", "draftkings", -3.0, 44.0, minutes=0),
        make_odds("g1", "draftkings", -4.0, 44.0, minutes=30),
        make_odds("g1", "fanduel", -5.0, 45.0, minutes=10),
    ]
    consensus = calculator.consensus(snapshots)

    assert consensus.bookmakers == 2
    assert consensus.home_spread == -4.5
    assert consensus.away_spread == 4.5
    assert consensus.total == 44.5
    assert consensus.home_moneyline == -150
    assert consensus.timestamp == snapshots[1].timestamp


def test_consensus_rounds_to_half_points(calculator):
    snapshots = [
        make_odds("g1", "a", -3.0, 44.0),
        make_odds("g1", "b", -3.5, 44.5),
        make_odds("g1", "c", -3.5, 44.5),
    ]
    consensus = calculator.consensus(snapshots)
    assert consensus.home_spread == -3.5
    assert consensus.total == 44.5


def test_consensus_moneyline_ignores_books_without_one(calculator):
    snapshots = [
        make_odds("g1", "dk", -7.0, 44.0, home_ml=-300, away_ml=250),
        make_odds("g1", "fd", -7.0, 44.0, home_ml=None, away_ml=None),
    ]
    consensus = calculator.consensus(snapshots)

    assert consensus.bookmakers == 2
    assert consensus.home_moneyline == -300
    assert consensus.away_moneyline == 250


def test_consensus_moneyline_averages_implied_probabilities(calculator):
    snapshots = [
        make_odds("g1", "dk", -1.0, 44.0, home_ml=-105, away_ml=-105),
        make_odds("g1", "fd", -1.0, 44.0, home_ml=105, away_ml=-115),
    ]
    consensus = calculator.consensus(snapshots)

    # -105 and +105 straddle even money
    assert abs(consensus.home_moneyline) == 100
    assert consensus.away_moneyline == -110
    home, away = consensus.fair_probabilities()
    assert home + away == pytest.approx(1.0)


def test_consensus_without_moneylines(calculator):
    snapshots = [make_odds("g1", "dk", -3.0, 41.0, home_ml=None, away_ml=None)]
    consensus = calculator.consensus(snapshots)

    assert consensus.home_moneyline is None
    assert consensus.fair_probabilities() is None

    report = calculator.evaluate(make_prediction(spread=-6.0, total=45.0), snapshots)
    assert report.moneyline_value is None
    assert report.recommendation == SPREAD_HOME


def test_consensus_skips_malformed_moneyline(calculator):
    snapshots = [
        make_odds("g1", "dk", -3.0, 41.0, home_ml=0, away_ml=0),
        make_odds("g1", "fd", -3.0, 41.0, home_ml=-200, away_ml=170),
    ]
    consensus = calculator.consensus(snapshots)

    assert consensus.home_moneyline == -200
    assert consensus.away_moneyline == 170


def test_no_odds_means_no_consensus(calculator):
    assert calculator.consensus([]) is None

    report = calculator.evaluate(make_prediction(), [])
    assert report.consensus is None
    assert report.edge_spread is None
    assert report.recommendation is None
    assert report.strength is None


def test_edge_signs(calculator):
    edges = calculator.edge(make_prediction(spread=-6.0, total=45.0), -3.0, 41.0)
    assert edges["edge_spread"] == 3.0
    assert edges["edge_total"] == 4.0


@pytest.mark.parametrize("edge,expected", [
    (0.0, "weak"),
    (1.49, "weak"),
    (1.5, "moderate"),
    (-2.9, "moderate"),
    (3.0, "strong"),
    (-3.5, "strong"),
])
def test_strength_bands(calculator, edge, expected):
    assert calculator.strength(edge) == expected


def test_recommend_prefers_spread_then_total_then_moneyline(calculator):
    assert calculator.recommend(3.0, 5.0, 0.7) == SPREAD_HOME
    assert calculator.recommend(-2.5, 0.0, 0.5) == SPREAD_AWAY
    assert calculator.recommend(1.0, 2.5, 0.5) == OVER
    assert calculator.recommend(1.0, -2.5, 0.5) == UNDER
    assert calculator.recommend(None, None, 0.65) == MONEYLINE_HOME
    assert calculator.recommend(1.0, 1.0, 0.35) == MONEYLINE_AWAY
    assert calculator.recommend(1.0, 1.0, 0.55) is None


def test_evaluate_with_odds(calculator):
    snapshots = [make_odds("g1", "draftkings", -3.0, 41.0)]
    report = calculator.evaluate(make_prediction(spread=-6.0, total=45.0), snapshots)

    assert report.edge_spread == 3.0
    assert report.spread_strength == "strong"
    assert report.total_strength == "strong"
    assert report.strength == "strong"
    assert report.recommendation == SPREAD_HOME
    assert report.moneyline_value is not None


def test_custom_thresholds():
    calculator = EdgeCalculator(EdgeThresholds(moderate=1, strong=2, min_edge=1))
    assert calculator.strength(2.0) == "strong"
    assert calculator.recommend(-1.0, None, None) == SPREAD_AWAY


def test_thresholds_are_validated():
    with pytest.raises(ValueError):
        EdgeThresholds(moderate=4, strong=2)
    with pytest.raises(ValueError):
        EdgeThresholds(min_probability=0.3)


def test_american_odds_conversions():
    assert american_to_decimal(-110) == pytest.approx(1.9091, abs=1e-4)
    assert american_to_decimal(150) == 2.5
    assert american_to_implied(-200) == pytest.approx(2 / 3)
    with pytest.raises(ValueError):
        american_to_decimal(-50)


def test_implied_to_american():
    assert implied_to_american(0.75) == pytest.approx(-300)
    assert implied_to_american(0.4) == pytest.approx(150)
    assert implied_to_american(american_to_implied(-110)) == pytest.approx(-110)
    with pytest.raises(ValueError):
        implied_to_american(1.0)


def test_payout_and_devig():
    assert payout(110, -110) == 100
    assert payout(100, 150) == 150
    home, away = devig(american_to_implied(-110), american_to_implied(-110))
    assert home == pytest.approx(0.5)
    assert home + away == pytest.approx(1.0)
