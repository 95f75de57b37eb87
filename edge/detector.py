"""Edge detection against consensus market lines."""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import config
from database.models import OddsSnapshot, Prediction
from edge.odds import american_to_implied, devig, implied_to_american
from modeling.predictor import round_half

SPREAD_HOME = 'spread_home'
SPREAD_AWAY = 'spread_away'
OVER = 'over'
UNDER = 'under'
MONEYLINE_HOME = 'moneyline_home'
MONEYLINE_AWAY = 'moneyline_away'


@dataclass(frozen=True)
class EdgeThresholds:
    """
    Attributes:
        moderate: |edge| below this is weak
        strong: |edge| at or above this is strong
        min_edge: Minimum |edge| in points for a spread or total pick
        min_probability: Minimum win probability for a moneyline pick
    """
    moderate: float = config.EDGE_MODERATE
    strong: float = config.EDGE_STRONG
    min_edge: float = config.MIN_EDGE
    min_probability: float = config.MIN_WIN_PROBABILITY

    def __post_init__(self):
        if not 0 <= self.moderate <= self.strong:
            raise ValueError("thresholds must satisfy 0 <= moderate <= strong")
        if not 0.5 <= self.min_probability <= 1:
            raise ValueError(f"min_probability must be in [0.5, 1], got {self.min_probability}")


def consensus_moneyline(quotes: Iterable[Optional[float]]) -> Optional[float]:
    """
    Average American lines in implied-probability space.

    Missing quotes and malformed ones inside (-100, 100) are left out.
    Returns None when no bookmaker quotes a usable line.
    """
    probabilities = []
    for quote in quotes:
        if quote is None or -100 < quote < 100:
            continue
        probabilities.append(american_to_implied(quote))
    if not probabilities:
        return None
    return round(implied_to_american(sum(probabilities) / len(probabilities)))


@dataclass
class ConsensusOdds:
    home_spread: float
    total: float
    home_moneyline: Optional[float]
    away_moneyline: Optional[float]
    bookmakers: int
    timestamp: datetime

    @property
    def away_spread(self) -> float:
        return -self.home_spread

    def fair_probabilities(self) -> Optional[tuple]:
        """De-vigged (home, away) moneyline probabilities, or None without moneylines."""
        if self.home_moneyline is None or self.away_moneyline is None:
            return None
        try:
            home = american_to_implied(self.home_moneyline)
            away = american_to_implied(self.away_moneyline)
        except ValueError:
            return None
        return devig(home, away)


@dataclass
class EdgeReport:
    prediction: Prediction
    consensus: Optional[ConsensusOdds]
    edge_spread: Optional[float] = None
    edge_total: Optional[float] = None
    spread_strength: Optional[str] = None
    total_strength: Optional[str] = None
    moneyline_value: Optional[float] = None
    recommendation: Optional[str] = None

    @property
    def strength(self) -> Optional[str]:
        """The stronger of the spread and total strengths."""
        order = ['weak', 'moderate', 'strong']
        found = [s for s in (self.spread_strength, self.total_strength) if s]
        return max(found, key=order.index) if found else None


class EdgeCalculator:
    """
    Compare model predictions with the market.

    Consensus lines are the arithmetic mean over bookmakers of each
    bookmaker's most recent snapshot. Spreads and totals are rounded to the
    nearest half point. Moneylines are averaged as implied probabilities over
    the bookmakers that quote one and rounded to the nearest integer.
    """

    def __init__(self, thresholds: Optional[EdgeThresholds] = None):
        self.thresholds = thresholds or EdgeThresholds()

    def latest_per_bookmaker(self, snapshots: Iterable[OddsSnapshot]) -> List[OddsSnapshot]:
        latest: Dict[str, OddsSnapshot] = {}
        for snap in snapshots:
            current = latest.get(snap.bookmaker)
            if current is None or snap.timestamp > current.timestamp:
                latest[snap.bookmaker] = snap
        return [latest[book] for book in sorted(latest)]

    def consensus(self, snapshots: Iterable[OddsSnapshot]) -> Optional[ConsensusOdds]:
        """Consensus line, or None when there are no odds."""
        latest = self.latest_per_bookmaker(snapshots)
        if not latest:
            return None

        n = len(latest)
        avg_spread = sum(s.home_spread for s in latest) / n
        avg_total = sum(s.total for s in latest) / n

        return ConsensusOdds(
            home_spread=round_half(avg_spread),
            total=round_half(avg_total),
            home_moneyline=consensus_moneyline(s.home_moneyline for s in latest),
            away_moneyline=consensus_moneyline(s.away_moneyline for s in latest),
            bookmakers=n,
            timestamp=max(s.timestamp for s in latest),
        )

    def edge(self, prediction: Prediction, market_spread: float, market_total: float) -> Dict[str, float]:
        """
        Signed model-vs-market differences.

        Positive edge_spread means we think home covers; positive edge_total
        means we think the game goes over.
        """
        return {
            'edge_spread': market_spread - prediction.spread,
            'edge_total': prediction.total - market_total,
        }

    def strength(self, edge: float) -> str:
        magnitude = abs(edge)
        if magnitude < self.thresholds.moderate:
            return 'weak'
        if magnitude < self.thresholds.strong:
            return 'moderate'
        return 'strong'

    def recommend(self, edge_spread: Optional[float], edge_total: Optional[float],
                  win_probability: Optional[float]) -> Optional[str]:
        """
        Pick a bet, or None when nothing clears its threshold.

        Spread edges are checked first, then totals, then the moneyline
        for clear favourites.
        """
        t = self.thresholds

        if edge_spread is not None and abs(edge_spread) >= t.min_edge:
            return SPREAD_HOME if edge_spread > 0 else SPREAD_AWAY

        if edge_total is not None and abs(edge_total) >= t.min_edge:
            return OVER if edge_total > 0 else UNDER

        if win_probability is not None:
            if win_probability >= t.min_probability:
                return MONEYLINE_HOME
            if win_probability <= 1 - t.min_probability:
                return MONEYLINE_AWAY

        return None

    def evaluate(self, prediction: Prediction, snapshots: Iterable[OddsSnapshot]) -> EdgeReport:
        """Consensus, edges, strengths and pick for one prediction."""
        consensus = self.consensus(snapshots)
        report = EdgeReport(prediction=prediction, consensus=consensus)
        if consensus is None:
            return report

        edges = self.edge(prediction, consensus.home_spread, consensus.total)
        report.edge_spread = edges['edge_spread']
        report.edge_total = edges['edge_total']
        report.spread_strength = self.strength(report.edge_spread)
        report.total_strength = self.strength(report.edge_total)

        fair = consensus.fair_probabilities()
        if fair is not None:
            report.moneyline_value = prediction.home_win_probability - fair[0]

        report.recommendation = self.recommend(
            report.edge_spread, report.edge_total, prediction.home_win_probability
        )
        return report
