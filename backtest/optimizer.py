"""
Grid search over simulation parameters.

Every candidate is a full backtest from initial ratings, so candidates are
independent and can run in a process pool. Runs with fewer than min_bets
graded bets are dropped before ranking.
"""
import itertools
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

import config
from backtest.simulator import Backtester, SimulationResult
from modeling.params import SimulationParams

# Values tried one at a time around the baseline
DEFAULT_OPTIONS: Dict[str, List[float]] = {
    'elo_to_points': [4, 5, 5.93, 7, 8],
    'home_field_points': [1.5, 2, 2.28, 2.5, 3],
    'spread_regression': [0, 0.1, 0.2, 0.3, 0.4, 0.5],
    'elo_cap': [0, 4, 6, 8, 10],
    'min_spread': [0, 1, 2, 3],
    'max_spread': [3, 5, 7, 10, 20],
    'stats_regression': [0.2, 0.3, 0.4],
}

# Combinations worth crossing
DEFAULT_COMBOS: List[Dict[str, List[float]]] = [
    {'spread_regression': [0.2, 0.3, 0.4], 'max_spread': [5, 7, 10]},
    {'elo_cap': [4, 6, 8], 'spread_regression': [0.2, 0.3]},
    {'elo_to_points': [4, 5, 5.93, 7, 8], 'spread_regression': [0, 0.2, 0.3]},
    {'spread_regression': [0.15, 0.25, 0.35, 0.45], 'elo_cap': [0, 5, 7],
     'max_spread': [6, 8, 12]},
]


def _run(backtester: Backtester, params: SimulationParams) -> SimulationResult:
    return backtester.run(params)


@dataclass
class SearchReport:
    """Ranked results of a grid search."""
    results: List[SimulationResult]
    min_bets: int = config.MIN_BETS
    breakeven: float = config.BREAKEVEN_WIN_PCT
    tested: int = 0
    viable: List[SimulationResult] = field(init=False)

    def __post_init__(self):
        if not self.tested:
            self.tested = len(self.results)
        self.viable = sorted(
            (r for r in self.results if r.graded >= self.min_bets),
            key=lambda r: r.profit,
            reverse=True,
        )

    def top(self, n: int = 20) -> List[SimulationResult]:
        """The n most profitable viable runs."""
        return self.viable[:n]

    @property
    def best_by_profit(self) -> Optional[SimulationResult]:
        return self.viable[0] if self.viable else None

    @property
    def best_by_win_pct(self) -> Optional[SimulationResult]:
        if not self.viable:
            return None
        return max(self.viable, key=lambda r: r.win_pct)

    @property
    def best_by_volume(self) -> Optional[SimulationResult]:
        """Most bets among runs that beat the -110 breakeven win rate."""
        profitable = [r for r in self.viable if r.win_pct >= self.breakeven]
        if not profitable:
            return None
        return max(profitable, key=lambda r: r.graded)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([r.summary() for r in self.viable])

    def best_per(self, param: str) -> pd.DataFrame:
        """Most profitable viable run for each value of one parameter."""
        df = self.to_frame()
        if df.empty:
            return df
        best = df.sort_values('profit', ascending=False).groupby(param, sort=True).head(1)
        return best.sort_values(param).reset_index(drop=True)


class GridSearchOptimizer:
    """
    Search SimulationParams for the most profitable spread-betting settings.

    Usage:
        optimizer = GridSearchOptimizer(Backtester(games, teams), SimulationParams.for_sport("nfl"))
        report = optimizer.search(optimizer.sweep(DEFAULT_OPTIONS))
        print(report.top(5))
    """

    def __init__(self, backtester: Backtester, baseline: Optional[SimulationParams] = None,
                 min_bets: int = config.MIN_BETS):
        self.backtester = backtester
        self.baseline = baseline or SimulationParams()
        self.min_bets = min_bets

    def expand(self, grid: Dict[str, Sequence[float]]) -> List[SimulationParams]:
        """Cartesian product of the grid applied to the baseline."""
        names = list(grid)
        candidates = []
        for values in itertools.product(*(grid[name] for name in names)):
            candidates.append(self.baseline.replace(**dict(zip(names, values))))
        return candidates

    def sweep(self, options: Dict[str, Sequence[float]],
              combos: Iterable[Dict[str, Sequence[float]]] = ()) -> List[SimulationParams]:
        """
        The baseline, each parameter varied on its own, then any combos.

        Combinations that fail validation (e.g. min_spread above max_spread)
        are skipped.
        """
        candidates = [self.baseline]
        for name, values in options.items():
            candidates.extend(self._expand_valid({name: values}))
        for combo in combos:
            candidates.extend(self._expand_valid(combo))
        return candidates

    def _expand_valid(self, grid: Dict[str, Sequence[float]]) -> List[SimulationParams]:
        names = list(grid)
        candidates = []
        for values in itertools.product(*(grid[name] for name in names)):
            try:
                candidates.append(self.baseline.replace(**dict(zip(names, values))))
            except ValueError:
                continue
        return candidates

    def search(self, candidates, workers: int = 1) -> SearchReport:
        """
        Backtest every candidate and rank the results.

        Args:
            candidates: A grid dict (expanded here) or a list of SimulationParams
            workers: Processes to use; 1 runs in this process

        Returns:
            SearchReport over the distinct candidates
        """
        if isinstance(candidates, dict):
            candidates = self.expand(candidates)
        distinct = list(dict.fromkeys(candidates))

        print(f"Testing {len(distinct)} parameter combinations...")
        if workers > 1:
            with ProcessPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(_run, itertools.repeat(self.backtester), distinct))
        else:
            results = [self.backtester.run(params) for params in distinct]

        report = SearchReport(results, min_bets=self.min_bets, tested=len(distinct))
        print(f"{len(report.viable)} of {len(distinct)} combinations placed at least {self.min_bets} bets")
        return report
