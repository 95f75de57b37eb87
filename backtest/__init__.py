"""Backtesting module."""
from backtest.optimizer import GridSearchOptimizer, SearchReport
from backtest.simulator import (
    BacktestBet,
    Backtester,
    BetPricing,
    Record,
    SimulationResult,
    grade_moneyline_bet,
    grade_spread_bet,
    grade_total_bet,
)

__all__ = [
    'Backtester', 'BacktestBet', 'BetPricing', 'Record', 'SimulationResult',
    'grade_moneyline_bet', 'grade_spread_bet', 'grade_total_bet',
    'GridSearchOptimizer', 'SearchReport',
]
