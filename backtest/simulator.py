"""Backtesting simulator with strict time-ordering."""
import csv
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

import config
from database.models import Game, OddsSnapshot, Team
from edge.detector import ConsensusOdds, EdgeCalculator
from edge.odds import payout
from modeling.elo import chronological, update_after_game
from modeling.params import EloConfig, SimulationParams
from modeling.predictor import Predictor
from modeling.stats import TeamStats, record_game

WIN = 'win'
LOSS = 'loss'
PUSH = 'push'
OVER = 'over'
UNDER = 'under'


def grade_spread_bet(predicted_spread: float, actual_spread: float) -> str:
    """
    Grade a spread bet placed on the side the model favours.

    Spreads are away minus home, so a negative predicted spread picks home.
    An actual spread equal to the predicted one is a push.
    """
    if actual_spread == predicted_spread:
        return PUSH
    if predicted_spread < 0:
        return WIN if actual_spread < predicted_spread else LOSS
    return WIN if actual_spread > predicted_spread else LOSS


def grade_moneyline_bet(home_win_probability: float, home_score: int, away_score: int) -> str:
    """Grade a pick on the Elo favourite (away at exactly 0.5). A tie is a push."""
    if home_score == away_score:
        return PUSH
    pick_home = home_win_probability > 0.5
    return WIN if pick_home == (home_score > away_score) else LOSS


def total_pick(predicted_total: float, line: float) -> Optional[str]:
    if predicted_total > line:
        return OVER
    if predicted_total < line:
        return UNDER
    return None


def grade_total_bet(pick: str, line: float, actual_total: int) -> str:
    if actual_total == line:
        return PUSH
    went_over = actual_total > line
    return WIN if went_over == (pick == OVER) else LOSS


@dataclass
class Record:
    """Win/loss/push tally for one bet type."""
    wins: int = 0
    losses: int = 0
    pushes: int = 0

    def add(self, result: str):
        if result == WIN:
            self.wins += 1
        elif result == LOSS:
            self.losses += 1
        else:
            self.pushes += 1

    @property
    def graded(self) -> int:
        return self.wins + self.losses

    @property
    def win_pct(self) -> float:
        return round(self.wins / self.graded * 100, 1) if self.graded else 0.0

    def __str__(self):
        return f"{self.wins}-{self.losses}-{self.pushes}"


@dataclass(frozen=True)
class BetPricing:
    """Flat stake at fixed American odds (-110: risk 110 to win 100)."""
    odds: float = config.BET_ODDS
    stake: float = config.BET_STAKE

    @property
    def win_amount(self) -> float:
        return payout(self.stake, self.odds)


@dataclass
class BacktestBet:
    """A single simulated spread bet."""
    game_id: str
    game_time: str
    home_team_id: str
    away_team_id: str
    side: str
    predicted_spread: float
    actual_spread: int
    result: str
    pnl: float


@dataclass
class SimulationResult:
    """Results from one backtest run."""
    params: SimulationParams
    games: int
    wins: int
    losses: int
    pushes: int
    profit: float
    total_staked: float
    bets: List[BacktestBet] = field(default_factory=list)
    moneyline: Record = field(default_factory=Record)
    totals: Record = field(default_factory=Record)

    @property
    def graded(self) -> int:
        """Bets with a win or loss; pushes are left out of the win rate."""
        return self.wins + self.losses

    @property
    def win_pct(self) -> float:
        return round(self.wins / self.graded * 100, 1) if self.graded else 0.0

    @property
    def roi(self) -> float:
        return self.profit / self.total_staked if self.total_staked else 0.0

    def summary(self) -> Dict:
        row = self.params.to_dict()
        row.update({
            'bets': self.graded,
            'wins': self.wins,
            'losses': self.losses,
            'pushes': self.pushes,
            'win_pct': self.win_pct,
            'profit': self.profit,
            'roi': self.roi,
            'ml_record': str(self.moneyline),
            'ml_win_pct': self.moneyline.win_pct,
            'ou_record': str(self.totals),
            'ou_win_pct': self.totals.win_pct,
        })
        return row


class Backtester:
    """
    Time-ordered spread-betting simulator.

    Key features:
    - Every run starts from initial ratings and walks completed games in
      chronological order (no lookahead on ratings)
    - Predictions use the live Predictor and ratings move with the live Elo
      update, so tuned parameters transfer unchanged
    - Optional rolling team stats built game by game; otherwise the teams'
      season stats are used as given
    - Every game also gets a moneyline pick on the Elo favourite and an
      over/under pick against the consensus total, or twice the league
      average when the game has no odds
    """

    def __init__(self, games: Iterable[Game], teams: Iterable[Team],
                 elo_config: Optional[EloConfig] = None,
                 pricing: Optional[BetPricing] = None,
                 rolling_stats: bool = False,
                 odds: Optional[Iterable[OddsSnapshot]] = None):
        self.games = chronological(games)
        self.teams = {team.id: team for team in teams}
        self.elo_config = elo_config or EloConfig()
        self.pricing = pricing or BetPricing()
        self.rolling_stats = rolling_stats
        self.market = self._consensus_by_game(odds or [])

    @staticmethod
    def _consensus_by_game(odds: Iterable[OddsSnapshot]) -> Dict[str, ConsensusOdds]:
        by_game: Dict[str, List[OddsSnapshot]] = defaultdict(list)
        for snapshot in odds:
            by_game[snapshot.game_id].append(snapshot)
        calculator = EdgeCalculator()
        return {game_id: calculator.consensus(snaps) for game_id, snaps in by_game.items()}

    def total_line(self, game: Game, params: SimulationParams) -> float:
        """Consensus total for the game, else twice the league average."""
        market = self.market.get(game.id)
        if market is not None:
            return market.total
        return params.league_avg_ppg * 2

    def _team(self, team_id: str, rating: float,
              stats: Optional[Dict[str, TeamStats]]) -> Team:
        base = self.teams.get(team_id) or Team(id=team_id, sport="", name=team_id)
        if stats is None:
            return replace(base, rating=rating)
        s = stats.get(team_id) or TeamStats()
        return replace(base, rating=rating, points_for=s.points_for,
                       points_against=s.points_against, games_played=s.games_played)

    def run(self, params: SimulationParams, keep_bets: bool = False) -> SimulationResult:
        """
        Run a backtest for one parameter set.

        Args:
            params: Simulation parameters to evaluate
            keep_bets: Keep the individual bets on the result

        Returns:
            SimulationResult with win/loss/push counts and profit
        """
        predictor = Predictor(self.elo_config, params)
        initial = self.elo_config.initial_rating
        ratings: Dict[str, float] = {tid: initial for tid in self.teams}
        stats: Optional[Dict[str, TeamStats]] = {} if self.rolling_stats else None

        wins = losses = pushes = 0
        staked = 0.0
        bets: List[BacktestBet] = []
        moneyline = Record()
        totals = Record()

        for game in self.games:
            home_rating = ratings.get(game.home_team_id, initial)
            away_rating = ratings.get(game.away_team_id, initial)
            home = self._team(game.home_team_id, home_rating, stats)
            away = self._team(game.away_team_id, away_rating, stats)

            prediction = predictor.predict(home, away, game_id=game.id)
            predicted = prediction.spread

            moneyline.add(grade_moneyline_bet(
                prediction.home_win_probability, game.home_score, game.away_score))
            line = self.total_line(game, params)
            pick = total_pick(prediction.total, line)
            if pick is not None:
                totals.add(grade_total_bet(pick, line, game.home_score + game.away_score))

            if params.min_spread <= abs(predicted) <= params.max_spread:
                actual = game.away_score - game.home_score
                result = grade_spread_bet(predicted, actual)
                if result == WIN:
                    wins += 1
                    pnl = self.pricing.win_amount
                elif result == LOSS:
                    losses += 1
                    pnl = -self.pricing.stake
                else:
                    pushes += 1
                    pnl = 0.0
                if result != PUSH:
                    staked += self.pricing.stake
                if keep_bets:
                    bets.append(BacktestBet(
                        game_id=game.id,
                        game_time=game.game_time.isoformat(),
                        home_team_id=game.home_team_id,
                        away_team_id=game.away_team_id,
                        side='home' if predicted < 0 else 'away',
                        predicted_spread=predicted,
                        actual_spread=actual,
                        result=result,
                        pnl=pnl,
                    ))

            ratings[game.home_team_id], ratings[game.away_team_id] = update_after_game(
                home_rating, away_rating, game.home_score, game.away_score, self.elo_config
            )
            if stats is not None:
                record_game(stats, game)

        return SimulationResult(
            params=params,
            games=len(self.games),
            wins=wins,
            losses=losses,
            pushes=pushes,
            profit=wins * self.pricing.win_amount - losses * self.pricing.stake,
            total_staked=staked,
            bets=bets,
            moneyline=moneyline,
            totals=totals,
        )

    def print_results(self, result: SimulationResult):
        """Print backtest results to console."""
        print("\n" + "=" * 60)
        print("BACKTEST RESULTS")
        print("=" * 60)
        print(f"Games:             {result.games}")
        print(f"Bets:              {result.graded}")
        print(f"Wins:              {result.wins}")
        print(f"Losses:            {result.losses}")
        print(f"Pushes:            {result.pushes}")
        print(f"Win Rate:          {result.win_pct:.1f}%")
        print("-" * 60)
        print(f"Profit:            {result.profit:+,.2f}")
        print(f"ROI:               {result.roi:.2%}")
        print("-" * 60)
        print(f"Moneyline:         {result.moneyline} ({result.moneyline.win_pct:.1f}%)")
        print(f"Over/Under:        {result.totals} ({result.totals.win_pct:.1f}%)")
        print("=" * 60)

    def export_to_csv(self, result: SimulationResult, filename: str = "backtest_results.csv"):
        """Export backtest bets and summary to CSV."""
        with open(filename, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow([
                'Game Time', 'Game', 'Home', 'Away', 'Side',
                'Predicted Spread', 'Actual Spread', 'Result', 'PnL'
            ])
            for bet in result.bets:
                writer.writerow([
                    bet.game_time, bet.game_id, bet.home_team_id, bet.away_team_id,
                    bet.side, f"{bet.predicted_spread:.2f}", bet.actual_spread,
                    bet.result, f"{bet.pnl:.2f}"
                ])

        print(f"Bets exported to {filename}")

        summary_file = filename.replace('.csv', '_summary.csv')
        with open(summary_file, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['Metric', 'Value'])
            for key, value in result.summary().items():
                writer.writerow([key, value])

        print(f"Summary exported to {summary_file}")
