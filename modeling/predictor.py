"""Score, spread and total predictions from Elo ratings and scoring stats."""
from typing import Optional, Tuple

from database.models import Prediction, Team
from modeling.context import PredictionContext, injury_penalty, weather_impact
from modeling.elo import expected_score
from modeling.params import AdjustmentParams, EloConfig, SimulationParams


class Predictor:
    """
    Predict a game's score from team ratings and scoring stats.

    Each side's base score is the average of its own regressed scoring and
    the opponent's regressed points allowed. The Elo difference is converted
    to points and split between the teams, home field is split the same
    way, then weather and injuries are taken off. The spread is shrunk by
    spread_regression; the win probability comes straight from Elo.

    Usage:
        predictor = Predictor(EloConfig(), SimulationParams.for_sport("nfl"))
        prediction = predictor.predict(home_team, away_team)
    """

    def __init__(self, elo_config: Optional[EloConfig] = None,
                 params: Optional[SimulationParams] = None,
                 adjustments: Optional[AdjustmentParams] = None):
        self.elo_config = elo_config or EloConfig()
        self.params = params or SimulationParams()
        self.adjustments = adjustments or AdjustmentParams()

    def regress(self, stat: Optional[float]) -> float:
        """Pull a per-game stat toward the league average; None means no games yet."""
        avg = self.params.league_avg_ppg
        if stat is None:
            return avg
        r = self.params.stats_regression
        return stat * (1 - r) + avg * r

    def elo_adjustment(self, home_rating: float, away_rating: float) -> float:
        """Points added to home (and removed from away) for the rating gap."""
        adjustment = (home_rating - away_rating) * self.params.elo_to_points / 100 / 2
        cap = self.params.elo_cap
        if cap > 0:
            adjustment = max(-cap / 2, min(cap / 2, adjustment))
        return adjustment

    def predict_scores(self, home: Team, away: Team,
                       context: Optional[PredictionContext] = None) -> Tuple[float, float]:
        """Predicted (home, away) points before spread regression."""
        home_score = (self.regress(home.ppg) + self.regress(away.ppg_allowed)) / 2
        away_score = (self.regress(away.ppg) + self.regress(home.ppg_allowed)) / 2

        elo_adj = self.elo_adjustment(home.rating, away.rating)
        home_score += elo_adj
        away_score -= elo_adj

        home_score += self.params.home_field_points / 2
        away_score -= self.params.home_field_points / 2

        if context is not None:
            weather_points = weather_impact(context.weather) * self.adjustments.weather_points_per_impact
            home_score -= weather_points + injury_penalty(context.home_injuries, self.adjustments)
            away_score -= weather_points + injury_penalty(context.away_injuries, self.adjustments)

        return home_score, away_score

    def regressed_spread(self, home_score: float, away_score: float) -> float:
        """Spread (away - home; negative favours home) shrunk by spread_regression."""
        return (away_score - home_score) * (1 - self.params.spread_regression)

    def predict_spread(self, home: Team, away: Team,
                       context: Optional[PredictionContext] = None) -> float:
        """Regressed spread for home vs away."""
        return self.regressed_spread(*self.predict_scores(home, away, context))

    def win_probability(self, home_rating: float, away_rating: float) -> float:
        return expected_score(home_rating + self.elo_config.home_advantage, away_rating)

    def confidence(self, home: Team, away: Team) -> float:
        """
        Blend of sample confidence (full after 8 games each) and the size
        of the Elo gap.
        """
        min_games = min(home.games_played, away.games_played)
        sample = min(1.0, min_games / 8)
        gap = min(0.95, 0.5 + abs(home.rating - away.rating) / 400)
        return sample * 0.3 + gap * 0.7

    def predict(self, home: Team, away: Team,
                context: Optional[PredictionContext] = None,
                game_id: Optional[str] = None) -> Prediction:
        """Full prediction for home vs away. Scores are not clamped at zero."""
        home_score, away_score = self.predict_scores(home, away, context)
        spread = self.regressed_spread(home_score, away_score)

        return Prediction(
            game_id=game_id,
            home_score=home_score,
            away_score=away_score,
            spread=spread,
            total=home_score + away_score,
            home_win_probability=self.win_probability(home.rating, away.rating),
            confidence=self.confidence(home, away),
        )


def round_half(value: float) -> float:
    """Round to the nearest half point, the way lines are quoted."""
    return round(value * 2) / 2
