"""Elo rating model shared by every sport."""
import math
from typing import Dict, Iterable, List, Optional, Tuple

from database.models import EloState, Game
from modeling.params import EloConfig
from modeling.stats import aggregate_team_stats

DEFAULT_CONFIG = EloConfig()


def expected_score(rating_a: float, rating_b: float) -> float:
    """
    Calculate expected score for team A against team B.

    Returns probability of A winning (0 to 1).
    """
    return 1 / (1 + 10 ** ((rating_b - rating_a) / 400))


def margin_multiplier(margin: int, winner_gap: float,
                      config: EloConfig = DEFAULT_CONFIG) -> float:
    """
    K-factor multiplier based on margin of victory.

    Logarithmic in the margin so blowouts have diminishing returns, and
    discounted when the winner was already the favourite (winner_gap > 0)
    so ratings don't run away on expected results.

    Args:
        margin: Absolute score difference
        winner_gap: Winner's pre-game rating minus loser's, home advantage included
    """
    if not config.margin_of_victory or margin == 0:
        return 1.0

    multiplier = math.log(abs(margin) + 1) * config.mov_log_scale + config.mov_offset

    if config.mov_autocorrelation > 0:
        gap = max(-config.mov_gap_limit, min(config.mov_gap_limit, winner_gap))
        multiplier *= config.mov_autocorrelation / (gap * 0.001 + config.mov_autocorrelation)

    return multiplier


def _clamp(rating: float, config: EloConfig) -> float:
    if config.min_rating is not None:
        rating = max(config.min_rating, rating)
    if config.max_rating is not None:
        rating = min(config.max_rating, rating)
    return rating


def update_after_game(home_rating: float, away_rating: float,
                      home_score: int, away_score: int,
                      config: EloConfig = DEFAULT_CONFIG) -> Tuple[float, float]:
    """
    Update Elo ratings after a completed game.

    The home side's rating is boosted by home_advantage for the expectation
    only; the resulting delta is added to home and subtracted from away.

    Returns:
        Tuple of (new_home_rating, new_away_rating)
    """
    adjusted_home = home_rating + config.home_advantage
    expected_home = expected_score(adjusted_home, away_rating)

    if home_score > away_score:
        actual_home = 1.0
    elif home_score < away_score:
        actual_home = 0.0
    else:
        actual_home = 0.5  # ties happen in the NHL regular season record

    margin = abs(home_score - away_score)
    gap = adjusted_home - away_rating
    winner_gap = gap if home_score >= away_score else -gap
    multiplier = margin_multiplier(margin, winner_gap, config)

    delta = config.k_factor * multiplier * (actual_home - expected_home)

    return _clamp(home_rating + delta, config), _clamp(away_rating - delta, config)


def chronological(games: Iterable[Game]) -> List[Game]:
    """Completed games in ascending game-time order (ties broken by id)."""
    return sorted((g for g in games if g.is_complete), key=lambda g: (g.game_time, g.id))


def replay_from_scratch(games: Iterable[Game], initial_ratings: Dict[str, float],
                        config: EloConfig = DEFAULT_CONFIG,
                        history: Optional[List[Tuple[Game, float, float]]] = None
                        ) -> Tuple[Dict[str, float], List[str]]:
    """
    Replay games in the order given and return final ratings.

    Elo is path dependent, so callers pass games already sorted (see
    chronological()). Incomplete games are skipped. Teams missing from
    initial_ratings start at config.initial_rating. Inputs are not mutated.
    If history is given, (game, home_before, away_before) is appended for
    every processed game.

    Returns:
        Tuple of (final ratings by team id, processed game ids in order)
    """
    ratings = dict(initial_ratings)
    processed: List[str] = []

    for game in games:
        if not game.is_complete:
            continue

        home = ratings.get(game.home_team_id, config.initial_rating)
        away = ratings.get(game.away_team_id, config.initial_rating)
        if history is not None:
            history.append((game, home, away))

        new_home, new_away = update_after_game(
            home, away, game.home_score, game.away_score, config
        )

        ratings[game.home_team_id] = new_home
        ratings[game.away_team_id] = new_away
        processed.append(game.id)

    return ratings, processed


def apply_new_results(games: Iterable[Game], ratings: Dict[str, float],
                      config: EloConfig = DEFAULT_CONFIG) -> Tuple[Dict[str, float], List[str]]:
    """Fold in only the games whose elo_state is still unprocessed."""
    pending = [g for g in games if g.elo_state != EloState.PROCESSED]
    return replay_from_scratch(pending, ratings, config)


class EloModel:
    """
    Store-backed Elo model.

    Features:
    - Full reset-and-replay recalculation (the recovery path for rating drift)
    - Incremental updates from newly finished games
    - Team scoring stats refreshed alongside ratings
    """

    def __init__(self, store, config: Optional[EloConfig] = None):
        self.store = store
        self.config = config or DEFAULT_CONFIG

    def recalculate(self, sport: str) -> Dict:
        """
        Reset every rating and processed state for a sport and replay all
        completed games in chronological order.

        Returns:
            Recalculation statistics
        """
        self.store.reset_ratings(sport, self.config.initial_rating)
        self.store.reset_processed(sport)

        teams = self.store.get_teams(sport)
        games = chronological(self.store.get_games(sport))
        initial = {team.id: self.config.initial_rating for team in teams}

        history: List[Tuple[Game, float, float]] = []
        final, processed = replay_from_scratch(games, initial, self.config, history)

        correct_predictions = 0
        decided = 0
        for game, home, away in history:
            if game.home_score == game.away_score:
                continue
            decided += 1
            home_prob = expected_score(home + self.config.home_advantage, away)
            if (home_prob > 0.5) == (game.home_score > game.away_score):
                correct_predictions += 1

        self.store.update_ratings(final)
        self.store.mark_processed(processed)
        self.store.update_team_stats(aggregate_team_stats(games))

        # Ties have no predicted winner
        accuracy = correct_predictions / decided if decided else 0
        top = sorted(final.items(), key=lambda item: item[1], reverse=True)[:10]

        stats = {
            'games_processed': len(processed),
            'decided_games': decided,
            'correct_predictions': correct_predictions,
            'accuracy': accuracy,
            'updated_teams': len(final),
            'top_teams': top,
        }

        print(f"Recalculated {sport.upper()} from {len(processed)} games. Accuracy: {accuracy:.2%}")
        return stats

    def update(self, sport: str) -> Dict:
        """Fold newly finished games into the stored ratings."""
        teams = self.store.get_teams(sport)
        ratings = {team.id: team.rating for team in teams}
        pending = chronological(self.store.get_games(sport, elo_state=EloState.UNPROCESSED))

        final, processed = apply_new_results(pending, ratings, self.config)
        if processed:
            changed = {tid: r for tid, r in final.items() if ratings.get(tid) != r}
            self.store.update_ratings(changed)
            self.store.mark_processed(processed)
            completed = chronological(self.store.get_games(sport))
            self.store.update_team_stats(aggregate_team_stats(completed))

        print(f"Processed {len(processed)} new {sport.upper()} games.")
        return {'games_processed': len(processed), 'processed_ids': processed}

    def rankings(self, sport: str) -> List[Dict]:
        """Current team rankings by Elo."""
        teams = sorted(self.store.get_teams(sport), key=lambda t: t.rating, reverse=True)
        return [
            {
                'rank': i,
                'id': team.id,
                'name': team.name,
                'abbreviation': team.abbreviation,
                'rating': team.rating,
                'ppg': team.ppg,
                'ppg_allowed': team.ppg_allowed,
            }
            for i, team in enumerate(teams, 1)
        ]
