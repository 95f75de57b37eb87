"""Team scoring stats aggregated from completed games."""
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from database.models import Game


@dataclass
class TeamStats:
    points_for: int = 0
    points_against: int = 0
    games_played: int = 0

    @property
    def ppg(self) -> Optional[float]:
        return self.points_for / self.games_played if self.games_played else None

    @property
    def ppg_allowed(self) -> Optional[float]:
        return self.points_against / self.games_played if self.games_played else None

    def record(self, scored: int, allowed: int) -> None:
        self.points_for += scored
        self.points_against += allowed
        self.games_played += 1


def record_game(stats: Dict[str, TeamStats], game: Game) -> None:
    """Add one completed game to a running stats map (in place)."""
    if not game.is_complete:
        return
    stats.setdefault(game.home_team_id, TeamStats()).record(game.home_score, game.away_score)
    stats.setdefault(game.away_team_id, TeamStats()).record(game.away_score, game.home_score)


def aggregate_team_stats(games: Iterable[Game]) -> Dict[str, TeamStats]:
    """Points for/against and games played per team over completed games."""
    stats: Dict[str, TeamStats] = {}
    for game in games:
        record_game(stats, game)
    return stats
