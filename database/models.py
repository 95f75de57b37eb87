"""Data models for the Edgeline engine."""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from config import ELO_INITIAL

PREDICTION_SCHEMA_VERSION = 2


def utcnow() -> datetime:
    """Naive UTC timestamp, the format stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [GameStatus.SCHEDULED, GameStatus.IN_PROGRESS, GameStatus.FINAL]


class EloState(str, Enum):
    """Whether a game has been folded into team ratings."""
    UNPROCESSED = "unprocessed"
    PROCESSED = "processed"


@dataclass
class Team:
    id: str
    sport: str
    name: str
    abbreviation: str = ""
    rating: float = ELO_INITIAL
    points_for: int = 0
    points_against: int = 0
    games_played: int = 0

    @property
    def ppg(self) -> Optional[float]:
        """Points per game, or None before the first game."""
        if self.games_played <= 0:
            return None
        return self.points_for / self.games_played

    @property
    def ppg_allowed(self) -> Optional[float]:
        if self.games_played <= 0:
            return None
        return self.points_against / self.games_played


@dataclass
class Game:
    id: str
    sport: str
    home_team_id: str
    away_team_id: str
    game_time: datetime
    status: GameStatus = GameStatus.SCHEDULED
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    elo_state: EloState = EloState.UNPROCESSED
    season: Optional[int] = None
    week: Optional[int] = None
    venue: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """Final with both scores present; anything else is kept out of ratings."""
        return (self.status == GameStatus.FINAL
                and self.home_score is not None
                and self.away_score is not None)

    @property
    def home_margin(self) -> Optional[int]:
        if self.home_score is None or self.away_score is None:
            return None
        return self.home_score - self.away_score

    def advance(self, status: GameStatus) -> "Game":
        """Return a copy moved forward to status; status never moves backward."""
        status = GameStatus(status)
        if status.rank < self.status.rank:
            raise ValueError(f"Game {self.id}: cannot move from {self.status.value} to {status.value}")
        return replace(self, status=status)


@dataclass
class OddsSnapshot:
    game_id: str
    bookmaker: str
    timestamp: datetime
    home_spread: float
    total: float
    home_moneyline: Optional[float] = None
    away_moneyline: Optional[float] = None
    home_spread_odds: float = -110
    away_spread_odds: float = -110
    over_odds: float = -110
    under_odds: float = -110

    @property
    def away_spread(self) -> float:
        return -self.home_spread


@dataclass
class Prediction:
    game_id: Optional[str]
    home_score: float
    away_score: float
    spread: float  # away - home; negative favours home
    total: float
    home_win_probability: float
    confidence: float
    created_at: datetime = field(default_factory=utcnow)
    edge_spread: Optional[float] = None
    edge_total: Optional[float] = None
    recommendation: Optional[str] = None
    schema_version: int = PREDICTION_SCHEMA_VERSION

    @property
    def away_win_probability(self) -> float:
        return 1 - self.home_win_probability
