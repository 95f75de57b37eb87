"""Parameter sets for the Elo engine, predictor and backtester."""
import math
from dataclasses import dataclass, fields, replace as _replace
from typing import Optional

import config


class ConfigError(ValueError):
    """Raised when a parameter set is invalid."""


def _check_finite(obj) -> None:
    for f in fields(obj):
        value = getattr(obj, f.name)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (int, float)) and not math.isfinite(value):
            raise ConfigError(f"{f.name} must be finite, got {value}")


def _check_fraction(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"{name} must be in [0, 1], got {value}")


class _Params:
    """Shared helpers for the frozen parameter dataclasses."""

    def replace(self, **changes):
        """Return a validated copy with some fields changed."""
        return _replace(self, **changes)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class EloConfig(_Params):
    """
    Parameters for the Elo rating update.

    Attributes:
        k_factor: Maximum per-game rating swing before margin scaling
        home_advantage: Rating points added to the home side
        initial_rating: Rating for new or reset teams
        margin_of_victory: Scale updates by margin of victory
        mov_log_scale: Multiplier on ln(margin + 1)
        mov_offset: Constant added to the log term
        mov_autocorrelation: Discount for favourites (0 disables it)
        mov_gap_limit: Clamp on the winner's rating gap used in the discount
        min_rating: Optional lower bound on ratings
        max_rating: Optional upper bound on ratings
    """
    k_factor: float = config.ELO_K_FACTOR
    home_advantage: float = config.ELO_HOME_ADVANTAGE
    initial_rating: float = config.ELO_INITIAL
    margin_of_victory: bool = config.ELO_USE_MARGIN_WEIGHTING
    mov_log_scale: float = config.ELO_MOV_LOG_SCALE
    mov_offset: float = config.ELO_MOV_OFFSET
    mov_autocorrelation: float = config.ELO_MOV_AUTOCORRELATION
    mov_gap_limit: float = 1000.0
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None

    def __post_init__(self):
        _check_finite(self)
        if self.k_factor <= 0:
            raise ConfigError(f"k_factor must be > 0, got {self.k_factor}")
        if self.mov_log_scale < 0 or self.mov_offset <= 0:
            raise ConfigError("margin multiplier scale must be >= 0 and offset > 0")
        if self.mov_autocorrelation < 0:
            raise ConfigError(f"mov_autocorrelation must be >= 0, got {self.mov_autocorrelation}")
        if self.mov_gap_limit <= 0:
            raise ConfigError(f"mov_gap_limit must be > 0, got {self.mov_gap_limit}")
        if self.mov_autocorrelation > 0 and self.mov_gap_limit * 0.001 >= self.mov_autocorrelation:
            raise ConfigError("mov_gap_limit too large for mov_autocorrelation")
        if (self.min_rating is not None and self.max_rating is not None
                and self.min_rating >= self.max_rating):
            raise ConfigError(f"min_rating {self.min_rating} must be below max_rating {self.max_rating}")


@dataclass(frozen=True)
class SimulationParams(_Params):
    """
    Tunable prediction parameters searched by the optimizer.

    Attributes:
        elo_to_points: Spread points per 100 Elo of rating difference
        home_field_points: Home advantage in points
        spread_regression: Shrink the predicted spread toward 0 (0-1)
        elo_cap: Max total Elo adjustment in points (0 = no cap)
        min_spread: Only bet if |spread| >= this
        max_spread: Only bet if |spread| <= this
        stats_regression: Regress PPG stats toward league average (0-1)
        league_avg_ppg: League average points per game
    """
    elo_to_points: float = config.ELO_TO_POINTS
    home_field_points: float = config.HOME_FIELD_POINTS
    spread_regression: float = config.SPREAD_REGRESSION
    elo_cap: float = config.ELO_CAP
    min_spread: float = config.MIN_SPREAD
    max_spread: float = config.MAX_SPREAD
    stats_regression: float = config.STATS_REGRESSION
    league_avg_ppg: float = config.SPORTS["nfl"]["league_avg_ppg"]

    def __post_init__(self):
        _check_finite(self)
        _check_fraction("spread_regression", self.spread_regression)
        _check_fraction("stats_regression", self.stats_regression)
        if self.elo_to_points < 0:
            raise ConfigError(f"elo_to_points must be >= 0, got {self.elo_to_points}")
        if self.elo_cap < 0:
            raise ConfigError(f"elo_cap must be >= 0, got {self.elo_cap}")
        if self.min_spread < 0 or self.min_spread > self.max_spread:
            raise ConfigError(
                f"spread filter must satisfy 0 <= min_spread <= max_spread, "
                f"got {self.min_spread}..{self.max_spread}")
        if self.league_avg_ppg < 0:
            raise ConfigError(f"league_avg_ppg must be >= 0, got {self.league_avg_ppg}")

    @classmethod
    def for_sport(cls, sport: str, **overrides) -> "SimulationParams":
        """Defaults scaled to a sport's scoring environment."""
        s = config.sport(sport)
        values = {
            "elo_to_points": s["elo_to_points"],
            "home_field_points": s["home_field_points"],
            "league_avg_ppg": s["league_avg_ppg"],
        }
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class AdjustmentParams(_Params):
    """Point penalties for weather and injuries."""
    weather_points_per_impact: float = config.WEATHER_POINTS_PER_IMPACT
    qb_out_points: float = config.QB_OUT_POINTS
    key_player_points: float = config.KEY_PLAYER_POINTS
    max_key_player_points: float = config.MAX_KEY_PLAYER_POINTS

    def __post_init__(self):
        _check_finite(self)
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ConfigError(f"{f.name} must be >= 0, got {getattr(self, f.name)}")
