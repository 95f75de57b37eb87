"""
Fit the Elo-to-points conversion from results.

Replays completed games chronologically and regresses the actual home
margin on the pre-game rating difference (home minus away, no home
advantage):

    margin = slope * elo_diff + intercept

slope * 100 is the points per 100 Elo used by SimulationParams.elo_to_points
and the intercept is the home field advantage in points.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from database.models import Game
from modeling.elo import chronological, replay_from_scratch
from modeling.params import EloConfig


@dataclass
class CalibrationResult:
    elo_to_points: float
    home_field_points: float
    r_squared: float
    sample_size: int
    home_win_pct: float
    avg_margin: float


def _fit(x: np.ndarray, y: np.ndarray) -> Tuple[float, float, float]:
    slope, intercept = np.polyfit(x, y, 1)
    residual = y - (slope * x + intercept)
    ss_total = float(((y - y.mean()) ** 2).sum())
    r_squared = 1 - float((residual ** 2).sum()) / ss_total if ss_total else 0.0
    return float(slope), float(intercept), r_squared


def calibrate(games: Iterable[Game], elo_config: Optional[EloConfig] = None,
              initial_ratings: Optional[Dict[str, float]] = None) -> Optional[CalibrationResult]:
    """
    Regress margins on pre-game Elo differences.

    Returns None when there are fewer than two completed games or every
    game was played between equally rated teams.
    """
    config = elo_config or EloConfig()
    history: List[Tuple[Game, float, float]] = []
    replay_from_scratch(chronological(games), initial_ratings or {}, config, history)

    if len(history) < 2:
        return None

    diffs = np.array([home - away for _, home, away in history], dtype=float)
    margins = np.array([g.home_margin for g, _, _ in history], dtype=float)
    if np.ptp(diffs) == 0:
        return None

    slope, intercept, r_squared = _fit(diffs, margins)

    return CalibrationResult(
        elo_to_points=slope * 100,
        home_field_points=intercept,
        r_squared=r_squared,
        sample_size=len(history),
        home_win_pct=float((margins > 0).mean() * 100),
        avg_margin=float(margins.mean()),
    )
