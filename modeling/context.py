"""Weather and injury context for game predictions."""
from dataclasses import dataclass
from typing import Optional

from modeling.params import AdjustmentParams


@dataclass
class WeatherReport:
    temperature: float  # Fahrenheit
    wind_speed: float   # mph
    precipitation: float = 0.0  # chance of precipitation, percent
    humidity: float = 50.0
    conditions: str = ""
    indoor: bool = False


@dataclass
class InjuryReport:
    qb_out: bool = False
    key_players_out: int = 0


def weather_impact(weather: Optional[WeatherReport]) -> float:
    """
    Score how much the weather suppresses scoring (0 = none).

    Wind hurts the passing game, extreme temperatures and rain slow
    everything down. Indoor venues score 0.
    """
    if weather is None or weather.indoor:
        return 0.0

    impact = 0.0

    if weather.wind_speed > 15:
        impact += 0.5
    if weather.wind_speed > 25:
        impact += 1.0

    if weather.temperature < 20:
        impact += 0.5
    if weather.temperature < 10:
        impact += 0.5
    if weather.temperature > 95:
        impact += 0.3

    if weather.precipitation > 30:
        impact += 0.5
    if weather.precipitation > 60:
        impact += 0.5

    return impact


def injury_penalty(report: Optional[InjuryReport], params: AdjustmentParams) -> float:
    """Points removed from a team's predicted score for missing players."""
    if report is None:
        return 0.0
    penalty = params.qb_out_points if report.qb_out else 0.0
    penalty += min(report.key_players_out * params.key_player_points, params.max_key_player_points)
    return penalty


@dataclass
class PredictionContext:
    weather: Optional[WeatherReport] = None
    home_injuries: Optional[InjuryReport] = None
    away_injuries: Optional[InjuryReport] = None
