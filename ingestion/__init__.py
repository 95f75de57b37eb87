"""Ingestion module for API data."""
from ingestion.espn import ScoreboardIngester
from ingestion.odds import OddsIngester
from ingestion.weather import WeatherClient

__all__ = ['ScoreboardIngester', 'OddsIngester', 'WeatherClient']
