"""Game-time weather from OpenWeather."""
from datetime import datetime, timezone
from typing import Dict, Optional

import requests

from config import REQUEST_TIMEOUT, WEATHER_API_BASE, WEATHER_API_KEY
from database.models import utcnow
from modeling.context import WeatherReport

# Venue coordinates (lat, lon, indoor)
VENUES = {
    'Arrowhead Stadium': (39.0489, -94.4839, False),
    'GEHA Field at Arrowhead Stadium': (39.0489, -94.4839, False),
    'Highmark Stadium': (42.7738, -78.7870, False),
    'Empower Field at Mile High': (39.7439, -105.0201, False),
    'Huntington Bank Field': (41.5061, -81.6995, False),
    'Gillette Stadium': (42.0909, -71.2643, False),
    'Hard Rock Stadium': (25.9580, -80.2389, False),
    'Lumen Field': (47.5952, -122.3316, False),
    'M&T Bank Stadium': (39.2780, -76.6227, False),
    'MetLife Stadium': (40.8128, -74.0742, False),
    'Nissan Stadium': (36.1665, -86.7713, False),
    'Paycor Stadium': (39.0955, -84.5160, False),
    'Raymond James Stadium': (27.9759, -82.5033, False),
    'Soldier Field': (41.8623, -87.6167, False),
    'EverBank Stadium': (30.3239, -81.6373, False),
    "Levi's Stadium": (37.4033, -121.9694, False),
    'Lambeau Field': (44.5013, -88.0622, False),
    'Lincoln Financial Field': (39.9008, -75.1675, False),
    'Acrisure Stadium': (40.4468, -80.0158, False),
    'Northwest Stadium': (38.9076, -76.8645, False),
    'Bank of America Stadium': (35.2258, -80.8528, False),
    'SoFi Stadium': (33.9535, -118.3392, True),
    'AT&T Stadium': (32.7473, -97.0945, True),
    'Caesars Superdome': (29.9511, -90.0812, True),
    'Ford Field': (42.3400, -83.0456, True),
    'Lucas Oil Stadium': (39.7601, -86.1639, True),
    'Mercedes-Benz Stadium': (33.7554, -84.4010, True),
    'State Farm Stadium': (33.5276, -112.2626, True),
    'U.S. Bank Stadium': (44.9736, -93.2575, True),
    'Allegiant Stadium': (36.0909, -115.1833, True),
    'NRG Stadium': (29.6847, -95.4107, True),
}

# The forecast endpoint covers the next five days
FORECAST_HOURS = 120


def indoor_report() -> WeatherReport:
    return WeatherReport(temperature=72, wind_speed=0, conditions='Indoor', indoor=True)


def parse_current(data: Dict) -> WeatherReport:
    return WeatherReport(
        temperature=round(data['main']['temp']),
        wind_speed=round(data['wind']['speed']),
        precipitation=100 if (data.get('rain') or {}).get('1h') else 0,
        humidity=data['main'].get('humidity', 50),
        conditions=(data.get('weather') or [{}])[0].get('description', 'Unknown'),
    )


def parse_forecast(data: Dict, game_time: datetime) -> Optional[WeatherReport]:
    """Pick the forecast slot closest to kickoff."""
    slots = data.get('list') or []
    if not slots:
        return None
    target = game_time.replace(tzinfo=timezone.utc).timestamp()
    closest = min(slots, key=lambda s: abs(s['dt'] - target))
    return WeatherReport(
        temperature=round(closest['main']['temp']),
        wind_speed=round(closest['wind']['speed']),
        precipitation=round((closest.get('pop') or 0) * 100),
        humidity=closest['main'].get('humidity', 50),
        conditions=(closest.get('weather') or [{}])[0].get('description', 'Unknown'),
    )


class WeatherClient:
    """Look up game-time weather for outdoor venues."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else WEATHER_API_KEY
        self.base_url = WEATHER_API_BASE

    def for_venue(self, venue: Optional[str], game_time: datetime) -> Optional[WeatherReport]:
        """
        Weather for a venue at game time.

        Upcoming games within the forecast window use the forecast; anything
        else falls back to current conditions. Unknown venues, a missing key
        or a failed request return None.
        """
        location = VENUES.get(venue or '')
        if location is None:
            return None
        lat, lon, indoor = location
        if indoor:
            return indoor_report()
        if not self.api_key:
            print("Warning: WEATHER_API_KEY not set; skipping weather.")
            return None

        # game_time is naive UTC
        hours = (game_time - utcnow()).total_seconds() / 3600
        use_forecast = 0 <= hours <= FORECAST_HOURS
        endpoint = 'forecast' if use_forecast else 'weather'

        try:
            response = requests.get(
                f"{self.base_url}/{endpoint}",
                params={'lat': lat, 'lon': lon, 'appid': self.api_key, 'units': 'imperial'},
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            print(f"Error fetching weather for {venue}: {e}")
            return None

        try:
            if use_forecast:
                return parse_forecast(data, game_time)
            return parse_current(data)
        except (KeyError, TypeError) as e:
            print(f"Unexpected weather payload for {venue}: {e}")
            return None
