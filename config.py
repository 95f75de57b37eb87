"""Configuration for the Edgeline rating and prediction engine."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Paths
BASE_DIR = Path(__file__).parent
DB_PATH = Path(os.getenv("EDGELINE_DB_PATH", BASE_DIR / "edgeline.db"))

# API Keys
ODDS_API_KEY = os.getenv("ODDS_API_KEY", "")
WEATHER_API_KEY = os.getenv("WEATHER_API_KEY", "")

# API Endpoints
ODDS_API_BASE = "https://api.the-odds-api.com/v4"
ESPN_API_BASE = "https://site.api.espn.com/apis/site/v2/sports"
WEATHER_API_BASE = "https://api.openweathermap.org/data/2.5"
REQUEST_TIMEOUT = 30

# Elo parameters
ELO_K_FACTOR = 20
ELO_HOME_ADVANTAGE = 48  # ~2.8 points in NFL
ELO_INITIAL = 1500
ELO_USE_MARGIN_WEIGHTING = True
# Margin multiplier: ln(margin + 1) * SCALE + OFFSET, discounted for favourites
ELO_MOV_LOG_SCALE = 0.7
ELO_MOV_OFFSET = 0.8
ELO_MOV_AUTOCORRELATION = 2.2

# Simulation / prediction parameters
ELO_TO_POINTS = 5.93      # Points of spread per 100 Elo
HOME_FIELD_POINTS = 2.28  # Home advantage in points
SPREAD_REGRESSION = 0.0   # Shrink spread toward 0 (0 = none)
ELO_CAP = 0.0             # Max Elo adjustment in points (0 = no cap)
MIN_SPREAD = 0.0          # Only bet if |spread| >= this
MAX_SPREAD = 20.0         # Only bet if |spread| <= this
STATS_REGRESSION = 0.3    # Regress PPG stats toward league average

# Contextual adjustments (points)
WEATHER_POINTS_PER_IMPACT = 0.75
QB_OUT_POINTS = 4.0
KEY_PLAYER_POINTS = 0.5
MAX_KEY_PLAYER_POINTS = 2.0

# Edge thresholds
EDGE_MODERATE = 1.5        # |edge| below this is weak
EDGE_STRONG = 3.0          # |edge| at or above this is strong
MIN_EDGE = 2.5             # Minimum spread/total edge for a pick
MIN_WIN_PROBABILITY = 0.6  # Minimum win probability for a moneyline pick

# Backtest pricing (-110: risk 110 to win 100)
BET_ODDS = -110
BET_STAKE = 110.0
MIN_BETS = 50
BREAKEVEN_WIN_PCT = 52.4

# Sports covered by the engine
SPORTS = {
    "nfl": {
        "name": "NFL",
        "espn_path": "football/nfl",
        "odds_key": "americanfootball_nfl",
        "league_avg_ppg": 22.0,
        "home_field_points": 2.28,
        "elo_to_points": 5.93,
    },
    "nba": {
        "name": "NBA",
        "espn_path": "basketball/nba",
        "odds_key": "basketball_nba",
        "league_avg_ppg": 114.0,
        "home_field_points": 2.5,
        "elo_to_points": 3.5,
    },
    "nhl": {
        "name": "NHL",
        "espn_path": "hockey/nhl",
        "odds_key": "icehockey_nhl",
        "league_avg_ppg": 3.1,
        "home_field_points": 0.2,
        "elo_to_points": 0.35,
    },
    "cbb": {
        "name": "College Basketball",
        "espn_path": "basketball/mens-college-basketball",
        "odds_key": "basketball_ncaab",
        "league_avg_ppg": 72.0,
        "home_field_points": 3.0,
        "elo_to_points": 3.0,
    },
}


def sport(key: str) -> dict:
    """Look up a sport's settings by key (nfl, nba, nhl, cbb)."""
    return SPORTS[key.lower()]
