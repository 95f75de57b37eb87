"""Odds ingestion from The Odds API."""
from datetime import datetime
from typing import Dict, List, Optional

import requests

from config import ODDS_API_BASE, ODDS_API_KEY, REQUEST_TIMEOUT, sport as sport_settings
from database.models import OddsSnapshot, utcnow
from database.store import RatingStore
from ingestion.espn import parse_time


def parse_bookmaker(game_id: str, home_team: str, away_team: str,
                    book: Dict, pulled_at: datetime) -> Optional[OddsSnapshot]:
    """
    Build a snapshot from one bookmaker's markets.

    Spreads and totals are required; moneylines and prices fall back to the
    snapshot defaults. Returns None when either line is missing.
    """
    lines: Dict[str, float] = {}
    for market in book.get('markets', []):
        key = market.get('key')
        for outcome in market.get('outcomes', []):
            name = outcome.get('name', '')
            price = outcome.get('price')
            point = outcome.get('point')
            if key == 'spreads' and name == home_team:
                lines['home_spread'] = point
                lines['home_spread_odds'] = price
            elif key == 'spreads' and name == away_team:
                lines['away_spread_odds'] = price
            elif key == 'totals' and name == 'Over':
                lines['total'] = point
                lines['over_odds'] = price
            elif key == 'totals' and name == 'Under':
                lines['under_odds'] = price
            elif key == 'h2h' and name == home_team:
                lines['home_moneyline'] = price
            elif key == 'h2h' and name == away_team:
                lines['away_moneyline'] = price

    lines = {k: v for k, v in lines.items() if v is not None}
    if 'home_spread' not in lines or 'total' not in lines:
        return None

    return OddsSnapshot(
        game_id=game_id,
        bookmaker=book.get('key', ''),
        timestamp=pulled_at,
        **lines,
    )


class OddsIngester:
    """Ingest spreads, totals and moneylines from The Odds API."""

    def __init__(self, sport: str, store: Optional[RatingStore] = None,
                 api_key: Optional[str] = None):
        self.sport = sport.lower()
        self.settings = sport_settings(self.sport)
        self.store = store or RatingStore()
        self.api_key = api_key if api_key is not None else ODDS_API_KEY
        self.base_url = ODDS_API_BASE

    def fetch_odds(self) -> List[Dict]:
        """Fetch current odds from The Odds API."""
        if not self.api_key:
            print("Error: ODDS_API_KEY not set. Please set it in .env file.")
            return []

        params = {
            "apiKey": self.api_key,
            "regions": "us",
            "markets": "spreads,totals,h2h",
            "oddsFormat": "american",
            "dateFormat": "iso",
        }

        try:
            response = requests.get(
                f"{self.base_url}/sports/{self.settings['odds_key']}/odds",
                params=params,
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()

            remaining = response.headers.get('x-requests-remaining', 'unknown')
            print(f"API requests remaining: {remaining}")

            return response.json()

        except requests.RequestException as e:
            print(f"Error fetching odds: {e}")
            return []

    def match_game(self, home_team: str, away_team: str, commence_time: str) -> Optional[str]:
        """Find the stored game for a matchup on the same (UTC) day."""
        home = self.store.find_team(self.sport, home_team)
        away = self.store.find_team(self.sport, away_team)
        if not home or not away:
            return None

        game_date = parse_time(commence_time).date().isoformat()
        for game in self.store.get_games(self.sport, on_date=game_date):
            if game.home_team_id == home.id and game.away_team_id == away.id:
                return game.id
        return None

    def parse_events(self, events: List[Dict], pulled_at: Optional[datetime] = None) -> List[OddsSnapshot]:
        pulled_at = pulled_at or utcnow()
        snapshots = []
        unmatched = 0

        for event in events:
            home_team = event.get('home_team', '')
            away_team = event.get('away_team', '')
            try:
                game_id = self.match_game(home_team, away_team, event.get('commence_time', ''))
            except ValueError as e:
                print(f"Skipping event {event.get('id')}: {e}")
                continue
            if not game_id:
                unmatched += 1
                continue

            for book in event.get('bookmakers', []):
                snapshot = parse_bookmaker(game_id, home_team, away_team, book, pulled_at)
                if snapshot is not None:
                    snapshots.append(snapshot)

        if unmatched:
            print(f"{unmatched} events did not match a stored game; pull games first.")
        return snapshots

    def ingest_odds(self) -> int:
        """
        Fetch and store odds snapshots.

        Returns number of snapshots stored.
        """
        events = self.fetch_odds()

        if not events:
            print("No odds data available.")
            return 0

        stored = self.store.save_odds(self.parse_events(events))
        print(f"Stored {stored} odds snapshots.")
        return stored
