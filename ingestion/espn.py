"""Schedule and score ingestion from the ESPN scoreboard API."""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import requests

from config import ESPN_API_BASE, REQUEST_TIMEOUT, sport as sport_settings
from database.models import Game, GameStatus, Team
from database.store import RatingStore

STATE_TO_STATUS = {
    'pre': GameStatus.SCHEDULED,
    'in': GameStatus.IN_PROGRESS,
    'post': GameStatus.FINAL,
}


def parse_time(value: str) -> datetime:
    """ISO timestamp (ESPN and The Odds API use a trailing Z) to naive UTC."""
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _score(competitor: Dict) -> Optional[int]:
    score = competitor.get('score')
    if score in (None, ''):
        return None
    try:
        return int(score)
    except (TypeError, ValueError):
        return None


def team_id(sport: str, espn_id: str) -> str:
    """ESPN team ids repeat across leagues, so they are namespaced by sport."""
    return f"{sport}-{espn_id}"


def parse_event(sport: str, event: Dict) -> Optional[Tuple[Team, Team, Game]]:
    """
    Parse one scoreboard event into (home team, away team, game).

    Returns None for events without a competition or without both sides.
    """
    competitions = event.get('competitions') or []
    if not competitions:
        return None
    competition = competitions[0]

    competitors = competition.get('competitors') or []
    home = next((c for c in competitors if c.get('homeAway') == 'home'), None)
    away = next((c for c in competitors if c.get('homeAway') == 'away'), None)
    if home is None or away is None:
        return None

    teams = []
    for side in (home, away):
        info = side.get('team') or {}
        teams.append(Team(
            id=team_id(sport, info.get('id', side.get('id', ''))),
            sport=sport,
            name=info.get('displayName', ''),
            abbreviation=info.get('abbreviation', ''),
        ))

    state = ((event.get('status') or {}).get('type') or {}).get('state', 'pre')
    status = STATE_TO_STATUS.get(state, GameStatus.SCHEDULED)
    game_time = parse_time(event['date'])

    game = Game(
        id=f"{sport}-{event['id']}",
        sport=sport,
        home_team_id=teams[0].id,
        away_team_id=teams[1].id,
        game_time=game_time,
        status=status,
        home_score=_score(home) if status != GameStatus.SCHEDULED else None,
        away_score=_score(away) if status != GameStatus.SCHEDULED else None,
        season=(event.get('season') or {}).get('year') or game_time.year,
        week=(event.get('week') or {}).get('number'),
        venue=(competition.get('venue') or {}).get('fullName'),
    )
    return teams[0], teams[1], game


class ScoreboardIngester:
    """Ingest schedules and final scores from ESPN for one sport."""

    def __init__(self, sport: str, store: Optional[RatingStore] = None):
        self.sport = sport.lower()
        self.settings = sport_settings(self.sport)
        self.store = store or RatingStore()
        self.base_url = f"{ESPN_API_BASE}/{self.settings['espn_path']}"

    def fetch_scoreboard(self, date: Optional[str] = None, week: Optional[int] = None) -> List[Dict]:
        """
        Fetch scoreboard events.

        Args:
            date: Date in YYYY-MM-DD format (optional)
            week: Week number, for week-based leagues (optional)
        """
        params = {}
        if date:
            params['dates'] = date.replace('-', '')
        if week:
            params['week'] = week
        if self.sport == 'cbb':
            # Without a group ESPN only returns featured games
            params['groups'] = 50
            params['limit'] = 400

        try:
            response = requests.get(
                f"{self.base_url}/scoreboard",
                params=params,
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            return response.json().get('events', [])
        except requests.RequestException as e:
            print(f"Error fetching {self.settings['name']} scoreboard: {e}")
            return []

    def parse_events(self, events: List[Dict]) -> Tuple[List[Team], List[Game]]:
        teams: Dict[str, Team] = {}
        games: List[Game] = []
        for event in events:
            try:
                parsed = parse_event(self.sport, event)
            except (KeyError, ValueError) as e:
                print(f"Skipping event {event.get('id')}: {e}")
                continue
            if parsed is None:
                continue
            home, away, game = parsed
            teams[home.id] = home
            teams[away.id] = away
            games.append(game)
        return list(teams.values()), games

    def ingest(self, date: Optional[str] = None, week: Optional[int] = None) -> int:
        """
        Fetch and store teams and games.

        Returns number of games stored.
        """
        events = self.fetch_scoreboard(date, week)
        if not events:
            print("No games found.")
            return 0

        teams, games = self.parse_events(events)
        self.store.save_teams(teams)
        stored = self.store.save_games(games)

        final = sum(1 for g in games if g.is_complete)
        print(f"Stored {stored} {self.settings['name']} games ({final} final).")
        return stored

    def ingest_range(self, start_date: str, end_date: str) -> int:
        """Ingest every day from start_date to end_date inclusive."""
        start = datetime.strptime(start_date, "%Y-%m-%d")
        end = datetime.strptime(end_date, "%Y-%m-%d")
        total = 0
        current = start
        while current <= end:
            total += self.ingest(date=current.strftime("%Y-%m-%d"))
            current += timedelta(days=1)
        return total
