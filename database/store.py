"""SQLite-backed store for teams, games, odds and predictions."""
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from database.db import get_connection, init_db
from database.models import (
    PREDICTION_SCHEMA_VERSION,
    EloState,
    Game,
    GameStatus,
    OddsSnapshot,
    Prediction,
    Team,
)


def _ts(value: datetime) -> str:
    return value.isoformat()


def _team(row) -> Team:
    return Team(
        id=row['id'],
        sport=row['sport'],
        name=row['name'],
        abbreviation=row['abbreviation'] or "",
        rating=row['elo_rating'],
        points_for=row['points_for'] or 0,
        points_against=row['points_against'] or 0,
        games_played=row['games_played'] or 0,
    )


def _game(row) -> Game:
    return Game(
        id=row['id'],
        sport=row['sport'],
        home_team_id=row['home_team_id'],
        away_team_id=row['away_team_id'],
        game_time=datetime.fromisoformat(row['game_time']),
        status=GameStatus(row['status']),
        home_score=row['home_score'],
        away_score=row['away_score'],
        elo_state=EloState(row['elo_state']),
        season=row['season'],
        week=row['week'],
        venue=row['venue'],
    )


def _odds(row) -> OddsSnapshot:
    return OddsSnapshot(
        game_id=row['game_id'],
        bookmaker=row['bookmaker'],
        timestamp=datetime.fromisoformat(row['pulled_at']),
        home_spread=row['home_spread'],
        total=row['total'],
        home_moneyline=row['home_moneyline'],
        away_moneyline=row['away_moneyline'],
        home_spread_odds=row['home_spread_odds'],
        away_spread_odds=row['away_spread_odds'],
        over_odds=row['over_odds'],
        under_odds=row['under_odds'],
    )


class RatingStore:
    """
    Persistence for ratings and the data they are computed from.

    Every batch write runs in a single transaction, so an interrupted write
    leaves the previous state intact. The full recalculation in EloModel is
    the recovery path if ratings and processed states ever disagree.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = db_path
        init_db(db_path)

    @contextmanager
    def _transaction(self):
        conn = get_connection(self.db_path)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    # Reads

    def get_teams(self, sport: str) -> List[Team]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM teams WHERE sport = ? ORDER BY id", (sport,)
            ).fetchall()
        return [_team(r) for r in rows]

    def get_team(self, team_id: str) -> Optional[Team]:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
        return _team(row) if row else None

    def find_team(self, sport: str, name: str) -> Optional[Team]:
        """Look up a team by display name or abbreviation."""
        with self._transaction() as conn:
            row = conn.execute("""
                SELECT * FROM teams
                WHERE sport = ? AND (lower(name) = lower(?) OR lower(abbreviation) = lower(?))
            """, (sport, name, name)).fetchone()
        return _team(row) if row else None

    def get_games(self, sport: str, status: Optional[GameStatus] = None,
                  elo_state: Optional[EloState] = None,
                  on_date: Optional[str] = None) -> List[Game]:
        """Games for a sport in game-time order, optionally filtered."""
        query = "SELECT * FROM games WHERE sport = ?"
        params: list = [sport]
        if status is not None:
            query += " AND status = ?"
            params.append(GameStatus(status).value)
        if elo_state is not None:
            query += " AND elo_state = ?"
            params.append(EloState(elo_state).value)
        if on_date is not None:
            query += " AND date(game_time) = date(?)"
            params.append(on_date)
        query += " ORDER BY game_time ASC, id ASC"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_game(r) for r in rows]

    def get_game(self, game_id: str) -> Optional[Game]:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM games WHERE id = ?", (game_id,)).fetchone()
        return _game(row) if row else None

    def get_odds(self, game_id: str) -> List[OddsSnapshot]:
        with self._transaction() as conn:
            rows = conn.execute("""
                SELECT * FROM odds_snapshots WHERE game_id = ?
                ORDER BY pulled_at DESC
            """, (game_id,)).fetchall()
        return [_odds(r) for r in rows]

    # Writes

    def save_teams(self, teams: Iterable[Team]) -> int:
        """Insert or update team identity; ratings and stats are left alone."""
        rows = [(t.id, t.sport, t.name, t.abbreviation, t.rating) for t in teams]
        with self._transaction() as conn:
            conn.executemany("""
                INSERT INTO teams (id, sport, name, abbreviation, elo_rating)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    abbreviation = excluded.abbreviation
            """, rows)
        return len(rows)

    def save_games(self, games: Iterable[Game]) -> int:
        """
        Insert or update games.

        Status only moves forward: re-ingesting an older snapshot of a game
        never turns a final game back into a scheduled one, and the elo
        state of an existing game is preserved.
        """
        games = list(games)
        with self._transaction() as conn:
            for game in games:
                row = conn.execute(
                    "SELECT status, home_score, away_score FROM games WHERE id = ?", (game.id,)
                ).fetchone()
                if row is not None and GameStatus(row['status']).rank > game.status.rank:
                    continue
                conn.execute("""
                    INSERT INTO games (id, sport, home_team_id, away_team_id, game_time,
                                       status, home_score, away_score, elo_state,
                                       season, week, venue)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        game_time = excluded.game_time,
                        status = excluded.status,
                        home_score = excluded.home_score,
                        away_score = excluded.away_score,
                        season = excluded.season,
                        week = excluded.week,
                        venue = excluded.venue,
                        updated_at = CURRENT_TIMESTAMP
                """, (
                    game.id, game.sport, game.home_team_id, game.away_team_id,
                    _ts(game.game_time), game.status.value, game.home_score, game.away_score,
                    game.elo_state.value, game.season, game.week, game.venue,
                ))
        return len(games)

    def save_odds(self, snapshots: Iterable[OddsSnapshot]) -> int:
        rows = [
            (s.game_id, s.bookmaker, _ts(s.timestamp), s.home_spread, s.total,
             s.home_moneyline, s.away_moneyline, s.home_spread_odds,
             s.away_spread_odds, s.over_odds, s.under_odds)
            for s in snapshots
        ]
        with self._transaction() as conn:
            conn.executemany("""
                INSERT INTO odds_snapshots
                (game_id, bookmaker, pulled_at, home_spread, total, home_moneyline,
                 away_moneyline, home_spread_odds, away_spread_odds, over_odds, under_odds)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, rows)
        return len(rows)

    def update_ratings(self, ratings: Dict[str, float]) -> None:
        with self._transaction() as conn:
            conn.executemany(
                "UPDATE teams SET elo_rating = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                [(rating, team_id) for team_id, rating in ratings.items()],
            )

    def mark_processed(self, game_ids: Iterable[str]) -> None:
        with self._transaction() as conn:
            conn.executemany(
                "UPDATE games SET elo_state = ? WHERE id = ?",
                [(EloState.PROCESSED.value, gid) for gid in game_ids],
            )

    def reset_ratings(self, sport: str, value: float) -> None:
        with self._transaction() as conn:
            conn.execute("UPDATE teams SET elo_rating = ? WHERE sport = ?", (value, sport))

    def reset_processed(self, sport: str) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE games SET elo_state = ? WHERE sport = ?",
                (EloState.UNPROCESSED.value, sport),
            )

    def update_team_stats(self, stats: Dict) -> None:
        """Write points for/against and games played (a mapping of team id to TeamStats)."""
        with self._transaction() as conn:
            conn.executemany("""
                UPDATE teams SET points_for = ?, points_against = ?, games_played = ?
                WHERE id = ?
            """, [(s.points_for, s.points_against, s.games_played, tid) for tid, s in stats.items()])

    def save_prediction(self, prediction: Prediction) -> int:
        with self._transaction() as conn:
            cursor = conn.execute("""
                INSERT INTO predictions
                (game_id, home_score, away_score, spread, total, home_win_prob, confidence,
                 edge_spread, edge_total, recommendation, schema_version, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                prediction.game_id, prediction.home_score, prediction.away_score,
                prediction.spread, prediction.total, prediction.home_win_probability,
                prediction.confidence, prediction.edge_spread, prediction.edge_total,
                prediction.recommendation, prediction.schema_version,
                _ts(prediction.created_at),
            ))
            return cursor.lastrowid

    def latest_prediction(self, game_id: str) -> Optional[Prediction]:
        """Most recent prediction for a game written with the current schema."""
        with self._transaction() as conn:
            row = conn.execute("""
                SELECT * FROM predictions
                WHERE game_id = ? AND schema_version = ?
                ORDER BY created_at DESC, id DESC LIMIT 1
            """, (game_id, PREDICTION_SCHEMA_VERSION)).fetchone()
        if not row:
            return None
        return Prediction(
            game_id=row['game_id'],
            home_score=row['home_score'],
            away_score=row['away_score'],
            spread=row['spread'],
            total=row['total'],
            home_win_probability=row['home_win_prob'],
            confidence=row['confidence'],
            created_at=datetime.fromisoformat(row['created_at']),
            edge_spread=row['edge_spread'],
            edge_total=row['edge_total'],
            recommendation=row['recommendation'],
            schema_version=row['schema_version'],
        )
