"""Database connection and initialization."""
import sqlite3
from pathlib import Path
from typing import Optional, Union

from config import DB_PATH

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        sport TEXT NOT NULL,
        name TEXT NOT NULL,
        abbreviation TEXT,
        elo_rating REAL DEFAULT 1500.0,
        points_for INTEGER DEFAULT 0,
        points_against INTEGER DEFAULT 0,
        games_played INTEGER DEFAULT 0,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS games (
        id TEXT PRIMARY KEY,
        sport TEXT NOT NULL,
        home_team_id TEXT NOT NULL,
        away_team_id TEXT NOT NULL,
        game_time TEXT NOT NULL,
        status TEXT DEFAULT 'scheduled',
        home_score INTEGER,
        away_score INTEGER,
        elo_state TEXT DEFAULT 'unprocessed',
        season INTEGER,
        week INTEGER,
        venue TEXT,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (home_team_id) REFERENCES teams(id),
        FOREIGN KEY (away_team_id) REFERENCES teams(id),
        CHECK (status IN ('scheduled', 'in_progress', 'final'))
    )
    """,
    # Odds snapshots - stores every snapshot, never overwrites
    """
    CREATE TABLE IF NOT EXISTS odds_snapshots (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        game_id TEXT NOT NULL,
        bookmaker TEXT NOT NULL,
        pulled_at TEXT NOT NULL,
        home_spread REAL,
        total REAL,
        home_moneyline REAL,
        away_moneyline REAL,
        home_spread_odds REAL DEFAULT -110,
        away_spread_odds REAL DEFAULT -110,
        over_odds REAL DEFAULT -110,
        under_odds REAL DEFAULT -110,
        FOREIGN KEY (game_id) REFERENCES games(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS predictions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        game_id TEXT NOT NULL,
        home_score REAL NOT NULL,
        away_score REAL NOT NULL,
        spread REAL NOT NULL,
        total REAL NOT NULL,
        home_win_prob REAL NOT NULL,
        confidence REAL NOT NULL,
        edge_spread REAL,
        edge_total REAL,
        recommendation TEXT,
        schema_version INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (game_id) REFERENCES games(id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_teams_sport ON teams(sport)",
    "CREATE INDEX IF NOT EXISTS idx_games_sport_time ON games(sport, game_time)",
    "CREATE INDEX IF NOT EXISTS idx_games_status ON games(status)",
    "CREATE INDEX IF NOT EXISTS idx_odds_game_time ON odds_snapshots(game_id, pulled_at)",
    "CREATE INDEX IF NOT EXISTS idx_predictions_game ON predictions(game_id, created_at)",
]


def get_connection(db_path: Optional[Union[str, Path]] = None) -> sqlite3.Connection:
    """Get a database connection with row factory."""
    conn = sqlite3.connect(str(db_path or DB_PATH))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: Optional[Union[str, Path]] = None) -> None:
    """Initialize the database with all required tables."""
    conn = get_connection(db_path)
    try:
        for statement in SCHEMA:
            conn.execute(statement)
        conn.commit()
    finally:
        conn.close()


def reset_db(db_path: Optional[Union[str, Path]] = None) -> None:
    """Reset the database by deleting and reinitializing."""
    path = Path(db_path or DB_PATH)
    if path.exists():
        path.unlink()
    init_db(path)
