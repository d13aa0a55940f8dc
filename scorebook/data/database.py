"""
Database connection and initialization module.

Handles SQLite database setup and provides the record-collection reads and
writes used by the ingestion pipeline.
"""

import json
import sqlite3
import logging
import sys
from datetime import datetime
from pathlib import Path
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Tuple

from config import DATABASE_PATH
from scorebook.stats.aggregator import PlayerStatistics

logger = logging.getLogger(__name__)

# Path to schema file
SCHEMA_PATH = Path(__file__).parent / "schema.sql"

TABLES = [
    "players", "opponent_teams", "opponent_players", "scoresheets",
    "matches", "match_details", "player_statistics",
]

MATCH_DETAIL_COLUMNS = [
    "match_id", "player_id", "opponent_player_id", "player_name",
    "date", "opposition", "venue", "result",
    "batting_runs", "batting_balls", "batting_minutes", "batting_how_out", "bowled_by",
    "bowling_overs", "bowling_maidens", "bowling_runs", "bowling_wickets",
    "catches", "stumpings", "run_outs",
]

STATISTICS_COLUMNS = [
    "player_id", "player_name", "season", "games",
    "inns", "not_outs", "runs", "high_score", "high_score_not_out", "avg",
    "fifties", "hundreds", "balls_faced", "strike_rate",
    "overs", "balls_bowled", "maidens", "bowling_runs", "wickets", "best_bowling",
    "five_wicket_haul", "economy_rate", "bowling_strike_rate", "bowling_average",
    "catches", "stumpings", "run_outs",
]


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """
    Get a database connection with optimized settings.

    Args:
        db_path: Optional path to database file. Uses default if not provided.

    Returns:
        SQLite connection object
    """
    if db_path is None:
        db_path = DATABASE_PATH

    conn = sqlite3.connect(str(db_path))

    # Enable foreign keys
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")

    # Return rows as dictionaries
    conn.row_factory = sqlite3.Row

    return conn


@contextmanager
def get_db_connection(db_path: Optional[Path] = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    Everything done inside the block is one transaction: committed on normal
    exit, rolled back if anything raises.

    Args:
        db_path: Optional path to database file.

    Yields:
        SQLite connection object
    """
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception as e:
        conn.rollback()
        logger.error(f"Database error: {e}")
        raise
    finally:
        conn.close()


def init_database(db_path: Optional[Path] = None, force_recreate: bool = False) -> bool:
    """
    Initialize the database with the schema.

    The schema only uses CREATE ... IF NOT EXISTS, so running this against an
    existing database adds missing tables and leaves data alone.

    Args:
        db_path: Optional path to database file.
        force_recreate: If True, drop existing tables and recreate.

    Returns:
        True if successful, False otherwise
    """
    if db_path is None:
        db_path = DATABASE_PATH
    db_path = Path(db_path)

    try:
        if force_recreate and db_path.exists():
            logger.warning("Recreating database - all existing data will be lost!")
            db_path.unlink()

        if not SCHEMA_PATH.exists():
            logger.error(f"Schema file not found: {SCHEMA_PATH}")
            return False

        db_path.parent.mkdir(parents=True, exist_ok=True)
        schema_sql = SCHEMA_PATH.read_text()

        with get_db_connection(db_path) as conn:
            conn.executescript(schema_sql)
            logger.info(f"Database initialized at {db_path}")

        return True

    except (OSError, sqlite3.Error) as e:
        logger.error(f"Failed to initialize database: {e}")
        return False


def get_table_counts(db_path: Optional[Path] = None) -> dict:
    """
    Get row counts for all tables in the database.

    Returns:
        Dictionary mapping table names to row counts
    """
    counts = {}

    with get_db_connection(db_path) as conn:
        cursor = conn.cursor()

        for table in TABLES:
            try:
                cursor.execute(f"SELECT COUNT(*) FROM {table}")
                counts[table] = cursor.fetchone()[0]
            except sqlite3.OperationalError:
                counts[table] = 0

    return counts


def print_database_summary(db_path: Optional[Path] = None):
    """Print a summary of the database contents."""
    counts = get_table_counts(db_path)

    logger.info("\n" + "=" * 50)
    logger.info("DATABASE SUMMARY")
    logger.info("=" * 50)

    for table, count in counts.items():
        logger.info(f"{table:25} {count:>10,} rows")

    logger.info("=" * 50)


class DatabaseManager:
    """
    Reads and writes on the named record collections.

    Every method takes an open connection so the caller decides the
    transaction boundary.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or DATABASE_PATH

    # ------------------------------------------------------------------
    # Scoresheet audit records
    # ------------------------------------------------------------------

    def insert_scoresheet(
        self,
        conn: sqlite3.Connection,
        source_reference: str,
        raw_text: str,
        processed_data: Dict[str, Any],
        extraction_failed: bool = False
    ) -> int:
        cursor = conn.cursor()
        cursor.execute(
            """INSERT INTO scoresheets (source_reference, raw_text, processed_data, extraction_failed)
               VALUES (?, ?, ?, ?)""",
            (source_reference, raw_text, json.dumps(processed_data), int(extraction_failed))
        )
        return cursor.lastrowid

    def get_scoresheet(self, conn: sqlite3.Connection, source_reference: str) -> Optional[Dict[str, Any]]:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM scoresheets WHERE source_reference = ?", (source_reference,))
        row = cursor.fetchone()
        if row is None:
            return None
        record = dict(row)
        record['processed_data'] = json.loads(record['processed_data']) if record['processed_data'] else None
        for flag in ('extraction_failed', 'approved', 'processed'):
            record[flag] = bool(record[flag])
        return record

    def mark_scoresheet_processed(
        self,
        conn: sqlite3.Connection,
        source_reference: str,
        processed_data: Dict[str, Any]
    ) -> None:
        """Record the approved data; creates the audit row if preview never stored one."""
        now = datetime.now().isoformat(timespec='seconds')
        cursor = conn.cursor()
        cursor.execute(
            """UPDATE scoresheets
               SET processed_data = ?, approved = 1, processed = 1, processed_at = ?
               WHERE source_reference = ?""",
            (json.dumps(processed_data), now, source_reference)
        )
        if cursor.rowcount == 0:
            cursor.execute(
                """INSERT INTO scoresheets
                   (source_reference, raw_text, processed_data, approved, processed, processed_at)
                   VALUES (?, ?, ?, 1, 1, ?)""",
                (source_reference, processed_data.get('raw_text'), json.dumps(processed_data), now)
            )

    # ------------------------------------------------------------------
    # Club members
    # ------------------------------------------------------------------

    def list_active_players(self, conn: sqlite3.Connection) -> List[Tuple[int, str]]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT player_id, full_name FROM players WHERE active = 1 ORDER BY player_id"
        )
        return [(row['player_id'], row['full_name']) for row in cursor.fetchall()]

    def create_player(self, conn: sqlite3.Connection, full_name: str, join_date: str) -> int:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO players (full_name, active, join_date) VALUES (?, 1, ?)",
            (full_name, join_date)
        )
        return cursor.lastrowid

    # ------------------------------------------------------------------
    # Opposition
    # ------------------------------------------------------------------

    def get_or_create_opponent_team(self, conn: sqlite3.Connection, name: str) -> int:
        """Get opponent team ID by exact name, creating if necessary."""
        cursor = conn.cursor()

        cursor.execute("SELECT opponent_team_id FROM opponent_teams WHERE name = ?", (name,))
        row = cursor.fetchone()

        if row:
            return row[0]

        cursor.execute("INSERT INTO opponent_teams (name) VALUES (?)", (name,))
        logger.info(f"Created opponent team '{name}'")
        return cursor.lastrowid

    def list_opponent_players(self, conn: sqlite3.Connection, opponent_team_id: int) -> List[Tuple[int, str]]:
        cursor = conn.cursor()
        cursor.execute(
            """SELECT opponent_player_id, full_name FROM opponent_players
               WHERE opponent_team_id = ? ORDER BY opponent_player_id""",
            (opponent_team_id,)
        )
        return [(row['opponent_player_id'], row['full_name']) for row in cursor.fetchall()]

    def create_opponent_player(self, conn: sqlite3.Connection, full_name: str, opponent_team_id: int) -> int:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO opponent_players (full_name, opponent_team_id) VALUES (?, ?)",
            (full_name, opponent_team_id)
        )
        return cursor.lastrowid

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def insert_match(
        self,
        conn: sqlite3.Connection,
        source_reference: str,
        opponent_team_id: int,
        opposition: str,
        date: Optional[str],
        venue: str,
        toss: str,
        result: str,
        season: str
    ) -> int:
        cursor = conn.cursor()
        cursor.execute(
            """INSERT INTO matches (
                   source_reference, opponent_team_id, opposition, date,
                   venue, toss, result, season
               ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (source_reference, opponent_team_id, opposition, date, venue, toss, result, season)
        )
        return cursor.lastrowid

    def insert_match_detail(self, conn: sqlite3.Connection, detail: Dict[str, Any]) -> int:
        values = [detail.get(column) for column in MATCH_DETAIL_COLUMNS]
        for i, column in enumerate(MATCH_DETAIL_COLUMNS):
            if column in ("catches", "stumpings", "run_outs") and values[i] is None:
                values[i] = 0
        placeholders = ", ".join("?" for _ in MATCH_DETAIL_COLUMNS)
        cursor = conn.cursor()
        cursor.execute(
            f"INSERT INTO match_details ({', '.join(MATCH_DETAIL_COLUMNS)}) VALUES ({placeholders})",
            values
        )
        return cursor.lastrowid

    def get_match_details(self, conn: sqlite3.Connection, match_id: int) -> List[Dict[str, Any]]:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM match_details WHERE match_id = ? ORDER BY detail_id", (match_id,))
        return [dict(row) for row in cursor.fetchall()]

    # ------------------------------------------------------------------
    # Season statistics
    # ------------------------------------------------------------------

    def get_player_statistics(
        self,
        conn: sqlite3.Connection,
        player_id: int,
        season: str
    ) -> Optional[PlayerStatistics]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM player_statistics WHERE player_id = ? AND season = ?",
            (player_id, season)
        )
        row = cursor.fetchone()
        return PlayerStatistics.from_row(row) if row else None

    def save_player_statistics(self, conn: sqlite3.Connection, stats: PlayerStatistics) -> None:
        """Upsert by the natural key (player_id, season)."""
        row = stats.to_row()
        row['high_score_not_out'] = int(row['high_score_not_out'])
        values = [row[column] for column in STATISTICS_COLUMNS]
        updates = ", ".join(
            f"{column} = excluded.{column}"
            for column in STATISTICS_COLUMNS
            if column not in ("player_id", "season")
        )
        conn.execute(
            f"""INSERT INTO player_statistics ({', '.join(STATISTICS_COLUMNS)})
                VALUES ({', '.join('?' for _ in STATISTICS_COLUMNS)})
                ON CONFLICT (player_id, season) DO UPDATE SET {updates},
                    updated_at = CURRENT_TIMESTAMP""",
            values
        )

    def list_season_statistics(self, conn: sqlite3.Connection, season: str) -> List[Dict[str, Any]]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM player_statistics WHERE season = ? ORDER BY runs DESC, wickets DESC",
            (season,)
        )
        stats = []
        for row in cursor.fetchall():
            record = dict(row)
            record['high_score_not_out'] = bool(record['high_score_not_out'])
            stats.append(record)
        return stats

    def list_player_statistics(self, conn: sqlite3.Connection, player_id: int) -> List[Dict[str, Any]]:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM player_statistics WHERE player_id = ? ORDER BY season",
            (player_id,)
        )
        stats = []
        for row in cursor.fetchall():
            record = dict(row)
            record['high_score_not_out'] = bool(record['high_score_not_out'])
            stats.append(record)
        return stats


def main():
    """Initialize the database."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s"
    )

    success = init_database()

    if success:
        print_database_summary()
        return 0
    else:
        return 1


if __name__ == "__main__":
    sys.exit(main())
