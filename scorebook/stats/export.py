"""
Season statistics export.
"""

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from scorebook.data.database import STATISTICS_COLUMNS, get_connection

logger = logging.getLogger(__name__)


def load_season_statistics(season: str, db_path: Optional[Path] = None) -> pd.DataFrame:
    """Season statistics as a DataFrame, best run-scorers first."""
    conn = get_connection(db_path)
    try:
        df = pd.read_sql_query(
            f"""SELECT {', '.join(STATISTICS_COLUMNS)}
                FROM player_statistics
                WHERE season = ?
                ORDER BY runs DESC, wickets DESC""",
            conn,
            params=(season,)
        )
    finally:
        conn.close()

    df['high_score_not_out'] = df['high_score_not_out'].astype(bool)
    return df


def export_season_statistics(season: str, out_path: Path, db_path: Optional[Path] = None) -> int:
    """
    Write a season's statistics to CSV.

    Returns:
        Number of player rows written (0 writes nothing)
    """
    df = load_season_statistics(season, db_path)
    if df.empty:
        logger.warning(f"No statistics recorded for season {season}")
        return 0

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False)
    logger.info(f"Exported {len(df)} players to {out_path}")
    return len(df)
