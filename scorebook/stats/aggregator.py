"""
Season statistics aggregation for club players.

A PlayerStatistics row is a running accumulator for one (player, season).
Counts are summed; averages and rates are recomputed from the updated sums;
best bowling figures are compared, never summed.

Creating a row is folding the first performance into an all-zero row, so
there is exactly one code path for both cases.
"""

import logging
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional, Tuple

from config import OVERS_ARITHMETIC, STRIKE_RATE_MODE
from scorebook.data.models import Performance
from scorebook.stats.overs import (
    BALLS_PER_OVER,
    balls_to_overs,
    balls_to_overs_float,
    overs_to_balls,
)

logger = logging.getLogger(__name__)

NO_BEST_BOWLING = "0/0"


@dataclass
class PlayerStatistics:
    """Season statistics for one club player (mirrors the player_statistics table)."""
    player_id: int
    season: str
    player_name: str = ""
    games: int = 0
    # Batting
    inns: int = 0
    not_outs: int = 0
    runs: int = 0
    high_score: int = 0
    high_score_not_out: bool = False
    avg: float = 0.0
    fifties: int = 0
    hundreds: int = 0
    balls_faced: int = 0
    strike_rate: float = 0.0
    # Bowling
    overs: float = 0.0
    balls_bowled: int = 0
    maidens: int = 0
    bowling_runs: int = 0
    wickets: int = 0
    best_bowling: str = NO_BEST_BOWLING
    five_wicket_haul: int = 0
    economy_rate: float = 0.0
    bowling_strike_rate: float = 0.0
    bowling_average: float = 0.0
    # Fielding
    catches: int = 0
    stumpings: int = 0
    run_outs: int = 0

    @classmethod
    def empty(cls, player_id: int, season: str, player_name: str = "") -> 'PlayerStatistics':
        return cls(player_id=player_id, season=season, player_name=player_name)

    @classmethod
    def from_row(cls, row: Any) -> 'PlayerStatistics':
        """Create from a sqlite3.Row or dict, ignoring columns we do not model."""
        keys = row.keys()
        values = {f.name: row[f.name] for f in fields(cls) if f.name in keys}
        values['high_score_not_out'] = bool(values.get('high_score_not_out', False))
        return cls(**values)

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


def parse_best_bowling(figures: Optional[str]) -> Tuple[int, int]:
    """Split "3/40" into (3, 40). Unreadable figures count as no figures."""
    try:
        wickets, runs = (figures or NO_BEST_BOWLING).split("/", 1)
        return int(wickets), int(runs)
    except ValueError:
        logger.warning(f"Unreadable best bowling figures '{figures}', treating as {NO_BEST_BOWLING}")
        return 0, 0


def is_better_bowling(wickets: int, runs: int, current: Optional[str]) -> bool:
    """More wickets wins; equal wickets with fewer runs wins."""
    current_wickets, current_runs = parse_best_bowling(current)
    if wickets > current_wickets:
        return True
    return wickets == current_wickets and wickets > 0 and runs < current_runs


def fold(
    existing: PlayerStatistics,
    performance: Performance,
    overs_mode: Optional[str] = None,
    strike_rate_mode: Optional[str] = None,
) -> PlayerStatistics:
    """
    Fold one match performance into a season row.

    Args:
        existing: Current season row (``PlayerStatistics.empty`` for a new one).
            Not modified.
        performance: Batting innings, bowling spells and fielding for one match.
        overs_mode: "balls" (default) or "decimal", see config.OVERS_ARITHMETIC.
        strike_rate_mode: "innings" (default) rates the latest innings only;
            "season" uses season runs over season balls faced.

    Returns:
        The updated row.
    """
    overs_mode = overs_mode or OVERS_ARITHMETIC
    strike_rate_mode = strike_rate_mode or STRIKE_RATE_MODE
    updated = PlayerStatistics(**asdict(existing))

    # One match, one game, however many lines it contributed
    updated.games += 1

    for innings in performance.innings:
        first_innings = updated.inns == 0
        updated.inns += 1
        updated.runs += innings.runs
        updated.balls_faced += innings.balls

        if innings.not_out:
            updated.not_outs += 1

        if first_innings or innings.runs > updated.high_score:
            updated.high_score = innings.runs
            updated.high_score_not_out = innings.not_out

        if 50 <= innings.runs < 100:
            updated.fifties += 1
        if innings.runs >= 100:
            updated.hundreds += 1

    if performance.innings:
        dismissals = updated.inns - updated.not_outs
        if dismissals > 0:
            updated.avg = updated.runs / dismissals
        if strike_rate_mode == "season":
            if updated.balls_faced > 0:
                updated.strike_rate = (updated.runs / updated.balls_faced) * 100
        else:
            # Latest innings that faced a ball
            for innings in reversed(performance.innings):
                if innings.balls > 0:
                    updated.strike_rate = (innings.runs / innings.balls) * 100
                    break

    for spell in performance.spells:
        spell_balls = overs_to_balls(spell.overs)
        updated.balls_bowled += spell_balls
        if overs_mode == "decimal":
            updated.overs = round(updated.overs + spell.overs, 2)
        else:
            updated.overs = balls_to_overs(updated.balls_bowled)

        updated.maidens += spell.maidens
        updated.bowling_runs += spell.runs_conceded
        updated.wickets += spell.wickets

        if is_better_bowling(spell.wickets, spell.runs_conceded, updated.best_bowling):
            updated.best_bowling = f"{spell.wickets}/{spell.runs_conceded}"

        if spell.wickets >= 5:
            updated.five_wicket_haul += 1

    if performance.spells:
        _recompute_bowling_rates(updated, overs_mode)

    updated.catches += performance.catches
    updated.stumpings += performance.stumpings
    updated.run_outs += performance.run_outs

    return updated


def _recompute_bowling_rates(stats: PlayerStatistics, overs_mode: str) -> None:
    if overs_mode == "decimal":
        overs_value = stats.overs
        balls_value = stats.overs * BALLS_PER_OVER
    else:
        overs_value = balls_to_overs_float(stats.balls_bowled)
        balls_value = stats.balls_bowled

    if overs_value > 0:
        stats.economy_rate = stats.bowling_runs / overs_value

    if stats.wickets > 0:
        stats.bowling_strike_rate = balls_value / stats.wickets
        stats.bowling_average = stats.bowling_runs / stats.wickets


def create_statistics(
    player_id: int,
    season: str,
    performance: Performance,
    player_name: str = "",
    overs_mode: Optional[str] = None,
) -> PlayerStatistics:
    """First row of a season: the performance folded into an all-zero row."""
    return fold(PlayerStatistics.empty(player_id, season, player_name), performance, overs_mode)
