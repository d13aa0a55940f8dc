"""
Innings Parser: batting and bowling lines from raw OCR text.

Lines are matched one at a time against the layouts in ``patterns``. A line
that matches neither layout is skipped, so OCR noise between the sections
costs nothing. Which club a line belongs to comes from innings and bowling
headers classified against the MatchInfo sides; the line itself carries no
such signal.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from config import PARSER_CONFIG
from scorebook.data.models import BattingEntry, BowlingEntry, MatchInfo, UNKNOWN
from scorebook.parsing.fields import is_home_club
from scorebook.parsing.patterns import (
    BATTING_LINE,
    BOWLING_HEADER,
    BOWLING_LINE,
    CAUGHT_AND_BOWLED,
    CAUGHT_BY,
    DISMISSAL_WITH_BOWLER,
    INNINGS_HEADER_PATTERNS,
    NON_PLAYER_LABELS,
    RUN_OUT_BY,
    STUMPED_BY,
)
from scorebook.stats.overs import is_valid_overs
from scorebook.utils.name_matcher import normalize_name

logger = logging.getLogger(__name__)

# Captain / wicket-keeper decorations scorers add to names
_NAME_DECORATIONS = re.compile(r"[*†]|\((?:c|wk|capt)\)", re.IGNORECASE)


def _clean_name(name: str) -> str:
    return ' '.join(name.split()).strip(" .-'")


def split_dismissal(text: Optional[str]) -> Tuple[str, str]:
    """
    Split the text after the numbers on a batting line.

    "c Smith b Jones" -> ("c Smith", "Jones")
    "b Jones"         -> ("bowled", "Jones")
    "c & b Jones"     -> ("c & b", "Jones")
    "not out"         -> ("not out", "")
    """
    text = ' '.join((text or "").split())
    if not text:
        return "", ""

    match = DISMISSAL_WITH_BOWLER.match(text)
    if not match:
        return text, ""

    how = (match.group(1) or "").strip()
    bowler = match.group(2).strip()
    if not how:
        how = "bowled"
    elif CAUGHT_AND_BOWLED.match(f"{how} b"):
        how = "c & b"
    return how, bowler


def fielder_credit(entry: BattingEntry) -> Optional[Tuple[str, str]]:
    """
    Fielding credit implied by a batter's dismissal.

    Returns:
        (kind, fielder_name) where kind is "catches", "stumpings" or
        "run_outs", or None when no fielder is named.
    """
    how = entry.dismissal or ""
    if CAUGHT_AND_BOWLED.match(how):
        return ("catches", entry.bowler) if entry.bowler else None

    for kind, pattern in (("catches", CAUGHT_BY), ("stumpings", STUMPED_BY), ("run_outs", RUN_OUT_BY)):
        match = pattern.match(how)
        if match:
            fielder = _clean_name(match.group(1))
            return (kind, fielder) if fielder else None
    return None


def _side_of(
    team: Optional[str],
    match_info: MatchInfo,
    home_markers: Optional[Sequence[str]]
) -> Optional[bool]:
    """True for the home club, False for the opposition, None if unrecognised."""
    if not team:
        return None
    if is_home_club(team, home_markers):
        return True
    if match_info.opponent and match_info.opponent != UNKNOWN:
        team_key = normalize_name(team)
        opponent_key = normalize_name(match_info.opponent)
        if team_key and opponent_key and (opponent_key in team_key or team_key in opponent_key):
            return False
    return None


def _innings_header_team(line: str) -> Optional[str]:
    for pattern in INNINGS_HEADER_PATTERNS:
        match = pattern.match(line)
        if match:
            return match.group(1).strip()
    return None


def _scan(
    text: str,
    match_info: MatchInfo,
    home_markers: Optional[Sequence[str]]
) -> Tuple[List[BattingEntry], List[BowlingEntry]]:
    batting: List[BattingEntry] = []
    bowling: List[BowlingEntry] = []

    # Club scorebook convention when no header says otherwise:
    # the home club bats, the opposition bowls.
    batting_home = True
    bowling_home: Optional[bool] = None

    for raw_line in (text or "").splitlines():
        line = _NAME_DECORATIONS.sub("", raw_line)
        if not line.strip():
            continue

        match = BATTING_LINE.match(line)
        if match:
            dismissal, bowler = split_dismissal(match.group(6))
            batting.append(BattingEntry(
                name=_clean_name(match.group(2)),
                runs=int(match.group(3)),
                minutes=int(match.group(4)),
                balls=int(match.group(5)),
                dismissal=dismissal,
                bowler=bowler,
                is_home_club=batting_home,
            ))
            continue

        match = BOWLING_LINE.match(line)
        if match:
            name = _clean_name(match.group(1))
            if normalize_name(name) in NON_PLAYER_LABELS:
                continue
            if not is_valid_overs(match.group(2)):
                logger.debug(f"Skipping bowling line with invalid overs: {raw_line.strip()}")
                continue
            bowling.append(BowlingEntry(
                name=name,
                overs=float(match.group(2)),
                maidens=int(match.group(3)),
                runs=int(match.group(4)),
                wickets=int(match.group(5)),
                is_home_club=bowling_home if bowling_home is not None else not batting_home,
            ))
            continue

        match = BOWLING_HEADER.match(line)
        if match:
            side = _side_of(match.group(1), match_info, home_markers)
            if side is not None:
                bowling_home = side
            continue

        side = _side_of(_innings_header_team(line), match_info, home_markers)
        if side is not None:
            batting_home = side
            bowling_home = None

    return batting, bowling


def extract_batting(
    text: str,
    match_info: Optional[MatchInfo] = None,
    home_markers: Optional[Sequence[str]] = None
) -> List[BattingEntry]:
    """Batting entries in order of appearance; empty if none were found."""
    return _scan(text, match_info or MatchInfo(), home_markers)[0]


def extract_bowling(
    text: str,
    match_info: Optional[MatchInfo] = None,
    home_markers: Optional[Sequence[str]] = None
) -> List[BowlingEntry]:
    """Bowling entries in order of appearance; empty if none were found."""
    return _scan(text, match_info or MatchInfo(), home_markers)[1]


def placeholder_batting() -> BattingEntry:
    return BattingEntry(
        name=PARSER_CONFIG["placeholder_batter"],
        runs=0, minutes=0, balls=0,
        dismissal="not out",
        bowler=UNKNOWN,
        is_home_club=True,
    )


def placeholder_bowling() -> BowlingEntry:
    return BowlingEntry(
        name=PARSER_CONFIG["placeholder_bowler"],
        overs=0.0, maidens=0, runs=0, wickets=0,
        is_home_club=True,
    )


def parse_innings(
    text: str,
    match_info: Optional[MatchInfo] = None,
    home_markers: Optional[Sequence[str]] = None
) -> Tuple[List[BattingEntry], List[BowlingEntry]]:
    """
    Extract batting and bowling entries for review.

    An empty section is replaced by a single zeroed placeholder entry so the
    review screen always has a row for the operator to correct.

    Returns:
        (batting, bowling), neither empty.
    """
    batting, bowling = _scan(text, match_info or MatchInfo(), home_markers)

    if not batting:
        logger.info("No batting lines recognised, adding placeholder entry")
        batting = [placeholder_batting()]
    if not bowling:
        logger.info("No bowling lines recognised, adding placeholder entry")
        bowling = [placeholder_bowling()]

    return batting, bowling
