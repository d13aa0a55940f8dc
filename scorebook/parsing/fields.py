"""
Field Parser: match-level details from raw OCR text.

Every field is searched independently over the whole text, so the order in
which fields appear on the sheet does not matter. A field with no match keeps
the "Unknown" default; parsing never raises.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence, Tuple

from config import HOME_CLUB_MARKERS
from scorebook.data.models import MatchInfo, UNKNOWN
from scorebook.parsing.patterns import MATCH_FIELD_PATTERNS

logger = logging.getLogger(__name__)

DATE_FORMATS = ['%d-%m-%Y', '%d/%m/%Y', '%Y-%m-%d']


def find_field(text: str, field_name: str) -> Optional[str]:
    """
    Return the first match for a field from the pattern table, or None.

    Patterns with a capture group yield group 1, others the whole match.
    """
    for pattern in MATCH_FIELD_PATTERNS.get(field_name, []):
        match = pattern.search(text or "")
        if not match:
            continue
        value = match.group(1) if pattern.groups else match.group(0)
        value = (value or "").strip().lstrip(":.-").strip()
        if value:
            return value
    return None


def is_home_club(team_name: Optional[str], home_markers: Optional[Sequence[str]] = None) -> bool:
    """True if the team name contains any home-club marker token."""
    if not team_name:
        return False
    markers = home_markers or HOME_CLUB_MARKERS
    upper = team_name.upper()
    return any(marker.upper() in upper for marker in markers)


def identify_teams(
    text: str,
    home_markers: Optional[Sequence[str]] = None
) -> Tuple[Optional[str], Optional[str]]:
    """
    Find the two sides from the "MATCH ... BETWEEN x v y" line.

    Returns:
        (home_team, opponent); both None if the line is missing. When team1
        carries no home marker it is taken as the opponent.
    """
    for pattern in MATCH_FIELD_PATTERNS["teams"]:
        match = pattern.search(text or "")
        if not match:
            continue
        team1 = match.group(1).strip()
        team2 = match.group(2).strip()
        if is_home_club(team1, home_markers):
            return team1, team2
        return team2, team1
    return None, None


def parse_match_info(text: str, home_markers: Optional[Sequence[str]] = None) -> MatchInfo:
    """
    Extract opponent, venue, date, toss and result.

    Args:
        text: Raw OCR text; may contain noise and arbitrary line breaks.
        home_markers: Tokens identifying the home club. Defaults to config.

    Returns:
        MatchInfo with "Unknown" for anything not found.
    """
    _, opponent = identify_teams(text, home_markers)

    info = MatchInfo(
        opponent=opponent or UNKNOWN,
        venue=find_field(text, "venue") or UNKNOWN,
        date=find_field(text, "date") or UNKNOWN,
        toss=find_field(text, "toss") or UNKNOWN,
        result=find_field(text, "result") or UNKNOWN,
    )

    missing = [name for name, value in info.to_dict().items() if value == UNKNOWN]
    if missing:
        logger.debug(f"Match fields not found: {', '.join(missing)}")

    return info


def normalize_match_date(value: str) -> Optional[str]:
    """
    Best-effort ISO date (YYYY-MM-DD) for a parsed date string.

    Scoresheets are day-first. Returns None when the value is not a
    recognisable date.
    """
    if not value or value == UNKNOWN:
        return None
    cleaned = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date().isoformat()
        except ValueError:
            continue
    return None
