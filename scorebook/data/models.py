"""
Data structures shared by the parsers, the resolver and the orchestrator.

The JSON shape produced by ``to_dict`` is what the review screen edits and
sends back to confirm, so ``from_dict`` validates it strictly.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from config import PARSER_CONFIG
from scorebook.stats.overs import is_valid_overs
from scorebook.utils.exceptions import ValidationError

UNKNOWN = PARSER_CONFIG["unknown"]


def _require_str(data: Dict[str, Any], key: str, where: str, default: Optional[str] = None) -> str:
    value = data.get(key, default)
    if value is None:
        raise ValidationError(f"{where}: '{key}' is required")
    if not isinstance(value, str):
        raise ValidationError(f"{where}: '{key}' must be a string")
    return value.strip()


def _require_count(data: Dict[str, Any], key: str, where: str) -> int:
    value = data.get(key, 0)
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{where}: '{key}' must be a whole number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{where}: '{key}' must be a whole number, got {value!r}")
    if number < 0 or number != int(number):
        raise ValidationError(f"{where}: '{key}' must be a non-negative whole number, got {value!r}")
    return int(number)


def _require_flag(data: Dict[str, Any], where: str, default: bool) -> bool:
    # "isNMCC" is the key used by the original review screen
    value = data.get("is_home_club", data.get("isNMCC", default))
    if not isinstance(value, bool):
        raise ValidationError(f"{where}: 'is_home_club' must be true or false")
    return value


@dataclass(frozen=True)
class MatchInfo:
    """Match-level fields found on a scoresheet."""
    opponent: str = UNKNOWN
    venue: str = UNKNOWN
    date: str = UNKNOWN
    toss: str = UNKNOWN
    result: str = UNKNOWN

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> 'MatchInfo':
        if not isinstance(data, dict):
            raise ValidationError("'match' must be an object")
        values = {}
        for key in ("opponent", "venue", "date", "toss", "result"):
            values[key] = _require_str(data, key, "match", default=UNKNOWN) or UNKNOWN
        return cls(**values)


@dataclass
class BattingEntry:
    """One batter's line from the scoresheet."""
    name: str
    runs: int = 0
    minutes: int = 0
    balls: int = 0
    dismissal: str = ""
    bowler: str = ""
    is_home_club: bool = True

    @property
    def is_not_out(self) -> bool:
        return "not out" in self.dismissal.lower()

    @property
    def is_placeholder(self) -> bool:
        return self.name == PARSER_CONFIG["placeholder_batter"]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> 'BattingEntry':
        where = f"batting[{index}]"
        if not isinstance(data, dict):
            raise ValidationError(f"{where} must be an object")
        name = _require_str(data, "name", where)
        if not name:
            raise ValidationError(f"{where}: 'name' must not be empty")
        return cls(
            name=name,
            runs=_require_count(data, "runs", where),
            minutes=_require_count(data, "minutes", where),
            balls=_require_count(data, "balls", where),
            dismissal=_require_str(data, "dismissal", where, default=""),
            bowler=_require_str(data, "bowler", where, default=""),
            is_home_club=_require_flag(data, where, default=True),
        )


@dataclass
class BowlingEntry:
    """One bowler's figures from the scoresheet. Overs use cricket notation."""
    name: str
    overs: float = 0.0
    maidens: int = 0
    runs: int = 0
    wickets: int = 0
    is_home_club: bool = False

    @property
    def is_placeholder(self) -> bool:
        return self.name == PARSER_CONFIG["placeholder_bowler"]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> 'BowlingEntry':
        where = f"bowling[{index}]"
        if not isinstance(data, dict):
            raise ValidationError(f"{where} must be an object")
        name = _require_str(data, "name", where)
        if not name:
            raise ValidationError(f"{where}: 'name' must not be empty")

        raw_overs = data.get("overs", 0)
        try:
            overs = round(float(raw_overs or 0), 1)
        except (TypeError, ValueError):
            raise ValidationError(f"{where}: 'overs' must be a number, got {raw_overs!r}")
        if not is_valid_overs(overs):
            raise ValidationError(f"{where}: invalid overs {raw_overs!r} (balls part must be 0-5)")

        return cls(
            name=name,
            overs=overs,
            maidens=_require_count(data, "maidens", where),
            runs=_require_count(data, "runs", where),
            wickets=_require_count(data, "wickets", where),
            is_home_club=_require_flag(data, where, default=False),
        )


@dataclass
class ParsedScoresheet:
    """
    Reviewable preview of one scoresheet.

    Never partially persisted: only ``ScoresheetIngestor.confirm`` writes the
    match, player and statistics records built from it.
    """
    match: MatchInfo
    batting: List[BattingEntry]
    bowling: List[BowlingEntry]
    source_reference: str = ""
    raw_text: Optional[str] = None
    extraction_failed: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'match': self.match.to_dict(),
            'batting': [b.to_dict() for b in self.batting],
            'bowling': [b.to_dict() for b in self.bowling],
            'source_reference': self.source_reference,
            'raw_text': self.raw_text,
            'extraction_failed': self.extraction_failed,
            'warnings': list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'ParsedScoresheet':
        """Build from reviewer-edited JSON. Raises ValidationError on malformed input."""
        if not isinstance(data, dict):
            raise ValidationError("Scoresheet data must be an object")
        if "match" not in data or data["match"] is None:
            raise ValidationError("Scoresheet data is missing 'match'")

        batting_raw = data.get("batting") or []
        bowling_raw = data.get("bowling") or []
        if not isinstance(batting_raw, list) or not isinstance(bowling_raw, list):
            raise ValidationError("'batting' and 'bowling' must be lists")

        return cls(
            match=MatchInfo.from_dict(data["match"]),
            batting=[BattingEntry.from_dict(b, i) for i, b in enumerate(batting_raw)],
            bowling=[BowlingEntry.from_dict(b, i) for i, b in enumerate(bowling_raw)],
            source_reference=str(data.get("source_reference") or data.get("filePath") or ""),
            raw_text=data.get("raw_text", data.get("rawText")),
            extraction_failed=bool(data.get("extraction_failed", False)),
            warnings=list(data.get("warnings") or []),
        )


@dataclass
class BattingFigures:
    runs: int
    balls: int = 0
    minutes: int = 0
    dismissal: str = ""

    @property
    def not_out(self) -> bool:
        return "not out" in (self.dismissal or "").lower()


@dataclass
class BowlingFigures:
    overs: float
    maidens: int = 0
    runs_conceded: int = 0
    wickets: int = 0


@dataclass
class Performance:
    """
    Everything one player contributed to one match.

    Batting and bowling lines for the same player are merged into a single
    Performance so that statistics are folded once per match.
    """
    innings: List[BattingFigures] = field(default_factory=list)
    spells: List[BowlingFigures] = field(default_factory=list)
    catches: int = 0
    stumpings: int = 0
    run_outs: int = 0

    @property
    def has_fielding(self) -> bool:
        return bool(self.catches or self.stumpings or self.run_outs)

    def add_batting(self, entry: BattingEntry) -> None:
        self.innings.append(BattingFigures(
            runs=entry.runs,
            balls=entry.balls,
            minutes=entry.minutes,
            dismissal=entry.dismissal,
        ))

    def add_bowling(self, entry: BowlingEntry) -> None:
        self.spells.append(BowlingFigures(
            overs=entry.overs,
            maidens=entry.maidens,
            runs_conceded=entry.runs,
            wickets=entry.wickets,
        ))
