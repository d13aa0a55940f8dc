"""
Scoresheet ingestion pipeline.

Two phases with nothing persisted in between except an audit record:

- preview: image -> OCR text -> match fields + innings entries -> a
  ParsedScoresheet for a person to review and correct.
- confirm: the (possibly edited) ParsedScoresheet -> opponent team, match,
  player identities, match detail rows and season statistics, all in one
  database transaction.
"""

import json
import logging
import re
import sqlite3
import time
import uuid
from dataclasses import dataclass, field, asdict
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from tqdm import tqdm

from config import HOME_CLUB_MARKERS, IMAGE_EXTENSIONS, OVERS_ARITHMETIC, PARSER_CONFIG
from scorebook.api.ocr_client import ImagePayload, TextExtractor, get_extractor
from scorebook.data.database import DatabaseManager, get_db_connection, init_database
from scorebook.data.models import MatchInfo, ParsedScoresheet, Performance, UNKNOWN
from scorebook.features.player_resolver import PlayerResolver, ResolvedPlayer
from scorebook.parsing.fields import normalize_match_date, parse_match_info
from scorebook.parsing.innings import fielder_credit, parse_innings
from scorebook.stats.aggregator import PlayerStatistics, fold
from scorebook.stats.overs import balls_to_overs, overs_to_balls
from scorebook.utils.exceptions import (
    DuplicateScoresheetError,
    ExtractionError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EXTRACTION_FAILED_MARKER = PARSER_CONFIG["extraction_failed_marker"]


@dataclass
class ConfirmResult:
    """Outcome of a confirmed scoresheet."""
    processed_count: int
    match_id: int
    source_reference: str
    season: str
    players_updated: int = 0
    players_created: int = 0
    skipped_placeholders: int = 0
    ambiguous_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class _Contribution:
    """One resolved identity's lines in the match being confirmed."""
    player: ResolvedPlayer
    parsed_name: str
    performance: Performance = field(default_factory=Performance)
    bowled_by: List[str] = field(default_factory=list)


def make_source_reference(file_name: Optional[str] = None) -> str:
    """Unique audit key, e.g. processed_1752321600000_3f2a9c1d_sheet.jpg"""
    safe_name = re.sub(r"[^A-Za-z0-9._-]+", "_", file_name or "scoresheet").strip("_") or "scoresheet"
    return f"processed_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}_{safe_name}"


def season_for(match_date: str, today: Optional[date] = None) -> str:
    """Season is the match year; falls back to the current year for unreadable dates."""
    iso = normalize_match_date(match_date)
    if iso:
        return iso[:4]
    return str((today or date.today()).year)


class ScoresheetIngestor:
    """
    Runs the preview and confirm phases against one database.

    Args:
        extractor: OCR engine; built from config on first preview if omitted.
        db_path: Database file; defaults to config.DATABASE_PATH.
        home_markers: Tokens identifying the home club in team names.
        overs_mode: "balls" or "decimal" overs arithmetic for aggregates.
    """

    def __init__(
        self,
        extractor: Optional[TextExtractor] = None,
        db_path: Optional[Path] = None,
        home_markers: Optional[Sequence[str]] = None,
        overs_mode: Optional[str] = None,
        today: Optional[date] = None
    ):
        self._extractor = extractor
        self.db_path = db_path
        self.home_markers = tuple(home_markers or HOME_CLUB_MARKERS)
        self.overs_mode = overs_mode or OVERS_ARITHMETIC
        self.today = today
        self.db_manager = DatabaseManager(db_path)

        init_database(db_path)

    @property
    def extractor(self) -> TextExtractor:
        if self._extractor is None:
            self._extractor = get_extractor()
        return self._extractor

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def preview(self, image: ImagePayload, file_name: Optional[str] = None) -> ParsedScoresheet:
        """
        OCR an image and parse it for review.

        OCR failures do not abort: the preview carries the failure marker as
        its raw text, a warning, and placeholder entries to fill in by hand.

        Raises:
            ValidationError: if no image was supplied.
        """
        extraction_failed = False
        try:
            raw_text = self.extractor.recognize(image)
        except ExtractionError as e:
            logger.error(f"OCR processing failed: {e}")
            raw_text = EXTRACTION_FAILED_MARKER
            extraction_failed = True

        return self.preview_text(raw_text, file_name=file_name, extraction_failed=extraction_failed)

    def preview_text(
        self,
        raw_text: str,
        file_name: Optional[str] = None,
        extraction_failed: bool = False
    ) -> ParsedScoresheet:
        """Parse already-extracted text and store the audit record."""
        match_info = parse_match_info(raw_text, self.home_markers)
        batting, bowling = parse_innings(raw_text, match_info, self.home_markers)

        warnings = []
        if extraction_failed:
            warnings.append("Text extraction failed; enter the scoresheet details manually")
        if any(entry.is_placeholder for entry in batting):
            warnings.append("No batting lines recognised")
        if any(entry.is_placeholder for entry in bowling):
            warnings.append("No bowling lines recognised")
        for name, value in match_info.to_dict().items():
            if value == UNKNOWN:
                warnings.append(f"Match {name} not found")

        parsed = ParsedScoresheet(
            match=match_info,
            batting=batting,
            bowling=bowling,
            source_reference=make_source_reference(file_name),
            raw_text=raw_text,
            extraction_failed=extraction_failed,
            warnings=warnings,
        )

        self._store_audit_record(parsed)
        logger.info(
            f"Previewed {parsed.source_reference}: {len(batting)} batting, "
            f"{len(bowling)} bowling entries vs {match_info.opponent}"
        )
        return parsed

    def _store_audit_record(self, parsed: ParsedScoresheet) -> None:
        # The audit record is diagnostic; losing it must not block the preview
        try:
            with get_db_connection(self.db_path) as conn:
                self.db_manager.insert_scoresheet(
                    conn,
                    parsed.source_reference,
                    parsed.raw_text or "",
                    parsed.to_dict(),
                    extraction_failed=parsed.extraction_failed,
                )
        except sqlite3.Error as e:
            logger.error(f"Error storing scoresheet audit record {parsed.source_reference}: {e}")

    # ------------------------------------------------------------------
    # Confirm
    # ------------------------------------------------------------------

    def confirm(
        self,
        parsed: Union[ParsedScoresheet, Dict[str, Any]],
        source_reference: Optional[str] = None
    ) -> ConfirmResult:
        """
        Persist a reviewed scoresheet.

        Args:
            parsed: ParsedScoresheet or its reviewer-edited JSON.
            source_reference: Audit key from preview; defaults to the one
                carried in ``parsed``.

        Returns:
            ConfirmResult with the number of entries processed.

        Raises:
            ValidationError: malformed input; nothing written.
            DuplicateScoresheetError: the source reference was already confirmed.
            PersistenceError: a database write failed; the transaction is rolled back.
        """
        if isinstance(parsed, dict):
            parsed = ParsedScoresheet.from_dict(parsed)
        elif not isinstance(parsed, ParsedScoresheet):
            raise ValidationError("Scoresheet data must be an object")

        source_reference = (source_reference or parsed.source_reference or "").strip()
        if not source_reference:
            raise ValidationError("A source reference is required to confirm a scoresheet")

        today = self.today or date.today()
        match = parsed.match
        season = season_for(match.date, today)
        match_date = normalize_match_date(match.date) or match.date

        try:
            with get_db_connection(self.db_path) as conn:
                record = self.db_manager.get_scoresheet(conn, source_reference)
                if record and record['processed']:
                    raise DuplicateScoresheetError(source_reference)

                resolver = PlayerResolver(conn, self.db_manager, today)
                opponent_team_id = resolver.resolve_opponent_team(match.opponent)

                match_id = self.db_manager.insert_match(
                    conn,
                    source_reference=source_reference,
                    opponent_team_id=opponent_team_id,
                    opposition=match.opponent,
                    date=match_date,
                    venue=match.venue,
                    toss=match.toss,
                    result=match.result,
                    season=season,
                )

                contributions, processed, skipped = self._collect_contributions(
                    parsed, resolver, opponent_team_id
                )

                players_updated = 0
                for contribution in contributions.values():
                    self.db_manager.insert_match_detail(
                        conn, self._match_detail(contribution, match_id, match_date, match)
                    )
                    if contribution.player.is_home_club:
                        self._update_statistics(conn, contribution, season)
                        players_updated += 1

                self.db_manager.mark_scoresheet_processed(conn, source_reference, parsed.to_dict())

        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save scoresheet {source_reference}: {e}") from e

        result = ConfirmResult(
            processed_count=processed,
            match_id=match_id,
            source_reference=source_reference,
            season=season,
            players_updated=players_updated,
            players_created=sum(1 for c in contributions.values() if c.player.created),
            skipped_placeholders=skipped,
            ambiguous_names=sorted({c.parsed_name for c in contributions.values() if c.player.ambiguous}),
        )
        logger.info(
            f"Confirmed {source_reference}: {result.processed_count} entries, "
            f"{result.players_updated} club players updated for season {season}"
        )
        return result

    def _collect_contributions(
        self,
        parsed: ParsedScoresheet,
        resolver: PlayerResolver,
        opponent_team_id: int
    ) -> Tuple[Dict[Tuple[bool, int], _Contribution], int, int]:
        """
        Resolve every entry and merge lines belonging to the same identity.

        Returns:
            (contributions keyed by (is_home_club, player_id), processed, skipped)
        """
        contributions: Dict[Tuple[bool, int], _Contribution] = {}
        processed = 0
        skipped = 0

        def contribution_for(name: str, is_home_club: bool) -> _Contribution:
            player = resolver.resolve(name, is_home_club, opponent_team_id)
            key = (is_home_club, player.player_id)
            if key not in contributions:
                contributions[key] = _Contribution(player=player, parsed_name=name)
            return contributions[key]

        for entry in parsed.batting:
            if entry.is_placeholder:
                skipped += 1
                continue
            contribution = contribution_for(entry.name, entry.is_home_club)
            contribution.performance.add_batting(entry)
            if entry.bowler and entry.bowler != UNKNOWN:
                contribution.bowled_by.append(entry.bowler)
            processed += 1

        for entry in parsed.bowling:
            if entry.is_placeholder:
                skipped += 1
                continue
            contribution_for(entry.name, entry.is_home_club).performance.add_bowling(entry)
            processed += 1

        # Club fielders named in opposition dismissals; only existing members are credited
        for entry in parsed.batting:
            if entry.is_home_club or entry.is_placeholder:
                continue
            credit = fielder_credit(entry)
            if not credit:
                continue
            kind, fielder = credit
            candidate = resolver.find_club_member(fielder)
            if candidate is None:
                logger.debug(f"Fielder '{fielder}' is not a known club member, no credit given")
                continue
            contribution = contribution_for(fielder, True)
            setattr(contribution.performance, kind, getattr(contribution.performance, kind) + 1)

        fielders = [c.parsed_name for c in contributions.values() if c.performance.has_fielding]
        if fielders:
            logger.info(f"Fielding credited to: {', '.join(fielders)}")
        if skipped:
            logger.info(f"Skipped {skipped} placeholder entries")

        return contributions, processed, skipped

    @staticmethod
    def _match_detail(
        contribution: _Contribution,
        match_id: int,
        match_date: str,
        match: MatchInfo
    ) -> Dict[str, Any]:
        player = contribution.player
        performance = contribution.performance
        detail: Dict[str, Any] = {
            'match_id': match_id,
            'player_id': player.player_id if player.is_home_club else None,
            'opponent_player_id': None if player.is_home_club else player.player_id,
            'player_name': contribution.parsed_name,
            'date': match_date,
            'opposition': match.opponent,
            'venue': match.venue,
            'result': match.result,
            'catches': performance.catches,
            'stumpings': performance.stumpings,
            'run_outs': performance.run_outs,
        }

        if performance.innings:
            detail['batting_runs'] = sum(i.runs for i in performance.innings)
            detail['batting_balls'] = sum(i.balls for i in performance.innings)
            detail['batting_minutes'] = sum(i.minutes for i in performance.innings)
            detail['batting_how_out'] = "; ".join(i.dismissal for i in performance.innings if i.dismissal)
            detail['bowled_by'] = ", ".join(contribution.bowled_by) or None

        if performance.spells:
            balls = sum(overs_to_balls(s.overs) for s in performance.spells)
            detail['bowling_overs'] = balls_to_overs(balls)
            detail['bowling_maidens'] = sum(s.maidens for s in performance.spells)
            detail['bowling_runs'] = sum(s.runs_conceded for s in performance.spells)
            detail['bowling_wickets'] = sum(s.wickets for s in performance.spells)

        return detail

    def _update_statistics(self, conn: sqlite3.Connection, contribution: _Contribution, season: str) -> None:
        """Single read-modify-write of one club player's season row."""
        player = contribution.player
        existing = self.db_manager.get_player_statistics(conn, player.player_id, season)
        if existing is None:
            existing = PlayerStatistics.empty(player.player_id, season, player.name)
        updated = fold(existing, contribution.performance, self.overs_mode)
        self.db_manager.save_player_statistics(conn, updated)


def get_image_files(directory: Path) -> List[Path]:
    """Scoresheet images in a directory, sorted by name."""
    directory = Path(directory)
    if not directory.exists():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix.lower() in IMAGE_EXTENSIONS)


def ingest_scoresheets(
    directory: Path,
    auto_confirm: bool = False,
    output_dir: Optional[Path] = None,
    ingestor: Optional[ScoresheetIngestor] = None,
    limit: Optional[int] = None
) -> Dict[str, int]:
    """
    Preview every scoresheet image in a directory.

    Args:
        directory: Folder of scoresheet images.
        auto_confirm: Confirm each preview without review. Only sensible for
            clean, consistently laid out scans.
        output_dir: Where to write preview JSON for later review and confirm.
        ingestor: Pipeline to use; one is built from config if omitted.
        limit: Maximum number of images to process.

    Returns:
        Dictionary with ingestion statistics
    """
    ingestor = ingestor or ScoresheetIngestor()
    image_files = get_image_files(directory)
    if limit:
        image_files = image_files[:limit]

    if not image_files:
        logger.warning(f"No scoresheet images found in {directory}")

    if output_dir:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

    stats = {
        'scoresheets_previewed': 0,
        'scoresheets_confirmed': 0,
        'extraction_failures': 0,
        'scoresheets_failed': 0,
        'entries_processed': 0,
    }

    for image_path in tqdm(image_files, desc="Scoresheets"):
        try:
            parsed = ingestor.preview(image_path.read_bytes(), file_name=image_path.name)
            stats['scoresheets_previewed'] += 1
            if parsed.extraction_failed:
                stats['extraction_failures'] += 1

            if output_dir:
                out_path = output_dir / f"{image_path.stem}.json"
                out_path.write_text(json.dumps(parsed.to_dict(), indent=2))

            if auto_confirm and not parsed.extraction_failed:
                result = ingestor.confirm(parsed)
                stats['scoresheets_confirmed'] += 1
                stats['entries_processed'] += result.processed_count

        except (OSError, ValidationError, PersistenceError, DuplicateScoresheetError) as e:
            logger.error(f"Failed to ingest {image_path.name}: {e}")
            stats['scoresheets_failed'] += 1

    logger.info(f"\nIngestion complete:")
    logger.info(f"  Scoresheets previewed: {stats['scoresheets_previewed']}")
    logger.info(f"  Scoresheets confirmed: {stats['scoresheets_confirmed']}")
    logger.info(f"  Extraction failures: {stats['extraction_failures']}")
    logger.info(f"  Scoresheets failed: {stats['scoresheets_failed']}")

    return stats
