"""
Player Resolver.

Maps a name read off a scoresheet to a stored identity. Club members and
opposition players live in separate identity spaces; opposition players are
scoped to their team.

Lookup and creation are separate steps:
1. find_* - case-insensitive substring match, first candidate by id wins
2. create_* - new identity with only the name populated

``resolve`` composes the two so that no ingestion fails on an unrecognised
name. Name variants (initials, nicknames) can therefore produce duplicate
identities; that is accepted rather than guessed away.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from scorebook.data.database import DatabaseManager
from scorebook.utils.name_matcher import substring_matches

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """Result of a name lookup."""
    player_id: int
    db_name: str
    parsed_name: str
    alternatives: List[int] = field(default_factory=list)

    @property
    def ambiguous(self) -> bool:
        return bool(self.alternatives)


@dataclass
class ResolvedPlayer:
    player_id: int
    name: str
    is_home_club: bool
    created: bool = False
    ambiguous: bool = False


class PlayerResolver:
    """
    Resolves scoresheet names within one open connection (one confirm).

    Member lists are loaded once and extended as identities are created, so
    the same name string seen twice in one scoresheet resolves to the same
    identity.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        db_manager: Optional[DatabaseManager] = None,
        today: Optional[date] = None
    ):
        self.conn = conn
        self.db_manager = db_manager or DatabaseManager()
        self.today = today or date.today()
        self._club_members: Optional[List[Tuple[int, str]]] = None
        self._opponent_players: Dict[int, List[Tuple[int, str]]] = {}

    def _members(self) -> List[Tuple[int, str]]:
        if self._club_members is None:
            self._club_members = self.db_manager.list_active_players(self.conn)
            logger.debug(f"Loaded {len(self._club_members)} active club members")
        return self._club_members

    def _team_players(self, opponent_team_id: int) -> List[Tuple[int, str]]:
        if opponent_team_id not in self._opponent_players:
            self._opponent_players[opponent_team_id] = self.db_manager.list_opponent_players(
                self.conn, opponent_team_id
            )
        return self._opponent_players[opponent_team_id]

    @staticmethod
    def _first_candidate(name: str, candidates: List[Tuple[int, str]]) -> Optional[Candidate]:
        matches = substring_matches(name, candidates)
        if not matches:
            return None

        player_id, db_name = matches[0]
        candidate = Candidate(
            player_id=player_id,
            db_name=db_name,
            parsed_name=name,
            alternatives=[pid for pid, _ in matches[1:]],
        )
        if candidate.ambiguous:
            logger.warning(
                f"Ambiguous name '{name}': {len(matches)} candidates, "
                f"using '{db_name}' (id {player_id})"
            )
        return candidate

    # Club members

    def find_club_member(self, name: str) -> Optional[Candidate]:
        return self._first_candidate(name, self._members())

    def create_club_member(self, name: str) -> int:
        player_id = self.db_manager.create_player(self.conn, name, self.today.isoformat())
        self._members().append((player_id, name))
        logger.info(f"Created club member '{name}' (id {player_id})")
        return player_id

    # Opposition

    def resolve_opponent_team(self, name: str) -> int:
        return self.db_manager.get_or_create_opponent_team(self.conn, name)

    def find_opponent_player(self, name: str, opponent_team_id: int) -> Optional[Candidate]:
        return self._first_candidate(name, self._team_players(opponent_team_id))

    def create_opponent_player(self, name: str, opponent_team_id: int) -> int:
        player_id = self.db_manager.create_opponent_player(self.conn, name, opponent_team_id)
        self._team_players(opponent_team_id).append((player_id, name))
        logger.info(f"Created opponent player '{name}' (id {player_id}, team {opponent_team_id})")
        return player_id

    def resolve(
        self,
        name: str,
        is_home_club: bool,
        opponent_team_id: Optional[int] = None
    ) -> ResolvedPlayer:
        """
        Find or create the identity for a scoresheet name.

        Args:
            name: Name as it appears on the scoresheet.
            is_home_club: Which identity space to search.
            opponent_team_id: Required for opposition players.
        """
        if is_home_club:
            candidate = self.find_club_member(name)
            if candidate:
                return ResolvedPlayer(candidate.player_id, candidate.db_name, True,
                                      ambiguous=candidate.ambiguous)
            return ResolvedPlayer(self.create_club_member(name), name, True, created=True)

        if opponent_team_id is None:
            raise ValueError("opponent_team_id is required to resolve an opposition player")

        candidate = self.find_opponent_player(name, opponent_team_id)
        if candidate:
            return ResolvedPlayer(candidate.player_id, candidate.db_name, False,
                                  ambiguous=candidate.ambiguous)
        return ResolvedPlayer(
            self.create_opponent_player(name, opponent_team_id), name, False, created=True
        )
