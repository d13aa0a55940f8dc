from datetime import date

import pytest

from scorebook.data.database import DatabaseManager
from scorebook.features.player_resolver import PlayerResolver
from scorebook.utils.name_matcher import is_substring_match, normalize_name, substring_matches


@pytest.fixture
def resolver(conn):
    return PlayerResolver(conn, DatabaseManager(), today=date(2025, 7, 14))


def test_normalize_name():
    assert normalize_name("  R.  PATEL ") == "r patel"
    assert normalize_name("O'Brien-Smith") == "o brien-smith"
    assert normalize_name(None) == ""


def test_substring_match_is_case_insensitive():
    assert is_substring_match("patel", "Ravi Patel")
    assert is_substring_match("RAVI PATEL", "Ravi Patel")
    assert not is_substring_match("R Patel", "Ravi Patel")
    assert not is_substring_match("", "Ravi Patel")


def test_substring_matches_keeps_candidate_order():
    candidates = [(3, "Raj Patel"), (1, "Ravi Patel"), (2, "John Smith")]
    assert substring_matches("Patel", candidates) == [(3, "Raj Patel"), (1, "Ravi Patel")]


def test_resolve_creates_member_on_miss(resolver, conn):
    resolved = resolver.resolve("R Patel", True)

    assert resolved.created
    assert resolved.is_home_club
    row = conn.execute("SELECT full_name, active, join_date FROM players WHERE player_id = ?",
                       (resolved.player_id,)).fetchone()
    assert tuple(row) == ("R Patel", 1, "2025-07-14")


def test_resolve_is_idempotent(resolver):
    first = resolver.resolve("R Patel", True)
    second = resolver.resolve("R Patel", True)

    assert second.player_id == first.player_id
    assert not second.created


def test_resolve_matches_substring_of_stored_name(resolver, conn):
    player_id = DatabaseManager().create_player(conn, "Ravi Patel", "2024-04-01")

    resolved = resolver.resolve("patel", True)

    assert resolved.player_id == player_id
    assert resolved.name == "Ravi Patel"
    assert not resolved.created


def test_ambiguous_name_takes_lowest_id(resolver, conn, caplog):
    db = DatabaseManager()
    first = db.create_player(conn, "Ravi Patel", "2024-04-01")
    second = db.create_player(conn, "Raj Patel", "2024-04-01")

    candidate = resolver.find_club_member("Patel")

    assert candidate.player_id == first
    assert candidate.alternatives == [second]
    assert candidate.ambiguous
    assert "Ambiguous name 'Patel'" in caplog.text


def test_inactive_members_are_not_candidates(resolver, conn):
    conn.execute("INSERT INTO players (full_name, active) VALUES ('Old Timer', 0)")
    assert resolver.find_club_member("Old Timer") is None


def test_opponent_team_is_exact_name_and_reused(resolver):
    first = resolver.resolve_opponent_team("Ealing CC")
    again = resolver.resolve_opponent_team("Ealing CC")
    other = resolver.resolve_opponent_team("Ealing")

    assert first == again
    assert other != first


def test_opponent_players_are_scoped_to_team(resolver):
    ealing = resolver.resolve_opponent_team("Ealing CC")
    acton = resolver.resolve_opponent_team("Acton CC")

    a = resolver.resolve("Jones", False, ealing)
    b = resolver.resolve("Jones", False, acton)
    c = resolver.resolve("Jones", False, ealing)

    assert a.created and b.created
    assert a.player_id != b.player_id
    assert c.player_id == a.player_id
    assert not c.is_home_club


def test_club_and_opposition_spaces_are_separate(resolver):
    team = resolver.resolve_opponent_team("Ealing CC")
    opponent = resolver.resolve("Jones", False, team)

    assert resolver.find_club_member("Jones") is None
    member = resolver.resolve("Jones", True)
    assert member.created
    assert member.is_home_club
    assert opponent.is_home_club is False


def test_opposition_requires_team(resolver):
    with pytest.raises(ValueError):
        resolver.resolve("Jones", False)
