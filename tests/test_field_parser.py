import pytest

from scorebook.data.models import UNKNOWN
from scorebook.parsing.fields import (
    find_field,
    identify_teams,
    is_home_club,
    normalize_match_date,
    parse_match_info,
)

MARKERS = ("NMCC", "NORTHOLT", "MANOR")


def test_parse_match_info_from_sample(sample_text):
    info = parse_match_info(sample_text, MARKERS)

    assert info.opponent == "Ealing CC"
    assert info.venue == "Lammas Park"
    assert info.date == "12-07-2025"
    assert info.toss == "Ealing CC"
    assert info.result == "NMCC won by 4 wickets"


def test_empty_text_gives_all_unknown():
    info = parse_match_info("", MARKERS)
    assert info.to_dict() == {
        "opponent": UNKNOWN,
        "venue": UNKNOWN,
        "date": UNKNOWN,
        "toss": UNKNOWN,
        "result": UNKNOWN,
    }


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Scored on 3/7/2025 at home", "3/7/2025"),
        ("game day 12-07-2025", "12-07-2025"),
        ("Date12-07-2025", "12-07-2025"),
        ("NMCC v Ealing CC\n12-07-2025PLAYED AT Lammas", "12-07-2025"),
        ("ref 112-07-20251", None),
        ("DATE: Saturday 12th July", "Saturday 12th July"),
        ("no date anywhere", None),
    ]
)
def test_date_is_returned_exactly_as_found(text, expected):
    assert find_field(text, "date") == expected


def test_numeric_date_wins_over_label():
    text = "DATE: Saturday\nplayed 12-07-2025"
    assert find_field(text, "date") == "12-07-2025"


@pytest.mark.parametrize(
    "line, home, opponent",
    [
        ("MATCH PLAYED BETWEEN NMCC v Ealing CC", "NMCC", "Ealing CC"),
        ("MATCH BETWEEN Ealing CC vs NMCC", "NMCC", "Ealing CC"),
        ("Match between Northolt Manor CC versus Harrow", "Northolt Manor CC", "Harrow"),
        ("MATCH BETWEEN Acton v Ealing", "Ealing", "Acton"),
    ]
)
def test_identify_teams(line, home, opponent):
    assert identify_teams(line, MARKERS) == (home, opponent)


def test_identify_teams_stops_at_next_label():
    text = "MATCH BETWEEN NMCC v Southall PLAYED AT Lammas Park"
    assert identify_teams(text, MARKERS) == ("NMCC", "Southall")
    assert find_field(text, "venue") == "Lammas Park"


def test_identify_teams_without_match_line():
    assert identify_teams("NMCC INNINGS", MARKERS) == (None, None)


def test_toss_falls_back_to_won_by_line():
    text = "MATCH BETWEEN NMCC v Acton\nWON BY Acton, elected to bat\nRESULT: Acton won"
    info = parse_match_info(text, MARKERS)
    assert info.toss == "Acton, elected to bat"
    assert info.result == "Acton won"


def test_venue_label_alternative():
    assert find_field("VENUE: Rectory Park", "venue") == "Rectory Park"


def test_fields_do_not_span_lines():
    text = "RESULT:\nTOSS WON BY NMCC"
    assert find_field(text, "result") is None
    assert find_field(text, "toss") == "NMCC"
    assert find_field("PLAYED AT\nDATE: 12-07-2025", "venue") is None


def test_is_home_club():
    assert is_home_club("Northolt Manor CC", MARKERS)
    assert is_home_club("nmcc 2nd XI", MARKERS)
    assert not is_home_club("Ealing CC", MARKERS)
    assert not is_home_club(None, MARKERS)


@pytest.mark.parametrize(
    "value, iso",
    [
        ("12-07-2025", "2025-07-12"),
        ("3/7/2025", "2025-07-03"),
        ("2025-07-12", "2025-07-12"),
        ("Saturday 12th July", None),
        (UNKNOWN, None),
        ("", None),
    ]
)
def test_normalize_match_date(value, iso):
    assert normalize_match_date(value) == iso


def test_date_glued_to_label_is_found():
    assert parse_match_info("Date12-07-2025").date == "12-07-2025"
