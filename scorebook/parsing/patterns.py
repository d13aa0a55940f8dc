"""
Pattern table for scoresheet text.

Each field maps to an ordered list of compiled patterns; the first pattern
that matches anywhere in the text wins. Adding support for a new scoresheet
layout means adding a pattern here, not changing parser control flow.

Patterns for match fields capture group 1 as the value, except ``teams``
which captures both sides.
"""

import re

_FLAGS = re.IGNORECASE | re.MULTILINE

# Labels that can follow a team name on the same line
_LINE_STOP = r"(?=\s+(?:PLAYED|DATE|TOSS|RESULT|VENUE)\b|[ \t]*$)"

MATCH_FIELD_PATTERNS = {
    "date": [
        re.compile(r"(?<!\d)\d{1,2}[-/]\d{1,2}[-/]\d{4}(?!\d)"),
        re.compile(r"\bDATE[ \t]*[:.\-][ \t]*([^\n]*\S)", _FLAGS),
    ],
    "teams": [
        re.compile(
            r"MATCH\b[^\n]*?\bBETWEEN\s+([^\n]+?)\s+(?:v|vs|versus)\.?\s+([^\n]+?)" + _LINE_STOP,
            _FLAGS,
        ),
    ],
    "venue": [
        re.compile(r"\bPLAYED[ \t]+(?:AT|IN)[ \t]*[:.\-]?[ \t]*([^\n]*\S)", _FLAGS),
        re.compile(r"\bVENUE[ \t]*[:.\-][ \t]*([^\n]*\S)", _FLAGS),
    ],
    "toss": [
        re.compile(r"\bTOSS\b(?:[ \t]+WON[ \t]+BY)?[ \t]*[:.\-]?[ \t]*([^\n]*\S)", _FLAGS),
        re.compile(r"^[ \t]*WON[ \t]+BY[ \t]*[:.\-]?[ \t]*([^\n]*\S)", _FLAGS),
    ],
    "result": [
        re.compile(r"\bRESULT[ \t]*[:.\-]?[ \t]*([^\n]*\S)", _FLAGS),
    ],
}

# A batting line: "3. J Smith 45 62 38 c Jones b Brown"
BATTING_LINE = re.compile(
    r"^\s*(\d{1,2})\s*[.)]\s*"
    r"([A-Za-z][A-Za-z .'\-]*?)\s+"
    r"(\d+)\s+(\d+)\s+(\d+)"
    r"(?:\s+(.*\S))?\s*$"
)

# A bowling line: "Brown 8.4 1 37 3"
BOWLING_LINE = re.compile(
    r"^\s*([A-Za-z][A-Za-z .'\-]*?)\s+"
    r"(\d+(?:\.\d)?)\s+(\d+)\s+(\d+)\s+(\d+)\s*$"
)

# Headers naming the batting side for the lines that follow
INNINGS_HEADER_PATTERNS = [
    re.compile(r"^\s*INNINGS\s+OF\s+([^\n]*\S)", _FLAGS),
    re.compile(r"^\s*BATTING\s*[:\-]\s*([^\n]*\S)", _FLAGS),
    re.compile(r"^\s*([^\n]*?\S)\s+(?:1ST\s+|2ND\s+)?INNINGS\b", _FLAGS),
]

# Headers naming the bowling side; the team name is optional
BOWLING_HEADER = re.compile(r"^\s*BOWLING\b(?:\s*[:\-]\s*([^\n]*\S))?", _FLAGS)

# Trailing dismissal text: split "<how> b <bowler>" at the last lowercase " b "
DISMISSAL_WITH_BOWLER = re.compile(r"^(?:(.*)\s+)?b\s+([A-Za-z][^\n]*)$")

# Fielder credited in a dismissal
CAUGHT_AND_BOWLED = re.compile(r"^\s*c\s*(?:&|and)\s*b\b", re.IGNORECASE)
CAUGHT_BY = re.compile(r"^\s*c\s+(?!&)([A-Za-z][A-Za-z .'\-]*?)\s*$", re.IGNORECASE)
STUMPED_BY = re.compile(r"^\s*st\s+([A-Za-z][A-Za-z .'\-]*?)\s*$", re.IGNORECASE)
RUN_OUT_BY = re.compile(r"^\s*run\s*out\s*\(\s*([A-Za-z][A-Za-z .'\-]*?)\s*\)", re.IGNORECASE)

# Names on summary lines that are not players
NON_PLAYER_LABELS = {
    "total", "extras", "byes", "leg byes", "wides", "no balls", "noballs",
    "fall of wickets", "overs", "did not bat", "bowling", "batting", "o m r w",
}
