"""
Name matching for scoresheet names against stored player names.

Scoresheet names are whatever the scorer wrote and OCR read back, e.g.
"Patel", "R. Patel" or "RAVI PATEL". Matching is a case-insensitive
substring test of the normalised scoresheet name within the normalised
stored full name.
"""

import re
from typing import Iterable, List, Tuple


def normalize_name(name: str) -> str:
    """
    Normalize a name for comparison.

    - Lowercase
    - Remove extra whitespace
    - Remove special characters
    """
    # Remove special characters except spaces and hyphens
    name = re.sub(r'[^\w\s\-]', ' ', name or '')
    # Normalize whitespace
    name = ' '.join(name.split())
    return name.lower()


def is_substring_match(parsed_name: str, full_name: str) -> bool:
    needle = normalize_name(parsed_name)
    if not needle:
        return False
    return needle in normalize_name(full_name)


def substring_matches(
    parsed_name: str,
    candidates: Iterable[Tuple[int, str]]
) -> List[Tuple[int, str]]:
    """
    Filter (id, full_name) candidates to those containing the parsed name.

    Candidate order is preserved, so callers that pass rows ordered by id get
    a deterministic "first match".
    """
    return [
        (candidate_id, full_name)
        for candidate_id, full_name in candidates
        if is_substring_match(parsed_name, full_name)
    ]
