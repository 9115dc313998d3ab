"""
Club-specific vocabulary: the eight senior XIs, season labels and the four
playing positions.

Questions use short codes ("3s", "2019/20", "GK") while the graph stores
team names as "3rd XI" and positions in MatchDetail.class.
"""

from typing import Dict, Optional
import re


TEAM_NAMES: Dict[str, str] = {
    "1s": "1st XI",
    "2s": "2nd XI",
    "3s": "3rd XI",
    "4s": "4th XI",
    "5s": "5th XI",
    "6s": "6th XI",
    "7s": "7th XI",
    "8s": "8th XI",
}

ORDINAL_WORDS: Dict[str, int] = {
    "first": 1,
    "second": 2,
    "third": 3,
    "fourth": 4,
    "fifth": 5,
    "sixth": 6,
    "seventh": 7,
    "eighth": 8,
}

NUMBER_WORDS: Dict[str, int] = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

POSITION_MAP: Dict[str, str] = {
    "goal keeper": "GK",
    "goalkeeper": "GK",
    "keeper": "GK",
    "gk": "GK",
    "defender": "DEF",
    "defence": "DEF",
    "defense": "DEF",
    "defensive": "DEF",
    "def": "DEF",
    "midfielder": "MID",
    "midfield": "MID",
    "mid": "MID",
    "forward": "FWD",
    "striker": "FWD",
    "attacker": "FWD",
    "fwd": "FWD",
}

POSITION_NAMES: Dict[str, str] = {
    "GK": "goalkeeper",
    "DEF": "defender",
    "MID": "midfielder",
    "FWD": "forward",
}

_TEAM_LABEL = re.compile(r"^\s*([1-8])(?:s|st|nd|rd|th)?(?:\s+(?:xi|team))?\s*$", flags=re.IGNORECASE)
_SEASON_LABEL = re.compile(r"^\s*(?:20)?(\d{2})\s*(?:/|-|to)\s*(?:20)?(\d{2})\s*$")


def team_code(number: int) -> str:
    return f"{number}s"


def team_display(code: str) -> str:
    """'3s' -> '3rd XI'."""
    return TEAM_NAMES[code]


def canonical_team(label: Optional[str]) -> Optional[str]:
    """Map '3rd XI', '3rd', '3s' or 'third team' to the short code '3s'."""
    if not label:
        return None
    text = str(label).strip().lower()
    match = _TEAM_LABEL.match(text)
    if match:
        return team_code(int(match.group(1)))
    words = text.split()
    if words and words[0] in ORDINAL_WORDS:
        return team_code(ORDINAL_WORDS[words[0]])
    return None


def canonical_season(label: Optional[str]) -> Optional[str]:
    """
    Normalise '2019-20', '2019/2020', '19/20' or '2019 to 2020' to '2019/20'.
    Returns None unless the two years are consecutive.
    """
    if not label:
        return None
    match = _SEASON_LABEL.match(str(label))
    if not match:
        return None
    return season_from_years(int(match.group(1)), int(match.group(2)))


def season_from_years(start: int, end: int) -> Optional[str]:
    start_short, end_short = start % 100, end % 100
    if (start_short + 1) % 100 != end_short:
        return None
    return f"20{start_short:02d}/{end_short:02d}"


def canonical_position(label: Optional[str]) -> Optional[str]:
    if not label:
        return None
    text = str(label).strip().lower()
    if text.upper() in POSITION_NAMES:
        return text.upper()
    return POSITION_MAP.get(text)


def position_name(code: str) -> str:
    return POSITION_NAMES[code]
