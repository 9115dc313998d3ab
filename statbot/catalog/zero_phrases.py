"""
Zero-value phrasing.

When a statistic is zero the answer states the specific fact ("has not kept a
clean sheet") instead of printing a 0. The same table is used by the answer
formatter and by the regression harness when it checks answers, so both
agree on what a correct zero answer looks like.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple
import re

from statbot.catalog.stat_registry import (
    POSITION_KEYS,
    SEASON_APPS_KEYS,
    SEASON_GOALS_KEYS,
    STAT_REGISTRY,
    TEAM_APPS_KEYS,
    TEAM_GOALS_KEYS,
)
from statbot.utils.errors import RegistryError


GENERIC_APPEARANCE_PHRASE = "has not made an appearance yet"


@dataclass(frozen=True)
class ZeroPhraseRule:
    rule_id: str
    phrase: str
    keys: Tuple[str, ...]


ZERO_PHRASE_RULES: List[ZeroPhraseRule] = [
    ZeroPhraseRule(
        "appearances",
        GENERIC_APPEARANCE_PHRASE,
        ("APP", "MostCommonPosition", "MostPlayedForTeam", "NumberTeamsPlayedFor", "NumberSeasonsPlayedFor"),
    ),
    ZeroPhraseRule("team-appearances", "has not played", tuple(TEAM_APPS_KEYS.values())),
    ZeroPhraseRule("season-appearances", "did not play", tuple(SEASON_APPS_KEYS.values())),
    ZeroPhraseRule("positions", "has never played", tuple(POSITION_KEYS.values())),
    ZeroPhraseRule(
        "goals",
        "has not scored a goal",
        ("AllGSC", "G", "GperAPP", "MperG", "MostScoredForTeam", "MostProlificSeason"),
    ),
    ZeroPhraseRule("team-goals", "has not scored any goals", tuple(TEAM_GOALS_KEYS.values())),
    ZeroPhraseRule("season-goals", "did not score a goal", tuple(SEASON_GOALS_KEYS.values())),
    ZeroPhraseRule("assists", "has not recorded an assist", ("A",)),
    ZeroPhraseRule("goal-involvements", "has not recorded a goal involvement", ("GI",)),
    ZeroPhraseRule("mom", "has not won a Man of the Match award", ("MOM",)),
    ZeroPhraseRule("yellow-cards", "has not received a yellow card", ("Y",)),
    ZeroPhraseRule("red-cards", "has not received a red card", ("R",)),
    ZeroPhraseRule("own-goals", "has not scored an own goal", ("OG",)),
    ZeroPhraseRule("clean-sheets", "has not kept a clean sheet", ("CLS", "MperCLS")),
    ZeroPhraseRule("saves", "has not made a save", ("SAVES",)),
    ZeroPhraseRule("penalties-scored", "has not scored a penalty", ("PSC", "PenConv%")),
    ZeroPhraseRule("penalties-saved", "has not saved a penalty", ("PSV",)),
    ZeroPhraseRule("penalties-missed", "has not missed a penalty", ("PM",)),
    ZeroPhraseRule("penalties-conceded", "has not conceded a penalty", ("PCO",)),
    ZeroPhraseRule("conceded", "has not conceded a goal", ("C", "CperAPP")),
    ZeroPhraseRule("minutes", "has not played any minutes yet", ("MIN",)),
    ZeroPhraseRule("fantasy-points", "has not recorded any fantasy points", ("FTP", "FTPperAPP")),
    ZeroPhraseRule("distance", "has not travelled to any games", ("DIST",)),
    ZeroPhraseRule("home-games", "has not played a home game", ("HomeGames",)),
    ZeroPhraseRule("home-wins", "has not won a home game", ("HomeWins", "HomeGames%Won")),
    ZeroPhraseRule("away-games", "has not played an away game", ("AwayGames",)),
    ZeroPhraseRule("away-wins", "has not won an away game", ("AwayWins", "AwayGames%Won")),
    ZeroPhraseRule("wins", "has not won a game", ("Games%Won",)),
]


class ZeroPhraseTable:
    """Read-only key -> rule index with the zero-answer matcher."""

    def __init__(self, rules: List[ZeroPhraseRule]) -> None:
        index: Dict[str, ZeroPhraseRule] = {}
        for rule in rules:
            for key in rule.keys:
                if key not in STAT_REGISTRY:
                    raise RegistryError(f"Zero phrase rule {rule.rule_id} names unknown key {key}")
                if key in index:
                    raise RegistryError(f"Statistic {key} has more than one zero phrase")
                index[key] = rule
        missing = [key for key in STAT_REGISTRY if key not in index]
        if missing:
            raise RegistryError(f"No zero phrase for: {', '.join(missing)}")
        self._index: Mapping[str, ZeroPhraseRule] = MappingProxyType(index)

    def rule_for(self, key: str) -> ZeroPhraseRule:
        return self._index[key]

    def phrase_for(self, key: str, no_appearances: bool = False) -> str:
        """
        Zero phrase for a statistic. `no_appearances` selects the generic
        appearance phrase, which is only correct for per-appearance averages
        when the player has not played at all.
        """
        if no_appearances and STAT_REGISTRY[key].per_appearance:
            return GENERIC_APPEARANCE_PHRASE
        return self._index[key].phrase

    def matches(self, answer: Optional[str], key: str, no_appearances: bool = False) -> bool:
        """
        True when `answer` is a correct zero answer for `key`. The generic
        appearance phrase is rejected for other statistics unless the player
        has no appearances.
        """
        if not answer:
            return False
        text = answer.lower()
        accepted = [self._index[key].phrase]
        if no_appearances:
            accepted.append(GENERIC_APPEARANCE_PHRASE)
        return any(_phrase_pattern(phrase).search(text) for phrase in accepted)


def _phrase_pattern(phrase: str) -> "re.Pattern[str]":
    return re.compile(r"(?<!\w)" + re.escape(phrase.lower()) + r"(?!\w)")


ZERO_PHRASES = ZeroPhraseTable(ZERO_PHRASE_RULES)


def phrase_for(key: str, no_appearances: bool = False) -> str:
    return ZERO_PHRASES.phrase_for(key, no_appearances)


def is_zero_answer(answer: Optional[str], key: str, no_appearances: bool = False) -> bool:
    return ZERO_PHRASES.matches(answer, key, no_appearances)
