"""
Map the residual question text to one statistic key.

Every alias of every StatDefinition is scored against the text; the score is
the number of characters the alias literally matched, so longer and more
specific phrasings win. Filters then narrow a base statistic to its team,
season or positional variant where the catalog defines one.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple
import re

from statbot.catalog.stat_registry import (
    POSITION_KEYS,
    SEASON_APPS_KEYS,
    SEASON_GOALS_KEYS,
    STAT_REGISTRY,
    SUPERLATIVE_KEYS,
    TEAM_APPS_KEYS,
    TEAM_GOALS_KEYS,
    StatDefinition,
    compile_alias,
)
from statbot.preprocessing.entity_extractor import QueryFilters


@dataclass
class MetricMatch:
    key: Optional[str]
    base_key: Optional[str] = None
    alias: Optional[str] = None
    score: int = 0


class MetricResolver:
    def __init__(self, registry: Optional[Mapping[str, StatDefinition]] = None) -> None:
        self.registry = registry or STAT_REGISTRY
        self._aliases: List[Tuple[StatDefinition, str, "re.Pattern[str]"]] = [
            (definition, alias, compile_alias(alias))
            for definition in self.registry.values()
            for alias in definition.aliases
        ]

    def resolve(self, residual: str, filters: Optional[QueryFilters] = None) -> MetricMatch:
        match = self.match_base(residual)
        key = self.specialise(match.key, filters or QueryFilters())
        return MetricMatch(key=key, base_key=match.key, alias=match.alias, score=match.score)

    def match_base(self, text: str) -> MetricMatch:
        if not text:
            return MetricMatch(key=None)
        best: dict = {}
        for definition, alias, pattern in self._aliases:
            found = pattern.search(text)
            if not found:
                continue
            score = sum(len(found.group(i)) for i in range(1, pattern.groups + 1))
            current = best.get(definition.key)
            if current is None or score > current[0]:
                best[definition.key] = (score, alias)
        if not best:
            return MetricMatch(key=None)

        top_score = max(score for score, _ in best.values())
        tied = [key for key, (score, _) in best.items() if score == top_score]
        key = self._break_tie(tied, text)
        return MetricMatch(key=key, base_key=key, alias=best[key][1], score=top_score)

    def _break_tie(self, keys: List[str], text: str) -> str:
        # Registry order is the final tie-break; dicts keep insertion order.
        verbatim = [k for k in keys if re.search(rf"(?<!\w){re.escape(self.registry[k].metric)}(?!\w)", text)]
        candidates = verbatim or keys
        order = list(self.registry)
        return min(candidates, key=order.index)

    @staticmethod
    def specialise(key: Optional[str], filters: QueryFilters) -> Optional[str]:
        """
        Narrow appearances/goals to the team, season or position variant.
        With both a team and a season the base statistic keeps both filters.
        """
        if key in SUPERLATIVE_KEYS:
            return key
        team, season, position = filters.team, filters.season, filters.position
        if key == "APP":
            if team and season:
                return key
            if team:
                return TEAM_APPS_KEYS.get(team, key)
            if season:
                return SEASON_APPS_KEYS.get(season, key)
            if position:
                return POSITION_KEYS.get(position, key)
        if key == "AllGSC":
            if team and season:
                return key
            if team:
                return TEAM_GOALS_KEYS.get(team, key)
            if season:
                return SEASON_GOALS_KEYS.get(season, key)
        if key is None and position:
            return POSITION_KEYS.get(position)
        return key
