"""
Rule-based intent classifier for club statistics questions.

Decides between a single lookup, a comparison of two or three players, a
ranking across all players, or an unclear question, and records any error
that should short-circuit the query step.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import re

from statbot.catalog.stat_registry import STAT_REGISTRY, SUPERLATIVE_KEYS
from statbot.preprocessing.entity_extractor import ExtractedEntities, QueryFilters
from statbot.utils.errors import (
    EMPTY_QUESTION,
    METRIC_NOT_RECOGNIZED,
    PLAYER_NOT_FOUND,
    UNCLEAR_INTENT,
)


LOOKUP = "lookup"
COMPARISON = "comparison"
RANKING = "ranking"
UNCLEAR = "unclear"
INTENT_LABELS = [LOOKUP, COMPARISON, RANKING, UNCLEAR]

DESCENDING = "descending"
ASCENDING = "ascending"

MAX_RANK_LIMIT = 25

# Clarification reasons carried in ParsedQuestion.error_detail for UnclearIntent.
MISSING_SUBJECT = "missing_subject"
AMBIGUOUS = "ambiguous"
UNKNOWN_TEAM = "unknown_team"


@dataclass
class ParsedQuestion:
    question: str
    intent: str
    subjects: List[str]
    metric_key: Optional[str]
    filters: QueryFilters = field(default_factory=QueryFilters)
    unresolved_subjects: List[str] = field(default_factory=list)
    rank_limit: Optional[int] = None
    rank_direction: str = DESCENDING
    used_default_subject: bool = False
    error: Optional[str] = None
    error_detail: Optional[str] = None
    matched_cues: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.intent not in INTENT_LABELS:
            raise ValueError(f"Unknown intent {self.intent!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "intent": self.intent,
            "subjects": list(self.subjects),
            "unresolvedSubjects": list(self.unresolved_subjects),
            "metricKey": self.metric_key,
            "filters": self.filters.as_dict(),
            "rankLimit": self.rank_limit,
            "rankDirection": self.rank_direction if self.intent == RANKING else None,
            "usedDefaultSubject": self.used_default_subject,
            "error": self.error,
            "errorDetail": self.error_detail,
            "matchedCues": list(self.matched_cues),
        }


class ClubIntentClassifier:
    """
    Keyword-driven classifier.

    Priority: ranking cues, then comparison (several subjects or comparison
    wording), then a single-subject lookup. Ranking cues are ignored for
    superlative statistics such as "most common position", which already
    answer with a single label.
    """

    def __init__(self) -> None:
        self.ranking_keywords: List[str] = ["top", "best", "worst", "leading", "rank", "ranked", "ranking", "bottom"]
        self.comparison_keywords: List[str] = [
            "more",
            "fewer",
            "less",
            "compare",
            "vs",
            "versus",
            "who has",
            "better",
            "worse",
            "higher",
            "lower",
        ]
        self.ascending_keywords: List[str] = ["worst", "fewer", "fewest", "lowest", "least", "bottom", "less"]
        self.open_superlative = re.compile(
            r"\b(?:who|which players?)\b.*\b(?:most|fewest|least|highest|lowest)\b"
        )

    def classify(self, entities: ExtractedEntities, metric_key: Optional[str]) -> ParsedQuestion:
        text = entities.text
        parsed = ParsedQuestion(
            question=text,
            intent=UNCLEAR,
            subjects=list(entities.players),
            metric_key=metric_key,
            filters=entities.filters,
            unresolved_subjects=list(entities.unresolved_players),
            used_default_subject=entities.used_default_subject,
        )
        if not entities.has_content:
            parsed.error = EMPTY_QUESTION
            return parsed
        if entities.unknown_team:
            parsed.error = UNCLEAR_INTENT
            parsed.error_detail = UNKNOWN_TEAM
            return parsed

        named_any = bool(entities.named_players or entities.unresolved_players)
        ranking_cues = [kw for kw in self.ranking_keywords if self._contains(text, kw)]
        if not named_any and self.open_superlative.search(text):
            ranking_cues.append("most")
        if metric_key in SUPERLATIVE_KEYS:
            ranking_cues = []

        if ranking_cues:
            parsed.intent = RANKING
            parsed.matched_cues = ranking_cues
            parsed.subjects = []
            parsed.rank_limit = max(1, min(entities.rank_limit or 1, MAX_RANK_LIMIT))
            if self._ascending(text, metric_key):
                parsed.rank_direction = ASCENDING
            if metric_key is None:
                parsed.error = METRIC_NOT_RECOGNIZED
            return parsed

        comparison_cues = [kw for kw in self.comparison_keywords if self._contains(text, kw)]
        mentioned = len(entities.players) + len(entities.unresolved_players)
        if mentioned >= 2 or comparison_cues:
            parsed.matched_cues = comparison_cues
            return self._comparison(parsed, entities)
        return self._lookup(parsed, entities)

    def _comparison(self, parsed: ParsedQuestion, entities: ExtractedEntities) -> ParsedQuestion:
        if len(parsed.subjects) >= 2:
            parsed.intent = COMPARISON
            if parsed.metric_key is None:
                parsed.error = METRIC_NOT_RECOGNIZED
            return parsed
        if len(parsed.subjects) == 1 and (entities.unresolved_players or entities.named_players):
            # One resolvable name: answer for it and note anything missing.
            return self._lookup(parsed, entities)
        if not parsed.subjects and entities.unresolved_players:
            parsed.error = PLAYER_NOT_FOUND
            parsed.error_detail = entities.unresolved_players[0]
            return parsed
        parsed.error = UNCLEAR_INTENT
        parsed.error_detail = AMBIGUOUS
        return parsed

    def _lookup(self, parsed: ParsedQuestion, entities: ExtractedEntities) -> ParsedQuestion:
        if not parsed.subjects:
            if entities.unresolved_players:
                parsed.error = PLAYER_NOT_FOUND
                parsed.error_detail = entities.unresolved_players[0]
            else:
                parsed.error = UNCLEAR_INTENT
                parsed.error_detail = MISSING_SUBJECT
            return parsed
        parsed.intent = LOOKUP
        parsed.subjects = parsed.subjects[:1]
        if parsed.metric_key is None:
            parsed.error = METRIC_NOT_RECOGNIZED
        return parsed

    def _ascending(self, text: str, metric_key: Optional[str]) -> bool:
        """
        "Best" and "worst" follow the statistic: the best disciplinary record
        is the fewest yellow cards, the worst is the most.
        """
        definition = STAT_REGISTRY.get(metric_key) if metric_key else None
        if definition is not None and not definition.higher_is_better:
            if self._contains(text, "best"):
                return True
            if self._contains(text, "worst"):
                return False
        return any(self._contains(text, kw) for kw in self.ascending_keywords)

    @staticmethod
    def _contains(text: str, keyword: str) -> bool:
        """Word-bounded match so 'rank' does not fire on 'frank'."""
        return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


# Lightweight corpus to seed unit tests and quick manual checks.
INTENT_EXAMPLES: Dict[str, List[str]] = {
    LOOKUP: [
        "How many goals has Luke Bangs scored?",
        "How many appearances has Oli Goddard made for the 3s?",
        "What is Kieran Mackrell's most common position played?",
    ],
    COMPARISON: [
        "Who has more goals, Luke Bangs or Oli Goddard?",
        "Compare Luke Bangs and Kieran Mackrell for assists.",
        "Oli Goddard vs Luke Bangs clean sheets",
    ],
    RANKING: [
        "Who are the top 3 goal scorers?",
        "Which player has the most assists?",
        "Who has the fewest yellow cards in the 2019/20 season?",
    ],
    UNCLEAR: [
        "Who is better?",
        "Tell me something.",
    ],
}
