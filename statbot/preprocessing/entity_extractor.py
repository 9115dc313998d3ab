"""
Rule-based entity extraction for club statistics questions.

Extracts player names (against a known-player index), the team, season and
position filters, and an optional ranking size. What remains of the question
after those spans are removed is handed to the metric resolver.
"""

from dataclasses import dataclass, field
from difflib import get_close_matches
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import re

from statbot.catalog.club_vocabulary import (
    NUMBER_WORDS,
    ORDINAL_WORDS,
    POSITION_MAP,
    season_from_years,
    team_code,
)
from statbot.catalog.stat_registry import STAT_REGISTRY, compile_alias

logger = logging.getLogger(__name__)

MAX_PLAYERS = 3

TEAM_PATTERNS = [
    re.compile(r"(?<![\w/])(?:the\s+)?([1-8])(?:st|nd|rd|th)(?:\s+(?:xi|team|eleven))?(?![\w/])"),
    re.compile(r"(?<![\w/])(?:the\s+)?([1-8])s(?![\w/])"),
    re.compile(
        r"(?<![\w/])(?:the\s+)?(" + "|".join(ORDINAL_WORDS) + r")\s+(?:xi|team|eleven)(?!\w)"
    ),
]

# Ordinal teams the club does not run, e.g. "the 9th team".
UNKNOWN_TEAM_PATTERN = re.compile(
    r"(?<![\w/])(?:the\s+)?(\d{1,2}(?:st|nd|rd|th)|ninth|tenth|eleventh|twelfth)\s+(?:xi|team|eleven)(?!\w)"
)

SEASON_PATTERNS = [
    re.compile(r"(?<![\w/])(?:the\s+)?(20\d{2})\s*(?:/|-|to)\s*((?:20)?\d{2})(?:\s+season)?(?![\w/])"),
    re.compile(r"(?<![\w/])(?:the\s+)?(\d{2})\s*[/-]\s*(\d{2})(?:\s+season)?(?![\w/])"),
]

RANK_LIMIT_PATTERN = re.compile(
    r"\b(?:top|best|worst|bottom|leading|highest|lowest)\s+(\d{1,2}|" + "|".join(NUMBER_WORDS) + r")\b"
)

PRONOUN_PATTERN = re.compile(
    r"\b(?:i|my|mine|myself)\b|(?<!provide )(?<!give )(?<!tell )(?<!show )(?<!let )\bme\b"
)

# Capitalised words that start questions or name statistics, not players.
NAME_STOP_WORDS = {
    "how", "many", "much", "who", "whom", "whose", "what", "which", "when", "where", "why",
    "is", "are", "was", "were", "has", "have", "had", "does", "did", "do", "can", "could",
    "will", "would", "should", "tell", "show", "give", "provide", "list", "please", "compare",
    "the", "a", "an", "of", "for", "in", "on", "at", "and", "or", "vs", "versus", "than",
    "top", "best", "worst", "most", "least", "more", "fewer", "leading", "rank",
    "i", "me", "my", "mine", "we", "our", "he", "she", "they",
    "goals", "goal", "assists", "appearances", "apps", "games", "minutes", "saves",
    "mom", "moms", "man", "match", "player", "players", "fantasy", "points", "penalties",
    "xi", "team", "teams", "season", "seasons", "club", "home", "away",
    "gk", "def", "mid", "fwd", "goalkeeper", "keeper", "defender", "midfielder",
    "forward", "striker", "attacker",
} | set(ORDINAL_WORDS)

NAME_CANDIDATE = re.compile(r"[A-Z][A-Za-z'\-]*(?:\s+[A-Z][A-Za-z'\-]*)*")

# Verbs that sit next to names in questions ("has Luke Bangs scored").
QUESTION_VERBS = {
    "scored", "score", "scoring", "received", "receive", "made", "make", "played", "play",
    "got", "get", "achieved", "kept", "keep", "missed", "saved", "earned", "provided",
    "travelled", "traveled", "won", "win", "conceded", "concede", "averaged", "need", "take", "takes",
} | {word for definition in STAT_REGISTRY.values() for word in definition.verb.split()}

# A capitalised run that is entirely a statistic phrase ("Clean Sheets") is not a name.
METRIC_PHRASES = [compile_alias(alias) for definition in STAT_REGISTRY.values() for alias in definition.aliases]


@dataclass
class QueryFilters:
    team: Optional[str] = None
    season: Optional[str] = None
    position: Optional[str] = None

    def as_dict(self) -> Dict[str, str]:
        return {k: v for k, v in (("team", self.team), ("season", self.season), ("position", self.position)) if v}


@dataclass
class ExtractedEntities:
    text: str
    residual: str
    players: List[str]
    named_players: List[str]
    unresolved_players: List[str]
    filters: QueryFilters = field(default_factory=QueryFilters)
    rank_limit: Optional[int] = None
    used_default_subject: bool = False
    unknown_team: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return bool(re.search(r"[a-z0-9]", self.text))


def normalize(text: Optional[str]) -> str:
    """Lower-case, unify quotes and drop punctuation other than % / - '."""
    if not text:
        return ""
    text = text.replace("’", "'").replace("‘", "'").lower()
    text = re.sub(r"[^a-z0-9%/'\-\s]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def _blank(text: str, start: int, end: int) -> str:
    return text[:start] + " " * (end - start) + text[end:]


class ClubEntityExtractor:
    """
    Extract subjects and filters with regex patterns.

    Player matching is case-insensitive and word-bounded against the provided
    index; capitalised names that are not in the index are reported as
    unresolved rather than guessed.
    """

    def __init__(self, player_index: Optional[Sequence[str]] = None, max_players: int = MAX_PLAYERS) -> None:
        self.player_lookup = {normalize(p): p for p in player_index or [] if normalize(p)}
        # Longest names first so "Luke Bangs Jr" wins over "Luke Bangs".
        self._player_patterns: List[Tuple[str, "re.Pattern[str]"]] = [
            (key, re.compile(r"(?<![\w])" + re.escape(key) + r"(?![\w])"))
            for key in sorted(self.player_lookup, key=len, reverse=True)
        ]
        self.max_players = max_players

    def suggest(self, name: Optional[str], cutoff: float = 0.75) -> Optional[str]:
        """Closest known player for a name that matched nothing; used for hints only."""
        if not name or not self.player_lookup:
            return None
        matches = get_close_matches(normalize(name), list(self.player_lookup), n=1, cutoff=cutoff)
        return self.player_lookup[matches[0]] if matches else None

    def extract(self, question: Optional[str], default_subject: Optional[str] = None) -> ExtractedEntities:
        text = normalize(question)
        if not text:
            return ExtractedEntities(text="", residual="", players=[], named_players=[], unresolved_players=[])

        working = text
        mentions: List[Tuple[int, str]] = []
        for key, pattern in self._player_patterns:
            for match in pattern.finditer(working):
                mentions.append((match.start(), self.player_lookup[key]))
                working = _blank(working, match.start(), match.end())

        # Unresolved names stay in the residual; only their order is needed.
        unresolved: List[Tuple[int, str]] = []
        for name in self._unresolved_names(question or ""):
            position = working.find(normalize(name))
            if position >= 0:
                unresolved.append((position, name))

        filters = QueryFilters()
        filters.team, working = self._extract_team(working)
        unknown_team = None
        if filters.team is None:
            unknown_team, working = self._extract_unknown_team(working)
        filters.season, working = self._extract_season(working)
        filters.position, working = self._extract_position(working)
        rank_limit = self._extract_rank_limit(text)

        named = self._ordered_unique(mentions)
        used_default = False
        players = list(named)
        pronoun = PRONOUN_PATTERN.search(working)
        if default_subject and (pronoun or not (mentions or unresolved)):
            anchor = pronoun.start() if pronoun else -1
            subject_mentions = mentions + [(anchor, default_subject)]
            players = self._ordered_unique(subject_mentions)
            used_default = default_subject in players and default_subject not in named
        players = players[: self.max_players]

        residual = re.sub(r"(?<!\w)'s\b", " ", working)
        residual = re.sub(r"\s+", " ", residual).strip()
        return ExtractedEntities(
            text=text,
            residual=residual,
            players=players,
            named_players=named,
            unresolved_players=[name for _, name in sorted(unresolved)],
            filters=filters,
            rank_limit=rank_limit,
            used_default_subject=used_default,
            unknown_team=unknown_team,
        )

    @staticmethod
    def _ordered_unique(mentions: List[Tuple[int, str]]) -> List[str]:
        ordered: List[str] = []
        for _, name in sorted(mentions, key=lambda m: m[0]):
            if name not in ordered:
                ordered.append(name)
        return ordered

    def _unresolved_names(self, question: str) -> List[str]:
        """
        Naive proper-noun extractor for names missing from the index. Known
        names are masked first; stop words and question verbs split candidate
        runs, and runs that spell a statistic are dropped. Title Case and
        ALL CAPS questions are skipped entirely.
        """
        masked = question.replace("’", "'")
        for key, pattern in self._player_patterns:
            masked = re.sub(pattern.pattern, lambda m: "_" * len(m.group(0)), masked, flags=re.IGNORECASE)
        if self._title_cased(masked):
            logger.debug("Skipping unresolved-name detection for title-cased question %r", question)
            return []
        names = []
        for match in NAME_CANDIDATE.finditer(masked):
            at_start = not masked[: match.start()].strip()
            run: List[str] = []
            runs: List[List[str]] = []
            for token in match.group(0).split():
                token = re.sub(r"'s$", "", token)
                if token.lower() in NAME_STOP_WORDS or token.lower() in QUESTION_VERBS:
                    if run:
                        runs.append(run)
                    run = []
                    continue
                run.append(token)
            if run:
                runs.append(run)
            for idx, tokens in enumerate(runs):
                starts_question = at_start and idx == 0 and match.group(0).split()[0] == tokens[0]
                if len(tokens) == 1 and starts_question:
                    continue
                name = " ".join(tokens)
                if any(phrase.fullmatch(normalize(name)) for phrase in METRIC_PHRASES):
                    continue
                names.append(name)
        return names

    @staticmethod
    def _title_cased(masked: str) -> bool:
        """True when most of the question's ordinary words are capitalised."""
        words = [w for w in re.findall(r"[A-Za-z][A-Za-z'\-]*", masked)[1:] if w.lower() != "i"]
        vocabulary = [w for w in words if w.lower() in NAME_STOP_WORDS or w.lower() in QUESTION_VERBS]
        capitalised = sum(1 for w in vocabulary if w[0].isupper())
        return bool(vocabulary) and capitalised * 2 > len(vocabulary)

    @staticmethod
    def _extract_team(text: str) -> Tuple[Optional[str], str]:
        for pattern in TEAM_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue
            raw = match.group(1)
            number = ORDINAL_WORDS[raw] if raw in ORDINAL_WORDS else int(raw)
            return team_code(number), _blank(text, match.start(), match.end())
        return None, text

    @staticmethod
    def _extract_unknown_team(text: str) -> Tuple[Optional[str], str]:
        match = UNKNOWN_TEAM_PATTERN.search(text)
        if not match:
            return None, text
        logger.warning("Question names a team the club does not run: %r", match.group(0))
        return match.group(0).strip(), _blank(text, match.start(), match.end())

    @staticmethod
    def _extract_season(text: str) -> Tuple[Optional[str], str]:
        for pattern in SEASON_PATTERNS:
            for match in pattern.finditer(text):
                season = season_from_years(int(match.group(1)), int(match.group(2)))
                if season:
                    return season, _blank(text, match.start(), match.end())
        return None, text

    @staticmethod
    def _extract_position(text: str) -> Tuple[Optional[str], str]:
        found: List[Tuple[int, str]] = []
        for word in sorted(POSITION_MAP, key=len, reverse=True):
            pattern = re.compile(r"(?<!\w)(?:as\s+an?\s+|an?\s+)?" + re.escape(word) + r"s?(?!\w)")
            match = pattern.search(text)
            if match:
                found.append((match.start(), POSITION_MAP[word]))
                text = _blank(text, match.start(), match.end())
        if not found:
            return None, text
        return sorted(found)[0][1], text

    @staticmethod
    def _extract_rank_limit(text: str) -> Optional[int]:
        match = RANK_LIMIT_PATTERN.search(text)
        if not match:
            return None
        raw = match.group(1)
        return NUMBER_WORDS[raw] if raw in NUMBER_WORDS else int(raw)
