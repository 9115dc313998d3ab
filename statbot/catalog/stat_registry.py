"""
Statistic catalog for the club chatbot.

Each answerable statistic is a StatDefinition: the phrases that name it in a
question, the Cypher aggregate that computes it, and the words used to state
it in an answer. The catalog is validated once at import and exposed through
read-only mappings.

Aggregates are evaluated against the club graph:
- (p:Player {playerName}) -[:PLAYED_IN]-> (md:MatchDetail {team, season, class, goals, ...})
- (f:Fixture {homeOrAway, result, distance}) -[:HAS_MATCH_DETAILS]-> (md)
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Pattern, Tuple
import re

from statbot.catalog.club_vocabulary import TEAM_NAMES
from statbot.utils.errors import RegistryError


BASIC = "basic"
ADVANCED = "advanced"
HOME_AWAY = "home-away"
TEAM_SPECIFIC = "team-specific"
SEASONAL = "seasonal"
POSITIONAL = "positional"
CATEGORIES = [BASIC, ADVANCED, HOME_AWAY, TEAM_SPECIFIC, SEASONAL, POSITIONAL]

COUNT = "count"
RATE = "rate"
PERCENTAGE = "percentage"
LABEL = "label"
SHAPES = [COUNT, RATE, PERCENTAGE, LABEL]

TEAM = "team"
SEASON = "season"
POSITION = "position"
FILTER_DIMENSIONS: FrozenSet[str] = frozenset({TEAM, SEASON, POSITION})

STAT_COUNT = 70

INTEGER_PATTERN = r"(\d+)"
DECIMAL_PATTERN = r"(\d+(?:\.\d+)?)"
PERCENT_PATTERN = r"(\d+(?:\.\d+)?)%"

# " ... " in an alias allows any words between its literal segments.
ALIAS_GAP = " ... "


def compile_alias(alias: str) -> Pattern:
    """
    'goals ... scored' -> one capturing group per literal segment, with any
    words allowed in the gap. Segments must sit on word boundaries.
    """
    segments = [f"(?<!\\w)({segment})(?!\\w)" for segment in alias.split(ALIAS_GAP)]
    return re.compile(".*?".join(segments))


@dataclass(frozen=True)
class StatDefinition:
    key: str
    metric: str
    category: str
    question_template: str
    aliases: Tuple[str, ...]
    verb: str
    noun: str
    noun_singular: Optional[str] = None
    aggregate: Optional[str] = None
    shape: str = COUNT
    decimal_places: int = 0
    implied_filters: Tuple[Tuple[str, str], ...] = ()
    allowed_filters: FrozenSet[str] = FILTER_DIMENSIONS
    base_key: Optional[str] = None
    per_appearance: bool = False
    higher_is_better: bool = True
    # Label statistics pick the group with the largest tally.
    label_kind: Optional[str] = None
    group_by: Optional[str] = None
    tally: Optional[str] = None
    answer_template: Optional[str] = None
    value_pattern: Optional[str] = None
    extraction_pattern: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extraction_pattern", re.compile(self._value_regex()))

    def _value_regex(self) -> str:
        if self.value_pattern:
            return self.value_pattern
        if self.shape == PERCENTAGE:
            return PERCENT_PATTERN
        if self.shape == RATE:
            return DECIMAL_PATTERN
        return INTEGER_PATTERN

    @property
    def is_label(self) -> bool:
        return self.shape == LABEL

    @property
    def filters(self) -> Dict[str, str]:
        return dict(self.implied_filters)

    def noun_for(self, value: Any) -> str:
        if self.noun_singular and value == 1:
            return self.noun_singular
        return self.noun

    def question_for(self, player_name: str) -> str:
        return self.question_template.format(playerName=player_name)


def _sum(prop: str) -> str:
    return f"sum(coalesce(md.{prop}, 0))"


ALL_GOALS = f"({_sum('goals')} + {_sum('penaltiesScored')})"
WINS = "sum(CASE WHEN f.result = 'W' THEN 1 ELSE 0 END)"
HOME_GAMES = "sum(CASE WHEN f.homeOrAway = 'Home' THEN 1 ELSE 0 END)"
HOME_WINS = "sum(CASE WHEN f.homeOrAway = 'Home' AND f.result = 'W' THEN 1 ELSE 0 END)"
AWAY_GAMES = "sum(CASE WHEN f.homeOrAway = 'Away' THEN 1 ELSE 0 END)"
AWAY_WINS = "sum(CASE WHEN f.homeOrAway = 'Away' AND f.result = 'W' THEN 1 ELSE 0 END)"


def _ratio(numerator: str, denominator: str, scale: str = "1.0") -> str:
    return f"CASE WHEN {denominator} = 0 THEN null ELSE {scale} * {numerator} / {denominator} END"


def _basic(key, metric, template, aliases, verb, noun, singular, prop, **extra) -> StatDefinition:
    return StatDefinition(
        key=key,
        metric=metric,
        category=BASIC,
        question_template=template,
        aliases=tuple(aliases),
        verb=verb,
        noun=noun,
        noun_singular=singular,
        aggregate=extra.pop("aggregate", None) or _sum(prop),
        **extra,
    )


_BASIC_STATS = [
    _basic(
        "APP", "appearances", "How many appearances has {playerName} made?",
        ["appearances?", "apps", "games", "matches", "appear(?:ed)?", "appearance count",
         "how many times", "times ... played", "played"],
        "has made", "appearances", "appearance", None, aggregate="count(md)",
    ),
    _basic(
        "MIN", "minutes", "How many minutes of football has {playerName} played?",
        ["minutes", "minutes of football", "minutes ... played", "game time"],
        "has played", "minutes", "minute", "minutes",
    ),
    _basic(
        "MOM", "man of the match awards", "How many MoMs has {playerName} received?",
        ["moms?", "mom awards?", "man of the match(?: awards?)?", "player of the match(?: awards?)?"],
        "has won", "Man of the Match awards", "Man of the Match award", "mom",
    ),
    _basic(
        "G", "open play goals", "How many goals has {playerName} scored from open play?",
        ["open play goals?", "goals? ... open play"],
        "has scored", "goals from open play", "goal from open play", "goals",
    ),
    _basic(
        "A", "assists", "How many assists has {playerName} achieved?",
        ["assists?", "assisted"],
        "has provided", "assists", "assist", "assists",
    ),
    _basic(
        "Y", "yellow cards", "How many yellow cards has {playerName} received?",
        ["yellow cards?", "yellows", "bookings?", "booked"],
        "has received", "yellow cards", "yellow card", "yellowCards",
        higher_is_better=False,
    ),
    _basic(
        "R", "red cards", "How many red cards has {playerName} received?",
        ["red cards?", "reds", "sent off", "sending offs?"],
        "has received", "red cards", "red card", "redCards",
        higher_is_better=False,
    ),
    _basic(
        "SAVES", "saves", "How many saves has {playerName} made?",
        ["saves", "saves ... made"],
        "has made", "saves", "save", "saves",
    ),
    _basic(
        "OG", "own goals", "How many own goals has {playerName} scored?",
        ["own goals?", "own goals? ... scored"],
        "has scored", "own goals", "own goal", "ownGoals",
        higher_is_better=False,
    ),
    _basic(
        "C", "goals conceded", "How many goals has {playerName} conceded?",
        ["goals ... conceded", "conceded", "let in"],
        "has conceded", "goals", "goal", "conceded",
        higher_is_better=False,
    ),
    _basic(
        "CLS", "clean sheets", "How many clean sheets has {playerName} achieved?",
        ["clean sheets?", "shutouts?"],
        "has kept", "clean sheets", "clean sheet", "cleanSheets",
    ),
    _basic(
        "PSC", "penalties scored", "How many penalties has {playerName} scored?",
        ["penalties ... scored", "penalty goals", "pens ... scored", "scored ... penalties"],
        "has scored", "penalties", "penalty", "penaltiesScored",
    ),
    _basic(
        "PM", "penalties missed", "How many penalties has {playerName} missed?",
        ["penalties ... missed", "missed ... penalties", "pens ... missed"],
        "has missed", "penalties", "penalty", "penaltiesMissed",
        higher_is_better=False,
    ),
    _basic(
        "PCO", "penalties conceded", "How many penalties has {playerName} conceded?",
        ["penalties ... conceded", "conceded ... penalties", "gave away ... penalties"],
        "has conceded", "penalties", "penalty", "penaltiesConceded",
        higher_is_better=False,
    ),
    _basic(
        "PSV", "penalties saved", "How many penalties has {playerName} saved?",
        ["penalties ... saved", "penalty saves", "saved ... penalties"],
        "has saved", "penalties", "penalty", "penaltiesSaved",
    ),
    _basic(
        "FTP", "fantasy points", "How many fantasy points does {playerName} have?",
        ["fantasy points", "fantasy score", "fpl points"],
        "has earned", "fantasy points", "fantasy point", "fantasyPoints",
    ),
]


def _advanced(key, metric, template, aliases, verb, noun, aggregate, **extra) -> StatDefinition:
    extra.setdefault("shape", RATE)
    extra.setdefault("decimal_places", 1 if extra["shape"] == RATE else 0)
    return StatDefinition(
        key=key,
        metric=metric,
        category=ADVANCED,
        question_template=template,
        aliases=tuple(aliases),
        verb=verb,
        noun=noun,
        aggregate=aggregate,
        **extra,
    )


_ADVANCED_STATS = [
    _advanced(
        "AllGSC", "goals", "How many goals has {playerName} scored?",
        ["goals", "goal", "scored", "netted", "put away", "goal count", "goal stats",
         "goal scorers?", "top scorers?", "goals ... scored?", "scored ... goals"],
        "has scored", "goals", ALL_GOALS,
        shape=COUNT, noun_singular="goal",
    ),
    _advanced(
        "GI", "goal involvements", "How many goal involvements has {playerName} had?",
        ["goal involvements?", "goals and assists", "goal contributions?"],
        "has", "goal involvements", f"({ALL_GOALS} + {_sum('assists')})",
        shape=COUNT, noun_singular="goal involvement",
    ),
    _advanced(
        "GperAPP", "goals per appearance",
        "How many goals on average has {playerName} scored per appearance?",
        ["goals ... per (?:appearance|game|match)", "goals on average", "average goals",
         "goals a game"],
        "has averaged", "goals per appearance", _ratio(ALL_GOALS, "count(md)"),
        per_appearance=True,
    ),
    _advanced(
        "CperAPP", "goals conceded per appearance",
        "How many goals on average does {playerName} concede per match?",
        ["goals on average ... conceded?", "conceded? per (?:appearance|game|match)",
         "goals conceded per (?:appearance|game|match)", "average goals conceded"],
        "has averaged", "goals conceded per appearance", _ratio(_sum("conceded"), "count(md)"),
        per_appearance=True, higher_is_better=False,
    ),
    _advanced(
        "MperG", "minutes per goal",
        "How many minutes does it take on average for {playerName} to score?",
        ["minutes ... to score", "minutes per goal", "minutes ... take ... to score"],
        "takes", "minutes on average to score", _ratio(_sum("minutes"), ALL_GOALS),
        decimal_places=0, higher_is_better=False,
    ),
    _advanced(
        "MperCLS", "minutes per clean sheet",
        "On average, how many minutes does {playerName} need to get a clean sheet?",
        ["minutes ... clean sheet", "minutes per clean sheet"],
        "takes", "minutes on average to keep a clean sheet",
        _ratio(_sum("minutes"), _sum("cleanSheets")),
        decimal_places=0, higher_is_better=False,
    ),
    _advanced(
        "FTPperAPP", "fantasy points per appearance",
        "How many fantasy points does {playerName} score per appearance?",
        ["fantasy points ... per (?:appearance|game|match)", "average fantasy points"],
        "has averaged", "fantasy points per appearance", _ratio(_sum("fantasyPoints"), "count(md)"),
        per_appearance=True,
    ),
    _advanced(
        "DIST", "distance travelled", "How far has {playerName} travelled to get to games?",
        ["how far", "distance", "travell?ed", "miles"],
        "has travelled", "miles to get to games", "sum(coalesce(f.distance, 0))",
    ),
    _advanced(
        "PenConv%", "penalty conversion rate", "What is {playerName}'s penalty conversion rate?",
        ["penalty conversion(?: rate)?", "conversion rate", "(?:percentage|percent|%) of penalties"],
        "has a penalty conversion rate of", "",
        _ratio(_sum("penaltiesScored"), f"({_sum('penaltiesScored')} + {_sum('penaltiesMissed')})", "100.0"),
        shape=PERCENTAGE, decimal_places=1,
    ),
]


def _home_away(key, metric, template, aliases, verb, noun, aggregate, **extra) -> StatDefinition:
    return StatDefinition(
        key=key,
        metric=metric,
        category=HOME_AWAY,
        question_template=template,
        aliases=tuple(aliases),
        verb=verb,
        noun=noun,
        aggregate=aggregate,
        **extra,
    )


_PERCENT = "(?:percentage|percent|%)"

_HOME_AWAY_STATS = [
    _home_away(
        "HomeGames", "home games", "How many home games has {playerName} played?",
        ["home games", "home matches", "games at home", "home games ... played"],
        "has played", "home games", HOME_GAMES, noun_singular="home game",
    ),
    _home_away(
        "HomeWins", "home wins", "How many home games has {playerName} won?",
        ["home games ... won", "won ... home games", "home wins"],
        "has won", "home games", HOME_WINS, noun_singular="home game",
    ),
    _home_away(
        "HomeGames%Won", "home win percentage", "What percentage of home games has {playerName} won?",
        [f"{_PERCENT} of home games", f"{_PERCENT} of home games ... won", "home win (?:percentage|rate)"],
        "has won", "of home games", _ratio(HOME_WINS, HOME_GAMES, "100.0"),
        shape=PERCENTAGE,
    ),
    _home_away(
        "AwayGames", "away games", "How many away games has {playerName} played?",
        ["away games", "away matches", "games away", "away games ... played"],
        "has played", "away games", AWAY_GAMES, noun_singular="away game",
    ),
    _home_away(
        "AwayWins", "away wins", "How many away games have {playerName} won?",
        ["away games ... won", "won ... away games", "away wins"],
        "has won", "away games", AWAY_WINS, noun_singular="away game",
    ),
    _home_away(
        "AwayGames%Won", "away win percentage", "What percent of away games has {playerName} won?",
        [f"{_PERCENT} of away games", f"{_PERCENT} of away games ... won", "away win (?:percentage|rate)"],
        "has won", "of away games", _ratio(AWAY_WINS, AWAY_GAMES, "100.0"),
        shape=PERCENTAGE,
    ),
    _home_away(
        "Games%Won", "win percentage", "What % of games has {playerName} won?",
        [f"{_PERCENT} of (?:games|matches)", f"{_PERCENT} of (?:games|matches) ... won",
         "win (?:percentage|rate)"],
        "has won", "of games", _ratio(WINS, "count(md)", "100.0"),
        shape=PERCENTAGE, per_appearance=True,
    ),
]


_TEAM_APPS_TEMPLATES = {
    "1s": "How many appearances has {playerName} made for the 1s?",
    "2s": "How many apps has {playerName} made for the 2s?",
    "3s": "How many times has {playerName} played for the 3s?",
    "4s": "What is the appearance count for {playerName} playing for the 4s?",
    "5s": "How many games for the 5s has {playerName} played?",
    "6s": "How many appearances for the 6s has {playerName} made?",
    "7s": "How many apps for the 7s has {playerName} achieved?",
    "8s": "Provide me with {playerName} appearance count for the 8s.",
}

_TEAM_GOALS_TEMPLATES = {
    "1s": "How many goals has {playerName} scored for the 1s?",
    "2s": "What is the goal count of {playerName} for the 2nd team?",
    "3s": "How many goals in total has {playerName} scored for the 3s?",
    "4s": "How many goals have I scored for the 4s?",
    "5s": "How many goals has {playerName} scored for the 5th XI?",
    "6s": "What are the goal stats for {playerName} for the 6s?",
    "7s": "How many goals have {playerName} got for the 7s?",
    "8s": "How many goals has {playerName} scored for the 8s?",
}

_TEAM_ONLY = frozenset({TEAM, POSITION})
_SEASON_ONLY = frozenset({SEASON, POSITION})


def _team_stats() -> List[StatDefinition]:
    stats = []
    for code in TEAM_NAMES:
        stats.append(
            StatDefinition(
                key=f"{code}Apps",
                metric=f"{code} appearances",
                category=TEAM_SPECIFIC,
                question_template=_TEAM_APPS_TEMPLATES[code],
                aliases=(),
                verb="has made",
                noun="appearances",
                noun_singular="appearance",
                aggregate="count(md)",
                implied_filters=((TEAM, code),),
                allowed_filters=_TEAM_ONLY,
                base_key="APP",
            )
        )
    for code in TEAM_NAMES:
        stats.append(
            StatDefinition(
                key=f"{code}Goals",
                metric=f"{code} goals",
                category=TEAM_SPECIFIC,
                question_template=_TEAM_GOALS_TEMPLATES[code],
                aliases=(),
                verb="has scored",
                noun="goals",
                noun_singular="goal",
                aggregate=ALL_GOALS,
                implied_filters=((TEAM, code),),
                allowed_filters=_TEAM_ONLY,
                base_key="AllGSC",
            )
        )
    return stats


_TEAM_LABEL_PATTERN = r"the ([1-8](?:st|nd|rd|th) XI)"

_TEAM_SUMMARY_STATS = [
    StatDefinition(
        key="MostPlayedForTeam",
        metric="most played for team",
        category=TEAM_SPECIFIC,
        question_template="What team has {playerName} made the most appearances for?",
        aliases=(
            "team ... most (?:appearances|apps|games)",
            "(?:which|what) team ... most (?:appearances|apps|games)",
            "team ... played for (?:the )?most",
        ),
        verb="has made the most appearances for the",
        noun="",
        shape=LABEL,
        label_kind=TEAM,
        group_by="md.team",
        tally="count(md)",
        answer_template="{subject} has made the most appearances for the {value}{clause}.",
        value_pattern=_TEAM_LABEL_PATTERN,
        allowed_filters=_SEASON_ONLY,
    ),
    StatDefinition(
        key="NumberTeamsPlayedFor",
        metric="number of teams played for",
        category=TEAM_SPECIFIC,
        question_template="How many of the clubs teams has {playerName} played for?",
        aliases=(
            "how many (?:of the )?(?:club'?s )?teams",
            "number of teams",
            "teams ... played for",
            "how many different teams",
        ),
        verb="has played for",
        noun="of the club's teams",
        aggregate="count(DISTINCT md.team)",
        allowed_filters=_SEASON_ONLY,
    ),
    StatDefinition(
        key="MostScoredForTeam",
        metric="most scored for team",
        category=TEAM_SPECIFIC,
        question_template="Which team has {playerName} scored the most goals for?",
        aliases=(
            "(?:which|what) team ... most goals",
            "team ... scored (?:the )?most",
            "team ... most goals",
        ),
        verb="has scored the most goals for the",
        noun="",
        shape=LABEL,
        label_kind=TEAM,
        group_by="md.team",
        tally=ALL_GOALS,
        answer_template="{subject} has scored the most goals for the {value}{clause}.",
        value_pattern=_TEAM_LABEL_PATTERN,
        allowed_filters=_SEASON_ONLY,
    ),
]


_SEASON_APPS_TEMPLATES = {
    "2016/17": "How many appearances did {playerName} make in the 2016/17 season?",
    "2017/18": "How many apps did {playerName} make in 2017/18?",
    "2018/19": "How many games did {playerName} play in in 2018-19?",
    "2019/20": "How many apps did {playerName} have in 2019/20?",
    "2020/21": "How many games did {playerName} appear in in 2020/21?",
    "2021/22": "How many appearances did {playerName} make in 2021 to 2022?",
}

_SEASON_GOALS_TEMPLATES = {
    "2016/17": "How many goals did {playerName} score in the 2016/17 season?",
    "2017/18": "How many goals did {playerName} score in the 2017-18 season?",
    "2018/19": "How many goals did {playerName} get in the 2018/2019 season?",
    "2019/20": "How many goals did {playerName} score in 2019/20?",
    "2020/21": "How many goals did {playerName} score in the 20/21 season?",
    "2021/22": "How many goals did {playerName} score in 21/22?",
}

SEASONS = list(_SEASON_APPS_TEMPLATES)


def _season_stats() -> List[StatDefinition]:
    stats = []
    for season in SEASONS:
        stats.append(
            StatDefinition(
                key=f"{season}Apps",
                metric=f"{season} appearances",
                category=SEASONAL,
                question_template=_SEASON_APPS_TEMPLATES[season],
                aliases=(),
                verb="has made",
                noun="appearances",
                noun_singular="appearance",
                aggregate="count(md)",
                implied_filters=((SEASON, season),),
                allowed_filters=_SEASON_ONLY,
                base_key="APP",
            )
        )
    stats.append(
        StatDefinition(
            key="NumberSeasonsPlayedFor",
            metric="number of seasons played",
            category=SEASONAL,
            question_template="How many seasons has {playerName} played in?",
            aliases=("how many seasons", "number of seasons", "seasons ... played"),
            verb="has played in",
            noun="seasons",
            noun_singular="season",
            aggregate="count(DISTINCT md.season)",
            allowed_filters=_TEAM_ONLY,
        )
    )
    for season in SEASONS:
        stats.append(
            StatDefinition(
                key=f"{season}Goals",
                metric=f"{season} goals",
                category=SEASONAL,
                question_template=_SEASON_GOALS_TEMPLATES[season],
                aliases=(),
                verb="has scored",
                noun="goals",
                noun_singular="goal",
                aggregate=ALL_GOALS,
                implied_filters=((SEASON, season),),
                allowed_filters=_SEASON_ONLY,
                base_key="AllGSC",
            )
        )
    stats.append(
        StatDefinition(
            key="MostProlificSeason",
            metric="most prolific season",
            category=SEASONAL,
            question_template="What was {playerName}'s most prolific season?",
            aliases=("most prolific(?: season)?", "best season", "season ... scored the most"),
            verb="",
            noun="",
            shape=LABEL,
            label_kind=SEASON,
            group_by="md.season",
            tally=ALL_GOALS,
            answer_template="{possessive} most prolific season{clause} was {value}.",
            value_pattern=r"was (\d{4}/\d{2})",
            allowed_filters=_TEAM_ONLY,
        )
    )
    return stats


_POSITION_TEMPLATES = [
    ("GK", "How many times has {playerName} played as a goalkeeper?"),
    ("DEF", "How many games has {playerName} played as a defender?"),
    ("MID", "How many times has {playerName} been a midfielder?"),
    ("FWD", "How many games has {playerName} been a forward?"),
]


def _position_stats() -> List[StatDefinition]:
    stats = [
        StatDefinition(
            key=code,
            metric=f"{code} appearances",
            category=POSITIONAL,
            question_template=template,
            aliases=(),
            verb="has played",
            noun="games",
            noun_singular="game",
            aggregate="count(md)",
            implied_filters=((POSITION, code),),
            base_key="APP",
        )
        for code, template in _POSITION_TEMPLATES
    ]
    stats.append(
        StatDefinition(
            key="MostCommonPosition",
            metric="most common position",
            category=POSITIONAL,
            question_template="What is {playerName}'s most common position played?",
            aliases=(
                "most common position",
                "position ... (?:most|usually|normally)",
                "usual position",
                "main position",
                "what position",
            ),
            verb="",
            noun="",
            shape=LABEL,
            label_kind=POSITION,
            group_by="md.class",
            tally="count(md)",
            answer_template="{possessive} most common position{clause} is {value}.",
            value_pattern=r"\bis ([A-Z]{2,3})\b",
            allowed_filters=frozenset({TEAM, SEASON}),
        )
    )
    return stats


def _validate(definitions: List[StatDefinition]) -> None:
    seen = set()
    for definition in definitions:
        if definition.key in seen:
            raise RegistryError(f"Duplicate statistic key: {definition.key}")
        seen.add(definition.key)
        if definition.category not in CATEGORIES:
            raise RegistryError(f"{definition.key}: unknown category {definition.category}")
        if definition.shape not in SHAPES:
            raise RegistryError(f"{definition.key}: unknown shape {definition.shape}")
        if "{playerName}" not in definition.question_template and " I " not in definition.question_template:
            raise RegistryError(f"{definition.key}: question template has no subject")
        if not definition.aliases and not definition.base_key:
            raise RegistryError(f"{definition.key}: needs aliases or a base statistic")
        if definition.is_label:
            if not (definition.group_by and definition.tally and definition.answer_template and definition.label_kind):
                raise RegistryError(f"{definition.key}: label statistics need group_by, tally and answer_template")
        elif not definition.aggregate:
            raise RegistryError(f"{definition.key}: missing aggregate")
        if definition.shape == COUNT and definition.decimal_places:
            raise RegistryError(f"{definition.key}: counts are rendered without decimals")
        for dimension, _ in definition.implied_filters:
            if dimension not in FILTER_DIMENSIONS:
                raise RegistryError(f"{definition.key}: unknown filter {dimension}")
        for alias in definition.aliases:
            if re.compile(alias).groups:
                raise RegistryError(f"{definition.key}: alias '{alias}' must not use capturing groups")
    for definition in definitions:
        if definition.base_key and definition.base_key not in seen:
            raise RegistryError(f"{definition.key}: unknown base statistic {definition.base_key}")
    if len(definitions) != STAT_COUNT:
        raise RegistryError(f"Expected {STAT_COUNT} statistics, found {len(definitions)}")


def _build_registry() -> Mapping[str, StatDefinition]:
    definitions = (
        _BASIC_STATS
        + _ADVANCED_STATS
        + _HOME_AWAY_STATS
        + _team_stats()
        + _TEAM_SUMMARY_STATS
        + _season_stats()
        + _position_stats()
    )
    _validate(definitions)
    return MappingProxyType({d.key: d for d in definitions})


STAT_REGISTRY: Mapping[str, StatDefinition] = _build_registry()

# Derived-key lookups used when filters narrow a base statistic.
TEAM_APPS_KEYS: Mapping[str, str] = MappingProxyType({code: f"{code}Apps" for code in TEAM_NAMES})
TEAM_GOALS_KEYS: Mapping[str, str] = MappingProxyType({code: f"{code}Goals" for code in TEAM_NAMES})
SEASON_APPS_KEYS: Mapping[str, str] = MappingProxyType({s: f"{s}Apps" for s in SEASONS})
SEASON_GOALS_KEYS: Mapping[str, str] = MappingProxyType({s: f"{s}Goals" for s in SEASONS})
POSITION_KEYS: Mapping[str, str] = MappingProxyType({code: code for code, _ in _POSITION_TEMPLATES})
SUPERLATIVE_KEYS: FrozenSet[str] = frozenset(
    {"MostCommonPosition", "MostPlayedForTeam", "MostProlificSeason", "MostScoredForTeam"}
)


def get_stat(key: str) -> StatDefinition:
    if key not in STAT_REGISTRY:
        raise KeyError(f"Unknown statistic key: {key}")
    return STAT_REGISTRY[key]


def all_stats() -> List[StatDefinition]:
    return list(STAT_REGISTRY.values())


def list_keys() -> List[str]:
    return list(STAT_REGISTRY.keys())


def generate_test_questions(player_name: str) -> List[Tuple[str, str]]:
    """Return (key, question) for every statistic, phrased about `player_name`."""
    return [(d.key, d.question_for(player_name)) for d in STAT_REGISTRY.values()]


def extract_value(answer: str, key: str) -> Optional[Any]:
    """
    Pull the statistic value back out of a rendered answer using the
    definition's extraction pattern. Returns int, float or str, or None if the
    answer carries no value (e.g. a zero phrase).
    """
    definition = get_stat(key)
    match = definition.extraction_pattern.search(answer or "")
    if not match:
        return None
    raw = match.group(1)
    if definition.is_label:
        return raw
    if definition.shape == COUNT:
        return int(raw)
    return float(raw)
