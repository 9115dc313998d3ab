"""
Answer composer: turns query results into the final sentence.

Lookup answers follow "{Subject} {verb} {value} {noun}{clause}.", comparisons
state every subject's value and who comes out ahead, rankings list the
ordered players with their values. Every answer starts with a capital
letter and ends with terminal punctuation.
"""

from typing import Dict, List, Optional, Sequence
import re

from statbot.catalog.club_vocabulary import position_name, team_display
from statbot.catalog.stat_registry import COUNT, StatDefinition, get_stat
from statbot.answers.value_formatter import FormattedValue, ValueFormatter
from statbot.preprocessing.intent_classifier import COMPARISON, DESCENDING, RANKING, ParsedQuestion
from statbot.retrieval.stat_retriever import QueryResult


LOWER_IS_ASKED = re.compile(r"\b(?:fewer|fewest|less|least|lower|lowest)\b")
BETTER_ASKED = re.compile(r"\b(?:better|best)\b")
WORSE_ASKED = re.compile(r"\b(?:worse|worst)\b")


def filter_clause(filters: Optional[Dict[str, str]]) -> str:
    """' for the 3rd XI in the 2019/20 season as a goalkeeper'"""
    filters = filters or {}
    parts = []
    if filters.get("team"):
        parts.append(f"for the {team_display(filters['team'])}")
    if filters.get("season"):
        parts.append(f"in the {filters['season']} season")
    if filters.get("position"):
        parts.append(f"as a {position_name(filters['position'])}")
    return "".join(f" {part}" for part in parts)


def possessive(name: str) -> str:
    return f"{name}'s"


def join_names(items: Sequence[str]) -> str:
    items = list(items)
    if len(items) <= 1:
        return "".join(items)
    return ", ".join(items[:-1]) + " and " + items[-1]


def finish(text: str) -> str:
    text = text.strip()
    if not text:
        return text
    text = text[0].upper() + text[1:]
    if text[-1] not in ".!?":
        text += "."
    return text


def not_found_note(names: Sequence[str]) -> str:
    return " ".join(f'I couldn\'t find a player named "{name}".' for name in names)


class AnswerComposer:
    def __init__(self, formatter: Optional[ValueFormatter] = None) -> None:
        self.formatter = formatter or ValueFormatter()

    def compose(self, parsed: ParsedQuestion, results: List[QueryResult], filters: Dict[str, str]) -> str:
        definition = get_stat(parsed.metric_key)
        if parsed.intent == RANKING:
            return self.ranking(definition, results, filters, parsed.rank_direction)
        if parsed.intent == COMPARISON and len(results) >= 2:
            return self.comparison(definition, results, filters, parsed.question, parsed.unresolved_subjects)
        return self.lookup(definition, results[0], filters, parsed.unresolved_subjects)

    def statement(self, definition: StatDefinition, result: QueryResult, filters: Dict[str, str]) -> str:
        """One subject's value as a clause without the closing full stop."""
        formatted = self.formatter.format(definition, result.value, result.appearances)
        clause = filter_clause(filters)
        if formatted.is_zero:
            return f"{result.subject} {formatted.text}{clause}"
        if definition.is_label:
            sentence = definition.answer_template.format(
                subject=result.subject,
                possessive=possessive(result.subject),
                value=formatted.text,
                clause=clause,
            )
            return sentence.rstrip(".")
        words = [result.subject, definition.verb, formatted.text, definition.noun_for(formatted.number)]
        return " ".join(w for w in words if w) + clause

    def lookup(
        self,
        definition: StatDefinition,
        result: QueryResult,
        filters: Dict[str, str],
        unresolved: Sequence[str] = (),
    ) -> str:
        answer = finish(self.statement(definition, result, filters))
        if unresolved:
            answer = f"{answer} {not_found_note(unresolved)}"
        return answer

    def comparison(
        self,
        definition: StatDefinition,
        results: List[QueryResult],
        filters: Dict[str, str],
        question: str = "",
        unresolved: Sequence[str] = (),
    ) -> str:
        body = join_names([self.statement(definition, r, filters) for r in results])
        if definition.is_label:
            summary = f"{definition.metric} is not a number, so there is no higher or lower to compare"
        else:
            summary = self._comparison_summary(definition, results, wants_lower(definition, question))
        answer = finish(f"{body}, so {summary}")
        if unresolved:
            answer = f"{answer} {not_found_note(unresolved)}"
        return answer

    def _comparison_summary(self, definition: StatDefinition, results: List[QueryResult], want_lower: bool) -> str:
        values = [(r.subject, self._number(definition, r)) for r in results]
        known = [(name, v) for name, v in values if v is not None]
        if len(known) < 2:
            missing = [name for name, v in values if v is None]
            return f"there is no {definition.metric} figure for {join_names(missing)} to compare"
        target = min(v for _, v in known) if want_lower else max(v for _, v in known)
        leaders = [name for name, v in known if v == target]
        if definition.shape == COUNT:
            word = "fewer" if want_lower else "more"
            measure = f"{word} {definition.noun}".rstrip()
        else:
            word = "lower" if want_lower else "higher"
            measure = f"a {word} figure"
        if len(leaders) > 1:
            nobody = "neither" if len(known) == 2 else "nobody"
            return f"{nobody} has {measure}"
        return f"{leaders[0]} has {measure}"

    def _number(self, definition: StatDefinition, result: QueryResult) -> Optional[float]:
        # N/A (no goals for minutes per goal, no appearances for averages) has no figure.
        if result.value is None:
            return None
        formatted: FormattedValue = self.formatter.format(definition, result.value, result.appearances)
        return formatted.number or 0.0

    def ranking(
        self,
        definition: StatDefinition,
        results: List[QueryResult],
        filters: Dict[str, str],
        direction: str = DESCENDING,
    ) -> str:
        noun = ranking_noun(definition)
        clause = filter_clause(filters)
        if not results:
            return finish(f"I couldn't find any players with {noun} recorded{clause}")
        entries = [f"{r.subject} ({self.formatter.format_number(definition, r.value)})" for r in results]
        count = len(results)
        if direction == DESCENDING:
            lead = "The top player" if count == 1 else f"The top {count} players"
        else:
            lead = "The lowest-ranked player" if count == 1 else f"The {count} lowest-ranked players"
        verb = "is" if count == 1 else "are"
        return finish(f"{lead} for {noun}{clause} {verb} {join_names(entries)}")


def ranking_noun(definition: StatDefinition) -> str:
    """Derived statistics (3sApps, GK, 2019/20Goals) read as their base metric plus the filter clause."""
    if definition.base_key:
        return get_stat(definition.base_key).metric
    return definition.metric


def wants_lower(definition: StatDefinition, question: Optional[str]) -> bool:
    """
    Whether the lower figure comes out ahead. "Better" and "worse" follow the
    statistic, so fewer yellow cards is better; otherwise fewer/lower wording
    asks for the lower figure.
    """
    text = question or ""
    if BETTER_ASKED.search(text):
        return not definition.higher_is_better
    if WORSE_ASKED.search(text):
        return definition.higher_is_better
    return bool(LOWER_IS_ASKED.search(text))
