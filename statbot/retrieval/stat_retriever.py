"""
Statistic retriever: turns a ParsedQuestion into Cypher template calls and
executes them through the Neo4j driver.

Callers can provide their own driver/session implementation for testing; the
driver only needs `session()` returning a context manager with `run()`.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging

from neo4j import Query
from neo4j.exceptions import DriverError, Neo4jError

from statbot.catalog.stat_registry import COUNT, LABEL, StatDefinition, get_stat
from statbot.preprocessing.entity_extractor import QueryFilters
from statbot.preprocessing.intent_classifier import COMPARISON, DESCENDING, LOOKUP, RANKING, ParsedQuestion
from statbot.utils.errors import (
    DataError,
    DataTypeMismatchError,
    FilterConflictError,
    MetricNotRecognizedError,
    PlayerNotFoundError,
    QueryTimeoutError,
)

from . import cypher_templates as templates

logger = logging.getLogger(__name__)

NOT_AVAILABLE = {"", "n/a", "na", "none", "null"}


@dataclass
class StatQuery:
    template_name: str
    key: str
    query: str
    params: Dict[str, Any]
    filters: Dict[str, str]
    subject: Optional[str] = None
    descending: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template": self.template_name,
            "key": self.key,
            "subject": self.subject,
            "filters": dict(self.filters),
            "params": dict(self.params),
        }


@dataclass
class QueryResult:
    subject: str
    key: str
    value: Any
    appearances: Optional[int] = None
    filters: Dict[str, str] = field(default_factory=dict)


def merge_filters(definition: StatDefinition, filters: Optional[QueryFilters]) -> Dict[str, str]:
    """
    Combine the filters a statistic implies (e.g. 3sApps -> team 3s) with the
    ones the question asked for. Raises FilterConflictError for filters the
    statistic cannot take or that contradict its implied filters.
    """
    merged = definition.filters
    requested = filters.as_dict() if filters else {}
    for dimension, value in requested.items():
        implied = merged.get(dimension)
        if implied is not None:
            if implied != value:
                raise FilterConflictError(
                    f"{definition.key} is fixed to {dimension} {implied}, question asked for {value}",
                    {"key": definition.key, dimension: value},
                )
            continue
        if dimension not in definition.allowed_filters:
            raise FilterConflictError(
                f"{definition.key} cannot be filtered by {dimension}",
                {"key": definition.key, dimension: value},
            )
        merged[dimension] = value
    return merged


class StatRetriever:
    """
    Intent-driven statistic retriever.

    - Lookup: one query for the subject
    - Comparison: one query per subject
    - Ranking: one aggregate query over every player, re-sorted locally
    """

    def __init__(self, driver, timeout: Optional[float] = None, database: Optional[str] = None):
        self.driver = driver
        self.timeout = timeout
        self.database = database

    def build_queries(self, parsed: ParsedQuestion) -> List[StatQuery]:
        if not parsed.metric_key:
            raise MetricNotRecognizedError("No statistic resolved for query building.")
        definition = get_stat(parsed.metric_key)
        filters = merge_filters(definition, parsed.filters)

        if parsed.intent == RANKING:
            query, params = self._build_query(
                "ranking_stat",
                {
                    "aggregate": self._ranking_aggregate(definition),
                    "limit": parsed.rank_limit or 1,
                    "descending": parsed.rank_direction == DESCENDING,
                    "filters": filters,
                },
            )
            return [
                StatQuery(
                    "ranking_stat",
                    definition.key,
                    query,
                    params,
                    filters,
                    descending=parsed.rank_direction == DESCENDING,
                )
            ]

        if parsed.intent not in (LOOKUP, COMPARISON):
            raise DataError(f"Cannot build queries for intent '{parsed.intent}'.")
        return [self._subject_query(definition, subject, filters) for subject in parsed.subjects]

    def fetch(self, stat_query: StatQuery) -> List[QueryResult]:
        definition = get_stat(stat_query.key)
        records = self._run_query(stat_query.query, stat_query.params)

        if stat_query.template_name == "ranking_stat":
            results = [self._to_result(definition, row, stat_query.filters) for row in records]
            return self._sort_ranking(results, stat_query.params.get("limit", 1), stat_query.descending)

        if not records:
            if definition.is_label and self._player_exists(stat_query.subject):
                return [QueryResult(stat_query.subject, definition.key, None, None, stat_query.filters)]
            raise PlayerNotFoundError(stat_query.subject)
        return [self._to_result(definition, records[0], stat_query.filters, stat_query.subject)]

    def _subject_query(self, definition: StatDefinition, subject: str, filters: Dict[str, str]) -> StatQuery:
        if definition.is_label:
            name = "player_label_stat"
            params = {
                "player_name": subject,
                "group_by": definition.group_by,
                "tally": definition.tally,
                "filters": filters,
            }
        else:
            name = "player_stat"
            params = {"player_name": subject, "aggregate": definition.aggregate, "filters": filters}
        query, bound = self._build_query(name, params)
        return StatQuery(name, definition.key, query, bound, filters, subject)

    @staticmethod
    def _ranking_aggregate(definition: StatDefinition) -> str:
        if definition.shape == LABEL:
            raise DataError(f"{definition.key} is a label and cannot be ranked.")
        return definition.aggregate

    def _build_query(self, template_name: str, params: Dict[str, Any]):
        builder: Callable = templates.TEMPLATE_REGISTRY[template_name]
        try:
            return builder(**params)
        except templates.MissingParameterError as exc:
            raise DataError(str(exc)) from exc

    def _run_query(self, query: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not self.driver:
            raise DataError("Neo4j driver is not configured.")
        statement = Query(query, timeout=self.timeout) if self.timeout else query
        session_kwargs = {"database": self.database} if self.database else {}
        try:
            with self.driver.session(**session_kwargs) as session:
                result = session.run(statement, params)
                return result.data()
        except Neo4jError as exc:
            logger.warning("Neo4j query failed: %s", exc)
            if "TimedOut" in (exc.code or "") or "Timeout" in (exc.code or ""):
                raise QueryTimeoutError(
                    f"Query timed out after {self.timeout}s", {"code": exc.code, "timeout": self.timeout}
                ) from exc
            raise DataError(f"Query failed: {exc.code}", {"code": exc.code}) from exc
        except DriverError as exc:
            logger.warning("Neo4j driver error: %s", exc)
            raise DataError(f"Neo4j driver error: {exc}") from exc
        except TimeoutError as exc:
            raise QueryTimeoutError(f"Query timed out after {self.timeout}s") from exc

    def _player_exists(self, player_name: Optional[str]) -> bool:
        if not player_name:
            return False
        query, params = self._build_query("player_exists", {"player_name": player_name})
        return bool(self._run_query(query, params))

    @staticmethod
    def _sort_ranking(results: List[QueryResult], limit: int, descending: bool) -> List[QueryResult]:
        # Same ordering as the query: value first, then player name ascending.
        ranked = [r for r in results if r.value is not None]
        sign = -1 if descending else 1
        return sorted(ranked, key=lambda r: (sign * float(r.value), r.subject))[:limit]

    @staticmethod
    def _to_result(
        definition: StatDefinition,
        row: Dict[str, Any],
        filters: Dict[str, str],
        subject: Optional[str] = None,
    ) -> QueryResult:
        value = normalise_value(definition, row.get("value"))
        appearances = row.get("appearances")
        if appearances is not None and not isinstance(appearances, int):
            raise DataTypeMismatchError(f"{definition.key}: appearances must be an integer, got {appearances!r}")
        player = row.get("player") or subject
        if not player:
            raise DataTypeMismatchError(f"{definition.key}: row has no player name")
        return QueryResult(player, definition.key, value, appearances, dict(filters))


def normalise_value(definition: StatDefinition, value: Any) -> Any:
    """
    Check a raw value against the statistic's shape. "N/A" and blanks become
    None; numeric strings are parsed; anything else of the wrong kind is a
    DataTypeMismatchError.
    """
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in NOT_AVAILABLE:
        return None
    if definition.is_label:
        if not isinstance(value, str):
            raise DataTypeMismatchError(f"{definition.key}: expected a label, got {value!r}")
        return value.strip()
    if isinstance(value, bool):
        raise DataTypeMismatchError(f"{definition.key}: expected a number, got {value!r}")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as exc:
            raise DataTypeMismatchError(f"{definition.key}: expected a number, got {value!r}") from exc
    if not isinstance(value, (int, float)):
        raise DataTypeMismatchError(f"{definition.key}: expected a number, got {value!r}")
    if value < 0:
        raise DataTypeMismatchError(f"{definition.key}: negative value {value!r}")
    if definition.shape == COUNT and float(value).is_integer():
        return int(value)
    return value
