"""
Question-answering service: extraction -> metric resolution -> intent ->
Cypher retrieval -> answer composition.

Each call returns its own AnswerResponse with the processing details for that
call; the service keeps no per-request state, so one instance can serve
concurrent callers.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import logging

from statbot.answers.answer_composer import AnswerComposer
from statbot.answers.error_messages import message_for
from statbot.preprocessing.entity_extractor import ClubEntityExtractor
from statbot.preprocessing.intent_classifier import COMPARISON, LOOKUP, ClubIntentClassifier, ParsedQuestion
from statbot.preprocessing.metric_resolver import MetricResolver
from statbot.retrieval.stat_retriever import QueryResult, StatQuery, StatRetriever
from statbot.utils.errors import DATA_ERROR, PLAYER_NOT_FOUND, ChatbotError, DataError, PlayerNotFoundError
from statbot.utils.neo4j_client import get_database, get_query_timeout, load_player_index

logger = logging.getLogger(__name__)

SOURCE_LABEL = "Neo4j Database"


@dataclass(frozen=True)
class QuestionContext:
    question: Optional[str]
    user_context: Optional[str] = None


@dataclass
class ProcessingDetails:
    question_analysis: Dict[str, Any] = field(default_factory=dict)
    cypher_queries: List[str] = field(default_factory=list)
    query_breakdown: List[Dict[str, Any]] = field(default_factory=list)
    trace: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionAnalysis": dict(self.question_analysis),
            "cypherQueries": list(self.cypher_queries),
            "queryBreakdown": [dict(item) for item in self.query_breakdown],
            "trace": list(self.trace),
            "error": self.error,
        }


@dataclass(frozen=True)
class AnswerResponse:
    answer: str
    sources: Tuple[str, ...]
    cypher_query: Optional[str]
    processing_details: ProcessingDetails

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": list(self.sources),
            "cypherQuery": self.cypher_query,
        }


class ChatbotService:
    """
    Stateless orchestrator for club statistics questions.

    - Parsing is rule-based (entity extractor, metric resolver, intent classifier)
    - Queries go through StatRetriever with a bounded per-query timeout
    - Every failure becomes a polite answer; nothing is raised to the caller
    """

    def __init__(
        self,
        retriever: StatRetriever,
        player_index: Optional[Sequence[str]] = None,
        resolver: Optional[MetricResolver] = None,
        classifier: Optional[ClubIntentClassifier] = None,
        composer: Optional[AnswerComposer] = None,
    ) -> None:
        self.retriever = retriever
        self.extractor = ClubEntityExtractor(player_index=player_index)
        self.resolver = resolver or MetricResolver()
        self.classifier = classifier or ClubIntentClassifier()
        self.composer = composer or AnswerComposer()

    @classmethod
    def from_driver(cls, driver, player_index: Optional[Sequence[str]] = None, timeout: Optional[float] = None):
        database = get_database()
        retriever = StatRetriever(driver, timeout=timeout or get_query_timeout(), database=database)
        if player_index is None:
            player_index = load_player_index(driver, database)
        return cls(retriever, player_index=player_index)

    def analyse(self, context: QuestionContext) -> ParsedQuestion:
        entities = self.extractor.extract(context.question, default_subject=context.user_context)
        match = self.resolver.resolve(entities.residual, entities.filters)
        parsed = self.classifier.classify(entities, match.key)
        logger.debug("Parsed %r -> %s", context.question, parsed.to_dict())
        return parsed

    def process_question(
        self,
        context: QuestionContext,
        details_sink: Optional[Callable[[ProcessingDetails], None]] = None,
    ) -> AnswerResponse:
        details = ProcessingDetails()
        queries: List[StatQuery] = []
        parsed: Optional[ParsedQuestion] = None
        try:
            parsed = self.analyse(context)
            details.question_analysis = parsed.to_dict()
            details.trace.append(f"intent={parsed.intent} metric={parsed.metric_key}")
            if parsed.error:
                details.error = parsed.error
                details.trace.append(f"short-circuit: {parsed.error}")
                logger.info("Question not answerable (%s): %r", parsed.error, context.question)
                answer = self._message(parsed.error, parsed.error_detail)
            else:
                queries = self.retriever.build_queries(parsed)
                details.cypher_queries = [q.query.strip() for q in queries]
                results = self._execute(parsed, queries, details)
                answer = self.composer.compose(parsed, results, queries[0].filters)
        except ChatbotError as exc:
            details.error = exc.kind
            details.trace.append(f"error: {exc.kind}")
            answer = self._error_answer(exc, parsed)
        except Exception:  # pylint: disable=broad-except
            details.error = DATA_ERROR
            logger.exception("Unexpected failure answering %r (parsed=%s)", context.question, _dump(parsed))
            answer = message_for(DATA_ERROR)

        response = AnswerResponse(
            answer=answer,
            sources=(SOURCE_LABEL,) if details.cypher_queries else (),
            cypher_query="\n\n".join(details.cypher_queries) or None,
            processing_details=details,
        )
        if details_sink is not None:
            details_sink(details)
        return response

    def _execute(self, parsed: ParsedQuestion, queries: List[StatQuery], details: ProcessingDetails) -> List[QueryResult]:
        results: List[QueryResult] = []
        for stat_query in queries:
            entry = stat_query.to_dict()
            try:
                rows = self.retriever.fetch(stat_query)
            except PlayerNotFoundError as exc:
                # In a comparison a missing subject is reported alongside the others.
                if parsed.intent != COMPARISON:
                    raise
                parsed.unresolved_subjects.append(exc.player_name)
                entry["error"] = exc.kind
                details.query_breakdown.append(entry)
                continue
            entry["rows"] = len(rows)
            details.query_breakdown.append(entry)
            results.extend(rows)
        if parsed.intent == COMPARISON and len(results) < 2:
            if not results:
                raise PlayerNotFoundError(parsed.unresolved_subjects[0])
            parsed.intent = LOOKUP
            details.trace.append("comparison degraded to lookup")
        details.question_analysis = parsed.to_dict()
        return results

    def _error_answer(self, exc: ChatbotError, parsed: Optional[ParsedQuestion]) -> str:
        if isinstance(exc, DataError) and exc.kind == DATA_ERROR:
            logger.exception("Data error (%s) %s for parsed question %s", exc.kind, exc.context, _dump(parsed))
        else:
            logger.warning("%s: %s %s", exc.kind, exc, exc.context)
        detail = exc.player_name if isinstance(exc, PlayerNotFoundError) else None
        return self._message(exc.kind, detail)

    def _message(self, kind: str, detail: Optional[str] = None) -> str:
        suggestion = None
        if kind == PLAYER_NOT_FOUND:
            suggestion = self.extractor.suggest(detail)
            if suggestion == detail:
                suggestion = None
        return message_for(kind, detail, suggestion)


def _dump(parsed: Optional[ParsedQuestion]) -> Optional[Dict[str, Any]]:
    return parsed.to_dict() if parsed else None
