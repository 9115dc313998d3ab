import pytest
from neo4j import Query
from neo4j.exceptions import ClientError, ServiceUnavailable

from statbot.catalog.stat_registry import get_stat
from statbot.preprocessing.entity_extractor import QueryFilters
from statbot.preprocessing.intent_classifier import ASCENDING, COMPARISON, LOOKUP, RANKING, ParsedQuestion
from statbot.retrieval import cypher_templates
from statbot.retrieval.stat_retriever import StatRetriever, merge_filters, normalise_value
from statbot.utils.errors import (
    DataError,
    DataTypeMismatchError,
    FilterConflictError,
    MetricNotRecognizedError,
    PlayerNotFoundError,
    QueryTimeoutError,
)


def parsed(intent, key, subjects=(), **filters):
    return ParsedQuestion(
        question="",
        intent=intent,
        subjects=list(subjects),
        metric_key=key,
        filters=QueryFilters(**filters),
    )


def test_lookup_params_with_implied_team(make_driver):
    retriever = StatRetriever(driver=make_driver())
    [query] = retriever.build_queries(parsed(LOOKUP, "3sApps", ["Luke Bangs"]))
    assert query.template_name == "player_stat"
    assert query.params == {"player_name": "Luke Bangs", "team": "3rd XI"}
    assert "md.team = $team" in query.query
    assert "Luke Bangs" not in query.query


def test_comparison_builds_one_query_per_subject(make_driver):
    retriever = StatRetriever(driver=make_driver())
    queries = retriever.build_queries(parsed(COMPARISON, "A", ["Luke Bangs", "Oli Goddard"], season="2019/20"))
    assert [q.subject for q in queries] == ["Luke Bangs", "Oli Goddard"]
    assert all(q.params["season"] == "2019/20" for q in queries)


def test_ranking_params(make_driver):
    retriever = StatRetriever(driver=make_driver())
    question = parsed(RANKING, "Y", position="DEF")
    question.rank_limit = 5
    question.rank_direction = ASCENDING
    [query] = retriever.build_queries(question)
    assert query.params == {"limit": 5, "position": "DEF"}
    assert "ORDER BY value ASC" in query.query
    assert not query.descending


def test_label_statistic_uses_label_template(make_driver):
    retriever = StatRetriever(driver=make_driver())
    [query] = retriever.build_queries(parsed(LOOKUP, "MostCommonPosition", ["Luke Bangs"]))
    assert query.template_name == "player_label_stat"
    assert "md.class AS label" in query.query


@pytest.mark.parametrize(
    "key,filters",
    [
        ("3sApps", {"season": "2019/20"}),
        ("3sApps", {"team": "4s"}),
        ("2019/20Goals", {"team": "1s"}),
        ("GK", {"position": "FWD"}),
    ],
)
def test_filter_conflicts(key, filters):
    with pytest.raises(FilterConflictError):
        merge_filters(get_stat(key), QueryFilters(**filters))


def test_matching_implied_filter_is_accepted():
    assert merge_filters(get_stat("3sApps"), QueryFilters(team="3s", position="GK")) == {"team": "3s", "position": "GK"}


def test_timeout_and_database_are_passed_to_driver(make_driver):
    driver = make_driver(lambda q, p: [{"player": "Luke Bangs", "value": 4, "appearances": 9}])
    retriever = StatRetriever(driver=driver, timeout=5, database="club")
    [query] = retriever.build_queries(parsed(LOOKUP, "A", ["Luke Bangs"]))
    [result] = retriever.fetch(query)
    statement, params = driver.calls[0]
    assert isinstance(statement, Query)
    assert statement.timeout == 5
    assert driver.session_kwargs == [{"database": "club"}]
    assert params == {"player_name": "Luke Bangs"}
    assert (result.subject, result.value, result.appearances) == ("Luke Bangs", 4, 9)


def test_missing_player_raises(make_driver):
    retriever = StatRetriever(driver=make_driver())
    [query] = retriever.build_queries(parsed(LOOKUP, "A", ["Nobody Here"]))
    with pytest.raises(PlayerNotFoundError) as excinfo:
        retriever.fetch(query)
    assert excinfo.value.player_name == "Nobody Here"


def test_label_with_no_groups_returns_empty_value(make_driver):
    def responder(query, params):
        return [] if "tally" in query else [{"player": params["player_name"]}]

    retriever = StatRetriever(driver=make_driver(responder))
    [query] = retriever.build_queries(parsed(LOOKUP, "MostProlificSeason", ["Luke Bangs"]))
    [result] = retriever.fetch(query)
    assert result.value is None


def test_ranking_rows_are_resorted_and_cut(make_driver):
    rows = [
        {"player": "Oli Goddard", "value": 7, "appearances": 10},
        {"player": "Luke Bangs", "value": 12, "appearances": 10},
        {"player": "Kieran Mackrell", "value": 7, "appearances": 10},
        {"player": "Extra", "value": None, "appearances": 1},
    ]
    retriever = StatRetriever(driver=make_driver(lambda q, p: rows))
    question = parsed(RANKING, "AllGSC")
    question.rank_limit = 3
    [query] = retriever.build_queries(question)
    results = retriever.fetch(query)
    assert [r.subject for r in results] == ["Luke Bangs", "Kieran Mackrell", "Oli Goddard"]


def test_driver_errors_become_data_errors(make_driver):
    def responder(query, params):
        raise ServiceUnavailable("database offline")

    retriever = StatRetriever(driver=make_driver(responder))
    [query] = retriever.build_queries(parsed(LOOKUP, "A", ["Luke Bangs"]))
    with pytest.raises(DataError):
        retriever.fetch(query)


def test_timeouts_are_reported(make_driver):
    def responder(query, params):
        raise TimeoutError()

    retriever = StatRetriever(driver=make_driver(responder), timeout=1)
    [query] = retriever.build_queries(parsed(LOOKUP, "A", ["Luke Bangs"]))
    with pytest.raises(QueryTimeoutError):
        retriever.fetch(query)


class TransactionTimedOut(ClientError):
    code = "Neo.ClientError.Transaction.TransactionTimedOutClientConfiguration"


def test_server_transaction_timeout_is_reported(make_driver):
    def responder(query, params):
        raise TransactionTimedOut("The transaction has been terminated.")

    retriever = StatRetriever(driver=make_driver(responder), timeout=2)
    [query] = retriever.build_queries(parsed(LOOKUP, "A", ["Luke Bangs"]))
    with pytest.raises(QueryTimeoutError) as excinfo:
        retriever.fetch(query)
    assert excinfo.value.context == {"code": TransactionTimedOut.code, "timeout": 2}


def test_no_driver():
    retriever = StatRetriever(driver=None)
    [query] = retriever.build_queries(parsed(LOOKUP, "A", ["Luke Bangs"]))
    with pytest.raises(DataError):
        retriever.fetch(query)


@pytest.mark.parametrize(
    "key,raw,expected",
    [
        ("A", 3.0, 3),
        ("A", "4", 4),
        ("GperAPP", "N/A", None),
        ("GperAPP", 0.75, 0.75),
        ("MostCommonPosition", " MID ", "MID"),
    ],
)
def test_normalise_value(key, raw, expected):
    assert normalise_value(get_stat(key), raw) == expected


@pytest.mark.parametrize(
    "key,raw",
    [("A", "lots"), ("A", -1), ("A", True), ("MostCommonPosition", 3)],
)
def test_normalise_value_rejects_mismatches(key, raw):
    with pytest.raises(DataTypeMismatchError):
        normalise_value(get_stat(key), raw)


def test_templates_require_parameters():
    assert cypher_templates.list_templates() == ["player_exists", "player_label_stat", "player_stat", "ranking_stat"]
    with pytest.raises(cypher_templates.MissingParameterError):
        cypher_templates.player_stat(player_name="", aggregate="count(md)")


def test_missing_metric_is_reported(make_driver):
    retriever = StatRetriever(driver=make_driver())
    with pytest.raises(MetricNotRecognizedError):
        retriever.build_queries(parsed(LOOKUP, None, ["Luke Bangs"]))
