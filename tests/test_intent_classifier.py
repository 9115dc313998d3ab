import pytest

from statbot.preprocessing.entity_extractor import ClubEntityExtractor
from statbot.preprocessing.intent_classifier import (
    ASCENDING,
    AMBIGUOUS,
    COMPARISON,
    DESCENDING,
    INTENT_EXAMPLES,
    INTENT_LABELS,
    LOOKUP,
    MAX_RANK_LIMIT,
    MISSING_SUBJECT,
    RANKING,
    UNKNOWN_TEAM,
    ClubIntentClassifier,
    ParsedQuestion,
)
from statbot.preprocessing.metric_resolver import MetricResolver
from statbot.utils.errors import EMPTY_QUESTION, METRIC_NOT_RECOGNIZED, PLAYER_NOT_FOUND, UNCLEAR_INTENT

PLAYERS = ["Luke Bangs", "Oli Goddard", "Kieran Mackrell"]


@pytest.fixture(scope="module")
def parse():
    extractor = ClubEntityExtractor(player_index=PLAYERS)
    resolver = MetricResolver()
    classifier = ClubIntentClassifier()

    def _parse(question, default_subject=None):
        entities = extractor.extract(question, default_subject=default_subject)
        return classifier.classify(entities, resolver.resolve(entities.residual, entities.filters).key)

    return _parse


@pytest.mark.parametrize("intent_label", INTENT_LABELS)
def test_examples_cover_expected_intents(parse, intent_label):
    # Ensure every seed example maps to its intended label.
    for query in INTENT_EXAMPLES[intent_label]:
        result = parse(query)
        assert result.intent == intent_label, query


def test_empty_question(parse):
    result = parse("   ")
    assert result.error == EMPTY_QUESTION


def test_lookup_keeps_one_subject_and_metric(parse):
    result = parse("How many goals has Luke Bangs scored?")
    assert result.intent == LOOKUP
    assert result.subjects == ["Luke Bangs"]
    assert result.metric_key == "AllGSC"
    assert result.error is None


def test_comparison_lists_subjects(parse):
    result = parse("Who has more goals, Luke Bangs or Oli Goddard?")
    assert result.intent == COMPARISON
    assert result.subjects == ["Luke Bangs", "Oli Goddard"]
    assert "more" in result.matched_cues


def test_ranking_limit_and_direction(parse):
    top = parse("Who are the top 3 goal scorers?")
    assert top.intent == RANKING
    assert top.rank_limit == 3
    assert top.rank_direction == DESCENDING
    assert top.subjects == []

    fewest = parse("Who has the fewest yellow cards?")
    assert fewest.rank_direction == ASCENDING
    assert fewest.rank_limit == 1


def test_ranking_limit_is_capped(parse):
    assert parse("Who are the top 99 goal scorers?").rank_limit == MAX_RANK_LIMIT


def test_superlative_statistic_is_not_a_ranking(parse):
    result = parse("Which team has Luke Bangs scored the most goals for?")
    assert result.intent == LOOKUP
    assert result.metric_key == "MostScoredForTeam"


def test_unknown_player(parse):
    result = parse("How many goals has John Smith scored?")
    assert result.error == PLAYER_NOT_FOUND
    assert result.error_detail == "John Smith"


def test_missing_subject(parse):
    result = parse("How many goals?")
    assert result.error == UNCLEAR_INTENT
    assert result.error_detail == MISSING_SUBJECT


def test_comparison_without_players_is_ambiguous(parse):
    result = parse("Who is better?")
    assert result.error == UNCLEAR_INTENT
    assert result.error_detail == AMBIGUOUS


def test_comparison_with_one_known_player_degrades_to_lookup(parse):
    result = parse("Who has more goals, Luke Bangs or John Smith?")
    assert result.intent == LOOKUP
    assert result.subjects == ["Luke Bangs"]
    assert result.unresolved_subjects == ["John Smith"]


def test_unrecognised_metric(parse):
    result = parse("What is Luke Bangs' favourite colour?")
    assert result.error == METRIC_NOT_RECOGNIZED


def test_default_subject_answers_first_person(parse):
    result = parse("How many assists have I got?", default_subject="Oli Goddard")
    assert result.intent == LOOKUP
    assert result.subjects == ["Oli Goddard"]
    assert result.used_default_subject


def test_rank_is_word_bounded():
    assert not ClubIntentClassifier._contains("how many goals has frank scored", "rank")


def test_examples_exist_for_every_label():
    assert set(INTENT_EXAMPLES) == set(INTENT_LABELS)


def test_best_and_worst_follow_the_statistic(parse):
    assert parse("Who has the best record for yellow cards?").rank_direction == ASCENDING
    assert parse("Who has the worst record for yellow cards?").rank_direction == DESCENDING
    assert parse("Who is the best goal scorer?").rank_direction == DESCENDING


def test_title_case_ranking_question(parse):
    result = parse("Which Player Has The Most Clean Sheets?")
    assert result.intent == RANKING
    assert result.metric_key == "CLS"
    assert result.error is None


def test_unknown_team_asks_for_clarification(parse):
    result = parse("How many goals has Luke Bangs scored for the 9th team?")
    assert result.error == UNCLEAR_INTENT
    assert result.error_detail == UNKNOWN_TEAM


def test_parsed_question_rejects_unknown_intent():
    with pytest.raises(ValueError):
        ParsedQuestion(question="", intent="guess", subjects=[], metric_key=None)
