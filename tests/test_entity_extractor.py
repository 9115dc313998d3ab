import pytest

from statbot.preprocessing.entity_extractor import ClubEntityExtractor, normalize

PLAYERS = ["Luke Bangs", "Oli Goddard", "Kieran Mackrell"]


@pytest.fixture(scope="module")
def extractor():
    return ClubEntityExtractor(player_index=PLAYERS)


@pytest.mark.parametrize(
    "question",
    [
        "How many goals has Luke Bangs scored for the 3rd XI?",
        "How many goals has Luke Bangs scored for the 3s?",
        "How many goals has Luke Bangs scored for the third team?",
        "How many goals has Luke Bangs scored for the 3rd?",
    ],
)
def test_team_forms(extractor, question):
    result = extractor.extract(question)
    assert result.filters.team == "3s"
    assert "3" not in result.residual


@pytest.mark.parametrize(
    "question",
    [
        "How many apps did Luke Bangs make in 2019/20?",
        "How many apps did Luke Bangs make in the 2019-20 season?",
        "How many apps did Luke Bangs make in 2019/2020?",
        "How many apps did Luke Bangs make in 19/20?",
        "How many apps did Luke Bangs make in 2019 to 2020?",
    ],
)
def test_season_forms(extractor, question):
    assert extractor.extract(question).filters.season == "2019/20"


def test_non_consecutive_years_are_not_a_season(extractor):
    assert extractor.extract("Goals for Luke Bangs in 2019/21").filters.season is None


def test_position_and_players(extractor):
    result = extractor.extract("How many times has Oli Goddard played as a goalkeeper?")
    assert result.players == ["Oli Goddard"]
    assert result.filters.position == "GK"
    assert "goalkeeper" not in result.residual


def test_players_in_question_order(extractor):
    result = extractor.extract("Compare Kieran Mackrell and luke bangs for assists")
    assert result.players == ["Kieran Mackrell", "Luke Bangs"]
    assert result.unresolved_players == []


def test_unknown_name_is_unresolved(extractor):
    result = extractor.extract("How many goals has John Smith scored?")
    assert result.players == []
    assert result.unresolved_players == ["John Smith"]


def test_pronoun_uses_default_subject(extractor):
    result = extractor.extract("How many goals have I scored for the 4s?", default_subject="Luke Bangs")
    assert result.players == ["Luke Bangs"]
    assert result.used_default_subject
    assert result.filters.team == "4s"


def test_named_player_beats_default_subject(extractor):
    result = extractor.extract("How many assists has Oli Goddard got?", default_subject="Luke Bangs")
    assert result.players == ["Oli Goddard"]
    assert not result.used_default_subject


def test_rank_limit_words_and_digits(extractor):
    assert extractor.extract("Who are the top 3 goal scorers?").rank_limit == 3
    assert extractor.extract("Who are the top five goal scorers?").rank_limit == 5
    assert extractor.extract("Who has the most goals?").rank_limit is None


def test_player_cap():
    extractor = ClubEntityExtractor(player_index=PLAYERS, max_players=2)
    result = extractor.extract("Luke Bangs vs Oli Goddard vs Kieran Mackrell goals")
    assert result.players == ["Luke Bangs", "Oli Goddard"]


def test_empty_and_punctuation_only(extractor):
    assert not extractor.extract("").has_content
    assert not extractor.extract("   ?!  ").has_content
    assert normalize("Luke’s goals?") == "luke's goals"


def test_suggest_close_name(extractor):
    assert extractor.suggest("Luke Bang") == "Luke Bangs"
    assert extractor.suggest("John Smith") is None
    assert extractor.suggest(None) is None


@pytest.mark.parametrize(
    "question",
    [
        "HOW MANY GOALS HAS LUKE BANGS SCORED?",
        "Which Player Has The Most Clean Sheets?",
        "How many Yellow Cards has Luke Bangs received?",
        "How Many Goals Has Luke Bangs Scored?",
    ],
)
def test_capitalised_wording_is_not_a_player(extractor, question):
    assert extractor.extract(question).unresolved_players == []


def test_capitalised_statistic_stays_in_residual(extractor):
    result = extractor.extract("How many Yellow Cards has John Smith received?")
    assert result.unresolved_players == ["John Smith"]
    assert "yellow cards" in result.residual


def test_unknown_team_is_reported(extractor):
    result = extractor.extract("How many goals has Luke Bangs scored for the 9th team?")
    assert result.filters.team is None
    assert result.unknown_team == "the 9th team"
    assert "9th" not in result.residual
    assert extractor.extract("How many goals has Luke Bangs scored for the 3rd team?").unknown_team is None
