from collections import Counter

import pytest

from statbot.catalog.stat_registry import (
    ADVANCED,
    BASIC,
    HOME_AWAY,
    POSITIONAL,
    SEASONAL,
    STAT_COUNT,
    STAT_REGISTRY,
    TEAM_SPECIFIC,
    all_stats,
    extract_value,
    generate_test_questions,
    get_stat,
    list_keys,
)
from statbot.preprocessing.entity_extractor import ClubEntityExtractor
from statbot.preprocessing.metric_resolver import MetricResolver

PLAYER = "Luke Bangs"


@pytest.fixture(scope="module")
def extractor():
    return ClubEntityExtractor(player_index=[PLAYER, "Oli Goddard"])


@pytest.fixture(scope="module")
def resolver():
    return MetricResolver()


def test_registry_has_every_statistic_once():
    keys = list_keys()
    assert len(keys) == STAT_COUNT == 70
    assert len(set(keys)) == len(keys)


def test_category_sizes():
    counts = Counter(d.category for d in STAT_REGISTRY.values())
    assert counts == {
        BASIC: 16,
        ADVANCED: 9,
        HOME_AWAY: 7,
        TEAM_SPECIFIC: 19,
        SEASONAL: 14,
        POSITIONAL: 5,
    }


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        STAT_REGISTRY["NEW"] = get_stat("APP")


def test_unknown_key_raises():
    with pytest.raises(KeyError):
        get_stat("NotAStat")


def test_generate_test_questions_covers_catalog():
    questions = generate_test_questions(PLAYER)
    assert [key for key, _ in questions] == list_keys()
    # One template asks about "I" rather than a named player.
    named = [q for _, q in questions if PLAYER in q]
    assert len(named) == STAT_COUNT - 1


@pytest.mark.parametrize("key,question", generate_test_questions(PLAYER))
def test_template_resolves_to_its_key(extractor, resolver, key, question):
    entities = extractor.extract(question, default_subject=PLAYER)
    match = resolver.resolve(entities.residual, entities.filters)
    assert match.key == key, f"{question!r} resolved to {match.key}"
    assert entities.players == [PLAYER]
    assert entities.unresolved_players == []


@pytest.mark.parametrize(
    "answer,key,expected",
    [
        ("Luke Bangs has scored 12 goals.", "AllGSC", 12),
        ("Luke Bangs has averaged 0.6 goals per appearance.", "GperAPP", 0.6),
        ("Luke Bangs has won 66.7% of home games.", "HomeGames%Won", 66.7),
        ("Luke Bangs has made the most appearances for the 3rd XI.", "MostPlayedForTeam", "3rd XI"),
        ("Luke Bangs's most prolific season was 2019/20.", "MostProlificSeason", "2019/20"),
        ("Chris Smith's most common position is MID.", "MostCommonPosition", "MID"),
        ("Luke Bangs has not scored a goal.", "AllGSC", None),
    ],
)
def test_extract_value(answer, key, expected):
    assert extract_value(answer, key) == expected


def test_count_statistics_have_no_decimals():
    for definition in STAT_REGISTRY.values():
        if definition.shape == "count":
            assert definition.decimal_places == 0


def test_derived_statistics_point_at_base():
    assert get_stat("3sApps").base_key == "APP"
    assert get_stat("3sApps").filters == {"team": "3s"}
    assert get_stat("2019/20Goals").base_key == "AllGSC"
    assert get_stat("GK").filters == {"position": "GK"}


def test_all_stats_in_registry_order():
    assert [d.key for d in all_stats()] == list_keys()
