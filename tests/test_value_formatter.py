import pytest

from statbot.answers.value_formatter import ValueFormatter
from statbot.catalog.stat_registry import get_stat
from statbot.catalog.zero_phrases import GENERIC_APPEARANCE_PHRASE


@pytest.fixture(scope="module")
def formatter():
    return ValueFormatter()


@pytest.mark.parametrize(
    "key,value,text",
    [
        ("AllGSC", 12, "12"),
        ("AllGSC", 12.0, "12"),
        ("GperAPP", 0.456, "0.5"),
        ("DIST", 123.456, "123.5"),
        ("MperG", 187.4, "187"),
        ("HomeGames%Won", 66.666, "67%"),
        ("PenConv%", 75, "75.0%"),
    ],
)
def test_numbers_use_fixed_precision(formatter, key, value, text):
    formatted = formatter.format(get_stat(key), value, appearances=10)
    assert formatted.text == text
    assert not formatted.is_zero


def test_zero_count_uses_phrase(formatter):
    formatted = formatter.format(get_stat("A"), 0, appearances=12)
    assert formatted.is_zero
    assert formatted.text == "has not recorded an assist"


def test_average_without_appearances_uses_generic_phrase(formatter):
    formatted = formatter.format(get_stat("GperAPP"), None, appearances=0)
    assert formatted.text == GENERIC_APPEARANCE_PHRASE


def test_ratio_without_denominator_uses_metric_phrase(formatter):
    # Minutes per goal is undefined when no goals were scored.
    formatted = formatter.format(get_stat("MperG"), None, appearances=20)
    assert formatted.text == "has not scored a goal"


@pytest.mark.parametrize(
    "key,value,text",
    [
        ("MostPlayedForTeam", "3rd XI", "3rd XI"),
        ("MostPlayedForTeam", "3s", "3rd XI"),
        ("MostProlificSeason", "2019-20", "2019/20"),
        ("MostCommonPosition", "gk", "GK"),
        ("MostCommonPosition", "Goalkeeper", "GK"),
    ],
)
def test_labels_are_canonicalised(formatter, key, value, text):
    assert formatter.format(get_stat(key), value).text == text


def test_missing_label_is_zero(formatter):
    formatted = formatter.format(get_stat("MostScoredForTeam"), None)
    assert formatted.is_zero
    assert formatted.text == "has not scored a goal"
