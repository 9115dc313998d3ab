import pytest

from statbot.catalog.stat_registry import STAT_REGISTRY
from statbot.catalog.zero_phrases import (
    GENERIC_APPEARANCE_PHRASE,
    ZERO_PHRASE_RULES,
    ZeroPhraseRule,
    ZeroPhraseTable,
    is_zero_answer,
    phrase_for,
)
from statbot.utils.errors import RegistryError


def test_every_statistic_has_a_phrase():
    for key in STAT_REGISTRY:
        assert phrase_for(key)


def test_table_rejects_incomplete_rules():
    with pytest.raises(RegistryError):
        ZeroPhraseTable(ZERO_PHRASE_RULES[:-1])


def test_table_rejects_duplicate_keys():
    rules = ZERO_PHRASE_RULES + [ZeroPhraseRule("dupe", "has not done it", ("A",))]
    with pytest.raises(RegistryError):
        ZeroPhraseTable(rules)


def test_generic_phrase_only_for_per_appearance_averages():
    assert phrase_for("GperAPP", no_appearances=True) == GENERIC_APPEARANCE_PHRASE
    assert phrase_for("GperAPP") == "has not scored a goal"
    # Counts keep their own phrase even with no appearances.
    assert phrase_for("A", no_appearances=True) == "has not recorded an assist"


@pytest.mark.parametrize(
    "answer,key",
    [
        ("Luke Bangs has not scored a goal.", "AllGSC"),
        ("Luke Bangs has not played for the 3rd XI.", "3sApps"),
        ("Luke Bangs did not score a goal in the 2019/20 season.", "2019/20Goals"),
        ("Luke Bangs has never played as a goalkeeper.", "GK"),
        ("LUKE BANGS HAS NOT KEPT A CLEAN SHEET.", "CLS"),
    ],
)
def test_matches_zero_answers(answer, key):
    assert is_zero_answer(answer, key)


def test_generic_phrase_rejected_unless_no_appearances():
    answer = f"Luke Bangs {GENERIC_APPEARANCE_PHRASE}."
    assert not is_zero_answer(answer, "GperAPP")
    assert is_zero_answer(answer, "GperAPP", no_appearances=True)


def test_phrase_must_be_word_bounded():
    assert not is_zero_answer("Luke Bangs has not scored a goalie award.", "AllGSC")
    assert not is_zero_answer("", "AllGSC")
    assert not is_zero_answer("Luke Bangs has scored 3 goals.", "AllGSC")
