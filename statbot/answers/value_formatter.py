"""
Render statistic values for answers.

Decimal places are exact because QA tooling parses answers back with
fixed-precision patterns. Zero and missing values turn into the statistic's
zero phrase.
"""

from dataclasses import dataclass
from typing import Any, Optional

from statbot.catalog.club_vocabulary import (
    canonical_position,
    canonical_season,
    canonical_team,
    team_display,
)
from statbot.catalog.stat_registry import COUNT, PERCENTAGE, POSITION, SEASON, TEAM, StatDefinition
from statbot.catalog.zero_phrases import ZERO_PHRASES, ZeroPhraseTable


@dataclass(frozen=True)
class FormattedValue:
    text: str
    is_zero: bool = False
    number: Optional[float] = None


class ValueFormatter:
    def __init__(self, zero_phrases: Optional[ZeroPhraseTable] = None) -> None:
        self.zero_phrases = zero_phrases or ZERO_PHRASES

    def format(self, definition: StatDefinition, value: Any, appearances: Optional[int] = None) -> FormattedValue:
        """
        Format a normalised query value. `None` means the graph had no value
        (N/A); for per-appearance averages that means no appearances.
        """
        if definition.is_label:
            if value is None or str(value).strip() == "":
                return FormattedValue(self.zero_phrases.phrase_for(definition.key), is_zero=True)
            return FormattedValue(self.format_label(definition, value))

        if value is None:
            no_apps = definition.per_appearance and not appearances
            return FormattedValue(self.zero_phrases.phrase_for(definition.key, no_apps), is_zero=True, number=0.0)
        number = float(value)
        if number == 0:
            return FormattedValue(
                self.zero_phrases.phrase_for(definition.key, appearances == 0),
                is_zero=True,
                number=0.0,
            )
        return FormattedValue(self.format_number(definition, number), number=number)

    @staticmethod
    def format_number(definition: StatDefinition, number: Any) -> str:
        number = float(number or 0)
        if definition.shape == COUNT:
            return str(int(round(number)))
        rendered = f"{number:.{definition.decimal_places}f}"
        if definition.shape == PERCENTAGE:
            return f"{rendered}%"
        return rendered

    @staticmethod
    def format_label(definition: StatDefinition, value: Any) -> str:
        label = str(value).strip()
        if definition.label_kind == TEAM:
            code = canonical_team(label)
            return team_display(code) if code else label
        if definition.label_kind == SEASON:
            return canonical_season(label) or label
        if definition.label_kind == POSITION:
            return canonical_position(label) or label
        return label
