"""
User-facing messages for each failure kind.

Messages never include query text or internal identifiers; operators get
those from the logs.
"""

from typing import Dict, Optional

from statbot.catalog.club_vocabulary import TEAM_NAMES
from statbot.utils.errors import (
    DATA_ERROR,
    EMPTY_QUESTION,
    FILTER_CONFLICT,
    METRIC_NOT_RECOGNIZED,
    PLAYER_NOT_FOUND,
    UNCLEAR_INTENT,
)
from statbot.preprocessing.intent_classifier import MISSING_SUBJECT, UNKNOWN_TEAM


EXAMPLE_METRICS = ["goals", "appearances", "assists", "clean sheets", "minutes", "fantasy points"]

EXAMPLE_QUESTIONS = [
    "How many goals has <player> scored?",
    "Who has more assists, <player> or <player>?",
    "Who are the top 3 goal scorers?",
]

ERROR_MESSAGES: Dict[str, str] = {
    EMPTY_QUESTION: (
        "I can help with player statistics. Try asking something like "
        '"How many goals has <player> scored?" or "Who are the top 3 goal scorers?"'
    ),
    UNCLEAR_INTENT: (
        "I'm not sure what you'd like to know. Try a question such as "
        + ", ".join(f'"{q}"' for q in EXAMPLE_QUESTIONS[:-1])
        + f' or "{EXAMPLE_QUESTIONS[-1]}"'
    ),
    PLAYER_NOT_FOUND: (
        'I couldn\'t find a player named "{name}" in the database. '
        "Please check the spelling or try a different player name."
    ),
    METRIC_NOT_RECOGNIZED: (
        "I couldn't work out which statistic you're asking about. "
        "Available statistics include " + ", ".join(EXAMPLE_METRICS[:-1]) + f" and {EXAMPLE_METRICS[-1]}."
    ),
    FILTER_CONFLICT: (
        "I can't combine those filters for that statistic. "
        "Try asking about one team, season or position at a time."
    ),
    DATA_ERROR: "I'm sorry, I encountered an error while processing your question. Please try again later.",
}

MISSING_SUBJECT_MESSAGE = (
    "Please specify which player you're asking about, for example "
    '"How many appearances has <player> made?"'
)

UNKNOWN_TEAM_MESSAGE = (
    f"I don't recognise that team. The club runs the {TEAM_NAMES['1s']} to the {TEAM_NAMES['8s']}, "
    'for example "How many goals has <player> scored for the 3rd XI?"'
)


def message_for(kind: Optional[str], detail: Optional[str] = None, suggestion: Optional[str] = None) -> str:
    if kind == UNCLEAR_INTENT and detail == MISSING_SUBJECT:
        message = MISSING_SUBJECT_MESSAGE
    elif kind == UNCLEAR_INTENT and detail == UNKNOWN_TEAM:
        message = UNKNOWN_TEAM_MESSAGE
    elif kind == PLAYER_NOT_FOUND:
        message = ERROR_MESSAGES[PLAYER_NOT_FOUND].format(name=detail or "that player")
        if suggestion:
            message += f' Did you mean "{suggestion}"?'
    else:
        message = ERROR_MESSAGES.get(kind or DATA_ERROR, ERROR_MESSAGES[DATA_ERROR])
    if message[-1] not in ".!?":
        message += "."
    return message
