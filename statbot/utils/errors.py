"""
Error taxonomy for the chatbot pipeline.

Each exception carries a `kind` label so the service can turn it into a
user-facing message without inspecting exception types.
"""

from typing import Any, Dict, Optional


EMPTY_QUESTION = "EmptyQuestion"
UNCLEAR_INTENT = "UnclearIntent"
PLAYER_NOT_FOUND = "PlayerNotFound"
METRIC_NOT_RECOGNIZED = "MetricNotRecognized"
FILTER_CONFLICT = "FilterConflict"
DATA_ERROR = "DataError"

ERROR_KINDS = [
    EMPTY_QUESTION,
    UNCLEAR_INTENT,
    PLAYER_NOT_FOUND,
    METRIC_NOT_RECOGNIZED,
    FILTER_CONFLICT,
    DATA_ERROR,
]


class ChatbotError(Exception):
    """Base class for failures that end in a polite answer rather than a crash."""

    kind = DATA_ERROR

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.context = context or {}


class PlayerNotFoundError(ChatbotError):
    kind = PLAYER_NOT_FOUND

    def __init__(self, player_name: str) -> None:
        super().__init__(f"Player not found: {player_name}", {"player": player_name})
        self.player_name = player_name


class MetricNotRecognizedError(ChatbotError):
    kind = METRIC_NOT_RECOGNIZED


class DataError(ChatbotError):
    """Query execution failed or returned something the registry does not allow."""

    kind = DATA_ERROR


class FilterConflictError(DataError):
    kind = FILTER_CONFLICT


class QueryTimeoutError(DataError):
    pass


class DataTypeMismatchError(DataError):
    pass


class RegistryError(ValueError):
    """Raised at import time when the statistic catalog is malformed."""
