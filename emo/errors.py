"""Error types surfaced to the user by the emo CLI.

Library code raises these; the CLI catches ``EmoError``, prints the message
and exits non-zero.
"""

from typing import Optional


class EmoError(Exception):
    """Base class for every error emo reports to the user."""

    exit_code = 1


class InvalidInput(EmoError):
    """Arguments that can never succeed (empty emoji, zero length...)."""


class EmptyQuery(InvalidInput):
    def __init__(self, message: str = "Please provide a search term or situation"):
        super().__init__(message)


class NoMatchFound(EmoError):
    def __init__(self, term: str, detail: Optional[str] = None):
        self.term = term
        message = f"No emoji found for '{term}'"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class MemoNotFound(EmoError):
    def __init__(self, term: str):
        self.term = term
        super().__init__(f"No mapping found for '{term}'")


class InvalidIndexReference(EmoError):
    def __init__(self, index: int, available: int):
        self.index = index
        self.available = available
        if index < 1:
            message = "Index must be greater than 0"
        else:
            message = f"Only {available} results found, cannot select index {index}"
        super().__init__(message)


class ModelUnavailable(EmoError):
    """The AI model could not be resolved, pulled or reached."""


class ConfigIoError(EmoError):
    """Reading, parsing or writing the configuration file failed."""
