"""
Duel Exceptions

Errors raised by the duel core. Guess validation failures are returned as
SubmitResult objects instead; these exceptions cover contract violations and
sync failures.
"""


class DuelError(Exception):
    """Base class for all duel errors."""


class InvalidGuessLength(DuelError):
    """A word passed to the evaluator is not exactly WORD_LENGTH letters."""

    def __init__(self, word: str, expected: int):
        super().__init__(f"Expected a {expected}-letter word, got '{word}'")
        self.word = word
        self.expected = expected


class ChannelWriteFailure(DuelError):
    """A write to the shared state channel failed. Never retried automatically."""

    def __init__(self, operation: str, cause: Exception = None):
        message = f"Shared state write '{operation}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class RoundOrderError(DuelError):
    """Attempt to open a round before the previous one was revealed."""
