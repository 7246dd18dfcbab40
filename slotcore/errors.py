"""Error codes and exceptions for the outcome engine."""
from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Engine error codes."""

    INVALID_REEL_COUNT = "INVALID_REEL_COUNT"
    INVALID_SYMBOL = "INVALID_SYMBOL"
    INVALID_KEY = "INVALID_KEY"
    INVALID_REEL_INDEX = "INVALID_REEL_INDEX"
    TARGET_SYMBOL_NOT_FOUND = "TARGET_SYMBOL_NOT_FOUND"
    STALE_TARGET_ASSIGNMENT = "STALE_TARGET_ASSIGNMENT"
    CALLBACK_FAILURE = "CALLBACK_FAILURE"
    TABLE_INCONSISTENCY = "TABLE_INCONSISTENCY"
    TABLE_ARTIFACT_INVALID = "TABLE_ARTIFACT_INVALID"


# Caller bugs are never recoverable; animation-layer degradations are absorbed.
ERROR_RECOVERABLE: dict[ErrorCode, bool] = {
    ErrorCode.INVALID_REEL_COUNT: False,
    ErrorCode.INVALID_SYMBOL: False,
    ErrorCode.INVALID_KEY: False,
    ErrorCode.INVALID_REEL_INDEX: False,
    ErrorCode.TARGET_SYMBOL_NOT_FOUND: True,
    ErrorCode.STALE_TARGET_ASSIGNMENT: True,
    ErrorCode.CALLBACK_FAILURE: True,
    ErrorCode.TABLE_INCONSISTENCY: False,
    ErrorCode.TABLE_ARTIFACT_INVALID: True,
}


class ErrorBody(BaseModel):
    """Serializable error description."""

    code: str
    message: str
    recoverable: bool


class SlotError(Exception):
    """Base engine error carrying an ErrorCode."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or f"Error: {code.value}"
        self.recoverable = ERROR_RECOVERABLE[code]
        super().__init__(self.message)

    def to_body(self) -> ErrorBody:
        return ErrorBody(
            code=self.code.value,
            message=self.message,
            recoverable=self.recoverable,
        )


class InvalidReelCountError(SlotError, ValueError):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.INVALID_REEL_COUNT, message)


class InvalidSymbolError(SlotError, ValueError):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.INVALID_SYMBOL, message)


class InvalidKeyError(SlotError, ValueError):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.INVALID_KEY, message)


class InvalidReelIndexError(SlotError, ValueError):
    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.INVALID_REEL_INDEX, message)


class TableInconsistencyError(SlotError):
    """Closed form plus overrides disagreed with the exact rules."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.TABLE_INCONSISTENCY, message)


class TableArtifactError(SlotError):
    """A stored override table could not be used."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.TABLE_ARTIFACT_INVALID, message)
