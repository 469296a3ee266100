"""Error codes shared by the engine, the game service and the HTTP layer.

Every code belongs to one kind. The kind decides how a failure is reported:
validation problems are client-fixable, not-found means an unknown game or
slot, durability means the result was computed but not saved.
"""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DURABILITY = "durability"
    INTERNAL = "internal"


class ErrorCode(str, Enum):
    # Command validation
    NOT_OWNED = "NOT_OWNED"
    INSUFFICIENT_FORCE = "INSUFFICIENT_FORCE"
    INSUFFICIENT_RESOURCE = "INSUFFICIENT_RESOURCE"
    UNREACHABLE = "UNREACHABLE"
    OUT_OF_MOVES = "OUT_OF_MOVES"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    MAX_LEVEL_REACHED = "MAX_LEVEL_REACHED"
    ALREADY_ELIMINATED = "ALREADY_ELIMINATED"
    INVALID_REFERENCE = "INVALID_REFERENCE"
    INVALID_COUNT = "INVALID_COUNT"
    INVALID_UPGRADE = "INVALID_UPGRADE"
    NO_TEMPLE = "NO_TEMPLE"
    ALREADY_MOVED = "ALREADY_MOVED"
    GAME_COMPLETED = "GAME_COMPLETED"
    GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"

    # Lobby
    GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
    SLOT_UNAVAILABLE = "SLOT_UNAVAILABLE"
    NAME_TAKEN = "NAME_TAKEN"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"

    # Lookup
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"

    # Persistence and everything unexpected
    PERSIST_FAILED = "PERSIST_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_NOT_FOUND = {ErrorCode.GAME_NOT_FOUND, ErrorCode.PLAYER_NOT_FOUND}

ERROR_KINDS: dict[ErrorCode, ErrorKind] = {
    code: (
        ErrorKind.NOT_FOUND
        if code in _NOT_FOUND
        else ErrorKind.DURABILITY
        if code == ErrorCode.PERSIST_FAILED
        else ErrorKind.INTERNAL
        if code == ErrorCode.INTERNAL_ERROR
        else ErrorKind.VALIDATION
    )
    for code in ErrorCode
}


def error_kind(code: str | None) -> ErrorKind:
    """Kind for a code; anything unrecognised is internal."""
    try:
        return ERROR_KINDS[ErrorCode(code)]
    except ValueError:
        return ErrorKind.INTERNAL
