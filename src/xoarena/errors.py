"""Recoverable match errors, each answered directly to the issuing connection."""

from __future__ import annotations

from typing import Dict

ERROR_EVENT = "errorMsg"
INVALID_MOVE_EVENT = "invalidMove"


class MatchError(Exception):
    event = ERROR_EVENT
    message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    def payload(self) -> Dict[str, str]:
        key = "reason" if self.event == INVALID_MOVE_EVENT else "error"
        return {key: str(self)}


class RoomNotFound(MatchError):
    message = "Room not found"


class RoomFull(MatchError):
    message = "Room full"


class NotInRoom(MatchError):
    message = "You are not in this room"


class GameNotFinished(MatchError):
    message = "Game is not finished yet"


class MalformedRequest(MatchError):
    message = "Malformed request"


class InvalidMoveError(MatchError):
    event = INVALID_MOVE_EVENT
    message = "Invalid move"


class GameNotInProgress(InvalidMoveError):
    message = "Game is not in progress"


class NotYourTurn(InvalidMoveError):
    message = "Not your turn"


class InvalidCell(InvalidMoveError):
    message = "Invalid cell"
