"""Inbound intent payloads exchanged over the ``/ws`` event channel.

Frames look like ``{"event": "<name>", "data": {...}}`` in both directions.
"""

from __future__ import annotations

from typing import ClassVar, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, ValidationError

from .errors import MalformedRequest


class Intent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event: ClassVar[str]


class QuickplayIntent(Intent):
    event: ClassVar[str] = "quickplay"

    name: Optional[str] = None


class CreateRoomIntent(Intent):
    event: ClassVar[str] = "createRoom"

    name: Optional[str] = None


class JoinRoomIntent(Intent):
    event: ClassVar[str] = "joinRoom"

    room_id: str = Field(alias="roomId")
    name: Optional[str] = None


class SetReadyIntent(Intent):
    event: ClassVar[str] = "setReady"

    room_id: str = Field(alias="roomId")
    ready: StrictBool


class PlayMoveIntent(Intent):
    """Move request. Only a JSON integer is accepted; the range is checked later."""

    event: ClassVar[str] = "playMove"

    room_id: str = Field(alias="roomId")
    index: StrictInt


class RematchIntent(Intent):
    event: ClassVar[str] = "rematch"

    room_id: str = Field(alias="roomId")


class LeaveRoomIntent(Intent):
    event: ClassVar[str] = "leaveRoom"

    room_id: str = Field(alias="roomId")


INTENTS: Dict[str, Type[Intent]] = {
    model.event: model
    for model in (
        QuickplayIntent,
        CreateRoomIntent,
        JoinRoomIntent,
        SetReadyIntent,
        PlayMoveIntent,
        RematchIntent,
        LeaveRoomIntent,
    )
}


def parse_intent(frame: object) -> Intent:
    if not isinstance(frame, dict):
        raise MalformedRequest()
    event = frame.get("event")
    model = INTENTS.get(event) if isinstance(event, str) else None
    if model is None:
        raise MalformedRequest()
    data = frame.get("data")
    if data is None:
        data = {}
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise MalformedRequest() from exc


def frame(event: str, payload: Dict[str, object]) -> Dict[str, object]:
    return {"event": event, "data": payload}
