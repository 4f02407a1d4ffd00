"""In-memory room state and the registry that owns it."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set

from .game import Board, Player as Symbol, empty_board

logger = logging.getLogger(__name__)

ROOM_CODE_LENGTH = 7

ConnectionId = str
RoomId = str


class RoomStatus(str, Enum):
    WAITING = "waiting"
    WAITING_READY = "waitingReady"
    PLAYING = "playing"
    FINISHED = "finished"


@dataclass
class Player:
    """One occupied slot in a room."""

    connection_id: ConnectionId
    display_name: str
    symbol: Symbol


@dataclass
class Room:
    """Authoritative state of one match."""

    id: RoomId
    players: Dict[ConnectionId, Player] = field(default_factory=dict)
    board: Board = field(default_factory=empty_board)
    turn: Symbol = "X"
    ready: Set[ConnectionId] = field(default_factory=set)
    rematch_votes: Set[ConnectionId] = field(default_factory=set)
    status: RoomStatus = RoomStatus.WAITING

    def is_full(self) -> bool:
        return len(self.players) >= 2

    def taken_symbols(self) -> Set[Symbol]:
        return {p.symbol for p in self.players.values()}

    def reset_board(self) -> None:
        self.board = empty_board()
        self.turn = "X"


class RoomRegistry:
    """Maps room ids to rooms. Iteration follows creation order."""

    def __init__(self) -> None:
        self._rooms: Dict[RoomId, Room] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def create(self) -> RoomId:
        room_id = _generate_room_code()
        while room_id in self._rooms:
            room_id = _generate_room_code()
        self._rooms[room_id] = Room(id=room_id)
        logger.info("Room %s created", room_id)
        return room_id

    def get(self, room_id: object) -> Optional[Room]:
        if not isinstance(room_id, str):
            return None
        return self._rooms.get(room_id)

    def delete(self, room_id: RoomId) -> None:
        if self._rooms.pop(room_id, None) is not None:
            logger.info("Room %s deleted (empty)", room_id)


def _generate_room_code() -> RoomId:
    return uuid.uuid4().hex[:ROOM_CODE_LENGTH]


def to_public_view(room: Room) -> Dict[str, object]:
    """Project a room into the shape clients receive. Nothing is stored."""

    players: List[Dict[str, object]] = [
        {
            "name": p.display_name,
            "symbol": p.symbol,
            "socketId": p.connection_id,
            "isReady": p.connection_id in room.ready,
        }
        for p in room.players.values()
    ]
    ready_count = len(room.ready)
    return {
        "roomId": room.id,
        "players": players,
        "board": list(room.board),
        "turn": room.turn,
        "status": room.status.value,
        "readyCount": ready_count,
        "playerCount": len(players),
        "canStart": room.status is RoomStatus.WAITING_READY and ready_count == 2,
        "isGameActive": room.status is RoomStatus.PLAYING,
        "isGameFinished": room.status is RoomStatus.FINISHED,
    }
