"""Room lifecycle and match state machine.

Every handler takes the issuing connection id plus the intent fields and
returns the list of :class:`Emit` messages to deliver. Handlers mutate the
room in place and never raise for bad input: a :class:`MatchError` raised
while validating is turned into a direct reply to the issuing connection.
Callers must run handlers one at a time.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from .errors import (
    GameNotFinished,
    GameNotInProgress,
    InvalidCell,
    MatchError,
    NotInRoom,
    NotYourTurn,
    RoomFull,
    RoomNotFound,
)
from .game import evaluate, is_full, is_valid_index, other
from .protocol import (
    CreateRoomIntent,
    JoinRoomIntent,
    LeaveRoomIntent,
    PlayMoveIntent,
    QuickplayIntent,
    RematchIntent,
    SetReadyIntent,
    parse_intent,
)
from .rooms import (
    ConnectionId,
    Player,
    Room,
    RoomId,
    RoomRegistry,
    RoomStatus,
    to_public_view,
)

logger = logging.getLogger(__name__)

OPPONENT_LEFT_MESSAGE = "Opponent left the room"
OPPONENT_DISCONNECTED_MESSAGE = "Opponent disconnected"


@dataclass(frozen=True)
class Emit:
    """One outbound event and the connections it goes to."""

    event: str
    payload: Dict[str, object]
    recipients: Tuple[ConnectionId, ...]


Outbox = List[Emit]
H = TypeVar("H", bound=Callable[..., Outbox])


def _replies_errors(handler: H) -> H:
    @functools.wraps(handler)
    def wrapper(self: "MatchCoordinator", connection_id: ConnectionId, *args, **kwargs) -> Outbox:
        try:
            return handler(self, connection_id, *args, **kwargs)
        except MatchError as exc:
            logger.info("Rejected %s from %s: %s", handler.__name__, connection_id, exc)
            return [Emit(exc.event, exc.payload(), (connection_id,))]

    return wrapper  # type: ignore[return-value]


class MatchCoordinator:
    def __init__(self, registry: Optional[RoomRegistry] = None) -> None:
        self.registry = registry if registry is not None else RoomRegistry()

    # ---- frame entry point ----

    def handle(self, connection_id: ConnectionId, frame: object) -> Outbox:
        """Validate a raw ``{"event", "data"}`` frame and run its handler."""

        try:
            intent = parse_intent(frame)
        except MatchError as exc:
            return [Emit(exc.event, exc.payload(), (connection_id,))]

        if isinstance(intent, QuickplayIntent):
            return self.quickplay(connection_id, intent.name)
        if isinstance(intent, CreateRoomIntent):
            return self.create_room(connection_id, intent.name)
        if isinstance(intent, JoinRoomIntent):
            return self.join_room(connection_id, intent.room_id, intent.name)
        if isinstance(intent, SetReadyIntent):
            return self.set_ready(connection_id, intent.room_id, intent.ready)
        if isinstance(intent, PlayMoveIntent):
            return self.play_move(connection_id, intent.room_id, intent.index)
        if isinstance(intent, RematchIntent):
            return self.rematch(connection_id, intent.room_id)
        if isinstance(intent, LeaveRoomIntent):
            return self.leave_room(connection_id, intent.room_id)
        raise RuntimeError(f"No handler for {intent.event!r}")

    # ---- intents ----

    @_replies_errors
    def quickplay(self, connection_id: ConnectionId, name: Optional[str] = None) -> Outbox:
        # First fit in creation order.
        for room in self.registry:
            if (
                len(room.players) == 1
                and room.status is RoomStatus.WAITING
                and connection_id not in room.players
            ):
                return self._join(room, connection_id, name)
        room = self._require_room(self.registry.create())
        return self._join(room, connection_id, name)

    @_replies_errors
    def create_room(self, connection_id: ConnectionId, name: Optional[str] = None) -> Outbox:
        room = self._require_room(self.registry.create())
        outbox = self._join(room, connection_id, name)
        outbox.append(Emit("roomCreated", {"roomId": room.id}, (connection_id,)))
        return outbox

    @_replies_errors
    def join_room(
        self, connection_id: ConnectionId, room_id: RoomId, name: Optional[str] = None
    ) -> Outbox:
        room = self._require_room(room_id)
        return self._join(room, connection_id, name)

    @_replies_errors
    def set_ready(self, connection_id: ConnectionId, room_id: RoomId, ready: bool) -> Outbox:
        room = self._require_room(room_id)
        self._require_player(room, connection_id)

        if ready:
            room.ready.add(connection_id)
        else:
            room.ready.discard(connection_id)
        outbox = [self._broadcast(room, "roomUpdate", to_public_view(room))]

        if room.status is RoomStatus.WAITING_READY and len(room.ready) == 2:
            room.reset_board()
            room.rematch_votes.clear()
            room.status = RoomStatus.PLAYING
            logger.info("Game started in room %s", room.id)
            outbox.append(self._broadcast(room, "gameStart", to_public_view(room)))
        return outbox

    @_replies_errors
    def play_move(self, connection_id: ConnectionId, room_id: RoomId, index: object) -> Outbox:
        room = self._require_room(room_id)
        if room.status is not RoomStatus.PLAYING:
            raise GameNotInProgress()
        player = self._require_player(room, connection_id)
        if player.symbol != room.turn:
            raise NotYourTurn()
        if not is_valid_index(index) or room.board[index]:
            raise InvalidCell()

        room.board[index] = player.symbol
        logger.info("Player %s played at %d in room %s", player.symbol, index, room.id)

        win = evaluate(room.board)
        if win is not None:
            room.status = RoomStatus.FINISHED
            logger.info("Game over in room %s: %s wins", room.id, win.player)
            return [
                self._broadcast(
                    room,
                    "gameOver",
                    {
                        "result": "win",
                        "winner": win.player,
                        "combo": list(win.combo),
                        "room": to_public_view(room),
                    },
                )
            ]
        if is_full(room.board):
            room.status = RoomStatus.FINISHED
            logger.info("Game over in room %s: draw", room.id)
            return [
                self._broadcast(
                    room, "gameOver", {"result": "draw", "room": to_public_view(room)}
                )
            ]

        room.turn = other(room.turn)
        return [
            self._broadcast(room, "boardUpdate", {"board": list(room.board), "turn": room.turn})
        ]

    @_replies_errors
    def rematch(self, connection_id: ConnectionId, room_id: RoomId) -> Outbox:
        room = self._require_room(room_id)
        self._require_player(room, connection_id)
        if room.status is not RoomStatus.FINISHED:
            raise GameNotFinished()

        room.rematch_votes.add(connection_id)
        outbox = [self._broadcast(room, "rematchUpdate", {"votes": len(room.rematch_votes)})]

        if len(room.rematch_votes) == 2:
            room.reset_board()
            room.status = RoomStatus.PLAYING
            room.ready = set(room.players)
            room.rematch_votes.clear()
            logger.info("Rematch started in room %s", room.id)
            outbox.append(self._broadcast(room, "gameStart", to_public_view(room)))
        return outbox

    @_replies_errors
    def leave_room(self, connection_id: ConnectionId, room_id: RoomId) -> Outbox:
        room = self._require_room(room_id)
        self._require_player(room, connection_id)
        if not self._depart(room, connection_id):
            return []
        return [
            self._broadcast(room, "roomUpdate", to_public_view(room)),
            self._broadcast(room, "opponentLeft", {"message": OPPONENT_LEFT_MESSAGE}),
        ]

    def disconnect(self, connection_id: ConnectionId) -> Outbox:
        """Depart every room the connection occupies."""

        outbox: Outbox = []
        for room in self.registry:
            if connection_id not in room.players:
                continue
            if self._depart(room, connection_id):
                outbox.append(
                    Emit(
                        "opponentLeft",
                        {"message": OPPONENT_DISCONNECTED_MESSAGE},
                        tuple(room.players),
                    )
                )
        return outbox

    # ---- shared steps ----

    def _join(self, room: Room, connection_id: ConnectionId, name: Optional[str]) -> Outbox:
        if connection_id in room.players:
            return [self._broadcast(room, "roomUpdate", to_public_view(room))]
        if room.is_full():
            raise RoomFull()

        symbol = "O" if "X" in room.taken_symbols() else "X"
        display_name = (name or "").strip() or f"Player {symbol}"
        room.players[connection_id] = Player(
            connection_id=connection_id, display_name=display_name, symbol=symbol
        )
        room.ready.discard(connection_id)
        logger.info("%s joined room %s as %s", connection_id, room.id, symbol)

        outbox = [self._broadcast(room, "roomUpdate", to_public_view(room))]
        if len(room.players) == 2:
            room.reset_board()
            room.ready.clear()
            room.status = RoomStatus.WAITING_READY
            outbox.append(self._broadcast(room, "matchReady", to_public_view(room)))
        return outbox

    def _depart(self, room: Room, connection_id: ConnectionId) -> bool:
        """Remove a player; return True if the room still has someone in it."""

        player = room.players.pop(connection_id, None)
        room.ready.discard(connection_id)
        room.rematch_votes.discard(connection_id)
        if player is not None:
            logger.info("Player %s (%s) left room %s", player.display_name, player.symbol, room.id)

        if not room.players:
            self.registry.delete(room.id)
            return False

        room.reset_board()
        room.status = RoomStatus.WAITING
        room.ready.clear()
        room.rematch_votes.clear()
        logger.info("Room %s reset for remaining player", room.id)
        return True

    def _require_room(self, room_id: object) -> Room:
        room = self.registry.get(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    @staticmethod
    def _require_player(room: Room, connection_id: ConnectionId) -> Player:
        player = room.players.get(connection_id)
        if player is None:
            raise NotInRoom()
        return player

    @staticmethod
    def _broadcast(room: Room, event: str, payload: Dict[str, object]) -> Emit:
        return Emit(event, payload, tuple(room.players))
