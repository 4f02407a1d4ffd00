"""FastAPI application: the room event channel and local-play endpoints."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    FastAPI,
    HTTPException,
    WebSocket,
    WebSocketDisconnect,
)
from pydantic import BaseModel, Field

from .coordinator import Emit, MatchCoordinator
from .local import LocalMatch, LocalMode
from .protocol import frame
from .rooms import ConnectionId, RoomRegistry, to_public_view

logger = logging.getLogger(__name__)

COMPUTER_REPLY_DELAY = 0.24


# ---------- Event channel ----------


class ConnectionHub:
    """One outbound queue per open connection.

    ``deliver`` only enqueues, so it never waits on the network and the
    per-connection order matches the order handlers ran in. Each connection
    has its own ``pump`` task writing its queue to the socket; a slow socket
    only holds up its own messages.
    """

    def __init__(self) -> None:
        self._queues: Dict[ConnectionId, asyncio.Queue] = {}

    def add(self, connection_id: ConnectionId) -> None:
        self._queues[connection_id] = asyncio.Queue()

    def remove(self, connection_id: ConnectionId) -> None:
        self._queues.pop(connection_id, None)

    def deliver(self, outbox: Iterable[Emit]) -> None:
        for emit in outbox:
            message = frame(emit.event, emit.payload)
            for connection_id in emit.recipients:
                queue = self._queues.get(connection_id)
                if queue is not None:
                    queue.put_nowait(message)

    async def pump(self, connection_id: ConnectionId, websocket: WebSocket) -> None:
        queue = self._queues[connection_id]
        while True:
            message = await queue.get()
            try:
                await websocket.send_json(message)
            except (RuntimeError, WebSocketDisconnect) as exc:
                logger.debug("Send of %s to %s failed: %s", message["event"], connection_id, exc)


def _decode_frame(message: Dict[str, object]) -> object:
    """Parse a text or binary frame as JSON; ``None`` if it is not JSON."""

    text = message.get("text")
    if not isinstance(text, str):
        data = message.get("bytes")
        text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else ""
    try:
        return json.loads(text)
    except ValueError:
        return None


# ---------- Local play ----------


@dataclass
class LocalSession:
    """A local match plus the bookkeeping for a delayed computer reply."""

    match: LocalMatch
    computer_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class NewLocalRequest(BaseModel):
    mode: LocalMode = LocalMode.HOTSEAT


class LocalMoveRequest(BaseModel):
    index: int = Field(ge=0, le=8)


def _serialize_local(session_id: str, session: LocalSession) -> Dict[str, object]:
    with session.lock:
        match = session.match
        return {
            "id": session_id,
            "mode": match.mode.value,
            "board": list(match.board),
            "turn": match.turn,
            "winner": match.winner,
            "combo": list(match.combo) if match.combo else None,
            "drawn": match.drawn,
            "finished": match.finished,
            "scores": dict(match.scores),
            "computerPending": session.computer_pending,
        }


def _run_computer_turn(session: LocalSession) -> None:
    time.sleep(max(0.0, COMPUTER_REPLY_DELAY))

    with session.lock:
        try:
            if session.match.computer_to_move:
                session.match.play_computer()
        finally:
            session.computer_pending = False


def _local_router(sessions: Dict[str, LocalSession]) -> APIRouter:
    router = APIRouter(prefix="/api/local")

    def get_session(session_id: str) -> LocalSession:
        try:
            return sessions[session_id]
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Game not found") from exc

    @router.post("")
    def create_local(request: NewLocalRequest) -> Dict[str, object]:
        session_id = uuid.uuid4().hex
        session = LocalSession(match=LocalMatch(mode=request.mode))
        sessions[session_id] = session
        return _serialize_local(session_id, session)

    @router.get("/{session_id}")
    def get_local(session_id: str) -> Dict[str, object]:
        return _serialize_local(session_id, get_session(session_id))

    @router.post("/{session_id}/move")
    def move_local(
        session_id: str, request: LocalMoveRequest, background_tasks: BackgroundTasks
    ) -> Dict[str, object]:
        session = get_session(session_id)
        with session.lock:
            if session.computer_pending:
                raise HTTPException(status_code=400, detail="Computer is completing its move")
            match = session.match
            if match.computer_to_move:
                raise HTTPException(status_code=400, detail="Not your turn")
            try:
                match.play(request.index)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
            if match.computer_to_move:
                session.computer_pending = True
                background_tasks.add_task(_run_computer_turn, session)
        return _serialize_local(session_id, session)

    @router.post("/{session_id}/reset")
    def reset_local(session_id: str) -> Dict[str, object]:
        session = get_session(session_id)
        with session.lock:
            if session.computer_pending:
                raise HTTPException(status_code=400, detail="Computer is completing its move")
            session.match.reset()
        return _serialize_local(session_id, session)

    @router.post("/{session_id}/new-session")
    def new_local_session(session_id: str) -> Dict[str, object]:
        session = get_session(session_id)
        with session.lock:
            if session.computer_pending:
                raise HTTPException(status_code=400, detail="Computer is completing its move")
            session.match.new_session()
        return _serialize_local(session_id, session)

    return router


# ---------- Application ----------


def create_app(registry: Optional[RoomRegistry] = None) -> FastAPI:
    app = FastAPI(title="xoarena", description="Two-player tic-tac-toe rooms over WebSocket")
    coordinator = MatchCoordinator(registry)
    hub = ConnectionHub()
    app.state.coordinator = coordinator
    app.state.hub = hub

    @app.get("/api/rooms/{room_id}")
    def inspect_room(room_id: str) -> Dict[str, object]:
        room = coordinator.registry.get(room_id)
        if room is None:
            raise HTTPException(status_code=404, detail="Room not found")
        return to_public_view(room)

    @app.websocket("/ws")
    async def event_channel(websocket: WebSocket) -> None:
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        hub.add(connection_id)
        pump = asyncio.create_task(hub.pump(connection_id, websocket))
        logger.info("Socket connected %s", connection_id)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                hub.deliver(coordinator.handle(connection_id, _decode_frame(message)))
        finally:
            hub.remove(connection_id)
            pump.cancel()
            logger.info("Socket disconnected %s", connection_id)
            hub.deliver(coordinator.disconnect(connection_id))

    app.include_router(_local_router({}))
    return app


app = create_app()
